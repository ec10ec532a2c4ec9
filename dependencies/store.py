from fastapi import HTTPException, status
from loguru import logger

from database.postgres import get_session_factory
from services.data_store import DataStore, SqlDataStore


async def get_data_store() -> DataStore:
    """
    Dependency for FastAPI Routes.
    """
    try:
        session_factory = get_session_factory()
    except ConnectionError as e:
        logger.error(f"Data store unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data store unavailable"
        )
    return SqlDataStore(session_factory)
