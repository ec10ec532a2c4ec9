from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

EXCLUDED_PATHS = [
    "/docs",
    "/openapi.json",
]

class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(p) for p in EXCLUDED_PATHS):
            return await call_next(request)

        logger.info(f"Request → {request.method} {request.url.path}")

        response = await call_next(request)
        if response.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} → {response.status_code}")
        return response
