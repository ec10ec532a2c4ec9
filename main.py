import sys
from fastapi import FastAPI
from contextlib import asynccontextmanager
from loguru import logger
from database.postgres import init_postgres, close_postgres
import uvicorn
from api.v1.endpoints.availability import router as availability_router
from api.v1.endpoints.appointment import router as appointment_router
from fastapi.middleware.cors import CORSMiddleware
from core.config import FRONTEND_URL, LOG_LEVEL
from core.middleware import RequestLogMiddleware

origins = [
    "http://127.0.0.1:3000",
    FRONTEND_URL
]

logger.remove()
logger.add(sys.stderr, level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_postgres()
    yield
    await close_postgres()


app: FastAPI = FastAPI(lifespan=lifespan, title="Pontedra Booking")
app.include_router(availability_router)
app.include_router(appointment_router)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins, # type: ignore
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLogMiddleware)

@app.get('/')
def hello():
    return {"message": "Pontedra booking API running"}

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
