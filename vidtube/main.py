# vidtube/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from vidtube.api import users, videos
from vidtube.core.config import settings
from vidtube.core.database import init_db
from vidtube.core.errors import register_exception_handlers
from vidtube.core.redis_client import close_redis_pool, create_redis_pool

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: ensuring Mongo indexes and Redis pool...")
    try:
        init_db()
    except PyMongoError as e:
        # Не падаем: запросы к базе сами вернут ошибку
        logger.error(f"Could not initialize database: {e}")
    create_redis_pool()
    yield
    logger.info("Application shutdown: closing Redis pool...")
    await close_redis_pool()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Подключаем роутеры
app.include_router(users.router, prefix=f"{settings.api_prefix}/users", tags=["users"])
app.include_router(videos.router, prefix=f"{settings.api_prefix}/videos", tags=["videos"])


@app.get(f"{settings.api_prefix}/healthcheck", tags=["health"])
async def healthcheck():
    return {"status": "OK"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vidtube.main:app", host="0.0.0.0", port=8000, reload=True)
