from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .cors import install_cors
from .logging_config import logger, setup_logging
from .routes import health, players
from .store import store_provider


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await store_provider.close()


setup_logging()
settings = get_settings()
app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
install_cors(app)

app.include_router(health.router)
app.include_router(players.router)

logger.info("app.start", store="redis" if settings.redis_url else "memory", universe_id=settings.universe_id)
