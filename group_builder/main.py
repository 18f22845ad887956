# group_builder/main.py
"""
Application entrypoint. Includes routers and mounts.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from group_builder.api.routers import sessions
from group_builder.config.settings import settings
from group_builder.infrastructure.db.session import init_models
from group_builder.services.sessions import registry

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting group builder (%s)", settings.ENV)
    await init_models()
    try:
        yield
    finally:
        logger.info("Shutting down, waiting for outstanding compatibility updates")
        await registry.shutdown()


app = FastAPI(title="Group Builder", lifespan=lifespan)

# Basic CORS (adjust origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# include routers
app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["sessions"])


@app.get("/")
async def index():
    """Health / basic info endpoint."""
    return {"status": "ok", "service": "group-builder", "env": settings.ENV}
