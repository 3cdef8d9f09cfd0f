# api/app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.app.config import get_settings
from api.app.errors import register_error_handlers
from api.app.middleware.request_logging import RequestLoggingMiddleware
from api.app.routes import assignments, health, location, ops, partners, processing, time_tracking
from db.engine import dispose_engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Ops API starting (environment=%s)", get_settings().environment)
    yield
    await dispose_engine()


app = FastAPI(
    title="Media Ops API",
    description="Operations backend for real-estate media production",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(ops.router)
app.include_router(assignments.router)
app.include_router(time_tracking.router)
app.include_router(processing.router)
app.include_router(partners.router)
app.include_router(location.router, prefix="/v1")
