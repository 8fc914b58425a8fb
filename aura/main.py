"""
Main application entry point - FastAPI app instance and configuration.
This is where the ASGI application is created and configured.
Run with: uvicorn aura.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aura.core.config import settings
from aura.core.logging_config import configure_logging
from aura.db.session import init_db
from aura.routers import chat, events, notifications, reminders
from aura.services.notifications import notification_scheduler

logger = logging.getLogger("aura.main")


# ---------------------------------------------------------------------------
# LIFESPAN
# ---------------------------------------------------------------------------
# Startup: logging, missing tables, notification scheduler.
# Shutdown: stop the scheduler (pending triggers are dropped).
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    notification_scheduler.start()
    logger.info(f"{settings.APP_NAME} started")
    yield
    notification_scheduler.shutdown()
    logger.info(f"{settings.APP_NAME} stopped")


# ---------------------------------------------------------------------------
# CREATE FASTAPI APPLICATION
# ---------------------------------------------------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS MIDDLEWARE
# ---------------------------------------------------------------------------
# The mobile and web clients call the API from other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# REGISTER ROUTERS
# ---------------------------------------------------------------------------
# chat.router: /chat/messages, /chat/stats
# events.router: /events CRUD + search
# reminders.router: /reminders CRUD + toggle
# notifications.router: /notifications/actions
app.include_router(chat.router)
app.include_router(events.router)
app.include_router(reminders.router)
app.include_router(notifications.router)


# ---------------------------------------------------------------------------
# HEALTH CHECK ENDPOINT
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
def health_check():
    """
    Liveness probe. Does NOT check database connectivity.

    Returns:
        {"status": "ok"}
    """
    return {"status": "ok"}
