"""
BizPulse API - Main Application

In-app notifications and business-event alerting:
- Bounded notification store with timed auto-expiry
- Periodic business event watcher with cooldown-gated alerts
- Dashboard summary reports
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from bizpulse.api.v2.router import api_router
from bizpulse.config import settings
from bizpulse.database import init_db
from bizpulse.exceptions import BizPulseException, create_exception_handlers
# Import all models to register them with SQLAlchemy metadata before init_db()
from bizpulse.models import (
    Client, Product, InventoryItem, Order, OrderItem, Invoice, Maintenance
)
from bizpulse.notifications import (
    BusinessEventWatcher,
    CooldownRegistry,
    MemoryCooldownStorage,
    MemoryNotificationStorage,
    NotificationPersister,
    NotificationStore,
    RedisCooldownStorage,
    RedisNotificationStorage,
)
from bizpulse.tasks.business_events import (
    start_business_event_scheduler,
    stop_business_event_scheduler,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_cooldown_storage():
    """Redis when configured, process memory otherwise."""
    if settings.REDIS_URL:
        return RedisCooldownStorage(
            settings.REDIS_URL,
            failure_threshold=settings.COOLDOWN_FAILURE_THRESHOLD,
            recovery_timeout=settings.COOLDOWN_RECOVERY_TIMEOUT,
        )
    logger.warning("REDIS_URL not set - alert cooldowns are kept in memory and reset on restart")
    return MemoryCooldownStorage()


def create_notification_persister(store):
    """Save the store to Redis when configured, process memory otherwise."""
    if settings.REDIS_URL:
        storage = RedisNotificationStorage(settings.REDIS_URL, key=settings.NOTIFICATIONS_REDIS_KEY)
    else:
        logger.warning("REDIS_URL not set - notifications are not kept across restarts")
        storage = MemoryNotificationStorage()
    return NotificationPersister(store, storage)


def create_alerting_components():
    """Build the notification store, cooldown registry and event watcher."""
    store = NotificationStore(
        max_notifications=settings.MAX_NOTIFICATIONS,
        auto_remove_delay=settings.AUTO_REMOVE_DELAY_SECONDS,
    )
    cooldowns = CooldownRegistry(create_cooldown_storage(), windows=settings.cooldown_windows)
    watcher = BusinessEventWatcher(store, cooldowns)
    return store, cooldowns, watcher


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting BizPulse API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - some features may not work")

    store, cooldowns, watcher = create_alerting_components()
    persister = create_notification_persister(store)
    await persister.restore()
    persister.attach()
    app.state.notification_store = store
    app.state.event_watcher = watcher

    if settings.WATCHER_ENABLED:
        start_business_event_scheduler(watcher, settings.WATCHER_INTERVAL_SECONDS)
    else:
        logger.info("Business event watcher disabled")

    yield

    # Shutdown
    logger.info("Shutting down BizPulse API...")
    stop_business_event_scheduler()
    store.shutdown()
    await persister.close()
    await cooldowns.storage.close()


# Conditionally enable docs based on settings
docs_url = "/docs" if settings.DOCS_ENABLED else None
redoc_url = "/redoc" if settings.DOCS_ENABLED else None

app = FastAPI(
    title="BizPulse API",
    description="Notifications and business-event alerting",
    version="1.0.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

# CORS middleware
allowed_origins = [
    settings.FRONTEND_URL,
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",  # Alternative dev port
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# RFC 7807 error responses
handlers = create_exception_handlers(settings.DEBUG)
app.add_exception_handler(BizPulseException, handlers["bizpulse"])
app.add_exception_handler(StarletteHTTPException, handlers["http"])
app.add_exception_handler(RequestValidationError, handlers["validation"])
app.add_exception_handler(Exception, handlers["generic"])

# Include routers
app.include_router(api_router, prefix="/api/v2")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "BizPulse API",
        "version": "1.0.0",
        "health": "/health",
    }
    # Only include docs link if enabled
    if settings.DOCS_ENABLED:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bizpulse.main:app",
        host="0.0.0.0",
        port=5001,
        reload=settings.DEBUG,
    )
