import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from notification_hub.config import get_settings
from notification_hub.infrastructure.database import engine, initialize_database
from notification_hub.infrastructure.notifications import event_bus
from notification_hub.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables on startup and release connections on shutdown."""

    initialize_database()
    yield
    event_bus.close_all()
    engine.dispose()


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""

    logging.getLogger("notification_hub").setLevel(get_settings().log_level)

    app = FastAPI(title="notification-hub", lifespan=lifespan)
    register_routes(app)
    return app


app = create_app()
