import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intranet.config import get_settings
from intranet.domain.exceptions import PersistenceError
from intranet.infrastructure.database import engine, initialize_database
from intranet.infrastructure.notifications import NotificationConnectionManager
from intranet.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables on startup and release pooled connections on shutdown."""

    initialize_database()
    yield
    engine.dispose()


async def _persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(
        "Persistence failure on %s %s (operation=%s, user=%s)",
        request.method,
        request.url.path,
        exc.operation,
        exc.user_id,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": "The notification store is temporarily unavailable",
            "error_code": exc.error_code,
        },
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    app = FastAPI(title="Intranet Notifications", lifespan=lifespan)
    app.state.notification_manager = NotificationConnectionManager(
        send_timeout=settings.broadcast_send_timeout_seconds
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PersistenceError, _persistence_error_handler)

    register_routes(app)
    return app
