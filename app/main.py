"""FastAPI application entry point."""
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.database import Base, engine
from app.errors import register_exception_handlers
from app.middleware import RequestLoggingMiddleware
from app.routing import build_router
from app.storage import PUBLIC_PREFIX

# Import routers
from app.routers import auth, users, circles, invites, feed, media

# Import all models so Base.metadata knows about them
from app.models.user import User                                         # noqa: F401
from app.models.circle import Circle, CircleMember, CircleInviteLink      # noqa: F401
from app.models.invite import Invite, RSVP                               # noqa: F401
from app.models.feed import EventFeedItem                                # noqa: F401
from app.models.media import MediaItem                                   # noqa: F401

logger = logging.getLogger(__name__)

# (prefix, tag, route table)
ROUTE_TABLES = (
    ("/api/auth", "Auth", auth.ROUTES),
    ("/api/users", "Users", users.ROUTES),
    ("/api/circles", "Circles", circles.ROUTES),
    ("/api/invites", "Invites", invites.ROUTES),
    ("/api/feed", "Feed", feed.ROUTES),
    ("/api/media", "Media", media.ROUTES),
)


def configure_logging() -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE_PATH:
        handlers.append(logging.FileHandler(settings.LOG_FILE_PATH))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def health_check():
    return {"status": "ok"}


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Invito",
        description="Circles, invites and RSVPs for private groups coordinating events",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    for prefix, tag, routes in ROUTE_TABLES:
        app.include_router(build_router(routes), prefix=prefix, tags=[tag])
    app.add_api_route("/api/health", health_check, methods=["GET"])

    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.on_event("startup")
    def on_startup():
        """Create database tables on startup (for SQLite dev mode)."""
        if settings.DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        logger.info("Invito API started (%s)", settings.ENVIRONMENT)

    return app


app = create_app()
