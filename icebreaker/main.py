"""Icebreaker event backend."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from icebreaker.core.config import settings
from icebreaker.core.database import create_db_and_tables
from icebreaker.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationFailure,
)
from icebreaker.core.scheduler import shutdown_scheduler, start_scheduler
from icebreaker.realtime import EventChannel, RealtimeNotifier
from icebreaker.routes import activities, events, group_activities, realtime, reviews, user_activities, users

# Configure logging
log_dir = Path(settings.log_dir) if settings.log_dir else Path.home() / ".logs" / "icebreaker"
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Icebreaker application")
    create_db_and_tables()
    app.state.notifier.bind(EventChannel())
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    app.state.notifier.unbind()
    logger.info("Icebreaker application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Backend for live icebreaker events: activities, pairing and participant reviews",
    version="0.1.0",
    lifespan=lifespan,
)

# Bound to a channel during startup; notifications before that are logged and dropped
app.state.notifier = RealtimeNotifier()

origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(events.router)
app.include_router(activities.router)
app.include_router(users.router)
app.include_router(user_activities.router)
app.include_router(group_activities.router)
app.include_router(reviews.router)
app.include_router(realtime.router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    """Return 404 when a resource is not found."""
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    """Return 409 for conflict errors."""
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(ValidationFailure)
async def validation_handler(request: Request, exc: ValidationFailure):
    """Return 422 for domain validation errors."""
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(AuthorizationError)
async def authorization_handler(request: Request, exc: AuthorizationError):
    """Return 403 when the caller is not allowed to act on a resource."""
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.get("/")
async def root():
    return {"message": "API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
