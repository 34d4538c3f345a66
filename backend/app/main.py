"""FastAPI application entry point."""
import logging
import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import close_db, get_db, health_check, migrate
from app.errors import DomainError

# Import routers
from app.routers import users, events, participants

# Import all models so Base.metadata knows about them
from app.models.user import User               # noqa: F401
from app.models.event import Event             # noqa: F401
from app.models.participant import Participant  # noqa: F401

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; repeated calls are no-ops."""
    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)


setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Morrow",
    description="Shared events API: users, events and event participation",
    version=settings.APP_VERSION,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(participants.router, prefix="/api/participants", tags=["Participants"])


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method, request.url.path, response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Render domain errors as {"success": false, "error": {...}}."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    error = {"type": exc.kind, "message": exc.message}
    if exc.field:
        error["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": error})


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        migrate()


@app.on_event("shutdown")
def on_shutdown():
    close_db()


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    """Service status including a database round-trip."""
    database = {"status": "ok"}
    try:
        health_check(db)
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)
        database = {"status": "error", "error": "database unreachable"}
    healthy = database["status"] == "ok"
    body = {
        "status": "ok" if healthy else "degraded",
        "message": "Morrow API is running",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "database": database,
    }
    code = status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)


@app.get("/api/ping")
def ping():
    return {"message": "pong", "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")}
