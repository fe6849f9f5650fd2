"""
Lead Qualification API — FastAPI Application Entry Point

Aggregates all routers, configures middleware, and initializes the
database on startup.
"""
import time
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import init_db, SessionLocal
from app.routes import session_router, leads_router, slots_router, admin_router
from app.utils.logger import get_logger

settings = get_settings()
logger = get_logger("app.main")

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Lead capture backend: field normalization, rule-based lead categorization, "
        "counselor slot availability, and merge-on-write session persistence."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Initialize database tables and log boot info."""
    init_db()

    boot_msg = (
        f"\n{'='*60}\n"
        f"  {settings.APP_NAME} v{settings.APP_VERSION}\n"
        f"  TIME: {datetime.now().isoformat()}\n"
        f"  ENVIRONMENT: {settings.ENVIRONMENT}\n"
        f"  DATABASE: {settings.DATABASE_URL}\n"
        f"  META CAPI: {'[OK] Configured' if settings.META_CAPI_ACCESS_TOKEN else '[!] Disabled'}\n"
        f"  WEBHOOK: {'[OK] Configured' if settings.WEBHOOK_URL else '[!] Disabled'}\n"
        f"  DEBUG: {settings.DEBUG}\n"
        f"{'='*60}"
    )
    logger.info(boot_msg)


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info(f"-> {request.method} {request.url.path} -> {response.status_code} ({duration}ms)")

    return response


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(session_router)
app.include_router(leads_router)
app.include_router(slots_router)
app.include_router(admin_router)


@app.get("/health", tags=["Health"])
def deep_health():
    """Detailed health check including dependency statuses."""
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Health check database error: {e}")
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "notifications": "configured" if settings.META_CAPI_ACCESS_TOKEN else "disabled",
        "webhook": "configured" if settings.WEBHOOK_URL else "disabled",
        "environment": settings.ENVIRONMENT,
        "uptime_seconds": round(time.time() - BOOT_TIME, 1),
        "version": settings.APP_VERSION,
    }
