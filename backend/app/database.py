"""
Database Engine & Session Management
One table of merged form sessions; SQLite in development, any SQLAlchemy URL in production.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from app.config import get_settings

settings = get_settings()

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

if _is_sqlite:
    _db_dir = os.path.dirname(settings.DATABASE_URL.replace("sqlite:///", ""))
    if _db_dir:
        os.makedirs(_db_dir, exist_ok=True)
    # Request threads and background sink tasks share the file
    _connect_args = {"check_same_thread": False}
else:
    _connect_args = {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args,
    # Check pooled connections before use
    pool_pre_ping=not _is_sqlite,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: one database session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the form_sessions table if missing. Called at startup and by the sweep."""
    from app.models import form_session as _form_session_model  # noqa: F401

    Base.metadata.create_all(bind=engine)
