# database/database.py
import threading

from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from qairoz.config import DATABASE_URL, DATABASE_ECHO


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads or every
        # request would see an empty database.
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_pre_ping": True,
    }


# SQLAlchemy engine (sync version)
engine = create_engine(DATABASE_URL, echo=DATABASE_ECHO, **_engine_options(DATABASE_URL))

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for all ORM models
Base = declarative_base()

# Under StaticPool every session shares one connection, so sessions take turns.
SERIALIZE_SESSIONS = isinstance(engine.pool, StaticPool)
_session_lock = threading.Lock()


# Dependency to get DB session in FastAPI routes
def get_db():
    if SERIALIZE_SESSIONS:
        _session_lock.acquire()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        if SERIALIZE_SESSIONS:
            _session_lock.release()
