import os
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Render/Heroku style URLs use postgres://, SQLAlchemy wants postgresql://
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./asmin.db")
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # Writers take the lock at BEGIN and queue on the busy timeout,
    # so concurrent conditional UPDATEs see each other's commits
    connect_args = {"check_same_thread": False, "isolation_level": "IMMEDIATE", "timeout": 15}

engine = create_engine(
    DATABASE_URL,
    echo=False,
    future=True,
    connect_args=connect_args
)

if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_db():
    """Dependency for getting database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables."""
    # Import here so every model is registered on Base.metadata
    import models  # noqa: F401

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
