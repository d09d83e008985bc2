import sqlite3
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from core.config import settings
from core.logging_config import get_logger

logger = get_logger(__name__)


if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
else:
    connect_args = {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db():
    import models  # noqa: F401  registers every table on Base.metadata
    Base.metadata.create_all(bind=engine)


@contextmanager
def transaction(db: Session, operation: str) -> Iterator[Session]:
    """
    Run a block of writes as one unit: commit on success, roll back on any error.

    Usage:
        with transaction(db, "update_product"):
            product.title = "New title"
    """
    logger.debug("Transaction started", extra={"operation": operation})
    try:
        yield db
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.warning(
            "Transaction rolled back",
            extra={"operation": operation, "error_type": type(exc).__name__}
        )
        raise
    logger.debug("Transaction committed", extra={"operation": operation})
