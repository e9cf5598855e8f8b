import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from wims.core.config import settings
from wims.services.errors import InventoryError, TransactionFailure

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

# SQLite needs check_same_thread, Postgres must NOT have it
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)


def enable_sqlite_write_locks(engine: Engine) -> None:
    """
    Open every SQLite transaction with BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so a read-then-write unit
    (load product, add delta) would run unlocked and two writers could both
    read the old quantity. BEGIN IMMEDIATE takes the database write lock
    before the product row is read; a second writer waits on the busy
    timeout until the first commits.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


if DATABASE_URL.startswith("sqlite"):
    enable_sqlite_write_locks(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    One unit of work: product rows, ledger rows and the audit row either all
    commit or all roll back.

    Domain errors are re-raised unchanged after rollback. Store errors
    surface as TransactionFailure.
    """
    try:
        yield db
        db.commit()
    except InventoryError as e:
        db.rollback()
        logger.warning("rolled back: %s (%s)", e.message, e.code)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("rolled back on store error: %s", e.__class__.__name__)
        raise TransactionFailure("Transaction failed; no changes were applied.") from e
    except Exception:
        db.rollback()
        logger.exception("rolled back on unexpected error")
        raise
