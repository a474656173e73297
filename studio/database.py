import functools
import hashlib
import logging
import os
import threading
import time
from contextlib import contextmanager
from datetime import date

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import (
    DATABASE_URL,
    DB_RETRY_ATTEMPTS,
    DB_RETRY_BACKOFF,
    DB_STATEMENT_TIMEOUT_MS,
    PROVIDER_ID,
)
from .exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "10"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def _engine_options(url: str) -> dict:
    """Dialect-specific engine options; every store call gets a timeout"""
    timeout_seconds = max(1, DB_STATEMENT_TIMEOUT_MS // 1000)
    if url.startswith("sqlite"):
        options = {
            "connect_args": {"check_same_thread": False, "timeout": timeout_seconds},
        }
        # In-memory databases must share one connection across threads
        if url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url:
            options["poolclass"] = StaticPool
        return options

    connect_args = {}
    if url.startswith("postgresql"):
        connect_args["options"] = (
            f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS} "
            f"-c lock_timeout={DB_STATEMENT_TIMEOUT_MS}"
        )
    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": POOL_RECYCLE,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
        "connect_args": connect_args,
    }


try:
    engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))
    logger.info(f"Database engine created for dialect: {engine.dialect.name}")
except Exception as e:
    logger.error(f"Failed to create database engine: {e}")
    raise

# Slow query logging for performance monitoring
if ENABLE_QUERY_LOGGING:

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"Slow query ({total:.2f}s): {statement[:200]}...")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def with_store_retry(func):
    """
    Retry a service method on transient store failures.

    The wrapped method must belong to an object exposing ``self.db``. The
    session is rolled back between attempts; once attempts are exhausted the
    failure surfaces as StoreUnavailable. Domain errors pass straight through.
    """

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        for attempt in range(1, DB_RETRY_ATTEMPTS + 1):
            try:
                return func(self, *args, **kwargs)
            except (OperationalError, PoolTimeoutError) as e:
                self.db.rollback()
                if attempt == DB_RETRY_ATTEMPTS:
                    logger.error(f"Store unavailable after {attempt} attempts in {func.__name__}: {e}")
                    raise StoreUnavailable() from e
                delay = DB_RETRY_BACKOFF * (2 ** (attempt - 1))
                logger.warning(
                    f"Transient store error in {func.__name__} (attempt {attempt}/{DB_RETRY_ATTEMPTS}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
                time.sleep(delay)

    return wrapper


# Process-local locks used when the dialect has no advisory locks (SQLite dev store)
_local_locks: dict[str, threading.Lock] = {}
_local_locks_guard = threading.Lock()
LOCAL_LOCK_TIMEOUT = max(1, DB_STATEMENT_TIMEOUT_MS // 1000)


def _advisory_key(key: str) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock"""
    return int.from_bytes(hashlib.sha256(key.encode("utf-8")).digest()[:8], "big", signed=True)


def _local_lock(key: str) -> threading.Lock:
    with _local_locks_guard:
        lock = _local_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _local_locks[key] = lock
        return lock


@contextmanager
def schedule_lock(db: Session, *days: date):
    """
    Serialize check-then-write sequences on the provider's calendar.

    Holds one lock per calendar day (acquired in sorted order). On PostgreSQL
    this is a transaction-scoped advisory lock released at commit/rollback;
    other dialects fall back to process-local locks held for the block.
    The transaction is rolled back if the block raises.
    """
    keys = sorted({f"{PROVIDER_ID}:{day.isoformat()}" for day in days})
    acquired: list[threading.Lock] = []
    try:
        if db.get_bind().dialect.name == "postgresql":
            for key in keys:
                db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": _advisory_key(key)})
        else:
            for key in keys:
                lock = _local_lock(key)
                if not lock.acquire(timeout=LOCAL_LOCK_TIMEOUT):
                    raise OperationalError("schedule lock", {"key": key}, Exception("lock timeout"))
                acquired.append(lock)
        yield
    except Exception:
        db.rollback()
        raise
    finally:
        for lock in reversed(acquired):
            lock.release()
