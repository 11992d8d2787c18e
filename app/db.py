from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import DATABASE_URL, DB_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_SIZE

Base = declarative_base()


def build_engine(url: str) -> Engine:
    is_sqlite = url.startswith("sqlite")
    engine_kwargs = {
        "connect_args": {"check_same_thread": False} if is_sqlite else {},
        "pool_pre_ping": True,
    }
    if is_sqlite and (":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://")):
        # every connection must see the same in-memory database
        engine_kwargs["poolclass"] = StaticPool
    elif is_sqlite:
        engine_kwargs["pool_recycle"] = DB_POOL_RECYCLE
    else:
        engine_kwargs.update(
            {
                "pool_recycle": DB_POOL_RECYCLE,
                "pool_size": DB_POOL_SIZE,
                "max_overflow": DB_MAX_OVERFLOW,
            }
        )
    engine = create_engine(url, **engine_kwargs)
    if is_sqlite:
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite defers BEGIN on its own; SQLAlchemy must own it for SAVEPOINT to nest
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN")


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
