"""Database session management."""
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from leave_engine.config.settings import Settings, settings


def build_engine(config: Optional[Settings] = None) -> Engine:
    """
    Create a database engine from settings.

    Pool sizing only applies to server databases; SQLite uses
    SQLAlchemy's default pool.
    """
    config = config or settings
    kwargs = {
        "pool_pre_ping": True,
        "echo": config.DB_ECHO,
    }
    connect_args = dict(config.DB_CONNECT_ARGS)
    if config.is_sqlite():
        connect_args.setdefault("check_same_thread", False)
    else:
        kwargs["pool_size"] = config.DB_POOL_SIZE
        kwargs["max_overflow"] = config.DB_POOL_OVERFLOW
    if connect_args:
        kwargs["connect_args"] = connect_args
    return create_engine(config.get_database_url(), **kwargs)


def build_session_factory(bind: Engine) -> sessionmaker:
    """Session factory used by services and tests alike."""
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


# Create database engine from the process settings
engine = build_engine(settings)

# Create SessionLocal class
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.

    Usage:
        for db in get_db():
            service = LeaveLifecycleService.from_session(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
