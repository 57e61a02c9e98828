from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from coupons.core.config import settings


def build_engine(dsn: str, **kwargs: Any) -> Engine:
    """Create an engine, applying SQLite thread and busy-timeout settings when needed."""
    if dsn.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.SQLITE_BUSY_TIMEOUT_SECONDS)
        kwargs["connect_args"] = connect_args
    return create_engine(dsn, **kwargs)


engine = build_engine(settings.APP_DATABASE_DSN)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
