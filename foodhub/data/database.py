# foodhub/data/database.py
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from foodhub.utils.settings import DATABASE_URL
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=True, expire_on_commit=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Transaction script: wszystko albo nic.
    Commit na koncu bloku, rollback przy jakimkolwiek wyjatku.
    """
    try:
        yield db
        db.commit()
    except Exception:
        logger.warning("Unit of work rolled back")
        db.rollback()
        raise


def init_db(bind=None) -> None:
    # import modeli zeby zarejestrowaly sie w Base.metadata
    import foodhub.data.models  # noqa: F401

    target = bind or engine
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=target)


def as_utc(value: datetime | None) -> datetime | None:
    # sqlite zwraca naiwne daty, postgres swiadome strefy
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
