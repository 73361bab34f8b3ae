import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from posterboy.config import settings

logger = logging.getLogger(__name__)

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _engine_options(url: str) -> dict:
    options: dict = {
        "connect_args": {"check_same_thread": False},  # SQLite-specific
        "echo": settings.ENVIRONMENT == "development",
    }
    if url in _IN_MEMORY_URLS:
        # One shared connection, otherwise every session sees an empty database
        options["poolclass"] = StaticPool
    else:
        # Ensure the SQLite parent directory exists
        db_path = url.replace("sqlite:///", "")
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    import posterboy.models  # noqa: F401  registers the mapped tables

    Base.metadata.create_all(bind=engine)
    logger.info("Tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))
