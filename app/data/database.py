# app/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.utils.retry import db_retry
from app.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS
from app.utils.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        #baza w pamieci - jedno polaczenie dla wszystkich watkow
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    options = {"pool_pre_ping": True}
    if url.startswith("postgresql") and DB_STATEMENT_TIMEOUT_MS > 0:
        options["connect_args"] = {"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"}
    return options


engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@db_retry()
def init_db(bind=None):
    #import modeli zeby zarejestrowac tabele w Base.metadata
    from app.data import models  # noqa: F401

    bind = bind or engine
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=bind)
