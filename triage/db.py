# triage/db.py
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from triage.config import get_settings


def make_engine(database_url: str, **kwargs) -> Engine:
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        # FastAPI runs sync routes on a thread pool
        connect_args.setdefault("check_same_thread", False)
    return create_engine(
        database_url,
        echo=False,  # set True if you want to see SQL queries
        future=True,
        connect_args=connect_args,
        **kwargs,
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        future=True,
    )


settings = get_settings()

# Synchronous engine is enough for now
engine = make_engine(settings.database_url)

SessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    """
    Base class for ORM models.
    """
    pass


@contextmanager
def db_session(factory: sessionmaker = SessionLocal):
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
