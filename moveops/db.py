import logging
import uuid

from fastapi import HTTPException
from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine

from moveops.config import settings
from moveops.error import AppError

logger = logging.getLogger(__name__)


def make_engine(url: str, **kwargs):
    """Engine with SQLite foreign keys switched on for every connection."""
    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, connect_args=connect_args, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return engine


engine = make_engine(settings.database_url)


def create_db_and_tables() -> None:
    # models must be imported so their tables are registered on the metadata
    import moveops.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    sid = uuid.uuid4().hex[:6]
    session = Session(engine)
    try:
        yield session
    except (HTTPException, AppError):
        # business/auth errors: the service already rolled back its own transaction
        raise
    except Exception as e:
        # anything else looks like a program or DB error
        session.rollback()
        logger.warning("session %s rollback: %s: %s", sid, type(e).__name__, e)
        raise
    finally:
        session.close()
