# checkout_service/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from checkout_service.utils.settings import DATABASE_URL

Base = declarative_base()


def make_engine(url: str = DATABASE_URL) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        #TestClient and celery open sessions from other threads
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, future=True, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)


@contextmanager
def transaction(session_factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """Open one unit of work.

    The yielded session is the transaction handle: every write goes through
    it. Leaving the block normally commits; any exception rolls back and is
    re-raised; the session is always closed.
    """
    tx = session_factory()
    try:
        yield tx
        tx.commit()
    except Exception:
        tx.rollback()
        raise
    finally:
        tx.close()


def init_db(bind: Engine = engine) -> None:
    # registers every model on Base.metadata
    import checkout_service.data.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
