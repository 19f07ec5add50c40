from contextlib import contextmanager
from typing import Callable, ContextManager, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from capacity.constants import DATABASE_URL
from capacity.models import Base

SessionScope = Callable[[], ContextManager[Session]]


engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def session_scope(factory: sessionmaker) -> SessionScope:
    """Wrap a session factory so each ``with`` block is one transaction."""

    @contextmanager
    def scope() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return scope


get_db = session_scope(SessionLocal)


def create_schema(bind=engine) -> None:
    """Create missing tables directly; deployments use the Alembic migrations."""
    Base.metadata.create_all(bind)
