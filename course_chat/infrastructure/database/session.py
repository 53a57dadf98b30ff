# course_chat/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from course_chat.config.settings import settings
from course_chat.core.exceptions import TransientStoreError

SessionScope = Callable[[], ContextManager[Session]]

_engine = create_engine(
    settings.database_url,
    echo=settings.debug and settings.log_level.upper() == "DEBUG",
    pool_pre_ping=True,
)


def make_session_scope(engine: Engine) -> SessionScope:
    factory = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )

    @contextmanager
    def scope() -> Iterator[Session]:
        session: Session = factory()
        try:
            try:
                yield session
                session.flush()
            except Exception:
                session.rollback()
                raise
            # commit runs after_commit listeners; a committed session is never rolled back
            session.commit()
        except (OperationalError, DBAPIError) as e:
            raise TransientStoreError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e
        finally:
            session.close()

    return scope


db_session: SessionScope = make_session_scope(_engine)


def create_schema(engine: Engine | None = None) -> None:
    import course_chat.infrastructure.database.models  # noqa: F401
    from course_chat.infrastructure.database.base_model import BaseModel

    BaseModel.metadata.create_all(bind=engine or _engine)
