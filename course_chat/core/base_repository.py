from typing import Any, Generic, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

TModel = TypeVar("TModel")


class BaseRepository(Generic[TModel]):
    def __init__(self, session: Session) -> None:
        self._session = session

    def _insert_if_absent(self, model_cls: type, values: dict[str, Any], *, keys: list[str]) -> bool:
        """Atomic set-add: INSERT ... ON CONFLICT DO NOTHING. True if a row was added."""
        dialect = self._session.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert(model_cls).values(**values).on_conflict_do_nothing(index_elements=keys)
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def _upsert(self, model_cls: type, values: dict[str, Any], *, keys: list[str], updates: dict[str, Any]) -> None:
        """Last write wins on `keys`: INSERT ... ON CONFLICT DO UPDATE."""
        dialect = self._session.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert(model_cls).values(**values).on_conflict_do_update(index_elements=keys, set_=updates)
        self._session.execute(stmt)
