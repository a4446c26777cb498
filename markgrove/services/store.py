from __future__ import annotations

import logging
from typing import Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError

from markgrove.errors import StorageError
from markgrove.extensions import db
from markgrove.models import Bookmark


logger = logging.getLogger(__name__)


class BookmarkStore(Protocol):
    """Capability surface the import and delete engines rely on.

    Every method is a coroutine and may raise ``StorageError``.
    """

    async def add(self, fields: dict) -> int | None: ...

    async def get(self, bookmark_id: int) -> Bookmark | None: ...

    async def update(self, bookmark_id: int, fields: dict) -> int: ...

    async def delete(self, bookmark_id: int) -> None: ...

    async def first(self, **criteria) -> Bookmark | None: ...

    async def where(self, **criteria) -> list[Bookmark]: ...

    async def any_of(self, ids: Iterable[int]) -> list[Bookmark]: ...

    async def all(self) -> list[Bookmark]: ...


class SqlBookmarkStore:
    """BookmarkStore over the Flask-SQLAlchemy session.

    Each call commits on its own; there is no transaction spanning calls.
    Must be used inside an application context.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _fail(self, action: str, exc: SQLAlchemyError) -> StorageError:
        self.session.rollback()
        logger.warning("bookmark store %s failed: %s", action, exc)
        return StorageError(f"{action} failed: {exc}")

    async def add(self, fields: dict) -> int | None:
        try:
            bookmark = Bookmark(**fields)
        except TypeError as exc:
            raise StorageError(f"add failed: {exc}") from exc
        try:
            self.session.add(bookmark)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("add", exc) from exc
        return bookmark.id

    async def get(self, bookmark_id: int) -> Bookmark | None:
        try:
            return self.session.get(Bookmark, bookmark_id)
        except SQLAlchemyError as exc:
            raise self._fail("get", exc) from exc

    async def update(self, bookmark_id: int, fields: dict) -> int:
        if not fields:
            return 0
        try:
            count = (
                self.session.query(Bookmark)
                .filter(Bookmark.id == bookmark_id)
                .update(fields, synchronize_session="fetch")
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("update", exc) from exc
        return count

    async def delete(self, bookmark_id: int) -> None:
        try:
            self.session.query(Bookmark).filter(Bookmark.id == bookmark_id).delete(
                synchronize_session="fetch"
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", exc) from exc

    async def first(self, **criteria) -> Bookmark | None:
        try:
            return (
                self.session.query(Bookmark)
                .filter_by(**criteria)
                .order_by(Bookmark.id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise self._fail("query", exc) from exc

    async def where(self, **criteria) -> list[Bookmark]:
        try:
            return (
                self.session.query(Bookmark)
                .filter_by(**criteria)
                .order_by(Bookmark.id)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._fail("query", exc) from exc

    async def any_of(self, ids: Iterable[int]) -> list[Bookmark]:
        id_list = list(ids)
        if not id_list:
            return []
        try:
            return (
                self.session.query(Bookmark).filter(Bookmark.id.in_(id_list)).all()
            )
        except SQLAlchemyError as exc:
            raise self._fail("query", exc) from exc

    async def all(self) -> list[Bookmark]:
        try:
            return self.session.query(Bookmark).order_by(Bookmark.id).all()
        except SQLAlchemyError as exc:
            raise self._fail("query", exc) from exc
