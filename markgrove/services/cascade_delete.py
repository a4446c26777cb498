from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from markgrove.errors import NotFoundError, PartialDeleteError, StorageError
from markgrove.services.batch import as_id_list
from markgrove.services.store import BookmarkStore


logger = logging.getLogger(__name__)


@dataclass
class DeleteReport:
    removed: set[int] = field(default_factory=set)
    not_found: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.not_found and not self.failed

    def merge(self, other: DeleteReport) -> DeleteReport:
        self.removed |= other.removed
        self.not_found.extend(other.not_found)
        self.failed.extend(other.failed)
        return self

    def as_dict(self) -> dict:
        return {
            "removed": sorted(self.removed),
            "not_found": self.not_found,
            "failed": self.failed,
        }


async def _delete_subtree(
    store: BookmarkStore, row, visited: frozenset[int] = frozenset()
) -> set[int]:
    """Delete ``row`` and everything below it, returning the removed ids.

    ``visited`` holds the folders on the path down to ``row``; a child that is
    already on it closes a parent cycle and is not entered again.
    """
    # Read everything needed before deleting; deleted rows can't be refreshed.
    bookmark_id = row.id
    if not row.is_folder:
        await store.delete(bookmark_id)
        return {bookmark_id}

    visited = visited | {bookmark_id}
    children = [
        child
        for child in await store.where(parent=bookmark_id)
        if child.id not in visited
    ]
    results = await asyncio.gather(
        *(_delete_subtree(store, child, visited) for child in children),
        return_exceptions=True,
    )

    removed: set[int] = set()
    errors: list[BaseException] = []
    for result in results:
        if isinstance(result, PartialDeleteError):
            removed |= result.removed
            errors.append(result)
        elif isinstance(result, BaseException):
            errors.append(result)
        else:
            removed |= result

    if errors:
        # Keep the folder so nothing that survived is orphaned.
        raise PartialDeleteError(
            f"folder {bookmark_id} kept, {len(errors)} child deletes failed: "
            f"{errors[0]}",
            removed,
        )

    try:
        await store.delete(bookmark_id)
    except StorageError as exc:
        raise PartialDeleteError(str(exc), removed) from exc
    removed.add(bookmark_id)
    return removed


async def _delete_one(store: BookmarkStore, bookmark_id: int) -> DeleteReport:
    report = DeleteReport()
    try:
        row = await store.get(bookmark_id)
        if row is None:
            raise NotFoundError(bookmark_id)
        report.removed |= await _delete_subtree(store, row)
    except NotFoundError as exc:
        logger.warning("delete skipped: %s", exc)
        report.not_found.append(bookmark_id)
    except PartialDeleteError as exc:
        logger.warning("delete of %s incomplete: %s", bookmark_id, exc)
        report.removed |= exc.removed
        report.failed.append(bookmark_id)
    except Exception:
        logger.exception("delete of %s failed", bookmark_id)
        report.failed.append(bookmark_id)
    return report


async def delete_bookmarks(
    store: BookmarkStore, ids: int | Iterable[int]
) -> DeleteReport:
    """Delete bookmarks, removing folders together with their whole subtree.

    Requested ids are processed concurrently and independently; deletions
    that went through stay applied even when another id is missing or fails.
    """
    unique_ids = list(dict.fromkeys(as_id_list(ids)))
    results = await asyncio.gather(
        *(_delete_one(store, bookmark_id) for bookmark_id in unique_ids)
    )
    report = DeleteReport()
    for result in results:
        report.merge(result)
    return report


async def delete_bookmarks_by_id(
    store: BookmarkStore, ids: int | Iterable[int]
) -> set[int]:
    report = await delete_bookmarks(store, ids)
    return report.removed
