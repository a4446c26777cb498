from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from markgrove.errors import ValidationError
from markgrove.models import BOOKMARK_FIELDS, BOOKMARK_TYPES, Bookmark
from markgrove.services.common import parse_tags
from markgrove.services.store import BookmarkStore


logger = logging.getLogger(__name__)


def as_id_list(ids: int | Iterable[int]) -> list[int]:
    if isinstance(ids, Iterable) and not isinstance(ids, (str, bytes)):
        return list(ids)
    return [ids]


def _check_payload(payload) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("update payload must be a mapping")
    unknown = set(payload) - set(BOOKMARK_FIELDS)
    if unknown:
        raise ValidationError(f"unknown bookmark fields: {', '.join(sorted(unknown))}")
    if "type" in payload and payload["type"] not in BOOKMARK_TYPES:
        raise ValidationError(f"invalid bookmark type: {payload['type']!r}")
    if "tags" in payload:
        tags = payload["tags"]
        tags = parse_tags(tags) if isinstance(tags, str) else set(tags or [])
        payload = {**payload, "tags": sorted(tags)}
    return payload


def pair_updates(
    ids: int | Iterable[int], data: dict | list[dict]
) -> list[tuple[int, dict]]:
    id_list = as_id_list(ids)
    if isinstance(data, (list, tuple)):
        payloads = [_check_payload(item) for item in data]
        if len(payloads) != len(id_list):
            raise ValidationError(
                f"got {len(id_list)} ids but {len(payloads)} update payloads"
            )
    else:
        payloads = [_check_payload(data)] * len(id_list)
    return list(zip(id_list, payloads))


async def _parent_of(
    store: BookmarkStore, bookmark_id: int, pending: dict[int, int | None]
) -> int | None:
    if bookmark_id in pending:
        return pending[bookmark_id]
    row = await store.get(bookmark_id)
    return row.parent if row is not None else None


async def _check_parents(store: BookmarkStore, pairs: list[tuple[int, dict]]) -> None:
    """Reject moves under a missing id, a leaf, the node itself or one of its
    descendants. Moves requested in the same batch are taken into account."""
    pending = {
        bookmark_id: payload["parent"]
        for bookmark_id, payload in pairs
        if "parent" in payload
    }
    for bookmark_id, parent_id in pending.items():
        if parent_id is None:
            continue
        if isinstance(parent_id, bool) or not isinstance(parent_id, int):
            raise ValidationError(f"invalid parent id: {parent_id!r}")
        target = await store.get(parent_id)
        if target is None or not target.is_folder:
            raise ValidationError(f"parent {parent_id} is not an existing folder")

        seen: set[int] = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == bookmark_id:
                raise ValidationError(
                    f"bookmark {bookmark_id} cannot move under itself"
                )
            seen.add(current)
            current = await _parent_of(store, current, pending)


async def check_updates(
    store: BookmarkStore, ids: int | Iterable[int], data: dict | list[dict]
) -> list[tuple[int, dict]]:
    pairs = pair_updates(ids, data)
    await _check_parents(store, pairs)
    return pairs


async def update_bookmark(
    store: BookmarkStore, ids: int | Iterable[int], data: dict | list[dict]
) -> bool:
    """Apply partial updates; True only if every id matched a stored row.

    Updates run concurrently and are not atomic: the ones that succeeded stay
    applied when another fails.
    """
    try:
        pairs = await check_updates(store, ids, data)
        counts = await asyncio.gather(
            *(store.update(bookmark_id, payload) for bookmark_id, payload in pairs)
        )
    except Exception:
        logger.exception("batch update failed")
        return False
    return all(count > 0 for count in counts)


async def get_bookmarks_by_id(
    store: BookmarkStore, ids: int | Iterable[int]
) -> list[Bookmark] | None:
    """Records whose id is in ``ids``; None when none matched or on error."""
    try:
        rows = await store.any_of(as_id_list(ids))
    except Exception:
        logger.exception("batch query failed")
        return None
    return rows or None


async def get_all_bookmarks(store: BookmarkStore) -> list[Bookmark]:
    try:
        return await store.all()
    except Exception:
        logger.exception("listing bookmarks failed")
        return []
