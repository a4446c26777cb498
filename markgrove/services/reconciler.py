from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from markgrove.errors import ValidationError
from markgrove.models import BOOKMARK_TYPE_FOLDER, BOOKMARK_TYPE_LEAF
from markgrove.services.records import BookmarkRecord
from markgrove.services.store import BookmarkStore


logger = logging.getLogger(__name__)

FOLDER_POLICY_LEGACY = "legacy"
FOLDER_POLICY_STRICT = "strict"
FOLDER_POLICIES = {FOLDER_POLICY_LEGACY, FOLDER_POLICY_STRICT}


class UpsertOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    CREATE_FAILED = "create_failed"
    UPDATE_FAILED = "update_failed"
    ERROR = "error"


FAILED_OUTCOMES = {
    UpsertOutcome.CREATE_FAILED,
    UpsertOutcome.UPDATE_FAILED,
    UpsertOutcome.ERROR,
}


@dataclass
class UpsertReport:
    """Per-node outcomes, keyed by address (leaves) or title (folders)."""

    entries: list[tuple[str, UpsertOutcome]] = field(default_factory=list)

    def merge(self, other: UpsertReport) -> UpsertReport:
        self.entries.extend(other.entries)
        return self

    def count(self, outcome: UpsertOutcome) -> int:
        return sum(1 for _, value in self.entries if value == outcome)

    @property
    def ok(self) -> bool:
        return not any(value in FAILED_OUTCOMES for _, value in self.entries)

    def as_dict(self) -> dict:
        counts = Counter(value.value for _, value in self.entries)
        return {
            outcome.value: counts.get(outcome.value, 0) for outcome in UpsertOutcome
        }


def check_policy(policy: str) -> str:
    if policy not in FOLDER_POLICIES:
        raise ValidationError(f"unknown folder match policy: {policy!r}")
    return policy


def _fields_for(node: BookmarkRecord, parent_id: int | None) -> dict:
    fields = node.to_fields(skip_none=True)
    if parent_id is not None:
        fields["parent"] = parent_id
    return fields


async def _upsert_folder(
    store: BookmarkStore,
    node: BookmarkRecord,
    parent_id: int | None,
    policy: str,
) -> UpsertReport:
    criteria = {"title": node.title, "type": BOOKMARK_TYPE_FOLDER}
    if policy == FOLDER_POLICY_STRICT:
        criteria["parent"] = parent_id if parent_id is not None else node.parent

    # An existing folder is linked to, never rewritten.
    existing = await store.first(**criteria)
    if existing is not None:
        folder_id = existing.id
    else:
        folder_id = await store.add(_fields_for(node, parent_id))
        if folder_id is None:
            return UpsertReport([(node.title, UpsertOutcome.CREATE_FAILED)])
    node.id = folder_id

    results = await asyncio.gather(
        *(
            upsert_bookmark(store, child, folder_id, policy=policy)
            for child in node.children
        )
    )
    report = UpsertReport()
    for result in results:
        report.merge(result)
    return report


async def _upsert_leaf(
    store: BookmarkStore, node: BookmarkRecord, parent_id: int | None
) -> UpsertOutcome:
    fields = _fields_for(node, parent_id)

    existing = None
    if node.address:
        existing = await store.first(address=node.address, type=BOOKMARK_TYPE_LEAF)

    if existing is not None:
        updated = await store.update(existing.id, fields)
        node.id = existing.id
        return UpsertOutcome.UPDATED if updated > 0 else UpsertOutcome.UPDATE_FAILED

    new_id = await store.add(fields)
    node.id = new_id
    return UpsertOutcome.CREATED if new_id else UpsertOutcome.CREATE_FAILED


async def upsert_bookmark(
    store: BookmarkStore,
    node: BookmarkRecord,
    parent_id: int | None = None,
    *,
    policy: str = FOLDER_POLICY_LEGACY,
) -> UpsertReport:
    """Persist ``node`` and its subtree, reusing existing records by identity.

    Leaves are matched by address, folders by title (see ``policy``). A
    failure is reported as ``error`` for the node it happened at and never
    stops sibling branches.
    """
    try:
        check_policy(policy)
        if node.is_folder:
            return await _upsert_folder(store, node, parent_id, policy)
        outcome = await _upsert_leaf(store, node, parent_id)
        return UpsertReport([(node.address, outcome)])
    except Exception:
        logger.exception("upsert failed for %s %r", node.type, node.title)
        key = node.title if node.is_folder else node.address
        return UpsertReport([(key, UpsertOutcome.ERROR)])


async def upsert_bookmarks(
    store: BookmarkStore,
    forest: list[BookmarkRecord],
    *,
    policy: str = FOLDER_POLICY_LEGACY,
) -> UpsertReport:
    results = await asyncio.gather(
        *(upsert_bookmark(store, node, policy=policy) for node in forest)
    )
    report = UpsertReport()
    for result in results:
        report.merge(result)
    logger.info("upserted %d roots: %s", len(forest), report.as_dict())
    return report
