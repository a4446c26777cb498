from __future__ import annotations

import logging
from dataclasses import dataclass

from markgrove.errors import ValidationError
from markgrove.services.html_import import parse_bookmarks_html
from markgrove.services.json_import import parse_bookmarks_json
from markgrove.services.reconciler import (
    FOLDER_POLICY_LEGACY,
    UpsertReport,
    check_policy,
    upsert_bookmarks,
)
from markgrove.services.records import BookmarkRecord
from markgrove.services.store import BookmarkStore
from markgrove.services.tree_builder import build_nested_bookmarks


logger = logging.getLogger(__name__)

IMPORT_FORMATS = {"html", "json"}


@dataclass
class ImportSummary:
    leaves: int
    roots: list[BookmarkRecord]
    report: UpsertReport

    def as_dict(self) -> dict:
        return {
            "leaves": self.leaves,
            "roots": len(self.roots),
            "ok": self.report.ok,
            "outcomes": self.report.as_dict(),
        }


def detect_format(filename: str | None, payload: str) -> str:
    name = (filename or "").lower()
    if name.endswith(".json"):
        return "json"
    if name.endswith((".html", ".htm")):
        return "html"
    first = payload.lstrip("\ufeff \t\r\n")[:1]
    return "json" if first in ("{", "[") else "html"


def parse_export(payload: str, fmt: str) -> list[BookmarkRecord]:
    if fmt == "html":
        return parse_bookmarks_html(payload)
    if fmt == "json":
        return parse_bookmarks_json(payload)
    raise ValidationError(f"unsupported import format: {fmt!r}")


async def import_bookmarks(
    store: BookmarkStore,
    payload: str,
    fmt: str,
    *,
    policy: str = FOLDER_POLICY_LEGACY,
) -> ImportSummary:
    """Parse an export, fold it into a forest and upsert it into ``store``.

    Parse errors and an unknown ``policy`` raise; store failures only show up
    in the report.
    """
    check_policy(policy)
    records = parse_export(payload, fmt)
    roots = build_nested_bookmarks(records)
    logger.info(
        "importing %d bookmarks under %d roots from %s export",
        len(records),
        len(roots),
        fmt,
    )
    report = await upsert_bookmarks(store, roots, policy=policy)
    return ImportSummary(leaves=len(records), roots=roots, report=report)
