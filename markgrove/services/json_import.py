"""Chromium-style bookmark JSON import.

The export looks like ``{"roots": {"bookmark_bar": {...}, "other": {...}}}``
where every node is either a folder (``type == "folder"`` with ``children``)
or a url (``type == "url"`` with ``url``). Raw nodes are validated into
``FolderNode``/``LeafNode`` before anything walks them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from markgrove.errors import ImportFormatError
from markgrove.services.common import webkit_to_iso
from markgrove.services.records import BookmarkRecord


logger = logging.getLogger(__name__)


@dataclass
class LeafNode:
    name: str
    url: str
    date_added: str = ""
    date_modified: str = ""


@dataclass
class FolderNode:
    name: str
    children: list[Union[FolderNode, LeafNode]] = field(default_factory=list)
    date_added: str = ""
    date_modified: str = ""


JsonNode = Union[FolderNode, LeafNode]


def parse_node(raw: Any) -> JsonNode | None:
    """Validate one raw node; returns None for anything unusable."""
    if not isinstance(raw, dict):
        return None

    name = raw.get("name")
    name = name.strip() if isinstance(name, str) else ""
    date_added = webkit_to_iso(raw.get("date_added"))
    date_modified = webkit_to_iso(raw.get("date_modified"))
    node_type = raw.get("type")

    if node_type == "folder":
        raw_children = raw.get("children")
        if not isinstance(raw_children, list):
            raw_children = []
        children = []
        for raw_child in raw_children:
            child = parse_node(raw_child)
            if child is not None:
                children.append(child)
        return FolderNode(
            name=name,
            children=children,
            date_added=date_added,
            date_modified=date_modified,
        )

    if node_type in (None, "url"):
        url = raw.get("url")
        if isinstance(url, str) and url.strip():
            return LeafNode(
                name=name,
                url=url.strip(),
                date_added=date_added,
                date_modified=date_modified,
            )
    return None


def _folder_stub(node: FolderNode) -> BookmarkRecord:
    return BookmarkRecord.folder(
        title=node.name, created=node.date_added, updated=node.date_modified
    )


def _walk(
    node: JsonNode, parents: list[BookmarkRecord], out: list[BookmarkRecord]
) -> list[BookmarkRecord]:
    if isinstance(node, FolderNode):
        path = [_folder_stub(node), *parents]
        for child in node.children:
            _walk(child, path, out)
        return out

    out.append(
        BookmarkRecord(
            title=node.name,
            address=node.url,
            parents=list(parents),
            created=node.date_added,
            updated=node.date_modified,
        )
    )
    return out


def _root_containers(data: Any) -> list[dict]:
    if not isinstance(data, dict):
        return []
    roots = data.get("roots")
    if not isinstance(roots, dict):
        return []
    return [container for container in roots.values() if isinstance(container, dict)]


def parse_bookmarks_json(data: Any) -> list[BookmarkRecord]:
    """Flatten a bookmark JSON export into leaf records.

    ``data`` may be the decoded mapping or the raw JSON text. Each record's
    ``parents`` lists its folders nearest first; the named root containers
    themselves never show up in a path.
    """
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8-sig", errors="replace")
    if isinstance(data, str):
        if not data.strip():
            return []
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ImportFormatError(f"invalid bookmark JSON: {exc}") from exc

    records: list[BookmarkRecord] = []
    for container in _root_containers(data):
        raw_children = container.get("children")
        if not isinstance(raw_children, list):
            continue
        for raw_child in raw_children:
            node = parse_node(raw_child)
            if node is None:
                logger.debug("skipping malformed bookmark node: %r", raw_child)
                continue
            _walk(node, [], records)
    return records
