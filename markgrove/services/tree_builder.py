from __future__ import annotations

from markgrove.services.records import BookmarkRecord


def find_or_create_folder(
    scope: list[BookmarkRecord], stub: BookmarkRecord
) -> BookmarkRecord:
    for node in scope:
        if node.is_folder and node.title == stub.title:
            return node

    folder = BookmarkRecord.folder(
        title=stub.title, created=stub.created, updated=stub.updated
    )
    scope.append(folder)
    return folder


def build_nested_bookmarks(records: list[BookmarkRecord]) -> list[BookmarkRecord]:
    """Fold flat leaf records into a forest using their ``parents`` paths.

    Paths arrive nearest-ancestor first. Folders with the same title are
    merged only among siblings, never across different parents.
    """
    roots: list[BookmarkRecord] = []
    for record in records:
        scope = roots
        for stub in reversed(record.parents):
            scope = find_or_create_folder(scope, stub).children
        scope.append(record)
    return roots


def _on_parent_cycle(nodes: dict[int, BookmarkRecord], node_id: int) -> bool:
    seen: set[int] = set()
    current = nodes.get(node_id)
    while current is not None and current.parent is not None:
        if current.parent == node_id:
            return True
        if current.parent in seen:
            return False
        seen.add(current.parent)
        current = nodes.get(current.parent)
    return False


def nest_persisted(rows) -> list[BookmarkRecord]:
    """Rebuild the forest of stored rows from their ``parent`` references.

    Rows whose parent is missing, is not a folder, or leads back to the row
    itself are treated as roots.
    """
    nodes = {row.id: BookmarkRecord.from_row(row) for row in rows}
    roots: list[BookmarkRecord] = []
    for node in nodes.values():
        parent = nodes.get(node.parent) if node.parent is not None else None
        if (
            parent is not None
            and parent.is_folder
            and not _on_parent_cycle(nodes, node.id)
        ):
            parent.children.append(node)
        else:
            roots.append(node)
    return roots
