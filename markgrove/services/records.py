from __future__ import annotations

from dataclasses import dataclass, field

from markgrove.models import BOOKMARK_TYPE_FOLDER, BOOKMARK_TYPE_LEAF


@dataclass
class BookmarkRecord:
    """In-memory bookmark used by the importers, tree builder and reconciler.

    ``parents`` and ``children`` only exist while importing; the store keeps
    hierarchy exclusively through ``parent``.
    """

    title: str
    type: str = BOOKMARK_TYPE_LEAF
    id: int | None = None
    parent: int | None = None
    parents: list[BookmarkRecord] = field(default_factory=list)
    description: str = ""
    address: str = ""
    tags: set[str] = field(default_factory=set)
    icon: str = ""
    created: str = ""
    updated: str = ""
    children: list[BookmarkRecord] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return self.type == BOOKMARK_TYPE_FOLDER

    @classmethod
    def folder(cls, title: str, created: str = "", updated: str = "") -> BookmarkRecord:
        return cls(
            title=title, type=BOOKMARK_TYPE_FOLDER, created=created, updated=updated
        )

    @classmethod
    def from_row(cls, row) -> BookmarkRecord:
        return cls(
            id=row.id,
            parent=row.parent,
            type=row.type,
            title=row.title,
            description=row.description or "",
            address=row.address or "",
            tags=set(row.tags or []),
            icon=row.icon or "",
            created=row.created or "",
            updated=row.updated or "",
        )

    def to_fields(self, skip_none: bool = False) -> dict:
        fields = {
            "parent": self.parent,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "address": "" if self.is_folder else self.address,
            "tags": sorted(self.tags),
            "icon": self.icon,
            "created": self.created,
            "updated": self.updated,
        }
        if skip_none:
            fields = {key: value for key, value in fields.items() if value is not None}
        return fields

    def as_tree_dict(self) -> dict:
        payload = {"id": self.id, **self.to_fields()}
        if self.is_folder:
            payload["children"] = [child.as_tree_dict() for child in self.children]
        return payload
