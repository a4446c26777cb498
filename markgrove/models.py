from markgrove.extensions import db


BOOKMARK_TYPE_LEAF = "bookmark"
BOOKMARK_TYPE_FOLDER = "folder"
BOOKMARK_TYPES = {BOOKMARK_TYPE_LEAF, BOOKMARK_TYPE_FOLDER}

# Columns a caller may write through add/update.
BOOKMARK_FIELDS = (
    "parent",
    "type",
    "title",
    "description",
    "address",
    "tags",
    "icon",
    "created",
    "updated",
)


class Bookmark(db.Model):
    __tablename__ = "bookmarks"

    id = db.Column(db.Integer, primary_key=True)
    # Plain integer: hierarchy has no foreign key and no database cascade.
    parent = db.Column(db.Integer, nullable=True, index=True)
    type = db.Column(
        db.String(16), nullable=False, default=BOOKMARK_TYPE_LEAF, index=True
    )
    title = db.Column(db.String(512), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False, default="")
    address = db.Column(db.Text, nullable=False, default="", index=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    icon = db.Column(db.Text, nullable=False, default="")
    created = db.Column(db.String(64), nullable=False, default="")
    updated = db.Column(db.String(64), nullable=False, default="")

    @property
    def is_folder(self) -> bool:
        return self.type == BOOKMARK_TYPE_FOLDER

    def as_dict(self):
        return {
            "id": self.id,
            "parent": self.parent,
            "type": self.type,
            "title": self.title,
            "description": self.description or "",
            "address": self.address or "",
            "tags": list(self.tags or []),
            "icon": self.icon or "",
            "created": self.created or "",
            "updated": self.updated or "",
        }
