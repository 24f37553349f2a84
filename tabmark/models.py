import uuid
from datetime import datetime, timezone

from tabmark.extensions import db
from tabmark.services.ordering import project_groups


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


bookmark_tabs = db.Table(
    "bookmark_tabs",
    db.Column(
        "bookmark_id",
        db.String(36),
        db.ForeignKey("bookmarks.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "tab_id",
        db.String(36),
        db.ForeignKey("tabs.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tab(db.Model):
    __tablename__ = "tabs"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False, unique=True)
    color = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class Group(db.Model):
    __tablename__ = "groups"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(50), nullable=False)
    tab_id = db.Column(
        db.String(36),
        db.ForeignKey("tabs.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    order_index = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    bookmark_groups = db.relationship(
        "BookmarkGroup",
        viewonly=True,
        order_by="BookmarkGroup.order_index",
    )

    __table_args__ = (db.Index("ix_group_tab_order", "tab_id", "order_index"),)

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "tabId": self.tab_id,
            "orderIndex": self.order_index,
            "bookmarkIds": [row.bookmark_id for row in self.bookmark_groups],
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class Bookmark(db.Model):
    __tablename__ = "bookmarks"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    favicon = db.Column(db.Text, nullable=True)
    # Legacy single-tab column, kept in sync with `tabs`.
    tab_id = db.Column(
        db.String(36),
        db.ForeignKey("tabs.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    tabs = db.relationship(
        "Tab",
        secondary=bookmark_tabs,
        order_by=Tab.created_at,
        passive_deletes=True,
    )
    bookmark_groups = db.relationship(
        "BookmarkGroup",
        viewonly=True,
        order_by="BookmarkGroup.order_index",
    )

    @property
    def tab_ids(self) -> list[str]:
        ids = [tab.id for tab in self.tabs]
        if self.tab_id in ids:
            ids.remove(self.tab_id)
            ids.insert(0, self.tab_id)
        return ids

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "favicon": self.favicon,
            "tabId": self.tab_id,
            "tabIds": self.tab_ids,
            "groupIds": [group.id for group in project_groups(self.bookmark_groups)],
            "groupOrderIndexes": {
                row.group_id: row.order_index for row in self.bookmark_groups
            },
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class BookmarkGroup(db.Model):
    __tablename__ = "bookmark_groups"

    bookmark_id = db.Column(
        db.String(36),
        db.ForeignKey("bookmarks.id", ondelete="CASCADE"),
        primary_key=True,
    )
    group_id = db.Column(
        db.String(36),
        db.ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    order_index = db.Column(db.Integer, nullable=False, default=0)

    group = db.relationship("Group", viewonly=True)
    bookmark = db.relationship("Bookmark", viewonly=True)
