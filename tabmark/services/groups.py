from __future__ import annotations

from flask import current_app

from tabmark.errors import (
    BookmarkNotFoundError,
    GroupNotFoundError,
    MembershipNotFoundError,
    ValidationError,
)
from tabmark.models import Bookmark, BookmarkGroup, Group
from tabmark.services.common import MISSING
from tabmark.services.ordering import move_to_position, next_order_index
from tabmark.services.repository import Repository
from tabmark.services.tabs import get_tab


def _require_bookmark(bookmark_id: str) -> Bookmark:
    bookmark = Repository(Bookmark).get(bookmark_id)
    if not bookmark:
        raise BookmarkNotFoundError(bookmark_id)
    return bookmark


def _require_text(value, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} must be a non-empty string")
    return value


def list_groups(tab_id: str | None = None) -> list[Group]:
    order = (Group.order_index.asc(), Group.created_at.asc())
    if tab_id:
        return Repository(Group).find(*order, tab_id=tab_id)
    return Repository(Group).find(*order)


def get_group(group_id: str) -> Group:
    group = Repository(Group).get(group_id)
    if not group:
        raise GroupNotFoundError(group_id)
    return group


def create_group(name: str, color: str, tab_id: str | None = None) -> Group:
    name = _require_text(name, "name")
    color = _require_text(color, "color")
    tab_id = tab_id or None
    if tab_id:
        get_tab(tab_id)

    groups = Repository(Group)
    group = Group(
        name=name,
        color=color,
        tab_id=tab_id,
        order_index=next_order_index(groups, tab_id=tab_id),
    )
    return groups.add(group)


def update_group(group_id: str, name=MISSING, color=MISSING, tab_id=MISSING) -> Group:
    groups = Repository(Group)
    group = get_group(group_id)
    if name is not MISSING:
        group.name = _require_text(name, "name")
    if color is not MISSING:
        group.color = _require_text(color, "color")
    if tab_id is not MISSING:
        tab_id = tab_id or None
        if tab_id != group.tab_id:
            if tab_id:
                get_tab(tab_id)
            # Appended to the end of the destination tab; the source tab keeps a gap.
            group.order_index = next_order_index(groups, tab_id=tab_id)
            group.tab_id = tab_id
    return groups.reload(group)


def delete_group(group_id: str) -> None:
    group = get_group(group_id)
    removed = Repository(BookmarkGroup).delete_where(group_id=group.id)
    Repository(Group).delete(group)
    current_app.logger.info(
        "Deleted group %s and %d bookmark memberships", group_id, removed
    )


def reorder_group(group_id: str, new_order_index: int) -> Group:
    groups = Repository(Group)
    group = get_group(group_id)
    move_to_position(groups, group, new_order_index, tab_id=group.tab_id)
    return groups.reload(group)


def get_membership(group_id: str, bookmark_id: str) -> BookmarkGroup:
    get_group(group_id)
    _require_bookmark(bookmark_id)
    membership = Repository(BookmarkGroup).get_by(
        bookmark_id=bookmark_id, group_id=group_id
    )
    if not membership:
        raise MembershipNotFoundError(group_id, bookmark_id)
    return membership


def add_bookmark_to_group(group_id: str, bookmark_id: str) -> BookmarkGroup:
    group = get_group(group_id)
    bookmark = _require_bookmark(bookmark_id)
    memberships = Repository(BookmarkGroup)

    existing = memberships.get_by(bookmark_id=bookmark.id, group_id=group.id)
    if existing:
        return existing

    membership = BookmarkGroup(
        bookmark_id=bookmark.id,
        group_id=group.id,
        order_index=next_order_index(memberships, group_id=group.id),
    )
    return memberships.add(membership)


def remove_bookmark_from_group(group_id: str, bookmark_id: str) -> None:
    get_group(group_id)
    _require_bookmark(bookmark_id)
    removed = Repository(BookmarkGroup).delete_where(
        bookmark_id=bookmark_id, group_id=group_id
    )
    if not removed:
        raise MembershipNotFoundError(group_id, bookmark_id)


def reorder_bookmark_in_group(
    group_id: str, bookmark_id: str, new_order_index: int
) -> BookmarkGroup:
    memberships = Repository(BookmarkGroup)
    membership = get_membership(group_id, bookmark_id)
    move_to_position(memberships, membership, new_order_index, group_id=group_id)
    return memberships.reload(membership)


def delete_all_groups() -> None:
    Repository(BookmarkGroup).clear()
    removed = Repository(Group).clear()
    current_app.logger.info("Removed all groups (%d)", removed)
