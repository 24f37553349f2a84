from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from tabmark.errors import TabNameConflictError, TabNotFoundError, ValidationError
from tabmark.extensions import db
from tabmark.models import Bookmark, BookmarkGroup, Group, Tab, bookmark_tabs
from tabmark.services.common import MISSING
from tabmark.services.repository import Repository, delete_links, delete_links_in


def _is_unique_violation(exc: IntegrityError) -> bool:
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


def _flush_or_conflict(name: str) -> None:
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        if _is_unique_violation(exc):
            raise TabNameConflictError(name) from exc
        raise


def ensure_default_tab() -> Tab:
    tab = Tab(
        name=current_app.config["DEFAULT_TAB_NAME"],
        color=current_app.config["DEFAULT_TAB_COLOR"],
    )
    Repository(Tab).add(tab)
    current_app.logger.info("Created default tab %s", tab.id)
    return tab


def list_tabs() -> list[Tab]:
    tabs = Repository(Tab).find(Tab.created_at.asc())
    if tabs:
        return tabs
    return [ensure_default_tab()]


def get_tab(tab_id: str) -> Tab:
    tab = Repository(Tab).get(tab_id)
    if not tab:
        raise TabNotFoundError(tab_id)
    return tab


def find_tab_by_name(name: str) -> Tab | None:
    return Repository(Tab).get_by(name=name)


def create_tab(name: str, color: str | None = None) -> Tab:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name must be a non-empty string")
    if find_tab_by_name(name):
        raise TabNameConflictError(name)

    tab = Tab(name=name, color=color or None)
    db.session.add(tab)
    _flush_or_conflict(name)
    return tab


def update_tab(tab_id: str, name=MISSING, color=MISSING) -> Tab:
    tab = get_tab(tab_id)
    if name is not MISSING:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name must be a non-empty string")
        existing = find_tab_by_name(name)
        if existing and existing.id != tab.id:
            raise TabNameConflictError(name)
        tab.name = name
    if color is not MISSING:
        tab.color = color or None
    _flush_or_conflict(tab.name)
    return tab


def delete_tab(tab_id: str) -> dict:
    """Delete a tab with its groups and the bookmarks whose primary tab it is.

    Relationship rows are severed before the rows they point at. Bookmarks
    linked to the tab only through their tab set survive and just lose the
    link.
    """
    tab = get_tab(tab_id)
    groups = Repository(Group)
    bookmarks = Repository(Bookmark)
    memberships = Repository(BookmarkGroup)

    group_ids = [group.id for group in groups.find(tab_id=tab.id)]
    bookmark_ids = [bookmark.id for bookmark in bookmarks.find(tab_id=tab.id)]

    memberships.delete_in("group_id", group_ids)
    groups.delete_in("id", group_ids)

    memberships.delete_in("bookmark_id", bookmark_ids)
    delete_links_in(bookmark_tabs, "bookmark_id", bookmark_ids)
    bookmarks.delete_in("id", bookmark_ids)

    unlinked = delete_links(bookmark_tabs, tab_id=tab.id)
    Repository(Tab).delete(tab)

    current_app.logger.info(
        "Deleted tab %s with %d groups and %d bookmarks (%d bookmarks unlinked)",
        tab_id,
        len(group_ids),
        len(bookmark_ids),
        unlinked,
    )
    return {
        "groups": len(group_ids),
        "bookmarks": len(bookmark_ids),
        "unlinked": unlinked,
    }


def delete_all_tabs() -> None:
    Repository(BookmarkGroup).clear()
    delete_links(bookmark_tabs)
    Repository(Group).clear()
    Repository(Bookmark).clear()
    removed = Repository(Tab).clear()
    current_app.logger.info("Removed all tabs (%d)", removed)
