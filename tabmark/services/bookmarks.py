from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from functools import partial

from flask import current_app
from sqlalchemy import or_, select

from tabmark.errors import BookmarkNotFoundError, GroupNotFoundError, ValidationError
from tabmark.extensions import db
from tabmark.models import Bookmark, BookmarkGroup, Group, Tab, bookmark_tabs
from tabmark.services.common import MISSING, is_valid_url
from tabmark.services.favicon import fetch_favicon
from tabmark.services.ordering import next_order_index
from tabmark.services.repository import Repository, delete_links


def _favicon_options() -> dict:
    config = current_app.config
    return {
        "timeout": config["FAVICON_TIMEOUT"],
        "service_url": config["FAVICON_SERVICE_URL"],
        "size": config["FAVICON_SIZE"],
    }


def _favicon_for(url: str) -> str | None:
    if not current_app.config.get("FAVICON_FETCH_ENABLED", True):
        return None
    return fetch_favicon(url, **_favicon_options())


def _require_name(name) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name must be a non-empty string")
    return name


def _require_url(url) -> str:
    if not is_valid_url(url):
        raise ValidationError("url must be a valid URL address")
    return url.strip()


def _require_groups(group_ids) -> list[Group]:
    group_ids = list(dict.fromkeys(group_ids or []))
    found = {group.id: group for group in Repository(Group).find_in("id", group_ids)}
    for group_id in group_ids:
        if group_id not in found:
            raise GroupNotFoundError(group_id)
    return [found[group_id] for group_id in group_ids]


def list_bookmarks(tab_id: str | None = None) -> list[Bookmark]:
    stmt = select(Bookmark).order_by(Bookmark.created_at.asc())
    if tab_id:
        linked = select(bookmark_tabs.c.bookmark_id).where(
            bookmark_tabs.c.tab_id == tab_id
        )
        stmt = stmt.where(or_(Bookmark.tab_id == tab_id, Bookmark.id.in_(linked)))
    return list(db.session.scalars(stmt))


def get_bookmark(bookmark_id: str) -> Bookmark:
    bookmark = Repository(Bookmark).get(bookmark_id)
    if not bookmark:
        raise BookmarkNotFoundError(bookmark_id)
    return bookmark


def reconcile_tabs(bookmark: Bookmark, tab_ids=MISSING, tab_id=MISSING) -> Bookmark:
    """Keep the legacy ``tab_id`` and the ``tabs`` set describing the same tabs.

    An explicit ``tab_ids`` list wins over ``tab_id``. The previous primary tab
    stays primary while it is still selected; otherwise the first selected tab
    becomes primary. With neither argument both fields are left alone.
    """
    tabs_repo = Repository(Tab)
    if tab_ids is not MISSING:
        tab_ids = list(tab_ids or [])
        found = {tab.id: tab for tab in tabs_repo.find_in("id", tab_ids)}
        tabs = [found[ident] for ident in dict.fromkeys(tab_ids) if ident in found]
        previous = bookmark.tab_id
        if previous and previous in found:
            tabs.sort(key=lambda tab: tab.id != previous)
            bookmark.tab_id = previous
        else:
            bookmark.tab_id = tabs[0].id if tabs else None
        bookmark.tabs = tabs
    elif tab_id is not MISSING:
        tab = tabs_repo.get(tab_id) if tab_id else None
        bookmark.tabs = [tab] if tab else []
        bookmark.tab_id = tab.id if tab else None
    return bookmark


def diff_memberships(current_ids, new_ids) -> tuple[list[str], list[str]]:
    current_ids = list(dict.fromkeys(current_ids))
    new_ids = list(dict.fromkeys(new_ids))
    to_remove = [ident for ident in current_ids if ident not in new_ids]
    to_add = [ident for ident in new_ids if ident not in current_ids]
    return to_remove, to_add


def _add_memberships(bookmark_id: str, group_ids) -> None:
    memberships = Repository(BookmarkGroup)
    for group_id in group_ids:
        memberships.add(
            BookmarkGroup(
                bookmark_id=bookmark_id,
                group_id=group_id,
                order_index=next_order_index(memberships, group_id=group_id),
            )
        )


def create_bookmark(
    name: str,
    url: str,
    tab_id: str | None = None,
    tab_ids: list[str] | None = None,
    group_ids: list[str] | None = None,
    fetch_icon: bool = True,
) -> Bookmark:
    name = _require_name(name)
    url = _require_url(url)
    groups = _require_groups(group_ids)

    bookmarks = Repository(Bookmark)
    bookmark = Bookmark(name=name, url=url)
    if fetch_icon:
        bookmark.favicon = _favicon_for(url)
    reconcile_tabs(
        bookmark,
        tab_ids=tab_ids if tab_ids else MISSING,
        tab_id=tab_id if tab_id else MISSING,
    )
    bookmarks.add(bookmark)
    _add_memberships(bookmark.id, [group.id for group in groups])
    return bookmarks.reload(bookmark)


def update_bookmark(
    bookmark_id: str,
    name=MISSING,
    url=MISSING,
    tab_id=MISSING,
    tab_ids=MISSING,
    group_ids=MISSING,
) -> Bookmark:
    bookmarks = Repository(Bookmark)
    bookmark = get_bookmark(bookmark_id)
    if name is not MISSING:
        name = _require_name(name)
    if url is not MISSING:
        url = _require_url(url)
    if group_ids is not MISSING:
        group_ids = [group.id for group in _require_groups(group_ids)]

    if name is not MISSING:
        bookmark.name = name
    if url is not MISSING and url != bookmark.url:
        bookmark.url = url
        bookmark.favicon = _favicon_for(url)

    reconcile_tabs(bookmark, tab_ids=tab_ids, tab_id=tab_id)

    if group_ids is not MISSING:
        current_ids = [row.group_id for row in bookmark.bookmark_groups]
        to_remove, to_add = diff_memberships(current_ids, group_ids)
        memberships = Repository(BookmarkGroup)
        for group_id in to_remove:
            memberships.delete_where(bookmark_id=bookmark.id, group_id=group_id)
        _add_memberships(bookmark.id, to_add)

    return bookmarks.reload(bookmark)


def delete_bookmark(bookmark_id: str) -> None:
    bookmark = get_bookmark(bookmark_id)
    Repository(BookmarkGroup).delete_where(bookmark_id=bookmark.id)
    delete_links(bookmark_tabs, bookmark_id=bookmark.id)
    Repository(Bookmark).delete_where(id=bookmark.id)


def delete_all_bookmarks() -> None:
    Repository(BookmarkGroup).clear()
    delete_links(bookmark_tabs)
    removed = Repository(Bookmark).clear()
    current_app.logger.info("Removed all bookmarks (%d)", removed)


def refresh_all_favicons() -> dict:
    bookmarks = Repository(Bookmark).find(Bookmark.created_at.asc())
    if not bookmarks:
        return {"updated": 0, "failed": 0}

    max_workers = int(current_app.config.get("FAVICON_WORKERS", 8))
    max_workers = max(1, min(max_workers, 32))
    fetch = partial(fetch_favicon, **_favicon_options())
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        favicons = list(executor.map(fetch, [bookmark.url for bookmark in bookmarks]))

    updated = 0
    failed = 0
    for bookmark, favicon in zip(bookmarks, favicons):
        if favicon:
            bookmark.favicon = favicon
            updated += 1
        else:
            failed += 1
    db.session.flush()

    current_app.logger.info(
        "Favicon refresh complete: %d updated, %d failed", updated, failed
    )
    return {"updated": updated, "failed": failed}
