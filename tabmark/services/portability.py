"""JSON backup format for tabs, groups and bookmarks.

Entities reference each other by their position in the exported lists rather
than by id, so a backup can be restored into an empty or a populated instance.
"""

from __future__ import annotations

from flask import current_app

from tabmark.errors import ValidationError
from tabmark.models import Group, Tab
from tabmark.services.bookmarks import create_bookmark, list_bookmarks
from tabmark.services.common import is_valid_url
from tabmark.services.groups import create_group
from tabmark.services.ordering import project_groups
from tabmark.services.repository import Repository
from tabmark.services.tabs import create_tab, find_tab_by_name


def _tab_index(tab_id: str | None, tab_positions: dict[str, int]) -> int:
    # Unassigned or dangling rows fall back to the first tab.
    return tab_positions.get(tab_id, 0) if tab_id else 0


def export_data() -> dict:
    tabs = Repository(Tab).find(Tab.created_at.asc())
    tab_positions = {tab.id: index for index, tab in enumerate(tabs)}

    groups = sorted(
        Repository(Group).find(Group.order_index.asc(), Group.created_at.asc()),
        key=lambda group: _tab_index(group.tab_id, tab_positions),
    )
    if not tabs:
        groups = []
    group_positions = {group.id: index for index, group in enumerate(groups)}

    bookmarks = list_bookmarks() if tabs else []
    exported_bookmarks = []
    for bookmark in bookmarks:
        tab_indices = [
            tab_positions[tab_id]
            for tab_id in bookmark.tab_ids
            if tab_id in tab_positions
        ]
        exported_bookmarks.append(
            {
                "name": bookmark.name,
                "url": bookmark.url,
                "tabIndex": _tab_index(bookmark.tab_id, tab_positions),
                "tabIndices": tab_indices,
                "groupIndices": [
                    group_positions[group.id]
                    for group in project_groups(bookmark.bookmark_groups)
                    if group.id in group_positions
                ],
            }
        )

    return {
        "tabs": [{"name": tab.name, "color": tab.color} for tab in tabs],
        "groups": [
            {
                "name": group.name,
                "color": group.color,
                "tabIndex": _tab_index(group.tab_id, tab_positions),
            }
            for group in groups
        ],
        "bookmarks": exported_bookmarks,
    }


def _rows(payload: dict, key: str) -> list[dict]:
    rows = payload.get(key) or []
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValidationError(f"{key} must be an array of objects")
    return rows


def _text(row: dict, key: str, where: str) -> str:
    value = row.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{where}: {key} must be a non-empty string")
    return value.strip()


def _index(value, size: int, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < size:
        raise ValidationError(f"{where}: index {value!r} is out of range")
    return value


def _validate(payload) -> tuple[list[dict], list[dict], list[dict]]:
    if not isinstance(payload, dict):
        raise ValidationError("import payload must be an object")

    tabs = []
    for position, row in enumerate(_rows(payload, "tabs")):
        where = f"tabs[{position}]"
        color = row.get("color")
        if color is not None and not isinstance(color, str):
            raise ValidationError(f"{where}: color must be a string")
        tabs.append({"name": _text(row, "name", where), "color": color})

    groups = []
    for position, row in enumerate(_rows(payload, "groups")):
        where = f"groups[{position}]"
        tab_index = row.get("tabIndex")
        groups.append(
            {
                "name": _text(row, "name", where),
                "color": _text(row, "color", where),
                "tab_index": None
                if tab_index is None
                else _index(tab_index, len(tabs), where),
            }
        )

    bookmarks = []
    for position, row in enumerate(_rows(payload, "bookmarks")):
        where = f"bookmarks[{position}]"
        url = row.get("url")
        if not is_valid_url(url):
            raise ValidationError(f"{where}: url must be a valid URL address")
        tab_indices = row.get("tabIndices")
        if not tab_indices:
            tab_index = row.get("tabIndex")
            tab_indices = [] if tab_index is None else [tab_index]
        if not isinstance(tab_indices, list):
            raise ValidationError(f"{where}: tabIndices must be an array")
        group_indices = row.get("groupIndices") or []
        if not isinstance(group_indices, list):
            raise ValidationError(f"{where}: groupIndices must be an array")
        bookmarks.append(
            {
                "name": _text(row, "name", where),
                "url": url.strip(),
                "tab_indices": [_index(i, len(tabs), where) for i in tab_indices],
                "group_indices": [_index(i, len(groups), where) for i in group_indices],
            }
        )
    return tabs, groups, bookmarks


def import_data(payload) -> dict:
    tabs, groups, bookmarks = _validate(payload)
    created = {"tabs": 0, "groups": 0, "bookmarks": 0}

    tab_ids = []
    for row in tabs:
        tab = find_tab_by_name(row["name"])
        if not tab:
            tab = create_tab(row["name"], row["color"])
            created["tabs"] += 1
        tab_ids.append(tab.id)

    group_ids = []
    for row in groups:
        tab_id = None if row["tab_index"] is None else tab_ids[row["tab_index"]]
        group_ids.append(create_group(row["name"], row["color"], tab_id).id)
        created["groups"] += 1

    for row in bookmarks:
        create_bookmark(
            row["name"],
            row["url"],
            tab_ids=[tab_ids[i] for i in row["tab_indices"]],
            group_ids=[group_ids[i] for i in row["group_indices"]],
            fetch_icon=False,
        )
        created["bookmarks"] += 1

    current_app.logger.info(
        "Imported %d tabs, %d groups and %d bookmarks",
        created["tabs"],
        created["groups"],
        created["bookmarks"],
    )
    return created
