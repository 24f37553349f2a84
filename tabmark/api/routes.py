from __future__ import annotations

from flask import jsonify, request

from tabmark.api import api_bp
from tabmark.errors import ValidationError
from tabmark.extensions import db
from tabmark.services.bookmarks import (
    create_bookmark,
    delete_all_bookmarks,
    delete_bookmark,
    get_bookmark,
    list_bookmarks,
    refresh_all_favicons,
    update_bookmark,
)
from tabmark.services.common import (
    MISSING,
    optional_string,
    optional_string_list,
    require_index,
    require_string,
    require_url,
)
from tabmark.services.groups import (
    add_bookmark_to_group,
    create_group,
    delete_all_groups,
    delete_group,
    get_group,
    list_groups,
    remove_bookmark_from_group,
    reorder_bookmark_in_group,
    reorder_group,
    update_group,
)
from tabmark.services.portability import export_data, import_data
from tabmark.services.tabs import (
    create_tab,
    delete_all_tabs,
    delete_tab,
    get_tab,
    list_tabs,
    update_tab,
)


def _payload() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


def _optional_tab_id(payload: dict, key: str = "tabId"):
    value = optional_string(payload, key)
    if value is MISSING:
        return value
    return value or None


def _no_content():
    return "", 204


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok", "service": "Tabmark"})


@api_bp.route("/tabs", methods=["GET"])
def tabs_list():
    items = list_tabs()
    db.session.commit()
    return jsonify({"items": [item.as_dict() for item in items]})


@api_bp.route("/tabs", methods=["POST"])
def tabs_create():
    payload = _payload()
    color = optional_string(payload, "color")
    tab = create_tab(
        require_string(payload, "name"),
        None if color is MISSING else color,
    )
    db.session.commit()
    return jsonify(tab.as_dict()), 201


@api_bp.route("/tabs/all", methods=["DELETE"])
def tabs_delete_all():
    delete_all_tabs()
    db.session.commit()
    return _no_content()


@api_bp.route("/tabs/<tab_id>", methods=["GET"])
def tabs_get(tab_id: str):
    return jsonify(get_tab(tab_id).as_dict())


@api_bp.route("/tabs/<tab_id>", methods=["PUT", "PATCH"])
def tabs_update(tab_id: str):
    payload = _payload()
    tab = update_tab(
        tab_id,
        name=optional_string(payload, "name"),
        color=optional_string(payload, "color"),
    )
    db.session.commit()
    return jsonify(tab.as_dict())


@api_bp.route("/tabs/<tab_id>", methods=["DELETE"])
def tabs_delete(tab_id: str):
    delete_tab(tab_id)
    db.session.commit()
    return _no_content()


@api_bp.route("/groups", methods=["GET"])
def groups_list():
    items = list_groups(request.args.get("tabId") or None)
    return jsonify({"items": [item.as_dict() for item in items]})


@api_bp.route("/groups", methods=["POST"])
def groups_create():
    payload = _payload()
    tab_id = _optional_tab_id(payload)
    group = create_group(
        require_string(payload, "name"),
        require_string(payload, "color"),
        None if tab_id is MISSING else tab_id,
    )
    db.session.commit()
    return jsonify(group.as_dict()), 201


@api_bp.route("/groups/all", methods=["DELETE"])
def groups_delete_all():
    delete_all_groups()
    db.session.commit()
    return _no_content()


@api_bp.route("/groups/<group_id>", methods=["GET"])
def groups_get(group_id: str):
    return jsonify(get_group(group_id).as_dict())


@api_bp.route("/groups/<group_id>", methods=["PUT", "PATCH"])
def groups_update(group_id: str):
    payload = _payload()
    group = update_group(
        group_id,
        name=optional_string(payload, "name"),
        color=optional_string(payload, "color"),
        tab_id=_optional_tab_id(payload),
    )
    db.session.commit()
    return jsonify(group.as_dict())


@api_bp.route("/groups/<group_id>", methods=["DELETE"])
def groups_delete(group_id: str):
    delete_group(group_id)
    db.session.commit()
    return _no_content()


@api_bp.route("/groups/<group_id>/reorder", methods=["PUT"])
def groups_reorder(group_id: str):
    group = reorder_group(group_id, require_index(_payload()))
    db.session.commit()
    return jsonify(group.as_dict())


@api_bp.route("/groups/<group_id>/bookmarks/<bookmark_id>", methods=["POST"])
def groups_add_bookmark(group_id: str, bookmark_id: str):
    add_bookmark_to_group(group_id, bookmark_id)
    db.session.commit()
    return _no_content()


@api_bp.route("/groups/<group_id>/bookmarks/<bookmark_id>", methods=["DELETE"])
def groups_remove_bookmark(group_id: str, bookmark_id: str):
    remove_bookmark_from_group(group_id, bookmark_id)
    db.session.commit()
    return _no_content()


@api_bp.route("/groups/<group_id>/bookmarks/<bookmark_id>/reorder", methods=["PUT"])
def groups_reorder_bookmark(group_id: str, bookmark_id: str):
    reorder_bookmark_in_group(group_id, bookmark_id, require_index(_payload()))
    db.session.commit()
    return jsonify(get_group(group_id).as_dict())


@api_bp.route("/bookmarks", methods=["GET"])
def bookmarks_list():
    items = list_bookmarks(request.args.get("tabId") or None)
    return jsonify({"items": [item.as_dict() for item in items]})


@api_bp.route("/bookmarks", methods=["POST"])
def bookmarks_create():
    payload = _payload()
    tab_id = _optional_tab_id(payload)
    tab_ids = optional_string_list(payload, "tabIds")
    group_ids = optional_string_list(payload, "groupIds")
    bookmark = create_bookmark(
        require_string(payload, "name"),
        require_url(payload),
        tab_id=None if tab_id is MISSING else tab_id,
        tab_ids=None if tab_ids is MISSING else tab_ids,
        group_ids=None if group_ids is MISSING else group_ids,
    )
    db.session.commit()
    return jsonify(bookmark.as_dict()), 201


@api_bp.route("/bookmarks/all", methods=["DELETE"])
def bookmarks_delete_all():
    delete_all_bookmarks()
    db.session.commit()
    return _no_content()


@api_bp.route("/bookmarks/refresh-favicons", methods=["POST"])
def bookmarks_refresh_favicons():
    result = refresh_all_favicons()
    db.session.commit()
    return jsonify(result)


@api_bp.route("/bookmarks/<bookmark_id>", methods=["GET"])
def bookmarks_get(bookmark_id: str):
    return jsonify(get_bookmark(bookmark_id).as_dict())


@api_bp.route("/bookmarks/<bookmark_id>", methods=["PUT", "PATCH"])
def bookmarks_update(bookmark_id: str):
    payload = _payload()
    tab_ids = MISSING
    if "tabIds" in payload:
        # An explicit null clears the tab set just like an empty array.
        tab_ids = optional_string_list(payload, "tabIds")
        if tab_ids is MISSING:
            tab_ids = []
    group_ids = MISSING
    if "groupIds" in payload:
        group_ids = optional_string_list(payload, "groupIds")
        if group_ids is MISSING:
            group_ids = []

    bookmark = update_bookmark(
        bookmark_id,
        name=optional_string(payload, "name"),
        url=require_url(payload) if "url" in payload else MISSING,
        tab_id=_optional_tab_id(payload),
        tab_ids=tab_ids,
        group_ids=group_ids,
    )
    db.session.commit()
    return jsonify(bookmark.as_dict())


@api_bp.route("/bookmarks/<bookmark_id>", methods=["DELETE"])
def bookmarks_delete(bookmark_id: str):
    delete_bookmark(bookmark_id)
    db.session.commit()
    return _no_content()


@api_bp.route("/export", methods=["GET"])
def data_export():
    return jsonify(export_data())


@api_bp.route("/import", methods=["POST"])
def data_import():
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError("request body must be a JSON object")
    created = import_data(payload)
    db.session.commit()
    return jsonify({"status": "imported", "created": created}), 201
