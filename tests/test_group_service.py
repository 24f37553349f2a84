import pytest

from tabmark.errors import (
    BookmarkNotFoundError,
    GroupNotFoundError,
    MembershipNotFoundError,
    TabNotFoundError,
    ValidationError,
)
from tabmark.extensions import db
from tabmark.models import Bookmark, BookmarkGroup
from tabmark.services.bookmarks import create_bookmark
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
from tabmark.services.tabs import create_tab


def _group_order(tab_id):
    return [(group.name, group.order_index) for group in list_groups(tab_id)]


def _member_order(group_id):
    rows = (
        BookmarkGroup.query.filter_by(group_id=group_id)
        .order_by(BookmarkGroup.order_index)
        .all()
    )
    return [(row.bookmark.name, row.order_index) for row in rows]


def test_create_group_appends_within_tab_scope(app):
    with app.app_context():
        work = create_tab("Work")
        home = create_tab("Home")
        create_group("A", "#111111", work.id)
        create_group("B", "#222222", work.id)
        create_group("C", "#333333", home.id)
        loose = create_group("Loose", "#444444")
        db.session.commit()

        assert _group_order(work.id) == [("A", 0), ("B", 1)]
        assert _group_order(home.id) == [("C", 0)]
        assert loose.tab_id is None
        assert loose.order_index == 0


def test_create_group_validates_input(app):
    with app.app_context():
        with pytest.raises(TabNotFoundError):
            create_group("A", "#111111", "missing")
        with pytest.raises(ValidationError):
            create_group("A", "")


def test_reorder_group_moves_and_shifts_siblings(app):
    with app.app_context():
        tab = create_tab("Work")
        groups = [create_group(name, "#000000", tab.id) for name in "ABCD"]
        db.session.commit()

        reorder_group(groups[3].id, 0)
        db.session.commit()
        assert _group_order(tab.id) == [("D", 0), ("A", 1), ("B", 2), ("C", 3)]

        reorder_group(groups[3].id, 99)
        db.session.commit()
        assert _group_order(tab.id) == [("A", 0), ("B", 1), ("C", 2), ("D", 3)]

        with pytest.raises(ValidationError):
            reorder_group(groups[0].id, -1)


def test_update_group_moves_to_end_of_new_tab(app):
    with app.app_context():
        work = create_tab("Work")
        home = create_tab("Home")
        moving = create_group("Moving", "#000000", work.id)
        create_group("Existing", "#000000", home.id)
        db.session.commit()

        updated = update_group(moving.id, tab_id=home.id, name="Moved")
        db.session.commit()

        assert updated.tab_id == home.id
        assert _group_order(home.id) == [("Existing", 0), ("Moved", 1)]


def test_membership_add_is_idempotent_and_appends(app):
    with app.app_context():
        group = create_group("Reading", "#000000")
        first = create_bookmark("First", "https://one.example")
        second = create_bookmark("Second", "https://two.example")
        db.session.commit()

        add_bookmark_to_group(group.id, first.id)
        add_bookmark_to_group(group.id, second.id)
        add_bookmark_to_group(group.id, first.id)
        db.session.commit()

        assert _member_order(group.id) == [("First", 0), ("Second", 1)]
        assert get_group(group.id).as_dict()["bookmarkIds"] == [first.id, second.id]


def test_membership_errors(app):
    with app.app_context():
        group = create_group("Reading", "#000000")
        bookmark = create_bookmark("First", "https://one.example")
        db.session.commit()

        with pytest.raises(GroupNotFoundError):
            add_bookmark_to_group("missing", bookmark.id)
        with pytest.raises(BookmarkNotFoundError):
            add_bookmark_to_group(group.id, "missing")
        with pytest.raises(MembershipNotFoundError):
            remove_bookmark_from_group(group.id, bookmark.id)


def test_remove_bookmark_from_group_deletes_one_row(app):
    with app.app_context():
        reading = create_group("Reading", "#000000")
        later = create_group("Later", "#000000")
        bookmark = create_bookmark(
            "First", "https://one.example", group_ids=[reading.id, later.id]
        )
        db.session.commit()

        remove_bookmark_from_group(reading.id, bookmark.id)
        db.session.commit()

        assert BookmarkGroup.query.filter_by(bookmark_id=bookmark.id).count() == 1
        assert _member_order(later.id) == [("First", 0)]


def test_reorder_bookmark_in_group(app):
    with app.app_context():
        group = create_group("Reading", "#000000")
        bookmarks = [
            create_bookmark(name, f"https://{name.lower()}.example", group_ids=[group.id])
            for name in ("One", "Two", "Three")
        ]
        db.session.commit()

        reorder_bookmark_in_group(group.id, bookmarks[0].id, 2)
        db.session.commit()

        assert _member_order(group.id) == [("Two", 0), ("Three", 1), ("One", 2)]


def test_delete_group_keeps_bookmarks(app):
    with app.app_context():
        group = create_group("Reading", "#000000")
        bookmark = create_bookmark("First", "https://one.example", group_ids=[group.id])
        db.session.commit()

        delete_group(group.id)
        db.session.commit()

        assert db.session.get(Bookmark, bookmark.id) is not None
        assert BookmarkGroup.query.count() == 0
        with pytest.raises(GroupNotFoundError):
            get_group(group.id)


def test_delete_all_groups(app):
    with app.app_context():
        group = create_group("Reading", "#000000")
        create_bookmark("First", "https://one.example", group_ids=[group.id])
        db.session.commit()

        delete_all_groups()
        db.session.commit()

        assert list_groups() == []
        assert BookmarkGroup.query.count() == 0
        assert Bookmark.query.count() == 1
