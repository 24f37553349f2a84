import pytest

from tabmark.errors import TabNameConflictError, TabNotFoundError, ValidationError
from tabmark.extensions import db
from tabmark.models import Bookmark, BookmarkGroup, Group, Tab, bookmark_tabs
from tabmark.services.bookmarks import create_bookmark, get_bookmark
from tabmark.services.groups import create_group
from tabmark.services.tabs import (
    create_tab,
    delete_all_tabs,
    delete_tab,
    list_tabs,
    update_tab,
)


def _link_count() -> int:
    return db.session.query(bookmark_tabs).count()


def test_list_tabs_creates_default_tab(app):
    with app.app_context():
        tabs = list_tabs()
        db.session.commit()

        assert [(tab.name, tab.color) for tab in tabs] == [("Default", "#3b82f6")]
        assert len(list_tabs()) == 1


def test_create_tab_rejects_duplicate_name(app):
    with app.app_context():
        create_tab("Work", "#ff0000")
        db.session.commit()

        with pytest.raises(TabNameConflictError) as exc:
            create_tab("Work")
        assert str(exc.value) == 'Tab with name "Work" already exists'


def test_create_tab_requires_name(app):
    with app.app_context():
        with pytest.raises(ValidationError):
            create_tab("   ")


def test_update_tab_allows_own_name_and_clears_color(app):
    with app.app_context():
        tab = create_tab("Work", "#ff0000")
        create_tab("Home")
        db.session.commit()

        updated = update_tab(tab.id, name="Work", color="")
        db.session.commit()
        assert updated.name == "Work"
        assert updated.color is None

        with pytest.raises(TabNameConflictError):
            update_tab(tab.id, name="Home")


def test_delete_missing_tab_raises_not_found(app):
    with app.app_context():
        with pytest.raises(TabNotFoundError) as exc:
            delete_tab("missing")
        assert str(exc.value) == "Tab with ID missing not found"


def test_delete_tab_cascades_groups_bookmarks_and_memberships(app):
    with app.app_context():
        doomed = create_tab("Doomed")
        survivor_tab = create_tab("Survivor")
        group = create_group("Reading", "#00ff00", doomed.id)
        other_group = create_group("Other", "#0000ff", survivor_tab.id)
        primary = create_bookmark(
            "Primary", "https://a.example", tab_id=doomed.id, group_ids=[group.id]
        )
        shared = create_bookmark(
            "Shared",
            "https://b.example",
            tab_ids=[survivor_tab.id, doomed.id],
            group_ids=[group.id, other_group.id],
        )
        db.session.commit()
        primary_id, shared_id = primary.id, shared.id

        result = delete_tab(doomed.id)
        db.session.commit()

        assert result == {"groups": 1, "bookmarks": 1, "unlinked": 1}
        assert db.session.get(Tab, doomed.id) is None
        assert db.session.get(Group, group.id) is None
        assert db.session.get(Bookmark, primary_id) is None

        kept = get_bookmark(shared_id)
        assert kept.tab_id == survivor_tab.id
        assert kept.tab_ids == [survivor_tab.id]
        assert [row.group_id for row in kept.bookmark_groups] == [other_group.id]
        assert BookmarkGroup.query.filter_by(group_id=group.id).count() == 0
        assert _link_count() == 1


def test_delete_all_tabs_clears_everything(app):
    with app.app_context():
        tab = create_tab("Work")
        group = create_group("Reading", "#00ff00", tab.id)
        create_bookmark("Docs", "https://docs.example", tab_id=tab.id, group_ids=[group.id])
        db.session.commit()

        delete_all_tabs()
        db.session.commit()

        assert Tab.query.count() == 0
        assert Group.query.count() == 0
        assert Bookmark.query.count() == 0
        assert BookmarkGroup.query.count() == 0
        assert _link_count() == 0
