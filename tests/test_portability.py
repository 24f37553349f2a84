import pytest

from tabmark.errors import ValidationError
from tabmark.extensions import db
from tabmark.models import Bookmark, Group, Tab
from tabmark.services.bookmarks import create_bookmark, list_bookmarks
from tabmark.services.groups import create_group, list_groups
from tabmark.services.portability import export_data, import_data
from tabmark.services.tabs import create_tab


def test_export_uses_list_positions(app):
    with app.app_context():
        work = create_tab("Work", "#ff0000")
        home = create_tab("Home")
        reading = create_group("Reading", "#111111", home.id)
        loose = create_group("Loose", "#222222")
        create_bookmark(
            "Docs",
            "https://docs.example",
            tab_ids=[home.id, work.id],
            group_ids=[reading.id, loose.id],
        )
        db.session.commit()

        data = export_data()

        assert data["tabs"] == [
            {"name": "Work", "color": "#ff0000"},
            {"name": "Home", "color": None},
        ]
        assert data["groups"] == [
            {"name": "Loose", "color": "#222222", "tabIndex": 0},
            {"name": "Reading", "color": "#111111", "tabIndex": 1},
        ]
        [bookmark] = data["bookmarks"]
        assert bookmark["tabIndex"] == 1
        assert bookmark["tabIndices"] == [1, 0]
        assert sorted(bookmark["groupIndices"]) == [0, 1]


def test_export_without_tabs_is_empty(app):
    with app.app_context():
        create_group("Loose", "#222222")
        db.session.commit()

        assert export_data() == {"tabs": [], "groups": [], "bookmarks": []}


def test_import_reuses_tabs_by_name(app):
    with app.app_context():
        existing = create_tab("Work")
        db.session.commit()

        created = import_data(
            {
                "tabs": [{"name": "Work", "color": "#ff0000"}, {"name": "Home"}],
                "groups": [{"name": "Reading", "color": "#111111", "tabIndex": 1}],
                "bookmarks": [
                    {
                        "name": "Docs",
                        "url": "https://docs.example",
                        "tabIndex": 0,
                        "groupIndices": [0],
                    }
                ],
            }
        )
        db.session.commit()

        assert created == {"tabs": 1, "groups": 1, "bookmarks": 1}
        assert Tab.query.count() == 2
        bookmark = list_bookmarks()[0]
        assert bookmark.tab_id == existing.id
        assert bookmark.favicon is None
        group = list_groups()[0]
        assert group.tab_id != existing.id
        assert bookmark.as_dict()["groupIds"] == [group.id]


def test_import_validates_before_writing(app):
    with app.app_context():
        payload = {
            "tabs": [{"name": "Work"}],
            "groups": [],
            "bookmarks": [
                {"name": "Good", "url": "https://good.example", "tabIndex": 0},
                {"name": "Bad", "url": "nope", "tabIndex": 0},
            ],
        }

        with pytest.raises(ValidationError):
            import_data(payload)

        assert Tab.query.count() == 0
        assert Group.query.count() == 0
        assert Bookmark.query.count() == 0


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"tabs": "nope"},
        {"tabs": [{"name": ""}]},
        {
            "tabs": [{"name": "Work"}],
            "bookmarks": [
                {"name": "x", "url": "https://x.example", "groupIndices": [0]}
            ],
        },
    ],
)
def test_import_rejects_malformed_payloads(app, payload):
    with app.app_context():
        with pytest.raises(ValidationError):
            import_data(payload)
