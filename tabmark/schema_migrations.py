from __future__ import annotations

from flask import current_app
from sqlalchemy import inspect, insert, select, update

from tabmark.extensions import db
from tabmark.models import Bookmark, Group, Tab, bookmark_tabs


def _tables_present() -> bool:
    inspector = inspect(db.engine)
    return all(
        inspector.has_table(name)
        for name in ("tabs", "groups", "bookmarks", "bookmark_tabs")
    )


def assign_orphans_to_default_tab() -> int:
    if db.session.scalar(select(Tab.id).limit(1)) is not None:
        return 0
    has_groups = db.session.scalar(select(Group.id).limit(1)) is not None
    has_bookmarks = db.session.scalar(select(Bookmark.id).limit(1)) is not None
    if not (has_groups or has_bookmarks):
        return 0

    tab = Tab(
        name=current_app.config["DEFAULT_TAB_NAME"],
        color=current_app.config["DEFAULT_TAB_COLOR"],
    )
    db.session.add(tab)
    db.session.flush()

    assigned = 0
    for model in (Group, Bookmark):
        result = db.session.execute(
            update(model)
            .where((model.tab_id.is_(None)) | (model.tab_id == ""))
            .values(tab_id=tab.id)
            .execution_options(synchronize_session=False)
        )
        assigned += result.rowcount
    current_app.logger.info(
        "Created default tab %s for %d existing rows", tab.id, assigned
    )
    return assigned


def backfill_bookmark_tab_links() -> int:
    linked = select(bookmark_tabs.c.bookmark_id).where(
        bookmark_tabs.c.bookmark_id == Bookmark.id,
        bookmark_tabs.c.tab_id == Bookmark.tab_id,
    )
    rows = db.session.execute(
        select(Bookmark.id, Bookmark.tab_id)
        .join(Tab, Tab.id == Bookmark.tab_id)
        .where(~linked.exists())
    ).all()
    if not rows:
        return 0

    db.session.execute(
        insert(bookmark_tabs),
        [{"bookmark_id": row.id, "tab_id": row.tab_id} for row in rows],
    )
    current_app.logger.info("Backfilled %d bookmark tab links", len(rows))
    return len(rows)


def migrate_legacy_tab_assignments() -> bool:
    if not _tables_present():
        return False

    assigned = assign_orphans_to_default_tab()
    linked = backfill_bookmark_tab_links()
    db.session.commit()
    return bool(assigned or linked)
