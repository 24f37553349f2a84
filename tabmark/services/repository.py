from __future__ import annotations

from sqlalchemy import Table, delete, func, select, update
from sqlalchemy.orm import Session

from tabmark.extensions import db


def _condition(column, value):
    if value is None:
        return column.is_(None)
    return column == value


class Repository:
    """Storage primitives for one model, scoped to a SQLAlchemy session.

    Filters are keyword arguments naming model attributes; ``None`` matches
    ``IS NULL`` so the null tab scope of groups is addressable like any other.
    """

    def __init__(self, model, session: Session | None = None):
        self.model = model
        self.session = session or db.session

    def _where(self, filters: dict) -> list:
        return [
            _condition(getattr(self.model, name), value)
            for name, value in filters.items()
        ]

    def find(self, *order_by, **filters) -> list:
        stmt = select(self.model).where(*self._where(filters))
        if order_by:
            stmt = stmt.order_by(*order_by)
        return list(self.session.scalars(stmt))

    def find_in(self, field: str, values) -> list:
        values = list(values)
        if not values:
            return []
        column = getattr(self.model, field)
        return list(self.session.scalars(select(self.model).where(column.in_(values))))

    def get(self, ident):
        if ident is None:
            return None
        return self.session.get(self.model, ident)

    def get_by(self, **filters):
        stmt = select(self.model).where(*self._where(filters)).limit(1)
        return self.session.scalars(stmt).first()

    def count(self, **filters) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._where(filters))
        return self.session.scalar(stmt) or 0

    def add(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.flush()

    def reload(self, obj):
        self.session.flush()
        self.session.expire(obj)
        return obj

    def delete_where(self, **filters) -> int:
        self.session.flush()
        stmt = (
            delete(self.model)
            .where(*self._where(filters))
            .execution_options(synchronize_session="fetch")
        )
        return self.session.execute(stmt).rowcount

    def delete_in(self, field: str, values) -> int:
        values = list(values)
        if not values:
            return 0
        self.session.flush()
        column = getattr(self.model, field)
        stmt = (
            delete(self.model)
            .where(column.in_(values))
            .execution_options(synchronize_session="fetch")
        )
        return self.session.execute(stmt).rowcount

    def clear(self) -> int:
        return self.delete_where()

    def max_of(self, field: str, **scope) -> int | None:
        self.session.flush()
        column = getattr(self.model, field)
        stmt = select(func.max(column)).where(*self._where(scope))
        return self.session.scalar(stmt)

    def _shift_range(self, field: str, low: int, high: int, by: int, scope: dict) -> int:
        if low > high:
            return 0
        self.session.flush()
        column = getattr(self.model, field)
        stmt = (
            update(self.model)
            .where(*self._where(scope), column.between(low, high))
            .values({field: column + by})
            .execution_options(synchronize_session="fetch")
        )
        return self.session.execute(stmt).rowcount

    def increment_range(self, field: str, low: int, high: int, by: int = 1, **scope) -> int:
        return self._shift_range(field, low, high, by, scope)

    def decrement_range(self, field: str, low: int, high: int, by: int = 1, **scope) -> int:
        return self._shift_range(field, low, high, -by, scope)


def delete_links(table: Table, session: Session | None = None, **filters) -> int:
    session = session or db.session
    session.flush()
    conditions = [_condition(table.c[name], value) for name, value in filters.items()]
    return session.execute(delete(table).where(*conditions)).rowcount


def delete_links_in(
    table: Table, column: str, values, session: Session | None = None
) -> int:
    values = list(values)
    if not values:
        return 0
    session = session or db.session
    session.flush()
    return session.execute(delete(table).where(table.c[column].in_(values))).rowcount
