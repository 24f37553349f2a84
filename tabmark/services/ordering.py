"""Order-index bookkeeping for groups within a tab and bookmarks within a group.

Every function takes the repository of the ordered rows explicitly and a
``scope`` given as keyword filters (``tab_id=...`` or ``group_id=...``).
"""

from __future__ import annotations

from tabmark.errors import ValidationError

ORDER_FIELD = "order_index"


def next_order_index(repo, **scope) -> int:
    current = repo.max_of(ORDER_FIELD, **scope)
    if current is None:
        return 0
    return current + 1


def clamp_target(repo, new_index, **scope) -> int:
    if isinstance(new_index, bool) or not isinstance(new_index, int):
        raise ValidationError("newOrderIndex must be an integer")
    if new_index < 0:
        raise ValidationError("newOrderIndex must not be negative")
    highest = repo.max_of(ORDER_FIELD, **scope)
    if highest is not None and new_index > highest:
        return highest
    return new_index


def move_to_position(repo, item, new_index: int, **scope):
    """Move ``item`` to ``new_index`` shifting the siblings in between.

    Moving earlier pushes siblings in ``[new, old - 1]`` one slot later; moving
    later pulls siblings in ``[old + 1, new]`` one slot earlier. Targets past
    the end of the scope are clamped to the last position.
    """
    old_index = item.order_index
    target = clamp_target(repo, new_index, **scope)
    if target == old_index:
        return item

    if target < old_index:
        repo.increment_range(ORDER_FIELD, target, old_index - 1, **scope)
    else:
        repo.decrement_range(ORDER_FIELD, old_index + 1, target, **scope)
    item.order_index = target
    return item


def project_groups(bookmark_groups) -> list:
    ordered = sorted(bookmark_groups, key=lambda row: row.order_index)
    return [row.group for row in ordered if row.group is not None]
