"""Priority ordering shared by every cascade.

The direction is chosen once (see the [budget] section of the config) and
passed to every caller, so redistribution, simulation and expense previews
always walk categories the same way.
"""

from enum import Enum
from typing import Dict, Iterable, List

from models.category import Category


class Direction(str, Enum):
    """Which end of the priority_value scale is processed first."""

    ASCENDING = "ascending"  # lowest priority_value is the highest priority
    DESCENDING = "descending"  # highest priority_value is the highest priority

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown priority direction: {value}") from None


DEFAULT_DIRECTION = Direction.ASCENDING


def _sort_key(category: Category, direction: Direction):
    # Ties always break on ascending id, whatever the direction.
    if direction is Direction.ASCENDING:
        return (category.priority_value, category.id)
    return (-category.priority_value, category.id)


def order_categories(
    categories: Iterable[Category], direction: Direction = DEFAULT_DIRECTION
) -> List[Category]:
    """Return categories in processing order, highest priority first.

    Args:
        categories: Categories to order.
        direction: Which end of the priority_value scale comes first.

    Returns:
        New list sorted by priority_value, ties broken by id.
    """
    direction = Direction.parse(direction)
    return sorted(categories, key=lambda c: _sort_key(c, direction))


def ranks_below(value: int, other: int, direction: Direction = DEFAULT_DIRECTION) -> bool:
    """True if priority value `value` is strictly lower priority than `other`."""
    if Direction.parse(direction) is Direction.ASCENDING:
        return value > other
    return value < other


def cascade_order(
    categories: Iterable[Category], direction: Direction = DEFAULT_DIRECTION
) -> List[Category]:
    """Flatten the category tree into the order every cascade walks.

    Top-level categories come in priority order, each one immediately
    followed by its own subcategories in priority order. Subcategories whose
    parent is missing from the input (or is not top-level) are appended at
    the end.

    Args:
        categories: Categories of one owner.
        direction: Which end of the priority_value scale comes first.

    Returns:
        New list containing every input category exactly once.
    """
    ordered = order_categories(categories, direction)
    top_level_ids = {c.id for c in ordered if c.parent_id is None}

    children: Dict[int, List[Category]] = {}
    orphans = []
    for category in ordered:
        if category.parent_id is None:
            continue
        if category.parent_id in top_level_ids:
            children.setdefault(category.parent_id, []).append(category)
        else:
            orphans.append(category)

    result = []
    for category in ordered:
        if category.parent_id is None:
            result.append(category)
            result.extend(children.get(category.id, []))
    result.extend(orphans)
    return result
