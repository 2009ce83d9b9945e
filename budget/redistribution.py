"""Redistribution driver: cascade every over-budget category's overflow.

Each run starts from a zero baseline for priority_expenses, so the result is a
function of spend, limits and priority order only. Running it twice on
unchanged input gives the same values.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, List

from budget.allocator import Allocation, Bucket, cascade
from budget.ledger import Snapshot
from budget.ordering import DEFAULT_DIRECTION, Direction, cascade_order, ranks_below
from logger import get_logger
from models.category import Category

logger = get_logger("budget.redistribution")

ZERO = Decimal("0")


@dataclass
class SourceResult:
    """How one over-budget category's overflow was placed."""

    category_id: int
    overflow: Decimal
    allocations: List[Allocation] = field(default_factory=list)
    unallocated_remainder: Decimal = ZERO


@dataclass
class RedistributionResult:
    """Output of one redistribution pass.

    Attributes:
        priority_expenses: New absorbed amount for every category in the
                           snapshot (zero for categories that absorbed nothing).
        sources: One entry per over-budget category, in processing order.
    """

    priority_expenses: Dict[int, Decimal]
    sources: List[SourceResult] = field(default_factory=list)

    @property
    def unallocated_total(self) -> Decimal:
        return sum((s.unallocated_remainder for s in self.sources), ZERO)

    def source(self, category_id: int):
        """Return the SourceResult for a category, or None if it was not over budget."""
        for result in self.sources:
            if result.category_id == category_id:
                return result
        return None


def bucket_filter(
    snapshot: Snapshot, source: Category, direction: Direction
) -> Callable[[Category], bool]:
    """Build the predicate selecting categories that may absorb `source`'s overflow.

    Only subcategories absorb. A subcategory qualifies when it ranks strictly
    below the source: siblings of a subcategory source compare their own
    priority values, everything else compares top-level priority values.
    """

    def top_level_value(category: Category) -> int:
        if category.parent_id is None or category.parent_id not in snapshot:
            return category.priority_value
        return snapshot.get(category.parent_id).priority_value

    source_value = top_level_value(source)

    def eligible(candidate: Category) -> bool:
        if candidate.id == source.id or candidate.parent_id is None:
            return False
        if source.parent_id is not None and candidate.parent_id == source.parent_id:
            return ranks_below(
                candidate.priority_value, source.priority_value, direction
            )
        return ranks_below(top_level_value(candidate), source_value, direction)

    return eligible


def build_buckets(
    snapshot: Snapshot,
    source: Category,
    absorbed: Dict[int, Decimal],
    direction: Direction = DEFAULT_DIRECTION,
) -> List[Bucket]:
    """Candidate buckets for `source`, in cascade order.

    Capacity is the bucket's limit minus what it has already absorbed; a
    subcategory without a limit has no capacity.
    """
    eligible = bucket_filter(snapshot, source, direction)
    buckets = []
    for candidate in cascade_order(snapshot.categories, direction):
        if not eligible(candidate) or candidate.category_limit is None:
            continue
        buckets.append(
            Bucket(
                id=candidate.id,
                capacity_remaining=max(
                    ZERO, candidate.category_limit - absorbed.get(candidate.id, ZERO)
                ),
                name=candidate.name,
                earmark=candidate.earmark,
            )
        )
    return buckets


def redistribute(
    snapshot: Snapshot,
    direction: Direction = DEFAULT_DIRECTION,
    include_earmarked: bool = False,
) -> RedistributionResult:
    """Cascade the overflow of every over-budget category onto lower priorities.

    Categories are processed in cascade order, so a higher-priority category
    claims spare capacity before a lower-priority one. Overflow that finds no
    capacity is kept as the source's remainder and logged.

    Args:
        snapshot: Categories and spend to work on. Not modified.
        direction: Priority direction shared with every other cascade.
        include_earmarked: Let earmarked subcategories absorb overflow.

    Returns:
        RedistributionResult with new priority_expenses for every category.
    """
    direction = Direction.parse(direction)
    absorbed = {c.id: ZERO for c in snapshot.categories}
    sources = []

    def exclude(bucket: Bucket) -> bool:
        return bucket.earmark and not include_earmarked

    for category in cascade_order(snapshot.categories, direction):
        overflow = snapshot.overflow(category.id)
        if overflow == ZERO:
            continue

        buckets = build_buckets(snapshot, category, absorbed, direction)
        result = cascade(overflow, buckets, exclude)

        for allocation in result.allocations:
            absorbed[allocation.category_id] += allocation.amount_absorbed
            logger.debug(
                f"{category.name}: {allocation.amount_absorbed} absorbed by "
                f"category {allocation.category_id}"
            )

        if result.unallocated_remainder > ZERO:
            logger.warning(
                f"{category.name} is over budget by {overflow}; "
                f"{result.unallocated_remainder} could not be absorbed"
            )

        sources.append(
            SourceResult(
                category_id=category.id,
                overflow=overflow,
                allocations=result.allocations,
                unallocated_remainder=result.unallocated_remainder,
            )
        )

    return RedistributionResult(priority_expenses=absorbed, sources=sources)
