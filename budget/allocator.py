"""Cascade allocator: place an overflow amount into buckets in priority order.

This is the single allocator behind redistribution, simulation and expense
previews. It is pure and never fails on well-formed input; an amount that
does not fit anywhere comes back as `unallocated_remainder`.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from budget.errors import NegativeAmount

ZERO = Decimal("0")


@dataclass(frozen=True)
class Bucket:
    """A category considered as a capacity-bounded absorber of overflow."""

    id: int
    capacity_remaining: Decimal
    name: str = ""
    earmark: bool = False


@dataclass(frozen=True)
class Allocation:
    """Part of an overflow absorbed by one bucket."""

    category_id: int
    amount_absorbed: Decimal
    remaining_capacity: Decimal


@dataclass
class CascadeResult:
    """Allocations in cascade order plus whatever could not be placed."""

    allocations: List[Allocation] = field(default_factory=list)
    unallocated_remainder: Decimal = ZERO

    @property
    def total_absorbed(self) -> Decimal:
        return sum((a.amount_absorbed for a in self.allocations), ZERO)

    @property
    def fully_absorbed(self) -> bool:
        return self.unallocated_remainder == ZERO


def cascade(
    excess: Decimal,
    buckets: Iterable[Bucket],
    exclude: Optional[Callable[[Bucket], bool]] = None,
) -> CascadeResult:
    """Greedily place `excess` into `buckets`, in the order given.

    Each bucket takes `min(excess, capacity_remaining)`. Negative capacities
    count as zero, buckets matching `exclude` are skipped, and a bucket id seen
    a second time is ignored. The walk stops as soon as nothing is left.

    Args:
        excess: Amount to place. Must be non-negative.
        buckets: Candidate buckets in priority order.
        exclude: Optional predicate; buckets for which it returns True never
                 receive anything.

    Returns:
        CascadeResult with one Allocation per bucket that received a nonzero
        amount. The absorbed total plus the remainder always equals `excess`.

    Raises:
        NegativeAmount: If `excess` is negative.
    """
    excess = Decimal(excess)
    if excess < ZERO:
        raise NegativeAmount(excess, "excess")

    allocations = []
    seen = set()
    remaining = excess

    for bucket in buckets:
        if remaining == ZERO:
            break
        if bucket.id in seen:
            continue
        seen.add(bucket.id)

        if exclude is not None and exclude(bucket):
            continue

        capacity = max(ZERO, Decimal(bucket.capacity_remaining))
        used = min(remaining, capacity)
        if used == ZERO:
            continue

        remaining -= used
        allocations.append(
            Allocation(
                category_id=bucket.id,
                amount_absorbed=used,
                remaining_capacity=capacity - used,
            )
        )

    return CascadeResult(allocations=allocations, unallocated_remainder=remaining)
