"""Read-only previews of hypothetical spending.

Both operations work on a copy of the snapshot and use the same allocator
and ordering as the redistribution driver. Nothing here writes anywhere, so
they are safe to call while a recalculation is running.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from budget.allocator import Allocation, Bucket, cascade
from budget.errors import NegativeAmount
from budget.ledger import Snapshot
from budget.ordering import DEFAULT_DIRECTION, Direction
from budget.redistribution import build_buckets, redistribute

ZERO = Decimal("0")


def format_money(amount: Decimal) -> str:
    return f"{Decimal(amount):.2f}"


@dataclass
class Simulation:
    """Narrated outcome of a hypothetical expense."""

    category_id: int
    amount: Decimal
    lines: List[str] = field(default_factory=list)
    allocations: List[Allocation] = field(default_factory=list)
    unallocated_remainder: Decimal = ZERO

    @property
    def narrative(self) -> str:
        return "\n".join(self.lines)


@dataclass
class ExpensePreview:
    """Answer to "can this one new expense be absorbed?"."""

    within_budget: bool
    message: str
    allocations: List[Allocation] = field(default_factory=list)
    unallocated_remainder: Decimal = ZERO


def simulate(
    snapshot: Snapshot,
    category_id: int,
    amount: Decimal,
    include_earmarked: bool = False,
    direction: Direction = DEFAULT_DIRECTION,
) -> Simulation:
    """Preview a full redistribution as if `amount` were spent in a category.

    Args:
        snapshot: Current categories and spend. Not modified.
        category_id: Category that would receive the expense.
        amount: Hypothetical expense, non-negative.
        include_earmarked: Let earmarked subcategories absorb overflow.
        direction: Priority direction shared with every other cascade.

    Returns:
        Simulation with one line for the selected category, one per bucket
        that absorbs part of its overflow, and a final line for any amount
        left unallocated.

    Raises:
        UnknownCategory: If the category is not in the snapshot.
        NegativeAmount: If amount is negative.
    """
    amount = Decimal(amount)
    if amount < ZERO:
        raise NegativeAmount(amount)

    target = snapshot.get(category_id)
    augmented = snapshot.with_extra_spend(category_id, amount)
    result = redistribute(augmented, direction, include_earmarked)

    simulation = Simulation(category_id=category_id, amount=amount)
    lines = simulation.lines

    if target.category_limit is None:
        lines.append(
            f"The selected category {target.name} has no limit and will not be over budget."
        )
        return simulation

    overflow = augmented.overflow(category_id)
    if overflow == ZERO:
        left = target.category_limit - augmented.spent_for(category_id)
        lines.append(
            f"The selected category {target.name} will not be over budget "
            f"({format_money(left)} left)."
        )
        return simulation

    lines.append(
        f"The selected category {target.name} will be over budget by "
        f"{format_money(overflow)}."
    )

    source = result.source(category_id)
    for allocation in source.allocations:
        bucket = augmented.get(allocation.category_id)
        load = augmented.spent_for(bucket.id) + result.priority_expenses[bucket.id]
        exceeded = load - bucket.category_limit
        if exceeded > ZERO:
            lines.append(
                f"Subcategory {bucket.name} absorbs "
                f"{format_money(allocation.amount_absorbed)} and will be over budget "
                f"by {format_money(exceeded)}."
            )
        else:
            lines.append(
                f"Subcategory {bucket.name} absorbs "
                f"{format_money(allocation.amount_absorbed)} and will not be over budget."
            )

    if source.unallocated_remainder > ZERO:
        lines.append(
            f"All categories are filled, and "
            f"{format_money(source.unallocated_remainder)} remains unallocated."
        )

    simulation.allocations = source.allocations
    simulation.unallocated_remainder = source.unallocated_remainder
    return simulation


def preview_expense(
    snapshot: Snapshot,
    category_id: int,
    price: Decimal,
    include_earmarked: bool = False,
    direction: Direction = DEFAULT_DIRECTION,
) -> ExpensePreview:
    """Check whether one new expense fits, and who would pay for it if not.

    When the expense pushes the category over its limit, the part that is new
    overflow is cascaded over the lower-priority subcategories, using only the
    capacity the current redistribution leaves them. Earmarked subcategories
    are offered only when include_earmarked is set.

    Args:
        snapshot: Current categories and spend. Not modified.
        category_id: Category the expense would be assigned to.
        price: Expense amount, non-negative.
        include_earmarked: Let earmarked subcategories absorb overflow.
        direction: Priority direction shared with every other cascade.

    Returns:
        ExpensePreview; within_budget is True only when the category's own
        limit covers the expense.

    Raises:
        UnknownCategory: If the category is not in the snapshot.
        NegativeAmount: If price is negative.
    """
    price = Decimal(price)
    if price < ZERO:
        raise NegativeAmount(price, "price")

    target = snapshot.get(category_id)
    spent = snapshot.spent_for(category_id)
    new_total = spent + price

    if target.category_limit is None or new_total <= target.category_limit:
        return ExpensePreview(
            within_budget=True, message=f"You have enough in {target.name}"
        )

    current = redistribute(snapshot, direction, include_earmarked)
    new_overflow = new_total - max(target.category_limit, spent)
    buckets = build_buckets(snapshot, target, current.priority_expenses, direction)

    def exclude(bucket: Bucket) -> bool:
        return bucket.earmark and not include_earmarked

    result = cascade(new_overflow, buckets, exclude)

    parts = [
        f"You will be over budget in {target.name} by "
        f"{format_money(new_total - target.category_limit)}."
    ]
    if result.allocations:
        donors = ", ".join(
            f"{snapshot.get(a.category_id).name} ({format_money(a.amount_absorbed)})"
            for a in result.allocations
        )
        parts.append(f"You will need to use money you are saving for {donors}.")

    already_over = [c.name for c in snapshot.over_budget() if c.id != category_id]
    if already_over:
        parts.append(f"You will have nothing left in {', '.join(already_over)}.")

    if result.unallocated_remainder > ZERO:
        parts.append(
            f"{format_money(result.unallocated_remainder)} cannot be covered by "
            f"any lower-priority category."
        )

    return ExpensePreview(
        within_budget=False,
        message=" ".join(parts),
        allocations=result.allocations,
        unallocated_remainder=result.unallocated_remainder,
    )
