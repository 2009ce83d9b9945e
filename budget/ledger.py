"""Ledger aggregation: per-category spend and the snapshot cascades run on."""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from budget.errors import UnknownCategory
from logger import get_logger
from models.category import Category
from models.transaction import Transaction

logger = get_logger("budget.ledger")

ZERO = Decimal("0")


def compute_spent(
    categories: Iterable[Category], transactions: Iterable[Transaction]
) -> Dict[int, Decimal]:
    """Sum the transactions directly assigned to each category.

    Args:
        categories: All categories of one owner.
        transactions: All transactions of the same owner.

    Returns:
        Dictionary mapping every category id to its spend (zero when it has no
        transactions). Transactions assigned to a category outside the set are
        skipped with a warning.
    """
    spent = {c.id: ZERO for c in categories}

    for transaction in transactions:
        if transaction.category_id not in spent:
            logger.warning(
                f"Skipping transaction {transaction.id}: "
                f"category {transaction.category_id} is not in the snapshot"
            )
            continue
        spent[transaction.category_id] += Decimal(transaction.amount)

    return spent


def compute_rollup(
    categories: Iterable[Category], spent: Mapping[int, Decimal]
) -> Dict[int, Decimal]:
    """Roll each category's children spend into its own total.

    Args:
        categories: All categories of one owner.
        spent: Per-category spend from compute_spent.

    Returns:
        Dictionary mapping category id to spent + sum(direct children spent).
    """
    categories = list(categories)
    rollup = {c.id: spent.get(c.id, ZERO) for c in categories}

    for category in categories:
        if category.parent_id is not None and category.parent_id in rollup:
            rollup[category.parent_id] += spent.get(category.id, ZERO)

    return rollup


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of one owner's categories and their spend.

    Cascades never mutate a snapshot; hypothetical spend produces a copy.
    """

    categories: List[Category]
    spent: Dict[int, Decimal] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "_by_id", {c.id: c for c in self.categories})

    def get(self, category_id: int) -> Category:
        """Return a category by id.

        Raises:
            UnknownCategory: If the id is not part of this snapshot.
        """
        try:
            return self._by_id[category_id]
        except KeyError:
            raise UnknownCategory(category_id) from None

    def __contains__(self, category_id) -> bool:
        return category_id in self._by_id

    def spent_for(self, category_id: int) -> Decimal:
        return self.spent.get(category_id, ZERO)

    def children(self, parent_id: int) -> List[Category]:
        return [c for c in self.categories if c.parent_id == parent_id]

    def overflow(self, category_id: int) -> Decimal:
        """Spend beyond the category's limit; zero when unlimited or within it."""
        category = self.get(category_id)
        if category.category_limit is None:
            return ZERO
        return max(ZERO, self.spent_for(category_id) - category.category_limit)

    def over_budget(self) -> List[Category]:
        """Categories whose spend currently exceeds their limit."""
        return [c for c in self.categories if self.overflow(c.id) > ZERO]

    def with_extra_spend(self, category_id: int, amount: Decimal) -> "Snapshot":
        """Return a copy where one category has spent `amount` more.

        Raises:
            UnknownCategory: If the id is not part of this snapshot.
        """
        self.get(category_id)
        spent = dict(self.spent)
        spent[category_id] = spent.get(category_id, ZERO) + Decimal(amount)
        return Snapshot(categories=[replace(c) for c in self.categories], spent=spent)


def build_snapshot(
    categories: Iterable[Category], transactions: Iterable[Transaction]
) -> Snapshot:
    """Aggregate transactions into a Snapshot."""
    categories = list(categories)
    return Snapshot(categories=categories, spent=compute_spent(categories, transactions))


@dataclass
class CategoryTotals:
    """Budget overview for one top-level category and its subcategories."""

    category_id: int
    name: str
    category_limit: Optional[Decimal]
    spent: Decimal
    rollup_spent: Decimal
    earmarked_limit: Decimal
    priority_expenses: Decimal

    @property
    def remaining(self) -> Optional[Decimal]:
        if self.category_limit is None:
            return None
        return self.category_limit - self.rollup_spent


def summarize(
    snapshot: Snapshot, priority_expenses: Optional[Mapping[int, Decimal]] = None
) -> List[CategoryTotals]:
    """Build one CategoryTotals row per top-level category.

    Args:
        snapshot: Snapshot to summarize.
        priority_expenses: Absorbed overflow per category. Defaults to the
                           values stored on the snapshot's categories.

    Returns:
        Rows in snapshot order.
    """
    if priority_expenses is None:
        priority_expenses = {c.id: c.priority_expenses for c in snapshot.categories}

    rollup = compute_rollup(snapshot.categories, snapshot.spent)

    rows = []
    for category in snapshot.categories:
        if not category.is_top_level:
            continue
        children = snapshot.children(category.id)
        rows.append(
            CategoryTotals(
                category_id=category.id,
                name=category.name,
                category_limit=category.category_limit,
                spent=snapshot.spent_for(category.id),
                rollup_spent=rollup[category.id],
                earmarked_limit=sum(
                    (
                        c.category_limit
                        for c in children
                        if c.earmark and c.category_limit is not None
                    ),
                    ZERO,
                ),
                priority_expenses=sum(
                    (priority_expenses.get(c.id, ZERO) for c in children), ZERO
                ),
            )
        )
    return rows
