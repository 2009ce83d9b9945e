"""Budget service: recalculation, simulation and expense previews per owner."""

import threading
import weakref
from decimal import Decimal
from typing import List, Optional

from budget.errors import NegativeAmount
from budget.ledger import CategoryTotals, Snapshot, build_snapshot, summarize
from budget.ordering import Direction
from budget.redistribution import RedistributionResult, redistribute
from budget.simulator import ExpensePreview, preview_expense, simulate
from db.manager import write_transaction
from logger import get_logger
from services.categories import CATEGORY_SELECT_FIELDS, row_to_category
from services.transactions import TRANSACTION_SELECT_FIELDS, row_to_transaction

logger = get_logger("services.budget")

# One lock per owner; recalculations for the same owner never overlap. Entries
# vanish once no recalculation holds the lock.
_owner_locks = weakref.WeakValueDictionary()
_owner_locks_guard = threading.Lock()


def _lock_for(owner_id: str) -> threading.Lock:
    with _owner_locks_guard:
        lock = _owner_locks.get(owner_id)
        if lock is None:
            lock = threading.Lock()
            _owner_locks[owner_id] = lock
        return lock


def _load_snapshot(conn, owner_id: str) -> Snapshot:
    cursor = conn.execute(
        f"""
        SELECT {CATEGORY_SELECT_FIELDS}
        FROM categories
        WHERE owner_id = ?
        ORDER BY priority_value, id
        """,
        (owner_id,),
    )
    categories = [row_to_category(row) for row in cursor.fetchall()]

    cursor = conn.execute(
        f"""
        SELECT {TRANSACTION_SELECT_FIELDS}
        FROM transactions t
        JOIN categories c ON t.category_id = c.id
        WHERE c.owner_id = ?
        """,
        (owner_id,),
    )
    transactions = [row_to_transaction(row) for row in cursor.fetchall()]

    return build_snapshot(categories, transactions)


class BudgetService:
    """Runs the overflow cascade against an owner's stored categories.

    Args:
        db_manager: Database manager instance for database operations.
        direction: Priority direction used by every cascade.
        include_earmarked: Let earmarked subcategories absorb overflow. Used by
                           recalculate() and preview_expense(), and by simulate()
                           when the caller does not say.
    """

    def __init__(
        self,
        db_manager,
        direction: Direction = Direction.ASCENDING,
        include_earmarked: bool = False,
    ):
        self.db_manager = db_manager
        self.direction = Direction.parse(direction)
        self.include_earmarked = include_earmarked

    def snapshot(self, owner_id: str) -> Snapshot:
        """Read the owner's categories and spend."""
        with self.db_manager.connect() as conn:
            return _load_snapshot(conn, owner_id)

    def recalculate(self, owner_id: str) -> RedistributionResult:
        """Recompute and store priority_expenses for every category of an owner.

        The read, the cascade and the write-back happen inside one immediate
        write transaction while holding the owner's lock, so overlapping runs
        are serialized and a failed run leaves the stored values untouched.

        Args:
            owner_id: Owner to recalculate.

        Returns:
            The RedistributionResult that was written. Its unallocated_total
            is the overflow no category could absorb.
        """
        with _lock_for(owner_id):
            with self.db_manager.connect() as conn:
                with write_transaction(conn):
                    snapshot = _load_snapshot(conn, owner_id)
                    result = redistribute(
                        snapshot, self.direction, self.include_earmarked
                    )

                    previous = {c.id: c.priority_expenses for c in snapshot.categories}
                    changed = sum(
                        1
                        for category_id, value in result.priority_expenses.items()
                        if previous.get(category_id) != value
                    )

                    conn.executemany(
                        "UPDATE categories SET priority_expenses = ? WHERE id = ? AND owner_id = ?",
                        [
                            (float(value), category_id, owner_id)
                            for category_id, value in result.priority_expenses.items()
                        ],
                    )

        logger.info(
            f"Recalculated {len(result.priority_expenses)} categories for owner "
            f"'{owner_id}' ({changed} changed, {len(result.sources)} over budget)"
        )
        if result.unallocated_total > 0:
            logger.warning(
                f"Owner '{owner_id}': {result.unallocated_total} of overflow "
                f"could not be absorbed by any category"
            )
        return result

    def simulate(
        self,
        owner_id: str,
        category_id: int,
        amount,
        include_earmarked: Optional[bool] = None,
    ) -> str:
        """Narrate what spending `amount` in a category would do. Writes nothing.

        Raises:
            UnknownCategory: If the category does not belong to the owner.
            NegativeAmount: If amount is negative.
        """
        amount = Decimal(str(amount))
        if amount < 0:
            raise NegativeAmount(amount)
        if include_earmarked is None:
            include_earmarked = self.include_earmarked

        simulation = simulate(
            self.snapshot(owner_id),
            category_id,
            amount,
            include_earmarked=include_earmarked,
            direction=self.direction,
        )
        return simulation.narrative

    def preview_expense(self, owner_id: str, category_id: int, price) -> ExpensePreview:
        """Check whether a new expense fits in a category. Writes nothing.

        Raises:
            UnknownCategory: If the category does not belong to the owner.
            NegativeAmount: If price is negative.
        """
        price = Decimal(str(price))
        if price < 0:
            raise NegativeAmount(price, "price")

        return preview_expense(
            self.snapshot(owner_id),
            category_id,
            price,
            include_earmarked=self.include_earmarked,
            direction=self.direction,
        )

    def status(self, owner_id: str) -> List[CategoryTotals]:
        """Per top-level category totals using the stored priority_expenses."""
        return summarize(self.snapshot(owner_id))
