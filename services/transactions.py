"""Transaction service for database operations."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from budget.errors import UnknownCategory
from db.manager import write_transaction
from models.transaction import Transaction

# SQL Query Constants
TRANSACTION_SELECT_FIELDS = "t.id, t.category_id, t.amount, t.name, t.date"

_UPSERT_SQL = """
    INSERT INTO transactions (id, category_id, amount, name, date)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        category_id = excluded.category_id,
        amount = excluded.amount,
        name = excluded.name,
        date = excluded.date
"""


def row_to_transaction(row: tuple) -> Transaction:
    """Convert a database row selected with TRANSACTION_SELECT_FIELDS to a Transaction."""
    return Transaction(
        id=row[0],
        category_id=row[1],
        amount=Decimal(str(row[2])),
        name=row[3],
        date=date.fromisoformat(row[4]),
    )


def _to_row(t: Transaction) -> tuple:
    return (t.id, t.category_id, float(t.amount), t.name, t.date.isoformat())


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db_manager):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(self, transaction: Transaction) -> Transaction:
        """Create a single transaction in the database.

        Raises:
            sqlite3.IntegrityError: If a transaction with the same ID exists.
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO transactions (id, category_id, amount, name, date)
                VALUES (?, ?, ?, ?, ?)
                """,
                _to_row(transaction),
            )
            conn.commit()

        return transaction

    def bulk_create(self, transactions: List[Transaction]) -> int:
        """Insert or update multiple transactions in a single transaction.

        Transactions are keyed by ID, so re-importing a record updates it in
        place (amount, name, date and category).

        Returns:
            Number of transactions written.

        Raises:
            Exception: If the write fails. Nothing is written in that case.
        """
        if not transactions:
            return 0

        with self.db_manager.connect() as conn:
            with write_transaction(conn):
                conn.executemany(_UPSERT_SQL, [_to_row(t) for t in transactions])

        return len(transactions)

    def find(self, transaction_id: str) -> Optional[Transaction]:
        """Get a single transaction by ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {TRANSACTION_SELECT_FIELDS} FROM transactions t WHERE t.id = ?",
                (transaction_id,),
            )
            row = cursor.fetchone()
            return row_to_transaction(row) if row else None

    def find_by_owner(self, owner_id: str) -> List[Transaction]:
        """Get all transactions in an owner's categories.

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {TRANSACTION_SELECT_FIELDS}
                FROM transactions t
                JOIN categories c ON t.category_id = c.id
                WHERE c.owner_id = ?
                ORDER BY t.date DESC, t.id
                """,
                (owner_id,),
            )
            return [row_to_transaction(row) for row in cursor.fetchall()]

    def find_by_category(self, category_id: int) -> List[Transaction]:
        """Get the transactions assigned to one category, newest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {TRANSACTION_SELECT_FIELDS}
                FROM transactions t
                WHERE t.category_id = ?
                ORDER BY t.date DESC, t.id
                """,
                (category_id,),
            )
            return [row_to_transaction(row) for row in cursor.fetchall()]

    def update_category(self, transaction_id: str, category_id: int) -> bool:
        """Reassign a transaction to another category.

        Callers should run a budget recalculation afterwards.

        Returns:
            True if the transaction was updated, False if it was not found.

        Raises:
            UnknownCategory: If the target category does not exist.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute("SELECT 1 FROM categories WHERE id = ?", (category_id,))
            if cursor.fetchone() is None:
                raise UnknownCategory(category_id)

            cursor = conn.execute(
                "UPDATE transactions SET category_id = ? WHERE id = ?",
                (category_id, transaction_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete(self, transaction_id: str) -> bool:
        """Delete a transaction by ID.

        Returns:
            True if the transaction was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
            conn.commit()
            return cursor.rowcount > 0
