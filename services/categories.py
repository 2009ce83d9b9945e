"""Category service for database operations."""

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from budget.errors import BudgetError, InvalidLimit, InvalidParent, NegativeAmount, UnknownCategory
from db.manager import write_transaction
from logger import get_logger
from models.category import Category

logger = get_logger("services.categories")

CATEGORY_SELECT_FIELDS = """id, name, parent_id, priority_value, category_limit,
       earmark, priority_expenses, owner_id"""


def row_to_category(row: tuple) -> Category:
    """Convert a database row selected with CATEGORY_SELECT_FIELDS to a Category."""
    return Category(
        id=row[0],
        name=row[1],
        parent_id=row[2],
        priority_value=row[3],
        category_limit=Decimal(str(row[4])) if row[4] is not None else None,
        earmark=bool(row[5]),
        priority_expenses=Decimal(str(row[6])),
        owner_id=row[7],
    )


def _to_limit(category_limit) -> Optional[Decimal]:
    if category_limit is None:
        return None
    category_limit = Decimal(str(category_limit))
    if category_limit < 0:
        raise NegativeAmount(category_limit, "category_limit")
    return category_limit


class CategoryService:
    """Service for managing budget categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self, owner_id: str) -> List[Category]:
        """Get all categories of an owner.

        Args:
            owner_id: Owner whose categories to return.

        Returns:
            List of Category objects, ordered by priority_value then id.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE owner_id = ?
                ORDER BY priority_value, id
                """,
                (owner_id,),
            )
            return [row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            return self._find(conn, category_id)

    def find_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        """Get a single category by name (case-sensitive).

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {CATEGORY_SELECT_FIELDS} FROM categories WHERE owner_id = ? AND name = ?",
                (owner_id, name),
            )
            row = cursor.fetchone()
            return row_to_category(row) if row else None

    def create(
        self,
        owner_id: str,
        name: str,
        parent_id: Optional[int] = None,
        priority_value: int = 0,
        category_limit=None,
        earmark: bool = False,
    ) -> Category:
        """Create a new category.

        Args:
            owner_id: Owner of the new category.
            name: Category name (unique per owner).
            parent_id: Optional top-level category to nest this one under.
            priority_value: Position in the cascade order.
            category_limit: Optional non-negative spending cap.
            earmark: Mark a subcategory as a reserved bucket.

        Returns:
            The created Category object with id populated.

        Raises:
            InvalidParent: If the parent is missing, belongs to another owner,
                           or is itself a subcategory.
            InvalidLimit: If the parent's limit cannot cover the new limit.
            NegativeAmount: If category_limit is negative.
            sqlite3.IntegrityError: If the name is already used by this owner.
        """
        category_limit = _to_limit(category_limit)

        with self.db_manager.connect() as conn:
            with write_transaction(conn):
                if parent_id is not None:
                    parent = self._check_parent(conn, owner_id, parent_id)
                    self._check_parent_limit(conn, parent, None, category_limit)

                cursor = conn.execute(
                    """
                    INSERT INTO categories
                        (owner_id, name, parent_id, priority_value, category_limit, earmark)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        owner_id,
                        name,
                        parent_id,
                        priority_value,
                        float(category_limit) if category_limit is not None else None,
                        int(earmark),
                    ),
                )
                category_id = cursor.lastrowid

        logger.info(f"Created category '{name}' (ID: {category_id})")
        return Category(
            id=category_id,
            name=name,
            parent_id=parent_id,
            priority_value=priority_value,
            category_limit=category_limit,
            earmark=earmark,
            owner_id=owner_id,
        )

    def update(self, category_id: int, name: str, earmark: bool = False) -> Category:
        """Rename a category and set its earmark flag.

        Raises:
            UnknownCategory: If the category does not exist.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "UPDATE categories SET name = ?, earmark = ? WHERE id = ?",
                (name, int(earmark), category_id),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise UnknownCategory(category_id)

            return self._find(conn, category_id)

    def set_limit(self, category_id: int, category_limit) -> Category:
        """Set or clear a category's limit.

        A limit may not be smaller than the sum of the category's children's
        limits, and a subcategory's new limit must still fit in its parent's.

        Args:
            category_id: Category to update.
            category_limit: New non-negative limit, or None to remove it.

        Returns:
            The updated Category.

        Raises:
            UnknownCategory: If the category does not exist.
            InvalidLimit: If the change would break the parent/child limit rule.
            NegativeAmount: If category_limit is negative.
        """
        category_limit = _to_limit(category_limit)

        with self.db_manager.connect() as conn:
            with write_transaction(conn):
                category = self._find(conn, category_id)
                if category is None:
                    raise UnknownCategory(category_id)

                if category_limit is not None:
                    children_total = self._children_limit_total(conn, category_id)
                    if category_limit < children_total:
                        raise InvalidLimit(category.name, category_limit, children_total)

                if category.parent_id is not None:
                    parent = self._find(conn, category.parent_id)
                    self._check_parent_limit(conn, parent, category_id, category_limit)

                conn.execute(
                    "UPDATE categories SET category_limit = ? WHERE id = ?",
                    (
                        float(category_limit) if category_limit is not None else None,
                        category_id,
                    ),
                )

            category.category_limit = category_limit
            logger.info(f"Set limit of '{category.name}' to {category_limit}")
            return category

    def set_parent(self, category_id: int, parent_id: Optional[int]) -> Category:
        """Move a category under a new parent, or make it top-level.

        Raises:
            UnknownCategory: If the category does not exist.
            InvalidParent: If the move would nest deeper than two levels.
            InvalidLimit: If the new parent's limit cannot cover the category.
        """
        with self.db_manager.connect() as conn:
            with write_transaction(conn):
                category = self._find(conn, category_id)
                if category is None:
                    raise UnknownCategory(category_id)

                if parent_id is not None:
                    if parent_id == category_id:
                        raise InvalidParent("A category cannot be its own parent")
                    parent = self._check_parent(conn, category.owner_id, parent_id)
                    if self._has_children(conn, category_id):
                        raise InvalidParent(
                            f"'{category.name}' has subcategories and cannot become one"
                        )
                    self._check_parent_limit(
                        conn, parent, category_id, category.category_limit
                    )

                conn.execute(
                    "UPDATE categories SET parent_id = ? WHERE id = ?",
                    (parent_id, category_id),
                )

            category.parent_id = parent_id
            return category

    def set_priority(self, category_id: int, priority_value: int) -> bool:
        """Set one category's priority value.

        Returns:
            True if the category was updated, False if not found.
        """
        return self.reorder([(category_id, priority_value)]) > 0

    def reorder(self, updates: Iterable[Tuple[int, int]]) -> int:
        """Apply a batch of (category_id, priority_value) pairs atomically.

        Args:
            updates: Pairs to apply, e.g. from a drag-and-drop reorder.

        Returns:
            Number of categories updated.
        """
        updates = [(priority_value, category_id) for category_id, priority_value in updates]
        if not updates:
            return 0

        with self.db_manager.connect() as conn:
            with write_transaction(conn):
                cursor = conn.executemany(
                    "UPDATE categories SET priority_value = ? WHERE id = ?", updates
                )
                count = cursor.rowcount

        logger.info(f"Reordered {count} categories")
        return count

    def delete(self, category_id: int) -> bool:
        """Delete a category by ID.

        Returns:
            True if category was deleted, False if not found.

        Raises:
            BudgetError: If subcategories or transactions still reference it.
        """
        with self.db_manager.connect() as conn:
            if self._has_children(conn, category_id):
                raise BudgetError(f"Category {category_id} still has subcategories")

            cursor = conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE category_id = ?", (category_id,)
            )
            if cursor.fetchone()[0] > 0:
                raise BudgetError(f"Category {category_id} still has transactions")

            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _find(self, conn, category_id: int) -> Optional[Category]:
        cursor = conn.execute(
            f"SELECT {CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
            (category_id,),
        )
        row = cursor.fetchone()
        return row_to_category(row) if row else None

    def _has_children(self, conn, category_id: int) -> bool:
        cursor = conn.execute(
            "SELECT 1 FROM categories WHERE parent_id = ? LIMIT 1", (category_id,)
        )
        return cursor.fetchone() is not None

    def _children_limit_total(self, conn, parent_id: int, exclude_id=None) -> Decimal:
        cursor = conn.execute(
            """
            SELECT category_limit FROM categories
            WHERE parent_id = ? AND category_limit IS NOT NULL AND id IS NOT ?
            """,
            (parent_id, exclude_id),
        )
        return sum((Decimal(str(row[0])) for row in cursor.fetchall()), Decimal("0"))

    def _check_parent(self, conn, owner_id: str, parent_id: int) -> Category:
        parent = self._find(conn, parent_id)
        if parent is None or parent.owner_id != owner_id:
            raise InvalidParent(f"Parent category {parent_id} not found")
        if parent.parent_id is not None:
            raise InvalidParent(
                f"'{parent.name}' is a subcategory and cannot have subcategories"
            )
        return parent

    def _check_parent_limit(
        self,
        conn,
        parent: Category,
        child_id: Optional[int],
        child_limit: Optional[Decimal],
    ) -> None:
        """Raise InvalidLimit if the parent's limit cannot cover its children."""
        if parent.category_limit is None or child_limit is None:
            return
        total = self._children_limit_total(conn, parent.id, exclude_id=child_id) + child_limit
        if parent.category_limit < total:
            raise InvalidLimit(parent.name, parent.category_limit, total)
