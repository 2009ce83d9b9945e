"""Category model for budget categories and subcategories."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class Category:
    """Represents a budget category or subcategory.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Category name (unique per owner).
        parent_id: Parent category ID; None for top-level categories.
        priority_value: Rank used to order every cascade.
        category_limit: Spending cap; None means no limit is set.
        earmark: True for reserved subcategories that do not absorb overflow
                 unless explicitly included.
        priority_expenses: Overflow from other categories absorbed into this
                           category by the last recalculation.
        owner_id: The user this category belongs to.
    """

    id: int
    name: str
    parent_id: Optional[int] = None
    priority_value: int = 0
    category_limit: Optional[Decimal] = None
    earmark: bool = False
    priority_expenses: Decimal = field(default_factory=lambda: Decimal("0"))
    owner_id: str = "default"

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None

    @property
    def has_limit(self) -> bool:
        return self.category_limit is not None

    def to_dict(self) -> dict:
        """Convert category to dictionary for database storage."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "parent_id": self.parent_id,
            "priority_value": self.priority_value,
            "category_limit": (
                float(self.category_limit) if self.category_limit is not None else None
            ),
            "earmark": int(self.earmark),
            "priority_expenses": float(self.priority_expenses),
        }
