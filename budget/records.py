"""Validation of plain category and transaction records supplied by collaborators.

Records arrive as JSON-like dictionaries (an export file, a sync job, a REST
payload). Pydantic checks their shape before they become domain models.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models.category import Category
from models.transaction import Transaction


class CategoryRecord(BaseModel):
    """A category as exchanged with collaborators.

    Parents are referenced by name so a file can be imported into a database
    that assigns its own ids.
    """

    name: str = Field(min_length=1)
    parent: Optional[str] = None
    priority_value: int = 0
    category_limit: Optional[Decimal] = Field(default=None, ge=0)
    earmark: bool = False

    def to_category(self, category_id: int, owner_id: str, parent_id: Optional[int]) -> Category:
        return Category(
            id=category_id,
            name=self.name,
            parent_id=parent_id,
            priority_value=self.priority_value,
            category_limit=self.category_limit,
            earmark=self.earmark,
            owner_id=owner_id,
        )


class TransactionRecord(BaseModel):
    """A normalized transaction, assigned to a category by name."""

    id: str = Field(min_length=1)
    category: str = Field(min_length=1)
    amount: Decimal
    name: str = "name_unknown"
    date: date

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, value):
        return value or "name_unknown"

    def to_transaction(self, category_id: int) -> Transaction:
        return Transaction(
            id=self.id,
            category_id=category_id,
            amount=self.amount,
            name=self.name,
            date=self.date,
        )


class SnapshotRecords(BaseModel):
    """Top-level shape of an import file."""

    categories: List[CategoryRecord] = Field(default_factory=list)
    transactions: List[TransactionRecord] = Field(default_factory=list)

    @field_validator("categories")
    @classmethod
    def _check_tree(cls, categories: List[CategoryRecord]) -> List[CategoryRecord]:
        names = [c.name for c in categories]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate category names: {', '.join(duplicates)}")

        by_name = {c.name: c for c in categories}
        for record in categories:
            if record.parent is None or record.parent not in by_name:
                continue
            if by_name[record.parent].parent is not None:
                raise ValueError(
                    f"'{record.name}' cannot be placed under '{record.parent}', "
                    f"which is itself a subcategory"
                )
        return categories

    def ordered_categories(self) -> List[CategoryRecord]:
        """Categories with every parent listed before its children."""
        return sorted(self.categories, key=lambda c: c.parent is not None)


def parse_records(data: dict) -> SnapshotRecords:
    """Validate a dictionary of records.

    Raises:
        pydantic.ValidationError: If the records are malformed.
    """
    return SnapshotRecords.model_validate(data)
