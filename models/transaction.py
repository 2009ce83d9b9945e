from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import uuid


@dataclass
class Transaction:
    id: str
    category_id: int  # the one category this transaction is assigned to
    amount: Decimal  # signed, expense-positive
    name: str
    date: date

    @classmethod
    def new(
        cls,
        category_id: int,
        amount: Decimal,
        name: str,
        transaction_date: date,
    ) -> "Transaction":
        """Create a manually entered Transaction with a generated ID."""
        return cls(
            id=uuid.uuid4().hex,
            category_id=category_id,
            amount=amount,
            name=name,
            date=transaction_date,
        )

    def to_dict(self) -> dict:
        """Convert transaction to dictionary for database storage."""
        return {
            "id": self.id,
            "category_id": self.category_id,
            "amount": float(self.amount),
            "name": self.name,
            "date": self.date.isoformat(),
        }
