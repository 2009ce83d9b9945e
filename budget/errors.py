"""Errors raised by budget operations.

A cascade that cannot place all of an overflow is not an error: the leftover
is returned as a remainder and reported to the user.
"""


class BudgetError(Exception):
    """Base class for budget errors."""


class InvalidLimit(BudgetError):
    """A category limit would be smaller than the sum of its children's limits."""

    def __init__(self, category_name: str, limit, children_total):
        self.category_name = category_name
        self.limit = limit
        self.children_total = children_total
        super().__init__(
            f"Limit {limit} for '{category_name}' is less than the sum of "
            f"its subcategory limits ({children_total})"
        )


class UnknownCategory(BudgetError):
    """A referenced category is not part of the owner's categories."""

    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__(f"Category with ID {category_id} not found")


class NegativeAmount(BudgetError, ValueError):
    """An amount that must be non-negative was negative."""

    def __init__(self, amount, what: str = "amount"):
        self.amount = amount
        super().__init__(f"{what} cannot be negative (got {amount})")


class InvalidParent(BudgetError):
    """A category cannot be placed under the requested parent."""
