"""Budget cascade: overflow redistribution over a tree of categories."""

from budget.allocator import Allocation, Bucket, CascadeResult, cascade
from budget.errors import (
    BudgetError,
    InvalidLimit,
    InvalidParent,
    NegativeAmount,
    UnknownCategory,
)
from budget.ledger import Snapshot, build_snapshot, compute_rollup, compute_spent
from budget.ordering import Direction, cascade_order, order_categories
from budget.redistribution import RedistributionResult, redistribute
from budget.simulator import ExpensePreview, Simulation, preview_expense, simulate

__all__ = [
    "Allocation",
    "Bucket",
    "BudgetError",
    "CascadeResult",
    "Direction",
    "ExpensePreview",
    "InvalidLimit",
    "InvalidParent",
    "NegativeAmount",
    "RedistributionResult",
    "Simulation",
    "Snapshot",
    "UnknownCategory",
    "build_snapshot",
    "cascade",
    "cascade_order",
    "compute_rollup",
    "compute_spent",
    "order_categories",
    "preview_expense",
    "redistribute",
    "simulate",
]
