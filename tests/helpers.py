"""Helper utilities for tests."""

from datetime import date
from decimal import Decimal
from pathlib import Path
import sqlite3

from models.category import Category
from models.transaction import Transaction


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text())

    conn.commit()


def category(id, name=None, parent_id=None, priority=0, limit=None, earmark=False):
    """Build an in-memory Category; limit may be given as int or str."""
    return Category(
        id=id,
        name=name or f"C{id}",
        parent_id=parent_id,
        priority_value=priority,
        category_limit=Decimal(str(limit)) if limit is not None else None,
        earmark=earmark,
    )


def spend(category_id, amount, name="Purchase", on=date(2025, 1, 15), id=None):
    """Build an in-memory Transaction."""
    return Transaction(
        id=id or f"{category_id}-{name}-{amount}",
        category_id=category_id,
        amount=Decimal(str(amount)),
        name=name,
        date=on,
    )
