#!/usr/bin/env python3

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from budget.records import parse_records
from budget.simulator import format_money
from cli.categories import find_category, parse_amount, recalculate
from logger import get_logger
from models.transaction import Transaction

logger = get_logger()


def cmd_list(args, services):
    """List transactions, optionally for one category."""
    if args.category:
        category = find_category(services, args.category)
        transactions = services.transactions.find_by_category(category.id)
    else:
        transactions = services.transactions.find_by_owner(services.owner_id)

    if not transactions:
        logger.info("No transactions found.")
        return

    names = {c.id: c.name for c in services.categories.find_all(services.owner_id)}
    for t in transactions:
        logger.info(
            f"{t.date.isoformat()}  {format_money(t.amount):>10}  "
            f"{names.get(t.category_id, '?'):<20}  {t.name}  ({t.id})"
        )

    logger.info(f"\nTotal transactions: {len(transactions)}")


def cmd_add(args, services):
    """Record a manual transaction."""
    category = find_category(services, args.category)
    transaction_date = date.fromisoformat(args.date) if args.date else date.today()

    transaction = services.transactions.create(
        Transaction.new(category.id, args.amount, args.name, transaction_date)
    )

    logger.info(f"✓ Added {format_money(transaction.amount)} to '{category.name}'")
    logger.info(f"  ID: {transaction.id}")
    recalculate(services)


def cmd_set_category(args, services):
    """Move a transaction to another category."""
    transaction = services.transactions.find(args.transaction_id)
    if not transaction:
        logger.error(f"Transaction with ID '{args.transaction_id}' not found.")
        sys.exit(1)

    category = find_category(services, args.category)
    if not services.transactions.update_category(transaction.id, category.id):
        logger.error("Failed to update transaction.")
        sys.exit(1)

    logger.info("✓ Transaction categorized successfully")
    logger.info(f"  Transaction: {transaction.name[:50]}")
    logger.info(f"  Category: {category.name}")
    recalculate(services)


def cmd_delete(args, services):
    """Delete a transaction by ID."""
    if not services.transactions.delete(args.transaction_id):
        logger.error(f"Transaction with ID '{args.transaction_id}' not found.")
        sys.exit(1)

    logger.info("✓ Transaction deleted")
    recalculate(services)


def import_records(services, data: dict):
    """Create missing categories and upsert transactions from plain records.

    Args:
        services: Services container.
        data: Dictionary with "categories" and "transactions" lists.

    Returns:
        Tuple of (categories created, transactions written).

    Raises:
        pydantic.ValidationError: If the records are malformed.
        ValueError: If a transaction references an unknown category.
    """
    records = parse_records(data)
    owner_id = services.owner_id

    ids = {c.name: c.id for c in services.categories.find_all(owner_id)}
    created = 0
    for record in records.ordered_categories():
        if record.name in ids:
            logger.info(f"⊘ Skipped '{record.name}' (already exists)")
            continue
        parent_id = ids.get(record.parent) if record.parent else None
        if record.parent and parent_id is None:
            raise ValueError(f"Unknown parent '{record.parent}' for '{record.name}'")
        category = services.categories.create(
            owner_id,
            record.name,
            parent_id=parent_id,
            priority_value=record.priority_value,
            category_limit=record.category_limit,
            earmark=record.earmark,
        )
        ids[category.name] = category.id
        created += 1

    transactions = []
    for record in records.transactions:
        if record.category not in ids:
            raise ValueError(
                f"Transaction {record.id} references unknown category '{record.category}'"
            )
        transactions.append(record.to_transaction(ids[record.category]))

    written = services.transactions.bulk_create(transactions)
    return created, written


def cmd_import(args, services):
    """Import categories and transactions from a JSON file."""
    path = Path(args.json_file)
    if not path.exists():
        logger.error(f"File not found: {args.json_file}")
        sys.exit(1)

    try:
        with open(path, "r") as f:
            data = json.load(f)
        created, written = import_records(services, data)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)
    except ValidationError as e:
        logger.error(f"Invalid records in {path.name}:\n{e}")
        sys.exit(1)

    logger.info(f"✓ Created {created} categories, wrote {written} transactions")
    recalculate(services)


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Record and manage transactions",
        description="Add, move, delete and import transactions",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    # transactions list
    list_parser = transactions_subparsers.add_parser("list", help="List transactions")
    list_parser.add_argument("--category", help="Only this category (name or ID)")
    list_parser.set_defaults(func=cmd_list)

    # transactions add
    add_parser = transactions_subparsers.add_parser(
        "add", help="Record a transaction manually"
    )
    add_parser.add_argument("category", help="Category name or ID")
    add_parser.add_argument("amount", type=parse_amount, help="Amount (expenses positive)")
    add_parser.add_argument("name", help="Description, e.g. merchant name")
    add_parser.add_argument("--date", help="Date in YYYY-MM-DD format (default: today)")
    add_parser.set_defaults(func=cmd_add)

    # transactions set-category
    set_category_parser = transactions_subparsers.add_parser(
        "set-category",
        help="Set category for a transaction",
        description="Assign a transaction to another category",
    )
    set_category_parser.add_argument("transaction_id", help="Transaction ID")
    set_category_parser.add_argument("category", help="Category name or ID")
    set_category_parser.set_defaults(func=cmd_set_category)

    # transactions delete
    delete_parser = transactions_subparsers.add_parser(
        "delete", help="Delete a transaction"
    )
    delete_parser.add_argument("transaction_id", help="Transaction ID")
    delete_parser.set_defaults(func=cmd_delete)

    # transactions import
    import_parser = transactions_subparsers.add_parser(
        "import",
        help="Import categories and transactions from JSON",
        epilog="""
File format:
  {"categories": [{"name": "Food", "priority_value": 1, "category_limit": 400},
                  {"name": "Groceries", "parent": "Food", "category_limit": 300}],
   "transactions": [{"id": "tx-1", "category": "Groceries", "amount": 42.5,
                     "name": "Market", "date": "2025-01-15"}]}
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    import_parser.add_argument("json_file", help="Path to the JSON file")
    import_parser.set_defaults(func=cmd_import)
