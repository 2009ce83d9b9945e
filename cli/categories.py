#!/usr/bin/env python3

import argparse
import sys
from decimal import Decimal, InvalidOperation

from budget.ordering import cascade_order
from budget.simulator import format_money
from logger import get_logger

logger = get_logger()


def parse_amount(value: str) -> Decimal:
    """argparse type for monetary amounts."""
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value}") from None


def parse_limit(value: str):
    """argparse type for a limit; 'none' clears it."""
    if value.lower() == "none":
        return None
    return parse_amount(value)


def find_category(services, value: str):
    """Look up one of the owner's categories by ID or name, exiting if not found."""
    category = None
    try:
        category = services.categories.find(int(value))
        if category and category.owner_id != services.owner_id:
            category = None
    except ValueError:
        # Not a number, try as category name
        category = services.categories.find_by_name(services.owner_id, value)

    if not category:
        logger.error(f"Category '{value}' not found.")
        logger.info("Use 'python -m cli categories list' to see available categories.")
        sys.exit(1)

    return category


def recalculate(services):
    """Refresh priority_expenses after a change and report leftover overflow."""
    result = services.budget.recalculate(services.owner_id)
    if result.unallocated_total > 0:
        logger.warning(
            f"{format_money(result.unallocated_total)} of overspending could not "
            f"be covered by lower-priority categories."
        )
    return result


def cmd_list(args, services):
    """List categories in cascade order with limits and spend."""
    snapshot = services.budget.snapshot(services.owner_id)

    if not snapshot.categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories (highest priority first):")
    logger.info("=" * 80)
    for category in cascade_order(snapshot.categories, services.budget.direction):
        indent = "  " if category.parent_id else ""
        limit = (
            format_money(category.category_limit)
            if category.category_limit is not None
            else "no limit"
        )
        line = (
            f"{indent}[{category.priority_value}] {category.name} (ID: {category.id}) "
            f"- spent {format_money(snapshot.spent_for(category.id))} of {limit}"
        )
        if category.priority_expenses:
            line += f", absorbed {format_money(category.priority_expenses)}"
        if category.earmark:
            line += " [earmarked]"
        logger.info(line)

    logger.info(f"\nTotal categories: {len(snapshot.categories)}")


def cmd_create(args, services):
    """Create a new category."""
    parent_id = None
    if args.parent:
        parent_id = find_category(services, args.parent).id

    category = services.categories.create(
        services.owner_id,
        args.name,
        parent_id=parent_id,
        priority_value=args.priority,
        category_limit=args.limit,
        earmark=args.earmark,
    )

    logger.info(f"✓ Category created successfully with ID: {category.id}")
    recalculate(services)


def cmd_set_limit(args, services):
    """Set or clear a category's limit."""
    category = find_category(services, args.category)
    services.categories.set_limit(category.id, args.limit)

    logger.info(f"✓ Limit of '{category.name}' set to {args.limit or 'no limit'}")
    recalculate(services)


def cmd_set_parent(args, services):
    """Move a category under another one, or make it top-level."""
    category = find_category(services, args.category)
    parent_id = None
    if args.parent.lower() != "none":
        parent_id = find_category(services, args.parent).id

    services.categories.set_parent(category.id, parent_id)

    logger.info(f"✓ Moved '{category.name}'")
    recalculate(services)


def cmd_reorder(args, services):
    """Set priority values, e.g. 'Rent=1 Groceries=2'."""
    updates = []
    for pair in args.assignments:
        name, _, value = pair.rpartition("=")
        if not name:
            logger.error(f"Expected CATEGORY=PRIORITY, got '{pair}'.")
            sys.exit(1)
        try:
            priority_value = int(value)
        except ValueError:
            logger.error(f"Priority must be a whole number, got '{value}'.")
            sys.exit(1)
        updates.append((find_category(services, name).id, priority_value))

    count = services.categories.reorder(updates)

    logger.info(f"✓ Reordered {count} categories")
    recalculate(services)


def cmd_delete(args, services):
    """Delete a category by ID or name."""
    category = find_category(services, args.category)

    if not args.yes:
        confirm = (
            input(f"Delete category '{category.name}'? (yes/no): ").strip().lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    if services.categories.delete(category.id):
        logger.info(f"✓ Category '{category.name}' deleted successfully.")
        recalculate(services)
    else:
        logger.error("Failed to delete category.")
        sys.exit(1)


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, limit and reorder budget categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="List all categories")
    list_parser.set_defaults(func=cmd_list)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category"
    )
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("--parent", help="Parent category name or ID")
    create_parser.add_argument(
        "--priority", type=int, default=0, help="Priority value (default: 0)"
    )
    create_parser.add_argument("--limit", type=parse_amount, help="Spending limit")
    create_parser.add_argument(
        "--earmark", action="store_true", help="Reserve this subcategory"
    )
    create_parser.set_defaults(func=cmd_create)

    # categories set-limit
    limit_parser = categories_subparsers.add_parser(
        "set-limit", help="Set a category's spending limit"
    )
    limit_parser.add_argument("category", help="Category name or ID")
    limit_parser.add_argument(
        "limit", type=parse_limit, help="New limit, or 'none' to remove it"
    )
    limit_parser.set_defaults(func=cmd_set_limit)

    # categories set-parent
    parent_parser = categories_subparsers.add_parser(
        "set-parent", help="Move a category under another category"
    )
    parent_parser.add_argument("category", help="Category name or ID")
    parent_parser.add_argument(
        "parent", help="Parent category name or ID, or 'none' for top-level"
    )
    parent_parser.set_defaults(func=cmd_set_parent)

    # categories reorder
    reorder_parser = categories_subparsers.add_parser(
        "reorder",
        help="Change priority values",
        epilog="""
Examples:
  python -m cli categories reorder Rent=1 Groceries=2 Fun=3
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    reorder_parser.add_argument(
        "assignments", nargs="+", help="CATEGORY=PRIORITY pairs"
    )
    reorder_parser.set_defaults(func=cmd_reorder)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category"
    )
    delete_parser.add_argument("category", help="Category name or ID")
    delete_parser.add_argument(
        "--yes", action="store_true", help="Do not ask for confirmation"
    )
    delete_parser.set_defaults(func=cmd_delete)
