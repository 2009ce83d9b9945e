#!/usr/bin/env python3
"""
Budget Buddy CLI - track spending against prioritized budget categories.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage categories, limits and priorities
    transactions Record and import transactions
    budget       Recalculate, simulate and preview overspending
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories create Food --priority 1 --limit 500
    python -m cli categories create Groceries --parent Food --limit 300
    python -m cli transactions add Groceries 42.50 "Farmers market"
    python -m cli budget simulate Groceries 120
    python -m cli budget preview Food 30
"""

import sys
import argparse

from budget.errors import BudgetError
from cli import budgets, categories, migrate, transactions
from config import load_config
from db.manager import DatabaseManager
from logger import get_logger, setup_logging
from services.base import Services


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Budget Buddy - prioritized budget tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--owner",
        help="Owner ID to act for (default: owner_id from the config file)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    transactions.setup_parser(subparsers)
    budgets.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        if args.owner:
            config.owner_id = args.owner

        setup_logging(config)

        if args.command == "migrate":
            # Migrate commands need db_manager for raw database operations
            args.func(args, DatabaseManager(config))
        else:
            args.func(args, Services(config))
    except BudgetError as e:
        get_logger().error(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
