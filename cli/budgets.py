#!/usr/bin/env python3

from budget.simulator import format_money
from cli.categories import find_category, parse_amount, recalculate
from logger import get_logger

logger = get_logger()


def cmd_recalculate(args, services):
    """Recompute absorbed overflow for every category."""
    result = recalculate(services)

    if not result.sources:
        logger.info("✓ No category is over budget.")
        return

    names = {c.id: c.name for c in services.categories.find_all(services.owner_id)}
    for source in result.sources:
        logger.info(
            f"{names[source.category_id]} is over budget by {format_money(source.overflow)}"
        )
        for allocation in source.allocations:
            logger.info(
                f"  → {names[allocation.category_id]} absorbs "
                f"{format_money(allocation.amount_absorbed)}"
            )
        if source.unallocated_remainder > 0:
            logger.info(
                f"  {format_money(source.unallocated_remainder)} remains unallocated"
            )


def cmd_simulate(args, services):
    """Narrate what an extra expense would do. Nothing is saved."""
    category = find_category(services, args.category)
    narrative = services.budget.simulate(
        services.owner_id,
        category.id,
        args.amount,
        include_earmarked=True if args.include_earmarked else None,
    )
    logger.info(narrative)


def cmd_preview(args, services):
    """Check whether one new expense fits in a category."""
    category = find_category(services, args.category)
    preview = services.budget.preview_expense(services.owner_id, category.id, args.price)

    marker = "✓" if preview.within_budget else "✗"
    logger.info(f"{marker} {preview.message}")


def cmd_status(args, services):
    """Show spend against limits per top-level category."""
    rows = services.budget.status(services.owner_id)

    if not rows:
        logger.info("No categories found.")
        return

    logger.info(
        f"{'Category':<24} {'Limit':>10} {'Spent':>10} {'Remaining':>10} "
        f"{'Earmarked':>10} {'Absorbed':>10}"
    )
    logger.info("=" * 80)
    for row in rows:
        limit = format_money(row.category_limit) if row.category_limit is not None else "-"
        remaining = format_money(row.remaining) if row.remaining is not None else "-"
        logger.info(
            f"{row.name:<24} {limit:>10} {format_money(row.rollup_spent):>10} "
            f"{remaining:>10} {format_money(row.earmarked_limit):>10} "
            f"{format_money(row.priority_expenses):>10}"
        )


def setup_parser(subparsers):
    """Setup budget subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "budget",
        help="Overflow redistribution and previews",
        description="Recalculate, simulate and preview overspending",
    )

    budget_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available budget commands",
        dest="subcommand",
        required=True,
    )

    # budget recalculate
    recalculate_parser = budget_subparsers.add_parser(
        "recalculate", help="Redistribute overspending onto lower priorities"
    )
    recalculate_parser.set_defaults(func=cmd_recalculate)

    # budget simulate
    simulate_parser = budget_subparsers.add_parser(
        "simulate", help="Preview the cascade of a hypothetical expense"
    )
    simulate_parser.add_argument("category", help="Category name or ID")
    simulate_parser.add_argument("amount", type=parse_amount, help="Hypothetical amount")
    simulate_parser.add_argument(
        "--include-earmarked",
        action="store_true",
        help="Let earmarked subcategories absorb overflow",
    )
    simulate_parser.set_defaults(func=cmd_simulate)

    # budget preview
    preview_parser = budget_subparsers.add_parser(
        "preview", help="Check whether one new expense fits"
    )
    preview_parser.add_argument("category", help="Category name or ID")
    preview_parser.add_argument("price", type=parse_amount, help="Price of the expense")
    preview_parser.set_defaults(func=cmd_preview)

    # budget status
    status_parser = budget_subparsers.add_parser(
        "status", help="Show spend against limits"
    )
    status_parser.set_defaults(func=cmd_status)
