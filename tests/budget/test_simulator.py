import pytest
from decimal import Decimal

from budget.errors import NegativeAmount, UnknownCategory
from budget.ledger import build_snapshot
from budget.simulator import format_money, preview_expense, simulate
from tests.helpers import category, spend


def _snapshot(a_spent, b_limit=80, b_spent=0, b_earmark=False):
    """A (priority 1, limit 100) and subcategory B under Parent (priority 2)."""
    categories = [
        category(1, "A", priority=1, limit=100),
        category(2, "Parent", priority=2, limit=500),
        category(3, "B", parent_id=2, priority=1, limit=b_limit, earmark=b_earmark),
    ]
    transactions = [spend(1, a_spent)]
    if b_spent:
        transactions.append(spend(3, b_spent))
    return build_snapshot(categories, transactions)


class TestFormatMoney:
    """Tests for format_money."""

    def test_two_decimals(self):
        """Test amounts are shown with two decimals."""
        assert format_money(Decimal("30")) == "30.00"
        assert format_money(Decimal("12.345")) == "12.35"


class TestSimulate:
    """Tests for simulate."""

    def test_overflow_absorbed_by_subcategory(self):
        """Test the narrative for an overflow that fits."""
        simulation = simulate(_snapshot(100), 1, Decimal("50"))

        assert simulation.lines == [
            "The selected category A will be over budget by 50.00.",
            "Subcategory B absorbs 50.00 and will not be over budget.",
        ]
        assert simulation.unallocated_remainder == Decimal("0")

    def test_remainder_is_reported(self):
        """Test the final line when buckets run out."""
        simulation = simulate(_snapshot(100, b_limit=20), 1, Decimal("50"))

        assert simulation.allocations[0].amount_absorbed == Decimal("20")
        assert simulation.unallocated_remainder == Decimal("30")
        assert simulation.lines[-1] == (
            "All categories are filled, and 30.00 remains unallocated."
        )
        assert "30.00 remains unallocated" in simulation.narrative

    def test_bucket_pushed_over_budget(self):
        """Test a bucket whose own spend plus absorbed overflow exceeds its limit."""
        simulation = simulate(_snapshot(100, b_spent=70), 1, Decimal("50"))

        assert simulation.lines[1] == (
            "Subcategory B absorbs 50.00 and will be over budget by 40.00."
        )

    def test_within_budget(self):
        """Test the narrative when the expense fits the limit."""
        simulation = simulate(_snapshot(40), 1, Decimal("10"))

        assert simulation.lines == [
            "The selected category A will not be over budget (50.00 left)."
        ]

    def test_category_without_limit(self):
        """Test the narrative for an unlimited category."""
        snapshot = build_snapshot([category(1, "Free")], [])

        simulation = simulate(snapshot, 1, Decimal("1000"))

        assert simulation.narrative == (
            "The selected category Free has no limit and will not be over budget."
        )

    def test_earmarked_bucket_follows_flag(self):
        """Test earmarked subcategories are used only when included."""
        snapshot = _snapshot(100, b_earmark=True)

        excluded = simulate(snapshot, 1, Decimal("50"))
        included = simulate(snapshot, 1, Decimal("50"), include_earmarked=True)

        assert excluded.allocations == []
        assert excluded.unallocated_remainder == Decimal("50")
        assert included.allocations[0].category_id == 3
        assert included.unallocated_remainder == Decimal("0")

    def test_snapshot_is_not_modified(self):
        """Test simulation leaves the input untouched."""
        snapshot = _snapshot(100)

        simulate(snapshot, 1, Decimal("50"))

        assert snapshot.spent_for(1) == Decimal("100")
        assert snapshot.get(3).priority_expenses == Decimal("0")

    def test_negative_amount_raises(self):
        """Test that a negative amount is rejected."""
        with pytest.raises(NegativeAmount):
            simulate(_snapshot(0), 1, Decimal("-1"))

    def test_unknown_category_raises(self):
        """Test that an unknown category is rejected."""
        with pytest.raises(UnknownCategory):
            simulate(_snapshot(0), 99, Decimal("1"))


class TestPreviewExpense:
    """Tests for preview_expense."""

    def test_within_limit(self):
        """Test an expense that the category's own limit covers."""
        snapshot = build_snapshot([category(1, "C", limit=250)], [spend(1, 190)])

        preview = preview_expense(snapshot, 1, Decimal("30"))

        assert preview.within_budget
        assert preview.message == "You have enough in C"
        assert preview.allocations == []

    def test_exactly_at_limit_is_within_budget(self):
        """Test spending up to the limit is still within budget."""
        preview = preview_expense(_snapshot(70), 1, Decimal("30"))

        assert preview.within_budget

    def test_no_limit_is_within_budget(self):
        """Test an unlimited category always has enough."""
        snapshot = build_snapshot([category(1, "Free")], [spend(1, 5000)])

        assert preview_expense(snapshot, 1, Decimal("10")).within_budget

    def test_lists_donors(self):
        """Test the message names the subcategories that pay."""
        preview = preview_expense(_snapshot(90), 1, Decimal("30"))

        assert not preview.within_budget
        assert preview.message == (
            "You will be over budget in A by 20.00. "
            "You will need to use money you are saving for B (20.00)."
        )
        assert preview.allocations[0].amount_absorbed == Decimal("20")

    def test_no_donors(self):
        """Test the message when nothing can absorb the overflow."""
        snapshot = build_snapshot(
            [category(1, "A", priority=1, limit=100)], [spend(1, 90)]
        )

        preview = preview_expense(snapshot, 1, Decimal("30"))

        assert not preview.within_budget
        assert preview.allocations == []
        assert preview.unallocated_remainder == Decimal("20")
        assert "saving for" not in preview.message
        assert "20.00 cannot be covered" in preview.message

    def test_uses_capacity_left_by_current_redistribution(self):
        """Test only new overflow is cascaded, onto what buckets have left."""
        # A is already 50 over and B holds that; B has 30 left
        preview = preview_expense(_snapshot(150), 1, Decimal("40"))

        assert preview.allocations[0].amount_absorbed == Decimal("30")
        assert preview.unallocated_remainder == Decimal("10")
        assert preview.message.startswith("You will be over budget in A by 90.00.")

    def test_earmarked_never_offered(self):
        """Test earmarked subcategories do not pay for a preview."""
        preview = preview_expense(_snapshot(90, b_earmark=True), 1, Decimal("30"))

        assert preview.allocations == []
        assert preview.unallocated_remainder == Decimal("20")

    def test_mentions_categories_already_over_budget(self):
        """Test other over-budget categories are listed."""
        categories = [
            category(1, "A", priority=1, limit=100),
            category(2, "Rent", priority=3, limit=10),
        ]
        snapshot = build_snapshot(categories, [spend(1, 90), spend(2, 15)])

        preview = preview_expense(snapshot, 1, Decimal("30"))

        assert "You will have nothing left in Rent." in preview.message

    def test_negative_price_raises(self):
        """Test that a negative price is rejected."""
        with pytest.raises(NegativeAmount):
            preview_expense(_snapshot(0), 1, Decimal("-5"))

    def test_unknown_category_raises(self):
        """Test that an unknown category is rejected."""
        with pytest.raises(UnknownCategory):
            preview_expense(_snapshot(0), 42, Decimal("5"))

    def test_earmarked_offered_when_included(self):
        """Test include_earmarked applies to both the baseline and the new overflow."""
        snapshot = _snapshot(150, b_earmark=True)

        preview = preview_expense(snapshot, 1, Decimal("40"), include_earmarked=True)

        # B already absorbs 50 of A's overflow, so 30 is left for the new 40
        assert preview.allocations[0].amount_absorbed == Decimal("30")
        assert preview.unallocated_remainder == Decimal("10")
