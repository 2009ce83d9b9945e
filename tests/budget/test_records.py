import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from budget.records import CategoryRecord, TransactionRecord, parse_records


class TestParseRecords:
    """Tests for record validation."""

    def test_valid_records(self):
        """Test a well-formed file parses into typed records."""
        records = parse_records(
            {
                "categories": [
                    {"name": "Food", "priority_value": 1, "category_limit": 400},
                    {"name": "Groceries", "parent": "Food", "category_limit": "300"},
                ],
                "transactions": [
                    {
                        "id": "tx-1",
                        "category": "Groceries",
                        "amount": "42.50",
                        "name": "Market",
                        "date": "2025-01-15",
                    }
                ],
            }
        )

        assert records.categories[1].category_limit == Decimal("300")
        assert records.transactions[0].amount == Decimal("42.50")
        assert records.transactions[0].date == date(2025, 1, 15)

    def test_empty_file(self):
        """Test that missing lists default to empty."""
        records = parse_records({})

        assert records.categories == []
        assert records.transactions == []

    def test_negative_limit_rejected(self):
        """Test that a negative limit is invalid."""
        with pytest.raises(ValidationError):
            parse_records({"categories": [{"name": "Food", "category_limit": -1}]})

    def test_duplicate_names_rejected(self):
        """Test that category names must be unique."""
        with pytest.raises(ValidationError, match="duplicate category names: Food"):
            parse_records({"categories": [{"name": "Food"}, {"name": "Food"}]})

    def test_three_levels_rejected(self):
        """Test that a subcategory cannot be a parent."""
        with pytest.raises(ValidationError, match="itself a subcategory"):
            parse_records(
                {
                    "categories": [
                        {"name": "Food"},
                        {"name": "Groceries", "parent": "Food"},
                        {"name": "Produce", "parent": "Groceries"},
                    ]
                }
            )

    def test_bad_date_rejected(self):
        """Test that dates must be ISO formatted."""
        with pytest.raises(ValidationError):
            parse_records(
                {
                    "transactions": [
                        {"id": "x", "category": "Food", "amount": 1, "date": "15/01/2025"}
                    ]
                }
            )

    def test_parents_ordered_first(self):
        """Test ordered_categories lists parents before children."""
        records = parse_records(
            {"categories": [{"name": "Groceries", "parent": "Food"}, {"name": "Food"}]}
        )

        assert [c.name for c in records.ordered_categories()] == ["Food", "Groceries"]


class TestRecordConversion:
    """Tests for converting records to models."""

    def test_blank_name_defaults(self):
        """Test that a transaction without a name gets a placeholder."""
        record = TransactionRecord(
            id="tx-1", category="Food", amount=Decimal("3"), name="", date=date(2025, 1, 1)
        )

        assert record.name == "name_unknown"

    def test_to_transaction(self):
        """Test conversion to a Transaction."""
        record = TransactionRecord(
            id="tx-1", category="Food", amount=Decimal("3"), name="Bakery", date=date(2025, 1, 1)
        )

        transaction = record.to_transaction(7)

        assert transaction.id == "tx-1"
        assert transaction.category_id == 7
        assert transaction.amount == Decimal("3")

    def test_to_category(self):
        """Test conversion to a Category."""
        record = CategoryRecord(name="Party", category_limit=Decimal("50"), earmark=True)

        category = record.to_category(4, "alice", parent_id=2)

        assert category.id == 4
        assert category.owner_id == "alice"
        assert category.parent_id == 2
        assert category.earmark
