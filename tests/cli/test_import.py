import pytest
from decimal import Decimal

from pydantic import ValidationError

from cli.transactions import import_records


def _records():
    return {
        "categories": [
            {"name": "Groceries", "parent": "Food", "category_limit": 300},
            {"name": "Food", "priority_value": 1, "category_limit": 400},
        ],
        "transactions": [
            {
                "id": "tx-1",
                "category": "Groceries",
                "amount": "42.50",
                "name": "Market",
                "date": "2025-01-15",
            },
            {"id": "tx-2", "category": "Food", "amount": 8, "date": "2025-01-16"},
        ],
    }


class TestImportRecords:
    """Tests for importing categories and transactions from plain records."""

    def test_creates_categories_and_transactions(self, services):
        """Test a fresh import."""
        created, written = import_records(services, _records())

        assert (created, written) == (2, 2)
        food = services.categories.find_by_name("alice", "Food")
        groceries = services.categories.find_by_name("alice", "Groceries")
        assert groceries.parent_id == food.id
        assert services.transactions.find("tx-1").amount == Decimal("42.5")
        assert services.transactions.find("tx-2").name == "name_unknown"

    def test_reimport_is_idempotent(self, services):
        """Test importing the same file twice creates nothing new."""
        import_records(services, _records())

        created, written = import_records(services, _records())

        assert created == 0
        assert written == 2
        assert len(services.categories.find_all("alice")) == 2
        assert len(services.transactions.find_by_owner("alice")) == 2

    def test_unknown_category_rejected(self, services):
        """Test a transaction pointing at a missing category."""
        data = {
            "transactions": [
                {"id": "x", "category": "Nowhere", "amount": 1, "date": "2025-01-01"}
            ]
        }

        with pytest.raises(ValueError, match="unknown category 'Nowhere'"):
            import_records(services, data)

    def test_unknown_parent_rejected(self, services):
        """Test a category whose parent is neither in the file nor stored."""
        with pytest.raises(ValueError, match="Unknown parent 'Food'"):
            import_records(services, {"categories": [{"name": "Groceries", "parent": "Food"}]})

    def test_invalid_records(self, services):
        """Test malformed records raise a validation error."""
        with pytest.raises(ValidationError):
            import_records(services, {"categories": [{"name": ""}]})
