import pytest

from budget.ordering import Direction, cascade_order, order_categories, ranks_below
from tests.helpers import category


class TestOrderCategories:
    """Tests for order_categories."""

    def test_ascending_lowest_value_first(self):
        """Test ascending order puts the lowest priority_value first."""
        categories = [category(1, priority=3), category(2, priority=1), category(3, priority=2)]

        ordered = order_categories(categories, Direction.ASCENDING)

        assert [c.id for c in ordered] == [2, 3, 1]

    def test_descending_highest_value_first(self):
        """Test descending order puts the highest priority_value first."""
        categories = [category(1, priority=3), category(2, priority=1), category(3, priority=2)]

        ordered = order_categories(categories, Direction.DESCENDING)

        assert [c.id for c in ordered] == [1, 3, 2]

    @pytest.mark.parametrize("direction", [Direction.ASCENDING, Direction.DESCENDING])
    def test_ties_break_on_id(self, direction):
        """Test equal priority values are ordered by ascending id."""
        categories = [category(9, priority=1), category(4, priority=1), category(6, priority=1)]

        ordered = order_categories(categories, direction)

        assert [c.id for c in ordered] == [4, 6, 9]

    def test_repeated_calls_are_identical(self):
        """Test the order is deterministic regardless of input order."""
        categories = [category(i, priority=i % 3) for i in range(1, 10)]

        first = [c.id for c in order_categories(categories)]
        second = [c.id for c in order_categories(list(reversed(categories)))]

        assert first == second

    def test_accepts_direction_string(self):
        """Test that direction may be given as its config string."""
        categories = [category(1, priority=1), category(2, priority=2)]

        assert [c.id for c in order_categories(categories, "descending")] == [2, 1]

    def test_unknown_direction_raises(self):
        """Test that an unknown direction is rejected."""
        with pytest.raises(ValueError):
            order_categories([], "sideways")


class TestRanksBelow:
    """Tests for ranks_below."""

    def test_ascending(self):
        assert ranks_below(5, 1, Direction.ASCENDING)
        assert not ranks_below(1, 5, Direction.ASCENDING)

    def test_descending(self):
        assert ranks_below(1, 5, Direction.DESCENDING)
        assert not ranks_below(5, 1, Direction.DESCENDING)

    def test_equal_values_never_rank_below(self):
        assert not ranks_below(2, 2, Direction.ASCENDING)
        assert not ranks_below(2, 2, Direction.DESCENDING)


class TestCascadeOrder:
    """Tests for cascade_order."""

    def test_children_follow_their_parent(self):
        """Test the tree is flattened parent-then-children."""
        categories = [
            category(1, "Fun", priority=2),
            category(2, "Bills", priority=1),
            category(3, "Games", parent_id=1, priority=2),
            category(4, "Movies", parent_id=1, priority=1),
            category(5, "Rent", parent_id=2, priority=1),
        ]

        ordered = cascade_order(categories, Direction.ASCENDING)

        assert [c.name for c in ordered] == ["Bills", "Rent", "Fun", "Movies", "Games"]

    def test_orphans_come_last(self):
        """Test subcategories with a missing parent are kept, at the end."""
        categories = [
            category(1, priority=1),
            category(2, parent_id=99, priority=0),
            category(3, parent_id=1, priority=5),
        ]

        ordered = cascade_order(categories)

        assert [c.id for c in ordered] == [1, 3, 2]

    def test_every_category_appears_once(self):
        """Test nothing is dropped or duplicated, even for a nested subcategory."""
        categories = [
            category(1, priority=1),
            category(2, parent_id=1),
            category(3, parent_id=2),
        ]

        ordered = cascade_order(categories)

        assert sorted(c.id for c in ordered) == [1, 2, 3]
