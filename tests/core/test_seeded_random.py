"""
Unit Tests for SeededRandom and label helpers
"""

import pytest

from exam_toolkit.common.labels import index_to_label, round_half_up
from exam_toolkit.core.utils.seeded_random import SeededRandom, default_seed


class TestSeededRandom:
    """Tests for SeededRandom."""

    def test_random_when_same_seed_then_same_sequence(self):
        a, b = SeededRandom("exam-1"), SeededRandom("exam-1")

        assert [a.random() for _ in range(10)] == [b.random() for _ in range(10)]

    def test_random_when_different_seed_then_different_sequence(self):
        a, b = SeededRandom("exam-1"), SeededRandom("exam-2")

        assert [a.random() for _ in range(10)] != [b.random() for _ in range(10)]

    def test_shuffle_when_called_then_permutation_and_input_untouched(self):
        # Arrange
        items = list(range(20))

        # Act
        shuffled = SeededRandom("s").shuffle(items)

        # Assert
        assert sorted(shuffled) == items
        assert items == list(range(20))

    def test_shuffle_when_same_seed_then_same_order(self):
        assert SeededRandom("s").shuffle("abcdefgh") == SeededRandom("s").shuffle("abcdefgh")

    def test_randint_below_when_called_then_in_range(self):
        rng = SeededRandom("r")

        values = [rng.randint_below(3) for _ in range(100)]

        assert set(values) <= {0, 1, 2}

    def test_randint_below_when_zero_then_raises(self):
        with pytest.raises(ValueError):
            SeededRandom("r").randint_below(0)

    def test_default_seed_when_called_then_numeric_string(self):
        assert default_seed().isdigit()


class TestLabels:
    """Tests for index_to_label and round_half_up."""

    @pytest.mark.parametrize("index,label", [(0, "A"), (2, "C"), (25, "Z"), (26, "AA"), (27, "AB"), (701, "ZZ")])
    def test_index_to_label_when_index_then_spreadsheet_label(self, index, label):
        assert index_to_label(index) == label

    def test_index_to_label_when_negative_then_raises(self):
        with pytest.raises(ValueError):
            index_to_label(-1)

    def test_round_half_up_when_half_then_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(1.49) == 1
