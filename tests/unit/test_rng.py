"""Tests for the deterministic RNG helpers.

Tests cover:
- Determinism (same seed -> same result)
- Seed formatting and validation
- Property-based bounds
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conquest.utils.rng import (
    check_probability,
    generate_seed,
    random_choice,
    random_int,
    uniform,
)


class TestGenerateSeed:
    """Tests for generate_seed function."""

    def test_seed_format(self):
        """Seeds join run id, sequence and context."""
        assert generate_seed("alpha", 7, "battle") == "alpha:7:battle"

    def test_different_parameters_produce_different_seeds(self):
        seeds = {
            generate_seed("a", 1, "battle"),
            generate_seed("b", 1, "battle"),
            generate_seed("a", 2, "battle"),
            generate_seed("a", 1, "offline-flavor"),
        }
        assert len(seeds) == 4

    def test_negative_sequence_raises_error(self):
        with pytest.raises(ValueError, match="sequence must be non-negative"):
            generate_seed("a", -1, "battle")


class TestCheckProbability:
    """Tests for check_probability."""

    def test_deterministic(self):
        assert check_probability("seed", 0.5) == check_probability("seed", 0.5)

    def test_certain_and_impossible(self):
        assert check_probability("any", 1.0)["success"] is True
        assert check_probability("any", 0.0)["success"] is False

    def test_invalid_probability_raises(self):
        with pytest.raises(ValueError, match="probability must be between"):
            check_probability("seed", 1.5)

    @given(seed=st.text(min_size=1), probability=st.floats(min_value=0, max_value=1))
    def test_roll_matches_success(self, seed, probability):
        result = check_probability(seed, probability)
        assert 0.0 <= result["roll"] < 1.0
        assert result["success"] == (result["roll"] < probability)


class TestDraws:
    """Tests for uniform, random_choice and random_int."""

    @given(
        seed=st.text(min_size=1),
        low=st.integers(min_value=-1000, max_value=1000),
        span=st.integers(min_value=0, max_value=1000),
    )
    def test_uniform_within_bounds(self, seed, low, span):
        value = uniform(seed, low, low + span)["value"]
        assert low <= value <= low + span

    def test_uniform_rejects_inverted_bounds(self):
        with pytest.raises(ValueError, match="cannot be greater"):
            uniform("seed", 2.0, 1.0)

    def test_random_choice_is_reproducible(self):
        options = ["ambush", "parley", "feast"]
        first = random_choice("seed", options)
        assert first == random_choice("seed", options)
        assert options[first["index"]] == first["choice"]

    def test_random_choice_empty_raises(self):
        with pytest.raises(ValueError, match="options list cannot be empty"):
            random_choice("seed", [])

    def test_random_int_bounds(self):
        result = random_int("seed", 3, 9)
        assert 3 <= result["value"] <= 9
        with pytest.raises(ValueError):
            random_int("seed", 9, 3)
