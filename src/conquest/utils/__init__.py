"""Utility functions for the conquest engine."""

from conquest.utils.rng import (
    check_probability,
    generate_seed,
    random_choice,
    random_int,
    uniform,
)

__all__ = [
    "check_probability",
    "generate_seed",
    "random_choice",
    "random_int",
    "uniform",
]
