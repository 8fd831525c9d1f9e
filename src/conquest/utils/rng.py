"""Deterministic Random Number Generator (RNG) helpers.

Every draw in the engine is seeded from a string describing *what* is being
rolled (run id, battle sequence number, context).  This guarantees:
- Reproducibility: the same seed always produces the same result
- Testability: scenarios can be replayed exactly without patching ``random``
- Auditability: each result carries the seed that produced it

Examples:
    >>> seed = generate_seed("run-1", 42, "outcome")
    >>> result = check_probability(seed, 0.75)
    >>> sorted(result)
    ['probability', 'roll', 'seed', 'success']

    >>> random_choice(seed, ["ambush", "parley", "feast"])["choice"] in {"ambush", "parley", "feast"}
    True
"""

from __future__ import annotations

import hashlib
import random
from typing import Any


def generate_seed(run_id: str, sequence: int, context: str) -> str:
    """Generate a deterministic seed string.

    Format: "run_id:sequence:context"

    Args:
        run_id: Identifier of the automation run (stable per save)
        sequence: Monotonic counter, usually the battle number
        context: What the roll is for (e.g., 'outcome', 'casualties:attacker')

    Returns:
        Seed string in the format "run_id:sequence:context"

    Examples:
        >>> generate_seed("alpha", 7, "outcome")
        'alpha:7:outcome'

    Raises:
        ValueError: If sequence is negative
    """
    if sequence < 0:
        raise ValueError(f"sequence must be non-negative, got {sequence}")

    return f"{run_id}:{sequence}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert a seed string to a stable 64-bit integer for random.Random()."""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def _rng(seed: str) -> random.Random:
    return random.Random(_seed_to_int(seed))


def uniform(seed: str, low: float, high: float) -> dict[str, Any]:
    """Draw a float uniformly from ``[low, high]``.

    Args:
        seed: Deterministic seed string
        low: Lower bound (inclusive)
        high: Upper bound (inclusive)

    Returns:
        Dictionary containing:
            - value: The drawn value
            - low / high: The bounds used
            - seed: The seed used

    Raises:
        ValueError: If low > high
    """
    if low > high:
        raise ValueError(f"low ({low}) cannot be greater than high ({high})")

    value = _rng(seed).uniform(low, high)
    return {"value": value, "low": low, "high": high, "seed": seed}


def check_probability(seed: str, probability: float) -> dict[str, Any]:
    """Test a uniform roll in ``[0, 1)`` against a success probability.

    Args:
        seed: Deterministic seed string
        probability: Chance of success (0.0 to 1.0)

    Returns:
        Dictionary containing:
            - success: Whether roll < probability
            - roll: The uniform roll
            - probability: The requested probability
            - seed: The seed used

    Examples:
        >>> check_probability("any", 1.0)["success"]
        True
        >>> check_probability("any", 0.0)["success"]
        False

    Raises:
        ValueError: If probability not in [0.0, 1.0]
    """
    if not 0.0 <= probability <= 1.0:
        raise ValueError(f"probability must be between 0.0 and 1.0, got {probability}")

    roll = _rng(seed).random()
    return {
        "success": roll < probability,
        "roll": roll,
        "probability": probability,
        "seed": seed,
    }


def random_choice(seed: str, options: list[Any]) -> dict[str, Any]:
    """Choose one option with a deterministic seed.

    Raises:
        ValueError: If options list is empty
    """
    if not options:
        raise ValueError("options list cannot be empty")

    index = _rng(seed).randint(0, len(options) - 1)
    return {"choice": options[index], "index": index, "seed": seed}


def random_int(seed: str, min_val: int, max_val: int) -> dict[str, Any]:
    """Generate an integer in ``[min_val, max_val]`` with a deterministic seed.

    Raises:
        ValueError: If min_val > max_val
    """
    if min_val > max_val:
        raise ValueError(f"min_val ({min_val}) cannot be greater than max_val ({max_val})")

    value = _rng(seed).randint(min_val, max_val)
    return {"value": value, "min": min_val, "max": max_val, "seed": seed}
