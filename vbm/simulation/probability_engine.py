"""
Probability Engine: home win probability from two team strengths.
Logistic in the strength gap: 0.5 for equal teams, never exactly 0 or 1.
"""
from __future__ import annotations

import math

from vbm.errors import InvalidInputError

MIN_STRENGTH = 1.0
MAX_STRENGTH = 100.0
# Keeps the result strictly inside (0, 1) where exp() saturates
_P_EPSILON = 1e-9


def sigmoid(x: float) -> float:
    # Split on sign so exp() never overflows for large gaps
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def validate_strength(value: object, label: str) -> float:
    """Return value as float or raise InvalidInputError. Never clamps."""
    if value is None:
        raise InvalidInputError(f"{label} strength is missing")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{label} strength must be a number (got {type(value).__name__})")
    v = float(value)
    if math.isnan(v) or not MIN_STRENGTH <= v <= MAX_STRENGTH:
        raise InvalidInputError(
            f"{label} strength must be between {MIN_STRENGTH:g} and {MAX_STRENGTH:g} (got {value})"
        )
    return v


class ProbabilityEngine:
    """
    scale: strength gap (in rating points) per logit unit. Smaller = more decisive.
    """

    def __init__(self, scale: float = 10.0) -> None:
        if scale <= 0:
            raise InvalidInputError("scale must be positive")
        self.scale = scale

    def home_win_probability(self, home_strength: object, away_strength: object) -> float:
        home = validate_strength(home_strength, "home")
        away = validate_strength(away_strength, "away")
        p = sigmoid((home - away) / self.scale)
        return min(1.0 - _P_EPSILON, max(_P_EPSILON, p))
