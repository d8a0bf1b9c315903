"""
Player ratings, market value and team strength.

team_strength() is what the simulator consumes: the mean overall rating of the
starting seven (or of the seven best players when no lineup has been picked).
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

from vbm.errors import InvalidInputError
from vbm.models import Player, PlayerPosition
from vbm.simulation.rng import SeededRNG

RATING_MIN = 1
RATING_MAX = 100
LINEUP_SIZE = 7

# Base weight of each skill in the overall rating
CORE_STATS: dict[str, float] = {
    "attack": 0.8,
    "defense": 0.8,
    "serve": 0.7,
    "block": 0.7,
    "receive": 0.8,
    "setting": 0.6,
}

# Multipliers on top of CORE_STATS; missing keys count as 1.0
POSITION_WEIGHTS: dict[str, dict[str, float]] = {
    PlayerPosition.OUTSIDE_HITTER.value: {"attack": 1.2, "receive": 1.0, "defense": 0.9, "serve": 0.8},
    PlayerPosition.MIDDLE_BLOCKER.value: {"block": 1.3, "attack": 1.0, "defense": 0.8},
    PlayerPosition.SETTER.value: {"setting": 1.4, "defense": 0.8, "attack": 0.6},
    PlayerPosition.OPPOSITE_HITTER.value: {"attack": 1.3, "serve": 1.0, "block": 0.9, "receive": 0.7},
    PlayerPosition.LIBERO.value: {"receive": 1.4, "defense": 1.2, "attack": 0.3},
}

# (age upper bound exclusive, multiplier); younger players are worth more
_AGE_MODIFIERS: tuple[tuple[int, Decimal], ...] = (
    (22, Decimal("1.3")),
    (25, Decimal("1.1")),
    (30, Decimal("1.0")),
    (35, Decimal("0.8")),
)
_AGE_MODIFIER_VETERAN = Decimal("0.6")


def overall_rating(stats: Mapping[str, int], position: str) -> int:
    """Weighted mean of the core skills present in stats, using the position's emphasis."""
    pos_weights = POSITION_WEIGHTS.get(position, {})
    weighted_sum = 0.0
    total_weight = 0.0
    for key, base in CORE_STATS.items():
        value = stats.get(key)
        if value is None:
            continue
        w = base * pos_weights.get(key, 1.0)
        weighted_sum += value * w
        total_weight += w
    if total_weight == 0:
        raise InvalidInputError("Cannot rate a player without any core stats")
    return round(weighted_sum / total_weight)


def age_modifier(age: int) -> Decimal:
    for bound, mod in _AGE_MODIFIERS:
        if age < bound:
            return mod
    return _AGE_MODIFIER_VETERAN


def player_value(overall: int, age: int, stats: Mapping[str, int]) -> Decimal:
    """Transfer value: overall * 5000 scaled by age, plus 50 per skill point."""
    base = Decimal(overall * 5000)
    bonus = Decimal(sum(int(stats.get(k, 0)) for k in CORE_STATS) * 50)
    return (base * age_modifier(age) + bonus).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def generate_player_stats(
    position: str,
    overall_target: int,
    rng: SeededRNG,
    variance: float = 15.0,
) -> dict[str, int]:
    """
    Random skills around overall_target, biased towards the position's key skills.
    Returns the six core skills plus the resulting "overall".
    """
    pos_weights = POSITION_WEIGHTS.get(position, {})
    stats: dict[str, int] = {}
    for key in CORE_STATS:
        target = min(RATING_MAX, overall_target * (0.8 + pos_weights.get(key, 1.0) * 0.4))
        value = round(target + rng.normal(variance))
        stats[key] = max(RATING_MIN, min(RATING_MAX, value))
    stats["overall"] = overall_rating(stats, position)
    return stats


def select_lineup(players: Iterable[Player], lineup_size: int = LINEUP_SIZE) -> list[Player]:
    """Starting lineup if one is set (slots 1..lineup_size), else the best players by overall."""
    roster = list(players)
    starting = sorted(
        (p for p in roster if p.lineup_slot is not None and 1 <= p.lineup_slot <= lineup_size),
        key=lambda p: p.lineup_slot,
    )
    if starting:
        return starting
    return sorted(roster, key=lambda p: (-p.overall, p.name))[:lineup_size]


def team_strength(players: Iterable[Player], lineup_size: int = LINEUP_SIZE) -> float:
    """Mean overall rating of the lineup, one decimal. Empty roster is an error, not a default."""
    lineup = select_lineup(players, lineup_size)
    if not lineup:
        raise InvalidInputError("Cannot compute team strength for an empty roster")
    return round(sum(p.overall for p in lineup) / len(lineup), 1)
