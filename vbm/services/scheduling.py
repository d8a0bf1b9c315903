"""
Deterministic round-robin season schedule for a league.

Every team meets every other team once per round robin (twice with double_round,
home and away swapped in the second half). N teams play N-1 rounds (N even) or
N rounds (N odd); each team plays at most once per round.

BYE handling: with an odd number of teams a virtual BYE is added. The team paired
with BYE sits the round out and no fixture is produced for it.

Circle method: fix the first slot, rotate the others each round. The same team
list ordering always yields the same schedule.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

# Sentinel for bye when number of teams is odd
BYE = "BYE"


@dataclass(frozen=True)
class Fixture:
    round_number: int
    home_team_id: str
    away_team_id: str
    match_date: date


def round_robin_pairings(team_ids: list[str]) -> list[tuple[int, str, str | None]]:
    """
    (round_number, home_team_id, away_team_id) for a single round robin.
    away_team_id is None when home_team_id has a bye.
    """
    if len(set(team_ids)) != len(team_ids):
        raise ValueError("Team ids must be unique")
    if not team_ids:
        return []
    ids = list(team_ids)
    if len(ids) % 2 == 1:
        ids.append(BYE)
    n = len(ids)
    result: list[tuple[int, str, str | None]] = []
    order = list(range(n))
    for rnd in range(n - 1):
        # Pair order[0] with order[n-1], order[1] with order[n-2], ...
        for i in range(n // 2):
            home_id = ids[order[i]]
            away_id: str | None = ids[order[n - 1 - i]]
            if home_id == BYE:
                home_id, away_id = away_id, None
            elif away_id == BYE:
                away_id = None
            result.append((rnd + 1, home_id, away_id))
        # Rotate: keep slot 0, move the last index to slot 1
        order = [order[0], order[n - 1]] + order[1 : n - 1]
    return result


def generate_season_fixtures(
    team_ids: list[str],
    start_date: date,
    round_interval_days: int = 7,
    double_round: bool = False,
) -> list[Fixture]:
    """
    Dated fixtures for a season, byes dropped. Round r is played on
    start_date + (r - 1) * round_interval_days.
    """
    if round_interval_days < 1:
        raise ValueError("round_interval_days must be at least 1")
    pairings = round_robin_pairings(team_ids)
    rounds_per_leg = max((r for r, _, _ in pairings), default=0)
    legs = [(h, a, r) for r, h, a in pairings]
    if double_round:
        legs += [(a, h, r + rounds_per_leg) for r, h, a in pairings if a is not None]
    fixtures: list[Fixture] = []
    for home_id, away_id, rnd in legs:
        if away_id is None:
            continue
        fixtures.append(Fixture(
            round_number=rnd,
            home_team_id=home_id,
            away_team_id=away_id,
            match_date=start_date + timedelta(days=(rnd - 1) * round_interval_days),
        ))
    return sorted(fixtures, key=lambda f: (f.round_number, f.home_team_id))
