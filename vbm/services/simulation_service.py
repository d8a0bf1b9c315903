"""
Team-vs-team simulation against the store: load rosters, compute strengths,
run the MatchSimulator, persist the completed match.
The simulator itself is pure; this module is the only place its output is written.
"""
from __future__ import annotations

import logging
import random
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any

from vbm import config
from vbm.errors import InvalidInputError, NotFoundError
from vbm.models import Match, MatchStatus
from vbm.persistence.db import transaction
from vbm.persistence.repositories import MatchRepository, PlayerRepository, TeamRepository
from vbm.ratings import team_strength
from vbm.services.match_service import MatchService
from vbm.simulation import MatchSimulator, ProbabilityEngine, SeededRNG, SimulatedResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationOutcome:
    """Persisted match plus the inputs needed to replay it (strengths and seed)."""
    match: Match
    result: SimulatedResult
    home_strength: float
    away_strength: float
    seed: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "match": self.match.to_dict(),
            "result": self.result.to_dict(),
            "home_strength": self.home_strength,
            "away_strength": self.away_strength,
            "seed": self.seed,
        }


def default_simulator() -> MatchSimulator:
    return MatchSimulator(ProbabilityEngine(scale=config.STRENGTH_SCALE))


def _resolve_seed(seed: int | None) -> int:
    return seed if seed is not None else random.randint(1, 2**31 - 1)


def team_strength_for(conn: sqlite3.Connection, team_id: str) -> float:
    """Strength of a stored team's current lineup."""
    if TeamRepository().get(conn, team_id) is None:
        raise NotFoundError(f"Team not found: {team_id}")
    players = PlayerRepository().list_by_team(conn, team_id)
    if not players:
        raise InvalidInputError(f"Team {team_id} has no players; cannot compute strength")
    return team_strength(players)


def simulate_round(
    conn: sqlite3.Connection,
    fixtures: list[tuple[str, int]],
    simulator: MatchSimulator | None = None,
) -> list[SimulationOutcome]:
    """
    Simulate several stored fixtures, each (match_id, seed), as a single write.
    Every fixture is checked for a legal transition and playable rosters before
    anything is simulated, and the results are committed together: a failure
    leaves all of the fixtures exactly as they were.
    """
    service = MatchService()
    simulator = simulator or default_simulator()
    prepared = []
    for match_id, seed in fixtures:
        match = service.get_match(conn, match_id)
        service.assert_transition(match, MatchStatus.COMPLETED)
        home_strength = team_strength_for(conn, match.home_team_id)
        away_strength = team_strength_for(conn, match.away_team_id)
        prepared.append((match, home_strength, away_strength, seed))

    outcomes: list[SimulationOutcome] = []
    with transaction(conn):
        for match, home_strength, away_strength, seed in prepared:
            result = simulator.simulate(home_strength, away_strength, SeededRNG(seed))
            completed = service.record_simulated_result(conn, match.id, result, commit=False)
            outcomes.append(
                SimulationOutcome(
                    match=completed,
                    result=result,
                    home_strength=home_strength,
                    away_strength=away_strength,
                    seed=seed,
                )
            )
    for o in outcomes:
        logger.info(
            "Simulated match %s (strength %.1f vs %.1f, seed %d): %s wins %d-%d",
            o.match.id, o.home_strength, o.away_strength, o.seed,
            o.result.winner.value, o.result.home_sets_won, o.result.away_sets_won,
        )
    return outcomes


def simulate_fixture(
    conn: sqlite3.Connection,
    match_id: str,
    seed: int | None = None,
    simulator: MatchSimulator | None = None,
) -> SimulationOutcome:
    """
    Simulate a scheduled or in-progress match and store it as completed.
    Same seed + same rosters => same result.
    """
    return simulate_round(conn, [(match_id, _resolve_seed(seed))], simulator)[0]


def simulate_instant_match(
    conn: sqlite3.Connection,
    home_team_id: str,
    away_team_id: str,
    seed: int | None = None,
    match_date: date | None = None,
    simulator: MatchSimulator | None = None,
) -> SimulationOutcome:
    """
    Play a new match straight away (no prior fixture) and insert it as completed.
    Both teams must be in the same league; the result counts towards the standings.
    """
    if home_team_id == away_team_id:
        raise InvalidInputError("A team cannot play itself")
    team_repo = TeamRepository()
    home = team_repo.get(conn, home_team_id)
    away = team_repo.get(conn, away_team_id)
    if home is None:
        raise NotFoundError(f"Team not found: {home_team_id}")
    if away is None:
        raise NotFoundError(f"Team not found: {away_team_id}")
    if home.league_id != away.league_id:
        raise InvalidInputError(f"Teams play in different leagues ({home.league_id} vs {away.league_id})")

    home_strength = team_strength_for(conn, home.id)
    away_strength = team_strength_for(conn, away.id)
    seed_used = _resolve_seed(seed)
    result = (simulator or default_simulator()).simulate(home_strength, away_strength, SeededRNG(seed_used))
    match = result.to_match(
        match_id=str(uuid.uuid4()),
        home_team_id=home.id,
        away_team_id=away.id,
        league_id=home.league_id,
        match_date=match_date or date.today(),
        season=config.DEFAULT_SEASON,
    )
    MatchRepository().insert(conn, match)
    logger.info(
        "Instant match %s: %s %d-%d %s (seed %d)",
        match.id, home.name, result.home_sets_won, result.away_sets_won, away.name, seed_used,
    )
    return SimulationOutcome(
        match=match,
        result=result,
        home_strength=home_strength,
        away_strength=away_strength,
        seed=seed_used,
    )
