"""
League-centric service: snapshot loading, standings, team statistics,
season scheduling and round-by-round simulation.
Reads go through repositories into an explicit LeagueSnapshot; the standings
themselves are computed by the pure functions in standings_service.
"""
from __future__ import annotations

import logging
import random
import sqlite3
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from vbm import config
from vbm.errors import InvalidInputError, NotFoundError
from vbm.models import LeagueSnapshot, Match, MatchStatus, StandingsRow, win_ratio_percent
from vbm.persistence.repositories import (
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
)
from vbm.ratings import team_strength
from vbm.services.scheduling import generate_season_fixtures
from vbm.services.simulation_service import SimulationOutcome, simulate_round
from vbm.services.standings_service import compute_standings, team_standing

logger = logging.getLogger(__name__)

_PENDING = (MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS)


@dataclass
class TeamStatistics:
    """Dashboard summary for one team: finances, squad and league record."""
    team_id: str
    team_name: str
    league_id: str
    budget: Decimal
    squad_size: int
    average_rating: float
    strength: float | None
    standing: StandingsRow

    @property
    def win_rate(self) -> int:
        return int(win_ratio_percent(self.standing.wins, self.standing.matches_played, "1"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "league_id": self.league_id,
            "budget": str(self.budget),
            "squad_size": self.squad_size,
            "average_rating": self.average_rating,
            "strength": self.strength,
            "win_rate": self.win_rate,
            "matches_played": self.standing.matches_played,
            "wins": self.standing.wins,
            "losses": self.standing.losses,
            "draws": self.standing.draws,
            "points": self.standing.points,
            "goal_difference": self.standing.goal_difference,
        }


class LeagueService:
    """
    Read-side queries and season orchestration for leagues.
    Persistence is delegated to repositories.
    """

    def __init__(self) -> None:
        self._league_repo = LeagueRepository()
        self._team_repo = TeamRepository()
        self._player_repo = PlayerRepository()
        self._match_repo = MatchRepository()

    def _require_league(self, conn: sqlite3.Connection, league_id: str) -> None:
        if self._league_repo.get(conn, league_id) is None:
            raise NotFoundError(f"League not found: {league_id}")

    # ---------- Snapshot & standings ----------

    def load_snapshot(self, conn: sqlite3.Connection, league_id: str | None = None) -> LeagueSnapshot:
        """Teams and completed matches (of one league, or all) as an immutable snapshot."""
        if league_id is not None:
            self._require_league(conn, league_id)
        return LeagueSnapshot(
            teams=tuple(self._team_repo.list_all(conn, league_id=league_id)),
            matches=tuple(self._match_repo.list_completed(conn, league_id=league_id)),
            leagues=tuple(self._league_repo.list_all(conn)),
        )

    def standings(
        self, conn: sqlite3.Connection, league_id: str | None = None
    ) -> dict[str, list[StandingsRow]]:
        """Ranked tables keyed by league id. With league_id, only that league's table."""
        snapshot = self.load_snapshot(conn, league_id)
        tables = compute_standings(snapshot.teams, snapshot.matches, snapshot.leagues)
        if league_id is not None:
            return {league_id: tables.get(league_id, [])}
        return tables

    def team_standing(self, conn: sqlite3.Connection, team_id: str) -> StandingsRow:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {team_id}")
        snapshot = self.load_snapshot(conn, team.league_id)
        return team_standing(snapshot.teams, snapshot.matches, team_id, snapshot.leagues)

    def team_statistics(self, conn: sqlite3.Connection, team_id: str) -> TeamStatistics:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {team_id}")
        players = self._player_repo.list_by_team(conn, team_id)
        average = round(sum(p.overall for p in players) / len(players), 1) if players else 0.0
        return TeamStatistics(
            team_id=team.id,
            team_name=team.name,
            league_id=team.league_id,
            budget=team.money,
            squad_size=len(players),
            average_rating=average,
            strength=team_strength(players) if players else None,
            standing=self.team_standing(conn, team_id),
        )

    def recent_matches(
        self, conn: sqlite3.Connection, limit: int = 10, league_id: str | None = None
    ) -> list[Match]:
        return self._match_repo.list_all(
            conn, status=MatchStatus.COMPLETED, league_id=league_id, limit=limit, newest_first=True
        )

    # ---------- Season scheduling & simulation ----------

    def pending_matches(self, conn: sqlite3.Connection, league_id: str) -> list[Match]:
        self._require_league(conn, league_id)
        matches = self._match_repo.list_all(conn, league_id=league_id)
        return [m for m in matches if m.status in _PENDING]

    def schedule_season(
        self,
        conn: sqlite3.Connection,
        league_id: str,
        start_date: date,
        double_round: bool = False,
        round_interval_days: int = 7,
        season: str | None = None,
    ) -> list[Match]:
        """
        Create a round-robin fixture list for every team in the league.
        Refused while the league still has unplayed fixtures.
        """
        self._require_league(conn, league_id)
        if self.pending_matches(conn, league_id):
            raise InvalidInputError(f"League {league_id} still has unplayed fixtures")
        teams = self._team_repo.list_all(conn, league_id=league_id)
        if len(teams) < 2:
            raise InvalidInputError("Need at least 2 teams to schedule a season")
        fixtures = generate_season_fixtures(
            [t.id for t in teams],
            start_date,
            round_interval_days=round_interval_days,
            double_round=double_round,
        )
        created = [
            self._match_repo.create(
                conn,
                home_team_id=f.home_team_id,
                away_team_id=f.away_team_id,
                league_id=league_id,
                match_date=f.match_date,
                season=season or config.DEFAULT_SEASON,
            )
            for f in fixtures
        ]
        logger.info("Scheduled %d fixtures for league %s from %s", len(created), league_id, start_date)
        return created

    def next_round_date(self, conn: sqlite3.Connection, league_id: str) -> date | None:
        pending = self.pending_matches(conn, league_id)
        return min((m.match_date for m in pending), default=None)

    def simulate_next_round(
        self, conn: sqlite3.Connection, league_id: str, seed: int | None = None
    ) -> list[SimulationOutcome]:
        """
        Simulate every unplayed fixture on the earliest pending date, all or nothing.
        A fixture's seed is seed + its position among all of that date's fixtures,
        so a seeded round gives the same results however many of them were already played.
        Returns an empty list when the league has nothing left to play.
        """
        round_date = self.next_round_date(conn, league_id)
        if round_date is None:
            return []
        seed_base = seed if seed is not None else random.randint(1, 2**31 - 1)
        round_matches = [
            m for m in self._match_repo.list_all(conn, league_id=league_id) if m.match_date == round_date
        ]
        fixtures = [
            (m.id, seed_base + i)
            for i, m in enumerate(round_matches)
            if m.status in _PENDING
        ]
        outcomes = simulate_round(conn, fixtures)
        logger.info("Simulated %d matches in league %s for %s", len(outcomes), league_id, round_date)
        return outcomes
