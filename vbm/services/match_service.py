"""
Match lifecycle: state machine, guards, result recording.
Persistence is delegated to repositories; standings are never touched here
(they are recomputed from matches on every read).
"""
from __future__ import annotations

import dataclasses
import logging
import sqlite3
from datetime import date

from vbm import config
from vbm.errors import (
    DataIntegrityError,
    InvalidInputError,
    MaintenanceModeRequiredError,
    MatchTransitionError,
    NotFoundError,
)
from vbm.models import Match, MatchStatus
from vbm.persistence.repositories import MatchRepository, TeamRepository
from vbm.simulation.match_simulator import SimulatedResult

logger = logging.getLogger(__name__)

# ---------- Valid transitions ----------

_VALID_TRANSITIONS: dict[MatchStatus, set[MatchStatus]] = {
    # scheduled -> completed: instant simulation skips the live phase
    MatchStatus.SCHEDULED: {MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED, MatchStatus.CANCELLED},
    MatchStatus.IN_PROGRESS: {MatchStatus.COMPLETED},
    MatchStatus.COMPLETED: set(),
    MatchStatus.CANCELLED: set(),
}


def can_transition(current: MatchStatus, new_status: MatchStatus) -> bool:
    return new_status in _VALID_TRANSITIONS.get(current, set())


# ---------- MatchService ----------


class MatchService:
    """
    Domain logic for matches: scheduling, status transitions, results.
    Completed and cancelled matches are immutable except through admin_correct_result.
    """

    def __init__(self) -> None:
        self._match_repo = MatchRepository()
        self._team_repo = TeamRepository()

    def get_match(self, conn: sqlite3.Connection, match_id: str) -> Match:
        match = self._match_repo.get(conn, match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return match

    def schedule_match(
        self,
        conn: sqlite3.Connection,
        home_team_id: str,
        away_team_id: str,
        match_date: date,
        season: str | None = None,
    ) -> Match:
        """Create a scheduled fixture between two different teams of the same league."""
        if home_team_id == away_team_id:
            raise InvalidInputError("A team cannot play itself")
        home = self._team_repo.get(conn, home_team_id)
        away = self._team_repo.get(conn, away_team_id)
        if home is None:
            raise NotFoundError(f"Team not found: {home_team_id}")
        if away is None:
            raise NotFoundError(f"Team not found: {away_team_id}")
        if home.league_id != away.league_id:
            raise InvalidInputError(
                f"Teams play in different leagues ({home.league_id} vs {away.league_id})"
            )
        match = self._match_repo.create(
            conn,
            home_team_id=home.id,
            away_team_id=away.id,
            league_id=home.league_id,
            match_date=match_date,
            season=season or config.DEFAULT_SEASON,
        )
        logger.info("Scheduled match %s: %s vs %s on %s", match.id, home.name, away.name, match_date)
        return match

    def transition(self, conn: sqlite3.Connection, match_id: str, new_status: MatchStatus) -> Match:
        """Move a match to new_status if the state machine allows it."""
        match = self.get_match(conn, match_id)
        self.assert_transition(match, new_status)
        updated = dataclasses.replace(match, status=new_status)
        self._match_repo.update(conn, updated)
        return updated

    def start_match(self, conn: sqlite3.Connection, match_id: str) -> Match:
        return self.transition(conn, match_id, MatchStatus.IN_PROGRESS)

    def cancel_match(self, conn: sqlite3.Connection, match_id: str) -> Match:
        match = self.transition(conn, match_id, MatchStatus.CANCELLED)
        logger.info("Cancelled match %s", match_id)
        return match

    def complete_match(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        home_sets_won: int,
        away_sets_won: int,
        home_score: int,
        away_score: int,
        commit: bool = True,
    ) -> Match:
        """Record the final result and mark the match completed."""
        match = self.get_match(conn, match_id)
        self.assert_transition(match, MatchStatus.COMPLETED)
        completed = self._with_result(
            match, MatchStatus.COMPLETED, home_sets_won, away_sets_won, home_score, away_score
        )
        self._match_repo.update(conn, completed, commit=commit)
        logger.info(
            "Completed match %s: sets %d-%d, points %d-%d",
            match_id, home_sets_won, away_sets_won, home_score, away_score,
        )
        return completed

    def record_simulated_result(
        self, conn: sqlite3.Connection, match_id: str, result: SimulatedResult, commit: bool = True
    ) -> Match:
        return self.complete_match(
            conn,
            match_id,
            home_sets_won=result.home_sets_won,
            away_sets_won=result.away_sets_won,
            home_score=result.home_score,
            away_score=result.away_score,
            commit=commit,
        )

    def admin_correct_result(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        home_sets_won: int,
        away_sets_won: int,
        home_score: int,
        away_score: int,
    ) -> Match:
        """
        Overwrite the result of a completed match. Only allowed with VBM_MAINTENANCE_MODE=1.
        """
        if not config.maintenance_mode_enabled():
            raise MaintenanceModeRequiredError(
                "Correcting a completed match requires maintenance mode (VBM_MAINTENANCE_MODE=1)"
            )
        match = self.get_match(conn, match_id)
        if match.status is not MatchStatus.COMPLETED:
            raise MatchTransitionError(
                f"Only completed matches can be corrected (match {match_id} is {match.status.value})"
            )
        corrected = self._with_result(
            match, MatchStatus.COMPLETED, home_sets_won, away_sets_won, home_score, away_score
        )
        self._match_repo.update(conn, corrected)
        logger.warning(
            "Maintenance override on match %s: sets %d-%d -> %d-%d, points %d-%d -> %d-%d",
            match_id,
            match.home_sets_won, match.away_sets_won, home_sets_won, away_sets_won,
            match.home_score, match.away_score, home_score, away_score,
        )
        return corrected

    # ---------- Guards ----------

    @staticmethod
    def assert_transition(match: Match, new_status: MatchStatus) -> None:
        if not can_transition(match.status, new_status):
            allowed = sorted(s.value for s in _VALID_TRANSITIONS.get(match.status, set()))
            raise MatchTransitionError(
                f"Invalid transition for match {match.id}: {match.status.value} -> "
                f"{new_status.value}. Allowed from {match.status.value}: {allowed}"
            )

    @staticmethod
    def _with_result(
        match: Match,
        status: MatchStatus,
        home_sets_won: int,
        away_sets_won: int,
        home_score: int,
        away_score: int,
    ) -> Match:
        try:
            return dataclasses.replace(
                match,
                status=status,
                home_sets_won=home_sets_won,
                away_sets_won=away_sets_won,
                home_score=home_score,
                away_score=away_score,
            )
        except DataIntegrityError as e:
            raise InvalidInputError(str(e)) from e
