"""
Match Outcome Simulator: two team strengths in, one best-of-five result out.

The winner is drawn against the home win probability from the ProbabilityEngine.
Sets and rally points are then generated to be consistent with that winner:
winner takes SETS_TO_WIN sets, the loser 0-2 (more likely 2 when the teams are
close). Every set is played to 25 (deciding fifth set to 15) with win-by-two,
and the persisted score is the total rally points per side.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from vbm.models import Match, MatchSide, MatchStatus
from .probability_engine import ProbabilityEngine
from .rng import SeededRNG

SETS_TO_WIN = 3
POINTS_TO_WIN_SET = 25
POINTS_TO_WIN_DECIDING_SET = 15
DECIDING_SET_INDEX = 4  # 0-based: the fifth set
WIN_BY = 2


@dataclass(frozen=True)
class SimulatedResult:
    """Output of one simulation. set_scores are (home, away) rally points per set, in order."""
    winner: MatchSide
    home_win_probability: float
    home_sets_won: int
    away_sets_won: int
    home_score: int
    away_score: int
    set_scores: tuple[tuple[int, int], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "winner": self.winner.value,
            "home_win_probability": round(self.home_win_probability, 4),
            "home_sets_won": self.home_sets_won,
            "away_sets_won": self.away_sets_won,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "set_scores": [list(s) for s in self.set_scores],
        }

    def to_match(
        self,
        match_id: str,
        home_team_id: str,
        away_team_id: str,
        league_id: str,
        match_date: date,
        season: str = "2024",
    ) -> Match:
        """Completed Match record carrying this result."""
        return Match(
            id=match_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            league_id=league_id,
            match_date=match_date,
            status=MatchStatus.COMPLETED,
            home_score=self.home_score,
            away_score=self.away_score,
            home_sets_won=self.home_sets_won,
            away_sets_won=self.away_sets_won,
            season=season,
        )


class MatchSimulator:
    """
    Stateless apart from its ProbabilityEngine; all randomness comes from the rng argument.
    """

    def __init__(self, engine: ProbabilityEngine | None = None) -> None:
        self.engine = engine or ProbabilityEngine()

    def simulate(self, home_strength: object, away_strength: object, rng: SeededRNG) -> SimulatedResult:
        # Validation happens here, before any draw from rng
        p_home = self.engine.home_win_probability(home_strength, away_strength)
        winner = MatchSide.HOME if rng.chance(p_home) else MatchSide.AWAY

        loser_sets = self._loser_sets(p_home, rng)
        total_sets = SETS_TO_WIN + loser_sets
        # Last set always goes to the match winner
        loser_set_indices = rng.distinct_indices(total_sets - 1, loser_sets)

        set_scores: list[tuple[int, int]] = []
        for i in range(total_sets):
            winner_pts, loser_pts = self._play_set(i, rng)
            home_took_set = (winner == MatchSide.HOME) != (i in loser_set_indices)
            set_scores.append((winner_pts, loser_pts) if home_took_set else (loser_pts, winner_pts))

        if winner == MatchSide.HOME:
            home_sets, away_sets = SETS_TO_WIN, loser_sets
        else:
            home_sets, away_sets = loser_sets, SETS_TO_WIN

        return SimulatedResult(
            winner=winner,
            home_win_probability=p_home,
            home_sets_won=home_sets,
            away_sets_won=away_sets,
            home_score=sum(h for h, _ in set_scores),
            away_score=sum(a for _, a in set_scores),
            set_scores=tuple(set_scores),
        )

    @staticmethod
    def _loser_sets(p_home: float, rng: SeededRNG) -> int:
        """0, 1 or 2. Evenly matched teams go the distance more often."""
        closeness = 1.0 - abs(2.0 * p_home - 1.0)
        weights = (1.0 - 0.5 * closeness, 1.0, 0.5 + closeness)
        return rng.weighted_pick((0, 1, 2), weights)

    @staticmethod
    def _play_set(set_index: int, rng: SeededRNG) -> tuple[int, int]:
        """(set winner points, set loser points) with win-by-two."""
        target = POINTS_TO_WIN_DECIDING_SET if set_index == DECIDING_SET_INDEX else POINTS_TO_WIN_SET
        loser_pts = rng.between(target - 12, target + 2)
        if loser_pts >= target - 1:
            # Deuce: play continues until someone is two clear
            return loser_pts + WIN_BY, loser_pts
        return target, loser_pts
