"""
Data models for the volleyball manager backend.
Domain objects only: no persistence or API logic.

Teams belong to exactly one league; matches are played between two teams of the
same league. Standings are never stored: StandingsRow is derived from the set of
completed matches every time it is requested.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from vbm.errors import DataIntegrityError

MAX_SETS_WON = 5


def win_ratio_percent(wins: int, played: int, places: str = "0.1") -> Decimal:
    """wins / played * 100, halves rounded up. 0 when nothing has been played."""
    if played == 0:
        return Decimal(0).quantize(Decimal(places))
    return (Decimal(wins * 100) / Decimal(played)).quantize(Decimal(places), rounding=ROUND_HALF_UP)


# ---------- Match status (state machine) ----------
class MatchStatus(str, Enum):
    """Match lifecycle: scheduled → in_progress → completed, or scheduled → cancelled."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.COMPLETED, MatchStatus.CANCELLED)


class MatchSide(str, Enum):
    HOME = "home"
    AWAY = "away"


class MatchResult(str, Enum):
    """Outcome of a completed match relative to one of its teams."""
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


class PlayerPosition(str, Enum):
    OUTSIDE_HITTER = "Outside Hitter"
    MIDDLE_BLOCKER = "Middle Blocker"
    SETTER = "Setter"
    OPPOSITE_HITTER = "Opposite Hitter"
    LIBERO = "Libero"


# ---------- League ----------
@dataclass(frozen=True)
class League:
    """Named grouping of teams. No behaviour of its own."""
    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


# ---------- Team ----------
@dataclass(frozen=True)
class Team:
    """
    A club in one league. money is the transfer balance (fixed-precision decimal).
    Read-only to the standings and simulation code.
    """
    id: str
    name: str
    league_id: str
    money: Decimal = Decimal("1000000.00")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "league_id": self.league_id,
            "money": str(self.money),
        }


# ---------- Player ----------
@dataclass
class Player:
    """
    Rostered (team_id set) or free-agent (team_id None) player.
    Ratings are 1-100. lineup_slot 1-7 = starting lineup, None = bench / unassigned.
    """
    id: str
    name: str
    team_id: str | None
    position: str  # PlayerPosition value
    age: int
    country: str
    jersey_number: int
    overall: int
    attack: int
    defense: int
    serve: int
    block: int
    receive: int
    setting: int
    contract_years: int = 1
    monthly_wage: Decimal = Decimal("1000.00")
    player_value: Decimal = Decimal("100000.00")
    lineup_slot: int | None = None

    def stats(self) -> dict[str, int]:
        return {
            "overall": self.overall,
            "attack": self.attack,
            "defense": self.defense,
            "serve": self.serve,
            "block": self.block,
            "receive": self.receive,
            "setting": self.setting,
        }

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "team_id": self.team_id,
            "position": self.position,
            "age": self.age,
            "country": self.country,
            "jersey_number": self.jersey_number,
            **self.stats(),
            "contract_years": self.contract_years,
            "monthly_wage": str(self.monthly_wage),
            "player_value": str(self.player_value),
        }
        if self.lineup_slot is not None:
            d["lineup_slot"] = self.lineup_slot
        return d


# ---------- Match ----------
@dataclass(frozen=True)
class Match:
    """
    A fixture or result between two different teams of one league.
    home_score/away_score are total rally points; *_sets_won (0-5) decide the result.
    Immutable once completed or cancelled; status changes produce a new record.
    """
    id: str
    home_team_id: str
    away_team_id: str
    league_id: str
    match_date: date
    status: MatchStatus = MatchStatus.SCHEDULED
    home_score: int = 0
    away_score: int = 0
    home_sets_won: int = 0
    away_sets_won: int = 0
    season: str = "2024"

    def __post_init__(self) -> None:
        if self.home_team_id == self.away_team_id:
            raise DataIntegrityError(f"Match {self.id}: home and away team are both {self.home_team_id}")
        if self.home_score < 0 or self.away_score < 0:
            raise DataIntegrityError(f"Match {self.id}: scores must be non-negative")
        for sets in (self.home_sets_won, self.away_sets_won):
            if not 0 <= sets <= MAX_SETS_WON:
                raise DataIntegrityError(f"Match {self.id}: sets won must be 0-{MAX_SETS_WON} (got {sets})")
        if not isinstance(self.status, MatchStatus):
            object.__setattr__(self, "status", MatchStatus(self.status))

    def opponent_of(self, team_id: str) -> str:
        if team_id == self.home_team_id:
            return self.away_team_id
        if team_id == self.away_team_id:
            return self.home_team_id
        raise ValueError(f"Team {team_id} did not play in match {self.id}")

    def sets_for(self, team_id: str) -> int:
        return self.home_sets_won if team_id == self.home_team_id else self.away_sets_won

    def score_for(self, team_id: str) -> int:
        return self.home_score if team_id == self.home_team_id else self.away_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "league_id": self.league_id,
            "match_date": self.match_date.isoformat(),
            "status": self.status.value,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "home_sets_won": self.home_sets_won,
            "away_sets_won": self.away_sets_won,
            "season": self.season,
        }


# ---------- StandingsRow (derived) ----------
@dataclass
class StandingsRow:
    """One team's derived summary within its league. Never persisted."""
    team_id: str
    team_name: str
    league_id: str
    league_name: str | None = None
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def win_percentage(self) -> float:
        return float(win_ratio_percent(self.wins, self.matches_played))

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "league_id": self.league_id,
            "league_name": self.league_name,
            "matches_played": self.matches_played,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "points": self.points,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "win_percentage": self.win_percentage,
        }


# ---------- LeagueSnapshot ----------
@dataclass(frozen=True)
class LeagueSnapshot:
    """
    In-memory copy of the records the standings and simulation code work on.
    Passed explicitly; nothing reads global application state.
    """
    teams: tuple[Team, ...]
    matches: tuple[Match, ...]
    leagues: tuple[League, ...] = field(default_factory=tuple)


# ---------- Transfers ----------
class TransferOfferStatus(str, Enum):
    """pending → accepted | rejected | withdrawn. Only pending offers can change."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True)
class TransferOffer:
    """Bid by buying_team for a player currently on selling_team."""
    id: str
    player_id: str
    buying_team_id: str
    selling_team_id: str
    amount: Decimal
    status: TransferOfferStatus = TransferOfferStatus.PENDING
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "buying_team_id": self.buying_team_id,
            "selling_team_id": self.selling_team_id,
            "amount": str(self.amount),
            "status": self.status.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class Transfer:
    """Completed move of a player between teams, with the fee paid."""
    id: str
    player_id: str
    from_team_id: str
    to_team_id: str
    fee: Decimal
    transfer_date: date
    offer_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "from_team_id": self.from_team_id,
            "to_team_id": self.to_team_id,
            "fee": str(self.fee),
            "transfer_date": self.transfer_date.isoformat(),
            "offer_id": self.offer_id,
        }
