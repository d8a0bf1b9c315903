"""
Demo data: two leagues, seven teams with generated rosters, a handful of played
and scheduled matches. Deterministic for a given seed.
"""
from __future__ import annotations

import sqlite3
from datetime import date
from decimal import Decimal

from vbm.models import MatchStatus, PlayerPosition
from vbm.ratings import LINEUP_SIZE, generate_player_stats
from vbm.simulation.rng import SeededRNG
from .repositories import LeagueRepository, MatchRepository, PlayerRepository, TeamRepository

DEMO_LEAGUES = ("VB League", "VBL Division 2")

# (team name, league name, money, roster overall target)
DEMO_TEAMS: tuple[tuple[str, str, str, int], ...] = (
    ("Your Team", "VB League", "1000000.00", 78),
    ("Thunder Bolts", "VB League", "800000.00", 80),
    ("Storm Riders", "VB League", "750000.00", 75),
    ("Wave Crushers", "VB League", "600000.00", 72),
    ("Rising Stars", "VBL Division 2", "500000.00", 70),
    ("Fire Hawks", "VBL Division 2", "450000.00", 68),
    ("Ice Breakers", "VBL Division 2", "400000.00", 65),
)

# (home, away, date, home_score, away_score, home_sets, away_sets, status)
DEMO_MATCHES: tuple[tuple[str, str, str, int, int, int, int, MatchStatus], ...] = (
    ("Your Team", "Thunder Bolts", "2024-01-15", 3, 1, 3, 1, MatchStatus.COMPLETED),
    ("Storm Riders", "Wave Crushers", "2024-01-15", 2, 3, 2, 3, MatchStatus.COMPLETED),
    ("Thunder Bolts", "Storm Riders", "2024-01-20", 3, 0, 3, 0, MatchStatus.COMPLETED),
    ("Wave Crushers", "Your Team", "2024-01-20", 1, 3, 1, 3, MatchStatus.COMPLETED),
    ("Your Team", "Storm Riders", "2024-01-25", 3, 2, 3, 2, MatchStatus.COMPLETED),
    ("Thunder Bolts", "Wave Crushers", "2024-01-25", 2, 3, 2, 3, MatchStatus.COMPLETED),
    ("Rising Stars", "Fire Hawks", "2024-01-15", 3, 1, 3, 1, MatchStatus.COMPLETED),
    ("Ice Breakers", "Rising Stars", "2024-01-20", 2, 3, 2, 3, MatchStatus.COMPLETED),
    ("Fire Hawks", "Ice Breakers", "2024-01-25", 3, 0, 3, 0, MatchStatus.COMPLETED),
    ("Your Team", "Wave Crushers", "2024-02-01", 0, 0, 0, 0, MatchStatus.SCHEDULED),
    ("Thunder Bolts", "Storm Riders", "2024-02-01", 0, 0, 0, 0, MatchStatus.SCHEDULED),
    ("Rising Stars", "Ice Breakers", "2024-02-01", 0, 0, 0, 0, MatchStatus.SCHEDULED),
)

# Seven starters first (two hitters, two middles, setter, opposite, libero), then bench
ROSTER_POSITIONS: tuple[PlayerPosition, ...] = (
    PlayerPosition.OUTSIDE_HITTER,
    PlayerPosition.OUTSIDE_HITTER,
    PlayerPosition.MIDDLE_BLOCKER,
    PlayerPosition.MIDDLE_BLOCKER,
    PlayerPosition.SETTER,
    PlayerPosition.OPPOSITE_HITTER,
    PlayerPosition.LIBERO,
    PlayerPosition.OUTSIDE_HITTER,
    PlayerPosition.MIDDLE_BLOCKER,
    PlayerPosition.SETTER,
)

_FIRST_NAMES = (
    "Alex", "Bruno", "Carlos", "Dmitri", "Earvin", "Facundo", "Giba", "Hiroshi",
    "Ivan", "Jakub", "Kamil", "Lucas", "Matey", "Nimir", "Osmany", "Pavel",
    "Ricardo", "Simone", "Tomasz", "Wilfredo", "Yuki", "Zaytsev",
)
_LAST_NAMES = (
    "Anderson", "Bieniek", "Conte", "De Cecco", "Fornal", "Giannelli", "Holt",
    "Ishikawa", "Juantorena", "Kurek", "Leon", "Michieletto", "Ngapeth", "Orduna",
    "Patry", "Russell", "Semeniuk", "Takahashi", "Urnaut", "Wlazly",
)
_COUNTRIES = ("Brazil", "Poland", "Italy", "France", "USA", "Japan", "Serbia", "Slovenia")


def seed_demo_data(conn: sqlite3.Connection, seed: int = 2024) -> None:
    """Insert the demo leagues, teams, rosters and matches. Expects an empty database."""
    rng = SeededRNG(seed)
    league_repo = LeagueRepository()
    team_repo = TeamRepository()
    player_repo = PlayerRepository()
    match_repo = MatchRepository()

    league_ids = {name: league_repo.create(conn, name).id for name in DEMO_LEAGUES}

    team_ids: dict[str, str] = {}
    for name, league_name, money, target in DEMO_TEAMS:
        team = team_repo.create(conn, name, league_ids[league_name], money=Decimal(money))
        team_ids[name] = team.id
        for i, position in enumerate(ROSTER_POSITIONS):
            stats = generate_player_stats(position.value, target, rng, variance=8.0)
            player_repo.create(
                conn,
                name=f"{rng.pick(_FIRST_NAMES)} {rng.pick(_LAST_NAMES)}",
                team_id=team.id,
                position=position.value,
                age=rng.between(18, 36),
                country=rng.pick(_COUNTRIES),
                jersey_number=i + 1,
                stats=stats,
                contract_years=rng.between(1, 5),
                monthly_wage=Decimal(stats["overall"] * 100).quantize(Decimal("0.01")),
                lineup_slot=i + 1 if i < LINEUP_SIZE else None,
            )

    for home, away, day, hs, as_, hsets, asets, status in DEMO_MATCHES:
        match_repo.create(
            conn,
            home_team_id=team_ids[home],
            away_team_id=team_ids[away],
            league_id=league_ids[_league_of(home)],
            match_date=date.fromisoformat(day),
            status=status,
            home_score=hs,
            away_score=as_,
            home_sets_won=hsets,
            away_sets_won=asets,
        )


def _league_of(team_name: str) -> str:
    for name, league_name, _, _ in DEMO_TEAMS:
        if name == team_name:
            return league_name
    raise KeyError(team_name)
