"""
Persistence layer: SQLite store for leagues, teams, players, matches and transfers.
Read/write interfaces only; no business logic or simulation.
"""
from .db import get_connection, get_db_path, init_db, set_db_path, transaction
from .repositories import (
    LeagueRepository,
    TeamRepository,
    PlayerRepository,
    MatchRepository,
    TransferRepository,
)

__all__ = [
    "get_connection",
    "get_db_path",
    "init_db",
    "set_db_path",
    "transaction",
    "LeagueRepository",
    "TeamRepository",
    "PlayerRepository",
    "MatchRepository",
    "TransferRepository",
]
