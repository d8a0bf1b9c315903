"""
Squad selection: persist a team's starting seven (lineup slots 1-7).
The lineup feeds team_strength(); everyone else on the roster is bench.
"""
from __future__ import annotations

import logging
import sqlite3

from vbm.errors import InvalidInputError, NotFoundError
from vbm.models import Player
from vbm.persistence.db import transaction
from vbm.persistence.repositories import PlayerRepository, TeamRepository
from vbm.ratings import LINEUP_SIZE

logger = logging.getLogger(__name__)


def set_starting_lineup(conn: sqlite3.Connection, team_id: str, player_ids: list[str]) -> list[Player]:
    """
    Replace the team's lineup. player_ids[i] goes to slot i + 1.
    Exactly LINEUP_SIZE distinct players, all on this team's roster.
    The old lineup stays in place unless every new slot is written.
    """
    if TeamRepository().get(conn, team_id) is None:
        raise NotFoundError(f"Team not found: {team_id}")
    if len(player_ids) != LINEUP_SIZE:
        raise InvalidInputError(f"Lineup must have exactly {LINEUP_SIZE} players (got {len(player_ids)})")
    if len(set(player_ids)) != len(player_ids):
        raise InvalidInputError("A player can only take one lineup slot")
    player_repo = PlayerRepository()
    roster = {p.id for p in player_repo.list_by_team(conn, team_id)}
    for pid in player_ids:
        if pid not in roster:
            raise InvalidInputError(f"Player {pid} is not on team {team_id}")
    with transaction(conn):
        player_repo.clear_lineup(conn, team_id, commit=False)
        for slot, pid in enumerate(player_ids, start=1):
            player_repo.set_lineup_slot(conn, pid, slot, commit=False)
    logger.info("Set starting lineup for team %s", team_id)
    return starting_lineup(conn, team_id)


def starting_lineup(conn: sqlite3.Connection, team_id: str) -> list[Player]:
    players = PlayerRepository().list_by_team(conn, team_id)
    return sorted((p for p in players if p.lineup_slot is not None), key=lambda p: p.lineup_slot)
