"""
Repository interfaces for leagues, teams, players, matches and transfers.
No business logic, only read/write operations. Every method takes the connection explicitly.
"""
from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from vbm.models import (
    League,
    Match,
    MatchStatus,
    Player,
    Team,
    Transfer,
    TransferOffer,
    TransferOfferStatus,
)
from vbm.ratings import player_value


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------- LeagueRepository ----------


class LeagueRepository:
    """CRUD for leagues."""

    def create(self, conn: sqlite3.Connection, name: str, id: str | None = None) -> League:
        lid = id or _new_id()
        conn.execute(
            "INSERT INTO leagues (id, name, created_at) VALUES (?, ?, ?)",
            (lid, name, _now_iso()),
        )
        conn.commit()
        return League(id=lid, name=name)

    def get(self, conn: sqlite3.Connection, league_id: str) -> League | None:
        row = conn.execute("SELECT id, name FROM leagues WHERE id = ?", (league_id,)).fetchone()
        if row is None:
            return None
        return League(id=row["id"], name=row["name"])

    def get_by_name(self, conn: sqlite3.Connection, name: str) -> League | None:
        row = conn.execute("SELECT id, name FROM leagues WHERE name = ?", (name,)).fetchone()
        if row is None:
            return None
        return League(id=row["id"], name=row["name"])

    def list_all(self, conn: sqlite3.Connection) -> list[League]:
        rows = conn.execute("SELECT id, name FROM leagues ORDER BY name").fetchall()
        return [League(id=r["id"], name=r["name"]) for r in rows]


# ---------- TeamRepository ----------


def _row_to_team(row: sqlite3.Row) -> Team:
    return Team(id=row["id"], name=row["name"], league_id=row["league_id"], money=Decimal(row["money"]))


class TeamRepository:
    """CRUD for teams."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        league_id: str,
        money: Decimal = Decimal("1000000.00"),
        id: str | None = None,
    ) -> Team:
        tid = id or _new_id()
        conn.execute(
            "INSERT INTO teams (id, name, league_id, money, created_at) VALUES (?, ?, ?, ?, ?)",
            (tid, name, league_id, str(money), _now_iso()),
        )
        conn.commit()
        return Team(id=tid, name=name, league_id=league_id, money=money)

    def get(self, conn: sqlite3.Connection, team_id: str) -> Team | None:
        row = conn.execute(
            "SELECT id, name, league_id, money FROM teams WHERE id = ?", (team_id,)
        ).fetchone()
        return _row_to_team(row) if row is not None else None

    def list_all(self, conn: sqlite3.Connection, league_id: str | None = None) -> list[Team]:
        if league_id is None:
            rows = conn.execute("SELECT id, name, league_id, money FROM teams ORDER BY name").fetchall()
        else:
            rows = conn.execute(
                "SELECT id, name, league_id, money FROM teams WHERE league_id = ? ORDER BY name",
                (league_id,),
            ).fetchall()
        return [_row_to_team(r) for r in rows]

    def update_money(
        self, conn: sqlite3.Connection, team_id: str, money: Decimal, commit: bool = True
    ) -> None:
        conn.execute("UPDATE teams SET money = ? WHERE id = ?", (str(money), team_id))
        if commit:
            conn.commit()


# ---------- PlayerRepository ----------

_PLAYER_COLS = (
    "id, name, team_id, position, age, country, jersey_number, overall, attack, defense, "
    "serve, block, receive, setting, contract_years, monthly_wage, player_value, lineup_slot"
)


def _row_to_player(row: sqlite3.Row) -> Player:
    r = dict(row)
    return Player(
        id=r["id"],
        name=r["name"],
        team_id=r["team_id"],
        position=r["position"],
        age=r["age"],
        country=r["country"],
        jersey_number=r["jersey_number"],
        overall=r["overall"],
        attack=r["attack"],
        defense=r["defense"],
        serve=r["serve"],
        block=r["block"],
        receive=r["receive"],
        setting=r["setting"],
        contract_years=r["contract_years"],
        monthly_wage=Decimal(r["monthly_wage"]),
        player_value=Decimal(r["player_value"]),
        lineup_slot=r["lineup_slot"],
    )


class PlayerRepository:
    """CRUD for players. player_value is derived on write from overall, age and skills."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        team_id: str | None,
        position: str,
        age: int,
        country: str,
        jersey_number: int,
        stats: Mapping[str, int],
        contract_years: int = 1,
        monthly_wage: Decimal = Decimal("1000.00"),
        lineup_slot: int | None = None,
        id: str | None = None,
    ) -> Player:
        pid = id or _new_id()
        value = player_value(stats["overall"], age, stats)
        conn.execute(
            f"INSERT INTO players ({_PLAYER_COLS}, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                pid, name, team_id, position, age, country, jersey_number,
                stats["overall"], stats["attack"], stats["defense"], stats["serve"],
                stats["block"], stats["receive"], stats["setting"],
                contract_years, str(monthly_wage), str(value), lineup_slot, _now_iso(),
            ),
        )
        conn.commit()
        return self.get(conn, pid)

    def get(self, conn: sqlite3.Connection, player_id: str) -> Player | None:
        row = conn.execute(f"SELECT {_PLAYER_COLS} FROM players WHERE id = ?", (player_id,)).fetchone()
        return _row_to_player(row) if row is not None else None

    def list_by_team(self, conn: sqlite3.Connection, team_id: str) -> list[Player]:
        rows = conn.execute(
            f"SELECT {_PLAYER_COLS} FROM players WHERE team_id = ? ORDER BY jersey_number",
            (team_id,),
        ).fetchall()
        return [_row_to_player(r) for r in rows]

    def set_lineup_slot(
        self, conn: sqlite3.Connection, player_id: str, slot: int | None, commit: bool = True
    ) -> None:
        conn.execute("UPDATE players SET lineup_slot = ? WHERE id = ?", (slot, player_id))
        if commit:
            conn.commit()

    def clear_lineup(self, conn: sqlite3.Connection, team_id: str, commit: bool = True) -> None:
        conn.execute("UPDATE players SET lineup_slot = NULL WHERE team_id = ?", (team_id,))
        if commit:
            conn.commit()

    def move_to_team(
        self,
        conn: sqlite3.Connection,
        player_id: str,
        team_id: str,
        jersey_number: int,
        commit: bool = True,
    ) -> None:
        """Reassign a player to another roster. The player starts on the bench there."""
        conn.execute(
            "UPDATE players SET team_id = ?, jersey_number = ?, lineup_slot = NULL WHERE id = ?",
            (team_id, jersey_number, player_id),
        )
        if commit:
            conn.commit()


# ---------- MatchRepository ----------

_MATCH_COLS = (
    "id, home_team_id, away_team_id, league_id, match_date, home_score, away_score, "
    "home_sets_won, away_sets_won, status, season"
)


def _row_to_match(row: sqlite3.Row) -> Match:
    r = dict(row)
    return Match(
        id=r["id"],
        home_team_id=r["home_team_id"],
        away_team_id=r["away_team_id"],
        league_id=r["league_id"],
        match_date=date.fromisoformat(r["match_date"]),
        status=MatchStatus(r["status"]),
        home_score=r["home_score"],
        away_score=r["away_score"],
        home_sets_won=r["home_sets_won"],
        away_sets_won=r["away_sets_won"],
        season=r["season"],
    )


class MatchRepository:
    """
    Read and write match rows. Does not enforce the status state machine;
    that lives in MatchService.
    """

    def create(
        self,
        conn: sqlite3.Connection,
        home_team_id: str,
        away_team_id: str,
        league_id: str,
        match_date: date,
        status: MatchStatus = MatchStatus.SCHEDULED,
        home_score: int = 0,
        away_score: int = 0,
        home_sets_won: int = 0,
        away_sets_won: int = 0,
        season: str = "2024",
        id: str | None = None,
    ) -> Match:
        # Build the record first so invariants are checked before touching the DB
        match = Match(
            id=id or _new_id(),
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            league_id=league_id,
            match_date=match_date,
            status=status,
            home_score=home_score,
            away_score=away_score,
            home_sets_won=home_sets_won,
            away_sets_won=away_sets_won,
            season=season,
        )
        self.insert(conn, match)
        return match

    def insert(self, conn: sqlite3.Connection, match: Match) -> None:
        now = _now_iso()
        conn.execute(
            f"INSERT INTO matches ({_MATCH_COLS}, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                match.id, match.home_team_id, match.away_team_id, match.league_id,
                match.match_date.isoformat(), match.home_score, match.away_score,
                match.home_sets_won, match.away_sets_won, match.status.value, match.season,
                now, now,
            ),
        )
        conn.commit()

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute(f"SELECT {_MATCH_COLS} FROM matches WHERE id = ?", (match_id,)).fetchone()
        return _row_to_match(row) if row is not None else None

    def list_all(
        self,
        conn: sqlite3.Connection,
        status: MatchStatus | None = None,
        league_id: str | None = None,
        team_id: str | None = None,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[Match]:
        clauses: list[str] = []
        args: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            args.append(MatchStatus(status).value)
        if league_id is not None:
            clauses.append("league_id = ?")
            args.append(league_id)
        if team_id is not None:
            clauses.append("(home_team_id = ? OR away_team_id = ?)")
            args.extend([team_id, team_id])
        sql = f"SELECT {_MATCH_COLS} FROM matches"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        direction = "DESC" if newest_first else "ASC"
        sql += f" ORDER BY match_date {direction}, rowid {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            args.append(limit)
        return [_row_to_match(r) for r in conn.execute(sql, args).fetchall()]

    def list_completed(self, conn: sqlite3.Connection, league_id: str | None = None) -> list[Match]:
        return self.list_all(conn, status=MatchStatus.COMPLETED, league_id=league_id)

    def update(self, conn: sqlite3.Connection, match: Match, commit: bool = True) -> None:
        """Overwrite status and result fields of an existing row."""
        conn.execute(
            "UPDATE matches SET status = ?, home_score = ?, away_score = ?, "
            "home_sets_won = ?, away_sets_won = ?, updated_at = ? WHERE id = ?",
            (
                match.status.value, match.home_score, match.away_score,
                match.home_sets_won, match.away_sets_won, _now_iso(), match.id,
            ),
        )
        if commit:
            conn.commit()


# ---------- TransferRepository ----------

_OFFER_COLS = "id, player_id, buying_team_id, selling_team_id, amount, status, message"
_TRANSFER_COLS = "id, player_id, from_team_id, to_team_id, fee, transfer_date, offer_id"


def _row_to_offer(row: sqlite3.Row) -> TransferOffer:
    return TransferOffer(
        id=row["id"],
        player_id=row["player_id"],
        buying_team_id=row["buying_team_id"],
        selling_team_id=row["selling_team_id"],
        amount=Decimal(row["amount"]),
        status=TransferOfferStatus(row["status"]),
        message=row["message"],
    )


def _row_to_transfer(row: sqlite3.Row) -> Transfer:
    return Transfer(
        id=row["id"],
        player_id=row["player_id"],
        from_team_id=row["from_team_id"],
        to_team_id=row["to_team_id"],
        fee=Decimal(row["fee"]),
        transfer_date=date.fromisoformat(row["transfer_date"]),
        offer_id=row["offer_id"],
    )


class TransferRepository:
    """Transfer offers and the ledger of completed transfers. Money moves in TeamRepository."""

    def create_offer(
        self,
        conn: sqlite3.Connection,
        player_id: str,
        buying_team_id: str,
        selling_team_id: str,
        amount: Decimal,
        message: str | None = None,
        id: str | None = None,
    ) -> TransferOffer:
        oid = id or _new_id()
        conn.execute(
            f"INSERT INTO transfer_offers ({_OFFER_COLS}, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                oid, player_id, buying_team_id, selling_team_id, str(amount),
                TransferOfferStatus.PENDING.value, message, _now_iso(),
            ),
        )
        conn.commit()
        return self.get_offer(conn, oid)

    def get_offer(self, conn: sqlite3.Connection, offer_id: str) -> TransferOffer | None:
        row = conn.execute(
            f"SELECT {_OFFER_COLS} FROM transfer_offers WHERE id = ?", (offer_id,)
        ).fetchone()
        return _row_to_offer(row) if row is not None else None

    def list_offers(
        self,
        conn: sqlite3.Connection,
        team_id: str | None = None,
        status: TransferOfferStatus | None = None,
        player_id: str | None = None,
    ) -> list[TransferOffer]:
        """Offers oldest first. team_id matches either the buying or the selling side."""
        clauses: list[str] = []
        args: list[Any] = []
        if team_id is not None:
            clauses.append("(buying_team_id = ? OR selling_team_id = ?)")
            args.extend([team_id, team_id])
        if status is not None:
            clauses.append("status = ?")
            args.append(TransferOfferStatus(status).value)
        if player_id is not None:
            clauses.append("player_id = ?")
            args.append(player_id)
        sql = f"SELECT {_OFFER_COLS} FROM transfer_offers"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY rowid"
        return [_row_to_offer(r) for r in conn.execute(sql, args).fetchall()]

    def set_offer_status(
        self,
        conn: sqlite3.Connection,
        offer_id: str,
        status: TransferOfferStatus,
        commit: bool = True,
    ) -> None:
        conn.execute(
            "UPDATE transfer_offers SET status = ?, responded_at = ? WHERE id = ?",
            (TransferOfferStatus(status).value, _now_iso(), offer_id),
        )
        if commit:
            conn.commit()

    def record_transfer(
        self,
        conn: sqlite3.Connection,
        player_id: str,
        from_team_id: str,
        to_team_id: str,
        fee: Decimal,
        transfer_date: date,
        offer_id: str | None = None,
        commit: bool = True,
    ) -> Transfer:
        transfer = Transfer(
            id=_new_id(),
            player_id=player_id,
            from_team_id=from_team_id,
            to_team_id=to_team_id,
            fee=fee,
            transfer_date=transfer_date,
            offer_id=offer_id,
        )
        conn.execute(
            f"INSERT INTO transfers ({_TRANSFER_COLS}, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                transfer.id, player_id, from_team_id, to_team_id, str(fee),
                transfer_date.isoformat(), offer_id, _now_iso(),
            ),
        )
        if commit:
            conn.commit()
        return transfer

    def list_transfers(self, conn: sqlite3.Connection, team_id: str | None = None) -> list[Transfer]:
        """Completed transfers, most recent first."""
        if team_id is None:
            rows = conn.execute(
                f"SELECT {_TRANSFER_COLS} FROM transfers ORDER BY transfer_date DESC, rowid DESC"
            ).fetchall()
        else:
            rows = conn.execute(
                f"SELECT {_TRANSFER_COLS} FROM transfers WHERE from_team_id = ? OR to_team_id = ? "
                "ORDER BY transfer_date DESC, rowid DESC",
                (team_id, team_id),
            ).fetchall()
        return [_row_to_transfer(r) for r in rows]
