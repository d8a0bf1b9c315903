"""
SQLite schema for the volleyball manager.
Migration-friendly: each table created with IF NOT EXISTS.
Constraints mirror the domain invariants so a bad row cannot be written in the first place.
"""
from __future__ import annotations


def leagues_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS leagues (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        created_at TEXT NOT NULL
    );
    """


def teams_schema() -> str:
    """money stored as TEXT decimal (fixed precision, read back as Decimal)."""
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        league_id TEXT NOT NULL,
        money TEXT NOT NULL DEFAULT '1000000.00',
        created_at TEXT NOT NULL,
        FOREIGN KEY (league_id) REFERENCES leagues(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_teams_league ON teams(league_id);
    """


def players_schema() -> str:
    """team_id NULL = free agent. lineup_slot 1-7 = starting lineup."""
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        team_id TEXT,
        position TEXT NOT NULL,
        age INTEGER NOT NULL CHECK (age >= 16 AND age <= 50),
        country TEXT NOT NULL,
        jersey_number INTEGER NOT NULL CHECK (jersey_number >= 1 AND jersey_number <= 99),
        overall INTEGER NOT NULL CHECK (overall >= 1 AND overall <= 100),
        attack INTEGER NOT NULL CHECK (attack >= 1 AND attack <= 100),
        defense INTEGER NOT NULL CHECK (defense >= 1 AND defense <= 100),
        serve INTEGER NOT NULL CHECK (serve >= 1 AND serve <= 100),
        block INTEGER NOT NULL CHECK (block >= 1 AND block <= 100),
        receive INTEGER NOT NULL CHECK (receive >= 1 AND receive <= 100),
        setting INTEGER NOT NULL CHECK (setting >= 1 AND setting <= 100),
        contract_years INTEGER NOT NULL DEFAULT 1 CHECK (contract_years >= 1 AND contract_years <= 10),
        monthly_wage TEXT NOT NULL DEFAULT '1000.00',
        player_value TEXT NOT NULL DEFAULT '100000.00',
        lineup_slot INTEGER CHECK (lineup_slot IS NULL OR (lineup_slot >= 1 AND lineup_slot <= 7)),
        created_at TEXT NOT NULL,
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE SET NULL
    );
    CREATE INDEX IF NOT EXISTS ix_players_team ON players(team_id);
    CREATE UNIQUE INDEX IF NOT EXISTS ix_players_team_jersey ON players(team_id, jersey_number) WHERE team_id IS NOT NULL;
    CREATE UNIQUE INDEX IF NOT EXISTS ix_players_team_slot ON players(team_id, lineup_slot) WHERE lineup_slot IS NOT NULL;
    """


def matches_schema() -> str:
    """status: scheduled | in_progress | completed | cancelled."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        league_id TEXT NOT NULL,
        match_date TEXT NOT NULL,
        home_score INTEGER NOT NULL DEFAULT 0,
        away_score INTEGER NOT NULL DEFAULT 0,
        home_sets_won INTEGER NOT NULL DEFAULT 0,
        away_sets_won INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'scheduled'
            CHECK (status IN ('scheduled', 'in_progress', 'completed', 'cancelled')),
        season TEXT NOT NULL DEFAULT '2024',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        CONSTRAINT different_teams CHECK (home_team_id != away_team_id),
        CONSTRAINT valid_scores CHECK (home_score >= 0 AND away_score >= 0),
        CONSTRAINT valid_sets CHECK (
            home_sets_won >= 0 AND home_sets_won <= 5 AND away_sets_won >= 0 AND away_sets_won <= 5
        ),
        FOREIGN KEY (home_team_id) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (away_team_id) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (league_id) REFERENCES leagues(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_matches_home ON matches(home_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_away ON matches(away_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_league ON matches(league_id);
    CREATE INDEX IF NOT EXISTS ix_matches_date ON matches(match_date);
    CREATE INDEX IF NOT EXISTS ix_matches_status ON matches(status);
    """


def transfers_schema() -> str:
    """
    transfer_offers.status: pending | accepted | rejected | withdrawn.
    One pending offer per (player, buying team). transfers is the ledger of completed moves.
    """
    return """
    CREATE TABLE IF NOT EXISTS transfer_offers (
        id TEXT PRIMARY KEY,
        player_id TEXT NOT NULL,
        buying_team_id TEXT NOT NULL,
        selling_team_id TEXT NOT NULL,
        amount TEXT NOT NULL CHECK (CAST(amount AS REAL) > 0),
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'accepted', 'rejected', 'withdrawn')),
        message TEXT,
        created_at TEXT NOT NULL,
        responded_at TEXT,
        CONSTRAINT different_sides CHECK (buying_team_id != selling_team_id),
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE,
        FOREIGN KEY (buying_team_id) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (selling_team_id) REFERENCES teams(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_offers_player ON transfer_offers(player_id);
    CREATE UNIQUE INDEX IF NOT EXISTS ix_offers_one_pending
        ON transfer_offers(player_id, buying_team_id) WHERE status = 'pending';

    CREATE TABLE IF NOT EXISTS transfers (
        id TEXT PRIMARY KEY,
        player_id TEXT NOT NULL,
        from_team_id TEXT NOT NULL,
        to_team_id TEXT NOT NULL,
        fee TEXT NOT NULL,
        transfer_date TEXT NOT NULL,
        offer_id TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE,
        FOREIGN KEY (from_team_id) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (to_team_id) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (offer_id) REFERENCES transfer_offers(id) ON DELETE SET NULL
    );
    CREATE INDEX IF NOT EXISTS ix_transfers_player ON transfers(player_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: leagues, teams, players, matches, transfers."""
    return "\n".join([
        leagues_schema(),
        teams_schema(),
        players_schema(),
        matches_schema(),
        transfers_schema(),
    ])
