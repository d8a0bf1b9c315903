"""
Tests for the league service against a seeded SQLite store:
standings from persisted matches, team statistics, season scheduling, round simulation.
"""
from __future__ import annotations

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from vbm.errors import InvalidInputError, NotFoundError
from vbm.models import MatchStatus, StandingsRow
from vbm.persistence.db import get_connection, init_db, set_db_path
from vbm.persistence.repositories import (
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
)
from vbm.services.league_service import LeagueService, TeamStatistics
from vbm.services.match_service import MatchService
from vbm.services.simulation_service import default_simulator, team_strength_for
from vbm.simulation import SeededRNG


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB seeded with the demo leagues."""
    db_path = tmp_path / "league_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path, seed_demo=True)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def league_service():
    return LeagueService()


@pytest.fixture
def leagues(db_conn):
    return {lg.name: lg for lg in LeagueRepository().list_all(db_conn)}


@pytest.fixture
def teams(db_conn):
    return {t.name: t for t in TeamRepository().list_all(db_conn)}


def _finish_pending(conn, service, league_id):
    seed = 1
    while service.simulate_next_round(conn, league_id, seed=seed):
        seed += 10


def test_demo_standings(db_conn, league_service, leagues):
    vbl = leagues["VB League"].id
    table = league_service.standings(db_conn, vbl)[vbl]
    assert [r.team_name for r in table] == ["Your Team", "Wave Crushers", "Thunder Bolts", "Storm Riders"]
    top = table[0]
    assert (top.matches_played, top.wins, top.losses, top.points) == (3, 3, 0, 9)
    assert top.win_percentage == 100.0
    assert top.league_name == "VB League"
    assert table[-1].points == 0


def test_all_leagues_standings(db_conn, league_service, leagues):
    tables = league_service.standings(db_conn)
    assert set(tables) == {lg.id for lg in leagues.values()}
    div2 = tables[leagues["VBL Division 2"].id]
    assert [r.team_name for r in div2] == ["Rising Stars", "Fire Hawks", "Ice Breakers"]


def test_standings_unknown_league(db_conn, league_service):
    with pytest.raises(NotFoundError):
        league_service.standings(db_conn, "nope")


def test_standings_follow_new_results(db_conn, league_service, leagues, teams):
    """Nothing is cached: a newly completed match shows up on the next read."""
    vbl = leagues["VB League"].id
    before = {r.team_id: r for r in league_service.standings(db_conn, vbl)[vbl]}
    ms = MatchService()
    m = ms.schedule_match(db_conn, teams["Storm Riders"].id, teams["Your Team"].id, date(2024, 3, 1))
    ms.complete_match(db_conn, m.id, 3, 0, 75, 60)
    after = {r.team_id: r for r in league_service.standings(db_conn, vbl)[vbl]}
    sr = teams["Storm Riders"].id
    assert after[sr].points == before[sr].points + 3
    assert after[sr].goals_for == before[sr].goals_for + 75


def test_team_standing(db_conn, league_service, teams):
    row = league_service.team_standing(db_conn, teams["Thunder Bolts"].id)
    assert (row.wins, row.losses, row.points) == (1, 2, 3)
    with pytest.raises(NotFoundError):
        league_service.team_standing(db_conn, "missing")


def test_team_statistics(db_conn, league_service, teams):
    stats = league_service.team_statistics(db_conn, teams["Your Team"].id)
    assert stats.squad_size == 10
    assert stats.win_rate == 100
    assert stats.strength is not None and 1 <= stats.strength <= 100
    d = stats.to_dict()
    assert d["budget"] == "1000000.00"
    assert d["points"] == 9


def test_recent_matches_newest_first(db_conn, league_service):
    recent = league_service.recent_matches(db_conn, limit=4)
    assert len(recent) == 4
    assert all(m.status is MatchStatus.COMPLETED for m in recent)
    dates = [m.match_date for m in recent]
    assert dates == sorted(dates, reverse=True)


def test_schedule_season_refused_while_fixtures_pending(db_conn, league_service, leagues):
    with pytest.raises(InvalidInputError):
        league_service.schedule_season(db_conn, leagues["VB League"].id, date(2024, 3, 1))


def test_schedule_and_play_season(db_conn, league_service, leagues):
    vbl = leagues["VB League"].id
    _finish_pending(db_conn, league_service, vbl)
    assert league_service.pending_matches(db_conn, vbl) == []
    played_before = sum(r.matches_played for r in league_service.standings(db_conn, vbl)[vbl])

    fixtures = league_service.schedule_season(db_conn, vbl, date(2024, 3, 1), double_round=True)
    # 4 teams, home and away: 12 fixtures over 6 rounds
    assert len(fixtures) == 12
    assert league_service.next_round_date(db_conn, vbl) == date(2024, 3, 1)

    rounds = 0
    seed = 100
    while True:
        outcomes = league_service.simulate_next_round(db_conn, vbl, seed=seed)
        if not outcomes:
            break
        rounds += 1
        seed += 10
        assert len(outcomes) == 2
    assert rounds == 6
    assert league_service.next_round_date(db_conn, vbl) is None

    table = league_service.standings(db_conn, vbl)[vbl]
    assert sum(r.matches_played for r in table) == played_before + 2 * 12


def test_simulate_round_is_reproducible(tmp_path):
    def run(name):
        db_path = tmp_path / name
        set_db_path(db_path)
        init_db(db_path=db_path, seed_demo=True)
        conn = get_connection()
        try:
            service = LeagueService()
            league = LeagueRepository().get_by_name(conn, "VB League")
            outcomes = service.simulate_next_round(conn, league.id, seed=42)
            return [(o.home_strength, o.away_strength, o.result) for o in outcomes]
        finally:
            conn.close()

    assert run("a.db") == run("b.db")


def test_simulate_round_nothing_pending(db_conn, league_service, leagues):
    vbl = leagues["VB League"].id
    _finish_pending(db_conn, league_service, vbl)
    assert league_service.simulate_next_round(db_conn, vbl, seed=5) == []


def test_schedule_season_needs_two_teams(db_conn, league_service):
    lonely = LeagueRepository().create(db_conn, "Lonely League")
    TeamRepository().create(db_conn, "Solo", lonely.id)
    with pytest.raises(InvalidInputError):
        league_service.schedule_season(db_conn, lonely.id, date(2024, 3, 1))


def test_cancelled_fixture_is_not_pending(db_conn, league_service, leagues):
    vbl = leagues["VB League"].id
    pending = league_service.pending_matches(db_conn, vbl)
    assert len(pending) == 2
    MatchService().cancel_match(db_conn, pending[0].id)
    assert len(league_service.pending_matches(db_conn, vbl)) == 1
    assert MatchRepository().get(db_conn, pending[0].id).status is MatchStatus.CANCELLED


def test_team_statistics_win_rate_rounds_halves_up():
    standing = StandingsRow("t1", "T1", "L1", matches_played=8, wins=1, losses=7, points=3)
    stats = TeamStatistics(
        team_id="t1",
        team_name="T1",
        league_id="L1",
        budget=Decimal("0.00"),
        squad_size=0,
        average_rating=0.0,
        strength=None,
        standing=standing,
    )
    assert stats.win_rate == 13
    assert stats.to_dict()["win_rate"] == 13


# ---------- Rounds are all-or-nothing ----------

_STATS = {"overall": 70, "attack": 70, "defense": 70, "serve": 70, "block": 70, "receive": 70, "setting": 70}


def _add_roster(conn, team_id, size=7):
    repo = PlayerRepository()
    for n in range(1, size + 1):
        repo.create(conn, f"Player {n}", team_id, "Outside Hitter", 25, "Italy", n, _STATS)


@pytest.fixture
def four_team_round(db_conn):
    """League a/b/c/d with one round on 2024-09-01: a vs d, then b vs c. Team c has no players yet."""
    league = LeagueRepository().create(db_conn, "Round League")
    team_repo = TeamRepository()
    teams = {name: team_repo.create(db_conn, f"Team {name}", league.id) for name in "abcd"}
    for name in "abd":
        _add_roster(db_conn, teams[name].id)
    ms = MatchService()
    first = ms.schedule_match(db_conn, teams["a"].id, teams["d"].id, date(2024, 9, 1))
    second = ms.schedule_match(db_conn, teams["b"].id, teams["c"].id, date(2024, 9, 1))
    return league, teams, first, second


def test_failed_round_writes_nothing(db_conn, league_service, four_team_round):
    league, _, first, second = four_team_round
    with pytest.raises(InvalidInputError):
        league_service.simulate_next_round(db_conn, league.id, seed=1)
    repo = MatchRepository()
    assert [repo.get(db_conn, m.id).status for m in (first, second)] == [
        MatchStatus.SCHEDULED,
        MatchStatus.SCHEDULED,
    ]
    # A fresh connection sees the same thing: nothing was left uncommitted either
    other = get_connection()
    try:
        assert MatchRepository().get(other, first.id).status is MatchStatus.SCHEDULED
    finally:
        other.close()


def test_round_retry_after_fix_uses_round_position_seeds(db_conn, league_service, four_team_round):
    league, teams, first, second = four_team_round
    with pytest.raises(InvalidInputError):
        league_service.simulate_next_round(db_conn, league.id, seed=1)
    _add_roster(db_conn, teams["c"].id)
    outcomes = league_service.simulate_next_round(db_conn, league.id, seed=1)
    assert [(o.match.id, o.seed) for o in outcomes] == [(first.id, 1), (second.id, 2)]
    assert all(o.match.status is MatchStatus.COMPLETED for o in outcomes)


def test_round_seed_ignores_already_played_fixtures(db_conn, league_service, four_team_round):
    league, teams, first, second = four_team_round
    _add_roster(db_conn, teams["c"].id)
    MatchService().complete_match(db_conn, first.id, 3, 1, 98, 90)

    outcomes = league_service.simulate_next_round(db_conn, league.id, seed=1)
    assert len(outcomes) == 1
    assert outcomes[0].match.id == second.id
    assert outcomes[0].seed == 2
    expected = default_simulator().simulate(
        team_strength_for(db_conn, teams["b"].id),
        team_strength_for(db_conn, teams["c"].id),
        SeededRNG(2),
    )
    assert outcomes[0].result == expected
