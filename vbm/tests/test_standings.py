"""
Tests for the standings aggregator: classification, points, ordering, integrity errors.
Pure functions; no database.
"""
from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from vbm.errors import DataIntegrityError, NotFoundError
from vbm.models import League, Match, MatchResult, MatchStatus, StandingsRow, Team, win_ratio_percent
from vbm.services.standings_service import (
    classify_result,
    compute_standings,
    league_standings,
    rank_rows,
    team_standing,
)

L1 = "L1"
L2 = "L2"


def _team(tid: str, name: str | None = None, league_id: str = L1) -> Team:
    return Team(id=tid, name=name or tid, league_id=league_id)


_match_counter = 0


def _match(
    home: str,
    away: str,
    home_sets: int,
    away_sets: int,
    home_score: int | None = None,
    away_score: int | None = None,
    league_id: str = L1,
    status: MatchStatus = MatchStatus.COMPLETED,
) -> Match:
    global _match_counter
    _match_counter += 1
    return Match(
        id=f"m{_match_counter}",
        home_team_id=home,
        away_team_id=away,
        league_id=league_id,
        match_date=date(2024, 1, 1),
        status=status,
        home_score=home_sets if home_score is None else home_score,
        away_score=away_sets if away_score is None else away_score,
        home_sets_won=home_sets,
        away_sets_won=away_sets,
    )


def _row(table, team_id):
    return next(r for r in table if r.team_id == team_id)


def test_classify_result():
    assert classify_result(3, 1) is MatchResult.WIN
    assert classify_result(2, 3) is MatchResult.LOSS
    assert classify_result(2, 2) is MatchResult.DRAW


def test_two_wins_one_loss_ranked_above_one_win():
    """A beats B, A beats C, B beats A: A 6 pts, B 3 pts."""
    teams = [_team("A"), _team("B"), _team("C")]
    matches = [
        _match("A", "B", 3, 1),
        _match("A", "C", 3, 0),
        _match("B", "A", 3, 2),
    ]
    table = compute_standings(teams, matches)[L1]
    a = _row(table, "A")
    assert (a.matches_played, a.wins, a.losses, a.draws, a.points) == (3, 2, 1, 0, 6)
    b = _row(table, "B")
    assert (b.matches_played, b.wins, b.losses, b.points) == (2, 1, 1, 3)
    assert [r.team_id for r in table][:2] == ["A", "B"]
    assert a.win_percentage == pytest.approx(66.7)


def test_head_to_head_series():
    teams = [_team("A"), _team("B")]
    matches = [
        _match("A", "B", 3, 1, 98, 85),
        _match("B", "A", 0, 3, 60, 75),
        _match("A", "B", 2, 3, 105, 108),
    ]
    table = compute_standings(teams, matches)[L1]
    assert [r.team_id for r in table] == ["A", "B"]
    a, b = table
    assert (a.matches_played, a.wins, a.losses, a.draws, a.points) == (3, 2, 1, 0, 6)
    assert (b.matches_played, b.wins, b.losses, b.draws, b.points) == (3, 1, 2, 0, 3)
    assert a.goal_difference == (98 + 75 + 105) - (85 + 60 + 108)
    assert b.goal_difference == -a.goal_difference


def test_equal_sets_count_as_draw_for_both():
    teams = [_team("A"), _team("B")]
    table = compute_standings(teams, [_match("A", "B", 2, 2, 50, 48)])[L1]
    for tid in ("A", "B"):
        row = _row(table, tid)
        assert row.draws == 1
        assert row.points == 1
        assert row.wins == 0 and row.losses == 0


def test_team_without_matches_has_zero_row():
    teams = [_team("A"), _team("B"), _team("Idle")]
    table = compute_standings(teams, [_match("A", "B", 3, 0)])[L1]
    idle = _row(table, "Idle")
    assert idle.matches_played == 0
    assert idle.points == 0
    assert idle.goal_difference == 0
    assert idle.win_percentage == 0.0
    assert len(table) == 3


def test_points_conservation():
    """Per league: sum(points) == 3 * decisive matches + 2 * draws."""
    teams = [_team(t) for t in "ABCD"]
    matches = [
        _match("A", "B", 3, 1),
        _match("C", "D", 2, 2),
        _match("B", "C", 0, 3),
        _match("D", "A", 3, 2),
        _match("A", "C", 1, 1),
    ]
    table = compute_standings(teams, matches)[L1]
    decisive = sum(1 for m in matches if m.home_sets_won != m.away_sets_won)
    draws = len(matches) - decisive
    assert sum(r.points for r in table) == 3 * decisive + 2 * draws
    assert sum(r.wins for r in table) == sum(r.losses for r in table)
    for r in table:
        assert r.matches_played == r.wins + r.losses + r.draws
        assert r.points == 3 * r.wins + r.draws


def test_idempotent():
    teams = [_team("A"), _team("B"), _team("C")]
    matches = [_match("A", "B", 3, 1, 90, 80), _match("C", "A", 3, 2, 110, 104)]
    first = compute_standings(teams, matches)
    second = compute_standings(teams, matches)
    assert {k: [r.to_dict() for r in v] for k, v in first.items()} == {
        k: [r.to_dict() for r in v] for k, v in second.items()
    }


def test_order_independent_of_match_order():
    teams = [_team("A"), _team("B"), _team("C")]
    matches = [_match("A", "B", 3, 1, 90, 80), _match("C", "A", 3, 2, 110, 104), _match("B", "C", 3, 0)]
    forward = [r.to_dict() for r in compute_standings(teams, matches)[L1]]
    backward = [r.to_dict() for r in compute_standings(teams, list(reversed(matches)))[L1]]
    assert forward == backward


def test_tie_break_goal_difference_then_wins_then_name():
    # Zulu and Alpha both win once and lose once; Zulu has the better score difference
    teams = [_team("z", "Zulu"), _team("a", "Alpha"), _team("m", "Mike")]
    matches = [
        _match("z", "m", 3, 0, 75, 40),
        _match("m", "z", 3, 2, 100, 98),
        _match("a", "m", 3, 2, 100, 99),
        _match("m", "a", 3, 1, 95, 80),
    ]
    table = compute_standings(teams, matches)[L1]
    z, a = _row(table, "z"), _row(table, "a")
    assert z.points == a.points == 3
    assert z.goal_difference > a.goal_difference
    assert table.index(z) < table.index(a)


def test_tie_break_alphabetical_when_all_equal():
    teams = [_team("t2", "Bravo"), _team("t1", "Alpha"), _team("t3", "Charlie")]
    table = compute_standings(teams, [])[L1]
    assert [r.team_name for r in table] == ["Alpha", "Bravo", "Charlie"]


def test_score_feeds_goals_not_result():
    teams = [_team("A"), _team("B")]
    # Fewer total points but more sets: still a win
    table = compute_standings(teams, [_match("A", "B", 3, 2, 95, 101)])[L1]
    a = _row(table, "A")
    assert a.wins == 1
    assert (a.goals_for, a.goals_against, a.goal_difference) == (95, 101, -6)


def test_ignores_non_completed_matches():
    teams = [_team("A"), _team("B")]
    matches = [
        _match("A", "B", 0, 0, status=MatchStatus.SCHEDULED),
        _match("A", "B", 0, 0, status=MatchStatus.IN_PROGRESS),
        _match("A", "B", 0, 0, status=MatchStatus.CANCELLED),
    ]
    table = compute_standings(teams, matches)[L1]
    assert all(r.matches_played == 0 for r in table)


def test_leagues_are_separate_tables():
    teams = [_team("A"), _team("B"), _team("X", league_id=L2), _team("Y", league_id=L2)]
    leagues = [League(L1, "First"), League(L2, "Second")]
    matches = [_match("A", "B", 3, 0), _match("X", "Y", 1, 3, league_id=L2)]
    tables = compute_standings(teams, matches, leagues)
    assert set(tables) == {L1, L2}
    assert {r.team_id for r in tables[L2]} == {"X", "Y"}
    assert tables[L2][0].team_id == "Y"
    assert tables[L2][0].league_name == "Second"


def test_unknown_team_raises():
    teams = [_team("A")]
    with pytest.raises(DataIntegrityError):
        compute_standings(teams, [_match("A", "Ghost", 3, 0)])


def test_cross_league_match_raises():
    teams = [_team("A"), _team("X", league_id=L2)]
    with pytest.raises(DataIntegrityError):
        compute_standings(teams, [_match("A", "X", 3, 0)])


def test_match_league_differs_from_teams_raises():
    teams = [_team("A"), _team("B")]
    with pytest.raises(DataIntegrityError):
        compute_standings(teams, [_match("A", "B", 3, 0, league_id=L2)])


def test_team_in_two_leagues_raises():
    with pytest.raises(DataIntegrityError):
        compute_standings([_team("A"), _team("A", league_id=L2)], [])


def test_match_against_itself_cannot_be_built():
    with pytest.raises(DataIntegrityError):
        _match("A", "A", 3, 0)


def test_league_standings_empty_league():
    assert league_standings([_team("A")], [], "nope") == []


def test_team_standing_unknown_team():
    with pytest.raises(NotFoundError):
        team_standing([_team("A")], [], "B")


def test_rank_rows_positions():
    teams = [_team("A"), _team("B")]
    table = compute_standings(teams, [_match("B", "A", 3, 0)])[L1]
    ranked = rank_rows(table)
    assert [(pos, r.team_id) for pos, r in ranked] == [(1, "B"), (2, "A")]


# ---------- Win percentage ----------


@pytest.mark.parametrize(
    "wins,played,expected",
    [(1, 16, 6.3), (3, 16, 18.8), (2, 3, 66.7), (1, 8, 12.5), (0, 0, 0.0), (5, 5, 100.0)],
)
def test_win_percentage_rounds_halves_up(wins, played, expected):
    row = StandingsRow("t1", "T1", L1, matches_played=played, wins=wins, losses=played - wins)
    assert row.win_percentage == expected
    assert row.to_dict()["win_percentage"] == expected


def test_win_ratio_percent_whole_numbers():
    assert str(win_ratio_percent(1, 8, "1")) == "13"
    assert str(win_ratio_percent(3, 8, "1")) == "38"
    assert str(win_ratio_percent(0, 0, "1")) == "0"
