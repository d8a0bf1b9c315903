"""
Standings aggregation: completed matches + teams -> one ranked table per league.

Pure functions over an in-memory snapshot. Nothing is cached; every call
recomputes from scratch, so calling twice on the same input gives the same table.

Result classification uses sets won only (3 points win, 1 draw, 0 loss);
home_score/away_score feed goals_for/goals_against.
Order: points desc, goal_difference desc, wins desc, team name asc.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from vbm.errors import DataIntegrityError, NotFoundError
from vbm.models import League, Match, MatchResult, MatchStatus, StandingsRow, Team

RESULT_POINTS: dict[MatchResult, int] = {
    MatchResult.WIN: 3,
    MatchResult.DRAW: 1,
    MatchResult.LOSS: 0,
}


def classify_result(sets_for: int, sets_against: int) -> MatchResult:
    if sets_for > sets_against:
        return MatchResult.WIN
    if sets_for < sets_against:
        return MatchResult.LOSS
    return MatchResult.DRAW


def standings_sort_key(row: StandingsRow) -> tuple[int, int, int, str]:
    return (-row.points, -row.goal_difference, -row.wins, row.team_name)


def rank_rows(rows: Iterable[StandingsRow]) -> list[tuple[int, StandingsRow]]:
    """(position, row) pairs, 1-based, in standings order."""
    return list(enumerate(sorted(rows, key=standings_sort_key), start=1))


def _index_teams(teams: Iterable[Team]) -> dict[str, Team]:
    by_id: dict[str, Team] = {}
    for team in teams:
        seen = by_id.get(team.id)
        if seen is not None and seen.league_id != team.league_id:
            raise DataIntegrityError(
                f"Team {team.id} appears in two leagues ({seen.league_id}, {team.league_id})"
            )
        by_id[team.id] = team
    return by_id


def _apply_match(row: StandingsRow, match: Match, team_id: str) -> None:
    opponent = match.opponent_of(team_id)
    result = classify_result(match.sets_for(team_id), match.sets_for(opponent))
    row.matches_played += 1
    if result is MatchResult.WIN:
        row.wins += 1
    elif result is MatchResult.LOSS:
        row.losses += 1
    else:
        row.draws += 1
    row.points += RESULT_POINTS[result]
    row.goals_for += match.score_for(team_id)
    row.goals_against += match.score_for(opponent)


def compute_standings(
    teams: Iterable[Team],
    matches: Iterable[Match],
    leagues: Iterable[League] | None = None,
) -> dict[str, list[StandingsRow]]:
    """
    Ranked standings for every league that has at least one team, keyed by league id.
    Every team gets a row, including teams with no completed matches.
    Raises DataIntegrityError on an inconsistent snapshot instead of skipping records.
    """
    team_by_id = _index_teams(teams)
    league_names: Mapping[str, str] = {lg.id: lg.name for lg in (leagues or ())}

    rows: dict[str, StandingsRow] = {
        t.id: StandingsRow(
            team_id=t.id,
            team_name=t.name,
            league_id=t.league_id,
            league_name=league_names.get(t.league_id),
        )
        for t in team_by_id.values()
    }

    for match in matches:
        if match.status is not MatchStatus.COMPLETED:
            continue
        for team_id in (match.home_team_id, match.away_team_id):
            team = team_by_id.get(team_id)
            if team is None:
                raise DataIntegrityError(f"Match {match.id} references unknown team {team_id}")
            if team.league_id != match.league_id:
                raise DataIntegrityError(
                    f"Match {match.id} is in league {match.league_id} but team {team_id} "
                    f"plays in league {team.league_id}"
                )
        _apply_match(rows[match.home_team_id], match, match.home_team_id)
        _apply_match(rows[match.away_team_id], match, match.away_team_id)

    tables: dict[str, list[StandingsRow]] = {}
    for row in rows.values():
        tables.setdefault(row.league_id, []).append(row)
    return {
        league_id: sorted(table, key=standings_sort_key)
        for league_id, table in sorted(tables.items())
    }


def league_standings(
    teams: Iterable[Team],
    matches: Iterable[Match],
    league_id: str,
    leagues: Iterable[League] | None = None,
) -> list[StandingsRow]:
    """
    Ranked table for one league. The whole snapshot is still validated so a corrupt
    record elsewhere is not hidden. A league with no teams yields an empty table.
    """
    return compute_standings(teams, matches, leagues).get(league_id, [])


def team_standing(
    teams: Iterable[Team],
    matches: Iterable[Match],
    team_id: str,
    leagues: Iterable[League] | None = None,
) -> StandingsRow:
    for table in compute_standings(teams, matches, leagues).values():
        for row in table:
            if row.team_id == team_id:
                return row
    raise NotFoundError(f"Team not found: {team_id}")
