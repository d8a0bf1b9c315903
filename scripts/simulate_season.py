#!/usr/bin/env python3
"""
Season run: seed demo data -> play out pending fixtures -> schedule a fresh round robin
-> simulate it round by round -> print the final table.
Run from project root: python3 scripts/simulate_season.py --seed 7
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from vbm import config
from vbm.persistence import LeagueRepository, TeamRepository, get_connection, init_db, set_db_path
from vbm.services import LeagueService, rank_rows


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a full volleyball league season")
    parser.add_argument("--db", type=Path, default=PROJECT_ROOT / "data" / "season_demo.db")
    parser.add_argument("--league", default="VB League", help="League name")
    parser.add_argument("--seed", type=int, default=2024)
    parser.add_argument("--start-date", type=date.fromisoformat, default=date(2024, 3, 1))
    parser.add_argument("--double-round", action="store_true", help="Home and away legs")
    return parser.parse_args()


def _print_table(rows) -> None:
    print(f"{'#':>2}  {'Team':<16} {'MP':>3} {'W':>3} {'D':>3} {'L':>3} {'PF':>5} {'PA':>5} {'Diff':>5} {'Pts':>4} {'Win%':>6}")
    for pos, r in rank_rows(rows):
        print(
            f"{pos:>2}  {r.team_name:<16} {r.matches_played:>3} {r.wins:>3} {r.draws:>3} {r.losses:>3} "
            f"{r.goals_for:>5} {r.goals_against:>5} {r.goal_difference:>+5} {r.points:>4} {r.win_percentage:>6.1f}"
        )


def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=config.LOG_LEVEL)

    set_db_path(args.db)
    init_db(db_path=args.db, seed_demo=True, seed=args.seed)

    conn = get_connection()
    try:
        league = LeagueRepository().get_by_name(conn, args.league)
        if league is None:
            print(f"No league named {args.league!r}", file=sys.stderr)
            sys.exit(1)
        service = LeagueService()
        names = {t.id: t.name for t in TeamRepository().list_all(conn, league_id=league.id)}

        # 1. Finish whatever is still on the calendar
        seed = args.seed
        while service.simulate_next_round(conn, league.id, seed=seed):
            seed += 100

        # 2. Fresh round robin
        fixtures = service.schedule_season(
            conn, league.id, args.start_date, double_round=args.double_round
        )
        print(f"Scheduled {len(fixtures)} fixtures in {league.name}")

        # 3. Play it out round by round
        round_no = 0
        while True:
            round_date = service.next_round_date(conn, league.id)
            outcomes = service.simulate_next_round(conn, league.id, seed=seed)
            if not outcomes:
                break
            round_no += 1
            seed += 100
            print(f"\nRound {round_no} ({round_date})")
            for o in outcomes:
                m = o.match
                print(
                    f"  {names[m.home_team_id]:<16} {m.home_sets_won}-{m.away_sets_won} {names[m.away_team_id]:<16}"
                    f"  (p_home={o.result.home_win_probability:.2f}, seed={o.seed})"
                )

        # 4. Final table
        print(f"\n{league.name} standings")
        _print_table(service.standings(conn, league.id)[league.id])
    finally:
        conn.close()


if __name__ == "__main__":
    main()
