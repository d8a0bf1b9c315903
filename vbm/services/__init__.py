"""
Service layer: standings aggregation, match lifecycle, scheduling, simulation, transfers.
standings_service and scheduling are pure; the other services orchestrate persistence.
"""
from .standings_service import (
    classify_result,
    compute_standings,
    league_standings,
    rank_rows,
    standings_sort_key,
    team_standing,
)
from .match_service import MatchService
from .simulation_service import (
    SimulationOutcome,
    simulate_fixture,
    simulate_instant_match,
    simulate_round,
)
from .league_service import LeagueService, TeamStatistics
from .squad_service import set_starting_lineup, starting_lineup
from .transfer_service import TransferService

__all__ = [
    "classify_result",
    "compute_standings",
    "league_standings",
    "rank_rows",
    "standings_sort_key",
    "team_standing",
    "MatchService",
    "SimulationOutcome",
    "simulate_fixture",
    "simulate_instant_match",
    "simulate_round",
    "LeagueService",
    "TeamStatistics",
    "set_starting_lineup",
    "starting_lineup",
    "TransferService",
]
