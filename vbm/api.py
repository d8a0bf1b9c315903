"""
REST API for the volleyball manager backend.
Thin wrappers around domain services and persistence; domain errors are mapped to HTTP codes here.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from vbm import __version__, config
from vbm.errors import (
    DataIntegrityError,
    InvalidInputError,
    MaintenanceModeRequiredError,
    MatchTransitionError,
    NotFoundError,
    OfferStateError,
)
from vbm.models import MatchStatus, TransferOfferStatus
from vbm.persistence import (
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    get_connection,
    get_db_path,
    init_db,
)
from vbm.services import (
    LeagueService,
    MatchService,
    TransferService,
    rank_rows,
    set_starting_lineup,
    simulate_fixture,
    simulate_instant_match,
)

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(level=config.LOG_LEVEL)
    config.validate_config()
    init_db(db_path=get_db_path())
    logger.info("Database ready at %s", get_db_path())
    if config.maintenance_mode_enabled():
        logger.warning("Maintenance mode is ON: administrative match corrections are allowed")
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Volleyball Manager API",
    description="Leagues, standings, rosters, transfers and match simulation",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Domain error mapping ----------


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, exc)


@app.exception_handler(InvalidInputError)
async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error(400, exc)


@app.exception_handler(MatchTransitionError)
async def _bad_transition(request: Request, exc: MatchTransitionError) -> JSONResponse:
    return _error(409, exc)


@app.exception_handler(OfferStateError)
async def _offer_closed(request: Request, exc: OfferStateError) -> JSONResponse:
    return _error(409, exc)


@app.exception_handler(MaintenanceModeRequiredError)
async def _maintenance_required(request: Request, exc: MaintenanceModeRequiredError) -> JSONResponse:
    return _error(403, exc)


@app.exception_handler(DataIntegrityError)
async def _data_integrity(request: Request, exc: DataIntegrityError) -> JSONResponse:
    logger.error("Data integrity violation on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, exc)


# ---------- Request models ----------


class ScheduleMatchRequest(BaseModel):
    home_team_id: str
    away_team_id: str
    match_date: date
    season: str | None = Field(None, description="Defaults to VBM_DEFAULT_SEASON")


class CompleteMatchRequest(BaseModel):
    home_sets_won: int = Field(..., ge=0, le=5)
    away_sets_won: int = Field(..., ge=0, le=5)
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)


class SimulateMatchRequest(BaseModel):
    seed: int | None = Field(default=None, description="RNG seed for reproducibility")


class InstantMatchRequest(BaseModel):
    home_team_id: str
    away_team_id: str
    seed: int | None = Field(default=None, description="RNG seed for reproducibility")
    match_date: date | None = None


class ScheduleSeasonRequest(BaseModel):
    start_date: date
    double_round: bool = False
    round_interval_days: int = Field(default=7, ge=1, le=60)


class SimulateRoundRequest(BaseModel):
    seed: int | None = Field(None, description="RNG seed for a deterministic round")


class LineupRequest(BaseModel):
    player_ids: list[str] = Field(..., description="Seven player ids; index 0 goes to slot 1")


class OfferRequest(BaseModel):
    player_id: str
    buying_team_id: str
    amount: Decimal = Field(..., gt=0, description="Transfer fee, in the team's currency")
    message: str | None = Field(None, max_length=500)


class AcceptOfferRequest(BaseModel):
    transfer_date: date | None = Field(None, description="Defaults to today")


def _standings_payload(tables: dict[str, list]) -> dict[str, Any]:
    return {
        "standings": [
            {
                "league_id": league_id,
                "table": [{"position": pos, **row.to_dict()} for pos, row in rank_rows(rows)],
            }
            for league_id, rows in tables.items()
        ]
    }


# ---------- Endpoints ----------


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "version": __version__, "maintenance_mode": config.maintenance_mode_enabled()}


@app.get("/leagues")
def list_leagues() -> dict[str, Any]:
    with db_conn() as conn:
        return {"leagues": [lg.to_dict() for lg in LeagueRepository().list_all(conn)]}


@app.get("/teams")
def list_teams(league_id: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        teams = TeamRepository().list_all(conn, league_id=league_id)
        return {"teams": [t.to_dict() for t in teams]}


@app.get("/teams/{team_id}")
def get_team(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        team = TeamRepository().get(conn, team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return team.to_dict()


@app.get("/teams/{team_id}/players")
def get_team_players(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        if TeamRepository().get(conn, team_id) is None:
            raise HTTPException(status_code=404, detail="Team not found")
        players = PlayerRepository().list_by_team(conn, team_id)
        return {"players": [p.to_dict() for p in players]}


@app.put("/teams/{team_id}/lineup")
def put_team_lineup(team_id: str, req: LineupRequest) -> dict[str, Any]:
    with db_conn() as conn:
        lineup = set_starting_lineup(conn, team_id, req.player_ids)
        return {"lineup": [p.to_dict() for p in lineup]}


@app.get("/teams/{team_id}/statistics")
def get_team_statistics(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return LeagueService().team_statistics(conn, team_id).to_dict()


@app.get("/teams/{team_id}/standings")
def get_team_standings(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return LeagueService().team_standing(conn, team_id).to_dict()


@app.get("/standings")
def get_standings(league_id: str | None = None) -> dict[str, Any]:
    """Ranked tables: points, goal difference, wins, then team name."""
    with db_conn() as conn:
        return _standings_payload(LeagueService().standings(conn, league_id))


@app.get("/matches")
def list_matches(
    status: MatchStatus | None = None,
    league_id: str | None = None,
    team_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
) -> dict[str, Any]:
    with db_conn() as conn:
        matches = MatchRepository().list_all(
            conn, status=status, league_id=league_id, team_id=team_id, limit=limit, newest_first=True
        )
        return {"matches": [m.to_dict() for m in matches]}


@app.get("/matches/recent")
def get_recent_matches(
    limit: int = Query(default=10, ge=1, le=100),
    league_id: str | None = None,
) -> dict[str, Any]:
    with db_conn() as conn:
        matches = LeagueService().recent_matches(conn, limit=limit, league_id=league_id)
        return {"matches": [m.to_dict() for m in matches]}


@app.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().get_match(conn, match_id).to_dict()


@app.post("/matches", status_code=201)
def schedule_match(req: ScheduleMatchRequest) -> dict[str, Any]:
    with db_conn() as conn:
        match = MatchService().schedule_match(
            conn, req.home_team_id, req.away_team_id, req.match_date, season=req.season
        )
        return match.to_dict()


@app.post("/matches/simulate", status_code=201)
def simulate_new_match(req: InstantMatchRequest) -> dict[str, Any]:
    """Play a new match immediately between two teams of the same league."""
    with db_conn() as conn:
        outcome = simulate_instant_match(
            conn, req.home_team_id, req.away_team_id, seed=req.seed, match_date=req.match_date
        )
        return outcome.to_dict()


@app.post("/matches/{match_id}/start")
def start_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().start_match(conn, match_id).to_dict()


@app.post("/matches/{match_id}/complete")
def complete_match(match_id: str, req: CompleteMatchRequest) -> dict[str, Any]:
    with db_conn() as conn:
        match = MatchService().complete_match(
            conn, match_id, req.home_sets_won, req.away_sets_won, req.home_score, req.away_score
        )
        return match.to_dict()


@app.post("/matches/{match_id}/cancel")
def cancel_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().cancel_match(conn, match_id).to_dict()


@app.post("/matches/{match_id}/simulate")
def simulate_scheduled_match(match_id: str, req: SimulateMatchRequest) -> dict[str, Any]:
    with db_conn() as conn:
        return simulate_fixture(conn, match_id, seed=req.seed).to_dict()


@app.post("/leagues/{league_id}/schedule", status_code=201)
def schedule_league_season(league_id: str, req: ScheduleSeasonRequest) -> dict[str, Any]:
    with db_conn() as conn:
        matches = LeagueService().schedule_season(
            conn,
            league_id,
            req.start_date,
            double_round=req.double_round,
            round_interval_days=req.round_interval_days,
        )
        return {"matches": [m.to_dict() for m in matches]}


@app.post("/leagues/{league_id}/simulate-round")
def simulate_league_round(league_id: str, req: SimulateRoundRequest) -> dict[str, Any]:
    with db_conn() as conn:
        outcomes = LeagueService().simulate_next_round(conn, league_id, seed=req.seed)
        return {"results": [o.to_dict() for o in outcomes]}


@app.put("/admin/matches/{match_id}/result")
def admin_correct_match_result(match_id: str, req: CompleteMatchRequest) -> dict[str, Any]:
    """Correct a completed match. Requires VBM_MAINTENANCE_MODE=1."""
    with db_conn() as conn:
        match = MatchService().admin_correct_result(
            conn, match_id, req.home_sets_won, req.away_sets_won, req.home_score, req.away_score
        )
        return match.to_dict()


@app.get("/transfers/offers")
def list_transfer_offers(
    team_id: str | None = None, status: TransferOfferStatus | None = None
) -> dict[str, Any]:
    """Offers a team made or received (all offers without team_id), oldest first."""
    with db_conn() as conn:
        offers = TransferService().list_offers(conn, team_id=team_id, status=status)
        return {"offers": [o.to_dict() for o in offers]}


@app.post("/transfers/offers", status_code=201)
def make_transfer_offer(req: OfferRequest) -> dict[str, Any]:
    with db_conn() as conn:
        offer = TransferService().make_offer(
            conn, req.player_id, req.buying_team_id, req.amount, message=req.message
        )
        return offer.to_dict()


@app.post("/transfers/offers/{offer_id}/accept")
def accept_transfer_offer(offer_id: str, req: AcceptOfferRequest | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        transfer_date = req.transfer_date if req is not None else None
        return TransferService().accept_offer(conn, offer_id, transfer_date=transfer_date).to_dict()


@app.post("/transfers/offers/{offer_id}/reject")
def reject_transfer_offer(offer_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return TransferService().reject_offer(conn, offer_id).to_dict()


@app.post("/transfers/offers/{offer_id}/withdraw")
def withdraw_transfer_offer(offer_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return TransferService().withdraw_offer(conn, offer_id).to_dict()


@app.get("/transfers")
def list_transfers(team_id: str | None = None) -> dict[str, Any]:
    """Completed transfers, most recent first."""
    with db_conn() as conn:
        transfers = TransferService().transfer_history(conn, team_id=team_id)
        return {"transfers": [t.to_dict() for t in transfers]}

# ---------- Run with: uvicorn vbm.api:app --reload ----------
