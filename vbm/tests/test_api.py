"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

# Ensure project root on path
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from vbm.api import app
from vbm.persistence.db import init_db, set_db_path


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Use a temporary demo DB for each test."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    init_db(db_path=db_path, seed_demo=True)
    yield db_path


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def team_ids(client):
    return {t["name"]: t["id"] for t in client.get("/teams").json()["teams"]}


@pytest.fixture
def league_ids(client):
    return {lg["name"]: lg["id"] for lg in client.get("/leagues").json()["leagues"]}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_get_leagues_and_teams(client, league_ids):
    assert set(league_ids) == {"VB League", "VBL Division 2"}
    resp = client.get(f"/teams?league_id={league_ids['VBL Division 2']}")
    assert resp.status_code == 200
    names = {t["name"] for t in resp.json()["teams"]}
    assert names == {"Rising Stars", "Fire Hawks", "Ice Breakers"}


def test_get_team_and_players(client, team_ids):
    tid = team_ids["Your Team"]
    resp = client.get(f"/teams/{tid}")
    assert resp.status_code == 200
    assert resp.json()["money"] == "1000000.00"
    players = client.get(f"/teams/{tid}/players").json()["players"]
    assert len(players) == 10
    assert sum(1 for p in players if "lineup_slot" in p) == 7


def test_unknown_team_is_404(client):
    assert client.get("/teams/missing").status_code == 404
    assert client.get("/teams/missing/players").status_code == 404
    assert client.get("/teams/missing/statistics").status_code == 404


def test_standings(client, league_ids):
    resp = client.get(f"/standings?league_id={league_ids['VB League']}")
    assert resp.status_code == 200
    tables = resp.json()["standings"]
    assert len(tables) == 1
    table = tables[0]["table"]
    assert [row["position"] for row in table] == [1, 2, 3, 4]
    assert table[0]["team_name"] == "Your Team"
    assert table[0]["points"] == 9
    assert table[0]["win_percentage"] == 100.0


def test_standings_all_leagues(client):
    tables = client.get("/standings").json()["standings"]
    assert len(tables) == 2


def test_standings_unknown_league(client):
    assert client.get("/standings?league_id=missing").status_code == 404


def test_team_statistics(client, team_ids):
    resp = client.get(f"/teams/{team_ids['Thunder Bolts']}/statistics")
    assert resp.status_code == 200
    data = resp.json()
    assert data["squad_size"] == 10
    assert data["wins"] == 1
    assert data["win_rate"] == 33


def test_schedule_and_simulate_match(client, team_ids):
    resp = client.post(
        "/matches",
        json={
            "home_team_id": team_ids["Storm Riders"],
            "away_team_id": team_ids["Thunder Bolts"],
            "match_date": "2024-04-10",
        },
    )
    assert resp.status_code == 201
    mid = resp.json()["id"]
    assert resp.json()["status"] == "scheduled"

    resp = client.post(f"/matches/{mid}/simulate", json={"seed": 42})
    assert resp.status_code == 200
    data = resp.json()
    assert data["match"]["status"] == "completed"
    assert data["seed"] == 42
    assert 3 in (data["result"]["home_sets_won"], data["result"]["away_sets_won"])

    # Completed matches are immutable
    assert client.post(f"/matches/{mid}/simulate", json={"seed": 1}).status_code == 409
    assert client.post(f"/matches/{mid}/cancel").status_code == 409
    assert client.get(f"/matches/{mid}").json()["status"] == "completed"


def test_schedule_match_same_team_is_400(client, team_ids):
    tid = team_ids["Your Team"]
    resp = client.post("/matches", json={"home_team_id": tid, "away_team_id": tid, "match_date": "2024-04-10"})
    assert resp.status_code == 400


def test_complete_match_manually(client, team_ids):
    mid = client.post(
        "/matches",
        json={
            "home_team_id": team_ids["Fire Hawks"],
            "away_team_id": team_ids["Rising Stars"],
            "match_date": "2024-04-10",
        },
    ).json()["id"]
    assert client.post(f"/matches/{mid}/start").json()["status"] == "in_progress"
    resp = client.post(
        f"/matches/{mid}/complete",
        json={"home_sets_won": 3, "away_sets_won": 2, "home_score": 110, "away_score": 105},
    )
    assert resp.status_code == 200
    assert resp.json()["home_sets_won"] == 3


def test_complete_match_out_of_range_is_422(client, team_ids):
    mid = client.post(
        "/matches",
        json={
            "home_team_id": team_ids["Fire Hawks"],
            "away_team_id": team_ids["Rising Stars"],
            "match_date": "2024-04-10",
        },
    ).json()["id"]
    resp = client.post(
        f"/matches/{mid}/complete",
        json={"home_sets_won": 6, "away_sets_won": 0, "home_score": 10, "away_score": 5},
    )
    assert resp.status_code == 422


def test_instant_match(client, team_ids):
    resp = client.post(
        "/matches/simulate",
        json={"home_team_id": team_ids["Your Team"], "away_team_id": team_ids["Wave Crushers"], "seed": 7},
    )
    assert resp.status_code == 201
    mid = resp.json()["match"]["id"]
    recent = client.get("/matches/recent?limit=50").json()["matches"]
    assert mid in {m["id"] for m in recent}


def test_instant_match_across_leagues_is_400(client, team_ids):
    resp = client.post(
        "/matches/simulate",
        json={"home_team_id": team_ids["Your Team"], "away_team_id": team_ids["Ice Breakers"]},
    )
    assert resp.status_code == 400


def test_list_matches_filters(client, team_ids):
    resp = client.get("/matches?status=scheduled")
    assert resp.status_code == 200
    assert len(resp.json()["matches"]) == 3
    resp = client.get(f"/matches?team_id={team_ids['Ice Breakers']}")
    assert len(resp.json()["matches"]) == 3


def test_season_endpoints(client, league_ids):
    lid = league_ids["VBL Division 2"]
    # Demo data still has an unplayed fixture
    assert client.post(f"/leagues/{lid}/schedule", json={"start_date": "2024-03-01"}).status_code == 400
    while client.post(f"/leagues/{lid}/simulate-round", json={"seed": 3}).json()["results"]:
        pass
    resp = client.post(f"/leagues/{lid}/schedule", json={"start_date": "2024-03-01"})
    assert resp.status_code == 201
    assert len(resp.json()["matches"]) == 3
    resp = client.post(f"/leagues/{lid}/simulate-round", json={"seed": 3})
    assert len(resp.json()["results"]) == 1


def test_put_lineup(client, team_ids):
    tid = team_ids["Storm Riders"]
    players = client.get(f"/teams/{tid}/players").json()["players"]
    bench_first = [p["id"] for p in players[3:10]]
    resp = client.put(f"/teams/{tid}/lineup", json={"player_ids": bench_first})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()["lineup"]] == bench_first
    assert client.put(f"/teams/{tid}/lineup", json={"player_ids": bench_first[:5]}).status_code == 400


def test_admin_correction_needs_maintenance_mode(client, monkeypatch):
    monkeypatch.delenv("VBM_MAINTENANCE_MODE", raising=False)
    monkeypatch.setattr("vbm.config.MAINTENANCE_MODE", False)
    mid = client.get("/matches?status=completed&limit=1").json()["matches"][0]["id"]
    body = {"home_sets_won": 3, "away_sets_won": 0, "home_score": 75, "away_score": 60}
    assert client.put(f"/admin/matches/{mid}/result", json=body).status_code == 403

    monkeypatch.setenv("VBM_MAINTENANCE_MODE", "1")
    resp = client.put(f"/admin/matches/{mid}/result", json=body)
    assert resp.status_code == 200
    assert resp.json()["home_score"] == 75


def test_transfer_offer_accept_flow(client, team_ids):
    seller, buyer = team_ids["Thunder Bolts"], team_ids["Your Team"]
    player = client.get(f"/teams/{seller}/players").json()["players"][0]
    resp = client.post(
        "/transfers/offers",
        json={"player_id": player["id"], "buying_team_id": buyer, "amount": "150000.00"},
    )
    assert resp.status_code == 201
    offer = resp.json()
    assert offer["status"] == "pending"
    assert offer["selling_team_id"] == seller

    pending = client.get(f"/transfers/offers?team_id={seller}&status=pending").json()["offers"]
    assert [o["id"] for o in pending] == [offer["id"]]

    resp = client.post(f"/transfers/offers/{offer['id']}/accept", json={"transfer_date": "2024-07-01"})
    assert resp.status_code == 200
    assert resp.json()["fee"] == "150000.00"
    assert resp.json()["transfer_date"] == "2024-07-01"

    assert client.get(f"/teams/{buyer}").json()["money"] == "850000.00"
    assert client.get(f"/teams/{seller}").json()["money"] == "950000.00"
    assert player["id"] in {p["id"] for p in client.get(f"/teams/{buyer}/players").json()["players"]}
    assert len(client.get(f"/transfers?team_id={buyer}").json()["transfers"]) == 1

    # Accepted offers are final
    assert client.post(f"/transfers/offers/{offer['id']}/reject").status_code == 409


def test_transfer_offer_errors(client, team_ids):
    seller, poor = team_ids["Thunder Bolts"], team_ids["Ice Breakers"]
    player = client.get(f"/teams/{seller}/players").json()["players"][0]
    body = {"player_id": player["id"], "buying_team_id": poor, "amount": "500000.00"}
    assert client.post("/transfers/offers", json=body).status_code == 400
    body["amount"] = "0"
    assert client.post("/transfers/offers", json=body).status_code == 422
    body["player_id"] = "missing"
    body["amount"] = "10.00"
    assert client.post("/transfers/offers", json=body).status_code == 404
    assert client.post("/transfers/offers/missing/accept").status_code == 404


def test_transfer_offer_withdraw(client, team_ids):
    seller, buyer = team_ids["Storm Riders"], team_ids["Wave Crushers"]
    player = client.get(f"/teams/{seller}/players").json()["players"][1]
    offer_id = client.post(
        "/transfers/offers",
        json={"player_id": player["id"], "buying_team_id": buyer, "amount": "1000", "message": "Loan?"},
    ).json()["id"]
    resp = client.post(f"/transfers/offers/{offer_id}/withdraw")
    assert resp.status_code == 200
    assert resp.json()["status"] == "withdrawn"
    assert client.post(f"/transfers/offers/{offer_id}/accept").status_code == 409
    assert client.get("/transfers").json()["transfers"] == []
