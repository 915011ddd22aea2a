"""
Tests for the game endpoints: create, browse, join and drop.
"""

import pytest
from datetime import datetime, timezone, timedelta
from httpx import AsyncClient

from signups.core.security import create_access_token
from tests.factories import make_game


def game_payload(**overrides):
    payload = {
        "name": "Sunday Morning Soccer",
        "category": "soccer",
        "location": "Riverside Park Field 3",
        "start_time": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
        "duration_mins": 60,
        "num_teams": 2,
        "team_size": 5,
        "sign_up_fee_cents": 300,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_game(client: AsyncClient, auth_headers):
    """Authenticated user creates a game and owns it."""
    response = await client.post("/api/v1/games/", json=game_payload(), headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["id"]
    assert data["owner"] == "player@example.com"
    assert data["capacity"] == 10
    assert data["roster"] == []
    assert data["waitlist"] == []
    assert data["version"] == 1


@pytest.mark.asyncio
async def test_create_game_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/games/", json=game_payload())
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.post(
        "/api/v1/games/",
        json=game_payload(),
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient, test_game):
    token = create_access_token("player@example.com", expires_delta=timedelta(minutes=-1))
    response = await client.post(
        f"/api/v1/games/{test_game.id}/join",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [("team_size", 0), ("num_teams", -1), ("name", "   ")])
async def test_create_game_invalid_fields(client: AsyncClient, auth_headers, field, value):
    """A game that could never seat anyone, or has a blank name, returns 422."""
    response = await client.post(
        "/api/v1/games/", json=game_payload(**{field: value}), headers=auth_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_game(client: AsyncClient, full_game):
    response = await client.get(f"/api/v1/games/{full_game.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Full Run"
    assert data["roster"] == ["alice", "bob"]
    assert data["waitlist"] == ["carol"]


@pytest.mark.asyncio
async def test_get_game_not_found(client: AsyncClient):
    response = await client.get("/api/v1/games/no-such-game")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_malformed_game_id(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/games/bad!id/join", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_join_open_game(client: AsyncClient, auth_headers, test_game):
    response = await client.post(f"/api/v1/games/{test_game.id}/join", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["roster"] == ["player@example.com"]
    assert data["version"] == test_game.version + 1


@pytest.mark.asyncio
async def test_join_full_game_waitlists(client: AsyncClient, auth_headers, full_game):
    response = await client.post(f"/api/v1/games/{full_game.id}/join", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["roster"] == ["alice", "bob"]
    assert data["waitlist"] == ["carol", "player@example.com"]


@pytest.mark.asyncio
async def test_join_twice_is_noop(client: AsyncClient, auth_headers, test_game):
    first = await client.post(f"/api/v1/games/{test_game.id}/join", headers=auth_headers)
    second = await client.post(f"/api/v1/games/{test_game.id}/join", headers=auth_headers)
    assert second.status_code == 200
    assert second.json() == first.json()


@pytest.mark.asyncio
async def test_register_alias_joins(client: AsyncClient, auth_headers, test_game):
    response = await client.post(f"/api/v1/games/{test_game.id}/register", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["roster"] == ["player@example.com"]


@pytest.mark.asyncio
async def test_join_missing_game(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/games/no-such-game/join", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_drop_promotes_waitlist_head(client: AsyncClient, headers_for, full_game):
    response = await client.post(f"/api/v1/games/{full_game.id}/drop", headers=headers_for("alice"))
    assert response.status_code == 200
    data = response.json()
    assert data["roster"] == ["bob", "carol"]
    assert data["waitlist"] == []


@pytest.mark.asyncio
async def test_drop_when_not_signed_up_is_noop(client: AsyncClient, auth_headers, full_game):
    response = await client.post(f"/api/v1/games/{full_game.id}/drop", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["roster"] == ["alice", "bob"]
    assert data["waitlist"] == ["carol"]
    assert data["version"] == full_game.version


@pytest.mark.asyncio
async def test_drop_requires_auth(client: AsyncClient, full_game):
    response = await client.post(f"/api/v1/games/{full_game.id}/drop")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_games_requires_category(client: AsyncClient):
    response = await client.get("/api/v1/games/")
    assert response.status_code == 400
    assert response.json()["detail"] == "category is required"


@pytest.mark.asyncio
async def test_list_games_by_category(client: AsyncClient, memory_store):
    now = int(datetime.now(timezone.utc).timestamp())
    day = 24 * 60 * 60
    await memory_store.create(make_game(id="next-week", start_time=now + 7 * day))
    await memory_store.create(make_game(id="tomorrow", start_time=now + day))
    await memory_store.create(make_game(id="last-week", start_time=now - 7 * day))
    await memory_store.create(make_game(id="last-month", start_time=now - 30 * day))
    await memory_store.create(make_game(id="other-sport", category="volleyball"))

    response = await client.get("/api/v1/games/", params={"category": "basketball"})
    assert response.status_code == 200
    data = response.json()
    assert data["category"] == "basketball"
    assert data["max_results"] == 10
    assert data["cached"] is False
    # games older than the lookback window are left out
    assert [g["id"] for g in data["games"]] == ["last-week", "tomorrow", "next-week"]


@pytest.mark.asyncio
async def test_list_games_max_results(client: AsyncClient, memory_store):
    for i in range(5):
        await memory_store.create(make_game(id=f"game-{i}", start_time=make_game().start_time + i))

    response = await client.get("/api/v1/games/", params={"category": "basketball", "max_results": 2})
    assert [g["id"] for g in response.json()["games"]] == ["game-0", "game-1"]

    response = await client.get("/api/v1/games/", params={"category": "basketball", "max_results": 0})
    assert response.json()["max_results"] == 10
    assert len(response.json()["games"]) == 5


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["game_store"] == "memory"


@pytest.mark.asyncio
async def test_metrics_exposes_membership_counters(client: AsyncClient, auth_headers, test_game):
    await client.post(f"/api/v1/games/{test_game.id}/join", headers=auth_headers)
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "membership_changes_total" in response.text
