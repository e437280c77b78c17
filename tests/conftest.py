"""Shared fixtures: an app on in-memory SQLite and identity-provider tokens."""

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from app.db import Database
from app.main import create_app
from app.settings import Settings
from tests.helpers import bearer, game_payload, make_settings


@dataclass
class Player:
    id: str
    username: str
    headers: dict


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def signup(client):
    """Create a profile for a token subject and return it with auth headers."""

    def _signup(subject: str, first_name: str | None = None, last_name: str = "Player") -> Player:
        headers = bearer(subject)
        response = client.post(
            "/users",
            json={
                "username": subject,
                "first_name": first_name or subject.capitalize(),
                "last_name": last_name,
                "email": f"{subject}@agon.dev",
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return Player(id=subject, username=subject, headers=headers)

    return _signup


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database(settings):
    database = Database(settings)
    await database.init()
    yield database
    await database.close()


@pytest.fixture
def create_group(client):
    """Create a group as ``player`` and add the given members."""

    def _create(player: Player, name: str, member_ids=()) -> dict:
        response = client.post("/groups", json={"name": name}, headers=player.headers)
        assert response.status_code == 201, response.text
        group = response.json()
        if member_ids:
            response = client.post(
                f"/groups/{group['id']}/members",
                json={"user_ids": list(member_ids)},
                headers=player.headers,
            )
            assert response.status_code == 200, response.text
            group = response.json()
        return group

    return _create


@pytest.fixture
def create_game(client):
    """Create a game as ``player`` and return its detail view."""

    def _create(player: Player, teams: list[dict], schedule: dict | None = None, **overrides) -> dict:
        response = client.post(
            "/games", json=game_payload(teams, schedule, **overrides), headers=player.headers
        )
        assert response.status_code == 201, response.text
        detail = client.get(f"/games/{response.json()['id']}", headers=player.headers)
        assert detail.status_code == 200, detail.text
        return detail.json()

    return _create
