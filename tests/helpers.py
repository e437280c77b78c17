"""Token and settings helpers shared by the test modules."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from app.settings import Settings

JWT_SECRET = "test-secret"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "jwt_secret": JWT_SECRET,
        "database_connect_retries": 1,
        "database_retry_delay_seconds": 0,
    }
    values.update(overrides)
    return Settings(**values)


def make_token(subject: str | None, secret: str = JWT_SECRET, expires_in: int = 3600, **claims) -> str:
    payload = {"exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in), **claims}
    if subject is not None:
        payload["sub"] = subject
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(subject: str, **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(subject, **kwargs)}"}


def game_payload(teams: list[dict], schedule: dict | None = None, **overrides) -> dict:
    """A valid POST /games body; teams are {name, invited_user_ids?, invited_group_ids?}."""
    payload = {
        "title": "Five-a-side",
        "game_type": "football_5_a_side",
        "location": {"latitude": 51.5074, "longitude": -0.1278, "name": "Hackney Marshes"},
        "duration_minutes": 60,
        "teams": teams,
        "schedule": schedule or {"type": "one_off", "scheduled_time": "2026-11-01T18:00:00Z"},
    }
    payload.update(overrides)
    return payload
