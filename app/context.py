"""
Process-wide application context.

The settings (including the JWT secret) and the database pool are built once
by the app factory and handed to request handlers through dependencies.
"""

from dataclasses import dataclass

from fastapi import Request

from app.db import Database
from app.settings import Settings


@dataclass
class AppContext:
    settings: Settings
    database: Database

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        return cls(settings=settings, database=Database(settings))


def get_context(request: Request) -> AppContext:
    return request.app.state.context
