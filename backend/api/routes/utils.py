# backend/api/routes/utils.py

from __future__ import annotations

from fastapi.requests import HTTPConnection

from core.state import AppState


def get_app_state(connection: HTTPConnection) -> AppState:
    """
    FastAPI dependency returning the app's ``AppState``.

    Works for both HTTP requests and WebSockets, since both are
    ``HTTPConnection`` instances carrying the app.
    """
    return connection.app.state.chat
