"""Session states reported by the host client."""

from __future__ import annotations

from enum import Enum


class GameState(Enum):
    """Subset of host session states the tracker reacts to."""

    LOGIN_SCREEN = "login_screen"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"
    HOPPING = "hopping"
    CONNECTION_LOST = "connection_lost"


__all__ = ["GameState"]
