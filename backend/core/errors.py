# backend/core/errors.py

from __future__ import annotations


class RoomError(Exception):
    """
    Base class for recoverable, user-facing room errors.

    The message is what gets sent back to the originating connection
    as an ``error`` event, so keep it short and human readable.
    """

    message = "Room error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class RoomNotFoundError(RoomError):
    message = "Room not found"


class RoomFullError(RoomError):
    message = "Room is full"


class InvalidSessionError(RoomError):
    message = "Invalid session"


class InvalidNameError(RoomError):
    message = "Invalid name"


class AlreadyRegisteredError(RoomError):
    message = "Connection already joined a room"
