# backend/core/errors.py

from __future__ import annotations


class ChatError(Exception):
    """Base class for failures the chat core reports back to a caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(ChatError):
    """Missing or malformed input."""


class NotFound(ChatError):
    """Unknown room or connection."""


class Forbidden(ChatError):
    """Wrong secret for a private room."""


class Unrecognized(ChatError):
    """Unknown event tag or a frame that could not be decoded."""
