from __future__ import annotations


class EditorError(Exception):
    """Base class for every error raised by the edit engine."""


class LoadError(EditorError, ValueError):
    """The source raster is empty or unreadable; no session was created."""


class EditValidationError(EditorError, ValueError):
    """An edit named an unknown field, crop ratio or filter preset."""


class RenderError(EditorError, RuntimeError):
    """Rendering failed. Fatal to the session that triggered it."""


class SessionClosedError(EditorError, RuntimeError):
    """The session was never begun, or was closed by the caller or a render failure."""


class SessionNotFoundError(EditorError, KeyError):
    """No open session is registered under the given handle."""

    def __str__(self) -> str:
        # KeyError repr-quotes its message
        return str(self.args[0]) if self.args else "Session not found"


class SessionLimitError(EditorError, RuntimeError):
    """The registry already holds its maximum number of open sessions."""
