"""Environment-driven configuration values for the editor service."""

from __future__ import annotations

import os


class EditorConfig:
    ENV = os.getenv("APP_ENV", "development").lower()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    MAX_SESSIONS = int(os.getenv("EDITOR_MAX_SESSIONS", "32"))
    MAX_UPLOAD_BYTES = int(os.getenv("EDITOR_MAX_UPLOAD_MB", "20")) * 1024 * 1024

    APP_HOST = os.getenv("APP_HOST", "127.0.0.1")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
