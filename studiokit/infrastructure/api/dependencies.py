from __future__ import annotations

from fastapi import Request

from studiokit.config import EditorConfig
from studiokit.infrastructure.sessions.session_registry import SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_config(request: Request) -> type[EditorConfig]:
    return request.app.state.config
