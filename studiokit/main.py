from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from studiokit.application.dtos.common_dto import HealthResponse, RootResponse
from studiokit.config import EditorConfig
from studiokit.infrastructure.api.middlewares import add_default_middlewares
from studiokit.infrastructure.api.routes.editor_routes import router as editor_router
from studiokit.infrastructure.sessions.session_registry import SessionRegistry
from studiokit.logging_config import configure_logging


def create_app(
    config: type[EditorConfig] = EditorConfig, registry: SessionRegistry | None = None
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.sessions.close_all()

    app = FastAPI(
        title="StudioKit Editor",
        version="0.1.0",
        description="""
        ## StudioKit Editor API

        Post-processing for generated images: tonal adjustments, filter presets,
        centered crops and quarter-turn rotation with a linear undo/redo history.

        ### Workflow
        1. `POST /editor/sessions` with an image opens a session
        2. `PATCH .../live` previews slider drags without touching history
        3. `POST .../commit` records an edit; `.../undo` and `.../redo` move through history
        4. `GET .../export` returns the committed result as JPEG

        Sessions are held in memory only.
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.sessions = registry or SessionRegistry(max_sessions=config.MAX_SESSIONS)
    add_default_middlewares(app, env=config.ENV)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the editor API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "studiokit-editor", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(editor_router)
    return app


def run() -> None:
    configure_logging(EditorConfig.LOG_LEVEL)
    uvicorn.run(
        "studiokit.main:create_app",
        factory=True,
        host=EditorConfig.APP_HOST,
        port=EditorConfig.APP_PORT,
        reload=EditorConfig.ENV == "development",
        log_config=None,  # keep the dictConfig installed above
    )


if __name__ == "__main__":
    run()
