from __future__ import annotations

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response

from studiokit.application.dtos.common_dto import ErrorResponse
from studiokit.application.dtos.edit_dto import (
    EditStateModel,
    EditStatePatch,
    FilterPresetModel,
    PresetCatalogResponse,
    SessionSnapshot,
    ToneOperationModel,
)
from studiokit.application.use_cases.edit_session import EditSession
from studiokit.config import EditorConfig
from studiokit.domain.entities.edit_state import CROP_RATIOS, FIELD_RANGES
from studiokit.domain.entities.filter_preset import FILTER_PRESETS
from studiokit.domain.errors import (
    EditorError,
    EditValidationError,
    LoadError,
    RenderError,
    SessionClosedError,
    SessionLimitError,
    SessionNotFoundError,
)
from studiokit.infrastructure.api.dependencies import get_config, get_session_registry
from studiokit.infrastructure.codec.raster_codec import decode_image_bytes, encode_png
from studiokit.infrastructure.sessions.session_registry import SessionRegistry

PREFIX = "/editor"

router = APIRouter(
    prefix=PREFIX,
    tags=["Image Editor"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Unreadable image or invalid edit"},
        404: {"model": ErrorResponse, "description": "Not Found - Edit session does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def _to_http(exc: EditorError) -> HTTPException:
    if isinstance(exc, (LoadError, EditValidationError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, SessionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SessionClosedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, SessionLimitError):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    if isinstance(exc, RenderError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Rendering failed: {exc}"
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _snapshot(session_id: str, session: EditSession) -> SessionSnapshot:
    preview = session.preview
    source_w, source_h = session.source_size
    return SessionSnapshot(
        session_id=session_id,
        source_width=source_w,
        source_height=source_h,
        width=preview.width,
        height=preview.height,
        effective_state=EditStateModel.from_entity(session.effective_state),
        committed_state=EditStateModel.from_entity(session.committed_state),
        is_live=session.live_state is not None,
        cursor=session.cursor,
        history_length=len(session.history),
        can_undo=session.can_undo,
        can_redo=session.can_redo,
        preview_url=f"{PREFIX}/sessions/{session_id}/preview",
    )


@router.get(
    "/presets",
    response_model=PresetCatalogResponse,
    summary="List Filter Presets",
    description="""
    Return the fixed filter preset table, the supported crop ratios and the
    ranges numeric fields are clamped to.

    Each preset is an ordered list of tonal operations layered on top of the
    base brightness/contrast/saturation stage.
    """,
)
def list_presets():
    """Return the preset lookup table."""
    return PresetCatalogResponse(
        presets=[
            FilterPresetModel(name=name, operations=[ToneOperationModel.from_entity(op) for op in ops])
            for name, ops in FILTER_PRESETS.items()
        ],
        crop_ratios=list(CROP_RATIOS),
        ranges={name: (float(lo), float(hi)) for name, (lo, hi) in FIELD_RANGES.items()},
    )


@router.post(
    "/sessions",
    response_model=SessionSnapshot,
    status_code=status.HTTP_201_CREATED,
    summary="Open Edit Session",
    description="""
    Upload a source image and open an edit session on it.

    **Supported formats**: anything Pillow decodes (PNG, JPEG, WEBP, GIF, BMP, TIFF)

    The session starts with a single default history entry and renders it
    immediately. Sessions live in memory only and are lost on restart.
    """,
    responses={
        413: {"description": "Payload Too Large - File size exceeds limit"},
        429: {"description": "Too Many Requests - Session limit reached"},
    },
)
def open_session(
    file: UploadFile = File(..., description="Image file to edit"),
    registry: SessionRegistry = Depends(get_session_registry),
    config: type[EditorConfig] = Depends(get_config),
):
    """Decode the upload and begin a session on it."""
    data = file.file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")
    try:
        source = decode_image_bytes(data)
        session_id, _ = registry.open(source)
        with registry.use(session_id) as session:
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.get("/sessions/{session_id}", response_model=SessionSnapshot, summary="Get Session State")
def get_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    try:
        with registry.use(session_id) as session:
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.get(
    "/sessions/{session_id}/preview",
    summary="Get Preview Image",
    description="Return the last rendered preview (live or committed) as PNG.",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_preview(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    try:
        with registry.use(session_id) as session:
            data = encode_png(session.preview.image)
    except EditorError as exc:
        raise _to_http(exc) from exc
    return Response(content=data, media_type="image/png")


@router.patch(
    "/sessions/{session_id}/live",
    response_model=SessionSnapshot,
    summary="Live Update",
    description="""
    Preview a partial edit without recording it in the history.

    Used for continuous interactions such as slider drags. The partial is
    overlaid on the committed snapshot at the cursor. Out-of-range numbers are
    clamped; unknown presets or crop ratios are rejected with 400.
    """,
)
def live_update(
    session_id: str,
    body: EditStatePatch,
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        with registry.use(session_id) as session:
            session.live_update(body.to_partial())
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.post(
    "/sessions/{session_id}/commit",
    response_model=SessionSnapshot,
    summary="Commit Edit",
    description="""
    Record a new history entry.

    The optional partial is overlaid on the committed snapshot at the cursor
    (not on the live state). Any redo branch is discarded.
    """,
)
def commit(
    session_id: str,
    body: EditStatePatch | None = Body(None),
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        with registry.use(session_id) as session:
            session.commit_current(body.to_partial() if body is not None else None)
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.post("/sessions/{session_id}/rotate", response_model=SessionSnapshot, summary="Rotate 90°")
def rotate(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    try:
        with registry.use(session_id) as session:
            session.rotate()
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.post("/sessions/{session_id}/undo", response_model=SessionSnapshot, summary="Undo")
def undo(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    try:
        with registry.use(session_id) as session:
            session.undo()
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.post("/sessions/{session_id}/redo", response_model=SessionSnapshot, summary="Redo")
def redo(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    try:
        with registry.use(session_id) as session:
            session.redo()
            return _snapshot(session_id, session)
    except EditorError as exc:
        raise _to_http(exc) from exc


@router.get(
    "/sessions/{session_id}/export",
    summary="Export Image",
    description="""
    Render the committed snapshot (ignoring any live edit) and return it as a
    JPEG at quality 92. Transparent areas are composited over black.
    """,
    response_class=Response,
    responses={200: {"content": {"image/jpeg": {}}}},
)
def export(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    try:
        with registry.use(session_id) as session:
            data = session.export_current()
    except EditorError as exc:
        raise _to_http(exc) from exc
    return Response(
        content=data,
        media_type="image/jpeg",
        headers={"Content-Disposition": f'attachment; filename="edited-{session_id}.jpg"'},
    )


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close Session",
    description="Discard the session and any uncommitted edit. Closing twice is not an error.",
)
def close_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    registry.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
