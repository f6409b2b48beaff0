"""Request and response models for the editor API."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from studiokit.domain.entities.edit_state import EditState
from studiokit.domain.entities.filter_preset import ToneOperation


class EditStatePatch(BaseModel):
    """Partial edit. Omitted fields keep the committed value."""

    model_config = ConfigDict(extra="forbid")

    brightness: float | None = Field(None, description="Brightness percentage, clamped to [50, 150]", examples=[120])
    contrast: float | None = Field(None, description="Contrast percentage, clamped to [50, 150]", examples=[110])
    saturation: float | None = Field(None, description="Saturation percentage, clamped to [0, 200]", examples=[80])
    rotation_degrees: int | None = Field(None, description="Cumulative clockwise rotation in degrees", examples=[90])
    crop_ratio: str | None = Field(None, description="One of original, 1:1, 4:3, 16:9", examples=["1:1"])
    filter_preset: str | None = Field(None, description="Named filter preset", examples=["vintage"])

    def to_partial(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class EditStateModel(BaseModel):
    brightness: float = Field(..., description="Brightness percentage")
    contrast: float = Field(..., description="Contrast percentage")
    saturation: float = Field(..., description="Saturation percentage")
    rotation_degrees: int = Field(..., description="Cumulative clockwise rotation in degrees")
    crop_ratio: str = Field(..., description="Centered crop ratio")
    filter_preset: str = Field(..., description="Named filter preset")

    @classmethod
    def from_entity(cls, state: EditState) -> EditStateModel:
        return cls(**state.to_dict())


class SessionSnapshot(BaseModel):
    """Current state of an edit session and its last rendered preview."""

    session_id: str = Field(..., description="Handle of the edit session")
    source_width: int = Field(..., description="Width of the source raster in pixels", gt=0)
    source_height: int = Field(..., description="Height of the source raster in pixels", gt=0)
    width: int = Field(..., description="Width of the rendered preview in pixels", gt=0)
    height: int = Field(..., description="Height of the rendered preview in pixels", gt=0)
    effective_state: EditStateModel = Field(..., description="State the preview was rendered from")
    committed_state: EditStateModel = Field(..., description="History snapshot at the cursor")
    is_live: bool = Field(..., description="True while an uncommitted live edit is shown")
    cursor: int = Field(..., description="Index of the committed snapshot in the history", ge=0)
    history_length: int = Field(..., description="Number of snapshots in the history", ge=1)
    can_undo: bool
    can_redo: bool
    preview_url: str = Field(..., description="URL of the PNG preview")


class ToneOperationModel(BaseModel):
    kind: str = Field(..., examples=["sepia"])
    amount: float = Field(..., examples=[0.4])

    @classmethod
    def from_entity(cls, op: ToneOperation) -> ToneOperationModel:
        return cls(kind=op.kind, amount=op.amount)


class FilterPresetModel(BaseModel):
    name: str = Field(..., examples=["vintage"])
    operations: list[ToneOperationModel] = Field(
        default_factory=list, description="Operations layered over the base tonal stage, in order"
    )


class PresetCatalogResponse(BaseModel):
    presets: list[FilterPresetModel]
    crop_ratios: list[str] = Field(..., examples=[["original", "1:1", "4:3", "16:9"]])
    ranges: dict[str, tuple[float, float]] = Field(
        ..., description="Inclusive ranges that numeric fields are clamped to"
    )
