"""Layout configuration record.

A flat, validated record of the knobs the engine reads: maximum spans,
default beam width, default column section and the matching tolerances.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from framing_builder.models.elements import ColumnSection
from framing_builder.models.geometry import SNAP_TOLERANCE, STRUCTURAL_TOLERANCE


class LayoutConfig(BaseModel):
    """Engine configuration (meters)."""

    max_span_x: float = Field(default=6.0, gt=0, description="Max column spacing along X")
    max_span_y: float = Field(default=6.0, gt=0, description="Max column spacing along Y")
    beam_width: float = Field(default=0.15, gt=0, description="Default beam width")
    column: ColumnSection = Field(
        default_factory=ColumnSection, description="Section used for new columns"
    )
    structural_tolerance: float = Field(default=STRUCTURAL_TOLERANCE, gt=0)
    snap_tolerance: float = Field(default=SNAP_TOLERANCE, gt=0)

    @field_validator("snap_tolerance")
    @classmethod
    def snap_not_below_structural(cls, v: float, info: ValidationInfo) -> float:
        structural = info.data.get("structural_tolerance", STRUCTURAL_TOLERANCE)
        if v < structural:
            raise ValueError(
                f"snap_tolerance {v} must not be smaller than structural_tolerance {structural}"
            )
        return v

    @property
    def max_span(self) -> float:
        """Limit applied to diagonal beams."""
        return max(self.max_span_x, self.max_span_y)

    # ── File I/O ──────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path) -> LayoutConfig:
        """Load a configuration from a JSON file."""
        path = Path(path)
        return cls.model_validate_json(path.read_text())

    def save(self, path: str | Path) -> Path:
        """Save the configuration to a JSON file. Creates parent dirs if needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path
