"""Graph integrity validation.

Checks the invariants the engine maintains but which a hand-built or
partially edited plan may break: beam references, duplicate columns,
orphans, span limits, clone and suspension links.
"""

from __future__ import annotations

from dataclasses import dataclass

from framing_builder.models.config import LayoutConfig
from framing_builder.models.elements import ColumnKind
from framing_builder.models.geometry import points_close
from framing_builder.models.plan import FramingPlan
from framing_builder.topology.spans import limit_for, max_sub_span


@dataclass
class ValidationError:
    """A single validation issue."""

    severity: str  # "error" | "warning"
    element_type: str
    element_id: str
    message: str


def _check_beams(plan: FramingPlan) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for beam in plan.beams.values():
        for label, column_id in (("start", beam.start_id), ("end", beam.end_id)):
            column = plan.get_column(column_id)
            if column is None:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Beam",
                    element_id=beam.global_id,
                    message=f"Beam {label} references non-existent column {column_id}",
                ))
            elif not column.is_active:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Beam",
                    element_id=beam.global_id,
                    message=f"Beam {label} bears on suspended column {column_id}",
                ))
            elif not points_close(column.position, beam.start if label == "start" else beam.end, 1e-6):
                errors.append(ValidationError(
                    severity="warning",
                    element_type="Beam",
                    element_id=beam.global_id,
                    message=f"Beam {label} coordinates are stale (column {column_id} moved)",
                ))
    return errors


def _check_duplicates(plan: FramingPlan, tol: float) -> list[ValidationError]:
    errors: list[ValidationError] = []
    active = plan.active_columns()
    for i, a in enumerate(active):
        for b in active[i + 1:]:
            if points_close(a.position, b.position, tol):
                errors.append(ValidationError(
                    severity="error",
                    element_type="Column",
                    element_id=b.global_id,
                    message=(
                        f"Active column duplicates {a.global_id} at "
                        f"({b.position.x:.3f}, {b.position.y:.3f})"
                    ),
                ))
    return errors


def _check_orphans(plan: FramingPlan) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for column in plan.columns.values():
        if column.kind not in (ColumnKind.AUTO, ColumnKind.TRANSIENT):
            continue
        if not plan.lies_on_any_beam(column):
            errors.append(ValidationError(
                severity="warning",
                element_type="Column",
                element_id=column.global_id,
                message=f"{column.kind.value.capitalize()} column lies on no beam",
            ))
    return errors


def _check_spans(plan: FramingPlan, config: LayoutConfig) -> list[ValidationError]:
    errors: list[ValidationError] = []
    tol = config.structural_tolerance
    for beam in plan.beams.values():
        limit = limit_for(beam, config)
        longest = max_sub_span(plan, beam, config)
        if longest > limit + tol:
            errors.append(ValidationError(
                severity="error",
                element_type="Beam",
                element_id=beam.global_id,
                message=f"Sub-span {longest:.2f}m exceeds limit {limit:.2f}m",
            ))
    return errors


def _check_links(plan: FramingPlan) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for column in plan.columns.values():
        if column.kind == ColumnKind.TRANSIENT:
            original = plan.get_column(column.clone_of)
            if original is None:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Column",
                    element_id=column.global_id,
                    message=f"Transient column clones missing column {column.clone_of}",
                ))
        if not column.is_active and column.suspended_by is not None:
            stand_in = plan.get_column(column.suspended_by)
            if stand_in is None:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Column",
                    element_id=column.global_id,
                    message=f"Suspended by missing column {column.suspended_by}",
                ))
        if column.is_active and column.suspended_by is not None:
            errors.append(ValidationError(
                severity="warning",
                element_type="Column",
                element_id=column.global_id,
                message="Active column still records a stand-in",
            ))
    return errors


def validate_plan(plan: FramingPlan, config: LayoutConfig | None = None) -> list[ValidationError]:
    """Run every integrity check on a plan."""
    config = config or LayoutConfig()
    errors: list[ValidationError] = []
    errors.extend(_check_beams(plan))
    errors.extend(_check_duplicates(plan, config.structural_tolerance))
    errors.extend(_check_orphans(plan))
    errors.extend(_check_spans(plan, config))
    errors.extend(_check_links(plan))
    return errors
