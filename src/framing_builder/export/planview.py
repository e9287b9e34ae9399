"""2D framing plan renderer using matplotlib.

Draws beams as segment rectangles (split at the columns standing on
them), columns by section footprint and kind, tags, and a small info box.
Render-only: the plan is not modified beyond assigning missing tags.
"""

from __future__ import annotations

import math
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # headless rendering
import matplotlib.pyplot as plt
import matplotlib.patches as patches

from framing_builder.models.elements import Column, ColumnKind, SectionShape
from framing_builder.models.plan import FramingPlan
from framing_builder.queries.segments import BeamSegment, segment_plan

_COLUMN_COLORS = {
    ColumnKind.USER: ("#455A64", "#263238"),
    ColumnKind.AUTO: ("#FFB74D", "#E65100"),
    ColumnKind.TRANSIENT: ("#90CAF9", "#1565C0"),
    ColumnKind.ANCHOR: ("#E0E0E0", "#757575"),
}


def render_plan(
    plan: FramingPlan,
    output_path: str | Path,
    title: str | None = None,
    dpi: int = 150,
    show_labels: bool = True,
    show_dimensions: bool = True,
    show_anchors: bool = False,
    show_info_box: bool = True,
) -> Path:
    """Render a framing plan to PNG.

    Args:
        plan: The plan to render.
        output_path: Output image path. Parent dirs are created.
        title: Plot title (defaults to the plan name).
        dpi: Image resolution.
        show_labels: Show element tags (C1, CA1, B1...).
        show_dimensions: Show segment lengths.
        show_anchors: Also draw hidden anchors.
        show_info_box: Show column/beam counts.

    Returns:
        Path to the output image.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(1, 1, figsize=(12, 10))

    ax.set_aspect("equal")
    ax.set_facecolor("#FAFAFA")
    fig.patch.set_facecolor("white")

    plan.ensure_tags()

    for segment in segment_plan(plan):
        _draw_segment(ax, segment, show_dimensions)

    if show_labels:
        for beam in plan.beams.values():
            mx = (beam.start.x + beam.end.x) / 2
            my = (beam.start.y + beam.end.y) / 2
            ax.text(mx, my, beam.tag, fontsize=6, ha="center", va="bottom",
                    color="#1B5E20", zorder=6)

    drawn = plan.active_columns() if show_anchors else plan.visible_columns()
    for column in drawn:
        _draw_column(ax, column, show_labels)

    ax.set_title(title or plan.name, fontsize=16, fontweight="bold", pad=20)
    ax.grid(True, alpha=0.2, linestyle="--")
    ax.set_xlabel("X (meters)", fontsize=10)
    ax.set_ylabel("Y (meters)", fontsize=10)

    margin = 1.0
    xs = [c.position.x for c in plan.active_columns()]
    ys = [c.position.y for c in plan.active_columns()]
    if xs and ys:
        ax.set_xlim(min(xs) - margin, max(xs) + margin)
        ax.set_ylim(min(ys) - margin, max(ys) + margin)

    if show_info_box:
        total = sum(b.length for b in plan.beams.values())
        info_lines = [
            f"User columns: {plan.count(ColumnKind.USER)}",
            f"Auto columns: {plan.count(ColumnKind.AUTO)} [orange]",
            f"Beams: {len(plan.beams)} ({total:.1f} m)",
        ]
        ax.text(
            0.02, 0.98, "\n".join(info_lines),
            transform=ax.transAxes,
            fontsize=8,
            verticalalignment="top",
            fontfamily="monospace",
            bbox=dict(boxstyle="round,pad=0.5", facecolor="white", alpha=0.8, edgecolor="#CCCCCC"),
            zorder=100,
        )

    plt.tight_layout()
    fig.savefig(str(output_path), dpi=dpi, bbox_inches="tight")
    plt.close(fig)

    return output_path


def _draw_segment(ax, segment: BeamSegment, show_dimensions: bool) -> None:
    """Draw one beam segment as a filled rectangle of the beam width."""
    length = segment.length
    if length <= 0:
        return
    ux = (segment.end.x - segment.start.x) / length
    uy = (segment.end.y - segment.start.y) / length
    nx, ny = -uy * segment.width / 2, ux * segment.width / 2
    corners = [
        (segment.start.x + nx, segment.start.y + ny),
        (segment.end.x + nx, segment.end.y + ny),
        (segment.end.x - nx, segment.end.y - ny),
        (segment.start.x - nx, segment.start.y - ny),
    ]
    ax.add_patch(patches.Polygon(
        corners, closed=True, facecolor="#A5D6A7", edgecolor="#2E7D32",
        linewidth=0.8, zorder=3,
    ))
    if show_dimensions:
        mx = (segment.start.x + segment.end.x) / 2
        my = (segment.start.y + segment.end.y) / 2
        angle = math.degrees(math.atan2(uy, ux))
        if angle > 90 or angle < -90:
            angle += 180
        ax.text(mx - ny * 3, my + nx * 3, f"{length:.2f}", fontsize=6,
                ha="center", va="center", rotation=angle, color="#555555", zorder=5)


def _draw_column(ax, column: Column, show_labels: bool) -> None:
    """Draw a column footprint, colored by kind."""
    fill, edge = _COLUMN_COLORS[column.kind]
    x, y = column.position.x, column.position.y
    if column.section.shape == SectionShape.CIRCULAR:
        patch = patches.Circle((x, y), column.section.diameter / 2)
    else:
        w, h = column.section.footprint
        patch = patches.Rectangle((x - w / 2, y - h / 2), w, h)
    patch.set_facecolor(fill)
    patch.set_edgecolor(edge)
    patch.set_linewidth(1.0)
    patch.set_zorder(7)
    ax.add_patch(patch)
    if show_labels and column.tag:
        ax.text(x, y + column.section.footprint[1] / 2 + 0.1, column.tag,
                fontsize=7, ha="center", va="bottom", color=edge, zorder=8)
