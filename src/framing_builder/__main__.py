"""Framing Builder CLI.

Usage:
    python -m framing_builder <command> [options]

Plans are built in memory and printed as JSON. 'grid' fills an outline
with the polygon grid; 'apply' runs a JSON action script through the
editor, starting from an empty plan.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from framing_builder import __version__
from framing_builder.editor import AlignMode, LayoutEditor
from framing_builder.generators.grid import generate_polygon_grid
from framing_builder.models.config import LayoutConfig
from framing_builder.models.geometry import Point2D
from framing_builder.models.plan import FramingPlan
from framing_builder.validators.integrity import validate_plan

app = typer.Typer(
    name="framing_builder",
    help="Framing Builder: column and beam layouts over floor plans.",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr")):
    """Framing Builder CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _output(data: dict) -> None:
    """Print JSON output to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(message: str) -> None:
    _output({"ok": False, "error": message})
    raise typer.Exit(1)


def _load_config(
    path: Optional[str],
    max_span_x: Optional[float] = None,
    max_span_y: Optional[float] = None,
) -> LayoutConfig:
    """Config from file (or defaults), with command-line span overrides."""
    try:
        config = LayoutConfig.load(path) if path else LayoutConfig()
        overrides = {}
        if max_span_x is not None:
            overrides["max_span_x"] = max_span_x
        if max_span_y is not None:
            overrides["max_span_y"] = max_span_y
        if overrides:
            config = LayoutConfig.model_validate({**config.model_dump(), **overrides})
    except (OSError, ValueError) as e:
        _fail(f"Invalid config: {e}")
    return config


def _parse_point(raw) -> Point2D:
    """[x, y] list or "x,y" string -> Point2D."""
    if isinstance(raw, str):
        parts = raw.split(",")
        if len(parts) != 2:
            raise ValueError(f"Expected 'x,y', got {raw!r}")
        return Point2D(x=float(parts[0]), y=float(parts[1]))
    if isinstance(raw, dict):
        return Point2D(x=float(raw["x"]), y=float(raw["y"]))
    x, y = raw
    return Point2D(x=float(x), y=float(y))


def _validate_json(plan: FramingPlan, config: LayoutConfig) -> dict:
    """Run the integrity validators and return structured results."""
    errors = validate_plan(plan, config)
    return {
        "errors": sum(1 for e in errors if e.severity == "error"),
        "warnings": sum(1 for e in errors if e.severity == "warning"),
        "details": [
            {
                "severity": e.severity,
                "element_type": e.element_type,
                "element_id": e.element_id,
                "message": e.message,
            }
            for e in errors
        ],
    }


def _plan_json(plan: FramingPlan) -> dict:
    """Columns, beams and segments as plain data."""
    plan.ensure_tags()
    columns = [
        {
            "id": c.global_id,
            "tag": c.tag,
            "kind": c.kind.value,
            "x": round(c.position.x, 4),
            "y": round(c.position.y, 4),
            "hidden": c.hidden,
        }
        for c in plan.active_columns()
    ]
    beams = [
        {
            "id": b.global_id,
            "tag": b.tag,
            "start": b.start_id,
            "end": b.end_id,
            "length": round(b.length, 4),
            "width": b.width,
            "height": round(b.height, 4),
        }
        for b in plan.beams.values()
    ]
    segments = [
        {
            "id": s.segment_id,
            "beam": s.beam_id,
            "start": [round(s.start.x, 4), round(s.start.y, 4)],
            "end": [round(s.end.x, 4), round(s.end.y, 4)],
            "length": round(s.length, 4),
            "height": round(s.height, 4),
        }
        for s in plan.segments()
    ]
    return {"columns": columns, "beams": beams, "segments": segments}


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def version():
    """Print the package version."""
    _output({"ok": True, "version": __version__})


@app.command()
def grid(
    vertices: List[str] = typer.Argument(..., help="Outline vertices as x,y (at least 3)"),
    max_span_x: Optional[float] = typer.Option(None, "--max-span-x", help="Max column spacing along X"),
    max_span_y: Optional[float] = typer.Option(None, "--max-span-y", help="Max column spacing along Y"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="LayoutConfig JSON file"),
    no_contour: bool = typer.Option(False, "--no-contour", help="Don't add grid lines through vertices"),
    render_path: Optional[str] = typer.Option(None, "--render", "-r", help="Render plan PNG to this path"),
):
    """Fill a polygon outline with a column/beam grid."""
    config = _load_config(config_path, max_span_x, max_span_y)
    try:
        points = [_parse_point(v) for v in vertices]
    except ValueError as e:
        _fail(str(e))
    if len(points) < 3:
        _fail("A grid outline needs at least 3 vertices")

    plan = FramingPlan(name="Grid")
    result = generate_polygon_grid(plan, points, config, contour=not no_contour)

    output: dict = {
        "ok": True,
        "xs": [round(x, 4) for x in result.xs],
        "ys": [round(y, 4) for y in result.ys],
        **_plan_json(plan),
        "validation": _validate_json(plan, config),
    }
    if render_path:
        output["rendered"] = str(plan.render(render_path))
    _output(output)


def _dispatch_action(editor: LayoutEditor, action: dict) -> dict:
    """Execute a single action against the editor. Returns result dict."""
    cmd = action.get("action", "")

    try:
        if cmd == "insert-column":
            if "align" in action:
                editor.align_mode = AlignMode(action["align"])
            column = editor.insert_column(_parse_point(action["at"]))
            return {"action": cmd, "id": column.global_id, "kind": column.kind.value}

        elif cmd == "delete-column":
            column_id = _resolve_column(editor, action)
            if not editor.delete_column(column_id):
                raise ValueError(f"Column {column_id} not found")
            return {"action": cmd, "id": column_id}

        elif cmd == "draw-beam":
            beam = editor.draw_beam(
                _parse_point(action["start"]),
                _parse_point(action["end"]),
                width=action.get("width"),
            )
            if beam is None:
                raise ValueError("Beam endpoints coincide")
            return {"action": cmd, "id": beam.global_id, "length": round(beam.length, 4)}

        elif cmd == "draw-rectangle":
            result = editor.draw_rectangle(
                _parse_point(action["corner"]),
                _parse_point(action["opposite"]),
                fill=action.get("fill", True),
            )
            return {"action": cmd, "beams": len(result.beam_ids)}

        elif cmd == "draw-polyline":
            result = editor.draw_polyline(
                [_parse_point(p) for p in action["points"]],
                close=action.get("close", True),
                fill=action.get("fill", True),
            )
            return {"action": cmd, "beams": len(result.beam_ids)}

        elif cmd == "fill-polygon":
            result = editor.fill_polygon(
                [_parse_point(p) for p in action["vertices"]],
                contour=action.get("contour", True),
            )
            return {"action": cmd, "columns": len(result.column_ids), "beams": len(result.beam_ids)}

        elif cmd == "link-support":
            dependent = _resolve_beam(editor, action["dependent"])
            support = _resolve_beam(editor, action["support"])
            anchor = editor.link_support(dependent, support, angle=action.get("angle", 90.0))
            if anchor is None:
                raise ValueError("Beams do not meet")
            return {"action": cmd, "anchor": anchor.global_id}

        elif cmd == "set-beam-width":
            beam_id = _resolve_beam(editor, action["beam"])
            beam = editor.set_beam_width(beam_id, action["width"])
            if beam is None:
                raise ValueError(f"Beam {beam_id} not found")
            return {"action": cmd, "id": beam.global_id, "width": beam.width}

        elif cmd == "select":
            ids = [_resolve_column(editor, {"at": p}) for p in action.get("at", [])]
            ids += action.get("ids", [])
            selected = editor.select(ids, additive=action.get("additive", False))
            return {"action": cmd, "selected": selected}

        elif cmd == "move":
            if "at" in action or "ids" in action:
                _dispatch_action(editor, {**action, "action": "select"})
            dx, dy = action["delta"]
            if editor.move(list(editor.selection), float(dx), float(dy)) is None:
                raise ValueError("Nothing selected to move")
            return {"action": cmd, "delta": [dx, dy]}

        else:
            return {"action": cmd, "error": f"Unknown action: {cmd}"}

    except Exception as e:
        return {"action": cmd, "error": str(e)}


def _resolve_column(editor: LayoutEditor, action: dict) -> str:
    """Column id from an action: explicit "id" or the column near "at"."""
    if "id" in action:
        return action["id"]
    column = editor.plan.find_near(_parse_point(action["at"]), editor.config.snap_tolerance)
    if column is None:
        raise ValueError(f"No column near {action['at']}")
    return column.global_id


def _resolve_beam(editor: LayoutEditor, ref) -> str:
    """Beam id from an id string or a [[x1, y1], [x2, y2]] endpoint pair."""
    if isinstance(ref, str):
        return ref
    a, b = (_parse_point(p) for p in ref)
    tol = editor.config.snap_tolerance
    for beam in editor.plan.beams.values():
        if (
            (beam.start.distance_to(a) <= tol and beam.end.distance_to(b) <= tol)
            or (beam.start.distance_to(b) <= tol and beam.end.distance_to(a) <= tol)
        ):
            return beam.global_id
    raise ValueError(f"No beam between {ref[0]} and {ref[1]}")


@app.command()
def apply(
    actions_json: Optional[str] = typer.Argument(None, help="JSON array of actions"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Read actions from JSON file"),
    stdin: bool = typer.Option(False, "--stdin", help="Read actions from stdin"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="LayoutConfig JSON file"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Skip validation after apply"),
    render_path: Optional[str] = typer.Option(None, "--render", "-r", help="Render plan PNG to this path"),
):
    """Build a plan by running JSON actions through the editor."""
    if stdin:
        raw = sys.stdin.read()
    elif file:
        try:
            raw = Path(file).read_text()
        except OSError as e:
            _fail(f"Cannot read actions file: {e}")
    elif actions_json:
        raw = actions_json
    else:
        _fail("Provide actions as argument, --file, or --stdin")

    try:
        actions = json.loads(raw)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON: {e}")

    if not isinstance(actions, list):
        actions = [actions]  # allow single action without wrapping in array

    config = _load_config(config_path)
    editor = LayoutEditor(FramingPlan(name="Plan"), config)

    results = []
    for i, action in enumerate(actions):
        result = _dispatch_action(editor, action)
        results.append(result)
        if "error" in result:
            _output({
                "ok": False,
                "error": f"Action {i} ({action.get('action', '?')}) failed: {result['error']}",
                "applied": i,
                "results": results,
            })
            raise typer.Exit(1)

    output: dict = {
        "ok": True,
        "actions_applied": len(results),
        "results": results,
        **_plan_json(editor.plan),
    }
    if not no_validate:
        output["validation"] = _validate_json(editor.plan, config)
    if render_path:
        output["rendered"] = str(editor.plan.render(render_path))

    _output(output)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
