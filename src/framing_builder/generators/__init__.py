"""Framing generation tools.

Functions that add columns and beams to a FramingPlan:
- Polygon grid: outline -> column grid within the maximum spans
- Perimeter: rectangle / polyline outlines, optionally filled with the grid
"""

from framing_builder.generators.grid import GridResult, generate_polygon_grid, grid_positions
from framing_builder.generators.perimeter import PerimeterResult, draw_polyline, draw_rectangle

__all__ = [
    "GridResult",
    "generate_polygon_grid",
    "grid_positions",
    "PerimeterResult",
    "draw_polyline",
    "draw_rectangle",
]
