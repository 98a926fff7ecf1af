"""Geometry helpers for the MeshWarp playground.

Pure functions only: rule parsing, grid generation, polygon masking and the
displacement heat map. Inputs arriving from widgets or HTTP payloads may be
garbage (``NaN``, negative counts, unparseable rules), so every entry point
degrades to a defined result instead of raising.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from .model import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    GRID_MARGIN,
    Cell,
    Point,
    SubdivisionRules,
    Vertex,
)

logger = logging.getLogger(__name__)

_RULE_TOKEN = re.compile(r"([CR])\s*([0-9]+)\s*:\s*([0-9]+)")

# Upper bound on physical strips along either axis; also caps base counts
# and single multipliers.
MAX_DIVISIONS = 200


@dataclass(frozen=True)
class Grid:
    """Vertices and cells produced by :func:`generate_grid`."""

    vertices: Tuple[Vertex, ...]
    cells: Tuple[Cell, ...]
    x_points: int
    y_points: int


def sanitize_count(value: object) -> int:
    """Coerce a user supplied division count into ``[1, MAX_DIVISIONS]``."""
    try:
        count = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(count):
        return 1
    return max(1, min(MAX_DIVISIONS, int(count)))


def _strip_total(base_count: int, multipliers: Mapping[int, int]) -> int:
    return base_count - len(multipliers) + sum(multipliers.values())


def parse_rules(rule_string: str | None, base_cols: object, base_rows: object) -> SubdivisionRules:
    """Parse ``"C1:4, R3:2"`` style subdivision rules.

    Tokens are comma separated and case-insensitive. A token that does not
    match, has a non-positive multiplier, targets an index outside the base
    grid, or would push its axis past ``MAX_DIVISIONS`` strips is dropped;
    later tokens overwrite earlier ones for the same index.
    """
    cols: Dict[int, int] = {}
    rows: Dict[int, int] = {}
    if not rule_string:
        return SubdivisionRules(cols, rows)

    col_limit = sanitize_count(base_cols)
    row_limit = sanitize_count(base_rows)
    for raw in str(rule_string).split(","):
        token = raw.strip().upper()
        if not token:
            continue
        match = _RULE_TOKEN.fullmatch(token)
        if match is None:
            logger.debug("Dropping malformed rule token %r", raw)
            continue
        axis, index, multiplier = match.group(1), int(match.group(2)), int(match.group(3))
        if multiplier <= 0:
            logger.debug("Dropping rule token %r: multiplier must be positive", raw)
            continue
        if axis == "C" and index < col_limit:
            target, limit = cols, col_limit
        elif axis == "R" and index < row_limit:
            target, limit = rows, row_limit
        else:
            logger.debug("Dropping rule token %r: index out of range", raw)
            continue
        if _strip_total(limit, {**target, index: multiplier}) > MAX_DIVISIONS:
            logger.debug("Dropping rule token %r: more than %d strips", raw, MAX_DIVISIONS)
            continue
        target[index] = multiplier
    return SubdivisionRules(cols, rows)


def strip_sizes(base_count: object, multipliers: Mapping[int, int], span: float) -> np.ndarray:
    """Return the physical strip widths along one axis.

    Logical division ``i`` is split into ``multipliers[i]`` equal strips, so the
    strips of one division always add up to ``span / base_count``.
    """
    count = sanitize_count(base_count)
    base_step = float(span) / count
    sizes: List[float] = []
    for index in range(count):
        multiplier = max(1, min(MAX_DIVISIONS, int(multipliers.get(index, 1) or 1)))
        sizes.extend([base_step / multiplier] * multiplier)
    return np.asarray(sizes, dtype=float)


def _axis_positions(sizes: np.ndarray) -> np.ndarray:
    return GRID_MARGIN + np.concatenate(([0.0], np.cumsum(sizes)))


def generate_grid(base_cols: object, base_rows: object, rules: SubdivisionRules) -> Grid:
    """Build the subdivided grid inside the drawable rectangle.

    Vertices and cells are emitted in row-major order and their ids equal
    their position in the returned tuples.
    """
    area_x = CANVAS_WIDTH - 2 * GRID_MARGIN
    area_y = CANVAS_HEIGHT - 2 * GRID_MARGIN
    xs = _axis_positions(strip_sizes(base_cols, rules.cols, area_x))
    ys = _axis_positions(strip_sizes(base_rows, rules.rows, area_y))
    nx, ny = len(xs), len(ys)

    vertices: List[Vertex] = []
    for r in range(ny):
        y = float(ys[r])
        for c in range(nx):
            x = float(xs[c])
            vertices.append(Vertex(id=r * nx + c, x=x, y=y, original_x=x, original_y=y))

    cells: List[Cell] = []
    for r in range(ny - 1):
        for c in range(nx - 1):
            tl = r * nx + c
            tr = tl + 1
            br = (r + 1) * nx + c + 1
            bl = (r + 1) * nx + c
            cells.append(Cell(id=len(cells), v_indices=(tl, tr, br, bl)))

    return Grid(tuple(vertices), tuple(cells), nx, ny)


def is_point_in_polygon(point: Sequence[float], polygon: Sequence[Sequence[float]]) -> bool:
    """Crossing-number test; the polygon is implicitly closed.

    Points lying exactly on an edge get whatever the crossing rule yields.
    """
    if len(polygon) < 3:
        return False
    x, y = float(point[0]), float(point[1])
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = float(polygon[i][0]), float(polygon[i][1])
        xj, yj = float(polygon[j][0]), float(polygon[j][1])
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def cell_polygon(cell: Cell, vertices: Sequence[Vertex]) -> List[Point]:
    """Current corner positions of ``cell`` in winding order."""
    return [vertices[vid].position for vid in cell.v_indices]


def cell_center(cell: Cell, vertices: Sequence[Vertex]) -> Point:
    """Mean of the four current corner positions."""
    corners = cell_polygon(cell, vertices)
    return (
        sum(p[0] for p in corners) / 4.0,
        sum(p[1] for p in corners) / 4.0,
    )


def displacement_intensity(cell: Cell, vertices: Sequence[Vertex], scale: float) -> int:
    """Gray level in ``[0, 255]`` for the average corner displacement."""
    offsets = np.array(
        [(vertices[vid].x - vertices[vid].original_x, vertices[vid].y - vertices[vid].original_y) for vid in cell.v_indices],
        dtype=float,
    )
    average = float(np.mean(np.hypot(offsets[:, 0], offsets[:, 1])))
    value = average * float(scale) * 200.0
    if math.isnan(value):
        return 0
    value = max(0.0, min(255.0, value))
    return int(math.floor(value))


def displacement_color(cell: Cell, vertices: Sequence[Vertex], scale: float) -> str:
    """Neutral gray hex color; lighter means more displaced."""
    level = displacement_intensity(cell, vertices, scale)
    return f"#{level:02x}{level:02x}{level:02x}"


def polygon_from_points(points: Iterable[Sequence[float]]) -> List[Point]:
    """Normalize an iterable of pairs into float tuples."""
    return [(float(p[0]), float(p[1])) for p in points]


__all__ = [
    "Grid",
    "MAX_DIVISIONS",
    "sanitize_count",
    "parse_rules",
    "strip_sizes",
    "generate_grid",
    "is_point_in_polygon",
    "cell_polygon",
    "cell_center",
    "displacement_intensity",
    "displacement_color",
    "polygon_from_points",
]
