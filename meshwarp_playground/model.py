"""Document model for the MeshWarp playground.

Everything in here is an immutable value: edits produce new instances through
``dataclasses.replace`` so snapshots held by the history never change under
the editor's feet.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

Point = Tuple[float, float]

# Internal coordinate space of the drawing surface.
CANVAS_WIDTH = 1000
CANVAS_HEIGHT = 2000
GRID_MARGIN = 50

DEFAULT_COLORS: Tuple[str, ...] = (
    "#888888",
    "#b8b3b3",
    "#d1cbc9",
    "#3e3234",
    "#554443",
    "#a9a2a2",
    "#4f4645",
    "#c0bdbd",
)

DEFAULT_RULES = "C1:4,R3:2"
DEFAULT_BASE_COLS = 10
# Square base cells over the drawable area.
DEFAULT_BASE_ROWS = round(
    DEFAULT_BASE_COLS * (CANVAS_HEIGHT - 2 * GRID_MARGIN) / (CANVAS_WIDTH - 2 * GRID_MARGIN)
)


class EditorMode(str, Enum):
    UV = "UV"
    DISPLACEMENT = "DISPLACEMENT"


@dataclass(frozen=True)
class Vertex:
    """Grid vertex with its current and rest position."""

    id: int
    x: float
    y: float
    original_x: float
    original_y: float

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    @property
    def rest(self) -> Point:
        return (self.original_x, self.original_y)

    def moved_to(self, x: float, y: float) -> "Vertex":
        return Vertex(self.id, float(x), float(y), self.original_x, self.original_y)

    def at_rest(self) -> "Vertex":
        return Vertex(self.id, self.original_x, self.original_y, self.original_x, self.original_y)

    def asdict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "originalX": self.original_x,
            "originalY": self.original_y,
            "id": self.id,
        }


@dataclass(frozen=True)
class Cell:
    """Quad cell; corners are ordered top-left, top-right, bottom-right, bottom-left."""

    id: int
    v_indices: Tuple[int, int, int, int]
    color: Optional[str] = None
    is_filled: bool = False

    def painted(self, color: str) -> "Cell":
        return Cell(self.id, self.v_indices, color, True)

    def cleared(self) -> "Cell":
        return Cell(self.id, self.v_indices, None, False)

    def asdict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "v_indices": list(self.v_indices),
            "color": self.color,
            "isFilled": self.is_filled,
        }


@dataclass(frozen=True)
class SubdivisionRules:
    """Sparse per-column / per-row multipliers; absent keys mean 1."""

    cols: Dict[int, int] = field(default_factory=dict)
    rows: Dict[int, int] = field(default_factory=dict)

    def asdict(self) -> Dict[str, Dict[int, int]]:
        return {"cols": dict(self.cols), "rows": dict(self.rows)}


@dataclass(frozen=True)
class GridConfig:
    base_cols: int = DEFAULT_BASE_COLS
    base_rows: int = DEFAULT_BASE_ROWS
    rule_string: str = DEFAULT_RULES

    def asdict(self) -> Dict[str, Any]:
        return {
            "baseCols": self.base_cols,
            "baseRows": self.base_rows,
            "ruleString": self.rule_string,
        }


@dataclass(frozen=True)
class EditorState:
    """One undoable snapshot of the document."""

    vertices: Tuple[Vertex, ...]
    cells: Tuple[Cell, ...]
    boundary_points: Tuple[Point, ...]
    grid_config: GridConfig

    @property
    def has_mask(self) -> bool:
        return len(self.boundary_points) > 0

    def vertex(self, vertex_id: int) -> Optional[Vertex]:
        if 0 <= vertex_id < len(self.vertices):
            return self.vertices[vertex_id]
        return None

    def asdict(self) -> Dict[str, Any]:
        return {
            "vertices": [v.asdict() for v in self.vertices],
            "cells": [c.asdict() for c in self.cells],
            "boundaryPoints": [{"x": float(x), "y": float(y)} for x, y in self.boundary_points],
            "gridConfig": self.grid_config.asdict(),
        }


def clamp_to_canvas(x: float, y: float) -> Point:
    """Clamp a point to the internal coordinate bounds."""
    return (
        max(0.0, min(float(CANVAS_WIDTH), float(x))),
        max(0.0, min(float(CANVAS_HEIGHT), float(y))),
    )


__all__ = [
    "Point",
    "CANVAS_WIDTH",
    "CANVAS_HEIGHT",
    "GRID_MARGIN",
    "DEFAULT_COLORS",
    "DEFAULT_RULES",
    "DEFAULT_BASE_COLS",
    "DEFAULT_BASE_ROWS",
    "EditorMode",
    "Vertex",
    "Cell",
    "SubdivisionRules",
    "GridConfig",
    "EditorState",
    "clamp_to_canvas",
]
