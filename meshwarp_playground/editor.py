"""Editor orchestration: UI state, working copies, and history commits.

:class:`MeshEditor` is the only object that writes to the history. In-flight
edits (a vertex being dragged, a mask point being moved) live in the working
copies ``vertices`` and ``boundary_points``; a completed edit is turned into
a new :class:`EditorState` and pushed. After every push, undo or redo the
working copies are refreshed from the current snapshot.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np

from .drag import DragController, DragKind, DragTarget, DragUpdate
from .export import state_to_json
from .geometry import (
    cell_center,
    cell_polygon,
    displacement_color,
    generate_grid,
    is_point_in_polygon,
    parse_rules,
    polygon_from_points,
    sanitize_count,
)
from .history import History
from .model import Cell, EditorMode, EditorState, GridConfig, Point, Vertex, clamp_to_canvas
from .settings import EditorSettings
from .viewport import SurfaceRect, ZoomModel

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]
ChangeCallback = Callable[[], None]

MIN_DISPLACEMENT_SCALE = 0.01
MAX_DISPLACEMENT_SCALE = 0.3
MIN_MASK_POINTS = 3

MSG_MASK_TOO_SMALL = "Need at least 3 points for a shape."
MSG_OUTSIDE_MASK = "Cannot paint outside the mask boundary."


def sanitize_config(config: GridConfig) -> GridConfig:
    rule_string = config.rule_string if isinstance(config.rule_string, str) else ""
    return GridConfig(sanitize_count(config.base_cols), sanitize_count(config.base_rows), rule_string)


def build_state(config: GridConfig, boundary_points: Sequence[Point] = ()) -> EditorState:
    """Generate a fresh snapshot for ``config``, keeping the given mask."""
    config = sanitize_config(config)
    rules = parse_rules(config.rule_string, config.base_cols, config.base_rows)
    grid = generate_grid(config.base_cols, config.base_rows, rules)
    return EditorState(grid.vertices, grid.cells, tuple(boundary_points), config)


def initial_state(settings: Optional[EditorSettings] = None) -> EditorState:
    return build_state((settings or EditorSettings()).grid_config())


class MeshEditor:
    """Owns the document history plus every piece of ephemeral UI state."""

    def __init__(
        self,
        settings: Optional[EditorSettings] = None,
        on_status: Optional[StatusCallback] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.on_status = on_status
        self.on_change = on_change

        self.history: History[EditorState] = History(initial_state(self.settings))
        self.mode = EditorMode.UV
        self.active_color = self.settings.active_color
        self.displacement_scale = 0.1
        self.set_displacement_scale(self.settings.displacement_scale)
        self.zoom = ZoomModel()
        self.background: Optional[object] = None

        self.is_pen_drawing = False
        self.drawing_points: List[Point] = []
        self.drag = DragController()

        self.vertices: List[Vertex] = []
        self.boundary_points: List[Point] = []
        self.pending_config = self.state.grid_config
        self._sync_working_copy()

    # ------------------------------------------------------------------
    # Plumbing
    @property
    def state(self) -> EditorState:
        return self.history.current()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo()

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo()

    def _sync_working_copy(self) -> None:
        state = self.state
        self.vertices = list(state.vertices)
        self.boundary_points = list(state.boundary_points)
        self.pending_config = state.grid_config

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _report(self, message: str) -> None:
        logger.info("Rejected edit: %s", message)
        if self.on_status is not None:
            self.on_status(message)

    def _commit(self, state: EditorState, label: str) -> None:
        self.history.push(state)
        self._sync_working_copy()
        logger.info("Committed %s (history %d/%d)", label, self.history.index + 1, len(self.history))
        self._notify()

    def _working_state(self) -> EditorState:
        return replace(
            self.state,
            vertices=tuple(self.vertices),
            boundary_points=tuple(self.boundary_points),
        )

    # ------------------------------------------------------------------
    # History
    def undo(self) -> bool:
        if self.drag.is_dragging or not self.history.can_undo():
            return False
        self.history.undo()
        self._sync_working_copy()
        logger.info("Undo (history %d/%d)", self.history.index + 1, len(self.history))
        self._notify()
        return True

    def redo(self) -> bool:
        if self.drag.is_dragging or not self.history.can_redo():
            return False
        self.history.redo()
        self._sync_working_copy()
        logger.info("Redo (history %d/%d)", self.history.index + 1, len(self.history))
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Grid structure
    def set_pending_config(
        self,
        base_cols: object = None,
        base_rows: object = None,
        rule_string: Optional[str] = None,
    ) -> GridConfig:
        """Edit the sidebar config; nothing is generated until regenerate."""
        config = self.pending_config
        if base_cols is not None:
            config = replace(config, base_cols=sanitize_count(base_cols))
        if base_rows is not None:
            config = replace(config, base_rows=sanitize_count(base_rows))
        if rule_string is not None:
            config = replace(config, rule_string=rule_string)
        self.pending_config = config
        return config

    def regenerate_grid(self) -> EditorState:
        config = sanitize_config(self.pending_config)
        state = build_state(config, self.state.boundary_points)
        self._commit(state, f"grid {config.base_cols}x{config.base_rows} '{config.rule_string}'")
        return state

    def reset_positions(self) -> None:
        vertices = tuple(v.at_rest() for v in self.state.vertices)
        self._commit(replace(self.state, vertices=vertices), "vertex reset")

    # ------------------------------------------------------------------
    # Vertex and mask point edits
    def move_vertex(self, vertex_id: int, x: float, y: float, finished: bool) -> bool:
        if not 0 <= vertex_id < len(self.vertices):
            return False
        x, y = clamp_to_canvas(x, y)
        self.vertices[vertex_id] = self.vertices[vertex_id].moved_to(x, y)
        if finished:
            return self._commit_working("vertex move")
        self._notify()
        return True

    def move_boundary_point(self, index: int, x: float, y: float, finished: bool) -> bool:
        if not 0 <= index < len(self.boundary_points):
            return False
        self.boundary_points[index] = clamp_to_canvas(x, y)
        if finished:
            return self._commit_working("mask point move")
        self._notify()
        return True

    def _commit_working(self, label: str) -> bool:
        working = self._working_state()
        if working == self.state:
            return False
        self._commit(working, label)
        return True

    # ------------------------------------------------------------------
    # Pointer drags
    def begin_vertex_drag(self, vertex_id: int, pointer: Point) -> bool:
        if self.is_pen_drawing or not 0 <= vertex_id < len(self.vertices):
            return False
        origin = self.vertices[vertex_id].position
        self.drag.begin(DragTarget(DragKind.VERTEX, vertex_id), pointer, origin)
        return True

    def begin_boundary_drag(self, index: int, pointer: Point) -> bool:
        if self.is_pen_drawing or self.mode is not EditorMode.UV:
            return False
        if not 0 <= index < len(self.boundary_points):
            return False
        self.drag.begin(DragTarget(DragKind.BOUNDARY, index), pointer, self.boundary_points[index])
        return True

    def drag_move(self, pointer: Point, surface: SurfaceRect, axis_lock: bool = False) -> Optional[DragUpdate]:
        update = self.drag.move(pointer, surface, axis_lock)
        if update is not None:
            self._apply_drag(update)
        return update

    def drag_release(self) -> Optional[DragUpdate]:
        """Finish the active drag; used for both pointer-up and pointer-leave."""
        update = self.drag.release()
        if update is not None:
            self._apply_drag(update)
        return update

    def _apply_drag(self, update: DragUpdate) -> None:
        target = update.target
        if target.kind is DragKind.VERTEX:
            self.move_vertex(target.id, update.x, update.y, update.final)
        else:
            self.move_boundary_point(target.id, update.x, update.y, update.final)

    # ------------------------------------------------------------------
    # Painting
    def paint_cell(self, cell_id: int, color: Optional[str] = None) -> bool:
        """Toggle paint on a cell; a cell already holding the color is cleared."""
        if self.mode is not EditorMode.UV or self.is_pen_drawing:
            return False
        state = self.state
        if not 0 <= cell_id < len(state.cells):
            return False
        cell = state.cells[cell_id]
        if len(state.boundary_points) >= MIN_MASK_POINTS:
            center = cell_center(cell, self.vertices)
            if not is_point_in_polygon(center, state.boundary_points):
                self._report(MSG_OUTSIDE_MASK)
                return False

        paint = color or self.active_color
        if cell.is_filled and cell.color == paint:
            updated = cell.cleared()
        else:
            updated = cell.painted(paint)
        cells = list(state.cells)
        cells[cell_id] = updated
        self._commit(replace(self._working_state(), cells=tuple(cells)), f"paint cell {cell_id}")
        return True

    # ------------------------------------------------------------------
    # Mask drawing
    def toggle_pen(self) -> bool:
        self.is_pen_drawing = not self.is_pen_drawing
        self.drawing_points = []
        self._notify()
        return self.is_pen_drawing

    def add_pen_point(self, x: float, y: float) -> bool:
        if not self.is_pen_drawing or self.drag.is_dragging:
            return False
        self.drawing_points.append(clamp_to_canvas(x, y))
        self._notify()
        return True

    def undo_pen_point(self) -> bool:
        if not self.is_pen_drawing or not self.drawing_points:
            return False
        self.drawing_points.pop()
        self._notify()
        return True

    def cancel_pen(self) -> None:
        self.is_pen_drawing = False
        self.drawing_points = []
        self._notify()

    def finish_pen(self) -> bool:
        if not self.is_pen_drawing:
            return False
        if not self.commit_mask(self.drawing_points):
            return False
        self.is_pen_drawing = False
        self.drawing_points = []
        self._notify()
        return True

    def commit_mask(self, points: Iterable[Sequence[float]]) -> bool:
        polygon = [clamp_to_canvas(x, y) for x, y in polygon_from_points(points)]
        if len(polygon) < MIN_MASK_POINTS:
            self._report(MSG_MASK_TOO_SMALL)
            return False
        self._commit(replace(self.state, boundary_points=tuple(polygon)), f"mask ({len(polygon)} points)")
        return True

    def clear_mask(self) -> bool:
        if not self.state.has_mask:
            return False
        self._commit(replace(self.state, boundary_points=()), "mask clear")
        return True

    # ------------------------------------------------------------------
    # UI-only state
    def set_mode(self, mode: EditorMode | str) -> bool:
        if self.is_pen_drawing:
            return False
        try:
            self.mode = EditorMode(mode)
        except ValueError:
            return False
        self._notify()
        return True

    def set_active_color(self, color: str) -> None:
        if color:
            self.active_color = color
            self._notify()

    def set_displacement_scale(self, scale: float) -> float:
        try:
            value = float(scale)
        except (TypeError, ValueError):
            return self.displacement_scale
        if not math.isnan(value):
            self.displacement_scale = max(MIN_DISPLACEMENT_SCALE, min(MAX_DISPLACEMENT_SCALE, value))
        return self.displacement_scale

    def set_background(self, reference: Optional[object]) -> None:
        self.background = reference
        self._notify()

    def set_zoom(self, value: float) -> float:
        result = self.zoom.set(value)
        self._notify()
        return result

    def zoom_in(self) -> float:
        result = self.zoom.zoom_in()
        self._notify()
        return result

    def zoom_out(self) -> float:
        result = self.zoom.zoom_out()
        self._notify()
        return result

    def zoom_wheel(self, delta_y: float) -> float:
        result = self.zoom.wheel(delta_y)
        self._notify()
        return result

    def reset_zoom(self) -> float:
        result = self.zoom.reset()
        self._notify()
        return result

    # ------------------------------------------------------------------
    # Queries for the presentation layer
    def displayed_boundary(self) -> List[Point]:
        return list(self.drawing_points) if self.is_pen_drawing else list(self.boundary_points)

    def cell_visible(self, cell: Cell) -> bool:
        boundary = self.displayed_boundary()
        if len(boundary) < MIN_MASK_POINTS:
            return True
        return is_point_in_polygon(cell_center(cell, self.vertices), boundary)

    def cell_fill(self, cell: Cell) -> Optional[str]:
        """Fill color to draw for ``cell`` or ``None`` for transparent."""
        if self.mode is EditorMode.DISPLACEMENT:
            return displacement_color(cell, self.vertices, self.displacement_scale)
        if cell.is_filled and self.cell_visible(cell):
            return cell.color or self.active_color
        return None

    def vertex_at(self, point: Point, tol: float) -> Optional[int]:
        if not self.vertices:
            return None
        positions = np.array([v.position for v in self.vertices], dtype=float)
        dist = np.hypot(positions[:, 0] - point[0], positions[:, 1] - point[1])
        best = int(np.argmin(dist))
        return best if dist[best] <= tol else None

    def boundary_point_at(self, point: Point, tol: float) -> Optional[int]:
        best: Optional[int] = None
        best_dist = float(tol)
        for index, (bx, by) in enumerate(self.boundary_points):
            dist = math.hypot(bx - point[0], by - point[1])
            if dist <= best_dist:
                best, best_dist = index, dist
        return best

    def cell_at(self, point: Point) -> Optional[int]:
        for cell in reversed(self.state.cells):
            if is_point_in_polygon(point, cell_polygon(cell, self.vertices)):
                return cell.id
        return None

    def export_document(self) -> dict:
        return state_to_json(self.state)
