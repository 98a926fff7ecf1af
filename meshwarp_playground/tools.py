"""Interactive tools for the MeshWarp canvas."""
from __future__ import annotations

from PySide6.QtCore import Qt

from .model import EditorMode

# Pick radius for handles, in screen pixels.
HANDLE_PICK_PX = 10.0


class ToolBase:
    """Common interface every tool implements."""

    def __init__(self, canvas):
        self.canvas = canvas

    @property
    def editor(self):
        return self.canvas.editor

    def mouse_press(self, event):  # pragma: no cover - GUI entry point
        pass

    def mouse_move(self, event):  # pragma: no cover - GUI entry point
        pass

    def mouse_release(self, event):  # pragma: no cover - GUI entry point
        pass

    def key_press(self, event):  # pragma: no cover - GUI entry point
        pass

    def deactivate(self):  # pragma: no cover - GUI entry point
        pass


class MeshTool(ToolBase):
    """Drag vertices and mask handles, click cells to paint them."""

    def mouse_press(self, event):
        if event.button() != Qt.LeftButton:
            return
        screen = (event.position().x(), event.position().y())
        point = self.canvas.world_from_event(event)
        tol = self.canvas.pick_tolerance(HANDLE_PICK_PX)

        if self.editor.mode is EditorMode.UV:
            handle = self.editor.boundary_point_at(point, tol)
            if handle is not None:
                self.editor.begin_boundary_drag(handle, screen)
                return
        vertex = self.editor.vertex_at(point, tol)
        if vertex is not None:
            self.editor.begin_vertex_drag(vertex, screen)
            return
        if self.editor.mode is EditorMode.UV:
            cell = self.editor.cell_at(point)
            if cell is not None:
                self.editor.paint_cell(cell)

    def mouse_move(self, event):
        if not self.editor.drag.is_dragging:
            return
        screen = (event.position().x(), event.position().y())
        axis_lock = bool(event.modifiers() & Qt.AltModifier)
        self.editor.drag_move(screen, self.canvas.surface_rect(), axis_lock)

    def mouse_release(self, event):
        if event.button() != Qt.LeftButton:
            return
        self.editor.drag_release()

    def deactivate(self):
        self.editor.drag_release()


class PenTool(ToolBase):
    """Click mask points; Enter closes the shape, Escape abandons it."""

    def mouse_press(self, event):
        if event.button() != Qt.LeftButton:
            return
        self.editor.add_pen_point(*self.canvas.world_from_event(event))

    def key_press(self, event):
        key = event.key()
        if key in (Qt.Key_Return, Qt.Key_Enter):
            self.editor.finish_pen()
        elif key == Qt.Key_Escape:
            self.editor.cancel_pen()
        elif key in (Qt.Key_Backspace, Qt.Key_Delete):
            self.editor.undo_pen_point()
