"""Qt widgets for the MeshWarp playground UI."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from PySide6.QtCore import QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import QColor, QImage, QPainter, QPen, QPixmap, QPolygonF
from PySide6.QtWidgets import (
    QColorDialog,
    QComboBox,
    QDockWidget,
    QFileDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSlider,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from .editor import MAX_DISPLACEMENT_SCALE, MIN_DISPLACEMENT_SCALE, MeshEditor
from .export import DEFAULT_JSON_NAME, DEFAULT_PNG_NAME, PNG_EXPORT_SCALE, write_state
from .geometry import MAX_DIVISIONS
from .model import CANVAS_HEIGHT, CANVAS_WIDTH, EditorMode, Point
from .tools import MeshTool, PenTool
from .viewport import SurfaceRect

logger = logging.getLogger(__name__)

# Empty border around the drawing surface, in screen pixels.
SURFACE_PADDING = 40


class Canvas(QWidget):
    """Drawing surface: renders the editor state and forwards pointer input."""

    status_changed = Signal(str)
    editor_changed = Signal()

    def __init__(self, editor: MeshEditor):
        super().__init__()
        self.setObjectName("MeshWarpCanvas")
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)
        self.setToolTip(
            "Drag vertices to warp the mesh, click a cell to paint it.\n"
            "Hold Alt while dragging to lock to one axis.\n"
            "Pen: click points, Enter to close the mask, Esc to cancel."
        )

        self.editor = editor
        self.editor.on_status = self.post_status_message
        self.editor.on_change = self._on_editor_changed
        self._mesh_tool = MeshTool(self)
        self._pen_tool = PenTool(self)
        self._background: Optional[QPixmap] = None
        self._resize_to_zoom()

    # ------------------------------------------------------------------
    # View transforms
    def surface_rect(self) -> SurfaceRect:
        return self.editor.zoom.surface_rect(SURFACE_PADDING, SURFACE_PADDING)

    def world_to_screen(self, point: Point) -> Point:
        return self.editor.drag.mapper.to_screen(point, self.surface_rect())

    def screen_to_world(self, point: Point) -> Point:
        return self.editor.drag.mapper.to_internal(point, self.surface_rect())

    def world_from_event(self, event) -> Point:
        return self.screen_to_world((event.position().x(), event.position().y()))

    def pick_tolerance(self, pixels: float) -> float:
        return pixels / self.editor.zoom.value

    def _resize_to_zoom(self) -> None:
        rect = self.surface_rect()
        size = QSize(int(rect.width) + 2 * SURFACE_PADDING, int(rect.height) + 2 * SURFACE_PADDING)
        if size != self.size():
            self.setFixedSize(size)

    def sizeHint(self) -> QSize:  # pragma: no cover - GUI layout handling
        rect = self.surface_rect()
        return QSize(int(rect.width) + 2 * SURFACE_PADDING, int(rect.height) + 2 * SURFACE_PADDING)

    # ------------------------------------------------------------------
    # Editor plumbing
    def post_status_message(self, message: str) -> None:
        self.status_changed.emit(message)

    def _on_editor_changed(self) -> None:
        self._resize_to_zoom()
        self.update()
        self.editor_changed.emit()

    def _active_tool(self):
        return self._pen_tool if self.editor.is_pen_drawing else self._mesh_tool

    def load_background(self, path: str) -> bool:
        pixmap = QPixmap(path)
        if pixmap.isNull():
            self.post_status_message(f"Could not load image {Path(path).name}")
            logger.warning("Failed to load background image %s", path)
            return False
        self._background = pixmap
        self.editor.set_background(path)
        return True

    def clear_background(self) -> None:
        self._background = None
        self.editor.set_background(None)

    # ------------------------------------------------------------------
    # Painting
    def paintEvent(self, event):  # pragma: no cover - GUI entry point
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor(229, 231, 235))
        self.render_surface(painter, self.surface_rect(), handles=True)
        painter.end()

    def render_surface(self, painter: QPainter, rect: SurfaceRect, handles: bool = True) -> None:
        """Draw the document into ``rect``; exports pass ``handles=False``."""
        mapper = self.editor.drag.mapper

        def screen(point: Point) -> QPointF:
            x, y = mapper.to_screen(point, rect)
            return QPointF(x, y)

        frame = QRectF(rect.left, rect.top, rect.width, rect.height)
        painter.fillRect(frame, QColor(255, 255, 255))
        if self._background is not None and self.editor.background is not None:
            painter.drawPixmap(frame, self._background, QRectF(self._background.rect()))

        grid_pen = QPen(QColor(0, 0, 0, 80), 1)
        vertices = self.editor.vertices
        for cell in self.editor.state.cells:
            polygon = QPolygonF([screen(vertices[vid].position) for vid in cell.v_indices])
            fill = self.editor.cell_fill(cell)
            painter.setPen(grid_pen)
            painter.setBrush(QColor(fill) if fill else Qt.NoBrush)
            painter.drawPolygon(polygon)

        self._draw_boundary(painter, [screen(p) for p in self.editor.displayed_boundary()], handles)

        if handles:
            painter.setPen(Qt.NoPen)
            painter.setBrush(QColor(37, 99, 235))
            for vertex in vertices:
                painter.drawEllipse(screen(vertex.position), 3.0, 3.0)

    def _draw_boundary(self, painter: QPainter, points: Sequence[QPointF], handles: bool) -> None:
        if not points:
            return
        drawing = self.editor.is_pen_drawing
        pen = QPen(QColor(220, 38, 38), 2)
        if drawing:
            pen.setStyle(Qt.DashLine)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        if drawing or len(points) < 3:
            painter.drawPolyline(QPolygonF(list(points)))
        else:
            painter.drawPolygon(QPolygonF(list(points)))
        if handles and (drawing or self.editor.mode is EditorMode.UV):
            painter.setPen(QPen(QColor(220, 38, 38), 1))
            painter.setBrush(QColor(255, 255, 255))
            for pt in points:
                painter.drawEllipse(pt, 5.0, 5.0)

    # ------------------------------------------------------------------
    # Event forwarding to the active tool
    def wheelEvent(self, event):  # pragma: no cover - GUI entry point
        if event.modifiers() & Qt.ControlModifier:
            delta = event.angleDelta().y()
            if delta:
                self.editor.zoom_wheel(-float(delta))
            event.accept()
            return
        super().wheelEvent(event)

    def mousePressEvent(self, event):  # pragma: no cover - GUI entry point
        self.setFocus()
        self._active_tool().mouse_press(event)

    def mouseMoveEvent(self, event):  # pragma: no cover - GUI entry point
        self._active_tool().mouse_move(event)

    def mouseReleaseEvent(self, event):  # pragma: no cover - GUI entry point
        self._active_tool().mouse_release(event)

    def leaveEvent(self, event):  # pragma: no cover - GUI entry point
        self._mesh_tool.deactivate()
        super().leaveEvent(event)

    def keyPressEvent(self, event):  # pragma: no cover - GUI entry point
        if self.editor.is_pen_drawing:
            self._pen_tool.key_press(event)
        else:
            super().keyPressEvent(event)

    # ------------------------------------------------------------------
    # Export helpers
    def render_image(self, scale: float = PNG_EXPORT_SCALE) -> QImage:
        width, height = int(CANVAS_WIDTH * scale), int(CANVAS_HEIGHT * scale)
        image = QImage(width, height, QImage.Format_ARGB32)
        image.fill(QColor(255, 255, 255))
        painter = QPainter(image)
        painter.setRenderHint(QPainter.Antialiasing, True)
        self.render_surface(painter, SurfaceRect(0.0, 0.0, float(width), float(height)), handles=False)
        painter.end()
        return image

    def export_png(self, parent=None) -> None:  # pragma: no cover - GUI entry point
        path, _ = QFileDialog.getSaveFileName(parent or self, "Export PNG", DEFAULT_PNG_NAME, "PNG Files (*.png)")
        if not path:
            return
        if self.render_image().save(path):
            logger.info("Exported PNG to %s", path)
            self.post_status_message(f"Saved {Path(path).name}")
        else:
            self.post_status_message(f"Could not write {Path(path).name}")

    def export_json(self, parent=None) -> None:  # pragma: no cover - GUI entry point
        path, _ = QFileDialog.getSaveFileName(parent or self, "Export JSON", DEFAULT_JSON_NAME, "JSON Files (*.json)")
        if not path:
            return
        try:
            written = write_state(self.editor.state, path)
        except OSError as exc:
            logger.error("JSON export failed: %s", exc)
            self.post_status_message(f"Could not write {Path(path).name}")
            return
        self.post_status_message(f"Saved {written.name}")


class Controls:
    """Docked sidebar: grid structure, painting, mask and view controls."""

    def __init__(self, canvas: Canvas, palette: Sequence[str]):
        self.canvas = canvas
        self.editor = canvas.editor
        self.dock = QDockWidget("Mesh")
        self.dock.setObjectName("MeshWarpControlsDock")
        self.dock.setFeatures(QDockWidget.DockWidgetMovable | QDockWidget.DockWidgetFloatable)
        host = QWidget()
        layout = QVBoxLayout(host)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        self._mode_combo = QComboBox()
        self._mode_combo.addItem("UV / Paint", EditorMode.UV.value)
        self._mode_combo.addItem("Displacement", EditorMode.DISPLACEMENT.value)
        self._mode_combo.setToolTip("UV paints cells; Displacement shades cells by how far they moved.")
        self._mode_combo.currentIndexChanged.connect(self._emit_mode)
        layout.addWidget(self._mode_combo)

        layout.addWidget(self._build_grid_box())
        layout.addWidget(self._build_paint_box(palette))
        layout.addWidget(self._build_mask_box())
        layout.addWidget(self._build_view_box())
        layout.addStretch(1)
        self.dock.setWidget(host)

        canvas.editor_changed.connect(self.sync)
        self.sync()

    def _build_grid_box(self) -> QGroupBox:
        box = QGroupBox("Grid")
        grid = QGridLayout(box)
        self._cols_spin = QSpinBox()
        self._cols_spin.setRange(1, MAX_DIVISIONS)
        self._rows_spin = QSpinBox()
        self._rows_spin.setRange(1, MAX_DIVISIONS)
        self._rules_edit = QLineEdit()
        self._rules_edit.setPlaceholderText("C1:4, R3:2")
        self._rules_edit.setToolTip("Comma separated rules: C<col>:<n> splits a column, R<row>:<n> splits a row.")
        self._cols_spin.valueChanged.connect(lambda v: self.editor.set_pending_config(base_cols=v))
        self._rows_spin.valueChanged.connect(lambda v: self.editor.set_pending_config(base_rows=v))
        self._rules_edit.textEdited.connect(lambda text: self.editor.set_pending_config(rule_string=text))

        regenerate = QPushButton("Regenerate")
        regenerate.setToolTip("Rebuild the grid from the settings above. Painted cells are discarded.")
        regenerate.clicked.connect(self.editor.regenerate_grid)
        reset = QPushButton("Reset Vertices")
        reset.clicked.connect(self.editor.reset_positions)

        grid.addWidget(QLabel("Columns"), 0, 0)
        grid.addWidget(self._cols_spin, 0, 1)
        grid.addWidget(QLabel("Rows"), 1, 0)
        grid.addWidget(self._rows_spin, 1, 1)
        grid.addWidget(QLabel("Rules"), 2, 0)
        grid.addWidget(self._rules_edit, 2, 1)
        grid.addWidget(regenerate, 3, 0, 1, 2)
        grid.addWidget(reset, 4, 0, 1, 2)
        return box

    def _build_paint_box(self, palette: Sequence[str]) -> QGroupBox:
        box = QGroupBox("Paint")
        layout = QVBoxLayout(box)
        swatches = QGridLayout()
        self._swatches: Dict[str, QPushButton] = {}
        for index, color in enumerate(palette):
            button = QPushButton()
            button.setFixedSize(28, 28)
            button.setCheckable(True)
            button.setToolTip(color)
            button.setStyleSheet(f"background-color: {color};")
            button.clicked.connect(lambda _checked, c=color: self.editor.set_active_color(c))
            swatches.addWidget(button, index // 4, index % 4)
            self._swatches[color] = button
        layout.addLayout(swatches)
        custom = QPushButton("Custom Color…")
        custom.clicked.connect(self._pick_color)
        layout.addWidget(custom)

        self._scale_label = QLabel()
        self._scale_slider = QSlider(Qt.Horizontal)
        self._scale_slider.setRange(int(MIN_DISPLACEMENT_SCALE * 100), int(MAX_DISPLACEMENT_SCALE * 100))
        self._scale_slider.setToolTip("Displacement intensity used by the Displacement view.")
        self._scale_slider.valueChanged.connect(self._emit_scale)
        layout.addWidget(self._scale_label)
        layout.addWidget(self._scale_slider)
        return box

    def _build_mask_box(self) -> QGroupBox:
        box = QGroupBox("Mask")
        layout = QVBoxLayout(box)
        self._pen_button = QPushButton("Draw Mask")
        self._pen_button.setCheckable(True)
        self._pen_button.clicked.connect(self._toggle_pen)
        self._finish_button = QPushButton("Close Shape")
        self._finish_button.clicked.connect(self.editor.finish_pen)
        self._clear_mask_button = QPushButton("Clear Mask")
        self._clear_mask_button.clicked.connect(self.editor.clear_mask)
        for widget in (self._pen_button, self._finish_button, self._clear_mask_button):
            layout.addWidget(widget)
        return box

    def _build_view_box(self) -> QGroupBox:
        box = QGroupBox("View")
        layout = QVBoxLayout(box)
        row = QHBoxLayout()
        zoom_out = QPushButton("−")
        zoom_out.clicked.connect(self.editor.zoom_out)
        self._zoom_label = QLabel()
        self._zoom_label.setAlignment(Qt.AlignCenter)
        zoom_in = QPushButton("+")
        zoom_in.clicked.connect(self.editor.zoom_in)
        row.addWidget(zoom_out)
        row.addWidget(self._zoom_label, 1)
        row.addWidget(zoom_in)
        layout.addLayout(row)

        background = QPushButton("Background Image…")
        background.clicked.connect(self.pick_background)
        clear_background = QPushButton("Remove Background")
        clear_background.clicked.connect(self.canvas.clear_background)
        layout.addWidget(background)
        layout.addWidget(clear_background)
        return box

    # ------------------------------------------------------------------
    def _emit_mode(self, _index: int) -> None:
        if not self.editor.set_mode(self._mode_combo.currentData()):
            self.sync()

    def _emit_scale(self, value: int) -> None:
        self.editor.set_displacement_scale(value / 100.0)
        self._scale_label.setText(f"Displacement scale: {self.editor.displacement_scale:.2f}")
        self.canvas.update()

    def _toggle_pen(self, _checked: bool) -> None:
        self.editor.toggle_pen()
        self.canvas.setFocus()

    def _pick_color(self) -> None:  # pragma: no cover - GUI entry point
        color = QColorDialog.getColor(QColor(self.editor.active_color), self.dock, "Paint Color")
        if color.isValid():
            self.editor.set_active_color(color.name())

    def pick_background(self) -> None:  # pragma: no cover - GUI entry point
        path, _ = QFileDialog.getOpenFileName(
            self.dock, "Background Image", "", "Images (*.png *.jpg *.jpeg *.bmp *.gif)"
        )
        if path:
            self.canvas.load_background(path)

    def sync(self) -> None:
        """Push editor state back into the widgets without re-emitting."""
        editor = self.editor
        config = editor.pending_config
        updates: List[tuple] = [
            (self._cols_spin, lambda: self._cols_spin.setValue(int(config.base_cols))),
            (self._rows_spin, lambda: self._rows_spin.setValue(int(config.base_rows))),
            (self._mode_combo, lambda: self._mode_combo.setCurrentIndex(self._mode_combo.findData(editor.mode.value))),
            (self._scale_slider, lambda: self._scale_slider.setValue(int(round(editor.displacement_scale * 100)))),
            (self._pen_button, lambda: self._pen_button.setChecked(editor.is_pen_drawing)),
        ]
        for widget, apply in updates:
            blocked = widget.blockSignals(True)
            apply()
            widget.blockSignals(blocked)
        if self._rules_edit.text() != config.rule_string:
            self._rules_edit.setText(config.rule_string)

        self._mode_combo.setEnabled(not editor.is_pen_drawing)
        self._finish_button.setEnabled(editor.is_pen_drawing)
        self._clear_mask_button.setEnabled(editor.state.has_mask and not editor.is_pen_drawing)
        for color, button in self._swatches.items():
            button.setChecked(color == editor.active_color)
        self._scale_label.setText(f"Displacement scale: {editor.displacement_scale:.2f}")
        self._zoom_label.setText(f"{editor.zoom.percent}%")
