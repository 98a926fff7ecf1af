"""Application bootstrap for the MeshWarp playground."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence
from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QScrollArea, QStatusBar

from .editor import MeshEditor
from .logs import configure_logging
from .settings import EditorSettings, load_settings
from .widgets import Canvas, Controls

logger = logging.getLogger(__name__)


class Main(QMainWindow):
    """Top-level window wiring together the canvas, controls, and chrome."""

    def __init__(self, settings: Optional[EditorSettings] = None):
        super().__init__()
        self.setWindowTitle("MeshWarp Playground")
        settings = settings or EditorSettings()

        self.editor = MeshEditor(settings)
        self.canvas = Canvas(self.editor)
        self.controls = Controls(self.canvas, settings.palette)

        scroll = QScrollArea()
        scroll.setWidget(self.canvas)
        scroll.setAlignment(Qt.AlignCenter)
        self.setCentralWidget(scroll)
        self.addDockWidget(Qt.LeftDockWidgetArea, self.controls.dock)

        self._setup_status_bar()
        self._make_menu()

        self.canvas.status_changed.connect(self._on_status_changed)
        self.canvas.editor_changed.connect(self._refresh_chrome)
        self._refresh_chrome()
        self.resize(1200, 900)

    # ------------------------------------------------------------------
    # UI scaffolding
    def _setup_status_bar(self) -> None:
        bar = QStatusBar()
        bar.setSizeGripEnabled(False)
        self.setStatusBar(bar)
        self._mode_label = QLabel()
        self._history_label = QLabel()
        self._zoom_label = QLabel()
        for label in (self._mode_label, self._history_label, self._zoom_label):
            bar.addPermanentWidget(label)

    def _make_menu(self) -> None:
        menu_bar = self.menuBar()
        file_menu = menu_bar.addMenu("&File")

        background_action = file_menu.addAction("Open Background Image…")
        background_action.triggered.connect(self.controls.pick_background)
        background_action.setStatusTip("Show an image behind the mesh as a tracing reference.")

        file_menu.addSeparator()
        export_png_action = file_menu.addAction("Export PNG")
        export_png_action.triggered.connect(lambda: self.canvas.export_png(self))
        export_png_action.setStatusTip("Export the mesh as a PNG at twice the canvas resolution.")

        export_json_action = file_menu.addAction("Export JSON")
        export_json_action.triggered.connect(lambda: self.canvas.export_json(self))
        export_json_action.setStatusTip("Export vertices, cells, mask, and grid settings as JSON.")

        file_menu.addSeparator()
        quit_action = file_menu.addAction("Quit")
        quit_action.setShortcut(QKeySequence.Quit)
        quit_action.triggered.connect(self.close)

        edit_menu = menu_bar.addMenu("&Edit")
        self._undo_action = edit_menu.addAction("Undo")
        self._undo_action.setShortcut("Ctrl+Z")
        self._undo_action.triggered.connect(self.editor.undo)
        self._undo_action.setStatusTip("Undo the last edit.")
        self._redo_action = edit_menu.addAction("Redo")
        self._redo_action.setShortcuts([QKeySequence("Ctrl+Shift+Z"), QKeySequence("Ctrl+Y")])
        self._redo_action.triggered.connect(self.editor.redo)
        self._redo_action.setStatusTip("Redo the last undone edit.")

        view_menu = menu_bar.addMenu("&View")
        zoom_in_action = view_menu.addAction("Zoom In")
        zoom_in_action.setShortcut(QKeySequence.ZoomIn)
        zoom_in_action.triggered.connect(self.editor.zoom_in)
        zoom_out_action = view_menu.addAction("Zoom Out")
        zoom_out_action.setShortcut(QKeySequence.ZoomOut)
        zoom_out_action.triggered.connect(self.editor.zoom_out)
        zoom_reset_action = view_menu.addAction("Reset Zoom")
        zoom_reset_action.setShortcut("Ctrl+0")
        zoom_reset_action.triggered.connect(self.editor.reset_zoom)

    # ------------------------------------------------------------------
    # Event handlers
    def _on_status_changed(self, message: str) -> None:
        if message:
            self.statusBar().showMessage(message, 4000)
        else:
            self.statusBar().clearMessage()

    def _refresh_chrome(self) -> None:
        editor = self.editor
        mode = "Pen" if editor.is_pen_drawing else editor.mode.value.title()
        self._mode_label.setText(f"Mode: {mode}")
        self._history_label.setText(f"History: {editor.history.index + 1}/{len(editor.history)}")
        self._zoom_label.setText(f"Zoom: {editor.zoom.percent}%")
        self._undo_action.setEnabled(editor.can_undo)
        self._redo_action.setEnabled(editor.can_redo)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meshwarp-playground", description="Interactive mesh warp editor")
    parser.add_argument("--config", help="Path to a meshwarp_config.json file")
    parser.add_argument("--log-level", help="Override the configured log level")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:  # pragma: no cover - GUI entry point
    args, qt_args = build_parser().parse_known_args(argv)
    settings = load_settings(args.config)
    configure_logging(args.log_level or settings.log_level)
    logger.info("Starting playground with %dx%d grid", settings.base_cols, settings.base_rows)

    app = QApplication([sys.argv[0], *qt_args])
    window = Main(settings)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
