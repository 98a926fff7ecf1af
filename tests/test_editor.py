"""Tests for the editor orchestrator."""

import pytest

from meshwarp_playground.editor import MSG_MASK_TOO_SMALL, MSG_OUTSIDE_MASK, MeshEditor, build_state
from meshwarp_playground.geometry import MAX_DIVISIONS
from meshwarp_playground.model import EditorMode, GridConfig
from meshwarp_playground.settings import EditorSettings
from meshwarp_playground.viewport import SurfaceRect

ONE_TO_ONE = SurfaceRect(0.0, 0.0, 1000.0, 2000.0)
# Left half of the canvas, top third; holds the center of cell 0 only.
LEFT_MASK = [(0.0, 0.0), (400.0, 0.0), (400.0, 600.0), (0.0, 600.0)]


@pytest.fixture
def messages():
    return []


@pytest.fixture
def editor(messages):
    # 2x2 base grid: vertex 4 sits at the center (500, 1000)
    settings = EditorSettings(base_cols=2, base_rows=2, rule_string="")
    return MeshEditor(settings, on_status=messages.append)


def test_initial_state_matches_settings(editor) -> None:
    assert editor.state.grid_config == GridConfig(2, 2, "")
    assert len(editor.state.vertices) == 9
    assert len(editor.state.cells) == 4
    assert editor.mode is EditorMode.UV
    assert not editor.can_undo and not editor.can_redo


def test_default_editor_uses_reference_grid() -> None:
    editor = MeshEditor()
    config = editor.state.grid_config
    assert (config.base_cols, config.base_rows, config.rule_string) == (10, 21, "C1:4,R3:2")


def test_build_state_sanitizes_config() -> None:
    state = build_state(GridConfig(0, float("nan"), None))
    assert state.grid_config == GridConfig(1, 1, "")
    assert len(state.cells) == 1


def test_paint_toggles_and_clears_color(editor) -> None:
    assert editor.paint_cell(0)
    cell = editor.state.cells[0]
    assert cell.is_filled and cell.color == "#888888"
    assert editor.paint_cell(0)
    cell = editor.state.cells[0]
    assert not cell.is_filled and cell.color is None
    assert len(editor.history) == 3


def test_paint_with_other_color_repaints(editor) -> None:
    editor.paint_cell(0)
    editor.set_active_color("#3e3234")
    editor.paint_cell(0)
    cell = editor.state.cells[0]
    assert cell.is_filled and cell.color == "#3e3234"


def test_paint_outside_mask_is_rejected(editor, messages) -> None:
    assert editor.commit_mask(LEFT_MASK)
    before = len(editor.history)
    assert editor.paint_cell(1) is False
    assert messages == [MSG_OUTSIDE_MASK]
    assert len(editor.history) == before
    assert editor.paint_cell(0) is True


def test_paint_ignored_in_displacement_mode(editor) -> None:
    editor.set_mode(EditorMode.DISPLACEMENT)
    assert editor.paint_cell(0) is False
    assert len(editor.history) == 1


def test_pen_with_two_points_does_not_commit(editor, messages) -> None:
    editor.toggle_pen()
    editor.add_pen_point(10, 10)
    editor.add_pen_point(200, 10)
    assert editor.finish_pen() is False
    assert messages == [MSG_MASK_TOO_SMALL]
    assert editor.is_pen_drawing
    assert not editor.state.has_mask
    assert len(editor.history) == 1


def test_pen_commits_mask_and_backspace_pops(editor) -> None:
    editor.toggle_pen()
    for point in [(10, 10), (300, 10), (300, 300), (999, 999)]:
        editor.add_pen_point(*point)
    assert editor.undo_pen_point()
    assert editor.displayed_boundary() == [(10.0, 10.0), (300.0, 10.0), (300.0, 300.0)]
    assert editor.finish_pen()
    assert not editor.is_pen_drawing
    assert editor.state.boundary_points == ((10.0, 10.0), (300.0, 10.0), (300.0, 300.0))


def test_cancel_pen_discards_points(editor) -> None:
    editor.toggle_pen()
    editor.add_pen_point(1, 2)
    editor.cancel_pen()
    assert not editor.is_pen_drawing
    assert editor.drawing_points == []
    assert len(editor.history) == 1


def test_mode_switch_blocked_while_drawing(editor) -> None:
    editor.toggle_pen()
    assert editor.set_mode("DISPLACEMENT") is False
    assert editor.mode is EditorMode.UV
    editor.cancel_pen()
    assert editor.set_mode("DISPLACEMENT") is True
    assert editor.set_mode("SIDEWAYS") is False
    assert editor.mode is EditorMode.DISPLACEMENT


def test_clear_mask(editor) -> None:
    assert editor.clear_mask() is False
    editor.commit_mask(LEFT_MASK)
    assert editor.clear_mask() is True
    assert editor.state.boundary_points == ()


def test_regenerate_keeps_mask(editor) -> None:
    editor.commit_mask(LEFT_MASK)
    editor.set_pending_config(base_cols=3, rule_string="C0:2")
    # pending edits do nothing until regenerate
    assert len(editor.state.vertices) == 9
    state = editor.regenerate_grid()
    assert state.grid_config == GridConfig(3, 2, "C0:2")
    assert len(state.vertices) == 5 * 3
    assert state.boundary_points == tuple(LEFT_MASK)


def test_drag_commits_once_on_release(editor) -> None:
    assert editor.begin_vertex_drag(4, (500.0, 1000.0))
    editor.drag_move((520.0, 1000.0), ONE_TO_ONE)
    editor.drag_move((540.0, 1010.0), ONE_TO_ONE)
    assert editor.vertices[4].position == (540.0, 1010.0)
    assert len(editor.history) == 1
    editor.drag_release()
    assert len(editor.history) == 2
    assert editor.state.vertices[4].position == (540.0, 1010.0)
    assert editor.state.vertices[4].rest == (500.0, 1000.0)


def test_drag_without_movement_adds_no_history(editor) -> None:
    editor.begin_vertex_drag(4, (500.0, 1000.0))
    editor.drag_release()
    assert len(editor.history) == 1


def test_axis_locked_vertex_drag(editor) -> None:
    editor.begin_vertex_drag(4, (100.0, 100.0))
    editor.drag_move((100.0, 150.0), ONE_TO_ONE, axis_lock=True)
    editor.drag_move((130.0, 155.0), ONE_TO_ONE, axis_lock=True)
    editor.drag_release()
    assert editor.state.vertices[4].position == (500.0, 1055.0)


def test_boundary_drag_via_pointer_leave(editor) -> None:
    editor.commit_mask(LEFT_MASK)
    assert editor.begin_boundary_drag(1, (0.0, 0.0))
    editor.drag_move((50.0, -20.0), ONE_TO_ONE)
    # leaving the surface finishes the drag
    editor.drag_release()
    assert editor.state.boundary_points[1] == (450.0, 0.0)
    assert not editor.drag.is_dragging


def test_boundary_drag_only_in_uv_mode(editor) -> None:
    editor.commit_mask(LEFT_MASK)
    editor.set_mode(EditorMode.DISPLACEMENT)
    assert editor.begin_boundary_drag(0, (0.0, 0.0)) is False
    assert editor.begin_vertex_drag(0, (0.0, 0.0)) is True


def test_undo_ignored_during_drag(editor) -> None:
    editor.paint_cell(0)
    editor.begin_vertex_drag(4, (0.0, 0.0))
    assert editor.undo() is False
    editor.drag_release()
    assert editor.undo() is True


def test_undo_redo_resync_working_copy(editor) -> None:
    editor.move_vertex(4, 600.0, 1100.0, finished=True)
    assert editor.undo()
    assert editor.vertices[4].position == (500.0, 1000.0)
    assert editor.redo()
    assert editor.vertices[4].position == (600.0, 1100.0)
    assert editor.redo() is False


def test_move_vertex_clamps_to_canvas(editor) -> None:
    editor.move_vertex(0, -30.0, 2500.0, finished=True)
    assert editor.state.vertices[0].position == (0.0, 2000.0)
    assert editor.move_vertex(99, 1.0, 1.0, finished=True) is False


def test_reset_positions(editor) -> None:
    editor.move_vertex(4, 600.0, 1100.0, finished=True)
    editor.reset_positions()
    assert all(v.position == v.rest for v in editor.state.vertices)
    assert len(editor.history) == 3


def test_displacement_fill(editor) -> None:
    editor.paint_cell(0)
    assert editor.cell_fill(editor.state.cells[0]) == "#888888"
    assert editor.cell_fill(editor.state.cells[1]) is None
    editor.set_mode("DISPLACEMENT")
    assert editor.cell_fill(editor.state.cells[0]) == "#000000"


def test_displacement_scale_is_clamped(editor) -> None:
    assert editor.set_displacement_scale(5.0) == pytest.approx(0.3)
    assert editor.set_displacement_scale(0.0) == pytest.approx(0.01)
    assert editor.set_displacement_scale("wide") == pytest.approx(0.01)


def test_hit_testing(editor) -> None:
    assert editor.vertex_at((505.0, 1003.0), 10.0) == 4
    assert editor.vertex_at((700.0, 700.0), 10.0) is None
    assert editor.cell_at((275.0, 525.0)) == 0
    assert editor.cell_at((725.0, 1500.0)) == 3
    editor.commit_mask(LEFT_MASK)
    assert editor.boundary_point_at((398.0, 2.0), 8.0) == 1


def test_masked_cells_are_hidden(editor) -> None:
    editor.paint_cell(0)
    editor.commit_mask([(600.0, 0.0), (1000.0, 0.0), (1000.0, 600.0)])
    assert editor.cell_visible(editor.state.cells[0]) is False
    assert editor.cell_fill(editor.state.cells[0]) is None


def test_zoom_and_change_notifications() -> None:
    changes = []
    editor = MeshEditor(EditorSettings(base_cols=1, base_rows=1), on_change=lambda: changes.append(1))
    editor.zoom_in()
    editor.zoom_wheel(100.0)
    assert editor.zoom.value == pytest.approx(1.1 - 0.11)
    editor.reset_zoom()
    assert editor.zoom.value == 1.0
    assert len(changes) == 3
    assert len(editor.history) == 1


def test_export_document_layout(editor) -> None:
    editor.paint_cell(0)
    doc = editor.export_document()
    assert set(doc) == {"vertices", "cells", "boundaryPoints", "gridConfig"}
    assert doc["gridConfig"] == {"baseCols": 2, "baseRows": 2, "ruleString": ""}
    assert doc["cells"][0] == {"id": 0, "v_indices": [0, 1, 4, 3], "color": "#888888", "isFilled": True}
    assert doc["vertices"][4] == {"x": 500.0, "y": 1000.0, "originalX": 500.0, "originalY": 1000.0, "id": 4}


def test_pending_counts_are_capped(editor) -> None:
    config = editor.set_pending_config(base_cols=10**6, base_rows="garbage")
    assert config.base_cols == MAX_DIVISIONS
    assert config.base_rows == 1
    assert editor.regenerate_grid().grid_config == config
