"""Tests for the drag state machine."""

import pytest

from meshwarp_playground.drag import DragController, DragKind, DragTarget, Dragging, Idle
from meshwarp_playground.viewport import SurfaceRect

ONE_TO_ONE = SurfaceRect(0.0, 0.0, 1000.0, 2000.0)
HALF_SIZE = SurfaceRect(0.0, 0.0, 500.0, 1000.0)
VERTEX_7 = DragTarget(DragKind.VERTEX, 7)


def test_starts_idle_and_ignores_moves() -> None:
    drag = DragController()
    assert isinstance(drag.state, Idle)
    assert drag.move((10.0, 10.0), ONE_TO_ONE) is None
    assert drag.release() is None


def test_move_reports_non_final_updates() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(100.0, 100.0), origin=(300.0, 400.0))
    update = drag.move((110.0, 95.0), ONE_TO_ONE)
    assert update is not None
    assert update.final is False
    assert update.target == VERTEX_7
    assert (update.x, update.y) == pytest.approx((310.0, 395.0))
    assert drag.is_dragging


def test_pointer_delta_is_scaled_to_canvas_units() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(50.0, 50.0), origin=(300.0, 400.0))
    update = drag.move((60.0, 70.0), HALF_SIZE)
    assert (update.x, update.y) == pytest.approx((320.0, 440.0))


def test_release_reports_final_position_and_returns_to_idle() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(0.0, 0.0), origin=(300.0, 400.0))
    drag.move((25.0, -30.0), ONE_TO_ONE)
    final = drag.release()
    assert final.final is True
    assert (final.x, final.y) == pytest.approx((325.0, 370.0))
    assert isinstance(drag.state, Idle)


def test_leave_finishes_like_release() -> None:
    drag = DragController()
    drag.begin(DragTarget(DragKind.BOUNDARY, 2), pointer=(0.0, 0.0), origin=(10.0, 10.0))
    drag.move((5.0, 5.0), ONE_TO_ONE)
    final = drag.leave()
    assert final.final is True
    assert (final.x, final.y) == pytest.approx((15.0, 15.0))
    assert not drag.is_dragging


def test_release_without_move_reports_origin() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(0.0, 0.0), origin=(12.0, 34.0))
    final = drag.release()
    assert (final.x, final.y) == (12.0, 34.0)


def test_axis_lock_decided_once() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(100.0, 100.0), origin=(100.0, 100.0))
    first = drag.move((100.0, 150.0), ONE_TO_ONE, axis_lock=True)
    assert isinstance(drag.state, Dragging)
    assert drag.state.axis_lock == "y"
    assert (first.x, first.y) == (100.0, 150.0)
    second = drag.move((130.0, 155.0), ONE_TO_ONE, axis_lock=True)
    assert second.x == 100.0
    assert second.y == 155.0
    assert drag.release().x == 100.0


def test_axis_lock_waits_for_threshold() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(0.0, 0.0), origin=(500.0, 500.0))
    drag.move((3.0, 1.0), ONE_TO_ONE, axis_lock=True)
    assert drag.state.axis_lock is None
    update = drag.move((20.0, 8.0), ONE_TO_ONE, axis_lock=True)
    assert drag.state.axis_lock == "x"
    assert (update.x, update.y) == (520.0, 500.0)


def test_axis_lock_persists_after_modifier_release() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(0.0, 0.0), origin=(500.0, 500.0))
    drag.move((40.0, 2.0), ONE_TO_ONE, axis_lock=True)
    update = drag.move((40.0, 60.0), ONE_TO_ONE, axis_lock=False)
    assert (update.x, update.y) == (540.0, 500.0)


def test_no_lock_without_modifier() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(0.0, 0.0), origin=(500.0, 500.0))
    update = drag.move((40.0, 30.0), ONE_TO_ONE)
    assert drag.state.axis_lock is None
    assert (update.x, update.y) == (540.0, 530.0)


def test_position_clamped_to_canvas() -> None:
    drag = DragController()
    drag.begin(VERTEX_7, pointer=(0.0, 0.0), origin=(990.0, 10.0))
    update = drag.move((50.0, -50.0), ONE_TO_ONE)
    assert (update.x, update.y) == (1000.0, 0.0)
