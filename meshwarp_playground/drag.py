"""Drag state machine for vertex and mask-point handles.

One drag is ``Idle -> Dragging -> Idle``. Moves produce non-final updates for
the editor's working copy; the release produces the single final update that
gets committed to history. Pointer-leave is treated exactly like release.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .model import Point
from .viewport import SurfaceMapper, SurfaceRect

logger = logging.getLogger(__name__)

AXIS_LOCK_THRESHOLD = 5.0


class DragKind(str, Enum):
    VERTEX = "vertex"
    BOUNDARY = "boundary"


@dataclass(frozen=True)
class DragTarget:
    kind: DragKind
    id: int


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    target: DragTarget
    start: Point  # pointer position at press, viewport pixels
    origin: Point  # handle position at press, internal units
    last: Point  # last reported handle position
    axis_lock: Optional[str] = None  # "x" or "y" once decided


DragState = Union[Idle, Dragging]


@dataclass(frozen=True)
class DragUpdate:
    target: DragTarget
    x: float
    y: float
    final: bool


class DragController:
    def __init__(self, mapper: Optional[SurfaceMapper] = None) -> None:
        self.mapper = mapper or SurfaceMapper()
        self.state: DragState = Idle()

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    @property
    def target(self) -> Optional[DragTarget]:
        if isinstance(self.state, Dragging):
            return self.state.target
        return None

    def begin(self, target: DragTarget, pointer: Point, origin: Point) -> None:
        origin = (float(origin[0]), float(origin[1]))
        self.state = Dragging(
            target=target,
            start=(float(pointer[0]), float(pointer[1])),
            origin=origin,
            last=origin,
        )
        logger.debug("Drag started on %s %d", target.kind.value, target.id)

    def move(self, pointer: Point, rect: SurfaceRect, axis_lock: bool = False) -> Optional[DragUpdate]:
        state = self.state
        if not isinstance(state, Dragging):
            return None
        dx = float(pointer[0]) - state.start[0]
        dy = float(pointer[1]) - state.start[1]

        lock = state.axis_lock
        if axis_lock and lock is None and (abs(dx) > AXIS_LOCK_THRESHOLD or abs(dy) > AXIS_LOCK_THRESHOLD):
            lock = "x" if abs(dx) > abs(dy) else "y"
            logger.debug("Drag locked to %s axis", lock)

        ix, iy = self.mapper.delta_to_internal(dx, dy, rect)
        if lock == "x":
            iy = 0.0
        elif lock == "y":
            ix = 0.0

        x, y = self.mapper.clamp(state.origin[0] + ix, state.origin[1] + iy)
        self.state = replace(state, axis_lock=lock, last=(x, y))
        return DragUpdate(state.target, x, y, final=False)

    def release(self) -> Optional[DragUpdate]:
        state = self.state
        if not isinstance(state, Dragging):
            return None
        self.state = Idle()
        x, y = state.last
        logger.debug("Drag finished on %s %d at (%.2f, %.2f)", state.target.kind.value, state.target.id, x, y)
        return DragUpdate(state.target, x, y, final=True)

    # Leaving the surface finishes the drag rather than cancelling it.
    leave = release
