"""Mapping between on-screen pointer positions and the internal canvas space.

The canvas is drawn at an arbitrary zoom and offset inside its host widget.
Pointer events arrive in widget coordinates; :class:`SurfaceMapper` maps them
back to the fixed ``CANVAS_WIDTH x CANVAS_HEIGHT`` space using the surface's
rendered rectangle, with independent X and Y scale factors.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .model import CANVAS_HEIGHT, CANVAS_WIDTH, Point


@dataclass(frozen=True)
class SurfaceRect:
    """Rendered rectangle of the drawing surface in viewport pixels."""

    left: float
    top: float
    width: float
    height: float

    def is_degenerate(self) -> bool:
        return not (
            math.isfinite(self.width)
            and math.isfinite(self.height)
            and self.width > 0.0
            and self.height > 0.0
        )


class SurfaceMapper:
    def __init__(self, width: float = CANVAS_WIDTH, height: float = CANVAS_HEIGHT) -> None:
        self.width = float(width)
        self.height = float(height)

    def scale_factors(self, rect: SurfaceRect) -> Optional[Tuple[float, float]]:
        """Internal units per screen pixel, or ``None`` for an unusable rect."""
        if rect.is_degenerate():
            return None
        return (self.width / rect.width, self.height / rect.height)

    def clamp(self, x: float, y: float) -> Point:
        return (max(0.0, min(self.width, x)), max(0.0, min(self.height, y)))

    def to_internal(self, client: Point, rect: SurfaceRect) -> Point:
        scale = self.scale_factors(rect)
        if scale is None:
            return (0.0, 0.0)
        sx, sy = scale
        return self.clamp((client[0] - rect.left) * sx, (client[1] - rect.top) * sy)

    def delta_to_internal(self, dx: float, dy: float, rect: SurfaceRect) -> Point:
        scale = self.scale_factors(rect)
        if scale is None:
            return (0.0, 0.0)
        return (dx * scale[0], dy * scale[1])

    def to_screen(self, point: Point, rect: SurfaceRect) -> Point:
        if rect.is_degenerate():
            return (rect.left, rect.top)
        return (
            rect.left + point[0] * rect.width / self.width,
            rect.top + point[1] * rect.height / self.height,
        )


# ---------------------------------------------------------------------------
# Zoom


class ZoomModel:
    """UI-only zoom level; never part of the undoable document."""

    min_zoom = 0.1
    max_zoom = 5.0
    step = 0.1
    wheel_sensitivity = 0.001

    def __init__(self, value: float = 1.0) -> None:
        self._value = 1.0
        self.set(value)

    @property
    def value(self) -> float:
        return self._value

    @property
    def percent(self) -> int:
        return int(round(self._value * 100))

    def set(self, value: float) -> float:
        try:
            target = float(value)
        except (TypeError, ValueError):
            return self._value
        if math.isnan(target):
            return self._value
        self._value = max(self.min_zoom, min(self.max_zoom, target))
        return self._value

    def zoom_in(self) -> float:
        return self.set(self._value + self.step)

    def zoom_out(self) -> float:
        return self.set(self._value - self.step)

    def wheel(self, delta_y: float) -> float:
        """Ctrl+wheel zoom; scrolling up (negative delta) zooms in."""
        return self.set(self._value - delta_y * self.wheel_sensitivity * self._value)

    def reset(self) -> float:
        return self.set(1.0)

    def surface_rect(self, left: float = 0.0, top: float = 0.0) -> SurfaceRect:
        return SurfaceRect(left, top, CANVAS_WIDTH * self._value, CANVAS_HEIGHT * self._value)
