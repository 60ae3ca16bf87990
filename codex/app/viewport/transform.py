"""World/screen coordinate mapping driven by pan offset and zoom."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

LOGGER = logging.getLogger(__name__)

Point = Tuple[float, float]

DEFAULT_MIN_ZOOM = 0.1
DEFAULT_MAX_ZOOM = 3.0
WHEEL_ZOOM_IN = 1.1
WHEEL_ZOOM_OUT = 0.9
BUTTON_ZOOM_STEP = 1.2


@dataclass(frozen=True)
class ViewportState:
    """Immutable copy of the viewport handed to readers after an event."""

    width: float
    height: float
    pan_x: float
    pan_y: float
    zoom: float

    @property
    def origin(self) -> Point:
        return (self.width / 2.0, self.height / 2.0)

    def world_to_screen(self, point: Point) -> Point:
        origin_x, origin_y = self.origin
        return (
            origin_x + self.pan_x + point[0] * self.zoom,
            origin_y + self.pan_y + point[1] * self.zoom,
        )

    def screen_to_world(self, point: Point) -> Point:
        origin_x, origin_y = self.origin
        return (
            (point[0] - origin_x - self.pan_x) / self.zoom,
            (point[1] - origin_y - self.pan_y) / self.zoom,
        )


class ViewportTransform:
    """Maps between world coordinates and screen pixels.

    ``screen = origin + pan + world * zoom`` where ``origin`` is the centre of
    the visible viewport. Zoom is clamped into ``[min_zoom, max_zoom]`` on every
    update and always scales about the viewport centre, never the pointer.
    """

    def __init__(
        self,
        width: float,
        height: float,
        *,
        pan_x: float = 0.0,
        pan_y: float = 0.0,
        zoom: float = 1.0,
        min_zoom: float = DEFAULT_MIN_ZOOM,
        max_zoom: float = DEFAULT_MAX_ZOOM,
        wheel_zoom_in: float = WHEEL_ZOOM_IN,
        wheel_zoom_out: float = WHEEL_ZOOM_OUT,
        button_zoom_step: float = BUTTON_ZOOM_STEP,
    ) -> None:
        if min_zoom <= 0 or min_zoom > max_zoom:
            raise ValueError("zoom range must satisfy 0 < min_zoom <= max_zoom")
        self._width = float(width)
        self._height = float(height)
        self._pan_x = float(pan_x)
        self._pan_y = float(pan_y)
        self._min_zoom = float(min_zoom)
        self._max_zoom = float(max_zoom)
        self._wheel_zoom_in = wheel_zoom_in
        self._wheel_zoom_out = wheel_zoom_out
        self._button_zoom_step = button_zoom_step
        self._zoom = self._clamp(float(zoom))

    @property
    def pan(self) -> Point:
        return (self._pan_x, self._pan_y)

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def zoom_range(self) -> Tuple[float, float]:
        return (self._min_zoom, self._max_zoom)

    @property
    def origin(self) -> Point:
        return (self._width / 2.0, self._height / 2.0)

    def state(self) -> ViewportState:
        return ViewportState(
            width=self._width,
            height=self._height,
            pan_x=self._pan_x,
            pan_y=self._pan_y,
            zoom=self._zoom,
        )

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            LOGGER.warning("Ignoring non-positive viewport size %sx%s", width, height)
            return
        self._width = float(width)
        self._height = float(height)

    def pan_by(self, dx: float, dy: float) -> Point:
        """Accumulate a screen-space delta into the pan offset (unbounded)."""

        self._pan_x += dx
        self._pan_y += dy
        return self.pan

    def set_pan(self, x: float, y: float) -> Point:
        self._pan_x = float(x)
        self._pan_y = float(y)
        return self.pan

    def zoom_by(self, factor: float) -> float:
        """Multiply the zoom by ``factor`` and clamp into the allowed range.

        Non-finite factors are logged and ignored. Zero or negative factors
        land on ``min_zoom``.

        Args:
            factor: Multiplicative zoom step.

        Returns:
            float: The zoom after the update.
        """

        if not math.isfinite(factor):
            LOGGER.warning("Ignoring invalid zoom factor %r", factor)
            return self._zoom
        self._zoom = self._clamp(self._zoom * factor)
        LOGGER.debug("Zoom updated to %.4f (factor=%.4f)", self._zoom, factor)
        return self._zoom

    def set_zoom(self, value: float) -> float:
        if not math.isfinite(value):
            LOGGER.warning("Ignoring non-finite zoom value %r", value)
            return self._zoom
        self._zoom = self._clamp(value)
        return self._zoom

    def wheel(self, delta_y: float) -> float:
        """Apply one wheel tick: away from the user zooms out, toward zooms in."""

        factor = self._wheel_zoom_out if delta_y > 0 else self._wheel_zoom_in
        return self.zoom_by(factor)

    def zoom_in(self) -> float:
        return self.zoom_by(self._button_zoom_step)

    def zoom_out(self) -> float:
        return self.zoom_by(1.0 / self._button_zoom_step)

    def world_to_screen(self, point: Point) -> Point:
        return self.state().world_to_screen(point)

    def screen_to_world(self, point: Point) -> Point:
        return self.state().screen_to_world(point)

    def _clamp(self, value: float) -> float:
        if value <= 0:
            return self._min_zoom
        return max(self._min_zoom, min(self._max_zoom, value))
