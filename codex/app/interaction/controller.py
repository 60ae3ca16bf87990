"""Pointer, wheel and keyboard handling for the canvas.

Mouse and touch input are folded into one :class:`PointerEvent` carrying a
single source position, so dragging is expressed once as ``start``/``move``/
``end`` rather than once per input modality.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from codex.app.selection.highlight import Selection
from codex.app.viewport.transform import Point, ViewportTransform

LOGGER = logging.getLogger(__name__)

PRIMARY_BUTTON = 0
ESCAPE_KEY = "Escape"


class PointerKind(str, Enum):
    """Input modality that produced a pointer event."""

    MOUSE = "mouse"
    TOUCH = "touch"


class DragState(str, Enum):
    """States of the pan-drag state machine."""

    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class PointerEvent:
    """Screen-space pointer sample from either a mouse or a touch surface."""

    x: float
    y: float
    kind: PointerKind = PointerKind.MOUSE
    button: int = PRIMARY_BUTTON
    touches: int = 1

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def is_primary(self) -> bool:
        if self.kind is PointerKind.TOUCH:
            return self.touches == 1
        return self.button == PRIMARY_BUTTON


class InteractionController:
    """Translate raw input into viewport and selection updates.

    While dragging, pan is assigned as ``pointer - anchor`` on every move
    instead of accumulating deltas, so event-rate jitter cannot drift the
    plane. Wheel input is independent of the drag state.
    """

    def __init__(
        self,
        viewport: ViewportTransform,
        selection: Selection,
        *,
        tap_tolerance_px: float = 4.0,
        deselect_on_empty_tap: bool = False,
    ) -> None:
        self._viewport = viewport
        self._selection = selection
        self._tap_tolerance = tap_tolerance_px
        self._deselect_on_empty_tap = deselect_on_empty_tap
        self._state = DragState.IDLE
        self._anchor: Tuple[float, float] = (0.0, 0.0)
        self._press: Optional[Point] = None
        self._last: Optional[Point] = None
        self._moved = False

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is DragState.DRAGGING

    def start(self, event: PointerEvent) -> bool:
        """Begin a drag on a primary press or single-finger touch.

        Returns:
            bool: ``True`` when the controller entered the dragging state.
        """

        if not event.is_primary():
            return False
        pan_x, pan_y = self._viewport.pan
        self._anchor = (event.x - pan_x, event.y - pan_y)
        self._press = event.position
        self._last = event.position
        self._moved = False
        self._state = DragState.DRAGGING
        LOGGER.debug("Drag started at (%.1f, %.1f) via %s", event.x, event.y, event.kind.value)
        return True

    def move(self, event: PointerEvent) -> Optional[Point]:
        """Follow the pointer while dragging; return the new pan or ``None``."""

        if self._state is not DragState.DRAGGING:
            return None
        if event.kind is PointerKind.TOUCH and event.touches != 1:
            return None
        self._last = event.position
        if self._press is not None and self._travel(event.position) > self._tap_tolerance:
            self._moved = True
        return self._viewport.set_pan(event.x - self._anchor[0], event.y - self._anchor[1])

    def end(self, event: Optional[PointerEvent] = None, target_id: Optional[str] = None) -> Optional[str]:
        """Finish the drag; treat it as a tap when the pointer barely moved.

        Args:
            event: Release sample; touch-end events may omit a position.
            target_id: Fragment under the pointer at release, if any.

        Returns:
            Optional[str]: The newly selected fragment id on a tap over a node.
        """

        if self._state is not DragState.DRAGGING:
            return None
        release = event.position if event is not None else self._last
        was_tap = not self._moved and (release is None or self._travel(release) <= self._tap_tolerance)
        self._reset()
        LOGGER.debug("Drag ended (tap=%s, target=%s)", was_tap, target_id)
        if not was_tap:
            return None
        if target_id is not None:
            return self._selection.select(target_id)
        if self._deselect_on_empty_tap:
            self._selection.clear()
        return None

    def cancel(self) -> None:
        """Abort a drag when the pointer is lost or leaves the surface."""

        if self._state is DragState.DRAGGING:
            LOGGER.debug("Drag cancelled")
        self._reset()

    def wheel(self, delta_y: float) -> float:
        return self._viewport.wheel(delta_y)

    def select(self, fragment_id: str) -> str:
        return self._selection.select(fragment_id)

    def key(self, name: str) -> bool:
        """Handle a key press; ``Escape`` clears the focus."""

        if name == ESCAPE_KEY:
            self._selection.clear()
            return True
        return False

    def _travel(self, point: Point) -> float:
        if self._press is None:
            return 0.0
        return math.hypot(point[0] - self._press[0], point[1] - self._press[1])

    def _reset(self) -> None:
        self._state = DragState.IDLE
        self._press = None
        self._last = None
        self._moved = False
