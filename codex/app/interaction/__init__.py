"""Unified pointer interaction controller."""

from .controller import DragState, InteractionController, PointerEvent, PointerKind

__all__ = ["DragState", "InteractionController", "PointerEvent", "PointerKind"]
