"""Viewport pan/zoom transform."""

from .transform import Point, ViewportState, ViewportTransform

__all__ = ["Point", "ViewportState", "ViewportTransform"]
