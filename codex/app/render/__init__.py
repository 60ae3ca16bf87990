"""Screen-space frame assembly."""

from .frame import EdgeSprite, NodeSprite, RenderFrame, build_frame, hit_test, importance_scale

__all__ = ["EdgeSprite", "NodeSprite", "RenderFrame", "build_frame", "hit_test", "importance_scale"]
