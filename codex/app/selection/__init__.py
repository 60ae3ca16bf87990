"""Selection state and neighbour highlighting."""

from .highlight import RenderState, Selection, classify, is_emphasized, neighbor_ids

__all__ = ["RenderState", "Selection", "classify", "is_emphasized", "neighbor_ids"]
