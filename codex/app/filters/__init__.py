"""Temporal and strength visibility filters."""

from .engine import (
    MS_PER_DAY,
    FilterControls,
    VisibleGraph,
    compute_visible_graph,
    is_recent,
    is_strong,
    visible_connections,
    visible_fragments,
)

__all__ = [
    "MS_PER_DAY",
    "FilterControls",
    "VisibleGraph",
    "compute_visible_graph",
    "is_recent",
    "is_strong",
    "visible_connections",
    "visible_fragments",
]
