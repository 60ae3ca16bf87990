"""Fragment graph model and placement helpers."""

from .model import DuplicateFragmentError, GraphModel, Position, UnknownFragmentError
from .placement import display_label, new_fragment, scatter_position

__all__ = [
    "DuplicateFragmentError",
    "GraphModel",
    "Position",
    "UnknownFragmentError",
    "display_label",
    "new_fragment",
    "scatter_position",
]
