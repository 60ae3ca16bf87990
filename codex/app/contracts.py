"""Immutable data contracts for the Codex canvas engine."""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _FrozenBaseModel(BaseModel):
    """Base model enforcing immutability after creation.

    Fields may be populated by their Python name or by the camelCase alias
    used in exported canvas files.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Theme(str, Enum):
    """Colour schemes understood by the rendering surface."""

    VOID = "void"
    MANUSCRIPT = "manuscript"
    ECLIPSE = "eclipse"


class Fragment(_FrozenBaseModel):
    """A short text note positioned on the unbounded plane."""

    id: str = Field(..., min_length=1)
    text: str
    created_at: int = Field(..., alias="createdAt", description="Creation instant in epoch milliseconds.")
    timestamp: str = Field("", description="Human-readable creation label; display only.")
    x: float = 0.0
    y: float = 0.0
    importance: int = Field(1, ge=1, le=3)
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")

    @property
    def position(self) -> tuple[float, float]:
        """Return the world-space position as an ``(x, y)`` tuple."""

        return (self.x, self.y)


class Connection(_FrozenBaseModel):
    """Weighted, labeled relation between two fragments.

    Stored directionally as ``from``/``to`` but treated as undirected for
    display and neighbour traversal.
    """

    id: str = Field(..., min_length=1)
    source: str = Field(..., alias="from", min_length=1)
    target: str = Field(..., alias="to", min_length=1)
    strength: float = Field(..., ge=0.0, le=1.0)
    label: Optional[str] = None

    def touches(self, fragment_id: str) -> bool:
        """Return whether either endpoint references ``fragment_id``."""

        return self.source == fragment_id or self.target == fragment_id

    def other(self, fragment_id: str) -> Optional[str]:
        """Return the opposite endpoint of ``fragment_id`` or ``None``."""

        if self.source == fragment_id:
            return self.target
        if self.target == fragment_id:
            return self.source
        return None


class CanvasSnapshot(_FrozenBaseModel):
    """Whole-canvas state exchanged with the persistence collaborator."""

    fragments: List[Fragment] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)
    min_strength: Optional[float] = Field(None, alias="minStrength", ge=0.0, le=1.0)
    theme: Optional[Theme] = None

    @field_validator("fragments")
    @classmethod
    def _unique_fragment_ids(cls, value: List[Fragment]) -> List[Fragment]:
        """Reject snapshots carrying two fragments with the same identity.

        Args:
            value: Fragments parsed from the snapshot payload.

        Returns:
            List[Fragment]: The validated fragments.

        Raises:
            ValueError: If an identifier appears more than once.
        """
        seen: set[str] = set()
        for fragment in value:
            if fragment.id in seen:
                raise ValueError(f"duplicate fragment id: {fragment.id}")
            seen.add(fragment.id)
        return value


__all__ = [
    "Theme",
    "Fragment",
    "Connection",
    "CanvasSnapshot",
]
