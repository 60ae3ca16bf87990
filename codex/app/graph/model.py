"""In-memory fragment/connection store backing the canvas."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from codex.app.contracts import CanvasSnapshot, Connection, Fragment, Theme

LOGGER = logging.getLogger(__name__)

Position = Tuple[float, float]

MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 3


class UnknownFragmentError(KeyError):
    """Raised when a mutation names a fragment that is not in the model."""


class DuplicateFragmentError(ValueError):
    """Raised when a fragment identity is inserted twice."""


class GraphModel:
    """Owns the fragment and connection collections.

    Readers receive tuples so they cannot mutate the collections in place.
    Connection endpoints are not validated on insertion; consumers resolve
    both endpoints through :meth:`resolve` and skip dangling edges.
    """

    def __init__(
        self,
        fragments: Iterable[Fragment] = (),
        connections: Iterable[Connection] = (),
    ) -> None:
        self._fragments: Dict[str, Fragment] = {}
        self._connections: List[Connection] = []
        for fragment in fragments:
            self.add_fragment(fragment)
        for connection in connections:
            self.add_connection(connection)

    def __len__(self) -> int:
        return len(self._fragments)

    def __contains__(self, fragment_id: object) -> bool:
        return fragment_id in self._fragments

    def __iter__(self) -> Iterator[Fragment]:
        return iter(tuple(self._fragments.values()))

    def fragments(self) -> Tuple[Fragment, ...]:
        """Return the current fragments in insertion order."""

        return tuple(self._fragments.values())

    def connections(self) -> Tuple[Connection, ...]:
        """Return the current connections in insertion order."""

        return tuple(self._connections)

    def get(self, fragment_id: str) -> Optional[Fragment]:
        return self._fragments.get(fragment_id)

    def positions(self) -> Dict[str, Position]:
        """Return a fresh ``{id: (x, y)}`` mapping in insertion order."""

        return {fragment.id: fragment.position for fragment in self._fragments.values()}

    def add_fragment(self, fragment: Fragment) -> Fragment:
        """Insert a fragment.

        Args:
            fragment: Fragment to append to the plane.

        Returns:
            Fragment: The stored fragment.

        Raises:
            DuplicateFragmentError: If a fragment with the same id already exists.
        """

        if fragment.id in self._fragments:
            raise DuplicateFragmentError(f"Fragment already exists: {fragment.id}")
        self._fragments[fragment.id] = fragment
        return fragment

    def add_connection(self, connection: Connection) -> Connection:
        self._connections.append(connection)
        return connection

    def remove_fragment(self, fragment_id: str) -> int:
        """Delete a fragment together with every connection referencing it.

        Args:
            fragment_id: Identifier of the fragment to remove.

        Returns:
            int: Number of connections removed alongside the fragment.
        """

        if fragment_id not in self._fragments:
            LOGGER.debug("Ignoring removal of unknown fragment %s", fragment_id)
            return 0
        remaining = [conn for conn in self._connections if not conn.touches(fragment_id)]
        removed = len(self._connections) - len(remaining)
        fragments = dict(self._fragments)
        del fragments[fragment_id]
        self._fragments = fragments
        self._connections = remaining
        LOGGER.info("Removed fragment %s with %d connection(s)", fragment_id, removed)
        return removed

    def set_importance(self, fragment_id: str, importance: int) -> Fragment:
        """Update the importance level of a fragment, clamped into ``[1, 3]``.

        Raises:
            UnknownFragmentError: If the fragment does not exist.
        """

        fragment = self._fragments.get(fragment_id)
        if fragment is None:
            raise UnknownFragmentError(fragment_id)
        level = max(MIN_IMPORTANCE, min(MAX_IMPORTANCE, int(importance)))
        if level != importance:
            LOGGER.warning("Clamped importance %s to %d for fragment %s", importance, level, fragment_id)
        updated = fragment.model_copy(update={"importance": level})
        self._fragments[fragment_id] = updated
        return updated

    def replace_positions(self, positions: Mapping[str, Position]) -> int:
        """Swap in new world positions for the given fragments.

        The next collection is assembled completely before it replaces the
        current one, so readers observe either every new position or none.
        Identifiers absent from the model are ignored.

        Args:
            positions: Mapping of fragment id to its new ``(x, y)``.

        Returns:
            int: Number of fragments whose position was replaced.
        """

        updated: Dict[str, Fragment] = {}
        replaced = 0
        for fragment_id, fragment in self._fragments.items():
            position = positions.get(fragment_id)
            if position is None:
                updated[fragment_id] = fragment
                continue
            x, y = position
            updated[fragment_id] = fragment.model_copy(update={"x": float(x), "y": float(y)})
            replaced += 1
        self._fragments = updated
        return replaced

    def resolve(self, connection: Connection) -> Optional[Tuple[Fragment, Fragment]]:
        """Return both endpoints of a connection, or ``None`` when either is missing."""

        source = self._fragments.get(connection.source)
        target = self._fragments.get(connection.target)
        if source is None or target is None:
            return None
        return source, target

    def connections_for(self, fragment_id: str, min_strength: float = 0.0) -> Tuple[Connection, ...]:
        """Return resolvable connections touching a fragment at or above a strength."""

        return tuple(
            conn
            for conn in self._connections
            if conn.touches(fragment_id) and conn.strength >= min_strength and self.resolve(conn) is not None
        )

    def search(self, query: str, limit: int = 5) -> Tuple[Fragment, ...]:
        """Return the first fragments whose text contains ``query`` (case-insensitive)."""

        needle = query.strip().lower()
        if not needle or limit <= 0:
            return ()
        matches: List[Fragment] = []
        for fragment in self._fragments.values():
            if needle in fragment.text.lower():
                matches.append(fragment)
                if len(matches) >= limit:
                    break
        return tuple(matches)

    def to_snapshot(self, *, min_strength: Optional[float], theme: Optional[Theme]) -> CanvasSnapshot:
        return CanvasSnapshot(
            fragments=list(self._fragments.values()),
            connections=list(self._connections),
            min_strength=min_strength,
            theme=theme,
        )

    @classmethod
    def from_snapshot(cls, snapshot: CanvasSnapshot) -> "GraphModel":
        return cls(snapshot.fragments, snapshot.connections)


__all__ = [
    "DuplicateFragmentError",
    "GraphModel",
    "Position",
    "UnknownFragmentError",
]
