"""Focus selection and one-hop neighbour emphasis."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Collection, Dict, Iterable, Optional, Set

from codex.app.contracts import Connection, Fragment

LOGGER = logging.getLogger(__name__)


class RenderState(str, Enum):
    """Emphasis class assigned to every rendered fragment."""

    FOCUSED = "focused"
    NEIGHBOR = "neighbor"
    DIMMED = "dimmed"
    DEFAULT = "default"


def neighbor_ids(
    focus_id: Optional[str],
    connections: Iterable[Connection],
    visible_ids: Collection[str],
) -> Set[str]:
    """Return the focus plus every fragment one visible edge away from it.

    Both ``from -> to`` and ``to -> from`` count. Edges with an endpoint
    outside ``visible_ids`` are skipped, which also covers dangling edges.

    Args:
        focus_id: Selected fragment, or ``None``.
        connections: Visible connections.
        visible_ids: Identifiers of visible fragments.

    Returns:
        Set[str]: Empty when nothing is focused. A hidden focus contributes
        no edges, so the result is empty in that case as well.
    """

    if focus_id is None or focus_id not in visible_ids:
        return set()
    result = {focus_id}
    for conn in connections:
        if conn.source not in visible_ids or conn.target not in visible_ids:
            continue
        other = conn.other(focus_id)
        if other is not None:
            result.add(other)
    return result


def classify(
    focus_id: Optional[str],
    fragments: Iterable[Fragment],
    connections: Iterable[Connection],
) -> Dict[str, RenderState]:
    """Assign exactly one render state to each visible fragment.

    Any focus dims the fragments outside its one-hop neighbourhood, including
    a focus hidden by the filters; that focus simply has no visible sprite.
    """

    shown = list(fragments)
    visible_ids = {fragment.id for fragment in shown}
    if focus_id is None:
        return {fragment.id: RenderState.DEFAULT for fragment in shown}
    neighbours = neighbor_ids(focus_id, connections, visible_ids)
    states: Dict[str, RenderState] = {}
    for fragment in shown:
        if fragment.id == focus_id:
            states[fragment.id] = RenderState.FOCUSED
        elif fragment.id in neighbours:
            states[fragment.id] = RenderState.NEIGHBOR
        else:
            states[fragment.id] = RenderState.DIMMED
    return states


def is_emphasized(connection: Connection, focus_id: Optional[str]) -> bool:
    """Return whether a connection is drawn highlighted for the current focus."""

    return focus_id is not None and connection.touches(focus_id)


class Selection:
    """Holds at most one focused fragment id."""

    def __init__(self, focus_id: Optional[str] = None) -> None:
        self._focus_id = focus_id

    @property
    def focus_id(self) -> Optional[str]:
        return self._focus_id

    def select(self, fragment_id: str) -> str:
        self._focus_id = fragment_id
        LOGGER.debug("Focused fragment %s", fragment_id)
        return fragment_id

    def clear(self) -> None:
        if self._focus_id is not None:
            LOGGER.debug("Cleared focus on fragment %s", self._focus_id)
        self._focus_id = None
