"""Pure visibility predicates for fragments and connections."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Set, Tuple

from codex.app.contracts import Connection, Fragment

LOGGER = logging.getLogger(__name__)

MS_PER_DAY = 86_400_000
MIN_HORIZON_DAYS = 1
MAX_HORIZON_DAYS = 90


@dataclass(frozen=True)
class FilterControls:
    """User-adjustable filter values injected on every recomputation."""

    horizon_days: int
    min_strength: float

    @classmethod
    def clamped(
        cls,
        horizon_days: float,
        min_strength: float,
        *,
        min_horizon_days: int = MIN_HORIZON_DAYS,
        max_horizon_days: int = MAX_HORIZON_DAYS,
    ) -> "FilterControls":
        """Build controls with out-of-range values pulled back into their domains.

        Args:
            horizon_days: Requested time horizon; rounded to whole days.
            min_strength: Requested strength threshold.
            min_horizon_days: Smallest allowed horizon.
            max_horizon_days: Largest allowed horizon.

        Returns:
            FilterControls: Controls with ``horizon_days`` in
            ``[min_horizon_days, max_horizon_days]`` and ``min_strength`` in
            ``[0, 1]``.
        """

        if not math.isfinite(horizon_days):
            horizon = max_horizon_days
        else:
            horizon = int(round(horizon_days))
        horizon = max(min_horizon_days, min(max_horizon_days, horizon))
        strength = float(min_strength) if math.isfinite(min_strength) else 0.0
        strength = max(0.0, min(1.0, strength))
        if horizon != horizon_days or strength != min_strength:
            LOGGER.warning(
                "Clamped filter controls (horizon_days=%s -> %d, min_strength=%s -> %.3f)",
                horizon_days,
                horizon,
                min_strength,
                strength,
            )
        return cls(horizon_days=horizon, min_strength=strength)


@dataclass(frozen=True)
class VisibleGraph:
    """Visible subset of the graph for one set of controls and one instant."""

    fragments: Tuple[Fragment, ...]
    connections: Tuple[Connection, ...]
    hidden_count: int
    dangling_count: int

    @property
    def fragment_ids(self) -> Set[str]:
        return {fragment.id for fragment in self.fragments}


def is_recent(fragment: Fragment, now_ms: int, horizon_days: int) -> bool:
    """Return whether a fragment was created within the horizon before ``now_ms``."""

    return now_ms - fragment.created_at < horizon_days * MS_PER_DAY


def is_strong(connection: Connection, min_strength: float) -> bool:
    """Return whether a connection meets the (inclusive) strength threshold."""

    return connection.strength >= min_strength


def visible_fragments(fragments: Iterable[Fragment], now_ms: int, horizon_days: int) -> Tuple[Fragment, ...]:
    return tuple(fragment for fragment in fragments if is_recent(fragment, now_ms, horizon_days))


def visible_connections(
    connections: Iterable[Connection],
    visible_ids: Set[str],
    min_strength: float,
) -> Tuple[Connection, ...]:
    """Keep connections above the threshold whose endpoints are both visible."""

    return tuple(
        conn
        for conn in connections
        if is_strong(conn, min_strength) and conn.source in visible_ids and conn.target in visible_ids
    )


def compute_visible_graph(
    fragments: Sequence[Fragment],
    connections: Sequence[Connection],
    controls: FilterControls,
    now_ms: int,
) -> VisibleGraph:
    """Compute the visible fragments and connections.

    The temporal and strength predicates are composed with a logical AND;
    connections referencing fragments that are absent altogether are
    counted as dangling and dropped without raising.

    Args:
        fragments: Every fragment in the model.
        connections: Every connection in the model.
        controls: Horizon and strength threshold to apply.
        now_ms: Reference instant in epoch milliseconds.

    Returns:
        VisibleGraph: Visible subsets plus hidden and dangling counts.
    """

    known_ids = {fragment.id for fragment in fragments}
    shown = visible_fragments(fragments, now_ms, controls.horizon_days)
    shown_ids = {fragment.id for fragment in shown}
    dangling = sum(1 for conn in connections if conn.source not in known_ids or conn.target not in known_ids)
    if dangling:
        LOGGER.warning("Skipping %d dangling connection(s)", dangling)
    edges = visible_connections(connections, shown_ids, controls.min_strength)
    return VisibleGraph(
        fragments=shown,
        connections=edges,
        hidden_count=len(fragments) - len(shown),
        dangling_count=dangling,
    )
