"""Bounded pairwise-repulsion relaxation for decluttering fragments."""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from codex.app.config import RelaxationConfig
from codex.app.graph.model import GraphModel, Position

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_SPACING = 320.0
DEFAULT_STIFFNESS = 0.05
DEFAULT_PASSES = 5


@dataclass(frozen=True)
class RelaxationReport:
    """Summary of one relaxation invocation."""

    node_count: int
    passes: int
    moved_count: int
    max_displacement: float
    strategy: str


def _repel(xs: List[float], ys: List[float], i: int, j: int, min_spacing: float, stiffness: float) -> None:
    dx = xs[i] - xs[j]
    dy = ys[i] - ys[j]
    dist = math.sqrt(dx * dx + dy * dy) or 1.0
    if dist >= min_spacing:
        return
    force = (min_spacing - dist) * stiffness
    ux = dx / dist
    uy = dy / dist
    xs[i] += ux * force
    ys[i] += uy * force
    xs[j] -= ux * force
    ys[j] -= uy * force


def _unpack(positions: Mapping[str, Position]) -> Tuple[List[str], List[float], List[float]]:
    node_ids = list(positions.keys())
    xs = [float(positions[node_id][0]) for node_id in node_ids]
    ys = [float(positions[node_id][1]) for node_id in node_ids]
    return node_ids, xs, ys


def relax_positions(
    positions: Mapping[str, Position],
    *,
    passes: int = DEFAULT_PASSES,
    min_spacing: float = DEFAULT_MIN_SPACING,
    stiffness: float = DEFAULT_STIFFNESS,
) -> Dict[str, Position]:
    """Push overlapping nodes apart with a fixed number of repulsion passes.

    Each pass visits every unordered pair ``(i, j)`` with ``i < j`` in the
    mapping's iteration order. Pairs closer than ``min_spacing`` are pushed
    apart symmetrically along their separating direction by
    ``(min_spacing - d) * stiffness``; coincident pairs use ``d = 1``.
    Updates are applied immediately, so later pairs in the same pass see
    earlier moves.

    Args:
        positions: Ordered mapping of node identifiers to world positions.
        passes: Number of full sweeps to run.
        min_spacing: Comfortable minimum distance in world units.
        stiffness: Fraction of the spacing deficit applied per pair visit.

    Returns:
        Dict[str, Position]: New positions in the same order as the input.
    """

    node_ids, xs, ys = _unpack(positions)
    count = len(node_ids)
    for _ in range(passes):
        for i in range(count):
            for j in range(i + 1, count):
                _repel(xs, ys, i, j, min_spacing, stiffness)
    return {node_id: (xs[index], ys[index]) for index, node_id in enumerate(node_ids)}


def _candidate_pairs(xs: Sequence[float], ys: Sequence[float], cell_size: float) -> List[Tuple[int, int]]:
    """Return index pairs sharing a grid cell or touching neighbouring cells."""

    cells: Dict[Tuple[int, int], List[int]] = defaultdict(list)
    for index, (x, y) in enumerate(zip(xs, ys)):
        cells[(math.floor(x / cell_size), math.floor(y / cell_size))].append(index)

    pairs: set[Tuple[int, int]] = set()
    for (cx, cy), members in cells.items():
        for ox in (-1, 0, 1):
            for oy in (-1, 0, 1):
                neighbours = cells.get((cx + ox, cy + oy))
                if not neighbours:
                    continue
                for i in members:
                    for j in neighbours:
                        if i < j:
                            pairs.add((i, j))
    return sorted(pairs)


def relax_positions_grid(
    positions: Mapping[str, Position],
    *,
    passes: int = DEFAULT_PASSES,
    min_spacing: float = DEFAULT_MIN_SPACING,
    stiffness: float = DEFAULT_STIFFNESS,
) -> Dict[str, Position]:
    """Grid-partitioned variant of :func:`relax_positions` for large canvases.

    Candidate pairs are rebuilt at the start of every pass from a uniform
    grid whose cell size equals ``min_spacing``; any pair closer than the
    spacing at that moment shares or borders a cell. The per-pair formula,
    pair order and pass count match the exhaustive sweep.
    """

    node_ids, xs, ys = _unpack(positions)
    for _ in range(passes):
        for i, j in _candidate_pairs(xs, ys, min_spacing):
            _repel(xs, ys, i, j, min_spacing, stiffness)
    return {node_id: (xs[index], ys[index]) for index, node_id in enumerate(node_ids)}


class RelaxationEngine:
    """Run the repulsion simulation against a graph model on demand."""

    def __init__(self, config: Optional[RelaxationConfig] = None) -> None:
        self._config = config or RelaxationConfig()

    @property
    def config(self) -> RelaxationConfig:
        return self._config

    def compute(self, positions: Mapping[str, Position]) -> Dict[str, Position]:
        relax = relax_positions_grid if self._config.strategy == "grid" else relax_positions
        return relax(
            positions,
            passes=self._config.passes,
            min_spacing=self._config.min_spacing,
            stiffness=self._config.stiffness,
        )

    def relax(self, model: GraphModel, only: Optional[Sequence[str]] = None) -> RelaxationReport:
        """Relax node positions and write them back to the model in one swap.

        Args:
            model: Graph model whose positions are rewritten.
            only: Optional subset of fragment ids to relax; others stay fixed
                and exert no force.

        Returns:
            RelaxationReport: Counts and the largest displacement applied.
        """

        current = model.positions()
        if only is not None:
            selected = set(only)
            current = {node_id: pos for node_id, pos in current.items() if node_id in selected}
        relaxed = self.compute(current)

        moved = 0
        max_displacement = 0.0
        for node_id, (x, y) in relaxed.items():
            old_x, old_y = current[node_id]
            displacement = math.hypot(x - old_x, y - old_y)
            if displacement > 0.0:
                moved += 1
                max_displacement = max(max_displacement, displacement)

        model.replace_positions(relaxed)
        report = RelaxationReport(
            node_count=len(relaxed),
            passes=self._config.passes,
            moved_count=moved,
            max_displacement=max_displacement,
            strategy=self._config.strategy,
        )
        LOGGER.info(
            "Relaxed %d fragment(s) over %d pass(es) using %s strategy; moved=%d max_displacement=%.2f",
            report.node_count,
            report.passes,
            report.strategy,
            report.moved_count,
            report.max_displacement,
        )
        return report
