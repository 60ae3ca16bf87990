from __future__ import annotations

import logging
import math

import pytest

from codex.app.contracts import Connection, Fragment
from codex.app.filters import (
    MS_PER_DAY,
    FilterControls,
    compute_visible_graph,
    is_recent,
    is_strong,
)

NOW_MS = 1_750_000_000_000


def _fragment(fragment_id: str, age_days: float) -> Fragment:
    return Fragment(id=fragment_id, text=fragment_id, created_at=int(NOW_MS - age_days * MS_PER_DAY))


def _connection(conn_id: str, source: str, target: str, strength: float) -> Connection:
    return Connection(id=conn_id, source=source, target=target, strength=strength)


def test_horizon_hides_older_fragments() -> None:
    fresh = _fragment("fresh", 29)
    stale = _fragment("stale", 31)
    visible = compute_visible_graph(
        [fresh, stale],
        [_connection("c", "fresh", "stale", 0.9)],
        FilterControls(horizon_days=30, min_strength=0.0),
        NOW_MS,
    )
    assert [fragment.id for fragment in visible.fragments] == ["fresh"]
    assert visible.connections == ()
    assert visible.hidden_count == 1


def test_horizon_boundary_is_exclusive() -> None:
    assert not is_recent(_fragment("edge", 30), NOW_MS, 30)
    inside = Fragment(id="inside", text="inside", created_at=NOW_MS - 30 * MS_PER_DAY + 1)
    assert is_recent(inside, NOW_MS, 30)


def test_future_fragments_are_visible() -> None:
    assert is_recent(_fragment("ahead", -2), NOW_MS, 1)


def test_strength_threshold_is_inclusive() -> None:
    fragments = [_fragment("a", 1), _fragment("b", 1)]
    weak = _connection("weak", "a", "b", 0.4)
    exact = _connection("exact", "b", "a", 0.5)
    visible = compute_visible_graph(fragments, [weak, exact], FilterControls(30, 0.5), NOW_MS)
    assert [conn.id for conn in visible.connections] == ["exact"]
    assert is_strong(exact, 0.5)
    assert not is_strong(weak, 0.5)


def test_dangling_connections_are_dropped_and_counted(caplog: pytest.LogCaptureFixture) -> None:
    fragments = [_fragment("a", 1)]
    with caplog.at_level(logging.WARNING, logger="codex.app.filters.engine"):
        visible = compute_visible_graph(
            fragments,
            [_connection("ghost", "a", "missing", 1.0)],
            FilterControls(30, 0.0),
            NOW_MS,
        )
    assert visible.connections == ()
    assert visible.dangling_count == 1
    assert any(
        record.levelno == logging.WARNING and "dangling" in record.getMessage() for record in caplog.records
    )


def test_filtering_is_pure() -> None:
    fragments = (_fragment("a", 1), _fragment("b", 45))
    connections = (_connection("ab", "a", "b", 0.8),)
    controls = FilterControls(60, 0.2)
    first = compute_visible_graph(fragments, connections, controls, NOW_MS)
    second = compute_visible_graph(fragments, connections, controls, NOW_MS)
    assert first == second
    assert first.fragment_ids == {"a", "b"}


def test_controls_are_clamped_into_domain() -> None:
    controls = FilterControls.clamped(400, 1.7)
    assert controls == FilterControls(horizon_days=90, min_strength=1.0)
    controls = FilterControls.clamped(0.2, -0.5)
    assert controls == FilterControls(horizon_days=1, min_strength=0.0)
    controls = FilterControls.clamped(math.nan, math.nan)
    assert controls.horizon_days == 90
    assert controls.min_strength == pytest.approx(0.0)


def test_in_range_controls_pass_through() -> None:
    assert FilterControls.clamped(14, 0.35) == FilterControls(horizon_days=14, min_strength=0.35)
