from __future__ import annotations

import pytest

from codex.app.config import RenderingConfig
from codex.app.contracts import Connection, Fragment
from codex.app.filters import FilterControls, compute_visible_graph
from codex.app.render import build_frame, hit_test, importance_scale
from codex.app.selection import RenderState
from codex.app.viewport import ViewportState

VIEWPORT = ViewportState(width=800.0, height=600.0, pan_x=0.0, pan_y=0.0, zoom=1.0)


@pytest.fixture()
def visible():
    fragments = [
        Fragment(id="a", text="Alpha", created_at=0, x=0.0, y=0.0, importance=2),
        Fragment(id="b", text="Beta", created_at=0, x=100.0, y=50.0, importance=3),
        Fragment(id="c", text="Gamma", created_at=0, x=-400.0, y=0.0),
    ]
    connections = [
        Connection(id="ab", source="a", target="b", strength=0.8, label="Echoes"),
        Connection(id="bc", source="b", target="c", strength=0.6),
    ]
    return compute_visible_graph(fragments, connections, FilterControls(30, 0.0), now_ms=1000)


def test_importance_scale() -> None:
    assert importance_scale(1, 0.15) == pytest.approx(1.0)
    assert importance_scale(3, 0.15) == pytest.approx(1.3)


def test_frame_projects_nodes_and_edges(visible) -> None:
    frame = build_frame(visible, VIEWPORT, None, RenderingConfig())
    assert frame.node_count == 3
    assert frame.edge_count == 2
    nodes = {node.id: node for node in frame.nodes}
    assert (nodes["b"].screen_x, nodes["b"].screen_y) == (500.0, 350.0)
    assert nodes["b"].scale == pytest.approx(1.3)
    assert {node.state for node in frame.nodes} == {RenderState.DEFAULT}
    edge = frame.edges[0]
    assert edge.start == (400.0, 300.0)
    assert edge.end == (500.0, 350.0)
    assert edge.label == "Echoes"
    assert not edge.emphasized


def test_focus_scales_and_emphasises(visible) -> None:
    frame = build_frame(visible, VIEWPORT, "a", RenderingConfig(), theme="eclipse")
    nodes = {node.id: node for node in frame.nodes}
    assert nodes["a"].state is RenderState.FOCUSED
    assert nodes["a"].scale == pytest.approx(1.15 * 1.1)
    assert nodes["b"].state is RenderState.NEIGHBOR
    assert nodes["c"].state is RenderState.DIMMED
    assert [edge.emphasized for edge in frame.edges] == [True, False]
    assert frame.focus_id == "a"
    assert frame.theme == "eclipse"


def test_zoom_scales_sprites(visible) -> None:
    zoomed = ViewportState(width=800.0, height=600.0, pan_x=10.0, pan_y=0.0, zoom=2.0)
    frame = build_frame(visible, zoomed, None)
    nodes = {node.id: node for node in frame.nodes}
    assert (nodes["b"].screen_x, nodes["b"].screen_y) == (610.0, 400.0)
    assert nodes["c"].scale == pytest.approx(2.0)


def test_hidden_focus_is_reported_as_none(visible) -> None:
    frame = build_frame(visible, VIEWPORT, "gone")
    assert frame.focus_id is None
    assert {node.state for node in frame.nodes} == {RenderState.DIMMED}
    assert not any(edge.emphasized for edge in frame.edges)


def test_hit_test_prefers_focused_sprite(visible) -> None:
    frame = build_frame(visible, VIEWPORT, "a")
    assert hit_test(frame, (450.0, 325.0), hit_radius=120.0) == "a"
    unfocused = build_frame(visible, VIEWPORT, None)
    assert hit_test(unfocused, (450.0, 325.0), hit_radius=120.0) == "b"


def test_hit_test_misses_empty_space(visible) -> None:
    frame = build_frame(visible, VIEWPORT, None)
    assert hit_test(frame, (790.0, 10.0), hit_radius=50.0) is None
