from __future__ import annotations

from codex.app.contracts import Connection, Fragment
from codex.app.selection import RenderState, Selection, classify, is_emphasized, neighbor_ids


def _fragments(*ids: str) -> list[Fragment]:
    return [Fragment(id=fragment_id, text=fragment_id, created_at=0) for fragment_id in ids]


CONNECTIONS = [
    Connection(id="ab", source="a", target="b", strength=0.9),
    Connection(id="ca", source="c", target="a", strength=0.5),
    Connection(id="cd", source="c", target="d", strength=0.5),
]


def test_neighbours_follow_both_directions() -> None:
    assert neighbor_ids("a", CONNECTIONS, {"a", "b", "c", "d"}) == {"a", "b", "c"}


def test_neighbours_empty_without_visible_focus() -> None:
    assert neighbor_ids(None, CONNECTIONS, {"a", "b"}) == set()
    assert neighbor_ids("z", CONNECTIONS, {"a", "b"}) == set()


def test_edges_to_hidden_fragments_are_skipped() -> None:
    assert neighbor_ids("a", CONNECTIONS, {"a", "b"}) == {"a", "b"}


def test_classify_assigns_exactly_one_state() -> None:
    states = classify("a", _fragments("a", "b", "c", "d"), CONNECTIONS)
    assert states == {
        "a": RenderState.FOCUSED,
        "b": RenderState.NEIGHBOR,
        "c": RenderState.NEIGHBOR,
        "d": RenderState.DIMMED,
    }


def test_classify_without_focus_is_default() -> None:
    states = classify(None, _fragments("a", "b"), CONNECTIONS)
    assert set(states.values()) == {RenderState.DEFAULT}


def test_classify_with_hidden_focus_dims_everything() -> None:
    hidden_focus_edges = [Connection(id="old-a", source="old", target="a", strength=0.9)]
    states = classify("old", _fragments("a", "b"), hidden_focus_edges)
    assert states == {"a": RenderState.DIMMED, "b": RenderState.DIMMED}


def test_edge_emphasis_checks_either_endpoint() -> None:
    assert is_emphasized(CONNECTIONS[1], "a")
    assert is_emphasized(CONNECTIONS[1], "c")
    assert not is_emphasized(CONNECTIONS[2], "a")
    assert not is_emphasized(CONNECTIONS[0], None)


def test_selection_holds_at_most_one_focus() -> None:
    selection = Selection()
    assert selection.focus_id is None
    selection.select("a")
    selection.select("b")
    assert selection.focus_id == "b"
    selection.clear()
    assert selection.focus_id is None
