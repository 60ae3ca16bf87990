from __future__ import annotations

import pytest

from codex.app.contracts import CanvasSnapshot, Connection, Fragment, Theme
from codex.app.graph import DuplicateFragmentError, GraphModel, UnknownFragmentError


def _fragment(fragment_id: str, text: str = "", x: float = 0.0, y: float = 0.0) -> Fragment:
    return Fragment(id=fragment_id, text=text or fragment_id, created_at=0, x=x, y=y)


def _connection(conn_id: str, source: str, target: str, strength: float = 0.5) -> Connection:
    return Connection(id=conn_id, source=source, target=target, strength=strength)


@pytest.fixture()
def model() -> GraphModel:
    return GraphModel(
        [_fragment("a"), _fragment("b", x=10.0), _fragment("c", y=10.0)],
        [
            _connection("ab", "a", "b", 0.9),
            _connection("bc", "b", "c", 0.3),
            _connection("ca", "c", "a", 0.6),
        ],
    )


def test_readers_receive_immutable_collections(model: GraphModel) -> None:
    fragments = model.fragments()
    assert isinstance(fragments, tuple)
    assert [fragment.id for fragment in fragments] == ["a", "b", "c"]
    assert isinstance(model.connections(), tuple)
    assert len(model) == 3
    assert "b" in model
    assert "z" not in model


def test_duplicate_fragment_rejected(model: GraphModel) -> None:
    with pytest.raises(DuplicateFragmentError):
        model.add_fragment(_fragment("a"))


def test_remove_fragment_cascades_connections(model: GraphModel) -> None:
    removed = model.remove_fragment("b")
    assert removed == 2
    assert "b" not in model
    assert [conn.id for conn in model.connections()] == ["ca"]
    for conn in model.connections():
        assert not conn.touches("b")


def test_remove_unknown_fragment_is_noop(model: GraphModel) -> None:
    assert model.remove_fragment("missing") == 0
    assert len(model.connections()) == 3


def test_snapshot_taken_before_removal_is_untouched(model: GraphModel) -> None:
    before = model.fragments()
    model.remove_fragment("a")
    assert [fragment.id for fragment in before] == ["a", "b", "c"]


def test_replace_positions_swaps_all_at_once(model: GraphModel) -> None:
    before = model.fragments()
    replaced = model.replace_positions({"a": (1.0, 2.0), "c": (3.0, 4.0), "ghost": (9.0, 9.0)})
    assert replaced == 2
    assert model.positions() == {"a": (1.0, 2.0), "b": (10.0, 0.0), "c": (3.0, 4.0)}
    assert before[0].position == (0.0, 0.0)


def test_set_importance_clamps(model: GraphModel) -> None:
    assert model.set_importance("a", 7).importance == 3
    assert model.set_importance("a", 0).importance == 1
    assert model.get("a").importance == 1  # type: ignore[union-attr]


def test_set_importance_unknown_fragment(model: GraphModel) -> None:
    with pytest.raises(UnknownFragmentError):
        model.set_importance("missing", 2)


def test_dangling_connection_is_stored_but_not_resolved(model: GraphModel) -> None:
    dangling = model.add_connection(_connection("ax", "a", "x"))
    assert dangling in model.connections()
    assert model.resolve(dangling) is None
    assert [conn.id for conn in model.connections_for("a")] == ["ab", "ca"]


def test_connections_for_applies_strength_threshold(model: GraphModel) -> None:
    assert [conn.id for conn in model.connections_for("b", min_strength=0.5)] == ["ab"]
    assert [conn.id for conn in model.connections_for("b", min_strength=0.3)] == ["ab", "bc"]


def test_search_is_case_insensitive_and_limited() -> None:
    model = GraphModel([_fragment(f"f{i}", text=f"Echo number {i}") for i in range(8)])
    model.add_fragment(_fragment("other", text="unrelated"))
    results = model.search("ECHO")
    assert len(results) == 5
    assert [fragment.id for fragment in results] == ["f0", "f1", "f2", "f3", "f4"]
    assert model.search("   ") == ()
    assert model.search("echo", limit=2)[-1].id == "f1"


def test_snapshot_round_trip_preserves_order(model: GraphModel) -> None:
    snapshot = model.to_snapshot(min_strength=0.4, theme=Theme.ECLIPSE)
    assert isinstance(snapshot, CanvasSnapshot)
    restored = GraphModel.from_snapshot(snapshot)
    assert [fragment.id for fragment in restored.fragments()] == ["a", "b", "c"]
    assert [conn.id for conn in restored.connections()] == ["ab", "bc", "ca"]
    assert snapshot.theme is Theme.ECLIPSE
