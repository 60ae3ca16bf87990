"""Canvas session threading configuration and state through the engine."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from typing_extensions import Protocol

from codex.app.config import AppConfig
from codex.app.contracts import CanvasSnapshot, Connection, Fragment, Theme
from codex.app.filters.engine import FilterControls, VisibleGraph, compute_visible_graph
from codex.app.graph.model import GraphModel, UnknownFragmentError
from codex.app.graph.placement import new_fragment
from codex.app.interaction.controller import InteractionController, PointerEvent
from codex.app.layout.relaxation import RelaxationEngine, RelaxationReport
from codex.app.render.frame import RenderFrame, build_frame, hit_test
from codex.app.selection.highlight import Selection
from codex.app.viewport.transform import ViewportTransform

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Return the current wall-clock instant in epoch milliseconds."""

    return int(time.time() * 1000)


class GraphStateStoreProtocol(Protocol):
    """Persistence collaborator exchanging whole-canvas snapshots."""

    def load(self) -> Optional[CanvasSnapshot]:
        """Return the stored snapshot, or ``None`` when nothing was saved."""

    def save(self, snapshot: CanvasSnapshot) -> None:
        """Persist the supplied snapshot."""


@dataclass(frozen=True)
class FocusDetails:
    """The focused fragment with its connections above the strength threshold."""

    fragment: Fragment
    connections: Tuple[Connection, ...]
    neighbours: Tuple[Fragment, ...]


class CanvasSession:
    """Explicit context object for one canvas.

    Owns the graph model, viewport, filter controls, selection and theme, and
    exposes the operations a rendering surface drives. Every method runs to
    completion synchronously, so readers after a call always see a fully
    updated state.
    """

    def __init__(
        self,
        config: AppConfig,
        model: Optional[GraphModel] = None,
        *,
        clock: Clock = wall_clock_ms,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._model = model if model is not None else GraphModel()
        self._clock = clock
        self._rng = rng or random.Random()
        viewport_cfg = config.viewport
        self._viewport = ViewportTransform(
            viewport_cfg.width,
            viewport_cfg.height,
            zoom=viewport_cfg.initial_zoom,
            min_zoom=viewport_cfg.min_zoom,
            max_zoom=viewport_cfg.max_zoom,
            wheel_zoom_in=viewport_cfg.wheel_zoom_in,
            wheel_zoom_out=viewport_cfg.wheel_zoom_out,
            button_zoom_step=viewport_cfg.button_zoom_step,
        )
        self._controls = FilterControls(
            horizon_days=config.filters.horizon_days,
            min_strength=config.filters.min_strength,
        )
        self._selection = Selection()
        self._controller = InteractionController(
            self._viewport,
            self._selection,
            tap_tolerance_px=config.interaction.tap_tolerance_px,
            deselect_on_empty_tap=config.interaction.deselect_on_empty_tap,
        )
        self._relaxation = RelaxationEngine(config.relaxation)
        self._theme = Theme(config.rendering.default_theme)

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def model(self) -> GraphModel:
        return self._model

    @property
    def viewport(self) -> ViewportTransform:
        return self._viewport

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def controls(self) -> FilterControls:
        return self._controls

    @property
    def focus_id(self) -> Optional[str]:
        return self._selection.focus_id

    @property
    def theme(self) -> Theme:
        return self._theme

    def now(self) -> int:
        return self._clock()

    # -- Derived views -------------------------------------------------

    def visible_graph(self) -> VisibleGraph:
        return compute_visible_graph(
            self._model.fragments(),
            self._model.connections(),
            self._controls,
            self.now(),
        )

    def frame(self) -> RenderFrame:
        """Return the sprites for the current state."""

        return build_frame(
            self.visible_graph(),
            self._viewport.state(),
            self._selection.focus_id,
            self._config.rendering,
            theme=self._theme.value,
        )

    def focus_details(self) -> Optional[FocusDetails]:
        """Describe the focused fragment for a detail panel, if one is focused."""

        focus_id = self._selection.focus_id
        if focus_id is None:
            return None
        fragment = self._model.get(focus_id)
        if fragment is None:
            return None
        connections = self._model.connections_for(focus_id, self._controls.min_strength)
        neighbours = []
        for conn in connections:
            other = self._model.get(conn.other(focus_id) or "")
            if other is not None and other not in neighbours:
                neighbours.append(other)
        return FocusDetails(fragment=fragment, connections=connections, neighbours=tuple(neighbours))

    def search(self, query: str, limit: int = 5) -> Tuple[Fragment, ...]:
        return self._model.search(query, limit=limit)

    # -- Controls ------------------------------------------------------

    def set_controls(
        self,
        *,
        horizon_days: Optional[float] = None,
        min_strength: Optional[float] = None,
    ) -> FilterControls:
        """Update the filter controls, clamping values into their domains."""

        filters = self._config.filters
        self._controls = FilterControls.clamped(
            horizon_days if horizon_days is not None else self._controls.horizon_days,
            min_strength if min_strength is not None else self._controls.min_strength,
            min_horizon_days=filters.min_horizon_days,
            max_horizon_days=filters.max_horizon_days,
        )
        return self._controls

    def set_theme(self, theme: Theme) -> Theme:
        self._theme = Theme(theme)
        return self._theme

    # -- Interaction ---------------------------------------------------

    def pointer_down(self, event: PointerEvent) -> bool:
        return self._controller.start(event)

    def pointer_move(self, event: PointerEvent) -> None:
        self._controller.move(event)

    def pointer_up(self, event: Optional[PointerEvent] = None, target_id: Optional[str] = None) -> Optional[str]:
        """Release the pointer, hit-testing the release point unless a known target is given."""

        if target_id is not None and target_id not in self._model:
            LOGGER.warning("Ignoring pointer target for unknown fragment %s", target_id)
            target_id = None
        if target_id is None and event is not None and self._controller.is_dragging:
            target_id = hit_test(self.frame(), event.position, self._config.rendering.node_hit_radius)
        return self._controller.end(event, target_id)

    def pointer_leave(self) -> None:
        self._controller.cancel()

    def wheel(self, delta_y: float) -> float:
        return self._controller.wheel(delta_y)

    def zoom_in(self) -> float:
        return self._viewport.zoom_in()

    def zoom_out(self) -> float:
        return self._viewport.zoom_out()

    def key(self, name: str) -> bool:
        return self._controller.key(name)

    def select(self, fragment_id: str) -> str:
        """Focus a fragment by id.

        Raises:
            UnknownFragmentError: If the fragment does not exist.
        """

        if fragment_id not in self._model:
            raise UnknownFragmentError(fragment_id)
        return self._controller.select(fragment_id)

    def clear_selection(self) -> None:
        self._selection.clear()

    # -- Graph mutations -----------------------------------------------

    def relax(self) -> RelaxationReport:
        """Run the relaxation engine over the model."""

        only: Optional[Sequence[str]] = None
        if self._config.relaxation.visible_only:
            only = [fragment.id for fragment in self.visible_graph().fragments]
        return self._relaxation.relax(self._model, only=only)

    def add_fragment(self, text: str) -> Fragment:
        placement = self._config.placement
        fragment = new_fragment(
            text,
            now_ms=self.now(),
            rng=self._rng,
            min_radius=placement.min_radius,
            spread=placement.radius_spread,
        )
        return self._model.add_fragment(fragment)

    def add_connection(self, connection: Connection) -> Connection:
        return self._model.add_connection(connection)

    def remove_fragment(self, fragment_id: str) -> int:
        """Delete a fragment and its connections, dropping the focus if it pointed there."""

        removed = self._model.remove_fragment(fragment_id)
        if self._selection.focus_id == fragment_id:
            self._selection.clear()
        return removed

    def set_importance(self, fragment_id: str, importance: int) -> Fragment:
        return self._model.set_importance(fragment_id, importance)

    # -- Snapshots -----------------------------------------------------

    def snapshot(self) -> CanvasSnapshot:
        return self._model.to_snapshot(min_strength=self._controls.min_strength, theme=self._theme)

    def load_snapshot(self, snapshot: CanvasSnapshot) -> None:
        """Replace the model with a snapshot, keeping unset controls as they are."""

        self._model = GraphModel.from_snapshot(snapshot)
        self._selection.clear()
        if snapshot.min_strength is not None:
            self.set_controls(min_strength=snapshot.min_strength)
        if snapshot.theme is not None:
            self._theme = snapshot.theme
        LOGGER.info(
            "Loaded snapshot with %d fragment(s) and %d connection(s)",
            len(snapshot.fragments),
            len(snapshot.connections),
        )

    def save_to(self, store: GraphStateStoreProtocol) -> CanvasSnapshot:
        snapshot = self.snapshot()
        store.save(snapshot)
        return snapshot

    def load_from(self, store: GraphStateStoreProtocol) -> bool:
        """Load state from a store; return ``False`` when the store is empty."""

        snapshot = store.load()
        if snapshot is None:
            LOGGER.info("State store returned no snapshot; keeping current canvas")
            return False
        self.load_snapshot(snapshot)
        return True
