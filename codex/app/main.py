"""FastAPI application factory exposing the canvas engine."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from codex.app.config import AppConfig, load_config
from codex.app.contracts import CanvasSnapshot, Connection, Theme
from codex.app.graph.model import UnknownFragmentError
from codex.app.interaction.controller import PointerEvent, PointerKind
from codex.app.render.frame import RenderFrame
from codex.app.session import CanvasSession

LOGGER = logging.getLogger(__name__)


class NodePayload(BaseModel):
    """Node sprite returned for rendering."""

    id: str
    x: float
    y: float
    scale: float
    state: str
    text: str
    category: Optional[str] = None
    timestamp: str = ""
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None


class EdgePayload(BaseModel):
    """Edge sprite with screen-space endpoints."""

    id: str
    source: str
    target: str
    start: Tuple[float, float]
    end: Tuple[float, float]
    emphasized: bool
    strength: float
    label: Optional[str] = None


class ViewportPayload(BaseModel):
    """Viewport state after the last handled event."""

    width: float
    height: float
    pan_x: float
    pan_y: float
    zoom: float


class FrameResponse(BaseModel):
    """Complete render frame consumed by the surface."""

    nodes: List[NodePayload]
    edges: List[EdgePayload]
    viewport: ViewportPayload
    focus_id: Optional[str] = None
    theme: Optional[str] = None
    node_count: int
    edge_count: int
    hidden_count: int
    dangling_count: int


class PointerPhase(str, Enum):
    """Lifecycle step of a pointer gesture."""

    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"


class ZoomDirection(str, Enum):
    IN = "in"
    OUT = "out"


class ControlsUpdate(BaseModel):
    """Filter control update; out-of-range values are clamped, not rejected."""

    horizon_days: Optional[float] = None
    min_strength: Optional[float] = None


class ThemeUpdate(BaseModel):
    theme: Theme


class PointerPayload(BaseModel):
    """Pointer sample from mouse or touch input."""

    x: float = 0.0
    y: float = 0.0
    kind: PointerKind = PointerKind.MOUSE
    button: int = 0
    touches: int = 1
    target_id: Optional[str] = Field(default=None, description="Fragment under the pointer, if known")


class WheelPayload(BaseModel):
    delta_y: float


class ResizePayload(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class SelectionPayload(BaseModel):
    fragment_id: str = Field(..., min_length=1)


class FragmentCreate(BaseModel):
    text: str = Field(..., min_length=1, description="Fragment text to place on the plane")


class ImportanceUpdate(BaseModel):
    importance: int


class UISettingsResponse(BaseModel):
    """UI configuration defaults served to the frontend."""

    viewport: Dict[str, object]
    filters: Dict[str, object]
    rendering: Dict[str, object]


def _frame_response(frame: RenderFrame) -> FrameResponse:
    viewport = frame.viewport
    return FrameResponse(
        nodes=[
            NodePayload(
                id=node.id,
                x=node.screen_x,
                y=node.screen_y,
                scale=node.scale,
                state=node.state.value,
                text=node.text,
                category=node.category,
                timestamp=node.timestamp,
                tags=list(node.tags),
                image_url=node.image_url,
            )
            for node in frame.nodes
        ],
        edges=[
            EdgePayload(
                id=edge.id,
                source=edge.source,
                target=edge.target,
                start=edge.start,
                end=edge.end,
                emphasized=edge.emphasized,
                strength=edge.strength,
                label=edge.label,
            )
            for edge in frame.edges
        ],
        viewport=ViewportPayload(
            width=viewport.width,
            height=viewport.height,
            pan_x=viewport.pan_x,
            pan_y=viewport.pan_y,
            zoom=viewport.zoom,
        ),
        focus_id=frame.focus_id,
        theme=frame.theme,
        node_count=frame.node_count,
        edge_count=frame.edge_count,
        hidden_count=frame.hidden_count,
        dangling_count=frame.dangling_count,
    )


def _pointer_event(payload: PointerPayload) -> PointerEvent:
    return PointerEvent(
        x=payload.x,
        y=payload.y,
        kind=payload.kind,
        button=payload.button,
        touches=payload.touches,
    )


def create_app(
    config: AppConfig | None = None,
    session: Optional[CanvasSession] = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Handlers are coroutines that never await, so each one runs to completion
    on the event loop before the next begins and no locking is needed around
    the session.

    Args:
        config: Optional pre-loaded configuration. If omitted, the default
            configuration defined in config.yaml is used.
        session: Optional canvas session. When omitted an empty session is
            created from the configuration.

    Returns:
        FastAPI: Configured FastAPI application.
    """

    resolved_config = config or load_config()
    app = FastAPI(title="Codex Canvas API", version=resolved_config.engine.version)
    app.state.app_config = resolved_config
    canvas = session if session is not None else CanvasSession(resolved_config)
    app.state.session = canvas

    allowed_origins = resolved_config.api.allowed_origins
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health", tags=["system"], summary="Service health probe")
    async def health() -> dict[str, str]:
        """Return service health information."""

        return {"status": "ok", "engine_version": resolved_config.engine.version}

    @app.get("/api/ui/settings", tags=["ui"], summary="UI configuration defaults")
    async def ui_settings() -> UISettingsResponse:
        """Return control domains and defaults sourced from the configuration file."""

        viewport_cfg = resolved_config.viewport
        filters_cfg = resolved_config.filters
        return UISettingsResponse(
            viewport={
                "min_zoom": viewport_cfg.min_zoom,
                "max_zoom": viewport_cfg.max_zoom,
                "initial_zoom": viewport_cfg.initial_zoom,
            },
            filters={
                "horizon_days": filters_cfg.horizon_days,
                "min_horizon_days": filters_cfg.min_horizon_days,
                "max_horizon_days": filters_cfg.max_horizon_days,
                "min_strength": filters_cfg.min_strength,
            },
            rendering={
                "default_theme": resolved_config.rendering.default_theme,
                "themes": [theme.value for theme in Theme],
            },
        )

    @app.get("/api/canvas/frame", tags=["canvas"], summary="Current render frame")
    async def frame() -> FrameResponse:
        return _frame_response(canvas.frame())

    @app.post("/api/canvas/relax", tags=["canvas"], summary="Declutter overlapping fragments")
    async def relax() -> Dict[str, object]:
        """Run the bounded repulsion passes and return a summary."""

        report = canvas.relax()
        return {
            "node_count": report.node_count,
            "passes": report.passes,
            "moved_count": report.moved_count,
            "max_displacement": report.max_displacement,
            "strategy": report.strategy,
        }

    @app.put("/api/canvas/controls", tags=["canvas"], summary="Update filter controls")
    async def update_controls(update: ControlsUpdate) -> Dict[str, object]:
        controls = canvas.set_controls(horizon_days=update.horizon_days, min_strength=update.min_strength)
        return {"horizon_days": controls.horizon_days, "min_strength": controls.min_strength}

    @app.put("/api/canvas/theme", tags=["canvas"], summary="Switch theme")
    async def update_theme(update: ThemeUpdate) -> Dict[str, str]:
        return {"theme": canvas.set_theme(update.theme).value}

    @app.post("/api/canvas/pointer/{phase}", tags=["interaction"], summary="Pointer input")
    async def pointer(phase: PointerPhase, payload: PointerPayload) -> Dict[str, object]:
        """Feed one pointer sample through the interaction controller."""

        event = _pointer_event(payload)
        selected: Optional[str] = None
        if phase is PointerPhase.DOWN:
            canvas.pointer_down(event)
        elif phase is PointerPhase.MOVE:
            canvas.pointer_move(event)
        elif phase is PointerPhase.UP:
            selected = canvas.pointer_up(event, payload.target_id)
        else:
            canvas.pointer_leave()
        pan_x, pan_y = canvas.viewport.pan
        return {
            "state": canvas.controller.state.value,
            "pan": [pan_x, pan_y],
            "selected": selected,
            "focus_id": canvas.focus_id,
        }

    @app.post("/api/canvas/wheel", tags=["interaction"], summary="Wheel zoom tick")
    async def wheel(payload: WheelPayload) -> Dict[str, float]:
        return {"zoom": canvas.wheel(payload.delta_y)}

    @app.post("/api/canvas/zoom/{direction}", tags=["interaction"], summary="Zoom button")
    async def zoom(direction: ZoomDirection) -> Dict[str, float]:
        value = canvas.zoom_in() if direction is ZoomDirection.IN else canvas.zoom_out()
        return {"zoom": value}

    @app.post("/api/canvas/viewport/resize", tags=["interaction"], summary="Resize the viewport")
    async def resize(payload: ResizePayload) -> ViewportPayload:
        canvas.viewport.resize(payload.width, payload.height)
        state = canvas.viewport.state()
        return ViewportPayload(
            width=state.width,
            height=state.height,
            pan_x=state.pan_x,
            pan_y=state.pan_y,
            zoom=state.zoom,
        )

    @app.put("/api/canvas/selection", tags=["interaction"], summary="Focus a fragment")
    async def select(payload: SelectionPayload) -> Dict[str, object]:
        try:
            canvas.select(payload.fragment_id)
        except UnknownFragmentError as exc:
            raise HTTPException(status_code=404, detail="Fragment not found") from exc
        details = canvas.focus_details()
        connections = details.connections if details is not None else ()
        return {
            "focus_id": canvas.focus_id,
            "connections": [conn.model_dump(by_alias=True, mode="json") for conn in connections],
        }

    @app.delete("/api/canvas/selection", tags=["interaction"], summary="Clear the focus")
    async def clear_selection() -> Dict[str, Optional[str]]:
        canvas.clear_selection()
        return {"focus_id": None}

    @app.post("/api/canvas/fragments", tags=["graph"], summary="Place a new fragment", status_code=201)
    async def create_fragment(payload: FragmentCreate) -> Dict[str, object]:
        try:
            fragment = canvas.add_fragment(payload.text)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return fragment.model_dump(by_alias=True, mode="json")

    @app.delete("/api/canvas/fragments/{fragment_id}", tags=["graph"], summary="Erase a fragment")
    async def delete_fragment(fragment_id: str) -> Dict[str, object]:
        if fragment_id not in canvas.model:
            raise HTTPException(status_code=404, detail="Fragment not found")
        removed = canvas.remove_fragment(fragment_id)
        return {"status": "deleted", "connections_removed": removed}

    @app.patch(
        "/api/canvas/fragments/{fragment_id}/importance",
        tags=["graph"],
        summary="Change fragment importance",
    )
    async def update_importance(fragment_id: str, payload: ImportanceUpdate) -> Dict[str, object]:
        try:
            fragment = canvas.set_importance(fragment_id, payload.importance)
        except UnknownFragmentError as exc:
            raise HTTPException(status_code=404, detail="Fragment not found") from exc
        return fragment.model_dump(by_alias=True, mode="json")

    @app.post("/api/canvas/connections", tags=["graph"], summary="Insert a connection", status_code=201)
    async def create_connection(connection: Connection) -> Dict[str, object]:
        stored = canvas.add_connection(connection)
        return stored.model_dump(by_alias=True, mode="json")

    @app.get("/api/canvas/search", tags=["graph"], summary="Search fragment text")
    async def search(q: str = Query(..., min_length=1), limit: int = Query(5, ge=1, le=50)) -> List[Dict[str, object]]:
        return [fragment.model_dump(by_alias=True, mode="json") for fragment in canvas.search(q, limit=limit)]

    @app.get("/api/canvas/snapshot", tags=["state"], summary="Export the canvas state")
    async def get_snapshot() -> Dict[str, object]:
        return canvas.snapshot().model_dump(by_alias=True, mode="json")

    @app.put("/api/canvas/snapshot", tags=["state"], summary="Replace the canvas state")
    async def put_snapshot(snapshot: CanvasSnapshot) -> Dict[str, object]:
        canvas.load_snapshot(snapshot)
        return {
            "status": "loaded",
            "fragments": len(snapshot.fragments),
            "connections": len(snapshot.connections),
        }

    return app
