"""Assemble screen-space sprites for the rendering surface."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from codex.app.config import RenderingConfig
from codex.app.filters.engine import VisibleGraph
from codex.app.selection.highlight import RenderState, classify, is_emphasized
from codex.app.viewport.transform import Point, ViewportState


@dataclass(frozen=True)
class NodeSprite:
    """Per-fragment render instruction."""

    id: str
    screen_x: float
    screen_y: float
    scale: float
    state: RenderState
    text: str
    category: Optional[str]
    timestamp: str
    tags: Tuple[str, ...] = ()
    image_url: Optional[str] = None


@dataclass(frozen=True)
class EdgeSprite:
    """Per-connection line segment in screen space."""

    id: str
    source: str
    target: str
    start: Point
    end: Point
    emphasized: bool
    strength: float
    label: Optional[str] = None


@dataclass(frozen=True)
class RenderFrame:
    """Everything the rendering surface needs to paint one frame."""

    nodes: List[NodeSprite]
    edges: List[EdgeSprite]
    viewport: ViewportState
    focus_id: Optional[str]
    hidden_count: int = 0
    dangling_count: int = 0
    theme: Optional[str] = None

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


def importance_scale(importance: int, step: float) -> float:
    """Return the size multiplier for an importance level (1 -> 1.0)."""

    return 1.0 + (importance - 1) * step


def build_frame(
    visible: VisibleGraph,
    viewport: ViewportState,
    focus_id: Optional[str],
    rendering: Optional[RenderingConfig] = None,
    *,
    theme: Optional[str] = None,
) -> RenderFrame:
    """Project the visible graph onto the screen.

    Args:
        visible: Output of the filter engine.
        viewport: Pan/zoom state to project with.
        focus_id: Currently focused fragment, if any.
        rendering: Sprite scaling parameters.
        theme: Active theme name forwarded to the surface.

    Returns:
        RenderFrame: Node and edge sprites in draw order.
    """

    settings = rendering or RenderingConfig()
    states = classify(focus_id, visible.fragments, visible.connections)
    by_id = {fragment.id: fragment for fragment in visible.fragments}

    nodes: List[NodeSprite] = []
    for fragment in visible.fragments:
        state = states[fragment.id]
        scale = importance_scale(fragment.importance, settings.importance_scale_step)
        if state is RenderState.FOCUSED:
            scale *= settings.focus_scale
        screen_x, screen_y = viewport.world_to_screen(fragment.position)
        nodes.append(
            NodeSprite(
                id=fragment.id,
                screen_x=screen_x,
                screen_y=screen_y,
                scale=scale * viewport.zoom,
                state=state,
                text=fragment.text,
                category=fragment.category,
                timestamp=fragment.timestamp,
                tags=tuple(fragment.tags),
                image_url=fragment.image_url,
            )
        )

    edges: List[EdgeSprite] = []
    for conn in visible.connections:
        source = by_id.get(conn.source)
        target = by_id.get(conn.target)
        if source is None or target is None:
            continue
        edges.append(
            EdgeSprite(
                id=conn.id,
                source=conn.source,
                target=conn.target,
                start=viewport.world_to_screen(source.position),
                end=viewport.world_to_screen(target.position),
                emphasized=is_emphasized(conn, focus_id),
                strength=conn.strength,
                label=conn.label,
            )
        )

    effective_focus = focus_id if focus_id in by_id else None
    return RenderFrame(
        nodes=nodes,
        edges=edges,
        viewport=viewport,
        focus_id=effective_focus,
        hidden_count=visible.hidden_count,
        dangling_count=visible.dangling_count,
        theme=theme,
    )


def hit_test(frame: RenderFrame, point: Point, hit_radius: float) -> Optional[str]:
    """Return the id of the topmost sprite covering ``point``.

    The focused sprite is drawn above all others; among the rest, later
    sprites are drawn on top of earlier ones.
    """

    ordered = sorted(
        enumerate(frame.nodes),
        key=lambda item: (item[1].state is RenderState.FOCUSED, item[0]),
        reverse=True,
    )
    for _, sprite in ordered:
        radius = hit_radius * sprite.scale
        if math.hypot(point[0] - sprite.screen_x, point[1] - sprite.screen_y) <= radius:
            return sprite.id
    return None
