"""Initial placement of freshly scribed fragments."""

from __future__ import annotations

import math
import random
import uuid
from datetime import datetime
from typing import Optional, Tuple

from codex.app.contracts import Fragment

PENDING_CATEGORY = "Processing"


def scatter_position(rng: random.Random, *, min_radius: float, spread: float) -> Tuple[float, float]:
    """Pick a point on a random bearing within an annulus around the origin.

    Args:
        rng: Random source; pass a seeded instance for reproducible placement.
        min_radius: Inner radius of the annulus in world units.
        spread: Width of the annulus; the radius is drawn from
            ``[min_radius, min_radius + spread)``.

    Returns:
        Tuple[float, float]: World-space ``(x, y)``.
    """

    angle = rng.random() * math.pi * 2
    radius = min_radius + rng.random() * spread
    return (math.cos(angle) * radius, math.sin(angle) * radius)


def display_label(now_ms: int) -> str:
    """Format a creation instant as a short clock label such as ``9:05 PM``."""

    moment = datetime.fromtimestamp(now_ms / 1000.0)
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def new_fragment(
    text: str,
    *,
    now_ms: int,
    rng: random.Random,
    min_radius: float,
    spread: float,
    fragment_id: Optional[str] = None,
) -> Fragment:
    """Build a fragment for newly entered text, scattered near the origin.

    Raises:
        ValueError: If ``text`` is blank.
    """

    if not text.strip():
        raise ValueError("Fragment text must not be blank")
    x, y = scatter_position(rng, min_radius=min_radius, spread=spread)
    return Fragment(
        id=fragment_id or uuid.uuid4().hex[:9],
        text=text,
        created_at=now_ms,
        timestamp=display_label(now_ms),
        x=x,
        y=y,
        importance=1,
        tags=[],
        category=PENDING_CATEGORY,
    )
