from __future__ import annotations

import math
from typing import Optional

from printstudio.core.errors import ConfigurationError
from printstudio.domain.models import Anchor, PlacementGeometry, WallReference

DEFAULT_MAX_PERCENT = 85.0


def _require_positive(value: Optional[float], name: str) -> float:
    if value is None:
        raise ConfigurationError(f"{name} is required")
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(v) or v <= 0:
        raise ConfigurationError(f"{name} must be a positive number, got {value!r}")
    return v


def compute_placement(
    artwork_width_in: float,
    artwork_height_in: float,
    wall: Optional[WallReference] = None,
    anchor: Anchor = Anchor.center(),
    offset_x: float = 0.0,
    offset_y: float = 0.0,
    canvas_size: tuple[int, int] = (2048, 2048),
) -> PlacementGeometry:
    """Size and position artwork as percentages of the canvas.

    Without a wall the artwork is boxed to 85% and centred; offsets are pixels
    converted against `canvas_size`. With a wall, the wall's physical height
    fixes a pixels-per-inch scale used on both axes so the artwork keeps its
    real size relative to the photo.
    """
    width_in = _require_positive(artwork_width_in, "artwork width (in)")
    height_in = _require_positive(artwork_height_in, "artwork height (in)")

    if wall is None:
        canvas_w, canvas_h = canvas_size
        return PlacementGeometry(
            max_width_percent=DEFAULT_MAX_PERCENT,
            max_height_percent=DEFAULT_MAX_PERCENT,
            position_x_percent=50.0 + float(offset_x) / canvas_w * 100.0,
            position_y_percent=50.0 + float(offset_y) / canvas_h * 100.0,
        )

    wall_w = _require_positive(wall.pixel_width, "wall pixel width")
    wall_h = _require_positive(wall.pixel_height, "wall pixel height")
    wall_height_in = _require_positive(wall.physical_height_inches, "wall physical height (in)")

    pixels_per_inch = wall_h / wall_height_in
    art_w_px = width_in * pixels_per_inch
    art_h_px = height_in * pixels_per_inch

    if anchor.kind == "top":
        x, y = wall_w / 2, art_h_px / 2
    elif anchor.kind == "bottom":
        x, y = wall_w / 2, wall_h - art_h_px / 2
    elif anchor.kind == "explicit":
        x, y = anchor.x, anchor.y
    else:
        x, y = wall_w / 2, wall_h / 2

    x += float(offset_x)
    y += float(offset_y)

    return PlacementGeometry(
        max_width_percent=art_w_px / wall_w * 100.0,
        max_height_percent=art_h_px / wall_h * 100.0,
        position_x_percent=x / wall_w * 100.0,
        position_y_percent=y / wall_h * 100.0,
    )
