from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from printstudio.core.errors import ConfigurationError


@dataclass(frozen=True)
class ShadowLayer:
    x_offset: float
    y_offset: float
    blur: float
    spread: float
    alpha: float


@dataclass(frozen=True)
class ShadowProfile:
    angle_degrees: float = 40.0
    length: float = 130.0
    final_blur: float = 800.0
    spread: float = 0.0
    final_transparency: float = 0.15


@dataclass(frozen=True)
class EasingCurve:
    x1: float
    y1: float
    x2: float
    y2: float

    def __post_init__(self):
        if not (0.0 <= self.x1 <= 1.0 and 0.0 <= self.x2 <= 1.0):
            raise ValueError("bezier x control points must lie in [0, 1]")


@dataclass(frozen=True)
class PlacementGeometry:
    max_width_percent: float
    max_height_percent: float
    position_x_percent: float
    position_y_percent: float


@dataclass(frozen=True)
class WallReference:
    pixel_width: int
    pixel_height: int
    physical_height_inches: Optional[float]


@dataclass(frozen=True)
class Anchor:
    kind: str = "center"  # center|top|bottom|explicit
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def center(cls) -> "Anchor":
        return cls("center")

    @classmethod
    def top(cls) -> "Anchor":
        return cls("top")

    @classmethod
    def bottom(cls) -> "Anchor":
        return cls("bottom")

    @classmethod
    def at(cls, x: float, y: float) -> "Anchor":
        x, y = float(x), float(y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ConfigurationError(f"anchor coordinates must be finite, got {x},{y}")
        return cls("explicit", x, y)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Anchor":
        """Accept `center`, `top`, `bottom` or `x,y` pixel coordinates."""
        value = (raw or "center").strip().lower()
        if value in {"center", "top", "bottom"}:
            return cls(value)
        parts = [p.strip() for p in value.split(",")]
        if len(parts) == 2:
            try:
                return cls.at(float(parts[0]), float(parts[1]))
            except ValueError:
                pass
        raise ConfigurationError(f"unrecognized anchor position: {raw!r}")


class VariantKind(str, Enum):
    GRADIENT = "gradient"
    PRODUCT = "product"  # artwork on the simulated wall
    TRANSPARENT = "transparent"

    @property
    def output_name(self) -> str:
        return f"{self.value}-image"


@dataclass
class Artwork:
    id: str
    title: str
    # raw bytes, data: URI, http(s) URL or local file path
    image_source: Union[bytes, str, Path]
    width_inches: float
    height_inches: float


# characters that would let a background value escape its style block
_UNSAFE_CSS_CHARS = frozenset('<>{}"\\')


@dataclass(frozen=True)
class RenderOptions:
    format: str = "jpeg"
    quality: int = 100
    canvas_width: int = 2048
    canvas_height: int = 2048
    background: Optional[str] = None
    wall_image_path: Optional[Path] = None
    wall_height_inches: Optional[float] = None
    anchor: Anchor = field(default_factory=Anchor.center)
    offset_x: float = 0.0
    offset_y: float = 0.0
    shadow_layers: int = 7
    shadow_intensity: float = 0.4
    max_file_size: Optional[int] = None

    def __post_init__(self):
        if self.format not in {"jpeg", "png"}:
            raise ConfigurationError(f"unsupported output format: {self.format!r}")
        if not 1 <= int(self.quality) <= 100:
            raise ConfigurationError("quality must be within 1..100")
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ConfigurationError("canvas dimensions must be positive")
        if self.shadow_layers < 1:
            raise ConfigurationError("shadow_layers must be >= 1")
        if self.max_file_size is not None and self.max_file_size <= 0:
            raise ConfigurationError("max_file_size must be positive when set")
        if self.background is not None and any(ch in self.background for ch in _UNSAFE_CSS_CHARS):
            raise ConfigurationError("background must be a plain CSS color, gradient or image URL")
        if self.wall_image_path is not None and not (self.wall_height_inches and self.wall_height_inches > 0):
            raise ConfigurationError("wall_height_inches is required when a wall image is configured")

    @property
    def mime_type(self) -> str:
        return f"image/{self.format}"


@dataclass
class GeneratedImageVariant:
    kind: VariantKind
    data: bytes
    file_name: str
    width: int
    height: int
    mime_type: str = "image/jpeg"
    path: Optional[Path] = None

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64," + base64.b64encode(self.data).decode("ascii")


@dataclass
class VariantFailure:
    kind: VariantKind
    error_type: str
    message: str


@dataclass
class RenderBatchResult:
    trace_id: str
    images: List[GeneratedImageVariant] = field(default_factory=list)
    failures: List[VariantFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def status(self) -> str:
        if not self.failures:
            return "completed"
        if self.images:
            return "partial_failed"
        return "failed"

    def image(self, kind: VariantKind) -> Optional[GeneratedImageVariant]:
        for img in self.images:
            if img.kind == kind:
                return img
        return None
