from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# backend/printstudio/core/config.py -> backend
_backend_dir = Path(__file__).resolve().parents[2]
_repo_root = _backend_dir.parent


def load_env() -> None:
    """Load backend/.env without clobbering variables already exported."""
    load_dotenv(dotenv_path=_backend_dir / ".env", override=False)


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    output_dir: Path
    wall_image_path: Path
    wall_height_inches: float
    canvas_width: int
    canvas_height: int
    render_timeout_ms: int
    batch_delay_s: float
    shopify_shop: str
    shopify_token: str
    shopify_api_version: str
    shadow_intensity: float = 0.4

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shopify_shop and self.shopify_token)

    @classmethod
    def from_env(cls) -> "Settings":
        assets = _repo_root / "assets"
        return cls(
            output_dir=Path(os.getenv("PRINTSTUDIO_OUTPUT_DIR") or assets / "output-images"),
            wall_image_path=Path(
                os.getenv("PRINTSTUDIO_WALL_IMAGE") or assets / "background-images" / "blank-wall.jpg"
            ),
            wall_height_inches=_env_float("PRINTSTUDIO_WALL_HEIGHT_INCHES", 114.0),
            canvas_width=_env_int("PRINTSTUDIO_CANVAS_WIDTH", 2048),
            canvas_height=_env_int("PRINTSTUDIO_CANVAS_HEIGHT", 2048),
            render_timeout_ms=_env_int("PRINTSTUDIO_RENDER_TIMEOUT_MS", 60000),
            batch_delay_s=_env_float("PRINTSTUDIO_BATCH_DELAY_S", 0.5),
            shopify_shop=(os.getenv("SHOPIFY_SHOP_NAME") or "").strip(),
            shopify_token=(os.getenv("SHOPIFY_ACCESS_TOKEN") or "").strip(),
            shopify_api_version=(os.getenv("SHOPIFY_API_VERSION") or "2024-07").strip(),
            shadow_intensity=_env_float("PRINTSTUDIO_SHADOW_INTENSITY", 0.4),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        load_env()
        _settings = Settings.from_env()
    return _settings
