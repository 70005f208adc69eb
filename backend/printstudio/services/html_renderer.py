"""HTML to raster rendering through headless Chromium.

The artwork is laid out with CSS (percent box + translate(-50%, -50%)) and the
shadow stack is a plain `box-shadow` value, so the browser does all
compositing. The screenshot is re-encoded with Pillow afterwards.
"""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from jinja2 import Environment, StrictUndefined
from PIL import Image

from printstudio.core.errors import RenderBackendError
from printstudio.core.render_slots import render_slot
from printstudio.services.compress import encode

logger = logging.getLogger("printstudio")

_TEMPLATE = """<html>
  <style>
    body {
      width: {{ canvas_width }}px;
      height: {{ canvas_height }}px;
      margin: 0;
      padding: 0;
      background: none;
    }
    .background-container {
      width: 100%;
      height: 100%;
      background: {{ background_style }};
      background-size: cover;
      background-position: center;
      position: relative;
    }
    #artwork {
      position: absolute;
      max-width: {{ max_width_percent | pct }}%;
      max-height: {{ max_height_percent | pct }}%;
      top: {{ position_y_percent | pct }}%;
      left: {{ position_x_percent | pct }}%;
      transform: translate(-50%, -50%);
      box-shadow: {{ shadow_css }};
    }
  </style>
  <body>
    <div class="background-container">
      <img id="artwork" src="{{ artwork_source }}" />
    </div>
  </body>
</html>
"""

_env = Environment(autoescape=False, undefined=StrictUndefined)
_env.filters["pct"] = lambda v: f"{float(v):.4f}".rstrip("0").rstrip(".")
_template = _env.from_string(_TEMPLATE)


@dataclass(frozen=True)
class RenderRequest:
    canvas_width: int
    canvas_height: int
    background_style: str
    artwork_source: str
    max_width_percent: float
    max_height_percent: float
    position_x_percent: float
    position_y_percent: float
    shadow_css: str
    transparent: bool = False
    format: str = "jpeg"
    quality: int = 100


class RenderBackend(Protocol):
    async def render(self, request: RenderRequest) -> bytes: ...


def build_markup(request: RenderRequest) -> str:
    if '"' in request.artwork_source:
        raise RenderBackendError("artwork source must not contain quotes")
    return _template.render(
        canvas_width=int(request.canvas_width),
        canvas_height=int(request.canvas_height),
        background_style=request.background_style,
        artwork_source=request.artwork_source,
        max_width_percent=request.max_width_percent,
        max_height_percent=request.max_height_percent,
        position_x_percent=request.position_x_percent,
        position_y_percent=request.position_y_percent,
        shadow_css=request.shadow_css,
    )


class PlaywrightRenderer:
    """Shares one Chromium across renders; each render gets its own page."""

    def __init__(self, timeout_ms: int = 60000):
        self.timeout_ms = int(timeout_ms)
        self._pw = None
        self._browser = None
        self._lock = asyncio.Lock()

    async def _get_browser(self):
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            try:
                from playwright.async_api import async_playwright
            except ModuleNotFoundError as exc:
                raise RenderBackendError(
                    "playwright is not installed (pip install playwright && playwright install chromium)"
                ) from exc
            if self._pw is None:
                self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(headless=True)
            logger.info("chromium launched for rendering")
            return self._browser

    async def render(self, request: RenderRequest) -> bytes:
        html = build_markup(request)
        browser = await self._get_browser()
        async with render_slot():
            page = None
            try:
                page = await browser.new_page(
                    viewport={"width": int(request.canvas_width), "height": int(request.canvas_height)}
                )
                await page.set_content(html, wait_until="load", timeout=self.timeout_ms)
                await page.wait_for_function(
                    "() => { const img = document.getElementById('artwork'); return img && img.complete; }",
                    timeout=self.timeout_ms,
                )
                png = await page.screenshot(type="png", omit_background=request.transparent, full_page=False)
            except RenderBackendError:
                raise
            except Exception as exc:
                raise RenderBackendError(f"chromium render failed: {exc}") from exc
            finally:
                if page is not None:
                    await page.close()

        return await asyncio.to_thread(_reencode, png, request.format, request.quality)

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._pw is not None:
                await self._pw.stop()
                self._pw = None


def _reencode(png: bytes, fmt: str, quality: int) -> bytes:
    if fmt == "png":
        return png
    with Image.open(io.BytesIO(png)) as img:
        img.load()
        return encode(img, fmt, quality)


_default_renderer: Optional[PlaywrightRenderer] = None


def get_renderer(timeout_ms: int = 60000) -> PlaywrightRenderer:
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = PlaywrightRenderer(timeout_ms=timeout_ms)
    return _default_renderer
