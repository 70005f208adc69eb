"""Admission control for headless Chromium pages.

Each artwork fans out into three variant renders, and a catalog sync or a
burst of API requests multiplies that. Every page holds a canvas-sized
raster inside the browser, so pages are admitted through one semaphore
capped by PRINTSTUDIO_MAX_CONCURRENT_RENDERS (default 3, one artwork's
worth of variants).
"""

import asyncio
import os
from contextlib import asynccontextmanager

DEFAULT_MAX_CONCURRENT_RENDERS = 3

# semaphores bind to the loop they first wait on; keep one per running loop
_semaphore = None
_semaphore_loop = None


def max_concurrent_renders() -> int:
    raw = (os.getenv("PRINTSTUDIO_MAX_CONCURRENT_RENDERS") or "").strip()
    return max(1, int(raw)) if raw else DEFAULT_MAX_CONCURRENT_RENDERS


def _current_semaphore() -> asyncio.Semaphore:
    global _semaphore, _semaphore_loop
    loop = asyncio.get_running_loop()
    if _semaphore is None or _semaphore_loop is not loop:
        _semaphore = asyncio.Semaphore(max_concurrent_renders())
        _semaphore_loop = loop
    return _semaphore


@asynccontextmanager
async def render_slot():
    """
    Hold one browser page slot for the duration of a render.
    Usage:
        async with render_slot():
            page = await browser.new_page(...)
            ...
            await page.screenshot(...)
    """
    async with _current_semaphore():
        yield
