"""Render and attach preview images for catalog listings with at most one image.

Run:
  python tools/sync_catalog_images.py [--limit N] [--dry-run] [--output-dir DIR]

Reads SHOPIFY_* and PRINTSTUDIO_* settings from backend/.env.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from printstudio.core.config import get_settings
from printstudio.core.logger import setup_logger
from printstudio.domain.models import RenderOptions
from printstudio.services.batch_job import run_catalog_image_sync
from printstudio.services.catalog_client import ShopifyCatalogClient
from printstudio.services.html_renderer import PlaywrightRenderer
from printstudio.services.sinks import FileSink


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--dry-run", action="store_true", help="render only, do not upload")
    parser.add_argument("--max-file-size", type=int, default=None, help="bytes")
    parser.add_argument("--background", default=None, help="gradient image backdrop (CSS color, gradient or image URL)")
    return parser.parse_args()


async def main():
    args = _parse_args()
    settings = get_settings()
    logger = setup_logger()

    catalog = ShopifyCatalogClient(
        shop=settings.shopify_shop,
        access_token=settings.shopify_token,
        api_version=settings.shopify_api_version,
    )
    if not catalog.configured:
        raise SystemExit("SHOPIFY_SHOP_NAME / SHOPIFY_ACCESS_TOKEN not set in backend/.env")

    options = RenderOptions(
        format="jpeg",
        canvas_width=settings.canvas_width,
        canvas_height=settings.canvas_height,
        wall_image_path=settings.wall_image_path,
        wall_height_inches=settings.wall_height_inches,
        shadow_intensity=settings.shadow_intensity,
        max_file_size=args.max_file_size,
        background=args.background,
    )
    renderer = PlaywrightRenderer(timeout_ms=settings.render_timeout_ms)
    try:
        report = await run_catalog_image_sync(
            catalog,
            renderer,
            FileSink(args.output_dir or settings.output_dir),
            lambda product: options,
            limit=args.limit,
            upload=not args.dry_run,
            delay_s=settings.batch_delay_s,
        )
    finally:
        await renderer.close()

    for item in report.items:
        logger.info(f"{item.product_id} {item.status} {item.error or ''}".strip())


if __name__ == "__main__":
    asyncio.run(main())
