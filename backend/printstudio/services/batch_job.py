"""Catalog image sync: render preview variants for listings that lack them."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence

from printstudio.core.errors import PrintStudioError
from printstudio.core.logger import TaskLogger
from printstudio.domain.models import Artwork, GeneratedImageVariant, RenderOptions
from printstudio.services.catalog_client import CatalogProduct, extract_dimensions
from printstudio.services.html_renderer import RenderBackend
from printstudio.services.orchestrator import ALL_VARIANTS, render_variants
from printstudio.services.sinks import ImageSink


class Catalog(Protocol):
    async def list_products(self, first: int = 50) -> List[CatalogProduct]: ...

    async def upload_product_images(self, product_id: str, images: Sequence[GeneratedImageVariant]) -> int: ...


@dataclass
class SyncItem:
    product_id: str
    title: str
    status: str = "pending"  # pending|skipped|rendered|uploaded|partial_failed|failed
    error: Optional[str] = None
    files: List[str] = field(default_factory=list)


@dataclass
class SyncReport:
    started_at: float = field(default_factory=time.time)
    completed_at: Optional[float] = None
    items: List[SyncItem] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for it in self.items if it.status == status)


def needs_images(product: CatalogProduct) -> bool:
    return product.image_count <= 1


async def run_catalog_image_sync(
    catalog: Catalog,
    backend: RenderBackend,
    sink: ImageSink,
    options_factory: Callable[[CatalogProduct], RenderOptions],
    *,
    limit: Optional[int] = None,
    upload: bool = True,
    delay_s: float = 0.5,
    page_size: int = 50,
) -> SyncReport:
    """Render gradient/product/transparent images for each listing and attach them.

    Products are handled one at a time; a product that fails is recorded and
    the job moves on to the next one.
    """
    logger = TaskLogger()
    report = SyncReport()

    products = [p for p in await catalog.list_products(first=page_size) if needs_images(p)]
    if limit is not None:
        products = products[: max(0, int(limit))]
    logger.info("catalog sync start", products=len(products), upload=upload)

    for index, product in enumerate(products):
        item = SyncItem(product_id=product.id, title=product.title)
        report.items.append(item)
        log = logger.bind(product_id=product.id)

        try:
            width_in, height_in = extract_dimensions(product.metafields)
        except PrintStudioError as exc:
            item.status = "skipped"
            item.error = str(exc)
            log.warning("skipping product without dimensions", error=str(exc))
            continue
        if not product.image_url:
            item.status = "skipped"
            item.error = "product has no image"
            log.warning("skipping product without image")
            continue

        artwork = Artwork(
            id=product.id,
            title=product.title,
            image_source=product.image_url,
            width_inches=width_in,
            height_inches=height_in,
        )
        try:
            result = await render_variants(
                artwork, options_factory(product), backend, sink, trace_id=logger.trace_id
            )
        except PrintStudioError as exc:
            item.status = "failed"
            item.error = str(exc)
            log.error("product render failed", error=str(exc))
            continue

        item.files = [img.file_name for img in result.images]
        if not result.ok:
            item.status = "partial_failed" if result.images else "failed"
            item.error = "; ".join(f"{f.kind.value}: {f.message}" for f in result.failures)
            # Listings get all three images or none, so positions stay consistent.
            continue

        item.status = "rendered"
        if upload:
            ordered = [result.image(kind) for kind in ALL_VARIANTS]
            try:
                await catalog.upload_product_images(product.id, ordered)
            except PrintStudioError as exc:
                item.status = "failed"
                item.error = str(exc)
                log.error("product upload failed", error=str(exc))
                continue
            item.status = "uploaded"

        if delay_s > 0 and index < len(products) - 1:
            await asyncio.sleep(delay_s)

    report.completed_at = time.time()
    logger.info(
        "catalog sync finished",
        uploaded=report.count("uploaded"),
        rendered=report.count("rendered"),
        skipped=report.count("skipped"),
        failed=report.count("failed") + report.count("partial_failed"),
    )
    return report
