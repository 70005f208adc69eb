from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Iterable, Optional

from printstudio.core.errors import AssetError
from printstudio.core.logger import TaskLogger
from printstudio.domain.models import (
    Artwork,
    GeneratedImageVariant,
    RenderBatchResult,
    RenderOptions,
    VariantFailure,
    VariantKind,
)
from printstudio.services.assets import load_wall, resolve_artwork_source
from printstudio.services.compress import fit_to_size
from printstudio.services.html_renderer import RenderBackend, RenderRequest
from printstudio.services.placement import compute_placement
from printstudio.services.shadow import build_artwork_shadow, to_css
from printstudio.services.sinks import ImageSink, variant_file_name

GRADIENT_BACKGROUND = (
    "linear-gradient(135deg, #ffffff 0%, #f5f5f5 20%, #eeeeee 40%, #e0e0e0 60%, #d5d5d5 80%, #cccccc 100%)"
)
TRANSPARENT_BACKGROUND = "rgba(0, 0, 0, 0)"

ALL_VARIANTS = (VariantKind.GRADIENT, VariantKind.PRODUCT, VariantKind.TRANSPARENT)


def background_css(value: str) -> str:
    """A color or gradient is used as is; an image URL becomes `url(...)`."""
    value = value.strip()
    if value.startswith(("http://", "https://", "data:")):
        return f"url({value})"
    return value


def variant_options(kind: VariantKind, base: RenderOptions) -> RenderOptions:
    """Derive the per-variant options: only `product` keeps the wall photo.

    A caller-supplied `background` replaces the default gradient backdrop; the
    transparent variant always renders on a clear canvas.
    """
    if kind == VariantKind.PRODUCT:
        if base.wall_image_path is None:
            raise AssetError("product variant needs a wall image")
        return base
    if kind == VariantKind.GRADIENT:
        background = background_css(base.background) if base.background else GRADIENT_BACKGROUND
    else:
        background = TRANSPARENT_BACKGROUND
    return replace(base, background=background, wall_image_path=None, wall_height_inches=None)


async def render_single(
    artwork: Artwork,
    kind: VariantKind,
    options: RenderOptions,
    backend: RenderBackend,
    sink: ImageSink,
    artwork_source: Optional[str] = None,
) -> GeneratedImageVariant:
    opts = variant_options(kind, options)
    if artwork_source is None:
        artwork_source = await resolve_artwork_source(artwork.image_source)

    wall = None
    canvas_w, canvas_h = opts.canvas_width, opts.canvas_height
    if opts.wall_image_path is not None:
        wall_asset = await load_wall(opts.wall_image_path, opts.wall_height_inches)
        wall = wall_asset.reference
        background_style = f"url({wall_asset.data_uri})"
        canvas_w, canvas_h = wall.pixel_width, wall.pixel_height
    else:
        background_style = opts.background or TRANSPARENT_BACKGROUND

    geometry = compute_placement(
        artwork.width_inches,
        artwork.height_inches,
        wall=wall,
        anchor=opts.anchor,
        offset_x=opts.offset_x,
        offset_y=opts.offset_y,
        canvas_size=(canvas_w, canvas_h),
    )
    shadow_css = to_css(build_artwork_shadow(opts.shadow_layers, opts.shadow_intensity))

    request = RenderRequest(
        canvas_width=canvas_w,
        canvas_height=canvas_h,
        background_style=background_style,
        artwork_source=artwork_source,
        max_width_percent=geometry.max_width_percent,
        max_height_percent=geometry.max_height_percent,
        position_x_percent=geometry.position_x_percent,
        position_y_percent=geometry.position_y_percent,
        shadow_css=shadow_css,
        transparent=kind == VariantKind.TRANSPARENT,
        format=opts.format,
        quality=opts.quality,
    )
    data = await backend.render(request)
    if opts.max_file_size:
        data = await asyncio.to_thread(fit_to_size, data, opts.max_file_size, opts.format)

    # File names use the configured canvas size, matching previously published listings.
    image = GeneratedImageVariant(
        kind=kind,
        data=data,
        file_name=variant_file_name(
            artwork.id, artwork.title, kind.output_name, opts.canvas_width, opts.canvas_height, opts.format
        ),
        width=canvas_w,
        height=canvas_h,
        mime_type=opts.mime_type,
    )
    return await sink.put(image)


async def render_variants(
    artwork: Artwork,
    options: RenderOptions,
    backend: RenderBackend,
    sink: ImageSink,
    kinds: Iterable[VariantKind] = ALL_VARIANTS,
    trace_id: Optional[str] = None,
) -> RenderBatchResult:
    """Render each variant concurrently; one variant failing never cancels another.

    Shared preconditions (artwork dimensions and source) are checked first and
    raise for the whole batch.
    """
    logger = TaskLogger(trace_id=trace_id).bind(artwork_id=str(artwork.id))
    kinds = list(kinds)

    # Shared precondition: every variant needs valid dimensions and a source.
    compute_placement(artwork.width_inches, artwork.height_inches)
    artwork_source = await resolve_artwork_source(artwork.image_source)

    logger.info(
        "render dispatch",
        title=artwork.title,
        dimensions=f"{artwork.width_inches}x{artwork.height_inches}",
        variants=[k.value for k in kinds],
    )

    results = await asyncio.gather(
        *(render_single(artwork, kind, options, backend, sink, artwork_source=artwork_source) for kind in kinds),
        return_exceptions=True,
    )

    batch = RenderBatchResult(trace_id=logger.trace_id)
    for kind, outcome in zip(kinds, results):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                # cancellation and interpreter exits are not variant failures
                raise outcome
            batch.failures.append(
                VariantFailure(kind=kind, error_type=type(outcome).__name__, message=str(outcome))
            )
            logger.error(
                "variant failed",
                variant=kind.value,
                error_type=type(outcome).__name__,
                error=str(outcome),
            )
            continue
        batch.images.append(outcome)
        logger.info(
            "variant rendered",
            variant=kind.value,
            file_name=outcome.file_name,
            bytes=len(outcome.data),
            size=f"{outcome.width}x{outcome.height}",
        )

    logger.info("render finished", status=batch.status, failures=len(batch.failures))
    return batch
