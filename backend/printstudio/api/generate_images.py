from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from printstudio.core.config import get_settings
from printstudio.core.errors import PrintStudioError
from printstudio.domain.models import Anchor, Artwork, RenderOptions
from printstudio.services.html_renderer import RenderBackend, get_renderer
from printstudio.services.orchestrator import render_variants
from printstudio.services.sinks import MemorySink

router = APIRouter(tags=["images"])
logger = logging.getLogger("printstudio")


def get_backend() -> RenderBackend:
    return get_renderer(timeout_ms=get_settings().render_timeout_ms)


@router.post("/generate-images")
async def generate_images(
    image: UploadFile = File(..., description="Artwork image"),
    id: str = Form(""),
    title: str = Form(...),
    width_inches: float = Form(..., description="Artwork width (in)"),
    height_inches: float = Form(..., description="Artwork height (in)"),
    intensity: Optional[float] = Form(None, description="Shadow intensity 0..1"),
    position: str = Form("center", description="center | top | bottom | x,y"),
    offset_x: float = Form(0.0),
    offset_y: float = Form(0.0),
    background: Optional[str] = Form(None, description="Backdrop for the gradient image: CSS color, gradient or image URL"),
    backend: RenderBackend = Depends(get_backend),
):
    settings = get_settings()
    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="Invalid file: file is empty")

    try:
        options = RenderOptions(
            canvas_width=settings.canvas_width,
            canvas_height=settings.canvas_height,
            wall_image_path=settings.wall_image_path,
            wall_height_inches=settings.wall_height_inches,
            anchor=Anchor.parse(position),
            offset_x=offset_x,
            offset_y=offset_y,
            background=background or None,
            shadow_intensity=settings.shadow_intensity if intensity is None else intensity,
        )
        artwork = Artwork(
            id=id or uuid.uuid4().hex[:12],
            title=title,
            image_source=data,
            width_inches=width_inches,
            height_inches=height_inches,
        )
        result = await render_variants(artwork, options, backend, MemorySink())
    except PrintStudioError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    failures = [
        {"type": f.kind.value, "error_type": f.error_type, "message": f.message}
        for f in result.failures
    ]
    if not result.images:
        logger.error("all variants failed", extra={"trace_id": result.trace_id})
        raise HTTPException(status_code=502, detail={"error": "Failed to generate images", "failures": failures})

    return {
        "trace_id": result.trace_id,
        "status": result.status,
        "images": [
            {"type": img.kind.value, "fileName": img.file_name, "dataUrl": img.data_url}
            for img in result.images
        ],
        "failures": failures,
    }
