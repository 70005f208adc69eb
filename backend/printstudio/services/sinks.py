from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Protocol

from printstudio.domain.models import GeneratedImageVariant

_UNSAFE = re.compile(r"[^a-z0-9_.\-]")


def slugify_title(title: str) -> str:
    """Lowercase and drop whitespace (`A Mother's Nature` -> `amothersnature`)."""
    compact = re.sub(r"\s+", "", title or "").lower()
    return _UNSAFE.sub("", compact) or "untitled"


def variant_file_name(artwork_id: str, title: str, output_name: str, width: int, height: int, fmt: str) -> str:
    safe_id = _UNSAFE.sub("", str(artwork_id).split("/")[-1].lower()) or "artwork"
    return f"{safe_id}-{slugify_title(title)}-{output_name}-{width}x{height}.{fmt}"


class ImageSink(Protocol):
    async def put(self, image: GeneratedImageVariant) -> GeneratedImageVariant: ...


class MemorySink:
    """Keeps buffers in memory; callers read `data` / `data_url`."""

    async def put(self, image: GeneratedImageVariant) -> GeneratedImageVariant:
        return image


class FileSink:
    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def _write(self, image: GeneratedImageVariant) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / image.file_name
        path.write_bytes(image.data)
        return path

    async def put(self, image: GeneratedImageVariant) -> GeneratedImageVariant:
        image.path = await asyncio.to_thread(self._write, image)
        return image
