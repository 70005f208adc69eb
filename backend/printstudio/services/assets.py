from __future__ import annotations

import asyncio
import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from printstudio.core.errors import AssetError, ConfigurationError
from printstudio.domain.models import WallReference


@dataclass(frozen=True)
class WallAsset:
    reference: WallReference
    data_uri: str


def bytes_to_data_uri(data: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64," + base64.b64encode(data).decode("ascii")


def sniff_mime_type(data: bytes) -> str:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data.startswith(b"GIF8"):
        return "image/gif"
    return "image/jpeg"


def file_to_data_uri(path: Path) -> str:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise AssetError(f"cannot read image file {path}: {exc}") from exc
    mime_type = mimetypes.guess_type(path.name)[0] or sniff_mime_type(data)
    return bytes_to_data_uri(data, mime_type)


def _load_wall(path: Path, physical_height_inches: float) -> WallAsset:
    path = Path(path)
    if not path.is_file():
        raise AssetError(f"wall image not found at path: {path}")
    try:
        with Image.open(path) as img:
            width, height = img.size
    except (OSError, UnidentifiedImageError) as exc:
        raise AssetError(f"wall image unreadable: {path}: {exc}") from exc
    return WallAsset(
        reference=WallReference(
            pixel_width=int(width),
            pixel_height=int(height),
            physical_height_inches=physical_height_inches,
        ),
        data_uri=file_to_data_uri(path),
    )


async def load_wall(path: Path, physical_height_inches: float) -> WallAsset:
    return await asyncio.to_thread(_load_wall, path, physical_height_inches)


def _resolve_artwork_source(source: Union[bytes, str, Path]) -> str:
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise ConfigurationError("artwork image is empty")
        data = bytes(source)
        return bytes_to_data_uri(data, sniff_mime_type(data))
    if isinstance(source, Path):
        return file_to_data_uri(source)
    if not isinstance(source, str) or not source.strip():
        raise ConfigurationError("artwork image source is missing")
    value = source.strip()
    if value.startswith("data:") or value.startswith("http://") or value.startswith("https://"):
        return value
    return file_to_data_uri(Path(value))


async def resolve_artwork_source(source: Union[bytes, str, Path]) -> str:
    """Return something an <img src> accepts: a data URI or an http(s) URL."""
    if isinstance(source, (str, Path)) and not str(source).startswith(("data:", "http://", "https://")):
        return await asyncio.to_thread(_resolve_artwork_source, source)
    return _resolve_artwork_source(source)
