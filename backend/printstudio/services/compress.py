from __future__ import annotations

import io
import logging

from PIL import Image

logger = logging.getLogger("printstudio")

START_QUALITY = 90
QUALITY_STEP = 10
QUALITY_FLOOR = 10


def encode(img: Image.Image, fmt: str = "jpeg", quality: int = 100) -> bytes:
    """Encode with Pillow; JPEG output is flattened onto white."""
    buf = io.BytesIO()
    if fmt == "jpeg":
        if img.mode in {"RGBA", "LA"} or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            flat = Image.new("RGB", rgba.size, (255, 255, 255))
            flat.paste(rgba, mask=rgba.split()[-1])
            img = flat
        elif img.mode != "RGB":
            img = img.convert("RGB")
        img.save(buf, format="JPEG", quality=int(quality))
    else:
        img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def fit_to_size(data: bytes, max_bytes: int, fmt: str = "jpeg") -> bytes:
    """Re-encode at falling quality until the image fits `max_bytes`.

    Best effort: returns the smallest attempt when the floor is reached.
    PNG is lossless so quality steps do not apply; it is returned unchanged.
    """
    if len(data) <= max_bytes:
        return data
    if fmt != "jpeg":
        logger.warning("max_file_size ignored for lossless format", extra={"props": {"format": fmt, "bytes": len(data)}})
        return data

    with Image.open(io.BytesIO(data)) as src:
        src.load()
        img = src.copy()

    best = data
    quality = START_QUALITY
    while len(best) > max_bytes and quality > QUALITY_FLOOR:
        attempt = encode(img, fmt, quality)
        if len(attempt) < len(best):
            best = attempt
        quality -= QUALITY_STEP

    if len(best) > max_bytes:
        logger.warning(
            "could not reach size budget",
            extra={"props": {"max_bytes": max_bytes, "bytes": len(best), "quality_floor": QUALITY_FLOOR}},
        )
    return best
