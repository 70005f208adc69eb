"""Layered drop shadows for artwork previews.

A shadow is a stack of CSS box-shadow layers. Each profile spreads `count`
layers along one direction; offset, blur and alpha grow along their own
easing curves so the stack reads as one soft, physically plausible shadow.
"""

from __future__ import annotations

import math
from typing import Iterator, List, Sequence

from printstudio.domain.models import ShadowLayer, ShadowProfile
from printstudio.services.easing import ALPHA_EASING, BLUR_EASING, OFFSET_EASING, evaluate

DEFAULT_INTENSITY = 0.4
DEFAULT_LAYERS = 7


def iter_layers(count: int, profile: ShadowProfile) -> Iterator[ShadowLayer]:
    if count < 1:
        raise ValueError("count must be >= 1")
    # Angle is measured from the +y axis (sin/cos swapped), so 40deg falls down-and-right.
    angle = math.radians(profile.angle_degrees)
    for i in range(1, count + 1):
        fraction = i / count
        eased_alpha = evaluate(ALPHA_EASING, fraction)
        eased_offset = evaluate(OFFSET_EASING, fraction)
        eased_blur = evaluate(BLUR_EASING, fraction)
        yield ShadowLayer(
            x_offset=eased_offset * math.sin(angle) * profile.length,
            y_offset=eased_offset * math.cos(angle) * profile.length,
            blur=eased_blur * profile.final_blur,
            spread=profile.spread,
            alpha=eased_alpha * profile.final_transparency,
        )


def generate_layers(count: int, profile: ShadowProfile) -> List[ShadowLayer]:
    return list(iter_layers(count, profile))


def artwork_profiles(intensity: float = DEFAULT_INTENSITY) -> tuple[ShadowProfile, ShadowProfile, ShadowProfile]:
    """Return the (long, short, upper) profiles for an intensity in [0, 1]."""
    factor = max(0.0, min(1.0, float(intensity))) * 2
    long_shadow = ShadowProfile(
        angle_degrees=40,
        length=125 * factor,
        final_blur=65 * (2 - factor),
        spread=0,
        final_transparency=0.1 * factor,
    )
    short_shadow = ShadowProfile(
        angle_degrees=35,
        length=90 * factor,
        final_blur=20 * (2 - factor),
        spread=0,
        final_transparency=0.09 * factor,
    )
    upper_shadow = ShadowProfile(
        angle_degrees=-62,
        length=-80 * factor,
        final_blur=55 * (2 - factor),
        spread=0,
        final_transparency=0.08 * factor,
    )
    return long_shadow, short_shadow, upper_shadow


def build_artwork_shadow(layer_count: int = DEFAULT_LAYERS, intensity: float = DEFAULT_INTENSITY) -> List[ShadowLayer]:
    # Paint order: long first, sharp accents last.
    layers: List[ShadowLayer] = []
    for profile in artwork_profiles(intensity):
        layers.extend(iter_layers(layer_count, profile))
    return layers


def _num(value: float, precision: int = 3) -> str:
    text = f"{value:.{precision}f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text


def layer_to_css(layer: ShadowLayer) -> str:
    return (
        f"{_num(layer.x_offset)}px {_num(layer.y_offset)}px {_num(layer.blur)}px {_num(layer.spread)}px "
        f"rgba(0, 0, 0, {_num(layer.alpha, 4)})"
    )


def to_css(layers: Sequence[ShadowLayer]) -> str:
    """Serialize layers as a `box-shadow` value; empty input yields `none`."""
    if not layers:
        return "none"
    return ",\n".join(layer_to_css(layer) for layer in layers)
