"""Cubic Bezier timing functions (CSS `cubic-bezier(x1, y1, x2, y2)` semantics).

The curve runs from (0, 0) to (1, 1). An input is read as the curve's x
coordinate; we solve for the curve parameter with Newton-Raphson, falling back
to bisection where the slope is too flat, and return the matching y.
"""

from __future__ import annotations

from typing import Callable

from printstudio.domain.models import EasingCurve

_NEWTON_ITERATIONS = 8
_NEWTON_MIN_SLOPE = 1e-3
# converge on the curve parameter, not on x: with flat x near the ends a small
# x error still maps to a large y error
_PARAMETER_PRECISION = 1e-12
_SUBDIVISION_MAX_ITERATIONS = 64

ALPHA_EASING = EasingCurve(0.1, 0.5, 0.9, 0.5)
OFFSET_EASING = EasingCurve(0.7, 0.1, 0.9, 0.3)
BLUR_EASING = EasingCurve(0.7, 0.1, 0.9, 0.3)


def _coefficients(p1: float, p2: float) -> tuple[float, float, float]:
    a = 1.0 - 3.0 * p2 + 3.0 * p1
    b = 3.0 * p2 - 6.0 * p1
    c = 3.0 * p1
    return a, b, c


def _sample(s: float, p1: float, p2: float) -> float:
    a, b, c = _coefficients(p1, p2)
    return ((a * s + b) * s + c) * s


def _slope(s: float, p1: float, p2: float) -> float:
    a, b, c = _coefficients(p1, p2)
    return 3.0 * a * s * s + 2.0 * b * s + c


def _solve_parameter(x: float, x1: float, x2: float) -> float:
    s = x
    for _ in range(_NEWTON_ITERATIONS):
        slope = _slope(s, x1, x2)
        if abs(slope) < _NEWTON_MIN_SLOPE:
            break
        step = (_sample(s, x1, x2) - x) / slope
        s -= step
        if not 0.0 <= s <= 1.0:
            break
        if abs(step) < _PARAMETER_PRECISION:
            return s

    # x(s) is non-decreasing for x1, x2 in [0, 1]
    lo, hi = 0.0, 1.0
    for _ in range(_SUBDIVISION_MAX_ITERATIONS):
        if hi - lo < _PARAMETER_PRECISION:
            break
        s = (lo + hi) / 2.0
        current = _sample(s, x1, x2) - x
        if current == 0.0:
            return s
        if current > 0:
            hi = s
        else:
            lo = s
    return (lo + hi) / 2.0


def evaluate(curve: EasingCurve, t: float) -> float:
    if t <= 0.0:
        return 0.0
    if t >= 1.0:
        return 1.0
    if curve.x1 == curve.y1 and curve.x2 == curve.y2:
        return t
    s = _solve_parameter(t, curve.x1, curve.x2)
    return _sample(s, curve.y1, curve.y2)


def easing(curve: EasingCurve) -> Callable[[float], float]:
    return lambda t: evaluate(curve, t)
