import unittest

from printstudio.domain.models import EasingCurve
from printstudio.services.easing import ALPHA_EASING, BLUR_EASING, OFFSET_EASING, evaluate


def _bezier(s, p1, p2):
    return 3 * (1 - s) ** 2 * s * p1 + 3 * (1 - s) * s ** 2 * p2 + s ** 3


class TestEasing(unittest.TestCase):
    def test_boundaries_are_exact(self):
        for curve in (ALPHA_EASING, OFFSET_EASING, BLUR_EASING, EasingCurve(0.25, 0.1, 0.25, 1.0)):
            self.assertEqual(evaluate(curve, 0.0), 0.0)
            self.assertEqual(evaluate(curve, 1.0), 1.0)

    def test_matches_parametric_curve(self):
        for curve in (ALPHA_EASING, OFFSET_EASING, EasingCurve(0.42, 0.0, 0.58, 1.0)):
            for i in range(1, 100):
                s = i / 100
                x = _bezier(s, curve.x1, curve.x2)
                y = _bezier(s, curve.y1, curve.y2)
                self.assertAlmostEqual(evaluate(curve, x), y, delta=1e-4)

    def test_flat_x_curves_stay_accurate_near_the_ends(self):
        # x(s) = s**3 or 1 - (1 - s)**3: tiny x errors would swing y noticeably
        curves = (EasingCurve(0.0, 1.5, 0.0, 1.5), EasingCurve(1.0, -0.5, 1.0, -0.5), EasingCurve(0.0, 1.0, 1.0, 0.0))
        for curve in curves:
            for s in (1e-3, 2.5e-3, 0.01, 0.2, 0.5, 0.8, 0.99, 0.9975, 0.999):
                x = _bezier(s, curve.x1, curve.x2)
                y = _bezier(s, curve.y1, curve.y2)
                self.assertAlmostEqual(evaluate(curve, x), y, delta=1e-4, msg=f"{curve} s={s}")

    def test_linear_curve_is_identity(self):
        linear = EasingCurve(0.3, 0.3, 0.7, 0.7)
        for t in (0.1, 0.33, 0.5, 0.9):
            self.assertEqual(evaluate(linear, t), t)

    def test_monotonic_increasing(self):
        values = [evaluate(OFFSET_EASING, i / 200) for i in range(201)]
        for a, b in zip(values, values[1:]):
            self.assertLessEqual(a, b + 1e-12)

    def test_rejects_x_control_points_outside_unit_interval(self):
        with self.assertRaises(ValueError):
            EasingCurve(1.2, 0.0, 0.5, 1.0)


if __name__ == "__main__":
    unittest.main()
