"""Least-squares fitting of a single cubic Bezier curve to sampled points (Schneider's algorithm)."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from curvekit.bezier import BezierCurve
from curvekit.common import DEFAULT_FIT_SETTINGS, FIT_EPS, FitSettings
from curvekit.geom import GeomMath, Point, PointLike

logger = logging.getLogger(__name__)

# Newton steps stop once the denominator is below this fraction of |B'(t)|^2
_NEWTON_RELATIVE_EPS: float = 1.0e-6


###############################################################################
# CurveFitter
###############################################################################
class CurveFitter:
    """Fit one cubic Bezier curve to an ordered point sequence.

    The first and last point become the fixed end points. The two control points are
    the least-squares solution for a given parameterization; the parameterization starts
    as normalized cumulative chord length and is refined a fixed number of times by
    Newton-Raphson projection of every interior point onto the current curve.

    The iteration count is fixed (FitSettings.max_iterations) for a predictable cost;
    there is no convergence test. Use residual() to validate the result.
    """

    @staticmethod
    def third_rule(start: Point, end: Point) -> BezierCurve:
        """Straight curve with control points at one and two thirds of the chord."""
        dx = (end.x - start.x) / 3.0
        dy = (end.y - start.y) / 3.0
        return BezierCurve(start, Point(start.x + dx, start.y + dy), Point(end.x - dx, end.y - dy), end)

    @staticmethod
    def chord_length_parameters(xy_points: NDArray[np.float64]) -> Optional[NDArray[np.float64]]:
        """
        Cumulative chord length normalized to [0, 1], one value per point.

        Returns:
            Optional[NDArray[np.float64]]: parameters, or None if the total length is ~0
        """
        deltas = np.diff(xy_points, axis=0)
        cumulative = np.empty(xy_points.shape[0], dtype=np.float64)
        cumulative[0] = 0.0
        cumulative[1:] = np.cumsum(np.hypot(deltas[:, 0], deltas[:, 1]))
        total_length = float(cumulative[-1])
        if total_length <= FIT_EPS or not math.isfinite(total_length):
            return None
        cumulative /= total_length
        cumulative[-1] = 1.0
        return cumulative

    @classmethod
    def fit(
        cls,
        points: Union[Sequence[PointLike], NDArray[np.float64]],
        settings: FitSettings = DEFAULT_FIT_SETTINGS,
    ) -> BezierCurve:
        """
        Fit a cubic Bezier curve to _points_.

        Args:
            points: At least two points as Point, (x, y) tuples or array rows.
            settings: Iteration counts.

        Returns:
            BezierCurve: curve from the first to the last point

        Raises:
            ValueError: If fewer than two points are given.
        """
        xy_points = GeomMath.as_xy_array(points)
        num_points = xy_points.shape[0]
        if num_points < 2:
            raise ValueError(f"At least 2 points are required to fit a curve, got {num_points}.")

        start = Point(float(xy_points[0, 0]), float(xy_points[0, 1]))
        end = Point(float(xy_points[-1, 0]), float(xy_points[-1, 1]))

        if num_points == 2:
            return cls.third_rule(start, end)

        params = cls.chord_length_parameters(xy_points)
        if params is None:
            logger.debug("Zero chord length over %d points, using one-third rule.", num_points)
            return cls.third_rule(start, end)

        curve = cls.solve_least_squares(start, end, xy_points, params)
        for _ in range(settings.max_iterations):
            cls.reparameterize(curve, xy_points, params, settings.newton_iterations)
            curve = cls.solve_least_squares(start, end, xy_points, params)
        return curve

    @classmethod
    def solve_least_squares(
        cls,
        start: Point,
        end: Point,
        xy_points: NDArray[np.float64],
        params: NDArray[np.float64],
    ) -> BezierCurve:
        """
        Control points minimizing the squared distance of B(params[i]) to xy_points[i].

        Solves the 2x2 normal equations with Bernstein weights alpha = 3u^2t, beta = 3ut^2
        (u = 1 - t) over the interior points by Cramer's rule. A singular system (e.g. a
        single interior point) uses the minimum-norm solution A / |A|_F^2 applied to the
        right-hand side; if that degenerates too, the one-third rule is returned.
        """
        ctrl_result = cls._solve_controls(start, end, xy_points, params)
        if ctrl_result is None:
            logger.debug("Singular least-squares system, using one-third rule.")
            return cls.third_rule(start, end)
        ctrl1_x, ctrl1_y, ctrl2_x, ctrl2_y = ctrl_result
        return BezierCurve(start, Point(ctrl1_x, ctrl1_y), Point(ctrl2_x, ctrl2_y), end)

    @staticmethod
    def _solve_controls(
        start: Point,
        end: Point,
        xy_points: NDArray[np.float64],
        params: NDArray[np.float64],
    ) -> Union[Tuple[float, float, float, float], None]:
        """Control point solver for given parameterization."""
        t_values = params[1:-1]
        omt = 1.0 - t_values
        omt2 = omt * omt
        t2 = t_values * t_values

        w1 = 3.0 * omt2 * t_values
        w2 = 3.0 * omt * t2

        s11 = float(np.dot(w1, w1))
        s12 = float(np.dot(w1, w2))
        s22 = float(np.dot(w2, w2))

        interior_xy = xy_points[1:-1]
        omt3 = omt2 * omt
        t3 = t2 * t_values
        residual_x = interior_xy[:, 0] - (omt3 * start.x + t3 * end.x)
        residual_y = interior_xy[:, 1] - (omt3 * start.y + t3 * end.y)

        r1x = float(np.dot(w1, residual_x))
        r2x = float(np.dot(w2, residual_x))
        r1y = float(np.dot(w1, residual_y))
        r2y = float(np.dot(w2, residual_y))

        det = s11 * s22 - s12 * s12
        if abs(det) > FIT_EPS and math.isfinite(det):
            inv_det = 1.0 / det
            ctrl1_x = (r1x * s22 - r2x * s12) * inv_det
            ctrl2_x = (r2x * s11 - r1x * s12) * inv_det
            ctrl1_y = (r1y * s22 - r2y * s12) * inv_det
            ctrl2_y = (r2y * s11 - r1y * s12) * inv_det
        else:
            # rank-deficient symmetric A: pseudo-inverse A / |A|_F^2
            frob_sq = s11 * s11 + 2.0 * s12 * s12 + s22 * s22
            if frob_sq <= FIT_EPS or not math.isfinite(frob_sq):
                return None
            ctrl1_x = (s11 * r1x + s12 * r2x) / frob_sq
            ctrl2_x = (s12 * r1x + s22 * r2x) / frob_sq
            ctrl1_y = (s11 * r1y + s12 * r2y) / frob_sq
            ctrl2_y = (s12 * r1y + s22 * r2y) / frob_sq

        if not (
            math.isfinite(ctrl1_x) and math.isfinite(ctrl1_y) and math.isfinite(ctrl2_x) and math.isfinite(ctrl2_y)
        ):
            return None
        return (ctrl1_x, ctrl1_y, ctrl2_x, ctrl2_y)

    @staticmethod
    def reparameterize(
        curve: BezierCurve,
        xy_points: NDArray[np.float64],
        params: NDArray[np.float64],
        iterations: int = 5,
    ) -> None:
        """
        Move every interior parameter towards the closest point of _curve_ (in place).

        Newton-Raphson on f(t) = |B(t) - P|^2:
            t <- t - (B - P).B' / (B'.B' + (B - P).B'')
        clamped to [0, 1]. A point stops iterating once the denominator is negligible
        relative to |B'(t)|^2; the end parameters stay 0 and 1.
        """
        p0x, p0y, c0x, c0y, c1x, c1y, p3x, p3y = curve.control_tuple()
        px = xy_points[1:-1, 0]
        py = xy_points[1:-1, 1]
        t = params[1:-1].copy()
        active = np.ones(t.shape[0], dtype=bool)

        for _ in range(iterations):
            u = 1.0 - t
            u2 = u * u
            t2 = t * t

            bx = u2 * u * p0x + 3.0 * u2 * t * c0x + 3.0 * u * t2 * c1x + t2 * t * p3x
            by = u2 * u * p0y + 3.0 * u2 * t * c0y + 3.0 * u * t2 * c1y + t2 * t * p3y

            d1x = 3.0 * (u2 * (c0x - p0x) + 2.0 * u * t * (c1x - c0x) + t2 * (p3x - c1x))
            d1y = 3.0 * (u2 * (c0y - p0y) + 2.0 * u * t * (c1y - c0y) + t2 * (p3y - c1y))

            d2x = 6.0 * (u * (c1x - 2.0 * c0x + p0x) + t * (p3x - 2.0 * c1x + c0x))
            d2y = 6.0 * (u * (c1y - 2.0 * c0y + p0y) + t * (p3y - 2.0 * c1y + c0y))

            diff_x = bx - px
            diff_y = by - py

            numerator = diff_x * d1x + diff_y * d1y
            speed_sq = d1x * d1x + d1y * d1y
            denominator = speed_sq + diff_x * d2x + diff_y * d2y

            rel_eps = np.maximum(FIT_EPS, _NEWTON_RELATIVE_EPS * speed_sq)
            active &= np.abs(denominator) >= rel_eps
            if not active.any():
                break

            step = np.zeros_like(t)
            np.divide(numerator, denominator, out=step, where=active)
            t = np.clip(t - step, 0.0, 1.0)

        params[1:-1] = t

    @staticmethod
    def residual(
        curve: BezierCurve,
        points: Union[Sequence[PointLike], NDArray[np.float64]],
        settings: FitSettings = DEFAULT_FIT_SETTINGS,
    ) -> float:
        """
        Largest distance of _points_ to _curve_, each point measured against the curve
        at its Newton-projected parameter (starting from chord-length parameters).
        """
        xy_points = GeomMath.as_xy_array(points)
        if xy_points.shape[0] == 0:
            return 0.0
        if xy_points.shape[0] == 1:
            params = np.zeros(1, dtype=np.float64)
        else:
            params = CurveFitter.chord_length_parameters(xy_points)
            if params is None:
                params = np.linspace(0.0, 1.0, xy_points.shape[0])
            for _ in range(settings.max_iterations):
                CurveFitter.reparameterize(curve, xy_points, params, settings.newton_iterations)

        fitted = np.array([tuple(curve.evaluate(float(t))) for t in params], dtype=np.float64)
        deltas = fitted - xy_points
        return float(np.max(np.hypot(deltas[:, 0], deltas[:, 1])))
