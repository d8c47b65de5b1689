"""Cubic Bezier curve value type: evaluation, subdivision, extrema, sampling and transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import shapely.geometry
from numpy.typing import NDArray

from curvekit.common import (
    DENSIFY_MAX_SAMPLES,
    DENSIFY_MIN_SAMPLES,
    DUPLICATE_ROOT_EPS,
    LENGTH_SAMPLES,
    POINT_EPS,
    CurveDomainError,
)
from curvekit.geom import Box, GeomMath, Point, PointLike, Vector
from curvekit.roots import CubicPolynomial, PolySolver
from curvekit.svgpath import CurveSvgPath


def _unit_or_zero(vector: Vector) -> Vector:
    """Normalized _vector_, or the zero vector for zero-length input."""
    length = vector.length
    if length == 0.0:
        return Vector(0.0, 0.0)
    return vector / length


###############################################################################
# BezierCurve
###############################################################################
@dataclass(frozen=True)
class BezierCurve:
    """Cubic Bezier curve given by _start_, the control points _c0_ and _c1_ and _end_.

    B(t) = (1-t)^3*start + 3*(1-t)^2*t*c0 + 3*(1-t)*t^2*c1 + t^3*end,  t in [0, 1]

    Any four points form a valid curve. Degenerate curves (e.g. all points equal) are
    accepted; only direction-dependent queries like tangent() fail on them.
    """

    start: Point
    c0: Point
    c1: Point
    end: Point

    @classmethod
    def from_points(cls, points: Union[Sequence[PointLike], NDArray[np.float64]]) -> BezierCurve:
        """Create a curve from exactly four points given as Point, (x, y) or array rows.

        Raises:
            ValueError: If not exactly four points are given.
        """
        xy = GeomMath.as_xy_array(points)
        if xy.shape[0] != 4:
            raise ValueError(f"A cubic Bezier curve needs exactly 4 points, got {xy.shape[0]}.")
        return cls(*(Point(float(x), float(y)) for x, y in xy))

    def __iter__(self) -> Iterator[Point]:
        yield self.start
        yield self.c0
        yield self.c1
        yield self.end

    def __str__(self) -> str:
        return CurveSvgPath.format_curve(self.control_tuple())

    @classmethod
    def parse(cls, text: str) -> BezierCurve:
        """Parse "M sx sy C c0x c0y, c1x c1y, ex ey".

        Raises:
            CurveFormatError: If _text_ is not a single cubic curve.
        """
        sx, sy, c0x, c0y, c1x, c1y, ex, ey = CurveSvgPath.parse_curve_values(text)
        return cls(Point(sx, sy), Point(c0x, c0y), Point(c1x, c1y), Point(ex, ey))

    @classmethod
    def try_parse(cls, text: Optional[str]) -> Optional[BezierCurve]:
        """Like parse() but returns None instead of raising."""
        values = CurveSvgPath.try_parse_curve_values(text)
        if values is None:
            return None
        sx, sy, c0x, c0y, c1x, c1y, ex, ey = values
        return cls(Point(sx, sy), Point(c0x, c0y), Point(c1x, c1y), Point(ex, ey))

    def control_tuple(self) -> Tuple[float, ...]:
        """The eight coordinates (sx, sy, c0x, c0y, c1x, c1y, ex, ey)."""
        return (
            self.start.x,
            self.start.y,
            self.c0.x,
            self.c0.y,
            self.c1.x,
            self.c1.y,
            self.end.x,
            self.end.y,
        )

    def control_points(self) -> NDArray[np.float64]:
        """Control points as array of shape (4, 2)."""
        return np.array(self.control_tuple(), dtype=np.float64).reshape(4, 2)

    ###########################################################################
    # Evaluation
    ###########################################################################

    @staticmethod
    def _check_parameter(t: float) -> None:
        if not 0.0 <= t <= 1.0:
            raise CurveDomainError(f"Parameter t should be between 0 and 1, got {t}.")

    def evaluate(self, t: float) -> Point:
        """
        Point on the curve at parameter _t_.

        Uses the Bernstein grouping below; evaluate(0) is start and evaluate(1) is end exactly.

        Raises:
            CurveDomainError: If t is outside [0, 1].
        """
        self._check_parameter(t)

        omt = 1.0 - t
        omt2 = omt * omt
        omt3 = omt2 * omt
        t2 = t * t
        t3 = t2 * t

        x = omt3 * self.start.x + 3.0 * omt2 * t * self.c0.x + 3.0 * omt * t2 * self.c1.x + t3 * self.end.x
        y = omt3 * self.start.y + 3.0 * omt2 * t * self.c0.y + 3.0 * omt * t2 * self.c1.y + t3 * self.end.y
        return Point(x, y)

    def derivative(self, t: float) -> Vector:
        """First derivative B'(t) = 3[(1-t)^2(c0-start) + 2(1-t)t(c1-c0) + t^2(end-c1)]."""
        self._check_parameter(t)
        omt = 1.0 - t
        w0 = omt * omt
        w1 = 2.0 * omt * t
        w2 = t * t
        dx = 3.0 * (w0 * (self.c0.x - self.start.x) + w1 * (self.c1.x - self.c0.x) + w2 * (self.end.x - self.c1.x))
        dy = 3.0 * (w0 * (self.c0.y - self.start.y) + w1 * (self.c1.y - self.c0.y) + w2 * (self.end.y - self.c1.y))
        return Vector(dx, dy)

    def second_derivative(self, t: float) -> Vector:
        """Second derivative B''(t) = 6[(1-t)(c1-2c0+start) + t(end-2c1+c0)]."""
        self._check_parameter(t)
        omt = 1.0 - t
        ddx = 6.0 * (omt * (self.c1.x - 2.0 * self.c0.x + self.start.x) + t * (self.end.x - 2.0 * self.c1.x + self.c0.x))
        ddy = 6.0 * (omt * (self.c1.y - 2.0 * self.c0.y + self.start.y) + t * (self.end.y - 2.0 * self.c1.y + self.c0.y))
        return Vector(ddx, ddy)

    def tangent(self, t: float) -> Vector:
        """Normalized tangent direction at _t_.

        Raises:
            ValueError: If the derivative vanishes at _t_ (e.g. degenerate curves).
        """
        return self.derivative(t).normalize()

    def axis_polynomial(self, axis: int) -> CubicPolynomial:
        """Power-basis coefficients of the x (axis=0) or y (axis=1) component."""
        p0, p1, p2, p3 = (self.start, self.c0, self.c1, self.end)
        if axis == 0:
            v0, v1, v2, v3 = p0.x, p1.x, p2.x, p3.x
        else:
            v0, v1, v2, v3 = p0.y, p1.y, p2.y, p3.y
        return CubicPolynomial(
            a=-v0 + 3.0 * v1 - 3.0 * v2 + v3,
            b=3.0 * v0 - 6.0 * v1 + 3.0 * v2,
            c=-3.0 * v0 + 3.0 * v1,
            d=v0,
        )

    ###########################################################################
    # Subdivision
    ###########################################################################

    def split(self, t: float) -> Tuple[BezierCurve, BezierCurve]:
        """
        De Casteljau subdivision at _t_.

        Returns:
            Tuple[BezierCurve, BezierCurve]: (left, right) with left.end == right.start
        """
        q0 = self.start.lerp(self.c0, t)
        q1 = self.c0.lerp(self.c1, t)
        q2 = self.c1.lerp(self.end, t)
        r0 = q0.lerp(q1, t)
        r1 = q1.lerp(q2, t)
        s = r0.lerp(r1, t)
        return BezierCurve(self.start, q0, r0, s), BezierCurve(s, r1, q2, self.end)

    def sub_curve(self, t0: float, t1: float) -> BezierCurve:
        """
        Portion of the curve between the parameters _t0_ and _t1_.

        Raises:
            CurveDomainError: If not 0 <= t0 <= t1 <= 1.
        """
        self._check_parameter(t0)
        self._check_parameter(t1)
        if t0 > t1:
            raise CurveDomainError(f"Sub-curve needs t0 <= t1, got t0={t0}, t1={t1}.")

        if t0 == 0.0 and t1 == 1.0:
            return self
        if t0 == 0.0:
            return self.split(t1)[0]
        if t0 == 1.0:
            return BezierCurve(self.end, self.end, self.end, self.end)
        right = self.split(t0)[1]
        if t1 == 1.0:
            return right
        return right.split((t1 - t0) / (1.0 - t0))[0]

    ###########################################################################
    # Extrema and bounds
    ###########################################################################

    def extremum_parameters(self) -> List[float]:
        """Sorted parameters in [0, 1] where the x or y component has a zero derivative."""
        d0 = self.c0 - self.start
        d1 = self.c1 - self.c0
        d2 = self.end - self.c1
        # derivative as quadratic Bezier with control vectors 3*d0, 3*d1, 3*d2
        a = (d2 - d1 * 2.0 + d0) * 3.0
        b = (d1 - d0) * 6.0
        c = d0 * 3.0

        candidates = PolySolver.solve_quadratic(a.x, b.x, c.x) + PolySolver.solve_quadratic(a.y, b.y, c.y)
        return PolySolver.deduplicate((t for t in candidates if 0.0 <= t <= 1.0), DUPLICATE_ROOT_EPS)

    def extremum_points(self) -> List[Point]:
        """Points of the curve where x or y attains a local extremum."""
        points: List[Point] = []
        for t in self.extremum_parameters():
            point = self.evaluate(t)
            if not any(GeomMath.approx_equal(point, known) for known in points):
                points.append(point)
        return points

    def bounding_box(self) -> Box:
        """Conservative bounding box of the four control points."""
        return Box.from_points([self.start, self.c0, self.c1, self.end])

    def tight_bounding_box(self) -> Box:
        """Exact bounding box from the end points and the extremum points."""
        return Box.from_points([self.start, self.end] + self.extremum_points())

    ###########################################################################
    # Sampling
    ###########################################################################

    def polygonize_inplace(
        self,
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Sample the curve at steps+1 uniform parameters directly into a pre-allocated buffer.

        The buffer stays owned by the caller; nothing is retained after the call.

        Args:
            steps: Number of segments to divide the curve into
            output_buffer: Pre-allocated buffer with at least 2 columns to write (x, y) into
            start_index: Starting index in output_buffer
            skip_first: If True, skip writing the first point (to avoid duplication)

        Returns:
            Number of points written to buffer
        """
        if steps < 1:
            raise ValueError(f"Polygonization needs at least one step, got {steps}.")

        # Create parameter array
        t = np.linspace(0.0, 1.0, steps + 1, dtype=np.float64)
        if skip_first:
            t = t[1:]  # Skip t=0, but keep t=1.0

        # Cubic Bezier basis functions
        omt = 1.0 - t
        omt2 = omt * omt
        omt3 = omt2 * omt
        t2 = t * t
        t3 = t2 * t

        # Write directly to output buffer
        end_idx = start_index + len(t)
        output_buffer[start_index:end_idx, 0] = (
            omt3 * self.start.x + 3.0 * omt2 * t * self.c0.x + 3.0 * omt * t2 * self.c1.x + t3 * self.end.x
        )
        output_buffer[start_index:end_idx, 1] = (
            omt3 * self.start.y + 3.0 * omt2 * t * self.c0.y + 3.0 * omt * t2 * self.c1.y + t3 * self.end.y
        )
        return len(t)

    def polygonize(self, steps: int) -> NDArray[np.float64]:
        """
        Polygonize the curve into _steps_ line segments.

        Returns:
            NDArray[np.float64] of shape (steps+1, 2)
        """
        result = np.empty((steps + 1, 2), dtype=np.float64)
        self.polygonize_inplace(steps, result, start_index=0, skip_first=False)
        return result

    def length(self, samples: int = LENGTH_SAMPLES) -> float:
        """
        Arc length approximated by the chord sum of _samples_ uniform segments.

        Not adaptive: the error is a few percent for curves without sharp cusps.
        """
        deltas = np.diff(self.polygonize(samples), axis=0)
        return float(np.sum(np.hypot(deltas[:, 0], deltas[:, 1])))

    def control_polygon_length(self) -> float:
        """Length of the polyline start - c0 - c1 - end (an upper bound of the arc length)."""
        return self.start.distance_to(self.c0) + self.c0.distance_to(self.c1) + self.c1.distance_to(self.end)

    def densify(self, unit: float = 1.0) -> List[Point]:
        """
        Resample the curve into points spaced _unit_ apart along the arc length.

        The curve is oversampled (four samples per _unit_ of control polygon length,
        at least DENSIFY_MIN_SAMPLES and at most DENSIFY_MAX_SAMPLES), consecutive
        coincident samples are dropped and a point is emitted by linear interpolation
        every time the accumulated chord length reaches a multiple of _unit_. The end
        point is always included, so the last interval may be shorter than _unit_.

        Raises:
            ValueError: If unit is not positive.
        """
        if not unit > 0.0:
            raise ValueError(f"Densify unit must be positive, got {unit}.")

        ctrl_len = self.control_polygon_length()
        oversamples = min(DENSIFY_MAX_SAMPLES, max(DENSIFY_MIN_SAMPLES, int(math.ceil(ctrl_len / unit)) * 4))
        samples = self.polygonize(oversamples)

        # Drop consecutive coincident samples
        step = np.abs(np.diff(samples, axis=0))
        keep = np.ones(samples.shape[0], dtype=bool)
        keep[1:] = (step[:, 0] >= POINT_EPS) | (step[:, 1] >= POINT_EPS)
        samples = samples[keep]

        result = [Point(float(samples[0, 0]), float(samples[0, 1]))]
        if samples.shape[0] > 1:
            deltas = np.diff(samples, axis=0)
            chords = np.hypot(deltas[:, 0], deltas[:, 1])
            cumulative = np.concatenate(([0.0], np.cumsum(chords)))

            emit_count = int(math.floor(cumulative[-1] / unit))
            if emit_count > 0:
                targets = unit * np.arange(1, emit_count + 1, dtype=np.float64)
                idx = np.searchsorted(cumulative, targets, side="left")
                idx = np.clip(idx, 1, samples.shape[0] - 1)
                frac = (targets - cumulative[idx - 1]) / chords[idx - 1]
                xs = samples[idx - 1, 0] + deltas[idx - 1, 0] * frac
                ys = samples[idx - 1, 1] + deltas[idx - 1, 1] * frac
                result.extend(Point(float(x), float(y)) for x, y in zip(xs, ys))

        # the curve end replaces an interpolated point that coincides with it
        last = self.end
        if not GeomMath.approx_equal(result[-1], last):
            result.append(last)
        elif len(result) > 1:
            result[-1] = last
        return result

    def default_densify_unit(self) -> float:
        """Spacing used when approximating the curve by straight edges: min(1, length/64)."""
        length = self.length()
        if length <= 0.0:
            return 1.0
        return min(1.0, length / 64.0)

    def to_linestring(self, unit: Optional[float] = None) -> shapely.geometry.LineString:
        """Densified curve as shapely LineString (for polygon operations outside the kernel)."""
        points = self.densify(unit if unit is not None else self.default_densify_unit())
        if len(points) == 1:
            points = points * 2
        return shapely.geometry.LineString([(p.x, p.y) for p in points])

    ###########################################################################
    # Transforms
    ###########################################################################

    def translate(self, vector: Vector) -> BezierCurve:
        """Curve moved by _vector_."""
        return BezierCurve(self.start + vector, self.c0 + vector, self.c1 + vector, self.end + vector)

    def transform_affine(self, affine_trafo: Sequence[Union[int, float]]) -> BezierCurve:
        """
        Transform all control points using the affine transformation [a00, a01, a10, a11, b0, b1].

        Bezier curves are affine invariant, so the result is the exact image of the curve.
        """
        return BezierCurve(*(p.transform_affine(affine_trafo) for p in self))

    def scale(self, scale_x: float, scale_y: Optional[float] = None) -> BezierCurve:
        """Curve scaled about the origin (uniformly if _scale_y_ is None)."""
        scale_y = scale_x if scale_y is None else scale_y
        return self.transform_affine((scale_x, 0.0, 0.0, scale_y, 0.0, 0.0))

    def rotate(self, angle_deg: float, origin: Point = Point(0.0, 0.0)) -> BezierCurve:
        """Curve rotated counter-clockwise by _angle_deg_ degrees around _origin_."""
        return self.transform_affine(GeomMath.rotation_trafo(angle_deg, (origin.x, origin.y)))

    ###########################################################################
    # Construction
    ###########################################################################

    @classmethod
    def smooth_chain(cls, points: Sequence[Point], coef: float = 0.5) -> List[BezierCurve]:
        """
        Chain of curves through _points_ with matching tangent directions at the joints.

        Interior control points follow the direction of the neighbouring chord
        (p[i+1] - p[i-1]) scaled by _coef_ times the segment length; the first and last
        curve use the adjacent segment itself on their open side. Coincident neighbours
        give zero-length handles instead of failing.

        Args:
            points: 0..n points; fewer than two points give no curve
            coef: handle length relative to the segment length

        Returns:
            List[BezierCurve]: len(points) - 1 curves
        """
        count = len(points)
        if count < 2:
            return []

        curves: List[BezierCurve] = []
        p0, p1 = points[0], points[1]
        d = p1 - p0
        if count >= 3:
            direction = _unit_or_zero(points[2] - p0)
            curves.append(cls(p0, p0 + d * coef, p1 - direction * (coef * d.length), p1))
        else:
            curves.append(cls(p0, p0 + d * coef, p1 - d * coef, p1))

        for i in range(count - 3):
            q0, q1, q2, q3 = points[i], points[i + 1], points[i + 2], points[i + 3]
            dir0 = _unit_or_zero(q2 - q0)
            dir1 = _unit_or_zero(q3 - q1)
            span = (q2 - q1).length
            curves.append(cls(q1, q1 + dir0 * (coef * span), q2 - dir1 * (coef * span), q2))

        if count >= 3:
            q1, q2, q3 = points[-3], points[-2], points[-1]
            d = q3 - q2
            direction = _unit_or_zero(q3 - q1)
            curves.append(cls(q2, q2 + direction * (coef * d.length), q3 - d * coef, q3))

        return curves
