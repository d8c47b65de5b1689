"""Analytic intersections of cubic Bezier curves with lines, segments, circles and rectangles."""

from __future__ import annotations

import logging
from typing import List, Optional

from curvekit.bezier import BezierCurve
from curvekit.common import INTERSECTION_EPS, POINT_EPS, SEGMENT_EPS, TANGENT_EPS
from curvekit.geom import Box, Circle, GeomMath, Line, Point, Segment
from curvekit.roots import CubicPolynomial, PolySolver

logger = logging.getLogger(__name__)


###############################################################################
# CurveIntersections
###############################################################################
class CurveIntersections:
    """Collection of static intersection queries on a BezierCurve.

    Every query substitutes the curve's per-axis cubic into the implicit equation of the
    other primitive, solves the resulting cubic with PolySolver, keeps roots within
    [-INTERSECTION_EPS, 1 + INTERSECTION_EPS] (clamped to [0, 1]) and evaluates the curve
    there. Queries never raise on geometric input: a failed solve counts as no crossing.
    """

    @staticmethod
    def _solve_in_unit_interval(polynomial: CubicPolynomial, eps: float = INTERSECTION_EPS) -> List[float]:
        """Roots of _polynomial_ within [0, 1] (eps-expanded, then clamped); [] on failure."""
        if abs(polynomial.a) < eps and abs(polynomial.b) < eps and abs(polynomial.c) < eps:
            # constant component: either no crossing or the whole curve lies on the primitive
            return []
        try:
            roots = PolySolver.solve_cubic(polynomial.a, polynomial.b, polynomial.c, polynomial.d)
        except (ArithmeticError, ValueError) as e:
            logger.debug("Root solving failed for %s: %s", polynomial, e)
            return []
        return [max(0.0, min(1.0, t)) for t in roots if -eps <= t <= 1.0 + eps]

    @staticmethod
    def line_polynomial(curve: BezierCurve, line: Line) -> CubicPolynomial:
        """
        Cubic in t whose roots are the parameters where _curve_ meets _line_.

        Vertical line x = k:       x(t) - k
        Other lines y = a*x + b:   a*x(t) - y(t) + b
        """
        px = curve.axis_polynomial(0)
        if line.is_vertical:
            return CubicPolynomial(px.a, px.b, px.c, px.d - line.vertical_x)
        py = curve.axis_polynomial(1)
        slope = line.slope
        return CubicPolynomial(
            slope * px.a - py.a,
            slope * px.b - py.b,
            slope * px.c - py.c,
            slope * px.d - py.d + line.intercept,
        )

    @staticmethod
    def line_parameters(curve: BezierCurve, line: Line) -> List[float]:
        """Sorted curve parameters of all crossings with the infinite _line_."""
        return PolySolver.deduplicate(
            CurveIntersections._solve_in_unit_interval(CurveIntersections.line_polynomial(curve, line))
        )

    @staticmethod
    def _points_at(curve: BezierCurve, parameters: List[float]) -> List[Point]:
        """Evaluate _curve_ at _parameters_ and drop points coinciding with an earlier one."""
        points: List[Point] = []
        for t in parameters:
            point = curve.evaluate(t)
            if not any(GeomMath.approx_equal(point, known, POINT_EPS) for known in points):
                points.append(point)
        return points

    @staticmethod
    def line(curve: BezierCurve, line: Line) -> List[Point]:
        """
        Intersection points of _curve_ with the infinite _line_.

        Returns:
            List[Point]: 0..3 points ordered by curve parameter
        """
        return CurveIntersections._points_at(curve, CurveIntersections.line_parameters(curve, line))

    @staticmethod
    def line_near(curve: BezierCurve, line: Line, guess: float = 0.5) -> Optional[Point]:
        """
        Single intersection with _line_ found by Newton refinement from _guess_.

        Only valid when the caller knows there is exactly one crossing (e.g. a monotonic
        piece of a curve); with several crossings the refinement converges to one of them
        without any selection guarantee. Use line() for all crossings.

        Returns:
            Optional[Point]: the crossing, or None if the refinement fails
        """
        polynomial = CurveIntersections.line_polynomial(curve, line)
        t = PolySolver.refine_root(polynomial, guess, interval=(0.0, 1.0))
        if t is None:
            return None
        return curve.evaluate(t)

    @staticmethod
    def segment(curve: BezierCurve, segment: Segment) -> List[Point]:
        """
        Intersection points of _curve_ with the bounded _segment_.

        Crossings with the carrying line are kept if their projection parameter along
        the segment lies in [-SEGMENT_EPS, 1 + SEGMENT_EPS].
        """
        if not curve.bounding_box().intersects(segment.bounding_box()):
            return []
        if segment.direction.length_squared == 0.0:
            return []

        result: List[Point] = []
        for point in CurveIntersections.line(curve, segment.to_line()):
            s = segment.parameter_of(point)
            if s is not None and -SEGMENT_EPS <= s <= 1.0 + SEGMENT_EPS:
                result.append(point)
        return result

    @staticmethod
    def segment_circle(segment: Segment, circle: Circle) -> List[Point]:
        """
        Crossings of a straight _segment_ with _circle_.

        Solves |start + s*d - center|^2 = r^2 for the segment parameter s.

        Returns:
            List[Point]: 0..2 points; a tangent contact gives one point
        """
        d = segment.direction
        len_sq = d.length_squared
        if len_sq == 0.0:
            return []

        offset = segment.start - circle.center
        a = len_sq
        b = 2.0 * d.dot(offset)
        c = offset.length_squared - circle.radius * circle.radius

        # tangent contact if the discriminant is negligible against its terms
        discriminant = b * b - 4.0 * a * c
        if abs(discriminant) <= TANGENT_EPS * max(b * b, abs(4.0 * a * c)):
            roots = [-b / (2.0 * a)]
        else:
            roots = PolySolver.solve_quadratic(a, b, c)

        result: List[Point] = []
        for s in roots:
            if -INTERSECTION_EPS <= s <= 1.0 + INTERSECTION_EPS:
                result.append(segment.start + d * s)
        return result

    @staticmethod
    def circle(curve: BezierCurve, circle: Circle, unit: Optional[float] = None) -> List[Point]:
        """
        Intersection points of _curve_ with _circle_.

        The curve is densified into straight edges of at most _unit_ length (default:
        BezierCurve.default_densify_unit()) and every edge is intersected with the circle
        analytically, which trades the exact quartic for a bounded chord error.
        """
        if not curve.bounding_box().intersects(circle.bounding_box()):
            return []

        points = curve.densify(unit if unit is not None else curve.default_densify_unit())
        result: List[Point] = []
        for prev, cur in zip(points, points[1:]):
            for hit in CurveIntersections.segment_circle(Segment(prev, cur), circle):
                # neighbouring edges share their end point
                if not any(GeomMath.approx_equal(hit, known, SEGMENT_EPS) for known in result):
                    result.append(hit)
        return result

    @staticmethod
    def _add_axis_crossings(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        axis_poly: CubicPolynomial,
        level: float,
        other_poly: CubicPolynomial,
        low: float,
        high: float,
        results: List[float],
        eps: float,
    ) -> None:
        """Append parameters where _axis_poly_ equals _level_ while _other_poly_ stays in [low, high]."""
        shifted = CubicPolynomial(axis_poly.a, axis_poly.b, axis_poly.c, axis_poly.d - level)
        for t in CurveIntersections._solve_in_unit_interval(shifted, eps):
            other = other_poly.evaluate(t)
            if low - eps <= other <= high + eps:
                results.append(t)

    @staticmethod
    def find_edge_crossings(curve: BezierCurve, box: Box, eps: float = INTERSECTION_EPS) -> List[float]:
        """
        Curve parameters where _curve_ crosses one of the four edges of _box_.

        Each edge is solved exactly as "x(t) = edge x" or "y(t) = edge y" with the
        companion coordinate checked against the perpendicular edge bounds.

        Returns:
            List[float]: sorted parameters in [0, 1], duplicates (corners) merged
        """
        px = curve.axis_polynomial(0)
        py = curve.axis_polynomial(1)
        results: List[float] = []

        CurveIntersections._add_axis_crossings(px, box.xmin, py, box.ymin, box.ymax, results, eps)
        CurveIntersections._add_axis_crossings(px, box.xmax, py, box.ymin, box.ymax, results, eps)
        CurveIntersections._add_axis_crossings(py, box.ymin, px, box.xmin, box.xmax, results, eps)
        CurveIntersections._add_axis_crossings(py, box.ymax, px, box.xmin, box.xmax, results, eps)

        return PolySolver.deduplicate(results, eps)

    @staticmethod
    def rectangle(curve: BezierCurve, box: Box) -> List[Point]:
        """
        Points where _curve_ crosses the boundary of the axis-aligned _box_.

        If the curve's control-point box does not overlap _box_ the result is empty
        and no root solving takes place.
        """
        if not curve.bounding_box().intersects(box):
            return []
        return [curve.evaluate(t) for t in CurveIntersections.find_edge_crossings(curve, box)]
