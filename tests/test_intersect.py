"""Test module for curvekit.intersect

The tests are run using pytest.
These tests ensure intersections with lines, segments, circles and rectangles
find every crossing inside the curve's parameter range and nothing else.
"""

import pytest

from curvekit.bezier import BezierCurve
from curvekit.geom import Box, Circle, Line, Point, Segment
from curvekit.intersect import CurveIntersections
from curvekit.roots import PolySolver


@pytest.fixture
def arch():
    """Symmetric arch from (0, 0) to (10, 0) peaking at (5, 7.5)."""
    return BezierCurve(Point(0.0, 0.0), Point(0.0, 10.0), Point(10.0, 10.0), Point(10.0, 0.0))


@pytest.fixture
def solver_calls(monkeypatch):
    """Record every call of PolySolver.solve_cubic."""
    calls = []
    original = PolySolver.solve_cubic

    def counting_solve_cubic(a, b, c, d):
        calls.append((a, b, c, d))
        return original(a, b, c, d)

    monkeypatch.setattr(PolySolver, "solve_cubic", staticmethod(counting_solve_cubic))
    return calls


###############################################################################
# Line Tests
###############################################################################


class TestLine:
    """Test class for curve/line intersections."""

    def test_vertical_line(self, arch):
        """x = 5 meets the arch once, at its apex; the other cubic roots lie outside [0, 1]."""
        (point,) = CurveIntersections.line(arch, Line.vertical(5.0))

        assert point.x == pytest.approx(5.0)
        assert point.y == pytest.approx(7.5)

    def test_vertical_line_parameters(self, arch):
        """Only the root inside the parameter range is reported."""
        assert CurveIntersections.line_parameters(arch, Line.vertical(5.0)) == pytest.approx([0.5])

    def test_horizontal_line_two_crossings(self, arch):
        """y = 2 crosses both legs, ordered along the curve."""
        points = CurveIntersections.line(arch, Line.horizontal(2.0))

        assert len(points) == 2
        assert points[0].x < points[1].x
        for point in points:
            assert point.y == pytest.approx(2.0)

    def test_horizontal_tangent(self, arch):
        """The tangent at the apex touches in exactly one point."""
        points = CurveIntersections.line(arch, Line.horizontal(7.5))

        assert points == [Point(5.0, 7.5)]

    def test_horizontal_line_miss(self, arch):
        """A line above the arch has no crossing."""
        assert not CurveIntersections.line(arch, Line.horizontal(20.0))

    def test_diagonal_line_through_start(self, arch):
        """y = x crosses at the start point and once more on the curve."""
        points = CurveIntersections.line(arch, Line.from_points(Point(0.0, 0.0), Point(1.0, 1.0)))

        assert len(points) == 2
        assert points[0].x == pytest.approx(0.0, abs=1e-9)
        assert points[0].y == pytest.approx(0.0, abs=1e-9)
        for point in points:
            assert point.y == pytest.approx(point.x, abs=1e-9)

    def test_curve_on_line(self):
        """A curve lying on the line is reported as no crossing."""
        curve = BezierCurve(Point(0.0, 0.0), Point(1.0, 0.0), Point(2.0, 0.0), Point(3.0, 0.0))

        assert not CurveIntersections.line(curve, Line.horizontal(0.0))

    def test_line_near(self, arch):
        """Newton refinement from a guess finds the unique crossing."""
        point = CurveIntersections.line_near(arch, Line.vertical(5.0), guess=0.3)

        assert point.x == pytest.approx(5.0)
        assert point.y == pytest.approx(7.5)

    def test_line_near_without_crossing(self, arch):
        """Refinement from a stationary point fails cleanly."""
        assert CurveIntersections.line_near(arch, Line.horizontal(20.0)) is None


###############################################################################
# Segment / Circle Tests
###############################################################################


class TestSegment:
    """Test class for curve/segment intersections."""

    def test_segment_crossing(self, arch):
        """A vertical segment spanning the apex."""
        (point,) = CurveIntersections.segment(arch, Segment(Point(5.0, 0.0), Point(5.0, 10.0)))

        assert point.x == pytest.approx(5.0)
        assert point.y == pytest.approx(7.5)

    def test_segment_too_short(self, arch):
        """The carrying line crosses, the segment itself does not."""
        assert not CurveIntersections.segment(arch, Segment(Point(5.0, 0.0), Point(5.0, 5.0)))

    def test_segment_touching_with_end_point(self, arch):
        """A segment starting on the curve counts."""
        assert len(CurveIntersections.segment(arch, Segment(Point(5.0, 7.5), Point(5.0, 20.0)))) == 1

    def test_zero_length_segment(self, arch):
        """A degenerate segment gives no crossing."""
        assert not CurveIntersections.segment(arch, Segment(Point(5.0, 7.5), Point(5.0, 7.5)))

    def test_far_segment_skips_root_solving(self, arch, solver_calls):
        """Disjoint bounding boxes short-circuit the query."""
        assert not CurveIntersections.segment(arch, Segment(Point(50.0, 50.0), Point(60.0, 70.0)))
        assert not solver_calls


class TestCircle:
    """Test class for segment/circle and curve/circle intersections."""

    def test_segment_circle_two_points(self):
        """A diameter-aligned segment crosses twice."""
        points = CurveIntersections.segment_circle(
            Segment(Point(-10.0, 0.0), Point(10.0, 0.0)), Circle(Point(0.0, 0.0), 5.0)
        )

        assert points == [Point(-5.0, 0.0), Point(5.0, 0.0)]

    def test_segment_circle_tangent(self):
        """A tangent segment touches once."""
        points = CurveIntersections.segment_circle(
            Segment(Point(-10.0, 5.0), Point(10.0, 5.0)), Circle(Point(0.0, 0.0), 5.0)
        )

        assert points == [Point(0.0, 5.0)]

    def test_segment_circle_miss(self):
        """A segment passing by has no crossing."""
        points = CurveIntersections.segment_circle(
            Segment(Point(-10.0, 6.0), Point(10.0, 6.0)), Circle(Point(0.0, 0.0), 5.0)
        )

        assert not points

    def test_curve_circle_two_crossings(self, arch):
        """A small circle around the apex is crossed on both sides."""
        circle = Circle(Point(5.0, 7.5), 1.0)

        points = CurveIntersections.circle(arch, circle)

        assert len(points) == 2
        assert points[0].x < 5.0 < points[1].x
        for point in points:
            assert point.distance_to(circle.center) == pytest.approx(1.0, abs=1e-9)
            # densified edges stay close to the curve
            assert abs(point.y - 7.5) < 0.2

    @pytest.mark.parametrize("scale", [1.0, 1e-4, 1e-5])
    def test_curve_circle_small_scale(self, scale):
        """Crossings are found independent of the absolute size of the geometry."""
        curve = BezierCurve(
            Point(0.0, 0.0), Point(0.0, 10.0 * scale), Point(10.0 * scale, 10.0 * scale), Point(10.0 * scale, 0.0)
        )
        circle = Circle(Point(5.0 * scale, 7.5 * scale), scale)

        points = CurveIntersections.circle(curve, circle)

        assert len(points) == 2
        for point in points:
            assert point.distance_to(circle.center) == pytest.approx(scale, rel=1e-9)

    def test_short_segment_circle(self):
        """Very short segments are still intersected."""
        points = CurveIntersections.segment_circle(
            Segment(Point(-1e-6, 0.0), Point(1e-6, 0.0)), Circle(Point(0.0, 0.0), 5e-7)
        )

        assert len(points) == 2
        assert points[0].x == pytest.approx(-5e-7)
        assert points[1].x == pytest.approx(5e-7)

    def test_curve_inside_circle(self, arch):
        """A circle enclosing the whole curve is never crossed."""
        assert not CurveIntersections.circle(arch, Circle(Point(5.0, 3.0), 100.0))

    def test_far_circle(self, arch):
        """Disjoint bounding boxes give no crossing."""
        assert not CurveIntersections.circle(arch, Circle(Point(100.0, 100.0), 5.0))


###############################################################################
# Rectangle Tests
###############################################################################


class TestRectangle:
    """Test class for curve/rectangle intersections."""

    def test_edge_crossings(self, arch):
        """A vertical band around the apex is crossed through its left and right edge."""
        box = Box(4.0, -1.0, 6.0, 10.0)

        params = CurveIntersections.find_edge_crossings(arch, box)
        points = CurveIntersections.rectangle(arch, box)

        assert len(params) == 2
        assert 0.0 < params[0] < 0.5 < params[1] < 1.0
        assert points[0].x == pytest.approx(4.0)
        assert points[1].x == pytest.approx(6.0)

    def test_curve_inside_rectangle(self, arch):
        """A curve strictly inside the box does not cross its boundary."""
        assert not CurveIntersections.rectangle(arch, Box(-1.0, -1.0, 11.0, 11.0))

    def test_disjoint_rectangle_skips_root_solving(self, arch, solver_calls):
        """No root is solved when the bounding boxes are disjoint."""
        assert not CurveIntersections.rectangle(arch, Box(100.0, 100.0, 110.0, 110.0))
        assert not solver_calls

    def test_overlapping_rectangle_solves_roots(self, arch, solver_calls):
        """Overlapping boxes go through the root solver."""
        CurveIntersections.rectangle(arch, Box(4.0, -1.0, 6.0, 10.0))

        assert solver_calls

    def test_failed_edge_solve_keeps_other_edges(self, arch, monkeypatch):
        """A solver error on one edge drops only that edge's crossings."""
        original = PolySolver.solve_cubic
        calls = []

        def failing_first_solve_cubic(a, b, c, d):
            calls.append((a, b, c, d))
            if len(calls) == 1:
                raise ArithmeticError("solver failure")
            return original(a, b, c, d)

        monkeypatch.setattr(PolySolver, "solve_cubic", staticmethod(failing_first_solve_cubic))

        (point,) = CurveIntersections.rectangle(arch, Box(4.0, -1.0, 6.0, 10.0))

        assert len(calls) > 1
        assert point.x == pytest.approx(6.0)
