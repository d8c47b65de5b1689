"""Handling 2D geometries consumed by the curve kernel"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import shapely.geometry
from numpy.typing import NDArray

from curvekit.common import POINT_EPS

PointLike = Union["Point", Tuple[float, float], Sequence[float]]


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    @staticmethod
    def transform_point(
        affine_trafo: Sequence[Union[int, float]], point: Sequence[Union[int, float]]
    ) -> Tuple[float, float]:
        """
        Perform an affine transformation on the given 2D point.

        The given _affine_trafo_ is a list of 6 floats, performing an affine transformation.
        The transformation is defined as:
            | x' | = | a00 a01 b0 |   | x |
            | y' | = | a10 a11 b1 | * | y |
            | 1  | = |  0   0  1  |   | 1 |
        with
            affine_trafo = [a00, a01, a10, a11, b0, b1]
        See also shapely - Affine Transformations

        Args:
            affine_trafo (Tuple/List[float]): Affine transformation - [a00, a01, a10, a11, b0, b1]
            point (Tuple/List[float]): 2D point - (x, y)

        Returns:
            Tuple[float, float]: the transformed point
        """
        x_new = float(affine_trafo[0] * point[0] + affine_trafo[1] * point[1] + affine_trafo[4])
        y_new = float(affine_trafo[2] * point[0] + affine_trafo[3] * point[1] + affine_trafo[5])
        return (x_new, y_new)

    @staticmethod
    def rotation_trafo(angle_deg: float, origin: Tuple[float, float] = (0.0, 0.0)) -> Tuple[float, ...]:
        """
        Affine transformation [a00, a01, a10, a11, b0, b1] rotating counter-clockwise
        by _angle_deg_ degrees around _origin_.
        """
        rad = math.radians(angle_deg)
        cos_a = math.cos(rad)
        sin_a = math.sin(rad)
        ox, oy = origin[0], origin[1]
        return (
            cos_a,
            -sin_a,
            sin_a,
            cos_a,
            ox - cos_a * ox + sin_a * oy,
            oy - sin_a * ox - cos_a * oy,
        )

    @staticmethod
    def as_xy_array(points: Union[Sequence[PointLike], NDArray[np.float64]]) -> NDArray[np.float64]:
        """Convert points given as Point objects, (x, y) tuples or an array into an (n, 2) float64 array.

        Args:
            points: Sequence of points; extra columns of an array input are ignored.

        Returns:
            NDArray[np.float64]: Array of shape (n, 2)

        Raises:
            ValueError: If the input does not contain at least two coordinate columns.
        """
        if isinstance(points, np.ndarray):
            points_array = np.asarray(points, dtype=np.float64)
        else:
            points_array = np.array(
                [(p.x, p.y) if isinstance(p, Point) else (p[0], p[1]) for p in points],
                dtype=np.float64,
            )
        if points_array.size == 0:
            return np.empty((0, 2), dtype=np.float64)
        if points_array.ndim != 2 or points_array.shape[1] < 2:
            raise ValueError("Points must be given as (x, y) formatted values.")
        return points_array[:, :2]

    @staticmethod
    def approx_equal(a: Point, b: Point, eps: float = POINT_EPS) -> bool:
        """True if both components differ by less than _eps_."""
        return abs(a.x - b.x) < eps and abs(a.y - b.y) < eps


###############################################################################
# Point / Vector
###############################################################################
@dataclass(frozen=True)
class Point:
    """Position in the plane. Equality is exact component comparison."""

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vector) -> Point:
        if not isinstance(other, Vector):
            return NotImplemented
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Union[Point, Vector]):
        if isinstance(other, Point):
            return Vector(self.x - other.x, self.y - other.y)
        if isinstance(other, Vector):
            return Point(self.x - other.x, self.y - other.y)
        return NotImplemented

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to _other_."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def lerp(self, other: Point, t: float) -> Point:
        """Linear interpolation between this point (t=0) and _other_ (t=1)."""
        return Point(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    def transform_affine(self, affine_trafo: Sequence[Union[int, float]]) -> Point:
        """Apply the affine transformation [a00, a01, a10, a11, b0, b1]."""
        return Point(*GeomMath.transform_point(affine_trafo, (self.x, self.y)))


@dataclass(frozen=True)
class Vector:
    """Displacement in the plane."""

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vector) -> Vector:
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector) -> Vector:
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Vector:
        return Vector(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Vector:
        return Vector(self.x / divisor, self.y / divisor)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y)

    @property
    def length(self) -> float:
        """float: Euclidean length."""
        return math.hypot(self.x, self.y)

    @property
    def length_squared(self) -> float:
        """float: Squared Euclidean length."""
        return self.x * self.x + self.y * self.y

    def normalize(self) -> Vector:
        """Unit vector in the same direction.

        Raises:
            ValueError: If the vector has zero length.
        """
        length = self.length
        if length == 0.0:
            raise ValueError("Cannot normalize a zero-length vector.")
        return Vector(self.x / length, self.y / length)

    def dot(self, other: Vector) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector) -> float:
        """z-component of the 3D cross product."""
        return self.x * other.y - self.y * other.x


###############################################################################
# Box
###############################################################################
@dataclass
class Box:
    """
    Represents an axis-aligned rectangle.

    Attributes:
        xmin (float): The minimum x-coordinate.
        ymin (float): The minimum y-coordinate.
        xmax (float): The maximum x-coordinate.
        ymax (float): The maximum y-coordinate.
    """

    _xmin: float
    _ymin: float
    _xmax: float
    _ymax: float

    def __init__(self, xmin: float, ymin: float, xmax: float, ymax: float):
        """Initialize Box with coordinates.

        Args:
            xmin: The minimum x-coordinate
            ymin: The minimum y-coordinate
            xmax: The maximum x-coordinate
            ymax: The maximum y-coordinate
        """
        self._xmin = xmin
        self._ymin = ymin
        self._xmax = xmax
        self._ymax = ymax

        # Normalize coordinates to ensure xmin <= xmax and ymin <= ymax
        if self._xmin > self._xmax:
            self._xmin, self._xmax = self._xmax, self._xmin
        if self._ymin > self._ymax:
            self._ymin, self._ymax = self._ymax, self._ymin

    @classmethod
    def from_origin_size(cls, x: float, y: float, width: float, height: float) -> Box:
        """Create a box from its corner (x, y) and its size."""
        return cls(xmin=x, ymin=y, xmax=x + width, ymax=y + height)

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> Box:
        """Smallest box containing all _points_.

        Raises:
            ValueError: If no points are given.
        """
        if not points:
            raise ValueError("Cannot build a box from an empty point sequence.")
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(xmin=min(xs), ymin=min(ys), xmax=max(xs), ymax=max(ys))

    @property
    def xmin(self) -> float:
        """float: The minimum x-coordinate."""
        return self._xmin

    @property
    def ymin(self) -> float:
        """float: The minimum y-coordinate."""
        return self._ymin

    @property
    def xmax(self) -> float:
        """float: The maximum x-coordinate."""
        return self._xmax

    @property
    def ymax(self) -> float:
        """float: The maximum y-coordinate."""
        return self._ymax

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """The extent of the box as Tuple (xmin, ymin, xmax, ymax)."""
        return self._xmin, self._ymin, self._xmax, self._ymax

    @property
    def width(self) -> float:
        """float: The width of the box (difference between xmax and xmin)."""

        return self._xmax - self._xmin

    @property
    def height(self) -> float:
        """float: The height of the box (difference between ymax and ymin)."""

        return self._ymax - self._ymin

    @property
    def area(self) -> float:
        """float: The area of the box."""

        return self.width * self.height

    @property
    def centroid(self) -> Tuple[float, float]:
        """
        The centroid of the box.

        Returns:
            Tuple[float, float]: The coordinates of the centroid as (x, y)
        """
        return (self._xmin + self._xmax) / 2, (self._ymin + self._ymax) / 2

    def intersects(self, other: Box) -> bool:
        """True if both boxes overlap; touching edges count as overlap."""
        return (
            self._xmin <= other.xmax
            and other.xmin <= self._xmax
            and self._ymin <= other.ymax
            and other.ymin <= self._ymax
        )

    def contains_point(self, point: Point, eps: float = 0.0) -> bool:
        """True if _point_ lies inside the box expanded by _eps_."""
        return (
            self._xmin - eps <= point.x <= self._xmax + eps and self._ymin - eps <= point.y <= self._ymax + eps
        )

    def transform_affine(self, affine_trafo: Sequence[Union[int, float]]) -> Box:
        """
        Transform the Box using the given affine transformation [a00, a01, a10, a11, b0, b1].

        All four corners are transformed, so the result encloses the image of the box
        under rotations and shears as well.

        Args:
            affine_trafo (List[float]): Affine transformation [a00, a01, a10, a11, b0, b1]

        Returns:
            Box: The transformed box
        """
        (xmin, ymin, xmax, ymax) = self.extent
        corners = ((xmin, ymin), (xmax, ymin), (xmax, ymax), (xmin, ymax))
        return Box.from_points([Point(*GeomMath.transform_point(affine_trafo, corner)) for corner in corners])

    def transform_scale_translate(self, scale_factor: float, translate_x: float, translate_y: float) -> Box:
        """
        Transform the Box using the given scale and translation.

        Args:
            scale_factor (float): The scale factor.
            translate_x (float): The translation in x-direction.
            translate_y (float): The translation in y-direction.

        Returns:
            Box: The transformed box
        """
        return self.transform_affine((scale_factor, 0, 0, scale_factor, translate_x, translate_y))

    def to_shapely(self) -> shapely.geometry.Polygon:
        """The box as shapely Polygon."""
        return shapely.geometry.box(self._xmin, self._ymin, self._xmax, self._ymax)

    def __str__(self):
        """Returns a string representation of the Box instance."""
        return (
            f"Box(xmin={self.xmin}, ymin={self.ymin}, "
            f"xmax={self.xmax}, ymax={self.ymax}, "
            f"width={self.width}, height={self.height})"
        )


###############################################################################
# Line / Segment / Circle
###############################################################################
@dataclass(frozen=True)
class Line:
    """
    Infinite line, either y = slope * x + intercept or the vertical line x = vertical_x.

    Use the factory methods instead of the constructor.
    """

    slope: float = 0.0
    intercept: float = 0.0
    is_vertical: bool = False
    vertical_x: float = 0.0

    # |dx| below which a line through two points is treated as vertical
    VERTICAL_EPS = 1.0e-9

    @classmethod
    def from_points(cls, a: Point, b: Point) -> Line:
        """Line through _a_ and _b_."""
        dx = b.x - a.x
        if abs(dx) < cls.VERTICAL_EPS:
            return cls.vertical(a.x)
        slope = (b.y - a.y) / dx
        return cls(slope=slope, intercept=a.y - slope * a.x)

    @classmethod
    def from_point_direction(cls, point: Point, direction: Vector) -> Line:
        """Line through _point_ along _direction_."""
        if abs(direction.x) < cls.VERTICAL_EPS:
            return cls.vertical(point.x)
        slope = direction.y / direction.x
        return cls(slope=slope, intercept=point.y - slope * point.x)

    @classmethod
    def vertical(cls, x: float) -> Line:
        """The vertical line x = _x_."""
        return cls(is_vertical=True, vertical_x=x)

    @classmethod
    def horizontal(cls, y: float) -> Line:
        """The horizontal line y = _y_."""
        return cls(slope=0.0, intercept=y)

    def compute(self, x: float) -> float:
        """y value at _x_.

        Raises:
            ValueError: For vertical lines.
        """
        if self.is_vertical:
            raise ValueError("Cannot compute y for a vertical line.")
        return self.slope * x + self.intercept

    def distance_to(self, point: Point) -> float:
        """Perpendicular distance of _point_ to the line."""
        if self.is_vertical:
            return abs(point.x - self.vertical_x)
        return abs(self.slope * point.x - point.y + self.intercept) / math.sqrt(self.slope * self.slope + 1.0)


@dataclass(frozen=True)
class Segment:
    """Bounded straight segment from _start_ to _end_."""

    start: Point
    end: Point

    @property
    def direction(self) -> Vector:
        """Vector: end - start."""
        return self.end - self.start

    @property
    def length(self) -> float:
        """float: Length of the segment."""
        return self.start.distance_to(self.end)

    def bounding_box(self) -> Box:
        """Axis-aligned bounding box."""
        return Box(self.start.x, self.start.y, self.end.x, self.end.y)

    def to_line(self) -> Line:
        """The infinite line carrying this segment."""
        return Line.from_points(self.start, self.end)

    def parameter_of(self, point: Point) -> Optional[float]:
        """Projection parameter of _point_ along the segment (0 at start, 1 at end).

        Returns None for a zero-length segment.
        """
        d = self.direction
        len_sq = d.length_squared
        if len_sq == 0.0:
            return None
        ap = point - self.start
        return (ap.x * d.x + ap.y * d.y) / len_sq


@dataclass(frozen=True)
class Circle:
    """Circle given by _center_ and _radius_."""

    center: Point
    radius: float

    def bounding_box(self) -> Box:
        """Axis-aligned bounding box."""
        r = abs(self.radius)
        return Box(self.center.x - r, self.center.y - r, self.center.x + r, self.center.y + r)
