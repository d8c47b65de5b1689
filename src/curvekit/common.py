"""Central module containing constants, settings and error types for the curve kernel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

###############################################################################
# Types
###############################################################################


CurveCmds = Literal[  # Type-Definition for SvgPath-Commands used by a single cubic curve
    # MoveTo (2) - move the current point to the curve's start point (x,y)
    "M",
    # Cubic Bezier To (6) - two control points and an endpoint (x,y)
    "C",
]


###############################################################################
# Tolerances
###############################################################################

# Relative threshold below which a polynomial coefficient counts as zero
COEFF_EPS: float = 1.0e-12
# Two roots closer than this are the same root
DUPLICATE_ROOT_EPS: float = 1.0e-9
# Margin around [0, 1] when accepting curve parameters of intersections
INTERSECTION_EPS: float = 1.0e-9
# Margin around [0, 1] for the projection parameter along a segment
SEGMENT_EPS: float = 1.0e-7
# Two points closer than this (per component) are the same point
POINT_EPS: float = 1.0e-9
# Threshold for singular least-squares systems and zero chord lengths
FIT_EPS: float = 1.0e-12
# Discriminant below which a line/circle contact is a tangent point
TANGENT_EPS: float = 1.0e-14

# Sample counts
LENGTH_SAMPLES: int = 20
DENSIFY_MIN_SAMPLES: int = 20
DENSIFY_MAX_SAMPLES: int = 1 << 16
NEWTON_REFINE_STEPS: int = 10


###############################################################################
# Errors
###############################################################################


class CurveDomainError(ValueError):
    """Raised when a curve parameter lies outside [0, 1]."""


class CurveFormatError(ValueError):
    """Raised when curve text cannot be parsed."""


###############################################################################
# FitSettings
###############################################################################


@dataclass(frozen=True)
class FitSettings:
    """Settings of the iterative least-squares curve fit.

    Attributes:
        max_iterations: Number of re-parameterize/re-solve rounds (fixed, no convergence check).
        newton_iterations: Newton-Raphson steps per data point and round.
    """

    max_iterations: int = 8
    newton_iterations: int = 5

    def to_dict(self) -> dict:
        """Convert settings to a dictionary for serialization."""
        return {
            "max_iterations": self.max_iterations,
            "newton_iterations": self.newton_iterations,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FitSettings":
        """Create FitSettings from a dictionary."""
        return cls(
            max_iterations=data.get("max_iterations", 8),
            newton_iterations=data.get("newton_iterations", 5),
        )


DEFAULT_FIT_SETTINGS = FitSettings()
