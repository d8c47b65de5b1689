"""Real roots of linear, quadratic and cubic polynomials."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from curvekit.common import COEFF_EPS, DUPLICATE_ROOT_EPS, NEWTON_REFINE_STEPS

_TWO_PI_THIRD: float = 2.0 * math.pi / 3.0


###############################################################################
# CubicPolynomial
###############################################################################
@dataclass(frozen=True)
class CubicPolynomial:
    """Polynomial a*t^3 + b*t^2 + c*t + d."""

    a: float
    b: float
    c: float
    d: float

    def evaluate(self, t: float) -> float:
        """Value at _t_ (Horner scheme)."""
        return ((self.a * t + self.b) * t + self.c) * t + self.d

    def evaluate_derivative(self, t: float) -> float:
        """First derivative at _t_."""
        return (3.0 * self.a * t + 2.0 * self.b) * t + self.c

    @property
    def scale(self) -> float:
        """float: Largest coefficient magnitude."""
        return max(abs(self.a), abs(self.b), abs(self.c), abs(self.d))

    def __str__(self):
        return f"{self.a}t^3 + {self.b}t^2 + {self.c}t + {self.d}"


###############################################################################
# PolySolver
###############################################################################
class PolySolver:
    """Collection of static root-finding methods.

    All solvers return the distinct real roots as a sorted list. A coefficient counts
    as zero when its magnitude is below COEFF_EPS relative to the largest coefficient
    of the same call, so the same tolerance governs degree reduction and root merging.
    """

    @staticmethod
    def deduplicate(roots: Iterable[float], eps: float = DUPLICATE_ROOT_EPS) -> List[float]:
        """Sort _roots_ and collapse neighbours closer than _eps_ into one root."""
        result: List[float] = []
        for root in sorted(roots):
            if result and root - result[-1] < eps:
                continue
            result.append(root)
        return result

    @staticmethod
    def solve_linear(b: float, c: float) -> List[float]:
        """Roots of b*t + c = 0 (none if b is zero)."""
        if b == 0.0:
            return []
        return [-c / b]

    @staticmethod
    def solve_quadratic(a: float, b: float, c: float) -> List[float]:
        """
        Real roots of a*t^2 + b*t + c = 0.

        Uses the cancellation-free form q = -(b + sign(b) * sqrt(D)) / 2 with the roots
        q / a and c / q. A vanishing leading coefficient reduces to the linear case.

        Args:
            a (float): quadratic coefficient
            b (float): linear coefficient
            c (float): constant coefficient

        Returns:
            List[float]: 0, 1 or 2 sorted roots
        """
        scale = max(abs(a), abs(b), abs(c))
        if scale == 0.0 or not math.isfinite(scale):
            return []
        eps = COEFF_EPS * scale

        if abs(a) <= eps:
            if abs(b) <= eps:
                return []
            return PolySolver.solve_linear(b, c)

        discriminant = b * b - 4.0 * a * c
        if abs(discriminant) <= COEFF_EPS * max(b * b, abs(4.0 * a * c)):
            return [-b / (2.0 * a)]
        if discriminant < 0.0:
            return []

        q = -0.5 * (b + math.copysign(math.sqrt(discriminant), b))
        root1 = q / a
        root2 = c / q
        return PolySolver.deduplicate((root1, root2))

    @staticmethod
    def solve_cubic(a: float, b: float, c: float, d: float) -> List[float]:
        """
        Real roots of a*t^3 + b*t^2 + c*t + d = 0, solved analytically.

        The normalized cubic is shifted to the depressed form y^3 + p*y + q = 0
        (t = y - b / (3a)). Depending on the discriminant (q/2)^2 + (p/3)^3 the
        roots follow from
            - a triple root if p and q vanish,
            - the double-root closed form if the discriminant vanishes,
            - Cardano's formula (one real root) if it is positive,
            - the trigonometric method (three real roots) if it is negative.
        Every root is polished by Newton steps on the original polynomial and
        roots closer than DUPLICATE_ROOT_EPS are merged.

        Args:
            a (float): cubic coefficient
            b (float): quadratic coefficient
            c (float): linear coefficient
            d (float): constant coefficient

        Returns:
            List[float]: 1..3 distinct sorted roots (0..2 if the cubic degenerates)
        """
        scale = max(abs(a), abs(b), abs(c), abs(d))
        if scale == 0.0 or not math.isfinite(scale):
            return []
        if abs(a) <= COEFF_EPS * scale:
            return PolySolver.solve_quadratic(b, c, d)

        bn = b / a
        cn = c / a
        dn = d / a

        shift = bn / 3.0
        p = cn - bn * bn / 3.0
        q = 2.0 * bn * bn * bn / 27.0 - bn * cn / 3.0 + dn

        half_q = q / 2.0
        third_p = p / 3.0
        q_term = half_q * half_q
        p_term = third_p * third_p * third_p
        discriminant = q_term + p_term

        # magnitude of the terms p and q are built from
        term_scale = max(1.0, abs(bn), abs(cn), abs(dn))

        if abs(p) <= COEFF_EPS * term_scale and abs(q) <= COEFF_EPS * term_scale:
            depressed = [0.0]
        elif abs(discriminant) <= COEFF_EPS * max(q_term, abs(p_term)):
            # one simple root and one double root
            depressed = [3.0 * q / p, -1.5 * q / p]
        elif discriminant > 0.0:
            sqrt_disc = math.sqrt(discriminant)
            u = math.copysign(abs(-half_q + sqrt_disc) ** (1.0 / 3.0), -half_q + sqrt_disc)
            v = math.copysign(abs(-half_q - sqrt_disc) ** (1.0 / 3.0), -half_q - sqrt_disc)
            depressed = [u + v]
        else:
            radius = 2.0 * math.sqrt(-third_p)
            cos_arg = (3.0 * q) / (2.0 * p) * math.sqrt(-3.0 / p)
            phi = math.acos(max(-1.0, min(1.0, cos_arg))) / 3.0
            depressed = [radius * math.cos(phi - k * _TWO_PI_THIRD) for k in range(3)]

        polynomial = CubicPolynomial(1.0, bn, cn, dn)
        roots = [PolySolver._polish(polynomial, y - shift) for y in depressed]
        return PolySolver.deduplicate(roots)

    @staticmethod
    def _polish(polynomial: CubicPolynomial, root: float, steps: int = 2) -> float:
        """Improve _root_ by up to _steps_ Newton iterations if they reduce the residual."""
        value = polynomial.evaluate(root)
        for _ in range(steps):
            if value == 0.0:
                break
            slope = polynomial.evaluate_derivative(root)
            if slope == 0.0:
                break
            candidate = root - value / slope
            candidate_value = polynomial.evaluate(candidate)
            if not abs(candidate_value) < abs(value):
                break
            root, value = candidate, candidate_value
        return root

    @staticmethod
    def refine_root(
        polynomial: CubicPolynomial,
        initial_guess: float,
        interval: Optional[Tuple[float, float]] = None,
        steps: int = NEWTON_REFINE_STEPS,
    ) -> Optional[float]:
        """
        Single root by Newton-Raphson iteration t <- t - f(t) / f'(t) from _initial_guess_.

        Only meaningful when the caller knows the root near the guess is unique; use
        solve_cubic to obtain all real roots.

        Args:
            polynomial (CubicPolynomial): the polynomial
            initial_guess (float): start value
            interval (Optional[Tuple[float, float]]): clamp every iterate into this interval
            steps (int): number of Newton steps

        Returns:
            Optional[float]: the refined root, or None if the derivative vanishes before
                the iterate is within tolerance of a root or the iteration does not converge
        """
        tolerance = COEFF_EPS * max(1.0, polynomial.scale)
        t = initial_guess
        for _ in range(steps):
            value = polynomial.evaluate(t)
            if abs(value) <= tolerance:
                return t
            slope = polynomial.evaluate_derivative(t)
            if abs(slope) <= tolerance:
                return None
            t -= value / slope
            if interval is not None:
                t = max(interval[0], min(interval[1], t))
            if not math.isfinite(t):
                return None
        if abs(polynomial.evaluate(t)) <= math.sqrt(tolerance):
            return t
        return None
