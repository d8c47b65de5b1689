"""Test module for curvekit.roots

The tests are run using pytest.
These tests ensure the polynomial solvers return the distinct real roots,
including degenerate and near-degenerate coefficient sets.
"""

import math

import pytest

from curvekit.roots import CubicPolynomial, PolySolver

###############################################################################
# Quadratic Tests
###############################################################################


class TestSolveQuadratic:
    """Test class for PolySolver.solve_quadratic."""

    def test_no_real_roots(self):
        """x^2 + 1 = 0 has no real roots."""
        assert PolySolver.solve_quadratic(1.0, 0.0, 1.0) == []

    def test_two_roots(self):
        """x^2 - 3x + 2 = (x - 1)(x - 2)."""
        assert PolySolver.solve_quadratic(1.0, -3.0, 2.0) == [1.0, 2.0]

    def test_double_root(self):
        """x^2 - 2x + 1 = (x - 1)^2 gives a single root."""
        assert PolySolver.solve_quadratic(1.0, -2.0, 1.0) == [1.0]

    def test_linear_fallback(self):
        """Zero leading coefficient reduces to 2x - 4 = 0."""
        assert PolySolver.solve_quadratic(0.0, 2.0, -4.0) == [2.0]

    def test_constant_has_no_roots(self):
        """Non-zero constant and the zero polynomial have no roots."""
        assert PolySolver.solve_quadratic(0.0, 0.0, 3.0) == []
        assert PolySolver.solve_quadratic(0.0, 0.0, 0.0) == []

    def test_no_cancellation_for_small_root(self):
        """x^2 - 1e8 x + 1: the small root is 1e-8 to full relative precision."""
        roots = PolySolver.solve_quadratic(1.0, -1.0e8, 1.0)

        assert len(roots) == 2
        assert roots[0] == pytest.approx(1.0e-8, rel=1e-12)
        assert roots[1] == pytest.approx(1.0e8, rel=1e-12)

    def test_zero_root(self):
        """x^2 - 5x = x(x - 5)."""
        assert PolySolver.solve_quadratic(1.0, -5.0, 0.0) == [0.0, 5.0]


###############################################################################
# Cubic Tests
###############################################################################


class TestSolveCubic:
    """Test class for PolySolver.solve_cubic."""

    def test_three_distinct_roots(self):
        """(x - 1)(x - 2)(x - 3) = x^3 - 6x^2 + 11x - 6."""
        roots = PolySolver.solve_cubic(1.0, -6.0, 11.0, -6.0)

        assert roots == pytest.approx([1.0, 2.0, 3.0], abs=1e-12)

    def test_triple_root_returned_once(self):
        """(x - 2)^3 = x^3 - 6x^2 + 12x - 8."""
        roots = PolySolver.solve_cubic(1.0, -6.0, 12.0, -8.0)

        assert roots == pytest.approx([2.0])

    def test_scaled_triple_root_returned_once(self):
        """-4 (x - 0.3)^3 collapses to one root despite rounding."""
        r = 0.3
        roots = PolySolver.solve_cubic(-4.0, 12.0 * r, -12.0 * r * r, 4.0 * r**3)

        assert len(roots) == 1
        assert roots[0] == pytest.approx(r, abs=1e-5)

    def test_double_and_simple_root(self):
        """(x - 1)^2 (x - 2) = x^3 - 4x^2 + 5x - 2."""
        roots = PolySolver.solve_cubic(1.0, -4.0, 5.0, -2.0)

        assert roots == pytest.approx([1.0, 2.0], abs=1e-7)

    def test_single_real_root(self):
        """x^3 + x + 1 has one real root (Cardano branch)."""
        roots = PolySolver.solve_cubic(1.0, 0.0, 1.0, 1.0)

        assert len(roots) == 1
        x = roots[0]
        assert x**3 + x + 1.0 == pytest.approx(0.0, abs=1e-12)

    def test_leading_coefficient_not_one(self):
        """2(x + 1)(x - 0.5)(x - 4)."""
        a = 2.0
        r1, r2, r3 = -1.0, 0.5, 4.0
        roots = PolySolver.solve_cubic(
            a, -a * (r1 + r2 + r3), a * (r1 * r2 + r1 * r3 + r2 * r3), -a * r1 * r2 * r3
        )

        assert roots == pytest.approx([r1, r2, r3], abs=1e-12)

    def test_quadratic_fallback(self):
        """Zero cubic coefficient solves the quadratic."""
        assert PolySolver.solve_cubic(0.0, 1.0, -3.0, 2.0) == [1.0, 2.0]

    def test_zero_polynomial(self):
        """All-zero coefficients have no root set."""
        assert PolySolver.solve_cubic(0.0, 0.0, 0.0, 0.0) == []

    def test_nan_input_gives_no_roots(self):
        """Non-finite coefficients are rejected."""
        assert PolySolver.solve_cubic(math.nan, 1.0, 1.0, 1.0) == []

    def test_roots_sorted_and_distinct(self):
        """Result is ascending without duplicates."""
        roots = PolySolver.solve_cubic(-20.0, 30.0, 0.0, -5.0)

        assert roots == sorted(roots)
        assert len(set(roots)) == len(roots) == 3
        assert 0.5 == pytest.approx(roots[1])


###############################################################################
# Refinement / Helpers
###############################################################################


class TestRefineRoot:
    """Test class for PolySolver.refine_root."""

    def test_converges_from_guess(self):
        """Newton on x^3 - 2 from 1.0 finds the cube root of 2."""
        root = PolySolver.refine_root(CubicPolynomial(1.0, 0.0, 0.0, -2.0), 1.0)

        assert root == pytest.approx(2.0 ** (1.0 / 3.0))

    def test_vanishing_derivative_fails(self):
        """x^2 + 1 at its stationary point 0 cannot be refined."""
        assert PolySolver.refine_root(CubicPolynomial(0.0, 1.0, 0.0, 1.0), 0.0) is None

    def test_guess_already_root(self):
        """A stationary guess that already is a root is accepted."""
        assert PolySolver.refine_root(CubicPolynomial(0.0, 1.0, 0.0, 0.0), 0.0) == 0.0

    def test_interval_clamp(self):
        """Iterates are clamped into the interval; a root outside it is not reached."""
        root = PolySolver.refine_root(CubicPolynomial(0.0, 0.0, 1.0, -5.0), 0.5, interval=(0.0, 1.0))

        assert root is None

    def test_polynomial_evaluation(self):
        """Horner evaluation and derivative."""
        poly = CubicPolynomial(1.0, -6.0, 11.0, -6.0)

        assert poly.evaluate(2.0) == 0.0
        assert poly.evaluate_derivative(0.0) == 11.0
        assert poly.scale == 11.0


class TestDeduplicate:
    """Test class for PolySolver.deduplicate."""

    def test_merges_close_roots(self):
        """Neighbours within eps collapse onto the smaller one."""
        assert PolySolver.deduplicate([0.5, 0.2, 0.5 + 1e-12, 0.9]) == [0.2, 0.5, 0.9]

    def test_keeps_distinct_roots(self):
        """Values farther apart than eps stay."""
        assert PolySolver.deduplicate([0.0, 1e-6], eps=1e-9) == [0.0, 1e-6]

    def test_empty(self):
        """Nothing in, nothing out."""
        assert not PolySolver.deduplicate([])
