"""Real polynomial value type in the power basis.

A :class:`Polynomial` stores coefficients ``[a0, a1, ..., an]`` representing
``a0 + a1*x + ... + an*x**n``. Operations never modify the receiver; each
returns a new :class:`Polynomial`.

Examples:
    >>> from polykit.polynomial import Polynomial
    >>> p = Polynomial([1.0, 1.0, 1.0])  # 1 + x + x^2
    >>> p.evaluate(2.0)
    7.0
    >>> p.derivative().coefficients.tolist()
    [1.0, 2.0]
"""

from __future__ import annotations

from math import factorial
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from polykit.exceptions import InvalidArgumentError, PolynomialError

__all__ = ["Polynomial", "EPS", "MIN_ORDER"]

#: Coefficients with magnitude below this value do not count towards the degree.
EPS = 1e-10

#: Smallest derivative/integral order accepted by the ``nth_*`` operations.
MIN_ORDER = 1


def _falling_factorial(n: int, k: int) -> int:
    """Return ``n * (n - 1) * ... * (n - k + 1)`` (1 when ``k == 0``)."""
    out = 1
    for j in range(k):
        out *= n - j
    return out


def _check_order(order: int) -> int:
    if order < MIN_ORDER:
        raise InvalidArgumentError(f"order must be at least {MIN_ORDER}; got {order}.")
    return int(order)


def _check_constants(constants: Sequence[float] | None, order: int) -> NDArray[np.float64] | None:
    if constants is None:
        return None
    arr = np.asarray(constants, dtype=float)
    if arr.ndim != 1 or arr.size != order:
        raise InvalidArgumentError(
            f"constants must contain exactly {order} values; got shape {arr.shape}."
        )
    return arr


def integration_constant_terms(constants: NDArray[np.float64] | None, order: int) -> NDArray[np.float64]:
    """Return the low-order coefficients contributed by integration constants.

    Constant ``i`` contributes ``constants[i] / i!`` to the coefficient of
    ``x**i`` of the ``order``-th integral.

    Args:
        constants: Integration constants (length ``order``) or ``None``.
        order: Integration order (>= 1).

    Returns:
        Array of length ``order`` (zeros when ``constants`` is ``None``).
    """
    if constants is None:
        return np.zeros(order, dtype=float)
    return np.array([constants[i] / factorial(i) for i in range(order)], dtype=float)


class Polynomial:
    """Polynomial with real coefficients in increasing power order."""

    def __init__(self, coefficients: ArrayLike = (0.0,)):
        """Initializes the polynomial.

        Args:
            coefficients: Sequence ``[a0, a1, ..., an]`` with at least one value.

        Raises:
            InvalidArgumentError: If ``coefficients`` is empty or not 1D.
        """
        arr = np.array(coefficients, dtype=float)
        if arr.ndim != 1 or arr.size < 1:
            raise InvalidArgumentError("a polynomial needs a 1D sequence of at least one coefficient.")
        self._coefficients = arr
        self._coefficients.flags.writeable = False

    @property
    def coefficients(self) -> NDArray[np.float64]:
        """Read-only array of coefficients ``[a0, ..., an]``."""
        return self._coefficients

    @property
    def degree(self) -> int:
        """Index of the highest coefficient whose magnitude exceeds :data:`EPS`."""
        nonzero = np.flatnonzero(np.abs(self._coefficients[1:]) > EPS)
        return int(nonzero[-1]) + 1 if nonzero.size else 0

    def __len__(self) -> int:
        return int(self._coefficients.size)

    def __repr__(self) -> str:
        return f"Polynomial({self._coefficients.tolist()!r})"

    def __call__(self, x: float) -> float:
        return self.evaluate(x)

    def __add__(self, other: Polynomial) -> Polynomial:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: Polynomial) -> Polynomial:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, other: Polynomial | float) -> Polynomial:
        if isinstance(other, Polynomial):
            return self.multiply(other)
        if isinstance(other, (int, float, np.floating, np.integer)):
            return self.multiply_by_scalar(float(other))
        return NotImplemented

    __rmul__ = __mul__

    # ---------- arithmetic ----------

    def add(self, other: Polynomial) -> Polynomial:
        """Returns ``self + other``."""
        n = max(len(self), len(other))
        out = np.zeros(n, dtype=float)
        out[: len(self)] += self._coefficients
        out[: len(other)] += other.coefficients
        return Polynomial(out)

    def subtract(self, other: Polynomial) -> Polynomial:
        """Returns ``self - other``."""
        n = max(len(self), len(other))
        out = np.zeros(n, dtype=float)
        out[: len(self)] += self._coefficients
        out[: len(other)] -= other.coefficients
        return Polynomial(out)

    def multiply(self, other: Polynomial) -> Polynomial:
        """Returns ``self * other`` (coefficient convolution)."""
        return Polynomial(np.convolve(self._coefficients, other.coefficients))

    def multiply_by_scalar(self, scalar: float) -> Polynomial:
        """Returns every coefficient multiplied by ``scalar``."""
        return Polynomial(self._coefficients * float(scalar))

    # ---------- evaluation and derivatives ----------

    def evaluate(self, x: float) -> float:
        """Evaluates the polynomial at ``x`` using Horner's scheme."""
        result = 0.0
        for c in self._coefficients[::-1]:
            result = result * x + c
        return float(result)

    def nth_derivative(self, order: int) -> Polynomial:
        """Returns the ``order``-th derivative.

        Args:
            order: Derivative order (>= 1).

        Returns:
            The derivative polynomial; ``Polynomial([0.0])`` when ``order``
            exceeds the number of coefficients minus one.

        Raises:
            InvalidArgumentError: If ``order < 1``.
        """
        order = _check_order(order)
        n = len(self)
        if order >= n:
            return Polynomial([0.0])
        out = np.array(
            [self._coefficients[i] * _falling_factorial(i, order) for i in range(order, n)],
            dtype=float,
        )
        return Polynomial(out)

    def derivative(self) -> Polynomial:
        """Returns the first derivative."""
        return self.nth_derivative(1)

    def second_derivative(self) -> Polynomial:
        """Returns the second derivative."""
        return self.nth_derivative(2)

    def evaluate_nth_derivative(self, x: float, order: int) -> float:
        """Evaluates the ``order``-th derivative at ``x``."""
        return self.nth_derivative(order).evaluate(x)

    def evaluate_derivative(self, x: float) -> float:
        """Evaluates the first derivative at ``x``."""
        return self.evaluate_nth_derivative(x, 1)

    def evaluate_second_derivative(self, x: float) -> float:
        """Evaluates the second derivative at ``x``."""
        return self.evaluate_nth_derivative(x, 2)

    # ---------- integration ----------

    def nth_integration(self, order: int, constants: Sequence[float] | None = None) -> Polynomial:
        """Returns the ``order``-th indefinite integral.

        The integration constants fill the first ``order`` coefficients:
        constant ``i`` becomes the coefficient ``constants[i] / i!`` of
        ``x**i``. Without constants those coefficients are zero.

        Args:
            order: Integration order (>= 1).
            constants: Optional integration constants, exactly ``order`` values.

        Returns:
            Polynomial with ``len(self) + order`` coefficients.

        Raises:
            InvalidArgumentError: If ``order < 1`` or ``constants`` has the
                wrong length.
        """
        order = _check_order(order)
        consts = _check_constants(constants, order)
        out = np.empty(len(self) + order, dtype=float)
        out[:order] = integration_constant_terms(consts, order)
        for i, c in enumerate(self._coefficients):
            j = i + order
            out[j] = c / _falling_factorial(j, order)
        return Polynomial(out)

    def integration(self, constant: float = 0.0) -> Polynomial:
        """Returns the first integral with the given integration constant."""
        return self.nth_integration(1, [constant])

    def nth_order_integrate_interval(
        self,
        start_x: float,
        end_x: float,
        order: int,
        constants: Sequence[float] | None = None,
    ) -> float:
        """Integrates ``order`` times and evaluates the result over ``[start_x, end_x]``.

        Args:
            start_x: Interval start.
            end_x: Interval end.
            order: Integration order (>= 1).
            constants: Optional integration constants, exactly ``order`` values.

        Returns:
            ``I(end_x) - I(start_x)`` where ``I`` is the ``order``-th integral.
        """
        integral = self.nth_integration(order, constants)
        return integral.evaluate(end_x) - integral.evaluate(start_x)

    def integrate_interval(self, start_x: float, end_x: float) -> float:
        """Returns the definite integral over ``[start_x, end_x]``."""
        return self.nth_order_integrate_interval(start_x, end_x, 1)

    # ---------- roots and extrema ----------

    def roots(self) -> NDArray[np.complex128] | None:
        """Returns the complex roots of the polynomial.

        Leading coefficients below :data:`EPS` are ignored.

        Returns:
            Array with ``degree`` complex roots, or ``None`` for degree 0.

        Raises:
            PolynomialError: If the companion-matrix eigenvalue problem fails.
        """
        degree = self.degree
        if degree == 0:
            return None
        try:
            found = np.roots(self._coefficients[: degree + 1][::-1])
        except np.linalg.LinAlgError as e:
            raise PolynomialError("root finding did not converge.") from e
        return np.asarray(found, dtype=complex)

    def _real_critical_points(self, threshold: float) -> NDArray[np.float64]:
        if threshold < 0.0:
            raise InvalidArgumentError(f"threshold must be non-negative; got {threshold}.")
        roots = self.derivative().roots()
        if roots is None:
            return np.empty(0, dtype=float)
        return roots[np.abs(roots.imag) <= threshold].real.astype(float)

    def extrema(self, threshold: float = EPS) -> NDArray[np.float64] | None:
        """Returns the locations of local minima and maxima.

        Args:
            threshold: Largest imaginary part for a derivative root to be
                considered real.

        Returns:
            Real critical points, or ``None`` when there are none.
        """
        points = self._real_critical_points(threshold)
        return points if points.size else None

    def minima(self, threshold: float = EPS) -> NDArray[np.float64] | None:
        """Returns the locations of local minima (positive second derivative)."""
        second = self.second_derivative()
        points = [x for x in self._real_critical_points(threshold) if second.evaluate(x) > 0.0]
        return np.array(points, dtype=float) if points else None

    def maxima(self, threshold: float = EPS) -> NDArray[np.float64] | None:
        """Returns the locations of local maxima (negative second derivative)."""
        second = self.second_derivative()
        points = [x for x in self._real_critical_points(threshold) if second.evaluate(x) < 0.0]
        return np.array(points, dtype=float) if points else None

    # ---------- normalisation ----------

    def trim(self) -> Polynomial:
        """Drops coefficients above :attr:`degree`."""
        return Polynomial(self._coefficients[: self.degree + 1])

    def normalize(self) -> Polynomial:
        """Scales the coefficients to unit Euclidean norm (zero stays zero)."""
        norm = float(np.linalg.norm(self._coefficients))
        if norm == 0.0:
            return Polynomial(self._coefficients)
        return Polynomial(self._coefficients / norm)

    def normalize_highest_degree_term(self) -> Polynomial:
        """Scales the coefficients so the highest-degree term equals one."""
        term = self._coefficients[self.degree]
        if term == 0.0:
            raise PolynomialError("cannot normalize the zero polynomial.")
        return Polynomial(self._coefficients / term)
