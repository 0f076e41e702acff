# modules/logarithmic.py
from __future__ import annotations

import numpy as np

from .base import RegressionFamily, RegressionResult, RegressionStrategy
from .linear import least_squares_line


def _log_x(xs):
    return np.log(np.maximum(xs, 1e-10) + 1.0)


class LogarithmicRegression(RegressionStrategy):
    """y = a + b*ln(x + 1); x is floored at 1e-10."""
    family = RegressionFamily.LOGARITHMIC

    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        if len(xs) < 2:
            return RegressionResult((0.0, 0.0), 0.0)
        xs = np.asarray(xs, dtype=np.float64)
        coefs = least_squares_line(_log_x(xs), ys)
        return RegressionResult(coefs, self._rms(coefs, xs, ys))

    def evaluate(self, coefficients, x: float) -> float:
        return coefficients[0] + coefficients[1] * float(_log_x(x))

    def evaluate_many(self, coefficients, xs) -> np.ndarray:
        return coefficients[0] + coefficients[1] * _log_x(np.asarray(xs, dtype=np.float64))
