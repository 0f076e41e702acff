# modules/weighted.py
from __future__ import annotations

import numpy as np

from .base import RegressionFamily, RegressionResult, RegressionStrategy
from .linear import FLAT_DISPERSION, least_squares_line


def recency_weights(n: int) -> np.ndarray:
    """exp(i / n): the most recent bar weighs e times the oldest."""
    return np.exp(np.arange(n, dtype=np.float64) / n)


class WeightedRegression(RegressionStrategy):
    """Exponentially recency-weighted least squares line."""
    family = RegressionFamily.WEIGHTED

    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        n = len(xs)
        if n < 2:
            return RegressionResult((0.0, 0.0), 0.0)
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        w = recency_weights(n)
        coefs = least_squares_line(xs, ys, w)
        if np.ptp(xs) == 0:
            return RegressionResult(coefs, FLAT_DISPERSION)

        resid = ys - self.evaluate_many(coefs, xs)
        dispersion = float(np.sqrt((w * resid ** 2).sum() / w.sum()))
        return RegressionResult(coefs, dispersion)

    def evaluate(self, coefficients, x: float) -> float:
        return coefficients[0] + coefficients[1] * x

    def evaluate_many(self, coefficients, xs) -> np.ndarray:
        return coefficients[0] + coefficients[1] * np.asarray(xs, dtype=np.float64)
