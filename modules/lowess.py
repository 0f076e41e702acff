# modules/lowess.py
"""
Locally weighted scatterplot smoothing.

The "coefficients" of a LOWESS fit are the smoothed values themselves, one
per window position i. Evaluation places them on the grid x = i / (n - 1)
and interpolates linearly between neighbours; the end segments extend
outside [0, 1].
"""

from __future__ import annotations
import math

import numpy as np

from .base import RegressionFamily, RegressionResult, RegressionStrategy


def tricube(u: np.ndarray) -> np.ndarray:
    u = np.abs(u)
    return np.where(u < 1.0, (1.0 - u ** 3) ** 3, 0.0)


def bisquare(u: np.ndarray) -> np.ndarray:
    u = np.abs(u)
    return np.where(u < 1.0, (1.0 - u ** 2) ** 2, 0.0)


class LowessRegression(RegressionStrategy):
    family = RegressionFamily.LOWESS

    def __init__(self, period: int, bandwidth: float = 0.3, robust_iterations: int = 2):
        super().__init__(period)
        self.bandwidth = min(max(bandwidth, 0.1), 1.0)
        self.robust_iterations = min(max(robust_iterations, 1), 5)

    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        n = len(xs)
        if n < 3:
            return RegressionResult(tuple(float(y) for y in ys) or (0.0,), 0.0)

        robust = np.ones(n)
        smoothed = ys.copy()
        for it in range(self.robust_iterations):
            for i in range(n):
                h = max(self._effective_bandwidth(xs, i), 1e-10)
                w = tricube((xs - xs[i]) / h) * robust
                total = w.sum()
                smoothed[i] = (w * ys).sum() / total if total > 1e-10 else float(np.median(ys))
            if it < self.robust_iterations - 1:
                robust = self._robust_weights(ys, smoothed)

        coefs = tuple(float(v) for v in smoothed)
        dispersion = float(np.sqrt(np.mean((ys - smoothed) ** 2)))
        return RegressionResult(coefs, dispersion)

    def evaluate(self, coefficients, x: float) -> float:
        n = len(coefficients)
        if n == 1:
            return coefficients[0]
        pos = x * (n - 1)
        i = min(max(int(math.floor(pos)), 0), n - 2)
        frac = pos - i
        return coefficients[i] + (coefficients[i + 1] - coefficients[i]) * frac

    def __repr__(self) -> str:
        return f"LowessRegression(period={self.period}, bandwidth={self.bandwidth})"

    def _effective_bandwidth(self, xs: np.ndarray, i: int) -> float:
        span = xs[-1] - xs[0]
        if abs(span) < 1e-10:
            return max(self.bandwidth, 0.1)
        edge = min(xs[-1] - xs[i], xs[i] - xs[0])
        return max(self.bandwidth * span, edge * 2)

    @staticmethod
    def _robust_weights(ys: np.ndarray, fitted: np.ndarray) -> np.ndarray:
        resid = np.abs(ys - fitted)
        scale = max(float(np.median(resid)) * 6.0, 1e-10)
        return bisquare(resid / scale)
