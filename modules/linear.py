# modules/linear.py
from __future__ import annotations
from typing import Optional, Tuple

import numpy as np

from .base import RegressionFamily, RegressionResult, RegressionStrategy

FLAT_DISPERSION = 1e-4


def least_squares_line(xs: np.ndarray, ys: np.ndarray, weights: Optional[np.ndarray] = None) -> Tuple[float, float]:
    """(intercept, slope) of the (weighted) least squares line; flat when degenerate."""
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    w = np.ones_like(xs) if weights is None else np.asarray(weights, dtype=np.float64)
    sw = w.sum()
    swx = (w * xs).sum()
    swy = (w * ys).sum()
    swxy = (w * xs * ys).sum()
    swx2 = (w * xs * xs).sum()
    denom = sw * swx2 - swx * swx
    if abs(denom) < 1e-10:
        return float(swy / sw), 0.0
    slope = (sw * swxy - swx * swy) / denom
    intercept = (swy - slope * swx) / sw
    return float(intercept), float(slope)


class LinearRegression(RegressionStrategy):
    """y = a + b*x, closed form."""
    family = RegressionFamily.LINEAR

    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        if len(xs) < 2:
            return RegressionResult((0.0, 0.0), 0.0)
        intercept, slope = least_squares_line(xs, ys)
        coefs = (intercept, slope)
        if np.ptp(xs) == 0:
            return RegressionResult(coefs, FLAT_DISPERSION)
        return RegressionResult(coefs, self._rms(coefs, xs, ys))

    def evaluate(self, coefficients, x: float) -> float:
        return coefficients[0] + coefficients[1] * x

    def evaluate_many(self, coefficients, xs) -> np.ndarray:
        return coefficients[0] + coefficients[1] * np.asarray(xs, dtype=np.float64)
