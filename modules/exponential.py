# modules/exponential.py
from __future__ import annotations
import logging
import math

import numpy as np

from .base import RegressionFamily, RegressionResult, RegressionStrategy
from .linear import least_squares_line

logger = logging.getLogger(__name__)

MAX_EXPONENT = 700.0


class ExponentialRegression(RegressionStrategy):
    """
    y = a * exp(b*x) - shift, fitted as a line through ln(y + shift).

    shift is 0 for strictly positive windows; otherwise the window is lifted
    so that its minimum maps to 1 before taking logs.
    """
    family = RegressionFamily.EXPONENTIAL

    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        if len(xs) < 2:
            return RegressionResult((0.0, 0.0, 0.0), 0.0)
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)

        low = float(ys.min())
        shift = 0.0 if low > 0 else 1.0 - low
        if shift:
            logger.debug("Non-positive closes in exponential window, shifting by %.6g", shift)

        intercept, slope = least_squares_line(xs, np.log(ys + shift))
        coefs = (math.exp(min(intercept, MAX_EXPONENT)), slope, shift)
        return RegressionResult(coefs, self._rms(coefs, xs, ys))

    def evaluate(self, coefficients, x: float) -> float:
        a, b, shift = coefficients
        return a * math.exp(min(b * x, MAX_EXPONENT)) - shift

    def evaluate_many(self, coefficients, xs) -> np.ndarray:
        a, b, shift = coefficients
        return a * np.exp(np.minimum(b * np.asarray(xs, dtype=np.float64), MAX_EXPONENT)) - shift
