# modules/polynomial.py
from __future__ import annotations
import logging

import numpy as np

from .base import RegressionFamily, RegressionResult, RegressionStrategy

logger = logging.getLogger(__name__)

RIDGE_LAMBDA = 1e-6
COEF_LIMIT = 1e6


class PolynomialRegression(RegressionStrategy):
    """
    y = c0 + c1*x + ... + cd*x^d via ridge-regularized normal equations.

    When the system is singular the fit retries one degree lower, down to a
    straight line.
    """
    family = RegressionFamily.POLYNOMIAL

    def __init__(self, period: int, degree: int = 2):
        super().__init__(period)
        if not 1 <= degree <= 5:
            raise ValueError(f"Polynomial degree must be between 1 and 5, got {degree}")
        self.degree = degree

    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        if len(xs) < 2:
            return RegressionResult((0.0,) * (self.degree + 1), 0.0)

        # no more terms than points
        degree = min(self.degree, len(xs) - 1)
        while degree >= 1:
            try:
                coefs = self._solve(xs, ys, degree)
                break
            except np.linalg.LinAlgError:
                logger.debug("Singular degree-%d system, retrying with degree %d", degree, degree - 1)
                degree -= 1
        else:
            mean = float(ys.mean())
            return RegressionResult((mean,), 1e-4)

        coefs = tuple(float(c) for c in np.clip(coefs, -COEF_LIMIT, COEF_LIMIT))
        return RegressionResult(coefs, self._rms(coefs, xs, ys))

    def evaluate(self, coefficients, x: float) -> float:
        y = 0.0
        for c in reversed(coefficients):
            y = y * x + c
        return y

    def evaluate_many(self, coefficients, xs) -> np.ndarray:
        # np.polyval wants the highest power first
        return np.polyval(list(reversed(coefficients)), np.asarray(xs, dtype=np.float64))

    def __repr__(self) -> str:
        return f"PolynomialRegression(period={self.period}, degree={self.degree})"

    @staticmethod
    def _solve(xs: np.ndarray, ys: np.ndarray, degree: int) -> np.ndarray:
        A = np.vander(xs, degree + 1, increasing=True)
        normal = A.T @ A + RIDGE_LAMBDA * np.eye(degree + 1)
        rhs = A.T @ ys
        coefs = np.linalg.solve(normal, rhs)
        if not np.all(np.isfinite(coefs)):
            raise np.linalg.LinAlgError("non-finite polynomial coefficients")
        return coefs
