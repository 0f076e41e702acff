# modules/base.py
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np
import pandas as pd


class RegressionFamily(str, Enum):
    LINEAR = "linear"
    POLYNOMIAL = "polynomial"
    LOGARITHMIC = "logarithmic"
    EXPONENTIAL = "exponential"
    WEIGHTED = "weighted"
    LOWESS = "lowess"


@dataclass(frozen=True)
class RegressionResult:
    """Fitted coefficients plus the dispersion (RMS residual) of the fit."""
    coefficients: Tuple[float, ...]
    dispersion: float


class RegressionStrategy(ABC):
    """Fits a window of closes over normalized xs in [0, 1)."""
    family: RegressionFamily = RegressionFamily.LINEAR

    def __init__(self, period: int):
        self.period = period

    @abstractmethod
    def fit(self, xs: np.ndarray, ys: np.ndarray) -> RegressionResult:
        pass

    @abstractmethod
    def evaluate(self, coefficients: Tuple[float, ...], x: float) -> float:
        pass

    def evaluate_many(self, coefficients: Tuple[float, ...], xs) -> np.ndarray:
        return np.array([self.evaluate(coefficients, float(x)) for x in xs], dtype=np.float64)

    def _rms(self, coefficients: Tuple[float, ...], xs: np.ndarray, ys: np.ndarray) -> float:
        fitted = self.evaluate_many(coefficients, xs)
        resid = np.asarray(ys, dtype=np.float64) - fitted
        value = float(np.sqrt(np.mean(resid ** 2)))
        if not np.isfinite(value):
            # 10% of the price range
            span = float(np.max(ys) - np.min(ys))
            return span * 0.1 if span > 0 else 1e-4
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(period={self.period})"


class ContextModule(ABC):
    """Produces context features only."""
    name: str = "context"

    @abstractmethod
    def compute_features(self, df: pd.DataFrame) -> pd.DataFrame:
        pass
