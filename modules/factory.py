# modules/factory.py
from __future__ import annotations
from typing import Union

from .base import RegressionFamily, RegressionStrategy
from .exponential import ExponentialRegression
from .linear import LinearRegression
from .logarithmic import LogarithmicRegression
from .lowess import LowessRegression
from .polynomial import PolynomialRegression
from .weighted import WeightedRegression

_STRATEGIES = {
    RegressionFamily.LINEAR: LinearRegression,
    RegressionFamily.LOGARITHMIC: LogarithmicRegression,
    RegressionFamily.EXPONENTIAL: ExponentialRegression,
    RegressionFamily.WEIGHTED: WeightedRegression,
    RegressionFamily.LOWESS: LowessRegression,
}


def create_regression(
    family: Union[RegressionFamily, str],
    period: int,
    degree: int = 2,
) -> RegressionStrategy:
    """Build the strategy for (family, period, degree); degree only applies to polynomials."""
    family = RegressionFamily(family)
    if family is RegressionFamily.POLYNOMIAL:
        return PolynomialRegression(period, degree)
    return _STRATEGIES[family](period)


def list_families():
    return [f.value for f in RegressionFamily]
