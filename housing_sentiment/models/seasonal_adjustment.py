"""
Seasonal adjustment of monthly series.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from statsmodels.tsa.seasonal import STL, seasonal_decompose
import logging

logger = logging.getLogger(__name__)

METHODS = ("stl", "classical")
MODELS = ("additive", "multiplicative")


@dataclass(frozen=True)
class DecompositionResult:
    """Trend, seasonal and irregular components of one series."""

    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    irregular: pd.Series
    seasonally_adjusted: pd.Series
    model: str
    method: str

    def reconstruct(self) -> pd.Series:
        """Recombine the components; should match ``observed``."""
        if self.model == "multiplicative":
            return self.trend * self.seasonal * self.irregular
        return self.trend + self.seasonal + self.irregular

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'observed': self.observed,
            'trend': self.trend,
            'seasonal': self.seasonal,
            'irregular': self.irregular,
            'seasonally_adjusted': self.seasonally_adjusted,
        })


class SeasonalAdjuster:
    """Seasonal-trend decomposition with the seasonal component removed."""

    def __init__(self, method: str = "stl", model: str = "additive", period: int = 12,
                 robust: bool = True):
        """
        Initialize the seasonal adjuster.

        Args:
            method: 'stl' (LOESS based) or 'classical' (moving averages)
            model: 'additive' or 'multiplicative'
            period: Observations per seasonal cycle (12 for monthly data)
            robust: Use the robust STL fit (ignored for 'classical')
        """
        if method not in METHODS:
            raise ValueError(f"Unknown decomposition method {method!r}, expected one of {METHODS}")
        if model not in MODELS:
            raise ValueError(f"Unknown decomposition model {model!r}, expected one of {MODELS}")

        self.method = method
        self.model = model
        self.period = period
        self.robust = robust

    def fit(self, series: pd.Series) -> DecompositionResult:
        """
        Decompose the series and return its components.

        Args:
            series: Monthly series without missing values

        Returns:
            DecompositionResult
        """
        data = series.dropna().astype(float)

        if len(data) < 2 * self.period:
            raise ValueError(
                f"At least {2 * self.period} observations needed for seasonal adjustment, got {len(data)}"
            )
        if self.model == "multiplicative" and (data <= 0).any():
            raise ValueError("Multiplicative decomposition requires strictly positive values")

        logger.info(f"Seasonal adjustment of {series.name}: {self.method}/{self.model}, period={self.period}")

        if self.method == "stl":
            trend, seasonal, irregular = self._fit_stl(data)
        else:
            trend, seasonal, irregular = self._fit_classical(data)

        if self.model == "multiplicative":
            adjusted = data / seasonal
        else:
            adjusted = data - seasonal

        return DecompositionResult(
            observed=data,
            trend=trend.rename('trend'),
            seasonal=seasonal.rename('seasonal'),
            irregular=irregular.rename('irregular'),
            seasonally_adjusted=adjusted.rename(f"{series.name}_sa" if series.name else 'seasonally_adjusted'),
            model=self.model,
            method=self.method,
        )

    def _fit_stl(self, data: pd.Series):
        # Multiplicative STL is fitted on logs and mapped back
        values = np.log(data) if self.model == "multiplicative" else data
        result = STL(values, period=self.period, robust=self.robust).fit()

        trend = pd.Series(result.trend, index=data.index)
        seasonal = pd.Series(result.seasonal, index=data.index)
        irregular = pd.Series(result.resid, index=data.index)

        if self.model == "multiplicative":
            return np.exp(trend), np.exp(seasonal), np.exp(irregular)
        return trend, seasonal, irregular

    def _fit_classical(self, data: pd.Series):
        result = seasonal_decompose(data, model=self.model, period=self.period,
                                    extrapolate_trend=self.period)
        return result.trend, result.seasonal, result.resid
