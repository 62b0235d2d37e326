"""
Unit-root and stationarity testing.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, Tuple
from arch.unitroot import ADF, PhillipsPerron
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import kpss
import warnings
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationarityTestResult:
    """KPSS outcome. The null hypothesis is stationarity."""

    statistic: float
    p_value: float
    lags: int
    critical_values: Dict[str, float] = field(default_factory=dict)

    def is_stationary(self, alpha: float = 0.05) -> bool:
        return self.p_value >= alpha


class UnitRootAnalyzer:
    """Counts unit roots by repeated differencing under a KPSS test."""

    def __init__(self, alpha: float = 0.05, max_d: int = 2, regression: str = "c"):
        """
        Initialize the analyzer.

        Args:
            alpha: Significance level of the KPSS test
            max_d: Largest differencing order considered
            regression: 'c' for level stationarity, 'ct' for trend stationarity
        """
        self.alpha = alpha
        self.max_d = max_d
        self.regression = regression

    def kpss_test(self, series: pd.Series) -> StationarityTestResult:
        data = series.dropna()
        if len(data) < 10:
            raise ValueError("Insufficient data for KPSS test")

        # p-values outside the tabulated range are clipped to [0.01, 0.10].
        # Newer statsmodels also warns that the tuple return is changing to KPSSResult.
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', InterpolationWarning)
            warnings.simplefilter('ignore', FutureWarning)
            stat, p_value, lags, crit = kpss(data, regression=self.regression, nlags='auto')

        return StationarityTestResult(
            statistic=float(stat),
            p_value=float(p_value),
            lags=int(lags),
            critical_values={k: float(v) for k, v in crit.items()},
        )

    def ndiffs(self, series: pd.Series) -> int:
        """Smallest number of first differences after which KPSS does not reject stationarity."""
        d, _ = self.integration_order(series)
        return d

    def integration_order(self, series: pd.Series) -> Tuple[int, bool]:
        """
        Count unit roots, capped at ``max_d``.

        Returns:
            Tuple of the differencing order and whether KPSS accepts stationarity
            after that many differences. The flag is False only when the cap was hit
            and the ``max_d``-times differenced series still rejects.
        """
        data = series.dropna()

        for d in range(self.max_d + 1):
            if self.kpss_test(difference(data, d)).is_stationary(self.alpha):
                return d, True

        logger.warning(
            f"{series.name}: KPSS still rejects stationarity after {self.max_d} differences"
        )
        return self.max_d, False

    def unit_root_table(self, panel: pd.DataFrame) -> pd.DataFrame:
        """Unit-root counts with KPSS, ADF and Phillips-Perron statistics for each column."""
        rows = {}
        for column in panel.columns:
            data = panel[column].dropna()
            kpss_result = self.kpss_test(data)
            adf = ADF(data, trend='c')
            pp = PhillipsPerron(data, trend='c')
            unit_roots, stationary = self.integration_order(data)

            rows[column] = {
                'unit_roots': unit_roots,
                'stationary_after_d': stationary,
                'kpss_stat': kpss_result.statistic,
                'kpss_pvalue': kpss_result.p_value,
                'adf_stat': float(adf.stat),
                'adf_pvalue': float(adf.pvalue),
                'pp_stat': float(pp.stat),
                'pp_pvalue': float(pp.pvalue),
            }
            logger.info(f"{column}: {rows[column]['unit_roots']} unit root(s)")

        return pd.DataFrame.from_dict(rows, orient='index')


def difference(series: pd.Series, d: int) -> pd.Series:
    """Apply ``d`` first differences."""
    for _ in range(d):
        series = series.diff().dropna()
    return series


def log_transform(series: pd.Series, scale: float = 100.0) -> pd.Series:
    """Return ``scale * ln(series)``."""
    if (series.dropna() <= 0).any():
        raise ValueError(f"Log transform requires strictly positive values in {series.name}")
    name = f"{series.name}_log" if series.name else None
    return (scale * np.log(series)).rename(name)
