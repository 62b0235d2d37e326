"""
Engle-Granger style cointegration testing for two series.

The static regression residuals are tested for stationarity with KPSS. The
exact statistic and p-value are kept so that a result near the cutoff can be
judged by the reader instead of being forced into pass/fail.
"""

import numpy as np
import pandas as pd
import statsmodels.api as sm
from typing import Any, Dict, Optional
from arch.unitroot import engle_granger
from statsmodels.tsa.vector_ar.vecm import coint_johansen
import logging

from .unit_root import UnitRootAnalyzer

logger = logging.getLogger(__name__)


class EngleGrangerTest:
    """Two-step cointegration test: OLS with intercept, then a residual stationarity test."""

    def __init__(self, analyzer: Optional[UnitRootAnalyzer] = None):
        self.analyzer = analyzer or UnitRootAnalyzer()
        self.fitted = False
        self.results = None
        self.residuals = None
        self.residual_test = None
        self.tau_test = None

    def fit(self, dependent: pd.Series, regressor: pd.Series):
        """
        Fit the static regression and test its residuals.

        Args:
            dependent: Left-hand side series (e.g. seasonally adjusted sentiment)
            regressor: Right-hand side series (e.g. log house prices)
        """
        data = pd.concat([dependent, regressor], axis=1, join='inner').dropna()
        if len(data) < 30:
            raise ValueError("Insufficient overlapping observations for cointegration test")

        y = data.iloc[:, 0]
        X = sm.add_constant(data.iloc[:, 1])

        self.results = sm.OLS(y, X).fit()
        self.residuals = self.results.resid.rename('cointegration_residual')
        self.residual_test = self.analyzer.kpss_test(self.residuals)

        # ADF-based tau test with MacKinnon critical values
        self.tau_test = engle_granger(y, data.iloc[:, 1], trend='c')

        self.fitted = True

        logger.info(
            f"Cointegration residual KPSS: stat={self.residual_test.statistic:.4f}, "
            f"p={self.residual_test.p_value:.4f}"
        )
        return self

    def _check_fitted(self):
        if not self.fitted:
            raise ValueError("Model must be fitted first")

    @property
    def statistic(self) -> float:
        self._check_fitted()
        return self.residual_test.statistic

    @property
    def p_value(self) -> float:
        self._check_fitted()
        return self.residual_test.p_value

    @property
    def params(self) -> pd.Series:
        self._check_fitted()
        return self.results.params

    def is_cointegrated(self, confidence: float = 0.95) -> bool:
        """True when the residuals do not reject stationarity at ``confidence``."""
        self._check_fitted()
        return self.residual_test.is_stationary(1 - confidence)

    def is_borderline(self, confidence: float = 0.95, margin: float = 0.02) -> bool:
        """True when the residual p-value lies within ``margin`` of the cutoff."""
        self._check_fitted()
        return abs(self.residual_test.p_value - (1 - confidence)) <= margin

    def summary(self, confidence: float = 0.95, margin: float = 0.02) -> Dict[str, Any]:
        self._check_fitted()
        return {
            'intercept': float(self.results.params.iloc[0]),
            'slope': float(self.results.params.iloc[1]),
            'r_squared': float(self.results.rsquared),
            'kpss_statistic': self.residual_test.statistic,
            'kpss_p_value': self.residual_test.p_value,
            'kpss_critical_values': self.residual_test.critical_values,
            'kpss_stationary': self.is_cointegrated(confidence),
            'borderline': self.is_borderline(confidence, margin),
            'eg_tau_statistic': float(self.tau_test.stat),
            'eg_tau_p_value': float(self.tau_test.pvalue),
            'eg_tau_critical_values': {str(k): float(v) for k, v in self.tau_test.critical_values.items()},
        }


def johansen_trace_test(panel: pd.DataFrame, k_ar_diff: int = 1, det_order: int = 0) -> pd.DataFrame:
    """
    Johansen trace test for each hypothesised rank.

    Returns:
        DataFrame indexed by rank with the trace statistic and 90/95/99% critical values
    """
    result = coint_johansen(panel.values, det_order=det_order, k_ar_diff=k_ar_diff)

    table = pd.DataFrame({
        'trace_stat': result.lr1,
        'crit_90': result.cvt[:, 0],
        'crit_95': result.cvt[:, 1],
        'crit_99': result.cvt[:, 2],
    }, index=pd.Index(np.arange(len(result.lr1)), name='rank_le'))
    table['reject_95'] = table['trace_stat'] > table['crit_95']
    return table


def johansen_rank(table: pd.DataFrame, column: str = 'crit_95') -> int:
    """First rank whose trace statistic does not exceed its critical value."""
    for rank, row in table.iterrows():
        if row['trace_stat'] <= row[column]:
            return int(rank)
    return len(table)
