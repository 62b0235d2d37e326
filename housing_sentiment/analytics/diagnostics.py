"""
Residual diagnostics for the fitted VECM.
"""

import numpy as np
import pandas as pd
from typing import Dict, Any
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.stats.stattools import durbin_watson
import logging

from ..models.vecm_model import VECMModel

logger = logging.getLogger(__name__)


class VECMDiagnostics:
    """Equation-by-equation residual checks for a VECM."""

    def __init__(self, ljung_box_lags: int = 10, alpha: float = 0.05):
        self.ljung_box_lags = ljung_box_lags
        self.alpha = alpha

    def run_diagnostics(self, model: VECMModel) -> pd.DataFrame:
        """
        Run residual diagnostics on every equation.

        Args:
            model: Fitted VECMModel

        Returns:
            DataFrame with one row per equation
        """
        residuals = model.get_residuals()
        rows = {name: self.analyze_residuals(residuals[name]) for name in residuals.columns}
        return pd.DataFrame.from_dict(rows, orient='index')

    def analyze_residuals(self, residuals: pd.Series) -> Dict[str, Any]:
        """Moments, normality and autocorrelation checks for one residual series."""
        residuals_clean = residuals.dropna()

        if len(residuals_clean) <= self.ljung_box_lags:
            raise ValueError("Insufficient residuals for diagnostics")

        jb_stat, jb_p = stats.jarque_bera(residuals_clean)
        lb_result = acorr_ljungbox(residuals_clean, lags=self.ljung_box_lags, return_df=True)
        lb_p = float(lb_result['lb_pvalue'].iloc[-1])
        dw_stat = float(durbin_watson(residuals_clean))

        return {
            'mean': float(residuals_clean.mean()),
            'std': float(residuals_clean.std()),
            'skewness': float(stats.skew(residuals_clean)),
            'kurtosis': float(stats.kurtosis(residuals_clean)),
            'jarque_bera': float(jb_stat),
            'jarque_bera_pvalue': float(jb_p),
            'is_normal': bool(jb_p > self.alpha),
            'ljung_box': float(lb_result['lb_stat'].iloc[-1]),
            'ljung_box_pvalue': lb_p,
            'no_autocorrelation': bool(lb_p > self.alpha),
            'durbin_watson': dw_stat,
            'durbin_watson_reading': self._interpret_dw(dw_stat),
        }

    def _interpret_dw(self, dw_stat: float) -> str:
        """Interpret Durbin-Watson statistic."""
        if dw_stat < 1.5:
            return "Positive autocorrelation"
        elif dw_stat > 2.5:
            return "Negative autocorrelation"
        else:
            return "No autocorrelation"
