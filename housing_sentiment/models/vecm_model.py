"""
Vector Error-Correction Model for the house-price / sentiment system.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Any, Dict, List
from statsmodels.tsa.vector_ar.vecm import VECM, select_order
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LagOrderSelection:
    """Selected number of lagged differences and the full criteria table."""

    selected: int
    criterion: str
    max_lag: int
    table: pd.DataFrame
    selected_orders: Dict[str, int]


def select_lag_order(panel: pd.DataFrame, max_lag: int = 12, deterministic: str = "co",
                     criterion: str = "bic") -> LagOrderSelection:
    """
    Choose the number of lagged differences by information criterion.

    Args:
        panel: Levels of the endogenous variables
        max_lag: Largest lag order compared
        deterministic: Deterministic terms ('n', 'co')
        criterion: One of 'aic', 'bic', 'hqic', 'fpe'

    Returns:
        LagOrderSelection
    """
    lag_order = select_order(panel, maxlags=max_lag, deterministic=deterministic)

    selected = int(getattr(lag_order, criterion))
    table = pd.DataFrame(lag_order.ics)
    table.index.name = 'lag'

    logger.info(f"Lag order selected by {criterion.upper()}: {selected} (max_lag={max_lag})")

    return LagOrderSelection(
        selected=selected,
        criterion=criterion,
        max_lag=max_lag,
        table=table,
        selected_orders={k: int(v) for k, v in lag_order.selected_orders.items()},
    )


class VECMModel:
    """VECM estimated by maximum likelihood (Johansen procedure)."""

    def __init__(self, k_ar_diff: int = 1, coint_rank: int = 1, deterministic: str = "co"):
        """
        Initialize the VECM.

        Args:
            k_ar_diff: Number of lagged differences in the short-run equations
            coint_rank: Number of cointegrating relations
            deterministic: 'co' puts a constant in the short-run equations only
        """
        self.k_ar_diff = k_ar_diff
        self.coint_rank = coint_rank
        self.deterministic = deterministic
        self.fitted = False
        self.data = None
        self.model = None
        self.results = None

    def fit(self, panel: pd.DataFrame):
        """
        Fit the VECM to a panel of levels.

        Args:
            panel: One column per endogenous variable, indexed by month
        """
        self.data = panel.dropna()

        if len(self.data) <= (self.k_ar_diff + 1) * self.data.shape[1] + 10:
            raise ValueError("Insufficient data for VECM estimation")

        self.model = VECM(self.data, k_ar_diff=self.k_ar_diff, coint_rank=self.coint_rank,
                          deterministic=self.deterministic)
        self.results = self.model.fit(method='ml')
        self.fitted = True

        logger.info(
            f"VECM fitted: k_ar_diff={self.k_ar_diff}, rank={self.coint_rank}, "
            f"deterministic={self.deterministic}, nobs={self.results.nobs}"
        )
        return self

    def _check_fitted(self):
        if not self.fitted:
            raise ValueError("Model must be fitted first")

    @property
    def names(self) -> List[str]:
        return list(self.data.columns)

    def cointegrating_vector(self) -> pd.DataFrame:
        """Normalised cointegrating vector(s), one column per relation."""
        self._check_fitted()
        return pd.DataFrame(
            self.results.beta,
            index=self.names,
            columns=[f"ect{i + 1}" for i in range(self.coint_rank)],
        )

    def adjustment_table(self, confidence: float = 0.95) -> pd.DataFrame:
        """Error-correction (loading) coefficients with their inference, per equation."""
        self._check_fitted()
        alpha = 1 - confidence

        rows = []
        for i, name in enumerate(self.names):
            for r in range(self.coint_rank):
                p_value = float(self.results.pvalues_alpha[i, r])
                rows.append({
                    'equation': name,
                    'ect': f"ect{r + 1}",
                    'coef': float(self.results.alpha[i, r]),
                    'stderr': float(self.results.stderr_alpha[i, r]),
                    'tvalue': float(self.results.tvalues_alpha[i, r]),
                    'pvalue': p_value,
                    'significant': p_value < alpha,
                })

        return pd.DataFrame(rows).set_index(['equation', 'ect'])

    def responsive_variables(self, confidence: float = 0.95) -> List[str]:
        """Equations whose error-correction term is significant."""
        table = self.adjustment_table(confidence)
        significant = table[table['significant']]
        return list(dict.fromkeys(significant.index.get_level_values('equation')))

    def short_run_table(self) -> pd.DataFrame:
        """Lagged-difference coefficients with p-values."""
        self._check_fitted()
        if self.k_ar_diff == 0:
            return pd.DataFrame(index=self.names)

        columns = [
            f"L{lag + 1}.d_{name}"
            for lag in range(self.k_ar_diff)
            for name in self.names
        ]
        coefs = pd.DataFrame(self.results.gamma, index=self.names, columns=columns)
        pvalues = pd.DataFrame(self.results.pvalues_gamma, index=self.names, columns=columns)
        return pd.concat({'coef': coefs, 'pvalue': pvalues}, axis=1)

    def deterministic_terms(self) -> pd.DataFrame:
        """Coefficients of deterministic terms outside the cointegrating relation."""
        self._check_fitted()
        det = np.asarray(self.results.det_coef)
        if det.size == 0:
            return pd.DataFrame(index=self.names)
        return pd.DataFrame(det, index=self.names,
                            columns=[f"det{i + 1}" for i in range(det.shape[1])])

    def get_residuals(self) -> pd.DataFrame:
        """Residuals aligned to the effective sample."""
        self._check_fitted()
        return pd.DataFrame(
            self.results.resid,
            columns=self.names,
            index=self.data.index[self.results.k_ar:],
        )

    def summary(self) -> Dict[str, Any]:
        """Get model summary."""
        if not self.fitted:
            return {"error": "Model not fitted"}

        return {
            "n_observations": int(self.results.nobs),
            "k_ar_diff": self.k_ar_diff,
            "coint_rank": self.coint_rank,
            "deterministic": self.deterministic,
            "log_likelihood": float(self.results.llf),
            "cointegrating_vector": self.cointegrating_vector().to_dict(),
            "adjustment": self.adjustment_table()['coef'].to_dict(),
        }
