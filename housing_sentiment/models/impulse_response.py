"""
Impulse responses and forecast error variance decomposition for a fitted VECM.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import List, Optional
from statsmodels.tsa.vector_ar.vecm import VECM
import logging

from .vecm_model import VECMModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImpulseResponseResult:
    """Responses indexed as ``[step, response, impulse]`` with bootstrap bands."""

    irfs: np.ndarray
    lower: Optional[np.ndarray]
    upper: Optional[np.ndarray]
    names: List[str]
    orthogonalized: bool
    confidence: float
    n_bootstrap: int

    @property
    def horizon(self) -> int:
        return self.irfs.shape[0] - 1

    def response(self, impulse: str, response: str) -> pd.DataFrame:
        """Path of ``response`` after a shock to ``impulse``."""
        j = self.names.index(impulse)
        i = self.names.index(response)

        frame = pd.DataFrame({'irf': self.irfs[:, i, j]},
                             index=pd.RangeIndex(self.horizon + 1, name='step'))
        if self.lower is not None:
            frame['lower'] = self.lower[:, i, j]
            frame['upper'] = self.upper[:, i, j]
        return frame

    def excludes_zero(self, impulse: str, response: str) -> pd.Series:
        """Steps at which the band does not contain zero."""
        if self.lower is None:
            raise ValueError("No confidence bands were computed")
        path = self.response(impulse, response)
        return (path['lower'] > 0) | (path['upper'] < 0)


@dataclass(frozen=True)
class VarianceDecompositionResult:
    """Shares indexed as ``[step, variable, shock]``; each ``[step, variable, :]`` sums to one."""

    decomposition: np.ndarray
    names: List[str]

    @property
    def horizon(self) -> int:
        return self.decomposition.shape[0] - 1

    def to_frame(self, variable: str) -> pd.DataFrame:
        i = self.names.index(variable)
        return pd.DataFrame(
            self.decomposition[:, i, :],
            index=pd.RangeIndex(self.horizon + 1, name='step'),
            columns=self.names,
        )


def forecast_error_variance_decomposition(orth_irfs: np.ndarray,
                                          names: List[str]) -> VarianceDecompositionResult:
    """
    Decompose forecast error variance from orthogonalised responses.

    Entry ``h`` is the (h + 1)-step-ahead forecast error.
    """
    contributions = np.cumsum(np.asarray(orth_irfs) ** 2, axis=0)
    totals = contributions.sum(axis=2, keepdims=True)
    return VarianceDecompositionResult(decomposition=contributions / totals, names=list(names))


class ImpulseResponseAnalysis:
    """Impulse responses of a fitted VECM with residual-bootstrap confidence bands."""

    def __init__(self, vecm: VECMModel, horizon: int = 25, orthogonalized: bool = True,
                 confidence: float = 0.95, n_bootstrap: int = 100, seed: Optional[int] = None):
        """
        Initialize the analysis.

        Args:
            vecm: Fitted VECMModel
            horizon: Last step of the response path
            orthogonalized: Cholesky-orthogonalised shocks
            confidence: Coverage of the bootstrap bands
            n_bootstrap: Bootstrap replicates (0 disables the bands)
            seed: Seed for the bootstrap generator
        """
        if not vecm.fitted:
            raise ValueError("Model must be fitted before computing impulse responses")
        if vecm.deterministic not in ("n", "co"):
            raise ValueError(f"Bootstrap not available for deterministic={vecm.deterministic!r}")

        self.vecm = vecm
        self.horizon = horizon
        self.orthogonalized = orthogonalized
        self.confidence = confidence
        self.n_bootstrap = n_bootstrap
        self.seed = seed

    def _point_irfs(self, results, orthogonalized: bool) -> np.ndarray:
        irf = results.irf(self.horizon)
        return irf.orth_irfs if orthogonalized else irf.irfs

    def compute(self) -> ImpulseResponseResult:
        irfs = self._point_irfs(self.vecm.results, self.orthogonalized)

        lower = upper = None
        n_success = 0
        if self.n_bootstrap > 0:
            draws = self._bootstrap()
            n_success = len(draws)
            tail = (1 - self.confidence) / 2 * 100
            lower = np.percentile(draws, tail, axis=0)
            upper = np.percentile(draws, 100 - tail, axis=0)

        return ImpulseResponseResult(
            irfs=irfs,
            lower=lower,
            upper=upper,
            names=self.vecm.names,
            orthogonalized=self.orthogonalized,
            confidence=self.confidence,
            n_bootstrap=n_success,
        )

    def variance_decomposition(self) -> VarianceDecompositionResult:
        orth_irfs = self._point_irfs(self.vecm.results, orthogonalized=True)
        return forecast_error_variance_decomposition(orth_irfs, self.vecm.names)

    def _intercept(self) -> np.ndarray:
        neqs = len(self.vecm.names)
        if self.vecm.deterministic == "co":
            return np.asarray(self.vecm.results.det_coef)[:, 0]
        return np.zeros(neqs)

    def _simulate(self, rng: np.random.Generator) -> pd.DataFrame:
        """Levels path from the VAR representation driven by resampled residuals."""
        results = self.vecm.results
        coefs = results.var_rep
        k_ar = coefs.shape[0]
        intercept = self._intercept()

        resid = np.asarray(results.resid)
        resid = resid - resid.mean(axis=0)
        observed = self.vecm.data.values.astype(float)
        nobs = len(observed)

        shocks = resid[rng.integers(0, len(resid), size=nobs - k_ar)]

        simulated = np.empty_like(observed)
        simulated[:k_ar] = observed[:k_ar]
        for t in range(k_ar, nobs):
            value = intercept + shocks[t - k_ar]
            for i in range(k_ar):
                value = value + coefs[i] @ simulated[t - i - 1]
            simulated[t] = value

        return pd.DataFrame(simulated, index=self.vecm.data.index, columns=self.vecm.names)

    def _bootstrap(self) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        draws = []

        logger.info(f"Bootstrapping impulse responses: {self.n_bootstrap} replicates")
        for b in range(self.n_bootstrap):
            sample = self._simulate(rng)
            try:
                refit = VECM(sample, k_ar_diff=self.vecm.k_ar_diff, coint_rank=self.vecm.coint_rank,
                             deterministic=self.vecm.deterministic).fit(method='ml')
                draws.append(self._point_irfs(refit, self.orthogonalized))
            except (np.linalg.LinAlgError, ValueError) as e:
                logger.warning(f"Bootstrap replicate {b} skipped: {e}")

        if not draws:
            raise RuntimeError("All bootstrap replicates failed")

        return np.stack(draws)
