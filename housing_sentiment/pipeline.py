"""
End-to-end pipeline: acquisition, transformation, cointegration, VECM and
post-estimation analysis, run once in order.
"""

import pandas as pd
from dataclasses import dataclass
from typing import Optional
import logging

from .config import AnalysisSettings
from .analytics.diagnostics import VECMDiagnostics
from .models.cointegration import EngleGrangerTest, johansen_trace_test
from .models.housing_data_processor import HousingSentimentDataProcessor, to_wide_panel
from .models.impulse_response import (
    ImpulseResponseAnalysis,
    ImpulseResponseResult,
    VarianceDecompositionResult,
)
from .models.seasonal_adjustment import DecompositionResult, SeasonalAdjuster
from .models.unit_root import UnitRootAnalyzer, log_transform
from .models.vecm_model import LagOrderSelection, VECMModel, select_lag_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResults:
    """Every artefact produced by one run, in pipeline order."""

    settings: AnalysisSettings
    observations: pd.DataFrame
    panel: pd.DataFrame
    decomposition: DecompositionResult
    raw_unit_roots: pd.DataFrame
    model_panel: pd.DataFrame
    transformed_unit_roots: pd.DataFrame
    cointegration: EngleGrangerTest
    johansen: pd.DataFrame
    lag_selection: LagOrderSelection
    vecm: VECMModel
    impulse_responses: ImpulseResponseResult
    variance_decomposition: VarianceDecompositionResult
    diagnostics: pd.DataFrame

    @property
    def price_column(self) -> str:
        return self.model_panel.columns[0]

    @property
    def sentiment_column(self) -> str:
        return self.model_panel.columns[1]


def run_complete_analysis(settings: Optional[AnalysisSettings] = None,
                          processor: Optional[HousingSentimentDataProcessor] = None) -> AnalysisResults:
    """
    Run every stage of the analysis.

    Args:
        settings: Analysis settings (defaults read from the environment)
        processor: Data processor; built from ``settings`` when omitted

    Returns:
        AnalysisResults
    """
    settings = settings or AnalysisSettings()
    processor = processor or HousingSentimentDataProcessor(settings)
    price_id, sentiment_id = settings.price_series, settings.sentiment_series

    # 1. Acquisition and reshaping
    logger.info("Stage 1: data acquisition")
    observations = processor.fetch_observations([price_id, sentiment_id])
    panel = to_wide_panel(observations)[[price_id, sentiment_id]]

    # 2. Seasonal adjustment of sentiment
    logger.info("Stage 2: seasonal adjustment")
    adjuster = SeasonalAdjuster(method=settings.seasonal_method, model=settings.seasonal_model,
                                period=settings.seasonal_period)
    decomposition = adjuster.fit(panel[sentiment_id])

    # 3. Unit roots of the raw series
    logger.info("Stage 3: unit-root testing")
    analyzer = UnitRootAnalyzer(alpha=settings.alpha, max_d=settings.max_diffs)
    raw_unit_roots = analyzer.unit_root_table(panel)

    # 4. Log prices
    logger.info("Stage 4: transformation")
    log_price = log_transform(panel[price_id], scale=settings.log_scale)
    sentiment_sa = decomposition.seasonally_adjusted
    panel = panel.assign(**{log_price.name: log_price, sentiment_sa.name: sentiment_sa})
    model_panel = panel[[log_price.name, sentiment_sa.name]]
    transformed_unit_roots = analyzer.unit_root_table(model_panel)

    # 5. Engle-Granger
    logger.info("Stage 5: cointegration test")
    cointegration = EngleGrangerTest(analyzer).fit(model_panel[sentiment_sa.name], model_panel[log_price.name])
    if cointegration.is_borderline(settings.confidence, settings.borderline_margin):
        logger.warning(
            f"Cointegration residual p-value {cointegration.p_value:.4f} is within "
            f"{settings.borderline_margin} of the {settings.alpha} cutoff"
        )

    # 6. Lag selection and VECM
    logger.info("Stage 6: lag selection and VECM estimation")
    lag_selection = select_lag_order(model_panel, max_lag=settings.max_lag,
                                     deterministic=settings.deterministic,
                                     criterion=settings.lag_criterion)
    johansen = johansen_trace_test(model_panel, k_ar_diff=lag_selection.selected)
    vecm = VECMModel(k_ar_diff=lag_selection.selected, coint_rank=settings.coint_rank,
                     deterministic=settings.deterministic).fit(model_panel)

    responsive = vecm.responsive_variables(settings.confidence)
    logger.info(f"Equations correcting toward equilibrium: {responsive or 'none'}")

    # 7. Post-estimation
    logger.info("Stage 7: impulse responses and variance decomposition")
    irf_analysis = ImpulseResponseAnalysis(vecm, horizon=settings.irf_horizon,
                                           orthogonalized=settings.irf_orthogonalized,
                                           confidence=settings.confidence,
                                           n_bootstrap=settings.bootstrap_runs,
                                           seed=settings.bootstrap_seed)
    impulse_responses = irf_analysis.compute()
    variance_decomposition = irf_analysis.variance_decomposition()
    diagnostics = VECMDiagnostics(alpha=settings.alpha).run_diagnostics(vecm)

    return AnalysisResults(
        settings=settings,
        observations=observations,
        panel=panel,
        decomposition=decomposition,
        raw_unit_roots=raw_unit_roots,
        model_panel=model_panel,
        transformed_unit_roots=transformed_unit_roots,
        cointegration=cointegration,
        johansen=johansen,
        lag_selection=lag_selection,
        vecm=vecm,
        impulse_responses=impulse_responses,
        variance_decomposition=variance_decomposition,
        diagnostics=diagnostics,
    )
