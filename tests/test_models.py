"""
Tests for econometric models.
"""

import logging
import warnings

import pytest
import pandas as pd
import numpy as np

from conftest import make_cointegrated_panel

from housing_sentiment.analytics.diagnostics import VECMDiagnostics
from housing_sentiment.models.cointegration import EngleGrangerTest, johansen_rank, johansen_trace_test
from housing_sentiment.models.impulse_response import (
    ImpulseResponseAnalysis,
    forecast_error_variance_decomposition,
)
from housing_sentiment.models.seasonal_adjustment import SeasonalAdjuster
from housing_sentiment.models.unit_root import (
    StationarityTestResult,
    UnitRootAnalyzer,
    difference,
    log_transform,
)
from housing_sentiment.models.vecm_model import VECMModel, select_lag_order


class TestSeasonalAdjuster:
    """Test seasonal decomposition."""

    def setup_method(self):
        """Set up test data."""
        np.random.seed(42)
        index = pd.date_range("2000-01-01", periods=240, freq="MS")
        trend = np.linspace(70, 95, 240)
        seasonal = 4 * np.sin(2 * np.pi * index.month / 12)
        noise = np.random.normal(0, 1, 240)
        self.series = pd.Series(trend + seasonal + noise, index=index, name="UMCSENT")

    @pytest.mark.parametrize("method", ["stl", "classical"])
    def test_additive_components_reconstruct_series(self, method):
        result = SeasonalAdjuster(method=method).fit(self.series)

        np.testing.assert_allclose(result.reconstruct(), self.series, rtol=1e-8)
        np.testing.assert_allclose(result.seasonally_adjusted + result.seasonal, self.series, rtol=1e-8)
        assert not result.trend.isna().any()

    @pytest.mark.parametrize("method", ["stl", "classical"])
    def test_multiplicative_components_reconstruct_series(self, method):
        result = SeasonalAdjuster(method=method, model="multiplicative").fit(self.series)

        np.testing.assert_allclose(result.reconstruct(), self.series, rtol=1e-6)
        np.testing.assert_allclose(result.seasonally_adjusted * result.seasonal, self.series, rtol=1e-6)

    def test_adjusted_series_is_named_after_input(self):
        result = SeasonalAdjuster().fit(self.series)
        assert result.seasonally_adjusted.name == "UMCSENT_sa"
        assert list(result.to_frame().columns) == [
            'observed', 'trend', 'seasonal', 'irregular', 'seasonally_adjusted'
        ]

    def test_classical_runs_without_future_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", FutureWarning)
            SeasonalAdjuster(method="classical").fit(self.series)

    def test_seasonal_pattern_is_removed(self):
        result = SeasonalAdjuster().fit(self.series)
        monthly_raw = self.series.groupby(self.series.index.month).mean()
        monthly_sa = result.seasonally_adjusted.groupby(self.series.index.month).mean()
        assert monthly_sa.std() < monthly_raw.std()

    def test_too_short_series_rejected(self):
        with pytest.raises(ValueError):
            SeasonalAdjuster(period=12).fit(self.series.iloc[:20])

    def test_multiplicative_requires_positive_values(self):
        with pytest.raises(ValueError):
            SeasonalAdjuster(model="multiplicative").fit(self.series - 200)

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError):
            SeasonalAdjuster(method="x11")


class TestUnitRootAnalyzer:
    """Test unit-root counting."""

    def setup_method(self):
        """Set up test data."""
        np.random.seed(42)
        self.noise = pd.Series(np.random.normal(0, 1, 400))
        self.random_walk = self.noise.cumsum()
        self.integrated_2 = self.random_walk.cumsum()
        self.analyzer = UnitRootAnalyzer(alpha=0.05, max_d=2)

    def test_stationary_series_has_no_unit_root(self):
        analyzer = UnitRootAnalyzer(alpha=0.01, max_d=2)
        assert analyzer.ndiffs(self.noise) == 0

    def test_random_walk_has_at_least_one_unit_root(self):
        assert self.analyzer.ndiffs(self.random_walk) >= 1

    def test_doubly_integrated_series(self):
        assert self.analyzer.ndiffs(self.integrated_2) == 2

    def test_differenced_series_does_not_reject_stationarity(self):
        for series in [self.noise, self.random_walk, self.integrated_2]:
            d, stationary = self.analyzer.integration_order(series)
            assert stationary
            result = self.analyzer.kpss_test(difference(series, d))
            assert result.is_stationary(self.analyzer.alpha)

    def test_cap_reached_is_flagged(self, caplog):
        integrated_3 = self.integrated_2.cumsum().rename("i3")

        with caplog.at_level(logging.WARNING):
            d, stationary = self.analyzer.integration_order(integrated_3)

        assert d == self.analyzer.max_d
        assert not stationary
        assert not self.analyzer.kpss_test(difference(integrated_3, d)).is_stationary(self.analyzer.alpha)
        assert "still rejects" in caplog.text

        table = self.analyzer.unit_root_table(pd.DataFrame({'i3': integrated_3, 'rw': self.random_walk}))
        assert not table.loc['i3', 'stationary_after_d']
        assert table.loc['rw', 'stationary_after_d']

    def test_kpss_runs_without_future_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", FutureWarning)
            self.analyzer.kpss_test(self.random_walk)

    def test_kpss_result_fields(self):
        result = self.analyzer.kpss_test(self.random_walk)
        assert 0.01 <= result.p_value <= 0.1
        assert set(result.critical_values) == {'10%', '5%', '2.5%', '1%'}
        assert not result.is_stationary(0.05)

    def test_unit_root_table(self):
        panel = pd.DataFrame({'rw': self.random_walk, 'i2': self.integrated_2})
        table = self.analyzer.unit_root_table(panel)

        assert list(table.index) == ['rw', 'i2']
        assert table.loc['i2', 'unit_roots'] == 2
        for column in ['kpss_stat', 'kpss_pvalue', 'adf_stat', 'adf_pvalue', 'pp_stat', 'pp_pvalue']:
            assert column in table.columns

    def test_log_transform_scales(self):
        series = pd.Series([1.0, np.e, np.e ** 2], name="CSUSHPISA")
        transformed = log_transform(series, scale=100)

        np.testing.assert_allclose(transformed.values, [0.0, 100.0, 200.0])
        assert transformed.name == "CSUSHPISA_log"

    def test_log_transform_rejects_non_positive(self):
        with pytest.raises(ValueError):
            log_transform(pd.Series([1.0, 0.0, 2.0]))


class TestEngleGrangerTest:
    """Test the residual-based cointegration test."""

    def setup_method(self):
        """Set up test data."""
        self.panel = make_cointegrated_panel()
        self.test = EngleGrangerTest()

    def test_regression_is_deterministic(self):
        first = EngleGrangerTest().fit(self.panel['sentiment'], self.panel['log_price'])
        second = EngleGrangerTest().fit(self.panel['sentiment'], self.panel['log_price'])

        pd.testing.assert_series_equal(first.params, second.params)
        assert first.statistic == second.statistic
        assert first.p_value == second.p_value

    def test_recovers_long_run_slope(self):
        self.test.fit(self.panel['sentiment'], self.panel['log_price'])
        assert self.test.params.iloc[1] == pytest.approx(0.5, abs=0.05)
        assert len(self.test.residuals) == len(self.panel)

    def test_spurious_regression_not_cointegrated(self):
        np.random.seed(42)
        index = self.panel.index
        y = pd.Series(np.random.normal(0, 1, len(index)).cumsum(), index=index)
        x = pd.Series(np.random.normal(0, 1, len(index)).cumsum(), index=index)

        self.test.fit(y, x)
        assert not self.test.is_cointegrated(0.95)

    def test_borderline_decision_left_to_caller(self):
        self.test.fitted = True
        self.test.residual_test = StationarityTestResult(statistic=0.45, p_value=0.055, lags=8)

        assert self.test.is_cointegrated(0.95)
        assert self.test.is_borderline(0.95, margin=0.01)
        assert not self.test.is_borderline(0.95, margin=0.001)
        assert not self.test.is_cointegrated(0.90)

    def test_summary_reports_exact_numbers(self):
        self.test.fit(self.panel['sentiment'], self.panel['log_price'])
        summary = self.test.summary()

        assert summary['kpss_statistic'] == self.test.statistic
        assert summary['kpss_p_value'] == self.test.p_value
        assert 'eg_tau_statistic' in summary
        assert isinstance(summary['borderline'], bool)

    def test_unfitted_access_raises(self):
        with pytest.raises(ValueError):
            self.test.is_cointegrated()

    def test_johansen_finds_cointegration(self):
        table = johansen_trace_test(self.panel, k_ar_diff=1)
        assert len(table) == 2
        assert johansen_rank(table) >= 1


class TestLagSelection:
    """Test lag-order selection."""

    def setup_method(self):
        self.panel = make_cointegrated_panel()

    def test_selection_is_deterministic(self):
        first = select_lag_order(self.panel, max_lag=8, deterministic="co", criterion="bic")
        second = select_lag_order(self.panel, max_lag=8, deterministic="co", criterion="bic")

        assert first.selected == second.selected
        pd.testing.assert_frame_equal(first.table, second.table)

    def test_selected_within_range(self):
        selection = select_lag_order(self.panel, max_lag=8)
        assert 0 <= selection.selected <= 8
        assert selection.selected == selection.selected_orders['bic']
        assert 'bic' in selection.table.columns


class TestVECMModel:
    """Test VECM estimation."""

    def setup_method(self):
        self.panel = make_cointegrated_panel()
        self.model = VECMModel(k_ar_diff=1, coint_rank=1, deterministic="co").fit(self.panel)

    def test_model_initialization(self):
        model = VECMModel()
        assert not model.fitted
        assert model.summary() == {"error": "Model not fitted"}
        with pytest.raises(ValueError):
            model.adjustment_table()

    def test_cointegrating_vector_normalised(self):
        beta = self.model.cointegrating_vector()
        assert beta.loc['log_price', 'ect1'] == pytest.approx(1.0)
        assert beta.loc['sentiment', 'ect1'] == pytest.approx(-2.0, abs=0.2)

    def test_only_sentiment_error_corrects(self):
        table = self.model.adjustment_table(confidence=0.99)

        assert table.loc[('sentiment', 'ect1'), 'significant']
        assert table.loc[('sentiment', 'ect1'), 'coef'] > 0
        assert not table.loc[('log_price', 'ect1'), 'significant']
        assert self.model.responsive_variables(confidence=0.99) == ['sentiment']

    def test_short_run_table_shape(self):
        table = self.model.short_run_table()
        assert table.shape == (2, 4)
        assert ('coef', 'L1.d_log_price') in table.columns

    def test_residuals_aligned(self):
        residuals = self.model.get_residuals()
        assert residuals.shape == (len(self.panel) - 2, 2)
        assert residuals.index[0] == self.panel.index[2]

    def test_summary(self):
        summary = self.model.summary()
        assert summary['coint_rank'] == 1
        assert summary['k_ar_diff'] == 1

    def test_insufficient_data_rejected(self):
        with pytest.raises(ValueError):
            VECMModel(k_ar_diff=4).fit(self.panel.iloc[:15])


class TestImpulseResponseAnalysis:
    """Test impulse responses and variance decomposition."""

    def setup_method(self):
        self.panel = make_cointegrated_panel()
        self.model = VECMModel(k_ar_diff=1).fit(self.panel)

    def test_point_responses_without_bands(self):
        result = ImpulseResponseAnalysis(self.model, horizon=25, n_bootstrap=0).compute()

        assert result.irfs.shape == (26, 2, 2)
        assert result.lower is None
        assert list(result.response('log_price', 'sentiment').columns) == ['irf']

    def test_bootstrap_bands(self):
        analysis = ImpulseResponseAnalysis(self.model, horizon=12, n_bootstrap=20, seed=7)
        result = analysis.compute()

        assert result.lower.shape == result.irfs.shape
        assert (result.lower <= result.upper).all()
        assert result.n_bootstrap == 20

        path = result.response('log_price', 'sentiment')
        assert list(path.columns) == ['irf', 'lower', 'upper']
        assert len(result.excludes_zero('log_price', 'sentiment')) == 13

    def test_bootstrap_is_reproducible(self):
        first = ImpulseResponseAnalysis(self.model, horizon=6, n_bootstrap=10, seed=3).compute()
        second = ImpulseResponseAnalysis(self.model, horizon=6, n_bootstrap=10, seed=3).compute()
        np.testing.assert_allclose(first.lower, second.lower)
        np.testing.assert_allclose(first.upper, second.upper)

    def test_variance_decomposition_rows_sum_to_one(self):
        fevd = ImpulseResponseAnalysis(self.model, horizon=25, n_bootstrap=0).variance_decomposition()

        assert fevd.decomposition.shape == (26, 2, 2)
        np.testing.assert_allclose(fevd.decomposition.sum(axis=2), 1.0)
        assert ((fevd.decomposition >= 0) & (fevd.decomposition <= 1)).all()

    def test_first_variable_explained_by_own_shock_at_impact(self):
        fevd = ImpulseResponseAnalysis(self.model, horizon=5, n_bootstrap=0).variance_decomposition()
        assert fevd.to_frame('log_price').loc[0, 'log_price'] == pytest.approx(1.0)

    def test_fevd_from_arbitrary_responses(self):
        np.random.seed(42)
        orth_irfs = np.random.normal(size=(10, 3, 3))
        fevd = forecast_error_variance_decomposition(orth_irfs, ['a', 'b', 'c'])
        np.testing.assert_allclose(fevd.decomposition.sum(axis=2), 1.0)

    def test_requires_fitted_model(self):
        with pytest.raises(ValueError):
            ImpulseResponseAnalysis(VECMModel())


class TestVECMDiagnostics:
    """Test residual diagnostics."""

    def test_diagnostics_per_equation(self):
        model = VECMModel(k_ar_diff=1).fit(make_cointegrated_panel())
        table = VECMDiagnostics().run_diagnostics(model)

        assert list(table.index) == ['log_price', 'sentiment']
        for column in ['jarque_bera_pvalue', 'ljung_box_pvalue', 'durbin_watson']:
            assert column in table.columns
        assert table['mean'].abs().max() < 0.5


if __name__ == "__main__":
    pytest.main([__file__])
