"""
Tests for analysis settings.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from housing_sentiment.config import AnalysisSettings


class TestAnalysisSettings:
    """Test configuration defaults and validation."""

    def test_defaults_match_report(self, monkeypatch):
        for key in ["HOUSING_SENTIMENT_MAX_LAG", "HOUSING_SENTIMENT_DETERMINISTIC"]:
            monkeypatch.delenv(key, raising=False)
        settings = AnalysisSettings()

        assert settings.price_series == "CSUSHPISA"
        assert settings.sentiment_series == "UMCSENT"
        assert settings.start_date == date(1988, 1, 1)
        assert settings.end_date == date(2022, 1, 1)
        assert settings.coint_rank == 1
        assert settings.deterministic == "co"
        assert settings.irf_horizon == 25
        assert settings.confidence == pytest.approx(0.95)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("HOUSING_SENTIMENT_MAX_LAG", "6")
        assert AnalysisSettings().max_lag == 6

    def test_lag_criterion_normalised(self):
        assert AnalysisSettings(lag_criterion="BIC").lag_criterion == "bic"

    @pytest.mark.parametrize("overrides", [
        {"deterministic": "ci"},
        {"lag_criterion": "sc"},
        {"coint_rank": 0},
        {"alpha": 1.5},
        {"start_date": date(2022, 1, 1), "end_date": date(1988, 1, 1)},
    ])
    def test_invalid_settings_rejected(self, overrides):
        with pytest.raises(ValidationError):
            AnalysisSettings(**overrides)
