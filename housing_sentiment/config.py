"""
Configuration settings for the housing price / consumer sentiment analysis.
"""

import os
from datetime import date
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import validator


SUPPORTED_DETERMINISTIC = ("n", "co")
SUPPORTED_CRITERIA = ("aic", "bic", "hqic", "fpe")


class AnalysisSettings(BaseSettings):
    """Analysis settings."""

    # Series
    price_series: str = "CSUSHPISA"
    sentiment_series: str = "UMCSENT"
    start_date: date = date(1988, 1, 1)
    end_date: date = date(2022, 1, 1)

    # External API settings
    fred_api_key: Optional[str] = None
    fred_csv_url: str = "https://fred.stlouisfed.org/graph/fredgraph.csv"
    fred_api_url: str = "https://api.stlouisfed.org/fred/series/observations"
    request_timeout: float = 30.0

    # Seasonal adjustment
    seasonal_method: str = "stl"
    seasonal_model: str = "additive"
    seasonal_period: int = 12

    # Stationarity
    alpha: float = 0.05
    max_diffs: int = 2
    log_scale: float = 100.0

    # Cointegration / VECM
    borderline_margin: float = 0.02
    max_lag: int = 12
    lag_criterion: str = "bic"
    coint_rank: int = 1
    deterministic: str = "co"

    # Post-estimation
    irf_horizon: int = 25
    irf_orthogonalized: bool = True
    bootstrap_runs: int = 100
    bootstrap_seed: int = 1234

    # Output
    results_dir: str = "./results"
    report_filename: str = "housing_sentiment_report.html"
    log_level: str = "INFO"

    @validator("deterministic")
    def check_deterministic(cls, v):
        if v not in SUPPORTED_DETERMINISTIC:
            raise ValueError(f"deterministic must be one of {SUPPORTED_DETERMINISTIC}, got {v!r}")
        return v

    @validator("lag_criterion")
    def check_lag_criterion(cls, v):
        v = v.lower()
        if v not in SUPPORTED_CRITERIA:
            raise ValueError(f"lag_criterion must be one of {SUPPORTED_CRITERIA}, got {v!r}")
        return v

    @validator("coint_rank")
    def check_coint_rank(cls, v):
        if v < 1:
            raise ValueError("coint_rank must be at least 1")
        return v

    @validator("alpha")
    def check_alpha(cls, v):
        if not 0 < v < 1:
            raise ValueError("alpha must lie strictly between 0 and 1")
        return v

    @validator("end_date")
    def check_date_range(cls, v, values):
        start = values.get("start_date")
        if start is not None and v <= start:
            raise ValueError("end_date must be after start_date")
        return v

    @property
    def confidence(self) -> float:
        return 1 - self.alpha

    @property
    def report_path(self) -> str:
        return os.path.join(self.results_dir, self.report_filename)

    class Config:
        env_file = ".env"
        env_prefix = "HOUSING_SENTIMENT_"
        case_sensitive = False
        extra = "ignore"

