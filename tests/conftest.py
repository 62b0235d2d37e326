"""
Shared fixtures: synthetic monthly data shaped like the FRED series.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from unittest.mock import Mock


def make_cointegrated_panel(n=360, seed=42):
    """
    Log price follows a random walk with AR(1) differences; sentiment tracks
    a linear function of it with stationary AR(1) deviations, so only the
    sentiment equation error-corrects.
    """
    rng = np.random.RandomState(seed)
    index = pd.date_range("1990-01-01", periods=n, freq="MS")

    d_price = np.zeros(n)
    for t in range(1, n):
        d_price[t] = 0.2 + 0.5 * d_price[t - 1] + rng.normal(0, 0.8)
    log_price = 460 + np.cumsum(d_price)

    deviation = np.zeros(n)
    for t in range(1, n):
        deviation[t] = 0.5 * deviation[t - 1] + rng.normal(0, 2.0)
    sentiment = -150 + 0.5 * log_price + deviation

    return pd.DataFrame({"log_price": log_price, "sentiment": sentiment}, index=index)


def make_fred_csv(series: pd.Series) -> str:
    lines = ["observation_date," + str(series.name)]
    for date, value in series.items():
        lines.append(f"{date:%Y-%m-%d},{value:.4f}")
    return "\n".join(lines) + "\n"


def make_fred_get(series):
    """Stand-in for requests.get serving the fredgraph.csv endpoint."""
    def _get(url, params=None, timeout=None):
        response = Mock()
        response.text = make_fred_csv(series[params["id"]])
        response.raise_for_status = Mock()
        return response

    return Mock(side_effect=_get)


def make_trending_fred_series(n=408, seed=7):
    """
    Price grows exponentially: log price is a random walk with strong drift,
    so price levels need two differences and log prices one. Sentiment loads
    on log price plus stationary AR(1) deviations and a seasonal pattern.
    """
    rng = np.random.RandomState(seed)
    index = pd.date_range("1988-01-01", periods=n, freq="MS")

    log_price = 400 + np.cumsum(0.6 + rng.normal(0, 0.25, n))

    deviation = np.zeros(n)
    for t in range(1, n):
        deviation[t] = 0.5 * deviation[t - 1] + rng.normal(0, 2.0)
    seasonal = 3.0 * np.sin(2 * np.pi * index.month / 12)
    sentiment = -150 + 0.5 * log_price + deviation + seasonal

    return {
        "CSUSHPISA": pd.Series(np.exp(log_price / 100), index=index, name="CSUSHPISA"),
        "UMCSENT": pd.Series(sentiment, index=index, name="UMCSENT"),
    }


@pytest.fixture
def cointegrated_panel():
    return make_cointegrated_panel()


@pytest.fixture
def fred_series():
    """Raw-looking CSUSHPISA and UMCSENT series with a seasonal pattern in sentiment."""
    panel = make_cointegrated_panel(n=408)
    index = pd.date_range("1988-01-01", periods=len(panel), freq="MS")

    price = pd.Series(np.exp(panel["log_price"].values / 100), index=index, name="CSUSHPISA")
    seasonal = 3.0 * np.sin(2 * np.pi * index.month / 12)
    sentiment = pd.Series(panel["sentiment"].values + seasonal, index=index, name="UMCSENT")
    return {"CSUSHPISA": price, "UMCSENT": sentiment}


@pytest.fixture
def fred_get(fred_series):
    return make_fred_get(fred_series)
