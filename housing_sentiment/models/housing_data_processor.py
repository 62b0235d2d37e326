"""
Data processor for FRED monthly series.

Fetches the house-price and consumer-sentiment series, keeps them in long
format (date, series_id, value) and reshapes them into a wide monthly panel.
"""

import numpy as np
import pandas as pd
import requests
from io import StringIO
from typing import Dict, Iterable, Optional
import logging

from ..config import AnalysisSettings

logger = logging.getLogger(__name__)

MISSING_MARKER = "."
LONG_COLUMNS = ["date", "series_id", "value"]


class DataAcquisitionError(RuntimeError):
    """The data provider was unreachable or returned no usable observations."""


class DataQualityError(ValueError):
    """Observations violate the one-value-per-month, no-gap invariants."""


class HousingSentimentDataProcessor:
    """
    Loads monthly series from FRED.

    Uses the keyless ``fredgraph.csv`` download by default and switches to the
    JSON observations API when an API key is configured.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None, session=None):
        self.settings = settings or AnalysisSettings()
        self.session = session or requests

    def load_data_from_url(self, url: str, params: Dict[str, str]) -> requests.Response:
        """Issue a GET request and return the response, raising on failure."""
        try:
            response = self.session.get(url, params=params, timeout=self.settings.request_timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise DataAcquisitionError(f"Error loading data from {url}: {e}") from e
        return response

    def fetch_series(self, series_id: str, start=None, end=None) -> pd.DataFrame:
        """
        Fetch one series as long-format observations.

        Args:
            series_id: FRED series identifier (e.g. 'CSUSHPISA')
            start: First month requested (defaults to settings.start_date)
            end: Last month requested (defaults to settings.end_date)

        Returns:
            DataFrame with columns date, series_id, value
        """
        start = pd.Timestamp(start or self.settings.start_date)
        end = pd.Timestamp(end or self.settings.end_date)

        logger.info(f"Loading {series_id} from FRED ({start:%Y-%m-%d} to {end:%Y-%m-%d})")

        if self.settings.fred_api_key:
            raw = self._fetch_from_api(series_id, start, end)
        else:
            raw = self._fetch_from_csv(series_id, start, end)

        observations = self._clean_observations(raw, series_id)
        observations = observations[(observations['date'] >= start) & (observations['date'] <= end)]

        if observations.empty:
            raise DataAcquisitionError(f"No observations returned for {series_id}")

        logger.info(
            f"{series_id} processed: {len(observations)} observations, "
            f"{observations['date'].min():%Y-%m} to {observations['date'].max():%Y-%m}"
        )
        return observations.reset_index(drop=True)

    def fetch_observations(self, series_ids: Optional[Iterable[str]] = None,
                           start=None, end=None) -> pd.DataFrame:
        """Fetch several series and stack them in long format."""
        if series_ids is None:
            series_ids = [self.settings.price_series, self.settings.sentiment_series]

        frames = [self.fetch_series(series_id, start, end) for series_id in series_ids]
        return pd.concat(frames, ignore_index=True)

    def _fetch_from_csv(self, series_id: str, start: pd.Timestamp, end: pd.Timestamp) -> pd.DataFrame:
        params = {
            'id': series_id,
            'cosd': start.strftime('%Y-%m-%d'),
            'coed': end.strftime('%Y-%m-%d'),
        }
        response = self.load_data_from_url(self.settings.fred_csv_url, params)

        df = pd.read_csv(StringIO(response.text), na_values=[MISSING_MARKER])
        if df.shape[1] < 2:
            raise DataAcquisitionError(f"Unexpected CSV layout for {series_id}: {list(df.columns)}")

        # First column is the observation date ('DATE' or 'observation_date')
        df = df.iloc[:, :2].copy()
        df.columns = ['date', 'value']
        return df

    def _fetch_from_api(self, series_id: str, start: pd.Timestamp, end: pd.Timestamp) -> pd.DataFrame:
        params = {
            'series_id': series_id,
            'api_key': self.settings.fred_api_key,
            'file_type': 'json',
            'frequency': 'm',
            'observation_start': start.strftime('%Y-%m-%d'),
            'observation_end': end.strftime('%Y-%m-%d'),
        }
        response = self.load_data_from_url(self.settings.fred_api_url, params)

        try:
            payload = response.json()
        except ValueError as e:
            raise DataAcquisitionError(f"Invalid JSON payload for {series_id}: {e}") from e

        records = payload.get('observations', [])
        df = pd.DataFrame(records, columns=['date', 'value'])
        df['value'] = df['value'].replace(MISSING_MARKER, np.nan)
        return df

    def _clean_observations(self, raw: pd.DataFrame, series_id: str) -> pd.DataFrame:
        df = raw.copy()
        df['date'] = pd.to_datetime(df['date'])

        # Normalize to first of month
        df['date'] = df['date'].dt.to_period('M').dt.start_time
        df['value'] = pd.to_numeric(df['value'], errors='coerce')
        df = df.dropna(subset=['value'])
        df['series_id'] = series_id

        return df[LONG_COLUMNS].sort_values('date')


def to_wide_panel(observations: pd.DataFrame) -> pd.DataFrame:
    """
    Reshape long observations into a month-indexed panel.

    Rows missing any series are dropped and the remaining range must be a
    contiguous monthly sequence.
    """
    duplicated = observations.duplicated(subset=['date', 'series_id'])
    if duplicated.any():
        dupes = observations.loc[duplicated, ['series_id', 'date']].head()
        raise DataQualityError(f"Duplicate (series, month) observations:\n{dupes}")

    wide = observations.pivot(index='date', columns='series_id', values='value')
    wide.columns.name = None
    wide = wide.sort_index()

    initial_size = len(wide)
    wide = wide.dropna()
    if wide.empty:
        raise DataQualityError("No months with all series present")
    logger.info(f"Removed {initial_size - len(wide)} incomplete months")

    expected = pd.date_range(wide.index.min(), wide.index.max(), freq='MS')
    if len(expected) != len(wide):
        missing = expected.difference(wide.index)
        raise DataQualityError(
            f"Gap in monthly panel: {len(missing)} month(s) missing, first {missing[0]:%Y-%m}"
        )

    wide.index = pd.DatetimeIndex(wide.index, freq='MS', name='date')
    logger.info(f"Panel: {len(wide)} months, {wide.index.min():%Y-%m} to {wide.index.max():%Y-%m}")
    return wide

