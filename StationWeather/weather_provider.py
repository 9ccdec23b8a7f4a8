"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from typing import List

from weather_data import StationObservation


class WeatherProviderBase(ABC):
    """Abstract base class for station weather providers."""

    @abstractmethod
    def get_observation(self) -> StationObservation:
        """
        Fetch the latest observation for the configured station.

        Returns:
            StationObservation: Raw metric readings; fields the station did
            not report are None

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass

    @abstractmethod
    def get_alerts(self, lat: float, lon: float) -> List[str]:
        """
        Fetch the event names of alerts active at a point.

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Client errors (4xx) will not succeed on a retry."""
        return self.status_code is None or not 400 <= self.status_code < 500
