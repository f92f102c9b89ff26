"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from weather_data import WeatherQuery, WeatherReading


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    def fetch(self, query: WeatherQuery) -> WeatherReading:
        """
        Fetch current weather for a query. A single attempt, no retry.

        Args:
            query: What to fetch weather for

        Returns:
            WeatherReading: Current weather information

        Raises:
            NetworkError: On connectivity problems or timeouts
            ApiError: On a non-success status or a malformed payload
            ConfigError: On a missing or rejected credential
        """
        pass


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""
    pass


class NetworkError(WeatherProviderError):
    """The request never got a response (connection failure, timeout)."""
    pass


class ApiError(WeatherProviderError):
    """The server answered with an error status or an unexpected payload."""
    pass


class ConfigError(WeatherProviderError):
    """The API credential is missing or was rejected."""
    pass
