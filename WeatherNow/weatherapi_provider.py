"""WeatherAPI.com current weather provider implementation."""
import logging
import math
import numbers
import requests
from typing import Any, Optional
from weather_provider import WeatherProviderBase, ApiError, ConfigError, NetworkError
from weather_data import WeatherQuery, WeatherReading

# WeatherAPI.com error codes that mean the credential itself is the problem
CREDENTIAL_ERROR_CODES = {1002, 2006, 2007, 2008}


class WeatherApiProvider(WeatherProviderBase):
    """
    Weather provider using the WeatherAPI.com current weather endpoint.

    Docs: https://www.weatherapi.com/docs/
    Air quality data is never requested since nothing displays it.
    """

    BASE_URL = "https://api.weatherapi.com/v1/current.json"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = 10
    ):
        """
        Initialize WeatherAPI provider.

        Args:
            api_key: WeatherAPI.com API key
            base_url: Override for the current.json endpoint
            timeout: HTTP request timeout in seconds

        Raises:
            ConfigError: If the API key is missing or blank
        """
        if not api_key or not api_key.strip():
            raise ConfigError("Missing weather API key")
        self.api_key = api_key.strip()
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout

    def fetch(self, query: WeatherQuery) -> WeatherReading:
        """
        Fetch current weather from WeatherAPI.com.

        Returns:
            WeatherReading: Current weather information

        Raises:
            NetworkError: If the request could not be completed
            ApiError: If the API reports an error or the payload is malformed
            ConfigError: If the API rejects the key
        """
        if not self.api_key:
            raise ConfigError("Missing weather API key")

        params = {
            "key": self.api_key,
            "q": query.city,
            "aqi": "no",
        }

        try:
            logging.info(f"Making WeatherAPI request: {self.base_url}")
            # Never log the key itself
            logging.debug(f"Request parameters: q={query.city}, aqi=no")

            response = requests.get(self.base_url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logging.error(f"WeatherAPI request timed out after {self.timeout}s: {e}")
            raise NetworkError(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise NetworkError(str(e)) from e

        logging.info(f"API response status: {response.status_code}")

        if not response.ok:
            logging.error(f"API request failed with status {response.status_code}")
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            logging.error(f"Non-JSON response body: {response.text[:500]}")
            raise ApiError("Response body is not valid JSON") from e

        logging.debug(f"API response (truncated): {str(data)[:500]}...")
        reading = self._parse_reading(data)
        logging.info(
            f"Successfully parsed weather data: {reading.location_name} "
            f"{reading.temperature_celsius}°C / {reading.temperature_fahrenheit}°F"
        )
        return reading

    def _parse_reading(self, data: Any) -> WeatherReading:
        """Map the current.json payload to a WeatherReading, strictly."""
        if not isinstance(data, dict):
            raise ApiError("Response is not a JSON object")

        current = data.get("current")
        if not isinstance(current, dict):
            logging.error("Response missing 'current' block")
            raise ApiError("Response missing 'current' block")

        location = data.get("location")
        if not isinstance(location, dict):
            logging.error("Response missing 'location' block")
            raise ApiError("Response missing 'location' block")

        name = location.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ApiError("Invalid or missing field 'location.name'")

        feels_like_f = current.get("feelslike_f")
        return WeatherReading(
            temperature_celsius=_require_number(current, "temp_c"),
            temperature_fahrenheit=_require_number(current, "temp_f"),
            humidity_percent=_require_int(current, "humidity"),
            feels_like_celsius=_require_number(current, "feelslike_c"),
            location_name=name.strip(),
            feels_like_fahrenheit=float(feels_like_f) if _is_number(feels_like_f) else None,
        )

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from a WeatherAPI error response."""
        try:
            error_data = response.json()
        except ValueError:
            # Not JSON, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {response.status_code}, body: {response.text[:500]}")
            raise ApiError(f"HTTP {response.status_code}: {response.text[:200]}")

        error = error_data.get("error") if isinstance(error_data, dict) else None
        error = error if isinstance(error, dict) else {}
        code = error.get("code")
        message = error.get("message", "Unknown error")

        logging.error(f"WeatherAPI error response: {error_data}")

        error_msg = f"WeatherAPI error {code or response.status_code}: {message}"
        if response.status_code in (401, 403) or code in CREDENTIAL_ERROR_CODES:
            raise ConfigError(error_msg)
        raise ApiError(error_msg)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid reading; NaN/Infinity parse as JSON
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _require_number(block: dict, key: str) -> float:
    value = block.get(key)
    if not _is_number(value):
        raise ApiError(f"Invalid or missing field 'current.{key}': {value!r}")
    return float(value)


def _require_int(block: dict, key: str) -> int:
    value = block.get(key)
    if not _is_number(value) or (isinstance(value, float) and not value.is_integer()):
        raise ApiError(f"Invalid or missing field 'current.{key}': {value!r}")
    return int(value)
