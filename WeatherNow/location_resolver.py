"""Turns the device location into a query string, falling back to a default city."""
import logging
from abc import ABC, abstractmethod
from typing import Optional
from weather_data import Coordinates

DEFAULT_CITY = "London"


class LocationUnavailableError(Exception):
    """Raised by a platform when no location fix can be obtained."""
    pass


class LocationPlatform(ABC):
    """Device capabilities the resolver relies on. Prompts and UI live elsewhere."""

    @abstractmethod
    def request_location_permission(self) -> bool:
        """Return True if location access is granted."""
        pass

    @abstractmethod
    def get_last_known_location(self) -> Optional[Coordinates]:
        """Return the last known fix, or None if there is none."""
        pass


class EnvironmentLocationPlatform(LocationPlatform):
    """
    Platform for hosts without a location service.

    Permission counts as granted only when coordinates were configured
    (WEATHER_LAT / WEATHER_LON).
    """

    def __init__(self, lat: Optional[float] = None, lon: Optional[float] = None):
        self.lat = lat
        self.lon = lon

    def request_location_permission(self) -> bool:
        return self.lat is not None and self.lon is not None

    def get_last_known_location(self) -> Optional[Coordinates]:
        if self.lat is None or self.lon is None:
            return None
        return Coordinates(lat=self.lat, lon=self.lon)


class LocationResolver:
    """
    Resolves the device location to something WeatherQuery accepts.

    Never raises for a denied permission or a missing fix; the default city is
    returned instead.
    """

    def __init__(
        self,
        platform: LocationPlatform,
        default_city: str = DEFAULT_CITY,
        use_coordinates: bool = True
    ):
        """
        Args:
            platform: Device location collaborator
            default_city: City used whenever no usable location exists
            use_coordinates: If False, always return the default city even with a fix
        """
        self.platform = platform
        self.default_city = default_city
        self.use_coordinates = use_coordinates

    def resolve(self) -> str:
        try:
            if not self.platform.request_location_permission():
                logging.info(f"Location permission denied, using default city {self.default_city}")
                return self.default_city
            location = self.platform.get_last_known_location()
        except PermissionError as e:
            logging.warning(f"Location permission error: {e}, using default city {self.default_city}")
            return self.default_city
        except LocationUnavailableError as e:
            logging.warning(f"Location unavailable: {e}, using default city {self.default_city}")
            return self.default_city

        if location is None:
            logging.info(f"Location not available, using default city {self.default_city}")
            return self.default_city

        if not self.use_coordinates:
            logging.debug("Location fix ignored, coordinate lookup disabled")
            return self.default_city

        query = location.as_query()
        logging.info(f"Resolved device location to query {query}")
        return query
