"""Weather domain model - pure data structures independent of any API."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UnitPreference(Enum):
    """Which temperature scale the screen shows."""
    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def symbol(self) -> str:
        return "°C" if self is UnitPreference.METRIC else "°F"

    def toggled(self) -> "UnitPreference":
        if self is UnitPreference.METRIC:
            return UnitPreference.IMPERIAL
        return UnitPreference.METRIC


@dataclass(frozen=True)
class WeatherQuery:
    """The only input needed to fetch weather: a city name or "lat,lon" string."""
    city: str

    def __post_init__(self):
        city = (self.city or "").strip()
        if not city:
            raise ValueError("WeatherQuery requires a non-empty city")
        # frozen dataclass, so bypass __setattr__ to store the trimmed value
        object.__setattr__(self, "city", city)


@dataclass(frozen=True)
class Coordinates:
    """A device location fix."""
    lat: float
    lon: float

    def as_query(self) -> str:
        """Format as a "lat,lon" query string the weather API resolves itself."""
        return f"{self.lat:.4f},{self.lon:.4f}"


@dataclass(frozen=True)
class WeatherReading:
    """Snapshot of one successful fetch, independent of any specific API."""
    temperature_celsius: float
    temperature_fahrenheit: float
    humidity_percent: int
    feels_like_celsius: float
    location_name: str

    # Only present when the provider reports it
    feels_like_fahrenheit: Optional[float] = None

    def temperature(self, unit: UnitPreference) -> float:
        """Return the temperature in the given unit without any conversion."""
        if unit is UnitPreference.IMPERIAL:
            return self.temperature_fahrenheit
        return self.temperature_celsius

    def feels_like(self, unit: UnitPreference) -> float:
        if unit is UnitPreference.IMPERIAL:
            if self.feels_like_fahrenheit is not None:
                return self.feels_like_fahrenheit
            return self.feels_like_celsius * 9.0 / 5.0 + 32.0
        return self.feels_like_celsius
