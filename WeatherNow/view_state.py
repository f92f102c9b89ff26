"""Observable screen state. Written by the request controller, read by renderers."""
import logging
from enum import Enum
from typing import Callable, List, Optional
from weather_data import UnitPreference, WeatherReading


class RequestStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


Observer = Callable[["ViewState"], None]

_FIELDS = ("unit_preference", "city_name_input", "last_reading", "last_error", "is_loading")


class ViewState:
    """
    Mutable state holder the UI observes.

    Single writer: only mutate it from the owning (UI) thread. Observers are
    called synchronously after each update.
    """

    def __init__(self, unit_preference: UnitPreference = UnitPreference.METRIC):
        self.unit_preference = unit_preference
        self.city_name_input = ""
        self.last_reading: Optional[WeatherReading] = None
        self.last_error: Optional[str] = None
        self.is_loading = False
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer. Returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def update(self, **changes) -> None:
        """Apply several field changes, then notify observers once."""
        unknown = [name for name in changes if name not in _FIELDS]
        if unknown:
            raise AttributeError(f"ViewState has no field(s) {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(self, name, value)
        self._notify()

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self)

    @property
    def status(self) -> RequestStatus:
        if self.is_loading:
            return RequestStatus.LOADING
        if self.last_error is not None:
            return RequestStatus.FAILURE
        if self.last_reading is not None:
            return RequestStatus.SUCCESS
        return RequestStatus.IDLE

    @property
    def location_label(self) -> str:
        return self.last_reading.location_name if self.last_reading else ""

    def display_temperature(self) -> Optional[float]:
        """Temperature from the current reading in the preferred unit."""
        if self.last_reading is None:
            return None
        return self.last_reading.temperature(self.unit_preference)

    def __repr__(self) -> str:
        return (
            f"ViewState(status={self.status.value}, unit={self.unit_preference.value}, "
            f"city={self.city_name_input!r}, reading={self.last_reading!r}, error={self.last_error!r})"
        )


def log_changes(state: ViewState) -> None:
    """Observer that logs every state change at debug level."""
    logging.debug(f"View state changed: {state!r}")
