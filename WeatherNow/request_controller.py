"""Runs weather fetches off the UI thread and applies their outcome to the view state."""
import functools
import logging
import queue
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional
from location_resolver import LocationResolver
from view_state import ViewState
from weather_data import WeatherQuery, WeatherReading
from weather_provider import (
    WeatherProviderBase,
    WeatherProviderError,
    NetworkError,
    ApiError,
    ConfigError,
)

Dispatch = Callable[[Callable[[], None]], None]


def describe_error(error: WeatherProviderError) -> str:
    """Human-readable message for a fetch failure, by error kind."""
    if isinstance(error, NetworkError):
        return f"Network error: {error}"
    if isinstance(error, ConfigError):
        return f"Configuration error: {error}"
    if isinstance(error, ApiError):
        return f"Weather service error: {error}"
    return f"Weather error: {error}"


class RequestController:
    """
    Orchestrates fetches and owns all writes to a ViewState.

    Every submission gets a generation number; only the outcome of the latest
    generation is applied (last-submitted-wins). Outcomes are handed to
    ``dispatch`` so they run on the UI thread. By default they are queued and
    applied when the UI thread calls ``process_pending``.
    """

    def __init__(
        self,
        client: WeatherProviderBase,
        view_state: ViewState,
        executor: Optional[Executor] = None,
        dispatch: Optional[Dispatch] = None,
        request_timeout: Optional[float] = 10.0
    ):
        """
        Args:
            client: Weather provider used for every fetch
            view_state: State object this controller writes to
            executor: Where fetches run; a small thread pool if omitted
            dispatch: Schedules a callable on the UI thread (e.g. Tk ``after``)
            request_timeout: Total seconds a request may stay loading before it
                is failed as timed out; None disables the deadline
        """
        self.client = client
        self.view_state = view_state
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="weather-fetch")
        self._pending: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._dispatch = dispatch or self._pending.put
        self._lock = threading.Lock()
        self._generation = 0
        self._settled_generation = 0
        self._last_good: Optional[WeatherReading] = None
        self.request_timeout = request_timeout
        self._watchdog: Optional[threading.Timer] = None

    # UI-thread API ------------------------------------------------------
    def submit(self, query: WeatherQuery) -> Future:
        """Start fetching ``query``. The result lands in the view state."""
        logging.info(f"Submitting weather request for {query.city}")
        return self._start(functools.partial(self.client.fetch, query))

    def search(self, city: str) -> Optional[Future]:
        """Submit a search typed by the user. Blank input never reaches the network."""
        city = (city or "").strip()
        if not city:
            self.view_state.update(city_name_input="", last_error="Please enter a city name")
            return None
        self.view_state.city_name_input = city
        return self.submit(WeatherQuery(city=city))

    def submit_current_location(self, resolver: LocationResolver) -> Future:
        """Resolve the device location in the background, then fetch for it."""
        logging.info("Submitting weather request for current location")

        def work() -> WeatherReading:
            return self.client.fetch(WeatherQuery(city=resolver.resolve()))

        return self._start(work)

    def toggle_unit(self) -> None:
        """Flip Celsius/Fahrenheit. Display only, never a new request."""
        unit = self.view_state.unit_preference.toggled()
        logging.debug(f"Unit preference -> {unit.value}")
        self.view_state.update(unit_preference=unit)

    def process_pending(self, timeout: Optional[float] = None) -> int:
        """
        Apply queued outcomes on the calling (UI) thread.

        Args:
            timeout: Seconds to wait for the first outcome; None means don't wait

        Returns:
            Number of outcomes processed (including discarded stale ones)
        """
        processed = 0
        block = timeout is not None
        while True:
            try:
                callback = self._pending.get(block=block, timeout=timeout)
            except queue.Empty:
                return processed
            callback()
            processed += 1
            block = False

    @property
    def has_pending(self) -> bool:
        return not self._pending.empty()

    def wait_idle(self, timeout: Optional[float] = None, poll_interval: float = 0.1) -> bool:
        """
        Pump queued outcomes until the view state stops loading.

        Only meaningful with the default queue dispatcher.

        Returns:
            True if idle, False if ``timeout`` expired first
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.view_state.is_loading:
            wait = poll_interval
            if deadline is not None:
                wait = min(wait, deadline - time.monotonic())
                if wait <= 0:
                    return False
            self.process_pending(timeout=wait)
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._cancel_watchdog()
        if self._owns_executor:
            self.executor.shutdown(wait=wait)

    # internals ----------------------------------------------------------
    def _start(self, work: Callable[[], WeatherReading]) -> Future:
        generation = self._begin()
        try:
            future = self.executor.submit(self._run, generation, work)
        except Exception:
            # Nothing will ever complete this generation, so leave loading now
            logging.exception(f"Could not schedule request {generation}")
            self._settle(generation)
            self.view_state.update(last_reading=self._last_good, is_loading=False)
            raise
        self._arm_watchdog(generation)
        return future

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            generation = self._generation
        # Keep the last good reading so a failure can restore it
        if self.view_state.last_reading is not None:
            self._last_good = self.view_state.last_reading
        self.view_state.update(last_reading=None, last_error=None, is_loading=True)
        return generation

    def _arm_watchdog(self, generation: int) -> None:
        self._cancel_watchdog()
        if self.request_timeout is None:
            return
        message = f"Network error: Request timed out after {self.request_timeout}s"
        timer = threading.Timer(
            self.request_timeout,
            self._dispatch,
            args=(functools.partial(self._apply_timeout, generation, message),)
        )
        timer.daemon = True
        self._watchdog = timer
        timer.start()

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _settle(self, generation: int) -> bool:
        """Mark ``generation`` finished. False if it is stale or already finished."""
        with self._lock:
            if generation != self._generation or generation == self._settled_generation:
                return False
            self._settled_generation = generation
        self._cancel_watchdog()
        return True

    def _run(self, generation: int, work: Callable[[], WeatherReading]) -> Optional[WeatherReading]:
        """Worker-thread body. Never touches the view state directly."""
        try:
            reading = work()
        except WeatherProviderError as e:
            logging.warning(f"Weather fetch failed: {e}")
            self._dispatch(functools.partial(self._apply_failure, generation, describe_error(e)))
            return None
        except Exception as e:
            logging.exception(f"Unexpected error while fetching weather: {e}")
            self._dispatch(functools.partial(self._apply_failure, generation, f"Unexpected error: {e}"))
            return None
        self._dispatch(functools.partial(self._apply_success, generation, reading))
        return reading

    def _apply_success(self, generation: int, reading: WeatherReading) -> None:
        if not self._settle(generation):
            logging.debug(f"Discarding stale result for request {generation}")
            return
        logging.info(f"Weather updated: {reading.location_name} {reading.temperature_celsius}°C")
        self._last_good = reading
        self.view_state.update(last_reading=reading, last_error=None, is_loading=False)

    def _apply_failure(self, generation: int, message: str) -> None:
        if not self._settle(generation):
            logging.debug(f"Discarding stale failure for request {generation}: {message}")
            return
        self.view_state.update(last_reading=self._last_good, last_error=message, is_loading=False)

    def _apply_timeout(self, generation: int, message: str) -> None:
        if not self._settle(generation):
            return
        logging.warning(f"Request {generation} still loading after {self.request_timeout}s, giving up")
        self.view_state.update(last_reading=self._last_good, last_error=message, is_loading=False)
