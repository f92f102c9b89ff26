"""Single-screen current weather app for the terminal."""
import argparse
import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import load_dotenv

from weather_layout import render_screen
from location_resolver import DEFAULT_CITY, EnvironmentLocationPlatform, LocationResolver
from request_controller import RequestController
from view_state import ViewState, log_changes
from weather_data import UnitPreference
from weatherapi_provider import WeatherApiProvider

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "weather-now.log")


@dataclass
class AppConfig:
    api_key: str
    default_city: str = DEFAULT_CITY
    lat: Optional[float] = None
    lon: Optional[float] = None
    units: UnitPreference = UnitPreference.METRIC


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Current weather for a city")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE, help="Empty string disables file logging")
    parser.add_argument("--timeout", type=float, default=10.0, help="HTTP timeout in seconds")
    parser.add_argument("--city", default=None, help="Search this city on startup instead of the device location")
    parser.add_argument("--units", choices=["metric", "imperial"], default=None)
    parser.add_argument("--no-location", action="store_true", help="Don't look up the device location on startup")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def load_config() -> AppConfig:
    load_dotenv()
    api_key = os.getenv("WEATHER_API_KEY")
    default_city = os.getenv("WEATHER_DEFAULT_CITY", DEFAULT_CITY).strip() or DEFAULT_CITY
    lat = os.getenv("WEATHER_LAT")
    lon = os.getenv("WEATHER_LON")
    units = os.getenv("WEATHER_UNITS", "metric").strip().lower()

    if not api_key or not api_key.strip():
        raise SystemExit("Missing WEATHER_API_KEY in environment")
    if bool(lat) != bool(lon):
        raise SystemExit("Set both WEATHER_LAT and WEATHER_LON, or neither")

    lat_val = lon_val = None
    if lat and lon:
        try:
            lat_val = float(lat)
            lon_val = float(lon)
        except ValueError as exc:
            raise SystemExit(f"Invalid coordinates: {exc}") from exc

    try:
        unit = UnitPreference(units)
    except ValueError as exc:
        raise SystemExit(f"Invalid WEATHER_UNITS '{units}', expected metric or imperial") from exc

    logging.info("Configuration loaded: default_city=%s lat=%s lon=%s units=%s", default_city, lat_val, lon_val, unit.value)
    return AppConfig(api_key=api_key.strip(), default_city=default_city, lat=lat_val, lon=lon_val, units=unit)


def build_controller(config: AppConfig, args: argparse.Namespace) -> RequestController:
    provider = WeatherApiProvider(api_key=config.api_key, timeout=args.timeout)
    units = UnitPreference(args.units) if args.units else config.units
    state = ViewState(unit_preference=units)
    state.subscribe(log_changes)
    controller = RequestController(provider, state, request_timeout=args.timeout)
    logging.info("Weather controller ready (timeout=%ss)", args.timeout)
    return controller


def handle_command(
    command: str,
    controller: RequestController,
    resolver: LocationResolver
) -> bool:
    """Apply one line of user input. Returns False when the user quits."""
    text = command.strip()
    lowered = text.lower()
    if lowered == "q":
        return False
    if lowered == "u":
        controller.toggle_unit()
    elif lowered == "l":
        controller.submit_current_location(resolver)
    else:
        controller.search(text)
    return True


def screen_loop(
    controller: RequestController,
    resolver: LocationResolver,
    timeout: float,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print
) -> None:
    while True:
        # Requests are bounded by the HTTP timeout; leave a little slack
        if not controller.wait_idle(timeout=timeout + 5):
            logging.warning("Request still running after %ss", timeout + 5)
        write(render_screen(controller.view_state))
        try:
            command = read_line("> ")
        except EOFError:
            return
        if not handle_command(command, controller, resolver):
            return


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config()

    controller = build_controller(config, args)
    resolver = LocationResolver(
        EnvironmentLocationPlatform(config.lat, config.lon),
        default_city=config.default_city,
    )

    if args.city:
        controller.search(args.city)
    elif not args.no_location:
        controller.submit_current_location(resolver)

    try:
        screen_loop(controller, resolver, args.timeout)
    except KeyboardInterrupt:
        logging.info("Stopping")
    finally:
        controller.shutdown(wait=False)
        logging.info("Shut down")


if __name__ == "__main__":
    main()
