"""Layout logic for the weather screen - pure functions for testability."""
from typing import List, Optional
from view_state import RequestStatus, ViewState
from weather_data import UnitPreference

SCREEN_WIDTH = 60


def format_temperature(value: Optional[float], unit: UnitPreference) -> str:
    """
    Format a temperature for display.

    Args:
        value: Temperature already in ``unit``, or None
        unit: Unit the value is expressed in

    Returns:
        e.g. "15.0 °C", or "--" when there is no value
    """
    if value is None:
        return "--"
    return f"{value:.1f} {unit.symbol}"


def format_status_line(state: ViewState) -> str:
    """Single line describing the request status."""
    status = state.status
    if status is RequestStatus.LOADING:
        return "Loading..."
    if status is RequestStatus.FAILURE:
        return f"Error: {state.last_error}"
    if status is RequestStatus.IDLE:
        return "Search for a city to see its weather"
    return ""


def format_weather_lines(state: ViewState) -> List[str]:
    """
    Lines shown below the search box.

    Temperatures come from the same reading whatever the unit; toggling units
    only changes which field is picked.
    """
    unit = state.unit_preference
    reading = state.last_reading
    lines = [f"Weather in {state.location_label}" if reading else "Weather"]

    temp = format_temperature(state.display_temperature(), unit)
    lines.append(temp)
    if reading is not None:
        feels = format_temperature(reading.feels_like(unit), unit)
        lines.append(f"Feels {feels}  Hum {reading.humidity_percent}%")

    status = format_status_line(state)
    if status:
        lines.append(status)
    return lines


def render_screen(state: ViewState, width: int = SCREEN_WIDTH) -> str:
    """Render the whole screen as text."""
    rule = "-" * width
    body = [
        "Enter city name:",
        f"> {state.city_name_input}",
        rule,
    ]
    body.extend(line[:width] for line in format_weather_lines(state))
    body.append(rule)
    other = state.unit_preference.toggled()
    body.append(f"[u] Toggle {state.unit_preference.symbol} / {other.symbol}  [l] My location  [q] Quit")
    return "\n".join(body)
