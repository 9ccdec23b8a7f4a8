"""Weather domain model - typed cache keys and the raw station observation."""
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


class ValueKind(Enum):
    """How a key's value is stored as text."""
    TEXT = "text"
    NUMBER = "number"
    COORDINATES = "coordinates"
    INSTANT = "instant"
    LINES = "lines"


class Key(Enum):
    """Every data key the accessors know about, with the kind of value it holds."""

    def __new__(cls, name: str, kind: ValueKind):
        member = object.__new__(cls)
        member._value_ = name
        member.kind = kind
        return member

    # Station observation group
    TIMESTAMP = ("timestamp", ValueKind.TEXT)
    RAW = ("raw", ValueKind.TEXT)
    COORDINATES = ("coordinates", ValueKind.COORDINATES)
    ELEVATION = ("elevation", ValueKind.NUMBER)
    TEXT = ("text", ValueKind.TEXT)
    TEMPERATURE = ("temperature", ValueKind.NUMBER)
    DEWPOINT = ("dewpoint", ValueKind.NUMBER)
    WIND_DIRECTION = ("windDirection", ValueKind.NUMBER)
    WIND_SPEED = ("windSpeed", ValueKind.NUMBER)
    WIND_GUST = ("windGust", ValueKind.NUMBER)
    PRESSURE = ("pressure", ValueKind.NUMBER)
    VISIBILITY = ("visibility", ValueKind.NUMBER)
    PRECIPITATION = ("precipitation", ValueKind.NUMBER)
    HUMIDITY = ("humidity", ValueKind.NUMBER)
    FEELS_LIKE = ("feelsLike", ValueKind.NUMBER)

    # Alerts group
    ALERTS = ("alerts", ValueKind.LINES)

    # Deprecated zip lookup group (sunrise/sunset are clock times there)
    CITY = ("city", ValueKind.TEXT)
    SUNRISE = ("sunrise", ValueKind.INSTANT)
    SUNSET = ("sunset", ValueKind.INSTANT)

    # Served from memory, never fetched
    STATION = ("station", ValueKind.TEXT)
    ZIP = ("zip", ValueKind.TEXT)
    IS_DAY = ("isDay", ValueKind.NUMBER)
    IS_NIGHT = ("isNight", ValueKind.NUMBER)
    IS_SUNRISE = ("isSunrise", ValueKind.NUMBER)
    IS_SUNSET = ("isSunset", ValueKind.NUMBER)
    SUN_ICON = ("sunIcon", ValueKind.TEXT)
    ICON = ("icon", ValueKind.TEXT)

    @classmethod
    def lookup(cls, name: str) -> Optional["Key"]:
        """Find a key by its wire name, or None when it is not part of the schema."""
        try:
            return cls(name)
        except ValueError:
            return None


STATION_KEYS = (
    Key.TIMESTAMP, Key.RAW, Key.COORDINATES, Key.ELEVATION, Key.TEXT,
    Key.TEMPERATURE, Key.DEWPOINT, Key.WIND_DIRECTION, Key.WIND_SPEED,
    Key.WIND_GUST, Key.PRESSURE, Key.VISIBILITY, Key.PRECIPITATION,
    Key.HUMIDITY, Key.FEELS_LIKE,
)
ALERT_KEYS = (Key.ALERTS,)
ZIP_KEYS = (Key.CITY, Key.SUNRISE, Key.SUNSET)


class Coordinates(NamedTuple):
    lat: float
    lon: float

    def __str__(self) -> str:
        return f"{self.lat},{self.lon}"


@dataclass
class StationObservation:
    """Latest observation for a station, in the provider's metric units."""
    timestamp: Optional[str] = None
    raw_message: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    elevation_m: Optional[float] = None
    text_description: Optional[str] = None
    temperature_c: Optional[float] = None
    dewpoint_c: Optional[float] = None
    wind_direction_deg: Optional[float] = None
    wind_speed_mps: Optional[float] = None
    wind_gust_mps: Optional[float] = None
    pressure_pa: Optional[float] = None
    visibility_m: Optional[float] = None
    precipitation_last_hour_m: Optional[float] = None
    relative_humidity: Optional[float] = None
    heat_index_c: Optional[float] = None


def parse_number(text) -> Optional[float]:
    """Parse a finite number, returning None for anything else (including NaN)."""
    if text is None or isinstance(text, bool):
        return None
    try:
        number = float(text)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def serialize(kind: ValueKind, value) -> str:
    """
    Render a typed value as the text stored in a cache entry.

    None (a field the provider did not report) is stored as an empty string.
    """
    if value is None:
        return ""
    if kind is ValueKind.LINES:
        return "\n".join(value)
    if kind is ValueKind.INSTANT and isinstance(value, datetime):
        return value.isoformat()
    if kind is ValueKind.NUMBER:
        number = parse_number(value)
        return "" if number is None else repr(number)
    return str(value)


def parse(kind: ValueKind, text: Optional[str]):
    """
    Turn cached text back into a typed value.

    Returns None when the text is empty or malformed for its kind, so bad
    entries stop at this boundary instead of leaking out as strings.
    """
    if text is None:
        return None
    if kind is ValueKind.LINES:
        return [line for line in text.split("\n") if line]
    if text == "":
        return None
    if kind is ValueKind.NUMBER:
        return parse_number(text)
    if kind is ValueKind.COORDINATES:
        parts = text.split(",")
        if len(parts) != 2:
            return None
        lat, lon = parse_number(parts[0]), parse_number(parts[1])
        if lat is None or lon is None:
            return None
        return Coordinates(lat, lon)
    if kind is ValueKind.INSTANT:
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            # Clock times from the zip lookup ("6:45 AM") stay as text
            return text
    return text
