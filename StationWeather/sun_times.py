"""Sunrise and sunset times for the station's coordinates."""
import logging
import os
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional, Tuple

import requests
from skyfield import almanac
from skyfield.api import Loader, wgs84

from weather_data import Coordinates
from weather_provider import WeatherProviderError

EPHEMERIS_FILE = "de421.bsp"
DEFAULT_ZIP_SUN_URL = "https://api.duckduckgo.com/?q=sunrise%20today&format=json"

_ZIP_ANSWER = re.compile(
    r"sunrise in ([^,]+)(,\s.*)* is at ([0-9:]+\s*[ap]m); sunset at ([0-9:]+\s*[ap]m)",
    re.IGNORECASE,
)


class SunTimes(NamedTuple):
    sunrise: Optional[datetime]
    sunset: Optional[datetime]


class SunTimesError(Exception):
    """Raised when sunrise/sunset could not be computed."""
    pass


def solar_date(now: datetime, longitude: float) -> date:
    """Date at the station, approximating its clock from longitude (15 degrees per hour)."""
    utc_now = now.astimezone(timezone.utc)
    return (utc_now + timedelta(hours=longitude / 15.0)).date()


def solar_day_window(day: date, longitude: float) -> Tuple[datetime, datetime]:
    """UTC start and end of ``day`` at the station, using the same longitude clock."""
    start = datetime.combine(day, time(0), tzinfo=timezone.utc) - timedelta(hours=longitude / 15.0)
    return start, start + timedelta(days=1)


class SunCalculator:
    """
    Computes sunrise and sunset with skyfield.

    The JPL ephemeris is downloaded into ``ephemeris_dir`` the first time it
    is needed and loaded once per calculator.
    """

    def __init__(self, ephemeris_dir: str):
        self.ephemeris_dir = ephemeris_dir
        self._ephemeris = None
        self._timescale = None

    def _init_if_needed(self) -> None:
        if self._ephemeris is None:
            os.makedirs(self.ephemeris_dir, exist_ok=True)
            load = Loader(self.ephemeris_dir, verbose=False)
            logging.info(f"Loading ephemeris {EPHEMERIS_FILE} from {self.ephemeris_dir}")
            self._timescale = load.timescale()
            self._ephemeris = load(EPHEMERIS_FILE)

    def sun_times(self, coordinates: Coordinates, day: date) -> SunTimes:
        """
        Find sunrise and sunset on the station's local ``day``.

        Either time is None when the sun does not rise or set that day
        (polar day or night).

        Raises:
            SunTimesError: If the ephemeris cannot be loaded
        """
        try:
            self._init_if_needed()
        except (OSError, ValueError) as e:
            logging.error(f"Failed to load ephemeris: {e}")
            raise SunTimesError(f"Failed to load ephemeris: {e}") from e

        start, end = solar_day_window(day, coordinates.lon)
        t0 = self._timescale.from_datetime(start)
        t1 = self._timescale.from_datetime(end)
        sun_is_up = almanac.sunrise_sunset(
            self._ephemeris, wgs84.latlon(coordinates.lat, coordinates.lon)
        )
        times, events = almanac.find_discrete(t0, t1, sun_is_up)

        sunrise = sunset = None
        for moment, risen in zip(times, events):
            if risen and sunrise is None:
                sunrise = moment.utc_datetime()
            elif not risen and sunset is None:
                sunset = moment.utc_datetime()

        logging.debug(f"Sun times for {coordinates} on {day}: sunrise={sunrise} sunset={sunset}")
        return SunTimes(sunrise, sunset)


def clock_time_on(day: date, text: str) -> Optional[datetime]:
    """Combine a clock time like ``6:45 AM`` with ``day`` in the local time zone."""
    try:
        clock = datetime.strptime(text.replace(" ", "").upper(), "%I:%M%p").time()
    except ValueError:
        return None
    return datetime.combine(day, clock).astimezone()


def parse_zip_answer(answer: str) -> Tuple[str, str, str]:
    """
    Pull (city, sunrise, sunset) out of a "sunrise today" instant answer.

    Raises:
        ValueError: If the answer is not in the expected form
    """
    match = _ZIP_ANSWER.search(answer or "")
    if match is None:
        raise ValueError(f"Unrecognized sunrise answer: {answer!r}")
    return match.group(1), match.group(3), match.group(4)


class ZipSunLookup:
    """
    Deprecated: city, sunrise and sunset from a search engine's instant answer.

    The answer is located from the caller's IP address rather than the
    station, and times come back as bare clock strings. Coordinates from the
    station observation are the preferred source.
    """

    def __init__(self, url: str = DEFAULT_ZIP_SUN_URL, timeout: int = 10):
        logging.warning("The zip code sunrise lookup is deprecated; sun times from station coordinates are preferred")
        self.url = url
        self.timeout = timeout

    def lookup(self) -> Tuple[str, str, str]:
        """
        Raises:
            WeatherProviderError: If the request fails or the answer cannot be parsed
        """
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            return parse_zip_answer(response.json().get("Answer"))
        except requests.exceptions.RequestException as e:
            logging.error(f"Sunrise lookup failed: {e}")
            raise WeatherProviderError(f"Network error: {e}") from e
        except (ValueError, AttributeError, TypeError) as e:
            logging.error(f"Failed to parse sunrise lookup: {e}")
            raise WeatherProviderError(f"Failed to parse response: {e}") from e
