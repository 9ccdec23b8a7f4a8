"""One getter per weather key, with display rounding and the unknown marker."""
import math
from datetime import datetime
from typing import Any, Dict, Optional, Union

from nws_provider import NWSProvider
from sun_times import SunCalculator, ZipSunLookup
from weather_cache import FileCache
from weather_config import WeatherConfig
from weather_data import Coordinates, Key, ValueKind, parse_number
from weather_service import WeatherService

Display = Union[int, str]


def round_half_up(number: float) -> int:
    return int(math.floor(number + 0.5))


def build_weather_service(config: WeatherConfig, now: Optional[datetime] = None) -> WeatherService:
    provider = NWSProvider(
        station=config.station,
        observation_url=config.observation_url,
        alerts_url=config.alerts_url,
        user_agent=config.user_agent,
        timeout=config.timeout,
    )
    zip_lookup = ZipSunLookup(config.zip_sun_url, config.timeout) if config.zip else None
    return WeatherService(
        config=config,
        cache=FileCache(config.cache_dir, config.cache_prefix),
        provider=provider,
        sun_calculator=SunCalculator(config.ephemeris_dir),
        zip_lookup=zip_lookup,
        now=now,
    )


class StationWeather:
    """
    Current weather for one station.

    Construction refreshes any expired groups, so getters only read.
    Every getter returns the configured unknown marker (``"?"`` by default)
    when a value is missing, and numbers are rounded to whole units.
    """

    def __init__(
        self,
        config: Optional[WeatherConfig] = None,
        service: Optional[WeatherService] = None,
        now: Optional[datetime] = None
    ):
        """
        Initialize and refresh.

        Args:
            config: Run configuration (defaults are used when omitted)
            service: Pre-built service, mainly for tests
            now: Reference instant for day/night values

        Raises:
            RefreshError: If refreshed values could not be cached
        """
        self.config = config or (service.config if service else WeatherConfig())
        self.service = service or build_weather_service(self.config, now)
        if now is not None:
            self.set_now(now)
        self.service.refresh()

    def set_now(self, now: Optional[datetime] = None) -> None:
        """Change the reference instant; without an argument go back to the wall clock."""
        self.service.now = now

    def get_value(self, key: str) -> Display:
        """Display value for a key by name; unknown names give the unknown marker."""
        known = Key.lookup(key)
        if known is None:
            return self.config.unknown
        return self._display(known, self.service.value(known))

    def _display(self, key: Key, value: Any) -> Display:
        unknown = self.config.unknown
        if value is None:
            return unknown
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Coordinates):
            return str(value)
        if key.kind is ValueKind.LINES:
            return "\n".join(value)
        if key.kind is ValueKind.NUMBER:
            number = parse_number(value)
            return unknown if number is None else round_half_up(number)
        return str(value)

    def get_station(self):
        return self.get_value("station")

    def get_zip(self):
        return self.get_value("zip")

    def get_city(self):
        return self.get_value("city")

    def get_sunrise(self):
        return self.get_value("sunrise")

    def get_sunset(self):
        return self.get_value("sunset")

    def get_timestamp(self):
        return self.get_value("timestamp")

    def get_raw(self):
        return self.get_value("raw")

    def get_coordinates(self):
        return self.get_value("coordinates")

    def get_elevation(self):
        return self.get_value("elevation")

    def get_text(self):
        return self.get_value("text")

    def get_temperature(self):
        return self.get_value("temperature")

    def get_dewpoint(self):
        return self.get_value("dewpoint")

    def get_wind_direction(self):
        return self.get_value("windDirection")

    def get_wind_speed(self):
        return self.get_value("windSpeed")

    def get_wind_gust(self):
        return self.get_value("windGust")

    def get_pressure(self):
        return self.get_value("pressure")

    def get_visibility(self):
        return self.get_value("visibility")

    def get_precipitation(self):
        return self.get_value("precipitation")

    def get_humidity(self):
        return self.get_value("humidity")

    def get_feels_like(self):
        return self.get_value("feelsLike")

    def get_alerts(self):
        return self.get_value("alerts")

    def get_is_day(self):
        return self.get_value("isDay")

    def get_is_night(self):
        return self.get_value("isNight")

    def get_is_sunrise(self):
        return self.get_value("isSunrise")

    def get_is_sunset(self):
        return self.get_value("isSunset")

    def get_sun_icon(self):
        return self.get_value("sunIcon")

    def get_icon(self):
        return self.get_value("icon")

    def get(self) -> Dict[str, Display]:
        """Every value, keyed by name."""
        record = {key.value: self.get_value(key.value) for key in Key}
        if not self.config.zip:
            del record["zip"]
            del record["city"]
        return record
