"""Weather service that keeps each group of cached keys fresh."""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Set

import weather_units as units
from sky_state import ICONS, SkyState, condition_icon_name, sun_icon_name
from sun_times import SunCalculator, SunTimes, SunTimesError, ZipSunLookup, clock_time_on, solar_date
from weather_cache import CacheWriteError, FileCache
from weather_config import WeatherConfig
from weather_data import ALERT_KEYS, STATION_KEYS, ZIP_KEYS, Key, parse, serialize
from weather_provider import WeatherProviderBase, WeatherProviderError

Fetch = Callable[[], Dict[Key, Any]]


class RefreshError(Exception):
    """Raised when one or more groups could not persist their refreshed values."""

    def __init__(self, failures: Dict[str, Exception]):
        self.failures = failures
        detail = "; ".join(f"{name}: {error}" for name, error in failures.items())
        super().__init__(f"Failed to refresh {', '.join(failures)}: {detail}")


class WeatherService:
    """
    Service that fetches weather groups and serves typed values from the cache.

    A group is the set of keys one remote call produces. When any key in a
    group has expired the whole group is fetched once and every key is
    rewritten with the same TTL. Values written during this run are also
    kept in ``data``, so they stay readable when the TTL is 0 or the cache
    directory cannot be read back.
    """

    def __init__(
        self,
        config: WeatherConfig,
        cache: FileCache,
        provider: WeatherProviderBase,
        sun_calculator: Optional[SunCalculator] = None,
        zip_lookup: Optional[ZipSunLookup] = None,
        now: Optional[datetime] = None
    ):
        """
        Initialize weather service.

        Args:
            config: Run configuration
            cache: File cache shared with other runs
            provider: Source of station observations and alerts
            sun_calculator: Computes sunrise/sunset from coordinates
            zip_lookup: Deprecated sunrise source; replaces sun_calculator when set
            now: Reference instant for derived values (defaults to the wall clock)
        """
        self.config = config
        self.cache = cache
        self.provider = provider
        self.sun_calculator = sun_calculator
        self.zip_lookup = zip_lookup
        self.now = now

        self.data: Dict[Key, Any] = {Key.STATION: config.station}
        if config.zip:
            self.data[Key.ZIP] = config.zip
        self.failures: Dict[str, Exception] = {}
        self._failed_keys: Set[Key] = set()
        self._sun_times: Dict[Any, SunTimes] = {}

    @property
    def now(self) -> datetime:
        return self._now

    @now.setter
    def now(self, now: Optional[datetime]) -> None:
        """None means the wall clock; a naive instant is taken as local time."""
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.astimezone()
        self._now = now

    def _fetch_with_retries(self, fetch: Fetch) -> Dict[Key, Any]:
        last_error = None
        for attempt in range(self.config.max_retries):
            try:
                logging.debug(f"Fetch attempt {attempt + 1}/{self.config.max_retries}")
                return fetch()
            except WeatherProviderError as e:
                last_error = e
                logging.warning(f"Fetch attempt {attempt + 1} failed: {e}")
                # Don't retry on 4xx errors (bad station, bad point, etc.)
                if not e.retryable:
                    logging.error("Non-retryable error (4xx), stopping retries")
                    break
                if attempt < self.config.max_retries - 1:
                    retry_delay = self.config.retry_delay_seconds * (attempt + 1)
                    logging.info(f"Retrying in {retry_delay}s...")
                    time.sleep(retry_delay)
        raise last_error or WeatherProviderError("No fetch attempts were made")

    def refresh_group(self, keys: Iterable[Key], fetch: Fetch) -> bool:
        """
        Fetch a group once if any of its keys has expired.

        Every key in the group is written, with None for keys the response
        left out, so the whole group shares one freshness window.

        Returns:
            bool: True if a fetch happened

        Raises:
            WeatherProviderError: If the fetch failed; nothing is written
            CacheWriteError: If a refreshed value could not be persisted
        """
        keys = tuple(keys)
        names = [key.value for key in keys]
        if not self.cache.is_expired_many(names):
            logging.debug(f"Cache fresh for {', '.join(names)}")
            return False

        logging.info(f"Cache expired, fetching {', '.join(names)}")
        values = self._fetch_with_retries(fetch)
        for key in keys:
            value = values.get(key)
            self.cache.write(key.value, serialize(key.kind, value), self.config.cache_lifetime)
            self.data[key] = value
        self._failed_keys.difference_update(keys)
        return True

    def groups(self):
        """(name, keys, fetch) for every group, in refresh order."""
        groups = [
            ("station", STATION_KEYS, self._fetch_station),
            ("alerts", ALERT_KEYS, self._fetch_alerts),
        ]
        if self.zip_lookup is not None:
            groups.append(("zip", ZIP_KEYS, self._fetch_zip))
        return groups

    def refresh(self) -> None:
        """
        Refresh every group, isolating failures.

        A provider failure leaves every key of that group unknown for this
        run, including keys whose cache entries are still inside their TTL.
        Every group is attempted even after a cache write fails.

        Raises:
            RefreshError: If any group could not persist its values
        """
        write_failures = {}
        for name, keys, fetch in self.groups():
            try:
                self.refresh_group(keys, fetch)
            except WeatherProviderError as e:
                logging.error(f"Failed to refresh {name}: {e}")
                self.failures[name] = e
                self._failed_keys.update(keys)
            except CacheWriteError as e:
                logging.error(f"Failed to cache {name}: {e}")
                self.failures[name] = e
                write_failures[name] = e
        if write_failures:
            raise RefreshError(write_failures)

    def _fetch_station(self) -> Dict[Key, Any]:
        obs = self.provider.get_observation()
        return {
            Key.TIMESTAMP: obs.timestamp,
            Key.RAW: obs.raw_message,
            Key.COORDINATES: obs.coordinates,
            Key.ELEVATION: units.meters_to_feet(obs.elevation_m),
            Key.TEXT: obs.text_description,
            Key.TEMPERATURE: units.deg_c_to_f(obs.temperature_c),
            Key.DEWPOINT: units.deg_c_to_f(obs.dewpoint_c),
            Key.WIND_DIRECTION: obs.wind_direction_deg,
            Key.WIND_SPEED: units.mps_to_mph(obs.wind_speed_mps),
            Key.WIND_GUST: units.mps_to_mph(obs.wind_gust_mps),
            Key.PRESSURE: units.pascals_to_mmhg(obs.pressure_pa),
            Key.VISIBILITY: units.meters_to_miles(obs.visibility_m),
            Key.PRECIPITATION: units.meters_to_inches(obs.precipitation_last_hour_m),
            Key.HUMIDITY: obs.relative_humidity,
            Key.FEELS_LIKE: units.deg_c_to_f(obs.heat_index_c),
        }

    def _fetch_alerts(self) -> Dict[Key, Any]:
        coordinates = self.value(Key.COORDINATES)
        if coordinates is None:
            raise WeatherProviderError("Station coordinates unknown, cannot look up alerts")
        return {Key.ALERTS: self.provider.get_alerts(coordinates.lat, coordinates.lon)}

    def _fetch_zip(self) -> Dict[Key, Any]:
        city, sunrise, sunset = self.zip_lookup.lookup()
        return {Key.CITY: city, Key.SUNRISE: sunrise, Key.SUNSET: sunset}

    def _stored(self, key: Key) -> Any:
        """
        Fresh cache entry first, then what this run wrote, else None.

        Keys of a group whose refresh failed in this run are always None.
        """
        if key in self._failed_keys:
            return None
        cached = self.cache.read(key.value)
        if cached is not None:
            return parse(key.kind, cached)
        return self.data.get(key)

    def sun_times(self) -> SunTimes:
        """Sunrise and sunset for the station's date at ``now``."""
        if self.zip_lookup is not None:
            day = self.now.astimezone().date()
            times = []
            for key in (Key.SUNRISE, Key.SUNSET):
                stored = self._stored(key)
                if isinstance(stored, str):
                    stored = clock_time_on(day, stored)
                times.append(stored)
            return SunTimes(*times)

        coordinates = self.value(Key.COORDINATES)
        if coordinates is None or self.sun_calculator is None:
            return SunTimes(None, None)

        day = solar_date(self.now, coordinates.lon)
        memo_key = (coordinates, day)
        if memo_key not in self._sun_times:
            try:
                self._sun_times[memo_key] = self.sun_calculator.sun_times(coordinates, day)
            except SunTimesError as e:
                logging.error(f"Sunrise/sunset unavailable: {e}")
                self._sun_times[memo_key] = SunTimes(None, None)
        return self._sun_times[memo_key]

    def sky_state(self) -> SkyState:
        sunrise, sunset = self.sun_times()
        return SkyState(self.now, sunrise, sunset, self.config.buffer_minutes)

    def value(self, key: Key) -> Any:
        """
        Typed value for a key, or None when it is unknown.

        Fetched keys come from the cache; sunrise, sunset, day/night flags
        and icons are derived on every call.
        """
        if key in (Key.SUNRISE, Key.SUNSET):
            sunrise, sunset = self.sun_times()
            return sunrise if key is Key.SUNRISE else sunset
        if key is Key.CITY and self.zip_lookup is None:
            return None

        if key in (Key.IS_DAY, Key.IS_NIGHT, Key.IS_SUNRISE, Key.IS_SUNSET, Key.SUN_ICON, Key.ICON):
            state = self.sky_state()
            if key is Key.IS_DAY:
                return state.is_day
            if key is Key.IS_NIGHT:
                return state.is_night
            if key is Key.IS_SUNRISE:
                return state.is_sunrise
            if key is Key.IS_SUNSET:
                return state.is_sunset
            if key is Key.SUN_ICON:
                name = sun_icon_name(state)
            else:
                name = condition_icon_name(self.value(Key.ALERTS) or [], self.value(Key.TEXT), state)
            return ICONS.get(name)

        if key in (Key.STATION, Key.ZIP):
            return self.data.get(key)
        return self._stored(key)
