"""Runtime configuration for the station weather client."""
import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional

from nws_provider import DEFAULT_ALERTS_URL, DEFAULT_OBSERVATION_URL, DEFAULT_USER_AGENT
from sky_state import DEFAULT_BUFFER_MINUTES
from sun_times import DEFAULT_ZIP_SUN_URL

DEFAULT_STATION = "KJAX"


@dataclass
class WeatherConfig:
    """Everything the service needs; one instance is built per run and passed down."""
    station: str = DEFAULT_STATION
    cache_dir: str = field(default_factory=tempfile.gettempdir)
    cache_prefix: Optional[str] = None
    cache_lifetime: int = 5  # minutes; 0 disables caching
    unknown: str = "?"
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    timeout: int = 10
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    zip: Optional[str] = None  # set to use the deprecated zip sunrise lookup
    observation_url: str = DEFAULT_OBSERVATION_URL
    alerts_url: str = DEFAULT_ALERTS_URL
    zip_sun_url: str = DEFAULT_ZIP_SUN_URL
    user_agent: str = DEFAULT_USER_AGENT
    ephemeris_dir: Optional[str] = None

    def __post_init__(self):
        if self.cache_prefix is None:
            self.cache_prefix = f"stationweather.{self.station}."
        if self.ephemeris_dir is None:
            self.ephemeris_dir = os.path.join(self.cache_dir, "stationweather-ephemeris")
        if self.cache_lifetime < 0:
            raise ValueError("cache_lifetime must not be negative")
