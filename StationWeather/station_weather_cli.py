"""Command line entry point: print current station weather."""
import argparse
import json
import logging
import os
import sys
import tempfile
from typing import List, Optional

from dotenv import load_dotenv

from nws_provider import DEFAULT_USER_AGENT
from station_weather import StationWeather
from weather_config import DEFAULT_STATION, WeatherConfig
from weather_service import RefreshError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("station-weather", description="Current weather for an NWS station")
    parser.add_argument("key", nargs="?", help="Print only this value (e.g. temperature, isDay, icon)")
    parser.add_argument("--station", help=f"Station identifier (default {DEFAULT_STATION})")
    parser.add_argument("--cache-dir", help="Directory for cache files (default: system temp dir)")
    parser.add_argument("--cache-prefix", help="Cache filename prefix (default: stationweather.<station>.)")
    parser.add_argument("--cache-lifetime", type=int, help="Minutes before cached values expire; 0 disables caching")
    parser.add_argument("--unknown", help="Marker printed for unknown values (default ?)")
    parser.add_argument("--buffer", type=int, help="Minutes either side of sunrise/sunset that count as sunrise/sunset")
    parser.add_argument("--zip", help="Use the deprecated zip code sunrise lookup")
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--max-retries", type=int, default=3)
    parser.add_argument("--retry-delay", type=float, default=1.0)
    parser.add_argument("--log-file")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[str], verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid {name}: {exc}") from exc


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def load_config(args: argparse.Namespace) -> WeatherConfig:
    """Build the run configuration; command line options win over the environment."""
    load_dotenv()

    station = _first(args.station, os.getenv("WEATHER_STATION"), DEFAULT_STATION)
    cache_dir = _first(args.cache_dir, os.getenv("WEATHER_CACHE_DIR"), tempfile.gettempdir())
    lifetime = _first(args.cache_lifetime, _env_int("WEATHER_CACHE_LIFETIME"), 5)
    buffer = _first(args.buffer, _env_int("WEATHER_BUFFER"), 15)

    try:
        config = WeatherConfig(
            station=station,
            cache_dir=cache_dir,
            cache_prefix=_first(args.cache_prefix, os.getenv("WEATHER_CACHE_PREFIX")),
            cache_lifetime=lifetime,
            unknown=_first(args.unknown, os.getenv("WEATHER_UNKNOWN"), "?"),
            buffer_minutes=buffer,
            timeout=args.timeout,
            max_retries=args.max_retries,
            retry_delay_seconds=args.retry_delay,
            zip=_first(args.zip, os.getenv("WEATHER_ZIP") or None),
            user_agent=_first(os.getenv("WEATHER_USER_AGENT"), DEFAULT_USER_AGENT),
            ephemeris_dir=os.getenv("WEATHER_EPHEMERIS_DIR") or None,
        )
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    logging.info(
        "Configuration loaded: station=%s cache=%s%s lifetime=%sm",
        config.station,
        config.cache_dir,
        os.sep + config.cache_prefix,
        config.cache_lifetime,
    )
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config(args)

    try:
        weather = StationWeather(config)
    except RefreshError as err:
        logging.error("Weather refresh failed: %s", err)
        return 1

    if args.key:
        print(weather.get_value(args.key))
    else:
        print(json.dumps(weather.get(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
