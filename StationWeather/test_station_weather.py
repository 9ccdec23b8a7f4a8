"""Tests for the accessor façade."""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from sky_state import ICONS
from station_weather import StationWeather, build_weather_service, round_half_up
from sun_times import SunTimes
from test_weather_service import MockProvider, MockSunCalculator, SUNRISE, SUNSET, make_service
from weather_config import WeatherConfig
from weather_data import Coordinates, StationObservation
from weather_provider import WeatherProviderError
from weather_service import RefreshError


@pytest.fixture
def observation():
    return StationObservation(
        timestamp="2024-03-01T16:56:00+00:00",
        raw_message="KJAX 011656Z 27009KT 10SM FEW250 21/16 A3002",
        coordinates=Coordinates(30.49, -81.71),
        elevation_m=9.0,
        text_description="Partly Cloudy",
        temperature_c=20.5,
        dewpoint_c=15.6,
        wind_direction_deg=270.0,
        wind_speed_mps=4.1,
        pressure_pa=101660.0,
        visibility_m=16093.4,
        precipitation_last_hour_m=0.0,
        relative_humidity=71.5,
        heat_index_c=None,
    )


@pytest.fixture
def config(tmp_path):
    return WeatherConfig(cache_dir=str(tmp_path), max_retries=1, retry_delay_seconds=0)


@pytest.fixture
def weather(config, observation):
    provider = MockProvider(observation, alerts=["Flood Warning", "Heat Advisory"])
    service = make_service(config, provider)
    return StationWeather(service=service, now=SUNRISE + timedelta(hours=5))


@pytest.mark.parametrize("number,expected", [
    (2.5, 3),
    (2.4999, 2),
    (-2.5, -2),
    (68.9, 69),
    (0.0, 0),
])
def test_round_half_up(number, expected):
    assert round_half_up(number) == expected


def test_numbers_are_rounded(weather):
    """Test that numeric values come back as whole display units."""
    assert weather.get_temperature() == 69
    assert weather.get_dewpoint() == 60
    assert weather.get_wind_speed() == 9
    assert weather.get_wind_direction() == 270
    assert weather.get_pressure() == 763
    assert weather.get_visibility() == 10
    assert weather.get_precipitation() == 0
    assert weather.get_humidity() == 72
    assert weather.get_elevation() == 30


def test_text_values_pass_through(weather):
    assert weather.get_station() == "KJAX"
    assert weather.get_text() == "Partly Cloudy"
    assert weather.get_raw().startswith("KJAX 011656Z")
    assert weather.get_timestamp() == "2024-03-01T16:56:00+00:00"
    assert weather.get_coordinates() == "30.49,-81.71"
    assert weather.get_alerts() == "Flood Warning\nHeat Advisory"


def test_missing_values_are_unknown(weather):
    """Test that a reading the station left out resolves to the unknown marker."""
    assert weather.get_feels_like() == "?"
    assert weather.get_wind_gust() == "?"
    assert weather.get_value("bogus") == "?"


def test_custom_unknown_marker(tmp_path, observation):
    config = WeatherConfig(cache_dir=str(tmp_path), unknown="--", max_retries=1)
    weather = StationWeather(service=make_service(config, MockProvider(observation)), config=config)

    assert weather.get_feels_like() == "--"


def test_nan_in_cache_is_unknown(weather, config):
    """Test that a literal NaN stored in the cache is not passed through."""
    weather.service.cache.write("humidity", "NaN", 5)
    assert weather.get_humidity() == "?"


def test_sun_values(weather):
    assert weather.get_sunrise() == SUNRISE.isoformat()
    assert weather.get_sunset() == SUNSET.isoformat()
    assert weather.get_is_day() == 1
    assert weather.get_is_night() == 0
    assert weather.get_is_sunrise() == 0
    assert weather.get_is_sunset() == 0
    assert weather.get_sun_icon() == ICONS["day"]
    assert weather.get_icon() == ICONS["cloudy"]


def test_set_now(weather):
    """Test moving the reference instant around sunrise and back to the wall clock."""
    weather.set_now(SUNRISE - timedelta(minutes=1))
    assert (weather.get_is_day(), weather.get_is_night(), weather.get_is_sunrise()) == (0, 1, 1)

    weather.set_now(SUNRISE)
    assert (weather.get_is_day(), weather.get_is_night(), weather.get_is_sunrise()) == (1, 0, 1)

    weather.set_now(SUNSET + timedelta(minutes=1))
    assert (weather.get_is_day(), weather.get_is_sunset()) == (0, 1)

    weather.set_now(SUNRISE - timedelta(minutes=120))
    assert (weather.get_is_night(), weather.get_is_sunrise(), weather.get_is_sunset()) == (1, 0, 0)

    before = datetime.now(timezone.utc)
    weather.set_now()
    assert weather.service.now >= before


def test_get_aggregate(weather):
    """Test that get() returns every value keyed by name."""
    record = weather.get()

    assert record["temperature"] == 69
    assert record["feelsLike"] == "?"
    assert record["station"] == "KJAX"
    assert record["isDay"] == 1
    assert "zip" not in record
    assert "city" not in record
    assert len(record) == 25


def test_everything_unknown_when_offline(config):
    """Test that a failed fetch degrades every value instead of raising."""
    provider = MockProvider(raise_error=WeatherProviderError("Network error"))
    weather = StationWeather(service=make_service(config, provider, MockSunCalculator(SunTimes(None, None))))

    record = weather.get()
    assert record["station"] == "KJAX"
    assert all(value == "?" for name, value in record.items() if name != "station")


def test_write_failure_propagates(tmp_path, observation):
    config = WeatherConfig(cache_dir=str(tmp_path / "missing"), max_retries=1)

    with pytest.raises(RefreshError):
        StationWeather(service=make_service(config, MockProvider(observation)))


def test_build_weather_service(config):
    """Test wiring of the real collaborators from configuration."""
    service = build_weather_service(config)

    assert service.provider.station == "KJAX"
    assert service.cache.prefix == "stationweather.KJAX."
    assert service.zip_lookup is None


def test_default_construction_refreshes(config, observation):
    """Test that constructing from a config builds the service and refreshes once."""
    with patch("station_weather.build_weather_service") as mock_build:
        service = make_service(config, MockProvider(observation))
        mock_build.return_value = service

        weather = StationWeather(config)

        mock_build.assert_called_once_with(config, None)
        assert weather.get_temperature() == 69
