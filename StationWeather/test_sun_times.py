"""Tests for sunrise/sunset helpers."""
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from sun_times import (
    SunCalculator, SunTimesError, ZipSunLookup, clock_time_on, parse_zip_answer,
    solar_date, solar_day_window,
)
from weather_data import Coordinates
from weather_provider import WeatherProviderError

JACKSONVILLE = Coordinates(30.49, -81.71)


def test_solar_date_west_of_greenwich():
    """Test that early UTC hours still belong to the previous day in the Americas."""
    now = datetime(2024, 3, 2, 3, 0, tzinfo=timezone.utc)
    assert solar_date(now, JACKSONVILLE.lon) == date(2024, 3, 1)


def test_solar_date_east_of_greenwich():
    now = datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)
    assert solar_date(now, 150.0) == date(2024, 3, 2)


def test_solar_day_window():
    """Test that the search window is one day starting at local midnight."""
    start, end = solar_day_window(date(2024, 3, 1), -75.0)
    assert start == datetime(2024, 3, 1, 5, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)


def fake_time(moment):
    t = Mock()
    t.utc_datetime.return_value = moment
    return t


def test_sun_calculator():
    """Test that rise and set events are picked out of the almanac search."""
    sunrise = datetime(2024, 3, 1, 11, 42, tzinfo=timezone.utc)
    sunset = datetime(2024, 3, 1, 23, 28, tzinfo=timezone.utc)

    with patch("sun_times.Loader") as mock_loader, \
            patch("sun_times.almanac") as mock_almanac, \
            patch("sun_times.wgs84") as mock_wgs84:
        load = MagicMock()
        mock_loader.return_value = load
        mock_almanac.find_discrete.return_value = (
            [fake_time(sunrise), fake_time(sunset)], [1, 0]
        )

        calculator = SunCalculator("/tmp/ephemeris-test")
        with patch("sun_times.os.makedirs"):
            times = calculator.sun_times(JACKSONVILLE, date(2024, 3, 1))

        assert times.sunrise == sunrise
        assert times.sunset == sunset
        mock_wgs84.latlon.assert_called_once_with(30.49, -81.71)
        load.assert_called_once_with("de421.bsp")


def test_sun_calculator_polar_night():
    """Test that a day without a sunrise leaves both times missing."""
    with patch("sun_times.Loader"), patch("sun_times.almanac") as mock_almanac, \
            patch("sun_times.wgs84"), patch("sun_times.os.makedirs"):
        mock_almanac.find_discrete.return_value = ([], [])

        times = SunCalculator("/tmp/ephemeris-test").sun_times(Coordinates(78.2, 15.6), date(2024, 12, 21))

        assert times.sunrise is None
        assert times.sunset is None


def test_sun_calculator_load_failure():
    """Test that a failed ephemeris download is reported as SunTimesError."""
    with patch("sun_times.Loader") as mock_loader, patch("sun_times.os.makedirs"):
        mock_loader.return_value.side_effect = OSError("download failed")

        with pytest.raises(SunTimesError):
            SunCalculator("/tmp/ephemeris-test").sun_times(JACKSONVILLE, date(2024, 3, 1))


def test_parse_zip_answer():
    answer = "Sunrise in Jacksonville, FL 32202 is at 6:58 AM; sunset at 6:32 PM"
    assert parse_zip_answer(answer) == ("Jacksonville", "6:58 AM", "6:32 PM")


def test_parse_zip_answer_ignores_case():
    answer = "SUNRISE IN Portland, ME is at 5:41 am; Sunset at 7:02 pm"
    assert parse_zip_answer(answer) == ("Portland", "5:41 am", "7:02 pm")


def test_parse_zip_answer_unrecognized():
    with pytest.raises(ValueError):
        parse_zip_answer("No idea")


def test_clock_time_on():
    moment = clock_time_on(date(2024, 3, 1), "6:58 pm")
    assert moment.hour == 18
    assert moment.minute == 58
    assert moment.tzinfo is not None
    assert clock_time_on(date(2024, 3, 1), "soon") is None


def test_zip_lookup():
    """Test the deprecated zip lookup end to end with a mocked response."""
    with patch("sun_times.requests.get") as mock_get:
        mock_response = Mock()
        mock_response.json.return_value = {
            "Answer": "Sunrise in Jacksonville, FL is at 6:58 AM; sunset at 6:32 PM"
        }
        mock_get.return_value = mock_response

        assert ZipSunLookup(timeout=3).lookup() == ("Jacksonville", "6:58 AM", "6:32 PM")
        assert mock_get.call_args[1]["timeout"] == 3


def test_zip_lookup_network_error():
    with patch("sun_times.requests.get") as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("offline")

        with pytest.raises(WeatherProviderError):
            ZipSunLookup().lookup()


def test_zip_lookup_bad_answer():
    with patch("sun_times.requests.get") as mock_get:
        mock_get.return_value.json.return_value = {"Answer": ""}

        with pytest.raises(WeatherProviderError) as exc_info:
            ZipSunLookup().lookup()

        assert "Failed to parse response" in str(exc_info.value)
