"""Tests for the command line entry point."""
import json
from unittest.mock import patch

import pytest

import station_weather_cli as cli
from weather_service import RefreshError

ENV_VARS = (
    "WEATHER_STATION", "WEATHER_CACHE_DIR", "WEATHER_CACHE_PREFIX", "WEATHER_CACHE_LIFETIME",
    "WEATHER_UNKNOWN", "WEATHER_BUFFER", "WEATHER_ZIP", "WEATHER_USER_AGENT", "WEATHER_EPHEMERIS_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment and .env file out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("station_weather_cli.load_dotenv"):
        yield


def test_load_config_defaults():
    config = cli.load_config(cli.parse_args([]))

    assert config.station == "KJAX"
    assert config.cache_lifetime == 5
    assert config.unknown == "?"
    assert config.buffer_minutes == 15
    assert config.cache_prefix == "stationweather.KJAX."
    assert config.zip is None


def test_load_config_environment(monkeypatch, tmp_path):
    """Test that environment variables configure the run."""
    monkeypatch.setenv("WEATHER_STATION", "KSFO")
    monkeypatch.setenv("WEATHER_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("WEATHER_CACHE_LIFETIME", "0")

    config = cli.load_config(cli.parse_args([]))

    assert config.station == "KSFO"
    assert config.cache_dir == str(tmp_path)
    assert config.cache_lifetime == 0
    assert config.cache_prefix == "stationweather.KSFO."


def test_command_line_wins_over_environment(monkeypatch):
    monkeypatch.setenv("WEATHER_STATION", "KSFO")
    monkeypatch.setenv("WEATHER_UNKNOWN", "n/a")

    config = cli.load_config(cli.parse_args(["--station", "KBOS", "--cache-prefix", "wx."]))

    assert config.station == "KBOS"
    assert config.cache_prefix == "wx."
    assert config.unknown == "n/a"


def test_invalid_environment_integer(monkeypatch):
    monkeypatch.setenv("WEATHER_CACHE_LIFETIME", "soon")

    with pytest.raises(SystemExit):
        cli.load_config(cli.parse_args([]))


def test_negative_lifetime_rejected():
    with pytest.raises(SystemExit):
        cli.load_config(cli.parse_args(["--cache-lifetime", "-1"]))


def test_main_prints_single_value(capsys):
    with patch("station_weather_cli.StationWeather") as mock_weather:
        mock_weather.return_value.get_value.return_value = 72

        assert cli.main(["temperature"]) == 0

        mock_weather.return_value.get_value.assert_called_once_with("temperature")
        assert capsys.readouterr().out.strip() == "72"


def test_main_prints_aggregate(capsys):
    with patch("station_weather_cli.StationWeather") as mock_weather:
        mock_weather.return_value.get.return_value = {"station": "KJAX", "temperature": 72}

        assert cli.main([]) == 0

        assert json.loads(capsys.readouterr().out) == {"station": "KJAX", "temperature": 72}


def test_main_fails_on_cache_write_error():
    """Test that an unpersisted refresh gives a non-zero exit status."""
    with patch("station_weather_cli.StationWeather") as mock_weather:
        mock_weather.side_effect = RefreshError({"station": OSError("read-only file system")})

        assert cli.main(["temperature"]) == 1


def test_setup_logging_file(tmp_path):
    log_file = tmp_path / "weather.log"
    with patch("station_weather_cli.logging.basicConfig") as mock_basic:
        cli.setup_logging(str(log_file), verbose=True)

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 2
        assert mock_basic.call_args[1]["level"] == cli.logging.DEBUG
        for handler in handlers:
            handler.close()
