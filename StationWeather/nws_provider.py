"""National Weather Service (api.weather.gov) provider implementation."""
import logging
from typing import Any, Dict, List, Optional

import requests

from weather_data import Coordinates, StationObservation
from weather_provider import WeatherProviderBase, WeatherProviderError

DEFAULT_OBSERVATION_URL = "https://api.weather.gov/stations/{station}/observations/latest"
DEFAULT_ALERTS_URL = "https://api.weather.gov/alerts/active?point={lat},{lon}"
DEFAULT_USER_AGENT = "station-weather/1.0 (weather-monitoring)"

# Factors that bring a reading to the SI unit the observation model expects
_UNIT_SCALE = {
    "wmoUnit:km_h-1": 1 / 3.6,
    "wmoUnit:mm": 0.001,
    "wmoUnit:hPa": 100.0,
}


class NWSProvider(WeatherProviderBase):
    """
    Weather provider using the NWS public API.

    Observations come from ``/stations/{station}/observations/latest`` and
    alerts from ``/alerts/active?point={lat},{lon}``. No API key is needed,
    but the service asks every client to send a descriptive User-Agent.
    """

    def __init__(
        self,
        station: str,
        observation_url: str = DEFAULT_OBSERVATION_URL,
        alerts_url: str = DEFAULT_ALERTS_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: int = 10
    ):
        """
        Initialize NWS provider.

        Args:
            station: Station identifier (e.g., "KJAX")
            observation_url: URL template with a ``{station}`` placeholder
            alerts_url: URL template with ``{lat}`` and ``{lon}`` placeholders
            user_agent: User-Agent header sent with every request
            timeout: HTTP request timeout in seconds
        """
        self.station = station
        self.observation_url = observation_url
        self.alerts_url = alerts_url
        self.user_agent = user_agent
        self.timeout = timeout

    def _get_json(self, url: str) -> Dict[str, Any]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/geo+json"}
        try:
            logging.info(f"Making NWS API request: {url}")
            response = requests.get(url, headers=headers, timeout=self.timeout)
            logging.info(f"API response status: {response.status_code}")
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise WeatherProviderError(f"Network error: {e}") from e

        if not response.ok:
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            logging.error(f"API returned invalid JSON: {e}")
            raise WeatherProviderError(f"Failed to parse response: {e}") from e

        if not isinstance(data, dict):
            raise WeatherProviderError("Response is not a JSON object")
        logging.debug(f"API response (truncated): {str(data)[:500]}...")
        return data

    def get_observation(self) -> StationObservation:
        """
        Fetch the latest observation for the station.

        Returns:
            StationObservation: Readings converted to SI units; anything the
            station left out is None

        Raises:
            WeatherProviderError: If the request fails or the response has no
            ``properties`` block
        """
        data = self._get_json(self.observation_url.replace("{station}", self.station))

        props = data.get("properties")
        if not isinstance(props, dict):
            logging.error("Response missing 'properties' block")
            raise WeatherProviderError("Response missing 'properties' block")

        try:
            observation = StationObservation(
                timestamp=props.get("timestamp"),
                raw_message=props.get("rawMessage"),
                coordinates=_coordinates(data.get("geometry")),
                elevation_m=_reading(props, "elevation"),
                text_description=props.get("textDescription"),
                temperature_c=_temperature(props, "temperature"),
                dewpoint_c=_temperature(props, "dewpoint"),
                wind_direction_deg=_reading(props, "windDirection"),
                wind_speed_mps=_reading(props, "windSpeed"),
                wind_gust_mps=_reading(props, "windGust"),
                pressure_pa=_reading(props, "barometricPressure"),
                visibility_m=_reading(props, "visibility"),
                precipitation_last_hour_m=_reading(props, "precipitationLastHour"),
                relative_humidity=_reading(props, "relativeHumidity"),
                heat_index_c=_temperature(props, "heatIndex"),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logging.error(f"Failed to parse observation: {e}", exc_info=True)
            raise WeatherProviderError(f"Failed to parse response: {e}") from e
        logging.info(
            f"Parsed observation for {self.station}: "
            f"{observation.temperature_c}°C, {observation.text_description}"
        )
        return observation

    def get_alerts(self, lat: float, lon: float) -> List[str]:
        """
        Fetch the event names of alerts active at a point, in feed order.

        Raises:
            WeatherProviderError: If the request fails or the response has no
            ``features`` array
        """
        url = self.alerts_url.replace("{lat}", str(lat)).replace("{lon}", str(lon))
        data = self._get_json(url)

        features = data.get("features")
        if not isinstance(features, list):
            logging.error("Response missing 'features' array")
            raise WeatherProviderError("Response missing 'features' array")

        events = []
        try:
            for feature in features:
                event = ((feature or {}).get("properties") or {}).get("event")
                if isinstance(event, str) and event:
                    events.append(event)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logging.error(f"Failed to parse alerts: {e}", exc_info=True)
            raise WeatherProviderError(f"Failed to parse response: {e}") from e
        logging.info(f"{len(events)} active alert(s) at {lat},{lon}")
        return events

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from an NWS problem-detail response."""
        try:
            error_data = response.json()
            detail = error_data.get("detail") or error_data.get("title") or "Unknown error"
        except (ValueError, TypeError, AttributeError):
            detail = response.text[:200]
        logging.error(f"NWS API error response: HTTP {response.status_code}: {detail}")
        raise WeatherProviderError(
            f"NWS API error {response.status_code}: {detail}",
            status_code=response.status_code,
        )


def _reading(props: Dict[str, Any], name: str) -> Optional[float]:
    """Numeric ``value`` of a quantitative field, scaled to SI; None when absent."""
    field = props.get(name)
    if not isinstance(field, dict):
        return None
    value = field.get("value")
    if value is None or isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        logging.warning(f"Ignoring non-numeric {name} reading: {value!r}")
        return None
    return value * _UNIT_SCALE.get(field.get("unitCode"), 1.0)


def _temperature(props: Dict[str, Any], name: str) -> Optional[float]:
    value = _reading(props, name)
    if value is not None and props[name].get("unitCode") == "wmoUnit:degF":
        value = (value - 32.0) * 5.0 / 9.0
    return value


def _coordinates(geometry: Optional[Dict[str, Any]]) -> Optional[Coordinates]:
    """GeoJSON points are ``[lon, lat]``; return them as (lat, lon)."""
    try:
        lon, lat = geometry["coordinates"][:2]
        return Coordinates(float(lat), float(lon))
    except (KeyError, TypeError, ValueError):
        return None
