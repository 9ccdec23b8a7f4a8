"""Day/night state and icon selection - pure functions for testability."""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

DEFAULT_BUFFER_MINUTES = 15

# Weather Icons font glyphs
ICONS = {
    "sunset": "\uf047",
    "sunrise": "\uf046",
    "day": "\uf00d",
    "night": "\uf02e",

    "tornado": "\uf056",
    "mixed": "\uf017",
    "snow": "\uf01b",
    "rain": "\uf019",
    "fog": "\uf014",
    "vcloud": "\uf013",
    "cloudy": "\uf041",
    "hail": "\uf015",
    "smoke": "\uf062",
    "dust": "\uf063",
    "ice": "\uf015",
    "drizzle": "\uf019",
    "haze": "\uf014",
    "hurricane": "\uf073",
    "lightning": "\uf016",
    "showers": "\uf019",
    "tropstorm": "\uf073",
    "windy": "\uf050",
    "fire": "\uf0c7",
}

# First match wins, so order is precedence
CONDITION_ICONS = (
    (re.compile(r"tropical\s+storm", re.I), "tropstorm"),
    (re.compile(r"hurricane", re.I), "hurricane"),
    (re.compile(r"tornado", re.I), "tornado"),
    (re.compile(r"thunder", re.I), "lightning"),
    (re.compile(r"mixed|freezing|sleet", re.I), "mixed"),
    (re.compile(r"blizzard|snow", re.I), "snow"),
    (re.compile(r"drizzle", re.I), "drizzle"),
    (re.compile(r"shower|rain", re.I), "showers"),
    (re.compile(r"hail", re.I), "hail"),
    (re.compile(r"dust|sand", re.I), "dust"),
    (re.compile(r"fog|mist", re.I), "fog"),
    (re.compile(r"haze", re.I), "haze"),
    (re.compile(r"fire", re.I), "fire"),
    (re.compile(r"smoke", re.I), "smoke"),
    (re.compile(r"bluster|wind", re.I), "windy"),
    (re.compile(r"mostly\s+cloudy", re.I), "vcloud"),
    (re.compile(r"cloudy|overcast", re.I), "cloudy"),
)


@dataclass
class SkyState:
    """
    Where the sun is relative to ``now``.

    All bounds are inclusive: exactly at sunrise is both day and sunrise.
    The sunrise/sunset flags cover ``buffer_minutes`` either side of the
    event and are independent of the day/night flags. Every flag is None
    while sunrise or sunset is unknown.
    """
    now: datetime
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES

    @property
    def known(self) -> bool:
        return self.sunrise is not None and self.sunset is not None

    @property
    def is_day(self) -> Optional[bool]:
        if not self.known:
            return None
        return self.sunrise <= self.now <= self.sunset

    @property
    def is_night(self) -> Optional[bool]:
        if not self.known:
            return None
        return not self.is_day

    def _near(self, event: datetime) -> bool:
        buffer = timedelta(minutes=self.buffer_minutes)
        return event - buffer <= self.now <= event + buffer

    @property
    def is_sunrise(self) -> Optional[bool]:
        if not self.known:
            return None
        return self._near(self.sunrise)

    @property
    def is_sunset(self) -> Optional[bool]:
        if not self.known:
            return None
        return self._near(self.sunset)


def sun_icon_name(state: SkyState) -> Optional[str]:
    """Icon for the sun's position: sunset, then sunrise, then day or night."""
    if not state.known:
        return None
    if state.is_sunset:
        return "sunset"
    if state.is_sunrise:
        return "sunrise"
    return "day" if state.is_day else "night"


def condition_icon_name(alerts: Sequence[str], text: Optional[str], state: SkyState) -> Optional[str]:
    """
    Pick the icon for the current conditions.

    Alerts and the observation's text description are matched together
    against ``CONDITION_ICONS``; when nothing matches the sun's position
    decides.
    """
    haystack = "\n".join(alerts or ()) + "\n" + (text or "")
    for pattern, name in CONDITION_ICONS:
        if pattern.search(haystack):
            return name
    return sun_icon_name(state)
