"""Unit conversions from the provider's metric readings to display units.

Every function passes None through so a reading the station did not report
stays missing. Nothing is rounded here.
"""
from typing import Optional

FEET_PER_METER = 3.28084
FEET_PER_MILE = 5280
MPH_PER_MPS = 2.23694
MMHG_PER_PASCAL = 0.00750062


def deg_c_to_f(temp: Optional[float]) -> Optional[float]:
    """Convert temperature from degrees Celsius to degrees Fahrenheit."""
    if temp is None:
        return None
    return temp * 9 / 5 + 32


def mps_to_mph(speed: Optional[float]) -> Optional[float]:
    """Convert speed from meters per second to miles per hour."""
    if speed is None:
        return None
    return speed * MPH_PER_MPS


def kmh_to_mph(speed: Optional[float]) -> Optional[float]:
    """Convert speed from kilometers per hour to miles per hour."""
    if speed is None:
        return None
    return mps_to_mph(speed / 3.6)


def meters_to_feet(length: Optional[float]) -> Optional[float]:
    if length is None:
        return None
    return length * FEET_PER_METER


def meters_to_inches(length: Optional[float]) -> Optional[float]:
    if length is None:
        return None
    return meters_to_feet(length) * 12


def meters_to_miles(length: Optional[float]) -> Optional[float]:
    if length is None:
        return None
    return meters_to_feet(length) / FEET_PER_MILE


def pascals_to_mmhg(pressure: Optional[float]) -> Optional[float]:
    """Convert pressure from pascals to millimeters of mercury."""
    if pressure is None:
        return None
    return pressure * MMHG_PER_PASCAL
