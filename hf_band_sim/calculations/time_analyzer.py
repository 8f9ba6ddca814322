"""
Time analyzer for HF propagation.

Handles solar zenith angle, day/night path estimation, season and local time.
"""

import math
from datetime import datetime
from typing import Optional, Tuple
import logging

import numpy as np
import pytz

from .constants import (
    DAY_NIGHT_SAMPLES, DAYTIME_END_HOUR, DAYTIME_START_HOUR, FALL,
    SOLAR_DECLINATION_MAX, SPRING, SUMMER, WINTER
)

logger = logging.getLogger(__name__)


class TimeAnalyzer:
    """Analyzer for time-of-day and seasonal effects on propagation."""

    def __init__(self, timezone_str: str = 'UTC'):
        self.timezone = pytz.timezone(timezone_str)

    def now(self) -> datetime:
        """Current time in the configured timezone."""
        return datetime.now(self.timezone)

    def localize(self, when: Optional[datetime]) -> datetime:
        """Return ``when`` in the configured timezone (naive values are taken as local)."""
        if when is None:
            return self.now()
        if when.tzinfo is None:
            return self.timezone.localize(when)
        return when.astimezone(self.timezone)

    def solar_zenith_angle(self, lat: float, lon: float, when: datetime) -> float:
        """Solar zenith angle in degrees for a location and time."""
        zenith = self._zenith_degrees(np.asarray(lat), np.asarray(lon), when)
        return float(zenith)

    def calculate_day_fraction(self, lat1: float, lon1: float, lat2: float, lon2: float,
                               when: datetime) -> float:
        """
        Estimate what fraction of a path is in daylight.

        Samples evenly spaced points on the straight (lat, lon) segment between
        the two ends, including both ends, and counts those with the sun above
        the horizon.
        """
        fractions = np.arange(DAY_NIGHT_SAMPLES + 1) / DAY_NIGHT_SAMPLES
        lats = lat1 + fractions * (lat2 - lat1)
        lons = lon1 + fractions * (lon2 - lon1)

        zenith = self._zenith_degrees(lats, lons, when)
        day_points = int(np.count_nonzero(zenith < 90.0))

        return day_points / (DAY_NIGHT_SAMPLES + 1)

    def subsolar_point(self, when: datetime) -> Tuple[float, float]:
        """Latitude/longitude where the modelled sun is overhead at ``when``."""
        lat = math.degrees(self._declination(when))
        lon = (12.0 - (when.hour + when.minute / 60.0)) * 15.0
        return lat, (lon + 180.0) % 360.0 - 180.0

    def _declination(self, when: datetime) -> float:
        day_of_year = when.timetuple().tm_yday - 1
        return math.radians(
            SOLAR_DECLINATION_MAX * math.sin(2.0 * math.pi * (day_of_year - 172) / 365.0)
        )

    def _zenith_degrees(self, lats: np.ndarray, lons: np.ndarray, when: datetime) -> np.ndarray:
        # Simplified model, no atmospheric refraction
        declination = self._declination(when)

        hour_angle = np.radians((when.hour + when.minute / 60.0 - 12.0) * 15.0 + lons)
        lat_rad = np.radians(lats)

        cos_zenith = (np.sin(lat_rad) * math.sin(declination) +
                      np.cos(lat_rad) * math.cos(declination) * np.cos(hour_angle))

        return np.degrees(np.arccos(np.clip(cos_zenith, -1.0, 1.0)))

    def season_for_month(self, month: int) -> int:
        """Meteorological season for a calendar month."""
        if 3 <= month <= 5:
            return SPRING
        elif 6 <= month <= 8:
            return SUMMER
        elif 9 <= month <= 11:
            return FALL
        return WINTER

    def is_daytime(self, hour: int) -> bool:
        return DAYTIME_START_HOUR <= hour < DAYTIME_END_HOUR
