"""
MUF (Maximum Usable Frequency) and LUF (Lowest Usable Frequency) calculator.

Simplified empirical model: a base value per distance bucket scaled by the
daylit share of the path, season, solar flux and geomagnetic activity.
"""

from typing import Tuple
import logging

from .constants import (
    DISTANCE_BUCKETS, LONG_DISTANCE_BASE_LUF, LONG_DISTANCE_BASE_MUF, SEASON_MUF_FACTORS
)

logger = logging.getLogger(__name__)


class MUFCalculator:
    """Calculator for path MUF and LUF."""

    def _base_frequencies(self, distance: float) -> Tuple[float, float]:
        """Base (MUF, LUF) in MHz for a path length in km."""
        for limit, base_muf, base_luf in DISTANCE_BUCKETS:
            if distance < limit:
                return base_muf, base_luf
        return LONG_DISTANCE_BASE_MUF, LONG_DISTANCE_BASE_LUF

    def calculate_muf(self, distance: float, day_fraction: float, season: int, sfi: float) -> float:
        """Calculate MUF in MHz for a path."""
        base_muf, _ = self._base_frequencies(distance)

        # MUF is higher during the day
        day_night_factor = 0.7 + (0.6 * day_fraction)
        season_factor = SEASON_MUF_FACTORS.get(season, 1.0)
        sfi_factor = 0.5 + (sfi / 200.0)

        return base_muf * day_night_factor * season_factor * sfi_factor

    def calculate_luf(self, distance: float, day_fraction: float, k_index: float) -> float:
        """Calculate LUF in MHz for a path."""
        _, base_luf = self._base_frequencies(distance)

        # D-layer absorption raises the LUF during the day
        day_night_factor = 0.5 + (0.8 * day_fraction)
        k_factor = 1.0 + (k_index / 10.0)

        return base_luf * day_night_factor * k_factor
