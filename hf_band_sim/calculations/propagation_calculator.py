"""
Propagation calculator for the HF band simulation.

Handles path distance, band recommendation, signal strength between two grid
locators and the cross-band communication decision.
"""

import math
import random
from datetime import datetime
from typing import Callable, Optional
import logging

from .bands import BandRegistry
from .constants import (
    CROSS_BAND_MAX_RATIO, CROSS_BAND_THRESHOLD, EARTH_RADIUS_KM, JITTER_MIN, JITTER_SPAN,
    LUF_PENALTY_SCALE, MUF_PENALTY_SCALE, OUT_OF_RANGE_STRENGTH, SAME_BAND_THRESHOLD,
    SKIP_ZONE_STRENGTH
)
from .grid_locator import grid_to_latlon
from .muf_calculator import MUFCalculator
from .time_analyzer import TimeAnalyzer

logger = logging.getLogger(__name__)


class PropagationCalculator:
    """Calculator for signal strength and band recommendations."""

    def __init__(self, registry: BandRegistry, time_analyzer: Optional[TimeAnalyzer] = None,
                 muf_calculator: Optional[MUFCalculator] = None):
        self.registry = registry
        self.time_analyzer = time_analyzer or TimeAnalyzer()
        self.muf_calculator = muf_calculator or MUFCalculator()

    def calculate_distance(self, grid1: str, grid2: str) -> float:
        """Great-circle distance in km between two locators (haversine)."""
        lat1, lon1 = grid_to_latlon(grid1)
        lat2, lon2 = grid_to_latlon(grid2)

        lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
        dlat = lat2 - lat1
        dlon = lon2 - lon1

        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    def recommend_band(self, distance: float, local_hour: int, sfi: float) -> int:
        """Recommend a band (meters) for a path length, time of day and solar flux."""
        is_daytime = self.time_analyzer.is_daytime(local_hour)

        if distance < 500:
            return 40 if is_daytime else 80
        elif distance < 1500:
            return 20 if is_daytime else 40
        elif distance < 3000:
            if is_daytime:
                return 15 if sfi > 100 else 20
            return 20
        else:
            if is_daytime and sfi > 120:
                return 10
            elif is_daytime:
                return 15
            return 20

    def calculate_signal_strength(self, grid1: str, grid2: str, conditions, when: datetime,
                                  rng: Optional[random.Random] = None) -> float:
        """
        Calculate signal strength (0.0 to 1.0) between two locators.

        Args:
            grid1: First Maidenhead locator
            grid2: Second Maidenhead locator
            conditions: Object exposing solar_flux_index, k_index and season
            when: Local time of the estimate
            rng: Random generator for short-term fading

        Returns:
            Signal strength clamped to [0, 1]
        """
        rng = rng or random
        sfi = conditions.solar_flux_index
        k_index = conditions.k_index

        lat1, lon1 = grid_to_latlon(grid1)
        lat2, lon2 = grid_to_latlon(grid2)
        distance = self.calculate_distance(grid1, grid2)

        day_fraction = self.time_analyzer.calculate_day_fraction(lat1, lon1, lat2, lon2, when)
        muf = self.muf_calculator.calculate_muf(distance, day_fraction, conditions.season, sfi)
        luf = self.muf_calculator.calculate_luf(distance, day_fraction, k_index)

        best_band = self.recommend_band(distance, when.hour, sfi)
        best_freq = self.registry.band_to_frequency(best_band)
        band_def = self.registry.get(best_band)

        if distance < band_def.min_distance:
            # Skip zone
            strength = SKIP_ZONE_STRENGTH
        elif distance > band_def.max_distance:
            strength = OUT_OF_RANGE_STRENGTH
        else:
            distance_factor = 1.0 - ((distance - band_def.min_distance) /
                                     (band_def.max_distance - band_def.min_distance))
            strength = band_def.reliability * distance_factor

        if best_freq > muf:
            strength *= math.exp(-(best_freq - muf) / MUF_PENALTY_SCALE)
        elif best_freq < luf:
            strength *= math.exp(-(luf - best_freq) / LUF_PENALTY_SCALE)

        strength *= (day_fraction * band_def.day_factor) + ((1.0 - day_fraction) * band_def.night_factor)

        # Higher bands respond more to solar flux
        if best_band <= 40:
            strength *= 0.8 + (0.2 * sfi / 200.0)
        else:
            strength *= 0.5 + (0.5 * sfi / 200.0)

        strength *= 1.0 - (k_index / 20.0)

        # Short-term fading
        strength *= JITTER_MIN + rng.random() * JITTER_SPAN

        logger.debug(f"{grid1}->{grid2}: {distance:.0f} km, {best_band}m, MUF {muf:.1f}, "
                     f"LUF {luf:.1f}, day {day_fraction:.2f}, strength {strength:.3f}")

        return max(0.0, min(1.0, strength))

    def can_communicate(self, channel1: int, channel2: int,
                        signal_strength: Callable[[], float]) -> bool:
        """
        Decide whether two participants can hear each other.

        ``signal_strength`` is only called when the decision depends on it.
        """
        if channel1 == channel2:
            return True

        band1 = self.registry.get_channel_band(channel1)
        band2 = self.registry.get_channel_band(channel2)

        # Not on a band channel
        if band1 == 0 or band2 == 0:
            return False

        if band1 == band2:
            return signal_strength() >= SAME_BAND_THRESHOLD

        freq1 = self.registry.band_to_frequency(band1)
        freq2 = self.registry.band_to_frequency(band2)
        if min(freq1, freq2) <= 0.0:
            return False

        # Within an octave
        if max(freq1, freq2) / min(freq1, freq2) < CROSS_BAND_MAX_RATIO:
            return signal_strength() >= CROSS_BAND_THRESHOLD

        return False
