"""
Band registry for the HF simulation.

Holds the catalogue of amateur-radio band definitions and the mapping between
bands and voice-server channels.
"""

import logging
from typing import Dict, List, Optional

from .constants import (
    BAND_DEFINITIONS, BAND_FREQUENCIES, DEFAULT_BAND_CHANNELS, FREQUENCY_BAND_LIMITS
)

logger = logging.getLogger(__name__)


class BandDefinition:
    """Propagation characteristics of a single band."""

    def __init__(self, band: int, frequency: float, min_distance: float, max_distance: float,
                 reliability: float, day_factor: float, night_factor: float):
        self.band = band
        self.frequency = frequency
        self.min_distance = min_distance
        self.max_distance = max_distance
        self.reliability = reliability
        self.day_factor = day_factor
        self.night_factor = night_factor

    def to_dict(self) -> Dict:
        return {
            'band': self.band,
            'frequency': self.frequency,
            'min_distance': self.min_distance,
            'max_distance': self.max_distance,
            'reliability': self.reliability,
            'day_factor': self.day_factor,
            'night_factor': self.night_factor,
        }

    def __repr__(self) -> str:
        return f"BandDefinition({self.band}m, {self.frequency} MHz, reliability={self.reliability})"


class BandRegistry:
    """Catalogue of band definitions plus band/channel lookups."""

    def __init__(self, band_channels: Optional[Dict[int, int]] = None,
                 channel_bands: Optional[Dict[int, int]] = None):
        """
        Args:
            band_channels: band -> primary channel id
            channel_bands: channel id -> band; defaults to the inverse of
                ``band_channels``. Several channels may share a band.
        """
        self.definitions: Dict[int, BandDefinition] = {}
        for band, (freq, min_km, max_km, reliability, day, night) in BAND_DEFINITIONS.items():
            self.definitions[band] = BandDefinition(band, freq, min_km, max_km, reliability, day, night)

        self.band_channels = dict(band_channels or DEFAULT_BAND_CHANNELS)
        if channel_bands is None:
            channel_bands = {channel: band for band, channel in self.band_channels.items()}
        self.channel_bands = dict(channel_bands)

    def get(self, band: int) -> Optional[BandDefinition]:
        return self.definitions.get(band)

    def bands(self) -> List[int]:
        return list(self.definitions)

    def set_reliability(self, band: int, reliability: float) -> bool:
        """Overwrite a band's reliability. Returns False for unknown bands."""
        definition = self.definitions.get(band)
        if definition is None:
            logger.debug(f"Ignoring reliability for unknown band {band}m")
            return False
        definition.reliability = reliability
        return True

    def band_to_frequency(self, band: int) -> float:
        """Get the representative frequency (MHz) for a band, 0.0 if unknown."""
        definition = self.definitions.get(band)
        if definition is not None:
            return definition.frequency
        return BAND_FREQUENCIES.get(band, 0.0)

    def get_band_channel(self, band: int) -> int:
        return self.band_channels.get(band, 0)

    def get_channel_band(self, channel_id: int) -> int:
        return self.channel_bands.get(channel_id, 0)


def frequency_to_band(frequency: float) -> int:
    """Map a frequency in MHz to the nearest band, 0 above 60 MHz."""
    for limit, band in FREQUENCY_BAND_LIMITS:
        if frequency < limit:
            return band
    return 0
