"""
Space-weather and simulation settings shared by all propagation queries.

Every write is clamped to its valid range, so an out-of-range value is never
observable. The owning simulation serialises access with its lock.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional, Union
import logging

import pytz

from .calculations.constants import (
    DEFAULT_K_INDEX, DEFAULT_SEASON, DEFAULT_SFI, FALL, K_INDEX_MAX, K_INDEX_MIN,
    SEASON_NAMES, SFI_MAX, SFI_MIN, WINTER
)

logger = logging.getLogger(__name__)


def clamp(value, low, high):
    return max(low, min(high, value))


def parse_season(value: Union[int, str, None]) -> Optional[int]:
    """Parse a season name or number. Returns None for 'auto' or empty values."""
    if value is None:
        return None
    if isinstance(value, int):
        return clamp(value, WINTER, FALL)

    text = str(value).strip().lower()
    if text in ('', 'auto'):
        return None
    if text == 'autumn':
        return FALL
    for season, name in SEASON_NAMES.items():
        if name.lower() == text:
            return season
    try:
        return clamp(int(text), WINTER, FALL)
    except ValueError:
        logger.warning(f"Unknown season '{value}', using automatic season")
        return None


class ConditionState:
    """Current solar flux, K-index, season and feature flags."""

    def __init__(self, now: Optional[datetime] = None):
        self._solar_flux_index = DEFAULT_SFI
        self._k_index = DEFAULT_K_INDEX
        self._season = DEFAULT_SEASON
        self.auto_time_enabled = True
        self.external_data_enabled = False
        self.use_dxview_data = False
        self.use_swpc_data = False

        # An hour in the past so the first eligible refresh fetches external data
        now = now or datetime.now(pytz.UTC)
        self.last_external_refresh = now - timedelta(hours=1)

    @property
    def solar_flux_index(self) -> int:
        return self._solar_flux_index

    @solar_flux_index.setter
    def solar_flux_index(self, value: int):
        self._solar_flux_index = clamp(int(value), SFI_MIN, SFI_MAX)

    @property
    def k_index(self) -> int:
        return self._k_index

    @k_index.setter
    def k_index(self, value: int):
        self._k_index = clamp(int(value), K_INDEX_MIN, K_INDEX_MAX)

    @property
    def season(self) -> int:
        return self._season

    @season.setter
    def season(self, value: int):
        self._season = clamp(int(value), WINTER, FALL)

    @property
    def season_name(self) -> str:
        return SEASON_NAMES[self._season]

    def external_refresh_due(self, now: datetime, interval_seconds: float) -> bool:
        """True when external data is enabled and the fetch interval has elapsed."""
        if not self.external_data_enabled:
            return False
        return (now - self.last_external_refresh).total_seconds() >= interval_seconds

    def to_dict(self) -> Dict:
        return {
            'solar_flux_index': self._solar_flux_index,
            'k_index': self._k_index,
            'season': self._season,
            'season_name': self.season_name,
            'auto_time_enabled': self.auto_time_enabled,
            'external_data_enabled': self.external_data_enabled,
            'use_dxview_data': self.use_dxview_data,
            'use_swpc_data': self.use_swpc_data,
            'last_external_refresh': self.last_external_refresh.isoformat(),
        }
