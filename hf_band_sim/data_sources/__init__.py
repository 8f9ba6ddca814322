"""
Data sources module for the HF band simulation.

This module contains classes for fetching data from external feeds:
- Band quality (DXView)
- Solar weather (NOAA SWPC)
"""

from .band_quality_data import BandQualityDataProvider, DXVIEW_FEED
from .solar_data import SolarDataProvider, SWPC_FEED
from .external_feeds import ExternalFeedClient

__all__ = [
    'BandQualityDataProvider',
    'SolarDataProvider',
    'ExternalFeedClient',
    'DXVIEW_FEED',
    'SWPC_FEED'
]
