"""
Solar weather provider for the HF band simulation.

Fetches solar flux and K-index from the NOAA Space Weather Prediction Center
summary feed.
"""

import threading
from typing import Any, Dict, Optional
import logging

import requests

from .helpers import extract_index, fetch_json

logger = logging.getLogger(__name__)

SWPC_FEED = 'SWPC'
SWPC_URL = 'https://services.swpc.noaa.gov/products/summary/solar-indices.json'


class SolarDataProvider:
    """Provider for SWPC solar weather data."""

    feed_id = SWPC_FEED

    def __init__(self, url: str = SWPC_URL, timeout: float = 10, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, cancel_event: Optional[threading.Event] = None) -> Optional[Dict[str, Any]]:
        """Fetch and parse the feed. Returns None when the feed is unusable."""
        logger.debug(f"Fetching SWPC solar weather data from {self.url}")
        data = fetch_json(self.session, self.url, self.timeout, SWPC_FEED, cancel_event)
        if data is None:
            return None
        return self.parse(data)

    def parse(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Extract SFI and K-index. Returns None if neither is present."""
        update = {}

        sfi = extract_index(data, 'sfi')
        if sfi is not None:
            update['sfi'] = sfi

        k_index = extract_index(data, 'k_index')
        if k_index is not None:
            update['k_index'] = k_index

        if not update:
            logger.warning("SWPC payload contained no solar indices")
            return None

        return update
