"""
Band quality provider for the HF band simulation.

Fetches solar indices and per-band propagation quality from DXView.
"""

import re
import threading
from typing import Any, Dict, Optional
import logging

import requests

from .helpers import extract_index, extract_number, fetch_json

logger = logging.getLogger(__name__)

DXVIEW_FEED = 'DXView'
DXVIEW_URL = 'https://hf.dxview.org/api/propagation'

# Band quality is reported on a 0-10 scale
QUALITY_SCALE = 10.0


class BandQualityDataProvider:
    """Provider for DXView band quality data."""

    feed_id = DXVIEW_FEED

    def __init__(self, url: str = DXVIEW_URL, timeout: float = 10, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, cancel_event: Optional[threading.Event] = None) -> Optional[Dict[str, Any]]:
        """Fetch and parse the feed. Returns None when the feed is unusable."""
        logger.debug(f"Fetching DXView propagation data from {self.url}")
        data = fetch_json(self.session, self.url, self.timeout, DXVIEW_FEED, cancel_event)
        if data is None:
            return None
        return self.parse(data)

    def parse(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Extract SFI, K-index and band reliabilities.

        Band keys such as "20m" are reduced to their digits. Reliability is the
        reported quality divided by 10. Returns None if nothing usable is found.
        """
        update = {}

        sfi = extract_index(data, 'sfi')
        if sfi is not None:
            update['sfi'] = sfi

        k_index = extract_index(data, 'kindex')
        if k_index is not None:
            update['k_index'] = k_index

        bands = data.get('bands')
        if isinstance(bands, dict):
            reliabilities = {}
            for key, band_data in bands.items():
                digits = re.sub(r'[^0-9]', '', str(key))
                if not digits or not isinstance(band_data, dict):
                    continue
                quality = extract_number(band_data, 'quality')
                if quality is None:
                    continue
                reliabilities[int(digits)] = quality / QUALITY_SCALE
            if reliabilities:
                update['bands'] = reliabilities

        if not update:
            logger.warning("DXView payload contained no usable propagation data")
            return None

        return update
