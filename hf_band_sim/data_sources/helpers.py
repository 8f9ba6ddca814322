"""
Shared helpers for external data feeds.
"""

import math
import threading
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = 'hf-band-sim/1.0'


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return int(math.ceil(value - 0.5))


def extract_number(data: Dict[str, Any], key: str) -> Optional[float]:
    """Get a JSON number from a payload; strings and booleans are ignored."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def extract_index(data: Dict[str, Any], key: str) -> Optional[int]:
    """Get a JSON number rounded to an integer index."""
    value = extract_number(data, key)
    return None if value is None else round_half_away(value)


def fetch_json(session, url: str, timeout: float, source: str,
               cancel_event: Optional[threading.Event] = None) -> Optional[Dict[str, Any]]:
    """
    GET a JSON object from a feed.

    Returns None on transport errors, non-200 responses, invalid JSON, a body
    that is not a JSON object, or when the fetch was cancelled.
    """
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"{source} fetch cancelled before request")
        return None

    try:
        response = session.get(
            url,
            timeout=timeout,
            headers={'Accept': 'application/json', 'User-Agent': USER_AGENT}
        )
    except requests.RequestException as e:
        logger.warning(f"Error fetching {source} data: {e}")
        return None

    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"{source} fetch cancelled, discarding response")
        return None

    if response.status_code != 200:
        logger.warning(f"{source} returned HTTP {response.status_code}")
        return None

    try:
        data = response.json()
    except ValueError as e:
        logger.warning(f"Invalid JSON response from {source}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Unexpected {type(data).__name__} payload from {source}")
        return None

    return data
