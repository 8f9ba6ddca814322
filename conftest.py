"""
Shared test fixtures: fake HTTP session, deterministic randomness and time.
"""

import random
from datetime import datetime

import pytest
import pytz

from hf_band_sim.config import TestingConfig

# 0-based day 172: solar declination is zero
JUNE_22_NOON = datetime(2025, 6, 22, 12, 0, tzinfo=pytz.UTC)
JUNE_22_MIDNIGHT = datetime(2025, 6, 22, 0, 0, tzinfo=pytz.UTC)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self.payload = payload
        self.invalid_json = invalid_json

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """Stands in for requests.Session; maps URL -> FakeResponse or exception."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def get(self, url, timeout=None, headers=None):
        self.calls.append({'url': url, 'timeout': timeout, 'headers': headers})
        response = self.responses.get(url)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return FakeResponse(status_code=404)
        return response


class FixedRandom(random.Random):
    """random() always returns ``value``; randint() pops queued values."""

    def __init__(self, value=0.5, randints=None):
        super().__init__(0)
        self.value = value
        self.randints = list(randints or [])

    def random(self):
        return self.value

    def randint(self, a, b):
        if self.randints:
            return self.randints.pop(0)
        return super().randint(a, b)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def testing_config():
    return TestingConfig


@pytest.fixture
def noon_clock():
    return lambda: JUNE_22_NOON
