"""
Tests for the external feed providers and the asynchronous feed client.
"""

import threading

import requests

from conftest import FakeResponse, FakeSession
from hf_band_sim.data_sources import (
    DXVIEW_FEED, SWPC_FEED, BandQualityDataProvider, ExternalFeedClient, SolarDataProvider
)
from hf_band_sim.data_sources.helpers import extract_index, fetch_json, round_half_away

URL = 'https://feed.example/api'


def test_round_half_away():
    assert round_half_away(180.5) == 181
    assert round_half_away(2.5) == 3
    assert round_half_away(2.49) == 2
    assert round_half_away(-1.5) == -2


def test_extract_index_ignores_non_numbers():
    data = {'sfi': '150', 'k': True, 'nan': float('nan'), 'ok': 4.6}
    assert extract_index(data, 'sfi') is None
    assert extract_index(data, 'k') is None
    assert extract_index(data, 'nan') is None
    assert extract_index(data, 'missing') is None
    assert extract_index(data, 'ok') == 5


def test_fetch_json_sends_timeout_and_headers():
    session = FakeSession({URL: FakeResponse(payload={'sfi': 150})})
    assert fetch_json(session, URL, 7, 'Test') == {'sfi': 150}
    call = session.calls[0]
    assert call['timeout'] == 7
    assert call['headers']['Accept'] == 'application/json'


def test_fetch_json_failures():
    assert fetch_json(FakeSession({URL: requests.ConnectionError('refused')}), URL, 1, 'Test') is None
    assert fetch_json(FakeSession({URL: requests.Timeout('slow')}), URL, 1, 'Test') is None
    assert fetch_json(FakeSession({URL: FakeResponse(status_code=500)}), URL, 1, 'Test') is None
    assert fetch_json(FakeSession({URL: FakeResponse(invalid_json=True)}), URL, 1, 'Test') is None
    assert fetch_json(FakeSession({URL: FakeResponse(payload=[1, 2])}), URL, 1, 'Test') is None


def test_fetch_json_cancelled_before_request():
    session = FakeSession({URL: FakeResponse(payload={'sfi': 150})})
    cancel = threading.Event()
    cancel.set()
    assert fetch_json(session, URL, 1, 'Test', cancel) is None
    assert session.calls == []


def test_swpc_parse_rounds_indices():
    session = FakeSession({URL: FakeResponse(payload={'sfi': 180.5, 'k_index': 12})})
    provider = SolarDataProvider(URL, timeout=2, session=session)
    # Clamping is applied when the update is merged
    assert provider.fetch() == {'sfi': 181, 'k_index': 12}


def test_swpc_ignores_dxview_key():
    provider = SolarDataProvider(URL, session=FakeSession())
    assert provider.parse({'kindex': 4}) is None
    assert provider.parse({'k_index': 4}) == {'k_index': 4}


def test_dxview_parse_bands():
    provider = BandQualityDataProvider(URL, session=FakeSession())
    update = provider.parse({
        'sfi': 150,
        'kindex': 2,
        'bands': {
            '20m': {'quality': 8},
            '40m': {'quality': 3.5},
            'xx': {'quality': 5},
            '15m': {'status': 'open'},
            '10m': 'good',
        },
    })
    assert update == {'sfi': 150, 'k_index': 2, 'bands': {20: 0.8, 40: 0.35}}


def test_dxview_payload_without_data():
    provider = BandQualityDataProvider(URL, session=FakeSession())
    assert provider.parse({'status': 'ok'}) is None
    assert provider.parse({'bands': {}}) is None


class Recorder:
    def __init__(self):
        self.results = []
        self.done = threading.Event()

    def __call__(self, feed_id, update):
        self.results.append((feed_id, update))
        self.done.set()


def test_client_reports_success_from_worker():
    session = FakeSession({URL: FakeResponse(payload={'sfi': 140, 'k_index': 1})})
    recorder = Recorder()
    client = ExternalFeedClient({SWPC_FEED: SolarDataProvider(URL, session=session)}, recorder)

    assert client.dispatch(SWPC_FEED) is not None
    assert client.wait(timeout=5)
    assert recorder.results == [(SWPC_FEED, {'sfi': 140, 'k_index': 1})]
    assert client.pending() == 0
    client.shutdown()


def test_client_reports_failure_as_none():
    session = FakeSession({URL: FakeResponse(status_code=503)})
    recorder = Recorder()
    client = ExternalFeedClient({DXVIEW_FEED: BandQualityDataProvider(URL, session=session)}, recorder)

    client.dispatch(DXVIEW_FEED)
    assert client.wait(timeout=5)
    assert recorder.results == [(DXVIEW_FEED, None)]
    client.shutdown()


def test_client_survives_provider_exception():
    class Broken:
        def fetch(self, cancel_event=None):
            raise KeyError('sfi')

    recorder = Recorder()
    client = ExternalFeedClient({SWPC_FEED: Broken()}, recorder)
    client.dispatch(SWPC_FEED)
    assert client.wait(timeout=5)
    assert recorder.results == [(SWPC_FEED, None)]
    client.shutdown()


def test_client_unknown_feed():
    recorder = Recorder()
    client = ExternalFeedClient({}, recorder)
    assert client.dispatch('NOAA') is None
    assert recorder.results == []
    client.shutdown()


def test_dispatch_after_shutdown_reports_failure():
    session = FakeSession({URL: FakeResponse(payload={'sfi': 140})})
    recorder = Recorder()
    client = ExternalFeedClient({SWPC_FEED: SolarDataProvider(URL, session=session)}, recorder)
    client.shutdown()

    assert client.dispatch(SWPC_FEED) is None
    assert recorder.results == [(SWPC_FEED, None)]
    assert session.calls == []


def test_shutdown_cancels_in_flight_fetch():
    entered = threading.Event()
    release = threading.Event()

    class SlowProvider:
        def fetch(self, cancel_event=None):
            entered.set()
            release.wait(5)
            if cancel_event is not None and cancel_event.is_set():
                return None
            return {'sfi': 200}

    recorder = Recorder()
    client = ExternalFeedClient({SWPC_FEED: SlowProvider()}, recorder)
    client.dispatch(SWPC_FEED)
    assert entered.wait(5)

    client.shutdown()
    release.set()

    assert recorder.done.wait(5)
    assert recorder.results == [(SWPC_FEED, None)]
