"""
Tests for the HF band simulation: settings, refresh, feed merges and
participant queries.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from conftest import JUNE_22_MIDNIGHT, JUNE_22_NOON, FakeResponse, FakeSession, FixedRandom
from hf_band_sim import HFBandSimulation
from hf_band_sim.calculations.constants import FALL, SUMMER, WINTER
from hf_band_sim.config import TestingConfig
from hf_band_sim.data_sources import DXVIEW_FEED, SWPC_FEED
from hf_band_sim.utils.events import (
    EXTERNAL_DATA_UPDATED, MUF_CHANGED, PROPAGATION_UPDATED, SIGNAL_STRENGTH_CHANGED
)

PARTICIPANTS = {
    1: ('JJ00', 4),
    2: ('JJ10', 4),
    3: ('FN20vr', 9),
    4: ('', 4),
    5: (None, 4),
    6: ('FN', 4),
}


class ExternalConfig(TestingConfig):
    EXTERNAL_DATA_ENABLED = True


class DXViewConfig(ExternalConfig):
    USE_DXVIEW_DATA = True


class FixedSeasonConfig(TestingConfig):
    SEASON = 'fall'


class FakeProvider:
    def __init__(self, update=None):
        self.update = update
        self.calls = 0

    def fetch(self, cancel_event=None):
        self.calls += 1
        return self.update


def make_sim(config=TestingConfig, rng=None, clock=None, **kwargs):
    sim = HFBandSimulation(
        participant_lookup=PARTICIPANTS.get,
        config=config,
        rng=rng or FixedRandom(0.5),
        clock=clock or (lambda: JUNE_22_NOON),
        **kwargs
    )
    return sim


def subscribe_all(sim):
    listeners = {event: Mock() for event in (
        PROPAGATION_UPDATED, SIGNAL_STRENGTH_CHANGED, MUF_CHANGED, EXTERNAL_DATA_UPDATED)}
    for event, listener in listeners.items():
        sim.events.subscribe(event, listener)
    return listeners


@pytest.fixture
def sim():
    simulation = make_sim()
    yield simulation
    simulation.shutdown()


# Settings

def test_initial_conditions_from_config(sim):
    assert sim.solar_flux_index == 120
    assert sim.k_index == 3
    assert sim.season == WINTER
    assert sim.auto_time_enabled
    assert not sim.external_data_enabled


def test_setters_clamp(sim):
    sim.set_solar_flux_index(500)
    assert sim.solar_flux_index == 300
    sim.set_solar_flux_index(10)
    assert sim.solar_flux_index == 60
    sim.set_k_index(-1)
    assert sim.k_index == 0
    sim.set_season(9)
    assert sim.season == FALL


def test_set_season_by_name(sim):
    sim.set_season('summer')
    assert sim.season == SUMMER
    sim.set_season('auto')
    assert sim.season == SUMMER


def test_setter_invalidates_cache_and_notifies(sim):
    sim.calculate_propagation(1, 2)
    assert len(sim.cache) == 1
    listeners = subscribe_all(sim)

    sim.set_k_index(5)

    assert len(sim.cache) == 0
    listeners[PROPAGATION_UPDATED].assert_called_once_with()


def test_fixed_season_disables_auto_time():
    simulation = make_sim(config=FixedSeasonConfig)
    assert simulation.season == FALL
    assert not simulation.auto_time_enabled

    simulation.refresh()
    assert simulation.season == FALL
    simulation.shutdown()


# Refresh

def test_refresh_clears_cache_and_follows_calendar(sim):
    sim.calculate_propagation(1, 2)
    listeners = subscribe_all(sim)

    sim.refresh()

    assert len(sim.cache) == 0
    assert sim.season == SUMMER
    listeners[PROPAGATION_UPDATED].assert_called_once_with()
    listeners[MUF_CHANGED].assert_called_once_with(sim.reference_muf())


def test_disabling_auto_time_keeps_season(sim):
    sim.set_auto_time_enabled(False)
    assert sim.season == WINTER
    sim.set_auto_time_enabled(True)
    assert sim.season == SUMMER


def test_internal_perturbation():
    simulation = make_sim(rng=FixedRandom(0.05, randints=[15, -1]))
    simulation.refresh()
    assert simulation.solar_flux_index == 135
    assert simulation.k_index == 2
    simulation.shutdown()


def test_perturbation_is_clamped():
    simulation = make_sim(rng=FixedRandom(0.0, randints=[20, -2]))
    simulation.set_solar_flux_index(295)
    simulation.set_k_index(1)
    simulation.refresh()
    assert simulation.solar_flux_index == 300
    assert simulation.k_index == 0
    simulation.shutdown()


def test_no_perturbation_most_of_the_time(sim):
    sim.refresh()
    assert sim.solar_flux_index == 120
    assert sim.k_index == 3


def test_external_fetch_respects_interval():
    provider = FakeProvider()
    simulation = make_sim(
        config=DXViewConfig,
        rng=FixedRandom(0.05, randints=[15, -1]),
        providers={DXVIEW_FEED: provider, SWPC_FEED: FakeProvider()},
    )

    simulation.refresh(JUNE_22_NOON)
    assert simulation.wait_for_feeds(5)
    assert provider.calls == 1

    simulation.refresh(JUNE_22_NOON + timedelta(minutes=10))
    assert simulation.wait_for_feeds(5)
    assert provider.calls == 1

    simulation.refresh(JUNE_22_NOON + timedelta(minutes=30))
    assert simulation.wait_for_feeds(5)
    assert provider.calls == 2

    # The internal model is idle while external data is enabled
    assert simulation.solar_flux_index == 120
    assert simulation.k_index == 3
    simulation.shutdown()


def test_enabling_feed_fetches_immediately():
    dxview, swpc = FakeProvider(), FakeProvider()
    simulation = make_sim(config=ExternalConfig, providers={DXVIEW_FEED: dxview, SWPC_FEED: swpc})

    simulation.set_use_swpc_data(True)
    assert simulation.wait_for_feeds(5)

    assert simulation.use_swpc_data
    assert swpc.calls == 1
    assert dxview.calls == 0
    simulation.shutdown()


def test_enabling_feed_without_external_data_does_not_fetch(sim):
    sim.set_use_swpc_data(True)
    assert sim.feeds.pending() == 0
    assert sim.use_swpc_data


# Feed merges

def test_dxview_band_quality_merge():
    session = FakeSession({
        ExternalConfig.DXVIEW_URL: FakeResponse(payload={'bands': {'20m': {'quality': 8}}}),
    })
    simulation = make_sim(config=ExternalConfig, session=session)
    simulation.calculate_propagation(1, 2)
    listeners = subscribe_all(simulation)

    simulation.set_use_dxview_data(True)
    assert simulation.wait_for_feeds(5)

    assert simulation.registry.get(20).reliability == pytest.approx(0.8)
    assert len(simulation.cache) == 0
    assert simulation.solar_flux_index == 120
    listeners[EXTERNAL_DATA_UPDATED].assert_called_once_with(DXVIEW_FEED, True)
    listeners[PROPAGATION_UPDATED].assert_called_once_with()
    listeners[MUF_CHANGED].assert_called_once_with(simulation.reference_muf())
    simulation.shutdown()


def test_swpc_merge_clamps_indices():
    session = FakeSession({
        ExternalConfig.SWPC_URL: FakeResponse(payload={'sfi': 180.5, 'k_index': 12}),
    })
    simulation = make_sim(config=ExternalConfig, session=session)

    simulation.set_use_swpc_data(True)
    assert simulation.wait_for_feeds(5)

    assert simulation.solar_flux_index == 181
    assert simulation.k_index == 9
    simulation.shutdown()


def test_failed_feed_leaves_state_untouched():
    session = FakeSession({ExternalConfig.SWPC_URL: FakeResponse(status_code=500)})
    simulation = make_sim(config=ExternalConfig, session=session)
    simulation.calculate_propagation(1, 2)
    listeners = subscribe_all(simulation)

    simulation.set_use_swpc_data(True)
    assert simulation.wait_for_feeds(5)

    assert simulation.solar_flux_index == 120
    assert simulation.k_index == 3
    assert len(simulation.cache) == 1
    listeners[EXTERNAL_DATA_UPDATED].assert_called_once_with(SWPC_FEED, False)
    listeners[PROPAGATION_UPDATED].assert_not_called()
    simulation.shutdown()


def test_unknown_bands_only_is_a_failure():
    provider = FakeProvider({'bands': {11: 0.5}})
    simulation = make_sim(config=ExternalConfig, providers={DXVIEW_FEED: provider})
    listeners = subscribe_all(simulation)

    simulation.set_use_dxview_data(True)
    assert simulation.wait_for_feeds(5)

    listeners[EXTERNAL_DATA_UPDATED].assert_called_once_with(DXVIEW_FEED, False)
    simulation.shutdown()


# Participant queries

def test_propagation_is_memoized_and_symmetric(sim):
    listeners = subscribe_all(sim)

    first = sim.calculate_propagation(1, 2)
    second = sim.calculate_propagation(2, 1)

    assert first == second
    assert 0.0 < first <= 1.0
    assert len(sim.cache) == 1
    listeners[SIGNAL_STRENGTH_CHANGED].assert_called_once_with('JJ00', 'JJ10', first)


def test_strength_change_notification_threshold(sim):
    sim.calculate_propagation(1, 2)
    listeners = subscribe_all(sim)

    # Same conditions after a refresh: recomputed but unchanged
    sim.refresh()
    sim.calculate_propagation(1, 2)
    listeners[SIGNAL_STRENGTH_CHANGED].assert_not_called()

    sim.set_k_index(9)
    strength = sim.calculate_propagation(1, 2)
    listeners[SIGNAL_STRENGTH_CHANGED].assert_called_once_with('JJ00', 'JJ10', strength)


@pytest.mark.parametrize('other', [4, 5, 6, 99])
def test_missing_locator_gives_no_signal(sim, other):
    assert sim.calculate_propagation(1, other) == 0.0
    assert len(sim.cache) == 0


def test_same_channel_communicates_without_locators(sim):
    assert sim.can_communicate(4, 5)
    assert sim.can_communicate(1, 6)


def test_unknown_participant_cannot_communicate(sim):
    assert not sim.can_communicate(1, 99)


def test_cross_band_beyond_octave(sim):
    # Channel 4 is 40m, channel 9 is 10m
    assert not sim.can_communicate(1, 3)


def test_failing_lookup_is_treated_as_unknown():
    simulation = HFBandSimulation(participant_lookup=Mock(side_effect=KeyError(1)),
                                  config=TestingConfig, clock=lambda: JUNE_22_NOON)
    assert simulation.calculate_propagation(1, 2) == 0.0
    assert not simulation.can_communicate(1, 2)
    simulation.shutdown()


def test_forget_participant(sim):
    sim.calculate_propagation(1, 2)
    sim.forget_participant(1)
    assert sim._reported_strengths == {}


def test_idle_pairs_are_forgotten_on_refresh(sim):
    sim.calculate_propagation(1, 2)
    sim.calculate_propagation(1, 3)

    # Only the first pair is queried again before the next refresh
    sim.refresh()
    sim.calculate_propagation(1, 2)
    sim.refresh()

    assert list(sim._reported_strengths) == [(1, 2)]

    sim.refresh()
    assert sim._reported_strengths == {}


def test_locator_queries(sim):
    assert sim.calculate_distance('JJ00', 'JJ10') == pytest.approx(222.38, abs=0.05)
    assert sim.recommend_band(100) == 40
    assert sim.get_band_channel(20) == 6
    assert sim.get_channel_band(6) == 20
    assert sim.band_to_frequency(20) == 14.175
    assert sim.frequency_to_band(14.2) == 20
    assert 0.0 < sim.calculate_signal_strength('JJ00', 'JJ10', JUNE_22_NOON) <= 1.0


def test_reference_muf_day_and_night(sim):
    sim.set_season(SUMMER)
    assert sim.reference_muf(JUNE_22_NOON) == pytest.approx(28 * 1.3 * 1.2 * 1.1)
    assert sim.reference_muf(JUNE_22_MIDNIGHT) == pytest.approx(28 * 0.7 * 1.2 * 1.1)


# Reporting and lifecycle

def test_conditions_report(sim):
    report = sim.get_conditions_report()
    assert report['conditions']['solar_flux_index'] == 120
    assert report['bands']['20m']['channel'] == 6
    assert report['bands']['160m']['below_muf']
    # Noon UTC at the June solstice puts the sun over 0N 0E
    assert report['subsolar_locator'] == 'JJ00aa'


def test_start_and_shutdown():
    simulation = make_sim()
    simulation.start()

    status = simulation.get_status()
    assert status['tasks']['running']
    assert 'propagation_update' in status['tasks']['tasks']
    assert simulation.season == SUMMER

    simulation.shutdown()
    assert not simulation.get_status()['tasks']['running']
