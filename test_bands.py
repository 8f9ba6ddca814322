"""Test band registry lookups."""

import pytest

from hf_band_sim.calculations import BandRegistry, frequency_to_band


def test_default_catalogue():
    registry = BandRegistry()
    assert registry.bands() == [160, 80, 60, 40, 30, 20, 17, 15, 10, 6]

    forty = registry.get(40)
    assert forty.frequency == 7.15
    assert (forty.min_distance, forty.max_distance) == (500, 3000)
    assert forty.to_dict()['night_factor'] == 1.2


def test_channel_mapping_is_inverse_by_default():
    registry = BandRegistry()
    for band in registry.bands():
        assert registry.get_channel_band(registry.get_band_channel(band)) == band


def test_unknown_band_and_channel():
    registry = BandRegistry()
    assert registry.get_band_channel(12) == 0
    assert registry.get_channel_band(42) == 0
    assert registry.band_to_frequency(12) == 0.0
    assert registry.get(12) is None


def test_custom_channel_bands_allow_shared_band():
    registry = BandRegistry(band_channels={20: 100}, channel_bands={100: 20, 101: 20})
    assert registry.get_band_channel(20) == 100
    assert registry.get_channel_band(101) == 20


def test_set_reliability():
    registry = BandRegistry()
    assert registry.set_reliability(20, 0.4)
    assert registry.get(20).reliability == 0.4
    assert not registry.set_reliability(11, 0.4)


def test_registries_do_not_share_definitions():
    first, second = BandRegistry(), BandRegistry()
    first.set_reliability(20, 0.1)
    assert second.get(20).reliability == 0.95


@pytest.mark.parametrize('frequency,band', [
    (1.9, 160),
    (3.75, 80),
    (5.35, 60),
    (7.15, 40),
    (10.125, 30),
    (14.175, 20),
    (18.118, 17),
    (21.225, 15),
    (28.85, 10),
    (52.0, 6),
    (60.0, 0),
    (144.0, 0),
])
def test_frequency_to_band(frequency, band):
    assert frequency_to_band(frequency) == band


def test_band_frequency_round_trip():
    registry = BandRegistry()
    for band in registry.bands():
        assert frequency_to_band(registry.band_to_frequency(band)) == band
