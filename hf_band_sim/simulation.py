"""
HF band simulation for voice servers.

Estimates HF propagation between participants from their Maidenhead grid
locators and the current space-weather conditions, decides who can hear whom,
and keeps those conditions fresh from an internal model or external feeds.

Locking: ``self.lock`` guards the condition state, the band registry and the
signal cache as one unit. Every public query or update holds it only for CPU
work. Feed fetches run on worker threads without the lock and take it only to
merge their result. Notifications are emitted after the lock is released.
"""

import random
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Hashable, List, Optional, Set, Tuple

from .calculations.bands import BandRegistry, frequency_to_band
from .calculations.constants import (
    K_INDEX_PERTURBATION, PERTURBATION_PROBABILITY, REFERENCE_PATH_KM, SFI_PERTURBATION
)
from .calculations.grid_locator import is_valid_locator, latlon_to_grid
from .calculations.propagation_calculator import PropagationCalculator
from .calculations.time_analyzer import TimeAnalyzer
from .conditions import ConditionState, clamp, parse_season
from .config import Config, get_config
from .data_sources.band_quality_data import DXVIEW_FEED, BandQualityDataProvider
from .data_sources.external_feeds import ExternalFeedClient
from .data_sources.solar_data import SWPC_FEED, SolarDataProvider
from .utils.background_tasks import setup_background_tasks
from .utils.cache_manager import SignalCache, make_pair_key
from .utils.logging_config import get_logger
from .utils.events import (
    EXTERNAL_DATA_UPDATED, MUF_CHANGED, PROPAGATION_UPDATED, SIGNAL_STRENGTH_CHANGED, EventBus
)

logger = get_logger(__name__)

# participant id -> (locator, channel id), or None if unknown
ParticipantLookup = Callable[[Hashable], Optional[Tuple[Optional[str], Any]]]

# Smallest change in a pair's strength worth reporting to the host
STRENGTH_CHANGE_THRESHOLD = 0.05


class HFBandSimulation:
    """HF propagation model shared by all participants of one server.

    The last reported strength of each pair is remembered for change
    notifications. A pair not queried between two refreshes is forgotten, so
    hosts do not have to call ``forget_participant`` for memory to stay bounded.
    """

    def __init__(self, participant_lookup: Optional[ParticipantLookup] = None,
                 config: Optional[Config] = None,
                 event_bus: Optional[EventBus] = None,
                 session=None,
                 rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 band_channels: Optional[Dict[int, int]] = None,
                 channel_bands: Optional[Dict[int, int]] = None,
                 providers: Optional[Dict[str, Any]] = None):
        self.config = config or get_config()
        self.participant_lookup = participant_lookup or (lambda participant_id: None)
        self.events = event_bus or EventBus()
        self.rng = rng or random.Random()

        self.time_analyzer = TimeAnalyzer(self.config.TIMEZONE)
        self.clock = clock or self.time_analyzer.now

        self.lock = threading.RLock()
        self.registry = BandRegistry(band_channels, channel_bands)
        self.calculator = PropagationCalculator(self.registry, self.time_analyzer)
        self.cache = SignalCache()
        self.state = ConditionState(self._now())
        self.external_interval = self.config.EXTERNAL_UPDATE_INTERVAL
        self._apply_config()

        if providers is None:
            providers = {
                DXVIEW_FEED: BandQualityDataProvider(self.config.DXVIEW_URL, self.config.FEED_TIMEOUT, session),
                SWPC_FEED: SolarDataProvider(self.config.SWPC_URL, self.config.FEED_TIMEOUT, session),
            }
        self.feeds = ExternalFeedClient(providers, self._on_feed_result)
        self.task_manager = setup_background_tasks(self.refresh, self.config.UPDATE_INTERVAL)

        self._reported_strengths: Dict[Tuple, float] = {}
        self._active_pairs: Set[Tuple] = set()
        self._last_muf: Optional[float] = None

    def _apply_config(self):
        """Load the initial conditions from configuration (values are clamped)."""
        self.state.solar_flux_index = self.config.SOLAR_FLUX_INDEX
        self.state.k_index = self.config.K_INDEX

        season = parse_season(self.config.SEASON)
        if season is not None:
            self.state.season = season
            self.state.auto_time_enabled = False
        else:
            self.state.auto_time_enabled = self.config.AUTO_TIME_ENABLED

        self.state.external_data_enabled = self.config.EXTERNAL_DATA_ENABLED
        self.state.use_dxview_data = self.config.USE_DXVIEW_DATA
        self.state.use_swpc_data = self.config.USE_SWPC_DATA

    def _now(self) -> datetime:
        return self.time_analyzer.localize(self.clock())

    # Lifecycle

    def start(self):
        """Run an initial refresh and start the periodic refresh task."""
        self.refresh()
        self.task_manager.start_all()
        logger.info("HF band simulation started")

    def shutdown(self):
        """Stop the refresh task and cancel outstanding feed fetches."""
        self.task_manager.stop_all()
        self.feeds.shutdown()
        logger.info("HF band simulation stopped")

    def wait_for_feeds(self, timeout: Optional[float] = None) -> bool:
        """Wait until dispatched feed fetches have been merged."""
        return self.feeds.wait(timeout)

    # Refresh

    def refresh(self, now: Optional[datetime] = None):
        """
        Update propagation conditions.

        Clears the signal cache, follows the calendar season when auto-time is
        on, then either dispatches the enabled external feeds (at most once per
        external interval) or lets the internal model drift.
        """
        now = self._now() if now is None else self.time_analyzer.localize(now)
        to_fetch: List[str] = []

        with self.lock:
            self.cache.clear()
            self._prune_reported_strengths()

            if self.state.auto_time_enabled:
                self.state.season = self.time_analyzer.season_for_month(now.month)

            if self.state.external_data_enabled:
                if self.state.external_refresh_due(now, self.external_interval):
                    logger.debug("External data interval elapsed, fetching feeds")
                    if self.state.use_dxview_data:
                        to_fetch.append(DXVIEW_FEED)
                    if self.state.use_swpc_data:
                        to_fetch.append(SWPC_FEED)
                    self.state.last_external_refresh = now
            else:
                self._perturb_conditions()

            muf = self._track_muf(now)

        for feed_id in to_fetch:
            self.feeds.dispatch(feed_id)

        self._notify_updated(muf)

    def _perturb_conditions(self):
        # Occasional swings in the internal solar model
        if self.rng.random() < PERTURBATION_PROBABILITY:
            self.state.solar_flux_index += self.rng.randint(-SFI_PERTURBATION, SFI_PERTURBATION)
            self.state.k_index += self.rng.randint(-K_INDEX_PERTURBATION, K_INDEX_PERTURBATION)
            logger.info(f"Solar conditions updated: SFI = {self.state.solar_flux_index}, "
                        f"K-index = {self.state.k_index}")

    def _track_muf(self, now: datetime) -> Optional[float]:
        """Return the reference MUF if it changed since it was last reported."""
        muf = self._reference_muf(now)
        if self._last_muf is not None and abs(muf - self._last_muf) < 1e-9:
            return None
        self._last_muf = muf
        return muf

    def _notify_updated(self, muf: Optional[float]):
        self.events.emit(PROPAGATION_UPDATED)
        if muf is not None:
            self.events.emit(MUF_CHANGED, muf)

    def _invalidate(self):
        """Clear cached strengths after a settings change and notify the host."""
        with self.lock:
            self.cache.clear()
            muf = self._track_muf(self._now())
        self._notify_updated(muf)

    # External feeds

    def _on_feed_result(self, feed_id: str, update: Optional[Dict[str, Any]]):
        """Merge a feed result. Runs on the feed worker thread."""
        applied = False
        if update is not None:
            with self.lock:
                applied = self._merge_feed_update(update)
                if applied:
                    self.cache.clear()
                    muf = self._reference_muf(self._now())
                    self._last_muf = muf
                sfi, k_index = self.state.solar_flux_index, self.state.k_index

        if not applied:
            logger.warning(f"{feed_id} update failed, keeping current conditions")
            self.events.emit(EXTERNAL_DATA_UPDATED, feed_id, False)
            return

        logger.info(f"Updated propagation data from {feed_id}: SFI = {sfi}, K-index = {k_index}")
        self.events.emit(EXTERNAL_DATA_UPDATED, feed_id, True)
        self.events.emit(PROPAGATION_UPDATED)
        self.events.emit(MUF_CHANGED, muf)

    def _merge_feed_update(self, update: Dict[str, Any]) -> bool:
        applied = False

        if update.get('sfi') is not None:
            self.state.solar_flux_index = update['sfi']
            applied = True

        if update.get('k_index') is not None:
            self.state.k_index = update['k_index']
            applied = True

        for band, reliability in update.get('bands', {}).items():
            if self.registry.set_reliability(band, clamp(reliability, 0.0, 1.0)):
                applied = True

        return applied

    # Propagation queries

    def _lookup(self, participant_id: Hashable) -> Optional[Tuple[Optional[str], Any]]:
        try:
            return self.participant_lookup(participant_id)
        except Exception as e:
            logger.error(f"Error looking up participant {participant_id!r}: {e}")
            return None

    def calculate_propagation(self, participant1: Hashable, participant2: Hashable) -> float:
        """
        Signal strength between two participants, memoized until the next refresh.

        Participants without a usable grid locator get 0.0.
        """
        first = self._lookup(participant1)
        second = self._lookup(participant2)
        if first is None or second is None:
            return 0.0

        grid1, grid2 = first[0], second[0]
        if not is_valid_locator(grid1) or not is_valid_locator(grid2):
            return 0.0

        computed = []

        def compute() -> float:
            value = self.calculator.calculate_signal_strength(
                grid1, grid2, self.state, self._now(), self.rng
            )
            computed.append(value)
            return value

        with self.lock:
            strength = self.cache.get_or_compute(participant1, participant2, compute)
            changed = bool(computed) and self._record_strength(
                make_pair_key(participant1, participant2), strength
            )

        if changed:
            self.events.emit(SIGNAL_STRENGTH_CHANGED, grid1, grid2, strength)

        return strength

    def _record_strength(self, key: Tuple, strength: float) -> bool:
        self._active_pairs.add(key)
        previous = self._reported_strengths.get(key)
        if previous is not None and abs(strength - previous) < STRENGTH_CHANGE_THRESHOLD:
            return False
        self._reported_strengths[key] = strength
        return True

    def _prune_reported_strengths(self):
        # Pairs not queried since the previous refresh are forgotten
        for key in [k for k in self._reported_strengths if k not in self._active_pairs]:
            del self._reported_strengths[key]
        self._active_pairs.clear()

    def forget_participant(self, participant_id: Hashable):
        """Drop remembered strengths for a participant who left."""
        with self.lock:
            for key in [k for k in self._reported_strengths if participant_id in k]:
                del self._reported_strengths[key]
                self._active_pairs.discard(key)

    def can_communicate(self, participant1: Hashable, participant2: Hashable) -> bool:
        """Whether two participants can hear each other."""
        first = self._lookup(participant1)
        second = self._lookup(participant2)
        if first is None or second is None:
            return False

        return self.calculator.can_communicate(
            first[1], second[1],
            lambda: self.calculate_propagation(participant1, participant2)
        )

    def calculate_signal_strength(self, grid1: str, grid2: str,
                                  when: Optional[datetime] = None) -> float:
        """Signal strength between two locators under current conditions (not cached)."""
        when = self._now() if when is None else self.time_analyzer.localize(when)
        with self.lock:
            return self.calculator.calculate_signal_strength(grid1, grid2, self.state, when, self.rng)

    def calculate_distance(self, grid1: str, grid2: str) -> float:
        return self.calculator.calculate_distance(grid1, grid2)

    def recommend_band(self, distance: float) -> int:
        """Recommend a band for a distance at the current local hour and solar flux."""
        now = self._now()
        with self.lock:
            return self.calculator.recommend_band(distance, now.hour, self.state.solar_flux_index)

    def get_band_channel(self, band: int) -> int:
        return self.registry.get_band_channel(band)

    def get_channel_band(self, channel_id: int) -> int:
        return self.registry.get_channel_band(channel_id)

    def band_to_frequency(self, band: int) -> float:
        with self.lock:
            return self.registry.band_to_frequency(band)

    def frequency_to_band(self, frequency: float) -> int:
        return frequency_to_band(frequency)

    def _reference_muf(self, now: datetime) -> float:
        day_fraction = 1.0 if self.time_analyzer.is_daytime(now.hour) else 0.0
        return self.calculator.muf_calculator.calculate_muf(
            REFERENCE_PATH_KM, day_fraction, self.state.season, self.state.solar_flux_index
        )

    def reference_muf(self, now: Optional[datetime] = None) -> float:
        """MUF for a 3000 km path, fully daylit by day and fully dark by night."""
        now = self._now() if now is None else self.time_analyzer.localize(now)
        with self.lock:
            return self._reference_muf(now)

    # Settings

    @property
    def solar_flux_index(self) -> int:
        with self.lock:
            return self.state.solar_flux_index

    def set_solar_flux_index(self, sfi: int):
        with self.lock:
            self.state.solar_flux_index = sfi
        self._invalidate()

    @property
    def k_index(self) -> int:
        with self.lock:
            return self.state.k_index

    def set_k_index(self, k_index: int):
        with self.lock:
            self.state.k_index = k_index
        self._invalidate()

    @property
    def season(self) -> int:
        with self.lock:
            return self.state.season

    def set_season(self, season):
        """Set the season (0-3 or a season name); out-of-range numbers are clamped."""
        value = parse_season(season)
        if value is None:
            logger.warning(f"Ignoring season value {season!r}")
            return
        with self.lock:
            self.state.season = value
        self._invalidate()

    @property
    def auto_time_enabled(self) -> bool:
        with self.lock:
            return self.state.auto_time_enabled

    def set_auto_time_enabled(self, enabled: bool):
        with self.lock:
            self.state.auto_time_enabled = bool(enabled)
        self.refresh()

    @property
    def external_data_enabled(self) -> bool:
        with self.lock:
            return self.state.external_data_enabled

    def set_external_data_enabled(self, enabled: bool):
        with self.lock:
            self.state.external_data_enabled = bool(enabled)
        self.refresh()

    @property
    def use_dxview_data(self) -> bool:
        with self.lock:
            return self.state.use_dxview_data

    def set_use_dxview_data(self, use: bool):
        self._set_feed_enabled(DXVIEW_FEED, use)

    @property
    def use_swpc_data(self) -> bool:
        with self.lock:
            return self.state.use_swpc_data

    def set_use_swpc_data(self, use: bool):
        self._set_feed_enabled(SWPC_FEED, use)

    def _set_feed_enabled(self, feed_id: str, use: bool):
        with self.lock:
            if feed_id == DXVIEW_FEED:
                self.state.use_dxview_data = bool(use)
            else:
                self.state.use_swpc_data = bool(use)
            fetch_now = bool(use) and self.state.external_data_enabled

        if fetch_now:
            self.feeds.dispatch(feed_id)

    # Reporting

    def get_conditions_report(self) -> Dict[str, Any]:
        """Snapshot of conditions and per-band status for display."""
        now = self._now()
        with self.lock:
            muf = self._reference_muf(now)
            bands = {}
            for band in self.registry.bands():
                definition = self.registry.get(band)
                bands[f"{band}m"] = {
                    'frequency': definition.frequency,
                    'reliability': definition.reliability,
                    'channel': self.registry.get_band_channel(band),
                    'below_muf': definition.frequency <= muf,
                }

            return {
                'timestamp': now.isoformat(),
                'conditions': self.state.to_dict(),
                'reference_muf': round(muf, 2),
                'subsolar_locator': latlon_to_grid(*self.time_analyzer.subsolar_point(now)),
                'bands': bands,
            }

    def get_status(self) -> Dict[str, Any]:
        with self.lock:
            conditions = self.state.to_dict()
            cache_stats = self.cache.get_stats()
        return {
            'conditions': conditions,
            'cache': cache_stats,
            'tasks': self.task_manager.get_status(),
            'pending_feeds': self.feeds.pending(),
        }
