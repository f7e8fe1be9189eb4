"""
Dashboard controller.

Owns the sample window and the feed subscription, normalizes pushed
payloads, and answers the pull queries the dashboard renders from:
- latest sample
- window averages
- movement labels and summary
- per-finger clinical assessment

Lifecycle is LOADING until the first valid payload, then READY for good.
"""

from collections import deque
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from . import aggregate, rules
from .config import DEFAULT_BANDS, BandTable, DashboardConfig, GloveLayout, get_finger
from .data.models import (
    FINGER_FLEX_CHANNELS,
    IMU_CHANNELS,
    SINGLE_FLEX_CHANNELS,
    ClinicalAssessment,
    ControllerState,
    MovementSummary,
    SensorSample,
)
from .data.payload import normalize_payload
from .data.source import FeedSource, SampleBuffer, Subscription


logger = logging.getLogger(__name__)


def layout_channels(layout: GloveLayout) -> tuple:
    """Numeric channels carried by samples of a layout."""
    if layout == GloveLayout.SINGLE:
        return SINGLE_FLEX_CHANNELS + ("voltage",) + IMU_CHANNELS
    return FINGER_FLEX_CHANNELS + ("force",) + IMU_CHANNELS


class DashboardController:
    """
    Single-writer owner of the sample window.

    Payloads arrive through on_sample(), either pushed by an attached feed
    or called directly. All queries are read-only.
    """

    def __init__(
        self,
        config: Optional[DashboardConfig] = None,
        bands: BandTable = DEFAULT_BANDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize controller.

        Args:
            config: Layout, window capacity and thresholds (defaults if None)
            bands: Posture band table for clinical assessment
            clock: Time source for sample timestamps
        """
        self.config = config or DashboardConfig()
        self.layout = self.config.layout
        self.bands = bands
        self._clock = clock

        self.buffer = SampleBuffer(self.config.window_capacity)
        self.state = ControllerState.LOADING
        self.state_entered_at = clock()
        self.transitions = deque(maxlen=100)

        self.samples_received = 0
        self.payloads_skipped = 0

        self._source: Optional[FeedSource] = None
        self._subscription: Optional[Subscription] = None

        # Callback for external integration
        self.on_ready: Optional[Callable[[SensorSample], None]] = None

    # -----------------------------------------------------------------
    # Feed ownership
    # -----------------------------------------------------------------

    def attach(self, source: FeedSource) -> Subscription:
        """
        Subscribe to a feed source; the controller owns it from now on.

        Any previously attached source is closed first.
        """
        if self._source is not None:
            self.close()
        self._source = source
        self._subscription = source.subscribe(self.on_sample)
        return self._subscription

    @property
    def source(self) -> Optional[FeedSource]:
        return self._source

    def close(self) -> None:
        """Unsubscribe and close the attached source, if any."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._source is not None:
            self._source.close()
            self._source = None

    def __enter__(self) -> "DashboardController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -----------------------------------------------------------------
    # Ingest
    # -----------------------------------------------------------------

    def on_sample(self, payload: Any) -> Optional[SensorSample]:
        """
        Ingest one raw payload.

        Returns:
            The buffered sample, or None if the payload was malformed
        """
        sample = normalize_payload(payload, self.layout, timestamp=self._clock())
        if sample is None:
            self.payloads_skipped += 1
            logger.debug("Skipped malformed payload: %r", payload)
            return None

        self.buffer.append(sample)
        self.samples_received += 1

        if self.state == ControllerState.LOADING:
            self._transition(ControllerState.READY, "First valid sample")
            if self.on_ready:
                self.on_ready(sample)

        return sample

    def _transition(self, new_state: ControllerState, reason: str) -> None:
        if new_state == self.state:
            return

        now = self._clock()
        self.transitions.append({
            "time": now,
            "from": self.state.value,
            "to": new_state.value,
            "reason": reason,
        })
        logger.info("Controller %s -> %s (%s)", self.state.value, new_state.value, reason)
        self.state = new_state
        self.state_entered_at = now

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self.state == ControllerState.LOADING

    @property
    def channels(self) -> tuple:
        return layout_channels(self.layout)

    def latest(self) -> Optional[SensorSample]:
        """Newest sample, or None while there is no data."""
        return self.buffer.latest()

    def history(self) -> List[SensorSample]:
        """Window contents in arrival order."""
        return self.buffer.all()

    def averages(self, channels: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """Per-channel means over the window (0 for empty channels)."""
        if channels is None:
            channels = self.channels
        return aggregate.averages(self.buffer.all(), channels)

    def to_frame(self) -> pd.DataFrame:
        """Window as a DataFrame, one row per sample, for charting."""
        columns = ["time", "timestamp"] + list(self.channels)
        rows = [s.as_row() for s in self.buffer.all()]
        return pd.DataFrame(rows, columns=columns)

    def current_movement(self, flex_channel: Optional[str] = None) -> Optional[str]:
        """Movement labels for the latest sample, None while loading."""
        sample = self.latest()
        if sample is None:
            return None
        return rules.classify_movement(sample, self.config.movement, flex_channel)

    def movement_summary(self, flex_channel: Optional[str] = None) -> MovementSummary:
        """Averaged movement summary over the window."""
        if flex_channel is None:
            flex_channel = self.channels[0]
        return rules.summarize_movement(self.averages(), self.config.movement, flex_channel)

    def assess(self, finger_id: str) -> Optional[ClinicalAssessment]:
        """Clinical assessment of one finger from the latest sample."""
        finger = get_finger(finger_id)
        sample = self.latest()
        if sample is None:
            return None
        return rules.assess(
            sample.get(finger.channel),
            sample.force,
            bands=self.bands,
            clinical=self.config.clinical,
        )

    def get_status(self) -> dict:
        """Current controller status."""
        return {
            "state": self.state.value,
            "layout": self.layout.value,
            "window": len(self.buffer),
            "capacity": self.buffer.capacity,
            "samples_received": self.samples_received,
            "payloads_skipped": self.payloads_skipped,
            "duration": self._clock() - self.state_entered_at,
        }
