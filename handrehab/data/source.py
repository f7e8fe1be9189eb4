"""
Feed source abstraction, simulated glove feed and the sample window.

Feed sources push raw payloads to subscribers on the caller's thread. Live
implementations (see handrehab.data.live) inherit from FeedSource.
"""

from abc import ABC, abstractmethod
from collections import deque
import logging
import math
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..config import GloveLayout
from .models import SensorSample


logger = logging.getLogger(__name__)

PayloadCallback = Callable[[Dict[str, Any]], Any]


class Subscription:
    """
    Handle for one subscriber of a feed source.

    Unsubscribing twice is harmless.
    """

    def __init__(self, source: "FeedSource", callback: PayloadCallback):
        self.source = source
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.source._remove(self)


class FeedSource(ABC):
    """
    Abstract base class for push-style payload feeds.

    Subclasses decide when payloads arrive and call _publish() with each one.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def subscribe(self, callback: PayloadCallback) -> Subscription:
        """Register a callback that receives every raw payload."""
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _publish(self, payload: Dict[str, Any]) -> None:
        for subscription in list(self._subscriptions):
            subscription.callback(payload)

    @abstractmethod
    def close(self) -> None:
        """Release connections and drop all subscribers."""
        pass


class MockFeedSource(FeedSource):
    """
    Simulated glove feed for development and tests.

    Fingers open and close on a slow cycle with sensor noise; grip force
    follows flexion; the wrist occasionally tilts so the IMU rules fire.
    """

    # Flex code ranges per layout (open hand -> closed fist)
    FLEX_RANGE = {
        GloveLayout.SINGLE: (250.0, 720.0),
        GloveLayout.FIVE_FINGER: (40.0, 320.0),
    }
    CYCLE_SAMPLES = 40  # samples per open/close cycle
    MAX_FORCE = 6.0  # N at full flexion

    def __init__(
        self,
        layout: GloveLayout = GloveLayout.FIVE_FINGER,
        noise_level: float = 8.0,
        tilt_probability: float = 0.1,
        seed: Optional[int] = None,
    ):
        """
        Initialize simulated feed.

        Args:
            layout: Payload layout to produce
            noise_level: Standard deviation of flex noise (raw codes)
            tilt_probability: Chance per sample of a wrist tilt
            seed: Random seed for reproducible payloads
        """
        super().__init__()
        self.layout = layout
        self.noise_level = noise_level
        self.tilt_probability = tilt_probability
        self._rng = np.random.default_rng(seed)
        self._step = 0
        self._closed = False

    def next_payload(self) -> Dict[str, Any]:
        """Build the next simulated payload without publishing it."""
        self._step += 1
        low, high = self.FLEX_RANGE[self.layout]
        phase = 0.5 - 0.5 * math.cos(2 * math.pi * self._step / self.CYCLE_SAMPLES)

        accel = self._rng.normal(0.0, 0.15, 3)
        gyro = self._rng.normal(0.0, 0.1, 3)
        if self._rng.random() < self.tilt_probability:
            axis = int(self._rng.integers(0, 3))
            accel[axis] += self._rng.choice([-1.0, 1.0])
            gyro[0] += self._rng.choice([-0.8, 0.8])

        mpu = {
            "Acceleration_X": round(float(accel[0]), 3),
            "Acceleration_Y": round(float(accel[1]), 3),
            "Acceleration_Z": round(float(accel[2]), 3),
            "Gyro_X": round(float(gyro[0]), 3),
            "Gyro_Y": round(float(gyro[1]), 3),
            "Gyro_Z": round(float(gyro[2]), 3),
        }

        if self.layout == GloveLayout.SINGLE:
            raw = self._flex_code(low, high, phase)
            return {
                "FlexSensor": {"RawValue": raw, "Voltage": round(3.3 * raw / 1023, 3)},
                "MPU6050": mpu,
            }

        fingers = {}
        for i in range(1, 6):
            # Thumb lags the other fingers slightly
            finger_phase = phase * (0.8 if i == 1 else 1.0)
            fingers[f"Flex{i}"] = {"RawValue": self._flex_code(low, high, finger_phase)}

        return {
            "FlexSensor": fingers,
            "ForceSensor": {"RawValue": round(self.MAX_FORCE * phase + abs(float(self._rng.normal(0, 0.1))), 2)},
            "MPU6050": mpu,
        }

    def _flex_code(self, low: float, high: float, phase: float) -> int:
        value = low + (high - low) * phase + self._rng.normal(0.0, self.noise_level)
        return int(max(0.0, round(value)))

    def pump(self, count: int = 1) -> List[Dict[str, Any]]:
        """Generate and publish `count` payloads; returns them."""
        if self._closed:
            return []
        payloads = []
        for _ in range(count):
            payload = self.next_payload()
            self._publish(payload)
            payloads.append(payload)
        return payloads

    def close(self) -> None:
        """Stop publishing (no connections to release)."""
        self._closed = True
        self._subscriptions.clear()
        logger.info("Simulated %s feed closed after %d payloads", self.layout.value, self._step)


class SampleBuffer:
    """
    Fixed-capacity sliding window of recent samples.

    Appending beyond capacity evicts the oldest sample. Single writer.
    """

    def __init__(self, capacity: int = 31):
        """
        Initialize buffer.

        Args:
            capacity: Maximum number of samples kept
        """
        if capacity < 1:
            raise ValueError(f"Buffer capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._buffer: deque[SensorSample] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_full(self) -> bool:
        """Whether buffer has reached capacity."""
        return len(self._buffer) >= self.capacity

    def append(self, sample: SensorSample) -> None:
        """Add a sample at the tail, evicting the oldest when full."""
        self._buffer.append(sample)

    def latest(self) -> Optional[SensorSample]:
        """Newest sample, None when empty."""
        return self._buffer[-1] if self._buffer else None

    def all(self) -> List[SensorSample]:
        """All samples in arrival order."""
        return list(self._buffer)


if __name__ == "__main__":
    from .payload import normalize_payload

    print("Testing MockFeedSource...")
    feed = MockFeedSource(seed=7)
    window = SampleBuffer(capacity=31)
    feed.subscribe(lambda p: window.append(normalize_payload(p, feed.layout)))
    feed.pump(50)
    latest = window.latest()
    print(f"  Buffered: {len(window)} / {window.capacity}")
    print(f"  Latest flex: {dict(latest.flex)}")
    print(f"  Latest force: {latest.force:.2f} N")
