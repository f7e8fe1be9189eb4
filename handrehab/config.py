"""
Configuration for the hand rehabilitation monitor.

Thresholds, posture band tables, finger definitions and feed settings.
Everything the classification rules compare against lives here so it can be
recalibrated without touching rule code.
"""

import json
import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union


class GloveLayout(Enum):
    """Shape of the payload published by the glove."""
    SINGLE = "single"            # one flex sensor + voltage + IMU
    FIVE_FINGER = "five_finger"  # Flex1..Flex5 + force + IMU


@dataclass
class MovementThresholds:
    """
    Thresholds for movement labelling.

    Flex values are raw sensor codes, acceleration and gyro values are in
    the units the MPU6050 firmware publishes.
    """
    flex_high: float = 650.0       # flexion at or above
    flex_low: float = 300.0        # extension at or below
    accel_x_high: float = 0.8      # ulnar deviation
    accel_x_low: float = -0.5      # radial deviation
    accel_y_high: float = 0.8      # dorsiflexion
    accel_y_low: float = -0.5      # palmar flexion
    accel_z_high: float = 0.8      # supination
    accel_z_low: float = -0.5      # pronation
    gyro_x_high: float = 0.5       # external rotation
    gyro_x_low: float = -0.5       # internal rotation


@dataclass(frozen=True)
class PostureBand:
    """
    One flexion band.

    Bounds are inclusive. ``lower=None`` means unbounded below and
    ``upper=None`` unbounded above.
    """
    key: str
    label: str
    lower: Optional[int]
    upper: Optional[int]
    color: str = "#7f8c8d"


class BandTable:
    """
    Ordered, contiguous, non-overlapping posture bands.

    Matching is first-match-wins in ascending order on each band's upper
    bound; the last band is the catch-all. The clinical flags read the
    "neutral" and "mid_flexion" bands, so both keys must be present.
    """

    REQUIRED_KEYS = ("neutral", "mid_flexion")

    def __init__(self, bands: List[PostureBand]):
        if not bands:
            raise ValueError("Band table needs at least one band")

        keys = [band.key for band in bands]
        missing = [key for key in self.REQUIRED_KEYS if key not in keys]
        if missing:
            raise ValueError(f"Band table is missing required bands: {', '.join(missing)}")

        for band in bands:
            if band.lower is not None and band.upper is not None and band.upper < band.lower:
                raise ValueError(f"Band '{band.key}' has upper bound below lower bound")

        for prev, band in zip(bands, bands[1:]):
            if prev.upper is None:
                raise ValueError(f"Band '{prev.key}' is unbounded but is not the last band")
            if band.lower is None or band.lower != prev.upper + 1:
                raise ValueError(
                    f"Bands '{prev.key}' and '{band.key}' are not contiguous "
                    f"({prev.upper} -> {band.lower})"
                )

        self.bands = list(bands)

    def __iter__(self):
        return iter(self.bands)

    def __len__(self) -> int:
        return len(self.bands)

    def __getitem__(self, key: str) -> PostureBand:
        for band in self.bands:
            if band.key == key:
                return band
        raise KeyError(key)

    def match(self, flex: float) -> PostureBand:
        for band in self.bands[:-1]:
            if flex <= band.upper:
                return band
        return self.bands[-1]


NEUTRAL = PostureBand("neutral", "Neutral Posture", None, 112, "#e74c3c")
MID_FLEXION = PostureBand("mid_flexion", "Mid-range Flexion", 113, 225, "#f39c12")
FULL_FLEXION = PostureBand("full_flexion", "Full Flexion", 226, None, "#27ae60")

DEFAULT_BANDS = BandTable([NEUTRAL, MID_FLEXION, FULL_FLEXION])


@dataclass
class ClinicalThresholds:
    """Thresholds for the clinical flags beyond the flexion bands."""
    grasp_force: float = 2.0  # newtons, grasp adequate strictly above


@dataclass(frozen=True)
class Finger:
    id: str
    name: str
    channel: str
    color: str


FINGERS = (
    Finger("thumb", "Thumb", "flex1", "#FF5733"),
    Finger("index", "Index", "flex2", "#33FF57"),
    Finger("middle", "Middle", "flex3", "#3383FF"),
    Finger("ring", "Ring", "flex4", "#FF33A8"),
    Finger("pinky", "Pinky", "flex5", "#8E44AD"),
)


def get_finger(finger_id: str) -> Finger:
    """Look up a finger by id ('thumb', 'index', ...)."""
    for finger in FINGERS:
        if finger.id == finger_id:
            return finger
    raise KeyError(f"Unknown finger: {finger_id}")


@dataclass
class FeedSettings:
    """
    Realtime database feed settings.

    The secret is optional; databases with open read rules need none.
    """
    database_url: str = ""
    path: str = "SensorData"
    auth_secret: Optional[str] = None
    timeout: float = 5.0           # seconds per request
    poll_interval: float = 0.5     # seconds between polls in the dashboard

    @classmethod
    def from_env(cls) -> "FeedSettings":
        """Build settings from HANDREHAB_* environment variables."""
        return cls(
            database_url=os.environ.get("HANDREHAB_DATABASE_URL", ""),
            path=os.environ.get("HANDREHAB_FEED_PATH", cls.path),
            auth_secret=os.environ.get("HANDREHAB_DB_SECRET") or None,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.database_url)


@dataclass
class DashboardConfig:
    """Top-level configuration for a dashboard controller."""
    layout: GloveLayout = GloveLayout.FIVE_FINGER
    window_capacity: int = 31  # last 30 samples plus the newest
    movement: MovementThresholds = field(default_factory=MovementThresholds)
    clinical: ClinicalThresholds = field(default_factory=ClinicalThresholds)
    feed: FeedSettings = field(default_factory=FeedSettings)

    def to_json(self, path: Optional[Union[Path, str]] = None) -> str:
        """
        Serialize to JSON.

        Args:
            path: If provided, write to file. Otherwise return string.
        """
        data = {
            "layout": self.layout.value,
            "window_capacity": self.window_capacity,
            "movement": asdict(self.movement),
            "clinical": asdict(self.clinical),
            "feed": asdict(self.feed),
        }
        json_str = json.dumps(data, indent=2)

        if path:
            Path(path).write_text(json_str)

        return json_str

    @classmethod
    def from_json(cls, source: Union[Path, str]) -> "DashboardConfig":
        """
        Load configuration from a JSON file path or JSON string.

        Missing sections fall back to defaults.
        """
        if isinstance(source, Path) or not source.lstrip().startswith("{"):
            json_str = Path(source).read_text()
        else:
            json_str = source
        data = json.loads(json_str)

        return cls(
            layout=GloveLayout(data.get("layout", GloveLayout.FIVE_FINGER.value)),
            window_capacity=int(data.get("window_capacity", 31)),
            movement=MovementThresholds(**data.get("movement", {})),
            clinical=ClinicalThresholds(**data.get("clinical", {})),
            feed=FeedSettings(**data.get("feed", {})),
        )
