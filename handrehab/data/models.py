"""
Data models for the hand rehabilitation monitor.

Defines the normalized sensor sample and the classification results built
from it.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..config import PostureBand


IMU_CHANNELS = ("accel_x", "accel_y", "accel_z", "gyro_x", "gyro_y", "gyro_z")
SINGLE_FLEX_CHANNELS = ("flex",)
FINGER_FLEX_CHANNELS = ("flex1", "flex2", "flex3", "flex4", "flex5")


class ControllerState(Enum):
    """Dashboard controller lifecycle."""
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class SensorSample:
    """
    One normalized snapshot of every glove channel.

    Missing channels are None. Flex readings are raw sensor codes,
    force in newtons, IMU values as published by the MPU6050 firmware.
    """
    time: str         # HH:MM:SS label for charting
    timestamp: float  # Unix timestamp (seconds) at arrival
    flex: Mapping[str, Optional[float]] = field(default_factory=dict, hash=False)
    voltage: Optional[float] = None
    force: Optional[float] = None
    accel_x: Optional[float] = None
    accel_y: Optional[float] = None
    accel_z: Optional[float] = None
    gyro_x: Optional[float] = None
    gyro_y: Optional[float] = None
    gyro_z: Optional[float] = None

    def __post_init__(self):
        # Read-only copy so the sample cannot change once it is buffered
        object.__setattr__(self, "flex", MappingProxyType(dict(self.flex)))

    @property
    def flex_channels(self) -> Tuple[str, ...]:
        return tuple(self.flex)

    @property
    def channels(self) -> Tuple[str, ...]:
        """Every numeric channel name carried by this sample."""
        return self.flex_channels + ("voltage", "force") + IMU_CHANNELS

    def get(self, channel: str) -> Optional[float]:
        """Value of a channel by name, None if missing or unknown."""
        if channel in self.flex:
            return self.flex[channel]
        if channel in ("voltage", "force") or channel in IMU_CHANNELS:
            return getattr(self, channel)
        return None

    def as_row(self) -> Dict[str, Any]:
        """Flat dict for tables and charts."""
        row: Dict[str, Any] = {"time": self.time, "timestamp": self.timestamp}
        row.update(self.flex)
        row["voltage"] = self.voltage
        row["force"] = self.force
        for name in IMU_CHANNELS:
            row[name] = getattr(self, name)
        return row


@dataclass(frozen=True)
class ClinicalAssessment:
    """
    Posture band and clinical flags for one flex reading.

    arom: active range of motion achieved
    prom: passive range of motion achieved
    grasp: grip force adequate
    fine_motor: flexion held in the mid range
    """
    band: PostureBand
    flex: float
    force: float
    arom: bool
    prom: bool
    grasp: bool
    fine_motor: bool

    @property
    def label(self) -> str:
        return self.band.label


@dataclass(frozen=True)
class MovementSummary:
    """
    One label per axis group, computed from window averages.

    Empty string means neither direction fired for that group.
    """
    flex: str
    lateral: str    # accel X: ulnar/radial deviation
    sagittal: str   # accel Y: dorsiflexion/palmar flexion
    forearm: str    # accel Z: supination/pronation
    rotation: str   # gyro X: external/internal rotation

    def parts(self) -> Tuple[str, ...]:
        return (self.flex, self.lateral, self.sagittal, self.forearm, self.rotation)

    def __str__(self) -> str:
        return " | ".join(self.parts())
