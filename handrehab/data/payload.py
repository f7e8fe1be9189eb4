"""
Normalization of raw feed payloads into SensorSample.

The glove publishes a nested record:

    {
        "FlexSensor": {"RawValue": 512, "Voltage": 1.9}       # single sensor
        "FlexSensor": {"Flex1": {"RawValue": 140}, ...}       # five fingers
        "ForceSensor": {"RawValue": 2.4},
        "MPU6050": {"Acceleration_X": 0.1, ..., "Gyro_Z": 0.0},
    }

Any group or field may be missing. Flex channels are always None when
missing. In the five-finger layout force and IMU channels default to 0.0
instead, so the charts stay continuous. That is the only place a missing
reading turns into a number.
"""

import math
import time
from datetime import datetime
from typing import Any, Mapping, Optional

from ..config import GloveLayout
from .models import FINGER_FLEX_CHANNELS, SensorSample


MPU_FIELDS = {
    "accel_x": "Acceleration_X",
    "accel_y": "Acceleration_Y",
    "accel_z": "Acceleration_Z",
    "gyro_x": "Gyro_X",
    "gyro_y": "Gyro_Y",
    "gyro_z": "Gyro_Z",
}


def to_number(value: Any) -> Optional[float]:
    """Coerce a payload field to a finite number, None if it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _group(payload: Mapping, name: str) -> Mapping:
    group = payload.get(name)
    return group if isinstance(group, Mapping) else {}


def is_valid_payload(payload: Any) -> bool:
    """A payload is usable when it is a non-empty mapping."""
    return isinstance(payload, Mapping) and len(payload) > 0


def normalize_payload(
    payload: Any,
    layout: GloveLayout,
    timestamp: Optional[float] = None,
) -> Optional[SensorSample]:
    """
    Map a raw payload to a SensorSample.

    Args:
        payload: Raw record from the feed
        layout: Which glove layout produced it
        timestamp: Arrival time (defaults to now)

    Returns:
        SensorSample, or None if the payload is malformed
    """
    if not is_valid_payload(payload):
        return None

    if timestamp is None:
        timestamp = time.time()
    label = datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")

    flex_group = _group(payload, "FlexSensor")
    mpu = _group(payload, "MPU6050")
    force_group = _group(payload, "ForceSensor")

    if layout == GloveLayout.SINGLE:
        imu = {name: to_number(mpu.get(key)) for name, key in MPU_FIELDS.items()}
        return SensorSample(
            time=label,
            timestamp=timestamp,
            flex={"flex": to_number(flex_group.get("RawValue"))},
            voltage=to_number(flex_group.get("Voltage")),
            force=to_number(force_group.get("RawValue")),
            **imu,
        )

    if layout == GloveLayout.FIVE_FINGER:
        flex = {}
        for i, channel in enumerate(FINGER_FLEX_CHANNELS, start=1):
            finger = _group(flex_group, f"Flex{i}")
            flex[channel] = to_number(finger.get("RawValue"))

        imu = {}
        for name, key in MPU_FIELDS.items():
            value = to_number(mpu.get(key))
            imu[name] = 0.0 if value is None else value

        force = to_number(force_group.get("RawValue"))
        return SensorSample(
            time=label,
            timestamp=timestamp,
            flex=flex,
            force=0.0 if force is None else force,
            **imu,
        )

    raise ValueError(f"Unsupported glove layout: {layout}")
