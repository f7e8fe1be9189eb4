import itertools

import pytest

from handrehab.config import DashboardConfig, GloveLayout
from handrehab.controller import DashboardController
from handrehab.data.models import SensorSample


def five_finger_payload(flex=(100, 150, 200, 250, 300), force=1.5, accel=(0.0, 0.0, 0.0), gyro=(0.0, 0.0, 0.0)):
    return {
        "FlexSensor": {f"Flex{i}": {"RawValue": v} for i, v in enumerate(flex, start=1)},
        "ForceSensor": {"RawValue": force},
        "MPU6050": {
            "Acceleration_X": accel[0],
            "Acceleration_Y": accel[1],
            "Acceleration_Z": accel[2],
            "Gyro_X": gyro[0],
            "Gyro_Y": gyro[1],
            "Gyro_Z": gyro[2],
        },
    }


def single_payload(flex=400, voltage=1.3, accel=(0.0, 0.0, 0.0), gyro=(0.0, 0.0, 0.0)):
    return {
        "FlexSensor": {"RawValue": flex, "Voltage": voltage},
        "MPU6050": {
            "Acceleration_X": accel[0],
            "Acceleration_Y": accel[1],
            "Acceleration_Z": accel[2],
            "Gyro_X": gyro[0],
            "Gyro_Y": gyro[1],
            "Gyro_Z": gyro[2],
        },
    }


def make_sample(n=0, flex=None, **channels):
    return SensorSample(time=f"00:00:{n:02d}", timestamp=float(n), flex=flex or {}, **channels)


class FakeClock:
    """Monotonic fake time source, one second per call."""

    def __init__(self, start=1_700_000_000.0):
        self._counter = itertools.count()
        self.start = start

    def __call__(self):
        return self.start + next(self._counter)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(clock):
    return DashboardController(DashboardConfig(layout=GloveLayout.FIVE_FINGER), clock=clock)


@pytest.fixture
def single_controller(clock):
    return DashboardController(DashboardConfig(layout=GloveLayout.SINGLE), clock=clock)
