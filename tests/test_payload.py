import pytest

from handrehab.config import GloveLayout
from handrehab.data.payload import normalize_payload, to_number

from conftest import five_finger_payload, single_payload


TS = 1_700_000_000.0


@pytest.mark.parametrize("payload", [None, {}, [], "SensorData", 42])
def test_malformed_payload_is_skipped(payload):
    assert normalize_payload(payload, GloveLayout.FIVE_FINGER, TS) is None
    assert normalize_payload(payload, GloveLayout.SINGLE, TS) is None


def test_five_finger_payload():
    sample = normalize_payload(five_finger_payload(accel=(0.1, 0.2, 0.3), gyro=(1, 2, 3)), GloveLayout.FIVE_FINGER, TS)
    assert dict(sample.flex) == {"flex1": 100, "flex2": 150, "flex3": 200, "flex4": 250, "flex5": 300}
    assert sample.force == 1.5
    assert (sample.accel_x, sample.accel_y, sample.accel_z) == (0.1, 0.2, 0.3)
    assert (sample.gyro_x, sample.gyro_y, sample.gyro_z) == (1, 2, 3)
    assert sample.voltage is None
    assert sample.timestamp == TS
    assert len(sample.time) == 8


def test_five_finger_missing_flex_is_none_but_force_and_imu_default_to_zero():
    payload = {"FlexSensor": {"Flex1": {"RawValue": 120}, "Flex3": {}}}
    sample = normalize_payload(payload, GloveLayout.FIVE_FINGER, TS)
    assert sample.flex["flex1"] == 120
    assert sample.flex["flex2"] is None
    assert sample.flex["flex3"] is None
    assert sample.force == 0.0
    assert sample.accel_x == 0.0
    assert sample.gyro_z == 0.0


def test_single_payload():
    sample = normalize_payload(single_payload(flex=512, voltage=1.65), GloveLayout.SINGLE, TS)
    assert dict(sample.flex) == {"flex": 512}
    assert sample.voltage == 1.65
    assert sample.force is None


def test_single_missing_groups_are_none():
    sample = normalize_payload({"FlexSensor": {"RawValue": 700}}, GloveLayout.SINGLE, TS)
    assert sample.flex["flex"] == 700
    assert sample.voltage is None
    assert sample.accel_x is None
    assert sample.gyro_x is None


def test_group_that_is_not_a_mapping_counts_as_absent():
    sample = normalize_payload({"FlexSensor": 5, "MPU6050": [1, 2]}, GloveLayout.FIVE_FINGER, TS)
    assert all(v is None for v in sample.flex.values())
    assert sample.accel_x == 0.0


@pytest.mark.parametrize("raw, expected", [
    (5, 5),
    (2.5, 2.5),
    ("3.25", 3.25),
    ("abc", None),
    (True, None),
    (None, None),
    ({"x": 1}, None),
    ("nan", None),
    ("inf", None),
    ("-inf", None),
    (float("nan"), None),
    (float("inf"), None),
])
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_sample_is_immutable():
    sample = normalize_payload(five_finger_payload(), GloveLayout.FIVE_FINGER, TS)
    with pytest.raises(AttributeError):
        sample.force = 9.0
    with pytest.raises(TypeError):
        sample.flex["flex1"] = 0


def test_sample_row_and_lookup():
    sample = normalize_payload(five_finger_payload(), GloveLayout.FIVE_FINGER, TS)
    row = sample.as_row()
    assert row["flex3"] == 200
    assert row["force"] == 1.5
    assert row["timestamp"] == TS
    assert sample.get("flex5") == 300
    assert sample.get("gyro_y") == 0.0
    assert sample.get("unknown") is None
