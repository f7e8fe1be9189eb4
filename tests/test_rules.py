import pytest

from handrehab import rules
from handrehab.config import BandTable, MovementThresholds, PostureBand

from conftest import make_sample


def values(flex=400, accel_x=0.0, accel_y=0.0, accel_z=0.0, gyro_x=0.0):
    return {"flex": flex, "accel_x": accel_x, "accel_y": accel_y, "accel_z": accel_z, "gyro_x": gyro_x}


# ---------------------------------------------------------------------
# Movement labels
# ---------------------------------------------------------------------

def test_flexion_with_ulnar_deviation():
    labels = rules.movement_labels(values(flex=700, accel_x=0.9))
    assert labels == ["Flexion", "Ulnar Deviation"]
    assert rules.describe_movement(labels) == "Flexion, Ulnar Deviation"


def test_neutral_position_when_nothing_fires():
    assert rules.describe_movement(rules.movement_labels(values(flex=400))) == "Neutral Position"


@pytest.mark.parametrize("flex, expected", [
    (650, ["Flexion"]),
    (649, []),
    (300, ["Extension"]),
    (301, []),
])
def test_flex_thresholds_are_inclusive(flex, expected):
    assert rules.movement_labels(values(flex=flex)) == expected


@pytest.mark.parametrize("channel, value, expected", [
    ("accel_x", 0.8, []),
    ("accel_x", 0.81, ["Ulnar Deviation"]),
    ("accel_x", -0.5, []),
    ("accel_x", -0.51, ["Radial Deviation"]),
    ("accel_y", 0.9, ["Dorsiflexion"]),
    ("accel_y", -0.6, ["Palmar Flexion"]),
    ("accel_z", 0.9, ["Supination"]),
    ("accel_z", -0.6, ["Pronation"]),
    ("gyro_x", 0.5, []),
    ("gyro_x", 0.6, ["External Rotation"]),
    ("gyro_x", -0.6, ["Internal Rotation"]),
])
def test_imu_thresholds_are_strict(channel, value, expected):
    reading = values()
    reading[channel] = value
    assert rules.movement_labels(reading) == expected


def test_all_labels_reported_in_table_order():
    labels = rules.movement_labels(values(flex=200, accel_x=-1, accel_y=1, accel_z=-1, gyro_x=1))
    assert labels == ["Extension", "Radial Deviation", "Dorsiflexion", "Pronation", "External Rotation"]


def test_missing_reading_never_fires():
    reading = {"flex": None, "accel_x": None, "accel_y": None, "accel_z": None, "gyro_x": None}
    assert rules.movement_labels(reading) == []


def test_custom_thresholds():
    thresholds = MovementThresholds(flex_high=500)
    assert rules.movement_labels(values(flex=550), thresholds) == ["Flexion"]


def test_classify_movement_uses_sample_flex_channel():
    sample = make_sample(0, flex={"flex": 700}, accel_x=0.9, accel_y=0.0, accel_z=0.0, gyro_x=0.0)
    assert rules.classify_movement(sample) == "Flexion, Ulnar Deviation"

    sample = make_sample(0, flex={"flex1": 10, "flex2": 700}, accel_x=0.0, accel_y=0.0, accel_z=0.0, gyro_x=0.0)
    assert rules.classify_movement(sample) == "Extension"
    assert rules.classify_movement(sample, flex_channel="flex2") == "Flexion"


# ---------------------------------------------------------------------
# Averaged summary
# ---------------------------------------------------------------------

def test_summary_on_averages():
    summary = rules.summarize_movement({"flex": 700, "accel_x": -0.6, "accel_y": 0.0, "accel_z": 0.9, "gyro_x": 0.0})
    assert summary.parts() == ("Flexion", "Radial Deviation", "", "Supination", "")
    assert str(summary) == "Flexion | Radial Deviation |  | Supination | "


def test_summary_flex_is_strict():
    assert rules.summarize_movement({"flex": 650}).flex == "Neutral"
    assert rules.summarize_movement({"flex": 300}).flex == "Neutral"
    assert rules.summarize_movement({"flex": 299.5}).flex == "Extension"


def test_summary_of_empty_means_defaults_to_zero():
    summary = rules.summarize_movement({})
    # zero flex is below the extension threshold
    assert summary.parts() == ("Extension", "", "", "", "")


# ---------------------------------------------------------------------
# Posture bands and clinical flags
# ---------------------------------------------------------------------

@pytest.mark.parametrize("flex, label", [
    (0, "Neutral Posture"),
    (-5, "Neutral Posture"),
    (112, "Neutral Posture"),
    (112.5, "Mid-range Flexion"),
    (113, "Mid-range Flexion"),
    (225, "Mid-range Flexion"),
    (226, "Full Flexion"),
    (338, "Full Flexion"),
    (1000, "Full Flexion"),
])
def test_posture_bands(flex, label):
    assert rules.posture_band(flex).label == label


@pytest.mark.parametrize("flex, arom, prom, fine_motor", [
    (112, False, False, False),
    (112.5, True, False, False),
    (113, True, False, True),
    (114, True, True, True),
    (225, True, True, True),
    (226, True, True, False),
])
def test_range_of_motion_flags(flex, arom, prom, fine_motor):
    result = rules.assess(flex, 0)
    assert result.arom is arom
    assert result.prom is prom
    assert result.fine_motor is fine_motor


@pytest.mark.parametrize("force, grasp", [(2.0, False), (2.01, True), (0, False)])
def test_grasp_threshold_is_strict(force, grasp):
    assert rules.assess(150, force).grasp is grasp


def test_missing_readings_assess_as_zero():
    result = rules.assess(None, None)
    assert result.flex == 0
    assert result.force == 0
    assert result.label == "Neutral Posture"
    assert not (result.arom or result.prom or result.grasp or result.fine_motor)


def test_band_table_rejects_gap():
    with pytest.raises(ValueError):
        BandTable([PostureBand("neutral", "N", None, 100), PostureBand("mid_flexion", "M", 102, None)])


def test_band_table_rejects_overlap():
    with pytest.raises(ValueError):
        BandTable([PostureBand("neutral", "N", None, 100), PostureBand("mid_flexion", "M", 90, None)])


def test_band_table_rejects_unbounded_middle_band():
    with pytest.raises(ValueError):
        BandTable([
            PostureBand("neutral", "N", None, None),
            PostureBand("mid_flexion", "M", 101, None),
        ])


def test_band_table_rejects_inverted_first_band():
    with pytest.raises(ValueError):
        BandTable([
            PostureBand("neutral", "N", 50, 10),
            PostureBand("mid_flexion", "M", 11, None),
        ])


def test_band_table_rejects_inverted_last_band():
    with pytest.raises(ValueError):
        BandTable([
            PostureBand("neutral", "N", None, 100),
            PostureBand("mid_flexion", "M", 101, 90),
        ])


def test_band_table_requires_clinical_bands():
    with pytest.raises(ValueError, match="mid_flexion"):
        BandTable([
            PostureBand("neutral", "Open", None, 50),
            PostureBand("closed", "Closed", 51, None),
        ])


def test_custom_band_table():
    bands = BandTable([
        PostureBand("neutral", "Open", None, 50),
        PostureBand("mid_flexion", "Half", 51, 150),
        PostureBand("full_flexion", "Closed", 151, None),
    ])
    result = rules.assess(60, 0, bands=bands)
    assert result.label == "Half"
    assert result.arom and result.prom and result.fine_motor
