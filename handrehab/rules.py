"""
Rule-based movement and clinical classification.

Two independent rule sets, kept separate because they encode different
clinical models:

1. Movement labels for the single-sensor glove. Every rule in an ordered
   table is evaluated independently; all that fire are reported.
2. Posture bands and clinical flags for the five-finger glove. Bands are
   matched first-match-wins in ascending order.

The averaged movement summary applies the movement thresholds to window
means, one mutually exclusive label per axis group.
"""

from dataclasses import dataclass
import operator
from typing import Callable, List, Mapping, Optional, Tuple

from .config import BandTable, ClinicalThresholds, DEFAULT_BANDS, MovementThresholds, PostureBand
from .data.models import ClinicalAssessment, MovementSummary, SensorSample


NEUTRAL_POSITION = "Neutral Position"


# ---------------------------------------------------------------------
# MOVEMENT LABELS
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class MovementRule:
    label: str
    channel: str
    compare: Callable[[float, float], bool]
    threshold: float

    def fires(self, value: Optional[float]) -> bool:
        # A missing reading never fires
        return value is not None and self.compare(value, self.threshold)


def movement_rules(thresholds: Optional[MovementThresholds] = None) -> List[MovementRule]:
    """Ordered movement rule table; label order is report order."""
    t = thresholds or MovementThresholds()
    return [
        MovementRule("Flexion", "flex", operator.ge, t.flex_high),
        MovementRule("Extension", "flex", operator.le, t.flex_low),
        MovementRule("Ulnar Deviation", "accel_x", operator.gt, t.accel_x_high),
        MovementRule("Radial Deviation", "accel_x", operator.lt, t.accel_x_low),
        MovementRule("Dorsiflexion", "accel_y", operator.gt, t.accel_y_high),
        MovementRule("Palmar Flexion", "accel_y", operator.lt, t.accel_y_low),
        MovementRule("Supination", "accel_z", operator.gt, t.accel_z_high),
        MovementRule("Pronation", "accel_z", operator.lt, t.accel_z_low),
        MovementRule("External Rotation", "gyro_x", operator.gt, t.gyro_x_high),
        MovementRule("Internal Rotation", "gyro_x", operator.lt, t.gyro_x_low),
    ]


def movement_labels(
    values: Mapping[str, Optional[float]],
    thresholds: Optional[MovementThresholds] = None,
) -> List[str]:
    """
    Labels of every rule that fires.

    Args:
        values: Readings keyed by 'flex', 'accel_x', 'accel_y', 'accel_z', 'gyro_x'
        thresholds: Movement thresholds (defaults if omitted)
    """
    return [
        rule.label
        for rule in movement_rules(thresholds)
        if rule.fires(values.get(rule.channel))
    ]


def describe_movement(labels: List[str]) -> str:
    return ", ".join(labels) if labels else NEUTRAL_POSITION


def classify_movement(
    sample: SensorSample,
    thresholds: Optional[MovementThresholds] = None,
    flex_channel: Optional[str] = None,
) -> str:
    """
    Movement description for one sample.

    Args:
        sample: Sample to classify
        thresholds: Movement thresholds
        flex_channel: Flex channel to use (defaults to the sample's first)

    Returns:
        Comma-joined labels, or "Neutral Position" if none fire
    """
    if flex_channel is None:
        flex_channel = sample.flex_channels[0] if sample.flex_channels else "flex"
    values = {
        "flex": sample.get(flex_channel),
        "accel_x": sample.accel_x,
        "accel_y": sample.accel_y,
        "accel_z": sample.accel_z,
        "gyro_x": sample.gyro_x,
    }
    return describe_movement(movement_labels(values, thresholds))


# ---------------------------------------------------------------------
# AVERAGED MOVEMENT SUMMARY
# ---------------------------------------------------------------------

def _pick(value: float, high: Tuple[float, str], low: Tuple[float, str], neither: str = "") -> str:
    if value > high[0]:
        return high[1]
    if value < low[0]:
        return low[1]
    return neither


def summarize_movement(
    means: Mapping[str, float],
    thresholds: Optional[MovementThresholds] = None,
    flex_channel: str = "flex",
) -> MovementSummary:
    """
    One label per axis group from window averages.

    Comparisons are strict on both sides, including flex.
    """
    t = thresholds or MovementThresholds()
    return MovementSummary(
        flex=_pick(means.get(flex_channel, 0), (t.flex_high, "Flexion"), (t.flex_low, "Extension"), "Neutral"),
        lateral=_pick(means.get("accel_x", 0), (t.accel_x_high, "Ulnar Deviation"), (t.accel_x_low, "Radial Deviation")),
        sagittal=_pick(means.get("accel_y", 0), (t.accel_y_high, "Dorsiflexion"), (t.accel_y_low, "Palmar Flexion")),
        forearm=_pick(means.get("accel_z", 0), (t.accel_z_high, "Supination"), (t.accel_z_low, "Pronation")),
        rotation=_pick(means.get("gyro_x", 0), (t.gyro_x_high, "External Rotation"), (t.gyro_x_low, "Internal Rotation")),
    )


# ---------------------------------------------------------------------
# POSTURE BANDS AND CLINICAL FLAGS
# ---------------------------------------------------------------------

def posture_band(flex: float, bands: BandTable = DEFAULT_BANDS) -> PostureBand:
    """Band for a flex reading, first match in ascending order."""
    return bands.match(flex)


def assess(
    flex: Optional[float],
    force: Optional[float],
    bands: BandTable = DEFAULT_BANDS,
    clinical: Optional[ClinicalThresholds] = None,
) -> ClinicalAssessment:
    """
    Posture band plus clinical flags for one finger.

    AROM compares against the neutral band's upper bound and PROM against
    the mid-range band's lower bound, so the two thresholds differ by one.
    Missing flex or force readings count as 0.
    """
    clinical = clinical or ClinicalThresholds()
    flex = 0 if flex is None else flex
    force = 0 if force is None else force

    neutral = bands["neutral"]
    mid = bands["mid_flexion"]

    return ClinicalAssessment(
        band=bands.match(flex),
        flex=flex,
        force=force,
        arom=flex > neutral.upper,
        prom=flex > mid.lower,
        grasp=force > clinical.grasp_force,
        fine_motor=mid.lower <= flex <= mid.upper,
    )
