"""Data models, payload normalization and feed sources."""

from .models import (
    ControllerState,
    SensorSample,
    ClinicalAssessment,
    MovementSummary,
)
from .payload import normalize_payload
from .source import FeedSource, MockFeedSource, SampleBuffer, Subscription

__all__ = [
    "ControllerState",
    "SensorSample",
    "ClinicalAssessment",
    "MovementSummary",
    "normalize_payload",
    "FeedSource",
    "MockFeedSource",
    "SampleBuffer",
    "Subscription",
]
