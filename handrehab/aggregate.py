"""
Rolling averages over the sample window.
"""

from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from .data.models import SensorSample


def mean(samples: Iterable[SensorSample], channel: str) -> float:
    """
    Arithmetic mean of one channel, rounded to two decimals.

    Missing values are excluded rather than counted as zero. Returns 0 when
    no sample carries a value for the channel.
    """
    values = [s.get(channel) for s in samples]
    values = [v for v in values if v is not None]
    if not values:
        return 0
    return round(float(np.mean(values)), 2)


def averages(
    samples: Sequence[SensorSample],
    channels: Optional[Iterable[str]] = None,
) -> Dict[str, float]:
    """
    Per-channel means over the window.

    Args:
        samples: Window contents
        channels: Channels to average (defaults to the newest sample's channels)

    Returns:
        Dict mapping channel name to mean
    """
    if channels is None:
        channels = samples[-1].channels if samples else ()
    return {channel: mean(samples, channel) for channel in channels}
