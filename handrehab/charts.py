"""
Plotly figures for the rehabilitation dashboard.

Figures are built from the controller's window DataFrame so they can be
rendered by streamlit or inspected in tests.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
import plotly.graph_objects as go

from .config import DEFAULT_BANDS, FINGERS, BandTable, Finger


@dataclass(frozen=True)
class ChannelLine:
    key: str
    name: str
    color: str


SINGLE_FLEX_LINES = (
    ChannelLine("flex", "Raw Value", "#FF5733"),
    ChannelLine("voltage", "Voltage", "#33FF57"),
)
FINGER_LINES = tuple(ChannelLine(f.channel, f.name, f.color) for f in FINGERS)
FORCE_LINES = (ChannelLine("force", "Force (N)", "#F39C12"),)
ACCEL_LINES = (
    ChannelLine("accel_x", "Accel X", "#3383FF"),
    ChannelLine("accel_y", "Accel Y", "#FF3383"),
    ChannelLine("accel_z", "Accel Z", "#33FFF3"),
)
GYRO_LINES = (
    ChannelLine("gyro_x", "Gyro X", "#F39C12"),
    ChannelLine("gyro_y", "Gyro Y", "#8E44AD"),
    ChannelLine("gyro_z", "Gyro Z", "#27AE60"),
)

FLEX_RANGE = (0, 350)
FORCE_RANGE = (0, 10)
ACCEL_RANGE = (-10, 10)


def finger_line(finger: Finger, name: str = "Flexion Value") -> ChannelLine:
    return ChannelLine(finger.channel, name, finger.color)


def build_line_chart(
    frame: pd.DataFrame,
    title: str,
    lines: Sequence[ChannelLine],
    y_range: Optional[Tuple[float, float]] = None,
    height: int = 300,
) -> go.Figure:
    """
    Time-series chart of one or more channels.

    Args:
        frame: Window DataFrame with a 'time' column
        title: Chart title
        lines: Channels to plot
        y_range: Fixed y-axis range (auto if None)
        height: Figure height in pixels

    Returns:
        Plotly figure; gaps from missing readings are bridged
    """
    fig = go.Figure()

    for line in lines:
        if line.key not in frame.columns:
            continue
        fig.add_trace(go.Scatter(
            x=frame["time"],
            y=frame[line.key],
            mode="lines",
            name=line.name,
            line=dict(color=line.color, width=2),
            connectgaps=True,
            hovertemplate=f"{line.name}: %{{y}}<extra></extra>",
        ))

    fig.update_layout(
        title=title,
        height=height,
        margin=dict(l=40, r=20, t=50, b=40),
        plot_bgcolor="white",
        paper_bgcolor="white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        hovermode="x unified",
    )
    fig.update_xaxes(showgrid=False, tickfont=dict(size=10))
    fig.update_yaxes(showgrid=True, gridcolor="rgba(200, 200, 200, 0.3)")
    if y_range is not None:
        fig.update_yaxes(range=list(y_range))

    return fig


def build_flexion_chart(
    frame: pd.DataFrame,
    finger: Finger,
    bands: BandTable = DEFAULT_BANDS,
    y_range: Tuple[float, float] = FLEX_RANGE,
) -> go.Figure:
    """Single-finger flexion chart with the posture bands shaded behind it."""
    fig = build_line_chart(frame, f"{finger.name} Finger Flexion", [finger_line(finger)], y_range)

    for band in bands:
        y0 = band.lower if band.lower is not None else y_range[0]
        y1 = band.upper if band.upper is not None else y_range[1]
        fig.add_hrect(
            y0=y0,
            y1=y1,
            fillcolor=band.color,
            opacity=0.08,
            line_width=0,
            annotation_text=band.label,
            annotation_position="top left",
        )

    return fig


def average_labels(
    averages: Dict[str, float],
    lines: Sequence[ChannelLine],
) -> List[Tuple[str, float, str]]:
    """(name, average, color) for each plotted channel, in line order."""
    return [(line.name, averages.get(line.key, 0), line.color) for line in lines]
