"""Live hand rehabilitation glove monitoring."""

from .config import DashboardConfig, FeedSettings, GloveLayout
from .controller import DashboardController

__version__ = "0.1.0"

__all__ = [
    "DashboardConfig",
    "DashboardController",
    "FeedSettings",
    "GloveLayout",
]
