"""
Tracking component - Per-element view tracking.
"""

from ._impl import ViewTracker
from .component import is_tracking_eligible, resolve_tracking_config
from .models import PRESETS, ContentKind, TrackingConfig, TrackingPreset

__all__ = [
    "ViewTracker",
    "is_tracking_eligible",
    "resolve_tracking_config",
    "ContentKind",
    "TrackingConfig",
    "TrackingPreset",
    "PRESETS",
]
