"""
Tracking component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.components.dwell import DEFAULT_IMAGE_DWELL_SECONDS, DEFAULT_MEDIA_DWELL_SECONDS
from src.components.signals import DEFAULT_ROOT_MARGIN, DEFAULT_THRESHOLD_RATIO, SourceKind


class ContentKind(str, Enum):
    IMAGE = "image"
    MEDIA = "media"


@dataclass(frozen=True)
class TrackingConfig:
    """Recognized tracking options for one tracker."""

    min_dwell_seconds: float
    visibility_threshold_ratio: float = DEFAULT_THRESHOLD_RATIO
    root_margin: str = DEFAULT_ROOT_MARGIN
    auto_track: bool = True
    require_entitlement: bool = True


@dataclass(frozen=True)
class TrackingPreset:
    """Defaults per content kind."""

    kind: ContentKind
    source_kinds: tuple[SourceKind, ...]
    min_dwell_seconds: float
    entitlement_applies: bool


PRESETS: dict[ContentKind, TrackingPreset] = {
    ContentKind.IMAGE: TrackingPreset(
        kind=ContentKind.IMAGE,
        source_kinds=(SourceKind.VISIBILITY, SourceKind.HOVER, SourceKind.INTERACTION),
        min_dwell_seconds=DEFAULT_IMAGE_DWELL_SECONDS,
        entitlement_applies=True,
    ),
    ContentKind.MEDIA: TrackingPreset(
        kind=ContentKind.MEDIA,
        source_kinds=(SourceKind.MEDIA,),
        min_dwell_seconds=DEFAULT_MEDIA_DWELL_SECONDS,
        entitlement_applies=False,
    ),
}
