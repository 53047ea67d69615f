"""
Tracking component - Configuration and eligibility.

Functional core for the ViewTracker: resolves per-kind configuration from
rules and decides whether a mount should attach anything at all.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any
from uuid import UUID

from src.rules.models import TrackingRules

from .models import PRESETS, ContentKind, TrackingConfig


def resolve_tracking_config(
    kind: ContentKind | str,
    rules: TrackingRules | None = None,
    **overrides: Any,
) -> TrackingConfig:
    """
    Build the tracking config for a content kind.

    Precedence: explicit overrides, then rules, then the kind's preset.

    Raises:
        ValueError: Unknown kind or override name
    """
    content_kind = ContentKind(kind)
    preset = PRESETS[content_kind]

    if rules is None:
        config = TrackingConfig(min_dwell_seconds=preset.min_dwell_seconds)
    else:
        dwell = (
            rules.dwell.image_seconds
            if content_kind == ContentKind.IMAGE
            else rules.dwell.media_seconds
        )
        config = TrackingConfig(
            min_dwell_seconds=dwell,
            visibility_threshold_ratio=rules.visibility.threshold_ratio,
            root_margin=rules.visibility.root_margin,
            auto_track=rules.auto_track,
            require_entitlement=rules.require_entitlement,
        )

    unknown = set(overrides) - set(TrackingConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown tracking option(s): {', '.join(sorted(unknown))}")
    return replace(config, **overrides) if overrides else config


def is_tracking_eligible(
    config: TrackingConfig,
    kind: ContentKind,
    *,
    viewer_id: UUID | None,
    content_id: UUID | None,
    is_entitled: bool,
    already_recorded: bool,
) -> bool:
    """
    Whether a tracker should attach observers.

    Tracking needs auto-track on, a signed-in viewer, a content id, no prior
    recording, and (for kinds gated on entitlement) accessible content.
    """
    if not config.auto_track or viewer_id is None or content_id is None:
        return False
    if already_recorded:
        return False
    if config.require_entitlement and PRESETS[kind].entitlement_applies and not is_entitled:
        return False
    return True
