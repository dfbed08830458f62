from __future__ import annotations

from .base import BaseShapeStrategy, NormalizedRecord, VideoVariant, pick_best_variant
from .cdn_scan import CdnScanStrategy
from .dispatcher import ShapeExtractor, default_strategies
from .included_media import IncludedMediaStrategy
from .legacy_timeline import LegacyTimelineStrategy

__all__ = [
    "BaseShapeStrategy",
    "CdnScanStrategy",
    "IncludedMediaStrategy",
    "LegacyTimelineStrategy",
    "NormalizedRecord",
    "ShapeExtractor",
    "VideoVariant",
    "default_strategies",
    "pick_best_variant",
]
