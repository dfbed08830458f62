from __future__ import annotations

import logging
from typing import Any, Sequence

from .base import BaseShapeStrategy, NormalizedRecord
from .cdn_scan import CdnScanStrategy
from .included_media import IncludedMediaStrategy
from .legacy_timeline import LegacyTimelineStrategy

logger = logging.getLogger(__name__)


def default_strategies(*, enable_cdn_scan: bool = True) -> list[BaseShapeStrategy]:
    strategies: list[BaseShapeStrategy] = [LegacyTimelineStrategy(), IncludedMediaStrategy()]
    if enable_cdn_scan:
        strategies.append(CdnScanStrategy())
    return strategies


class ShapeExtractor:
    """Run shape strategies in order and keep the first non-empty result."""

    def __init__(self, strategies: Sequence[BaseShapeStrategy] | None = None) -> None:
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def extract(self, raw: Any) -> list[NormalizedRecord]:
        for strategy in self.strategies:
            records = [record for record in strategy.extract(raw) if record.media_url]
            if records:
                logger.info("[XMEDIA] shape=%s records=%d", strategy.name, len(records))
                return records
        logger.info("[XMEDIA] shape=none records=0")
        return []
