from __future__ import annotations

import json
import re
from typing import Any

from .base import BaseShapeStrategy, NormalizedRecord

CDN_VIDEO_URL_RE = re.compile(r"https?://video\.twimg\.com/ext_tw_video/[^\s\"']+")


class CdnScanStrategy(BaseShapeStrategy):
    """Last resort: scan the serialized payload for video CDN URLs.

    Used when the structured shapes no longer match. Each distinct URL is
    emitted once, in first-seen order.
    """

    name = "cdn_scan"

    def __init__(self, pattern: re.Pattern[str] = CDN_VIDEO_URL_RE) -> None:
        self.pattern = pattern

    def extract(self, raw: Any) -> list[NormalizedRecord]:
        try:
            text = json.dumps(raw, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return []
        urls = dict.fromkeys(self.pattern.findall(text))
        return [
            NormalizedRecord(id=url, text="", timestamp="", thumbnail_url="", media_url=url)
            for url in urls
        ]
