from __future__ import annotations

from typing import Any

from .base import (
    VIDEO_MEDIA_TYPES,
    BaseShapeStrategy,
    NormalizedRecord,
    _as_text,
    parse_variants,
    pick_best_variant,
)

ACCEPTED_CONTENT_TYPE = "video/mp4"


class LegacyTimelineStrategy(BaseShapeStrategy):
    """Tweets keyed by id under ``globalObjects.tweets`` (v1.1-era timeline payloads)."""

    name = "legacy_timeline"

    def __init__(self, accepted_content_type: str = ACCEPTED_CONTENT_TYPE) -> None:
        self.accepted_content_type = accepted_content_type

    def _accepts(self, content_type: str) -> bool:
        return content_type == self.accepted_content_type

    def extract(self, raw: Any) -> list[NormalizedRecord]:
        if not isinstance(raw, dict):
            return []
        global_objects = raw.get("globalObjects")
        if not isinstance(global_objects, dict):
            return []
        tweets = global_objects.get("tweets")
        if not isinstance(tweets, dict):
            return []

        records: list[NormalizedRecord] = []
        for tweet in tweets.values():
            if not isinstance(tweet, dict):
                continue
            extended = tweet.get("extended_entities") or {}
            media_items = extended.get("media") if isinstance(extended, dict) else None
            if not isinstance(media_items, list):
                continue
            for media in media_items:
                record = self._record_for_media(tweet, media)
                if record is not None:
                    records.append(record)
        return records

    def _record_for_media(self, tweet: dict[str, Any], media: Any) -> NormalizedRecord | None:
        if not isinstance(media, dict) or media.get("type") not in VIDEO_MEDIA_TYPES:
            return None
        video_info = media.get("video_info") or {}
        raw_variants = video_info.get("variants") if isinstance(video_info, dict) else None
        best = pick_best_variant(parse_variants(raw_variants), self._accepts)
        if best is None or not best.url:
            return None
        return NormalizedRecord(
            id=_as_text(tweet.get("id_str") or tweet.get("id")),
            text=_as_text(tweet.get("full_text") or tweet.get("text")),
            timestamp=_as_text(tweet.get("created_at")),
            thumbnail_url=_as_text(media.get("media_url_https") or media.get("media_url")),
            media_url=best.url,
        )
