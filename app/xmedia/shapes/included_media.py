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


def _media_entries(media: Any) -> list[tuple[str, dict[str, Any]]]:
    """Pair each media object with its key; a repeated key keeps the last entry."""
    if isinstance(media, dict):
        return [(str(key), value) for key, value in media.items() if isinstance(value, dict)]
    if not isinstance(media, list):
        return []
    # Entries without a key are kept apart by list position.
    mapped: dict[Any, tuple[str, dict[str, Any]]] = {}
    for idx, entry in enumerate(media):
        if not isinstance(entry, dict):
            continue
        key = _as_text(entry.get("media_key") or entry.get("id"))
        mapped[key or idx] = (key, entry)
    return list(mapped.values())


class IncludedMediaStrategy(BaseShapeStrategy):
    """v2-style payloads where media objects live under ``includes.media``.

    These carry no tweet context, so text and timestamp are left empty.
    """

    name = "included_media"

    def _accepts(self, content_type: str) -> bool:
        return "video" in content_type

    def extract(self, raw: Any) -> list[NormalizedRecord]:
        if not isinstance(raw, dict):
            return []
        includes = raw.get("includes")
        if not isinstance(includes, dict):
            return []

        records: list[NormalizedRecord] = []
        for media_key, media in _media_entries(includes.get("media")):
            if media.get("type") not in VIDEO_MEDIA_TYPES or not media.get("variants"):
                continue
            best = pick_best_variant(parse_variants(media.get("variants")), self._accepts)
            if best is None or not best.url:
                continue
            records.append(
                NormalizedRecord(
                    id=media_key,
                    text="",
                    timestamp="",
                    thumbnail_url=_as_text(media.get("url") or media.get("preview_image_url")),
                    media_url=best.url,
                )
            )
        return records
