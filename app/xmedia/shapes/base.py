from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable

VIDEO_MEDIA_TYPES = frozenset({"video", "animated_gif"})


@dataclass(frozen=True)
class NormalizedRecord:
    id: str
    text: str
    timestamp: str
    thumbnail_url: str
    media_url: str

    def to_dict(self) -> dict[str, str]:
        """Serialize using the public keys of the snapshot file."""
        return {
            "id": self.id,
            "text": self.text,
            "date": self.timestamp,
            "thumbnail": self.thumbnail_url,
            "video_url": self.media_url,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> NormalizedRecord | None:
        if not isinstance(payload, dict):
            return None
        media_url = _as_text(payload.get("video_url"))
        if not media_url:
            return None
        return cls(
            id=_as_text(payload.get("id")),
            text=_as_text(payload.get("text")),
            timestamp=_as_text(payload.get("date")),
            thumbnail_url=_as_text(payload.get("thumbnail")),
            media_url=media_url,
        )


@dataclass(frozen=True)
class VideoVariant:
    content_type: str
    bitrate: int
    url: str


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _safe_bitrate(value: Any) -> int:
    try:
        bitrate = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, bitrate)


def parse_variants(raw_variants: Any) -> list[VideoVariant]:
    """Coerce a loosely-typed upstream variant list into `VideoVariant` rows.

    Entries that are not mappings are skipped. The variant URL falls back to
    ``uri`` for payloads that use that spelling.
    """
    if not isinstance(raw_variants, list):
        return []
    variants: list[VideoVariant] = []
    for raw in raw_variants:
        if not isinstance(raw, dict):
            continue
        variants.append(
            VideoVariant(
                content_type=_as_text(raw.get("content_type")),
                bitrate=_safe_bitrate(raw.get("bitrate")),
                url=_as_text(raw.get("url") or raw.get("uri")),
            )
        )
    return variants


def pick_best_variant(variants: Iterable[VideoVariant], accepts) -> VideoVariant | None:
    """Return the highest-bitrate variant whose content type `accepts` allows.

    Ties keep the first variant encountered.
    """
    best: VideoVariant | None = None
    for variant in variants:
        if not accepts(variant.content_type):
            continue
        if best is None or variant.bitrate > best.bitrate:
            best = variant
    return best


class BaseShapeStrategy(ABC):
    name = "base"

    @abstractmethod
    def extract(self, raw: Any) -> list[NormalizedRecord]:
        """Extract normalized records from one known response shape."""
        raise NotImplementedError
