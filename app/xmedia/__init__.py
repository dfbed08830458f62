from app.xmedia.cache import CacheSnapshot, CacheStore, PersistResult
from app.xmedia.client import FetchQuery, XMediaClient
from app.xmedia.errors import (
    ConfigurationIncomplete,
    DecodeFailure,
    ExtractionEmpty,
    PersistFailure,
    UpstreamUnavailable,
    XMediaError,
)
from app.xmedia.service import RefreshController
from app.xmedia.shapes import NormalizedRecord, ShapeExtractor, default_strategies

__all__ = [
    "CacheSnapshot",
    "CacheStore",
    "ConfigurationIncomplete",
    "DecodeFailure",
    "ExtractionEmpty",
    "FetchQuery",
    "NormalizedRecord",
    "PersistFailure",
    "PersistResult",
    "RefreshController",
    "ShapeExtractor",
    "UpstreamUnavailable",
    "XMediaClient",
    "XMediaError",
    "default_strategies",
]
