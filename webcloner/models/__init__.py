"""Clone data models package."""

from .capture import (
    ResourceRole,
    ResponseOutcome,
    PersistStatus,
    CaptureStatus,
    ASSET_ROLES,
    API_ROLES,
    CookieInput,
    CapturedResponse,
    AssetRecord,
    PersistOutcome,
    ApiLogEntry,
    WebSocketFrameEntry,
    HintResource,
    HintRequest,
    NetworkHints,
    PageSnapshot,
    CloneRequest,
    CloneResult,
)

from .classification import (
    UrlType,
    Classification,
)

from .events import (
    ProgressSnapshot,
    CookiesAppliedEvent,
    ApiCapturedEvent,
    SkippedResourceEvent,
    SavedResourceEvent,
)

__all__ = [
    # Capture models
    'ResourceRole',
    'ResponseOutcome',
    'PersistStatus',
    'CaptureStatus',
    'ASSET_ROLES',
    'API_ROLES',
    'CookieInput',
    'CapturedResponse',
    'AssetRecord',
    'PersistOutcome',
    'ApiLogEntry',
    'WebSocketFrameEntry',
    'HintResource',
    'HintRequest',
    'NetworkHints',
    'PageSnapshot',
    'CloneRequest',
    'CloneResult',

    # Classification models
    'UrlType',
    'Classification',

    # Progress events
    'ProgressSnapshot',
    'CookiesAppliedEvent',
    'ApiCapturedEvent',
    'SkippedResourceEvent',
    'SavedResourceEvent',
]
