"""Asset and log persistence package."""

from .asset_store import (
    AssetStore,
    derive_relative_path,
    REASON_URL_EXISTS,
    REASON_FILE_EXISTS,
)
from .log_writer import (
    CaptureLogWriter,
    api_log_filename,
    API_LOG_FILENAME,
    WS_LOG_FILENAME,
)

__all__ = [
    'AssetStore',
    'derive_relative_path',
    'REASON_URL_EXISTS',
    'REASON_FILE_EXISTS',
    'CaptureLogWriter',
    'api_log_filename',
    'API_LOG_FILENAME',
    'WS_LOG_FILENAME',
]
