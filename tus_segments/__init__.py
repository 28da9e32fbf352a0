"""TUS Segments

Client-side segment upload engine for the TUS resumable upload protocol.
Sends a local file or stream to an existing upload resource in bounded PATCH
requests and verifies the server-reported offset.
"""

__version__ = "0.1.0"

from tus_segments.client import (
    SegmentUploader,
    Transport,
    TransportResponse,
    UploaderState,
    UploadStats,
    UploadTarget,
    UrllibTransport,
)
from tus_segments.exceptions import TusCommunicationError, TusProtocolError, UploaderStateError
from tus_segments.source import DataSource, StreamSource

__all__ = [
    "SegmentUploader",
    "UploaderState",
    "UploadTarget",
    "UploadStats",
    "Transport",
    "TransportResponse",
    "UrllibTransport",
    "DataSource",
    "StreamSource",
    "TusCommunicationError",
    "TusProtocolError",
    "UploaderStateError",
]
