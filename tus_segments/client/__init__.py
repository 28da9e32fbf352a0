"""TUS segment upload client components."""

from tus_segments.client.stats import UploadStats
from tus_segments.client.target import UploadTarget
from tus_segments.client.transport import Transport, TransportResponse, UrllibTransport
from tus_segments.client.uploader import SegmentUploader, UploaderState

__all__ = [
    "SegmentUploader",
    "UploaderState",
    "UploadStats",
    "UploadTarget",
    "Transport",
    "TransportResponse",
    "UrllibTransport",
]
