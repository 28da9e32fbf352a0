"""Upload statistics tracking for the segment uploader."""

import time
from dataclasses import dataclass


@dataclass
class UploadStats:
    """Statistics for upload progress.

    Attributes:
        total_bytes: Total number of bytes to upload
        uploaded_bytes: Current upload offset, including bytes sent in earlier sessions
        segments_sent: Number of PATCH requests sent in this session
        windows_validated: Number of request windows confirmed by the server
        start_time: Timestamp when the session started
        start_offset: Offset the session resumed from
    """

    total_bytes: int
    uploaded_bytes: int = 0
    segments_sent: int = 0
    windows_validated: int = 0
    start_time: float = 0.0
    start_offset: int = 0

    def __post_init__(self):
        if self.start_time == 0.0:
            self.start_time = time.time()

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def session_bytes(self) -> int:
        """Get bytes sent in this session."""
        return self.uploaded_bytes - self.start_offset

    @property
    def upload_speed(self) -> float:
        """Get upload speed of this session in bytes/second."""
        if self.elapsed_time > 0:
            return self.session_bytes / self.elapsed_time
        return 0.0

    @property
    def upload_speed_mbps(self) -> float:
        """Get upload speed in MB/second."""
        return self.upload_speed / (1024 * 1024)

    @property
    def progress_percent(self) -> float:
        """Get progress as percentage (0-100)."""
        if self.total_bytes > 0:
            return (self.uploaded_bytes / self.total_bytes) * 100
        return 0.0

    @property
    def eta_seconds(self) -> float:
        """Get estimated time to completion in seconds."""
        if self.upload_speed > 0:
            remaining_bytes = self.total_bytes - self.uploaded_bytes
            return remaining_bytes / self.upload_speed
        return 0.0
