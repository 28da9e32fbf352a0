"""Upload target descriptor."""

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class UploadTarget:
    """An upload resource that already exists on the server.

    Attributes:
        url: URL of the upload resource that receives PATCH requests
        size: Total number of bytes the upload will hold
        on_finished: Optional callback invoked with the target once all bytes
            have been transferred
    """

    url: str
    size: int
    on_finished: Optional[Callable[["UploadTarget"], None]] = None

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"size must not be negative, got {self.size}")

    def notify_finished(self) -> None:
        """Signal that the upload has been transferred completely."""
        if self.on_finished:
            self.on_finished(self)
