"""TUS segment uploader for fine-grained upload control."""

import logging
from enum import Enum
from threading import Lock
from typing import Callable, Iterator, Optional, Union

from tus_segments.client.stats import UploadStats
from tus_segments.client.target import UploadTarget
from tus_segments.client.transport import Transport, TransportResponse, UrllibTransport
from tus_segments.exceptions import TusProtocolError, UploaderStateError
from tus_segments.source import DataSource

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2 * 1024 * 1024
DEFAULT_PAYLOAD_BUDGET = 10 * 1024 * 1024

OFFSET_CONTENT_TYPE = "application/offset+octet-stream"


class UploaderState(Enum):
    """Whether a segment is currently being read, built or sent."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class SegmentUploader:
    """Uploads a data source to an existing upload resource in PATCH segments.

    Bytes are read from the source in chunks of chunk_size and each chunk is
    sent as one PATCH request. Consecutive chunks form a request window of at
    most payload_budget bytes. When a window is used up, or the upload reaches
    its declared size, the server's Upload-Offset is checked against the local
    offset.

    The offset is advanced before the response is validated. After a
    TusProtocolError the offset holds the attempted, unconfirmed value and the
    caller must ask the server for the real offset before resuming.

    An uploader is not thread-safe and must be driven from one thread at a time.

    Example:
        >>> target = UploadTarget("http://localhost:8080/files/abc123", size=1048576)
        >>> source = StreamSource(file_path="file.bin")
        >>> uploader = SegmentUploader(target, source, offset=0, chunk_size=64 * 1024)
        >>> for sent in uploader.chunks():
        ...     print(f"{uploader.offset}/{target.size}")
        >>> uploader.finish()

        >>> # Pause after the first megabyte and resume later
        >>> uploader.upload(stop_at=1024 * 1024)
        >>> uploader.finish(close_source=False)
    """

    def __init__(
        self,
        target: UploadTarget,
        source: DataSource,
        offset: int = 0,
        transport: Optional[Transport] = None,
        chunk_size: Union[int, float] = DEFAULT_CHUNK_SIZE,
        payload_budget: Union[int, float] = DEFAULT_PAYLOAD_BUDGET,
    ):
        """Initialize segment uploader.

        Args:
            target: Upload resource to send bytes to
            source: Data source to read bytes from
            offset: Offset the server already holds (0 for a new upload)
            transport: HTTP transport (default: UrllibTransport())
            chunk_size: Bytes read and sent per call (default: 2 MiB)
            payload_budget: Bytes per request window (default: 10 MiB)

        Raises:
            ValueError: If offset is negative, or chunk_size or payload_budget < 1
            OSError: If the source cannot be positioned at offset
        """
        if offset < 0:
            raise ValueError(f"offset must not be negative, got {offset}")
        if payload_budget < 1:
            raise ValueError(f"payload_budget must be at least 1 byte, got {payload_budget}")

        self.target = target
        self.source = source
        self.transport = transport or UrllibTransport()
        self._offset = offset
        self._state = UploaderState.IDLE
        self._payload_budget = int(payload_budget)
        self._window_remaining: Optional[int] = None
        self._completion_signaled = False

        self.source.seek(offset)
        self.set_chunk_size(chunk_size)

        self._stats = UploadStats(
            total_bytes=target.size, uploaded_bytes=offset, start_offset=offset
        )
        self.stats_lock = Lock()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - finish on success, only release the source on error."""
        if exc_type is None:
            self.finish(close_source=True)
        else:
            self.source.close()

    @property
    def offset(self) -> int:
        """Number of bytes the server is believed to hold."""
        return self._offset

    @property
    def url(self) -> str:
        """URL of the upload resource."""
        return self.target.url

    @property
    def state(self) -> UploaderState:
        return self._state

    @property
    def chunk_size(self) -> int:
        return len(self._buffer)

    @chunk_size.setter
    def chunk_size(self, size: Union[int, float]) -> None:
        self.set_chunk_size(size)

    @property
    def payload_budget(self) -> int:
        return self._payload_budget

    @payload_budget.setter
    def payload_budget(self, size: Union[int, float]) -> None:
        self.set_payload_budget(size)

    def set_chunk_size(self, size: Union[int, float]) -> None:
        """Replace the read buffer with one of size bytes.

        Must not be called while a segment is in flight.

        Raises:
            ValueError: If size is less than 1
        """
        if size < 1:
            raise ValueError(f"chunk_size must be at least 1 byte, got {size}")
        self._buffer = bytearray(int(size))

    def set_payload_budget(self, size: Union[int, float]) -> None:
        """Set the maximum number of bytes sent in one request window.

        The new budget applies from the next window on.

        Raises:
            UploaderStateError: If a segment is currently in flight
            ValueError: If size is less than 1
        """
        if self._state is UploaderState.IN_FLIGHT:
            raise UploaderStateError(
                "payload budget must not be modified while a segment is in flight"
            )
        if size < 1:
            raise ValueError(f"payload_budget must be at least 1 byte, got {size}")
        self._payload_budget = int(size)

    def upload_chunk(self) -> Optional[int]:
        """Read one chunk from the source and send it as a PATCH request.

        Returns:
            Number of bytes sent, or None if the source has no more data

        Raises:
            TusProtocolError: If the server rejects the segment or reports an
                unexpected offset
            OSError: If reading the source or talking to the server fails
        """
        self._state = UploaderState.IN_FLIGHT
        try:
            return self._upload_segment()
        except Exception:
            # The next call starts a fresh window
            self._window_remaining = None
            raise
        finally:
            self._state = UploaderState.IDLE

    def _upload_segment(self) -> Optional[int]:
        window_remaining = self._window_remaining
        if window_remaining is None:
            window_remaining = self._payload_budget

        # A failed call may have left the cursor past the offset
        self.source.seek(self._offset)
        bytes_to_read = min(self.chunk_size, window_remaining)
        bytes_read = self.source.readinto(self._buffer, bytes_to_read)
        if bytes_read == 0:
            return None
        self._window_remaining = window_remaining

        headers = {
            "Upload-Offset": str(self._offset),
            "Content-Type": OFFSET_CONTENT_TYPE,
            "Expect": "100-continue",
        }
        request = self.transport.build_request(
            self.url,
            "PATCH",
            headers=headers,
            body=bytes(memoryview(self._buffer)[:bytes_read]),
        )
        response = self.transport.execute(request)

        logger.debug(
            f"PATCH {self.url} at offset {self._offset}: sent {bytes_read} bytes, "
            f"status {response.status}"
        )

        self._offset += bytes_read
        self._window_remaining -= bytes_read
        with self.stats_lock:
            self._stats.uploaded_bytes = self._offset
            self._stats.segments_sent += 1

        if self._window_remaining <= 0 or self._offset >= self.target.size:
            self._window_remaining = None
            self._validate_window(response)
        elif not response.is_success:
            raise self._status_error(response)

        return bytes_read

    def _validate_window(self, response: TransportResponse) -> None:
        """Check that the server confirms every byte sent so far."""
        if not response.is_success:
            raise self._status_error(response)

        server_offset = self._parse_offset(response.get_header("Upload-Offset"))
        if server_offset is None:
            logger.error(f"Invalid Upload-Offset header from {self.url}")
            raise TusProtocolError(
                "response to PATCH request contains no or invalid Upload-Offset header",
                status_code=response.status,
                response_content=response.body,
                expected_offset=self._offset,
            )

        if server_offset != self._offset:
            logger.error(
                f"Upload-Offset mismatch for {self.url}: "
                f"server reported {server_offset}, expected {self._offset}"
            )
            raise TusProtocolError(
                f"response contains different Upload-Offset value ({server_offset}) "
                f"than expected ({self._offset})",
                status_code=response.status,
                response_content=response.body,
                server_offset=server_offset,
                expected_offset=self._offset,
            )

        with self.stats_lock:
            self._stats.windows_validated += 1
        logger.info(f"Server confirmed offset {server_offset}/{self.target.size} for {self.url}")

    def _status_error(self, response: TransportResponse) -> TusProtocolError:
        logger.error(f"Unexpected status {response.status} from {self.url}")
        return TusProtocolError(
            f"unexpected status code ({response.status}) while uploading chunk",
            status_code=response.status,
            response_content=response.body,
            expected_offset=self._offset,
        )

    @staticmethod
    def _parse_offset(value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            return None
        return int(value)

    def chunks(self) -> Iterator[int]:
        """Upload chunk after chunk, yielding the bytes sent by each.

        Stops once the source is exhausted. Errors propagate to the caller;
        breaking out of the loop pauses the upload.
        """
        while True:
            bytes_sent = self.upload_chunk()
            if bytes_sent is None:
                return
            yield bytes_sent

    def upload(
        self,
        progress_callback: Optional[Callable[[UploadStats], None]] = None,
        stop_at: Optional[int] = None,
    ) -> str:
        """Upload the remaining data, or until the offset reaches stop_at.

        Args:
            progress_callback: Optional callback function that receives UploadStats
            stop_at: Pause once the offset reaches or passes this byte offset

        Returns:
            Upload URL

        Raises:
            TusProtocolError: If the server rejects a segment
        """
        while stop_at is None or self._offset < stop_at:
            if self.upload_chunk() is None:
                break

            if progress_callback:
                progress_callback(self.stats)

        return self.url

    def finish(self, close_source: bool = True) -> None:
        """End the upload session.

        Signals completion to the upload target if every byte has been
        transferred, then optionally closes the source. Calling finish before
        the source is exhausted pauses the upload. Calling it again never
        signals completion a second time.

        Args:
            close_source: Close the data source after the completion check
        """
        if self._offset == self.target.size:
            if not self._completion_signaled:
                self._completion_signaled = True
                logger.info(f"Upload to {self.url} finished ({self._offset} bytes)")
                self.target.notify_finished()
        else:
            logger.warning(
                f"Upload to {self.url} paused at offset {self._offset}/{self.target.size}"
            )

        # The source is only closed once the upload result has been evaluated
        if close_source:
            self.source.close()

    @property
    def stats(self) -> UploadStats:
        """Get upload statistics.

        Returns:
            UploadStats object with current upload statistics (read-only copy)
        """
        with self.stats_lock:
            return UploadStats(
                total_bytes=self._stats.total_bytes,
                uploaded_bytes=self._stats.uploaded_bytes,
                segments_sent=self._stats.segments_sent,
                windows_validated=self._stats.windows_validated,
                start_time=self._stats.start_time,
                start_offset=self._stats.start_offset,
            )

    @property
    def is_complete(self) -> bool:
        """Check if every byte of the upload has been sent."""
        return self._offset >= self.target.size
