"""
Seekable data sources for segment uploads.

A data source hands out the bytes of a local file or stream starting at an
arbitrary offset, so an interrupted upload can continue from the offset the
server has acknowledged.
"""

import io
import os
from abc import ABC, abstractmethod
from typing import IO, Optional


class DataSource(ABC):
    """Abstract interface for seekable upload sources."""

    @abstractmethod
    def seek(self, offset: int) -> None:
        """
        Position the source so the next read starts at offset.

        Args:
            offset: Absolute byte position

        Raises:
            OSError: If the source cannot be positioned
        """
        pass

    @abstractmethod
    def readinto(self, buffer: bytearray, max_len: int) -> int:
        """
        Read up to max_len bytes into the start of buffer.

        Args:
            buffer: Destination buffer, at least max_len bytes long
            max_len: Maximum number of bytes to read

        Returns:
            Number of bytes read, 0 once the end of data is reached
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Release the source. Calling close more than once has no further effect.
        """
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether close() has been called."""
        pass


class StreamSource(DataSource):
    """
    Data source backed by a binary file object or a file path.

    When created from a path the file is opened here and always closed by
    close(). A caller-provided stream is closed only if close_stream is True.

    Example:
        >>> with open("large_file.bin", "rb") as f:
        ...     source = StreamSource(file_stream=f, close_stream=False)
        >>> source = StreamSource(file_path="large_file.bin")
        >>> source.size
        1048576
    """

    def __init__(
        self,
        file_path: Optional[str] = None,
        file_stream: Optional[IO[bytes]] = None,
        close_stream: bool = True,
    ):
        """Initialize stream source.

        Args:
            file_path: Path to file to upload (required if file_stream not provided)
            file_stream: Binary file stream to upload (alternative to file_path)
            close_stream: Close a caller-provided stream on close() (default: True)

        Raises:
            ValueError: If neither file_path nor file_stream provided
            FileNotFoundError: If file doesn't exist
        """
        if not file_path and not file_stream:
            raise ValueError("Either file_path or file_stream must be provided")

        if file_stream is not None:
            self._stream = file_stream
            self._owns_stream = close_stream
        else:
            if not os.path.exists(file_path):
                raise FileNotFoundError(f"File not found: {file_path}")
            self._stream = open(file_path, "rb")  # noqa: SIM115
            self._owns_stream = True

        self.file_path = file_path
        self._closed = False

    @classmethod
    def from_bytes(cls, data: bytes) -> "StreamSource":
        """Create a source over an in-memory byte string."""
        return cls(file_stream=io.BytesIO(data))

    @property
    def size(self) -> int:
        """Total size of the underlying stream in bytes."""
        if self.file_path:
            return os.path.getsize(self.file_path)

        current_pos = self._stream.tell()
        self._stream.seek(0, os.SEEK_END)
        size = self._stream.tell()
        self._stream.seek(current_pos)
        return size

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise OSError(f"Cannot seek to negative offset {offset}")
        self._stream.seek(offset)

    def readinto(self, buffer: bytearray, max_len: int) -> int:
        if max_len <= 0:
            return 0
        view = memoryview(buffer)[:max_len]
        try:
            bytes_read = self._stream.readinto(view)
        finally:
            view.release()
        # Non-blocking streams report "no data yet" as None
        return bytes_read or 0

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    @property
    def closed(self) -> bool:
        return self._closed
