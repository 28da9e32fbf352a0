"""HTTP transport used by the segment uploader."""

import logging
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
from urllib.error import HTTPError
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)

TUS_VERSION = "1.0.0"


@dataclass
class TransportResponse:
    """Status code, headers and body of an executed request.

    Header lookup through get_header() is case-insensitive.
    """

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def get_header(self, name: str) -> Optional[str]:
        """Return the value of header name, or None if absent."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None

    @property
    def is_success(self) -> bool:
        """Whether the status code is in the 2xx range."""
        return 200 <= self.status < 300


class Transport(ABC):
    """Builds and executes HTTP requests on behalf of an uploader."""

    @abstractmethod
    def build_request(
        self,
        url: str,
        method: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> Request:
        """Build a request carrying the transport's default headers plus headers."""
        pass

    @abstractmethod
    def execute(self, request: Request) -> TransportResponse:
        """Execute request and block until the response is available.

        HTTP error statuses are returned as responses. Connection failures
        raise OSError.
        """
        pass


class UrllibTransport(Transport):
    """Transport based on urllib.request.

    Every request carries "Tus-Resumable: 1.0.0" and the custom headers the
    transport was configured with.

    Example:
        >>> transport = UrllibTransport(headers={"Authorization": "Bearer token"})
        >>> request = transport.build_request(
        ...     "http://localhost:8080/files/abc123", "HEAD"
        ... )
        >>> response = transport.execute(request)
        >>> response.get_header("Upload-Offset")
        '1024'
    """

    def __init__(
        self,
        headers: Optional[dict[str, str]] = None,
        verify_tls_cert: bool = True,
        timeout: Optional[float] = None,
    ):
        """Initialize urllib transport.

        Args:
            headers: Optional custom headers to include in all requests
            verify_tls_cert: Verify TLS certificates (default: True)
            timeout: Socket timeout in seconds for each request (default: none)
        """
        self.headers = dict(headers or {})
        self.verify_tls_cert = verify_tls_cert
        self.timeout = timeout

    def update_headers(self, headers: dict[str, str]) -> None:
        """Update custom headers for all requests.

        Args:
            headers: Dictionary of header names to values
        """
        self.headers.update(headers)

    def get_headers(self) -> dict[str, str]:
        """Get current custom headers.

        Returns:
            Dictionary of current custom headers
        """
        return self.headers.copy()

    def build_request(
        self,
        url: str,
        method: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> Request:
        request_headers = {
            "Tus-Resumable": TUS_VERSION,
            **self.headers,
            **(headers or {}),
        }
        if body is not None:
            request_headers["Content-Length"] = str(len(body))

        return Request(url, data=body, headers=request_headers, method=method)

    def execute(self, request: Request) -> TransportResponse:
        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if not self.verify_tls_cert and request.type == "https":
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            kwargs["context"] = context

        logger.debug(f"{request.get_method()} {request.full_url}")
        try:
            with urlopen(request, **kwargs) as response:
                return TransportResponse(
                    status=response.status,
                    headers=dict(response.headers.items()),
                    body=response.read(),
                )
        except HTTPError as e:
            # An error status is still a complete response for the uploader to judge
            return TransportResponse(
                status=e.code,
                headers=dict(e.headers.items()) if e.headers else {},
                body=e.read(),
            )
