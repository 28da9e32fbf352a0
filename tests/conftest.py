"""Shared fixtures: an in-process TUS PATCH endpoint and a scripted transport."""

import logging
import uuid
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Lock, Thread
from typing import Any, Optional

import pytest

from tus_segments.client.transport import TransportResponse, UrllibTransport

logger = logging.getLogger(__name__)

TUS_VERSION = "1.0.0"


class UploadEndpoint:
    """In-memory TUS endpoint that accepts HEAD and PATCH for known uploads.

    offset_skew is added to the Upload-Offset reported after each PATCH so
    tests can provoke offset mismatches.
    """

    def __init__(self, base_path: str = "/files"):
        self.base_path = base_path
        self.uploads: dict[str, dict[str, Any]] = {}
        self.requests: list[dict[str, Any]] = []
        self.offset_skew = 0
        self.fail_status: Optional[int] = None
        self.lock = Lock()

    def create(self, upload_length: int) -> str:
        upload_id = str(uuid.uuid4())
        with self.lock:
            self.uploads[upload_id] = {
                "upload_length": upload_length,
                "offset": 0,
                "data": bytearray(),
            }
        return upload_id

    def handle_request(
        self, method: str, path: str, headers: dict[str, str], body: bytes
    ) -> tuple[int, dict[str, str]]:
        headers = {k.lower(): v for k, v in headers.items()}
        self.requests.append({"method": method, "path": path, "headers": headers, "body": body})

        if headers.get("tus-resumable") != TUS_VERSION:
            return 412, {"Tus-Resumable": TUS_VERSION}

        upload_id = path[len(self.base_path) + 1 :]
        with self.lock:
            upload = self.uploads.get(upload_id)
            if not upload:
                return 404, {}

            if method == "HEAD":
                return 200, {
                    "Tus-Resumable": TUS_VERSION,
                    "Upload-Offset": str(upload["offset"]),
                    "Upload-Length": str(upload["upload_length"]),
                }

            if self.fail_status is not None:
                return self.fail_status, {"Tus-Resumable": TUS_VERSION}

            if headers.get("content-type") != "application/offset+octet-stream":
                return 400, {}

            upload_offset = int(headers.get("upload-offset", "-1"))
            if upload_offset != upload["offset"]:
                logger.error(
                    f"Upload-Offset mismatch: expected {upload['offset']}, got {upload_offset}"
                )
                return 409, {}

            if upload_offset + len(body) > upload["upload_length"]:
                return 413, {}

            upload["data"].extend(body)
            upload["offset"] = upload_offset + len(body)

            return 204, {
                "Tus-Resumable": TUS_VERSION,
                "Upload-Offset": str(upload["offset"] + self.offset_skew),
            }


class UploadEndpointHandler(BaseHTTPRequestHandler):
    endpoint: UploadEndpoint = None

    def do_HEAD(self) -> None:
        self._handle_request("HEAD")

    def do_PATCH(self) -> None:
        self._handle_request("PATCH")

    def _handle_request(self, method: str) -> None:
        body = b""
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length > 0:
            body = self.rfile.read(content_length)

        status, response_headers = self.endpoint.handle_request(
            method, self.path, dict(self.headers), body
        )

        self.send_response(status)
        for key, value in response_headers.items():
            self.send_header(key, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format: str, *args: Any) -> None:
        """Suppress default logging."""
        pass


@pytest.fixture
def endpoint():
    """Start a TUS endpoint on a free local port."""
    upload_endpoint = UploadEndpoint()

    class CustomHandler(UploadEndpointHandler):
        pass

    CustomHandler.endpoint = upload_endpoint

    server = HTTPServer(("127.0.0.1", 0), CustomHandler)
    port = server.server_address[1]
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()

    upload_endpoint.base_url = f"http://127.0.0.1:{port}{upload_endpoint.base_path}"
    yield upload_endpoint

    server.shutdown()
    server.server_close()


class ScriptedTransport(UrllibTransport):
    """Transport that never touches the network.

    Queued responses are returned in order. Once the queue is empty every
    PATCH is acknowledged with 204 and the offset a well-behaved server
    would report.
    """

    def __init__(self, responses=None, headers=None):
        super().__init__(headers=headers)
        self.responses = list(responses or [])
        self.requests = []

    def execute(self, request):
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        offset = int(request.get_header("Upload-offset"))
        return TransportResponse(204, {"Upload-Offset": str(offset + len(request.data))})

    @property
    def bodies(self):
        return [request.data for request in self.requests]


@pytest.fixture
def transport():
    return ScriptedTransport()
