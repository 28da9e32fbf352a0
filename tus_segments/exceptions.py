"""
Global tus_segments exception classes.

Protocol errors follow the tus client convention of carrying the HTTP status
code and response content of the offending response.
"""

from typing import Optional


class TusCommunicationError(Exception):
    """
    Exception raised when communication with TUS server behaves unexpectedly.

    Attributes:
        message (str): Main message of the exception
        status_code (int): HTTP status code of response indicating an error
        response_content (bytes): Content of response indicating an error
    """

    def __init__(self, message, status_code=None, response_content=None):
        default_message = f"Communication with TUS server failed with status {status_code}"
        message = message or default_message
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_content = response_content


class TusProtocolError(TusCommunicationError):
    """Exception raised when a PATCH response breaks the upload protocol.

    Raised for a status outside 200-299, a missing or invalid Upload-Offset
    header, or an Upload-Offset that differs from the locally expected offset.

    Attributes:
        server_offset (int): Offset reported by the server, if any
        expected_offset (int): Offset the client computed locally, if known
    """

    def __init__(
        self,
        message,
        status_code=None,
        response_content=None,
        server_offset: Optional[int] = None,
        expected_offset: Optional[int] = None,
    ):
        super().__init__(message, status_code=status_code, response_content=response_content)
        self.server_offset = server_offset
        self.expected_offset = expected_offset


class UploaderStateError(RuntimeError):
    """Exception raised when an uploader is reconfigured while a segment is in flight."""

    pass
