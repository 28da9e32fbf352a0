"""Tests for exception classes."""

from tus_segments.exceptions import TusCommunicationError, TusProtocolError, UploaderStateError


class TestExceptions:
    """Test custom exception classes."""

    def test_tus_communication_error_basic(self):
        """Test TusCommunicationError with basic message."""
        error = TusCommunicationError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.status_code is None
        assert error.response_content is None

    def test_tus_communication_error_default_message(self):
        """Test TusCommunicationError with default message."""
        error = TusCommunicationError(None, status_code=404)
        assert "404" in str(error)
        assert error.status_code == 404

    def test_tus_protocol_error(self):
        """Test TusProtocolError with offsets."""
        error = TusProtocolError(
            "offset mismatch", status_code=204, server_offset=7, expected_offset=8
        )
        assert str(error) == "offset mismatch"
        assert error.status_code == 204
        assert error.server_offset == 7
        assert error.expected_offset == 8
        assert isinstance(error, TusCommunicationError)

    def test_uploader_state_error(self):
        """Test UploaderStateError is a RuntimeError."""
        error = UploaderStateError("in flight")
        assert isinstance(error, RuntimeError)
        assert str(error) == "in flight"
