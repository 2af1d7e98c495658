"""エラーハンドリングモジュールのテスト."""

import logging

from subspace.error_handler import (
    AuthError,
    ErrorHandler,
    ProtocolError,
    SubspaceError,
    SubtitleIOError,
    SubtitleNotFoundError,
)


class TestErrors:

    def test_error_codes(self):
        assert AuthError("x").error_code == "AUTH_ERROR"
        assert ProtocolError("x").error_code == "PROTOCOL_ERROR"
        assert SubtitleIOError("x").error_code == "IO_ERROR"
        assert SubtitleNotFoundError("x").error_code == "NOT_FOUND"
        assert SubspaceError("x").error_code == "SubspaceError"

    def test_context(self):
        error = ProtocolError("Timed out", url="http://rpc", timeout=30.0, method="SearchSubtitles")
        assert error.context == {"url": "http://rpc", "timeout": 30.0, "method": "SearchSubtitles"}
        assert str(error) == "Timed out"

    def test_all_errors_share_base(self):
        for error in (AuthError("a"), ProtocolError("b"), SubtitleIOError("c"), SubtitleNotFoundError("d")):
            assert isinstance(error, SubspaceError)


class TestErrorHandler:

    def setup_method(self):
        self.handler = ErrorHandler()

    def test_auth_message(self):
        message = self.handler.format_user_message(AuthError("no token"))
        assert message == "Server error: Couldn't connect to OpenSubtitles server."

    def test_protocol_message(self):
        message = self.handler.format_user_message(ProtocolError("HTTP Error 503", status_code=503))
        assert "HTTP Error 503" in message
        assert "status code: 503" in message

    def test_io_message(self):
        error = SubtitleIOError("Cannot read file", file_path="movie.mkv", operation="fingerprint")
        message = self.handler.format_user_message(error)
        assert "movie.mkv" in message
        assert "fingerprint" in message

    def test_not_found_message(self):
        error = SubtitleNotFoundError("none", file_path="movie.mkv")
        assert self.handler.format_user_message(error) == "Couldn't find subtitles for movie.mkv."

    def test_unexpected_message(self):
        assert self.handler.format_user_message(RuntimeError("boom")) == "Internal error: boom"

    def test_handle_error_logs(self, caplog):
        with caplog.at_level(logging.WARNING):
            message = self.handler.handle_error(ProtocolError("HTTP Error 500"), {"file": "a.mkv"})

        assert "HTTP Error 500" in message
        assert "PROTOCOL_ERROR" in caplog.text
        assert "a.mkv" in caplog.text

    def test_create_context(self):
        context = ErrorHandler.create_context(
            operation="search",
            file_path="movie.mkv",
            language="en",
            strategy="hash"
        )
        assert context == {
            "operation": "search",
            "file_path": "movie.mkv",
            "language": "en",
            "strategy": "hash",
        }
