"""Testes das exceptions tipadas do walrestore."""

from walrestore.exceptions import (
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
    FetchError,
    FetchTimeoutError,
    FetchToolError,
    InvalidWalNameError,
    SpoolError,
    SpoolIOError,
    WalRestoreError,
)


class TestHierarchy:
    def test_all_exceptions_inherit_from_base(self) -> None:
        exceptions = [
            ConfigParseError("f", "r"),
            ConfigValidationError("f", ["e"]),
            InvalidWalNameError("w"),
            SpoolIOError("/spool", "r"),
            FetchToolError("tool", "w", exit_code=1),
            FetchTimeoutError("tool", "w", 5.0),
        ]
        for exc in exceptions:
            assert isinstance(exc, WalRestoreError)

    def test_config_errors_are_config_error(self) -> None:
        assert isinstance(ConfigParseError("f", "r"), ConfigError)
        assert isinstance(ConfigValidationError("f", ["e"]), ConfigError)

    def test_fetch_errors_are_fetch_error(self) -> None:
        assert isinstance(FetchToolError("t", "w"), FetchError)
        assert isinstance(FetchTimeoutError("t", "w", 1.0), FetchError)

    def test_spool_io_error_is_spool_error(self) -> None:
        assert isinstance(SpoolIOError("/spool", "r"), SpoolError)


class TestExceptionMessages:
    def test_fetch_tool_error_with_exit_code(self) -> None:
        exc = FetchToolError("barman-cloud-wal-restore", "00000001000000000000004A", exit_code=1)
        assert "barman-cloud-wal-restore" in str(exc)
        assert "00000001000000000000004A" in str(exc)
        assert "exit code: 1" in str(exc)
        assert exc.reason is None

    def test_fetch_tool_error_with_reason(self) -> None:
        exc = FetchToolError("barman-cloud-wal-restore", "w", reason="No such file or directory")
        assert exc.exit_code is None
        assert "No such file or directory" in str(exc)

    def test_spool_io_error_with_wal_name(self) -> None:
        exc = SpoolIOError("/spool/x", "Permission denied", wal_name="00000001000000000000004A")
        assert exc.path == "/spool/x"
        assert "00000001000000000000004A" in str(exc)
        assert "Permission denied" in str(exc)

    def test_timeout_error_shows_seconds(self) -> None:
        exc = FetchTimeoutError("tool", "w", 2.5)
        assert "2.5s" in str(exc)
        assert exc.timeout_seconds == 2.5

    def test_config_validation_joins_errors(self) -> None:
        exc = ConfigValidationError("c.yaml", ["a", "b"])
        assert "a; b" in str(exc)
        assert exc.errors == ["a", "b"]
