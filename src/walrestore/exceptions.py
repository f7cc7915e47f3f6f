"""Exceptions tipadas do walrestore.

Hierarquia:
    WalRestoreError (base)
    +-- ConfigError
    |   +-- ConfigParseError
    |   +-- ConfigValidationError
    +-- InvalidWalNameError
    +-- SpoolError
    |   +-- SpoolIOError
    +-- FetchError
        +-- FetchToolError
        +-- FetchTimeoutError

Ausencia de um WAL no spool nao e erro: e um resultado normal
(`WALSpool.move_out` retorna False).
"""

from __future__ import annotations


class WalRestoreError(Exception):
    """Base para todas as exceptions do walrestore."""


# --- Configuracao ---


class ConfigError(WalRestoreError):
    """Erro de configuracao do restore."""


class ConfigParseError(ConfigError):
    """Falha ao parsear arquivo de configuracao YAML."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Falha ao parsear configuracao '{path}': {reason}")


class ConfigValidationError(ConfigError):
    """Configuracao invalida (campos obrigatorios faltando, tipos errados)."""

    def __init__(self, path: str, errors: list[str]) -> None:
        self.path = path
        self.errors = errors
        detail = "; ".join(errors)
        super().__init__(f"Configuracao '{path}' invalida: {detail}")


# --- Nomes de WAL ---


class InvalidWalNameError(WalRestoreError, ValueError):
    """Nome de arquivo WAL fora do formato esperado."""

    def __init__(self, wal_name: str) -> None:
        self.wal_name = wal_name
        super().__init__(f"Nome de WAL invalido: '{wal_name}'")


# --- Spool ---


class SpoolError(WalRestoreError):
    """Erro relacionado ao spool local de WALs."""


class SpoolIOError(SpoolError):
    """Falha de filesystem no spool (permissao, disco cheio, ...).

    Distinta de "WAL ausente no spool", que nao e erro.
    """

    def __init__(self, path: str, reason: str, wal_name: str | None = None) -> None:
        self.path = path
        self.reason = reason
        self.wal_name = wal_name
        msg = f"Falha de I/O no spool '{path}'"
        if wal_name is not None:
            msg += f" (WAL '{wal_name}')"
        super().__init__(f"{msg}: {reason}")


# --- Fetch ---


class FetchError(WalRestoreError):
    """Erro ao buscar um WAL no arquivo remoto."""


class FetchToolError(FetchError):
    """Ferramenta de fetch falhou ao iniciar ou terminou com exit code != 0."""

    def __init__(
        self,
        tool: str,
        wal_name: str,
        exit_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.tool = tool
        self.wal_name = wal_name
        self.exit_code = exit_code
        self.reason = reason
        msg = f"unexpected failure invoking {tool} for WAL '{wal_name}'"
        if exit_code is not None:
            msg += f" (exit code: {exit_code})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FetchTimeoutError(FetchError):
    """Ferramenta de fetch nao terminou dentro do timeout."""

    def __init__(self, tool: str, wal_name: str, timeout_seconds: float) -> None:
        self.tool = tool
        self.wal_name = wal_name
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{tool} nao terminou em {timeout_seconds}s para WAL '{wal_name}'")
