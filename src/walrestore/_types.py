"""Tipos fundamentais do walrestore.

Enums e dataclasses compartilhados entre spool, fetch e restorer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path


class WalRequestKind(Enum):
    """Papel de um WAL dentro de um batch de restore.

    - DEMANDED: o WAL que o PostgreSQL pediu e pelo qual esta bloqueado.
      Vai direto para o destino final e sua falha e a unica fatal.
    - SPECULATIVE: look-ahead. Vai para o spool; falha e esperada
      (o WAL pode ainda nao ter sido arquivado) e nao e escalada.
    """

    DEMANDED = "demanded"
    SPECULATIVE = "speculative"


class FetchState(Enum):
    """Estado de um WAL no pipeline de restore.

    PENDING e FETCHING descrevem o ciclo de vida enquanto o fetch roda e
    nunca aparecem em `RestoreResult.state`, que so existe depois do fim da
    tentativa e e sempre SUCCEEDED, FAILED_SOFT ou FAILED_HARD.

    Transicoes:
        PENDING -> FETCHING
        FETCHING -> SUCCEEDED
        FETCHING -> FAILED_HARD (somente DEMANDED)
        FETCHING -> FAILED_SOFT (somente SPECULATIVE)
    """

    PENDING = "pending"
    FETCHING = "fetching"
    SUCCEEDED = "succeeded"
    FAILED_SOFT = "failed_soft"
    FAILED_HARD = "failed_hard"


@dataclass(frozen=True, slots=True)
class RestoreRequest:
    """Unidade de trabalho de um batch, com papel definido no dispatch.

    `destination` e None para um look-ahead com nome invalido: o erro e
    reportado no resultado do proprio item, sem afetar o resto do batch.
    """

    wal_name: str
    destination: Path | None
    kind: WalRequestKind

    @property
    def is_demanded(self) -> bool:
        return self.kind is WalRequestKind.DEMANDED


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """Resultado de uma tentativa de restore de um WAL.

    Criado quando a tentativa termina; imutavel a partir dai.
    """

    wal_name: str
    destination: Path | None
    kind: WalRequestKind
    start_time: datetime
    end_time: datetime
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def elapsed(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def state(self) -> FetchState:
        """Estado final, derivado do papel (nunca do tipo do erro)."""
        if self.error is None:
            return FetchState.SUCCEEDED
        if self.kind is WalRequestKind.DEMANDED:
            return FetchState.FAILED_HARD
        return FetchState.FAILED_SOFT


def demanded_result(results: Sequence[RestoreResult]) -> RestoreResult:
    """Retorna o resultado do WAL pedido pelo PostgreSQL.

    Raises:
        ValueError: Se o batch nao tem exatamente um item DEMANDED.
    """
    demanded = [r for r in results if r.kind is WalRequestKind.DEMANDED]
    if len(demanded) != 1:
        msg = f"Esperado exatamente um resultado DEMANDED, encontrados {len(demanded)}"
        raise ValueError(msg)
    return demanded[0]
