"""Spool local de WALs pre-buscados.

Diretorio plano: cada entrada tem exatamente o nome do WAL. Um arquivo com
nome final e sempre uma copia completa: fetches especulativos escrevem em
`.<wal>.partial` e so sao promovidos via rename atomico apos sucesso.

Claims e inserts concorrentes de WALs *diferentes* sao seguros. Claim e
insert concorrentes do *mesmo* WAL nao tem garantia; o restorer nunca faz
isso porque consulta o spool antes de despachar o batch.
"""

from __future__ import annotations

import os
from pathlib import Path

from walrestore.exceptions import SpoolIOError
from walrestore.wal import validate_wal_name

PARTIAL_SUFFIX = ".partial"


class WALSpool:
    """Cache em disco de WALs, indexado pelo nome do WAL."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SpoolIOError(str(self._directory), str(e)) from e

    @property
    def directory(self) -> Path:
        """Raiz do spool."""
        return self._directory

    def file_name(self, wal_name: str) -> Path:
        """Caminho deterministico da entrada de `wal_name` no spool."""
        return self._directory / validate_wal_name(wal_name)

    def partial_file_name(self, wal_name: str) -> Path:
        """Caminho temporario usado enquanto o WAL esta sendo baixado.

        Comeca com "." e termina em ".partial", portanto nunca colide com
        o nome final de nenhum WAL.
        """
        return self._directory / f".{validate_wal_name(wal_name)}{PARTIAL_SUFFIX}"

    def contains(self, wal_name: str) -> bool:
        return self.file_name(wal_name).is_file()

    def move_out(self, wal_name: str, destination: str | Path) -> bool:
        """Move a entrada de `wal_name` para `destination`, consumindo-a.

        Returns:
            True se o WAL estava no spool e foi movido; False se nao estava
            (spool e destino ficam intocados).

        Raises:
            SpoolIOError: Qualquer outra falha de filesystem.
        """
        source = self.file_name(wal_name)
        try:
            os.replace(source, destination)
        except FileNotFoundError:
            if source.exists():
                # A origem existe: quem falta e o diretorio de destino
                raise SpoolIOError(
                    str(destination), "diretorio de destino inexistente", wal_name=wal_name
                ) from None
            return False
        except OSError as e:
            raise SpoolIOError(str(source), str(e), wal_name=wal_name) from e
        return True

    def commit(self, wal_name: str) -> Path:
        """Promove o arquivo parcial de `wal_name` a entrada final do spool.

        Returns:
            Caminho final da entrada.

        Raises:
            SpoolIOError: Se o rename falhar.
        """
        partial = self.partial_file_name(wal_name)
        final = self.file_name(wal_name)
        try:
            os.replace(partial, final)
        except OSError as e:
            raise SpoolIOError(str(partial), str(e), wal_name=wal_name) from e
        return final

    def discard_partial(self, wal_name: str) -> None:
        """Remove o arquivo parcial de `wal_name`, se existir."""
        partial = self.partial_file_name(wal_name)
        try:
            partial.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise SpoolIOError(str(partial), str(e), wal_name=wal_name) from e
