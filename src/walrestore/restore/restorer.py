"""WAL Restorer: serve WALs do spool e busca batches em paralelo.

Fluxo para um pedido do PostgreSQL:
1. restore_from_spool: se o WAL ja foi pre-buscado, move para o destino.
2. restore_list: senao, busca o WAL pedido direto no destino final e,
   em paralelo, os WALs de look-ahead para o spool.

Assimetria de falhas: so o WAL DEMANDED pode falhar de forma fatal.
Falha em WAL SPECULATIVE e esperada (pode ainda nao estar arquivado),
e absorvida e logada em debug. O papel de cada WAL e fixado no dispatch
(`RestoreRequest.kind`), nunca inferido do tipo do erro.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from walrestore._types import RestoreRequest, RestoreResult, WalRequestKind
from walrestore.exceptions import SpoolIOError
from walrestore.logging import get_logger
from walrestore.restore.fetch import DEFAULT_FETCH_TOOL, run_fetch_tool
from walrestore.restore.spool import WALSpool
from walrestore.wal import is_valid_wal_name, validate_wal_name

if TYPE_CHECKING:
    from walrestore.config.settings import RestoreSettings

logger = get_logger("restore.restorer")


class WALRestorer:
    """Sessao de restore de WALs de um cluster.

    Criada uma vez por sessao de recovery. Entre chamadas guarda apenas a
    identidade do cluster, o spool e o environment da ferramenta.
    """

    def __init__(
        self,
        cluster_name: str,
        spool_dir: str | Path,
        env: Mapping[str, str] | None = None,
        *,
        tool: str = DEFAULT_FETCH_TOOL,
        max_concurrency: int | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        """Cria o restorer e o diretorio de spool.

        Args:
            cluster_name: Identidade do cluster alvo (para logs).
            spool_dir: Diretorio do spool de WALs pre-buscados.
            env: Environment passado a ferramenta de fetch.
            tool: Executavel da ferramenta de fetch.
            max_concurrency: Limite de fetches simultaneos. None = tamanho do batch.
            fetch_timeout: Timeout por fetch em segundos. None = sem limite.

        Raises:
            SpoolIOError: Se o diretorio de spool nao puder ser criado.
        """
        if max_concurrency is not None and max_concurrency < 1:
            msg = f"max_concurrency deve ser >= 1: {max_concurrency}"
            raise ValueError(msg)

        self._log = logger.bind(cluster=cluster_name)
        try:
            self._spool = WALSpool(spool_dir)
        except SpoolIOError:
            self._log.info("spool_init_failed", spool_dir=str(spool_dir))
            raise

        self._cluster_name = cluster_name
        self._env = dict(env) if env is not None else None
        self._tool = tool
        self._max_concurrency = max_concurrency
        self._fetch_timeout = fetch_timeout

    @classmethod
    def from_settings(cls, settings: RestoreSettings) -> WALRestorer:
        """Cria restorer a partir da configuracao carregada."""
        return cls(
            settings.cluster_name,
            settings.spool_dir,
            settings.subprocess_env(),
            tool=settings.tool,
            max_concurrency=settings.max_concurrency,
            fetch_timeout=settings.fetch_timeout_s,
        )

    @property
    def cluster_name(self) -> str:
        return self._cluster_name

    @property
    def spool(self) -> WALSpool:
        return self._spool

    def restore_from_spool(self, wal_name: str, destination: str | Path) -> bool:
        """Move `wal_name` do spool para `destination`, se estiver la.

        Nunca invoca a ferramenta de fetch.

        Returns:
            True se o WAL estava no spool; False se nao estava (o caller
            deve cair para restore_list).

        Raises:
            SpoolIOError: Falha de filesystem; fatal para esta tentativa.
        """
        return self._spool.move_out(wal_name, destination)

    async def restore(
        self,
        wal_name: str,
        destination: str | Path,
        options: Sequence[str],
    ) -> None:
        """Busca um unico WAL no arquivo remoto.

        Raises:
            FetchToolError: Ferramenta falhou.
            FetchTimeoutError: Timeout expirado.
        """
        await run_fetch_tool(
            self._tool,
            options,
            wal_name,
            destination,
            env=self._env,
            timeout=self._fetch_timeout,
        )

    def build_requests(
        self,
        wal_names: Sequence[str],
        destination: str | Path,
    ) -> list[RestoreRequest]:
        """Transforma o batch em unidades de trabalho com papel explicito.

        O primeiro WAL e o DEMANDED e vai para `destination`; os demais sao
        SPECULATIVE e vao para o spool.

        Raises:
            InvalidWalNameError: Somente se o WAL DEMANDED for invalido. Um
                look-ahead invalido vira request sem destino e falha sozinho
                (FAILED_SOFT) quando executado.
        """
        if not wal_names:
            msg = "Batch de restore vazio"
            raise ValueError(msg)

        demanded = validate_wal_name(wal_names[0])
        requests = [RestoreRequest(demanded, Path(destination), WalRequestKind.DEMANDED)]
        for name in wal_names[1:]:
            spool_path = self._spool.file_name(name) if is_valid_wal_name(name) else None
            requests.append(RestoreRequest(name, spool_path, WalRequestKind.SPECULATIVE))
        return requests

    async def restore_list(
        self,
        wal_names: Sequence[str],
        destination: str | Path,
        options: Sequence[str],
    ) -> list[RestoreResult]:
        """Busca um batch de WALs em paralelo.

        Um task por WAL, todos iniciados juntos; retorna quando todos
        terminam. A ordem do resultado e a ordem de `wal_names`, nao a
        ordem de conclusao. Erros ficam no `RestoreResult` de cada WAL;
        o caller decide olhando apenas o resultado DEMANDED.

        Args:
            wal_names: WAL pedido pelo PostgreSQL seguido do look-ahead.
            destination: Caminho onde o PostgreSQL espera o WAL pedido.
            options: Opcoes base da ferramenta de fetch.

        Returns:
            Um RestoreResult por WAL, alinhado com `wal_names`.
        """
        requests = self.build_requests(wal_names, destination)
        semaphore = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency is not None else None
        )

        async def _run(request: RestoreRequest) -> RestoreResult:
            if semaphore is None:
                return await self._restore_one(request, options)
            async with semaphore:
                return await self._restore_one(request, options)

        return list(await asyncio.gather(*(_run(r) for r in requests)))

    async def _restore_one(
        self,
        request: RestoreRequest,
        options: Sequence[str],
    ) -> RestoreResult:
        """Executa o fetch de um WAL e produz o resultado imutavel."""
        error: Exception | None = None
        start_time = datetime.now(timezone.utc)
        try:
            if request.is_demanded:
                assert request.destination is not None
                # O PostgreSQL le direto do destino final
                await self.restore(request.wal_name, request.destination, options)
            else:
                await self._prefetch(request.wal_name, options)
        except Exception as e:
            error = e
        end_time = datetime.now(timezone.utc)

        result = RestoreResult(
            wal_name=request.wal_name,
            destination=request.destination,
            kind=request.kind,
            start_time=start_time,
            end_time=end_time,
            error=error,
        )
        self._log_result(result, options)
        return result

    async def _prefetch(self, wal_name: str, options: Sequence[str]) -> None:
        """Busca WAL especulativo para o spool via arquivo parcial + rename.

        Raises:
            InvalidWalNameError: Nome invalido; nada e buscado.
        """
        partial = self._spool.partial_file_name(wal_name)
        try:
            await self.restore(wal_name, partial, options)
        except BaseException:
            self._spool.discard_partial(wal_name)
            raise
        self._spool.commit(wal_name)

    def _log_result(self, result: RestoreResult, options: Sequence[str]) -> None:
        elapsed_s = round(result.elapsed.total_seconds(), 3)
        if result.ok:
            self._log.info(
                "wal_restored",
                wal_name=result.wal_name,
                kind=result.kind.value,
                start_time=result.start_time.isoformat(),
                end_time=result.end_time.isoformat(),
                elapsed_s=elapsed_s,
            )
        elif result.kind is WalRequestKind.DEMANDED:
            self._log.warning(
                "wal_restore_failed",
                hint="PostgreSQL will retry if needed",
                wal_name=result.wal_name,
                options=list(options),
                start_time=result.start_time.isoformat(),
                end_time=result.end_time.isoformat(),
                elapsed_s=elapsed_s,
                error=str(result.error),
            )
        else:
            # Look-ahead pode estar alem da cabeca do arquivo: nao e erro
            self._log.debug(
                "wal_prefetch_skipped",
                wal_name=result.wal_name,
                elapsed_s=elapsed_s,
                error=str(result.error),
            )
