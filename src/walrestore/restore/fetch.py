"""Invocacao da ferramenta externa de fetch de WAL.

Contrato da ferramenta:
    <tool> [...base_options] <wal_name> <destination>

Exit code 0 significa que `destination` contem o WAL. Credenciais e
endpoint do arquivo remoto chegam via environment, nunca via argumentos.
Stdout e stderr sao enviados ao log linha a linha, conforme produzidos.
Sem retry nesta camada: quem decide repetir e o PostgreSQL.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Mapping, Sequence
from pathlib import Path

from walrestore.exceptions import FetchTimeoutError, FetchToolError
from walrestore.logging import get_logger

logger = get_logger("restore.fetch")

DEFAULT_FETCH_TOOL = "barman-cloud-wal-restore"
STOP_GRACE_PERIOD = 5.0
READ_CHUNK_SIZE = 64 * 1024
MAX_LOG_LINE = 64 * 1024


def build_fetch_cmd(
    tool: str,
    base_options: Sequence[str],
    wal_name: str,
    destination: str | Path,
) -> list[str]:
    """Constroi argv completo: base_options seguido de wal_name e destino.

    `base_options` nunca e modificado.
    """
    return [tool, *base_options, wal_name, str(destination)]


async def run_fetch_tool(
    tool: str,
    base_options: Sequence[str],
    wal_name: str,
    destination: str | Path,
    *,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> None:
    """Executa a ferramenta de fetch para um unico WAL.

    Args:
        tool: Executavel da ferramenta (ex: "barman-cloud-wal-restore").
        base_options: Flags repassadas sem interpretacao.
        wal_name: Nome do WAL a buscar.
        destination: Onde a ferramenta deve gravar o WAL.
        env: Environment exato do subprocess. None herda o do processo atual.
        timeout: Limite em segundos. None espera indefinidamente.

    Raises:
        FetchToolError: Falha ao iniciar ou exit code != 0.
        FetchTimeoutError: Timeout expirado (processo e terminado).
    """
    cmd = build_fetch_cmd(tool, base_options, wal_name, destination)
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            env=dict(env) if env is not None else None,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise FetchToolError(tool, wal_name, reason=str(e)) from e

    try:
        exit_code = await asyncio.wait_for(
            _wait_streaming(process, tool, wal_name), timeout=timeout
        )
    except TimeoutError:
        await _terminate(process, tool, wal_name)
        raise FetchTimeoutError(tool, wal_name, timeout or 0.0) from None
    except BaseException:
        # Cancelamento ou falha inesperada na leitura: o processo nunca fica orfao
        await _terminate(process, tool, wal_name)
        raise

    if exit_code != 0:
        raise FetchToolError(tool, wal_name, exit_code=exit_code)


async def _wait_streaming(
    process: asyncio.subprocess.Process,
    tool: str,
    wal_name: str,
) -> int:
    """Encaminha stdout/stderr ao log e aguarda o fim do processo."""
    await asyncio.gather(
        _stream_lines(process.stdout, tool, "stdout", wal_name),
        _stream_lines(process.stderr, tool, "stderr", wal_name),
    )
    return await process.wait()


async def _stream_lines(
    stream: asyncio.StreamReader | None,
    tool: str,
    pipe: str,
    wal_name: str,
) -> None:
    """Le o pipe em blocos e loga cada linha assim que completa.

    Leitura em blocos em vez de readline(): linhas maiores que o limite do
    StreamReader (ou progresso sem newline) nao podem derrubar um fetch que
    terminou com sucesso. Linhas acima de MAX_LOG_LINE sao logadas em pedacos.
    """
    if stream is None:
        return

    def emit(raw: bytes) -> None:
        line = raw.decode(errors="replace").rstrip("\r")
        if line:
            logger.info("fetch_tool_output", tool=tool, pipe=pipe, wal_name=wal_name, line=line)

    pending = b""
    while chunk := await stream.read(READ_CHUNK_SIZE):
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for raw in lines:
            emit(raw)
        while len(pending) > MAX_LOG_LINE:
            emit(pending[:MAX_LOG_LINE])
            pending = pending[MAX_LOG_LINE:]
    emit(pending)


async def _terminate(
    process: asyncio.subprocess.Process,
    tool: str,
    wal_name: str,
) -> None:
    """SIGTERM, espera STOP_GRACE_PERIOD, SIGKILL se necessario."""
    if process.returncode is not None:
        return

    logger.info("fetch_tool_terminating", tool=tool, wal_name=wal_name, pid=process.pid)
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=STOP_GRACE_PERIOD)
    except TimeoutError:
        logger.warning("fetch_tool_force_kill", tool=tool, wal_name=wal_name, pid=process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
