"""Comando `walrestore restore`: entry point do restore_command do PostgreSQL.

Uso no postgresql.conf:
    restore_command = 'walrestore restore %f %p --config /etc/walrestore.yaml'

Exit codes:
    0: WAL entregue em DESTINATION (do spool ou do arquivo remoto)
    1: falha ao buscar o WAL pedido; o PostgreSQL tenta de novo depois
    2: erro de configuracao, nome de WAL invalido ou falha de I/O no spool
"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from walrestore.cli.main import cli
from walrestore.logging import configure_logging

if TYPE_CHECKING:
    from walrestore.config.settings import RestoreSettings

EXIT_OK = 0
EXIT_RESTORE_FAILED = 1
EXIT_USAGE_ERROR = 2


@cli.command()
@click.argument("wal_name")
@click.argument("destination", type=click.Path(dir_okay=False))
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="Arquivo YAML de configuracao do restore.",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Formato de log. Default: WALRESTORE_LOG_FORMAT ou console.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default=None,
    help="Nivel de log. Default: WALRESTORE_LOG_LEVEL ou INFO.",
)
def restore(
    wal_name: str,
    destination: str,
    config_path: str,
    log_format: str | None,
    log_level: str | None,
) -> None:
    """Restaura WAL_NAME em DESTINATION, com prefetch dos proximos WALs.

    Exemplo: walrestore restore 00000001000000000000004A pg_wal/RECOVERYXLOG --config c.yaml
    """
    configure_logging(log_format=log_format, level=log_level, force=True)

    from walrestore.config.settings import RestoreSettings
    from walrestore.exceptions import ConfigError, InvalidWalNameError, SpoolIOError

    try:
        settings = RestoreSettings.from_yaml_path(config_path)
        exit_code = asyncio.run(_restore(settings, wal_name, destination))
    except (ConfigError, InvalidWalNameError, SpoolIOError) as e:
        click.echo(f"Erro: {e}", err=True)
        sys.exit(EXIT_USAGE_ERROR)

    sys.exit(exit_code)


async def _restore(settings: RestoreSettings, wal_name: str, destination: str) -> int:
    """Fluxo async do restore: spool primeiro, depois batch com look-ahead."""
    from walrestore._types import demanded_result
    from walrestore.logging import get_logger
    from walrestore.restore.restorer import WALRestorer
    from walrestore.wal import next_wal_names, validate_wal_name

    logger = get_logger("cli.restore").bind(cluster=settings.cluster_name)

    validate_wal_name(wal_name)
    restorer = WALRestorer.from_settings(settings)

    # 1. WAL ja pre-buscado por uma chamada anterior
    if restorer.restore_from_spool(wal_name, destination):
        logger.info("wal_restored_from_spool", wal_name=wal_name, destination=destination)
        return EXIT_OK

    # 2. WAL pedido + look-ahead
    batch = [wal_name] + next_wal_names(
        wal_name,
        settings.max_parallel - 1,
        segment_size_mb=settings.wal_segment_size_mb,
    )
    results = await restorer.restore_list(batch, destination, settings.tool_options)

    if not demanded_result(results).ok:
        return EXIT_RESTORE_FAILED

    prefetched = sum(1 for r in results[1:] if r.ok)
    logger.info(
        "wal_restore_completed",
        wal_name=wal_name,
        batch_size=len(batch),
        prefetched=prefetched,
    )
    return EXIT_OK
