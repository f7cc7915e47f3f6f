"""Structured logging para o walrestore.

Usa structlog com stdlib logging como backend. Dois formatos:
- console: legivel para desenvolvimento (default)
- json: estruturado para producao

O PostgreSQL executa um processo walrestore por WAL e captura o stderr do
restore_command no proprio log do servidor. Por isso toda saida vai para
stderr (stdout nunca e usado) e cada evento carrega o `pid` do processo,
o que separa chamadas concorrentes de restore_command no log do servidor.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

LOG_FORMAT_ENV = "WALRESTORE_LOG_FORMAT"
LOG_LEVEL_ENV = "WALRESTORE_LOG_LEVEL"

_configured = False


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Configura logging estruturado para o processo.

    Idempotente: chamadas subsequentes sao ignoradas, exceto com `force`.
    O modulo se configura sozinho no primeiro `get_logger`; o CLI usa
    `force=True` para que --log-format/--log-level sempre prevalecam.

    Args:
        log_format: "json" ou "console". Default via WALRESTORE_LOG_FORMAT env ou "console".
        level: Nivel de log (DEBUG, INFO, WARNING, ERROR). Default via
            WALRESTORE_LOG_LEVEL env ou "INFO".
        force: Reconfigura mesmo se ja configurado.
    """
    global _configured
    if _configured and not force:
        return

    resolved_format = log_format or os.environ.get(LOG_FORMAT_ENV, "console")
    resolved_level = level or os.environ.get(LOG_LEVEL_ENV, "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if resolved_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        # Cores so em terminal; no log do PostgreSQL viram sequencias ANSI soltas
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, resolved_level.upper(), logging.INFO))

    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Retorna logger com contexto de componente e pid do processo.

    Args:
        component: Nome do componente (ex: "restore.fetch", "restore.restorer").

    Returns:
        BoundLogger com campos component e pid vinculados.
    """
    configure_logging()
    return structlog.get_logger().bind(  # type: ignore[no-any-return]
        component=component,
        pid=os.getpid(),
    )
