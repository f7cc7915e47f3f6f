"""CLI do walrestore.

Registra todos os comandos no grupo principal.
"""

from walrestore.cli.main import cli
from walrestore.cli.restore import restore

__all__ = [
    "cli",
    "restore",
]
