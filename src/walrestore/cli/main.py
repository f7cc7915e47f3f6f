"""Grupo principal de comandos CLI do walrestore."""

from __future__ import annotations

import click

import walrestore


@click.group()
@click.version_option(version=walrestore.__version__, prog_name="walrestore")
def cli() -> None:
    """walrestore: restore de WAL do PostgreSQL com prefetch paralelo."""
