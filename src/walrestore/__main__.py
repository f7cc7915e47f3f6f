"""Permite `python -m walrestore`."""

from walrestore.cli import cli

if __name__ == "__main__":
    cli()
