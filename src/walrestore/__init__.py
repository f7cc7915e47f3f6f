"""walrestore: restore de WAL com spool local e prefetch paralelo."""

__version__ = "0.1.0"
