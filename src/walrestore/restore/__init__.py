"""Pipeline de restore de WAL: spool local, fetch externo e restorer."""

from walrestore.restore.restorer import WALRestorer
from walrestore.restore.spool import WALSpool

__all__ = ["WALRestorer", "WALSpool"]
