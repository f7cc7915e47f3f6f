"""Nomes de arquivos WAL do PostgreSQL.

Formato de um segmento: TTTTTTTTXXXXXXXXYYYYYYYY (24 hex maiusculos)
- T: timeline
- X: log id
- Y: numero do segmento dentro do log id

Alem de segmentos, o arquivo remoto contem history files
(TTTTTTTT.history), backup labels e segmentos .partial. Todos podem ter
sufixo de compressao.
"""

from __future__ import annotations

import re

from walrestore.exceptions import InvalidWalNameError

COMPRESSION_SUFFIXES = ("gz", "bz2", "xz", "snappy", "zst", "lz4")

DEFAULT_SEGMENT_SIZE_MB = 16

_XLOG_ID_SPAN = 0x100000000

_SEGMENT_RE = re.compile(r"[0-9A-F]{24}")
_WAL_NAME_RE = re.compile(
    r"(?:[0-9A-F]{24}(?:\.partial|\.[0-9A-F]{8}\.backup)?|[0-9A-F]{8}\.history)"
    r"(?:\.(?:" + "|".join(COMPRESSION_SUFFIXES) + r"))?"
)


def is_valid_wal_name(name: str) -> bool:
    return _WAL_NAME_RE.fullmatch(name) is not None


def validate_wal_name(name: str) -> str:
    """Valida nome de arquivo WAL e o retorna inalterado.

    Raises:
        InvalidWalNameError: Se o nome nao e segmento, partial, backup label
            ou history file (com sufixo de compressao opcional).
    """
    if not is_valid_wal_name(name):
        raise InvalidWalNameError(name)
    return name


def is_segment(name: str) -> bool:
    """True somente para segmentos simples (24 hex, sem sufixo)."""
    return _SEGMENT_RE.fullmatch(name) is not None


def segments_per_xlog_id(segment_size_mb: int = DEFAULT_SEGMENT_SIZE_MB) -> int:
    """Quantos segmentos cabem em um log id para o tamanho de segmento dado."""
    if segment_size_mb <= 0 or segment_size_mb & (segment_size_mb - 1):
        msg = f"Tamanho de segmento deve ser potencia de 2: {segment_size_mb}MB"
        raise ValueError(msg)
    return _XLOG_ID_SPAN // (segment_size_mb * 1024 * 1024)


def next_wal_names(
    name: str,
    count: int,
    segment_size_mb: int = DEFAULT_SEGMENT_SIZE_MB,
) -> list[str]:
    """Retorna os `count` segmentos seguintes a `name` na mesma timeline.

    History files, backup labels e partials nao tem sucessor: retorna lista vazia.

    Args:
        name: Segmento de referencia.
        count: Quantidade de segmentos a gerar.
        segment_size_mb: Tamanho de segmento do cluster (wal_segment_size).

    Returns:
        Nomes em ordem de arquivamento.
    """
    validate_wal_name(name)
    if count <= 0 or not is_segment(name):
        return []

    per_log = segments_per_xlog_id(segment_size_mb)
    timeline = int(name[0:8], 16)
    log_id = int(name[8:16], 16)
    segment = int(name[16:24], 16)

    names: list[str] = []
    for _ in range(count):
        segment += 1
        if segment >= per_log:
            segment = 0
            log_id += 1
        names.append(f"{timeline:08X}{log_id:08X}{segment:08X}")
    return names
