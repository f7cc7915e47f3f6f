"""Fixtures compartilhadas para todos os testes."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

WAL_4A = "00000001000000000000004A"
WAL_4B = "00000001000000000000004B"
WAL_4C = "00000001000000000000004C"


@pytest.fixture
def fake_tool_script() -> Path:
    """Caminho para a ferramenta de fetch falsa."""
    path = FIXTURES_DIR / "fake_fetch_tool.py"
    assert path.exists(), f"Fixture de ferramenta nao encontrada: {path}"
    return path


@pytest.fixture
def archive_dir(tmp_path: Path) -> Path:
    """Arquivo remoto simulado com os WALs 4A, 4B e 4C."""
    archive = tmp_path / "archive"
    archive.mkdir()
    for name in (WAL_4A, WAL_4B, WAL_4C):
        (archive / name).write_bytes(f"wal-content:{name}".encode())
    return archive


@pytest.fixture
def archive_env(archive_dir: Path) -> dict[str, str]:
    """Environment que aponta a ferramenta falsa para o arquivo simulado."""
    env = dict(os.environ)
    env["FAKE_ARCHIVE_DIR"] = str(archive_dir)
    return env


@pytest.fixture
def spool_dir(tmp_path: Path) -> Path:
    return tmp_path / "spool"


@pytest.fixture
def pg_wal_dir(tmp_path: Path) -> Path:
    """Diretorio onde o PostgreSQL espera o WAL pedido."""
    path = tmp_path / "pg_wal"
    path.mkdir()
    return path
