"""Testes de integracao do pipeline de restore com subprocess real.

A ferramenta de fetch e tests/fixtures/fake_fetch_tool.py, que copia WALs
de um diretorio que simula o arquivo remoto.

Executar com:
    python -m pytest tests/integration/ -m integration -v
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from walrestore._types import FetchState, demanded_result
from walrestore.exceptions import FetchToolError
from walrestore.restore.restorer import WALRestorer

pytestmark = pytest.mark.integration

WAL_4A = "00000001000000000000004A"
WAL_4B = "00000001000000000000004B"
WAL_4C = "00000001000000000000004C"
WAL_4D = "00000001000000000000004D"


@pytest.fixture
def restorer(spool_dir: Path, archive_env: dict[str, str]) -> WALRestorer:
    return WALRestorer("cluster-example", spool_dir, archive_env, tool=sys.executable)


@pytest.fixture
def options(fake_tool_script: Path) -> list[str]:
    return [str(fake_tool_script)]


class TestEndToEnd:
    async def test_demanded_to_destination_lookahead_to_spool(
        self,
        restorer: WALRestorer,
        options: list[str],
        pg_wal_dir: Path,
        archive_dir: Path,
    ) -> None:
        destination = pg_wal_dir / "RECOVERYXLOG"

        assert restorer.restore_from_spool(WAL_4A, destination) is False

        results = await restorer.restore_list([WAL_4A, WAL_4B, WAL_4C], destination, options)

        assert all(r.ok for r in results)
        assert destination.read_bytes() == (archive_dir / WAL_4A).read_bytes()

        next_destination = pg_wal_dir / "RECOVERYXLOG.next"
        assert restorer.restore_from_spool(WAL_4B, next_destination) is True
        assert next_destination.read_bytes() == (archive_dir / WAL_4B).read_bytes()
        assert restorer.restore_from_spool(WAL_4B, next_destination) is False

        assert restorer.spool.contains(WAL_4C)

    async def test_gap_in_archive(
        self,
        restorer: WALRestorer,
        options: list[str],
        pg_wal_dir: Path,
        archive_dir: Path,
    ) -> None:
        (archive_dir / WAL_4B).unlink()
        destination = pg_wal_dir / "RECOVERYXLOG"

        results = await restorer.restore_list([WAL_4A, WAL_4B, WAL_4C], destination, options)

        assert [r.state for r in results] == [
            FetchState.SUCCEEDED,
            FetchState.FAILED_SOFT,
            FetchState.SUCCEEDED,
        ]
        assert isinstance(results[1].error, FetchToolError)
        assert results[1].error.exit_code == 1
        assert results[2].destination == restorer.spool.file_name(WAL_4C)
        assert restorer.spool.file_name(WAL_4C).read_bytes() == (
            archive_dir / WAL_4C
        ).read_bytes()
        assert not restorer.spool.contains(WAL_4B)
        assert demanded_result(results).ok

    async def test_demanded_missing_is_hard_failure(
        self,
        restorer: WALRestorer,
        options: list[str],
        pg_wal_dir: Path,
    ) -> None:
        destination = pg_wal_dir / "RECOVERYXLOG"

        results = await restorer.restore_list([WAL_4D], destination, options)

        assert len(results) == 1
        assert results[0].state is FetchState.FAILED_HARD
        assert not destination.exists()

    async def test_fetches_run_in_parallel(
        self,
        spool_dir: Path,
        archive_env: dict[str, str],
        options: list[str],
        pg_wal_dir: Path,
    ) -> None:
        archive_env["FAKE_FETCH_DELAY"] = "1.0"
        restorer = WALRestorer("cluster-example", spool_dir, archive_env, tool=sys.executable)
        loop = asyncio.get_running_loop()

        start = loop.time()
        results = await restorer.restore_list(
            [WAL_4A, WAL_4B, WAL_4C], pg_wal_dir / "RECOVERYXLOG", options
        )
        elapsed = loop.time() - start

        assert all(r.ok for r in results)
        # Sequencial levaria >= 3s
        assert elapsed < 2.5

    async def test_no_partial_files_left_behind(
        self,
        restorer: WALRestorer,
        options: list[str],
        pg_wal_dir: Path,
        spool_dir: Path,
    ) -> None:
        await restorer.restore_list([WAL_4A, WAL_4B, WAL_4C, WAL_4D], pg_wal_dir / "x", options)

        assert sorted(p.name for p in spool_dir.iterdir()) == [WAL_4B, WAL_4C]
