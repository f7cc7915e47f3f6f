"""Ferramenta de fetch falsa para testes.

Contrato igual ao barman-cloud-wal-restore:
    fake_fetch_tool.py [opcoes...] <wal_name> <destination>

Copia FAKE_ARCHIVE_DIR/<wal_name> para <destination>. Sai com 1 se o
WAL nao existe no arquivo. FAKE_FETCH_DELAY (segundos) atrasa a copia.
"""

import os
import shutil
import sys
import time

wal_name, destination = sys.argv[-2], sys.argv[-1]
archive = os.environ["FAKE_ARCHIVE_DIR"]
source = os.path.join(archive, wal_name)

time.sleep(float(os.environ.get("FAKE_FETCH_DELAY", "0")))

if not os.path.exists(source):
    print(f"WAL file not found in archive: {wal_name}", file=sys.stderr)
    sys.exit(1)

shutil.copyfile(source, destination)
print(f"restored {wal_name}")
