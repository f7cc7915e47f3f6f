"""Parsing e validacao da configuracao de restore (YAML)."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from walrestore.exceptions import ConfigParseError, ConfigValidationError
from walrestore.restore.fetch import DEFAULT_FETCH_TOOL
from walrestore.wal import DEFAULT_SEGMENT_SIZE_MB


class RestoreSettings(BaseModel):
    """Configuracao de uma sessao de restore de WAL.

    Exemplo de arquivo:

        cluster_name: cluster-example
        spool_dir: /var/lib/postgresql/data/wal-restore-spool
        tool_options: ["--cloud-provider", "aws-s3", "s3://bucket/path", "cluster-example"]
        env:
          AWS_ACCESS_KEY_ID: ...
        max_parallel: 8
    """

    cluster_name: str
    spool_dir: Path
    tool: str = DEFAULT_FETCH_TOOL
    tool_options: list[str] = []
    env: dict[str, str] = {}
    max_parallel: int = Field(default=1, ge=1)
    max_concurrency: int | None = Field(default=None, ge=1)
    fetch_timeout_s: float | None = Field(default=None, gt=0)
    wal_segment_size_mb: int = DEFAULT_SEGMENT_SIZE_MB

    @field_validator("cluster_name", "tool")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "Valor nao pode ser vazio"
            raise ValueError(msg)
        return v

    @field_validator("wal_segment_size_mb")
    @classmethod
    def segment_size_must_be_power_of_two(cls, v: int) -> int:
        if v < 1 or v > 1024 or v & (v - 1):
            msg = f"wal_segment_size_mb deve ser potencia de 2 entre 1 e 1024: {v}"
            raise ValueError(msg)
        return v

    def subprocess_env(self) -> dict[str, str]:
        """Environment da ferramenta de fetch: processo atual + `env`."""
        merged = dict(os.environ)
        merged.update(self.env)
        return merged

    @classmethod
    def from_yaml_path(cls, path: str | Path) -> RestoreSettings:
        """Carrega configuracao a partir de arquivo YAML."""
        path = Path(path)
        if not path.exists():
            raise ConfigParseError(str(path), "Arquivo nao encontrado")

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigParseError(str(path), f"Erro ao ler arquivo: {e}") from e

        return cls.from_yaml_string(raw, source_path=str(path))

    @classmethod
    def from_yaml_string(cls, raw: str, source_path: str = "<string>") -> RestoreSettings:
        """Carrega configuracao a partir de string YAML."""
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigParseError(source_path, f"YAML invalido: {e}") from e

        if not isinstance(data, dict):
            raise ConfigParseError(source_path, "Conteudo YAML deve ser um mapeamento")

        try:
            return cls.model_validate(data)
        except Exception as e:
            errors = [str(e)]
            raise ConfigValidationError(source_path, errors) from e
