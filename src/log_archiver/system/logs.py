"""Diretório de estado do arquivador: debug logs e histórico de execuções.

O diretório de estado guarda apenas os logs do próprio arquivador; nunca é
o diretório de logs do Jenkins que está sendo arquivado.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import portalocker

from .log_helpers import write_json

logger = logging.getLogger(__name__)

RUNS_FILENAME = "archiver-runs.jsonl"
DEBUG_LOG_FILENAME = "debug_log"


# ========================
# 1. Diretórios e Paths
# ========================


@dataclass(frozen=True)
class StatePaths:
    """Agrupa caminhos usados pelo histórico e pelo debug log."""

    root: Path
    json_dir: Path
    debug_dir: Path

    @property
    def runs_file(self) -> Path:
        return self.json_dir / RUNS_FILENAME


def get_state_paths(root: str | Path) -> StatePaths:
    """Resolve a raiz de estado e cria `json/` e `debug/`; falhas propagam como OSError."""
    state_root = Path(root)
    json_dir = state_root / "json"
    debug_dir = state_root / "debug"
    for p in (json_dir, debug_dir):
        p.mkdir(parents=True, exist_ok=True)
    return StatePaths(state_root, json_dir, debug_dir)


def get_debug_file_path(root: str | Path, day: date | None = None) -> Path:
    """Retorna caminho do arquivo de debug diário (``debug_log-YYYY-MM-DD.txt``)."""
    day = day or date.today()
    return get_state_paths(root).debug_dir / f"{DEBUG_LOG_FILENAME}-{day.isoformat()}.txt"


# ========================
# 2. Histórico de execuções
# ========================


def append_run_record(root: str | Path, record: dict) -> Path | None:
    """Anexa `record` ao histórico JSONL de execuções e devolve o caminho.

    O histórico é auxiliar: se o diretório de estado não for gravável a falha
    é registrada uma vez e a execução segue sem histórico (retorna None).
    """
    try:
        path = get_state_paths(root).runs_file
        write_json(path, record)
    except (OSError, portalocker.exceptions.LockException) as exc:
        logger.error("Histórico de execuções indisponível em %s: %s", root, exc)
        return None
    logger.debug("append_run_record: %s", path)
    return path


def read_run_records(root: str | Path) -> list[dict]:
    """Lê o histórico de execuções; linhas inválidas são ignoradas."""
    import json

    path = Path(root) / "json" / RUNS_FILENAME
    entries: list[dict] = []
    try:
        with path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except ValueError as exc:
                    logger.warning("Linha JSON inválida ignorada em %s: %s", path, exc)
    except FileNotFoundError:
        return []
    return entries
