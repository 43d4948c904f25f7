"""Helpers de baixo nível para seleção e arquivo de logs.

Seleção por idade sobre a árvore de logs do Jenkins, construção atômica do
tar.gz com prazo e anexação de linhas JSONL ao histórico do arquivador.
"""

from pathlib import Path
import os
import logging
import tarfile
import time
import json as _json

import portalocker

from .time_helpers import retention_cutoff

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


class ArchiveTimeoutError(TimeoutError):
    """O tar.gz não terminou dentro do prazo configurado."""


# -----------------------
# Histórico (JSONL)
# -----------------------
def append_line(path: Path, line: str) -> None:
    """Anexa uma linha ao histórico sob lock exclusivo, com fsync.

    O diretório pai já deve existir. Erros de I/O propagam; quem decide se o
    histórico é opcional é o chamador.
    """
    with path.open("a", encoding="utf-8") as fh:
        portalocker.lock(fh, portalocker.LOCK_EX)
        try:
            fh.write(line)
            fh.flush()
            os.fsync(fh.fileno())
        finally:
            portalocker.unlock(fh)


def write_json(path: Path, obj: dict) -> None:
    """Anexa `obj` como uma linha JSON (Path e datetime viram string)."""
    append_line(path, _json.dumps(obj, ensure_ascii=False, default=str) + "\n")


# -----------------------
# Seleção por idade
# -----------------------
def is_eligible(p: Path, cutoff_ts: float) -> bool:
    """Return True se `p` for ficheiro regular com mtime estritamente anterior a `cutoff_ts`.

    Symlinks são ignorados. Propaga OSError para que o chamador trate a
    falha de leitura como falha da execução.
    """
    if p.is_symlink() or not p.is_file():
        return False
    return p.stat().st_mtime < cutoff_ts


def _walk_files(root: Path):
    """Percorre `root` recursivamente sem seguir symlinks de diretório.

    Um subdiretório ilegível levanta OSError em vez de ser pulado.
    """
    with os.scandir(root) as it:
        entries = list(it)
    for entry in entries:
        p = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(p)
        else:
            yield p


def iter_eligible_files(log_dir: Path, now_ts: float, retention_days: int) -> list[Path]:
    """Liste, ordenados, os ficheiros de `log_dir` (recursivo) mais antigos que a retenção.

    Levanta FileNotFoundError/NotADirectoryError quando `log_dir` não é um
    diretório; erros de acesso em qualquer nível propagam como OSError.
    """
    if not log_dir.is_dir():
        if log_dir.exists():
            raise NotADirectoryError(f"log_dir não é diretório: {log_dir}")
        raise FileNotFoundError(f"log_dir inexistente: {log_dir}")
    cutoff = retention_cutoff(now_ts, retention_days)
    selected = sorted(p for p in _walk_files(log_dir) if is_eligible(p, cutoff))
    logger.debug("iter_eligible_files: %d elegíveis em %s (cutoff=%s)", len(selected), log_dir, cutoff)
    return selected


# -----------------------
# Compressão
# -----------------------
class _DeadlineReader:
    """Envolve o ficheiro de um membro e verifica o prazo a cada bloco lido."""

    def __init__(self, fh, name: str, deadline: float, timeout: float, clock):
        self._fh = fh
        self._name = name
        self._deadline = deadline
        self._timeout = timeout
        self._clock = clock

    def read(self, size=-1):
        if self._clock() > self._deadline:
            raise ArchiveTimeoutError(f"tempo esgotado ({self._timeout}s) ao ler {self._name}")
        return self._fh.read(size)


def build_archive(
    files: list[Path],
    base_dir: Path,
    dst: Path,
    timeout: float | None = None,
    clock=time.monotonic,
) -> Path:
    """Comprime `files` em tar.gz `dst`. Usa escrita temporária + replace atômico.

    Os membros ficam com caminho relativo a `base_dir`. O ficheiro final só
    aparece quando o tar estiver completo; em qualquer erro o temporário é
    removido. Nunca sobrescreve um `dst` existente (FileExistsError).

    `timeout` (segundos) vale para o artefato inteiro e é verificado antes
    de cada membro e a cada bloco copiado; expirado, levanta
    ``ArchiveTimeoutError``.
    """
    if dst.exists():
        raise FileExistsError(f"artefato já existe: {dst}")
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(dst.name + TMP_SUFFIX)
    deadline = clock() + timeout if timeout else None
    try:
        with tarfile.open(tmp, "w:gz") as tar:
            for f in files:
                if deadline is not None and clock() > deadline:
                    raise ArchiveTimeoutError(f"tempo esgotado ({timeout}s) ao arquivar {f}")
                info = tar.gettarinfo(str(f), arcname=f.relative_to(base_dir).as_posix())
                with open(f, "rb") as fh:
                    src = fh if deadline is None else _DeadlineReader(fh, str(f), deadline, timeout, clock)
                    tar.addfile(info, src)
        os.replace(str(tmp), str(dst))
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.info("build_archive: %d ficheiros -> %s", len(files), dst)
    return dst
