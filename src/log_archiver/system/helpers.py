"""Helpers genéricos de sistema.

Utilitários pequenos e sem dependências pesadas usados por vários
subsistemas (leitura de .env, resolução de comandos externos).
"""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def _parse_env_line(line: str) -> tuple[str, str] | None:
    """Converte ``CHAVE=valor`` em par; comentários e linhas sem '=' dão None."""
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, _, value = line.partition("=")
    value = value.split(" #", 1)[0].strip().strip("\"'")
    return key.strip(), value


def read_env_file(path: Path | str) -> dict:
    """Lê as variáveis ``ARCHIVER_*`` (ou quaisquer outras) de um `.env`.

    Ficheiro ausente ou ilegível resulta em dict vazio; o arquivador segue
    com os defaults e as variáveis do processo.
    """
    p = Path(path)
    try:
        lines = p.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("Não foi possível ler %s: %s", p, exc)
        return {}
    return dict(pair for pair in map(_parse_env_line, lines) if pair)


def resolve_command(cmd: list[str]) -> list[str] | None:
    """Retorne `cmd` se o executável existir no PATH, senão None."""
    if not cmd:
        return None
    if shutil.which(cmd[0]) is None:
        logger.debug("resolve_command: comando não encontrado: %s", cmd[0])
        return None
    return cmd
