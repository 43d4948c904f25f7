"""Lock exclusivo não bloqueante para a execução do arquivador.

O lock é um `flock` advisory (via portalocker) sobre um ficheiro fixo. O
conteúdo do ficheiro é irrelevante; ele é criado se faltar e nunca é
removido. A posse dura apenas o bloco ``with``: o lock é liberado em
qualquer saída e, se o processo morrer, pelo próprio sistema operativo.
"""

from contextlib import contextmanager
from pathlib import Path
import logging

import portalocker

logger = logging.getLogger(__name__)


class LockHeldError(RuntimeError):
    """Outra instância já detém o lock."""

    def __init__(self, path: Path):
        super().__init__(f"lock já detido: {path}")
        self.path = path


class LockUnavailableError(RuntimeError):
    """O ficheiro de lock não pôde ser criado ou aberto (permissão, caminho inválido)."""

    def __init__(self, path: Path, reason: OSError):
        super().__init__(f"lock inacessível: {path}: {reason}")
        self.path = path


@contextmanager
def run_lock(path: Path):
    """Adquire o lock em `path` sem esperar.

    Levanta ``LockHeldError`` se ocupado e ``LockUnavailableError`` se o
    ficheiro não puder ser aberto. Exceções do corpo do ``with`` passam
    intactas.

    Uso::

        with run_lock(settings.lock_file):
            ...
    """
    path = Path(path)
    lock = portalocker.Lock(
        str(path),
        mode="a",
        timeout=0,
        fail_when_locked=True,
        flags=portalocker.LOCK_EX | portalocker.LOCK_NB,
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock.acquire()
    except portalocker.exceptions.LockException as exc:
        logger.info("run_lock: %s ocupado por outra execução", path)
        raise LockHeldError(path) from exc
    except OSError as exc:
        raise LockUnavailableError(path, exc) from exc
    logger.debug("run_lock: adquirido %s", path)
    try:
        yield lock
    finally:
        lock.release()
        logger.debug("run_lock: liberado %s", path)
