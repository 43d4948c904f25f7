"""Pacote system: lock, seleção/compressão de logs, tratamentos e notificação."""

from .lock import LockHeldError, LockUnavailableError, run_lock
from .log_helpers import ArchiveTimeoutError, build_archive, iter_eligible_files

__all__ = ["LockHeldError", "LockUnavailableError", "run_lock", "ArchiveTimeoutError", "build_archive", "iter_eligible_files"]
