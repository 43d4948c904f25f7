"""Pacote core: o arquivador e o parsing de argumentos.

Re-exports para uso programático (ex.: agendadores em Python).
"""

from .archiver import LogArchiver, RunOutcome, RunReport

__all__ = ["LogArchiver", "RunOutcome", "RunReport"]
