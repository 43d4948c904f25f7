"""Arquivador de logs do Jenkins: execução agendada, com lock e guarda de disco."""

__version__ = "1.0.0"
