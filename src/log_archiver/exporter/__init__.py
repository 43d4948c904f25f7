"""Pacote exporter: envio opcional dos registros de execução para o Loki."""

from .promtail import push_run_record

__all__ = ["push_run_record"]
