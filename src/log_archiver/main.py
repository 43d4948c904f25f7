"""Ponto de entrada do arquivador de logs do Jenkins.

Este módulo realiza a inicialização: parsing de argumentos CLI, montagem das
configurações, configuração de logging, instalação dos handlers de debug e
uma única execução do arquivador. O status de saída comunica o resultado ao
agendador (0 = concluído ou pulado; != 0 = abortado ou falhou).
"""

import json as _json
import logging as _logging
import os
import sys

from .config.settings import build_settings
from .core.archiver import LogArchiver
from .core.args import get_log_level, parse_args, settings_overrides
from .system.logs import get_debug_file_path, read_run_records


def main(argv: list[str] | None = None) -> int:
    """Executa o arquivador uma vez e devolve o código de saída.

    Args:
        argv: Lista de argumentos (usada em testes). Quando ``None`` utiliza
            os argumentos de linha de comando do processo.
    """
    try:
        args = parse_args(argv)
        notifying = not (args.dry_run or args.history)
        settings = build_settings(settings_overrides(args), require_notify=notifying)
    except (TypeError, ValueError) as exc:
        print(f"configuração inválida: {exc}", file=sys.stderr)
        return 1

    level = getattr(_logging, get_log_level(args, settings.log_level), _logging.WARNING)
    _logging.basicConfig(level=level, format=LOG_FORMAT)

    try:
        _install_state_log_handlers(settings.state_dir)
    except OSError as exc:
        _logging.getLogger(__name__).debug("log de estado indisponível: %s", exc, exc_info=True)

    if args.history:
        for record in read_run_records(settings.state_dir)[-args.history :]:
            print(_json.dumps(record, ensure_ascii=False))
        return 0

    archiver = LogArchiver(settings)
    if args.dry_run:
        try:
            files = archiver.eligible_files()
        except OSError as exc:
            print(f"falha ao listar {settings.log_dir}: {exc}", file=sys.stderr)
            return 1
        for f in files:
            print(f)
        return 0

    report = archiver.run()
    return report.exit_code


def run() -> None:
    """Entry point do console script."""
    sys.exit(main())


# ========================
# Logs de estado (debug texto + JSONL)
# ========================

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _StateFileHandler(_logging.FileHandler):
    """FileHandler do diretório de estado; erro de escrita nunca derruba a execução."""

    def emit(self, record):
        try:
            super().emit(record)
        except Exception:
            self.handleError(record)


class _JsonLineFormatter(_logging.Formatter):
    """Um objeto JSON por evento: ts, level, name, msg e, se houver, exc."""

    def format(self, record):
        obj = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            obj["exc"] = self.formatException(record.exc_info)
        return _json.dumps(obj, ensure_ascii=False)


def _install_state_log_handlers(state_dir) -> None:
    """Liga o logger root ao debug log diário do arquivador.

    Grava ``debug_log-YYYY-MM-DD.txt`` e a variante ``.jsonl`` em
    ``<state_dir>/debug``. Chamadas repetidas não duplicam handlers. Também
    encaminha exceções não tratadas para o log via ``sys.excepthook``.
    """
    text_path = get_debug_file_path(state_dir)
    root = _logging.getLogger()
    installed = {getattr(h, "baseFilename", None) for h in root.handlers}
    for path, formatter in (
        (text_path, _logging.Formatter(LOG_FORMAT)),
        (text_path.with_suffix(".jsonl"), _JsonLineFormatter()),
    ):
        if os.path.abspath(path) in installed:
            continue
        handler = _StateFileHandler(str(path), encoding="utf-8", delay=True)
        handler.setLevel(_logging.INFO)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    sys.excepthook = _log_unhandled


def _log_unhandled(exc_type, exc_value, exc_tb):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    _logging.getLogger(__name__).critical("Exceção não tratada no arquivador", exc_info=(exc_type, exc_value, exc_tb))


if __name__ == "__main__":
    run()
