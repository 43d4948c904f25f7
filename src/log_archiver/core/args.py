"""Parser de argumentos do arquivador.

Este módulo fornece um parser simples que expõe:
- diretórios de origem/destino, ficheiro de lock e destinatário
- retenção em dias e limiar de uso de disco
- verbosidade (-v) e nível de log
- modos auxiliares: --dry-run e --history

Precedência: CLI > variáveis de ambiente / .env > defaults. Os overrides de
ambiente são aplicados em ``config.settings``; aqui só produzimos o
dicionário de overrides vindos da linha de comando.
"""

import argparse
from typing import Sequence

# ========================
# 0. Configuração do parser
# ========================

# destino argparse -> chave de settings
_SETTINGS_ARGS = {
    "log_dir": "log_dir",
    "backup_dir": "backup_dir",
    "lock_file": "lock_file",
    "notify": "notify_email",
    "retention_days": "retention_days",
    "disk_threshold": "disk_threshold_pct",
    "service": "service_name",
    "state_dir": "state_dir",
}


def configure_argparser() -> argparse.ArgumentParser:
    """Cria e retorna ArgumentParser configurado para o arquivador."""
    parser = argparse.ArgumentParser(
        prog="jenkins-log-archiver",
        description="Arquiva logs do Jenkins mais antigos que a retenção em um tar.gz datado",
    )
    parser.add_argument("--log-dir", dest="log_dir", default=None, help="Diretório de logs de origem")
    parser.add_argument("--backup-dir", dest="backup_dir", default=None, help="Diretório de destino dos artefatos")
    parser.add_argument("--lock-file", dest="lock_file", default=None, help="Ficheiro de lock partilhado")
    parser.add_argument("--notify", dest="notify", default=None, help="Endereço de e-mail do operador")
    parser.add_argument(
        "--retention-days",
        dest="retention_days",
        type=int,
        default=None,
        help="Idade mínima (dias) para arquivar; padrão 7",
    )
    parser.add_argument(
        "--disk-threshold",
        dest="disk_threshold",
        type=float,
        default=None,
        help="Uso de disco (%%) acima do qual a execução aborta; padrão 90",
    )
    parser.add_argument("--service", dest="service", default=None, help="Serviço a parar com disco cheio")
    parser.add_argument("--state-dir", dest="state_dir", default=None, help="Diretório de debug logs e histórico")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Aumenta a verbosidade (-v, -vv)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str,
        default=None,
        help="Nível de logging (DEBUG/INFO/WARNING/ERROR). Se ausente, definido por -v",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Lista ficheiros elegíveis sem arquivar nem notificar")
    mode.add_argument(
        "--history",
        type=int,
        default=None,
        metavar="N",
        help="Mostra os últimos N registros de execução e sai",
    )
    return parser


# ========================
# 1. Análise e validação
# ========================


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Analisa argv e retorna Namespace validado para uso no programa."""
    parser = configure_argparser()
    ns = parser.parse_args(argv)
    validate_args(ns)
    return ns


def validate_args(args: argparse.Namespace) -> None:
    """Valida argumentos numéricos fornecidos pela CLI."""
    if args.retention_days is not None and args.retention_days < 0:
        raise ValueError("retention-days deve ser >= 0")
    if args.disk_threshold is not None and not 0.0 <= args.disk_threshold <= 100.0:
        raise ValueError("disk-threshold deve ficar entre 0 e 100")
    if args.history is not None and args.history < 1:
        raise ValueError("history deve ser >= 1")


def settings_overrides(args: argparse.Namespace) -> dict:
    """Dicionário de overrides (chaves de settings) com os valores dados na CLI."""
    return {key: getattr(args, dest, None) for dest, key in _SETTINGS_ARGS.items()}


# ========================
# 2. Configuração de logging
# ========================


def get_log_level(args: argparse.Namespace, default: str = "WARNING") -> str:
    """Retorna o nível de logging: --log-level, senão -v/-vv, senão `default`."""
    if getattr(args, "log_level", None):
        return str(args.log_level).upper()
    v = getattr(args, "verbose", 0) or 0
    if v >= 2:
        return "DEBUG"
    if v == 1:
        return "INFO"
    return str(default or "WARNING").upper()
