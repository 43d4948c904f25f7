"""Configurações do arquivador de logs do Jenkins.

Este módulo centraliza diretórios, limiares e colaboradores externos (mail,
systemctl). Carrega valores a partir de ``DEFAULTS`` e permite overrides via
arquivo ``.env`` ou variáveis de ambiente (prefixo ``ARCHIVER_*``).
As funções públicas principais são:

- ``load_settings()`` -> dicionário bruto (defaults + .env + ambiente).
- ``validate_settings()`` -> dicionário com tipos e limites verificados.
- ``build_settings()`` -> ``ArchiverSettings`` imutável, passado ao arquivador.

Nenhum valor é lido do ambiente fora daqui: o arquivador recebe tudo via
``ArchiverSettings``.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from ..system.helpers import read_env_file

# ========================
# Constantes e padrões globais
# ========================

ENV_PREFIX = "ARCHIVER_"

DEFAULTS = {
    "log_dir": "/var/lib/jenkins/logs",
    "backup_dir": "/var/backups/jenkins",
    "lock_file": "/tmp/jenkins_log_archiver.lock",
    "notify_email": "",
    "retention_days": 7,
    "disk_threshold_pct": 90.0,
    "service_name": "jenkins",
    "use_sudo": False,
    "mail_command": "mail",
    "archive_timeout_sec": 600,
    "state_dir": "logs",
    "log_level": "WARNING",
    "loki_url": "",
    "loki_labels": "job=jenkins-log-archiver",
}

# chave de settings -> variável de ambiente
ENV_KEYS = {
    "log_dir": "ARCHIVER_LOG_DIR",
    "backup_dir": "ARCHIVER_BACKUP_DIR",
    "lock_file": "ARCHIVER_LOCK_FILE",
    "notify_email": "ARCHIVER_NOTIFY_EMAIL",
    "retention_days": "ARCHIVER_RETENTION_DAYS",
    "disk_threshold_pct": "ARCHIVER_DISK_THRESHOLD_PCT",
    "service_name": "ARCHIVER_SERVICE_NAME",
    "use_sudo": "ARCHIVER_USE_SUDO",
    "mail_command": "ARCHIVER_MAIL_COMMAND",
    "archive_timeout_sec": "ARCHIVER_ARCHIVE_TIMEOUT_SEC",
    "state_dir": "ARCHIVER_STATE_DIR",
    "log_level": "ARCHIVER_LOG_LEVEL",
    "loki_url": "ARCHIVER_LOKI_URL",
    "loki_labels": "ARCHIVER_LOKI_LABELS",
}

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ArchiverSettings:
    """Configuração completa de uma execução do arquivador.

    Todos os caminhos e limiares vêm daqui; o arquivador não consulta o
    ambiente diretamente.
    """

    log_dir: Path
    backup_dir: Path
    lock_file: Path
    notify_email: str
    retention_days: int = 7
    disk_threshold_pct: float = 90.0
    service_name: str = "jenkins"
    use_sudo: bool = False
    mail_command: str = "mail"
    archive_timeout_sec: float = 600.0
    state_dir: Path = Path("logs")
    log_level: str = "WARNING"
    loki_url: str = ""
    loki_labels: str = "job=jenkins-log-archiver"


# ========================
# 1. Carregamento das configurações
# ========================


def load_settings(env_path: Path | str | None = None) -> dict:
    """Carrega configurações combinando DEFAULTS + .env + ambiente.

    As variáveis do processo sobrescrevem o arquivo `.env`. Os valores ficam
    como vieram (strings); use ``validate_settings`` para normalizar.
    """
    if env_path is None:
        env_path = os.getenv("ARCHIVER_ENV_FILE", ".env")
    env_items = _merge_env_items(Path(env_path))

    settings = dict(DEFAULTS)
    for key, env_var in ENV_KEYS.items():
        if env_var in env_items:
            settings[key] = env_items[env_var]
    return settings


# Auxilia load_settings; criado para unir variáveis do ambiente e .env
def _merge_env_items(env_path: Path) -> dict:
    """Retorna um mapeamento combinado de `.env` e env vars do processo."""
    import logging

    env_items = read_env_file(env_path)
    if env_items == {} and env_path.exists():
        logging.getLogger(__name__).warning("Erro ou ficheiro .env vazio em %s", env_path)
    env_items.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})
    return env_items


# ========================
# 2. Validação e normalização
# ========================


def _coerce_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _coerce_number(key: str, value, kind):
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"valor inválido para {key}: {value!r}") from exc


def validate_settings(settings: dict, require_notify: bool = True) -> dict:
    """Normaliza e valida o dicionário de configurações.

    Converte tipos e garante limites: retenção >= 0, limiar de disco entre
    0 e 100, timeout > 0 e destinatário de notificação não vazio (exceto com
    ``require_notify=False``, usado pelos modos que não notificam).
    """
    import logging

    if not isinstance(settings, dict):
        raise TypeError("settings deve ser um dict")

    out = dict(DEFAULTS)
    out.update(settings)

    out["retention_days"] = _coerce_number("retention_days", out["retention_days"], int)
    if out["retention_days"] < 0:
        raise ValueError("retention_days deve ser >= 0")

    out["disk_threshold_pct"] = _coerce_number("disk_threshold_pct", out["disk_threshold_pct"], float)
    if not 0.0 <= out["disk_threshold_pct"] <= 100.0:
        raise ValueError("disk_threshold_pct deve ficar entre 0 e 100")

    out["archive_timeout_sec"] = _coerce_number("archive_timeout_sec", out["archive_timeout_sec"], float)
    if out["archive_timeout_sec"] <= 0:
        raise ValueError("archive_timeout_sec deve ser > 0")

    out["use_sudo"] = _coerce_bool(out["use_sudo"])

    for key in ("log_dir", "backup_dir", "lock_file", "state_dir"):
        raw = str(out[key] or "").strip()
        if not raw:
            raise ValueError(f"{key} não pode ser vazio")
        out[key] = Path(raw)

    out["notify_email"] = str(out["notify_email"] or "").strip()
    if require_notify and not out["notify_email"]:
        raise ValueError("notify_email (ARCHIVER_NOTIFY_EMAIL) é obrigatório")

    out["service_name"] = str(out["service_name"] or "").strip()
    if not out["service_name"]:
        raise ValueError("service_name não pode ser vazio")

    out["log_level"] = str(out["log_level"] or "WARNING").upper()
    logging.getLogger(__name__).debug("Configurações validadas e normalizadas")
    return out


def build_settings(
    overrides: dict | None = None,
    env_path: Path | str | None = None,
    require_notify: bool = True,
) -> ArchiverSettings:
    """Monta ``ArchiverSettings`` a partir do ambiente e de overrides explícitos.

    ``overrides`` (normalmente vindos da CLI) têm precedência; chaves com
    valor ``None`` são ignoradas.
    """
    raw = load_settings(env_path)
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None and k in DEFAULTS})
    validated = validate_settings(raw, require_notify=require_notify)
    return ArchiverSettings(**{k: validated[k] for k in DEFAULTS})
