"""Tratamentos de sistema: amostra de uso de disco e parada do serviço.

A parada do serviço é a única ação privilegiada do arquivador. Com
``use_sudo`` o comando vira ``sudo -n systemctl stop <service>``: o sudoers
deve conceder exatamente esse comando e nada mais.
"""

import logging
import subprocess
from pathlib import Path

import psutil

from .helpers import resolve_command

logger = logging.getLogger(__name__)

STOP_TIMEOUT_SEC = 60


def disk_usage_pct(path: Path) -> float:
    """Retorne a percentagem usada do filesystem que contém `path`.

    Lança as exceções de `psutil.disk_usage` (OSError) para que o chamador
    possa tratar.
    """
    return float(psutil.disk_usage(str(path)).percent)


def sample_disk_usage(paths) -> float:
    """Retorne o maior uso (%) entre os filesystems de `paths`."""
    samples = [disk_usage_pct(Path(p)) for p in paths]
    if not samples:
        raise ValueError("nenhum caminho para amostrar uso de disco")
    pct = max(samples)
    logger.debug("sample_disk_usage: %s -> %.1f%%", [str(p) for p in paths], pct)
    return pct


def stop_command(service: str, use_sudo: bool = False) -> list[str]:
    """Comando usado para parar `service`."""
    cmd = ["systemctl", "stop", service]
    if use_sudo:
        cmd = ["sudo", "-n"] + cmd
    return cmd


def stop_service(service: str, use_sudo: bool = False, timeout: float = STOP_TIMEOUT_SEC) -> bool:
    """Pare `service` via systemctl. Retorna True em sucesso.

    Falhas (comando ausente, código != 0, timeout) são registradas e
    devolvem False; a decisão de abortar a execução já foi tomada.
    """
    cmd = resolve_command(stop_command(service, use_sudo))
    if cmd is None:
        logger.error("stop_service: comando indisponível para parar %s", service)
        return False
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (subprocess.SubprocessError, OSError) as exc:
        logger.error("stop_service: %s falhou: %s", cmd, exc, exc_info=True)
        return False
    if proc.returncode != 0:
        logger.error("stop_service: %s => %s: %s", cmd, proc.returncode, (proc.stderr or "").strip())
        return False
    logger.warning("Serviço %s parado para proteger o disco", service)
    return True


class ServiceController:
    """Colaborador que para o serviço produtor de logs (injetável em testes)."""

    def __init__(self, service: str, use_sudo: bool = False, timeout: float = STOP_TIMEOUT_SEC):
        self.service = service
        self.use_sudo = use_sudo
        self.timeout = timeout

    def stop(self) -> bool:
        return stop_service(self.service, self.use_sudo, self.timeout)
