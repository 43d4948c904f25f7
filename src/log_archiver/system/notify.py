"""Notificação do operador via comando ``mail``.

Fire-and-forget: falhas de entrega são registradas em WARNING e nunca
alteram o resultado da execução.
"""

import logging
import subprocess

from .helpers import resolve_command

logger = logging.getLogger(__name__)

SUBJECT_SKIPPED = "Skipped"
SUBJECT_DISK_FULL = "CRITICAL: Disk Full"
SUBJECT_ARCHIVED = "Jenkins Logs Archived"
SUBJECT_FAILED = "FAILED: Jenkins Logs Archive"

MAIL_TIMEOUT_SEC = 30


class MailNotifier:
    """Envia (subject, body) para `recipient` com ``mail -s``."""

    def __init__(self, recipient: str, command: str = "mail", timeout: float = MAIL_TIMEOUT_SEC):
        self.recipient = recipient
        self.command = command
        self.timeout = timeout

    def send(self, subject: str, body: str) -> bool:
        """Envia a mensagem; retorna True quando o transporte aceitou."""
        cmd = resolve_command([self.command, "-s", subject, self.recipient])
        if cmd is None:
            logger.warning("notify: comando %s indisponível; notificação '%s' não enviada", self.command, subject)
            return False
        try:
            proc = subprocess.run(cmd, input=body, capture_output=True, text=True, timeout=self.timeout)
        except (subprocess.SubprocessError, OSError) as exc:
            logger.warning("notify: %s falhou: %s", self.command, exc)
            return False
        if proc.returncode != 0:
            logger.warning("notify: %s => %s: %s", self.command, proc.returncode, (proc.stderr or "").strip())
            return False
        logger.info("notify: '%s' enviado para %s", subject, self.recipient)
        return True
