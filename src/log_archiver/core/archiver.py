"""Arquivador de logs do Jenkins: execução única em quatro fases.

lock -> guarda de disco -> seleção e arquivo -> notificação.

Cada execução termina em exatamente um ``RunOutcome`` e envia exatamente uma
notificação. Os colaboradores externos (notificador, controlador do serviço,
amostrador de disco, relógio) são injetáveis para permitir testes isolados.
"""

import datetime
import logging
import tarfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..config.settings import ArchiverSettings
from ..exporter.promtail import push_run_record
from ..system.lock import LockHeldError, LockUnavailableError, run_lock
from ..system.log_helpers import ArchiveTimeoutError, build_archive, iter_eligible_files
from ..system.logs import append_run_record
from ..system.notify import (
    SUBJECT_ARCHIVED,
    SUBJECT_DISK_FULL,
    SUBJECT_FAILED,
    SUBJECT_SKIPPED,
    MailNotifier,
)
from ..system.time_helpers import archive_name, format_completion
from ..system.treatments import ServiceController, sample_disk_usage

logger = logging.getLogger(__name__)


class RunOutcome(str, Enum):
    """Estados terminais de uma execução."""

    COMPLETED = "completed"
    SKIPPED_CONCURRENT = "skipped_concurrent"
    ABORTED_DISK_FULL = "aborted_disk_full"
    FAILED = "failed"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {
    RunOutcome.COMPLETED: 0,
    RunOutcome.SKIPPED_CONCURRENT: 0,
    RunOutcome.FAILED: 1,
    RunOutcome.ABORTED_DISK_FULL: 2,
}


@dataclass
class RunReport:
    """Resultado de uma execução; também vira o registro JSONL do histórico."""

    outcome: RunOutcome
    started_at: datetime.datetime
    archive_path: Optional[Path] = None
    files_archived: int = 0
    disk_pct: Optional[float] = None
    service_stopped: Optional[bool] = None
    error: Optional[str] = None
    subject: Optional[str] = None
    notified: bool = False

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code

    def to_record(self) -> dict:
        return {
            "ts": self.started_at.isoformat(),
            "outcome": self.outcome.value,
            "exit_code": self.exit_code,
            "archive": str(self.archive_path) if self.archive_path else None,
            "files_archived": self.files_archived,
            "disk_pct": self.disk_pct,
            "service_stopped": self.service_stopped,
            "error": self.error,
            "subject": self.subject,
            "notified": self.notified,
        }


class LogArchiver:
    """Executa uma passagem de arquivo conforme ``ArchiverSettings``."""

    def __init__(
        self,
        settings: ArchiverSettings,
        notifier=None,
        service=None,
        disk_sampler: Callable[[list], float] = sample_disk_usage,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ):
        self.settings = settings
        self.notifier = notifier or MailNotifier(settings.notify_email, command=settings.mail_command)
        self.service = service or ServiceController(settings.service_name, use_sudo=settings.use_sudo)
        self.disk_sampler = disk_sampler
        self.clock = clock

    # ========================
    # 0. Entrada pública
    # ========================

    def run(self) -> RunReport:
        """Executa as quatro fases e devolve o relatório da execução."""
        started = self.clock()
        try:
            with run_lock(self.settings.lock_file):
                report = self._run_locked(started)
        except LockHeldError as exc:
            report = RunReport(RunOutcome.SKIPPED_CONCURRENT, started)
            self._notify(
                report,
                SUBJECT_SKIPPED,
                f"Jenkins log archive run skipped at {format_completion(started)}: "
                f"another run holds the lock {exc.path}.",
            )
        except LockUnavailableError as exc:
            logger.error("Falha ao adquirir lock %s: %s", self.settings.lock_file, exc, exc_info=True)
            report = RunReport(RunOutcome.FAILED, started, error=str(exc))
            self._notify(report, SUBJECT_FAILED, self._failure_body(started, exc))
        self._record(report)
        return report

    def eligible_files(self, now: Optional[datetime.datetime] = None) -> list[Path]:
        """Ficheiros que seriam arquivados agora (sem lock, sem escrita)."""
        now = now or self.clock()
        files = iter_eligible_files(self.settings.log_dir, now.timestamp(), self.settings.retention_days)
        return [f for f in files if not self._inside_backup_dir(f)]

    # ========================
    # 1. Fases sob lock
    # ========================

    def _run_locked(self, started: datetime.datetime) -> RunReport:
        report = self._check_disk(started)
        if report is not None:
            return report
        return self._archive(started)

    def _check_disk(self, started: datetime.datetime) -> Optional[RunReport]:
        """Guarda de disco; devolve um relatório terminal ou None para seguir."""
        s = self.settings
        try:
            pct = self.disk_sampler([s.backup_dir, s.log_dir])
        except (OSError, ValueError) as exc:
            logger.error("Falha ao amostrar uso de disco: %s", exc, exc_info=True)
            report = RunReport(RunOutcome.FAILED, started, error=f"disk usage sample failed: {exc}")
            self._notify(report, SUBJECT_FAILED, self._failure_body(started, exc))
            return report

        if pct <= s.disk_threshold_pct:
            logger.debug("Uso de disco %.1f%% dentro do limiar %.1f%%", pct, s.disk_threshold_pct)
            return None

        logger.critical("Uso de disco %.1f%% acima de %.1f%%; abortando", pct, s.disk_threshold_pct)
        report = RunReport(RunOutcome.ABORTED_DISK_FULL, started, disk_pct=pct)
        self._notify(
            report,
            SUBJECT_DISK_FULL,
            f"Disk usage is {pct:.1f}% (threshold {s.disk_threshold_pct:.1f}%) on the filesystem "
            f"hosting {s.backup_dir}. Log archiving aborted; stopping service '{s.service_name}'.",
        )
        report.service_stopped = bool(self.service.stop())
        if not report.service_stopped:
            logger.error("Não foi possível parar o serviço %s", s.service_name)
        return report

    def _archive(self, started: datetime.datetime) -> RunReport:
        s = self.settings
        report = RunReport(RunOutcome.COMPLETED, started)
        try:
            files = self.eligible_files(started)
            if files:
                dst = s.backup_dir / archive_name(started)
                build_archive(files, s.log_dir, dst, timeout=s.archive_timeout_sec)
                report.archive_path = dst
                report.files_archived = len(files)
            else:
                logger.info("Nenhum ficheiro com mais de %d dias em %s", s.retention_days, s.log_dir)
        except (OSError, tarfile.TarError, ArchiveTimeoutError) as exc:
            logger.error("Falha ao arquivar logs de %s: %s", s.log_dir, exc, exc_info=True)
            report = RunReport(RunOutcome.FAILED, started, error=str(exc))
            self._notify(report, SUBJECT_FAILED, self._failure_body(started, exc))
            return report

        finished = format_completion(self.clock())
        if report.archive_path:
            body = (
                f"Jenkins logs archived at {finished}: {report.files_archived} file(s) older than "
                f"{s.retention_days} days -> {report.archive_path}"
            )
        else:
            body = f"Jenkins log archive run completed at {finished}: no files older than {s.retention_days} days."
        self._notify(report, SUBJECT_ARCHIVED, body)
        return report

    # ========================
    # 2. Auxiliares
    # ========================

    def _inside_backup_dir(self, p: Path) -> bool:
        try:
            return p.resolve().is_relative_to(self.settings.backup_dir.resolve())
        except OSError:
            return False

    def _failure_body(self, started: datetime.datetime, exc: BaseException) -> str:
        return (
            f"Jenkins log archive run started at {format_completion(started)} failed: "
            f"{type(exc).__name__}: {exc}. No archive was produced."
        )

    def _notify(self, report: RunReport, subject: str, body: str) -> None:
        """Envia a notificação única da execução (best-effort)."""
        report.subject = subject
        try:
            report.notified = bool(self.notifier.send(subject, body))
        except Exception as exc:
            # transporte de notificação nunca escala para falha da execução
            logger.warning("Notificação '%s' falhou: %s", subject, exc, exc_info=True)
            report.notified = False

    def _record(self, report: RunReport) -> None:
        """Registra o estado terminal no log, no histórico JSONL e no Loki."""
        record = report.to_record()
        log = logger.info if report.exit_code == 0 else logger.error
        log("Execução terminada: %s (exit=%d)", report.outcome.value, report.exit_code)
        append_run_record(self.settings.state_dir, record)
        if self.settings.loki_url:
            push_run_record(self.settings.loki_url, record, self.settings.loki_labels)
