"""Helpers de tempo: carimbo do artefato e corte de retenção."""

import datetime

DAY_SECONDS = 24 * 60 * 60

ARCHIVE_PREFIX = "jenkins_logs_"
ARCHIVE_SUFFIX = ".tar.gz"
ARCHIVE_STAMP_FORMAT = "%Y%m%d_%H%M%S"


def archive_stamp(dt: datetime.datetime) -> str:
    """Formata `dt` como ``YYYYMMDD_HHMMSS`` (granularidade de segundo)."""
    return dt.strftime(ARCHIVE_STAMP_FORMAT)


def archive_name(dt: datetime.datetime) -> str:
    """Nome do artefato da execução iniciada em `dt`.

    Ex.: ``jenkins_logs_20261017_030000.tar.gz``.
    """
    return f"{ARCHIVE_PREFIX}{archive_stamp(dt)}{ARCHIVE_SUFFIX}"


def retention_cutoff(now_ts: float, retention_days: int) -> float:
    """Epoch abaixo do qual um ficheiro é elegível para arquivo.

    Elegível significa ``mtime < cutoff`` (estritamente): um ficheiro com
    exatamente `retention_days` de idade fica de fora.
    """
    return float(now_ts) - int(retention_days) * DAY_SECONDS


def format_completion(dt: datetime.datetime | None = None) -> str:
    """Timestamp legível (ISO, segundos) usado nos corpos das notificações."""
    if dt is None:
        dt = datetime.datetime.now()
    return dt.replace(microsecond=0).isoformat(sep=" ")
