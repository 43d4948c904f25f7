# conftest.py
# Configuração global para pytest: adiciona 'src' ao sys.path e fornece
# fixtures partilhadas (settings em tmp_path e colaboradores falsos).
import os
import sys
import time
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

DAY = 24 * 60 * 60


class FakeNotifier:
    """Notificador que apenas acumula (subject, body)."""

    def __init__(self, result=True):
        self.sent = []
        self.result = result

    def send(self, subject, body):
        self.sent.append((subject, body))
        return self.result


class FakeService:
    """Controlador de serviço que conta chamadas a stop()."""

    def __init__(self, result=True):
        self.stops = 0
        self.result = result

    def stop(self):
        self.stops += 1
        return self.result


def age_file(path: Path, seconds: float, now: float | None = None) -> Path:
    """Cria `path` (se preciso) com mtime `seconds` no passado relativo a `now`."""
    now = time.time() if now is None else now
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(f"log {path.name}\n", encoding="utf-8")
    ts = now - seconds
    os.utime(path, (ts, ts))
    return path


@pytest.fixture
def make_settings(tmp_path):
    """Fábrica de ArchiverSettings apontando para diretórios em tmp_path."""
    from log_archiver.config.settings import ArchiverSettings

    def _make(**overrides):
        base = {
            "log_dir": tmp_path / "jenkins" / "logs",
            "backup_dir": tmp_path / "backups",
            "lock_file": tmp_path / "run" / "archiver.lock",
            "notify_email": "ops@example.com",
            "state_dir": tmp_path / "state",
        }
        base.update(overrides)
        base["log_dir"].mkdir(parents=True, exist_ok=True)
        base["backup_dir"].mkdir(parents=True, exist_ok=True)
        return ArchiverSettings(**base)

    return _make


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def fake_service():
    return FakeService()


@pytest.fixture
def age():
    """Expõe `age_file` aos testes."""
    return age_file
