import subprocess
from types import SimpleNamespace

import pytest

from log_archiver.system import treatments


def test_disk_usage_pct_uses_psutil(monkeypatch, tmp_path):
    """disk_usage_pct devolve o percent de psutil.disk_usage."""
    seen = []

    def fake_usage(p):
        seen.append(p)
        return SimpleNamespace(percent=42.5)

    monkeypatch.setattr(treatments.psutil, "disk_usage", fake_usage)
    assert treatments.disk_usage_pct(tmp_path) == 42.5
    assert seen == [str(tmp_path)]


def test_sample_disk_usage_takes_max(monkeypatch, tmp_path):
    """O maior uso entre os caminhos prevalece."""
    values = {str(tmp_path / "a"): 40.0, str(tmp_path / "b"): 93.0}
    monkeypatch.setattr(treatments.psutil, "disk_usage", lambda p: SimpleNamespace(percent=values[p]))
    assert treatments.sample_disk_usage([tmp_path / "a", tmp_path / "b"]) == 93.0
    with pytest.raises(ValueError):
        treatments.sample_disk_usage([])


def test_sample_disk_usage_real_path(tmp_path):
    """Amostra real fica entre 0 e 100."""
    pct = treatments.sample_disk_usage([tmp_path])
    assert 0.0 <= pct <= 100.0


def test_stop_command_with_sudo():
    """use_sudo prefixa sudo -n."""
    assert treatments.stop_command("jenkins") == ["systemctl", "stop", "jenkins"]
    assert treatments.stop_command("jenkins", True) == ["sudo", "-n", "systemctl", "stop", "jenkins"]


def test_stop_service_success(monkeypatch):
    """stop_service chama systemctl e devolve True com exit 0."""
    calls = []
    monkeypatch.setattr("log_archiver.system.helpers.shutil.which", lambda c: f"/usr/bin/{c}")

    def fake_run(cmd, **kw):
        calls.append(cmd)
        return SimpleNamespace(returncode=0, stderr="")

    monkeypatch.setattr(treatments.subprocess, "run", fake_run)
    assert treatments.stop_service("jenkins") is True
    assert calls == [["systemctl", "stop", "jenkins"]]


def test_stop_service_failures(monkeypatch):
    """Código != 0, timeout ou comando ausente devolvem False."""
    monkeypatch.setattr("log_archiver.system.helpers.shutil.which", lambda c: f"/usr/bin/{c}")
    monkeypatch.setattr(treatments.subprocess, "run", lambda cmd, **kw: SimpleNamespace(returncode=1, stderr="denied"))
    assert treatments.stop_service("jenkins") is False

    def timeout(cmd, **kw):
        raise subprocess.TimeoutExpired(cmd, 1)

    monkeypatch.setattr(treatments.subprocess, "run", timeout)
    assert treatments.stop_service("jenkins") is False

    monkeypatch.setattr("log_archiver.system.helpers.shutil.which", lambda c: None)
    assert treatments.stop_service("jenkins") is False


def test_service_controller_delegates(monkeypatch):
    """ServiceController.stop usa o serviço e sudo configurados."""
    seen = []
    monkeypatch.setattr(treatments, "stop_service", lambda s, u, t: seen.append((s, u)) or True)
    assert treatments.ServiceController("jenkins", use_sudo=True).stop() is True
    assert seen == [("jenkins", True)]
