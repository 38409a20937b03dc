from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accountops.config import Settings, load_configuration, resolve_config_path


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "accountops.yaml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


def test_defaults_match_working_directory_layout() -> None:
    configuration = load_configuration(None)
    settings = configuration.settings

    assert settings.actions_log == Path("logs/actions.log")
    assert settings.errors_log == Path("logs/errors.log")
    assert settings.created_users_report == Path("reports/created_users.txt")
    assert settings.password_changes_report == Path("reports/password_changes.txt")
    assert settings.accounts_file == Path("accounts.txt")
    assert settings.default_shell == "/bin/bash"
    assert settings.home_mode == 0o700
    assert settings.secret_bytes == 14
    assert settings.privileged is False
    assert list(configuration.hosts.list()) == []


def test_relative_paths_resolve_against_config_directory(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        paths:
          log_dir: var/log
          accounts_file: /etc/accountops/accounts.txt
        defaults:
          shell: /bin/zsh
          home_mode: "0750"
          secret_bytes: 20
        """,
    )

    settings = load_configuration(path).settings

    assert settings.log_dir == tmp_path / "var/log"
    assert settings.accounts_file == Path("/etc/accountops/accounts.txt")
    assert settings.backup_dir == Path("backups")
    assert settings.default_shell == "/bin/zsh"
    assert settings.home_mode == 0o750
    assert settings.secret_bytes == 20


def test_hosts_are_loaded_into_registry(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        hosts:
          - name: build01
            hostname: build01.example.com
            username: root
            private_key_path: keys/id_ed25519
            allow_unknown_hosts: true
        """,
    )

    host = load_configuration(path).hosts.get("build01")

    assert host.hostname == "build01.example.com"
    assert host.port == 22
    assert host.private_key_path == tmp_path / "keys/id_ed25519"
    assert host.allow_unknown_hosts is True


def test_unknown_host_raises_key_error(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "hosts: []\n")

    with pytest.raises(KeyError):
        load_configuration(path).hosts.get("missing")


def test_host_missing_fields_rejected(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        hosts:
          - name: build01
            hostname: build01.example.com
        """,
    )

    with pytest.raises(ValueError) as excinfo:
        load_configuration(path)
    assert "private_key_path" in str(excinfo.value)


@pytest.mark.parametrize(
    "body",
    [
        "defaults:\n  secret_bytes: 0\n",
        "defaults:\n  home_mode: rwx\n",
        "- just\n- a list\n",
        "paths: [unbalanced\n",
    ],
)
def test_invalid_configuration_rejected(tmp_path: Path, body: str) -> None:
    path = _write_config(tmp_path, body)

    with pytest.raises(ValueError):
        load_configuration(path)


def test_resolve_config_path_precedence(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert resolve_config_path(None, env_value="") is None
    assert resolve_config_path(None, env_value="/etc/env.yaml") == Path("/etc/env.yaml")
    assert resolve_config_path("cli.yaml", env_value="/etc/env.yaml") == Path("cli.yaml")

    (tmp_path / "accountops.yaml").write_text("{}\n", encoding="utf-8")
    assert resolve_config_path(None, env_value="") == Path("accountops.yaml")


def test_ensure_directories_creates_layout(tmp_path: Path) -> None:
    settings = Settings(
        log_dir=tmp_path / "logs",
        backup_dir=tmp_path / "backups",
        report_dir=tmp_path / "reports",
    )

    settings.ensure_directories()

    assert all((tmp_path / name).is_dir() for name in ("logs", "backups", "reports"))
