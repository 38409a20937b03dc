"""Configuration management for the account administration tool."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml

CONFIG_ENV = "ACCOUNTOPS_CONFIG"
DEFAULT_CONFIG_NAME = "accountops.yaml"


def _resolve_path(value: object, base_path: Path | None) -> Path:
    raw = Path(str(value)).expanduser()
    if raw.is_absolute() or base_path is None:
        return raw
    return base_path / raw


def _parse_mode(value: object) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 8)
    except ValueError as exc:
        raise ValueError(f"home_mode must be an octal permission string, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Filesystem layout and command defaults shared by every operation."""

    log_dir: Path = Path("logs")
    backup_dir: Path = Path("backups")
    report_dir: Path = Path("reports")
    accounts_file: Path = Path("accounts.txt")
    default_shell: str = "/bin/bash"
    home_mode: int = 0o700
    secret_bytes: int = 14
    confirm_token: str = "y"
    command_timeout: Optional[int] = None
    privileged: bool = False

    @property
    def actions_log(self) -> Path:
        return self.log_dir / "actions.log"

    @property
    def errors_log(self) -> Path:
        return self.log_dir / "errors.log"

    @property
    def created_users_report(self) -> Path:
        return self.report_dir / "created_users.txt"

    @property
    def password_changes_report(self) -> Path:
        return self.report_dir / "password_changes.txt"

    def ensure_directories(self) -> None:
        for directory in (self.log_dir, self.backup_dir, self.report_dir):
            directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from the ``paths`` and ``defaults`` sections."""
        paths = data.get("paths") or {}
        defaults = data.get("defaults") or {}
        if not isinstance(paths, dict) or not isinstance(defaults, dict):
            raise ValueError("The 'paths' and 'defaults' sections must be mappings")

        base = Settings()
        resolved = {
            name: _resolve_path(paths[name], base_path) if paths.get(name) else getattr(base, name)
            for name in ("log_dir", "backup_dir", "report_dir", "accounts_file")
        }

        secret_bytes = int(defaults.get("secret_bytes", base.secret_bytes))
        if secret_bytes <= 0:
            raise ValueError("secret_bytes must be greater than zero")
        timeout = defaults.get("command_timeout")

        return Settings(
            log_dir=resolved["log_dir"],
            backup_dir=resolved["backup_dir"],
            report_dir=resolved["report_dir"],
            accounts_file=resolved["accounts_file"],
            default_shell=str(defaults.get("shell", base.default_shell)),
            home_mode=_parse_mode(defaults.get("home_mode", base.home_mode)),
            secret_bytes=secret_bytes,
            confirm_token=str(defaults.get("confirm_token", base.confirm_token)),
            command_timeout=int(timeout) if timeout is not None else None,
        )


@dataclass(frozen=True)
class HostConfig:
    """Configuration for a remote host whose accounts are managed over SSH."""

    name: str
    hostname: str
    username: str
    private_key_path: Path
    port: int = 22
    passphrase: Optional[str] = None
    allow_unknown_hosts: bool = False
    known_hosts_file: Optional[Path] = None

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "HostConfig":
        """Create a :class:`HostConfig` from raw dictionary data."""
        required_fields = {"name", "hostname", "username", "private_key_path"}
        missing = required_fields - data.keys()
        if missing:
            raise ValueError(f"Missing required host configuration fields: {', '.join(sorted(missing))}")

        known_hosts = data.get("known_hosts_file")
        return HostConfig(
            name=str(data["name"]),
            hostname=str(data["hostname"]),
            username=str(data["username"]),
            port=int(data.get("port", 22)),
            private_key_path=_resolve_path(data["private_key_path"], base_path),
            passphrase=str(data["passphrase"]) if data.get("passphrase") is not None else None,
            allow_unknown_hosts=bool(data.get("allow_unknown_hosts", False)),
            known_hosts_file=_resolve_path(known_hosts, base_path) if known_hosts else None,
        )


class HostRegistry:
    """Read-only registry of configured remote hosts."""

    def __init__(self, hosts: Iterable[HostConfig]) -> None:
        self._hosts: Dict[str, HostConfig] = {host.name: host for host in hosts}

    def get(self, name: str) -> HostConfig:
        try:
            return self._hosts[name]
        except KeyError as exc:
            raise KeyError(f"Unknown host '{name}'") from exc

    def list(self) -> Iterable[HostConfig]:
        return self._hosts.values()


@dataclass(frozen=True)
class Configuration:
    settings: Settings
    hosts: HostRegistry


def load_configuration(config_path: Path | None) -> Configuration:
    """Load settings and hosts from a YAML file, or the defaults when ``config_path`` is ``None``."""
    if config_path is None:
        return Configuration(settings=Settings(), hosts=HostRegistry([]))

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Unable to parse {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")

    config_dir = config_path.parent
    hosts_raw = raw.get("hosts") or []
    hosts = [HostConfig.from_dict(item, base_path=config_dir) for item in hosts_raw]
    return Configuration(
        settings=Settings.from_dict(raw, base_path=config_dir),
        hosts=HostRegistry(hosts),
    )


def resolve_config_path(cli_value: Optional[str], env_value: Optional[str] = None) -> Path | None:
    """Resolve which configuration file to load.

    An explicit value (command line first, then ``ACCOUNTOPS_CONFIG``) is
    returned even when the file is missing so that the caller can report it.
    Without one, ``./accountops.yaml`` is used only if it exists.
    """
    if env_value is None:
        env_value = os.getenv(CONFIG_ENV)
    explicit = cli_value or env_value
    if explicit:
        return Path(explicit).expanduser()

    candidate = Path(DEFAULT_CONFIG_NAME)
    return candidate if candidate.is_file() else None


__all__ = [
    "Settings",
    "HostConfig",
    "HostRegistry",
    "Configuration",
    "load_configuration",
    "resolve_config_path",
]
