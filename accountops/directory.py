"""Access to the operating system's account and group tables."""
from __future__ import annotations

import abc
import subprocess
from contextlib import suppress
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol, Sequence

from .runner import CommandResult
from .ssh import SSHError

HOME_ROOT = PurePosixPath("/home")

_TRANSPORT_ERRORS = (OSError, subprocess.SubprocessError, SSHError)


class AccountDirectoryError(RuntimeError):
    """Raised when an account operation cannot be carried out."""


class AccountCommandError(AccountDirectoryError):
    """Raised when an account administration command fails."""

    def __init__(self, message: str, result: CommandResult | None = None) -> None:
        detail = result.stderr.strip() if result is not None else ""
        super().__init__(f"{message}: {detail}" if detail else message)
        self.result = result


class CommandRunner(Protocol):
    def run(self, args: Sequence[str], *, input: Optional[str] = None) -> CommandResult: ...

    def fetch(self, args: Sequence[str], destination: Path) -> CommandResult: ...

    def is_privileged(self) -> bool: ...


class AccountDirectory(abc.ABC):
    """Capabilities the account operations need from the host."""

    @abc.abstractmethod
    def exists(self, username: str) -> bool:
        """Return ``True`` when ``username`` is present in the account table."""

    @abc.abstractmethod
    def create(self, username: str, *, shell: str) -> None:
        """Create ``username`` with a home directory and login ``shell``."""

    @abc.abstractmethod
    def delete(self, username: str) -> None:
        """Remove ``username`` together with its home directory."""

    @abc.abstractmethod
    def set_secret(self, username: str, secret: str) -> None:
        ...

    @abc.abstractmethod
    def restrict_home(self, username: str, mode: int) -> None:
        ...

    @abc.abstractmethod
    def archive_home(self, username: str, destination: Path) -> None:
        """Write a gzip-compressed tarball of the home directory to ``destination``."""

    @abc.abstractmethod
    def group_exists(self, group: str) -> bool:
        ...

    @abc.abstractmethod
    def add_to_group(self, username: str, group: str) -> None:
        ...

    @abc.abstractmethod
    def remove_from_group(self, username: str, group: str) -> None:
        ...

    @abc.abstractmethod
    def primary_group_of(self, username: str) -> str:
        ...


class SystemAccountDirectory(AccountDirectory):
    """Account directory backed by the shadow-utils command set."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def exists(self, username: str) -> bool:
        return self._query(["id", username]).exit_status == 0

    def create(self, username: str, *, shell: str) -> None:
        self._execute(["useradd", "-m", "-s", shell, username], f"create user '{username}'")

    def delete(self, username: str) -> None:
        self._execute(["userdel", "-r", username], f"delete user '{username}'")

    def set_secret(self, username: str, secret: str) -> None:
        if any(ch in secret for ch in "\r\n"):
            raise AccountDirectoryError("Password must not contain newline characters.")
        self._execute(
            ["chpasswd"],
            f"set the password for '{username}'",
            input=f"{username}:{secret}\n",
        )

    def restrict_home(self, username: str, mode: int) -> None:
        home = self.home_directory(username)
        self._execute(["chmod", format(mode, "o"), str(home)], f"restrict permissions on {home}")

    def archive_home(self, username: str, destination: Path) -> None:
        home = self.home_directory(username)
        command = ["tar", "-czf", "-", "-C", "/", str(home.relative_to("/"))]
        try:
            result = self._runner.fetch(command, destination)
        except _TRANSPORT_ERRORS as exc:
            with suppress(FileNotFoundError):
                destination.unlink()
            raise AccountDirectoryError(f"Failed to archive {home}: {exc}") from exc
        if result.exit_status != 0:
            with suppress(FileNotFoundError):
                destination.unlink()
            raise AccountCommandError(f"Failed to archive {home}", result)

    def group_exists(self, group: str) -> bool:
        return self._query(["getent", "group", group]).exit_status == 0

    def add_to_group(self, username: str, group: str) -> None:
        self._execute(["usermod", "-aG", group, username], f"add '{username}' to group '{group}'")

    def remove_from_group(self, username: str, group: str) -> None:
        self._execute(["gpasswd", "-d", username, group], f"remove '{username}' from group '{group}'")

    def primary_group_of(self, username: str) -> str:
        result = self._execute(["id", "-gn", username], f"look up the primary group of '{username}'")
        return result.stdout.strip()

    def home_directory(self, username: str) -> PurePosixPath:
        """Return the home directory recorded in the passwd database."""

        result = self._query(["getent", "passwd", username])
        fields: List[str] = result.stdout.strip().split(":")
        if result.exit_status == 0 and len(fields) >= 7 and fields[5]:
            return PurePosixPath(fields[5])
        return HOME_ROOT / username

    def _query(self, command: List[str]) -> CommandResult:
        try:
            return self._runner.run(command)
        except _TRANSPORT_ERRORS as exc:
            raise AccountDirectoryError(f"Failed to run {command[0]}: {exc}") from exc

    def _execute(self, command: List[str], action: str, *, input: Optional[str] = None) -> CommandResult:
        try:
            result = self._runner.run(command, input=input)
        except _TRANSPORT_ERRORS as exc:
            raise AccountDirectoryError(f"Failed to {action}: {exc}") from exc

        if result.exit_status != 0:
            raise AccountCommandError(f"Failed to {action}", result)
        return result


__all__ = [
    "AccountDirectory",
    "AccountDirectoryError",
    "AccountCommandError",
    "CommandRunner",
    "SystemAccountDirectory",
]
