"""SSH transport for administering accounts on a remote host."""
from __future__ import annotations

import shlex
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Optional, Sequence

import paramiko

from .runner import CommandResult

_CHUNK_SIZE = 65536


class SSHError(RuntimeError):
    """Raised when an SSH operation fails."""


@dataclass
class SSHTarget:
    """Connection parameters for a remote host."""

    hostname: str
    port: int
    username: str
    private_key_path: Path
    passphrase: Optional[str] = None
    allow_unknown_hosts: bool = False
    known_hosts_path: Optional[Path] = None


def _load_private_key(path: Path, passphrase: str | None) -> paramiko.PKey:
    key_classes = (
        paramiko.Ed25519Key,
        paramiko.ECDSAKey,
        paramiko.RSAKey,
    )
    for key_cls in key_classes:
        try:
            return key_cls.from_private_key_file(str(path), password=passphrase)
        except FileNotFoundError as exc:
            raise SSHError(f"Private key file not found: {path}") from exc
        except paramiko.PasswordRequiredException as exc:
            raise SSHError("The private key is encrypted and requires a passphrase") from exc
        except paramiko.SSHException:
            continue
    raise SSHError("Unable to load private key - unsupported format or invalid passphrase")


class SSHClientFactory:
    """Factory that builds connected SSH clients for a target."""

    def __init__(self, target: SSHTarget) -> None:
        self._target = target

    @contextmanager
    def connect(self) -> Generator[paramiko.SSHClient, None, None]:
        client = paramiko.SSHClient()
        if self._target.known_hosts_path:
            client.load_host_keys(str(self._target.known_hosts_path))
        else:
            client.load_system_host_keys()

        if self._target.allow_unknown_hosts:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.RejectPolicy())

        pkey = _load_private_key(self._target.private_key_path, self._target.passphrase)
        try:
            client.connect(
                hostname=self._target.hostname,
                port=self._target.port,
                username=self._target.username,
                pkey=pkey,
                timeout=20,
                look_for_keys=False,
                allow_agent=False,
            )
            yield client
        except paramiko.AuthenticationException as exc:
            raise SSHError(f"Authentication with {self._target.hostname} failed") from exc
        except paramiko.SSHException as exc:
            message = str(exc)
            if "not found in known_hosts" in message:
                raise SSHError(
                    f"Host key verification failed for {self._target.hostname}. Add the host to "
                    "the configured known hosts file or set allow_unknown_hosts for it."
                ) from exc
            raise SSHError(f"SSH connection failed: {message}") from exc
        finally:
            client.close()


class SSHCommandRunner:
    """Executes account commands on a remote host over SSH."""

    def __init__(self, factory: SSHClientFactory, timeout: Optional[int] = None) -> None:
        self._factory = factory
        self._timeout = timeout

    def run(self, args: Sequence[str], *, input: Optional[str] = None) -> CommandResult:
        command = shlex.join(args)
        with self._factory.connect() as client:
            try:
                stdin, stdout, stderr = client.exec_command(command, timeout=self._timeout)
            except paramiko.SSHException as exc:
                raise SSHError(f"Failed to execute remote command '{command}': {exc}") from exc

            if input is not None:
                stdin.write(input)
                stdin.flush()
            stdin.channel.shutdown_write()

            stdout_text = stdout.read().decode("utf-8", errors="replace")
            stderr_text = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()

        return CommandResult(command=args, exit_status=exit_status, stdout=stdout_text, stderr=stderr_text)

    def fetch(self, args: Sequence[str], destination: Path) -> CommandResult:
        """Run ``args`` remotely and stream its standard output into a local file."""

        command = shlex.join(args)
        with self._factory.connect() as client:
            try:
                stdin, stdout, stderr = client.exec_command(command, timeout=self._timeout)
            except paramiko.SSHException as exc:
                raise SSHError(f"Failed to execute remote command '{command}': {exc}") from exc
            stdin.channel.shutdown_write()

            with destination.open("wb") as handle:
                while True:
                    chunk = stdout.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    handle.write(chunk)

            stderr_text = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()

        return CommandResult(command=args, exit_status=exit_status, stdout="", stderr=stderr_text)

    def is_privileged(self) -> bool:
        result = self.run(["id", "-u"])
        return result.exit_status == 0 and result.stdout.strip() == "0"


__all__ = ["SSHError", "SSHTarget", "SSHClientFactory", "SSHCommandRunner"]
