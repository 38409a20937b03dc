"""Command-line interface for local account administration."""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Sequence

from accountops.config import Configuration, load_configuration, resolve_config_path
from accountops.directory import SystemAccountDirectory
from accountops.journal import LOG_FORMAT, configure_logging
from accountops.operations import AccountManager
from accountops.prompts import confirm_on_terminal
from accountops.runner import LocalCommandRunner
from accountops.ssh import SSHClientFactory, SSHCommandRunner, SSHError, SSHTarget

KNOWN_COMMANDS = ("create", "delete", "update-pass", "add-group", "remove-group", "report")
_OPTIONS_WITH_VALUES = {"--config", "--host"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=Path(sys.argv[0]).name or "accountops",
        description="Local Linux account administration",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (defaults to ACCOUNTOPS_CONFIG or ./accountops.yaml)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Name of a configured remote host to administer over SSH",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("create", help="Create accounts listed in the accounts file")

    delete_parser = subparsers.add_parser("delete", help="Back up and delete an account")
    delete_parser.add_argument("username", nargs="?")

    password_parser = subparsers.add_parser("update-pass", help="Assign a new random password")
    password_parser.add_argument("username", nargs="?")

    add_group_parser = subparsers.add_parser("add-group", help="Add an account to groups")
    add_group_parser.add_argument("username", nargs="?")
    add_group_parser.add_argument("groups", nargs="?", help="Comma-separated group names")

    remove_group_parser = subparsers.add_parser("remove-group", help="Remove an account from a group")
    remove_group_parser.add_argument("username", nargs="?")
    remove_group_parser.add_argument("group", nargs="?")

    subparsers.add_parser("report", help="Write a summary of the report files")
    return parser


def _find_command(args_list: Sequence[str]) -> str | None:
    skip_value = False
    for token in args_list:
        if skip_value:
            skip_value = False
            continue
        if token in _OPTIONS_WITH_VALUES:
            skip_value = True
            continue
        if token.startswith("-"):
            continue
        return token
    return None


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace | None:
    """Parse ``argv``; return ``None`` when no known command was given."""

    parser = _build_parser()
    args_list = list(argv) if argv is not None else sys.argv[1:]

    if any(flag in args_list for flag in ("-h", "--help")):
        return parser.parse_args(args_list)
    if _find_command(args_list) not in KNOWN_COMMANDS:
        return None
    return parser.parse_args(args_list)


def usage() -> str:
    prog = Path(sys.argv[0]).name or "accountops"
    return (
        f"Usage: {prog} {{create|delete <user>|update-pass <user>|add-group <user> <groups>"
        "|remove-group <user> <group>|report}"
    )


def _build_runner(configuration: Configuration, host_name: str | None):
    timeout = configuration.settings.command_timeout
    if not host_name:
        return LocalCommandRunner(timeout=timeout)

    host = configuration.hosts.get(host_name)
    target = SSHTarget(
        hostname=host.hostname,
        port=host.port,
        username=host.username,
        private_key_path=host.private_key_path,
        passphrase=host.passphrase,
        allow_unknown_hosts=host.allow_unknown_hosts,
        known_hosts_path=host.known_hosts_file,
    )
    return SSHCommandRunner(SSHClientFactory(target), timeout=timeout)


def _dispatch(manager: AccountManager, args: argparse.Namespace) -> bool:
    command = args.command
    if command == "create":
        return manager.create_accounts()
    if command == "delete":
        return manager.delete_account(args.username)
    if command == "update-pass":
        return manager.rotate_password(args.username)
    if command == "add-group":
        return manager.add_to_groups(args.username, args.groups)
    if command == "remove-group":
        return manager.remove_from_group(args.username, args.group)
    return manager.generate_report()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)

    args = _parse_args(argv)
    if args is None:
        print(usage())
        return 0

    try:
        configuration = load_configuration(resolve_config_path(args.config))
        runner = _build_runner(configuration, args.host)
    except FileNotFoundError as exc:
        print(f"Configuration file not found: {exc.filename}", file=sys.stderr)
        return 1
    except (KeyError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    settings = configuration.settings
    settings.ensure_directories()

    try:
        privileged = runner.is_privileged()
    except SSHError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if not privileged:
        print("This script must be run as root!", file=sys.stderr)
        return 1

    settings = replace(settings, privileged=True)
    manager = AccountManager(
        settings,
        SystemAccountDirectory(runner),
        configure_logging(settings),
        confirm=partial(confirm_on_terminal, token=settings.confirm_token),
    )

    try:
        succeeded = _dispatch(manager, args)
    except KeyboardInterrupt:
        print("\nAborted by user.", file=sys.stderr)
        return 1
    return 0 if succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
