"""Append-only report artifacts and the summary snapshot."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .config import Settings

SUMMARY_TIMESTAMP = "%Y-%m-%d_%H-%M"


def _append_line(path: Path, line: str) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line + "\n")


def count_lines(path: Path) -> int:
    """Return the number of lines in ``path``, or ``0`` when it does not exist."""

    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            return sum(1 for _ in handle)
    except FileNotFoundError:
        return 0


def record_created_account(settings: Settings, username: str, email: str, tier: str, secret: str) -> None:
    _append_line(settings.created_users_report, f"{username},{email},{tier},{secret}")


def record_password_change(settings: Settings, username: str, secret: str) -> None:
    _append_line(settings.password_changes_report, f"{username} : {secret}")


def write_summary(settings: Settings, now: datetime) -> Path:
    """Write a timestamped summary of the report counts and return its path."""

    created = count_lines(settings.created_users_report)
    rotated = count_lines(settings.password_changes_report)
    report_path = settings.report_dir / f"summary_{now.strftime(SUMMARY_TIMESTAMP)}.txt"

    lines = [
        "===== USER MANAGEMENT SUMMARY =====",
        f"Date: {now.strftime('%a %b %d %H:%M:%S %Y')}",
        "",
        f"Users Created: {created}",
        f"Passwords Updated: {rotated}",
        "",
        f"See logs for full details: {settings.actions_log} and {settings.errors_log}",
    ]
    report_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return report_path


__all__ = ["count_lines", "record_created_account", "record_password_change", "write_summary"]
