"""Account lifecycle operations driven from the command line."""
from __future__ import annotations

import csv
import logging
from datetime import datetime
from typing import Callable, Optional

from . import reports
from .config import Settings
from .directory import AccountDirectory, AccountDirectoryError
from .passwords import generate_secret
from .prompts import Confirmation
from .records import read_account_records

BACKUP_TIMESTAMP = "%Y-%m-%d_%H-%M"


class AccountManager:
    """High level interface for account lifecycle operations.

    Every handler returns ``True`` on success. Failures are written to the
    error log and reported through the return value; they never raise.
    """

    def __init__(
        self,
        settings: Settings,
        directory: AccountDirectory,
        logger: logging.Logger,
        *,
        confirm: Confirmation,
        clock: Callable[[], datetime] = datetime.now,
        secret_factory: Callable[[int], str] = generate_secret,
    ) -> None:
        if not settings.privileged:
            raise PermissionError("Account operations require root privileges.")
        self._settings = settings
        self._directory = directory
        self._log = logger
        self._confirm = confirm
        self._clock = clock
        self._secret_factory = secret_factory

    # ---------------------------------------------------------------- create
    def create_accounts(self) -> bool:
        accounts_file = self._settings.accounts_file
        if not accounts_file.is_file():
            self._log.error("%s file not found!", accounts_file.name)
            return False

        # The whole file is decoded before any account is touched.
        try:
            records = list(read_account_records(accounts_file))
        except (UnicodeDecodeError, csv.Error) as exc:
            self._log.error("Unable to read %s: %s", accounts_file.name, exc)
            return False

        succeeded = True
        for record in records:
            if not self.create_account(record.username, record.secret, record.email, record.tier):
                succeeded = False

        self._log.info("User creation process completed.")
        return succeeded

    def create_account(self, username: str, secret: str, email: str, tier: str) -> bool:
        try:
            if self._directory.exists(username):
                self._log.error("User '%s' already exists. Skipping...", username)
                return False
            self._directory.create(username, shell=self._settings.default_shell)
        except AccountDirectoryError as exc:
            self._log.error("Failed to create user '%s'. %s", username, exc)
            return False

        try:
            self._directory.set_secret(username, secret)
            self._directory.restrict_home(username, self._settings.home_mode)
        except AccountDirectoryError as exc:
            self._log.error("Created user '%s' but could not finish provisioning: %s", username, exc)
            return False

        self._log.info("Created user '%s' successfully.", username)
        try:
            reports.record_created_account(self._settings, username, email, tier, secret)
        except OSError as exc:
            self._log.error("Created user '%s' but could not record it: %s", username, exc)
            return False
        return True

    # ---------------------------------------------------------------- delete
    def delete_account(self, username: Optional[str]) -> bool:
        if not username:
            self._log.error("No username provided for deletion.")
            return False
        if not self._require_account(username, "User '%s' does not exist."):
            return False

        if not self._confirm(f"Are you sure you want to delete user '{username}'? (y/n): "):
            self._log.info("Deletion of '%s' cancelled.", username)
            return True

        stamp = self._clock().strftime(BACKUP_TIMESTAMP)
        backup_file = self._settings.backup_dir / f"{username}_home_{stamp}.tar.gz"
        try:
            self._directory.archive_home(username, backup_file)
        except AccountDirectoryError:
            backup_file = None

        try:
            self._directory.delete(username)
        except AccountDirectoryError as exc:
            self._log.error("Failed to delete user '%s'. %s", username, exc)
            return False

        if backup_file is None:
            self._log.info("Deleted user '%s'. No home directory backup was written.", username)
        else:
            self._log.info("Deleted user '%s'. Home directory archived at %s", username, backup_file)
        return True

    # -------------------------------------------------------------- password
    def rotate_password(self, username: Optional[str]) -> bool:
        if not username:
            self._log.error("Username not provided for password update.")
            return False
        if not self._require_account(username, "User '%s' not found."):
            return False

        secret = self._secret_factory(self._settings.secret_bytes)
        try:
            self._directory.set_secret(username, secret)
        except AccountDirectoryError as exc:
            self._log.error("Failed to update password for '%s'. %s", username, exc)
            return False

        self._log.info("Password updated for '%s'.", username)
        try:
            reports.record_password_change(self._settings, username, secret)
        except OSError as exc:
            self._log.error("Password updated for '%s' but could not record it: %s", username, exc)
            return False
        return True

    # ---------------------------------------------------------------- groups
    def add_to_groups(self, username: Optional[str], groups: Optional[str]) -> bool:
        if not username or not groups:
            self._log.error("Usage: add-group <username> <group1,group2,...>")
            return False
        if not self._require_account(username, "User '%s' does not exist."):
            return False

        succeeded = True
        for group in (name.strip() for name in groups.split(",")):
            if not group:
                continue
            try:
                if not self._directory.group_exists(group):
                    self._log.error("Group '%s' does not exist. Skipping...", group)
                    succeeded = False
                    continue
                self._directory.add_to_group(username, group)
            except AccountDirectoryError as exc:
                self._log.error("Failed to add '%s' to group '%s'. %s", username, group, exc)
                succeeded = False
                continue
            self._log.info("Added '%s' to group '%s'.", username, group)
        return succeeded

    def remove_from_group(self, username: Optional[str], group: Optional[str]) -> bool:
        if not username or not group:
            self._log.error("Usage: remove-group <username> <group>")
            return False
        if not self._require_account(username, "User '%s' does not exist."):
            return False

        try:
            primary_group = self._directory.primary_group_of(username)
        except AccountDirectoryError as exc:
            self._log.error("Failed to remove '%s' from group '%s'. %s", username, group, exc)
            return False

        if group == primary_group:
            self._log.error("Cannot remove '%s' from their primary group '%s'.", username, group)
            return False

        try:
            self._directory.remove_from_group(username, group)
        except AccountDirectoryError as exc:
            self._log.error("Failed to remove '%s' from group '%s'. %s", username, group, exc)
            return False

        self._log.info("Removed '%s' from group '%s'.", username, group)
        return True

    # ---------------------------------------------------------------- report
    def generate_report(self) -> bool:
        try:
            report_path = reports.write_summary(self._settings, self._clock())
        except OSError as exc:
            self._log.error("Failed to write summary report: %s", exc)
            return False
        self._log.info("Summary report generated: %s", report_path)
        return True

    def _require_account(self, username: str, missing_message: str) -> bool:
        """Log ``missing_message`` or the lookup failure, never both."""
        try:
            found = self._directory.exists(username)
        except AccountDirectoryError as exc:
            self._log.error("Unable to look up user '%s': %s", username, exc)
            return False
        if not found:
            self._log.error(missing_message, username)
        return found


__all__ = ["AccountManager"]
