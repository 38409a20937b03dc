"""Parsing of the comma-separated account request file."""
from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

HEADER_MARKER = "Firstname"
_FIELD_COUNT = 5


@dataclass(frozen=True)
class AccountRecord:
    """A single ``Firstname,Lastname,Email,Password,Tier`` request."""

    first_name: str
    last_name: str
    email: str
    secret: str
    tier: str

    @property
    def username(self) -> str:
        # Names are concatenated as-is; no transliteration or character filtering.
        return f"{self.first_name.lower()}{self.last_name.lower()}"


def read_account_records(path: Path) -> Iterator[AccountRecord]:
    """Yield the account requests stored in ``path``.

    Header rows and rows without a first name are skipped. Rows with fewer
    than five fields are padded with empty values; extra fields are ignored.
    Quote characters are ordinary data, so a password may contain ``"``.
    """

    with path.open("r", encoding="utf-8", newline="") as handle:
        for row in csv.reader(handle, quoting=csv.QUOTE_NONE):
            if not row or not row[0] or row[0] == HEADER_MARKER:
                continue
            fields = (row + [""] * _FIELD_COUNT)[:_FIELD_COUNT]
            yield AccountRecord(*fields)


__all__ = ["AccountRecord", "read_account_records"]
