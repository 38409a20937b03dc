"""Generation of replacement account passwords."""
from __future__ import annotations

import base64
import secrets

DEFAULT_SECRET_BYTES = 14


def generate_secret(num_bytes: int = DEFAULT_SECRET_BYTES) -> str:
    """Return ``num_bytes`` of CSPRNG output encoded as printable base64."""

    if num_bytes <= 0:
        raise ValueError("Secret length must be greater than zero.")
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


__all__ = ["generate_secret"]
