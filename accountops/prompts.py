"""Interactive confirmation prompts."""
from __future__ import annotations

import contextlib
import sys
from typing import Callable, Iterator, TextIO

Confirmation = Callable[[str], bool]


@contextlib.contextmanager
def _interactive_prompt_io() -> Iterator[tuple[TextIO, TextIO]]:
    """Yield streams connected to the operator.

    The standard streams are used when they are a terminal. Otherwise the
    controlling terminal is opened so that a redirected stdin cannot answer
    the prompt by accident; without one the standard streams are used as-is.
    """

    if sys.stdin.isatty() and sys.stdout.isatty():
        yield sys.stdin, sys.stdout
        return

    try:
        # /dev/tty is not seekable, so it is opened once per direction.
        tty_in = open("/dev/tty", "r", encoding="utf-8", buffering=1)
        tty_out = open("/dev/tty", "w", encoding="utf-8", buffering=1)
    except OSError:
        yield sys.stdin, sys.stdout
        return

    try:
        yield tty_in, tty_out
    finally:
        tty_in.close()
        tty_out.close()


def read_answer(question: str, *, stdin: TextIO, stdout: TextIO) -> str | None:
    """Print ``question`` and return the reply, or ``None`` at end of input."""

    stdout.write(question)
    stdout.flush()
    line = stdin.readline()
    if not line:
        return None
    return line.rstrip("\r\n")


def confirm_on_terminal(question: str, *, token: str = "y") -> bool:
    """Return ``True`` only when the operator answers exactly ``token``.

    Surrounding whitespace is ignored; case is not.
    """

    with _interactive_prompt_io() as (prompt_stdin, prompt_stdout):
        answer = read_answer(question, stdin=prompt_stdin, stdout=prompt_stdout)
    return answer is not None and answer.strip() == token


__all__ = ["Confirmation", "confirm_on_terminal", "read_answer"]
