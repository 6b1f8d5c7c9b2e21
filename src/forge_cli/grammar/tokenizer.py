"""Shell-word tokenization of input lines.

Lines follow POSIX shell-word rules: whitespace separates tokens and single
or double quotes group embedded whitespace. A quoted JSON body therefore
reaches the parser as one opaque token::

    v1.add.post --body '{"a": 1, "b": 2}'
"""

from __future__ import annotations

import shlex

from forge_cli.exceptions import TokenizeError


def tokenize(line: str) -> list[str]:
    """Split *line* into shell words.

    Raises:
        TokenizeError: On unbalanced quoting or a trailing escape.
    """
    try:
        return shlex.split(line)
    except ValueError as exc:
        raise TokenizeError(f"Cannot tokenize input: {exc}") from exc


def split_words(line: str) -> list[str]:
    """Lenient :func:`tokenize` for partial input; never raises.

    Completion runs on half-typed lines where an open quote is normal, so an
    unbalanced line falls back to plain whitespace splitting.
    """
    try:
        return shlex.split(line)
    except ValueError:
        return line.split()
