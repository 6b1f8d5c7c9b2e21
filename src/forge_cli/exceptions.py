"""Exception hierarchy for forge_cli.

All exceptions inherit from :class:`ForgeCliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`forge_cli.exit_codes`.
In single-shot mode :func:`forge_cli.app.main` catches ``ForgeCliError`` and
exits with the appropriate code. Inside the interactive shell every error
except :class:`SpecError` is reported and the loop continues.

Subclass hierarchy::

    ForgeCliError (exit 1)
    +-- SpecError             (exit 7)
    |   +-- GrammarError      (exit 7)
    +-- TokenizeError         (exit 2)
    +-- ParseError            (exit 2)
    |   +-- UnknownCommandError
    |   +-- UnknownFlagError
    |   +-- MissingValueError
    |   +-- MissingRequiredError
    |   +-- UnexpectedArgumentError
    +-- DispatchError         (exit 1, 6 for connection failures)
    +-- ConfigError           (exit 1)
"""

from __future__ import annotations

from forge_cli.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_ERROR,
)


class ForgeCliError(Exception):
    """Base exception for all forge_cli errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class SpecError(ForgeCliError):
    """Raised when the API description is unfetchable or malformed. Fatal at startup."""

    exit_code = EXIT_SPEC_ERROR


class GrammarError(SpecError):
    """Raised when the API description cannot be compiled into a grammar.

    The only such condition is two distinct path/method pairs deriving the
    same subcommand name.
    """


class TokenizeError(ForgeCliError):
    """Raised when an input line has unbalanced quoting."""

    exit_code = EXIT_INVALID_USAGE


class ParseError(ForgeCliError):
    """Raised when tokens do not match the compiled grammar.

    Args:
        message: Description of the mismatch.
        usage: Usage text for the command (or the whole grammar) that the
            shell prints below the message.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, usage: str = ""):
        super().__init__(message)
        self.usage = usage


class UnknownCommandError(ParseError):
    """The leading token is not a known subcommand."""


class UnknownFlagError(ParseError):
    """A ``-x``/``--name`` token does not match any flag of the command."""


class MissingValueError(ParseError):
    """A value-taking flag was the last token on the line."""


class MissingRequiredError(ParseError):
    """One or more required flags were not supplied."""


class UnexpectedArgumentError(ParseError):
    """A bare token appeared where a flag was expected."""


class HelpRequested(Exception):
    """Signals ``--help`` on a subcommand. Not an error; carries the usage text."""

    def __init__(self, usage: str):
        super().__init__(usage)
        self.usage = usage


class DispatchError(ForgeCliError):
    """Raised when a parsed command cannot be turned into a completed HTTP exchange.

    Covers unresolved path placeholders, invalid JSON bodies, and transport
    failures. Non-2xx responses are *not* dispatch errors.
    """


class ConnectionError_(DispatchError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(ForgeCliError):
    """Raised for configuration problems (invalid project config, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
