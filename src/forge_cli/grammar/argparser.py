"""Match tokenized input against the compiled grammar.

The grammar is one level deep: the first token must name a direct child of
the root, and every following token is either a flag or the value of the
flag right before it. A value-taking flag always consumes the next token,
even one that starts with ``-``, so ``--offset -5`` works.

Each way of failing has its own :class:`~forge_cli.exceptions.ParseError`
subclass, and every error carries the usage text to show the user.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from typing import Union

from forge_cli.exceptions import (
    HelpRequested,
    MissingRequiredError,
    MissingValueError,
    UnexpectedArgumentError,
    UnknownCommandError,
    UnknownFlagError,
)
from forge_cli.grammar.compiler import render_command_usage, render_usage
from forge_cli.models import CommandNode

FlagValue = Union[str, bool]

_HELP_TOKENS = ("-h", "--help")


@dataclass
class ParsedCommand:
    """A successful parse: the matched subcommand and its bound flag values.

    ``values`` is keyed by flag long name (no dashes). Value-taking flags map
    to the raw string token; flags that take no value map to ``True``.
    """

    node: CommandNode
    values: dict[str, FlagValue] = field(default_factory=dict)


def parse(root: CommandNode, tokens: list[str]) -> ParsedCommand:
    """Parse *tokens* against the children of *root*.

    Raises:
        UnknownCommandError: Empty input or an unknown leading token.
        UnknownFlagError: A flag the matched command does not declare.
        MissingValueError: A value-taking flag with nothing after it.
        UnexpectedArgumentError: A bare token where a flag was expected, or an
            inline ``=value`` on a flag that takes none.
        MissingRequiredError: Required flags absent at end of input.
        HelpRequested: ``-h``/``--help`` after the subcommand.
    """
    if not tokens:
        raise UnknownCommandError("No command given", usage=render_usage(root))

    name = tokens[0]
    node = root.child(name)
    if node is None:
        message = f"Unknown command '{name}'"
        close = difflib.get_close_matches(name, [c.name for c in root.children], n=1)
        if close:
            message += f". Did you mean '{close[0]}'?"
        raise UnknownCommandError(message, usage=render_usage(root))

    usage = render_command_usage(node)
    values: dict[str, FlagValue] = {}
    rest = tokens[1:]
    i = 0

    while i < len(rest):
        token = rest[i]
        i += 1

        if token in _HELP_TOKENS and node.find_flag(token) is None:
            raise HelpRequested(usage)

        if not token.startswith("-") or token == "-":
            raise UnexpectedArgumentError(
                f"Unexpected argument '{token}' for '{node.name}'", usage=usage
            )

        inline: str | None = None
        if token.startswith("--") and "=" in token:
            token, inline = token.split("=", 1)

        flag = node.find_flag(token)
        if flag is None:
            raise UnknownFlagError(
                f"Unknown flag '{token}' for '{node.name}'", usage=usage
            )

        if not flag.takes_value:
            if inline is not None:
                raise UnexpectedArgumentError(
                    f"Flag '{token}' does not take a value", usage=usage
                )
            values[flag.name] = True
            continue

        if inline is not None:
            values[flag.name] = inline
            continue

        if i >= len(rest):
            raise MissingValueError(
                f"Flag '{token}' requires a value", usage=usage
            )
        values[flag.name] = rest[i]
        i += 1

    missing = [f.long_form for f in node.flags if f.required and f.name not in values]
    if missing:
        raise MissingRequiredError(
            f"Missing required flag(s) for '{node.name}': {', '.join(missing)}",
            usage=usage,
        )

    return ParsedCommand(node=node, values=values)
