"""Command grammar -- compile the spec model, tokenize lines, and parse them.

Typical usage::

    from forge_cli.grammar import compile_grammar, parse, tokenize

    root = compile_grammar(spec)
    parsed = parse(root, tokenize("v1.products.id.get --id 42"))
    parsed.node.name      # 'v1.products.id.get'
    parsed.values         # {'id': '42'}

Sub-modules:

* :mod:`~forge_cli.grammar.compiler` -- Subcommand naming, flag derivation,
  reverse name resolution, and usage rendering.
* :mod:`~forge_cli.grammar.tokenizer` -- POSIX shell-word splitting.
* :mod:`~forge_cli.grammar.argparser` -- Flat one-level argument parsing.
"""

from forge_cli.grammar.argparser import ParsedCommand, parse
from forge_cli.grammar.compiler import (
    command_name,
    compile_grammar,
    render_command_usage,
    render_usage,
    resolve_command,
)
from forge_cli.grammar.tokenizer import split_words, tokenize

__all__ = [
    "ParsedCommand",
    "command_name",
    "compile_grammar",
    "parse",
    "render_command_usage",
    "render_usage",
    "resolve_command",
    "split_words",
    "tokenize",
]
