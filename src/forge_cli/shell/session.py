"""Interactive read-eval loop and single-shot execution.

A :class:`ShellSession` owns the compiled grammar, a
:class:`~forge_cli.client.dispatcher.Dispatcher`, and a
:class:`~forge_cli.shell.history.HistoryBuffer`. :func:`read_eval_loop`
feeds it one line at a time. Line reading is pluggable: the default
reader is a prompt_toolkit ``PromptSession`` with grammar completion and
history recall, and tests pass a scripted reader instead.

Built-in commands::

    exit | quit                 end the session
    help                        usage for every subcommand
    help <command>              usage for one subcommand
    history                     list entries, oldest first
    history <n> | history -<n>  one entry (0 = newest, -1 = oldest)
    history search <text>       up to 10 matches, newest first
    history clear               forget everything

Every error raised while handling a line is reported and the loop carries
on. The line is recorded in history either way.
"""

from __future__ import annotations

from typing import Callable, Optional

from prompt_toolkit import PromptSession

from forge_cli.client.dispatcher import Dispatcher
from forge_cli.completion.prompt import GrammarCompleter
from forge_cli.exceptions import (
    DispatchError,
    HelpRequested,
    ParseError,
    TokenizeError,
)
from forge_cli.grammar import parse, render_command_usage, render_usage, tokenize
from forge_cli.models import CommandNode
from forge_cli.output import get_output
from forge_cli.shell.history import BufferHistory, HistoryBuffer

PROMPT = "forge-api>> "
WELCOME = (
    "Welcome to the interactive Forge API CLI. "
    "Type 'help' for a list of commands, or 'exit' to quit."
)
EXIT_WORDS = ("exit", "quit")

LineReader = Callable[[str], str]


class ShellSession:
    """State of one interactive session."""

    def __init__(
        self,
        root: CommandNode,
        dispatcher: Dispatcher,
        history: Optional[HistoryBuffer] = None,
    ) -> None:
        self.root = root
        self.dispatcher = dispatcher
        self.history = history if history is not None else HistoryBuffer()

    def run_line(self, line: str) -> bool:
        """Handle one input line. Returns ``False`` when the session should end."""
        line = line.strip()
        if not line:
            return True
        self.history.append(line)

        output = get_output()
        try:
            return self._handle(line)
        except HelpRequested as exc:
            output.print_data(exc.usage)
        except ParseError as exc:
            output.error(str(exc))
            if exc.usage:
                output.usage(exc.usage)
        except (TokenizeError, DispatchError) as exc:
            output.error(str(exc))
        return True

    def _handle(self, line: str) -> bool:
        if line in EXIT_WORDS:
            return False

        tokens = tokenize(line)
        head, args = tokens[0], tokens[1:]

        if head == "help":
            self._help(args)
            return True
        if head == "history":
            self._history(args)
            return True

        parsed = parse(self.root, tokens)
        get_output().format_response(self.dispatcher.execute(parsed.node, parsed.values))
        return True

    def _help(self, args: list[str]) -> None:
        output = get_output()
        if not args:
            output.print_data(render_usage(self.root))
            return
        node = self.root.child(args[0])
        if node is None:
            output.error(f"Unknown command '{args[0]}'")
            return
        output.print_data(render_command_usage(node))

    def _history(self, args: list[str]) -> None:
        output = get_output()
        if not args:
            for number, entry in enumerate(self.history.entries(), start=1):
                output.print_data(f"{number:>5}  {entry}")
            return

        action = args[0]
        if action == "clear":
            self.history.clear()
            output.success("History cleared")
            return
        if action == "search":
            text = " ".join(args[1:])
            if not text:
                output.error("Usage: history search <text>")
                return
            for entry in self.history.search(text):
                output.print_data(entry)
            return

        try:
            index = int(action)
        except ValueError:
            output.error(f"Unknown history command '{action}'")
            return
        entry = self.history.get(index)
        if entry is None:
            output.error(f"No history entry at index {index}")
            return
        output.print_data(entry)


def prompt_reader(session: ShellSession) -> LineReader:
    """Build a prompt_toolkit reader with grammar completion and history recall."""
    prompt_session: PromptSession[str] = PromptSession(
        completer=GrammarCompleter(session.root),
        history=BufferHistory(session.history),
        complete_while_typing=False,
    )
    return prompt_session.prompt


def read_eval_loop(session: ShellSession, read_line: Optional[LineReader] = None) -> None:
    """Read and handle lines until ``exit``/``quit``, end of input, or Ctrl-C."""
    if read_line is None:
        read_line = prompt_reader(session)

    get_output().info(WELCOME)
    while True:
        try:
            line = read_line(PROMPT)
        except (EOFError, KeyboardInterrupt):
            break
        if not session.run_line(line):
            break


def run_single_shot(root: CommandNode, dispatcher: Dispatcher, args: list[str]) -> None:
    """Parse already-split *args* and dispatch once.

    Errors propagate so the caller can map them to an exit code.
    """
    try:
        parsed = parse(root, args)
    except HelpRequested as exc:
        get_output().print_data(exc.usage)
        return
    get_output().format_response(dispatcher.execute(parsed.node, parsed.values))
