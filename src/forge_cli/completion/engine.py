"""Tab-completion over the compiled grammar.

:func:`complete` is a pure function of ``(root, line, cursor)``. It never
raises and never touches the network, so it is safe to call from an editor
worker thread. The prompt_toolkit adapter lives in
:mod:`forge_cli.completion.prompt`.

Contexts are tried in this order, and the first non-empty one wins:

value
    The previous token is a value-taking flag still waiting for its value.
    Suggest the flag's enumerated values, or nothing for free text.
blank
    The cursor follows whitespace. Suggest flags and subcommands of the
    active command.
flag
    The current word starts with ``-``. Suggest matching flags of the active
    command, skipping no-value flags that were already given.
subcommand
    Suggest subcommand names of the root.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from forge_cli.grammar.tokenizer import split_words
from forge_cli.models import CommandNode, FlagSpec


@dataclass(frozen=True)
class Suggestion:
    """One completion candidate.

    ``span_start``/``span_end`` are character offsets into the input line of
    the text the candidate replaces.
    """

    value: str
    description: str
    span_start: int
    span_end: int


@dataclass
class _WalkState:
    node: Optional[CommandNode] = None
    pending: Optional[FlagSpec] = None
    seen: frozenset[str] = frozenset()


def complete(root: Optional[CommandNode], line: str, cursor: int) -> list[Suggestion]:
    """Return suggestions for *line* with the caret at *cursor*.

    Every returned ``value`` starts with the word under the cursor.
    """
    if root is None:
        return []

    cursor = max(0, min(cursor, len(line)))
    text = line[:cursor]
    tokens = split_words(text)

    at_blank = not tokens or text[-1:].isspace()
    if at_blank:
        word = ""
        preceding = tokens
    else:
        word = tokens[-1]
        preceding = tokens[:-1]
    start = cursor - len(word)

    state = _walk(root, preceding)
    active = state.node or root

    if state.pending is not None:
        return _dedupe(_value_candidates(state.pending, word, start, cursor))

    if at_blank:
        candidates = list(_flag_candidates(active, state.seen, word, start, cursor))
        candidates.extend(_command_candidates(active.children, word, start, cursor))
        return _dedupe(candidates)

    if word.startswith("-"):
        return _dedupe(_flag_candidates(active, state.seen, word, start, cursor))

    return _dedupe(_command_candidates(root.children, word, start, cursor))


def _walk(root: CommandNode, tokens: list[str]) -> _WalkState:
    node: Optional[CommandNode] = None
    pending: Optional[FlagSpec] = None
    seen: set[str] = set()
    named = False

    for token in tokens:
        if pending is not None:
            pending = None
            continue
        if token.startswith("-"):
            if node is None:
                continue
            flag_token, has_inline, _ = token.partition("=")
            flag = node.find_flag(flag_token)
            if flag is None:
                continue
            seen.add(flag.name)
            if flag.takes_value and not has_inline:
                pending = flag
            continue
        # Only the first word names the command; a miss leaves the root active.
        if not named:
            named = True
            node = root.child(token)

    return _WalkState(node=node, pending=pending, seen=frozenset(seen))


def _value_candidates(
    flag: FlagSpec, word: str, start: int, end: int
) -> Iterable[Suggestion]:
    for choice in flag.choices or []:
        if choice.startswith(word):
            yield Suggestion(choice, "", start, end)


def _flag_candidates(
    node: CommandNode, seen: frozenset[str], word: str, start: int, end: int
) -> Iterable[Suggestion]:
    for flag in node.flags:
        if not flag.takes_value and flag.name in seen:
            continue
        if flag.long_form.startswith(word):
            yield Suggestion(flag.long_form, flag.help, start, end)
        elif flag.short_form and flag.short_form.startswith(word):
            yield Suggestion(flag.short_form, flag.help, start, end)


def _command_candidates(
    children: list[CommandNode], word: str, start: int, end: int
) -> Iterable[Suggestion]:
    for child in children:
        if child.name.startswith(word):
            yield Suggestion(child.name, child.help, start, end)


def _dedupe(candidates: Iterable[Suggestion]) -> list[Suggestion]:
    seen: set[str] = set()
    result: list[Suggestion] = []
    for candidate in candidates:
        if candidate.value in seen:
            continue
        seen.add(candidate.value)
        result.append(candidate)
    return result
