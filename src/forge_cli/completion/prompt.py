"""prompt_toolkit adapter for :func:`~forge_cli.completion.engine.complete`."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from forge_cli.completion.engine import complete
from forge_cli.models import CommandNode


class GrammarCompleter(Completer):
    """Offer grammar suggestions with their help text as display meta.

    *root* may be a node or a zero-argument callable returning one, so the
    completer can follow a grammar that is swapped after construction.
    """

    def __init__(
        self, root: Optional[CommandNode] | Callable[[], Optional[CommandNode]]
    ) -> None:
        self._root = root

    def _current_root(self) -> Optional[CommandNode]:
        return self._root() if callable(self._root) else self._root

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Iterable[Completion]:
        cursor = document.cursor_position
        for suggestion in complete(self._current_root(), document.text, cursor):
            yield Completion(
                suggestion.value,
                start_position=suggestion.span_start - cursor,
                display_meta=suggestion.description or None,
            )
