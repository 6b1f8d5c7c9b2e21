"""Tab-completion over the compiled command grammar."""

from forge_cli.completion.engine import Suggestion, complete
from forge_cli.completion.prompt import GrammarCompleter

__all__ = ["GrammarCompleter", "Suggestion", "complete"]
