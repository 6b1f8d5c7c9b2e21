"""Interactive shell session and input history."""

from forge_cli.shell.history import BufferHistory, HistoryBuffer
from forge_cli.shell.session import ShellSession, read_eval_loop, run_single_shot

__all__ = [
    "BufferHistory",
    "HistoryBuffer",
    "ShellSession",
    "read_eval_loop",
    "run_single_shot",
]
