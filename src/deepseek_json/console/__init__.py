"""Terminal rendering and input for the chat modes."""

from deepseek_json.console.base import ConsoleIO, ProgressStage
from deepseek_json.console.console import Console
from deepseek_json.console.input import is_quit_command, read_line

__all__ = ["Console", "ConsoleIO", "ProgressStage", "is_quit_command", "read_line"]
