"""CLI commands for launcher-icons."""

from launcher_icons.cli.commands.batch import batch
from launcher_icons.cli.commands.cache import cache
from launcher_icons.cli.commands.resolve import resolve, set_icon

__all__ = ["resolve", "set_icon", "batch", "cache"]
