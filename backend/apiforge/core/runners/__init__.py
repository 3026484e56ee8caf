"""External command runners."""

from apiforge.core.runners.base import CommandResult, ExternalRunner
from apiforge.core.runners.playwright import PlaywrightScaffolder

__all__ = [
    "CommandResult",
    "ExternalRunner",
    "PlaywrightScaffolder",
]
