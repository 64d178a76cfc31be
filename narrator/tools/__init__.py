"""Tool registry, execution boundary and built-in tools."""

from narrator.tools.base import Tool
from narrator.tools.dice import RollD6Tool
from narrator.tools.executor import ToolExecutor, ToolOutcome
from narrator.tools.registry import ToolRegistry, build_default_registry

__all__ = [
    "RollD6Tool",
    "Tool",
    "ToolExecutor",
    "ToolOutcome",
    "ToolRegistry",
    "build_default_registry",
]
