"""Aggregate exports for built-in tools.

Built-in tools:
 - calculator_tool: safe arithmetic evaluation
 - current_time_tool: current date/time in an optional timezone
"""

from .calculator import calculator_tool  # noqa: F401
from .current_time import current_time_tool  # noqa: F401


__all__ = [
    "calculator_tool",
    "current_time_tool",
]
