"""Tool registry used to resolve tool nodes by name."""
from typing import Any, Dict, List

from langchain_core.tools import BaseTool

from tools import calculator_tool, current_time_tool
from utils.errors import ConfigError


_TOOLS: Dict[str, BaseTool] = {
    calculator_tool.name: calculator_tool,
    current_time_tool.name: current_time_tool,
}


def register_tool(tool: BaseTool, *, replace: bool = False) -> None:
    """
    Make a tool available to tool nodes.

    Args:
        tool: Any LangChain tool; registered under ``tool.name``.
        replace: Allow overriding an existing registration.
    """
    if tool.name in _TOOLS and not replace:
        raise ValueError(f"Tool already registered: {tool.name}")
    _TOOLS[tool.name] = tool


def unregister_tool(name: str) -> None:
    _TOOLS.pop(name, None)


def get_tool(name: str) -> BaseTool:
    """
    Look up a registered tool by name.

    Raises:
        ConfigError: If no tool has that name.
    """
    try:
        return _TOOLS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown tool: {name}. Available tools: {', '.join(sorted(_TOOLS))}"
        ) from None


def tool_names() -> List[str]:
    return sorted(_TOOLS)


def get_tool_descriptions() -> Dict[str, Dict[str, Any]]:
    """
    Get descriptions of all available tools.

    Returns:
        Dictionary mapping tool names to their description and argument schema
    """
    return {
        name: {"description": tool.description, "parameters": tool.args}
        for name, tool in sorted(_TOOLS.items())
    }
