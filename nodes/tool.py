"""Tool node: exposes one registered tool to workers."""
from typing import Any, Mapping

from langchain_core.tools import BaseTool

from lib.tool_registry import get_tool
from nodes.base import BaseNode, RunOptions
from nodes.params import NodeParam


class ToolNode(BaseNode):
    label = "Tool"
    name = "tool"
    version = 1.0
    type = "Tool"
    category = "Tools"
    inputs = [
        NodeParam(
            label="Tool Name",
            name="toolName",
            type="options",
            description="Name of a registered tool, e.g. calculator or current_time",
        ),
    ]

    def init(self, inputs: Mapping[str, Any], options: RunOptions) -> BaseTool:
        return get_tool(inputs["toolName"])
