"""
Tool-calling agent executor.

A tool agent is a runnable that maps ``{..., "steps": [...]}`` to either a
list of ``ToolAgentAction`` or an ``AgentFinish``. ``AgentExecutor`` drives
it: call the model, run any requested tools, feed their results back
through the scratchpad, and repeat until the model answers or the
iteration cap is hit.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from langchain_core.agents import AgentActionMessageLog, AgentFinish
from langchain_core.documents import Document
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.output_parsers import BaseOutputParser
from langchain_core.outputs import ChatGeneration, Generation
from langchain_core.runnables import Runnable, RunnableConfig
from langchain_core.runnables.config import merge_configs
from langchain_core.tools import BaseTool

from utils.errors import AbortedError, ToolExecutionError

logger = logging.getLogger(__name__)

MAX_ITERATIONS_OUTPUT = "Agent stopped due to max iterations."


class ToolAgentAction(AgentActionMessageLog):
    """One tool call requested by the model."""

    tool_call_id: str


AgentStep = Tuple[ToolAgentAction, Any]


def extract_text(message_content: Any) -> str:
    """Normalize chat model content that may be a list of parts or a string."""
    if isinstance(message_content, str):
        return message_content.strip()
    if isinstance(message_content, list):
        parts: List[str] = []
        for part in message_content:
            if isinstance(part, dict):
                # Support both {"type":"text","text":"..."} and {"content":"..."}
                if part.get("type") == "text" and part.get("text"):
                    parts.append(part["text"])
                elif isinstance(part.get("content"), str):
                    parts.append(part["content"])
            elif isinstance(part, str):
                parts.append(part)
        return "\n".join(p.strip() for p in parts if p).strip()
    return str(message_content or "").strip()


def format_scratchpad(steps: Sequence[AgentStep]) -> List[BaseMessage]:
    """
    Turn prior tool steps into messages the model can read back.

    Each originating AI message is emitted once, followed by one
    ``ToolMessage`` per tool call it produced.
    """
    messages: List[BaseMessage] = []
    for action, observation in steps:
        for message in action.message_log:
            if not any(seen is message for seen in messages):
                messages.append(message)
        messages.append(
            ToolMessage(
                content=_observation_text(observation),
                tool_call_id=action.tool_call_id,
                name=action.tool,
            )
        )
    return messages


class ToolCallingAgentOutputParser(
    BaseOutputParser[Union[List[ToolAgentAction], AgentFinish]]
):
    """Parse an AI message into tool actions or a final answer."""

    @property
    def _type(self) -> str:
        return "tool-calling-agent-output-parser"

    def parse_result(
        self, result: List[Generation], *, partial: bool = False
    ) -> Union[List[ToolAgentAction], AgentFinish]:
        if not result or not isinstance(result[0], ChatGeneration):
            raise ValueError("This output parser only works on ChatGeneration output")
        message = result[0].message
        if not isinstance(message, AIMessage):
            raise TypeError(f"Expected an AI message, got {type(message).__name__}")

        if not message.tool_calls:
            return AgentFinish(
                return_values={"output": extract_text(message.content)},
                log=str(message.content),
            )

        actions: List[ToolAgentAction] = []
        for tool_call in message.tool_calls:
            tool_input = tool_call.get("args") or {}
            # Tools declared with a single positional argument
            if isinstance(tool_input, dict) and "__arg1" in tool_input:
                tool_input = tool_input["__arg1"]
            content_msg = f"responded: {message.content}\n" if message.content else "\n"
            actions.append(
                ToolAgentAction(
                    tool=tool_call["name"],
                    tool_input=tool_input,
                    log=f"\nInvoking: `{tool_call['name']}` with `{tool_input}`\n{content_msg}\n",
                    message_log=[message],
                    tool_call_id=tool_call.get("id") or "",
                )
            )
        return actions

    def parse(self, text: str) -> Union[List[ToolAgentAction], AgentFinish]:
        return AgentFinish(return_values={"output": text.strip()}, log=text)


class AgentExecutor:
    """Run a tool-calling agent until it produces a final answer."""

    def __init__(
        self,
        agent: Runnable,
        tools: Sequence[BaseTool],
        *,
        max_iterations: Optional[float] = None,
        session_id: Optional[str] = None,
        chat_id: Optional[str] = None,
        input: Optional[str] = None,
        verbose: bool = False,
    ) -> None:
        self.agent = agent
        self.tools = list(tools)
        self.tools_by_name: Dict[str, BaseTool] = {t.name: t for t in self.tools}
        self.max_iterations = max_iterations
        self.session_id = session_id
        self.chat_id = chat_id
        self.input = input
        self.verbose = verbose

    @classmethod
    def from_agent_and_tools(
        cls, agent: Runnable, tools: Sequence[BaseTool], **kwargs: Any
    ) -> "AgentExecutor":
        return cls(agent, tools, **kwargs)

    def _run_config(self, config: Optional[RunnableConfig]) -> RunnableConfig:
        metadata = {
            key: value
            for key, value in (
                ("session_id", self.session_id),
                ("chat_id", self.chat_id),
                ("input", self.input),
            )
            if value is not None
        }
        return merge_configs(config, {"metadata": metadata})

    def _log(self, message: str) -> None:
        if self.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    def _iterations_left(self, iterations: int) -> bool:
        return self.max_iterations is None or iterations < self.max_iterations

    async def ainvoke(
        self, inputs: Dict[str, Any], config: Optional[RunnableConfig] = None
    ) -> Dict[str, Any]:
        """
        Run the agent loop.

        Args:
            inputs: Prompt inputs (``messages``, ``team_members``...). An
                optional ``signal`` key holds a ``threading.Event`` abort signal.
            config: Runnable config threaded through model and tool calls.

        Returns:
            ``{"output": str}`` plus ``usedTools``/``sourceDocuments`` when
            tools ran during the turn.

        Raises:
            AbortedError: If the abort signal is set between steps.
            ToolExecutionError: If a tool raises.
        """
        inputs = dict(inputs)
        signal: Optional[threading.Event] = inputs.pop("signal", None)
        run_config = self._run_config(config)

        steps: List[AgentStep] = []
        used_tools: List[Dict[str, Any]] = []
        source_documents: List[Dict[str, Any]] = []
        iterations = 0

        while self._iterations_left(iterations):
            _check_signal(signal)
            decision = await self.agent.ainvoke({**inputs, "steps": steps}, run_config)
            iterations += 1

            if isinstance(decision, AgentFinish):
                self._log(f"Agent finished after {iterations} iteration(s)")
                return _build_result(
                    decision.return_values.get("output", ""), used_tools, source_documents
                )

            for action in decision:
                _check_signal(signal)
                self._log(action.log.strip())
                observation = await self._run_tool(action, run_config)
                steps.append((action, observation))
                used_tools.append(
                    {
                        "tool": action.tool,
                        "toolInput": action.tool_input,
                        "toolOutput": _observation_text(observation),
                    }
                )
                source_documents.extend(_collect_documents(observation))

        logger.warning(f"Agent stopped after reaching max_iterations={self.max_iterations}")
        return _build_result(MAX_ITERATIONS_OUTPUT, used_tools, source_documents)

    def invoke(
        self, inputs: Dict[str, Any], config: Optional[RunnableConfig] = None
    ) -> Dict[str, Any]:
        """Blocking variant of ``ainvoke`` for callers without an event loop."""
        return asyncio.run(self.ainvoke(inputs, config))

    async def _run_tool(self, action: ToolAgentAction, config: RunnableConfig) -> Any:
        tool = self.tools_by_name.get(action.tool)
        if tool is None:
            return (
                f"{action.tool} is not a valid tool, "
                f"try one of [{', '.join(self.tools_by_name)}]."
            )
        try:
            return await tool.ainvoke(action.tool_input, config)
        except Exception as exc:
            raise ToolExecutionError(f"Tool {action.tool} failed: {exc}") from exc


def _check_signal(signal: Optional[threading.Event]) -> None:
    if signal is not None and signal.is_set():
        raise AbortedError()


def _as_documents(observation: Any) -> List[Document]:
    if isinstance(observation, Document):
        return [observation]
    if isinstance(observation, (list, tuple)) and observation and all(
        isinstance(item, Document) for item in observation
    ):
        return list(observation)
    return []


def _collect_documents(observation: Any) -> List[Dict[str, Any]]:
    return [
        {"pageContent": doc.page_content, "metadata": dict(doc.metadata)}
        for doc in _as_documents(observation)
    ]


def _observation_text(observation: Any) -> str:
    documents = _as_documents(observation)
    if documents:
        return "\n\n".join(doc.page_content for doc in documents)
    if isinstance(observation, ToolMessage):
        return extract_text(observation.content)
    return observation if isinstance(observation, str) else str(observation)


def _build_result(
    output: str,
    used_tools: List[Dict[str, Any]],
    source_documents: List[Dict[str, Any]],
) -> Dict[str, Any]:
    result: Dict[str, Any] = {"output": output}
    if used_tools:
        result["usedTools"] = used_tools
    if source_documents:
        result["sourceDocuments"] = source_documents
    return result
