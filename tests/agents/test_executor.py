"""Tests for the tool-calling agent executor."""

import asyncio
import threading

import pytest
from langchain_core.agents import AgentFinish
from langchain_core.documents import Document
from langchain_core.messages import AIMessage, ToolMessage
from langchain_core.outputs import ChatGeneration
from langchain_core.runnables import RunnableLambda
from langchain_core.tools import StructuredTool

from agents.executor import (
    MAX_ITERATIONS_OUTPUT,
    AgentExecutor,
    ToolAgentAction,
    ToolCallingAgentOutputParser,
    extract_text,
    format_scratchpad,
)
from tools import calculator_tool
from utils.errors import AbortedError, ToolExecutionError


def _parse(message: AIMessage):
    return ToolCallingAgentOutputParser().parse_result([ChatGeneration(message=message)])


def _action(message: AIMessage, tool: str, call_id: str) -> ToolAgentAction:
    return ToolAgentAction(tool=tool, tool_input={}, log="", message_log=[message], tool_call_id=call_id)


def _scripted_agent(decisions):
    script = iter(decisions)
    seen_steps = []

    def decide(inputs):
        seen_steps.append(list(inputs["steps"]))
        return next(script)

    return RunnableLambda(decide), seen_steps


def test_extract_text_joins_content_parts() -> None:
    parts = [{"type": "text", "text": "Hello"}, {"content": "world"}, "!"]
    assert extract_text(parts) == "Hello\nworld\n!"
    assert extract_text("  plain  ") == "plain"
    assert extract_text(None) == ""


def test_parser_returns_finish_without_tool_calls() -> None:
    result = _parse(AIMessage(content="All done."))
    assert isinstance(result, AgentFinish)
    assert result.return_values == {"output": "All done."}


def test_parser_returns_one_action_per_tool_call() -> None:
    message = AIMessage(
        content="",
        tool_calls=[
            {"name": "calculator", "args": {"expression": "1+1"}, "id": "a"},
            {"name": "search", "args": {"__arg1": "langgraph"}, "id": "b"},
        ],
    )
    actions = _parse(message)
    assert [(a.tool, a.tool_input, a.tool_call_id) for a in actions] == [
        ("calculator", {"expression": "1+1"}, "a"),
        ("search", "langgraph", "b"),
    ]
    assert actions[0].message_log == [message]


def test_format_scratchpad_emits_ai_message_once_per_turn() -> None:
    message = AIMessage(
        content="",
        tool_calls=[
            {"name": "calculator", "args": {}, "id": "a"},
            {"name": "current_time", "args": {}, "id": "b"},
        ],
    )
    steps = [(_action(message, "calculator", "a"), "2"), (_action(message, "current_time", "b"), "noon")]
    messages = format_scratchpad(steps)
    assert messages[0] is message
    assert [type(m) for m in messages[1:]] == [ToolMessage, ToolMessage]
    assert [m.tool_call_id for m in messages[1:]] == ["a", "b"]
    assert messages[2].content == "noon"


def test_executor_runs_tools_and_reports_used_tools(tool_call) -> None:
    call = tool_call("calculator", {"expression": "6 * 7"})
    agent, seen_steps = _scripted_agent(
        [_parse(call), AgentFinish(return_values={"output": "42"}, log="")]
    )
    result = asyncio.run(AgentExecutor(agent, [calculator_tool]).ainvoke({"messages": []}))
    assert result == {
        "output": "42",
        "usedTools": [{"tool": "calculator", "toolInput": {"expression": "6 * 7"}, "toolOutput": "42"}],
    }
    assert seen_steps[0] == []
    assert seen_steps[1][0][1] == "42"


def test_executor_omits_tool_metadata_when_no_tools_ran() -> None:
    agent, _ = _scripted_agent([AgentFinish(return_values={"output": "hi"}, log="")])
    result = AgentExecutor(agent, [calculator_tool]).invoke({"messages": []})
    assert result == {"output": "hi"}


def test_executor_stops_at_max_iterations(tool_call) -> None:
    decision = _parse(tool_call("calculator", {"expression": "1"}))
    agent, seen_steps = _scripted_agent([decision, decision, decision])
    executor = AgentExecutor(agent, [calculator_tool], max_iterations=2)
    result = asyncio.run(executor.ainvoke({"messages": []}))
    assert result["output"] == MAX_ITERATIONS_OUTPUT
    assert len(seen_steps) == 2
    assert len(result["usedTools"]) == 2


def test_executor_reports_unknown_tool_to_model(tool_call) -> None:
    agent, seen_steps = _scripted_agent(
        [_parse(tool_call("web_search", {"q": "x"})), AgentFinish(return_values={"output": "ok"}, log="")]
    )
    asyncio.run(AgentExecutor(agent, [calculator_tool]).ainvoke({"messages": []}))
    assert seen_steps[1][0][1] == "web_search is not a valid tool, try one of [calculator]."


def test_executor_wraps_tool_errors(tool_call) -> None:
    def explode(text: str) -> str:
        """Always fails."""
        raise RuntimeError("disk full")

    failing = StructuredTool.from_function(func=explode, name="explode")
    agent, _ = _scripted_agent([_parse(tool_call("explode", {"text": "x"}))])
    with pytest.raises(ToolExecutionError, match="Tool explode failed: disk full"):
        asyncio.run(AgentExecutor(agent, [failing]).ainvoke({"messages": []}))


def test_executor_checks_abort_signal_before_model_call() -> None:
    agent, seen_steps = _scripted_agent([AgentFinish(return_values={"output": "hi"}, log="")])
    signal = threading.Event()
    signal.set()
    with pytest.raises(AbortedError):
        asyncio.run(AgentExecutor(agent, []).ainvoke({"messages": [], "signal": signal}))
    assert seen_steps == []


def test_executor_collects_source_documents(tool_call) -> None:
    def lookup(query: str) -> list:
        """Look up documents."""
        return [Document(page_content="LangGraph docs", metadata={"source": "kb"})]

    retriever = StructuredTool.from_function(func=lookup, name="lookup")
    agent, seen_steps = _scripted_agent(
        [_parse(tool_call("lookup", {"query": "graphs"})), AgentFinish(return_values={"output": "ok"}, log="")]
    )
    result = asyncio.run(AgentExecutor(agent, [retriever]).ainvoke({"messages": []}))
    assert result["sourceDocuments"] == [{"pageContent": "LangGraph docs", "metadata": {"source": "kb"}}]
    assert result["usedTools"][0]["toolOutput"] == "LangGraph docs"


def test_executor_fractional_cap_allows_calls_below_it(tool_call) -> None:
    decision = _parse(tool_call("calculator", {"expression": "1"}))
    agent, seen_steps = _scripted_agent([decision] * 4)
    result = asyncio.run(AgentExecutor(agent, [calculator_tool], max_iterations=2.5).ainvoke({"messages": []}))
    assert result["output"] == MAX_ITERATIONS_OUTPUT
    assert len(seen_steps) == 3
