"""Build the runnable behind a worker: a tool agent or a plain chat chain."""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.runnables import Runnable, RunnableConfig, RunnablePassthrough
from langchain_core.tools import BaseTool

from agents.executor import AgentExecutor, ToolCallingAgentOutputParser, format_scratchpad
from lib import config as app_config
from lib.prompt_variables import escape_braces
from utils.errors import AbortedError, ConfigError, UnsupportedModelError

logger = logging.getLogger(__name__)

TEAM_BOILERPLATE = (
    "\nWork autonomously according to your specialty, using the tools available to you."
    " Do not ask for clarification."
    " Your other team members (and other teams) will collaborate with you with their own specialties."
    " You are chosen for a reason! You are one of the following team members: {team_members}."
)


@dataclass(frozen=True)
class ToolAgent:
    """Worker runnable that may call tools before answering."""

    executor: AgentExecutor

    async def ainvoke(
        self, inputs: Dict[str, Any], config: Optional[RunnableConfig] = None
    ) -> Dict[str, Any]:
        return await self.executor.ainvoke(inputs, config)


@dataclass(frozen=True)
class PlainChain:
    """Worker runnable that answers with a single model call."""

    chain: Runnable

    async def ainvoke(
        self, inputs: Dict[str, Any], config: Optional[RunnableConfig] = None
    ) -> str:
        inputs = dict(inputs)
        signal: Optional[threading.Event] = inputs.pop("signal", None)
        if signal is not None and signal.is_set():
            raise AbortedError()
        return await self.chain.ainvoke(inputs, config)


Agent = Union[ToolAgent, PlainChain]


def _format_team_members(inputs: Dict[str, Any]) -> str:
    members = inputs.get("team_members") or []
    if isinstance(members, str):
        return members
    return ", ".join(members)


def build_system_prompt(system_prompt: str) -> str:
    return escape_braces(system_prompt) + TEAM_BOILERPLATE


def parse_max_iterations(value: Any) -> Optional[float]:
    """
    Accept int/float/numeric text; ``None`` or blank means no cap.

    Fractions are kept: the loop runs while the call count is below the
    cap, so ``2.5`` allows three model calls.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        iterations = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Max Iterations must be a number, got {value!r}") from exc
    if math.isnan(iterations) or iterations < 1:
        raise ConfigError(f"Max Iterations must be at least 1, got {value!r}")
    return int(iterations) if iterations.is_integer() else iterations


def create_agent(
    llm: BaseChatModel,
    tools: Sequence[BaseTool],
    system_prompt: str,
    max_iterations: Any = None,
    flow_obj: Optional[Dict[str, Any]] = None,
) -> Agent:
    """
    Build the runnable used by a worker node.

    Args:
        llm: Chat model. Must support ``bind_tools`` when tools are given.
        tools: Tools the worker may call; may be empty.
        system_prompt: Resolved worker prompt (no placeholders left).
        max_iterations: Optional cap on model calls per turn.
        flow_obj: ``session_id``/``chat_id``/``input`` for tracing.

    Returns:
        ``ToolAgent`` when tools are present, ``PlainChain`` otherwise.

    Raises:
        UnsupportedModelError: If tools are given and the model cannot bind them.
    """
    flow_obj = flow_obj or {}
    combined_prompt = build_system_prompt(system_prompt)
    tools: List[BaseTool] = list(tools)

    if tools:
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", combined_prompt),
                MessagesPlaceholder("messages"),
                MessagesPlaceholder("agent_scratchpad"),
            ]
        )
        try:
            model_with_tools = llm.bind_tools(tools)
        except (AttributeError, NotImplementedError) as exc:
            raise UnsupportedModelError(
                "This agent only compatible with function calling models."
            ) from exc

        agent = (
            RunnablePassthrough.assign(
                team_members=_format_team_members,
                agent_scratchpad=lambda inputs: format_scratchpad(inputs.get("steps", [])),
            )
            | prompt
            | model_with_tools
            | ToolCallingAgentOutputParser()
        )
        executor = AgentExecutor.from_agent_and_tools(
            agent,
            tools,
            session_id=flow_obj.get("session_id"),
            chat_id=flow_obj.get("chat_id"),
            input=flow_obj.get("input"),
            verbose=app_config.DEBUG,
            max_iterations=parse_max_iterations(max_iterations),
        )
        logger.debug(f"Built tool agent with tools: {[t.name for t in tools]}")
        return ToolAgent(executor)

    prompt = ChatPromptTemplate.from_messages(
        [("system", combined_prompt), MessagesPlaceholder("messages")]
    )
    chain = (
        RunnablePassthrough.assign(team_members=_format_team_members)
        | prompt
        | llm
        | StrOutputParser()
    )
    return PlainChain(chain)
