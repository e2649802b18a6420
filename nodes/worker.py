"""Worker node: one agent of a supervisor-led team."""
from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.runnables import RunnableConfig

from agents.factory import Agent, create_agent
from lib.prompt_variables import get_input_variables, parse_prompt_values, resolve_prompt
from lib.state import TeamState
from nodes.base import BaseNode, RunOptions
from nodes.params import NodeParam
from utils.errors import AbortedError, ConfigError
from utils.logging import log_error, log_event

EXAMPLE_PROMPT = "You are a research assistant who can search for up-to-date info using search engine."

StepFunction = Callable[[TeamState, RunnableConfig], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class WorkerDefinition:
    """What the graph runtime needs to wire and run a worker."""

    node: StepFunction
    name: str
    label: str
    worker_prompt: str
    worker_input_variables: List[str]
    parent_supervisor_name: str
    type: str = field(default="worker")


def normalize_worker_name(label: str) -> str:
    """``"Research Assistant"`` -> ``"research_assistant"``; idempotent."""
    return re.sub(r"\s", "_", label.lower()).strip()


def flatten_tools(tools: Any) -> List[Any]:
    if tools is None:
        return []
    if not isinstance(tools, (list, tuple)):
        return [tools]
    flat: List[Any] = []
    for item in tools:
        flat.extend(flatten_tools(item))
    return flat


class WorkerNode(BaseNode):
    label = "Worker"
    name = "worker"
    version = 1.0
    type = "Worker"
    category = "Multi Agents"
    inputs = [
        NodeParam(label="Worker Name", name="workerName", type="string", placeholder="Worker"),
        NodeParam(
            label="Worker Prompt",
            name="workerPrompt",
            type="string",
            rows=4,
            default=EXAMPLE_PROMPT,
        ),
        NodeParam(label="Tools", name="tools", type="Tool", list=True, optional=True),
        NodeParam(label="Supervisor", name="supervisor", type="Supervisor"),
        NodeParam(
            label="Tool Calling Chat Model",
            name="model",
            type="BaseChatModel",
            optional=True,
            description=(
                "Only compatible with models that are capable of function calling. "
                "If not specified, supervisor's model will be used"
            ),
        ),
        NodeParam(
            label="Max Iterations",
            name="maxIterations",
            type="number",
            optional=True,
            additionalParams=True,
        ),
        NodeParam(
            label="Prompt Input Values",
            name="promptValues",
            type="json",
            optional=True,
            additionalParams=True,
        ),
    ]

    def init(self, inputs: Mapping[str, Any], options: RunOptions) -> WorkerDefinition:
        """
        Build a worker from its resolved inputs.

        Args:
            inputs: ``workerName``, ``workerPrompt``, ``tools``, ``supervisor``
                (an already built supervisor definition), ``model``,
                ``maxIterations`` and ``promptValues``.
            options: Run options carrying the abort signal and tracing ids.

        Raises:
            ConfigError: Missing name or model, bad prompt values, or
                prompt variables without values.
            UnsupportedModelError: Tools given to a model that cannot bind them.
        """
        worker_label: Optional[str] = inputs.get("workerName")
        if not worker_label:
            raise ConfigError("Worker name is required!")
        worker_name = normalize_worker_name(worker_label)

        supervisor = inputs.get("supervisor")
        model: Optional[BaseChatModel] = inputs.get("model")
        llm = model or getattr(supervisor, "llm", None)
        if llm is None:
            raise ConfigError(
                f"Worker {worker_label} has no chat model and no supervisor model to fall back to."
            )

        prompt_values = parse_prompt_values(inputs.get("promptValues"), worker_label)
        worker_template = inputs.get("workerPrompt") or ""
        worker_input_variables = get_input_variables(worker_template)
        worker_prompt = resolve_prompt(worker_template, prompt_values, worker_label)

        tools = flatten_tools(inputs.get("tools"))
        agent = create_agent(
            llm,
            tools,
            worker_prompt,
            inputs.get("maxIterations"),
            options.flow_obj(),
        )
        abort_signal = options.signal
        workflow_id = options.workflow_id

        async def worker_node(state: TeamState, config: RunnableConfig) -> Dict[str, Any]:
            return await agent_node(
                state,
                agent=agent,
                name=worker_name,
                abort_signal=abort_signal,
                config=config,
                workflow_id=workflow_id,
            )

        log_event(workflow_id, worker_name, "worker_configured", {"tools": len(tools)})
        return WorkerDefinition(
            node=worker_node,
            name=worker_name,
            label=worker_label,
            worker_prompt=worker_prompt,
            worker_input_variables=worker_input_variables,
            parent_supervisor_name=getattr(supervisor, "name", None) or "supervisor",
        )


async def agent_node(
    state: TeamState,
    agent: Agent,
    name: str,
    abort_signal: threading.Event,
    config: Optional[RunnableConfig] = None,
    workflow_id: str = "flow",
) -> Dict[str, Any]:
    """
    Run one worker turn against the shared team state.

    Returns:
        ``{"messages": [HumanMessage]}``, a delta the graph appends to the
        team state.

    Raises:
        AbortedError: On a set abort signal or any failure during the turn.
            The original exception is chained as ``__cause__``.
    """
    try:
        if abort_signal.is_set():
            raise AbortedError()
        result = await agent.ainvoke({**state, "signal": abort_signal}, config)

        additional_kwargs: Dict[str, Any] = {}
        if isinstance(result, dict):
            if result.get("usedTools"):
                additional_kwargs["usedTools"] = result["usedTools"]
            if result.get("sourceDocuments"):
                additional_kwargs["sourceDocuments"] = result["sourceDocuments"]
        content = result if isinstance(result, str) else result.get("output", "")

        log_event(workflow_id, name, "worker_completed", {"used_tools": "usedTools" in additional_kwargs})
        return {
            "messages": [
                HumanMessage(content=content, name=name, additional_kwargs=additional_kwargs)
            ]
        }
    except AbortedError:
        log_event(workflow_id, name, "worker_aborted")
        raise
    except Exception as exc:
        log_error(workflow_id, name, exc)
        raise AbortedError() from exc
