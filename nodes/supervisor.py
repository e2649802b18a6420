"""Supervisor node that decides which worker acts next."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END  # type: ignore

from agents.executor import extract_text
from lib import config as app_config
from lib.state import TeamState
from nodes.base import BaseNode, RunOptions
from nodes.params import NodeParam
from nodes.worker import StepFunction, normalize_worker_name
from utils.errors import AbortedError, ConfigError
from utils.logging import log_error, log_event

FINISH = "FINISH"

DEFAULT_SUPERVISOR_PROMPT = (
    "You are a supervisor tasked with managing a conversation between the following workers: "
    "{team_members}. Given the following user request, respond with the worker to act next. "
    "Each worker will perform a task and respond with their results and status. "
    "When finished, respond with FINISH."
)

ROUTING_INSTRUCTION = (
    "Given the conversation above, who should act next? Or should we FINISH? "
    "Select one of: {options}.\n"
    "Respond with ONLY the name. Do not include any explanation or additional text."
)


@dataclass(frozen=True)
class SupervisorDefinition:
    name: str
    label: str
    llm: BaseChatModel
    supervisor_prompt: str
    recursion_limit: int
    worker_names: Tuple[str, ...] = ()
    node: Optional[StepFunction] = None
    type: str = field(default="supervisor")


def parse_route(reply: str, worker_names: Sequence[str]) -> str:
    """Map the model's reply to a worker name, or ``FINISH``."""
    choice = reply.strip().strip("\"'`.").strip()
    normalized = normalize_worker_name(choice)
    if normalized in worker_names:
        return normalized
    return FINISH


def route_after_supervisor(state: TeamState) -> str:
    """
    Conditional routing function for the supervisor's decision.

    Returns:
        The chosen worker's node name, or END for ``FINISH``/unknown names.
    """
    next_node = state.get("next")
    if next_node and next_node in state.get("team_members", []):
        return next_node
    return END


class SupervisorNode(BaseNode):
    label = "Supervisor"
    name = "supervisor"
    version = 1.0
    type = "Supervisor"
    category = "Multi Agents"
    inputs = [
        NodeParam(
            label="Supervisor Name",
            name="supervisorName",
            type="string",
            placeholder="Supervisor",
            default="Supervisor",
        ),
        NodeParam(
            label="Supervisor Prompt",
            name="supervisorPrompt",
            type="string",
            rows=4,
            optional=True,
            default=DEFAULT_SUPERVISOR_PROMPT,
            additionalParams=True,
        ),
        NodeParam(label="Tool Calling Chat Model", name="model", type="BaseChatModel"),
        NodeParam(
            label="Recursion Limit",
            name="recursionLimit",
            type="number",
            optional=True,
            additionalParams=True,
            description="Maximum number of supervisor and worker turns in one run",
        ),
    ]

    def init(self, inputs: Mapping[str, Any], options: RunOptions) -> SupervisorDefinition:
        supervisor_label: Optional[str] = inputs.get("supervisorName")
        if not supervisor_label:
            raise ConfigError("Supervisor name is required!")
        llm: Optional[BaseChatModel] = inputs.get("model")
        if llm is None:
            raise ConfigError(f"Supervisor {supervisor_label} requires a chat model.")

        recursion_limit = inputs.get("recursionLimit") or app_config.DEFAULT_RECURSION_LIMIT
        return SupervisorDefinition(
            name=normalize_worker_name(supervisor_label),
            label=supervisor_label,
            llm=llm,
            supervisor_prompt=inputs.get("supervisorPrompt") or DEFAULT_SUPERVISOR_PROMPT,
            recursion_limit=int(recursion_limit),
        )


def bind_workers(
    supervisor: SupervisorDefinition,
    worker_names: Sequence[str],
    options: RunOptions,
) -> SupervisorDefinition:
    """Return a copy of ``supervisor`` whose step routes among ``worker_names``."""
    names = tuple(worker_names)
    abort_signal = options.signal
    workflow_id = options.workflow_id

    async def supervisor_node(state: TeamState, config: RunnableConfig) -> Dict[str, Any]:
        return await supervisor_step(
            state,
            supervisor=supervisor,
            worker_names=names,
            abort_signal=abort_signal,
            config=config,
            workflow_id=workflow_id,
        )

    return replace(supervisor, worker_names=names, node=supervisor_node)


def _routing_messages(
    supervisor: SupervisorDefinition, state: TeamState, worker_names: Sequence[str]
) -> List[Any]:
    team_members = ", ".join(worker_names)
    system_prompt = supervisor.supervisor_prompt.replace("{team_members}", team_members)
    options = ", ".join([*worker_names, FINISH])
    return [
        SystemMessage(content=system_prompt),
        *state.get("messages", []),
        HumanMessage(content=ROUTING_INSTRUCTION.format(options=options)),
    ]


async def supervisor_step(
    state: TeamState,
    supervisor: SupervisorDefinition,
    worker_names: Sequence[str],
    abort_signal: threading.Event,
    config: Optional[RunnableConfig] = None,
    workflow_id: str = "flow",
) -> Dict[str, Any]:
    """
    Ask the supervisor model which worker acts next.

    Returns:
        ``{"next": worker_name | "FINISH", "team_members": [...]}``.

    Raises:
        AbortedError: On a set abort signal or a failed model call.
    """
    try:
        if abort_signal.is_set():
            raise AbortedError()
        response = await supervisor.llm.ainvoke(
            _routing_messages(supervisor, state, worker_names), config
        )
        next_node = parse_route(extract_text(response.content), worker_names)
    except AbortedError:
        log_event(workflow_id, supervisor.name, "supervisor_aborted")
        raise
    except Exception as exc:
        log_error(workflow_id, supervisor.name, exc)
        raise AbortedError() from exc

    log_event(workflow_id, supervisor.name, "supervisor_routed", {"next": next_node})
    return {"next": next_node, "team_members": list(worker_names)}
