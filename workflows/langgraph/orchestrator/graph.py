"""LangGraph orchestrator that runs a supervisor and its workers as a team."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from langchain_core.messages import BaseMessage, HumanMessage
from langgraph.errors import GraphRecursionError  # type: ignore
from langgraph.graph import END, StateGraph  # type: ignore

from lib.state import TeamState
from nodes.base import BaseNode, RunOptions
from nodes.supervisor import SupervisorDefinition, bind_workers, route_after_supervisor
from nodes.worker import WorkerDefinition
from utils.decorators import log_execution
from utils.errors import AgentExecutionError, ConfigError
from utils.logging import log_event
from workflows.langgraph.orchestrator.flow import (
    NODE_TYPES,
    FlowDefinition,
    build_order,
    node_type_for,
    resolve_inputs,
    validate_nodes,
)


@dataclass
class BuiltFlow:
    graph: Any
    supervisor: SupervisorDefinition
    workers: List[WorkerDefinition]
    order: List[str]
    options: RunOptions = field(default_factory=RunOptions)

    @property
    def worker_names(self) -> List[str]:
        return [worker.name for worker in self.workers]


def create_graph(supervisor: SupervisorDefinition, workers: List[WorkerDefinition]) -> Any:
    """
    Creates and configures the multi-agent LangGraph workflow.

    The supervisor is the entry point. It routes to one worker per turn,
    every worker reports back to the supervisor, and the run ends when
    the supervisor answers FINISH.
    """
    graph = StateGraph(TeamState)

    graph.add_node(supervisor.name, supervisor.node)
    for worker in workers:
        graph.add_node(worker.name, worker.node)
        graph.add_edge(worker.name, supervisor.name)

    graph.set_entry_point(supervisor.name)

    path_map: Dict[str, str] = {worker.name: worker.name for worker in workers}
    path_map[END] = END
    graph.add_conditional_edges(supervisor.name, route_after_supervisor, path_map)

    return graph.compile()


def _check_team(supervisors: List[SupervisorDefinition], workers: List[WorkerDefinition]) -> None:
    if len(supervisors) != 1:
        raise ConfigError(f"A flow needs exactly one supervisor, found {len(supervisors)}")
    if not workers:
        raise ConfigError("A flow needs at least one worker")

    supervisor = supervisors[0]
    seen = {supervisor.name}
    reserved = set(TeamState.__annotations__)
    for definition in [supervisor, *workers]:
        if definition.name in reserved:
            raise ConfigError(f"Node name {definition.name} clashes with a team state key")
    for worker in workers:
        if worker.name in seen:
            raise ConfigError(f"Duplicate node name in team: {worker.name}")
        seen.add(worker.name)
        if worker.parent_supervisor_name != supervisor.name:
            raise ConfigError(
                f"Worker {worker.label} reports to {worker.parent_supervisor_name}, "
                f"not {supervisor.name}"
            )


@log_execution
def build_flow(
    flow: FlowDefinition,
    options: Optional[RunOptions] = None,
    node_types: Optional[Mapping[str, BaseNode]] = None,
) -> BuiltFlow:
    """
    Build a runnable team from a flow definition.

    Phase one validates every node's inputs. Phase two builds nodes in
    dependency order, so a supervisor always exists before its workers.

    Args:
        flow: Parsed flow definition.
        options: Abort signal and tracing ids shared by all nodes.
        node_types: Node type registry; defaults to the built-in types.

    Raises:
        ConfigError: Invalid inputs, broken references, cycles or a team
            without exactly one supervisor and at least one worker.
        UnsupportedModelError: A worker with tools on a model that cannot bind them.
    """
    options = options or RunOptions()
    node_types = node_types or NODE_TYPES

    validated = validate_nodes(flow, node_types)
    order = build_order(validated, node_types)

    built: Dict[str, Any] = {}
    supervisors: List[SupervisorDefinition] = []
    workers: List[WorkerDefinition] = []
    for node_id in order:
        config = validated[node_id]
        node_type = node_type_for(config, node_types)
        built[node_id] = node_type.init(resolve_inputs(config, built, node_types), options)
        if isinstance(built[node_id], SupervisorDefinition):
            supervisors.append(built[node_id])
        elif isinstance(built[node_id], WorkerDefinition):
            workers.append(built[node_id])

    _check_team(supervisors, workers)
    supervisor = bind_workers(supervisors[0], [worker.name for worker in workers], options)
    log_event(options.workflow_id, supervisor.name, "flow_built", {"order": order})
    return BuiltFlow(
        graph=create_graph(supervisor, workers),
        supervisor=supervisor,
        workers=workers,
        order=order,
        options=options,
    )


def initial_state(message: str, worker_names: List[str]) -> TeamState:
    return {
        "messages": [HumanMessage(content=message)],
        "team_members": list(worker_names),
        "next": "",
    }


async def run_flow(built: BuiltFlow, message: str) -> TeamState:
    """
    Run one user message through a built team.

    Returns:
        The final team state.

    Raises:
        AbortedError: A node was cancelled or failed.
        AgentExecutionError: The run exceeded the supervisor's recursion limit.
    """
    options = built.options
    config = {
        "recursion_limit": built.supervisor.recursion_limit,
        "metadata": {"session_id": options.session_id, "chat_id": options.chat_id},
    }
    log_event(options.workflow_id, built.supervisor.name, "flow_started")
    try:
        state = await built.graph.ainvoke(initial_state(message, built.worker_names), config)
    except GraphRecursionError as exc:
        raise AgentExecutionError(
            f"Flow stopped after {built.supervisor.recursion_limit} steps without finishing"
        ) from exc
    log_event(options.workflow_id, built.supervisor.name, "flow_finished", {"messages": len(state.get("messages", []))})
    return state


def worker_messages(state: TeamState, worker_names: List[str]) -> List[BaseMessage]:
    """Messages in ``state`` that were written by one of the workers."""
    return [msg for msg in state.get("messages", []) if getattr(msg, "name", None) in worker_names]
