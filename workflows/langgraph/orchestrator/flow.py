"""Flow definitions and their dependency order."""
from __future__ import annotations

import heapq
import json
from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from nodes.base import BaseNode
from nodes.chat_model import ChatModelNode
from nodes.params import NodeConfig, coerce_inputs, node_reference
from nodes.supervisor import SupervisorNode
from nodes.tool import ToolNode
from nodes.worker import WorkerNode
from utils.errors import ConfigError


NODE_TYPES: Dict[str, BaseNode] = {
    node.name: node for node in (ChatModelNode(), ToolNode(), SupervisorNode(), WorkerNode())
}

# Among nodes whose dependencies are met, build in this order.
_CATEGORY_RANK = {"Chat Models": 0, "Tools": 0, "Multi Agents": 1}


class FlowDefinition(BaseModel):
    """A flow as saved by the editor: a list of node snapshots."""

    nodes: List[NodeConfig] = Field(default_factory=list)


def load_flow(data: Union[str, bytes, Mapping[str, Any]]) -> FlowDefinition:
    """
    Parse a flow definition from JSON text or a dict.

    Raises:
        ConfigError: Invalid JSON or a payload that does not match the schema.
    """
    try:
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        return FlowDefinition.model_validate(data)
    except (json.JSONDecodeError, PydanticValidationError) as exc:
        raise ConfigError(f"Invalid flow definition: {exc}") from exc


def node_type_for(config: NodeConfig, node_types: Mapping[str, BaseNode]) -> BaseNode:
    try:
        return node_types[config.type]
    except KeyError:
        raise ConfigError(
            f"Node {config.id} has unknown type '{config.type}'. "
            f"Known types: {', '.join(sorted(node_types))}"
        ) from None


def validate_nodes(
    flow: FlowDefinition, node_types: Mapping[str, BaseNode]
) -> Dict[str, NodeConfig]:
    """
    Phase one: check every node's inputs without building anything.

    Returns:
        Node id -> snapshot whose inputs are coerced to their declared types.
    """
    validated: Dict[str, NodeConfig] = {}
    for config in flow.nodes:
        if config.id in validated:
            raise ConfigError(f"Duplicate node id: {config.id}")
        node_type = node_type_for(config, node_types)
        label = config.label or config.id
        inputs = coerce_inputs(node_type.inputs, dict(config.inputs), label)
        validated[config.id] = config.model_copy(update={"inputs": inputs})
    return validated


def dependencies(
    config: NodeConfig,
    validated: Mapping[str, NodeConfig],
    node_types: Mapping[str, BaseNode],
) -> List[str]:
    """Ids of the nodes ``config`` references, checked against param types."""
    node_type = node_type_for(config, node_types)
    deps: List[str] = []
    for param in node_type.reference_params():
        value = config.inputs.get(param.name)
        references = value if isinstance(value, list) else [value]
        for reference in references:
            if reference is None:
                continue
            target_id = node_reference(reference)
            if target_id not in validated:
                raise ConfigError(
                    f"Node {config.id} input {param.label} references missing node {target_id}"
                )
            target_type = node_type_for(validated[target_id], node_types)
            if target_type.type != param.type:
                raise ConfigError(
                    f"Node {config.id} input {param.label} expects a {param.type} node, "
                    f"got {target_id} ({target_type.type})"
                )
            if target_id not in deps:
                deps.append(target_id)
    return deps


def build_order(
    validated: Mapping[str, NodeConfig], node_types: Mapping[str, BaseNode]
) -> List[str]:
    """
    Topologically sort node ids so every node follows its dependencies.

    Models and tools come first, then supervisors and workers; ties keep
    declaration order.

    Raises:
        ConfigError: If the references form a cycle.
    """
    position = {node_id: index for index, node_id in enumerate(validated)}
    deps = {node_id: dependencies(cfg, validated, node_types) for node_id, cfg in validated.items()}
    dependents: Dict[str, List[str]] = {node_id: [] for node_id in validated}
    remaining = {node_id: len(node_deps) for node_id, node_deps in deps.items()}
    for node_id, node_deps in deps.items():
        for dep in node_deps:
            dependents[dep].append(node_id)

    def rank(node_id: str) -> tuple:
        category = node_type_for(validated[node_id], node_types).category
        return (_CATEGORY_RANK.get(category, 2), position[node_id], node_id)

    ready = [rank(node_id) for node_id, count in remaining.items() if count == 0]
    heapq.heapify(ready)
    order: List[str] = []
    while ready:
        node_id = heapq.heappop(ready)[-1]
        order.append(node_id)
        for dependent in dependents[node_id]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                heapq.heappush(ready, rank(dependent))

    if len(order) != len(validated):
        cyclic = sorted(node_id for node_id, count in remaining.items() if count > 0)
        raise ConfigError(f"Flow has a dependency cycle between nodes: {', '.join(cyclic)}")
    return order


def resolve_inputs(
    config: NodeConfig,
    built: Mapping[str, Any],
    node_types: Mapping[str, BaseNode],
) -> Dict[str, Any]:
    """Replace ``{{node_id}}`` references with the objects built for them."""
    resolved = dict(config.inputs)
    for param in node_type_for(config, node_types).reference_params():
        value = resolved.get(param.name)
        if isinstance(value, list):
            resolved[param.name] = [built[node_reference(item)] for item in value]
        elif value is not None:
            resolved[param.name] = built[node_reference(value)]
    return resolved
