"""Declared node inputs and immutable node configuration snapshots."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.errors import ConfigError

logger = logging.getLogger(__name__)

# Params of these types are wired to other nodes instead of typed in.
REFERENCE_TYPES = {"BaseChatModel", "Tool", "Supervisor"}

NODE_REFERENCE_RE = re.compile(r"^\{\{\s*([^{}\s]+)\s*\}\}$")


class NodeParam(BaseModel):
    """One input a node type exposes to the flow editor."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str
    name: str
    type: str
    optional: bool = False
    list: bool = False
    default: Any = None
    rows: Optional[int] = None
    placeholder: Optional[str] = None
    description: Optional[str] = None
    additional_params: bool = Field(default=False, alias="additionalParams")

    @property
    def is_reference(self) -> bool:
        return self.type in REFERENCE_TYPES


class NodeConfig(BaseModel):
    """Configuration snapshot of one node in a flow definition.

    Snapshots are never edited in place; use ``update_inputs`` to derive a
    new one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    label: str = ""
    inputs: Dict[str, Any] = Field(default_factory=dict)


def update_inputs(config: NodeConfig, **changes: Any) -> NodeConfig:
    """Return a new snapshot with ``changes`` merged over the current inputs."""
    return config.model_copy(update={"inputs": {**config.inputs, **changes}})


def node_reference(value: Any) -> Optional[str]:
    """Return the node id in a ``"{{node_id}}"`` reference, else ``None``."""
    if not isinstance(value, str):
        return None
    match = NODE_REFERENCE_RE.match(value.strip())
    return match.group(1) if match else None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def _coerce_number(param: NodeParam, value: Any, node_label: str) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"{node_label}: {param.label} must be a number")
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"{node_label}: {param.label} must be a number, got {value!r}") from exc
    return int(number) if number.is_integer() else number


def _coerce_boolean(param: NodeParam, value: Any, node_label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"true", "1", "yes", "on"}:
        return True
    if text in {"false", "0", "no", "off"}:
        return False
    raise ConfigError(f"{node_label}: {param.label} must be true or false, got {value!r}")


def _coerce_json(param: NodeParam, value: Any, node_label: str) -> Any:
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid JSON in {node_label}'s {param.label}: {exc}") from exc


def _coerce_reference(param: NodeParam, value: Any, node_label: str) -> Any:
    values = value if isinstance(value, list) else [value]
    for item in values:
        if node_reference(item) is None:
            raise ConfigError(
                f"{node_label}: {param.label} must reference a node as '{{{{node_id}}}}', got {item!r}"
            )
    if param.list:
        return list(values)
    if len(values) != 1:
        raise ConfigError(f"{node_label}: {param.label} accepts a single node")
    return values[0]


def coerce_inputs(
    params: List[NodeParam], inputs: Dict[str, Any], node_label: str
) -> Dict[str, Any]:
    """
    Validate raw inputs against a node type's params.

    Args:
        params: Declared params of the node type.
        inputs: Raw values from the flow definition.
        node_label: Node label, used in error messages.

    Returns:
        Inputs with defaults applied and values converted to their declared
        types. Unknown keys are dropped.

    Raises:
        ConfigError: If a required value is missing or cannot be converted.
    """
    known = {param.name for param in params}
    for key in inputs:
        if key not in known:
            logger.warning(f"{node_label}: ignoring unknown input '{key}'")

    coerced: Dict[str, Any] = {}
    for param in params:
        value = inputs.get(param.name, param.default)
        if _is_blank(value):
            if not param.optional:
                raise ConfigError(f"{node_label}: {param.label} is required")
            coerced[param.name] = [] if param.list else None
            continue

        if param.is_reference:
            coerced[param.name] = _coerce_reference(param, value, node_label)
        elif param.type == "number":
            coerced[param.name] = _coerce_number(param, value, node_label)
        elif param.type == "boolean":
            coerced[param.name] = _coerce_boolean(param, value, node_label)
        elif param.type == "json":
            coerced[param.name] = _coerce_json(param, value, node_label)
        elif param.type == "options":
            coerced[param.name] = str(value)
        else:
            coerced[param.name] = value if isinstance(value, str) else str(value)
    return coerced
