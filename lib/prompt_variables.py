"""Helpers for `{placeholder}` variables in user-authored prompts."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional

from utils.errors import ConfigError


# Any single-brace text without a colon, e.g. {topic} or {research role};
# doubled braces are literal text.
PROMPT_VARIABLE_RE = re.compile(r"(?<!\{)\{([^{}:]+)\}(?!\})")


def get_input_variables(template: str) -> List[str]:
    """
    Extract the variable names referenced in a prompt template.

    Args:
        template: Prompt text such as ``"You are {role}."``.

    Returns:
        Names in first-occurrence order, without duplicates.
    """
    if not isinstance(template, str):
        return []
    names: List[str] = []
    for match in PROMPT_VARIABLE_RE.finditer(template):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def parse_prompt_values(raw: Any, worker_name: str) -> Dict[str, Any]:
    """
    Parse the optional "Prompt Input Values" setting of a node.

    Args:
        raw: ``None``, a dict, or a JSON object encoded as text.
        worker_name: Node label, used in error messages.

    Returns:
        Mapping of variable name to value.

    Raises:
        ConfigError: If the text is not valid JSON or not a JSON object.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        values = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ConfigError(
            f"Invalid JSON in the Worker's Prompt Input Values ({worker_name}): {exc}"
        ) from exc
    if not isinstance(values, dict):
        raise ConfigError(
            f"Prompt Input Values of worker {worker_name} must be a JSON object."
        )
    return values


def missing_variables(variables: List[str], values: Mapping[str, Any]) -> List[str]:
    return [name for name in variables if name not in values]


def resolve_prompt(
    template: str,
    values: Optional[Mapping[str, Any]],
    worker_name: str,
) -> str:
    """
    Substitute every ``{name}`` in ``template`` with its configured value.

    Raises:
        ConfigError: If any referenced variable has no value.
    """
    values = values or {}
    missing = missing_variables(get_input_variables(template), values)
    if missing:
        raise ConfigError(
            f"Worker input variables values are not provided for {worker_name}: "
            f"{', '.join(missing)}"
        )
    return PROMPT_VARIABLE_RE.sub(lambda m: str(values[m.group(1)]), template)


def escape_braces(text: str) -> str:
    """Make literal text safe to embed in a LangChain f-string template."""
    return text.replace("{", "{{").replace("}", "}}")
