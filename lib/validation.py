"""Validation helpers shared across entrypoints."""

from __future__ import annotations


def validate_user_message(message: str, *, max_length: int = 4000) -> str:
    """
    Validate a user-provided message before sending it into a flow.

    Args:
        message: Raw message from the CLI or the HTTP API.
        max_length: Optional cap to guard against prompt-injection vectors.

    Returns:
        Sanitised message trimmed of surrounding whitespace.

    Raises:
        ValueError: If the message is empty or exceeds the configured limit.
    """
    if not isinstance(message, str):
        raise ValueError("Message must be a string.")

    cleaned = message.strip()
    if not cleaned:
        raise ValueError("Message cannot be empty.")

    if len(cleaned) > max_length:
        raise ValueError(f"Message exceeds {max_length} characters.")

    return cleaned
