"""Custom exceptions for Teamflow."""


class TeamflowError(Exception):
    """Base exception for Teamflow application."""

    pass


class ConfigError(TeamflowError):
    """Configuration-related errors raised while building a flow."""

    pass


class UnsupportedModelError(TeamflowError):
    """A chat model cannot accept the tool bindings a node asks for."""

    pass


class LangGraphError(TeamflowError):
    """Errors related to LangGraph workflows."""

    pass


class AgentExecutionError(LangGraphError):
    """Errors during agent execution."""

    pass


class AbortedError(AgentExecutionError):
    """A turn was cancelled or failed while an agent was running.

    The message is always ``"Aborted!"``; the underlying failure, if any,
    is chained as ``__cause__``.
    """

    def __init__(self, message: str = "Aborted!") -> None:
        super().__init__(message)


class ToolExecutionError(TeamflowError):
    """Errors during tool execution."""

    pass
