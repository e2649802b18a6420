"""State definition for the multi-agent LangGraph workflow."""

import operator
from typing import Annotated, List, TypedDict

from langchain_core.messages import BaseMessage


class TeamState(TypedDict, total=False):
    """State shared by the supervisor and every worker of one run."""

    # Conversation log. Nodes return only their new messages; the reducer
    # appends them, so existing entries are never rewritten.
    messages: Annotated[List[BaseMessage], operator.add]

    # Normalized names of the workers reporting to the supervisor.
    team_members: List[str]

    # Worker chosen by the supervisor for the next turn, or "FINISH".
    next: str
