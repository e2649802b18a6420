from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field


class CurrentTimeInput(BaseModel):
    tz: Optional[str] = Field(default=None, description="IANA timezone name, e.g. 'Europe/Rome'. Defaults to UTC.")


def current_time_(tz: Optional[str] = None) -> str:
    """Return the current date and time as an ISO 8601 string."""
    if not tz:
        return datetime.now(timezone.utc).isoformat()
    try:
        return datetime.now(ZoneInfo(tz)).isoformat()
    except ZoneInfoNotFoundError:
        return f"Unknown timezone: {tz}"


current_time_tool = StructuredTool.from_function(
    func=current_time_,
    name="current_time",
    description="Returns the current date and time, optionally in a given timezone.",
    args_schema=CurrentTimeInput,
)
