"""Shared fakes for flow tests."""

from typing import Any, Callable, List, Union

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage


class ToolCallingFakeModel(GenericFakeChatModel):
    """Scripted chat model that accepts tool bindings."""

    disable_streaming: bool = True

    def bind_tools(self, tools: Any, **kwargs: Any) -> "ToolCallingFakeModel":
        return self


@pytest.fixture
def fake_model() -> Callable[[List[Union[AIMessage, str]]], ToolCallingFakeModel]:
    def make(replies: List[Union[AIMessage, str]]) -> ToolCallingFakeModel:
        return ToolCallingFakeModel(messages=iter(replies))

    return make


@pytest.fixture
def tool_call() -> Callable[..., AIMessage]:
    def make(name: str, args: dict, call_id: str = "call_1", content: str = "") -> AIMessage:
        return AIMessage(content=content, tool_calls=[{"name": name, "args": args, "id": call_id}])

    return make
