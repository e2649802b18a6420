"""Chat model node."""
from typing import Any, Mapping

from langchain_core.language_models import BaseChatModel

from models.chat_models import PROVIDERS, build_chat_model
from nodes.base import BaseNode, RunOptions
from nodes.params import NodeParam


class ChatModelNode(BaseNode):
    label = "Chat Model"
    name = "chatModel"
    version = 1.0
    type = "BaseChatModel"
    category = "Chat Models"
    inputs = [
        NodeParam(
            label="Provider",
            name="provider",
            type="options",
            optional=True,
            description=f"One of: {', '.join(PROVIDERS)}. Defaults to DEFAULT_MODEL_PROVIDER.",
        ),
        NodeParam(label="Model Name", name="modelName", type="string", optional=True),
        NodeParam(label="Temperature", name="temperature", type="number", optional=True, default=0.3),
        NodeParam(
            label="Max Tokens",
            name="maxTokens",
            type="number",
            optional=True,
            additionalParams=True,
        ),
    ]

    def init(self, inputs: Mapping[str, Any], options: RunOptions) -> BaseChatModel:
        max_tokens = inputs.get("maxTokens")
        return build_chat_model(
            provider=inputs.get("provider"),
            model_name=inputs.get("modelName"),
            temperature=inputs.get("temperature"),
            max_tokens=int(max_tokens) if max_tokens is not None else None,
        )
