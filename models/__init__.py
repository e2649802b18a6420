import logging
from .chat_models import PROVIDERS, build_chat_model

__all__ = ["PROVIDERS", "build_chat_model"]

"""
Models package initialization.
This file exposes the chat model factory used by chat model nodes.
"""


logging.getLogger(__name__).addHandler(logging.NullHandler())
