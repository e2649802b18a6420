"""Chat model construction for chat model nodes."""
from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from lib import config
from utils.errors import ConfigError

logger = logging.getLogger(__name__)

PROVIDERS = ("google", "openrouter")


def _google_model(model_name: str, temperature: Optional[float], max_tokens: Optional[int]) -> BaseChatModel:
    if not config.GOOGLE_API_KEY:
        raise ConfigError("GOOGLE_API_KEY not found in environment variables. Please set it in .env file.")
    kwargs: dict[str, Any] = {"model": model_name, "google_api_key": config.GOOGLE_API_KEY}
    if temperature is not None:
        kwargs["temperature"] = temperature
    if max_tokens is not None:
        kwargs["max_output_tokens"] = max_tokens
    return ChatGoogleGenerativeAI(**kwargs)


def _openrouter_model(model_name: str, temperature: Optional[float], max_tokens: Optional[int]) -> BaseChatModel:
    if not config.OPENROUTER_API_KEY:
        raise ConfigError("OPENROUTER_API_KEY not found in environment variables. Please set it in .env file.")
    kwargs: dict[str, Any] = {
        "model": model_name,
        "api_key": config.OPENROUTER_API_KEY,
        "base_url": config.OPENROUTER_BASE_URL,
        # OpenRouter attribution headers
        "default_headers": {
            "HTTP-Referer": config.OPENROUTER_SITE_URL,
            "X-Title": config.OPENROUTER_APP_NAME,
        },
    }
    if temperature is not None:
        kwargs["temperature"] = temperature
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens
    return ChatOpenAI(**kwargs)


def build_chat_model(
    provider: Optional[str] = None,
    model_name: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """
    Create a LangChain chat model.

    Args:
        provider: "google" or "openrouter". Defaults to DEFAULT_MODEL_PROVIDER.
        model_name: Provider model id. Defaults per provider.
        temperature: Optional sampling temperature.
        max_tokens: Optional output token cap.

    Raises:
        ConfigError: Unknown provider or missing API key.
    """
    provider = (provider or config.DEFAULT_MODEL_PROVIDER).strip().lower()
    if provider == "google":
        model = _google_model(model_name or config.DEFAULT_MODEL_NAME, temperature, max_tokens)
    elif provider == "openrouter":
        model = _openrouter_model(model_name or config.OPENROUTER_MODEL, temperature, max_tokens)
    else:
        raise ConfigError(f"Unknown model provider: {provider}. Expected one of {', '.join(PROVIDERS)}")
    logger.info(f"Built {provider} chat model {model_name or 'default'}")
    return model
