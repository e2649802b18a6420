"""Tests for chat model construction."""

import pytest
from langchain_openai import ChatOpenAI

from lib import config
from models.chat_models import build_chat_model
from utils.errors import ConfigError


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ConfigError, match="Unknown model provider: anthropic"):
        build_chat_model(provider="anthropic")


def test_missing_google_key_is_a_config_error(monkeypatch) -> None:
    monkeypatch.setattr(config, "GOOGLE_API_KEY", None)
    with pytest.raises(ConfigError, match="GOOGLE_API_KEY"):
        build_chat_model(provider="google")


def test_missing_openrouter_key_is_a_config_error(monkeypatch) -> None:
    monkeypatch.setattr(config, "OPENROUTER_API_KEY", None)
    with pytest.raises(ConfigError, match="OPENROUTER_API_KEY"):
        build_chat_model(provider="OpenRouter")


def test_openrouter_model_uses_openrouter_endpoint(monkeypatch) -> None:
    monkeypatch.setattr(config, "OPENROUTER_API_KEY", "sk-test")
    model = build_chat_model(provider="openrouter", model_name="openai/gpt-4o-mini", temperature=0.2, max_tokens=256)
    assert isinstance(model, ChatOpenAI)
    assert model.model_name == "openai/gpt-4o-mini"
    assert model.openai_api_base == config.OPENROUTER_BASE_URL
    assert model.max_tokens == 256
    assert model.default_headers["X-Title"] == config.OPENROUTER_APP_NAME
