"""Tests for the supervisor node and its routing."""

import asyncio
import threading

import pytest
from langchain_core.messages import HumanMessage, SystemMessage
from langgraph.graph import END  # type: ignore

from lib import config as app_config
from nodes.base import RunOptions
from nodes.supervisor import (
    DEFAULT_SUPERVISOR_PROMPT,
    FINISH,
    SupervisorNode,
    bind_workers,
    parse_route,
    route_after_supervisor,
    supervisor_step,
    _routing_messages,
)
from utils.errors import AbortedError, ConfigError

WORKERS = ["researcher", "writer"]


def test_parse_route_matches_worker_names() -> None:
    assert parse_route("researcher", WORKERS) == "researcher"
    assert parse_route("  'Writer'. ", WORKERS) == "writer"


def test_parse_route_falls_back_to_finish() -> None:
    assert parse_route("FINISH", WORKERS) == FINISH
    assert parse_route("the editor should go next", WORKERS) == FINISH


def test_route_after_supervisor_returns_worker() -> None:
    assert route_after_supervisor({"next": "writer", "team_members": WORKERS}) == "writer"


def test_route_after_supervisor_ends_on_finish_or_unknown() -> None:
    assert route_after_supervisor({"next": FINISH, "team_members": WORKERS}) == END
    assert route_after_supervisor({"next": "editor", "team_members": WORKERS}) == END
    assert route_after_supervisor({}) == END


def test_init_normalizes_name_and_applies_defaults(fake_model) -> None:
    model = fake_model(["x"])
    supervisor = SupervisorNode().init({"supervisorName": "Lead Editor", "model": model}, RunOptions())
    assert supervisor.name == "lead_editor"
    assert supervisor.label == "Lead Editor"
    assert supervisor.llm is model
    assert supervisor.supervisor_prompt == DEFAULT_SUPERVISOR_PROMPT
    assert supervisor.recursion_limit == app_config.DEFAULT_RECURSION_LIMIT


def test_init_requires_model() -> None:
    with pytest.raises(ConfigError, match="requires a chat model"):
        SupervisorNode().init({"supervisorName": "Supervisor"}, RunOptions())


def test_bind_workers_routes_with_model_reply(fake_model) -> None:
    model = fake_model(["Writer"])
    supervisor = SupervisorNode().init(
        {"supervisorName": "Supervisor", "model": model, "recursionLimit": 10}, RunOptions()
    )
    bound = bind_workers(supervisor, WORKERS, RunOptions())
    assert bound.worker_names == tuple(WORKERS)
    assert supervisor.node is None
    state = {"messages": [HumanMessage(content="Write a haiku")]}
    assert asyncio.run(bound.node(state, {})) == {"next": "writer", "team_members": WORKERS}


def test_supervisor_step_aborts_without_calling_model(fake_model) -> None:
    supervisor = SupervisorNode().init(
        {"supervisorName": "Supervisor", "model": fake_model([])}, RunOptions()
    )
    signal = threading.Event()
    signal.set()
    with pytest.raises(AbortedError):
        asyncio.run(supervisor_step({"messages": []}, supervisor, WORKERS, signal))


def test_supervisor_step_wraps_model_failures(fake_model) -> None:
    # An exhausted script makes the fake model raise.
    supervisor = SupervisorNode().init(
        {"supervisorName": "Supervisor", "model": fake_model([])}, RunOptions()
    )
    with pytest.raises(AbortedError) as excinfo:
        asyncio.run(supervisor_step({"messages": []}, supervisor, WORKERS, threading.Event()))
    assert excinfo.value.__cause__ is not None


def test_routing_prompt_fills_team_members(fake_model) -> None:
    supervisor = SupervisorNode().init({"supervisorName": "Supervisor", "model": fake_model([])}, RunOptions())
    messages = _routing_messages(supervisor, {"messages": [HumanMessage(content="hi")]}, WORKERS)
    assert isinstance(messages[0], SystemMessage)
    assert "researcher, writer" in messages[0].content
    assert "researcher, writer, FINISH" in messages[-1].content
