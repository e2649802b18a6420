"""Tests for the workflow CLI."""

import json

from apps.workflow_cli import main as cli
from nodes.chat_model import ChatModelNode
from workflows.langgraph.orchestrator.flow import NODE_TYPES
from workflows.langgraph.orchestrator.graph import build_flow

FLOW = {
    "nodes": [
        {"id": "chatModel_0", "type": "chatModel", "inputs": {"modelName": "m"}},
        {"id": "supervisor_0", "type": "supervisor", "inputs": {"supervisorName": "Supervisor", "model": "{{chatModel_0}}"}},
        {
            "id": "worker_0",
            "type": "worker",
            "inputs": {"workerName": "Writer", "workerPrompt": "You write.", "supervisor": "{{supervisor_0}}"},
        },
    ]
}


class ScriptedModelNode(ChatModelNode):
    def __init__(self, model):
        self.model = model

    def init(self, inputs, options):
        return self.model


def test_cli_runs_flow_and_writes_output(tmp_path, monkeypatch, capsys, fake_model) -> None:
    flow_path = tmp_path / "flow.json"
    flow_path.write_text(json.dumps(FLOW), encoding="utf-8")
    output_path = tmp_path / "out.json"
    node_types = {**NODE_TYPES, "chatModel": ScriptedModelNode(fake_model(["Writer", "Done.", "FINISH"]))}
    monkeypatch.setattr(cli, "build_flow", lambda flow, options: build_flow(flow, options, node_types))

    exit_code = cli._main(["--flow", str(flow_path), "-m", "Write", "--session-id", "s1", "-o", str(output_path)])

    assert exit_code == 0
    assert "[writer]\nDone." in capsys.readouterr().out
    saved = json.loads(output_path.read_text(encoding="utf-8"))
    assert saved["session_id"] == "s1"
    assert [m["content"] for m in saved["messages"]] == ["Write", "Done."]


def test_cli_returns_error_code_for_bad_flow(tmp_path, capsys) -> None:
    flow_path = tmp_path / "flow.json"
    flow_path.write_text(json.dumps({"nodes": FLOW["nodes"][1:]}), encoding="utf-8")

    assert cli._main(["--flow", str(flow_path), "-m", "Write"]) == 1
    assert "Flow configuration error" in capsys.readouterr().out


def test_cli_reports_missing_flow_file(tmp_path, capsys) -> None:
    missing = tmp_path / "missing.json"

    assert cli._main(["--flow", str(missing), "-m", "Write"]) == 1
    out = capsys.readouterr().out
    assert "File error" in out
    assert "missing.json" in out
