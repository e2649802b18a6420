"""FastAPI entrypoint for validating and running flows."""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from apps.workflow_cli.main import serialize_messages
from lib.tool_registry import get_tool_descriptions
from lib.validation import validate_user_message
from nodes.base import RunOptions
from utils.errors import AbortedError, AgentExecutionError, ConfigError, UnsupportedModelError
from utils.logging import logger
from workflows.langgraph.orchestrator.flow import NODE_TYPES, FlowDefinition, build_order, validate_nodes
from workflows.langgraph.orchestrator.graph import build_flow, run_flow, worker_messages

load_dotenv()

app = FastAPI(title="Teamflow API")

# Runs in progress, keyed by chat id, so they can be aborted.
_ACTIVE_RUNS: Dict[str, RunOptions] = {}


class ValidateFlowRequest(BaseModel):
    flow: FlowDefinition


class RunFlowRequest(BaseModel):
    flow: FlowDefinition
    message: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    chat_id: Optional[str] = None


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/nodes")
def list_node_types() -> List[Dict[str, Any]]:
    return [
        {
            "name": node.name,
            "label": node.label,
            "type": node.type,
            "category": node.category,
            "version": node.version,
            "baseClasses": node.base_classes,
            "inputs": [param.model_dump(by_alias=True, exclude_none=True) for param in node.inputs],
        }
        for node in NODE_TYPES.values()
    ]


@app.get("/tools")
def list_tools() -> Dict[str, Dict[str, Any]]:
    return get_tool_descriptions()


@app.post("/flows/validate")
def validate_flow(request: ValidateFlowRequest) -> dict:
    try:
        validated = validate_nodes(request.flow, NODE_TYPES)
        order = build_order(validated, NODE_TYPES)
    except ConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"valid": True, "order": order}


@app.post("/flows/run")
async def run(request: RunFlowRequest) -> dict:
    try:
        message = validate_user_message(request.message)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    chat_id = request.chat_id or str(uuid.uuid4())
    if chat_id in _ACTIVE_RUNS:
        raise HTTPException(status_code=409, detail=f"A run with chat id {chat_id} is already in progress")
    options = RunOptions(session_id=request.session_id, chat_id=chat_id, input=message)
    _ACTIVE_RUNS[chat_id] = options
    try:
        built = build_flow(request.flow, options)
        state = await run_flow(built, message)
    except (ConfigError, UnsupportedModelError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AbortedError as exc:
        logger.warning(f"Run {chat_id} aborted: {exc.__cause__ or 'cancelled'}")
        raise HTTPException(status_code=499, detail=str(exc)) from exc
    except AgentExecutionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    finally:
        _ACTIVE_RUNS.pop(chat_id, None)

    return {
        "session_id": request.session_id,
        "chat_id": chat_id,
        "order": built.order,
        "messages": serialize_messages(worker_messages(state, built.worker_names)),
    }


@app.post("/runs/{chat_id}/abort")
def abort_run(chat_id: str) -> dict:
    options = _ACTIVE_RUNS.get(chat_id)
    if options is None:
        raise HTTPException(status_code=404, detail=f"No active run with chat id {chat_id}")
    options.signal.set()
    return {"status": "aborting", "chat_id": chat_id}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
