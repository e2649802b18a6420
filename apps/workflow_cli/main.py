"""CLI harness for running a multi-agent flow end-to-end."""
import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

from lib import config
from lib.validation import validate_user_message
from nodes.base import RunOptions
from utils.errors import AbortedError, AgentExecutionError, ConfigError, UnsupportedModelError
from utils.logging import set_log_level
from workflows.langgraph.orchestrator.flow import load_flow
from workflows.langgraph.orchestrator.graph import build_flow, run_flow, worker_messages


def serialize_messages(messages) -> list[dict]:
    return [
        {
            "name": getattr(message, "name", None),
            "type": message.type,
            "content": message.content,
            "additional_kwargs": message.additional_kwargs,
        }
        for message in messages
    ]


def run_flow_file(flow_path: str, message: str, session_id: str, output_file: str | None = None) -> dict:
    """
    Build the flow in ``flow_path`` and run one message through it.

    Args:
        flow_path: Path to a flow definition JSON file.
        message: The input message to process.
        session_id: Identifier used for tracing and logs.
        output_file: Optional path to write the final messages to.
    """
    print("=" * 60)
    print("Running Teamflow")
    print("=" * 60)
    print(f"\nFlow: {flow_path}")
    print(f"Input Message: {message}\n")

    flow = load_flow(Path(flow_path).read_text(encoding="utf-8"))
    options = RunOptions(session_id=session_id, chat_id=str(uuid.uuid4()), input=message)
    built = build_flow(flow, options)
    print(f"Build order: {', '.join(built.order)}")
    print(f"Team: {built.supervisor.name} -> {', '.join(built.worker_names)}")
    print("-" * 60)

    state = asyncio.run(run_flow(built, message))

    replies = worker_messages(state, built.worker_names)
    print("\nFlow completed!")
    print("-" * 60)
    for reply in replies:
        print(f"\n[{reply.name}]\n{reply.content}")
        used_tools = reply.additional_kwargs.get("usedTools")
        if used_tools:
            print(f"  (used tools: {', '.join(tool['tool'] for tool in used_tools)})")

    result = {
        "session_id": session_id,
        "order": built.order,
        "messages": serialize_messages(state.get("messages", [])),
    }
    if output_file:
        with open(output_file, "w", encoding="utf-8") as handle:
            json.dump(result, handle, indent=2, default=str)
        print(f"\nSaved output to {output_file}")
    return result


def _main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Run a Teamflow multi-agent flow.")
    parser.add_argument("--flow", required=True, help="Path to the flow definition JSON file.")
    parser.add_argument("--message", "-m", help="Message to send. Reads stdin when omitted.")
    parser.add_argument("--session-id", default=None, help="Session id used for tracing.")
    parser.add_argument("--output", "-o", default=None, help="Write the final messages to this JSON file.")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="DEBUG, INFO, WARNING, ERROR.")
    args = parser.parse_args(argv)

    set_log_level(args.log_level)
    raw_message = args.message if args.message is not None else sys.stdin.read()
    message = validate_user_message(raw_message)
    session_id = args.session_id or str(uuid.uuid4())

    try:
        run_flow_file(args.flow, message, session_id, args.output)
    except OSError as exc:
        print(f"\n❌ File error: {exc}")
        return 1
    except (ConfigError, UnsupportedModelError) as exc:
        print(f"\n❌ Flow configuration error: {exc}")
        return 1
    except AbortedError as exc:
        cause = exc.__cause__
        print(f"\n❌ Flow aborted{f': {cause}' if cause else ''}")
        return 1
    except AgentExecutionError as exc:
        print(f"\n❌ Flow failed: {exc}")
        return 1
    return 0


def cli() -> None:
    try:
        raise SystemExit(_main(sys.argv[1:]))
    except ValueError as exc:
        print(f"Input validation error: {exc}")
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
