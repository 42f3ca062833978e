"""Query or toggle the n8n workflow from a shell, using the same bridge as the API."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import get_settings  # noqa: E402
from app.schemas.workflow import WorkflowActionRequest, WorkflowStatusSchema  # noqa: E402
from app.services.workflow_bridge import BridgeResult, WorkflowAction, WorkflowBridge  # noqa: E402


def summarize(result: BridgeResult) -> str:
    if not result.ok:
        return f"FAILED ({result.status_code}): {result.payload.get('error', 'Unknown error')}"
    if not isinstance(result.payload, dict):
        return "OK"
    workflow = WorkflowStatusSchema.model_validate(result.payload)
    state = "active" if workflow.active else "inactive"
    return f"Workflow {workflow.name or workflow.id or '?'} is {state}"


async def run_action(request: WorkflowActionRequest) -> BridgeResult:
    bridge = WorkflowBridge(get_settings())
    return await bridge.run(request.model_dump_json())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="n8n workflow bridge CLI")
    parser.add_argument(
        "action",
        nargs="?",
        default=WorkflowAction.STATUS.value,
        choices=[action.value for action in WorkflowAction],
        help="Action to send to the workflow",
    )
    parser.add_argument("--json", action="store_true", help="Print the raw response payload")
    args = parser.parse_args(argv)

    result = asyncio.run(run_action(WorkflowActionRequest(action=args.action)))
    if args.json:
        print(json.dumps(result.payload, indent=2))
    else:
        print(summarize(result))
        print(f"Attempts: {', '.join(result.trace.attempts) or 'none'}")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
