from __future__ import annotations

from pydantic import BaseModel

from app.services.workflow_bridge import WorkflowAction


class WorkflowActionRequest(BaseModel):
    action: WorkflowAction = WorkflowAction.STATUS


class WorkflowStatusSchema(BaseModel):
    id: str | int | None = None
    name: str | None = None
    active: bool = False
