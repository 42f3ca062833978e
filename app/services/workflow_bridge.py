"""
Workflow bridge between the dashboard and the n8n REST API.

Turns an abstract action (status, activate, deactivate) into calls against
the configured n8n instance. The primary call goes to the versioned public
API; when that fails the bridge makes exactly one attempt against the older
``/rest`` endpoints before reporting an upstream error.
"""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Mapping

import httpx

from app.config import Settings
from app.core.exceptions import (
    BridgeError,
    ConfigurationError,
    InternalError,
    InvalidActionError,
    MalformedRequestError,
    UpstreamFormatError,
    UpstreamHttpError,
)

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = ("N8N_URL", "N8N_API_KEY", "N8N_WORKFLOW_ID")


class WorkflowAction(str, Enum):
    STATUS = "status"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"

    @property
    def is_toggle(self) -> bool:
        return self is not WorkflowAction.STATUS


VALID_ACTIONS = ", ".join(action.value for action in WorkflowAction)


class BridgeState(str, Enum):
    START = "start"
    CONFIG_RESOLVED = "config_resolved"
    ACTION_PARSED = "action_parsed"
    PRIMARY_ATTEMPTED = "primary_attempted"
    FALLBACK_ATTEMPTED = "fallback_attempted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Endpoint:
    method: str
    path: str
    json_body: dict[str, Any] | None = None

    def url(self, base_url: str, **values: str) -> str:
        return base_url + self.path.format(**values)


@dataclass(frozen=True)
class ApiDialect:
    """Endpoint shapes of one n8n API version."""

    name: str
    primary: Mapping[WorkflowAction, Endpoint]
    fallback: Mapping[WorkflowAction, Endpoint] = field(default_factory=dict)


V1_DIALECT = ApiDialect(
    name="v1",
    primary={
        WorkflowAction.STATUS: Endpoint("GET", "/api/v1/workflows/{workflow_id}"),
        WorkflowAction.ACTIVATE: Endpoint("POST", "/api/v1/workflows/{workflow_id}/activate"),
        WorkflowAction.DEACTIVATE: Endpoint("POST", "/api/v1/workflows/{workflow_id}/deactivate"),
    },
    fallback={
        WorkflowAction.STATUS: Endpoint("GET", "/rest/workflows/{workflow_id}"),
        WorkflowAction.ACTIVATE: Endpoint("POST", "/rest/workflows/{canonical_id}/{action}"),
        WorkflowAction.DEACTIVATE: Endpoint("POST", "/rest/workflows/{canonical_id}/{action}"),
    },
)

# Older n8n releases toggled a workflow by updating its ``active`` field.
PUT_ACTIVE_DIALECT = ApiDialect(
    name="put_active",
    primary={
        WorkflowAction.STATUS: Endpoint("GET", "/api/v1/workflows/{workflow_id}"),
        WorkflowAction.ACTIVATE: Endpoint("PUT", "/api/v1/workflows/{workflow_id}", {"active": True}),
        WorkflowAction.DEACTIVATE: Endpoint("PUT", "/api/v1/workflows/{workflow_id}", {"active": False}),
    },
)

DIALECTS: dict[str, ApiDialect] = {d.name: d for d in (V1_DIALECT, PUT_ACTIVE_DIALECT)}


@dataclass(frozen=True)
class WorkflowConfig:
    base_url: str
    api_key: str = field(repr=False)
    workflow_id: str


@dataclass(frozen=True)
class ExternalCall:
    action: WorkflowAction
    method: str
    url: str
    json_body: dict[str, Any] | None = None
    fallback: Endpoint | None = None

    def fallback_url(self, config: WorkflowConfig, canonical_id: str) -> str | None:
        if self.fallback is None:
            return None
        return self.fallback.url(
            config.base_url,
            workflow_id=config.workflow_id,
            canonical_id=canonical_id,
            action=self.action.value,
        )


@dataclass
class BridgeTrace:
    """Per-invocation record of how far the bridge got."""

    state: BridgeState = BridgeState.START
    attempts: list[str] = field(default_factory=list)
    canonical_id: str | None = None

    def advance(self, state: BridgeState) -> None:
        self.state = state


@dataclass
class BridgeResult:
    status_code: int
    payload: Any
    trace: BridgeTrace

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def resolve_config(settings: Settings) -> WorkflowConfig:
    """Build the per-call bridge config, reporting which settings are missing."""
    presence = settings.presence()
    flags = {key: presence[key] for key in REQUIRED_SETTINGS}
    if not all(flags.values()):
        raise ConfigurationError(
            "Missing n8n configuration. Environment variables not found.",
            details=flags,
        )
    return WorkflowConfig(
        base_url=settings.n8n_url.strip().rstrip("/"),
        api_key=settings.n8n_api_key.get_secret_value().strip(),
        workflow_id=settings.n8n_workflow_id.strip(),
    )


def parse_action(raw_body: bytes | str | None, *, strict: bool = False) -> WorkflowAction:
    """Extract the action from a request body.

    Permissive parsing treats an empty, malformed or action-less body as a
    status request. Strict parsing rejects those with a 400. An action that
    is present but unknown is rejected either way, as a 500 unless strict.
    """
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")
    text = (raw_body or "").strip()

    if not text:
        if strict:
            raise MalformedRequestError("Invalid JSON in request body", details="Request body is empty")
        return WorkflowAction.STATUS

    try:
        body = json.loads(text)
    except ValueError as exc:
        if strict:
            raise MalformedRequestError("Invalid JSON in request body", details=str(exc)) from exc
        logger.debug("Ignoring unparseable bridge body: %s", exc)
        return WorkflowAction.STATUS

    if not isinstance(body, dict):
        if strict:
            raise MalformedRequestError(
                "Invalid JSON in request body",
                details="Request body must be a JSON object",
            )
        return WorkflowAction.STATUS

    action = body.get("action")
    if action is None or action == "":
        if strict:
            raise InvalidActionError(
                "Missing action",
                details=f"Expected one of: {VALID_ACTIONS}",
                status_code=400,
            )
        return WorkflowAction.STATUS
    return _coerce_action(action, strict=strict)


def _coerce_action(action: Any, *, strict: bool = False) -> WorkflowAction:
    try:
        return WorkflowAction(action)
    except ValueError as exc:
        raise InvalidActionError(
            "Invalid action",
            details=f"Expected one of: {VALID_ACTIONS}; got {action!r}",
            status_code=400 if strict else None,
        ) from exc


def dispatch(
    action: WorkflowAction | str,
    config: WorkflowConfig,
    dialect: ApiDialect = V1_DIALECT,
) -> ExternalCall:
    """Map an action to the primary endpoint of the given dialect."""
    action = _coerce_action(action)
    endpoint = dialect.primary.get(action)
    if endpoint is None:
        raise InvalidActionError("Invalid action", details=f"{action.value} is not supported by {dialect.name}")
    return ExternalCall(
        action=action,
        method=endpoint.method,
        url=endpoint.url(
            config.base_url,
            workflow_id=config.workflow_id,
            canonical_id=config.workflow_id,
            action=action.value,
        ),
        json_body=endpoint.json_body,
        fallback=dialect.fallback.get(action),
    )


def auth_headers(config: WorkflowConfig, *, with_body: bool = False) -> dict[str, str]:
    # Same key under both schemes.
    headers = {
        "X-N8N-API-KEY": config.api_key,
        "Authorization": f"Bearer {config.api_key}",
        "Accept": "application/json",
    }
    if with_body:
        headers["Content-Type"] = "application/json"
    return headers


class WorkflowBridge:
    """Stateless proxy; every ``run`` resolves config and talks to n8n afresh."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self.client = client
        self.dialect = DIALECTS[settings.n8n_dialect]
        self.strict = settings.n8n_strict_parsing
        self.lookup_canonical_id = settings.n8n_lookup_canonical_id
        self.timeout = settings.n8n_timeout_seconds

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def run(self, raw_body: bytes | str | None = None) -> BridgeResult:
        trace = BridgeTrace()
        try:
            config = resolve_config(self.settings)
            trace.advance(BridgeState.CONFIG_RESOLVED)
            action = parse_action(raw_body, strict=self.strict)
            trace.advance(BridgeState.ACTION_PARSED)
            call = dispatch(action, config, self.dialect)

            async with self._client_scope() as client:
                if call.action.is_toggle and call.fallback is not None and self.lookup_canonical_id:
                    trace.canonical_id = await self.resolve_canonical_id(client, config)
                payload = await self.execute(client, call, config, trace)
        except BridgeError as exc:
            logger.warning("Workflow bridge failed after %s: %s", trace.state.value, exc.message)
            trace.advance(BridgeState.FAILED)
            return BridgeResult(exc.status_code, exc.to_payload(), trace)
        except Exception as exc:
            logger.exception("Unexpected workflow bridge failure")
            error = InternalError.from_exception(exc)
            trace.advance(BridgeState.FAILED)
            return BridgeResult(error.status_code, error.to_payload(), trace)

        trace.advance(BridgeState.SUCCEEDED)
        return BridgeResult(200, payload, trace)

    async def resolve_canonical_id(self, client: httpx.AsyncClient, config: WorkflowConfig) -> str:
        """Best-effort lookup of the id n8n uses internally for this workflow."""
        lookup = dispatch(WorkflowAction.STATUS, config, self.dialect)
        try:
            response = await client.request(lookup.method, lookup.url, headers=auth_headers(config))
            if response.is_success:
                data = response.json()
                if isinstance(data, dict) and data.get("id") not in (None, ""):
                    return str(data["id"])
            else:
                logger.debug("Canonical id lookup returned %s", response.status_code)
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("Canonical id lookup failed: %s", exc)
        return config.workflow_id

    async def execute(
        self,
        client: httpx.AsyncClient,
        call: ExternalCall,
        config: WorkflowConfig,
        trace: BridgeTrace,
    ) -> Any:
        """Send the primary call, then one fallback if the primary is rejected."""
        response = await self._send(client, call.method, call.url, config, trace, call.json_body)
        trace.advance(BridgeState.PRIMARY_ATTEMPTED)

        if not response.is_success:
            fallback_url = call.fallback_url(config, trace.canonical_id or config.workflow_id)
            if fallback_url is not None:
                logger.info(
                    "n8n %s %s returned %s, retrying %s",
                    call.method,
                    call.url,
                    response.status_code,
                    fallback_url,
                )
                response = await self._send(client, call.fallback.method, fallback_url, config, trace)
                trace.advance(BridgeState.FALLBACK_ATTEMPTED)

        request = response.request
        if not response.is_success:
            raise UpstreamHttpError(
                response.status_code,
                details=response.text,
                url=str(request.url),
                method=request.method,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFormatError(
                details=response.text,
                url=str(request.url),
                method=request.method,
            ) from exc

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        config: WorkflowConfig,
        trace: BridgeTrace,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        trace.attempts.append(f"{method} {url}")
        return await client.request(
            method,
            url,
            headers=auth_headers(config, with_body=json_body is not None),
            json=json_body,
        )
