"""
n8n Proxy Route
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from app.api.dependencies import get_workflow_bridge
from app.services.workflow_bridge import WorkflowBridge

router = APIRouter()

PROXY_PATH = "/n8n-proxy"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey, X-N8N-API-KEY",
}


@router.api_route(PROXY_PATH, methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def n8n_proxy(
    request: Request,
    bridge: WorkflowBridge = Depends(get_workflow_bridge),
) -> Response:
    """Query or toggle the configured n8n workflow."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    result = await bridge.run(await request.body())
    return JSONResponse(
        status_code=result.status_code,
        content=result.payload,
        headers=CORS_HEADERS,
    )
