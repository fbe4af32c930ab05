"""
Deal Search API Route

Thin delegation layer to the orchestrator.
Contains NO prompt, tool, or fetch logic.

Check order per request:
1. Server credentials configured   -> else 500
2. Shared-secret header (optional) -> else 403
3. Query present                   -> else 400
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.core.config import Settings, get_settings
from app.dependencies import get_orchestrator
from llm.openai_client import UpstreamError
from orchestration.fallback import build_fallback_envelope
from orchestration.orchestrator import DealSearchOrchestrator
from schemas.request import DealSearchRequest

logger = logging.getLogger(__name__)

router = APIRouter()

TOKEN_HEADER = "x-ext-token"
UPSTREAM_DETAIL_LIMIT = 800
SERVER_ERROR_DETAIL_LIMIT = 500


def _error(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if detail is not None:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


async def _read_body(request: Request) -> DealSearchRequest:
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}
    return DealSearchRequest.model_validate(payload)


@router.post("/deal-search")
async def deal_search(
    request: Request,
    settings: Settings = Depends(get_settings),
    orchestrator: Optional[DealSearchOrchestrator] = Depends(get_orchestrator),
):
    """
    Run the deal research loop for one query.

    Returns the model's JSON envelope, or the fallback envelope when the
    model never produced valid JSON.
    """
    try:
        if not settings.openai_api_key or orchestrator is None:
            return _error(500, "server not configured")
        if settings.ext_shared_token and request.headers.get(TOKEN_HEADER) != settings.ext_shared_token:
            return _error(403, "forbidden")

        try:
            body = await _read_body(request)
        except ValidationError:
            return _error(400, "missing query")
        if not body.has_query:
            return _error(400, "missing query")

        state = await orchestrator.run(body.query, body.prefs)
        if state.final_result is None:
            logger.info("No valid JSON from model; returning fallback envelope")
            return JSONResponse(content=build_fallback_envelope(body.query))
        return JSONResponse(content=state.final_result)

    except UpstreamError as e:
        return _error(502, e.error, detail=e.detail[:UPSTREAM_DETAIL_LIMIT])
    except Exception as e:
        logger.exception("Unhandled error in /deal-search")
        return _error(500, "server error", detail=str(e)[:SERVER_ERROR_DETAIL_LIMIT])
