from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from clarifia.core.errors import TEXT_REQUIRED, BadRequest, PayloadTooLarge
from clarifia.core.rate_limit import enforce_rate_limit
from clarifia.core.security import require_app_key
from clarifia.schemas.inputs import AnalyzeRequest

router = APIRouter(tags=["analyze"])


async def read_analyze_request(request: Request) -> AnalyzeRequest:
    """Parse the body only once the app key has been accepted."""
    max_bytes = request.app.state.settings.max_body_bytes
    body = bytearray()
    # Chunked uploads carry no Content-Length, so count what actually arrives.
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise PayloadTooLarge()

    try:
        return AnalyzeRequest.model_validate(json.loads(bytes(body)))
    except ValueError:
        # empty body, malformed JSON, or `text` that is not a string
        raise BadRequest(TEXT_REQUIRED)


@router.post("/analyze", dependencies=[Depends(enforce_rate_limit), Depends(require_app_key)])
def analyze(request: Request, payload: AnalyzeRequest = Depends(read_analyze_request)):
    # The model's JSON is passed through as-is.
    return JSONResponse(content=request.app.state.analyzer.analyze(payload.text))
