# function_app/shared/responses.py
from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

# Sent on every response, success or error.
CORS_HEADERS: Mapping[str, str] = MappingProxyType({
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
})


def cors_headers() -> Dict[str, str]:
    return dict(CORS_HEADERS)


class EnvelopeResponse(JSONResponse):
    """JSONResponse with compact separators and non-ASCII kept as-is."""

    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def error_response(message: str, status: int, link: Optional[str]) -> JSONResponse:
    return EnvelopeResponse(
        {"error": message, "link_provided": link or "N/A"},
        status_code=status,
        headers=cors_headers(),
        media_type="application/json",
    )


def preflight_response() -> Response:
    return Response(status_code=204, headers=cors_headers())


def relay_response(relayed, *, head_only: bool = False) -> Response:
    """
    Streams relayed.iter_body() to the caller and closes the upstream once the
    stream is done. HEAD answers with the same headers and no body.
    """
    if head_only:
        relayed.close()
        return Response(status_code=relayed.status, headers=relayed.headers)
    return StreamingResponse(
        relayed.iter_body(),
        status_code=relayed.status,
        headers=relayed.headers,
        background=BackgroundTask(relayed.close),
    )
