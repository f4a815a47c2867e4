"""
HTTP Middleware
===============

Request ID and access logging, and ETag support for successful responses.
"""

import time
import uuid
import zlib
from typing import List, Tuple

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from html_to_image.config.logging import get_logger

logger = get_logger(__name__)


async def log_requests(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Add a request ID to all requests and log them once answered."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
        client=request.client.host if request.client else None,
        request_id=request_id,
    )
    return response


def compute_etag(body: bytes) -> str:
    """Strong ETag built from the body length and CRC-32."""
    return f'"{len(body)}-{zlib.crc32(body)}"'


def etag_matches(if_none_match: str, etag: str) -> bool:
    """Check an If-None-Match header value against ``etag``."""
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate == etag:
            return True
    return False


async def add_etag(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Tag 200 responses with an ETag and answer matching conditional requests with 304."""
    response = await call_next(request)
    if response.status_code != 200 or "etag" in response.headers:
        return response

    body = b"".join([chunk async for chunk in response.body_iterator])  # type: ignore[attr-defined]
    # Raw header list keeps repeated headers such as Set-Cookie
    raw_headers = list(response.raw_headers)
    if not body:
        return _rebuild(Response(content=body, status_code=response.status_code), raw_headers)

    etag = compute_etag(body)

    if_none_match = request.headers.get("if-none-match")
    if if_none_match and etag_matches(if_none_match, etag):
        raw_headers = [
            (name, value)
            for name, value in raw_headers
            if name.lower() not in (b"content-length", b"content-type")
        ]
        not_modified = _rebuild(Response(status_code=304), raw_headers)
        not_modified.headers["etag"] = etag
        return not_modified

    tagged = _rebuild(Response(content=body, status_code=response.status_code), raw_headers)
    tagged.headers["etag"] = etag
    return tagged


def _rebuild(response: Response, raw_headers: List[Tuple[bytes, bytes]]) -> Response:
    response.raw_headers = raw_headers
    return response
