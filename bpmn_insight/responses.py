"""JSON request/response helpers shared by the route handlers."""

from __future__ import annotations

import json
import logging
from typing import Any

from aiohttp import web

logger = logging.getLogger(__name__)


def error_response(status: int, error: str, details: str | None = None, **extra: Any) -> web.Response:
    """Uniform failure body: {error, details?}."""
    body: dict[str, Any] = {'error': error}
    if details:
        body['details'] = details
    body.update(extra)
    return web.json_response(body, status=status)


async def read_json(request: web.Request) -> dict | None:
    """Parse a JSON object body, None when the body is not a JSON object."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer preflights and tag every response with CORS headers."""
    origin = request.app.get('cors_origin', '*')
    if request.method == 'OPTIONS':
        response: web.StreamResponse = web.Response()
    else:
        response = await handler(request)
    response.headers['Access-Control-Allow-Origin'] = origin
    response.headers['Access-Control-Allow-Headers'] = (
        'authorization, x-client-info, apikey, content-type'
    )
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, DELETE, OPTIONS'
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Turn unexpected handler failures into the uniform error body."""
    try:
        return await handler(request)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        return error_response(exc.status, exc.reason)
    except Exception as exc:
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        return error_response(500, 'Internal server error', str(exc))
