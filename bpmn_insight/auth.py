"""Bearer-token authentication, delegated to the backend auth service."""

from __future__ import annotations

import logging

import httpx
from aiohttp import web

from .supabase_client import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when a request carries no valid user token."""


def bearer_token(request: web.Request) -> str:
    """Return the bearer token from the Authorization header, or ''."""
    auth_header = request.headers.get('Authorization', '')
    return auth_header.removeprefix('Bearer ').strip()


async def authenticate(request: web.Request, store: SupabaseClient) -> dict:
    """Resolve the caller's user record or raise AuthError."""
    token = bearer_token(request)
    if not token:
        raise AuthError('No authorization header provided')

    try:
        user = await store.get_user(token)
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning('Token validation failed: %s', exc)
        raise AuthError('Invalid authorization token') from exc

    if not user or not user.get('id'):
        raise AuthError('Invalid authorization token')
    return user


async def optional_user(request: web.Request, store: SupabaseClient) -> dict | None:
    """Like authenticate(), but anonymous callers get None."""
    if not bearer_token(request):
        return None
    try:
        return await authenticate(request, store)
    except AuthError:
        return None
