"""Async client for the managed backend: PostgREST tables, storage, auth."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from .config import SupabaseConfig

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, message: str, status: int = 0, body: str = '') -> None:
        super().__init__(message)
        self.status = status
        self.body = body


def eq(value: Any) -> str:
    return f'eq.{value}'


def gte(value: Any) -> str:
    return f'gte.{value}'


def ilike(pattern: str) -> str:
    return f'ilike.*{pattern}*'


def in_(values: Iterable[Any]) -> str:
    return 'in.(' + ','.join(str(v) for v in values) + ')'


class SupabaseClient:
    """Thin table/storage/auth wrapper over the backend REST API."""

    def __init__(self, config: SupabaseConfig, timeout: float = 30.0) -> None:
        self._config = config
        self._timeout = timeout

    @property
    def files_bucket(self) -> str:
        return self._config.files_bucket

    @property
    def knowledge_bucket(self) -> str:
        return self._config.knowledge_bucket

    def _headers(self, token: str | None = None, **extra: str) -> dict[str, str]:
        """Build auth headers (service role unless a user token is given)."""
        key = self._config.service_role_key
        headers = {
            'apikey': key,
            'Authorization': f'Bearer {token or key}',
        }
        headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an authenticated backend request, raise SupabaseError on failure."""
        url = f'{self._config.url}{path}'
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.request(
                method, url, headers=headers or self._headers(), **kwargs,
            )
        if resp.status_code >= 400:
            raise SupabaseError(
                f'{method} {path} failed: HTTP {resp.status_code}',
                status=resp.status_code,
                body=resp.text,
            )
        return resp

    # ── Tables ────────────────────────────────────────────

    async def select(
        self,
        table: str,
        columns: str = '*',
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Select rows; `order` is e.g. 'uploaded_at.desc'."""
        params: dict[str, Any] = {'select': columns}
        if filters:
            params.update(filters)
        if order:
            params['order'] = order
        if limit is not None:
            params['limit'] = limit
        resp = await self._request('GET', f'/rest/v1/{table}', params=params)
        return resp.json()

    async def select_one(
        self,
        table: str,
        columns: str = '*',
        filters: dict[str, str] | None = None,
    ) -> dict | None:
        """Select a single row or None."""
        rows = await self.select(table, columns=columns, filters=filters, limit=1)
        return rows[0] if rows else None

    async def count(self, table: str, filters: dict[str, str] | None = None) -> int:
        """Exact row count via the Content-Range header."""
        params: dict[str, Any] = {'select': 'id'}
        if filters:
            params.update(filters)
        resp = await self._request(
            'HEAD',
            f'/rest/v1/{table}',
            headers=self._headers(Prefer='count=exact'),
            params=params,
        )
        content_range = resp.headers.get('content-range', '')
        total = content_range.rsplit('/', 1)[-1]
        return int(total) if total.isdigit() else 0

    async def insert(self, table: str, row: dict) -> dict:
        """Insert a row and return it as stored."""
        resp = await self._request(
            'POST',
            f'/rest/v1/{table}',
            headers=self._headers(Prefer='return=representation'),
            json=row,
        )
        data = resp.json()
        if isinstance(data, list):
            return data[0] if data else {}
        return data

    async def update(self, table: str, values: dict, filters: dict[str, str]) -> list[dict]:
        """Update matching rows and return them."""
        resp = await self._request(
            'PATCH',
            f'/rest/v1/{table}',
            headers=self._headers(Prefer='return=representation'),
            params=filters,
            json=values,
        )
        return resp.json()

    async def delete(self, table: str, filters: dict[str, str]) -> None:
        """Delete matching rows."""
        if not filters:
            raise ValueError(f'Refusing unfiltered delete on {table}')
        await self._request('DELETE', f'/rest/v1/{table}', params=filters)

    # ── Storage ───────────────────────────────────────────

    async def download(self, bucket: str, path: str) -> str:
        """Download a stored object as text."""
        resp = await self._request(
            'GET', f'/storage/v1/object/{bucket}/{path.lstrip("/")}',
        )
        return resp.text

    async def upload(
        self,
        bucket: str,
        path: str,
        content: str,
        content_type: str = 'application/xml',
    ) -> str:
        """Upload (or overwrite) an object and return its path."""
        await self._request(
            'POST',
            f'/storage/v1/object/{bucket}/{path.lstrip("/")}',
            headers=self._headers(**{'Content-Type': content_type, 'x-upsert': 'true'}),
            content=content.encode('utf-8'),
        )
        logger.info('Uploaded %s/%s (%d bytes)', bucket, path, len(content))
        return path

    # ── Auth ──────────────────────────────────────────────

    async def get_user(self, token: str) -> dict:
        """Resolve a user access token to the user record."""
        resp = await self._request(
            'GET', '/auth/v1/user', headers=self._headers(token=token),
        )
        return resp.json()
