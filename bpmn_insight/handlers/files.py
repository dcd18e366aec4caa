"""BPMN file endpoints: upload, listing, versions, downloads and audit trail.

Routes:
    GET    /api/files                  ?search=
    POST   /api/files                  {fileName, bpmnXml}
    GET    /api/files/{id}
    DELETE /api/files/{id}
    GET    /api/files/{id}/versions
    GET    /api/files/{id}/download    ?version=
    GET    /api/files/{id}/audit
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

import httpx
from aiohttp import web

from ..auth import AuthError, authenticate
from ..config import AppConfig
from ..responses import error_response, read_json
from ..supabase_client import SupabaseClient, SupabaseError, eq, ilike

logger = logging.getLogger(__name__)

STORE_ERRORS = (SupabaseError, httpx.HTTPError)
ALLOWED_EXTENSIONS = ('.bpmn', '.xml')

Handler = Callable[[web.Request, dict], Awaitable[web.StreamResponse]]


def register_file_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
) -> None:
    """Register file management routes."""

    def authed(handler: Handler) -> Callable[[web.Request], Awaitable[web.StreamResponse]]:
        """Resolve the caller and map store failures to 502."""
        async def wrapper(request: web.Request) -> web.StreamResponse:
            try:
                user = await authenticate(request, store)
            except AuthError as exc:
                return error_response(401, str(exc))
            try:
                return await handler(request, user)
            except STORE_ERRORS as exc:
                logger.error('%s %s failed: %s', request.method, request.path, exc)
                return error_response(502, 'Storage request failed', str(exc))
        return wrapper

    async def _audit(file_id: str, user_id: str, action: str, details: dict) -> None:
        try:
            await store.insert('bpmn_audit_trail', {
                'bpmn_file_id': file_id,
                'user_id': user_id,
                'action_type': action,
                'action_details': details,
            })
        except STORE_ERRORS as exc:
            logger.error('Failed to record %s audit entry for %s: %s', action, file_id, exc)

    async def _own_file(file_id: str, user: dict) -> dict | None:
        return await store.select_one(
            'bpmn_files',
            filters={'id': eq(file_id), 'user_id': eq(user['id'])},
        )

    # ── GET /api/files ────────────────────────────────────────

    async def list_files(request: web.Request, user: dict) -> web.Response:
        filters = {'user_id': eq(user['id'])}
        search = request.query.get('search', '').strip()
        if search:
            filters['file_name'] = ilike(search)
        rows = await store.select('bpmn_files', filters=filters, order='uploaded_at.desc')
        return web.json_response({'files': rows})

    # ── POST /api/files ───────────────────────────────────────

    async def upload_file(request: web.Request, user: dict) -> web.Response:
        payload = await read_json(request)
        if payload is None:
            return error_response(400, 'Invalid JSON')

        file_name = str(payload.get('fileName') or '').strip()
        bpmn_xml = payload.get('bpmnXml')
        if not file_name or not isinstance(bpmn_xml, str) or not bpmn_xml:
            return error_response(400, 'Missing fileName or bpmnXml')
        if not file_name.lower().endswith(ALLOWED_EXTENSIONS):
            return error_response(400, 'Please select a .bpmn or .xml file')

        file_path = f"{user['id']}/{int(time.time() * 1000)}_{file_name}"
        await store.upload(store.files_bucket, file_path, bpmn_xml)

        row = await store.insert('bpmn_files', {
            'user_id': user['id'],
            'file_name': file_name,
            'file_path': file_path,
            'file_size': len(bpmn_xml.encode('utf-8')),
        })
        logger.info('Stored BPMN file %s as %s', file_name, row.get('id'))

        try:
            await store.insert('bpmn_versions', {
                'bpmn_file_id': row['id'],
                'version_number': 1,
                'version_type': 'original',
                'bpmn_xml': bpmn_xml,
                'created_by': user['id'],
            })
        except STORE_ERRORS as exc:
            logger.error('Failed to store original version of %s: %s', row.get('id'), exc)
        await _audit(row['id'], user['id'], 'upload', {'file_name': file_name})

        return web.json_response(row, status=201)

    # ── GET /api/files/{id} ───────────────────────────────────

    async def get_file(request: web.Request, user: dict) -> web.Response:
        row = await _own_file(request.match_info['id'], user)
        if row is None:
            return error_response(404, 'File not found')
        return web.json_response(row)

    # ── DELETE /api/files/{id} ────────────────────────────────

    async def delete_file(request: web.Request, user: dict) -> web.Response:
        file_id = request.match_info['id']
        if await _own_file(file_id, user) is None:
            return error_response(404, 'File not found')
        await store.delete('bpmn_files', {'id': eq(file_id), 'user_id': eq(user['id'])})
        logger.info('Deleted BPMN file %s', file_id)
        return web.json_response({'deleted': file_id})

    # ── GET /api/files/{id}/versions ──────────────────────────

    async def list_versions(request: web.Request, user: dict) -> web.Response:
        file_id = request.match_info['id']
        if await _own_file(file_id, user) is None:
            return error_response(404, 'File not found')
        rows = await store.select(
            'bpmn_versions',
            filters={'bpmn_file_id': eq(file_id)},
            order='version_number.desc',
        )
        return web.json_response({'versions': rows})

    # ── GET /api/files/{id}/download ──────────────────────────

    async def download_file(request: web.Request, user: dict) -> web.Response:
        file_id = request.match_info['id']
        row = await _own_file(file_id, user)
        if row is None:
            return error_response(404, 'File not found')

        stem = row['file_name'].rsplit('.', 1)[0]
        version = request.query.get('version')
        if version:
            if not version.isdigit():
                return error_response(400, 'version must be a number')
            found = await store.select_one(
                'bpmn_versions',
                filters={'bpmn_file_id': eq(file_id), 'version_number': eq(int(version))},
            )
            if found is None:
                return error_response(404, 'Version not found')
            content = found['bpmn_xml']
            download_name = f'{stem}_v{version}.bpmn'
            download_type = f'xml_version_{version}'
        else:
            content = await store.download(store.files_bucket, row['file_path'])
            download_name = row['file_name']
            download_type = 'original'

        await _audit(file_id, user['id'], 'download', {'download_type': download_type})
        return web.Response(
            text=content,
            content_type='application/xml',
            headers={'Content-Disposition': f'attachment; filename="{download_name}"'},
        )

    # ── GET /api/files/{id}/audit ─────────────────────────────

    async def audit_trail(request: web.Request, user: dict) -> web.Response:
        file_id = request.match_info['id']
        if await _own_file(file_id, user) is None:
            return error_response(404, 'File not found')
        rows = await store.select(
            'bpmn_audit_trail',
            filters={'bpmn_file_id': eq(file_id)},
            order='created_at.desc',
        )
        return web.json_response({'entries': rows})

    app.router.add_get('/api/files', authed(list_files))
    app.router.add_post('/api/files', authed(upload_file))
    app.router.add_get('/api/files/{id}', authed(get_file))
    app.router.add_delete('/api/files/{id}', authed(delete_file))
    app.router.add_get('/api/files/{id}/versions', authed(list_versions))
    app.router.add_get('/api/files/{id}/download', authed(download_file))
    app.router.add_get('/api/files/{id}/audit', authed(audit_trail))
