"""Process template endpoints.

Routes:
    GET    /api/templates                    ?category= ?search=
    GET    /api/templates/categories
    POST   /api/templates                    {templateName, bpmnXml, ...}
    DELETE /api/templates/{id}
    POST   /api/templates/{id}/visibility
"""

from __future__ import annotations

import logging

import httpx
from aiohttp import web

from ..auth import AuthError, authenticate
from ..config import AppConfig
from ..responses import error_response, read_json
from ..supabase_client import SupabaseClient, SupabaseError, eq, ilike

logger = logging.getLogger(__name__)

STORE_ERRORS = (SupabaseError, httpx.HTTPError)


def _visible_to(user_id: str) -> dict[str, str]:
    """Own templates plus everything public."""
    return {'or': f'(user_id.eq.{user_id},is_public.eq.true)'}


def unique_categories(rows: list[dict]) -> list[str]:
    """'all' followed by distinct categories in first-seen order."""
    categories = ['all']
    for row in rows:
        category = row.get('category')
        if category and category not in categories:
            categories.append(category)
    return categories


def register_template_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
) -> None:
    """Register template routes."""

    async def _user(request: web.Request) -> dict:
        return await authenticate(request, store)

    async def list_templates(request: web.Request) -> web.Response:
        try:
            user = await _user(request)
        except AuthError as exc:
            return error_response(401, str(exc))

        filters = _visible_to(user['id'])
        category = request.query.get('category', 'all')
        if category and category != 'all':
            filters['category'] = eq(category)
        search = request.query.get('search', '').strip()
        if search:
            filters['template_name'] = ilike(search)

        try:
            rows = await store.select('bpmn_templates', filters=filters, order='updated_at.desc')
        except STORE_ERRORS as exc:
            logger.error('Error loading templates: %s', exc)
            return error_response(502, 'Failed to load templates', str(exc))
        return web.json_response({'templates': rows})

    async def categories(request: web.Request) -> web.Response:
        try:
            user = await _user(request)
        except AuthError as exc:
            return error_response(401, str(exc))
        try:
            rows = await store.select(
                'bpmn_templates',
                columns='category',
                filters=_visible_to(user['id']),
                order='updated_at.desc',
            )
        except STORE_ERRORS as exc:
            logger.error('Error loading template categories: %s', exc)
            return error_response(502, 'Failed to load templates', str(exc))
        return web.json_response({'categories': unique_categories(rows)})

    async def create_template(request: web.Request) -> web.Response:
        try:
            user = await _user(request)
        except AuthError as exc:
            return error_response(401, str(exc))

        payload = await read_json(request)
        if payload is None:
            return error_response(400, 'Invalid JSON')
        name = str(payload.get('templateName') or '').strip()
        bpmn_xml = payload.get('bpmnXml')
        if not name or not bpmn_xml:
            return error_response(400, 'Missing templateName or bpmnXml')

        tags = payload.get('tags') or []
        if not isinstance(tags, list):
            return error_response(400, 'tags must be a list')

        try:
            row = await store.insert('bpmn_templates', {
                'user_id': user['id'],
                'template_name': name,
                'description': payload.get('description', ''),
                'category': payload.get('category') or 'general',
                'is_public': bool(payload.get('isPublic', False)),
                'tags': tags,
                'bpmn_xml': bpmn_xml,
            })
        except STORE_ERRORS as exc:
            logger.error('Error saving template %s: %s', name, exc)
            return error_response(502, 'Failed to save template', str(exc))
        logger.info('Saved template %s (%s)', name, row.get('id'))
        return web.json_response(row, status=201)

    async def delete_template(request: web.Request) -> web.Response:
        try:
            user = await _user(request)
        except AuthError as exc:
            return error_response(401, str(exc))

        template_id = request.match_info['id']
        filters = {'id': eq(template_id), 'user_id': eq(user['id'])}
        try:
            if await store.select_one('bpmn_templates', columns='id', filters=filters) is None:
                return error_response(404, 'Template not found')
            await store.delete('bpmn_templates', filters)
        except STORE_ERRORS as exc:
            logger.error('Error deleting template %s: %s', template_id, exc)
            return error_response(502, 'Failed to delete template', str(exc))
        return web.json_response({'deleted': template_id})

    async def toggle_visibility(request: web.Request) -> web.Response:
        try:
            user = await _user(request)
        except AuthError as exc:
            return error_response(401, str(exc))

        template_id = request.match_info['id']
        filters = {'id': eq(template_id), 'user_id': eq(user['id'])}
        try:
            template = await store.select_one(
                'bpmn_templates', columns='id,is_public', filters=filters,
            )
            if template is None:
                return error_response(404, 'Template not found')
            rows = await store.update(
                'bpmn_templates', {'is_public': not template['is_public']}, filters,
            )
        except STORE_ERRORS as exc:
            logger.error('Error updating template %s: %s', template_id, exc)
            return error_response(502, 'Failed to update template visibility', str(exc))
        updated = rows[0] if rows else {**template, 'is_public': not template['is_public']}
        return web.json_response(updated)

    app.router.add_get('/api/templates', list_templates)
    app.router.add_get('/api/templates/categories', categories)
    app.router.add_post('/api/templates', create_template)
    app.router.add_delete('/api/templates/{id}', delete_template)
    app.router.add_post('/api/templates/{id}/visibility', toggle_visibility)
