"""Bizagi deployment endpoint.

Route: POST /api/bizagi  {action, ...}

Actions: deploy-process, get-process-status, list-deployments,
validate-credentials.
"""

from __future__ import annotations

import logging

import httpx
from aiohttp import web

from ..auth import AuthError, authenticate
from ..bizagi_client import BizagiClient, BizagiError
from ..config import AppConfig
from ..responses import error_response, read_json
from ..supabase_client import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)

ACTIONS = ('deploy-process', 'get-process-status', 'list-deployments', 'validate-credentials')


def register_bizagi_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
    bizagi: BizagiClient,
) -> None:
    """Register the Bizagi route."""

    async def _audit_export(user: dict, payload: dict, result: dict) -> None:
        file_id = payload.get('bpmnFileId')
        if not file_id:
            return
        try:
            await store.insert('bpmn_audit_trail', {
                'bpmn_file_id': file_id,
                'user_id': user['id'],
                'action_type': 'bizagi_export',
                'action_details': {
                    'process_name': payload.get('processName'),
                    'deployment_id': result.get('deploymentId'),
                    'process_id': result.get('processId'),
                },
            })
        except (SupabaseError, httpx.HTTPError) as exc:
            logger.error('Failed to record Bizagi export for %s: %s', file_id, exc)

    async def _dispatch(action: str, payload: dict, user: dict) -> dict:
        if action == 'deploy-process':
            bpmn_xml = payload.get('bpmnXml')
            process_name = payload.get('processName')
            if not bpmn_xml or not process_name:
                raise ValueError('Missing bpmnXml or processName')
            options = payload.get('deploymentOptions') or {}
            result = await bizagi.deploy_process(
                bpmn_xml,
                process_name,
                description=payload.get('description', ''),
                auto_start=bool(options.get('autoStart', False)),
                enable_notifications=bool(options.get('enableNotifications', True)),
                require_approval=bool(options.get('requireApproval', False)),
            )
            await _audit_export(user, payload, result)
            return {
                'success': True,
                **result,
                'message': 'Process deployed successfully to Bizagi Studio',
            }

        if action == 'get-process-status':
            process_id = payload.get('processId')
            if not process_id:
                raise ValueError('Missing processId')
            return {'success': True, **await bizagi.get_process_status(process_id)}

        if action == 'list-deployments':
            return {'success': True, 'deployments': await bizagi.list_deployments()}

        # validate-credentials
        fields = [payload.get(k) for k in ('serverUrl', 'apiKey', 'projectId')]
        if not all(fields):
            raise ValueError('Missing serverUrl, apiKey or projectId')
        result = await BizagiClient.validate_credentials(*fields)
        return {'success': True, **result}

    async def handle(request: web.Request) -> web.Response:
        try:
            user = await authenticate(request, store)
        except AuthError as exc:
            return error_response(401, str(exc))

        payload = await read_json(request)
        if payload is None:
            return error_response(400, 'Invalid JSON')

        action = payload.get('action')
        if action not in ACTIONS:
            return error_response(400, f'Unknown action: {action}')
        if action != 'validate-credentials' and not bizagi.configured:
            return error_response(503, 'Bizagi credentials not configured')

        try:
            result = await _dispatch(action, payload, user)
        except ValueError as exc:
            return error_response(400, str(exc))
        except BizagiError as exc:
            logger.error('Bizagi %s failed: %s', action, exc)
            return error_response(502, str(exc))
        return web.json_response(result)

    app.router.add_post('/api/bizagi', handle)
