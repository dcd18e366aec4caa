"""Async Bizagi Studio API client for process deployment."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import BizagiConfig

logger = logging.getLogger(__name__)


class BizagiError(Exception):
    """Raised when a Bizagi API call fails."""


class BizagiClient:
    """Deploys BPMN definitions to Bizagi and reads their status."""

    def __init__(self, config: BizagiConfig) -> None:
        self._config = config

    @property
    def configured(self) -> bool:
        return self._config.configured

    def _headers(self, json_body: bool = False) -> dict[str, str]:
        headers = {
            'Authorization': f'Bearer {self._config.api_key}',
            'X-Project-Id': self._config.project_id,
        }
        if json_body:
            headers['Content-Type'] = 'application/json'
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.configured:
            raise BizagiError(
                'Bizagi credentials not configured. Set BIZAGI_SERVER_URL, '
                'BIZAGI_API_KEY and BIZAGI_PROJECT_ID.'
            )
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.request(
                    method,
                    f'{self._config.server_url}{path}',
                    headers=self._headers(json_body='json' in kwargs),
                    **kwargs,
                )
        except httpx.HTTPError as exc:
            raise BizagiError(f'Bizagi request failed: {exc}') from exc
        if resp.status_code >= 400:
            raise BizagiError(f'Bizagi API error: {resp.status_code} - {resp.text[:300]}')
        return resp.json()

    @staticmethod
    def validate_bpmn(bpmn_xml: str) -> str:
        """Reject documents that are obviously not BPMN definitions."""
        if '<definitions' not in bpmn_xml and ':definitions' not in bpmn_xml:
            raise ValueError('Invalid BPMN XML format')
        if 'bpmn' not in bpmn_xml.lower():
            raise ValueError('Invalid BPMN XML format')
        return bpmn_xml

    async def deploy_process(
        self,
        bpmn_xml: str,
        process_name: str,
        description: str = '',
        auto_start: bool = False,
        enable_notifications: bool = True,
        require_approval: bool = False,
    ) -> dict:
        """Deploy a process definition; returns deployment/process ids."""
        definition = self.validate_bpmn(bpmn_xml)
        data = await self._request(
            'POST',
            '/api/v1/processes/deploy',
            json={
                'processName': process_name,
                'description': description,
                'bpmnDefinition': definition,
                'deploymentOptions': {
                    'autoStart': auto_start,
                    'enableNotifications': enable_notifications,
                    'requireApproval': require_approval,
                },
            },
        )
        logger.info('Deployed %s to Bizagi (process %s)', process_name, data.get('processId'))
        return {
            'deploymentId': data.get('deploymentId'),
            'processId': data.get('processId'),
            'status': data.get('status'),
        }

    async def get_process_status(self, process_id: str) -> dict:
        data = await self._request('GET', f'/api/v1/processes/{process_id}/status')
        return {
            'processId': process_id,
            'status': data.get('status'),
            'instanceCount': data.get('instanceCount'),
            'lastActivity': data.get('lastActivity'),
            'metrics': data.get('metrics'),
        }

    async def list_deployments(self) -> list[dict]:
        data = await self._request('GET', '/api/v1/deployments')
        return [
            {
                'id': item.get('id'),
                'processName': item.get('processName'),
                'status': item.get('status'),
                'deployedAt': item.get('deployedAt'),
                'version': item.get('version'),
                'instanceCount': item.get('instanceCount'),
            }
            for item in data
        ]

    @staticmethod
    async def validate_credentials(server_url: str, api_key: str, project_id: str) -> dict:
        """Probe caller-supplied credentials; never raises."""
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                resp = await client.get(
                    f"{server_url.rstrip('/')}/api/v1/projects/{project_id}/info",
                    headers={'Authorization': f'Bearer {api_key}'},
                )
        except httpx.HTTPError as exc:
            return {'valid': False, 'message': f'Connection failed: {exc}'}
        valid = resp.status_code < 400
        return {
            'valid': valid,
            'message': 'Credentials are valid' if valid else 'Invalid credentials or server unreachable',
        }
