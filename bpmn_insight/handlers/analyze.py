"""Analysis endpoint: download a stored BPMN file and run the pipeline.

Route: POST /api/analyze  {fileId, filePath, format?}
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from aiohttp import web

from ..analysis import analyze_bpmn, fallback_result, render_markdown_report
from ..auth import optional_user
from ..config import AppConfig
from ..llm_client import LLMClient
from ..responses import error_response, read_json
from ..supabase_client import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)


def register_analyze_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
    llm: LLMClient,
) -> None:
    """Register the analysis route."""

    async def _record_result(result: dict[str, Any]) -> None:
        file_id = result['fileInfo']['fileId']
        try:
            await store.insert('bpmn_analysis_results', {
                'file_id': file_id,
                'analysis_data': result,
                'summary': result['summary'],
                'findings': result['findings'],
                'ai_insights': result['processIntelligence'],
            })
        except (SupabaseError, httpx.HTTPError) as exc:
            logger.error('Failed to store analysis result for %s: %s', file_id, exc)

    async def _record_usage(user: dict | None, file_id: str, usage: dict) -> None:
        if not user or not usage:
            return
        try:
            await store.insert('ai_usage_logs', {
                'user_id': user['id'],
                'operation_type': 'analysis',
                'model_used': llm.model,
                'prompt_tokens': usage.get('prompt_tokens', 0),
                'completion_tokens': usage.get('completion_tokens', 0),
                'total_tokens': usage.get('total_tokens', 0),
                'cost_usd': llm.estimate_cost(usage),
                'bpmn_file_id': file_id,
                'metadata': {},
            })
        except (SupabaseError, httpx.HTTPError) as exc:
            logger.error('Failed to log analysis usage for %s: %s', file_id, exc)

    # ── POST /api/analyze ─────────────────────────────────────

    async def analyze(request: web.Request) -> web.Response:
        """Analyze a stored BPMN file; model failures degrade, never fail."""
        payload = await read_json(request)
        if payload is None:
            return error_response(400, 'Invalid JSON')

        file_id = payload.get('fileId')
        file_path = payload.get('filePath')
        if not file_id or not file_path:
            return error_response(400, 'Missing fileId or filePath')
        if not isinstance(file_path, str):
            return error_response(400, 'filePath must be a string')

        try:
            bpmn_xml = await store.download(store.files_bucket, file_path)
        except (SupabaseError, httpx.HTTPError) as exc:
            logger.error('Analysis error: failed to download %s: %s', file_path, exc)
            return error_response(
                500,
                'Analysis failed',
                f'Failed to download file: {exc}',
                fallback=fallback_result(file_id, file_path),
            )

        logger.info('BPMN file downloaded, size: %d', len(bpmn_xml))
        result = await analyze_bpmn(bpmn_xml, file_id, file_path, llm=llm)

        await _record_result(result)
        user = await optional_user(request, store)
        await _record_usage(user, file_id, result.get('usage', {}))

        if payload.get('format') == 'markdown':
            result['report'] = render_markdown_report(result, payload.get('fileName', ''))

        return web.json_response(result)

    app.router.add_post('/api/analyze', analyze)
