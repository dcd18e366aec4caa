"""Dashboard statistics and per-user model usage.

Routes:
    GET /api/admin/stats
    GET /api/usage       (bearer auth)
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone

import httpx
from aiohttp import web

from ..auth import AuthError, authenticate
from ..config import AppConfig
from ..responses import error_response
from ..supabase_client import SupabaseClient, SupabaseError, eq, gte, in_

logger = logging.getLogger(__name__)

STORE_ERRORS = (SupabaseError, httpx.HTTPError)

RECENT_FILES = 20
RECENT_ACTIVITY = 10


def summarize_stats(
    files: list[dict],
    versions: list[dict],
    chat_logs: list[dict],
    today: str,
) -> dict:
    """Aggregate dashboard totals; `today` is an ISO date (YYYY-MM-DD)."""
    applied = sum(
        1 for v in versions
        if isinstance(v.get('ai_suggestions_applied'), list) and v['ai_suggestions_applied']
    )
    return {
        'totalFiles': len(files),
        'totalVersions': len(versions),
        'totalUsers': len({log['user_id'] for log in chat_logs if log.get('user_id')}),
        'todayUploads': sum(1 for f in files if str(f.get('uploaded_at', '')).startswith(today)),
        'aiSuggestionsApplied': applied,
    }


def summarize_usage(all_time: list[dict], this_month: list[dict], sessions: int) -> dict:
    return {
        'totalTokens': sum(log.get('total_tokens') or 0 for log in all_time),
        'totalCost': round(sum(float(log.get('cost_usd') or 0) for log in all_time), 6),
        'chatSessions': sessions,
        'analysisRuns': sum(1 for log in all_time if log.get('operation_type') == 'analysis'),
        'currentMonthTokens': sum(log.get('total_tokens') or 0 for log in this_month),
        'currentMonthCost': round(sum(float(log.get('cost_usd') or 0) for log in this_month), 6),
    }


def register_admin_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
) -> None:
    """Register dashboard and usage routes."""

    async def _recent_files() -> list[dict]:
        files = await store.select('bpmn_files', order='uploaded_at.desc', limit=RECENT_FILES)
        if not files:
            return []
        versions = await store.select(
            'bpmn_versions',
            columns='bpmn_file_id',
            filters={'bpmn_file_id': in_(f['id'] for f in files)},
        )
        counts = Counter(v['bpmn_file_id'] for v in versions)
        return [{**f, 'versionCount': counts.get(f['id'], 0)} for f in files]

    async def _recent_activity() -> list[dict]:
        entries = await store.select(
            'bpmn_audit_trail', order='created_at.desc', limit=RECENT_ACTIVITY,
        )
        file_ids = {e['bpmn_file_id'] for e in entries if e.get('bpmn_file_id')}
        names: dict[str, str] = {}
        if file_ids:
            rows = await store.select(
                'bpmn_files',
                columns='id,file_name',
                filters={'id': in_(sorted(file_ids))},
            )
            names = {r['id']: r['file_name'] for r in rows}
        return [
            {**e, 'fileName': names.get(e.get('bpmn_file_id'), 'Unknown file')}
            for e in entries
        ]

    # ── GET /api/admin/stats ──────────────────────────────────

    async def stats(request: web.Request) -> web.Response:
        try:
            files, versions, chat_logs = await asyncio.gather(
                store.select('bpmn_files', columns='id,uploaded_at'),
                store.select('bpmn_versions', columns='id,ai_suggestions_applied'),
                store.select(
                    'ai_usage_logs',
                    columns='user_id',
                    filters={'operation_type': eq('chat')},
                ),
            )
            recent_files = await _recent_files()
            recent_activity = await _recent_activity()
        except STORE_ERRORS as exc:
            logger.error('Error loading admin data: %s', exc)
            return error_response(502, 'Failed to load admin data', str(exc))

        today = datetime.now(timezone.utc).date().isoformat()
        return web.json_response({
            'stats': summarize_stats(files, versions, chat_logs, today),
            'files': recent_files,
            'recentActivity': recent_activity,
        })

    # ── GET /api/usage ────────────────────────────────────────

    async def usage(request: web.Request) -> web.Response:
        try:
            user = await authenticate(request, store)
        except AuthError as exc:
            return error_response(401, str(exc))

        now = datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        columns = 'total_tokens,cost_usd,operation_type'
        try:
            all_time, this_month, sessions = await asyncio.gather(
                store.select('ai_usage_logs', columns=columns, filters={'user_id': eq(user['id'])}),
                store.select(
                    'ai_usage_logs',
                    columns=columns,
                    filters={
                        'user_id': eq(user['id']),
                        'created_at': gte(month_start.isoformat()),
                    },
                ),
                store.count('ai_chat_sessions', filters={'user_id': eq(user['id'])}),
            )
        except STORE_ERRORS as exc:
            logger.error('Error loading usage stats for %s: %s', user['id'], exc)
            return error_response(502, 'Failed to load usage statistics', str(exc))

        return web.json_response(summarize_usage(all_time, this_month, sessions))

    app.router.add_get('/api/admin/stats', stats)
    app.router.add_get('/api/usage', usage)
