"""Knowledge extraction endpoint: distil a chat session into reusable patterns.

Route: POST /api/knowledge/extract  {sessionId, forceExtraction?}
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import datetime, timezone

import httpx
from aiohttp import web

from ..config import AppConfig
from ..knowledge import (
    EXTRACTION_PROMPT,
    EXTRACTION_SYSTEM_PROMPT,
    clamp_confidence,
    knowledge_type,
    parse_extraction,
)
from ..llm_client import LLMClient, LLMError
from ..responses import error_response, read_json
from ..supabase_client import SupabaseClient, SupabaseError, eq

logger = logging.getLogger(__name__)

STORE_ERRORS = (SupabaseError, httpx.HTTPError)


def register_knowledge_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
    llm: LLMClient,
) -> None:
    """Register the knowledge extraction route."""

    async def extract(request: web.Request) -> web.Response:
        if not llm.enabled:
            return error_response(503, 'Model API key is not configured')

        payload = await read_json(request)
        if payload is None:
            return error_response(400, 'Invalid JSON')
        session_id = payload.get('sessionId')
        if not session_id:
            return error_response(400, 'Missing sessionId')

        logger.info('Starting knowledge extraction for session %s', session_id)

        try:
            session = await store.select_one(
                'ai_chat_sessions',
                columns='user_id,bpmn_file_id,session_context',
                filters={'id': eq(session_id)},
            )
            if session is None:
                return error_response(404, 'Session not found')
            messages = await store.select(
                'ai_chat_messages',
                columns='role,content,created_at',
                filters={'session_id': eq(session_id)},
                order='created_at.asc',
            )
        except STORE_ERRORS as exc:
            logger.error('Failed to load session %s: %s', session_id, exc)
            return error_response(502, 'Failed to get conversation messages', str(exc))

        if len(messages) < 2:
            return web.json_response({
                'message': 'Not enough conversation data for extraction',
            })

        conversation = '\n\n'.join(
            f"{m['role'].upper()}: {m['content']}" for m in messages
        )
        try:
            completion = await llm.chat(
                [
                    {'role': 'system', 'content': EXTRACTION_SYSTEM_PROMPT},
                    {'role': 'user', 'content': EXTRACTION_PROMPT.format(conversation=conversation)},
                ],
                temperature=0.3,
                max_tokens=2000,
            )
        except LLMError as exc:
            logger.error('Knowledge extraction model call failed: %s', exc)
            return error_response(502, 'Language model request failed', str(exc))

        extracted = parse_extraction(completion.content)
        context = session.get('session_context') or {}

        inserts = [
            store.insert('process_knowledge_base', {
                'knowledge_type': knowledge_type(pattern.get('type')),
                'bpmn_context': context,
                'extracted_insights': {
                    'title': pattern.get('title'),
                    'description': pattern.get('description'),
                    'context': pattern.get('context'),
                    'applicability': pattern.get('applicability'),
                    'extracted_from_session': session_id,
                    'conversation_summary': extracted['summary'],
                },
                'confidence_score': clamp_confidence(pattern.get('confidence')),
                'source_session_id': session_id,
            })
            for pattern in extracted['patterns']
        ]
        results = await asyncio.gather(*inserts, return_exceptions=True)
        stored = sum(1 for r in results if not isinstance(r, BaseException))
        for failure in (r for r in results if isinstance(r, BaseException)):
            logger.error('Knowledge pattern insert failed: %s', failure)
        logger.info('Inserted %d knowledge patterns', stored)

        usage = completion.usage
        try:
            await store.insert('ai_usage_logs', {
                'user_id': session['user_id'],
                'operation_type': 'knowledge_extraction',
                'model_used': llm.model,
                'prompt_tokens': usage.get('prompt_tokens', 0),
                'completion_tokens': usage.get('completion_tokens', 0),
                'total_tokens': usage.get('total_tokens', 0),
                'cost_usd': llm.estimate_cost(usage),
                'session_id': session_id,
                'bpmn_file_id': session.get('bpmn_file_id'),
                'metadata': {
                    'patterns_extracted': stored,
                    'extraction_summary': extracted['summary'],
                },
            })
        except STORE_ERRORS as exc:
            logger.error('Failed to log extraction usage: %s', exc)

        backup_file = f'session-{session_id}-{int(time.time() * 1000)}.json'
        backup = {
            'sessionId': session_id,
            'extractedAt': datetime.now(timezone.utc).isoformat(),
            'patterns': extracted['patterns'],
            'summary': extracted['summary'],
            'bpmnContext': context,
            'conversationLength': len(messages),
        }
        try:
            await store.upload(
                store.knowledge_bucket,
                backup_file,
                json.dumps(backup, indent=2, ensure_ascii=False),
                content_type='application/json',
            )
        except STORE_ERRORS as exc:
            logger.error('Failed to store knowledge backup %s: %s', backup_file, exc)
            backup_file = ''

        return web.json_response({
            'success': True,
            'patternsExtracted': stored,
            'summary': extracted['summary'],
            'backupFile': backup_file,
            'usage': usage,
        })

    app.router.add_post('/api/knowledge/extract', extract)
