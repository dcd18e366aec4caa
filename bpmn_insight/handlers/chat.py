"""Consultant chat endpoint backed by the hosted model.

Route: POST /api/chat  {sessionId?, message, bpmnFileId?, bpmnContext?}
Tables: ai_chat_sessions, ai_chat_messages, ai_usage_logs,
        process_knowledge_base, bpmn_files
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from aiohttp import web

from ..auth import AuthError, authenticate
from ..config import AppConfig
from ..knowledge import (
    MIN_CHAT_CONFIDENCE,
    build_chat_system_prompt,
    estimate_tokens,
    keyword_patterns,
)
from ..llm_client import LLMClient, LLMError
from ..responses import error_response, read_json
from ..supabase_client import SupabaseClient, SupabaseError, eq, gte

logger = logging.getLogger(__name__)

STORE_ERRORS = (SupabaseError, httpx.HTTPError)


def register_chat_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
    llm: LLMClient,
) -> None:
    """Register the chat route."""

    async def _file_name(file_id: str | None) -> str:
        if not file_id:
            return ''
        try:
            row = await store.select_one(
                'bpmn_files', columns='file_name,file_path', filters={'id': eq(file_id)},
            )
        except STORE_ERRORS as exc:
            logger.warning('Could not load BPMN file %s for chat context: %s', file_id, exc)
            return ''
        return row.get('file_name', '') if row else ''

    async def _knowledge() -> list[dict]:
        try:
            return await store.select(
                'process_knowledge_base',
                columns='knowledge_type,extracted_insights,confidence_score',
                filters={'confidence_score': gte(MIN_CHAT_CONFIDENCE)},
                order='effectiveness_score.desc',
                limit=5,
            )
        except STORE_ERRORS as exc:
            logger.warning('Could not load knowledge base: %s', exc)
            return []

    async def _save_message(session_id: str, role: str, content: str, **extra: Any) -> None:
        try:
            await store.insert('ai_chat_messages', {
                'session_id': session_id,
                'role': role,
                'content': content,
                **extra,
            })
        except STORE_ERRORS as exc:
            logger.error('Failed to store %s message for session %s: %s', role, session_id, exc)

    async def _log_usage(
        user_id: str,
        session_id: str,
        file_id: str | None,
        usage: dict,
        conversation_length: int,
    ) -> None:
        try:
            await store.insert('ai_usage_logs', {
                'user_id': user_id,
                'operation_type': 'chat',
                'model_used': llm.model,
                'prompt_tokens': usage.get('prompt_tokens', 0),
                'completion_tokens': usage.get('completion_tokens', 0),
                'total_tokens': usage.get('total_tokens', 0),
                'cost_usd': llm.estimate_cost(usage),
                'session_id': session_id,
                'bpmn_file_id': file_id,
                'metadata': {'conversation_length': conversation_length},
            })
        except STORE_ERRORS as exc:
            logger.error('Failed to log chat usage for session %s: %s', session_id, exc)

    async def _extract_knowledge(session_id: str, reply: str, context: Any) -> None:
        patterns = keyword_patterns(reply, context)
        try:
            for pattern in patterns:
                await store.insert('process_knowledge_base', {
                    **pattern,
                    'bpmn_context': context or {},
                    'source_session_id': session_id,
                })
        except STORE_ERRORS as exc:
            logger.error('Error extracting knowledge for session %s: %s', session_id, exc)
            return
        logger.info('Extracted %d knowledge patterns', len(patterns))

    # ── POST /api/chat ────────────────────────────────────────

    async def chat(request: web.Request) -> web.Response:
        """One consultant turn: persist, ask the model, persist the reply."""
        if not llm.enabled:
            return error_response(503, 'Model API key is not configured')

        payload = await read_json(request)
        if payload is None:
            return error_response(400, 'Invalid JSON')

        message = str(payload.get('message') or '').strip()
        if not message:
            return error_response(400, 'Missing message')

        try:
            user = await authenticate(request, store)
        except AuthError as exc:
            return error_response(401, str(exc))

        session_id = payload.get('sessionId')
        file_id = payload.get('bpmnFileId')
        context = payload.get('bpmnContext')
        logger.info('Chat request for user %s, session %s', user['id'], session_id)

        if not session_id:
            try:
                session = await store.insert('ai_chat_sessions', {
                    'user_id': user['id'],
                    'bpmn_file_id': file_id,
                    'session_context': context or {},
                })
            except STORE_ERRORS as exc:
                logger.error('Error creating session: %s', exc)
                return error_response(502, 'Failed to create chat session', str(exc))
            session_id = session['id']
            logger.info('Created new session %s', session_id)
        else:
            try:
                owned = await store.select_one(
                    'ai_chat_sessions',
                    columns='id',
                    filters={'id': eq(session_id), 'user_id': eq(user['id'])},
                )
            except STORE_ERRORS as exc:
                logger.error('Error loading session %s: %s', session_id, exc)
                return error_response(502, 'Failed to load chat session', str(exc))
            if owned is None:
                return error_response(404, 'Session not found')

        try:
            history = await store.select(
                'ai_chat_messages',
                columns='role,content',
                filters={'session_id': eq(session_id)},
                order='created_at.asc',
            )
        except STORE_ERRORS as exc:
            logger.error('Error getting messages for session %s: %s', session_id, exc)
            return error_response(502, 'Failed to get conversation history', str(exc))

        system_prompt = build_chat_system_prompt(
            file_name=await _file_name(file_id),
            knowledge=await _knowledge(),
        )

        await _save_message(session_id, 'user', message, token_count=estimate_tokens(message))

        messages = [
            {'role': 'system', 'content': system_prompt},
            *({'role': m['role'], 'content': m['content']} for m in history),
            {'role': 'user', 'content': message},
        ]
        logger.info('Sending chat request with %d messages', len(messages))

        try:
            completion = await llm.chat(messages, max_tokens=1500)
        except LLMError as exc:
            logger.error('Chat model call failed for session %s: %s', session_id, exc)
            return error_response(502, 'Language model request failed', str(exc))

        usage = completion.usage
        await _save_message(
            session_id,
            'assistant',
            completion.content,
            token_count=usage.get('completion_tokens', 0),
            metadata={'model': completion.model, 'usage': usage},
        )
        await _log_usage(user['id'], session_id, file_id, usage, len(messages))
        await _extract_knowledge(session_id, completion.content, context)

        return web.json_response({
            'sessionId': session_id,
            'response': completion.content,
            'usage': usage,
        })

    app.router.add_post('/api/chat', chat)
