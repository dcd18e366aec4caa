"""HTTP API server for BPMN analysis, consultant chat and file management.

Endpoints:
    GET  /health              Liveness probe
    POST /api/analyze         Analyze a stored BPMN file
    POST /api/chat            Consultant chat turn
    POST /api/knowledge/...   Knowledge extraction from chat sessions
    /api/files, /api/templates, /api/admin/stats, /api/usage, /api/bizagi

See handlers/__init__.py for the full route list.
"""

from __future__ import annotations

import asyncio
import logging

from aiohttp import web

from .bizagi_client import BizagiClient
from .config import AppConfig
from .handlers import register_all_routes
from .llm_client import LLMClient
from .responses import cors_middleware, error_middleware
from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class ApiServer:
    """aiohttp application wrapper that owns routes and lifecycle."""

    def __init__(
        self,
        config: AppConfig,
        store: SupabaseClient,
        llm: LLMClient,
        bizagi: BizagiClient,
    ) -> None:
        self._config = config
        self._app = web.Application(middlewares=[cors_middleware, error_middleware])
        self._app['cors_origin'] = config.server.cors_origin
        self._app.router.add_get('/health', self._handle_health)
        register_all_routes(self._app, config, store, llm, bizagi)
        self._runner: web.AppRunner | None = None

    # ── Lifecycle ─────────────────────────────────────────

    async def start(self) -> None:
        """Start serving and block until cancelled."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(
            self._runner,
            self._config.server.host,
            self._config.server.port,
        )
        await site.start()
        logger.info(
            "API server listening on %s:%d",
            self._config.server.host,
            self._config.server.port,
        )
        try:
            while True:
                await asyncio.sleep(3600)
        except asyncio.CancelledError:
            pass
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Gracefully shutdown the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.info("API server stopped")

    # ── Health check ──────────────────────────────────────

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})
