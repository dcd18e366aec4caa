"""Route registration for all API endpoints."""

from __future__ import annotations

from aiohttp import web

from ..bizagi_client import BizagiClient
from ..config import AppConfig
from ..llm_client import LLMClient
from ..supabase_client import SupabaseClient
from .admin import register_admin_routes
from .analyze import register_analyze_routes
from .bizagi import register_bizagi_routes
from .chat import register_chat_routes
from .files import register_file_routes
from .knowledge import register_knowledge_routes
from .templates import register_template_routes


def register_all_routes(
    app: web.Application,
    config: AppConfig,
    store: SupabaseClient,
    llm: LLMClient,
    bizagi: BizagiClient,
) -> None:
    """Register all API routes on the application.

    Routes registered:
        Analysis (1):  POST /api/analyze
        Chat (1):      POST /api/chat
        Knowledge (1): POST /api/knowledge/extract
        Files (7):     list, upload, get, delete, versions, download, audit
        Templates (5): list, categories, create, delete, visibility toggle
        Admin (2):     GET /api/admin/stats, GET /api/usage
        Bizagi (1):    POST /api/bizagi
    """
    register_analyze_routes(app, config, store, llm)
    register_chat_routes(app, config, store, llm)
    register_knowledge_routes(app, config, store, llm)
    register_file_routes(app, config, store)
    register_template_routes(app, config, store)
    register_admin_routes(app, config, store)
    register_bizagi_routes(app, config, store, bizagi)
