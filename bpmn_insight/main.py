"""BPMN insight service: main entry point.

Builds the backend, model and Bizagi clients and serves the HTTP API
until SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from .bizagi_client import BizagiClient
from .config import AppConfig
from .llm_client import LLMClient
from .server import ApiServer
from .supabase_client import SupabaseClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def create_server(config: AppConfig) -> ApiServer:
    """Create the API server with shared clients."""
    store = SupabaseClient(config.supabase)
    llm = LLMClient(config.llm)
    bizagi = BizagiClient(config.bizagi)
    return ApiServer(config, store, llm, bizagi)


async def main() -> None:
    config = AppConfig.from_env()
    logging.getLogger().setLevel(config.log_level)

    if not config.supabase.configured:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set, store calls will fail")
    if not config.llm.enabled:
        logger.warning("OPENAI_API_KEY not set, analysis will use fallback insights")
    logger.info("Using model %s at %s", config.llm.model, config.llm.base_url)

    server = create_server(config)
    serve_task = asyncio.create_task(server.start())

    # Graceful shutdown
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _shutdown() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown)

    await stop_event.wait()
    serve_task.cancel()
    try:
        await serve_task
    except asyncio.CancelledError:
        pass

    logger.info("All services stopped.")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
