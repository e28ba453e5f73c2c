"""
Server module for Inteliose A2A

This module wires the task store, skills and notifier into a FastAPI app.
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import httpx
import uvicorn

from . import __version__
from .api.a2a_routes import create_a2a_router
from .api.card_routes import create_card_router
from .api.intel_routes import create_intel_router
from .card import AGENT_DESCRIPTION, AGENT_NAME
from .config import Settings, get_settings
from .core.executor import RequestExecutor
from .core.skills import SkillContext
from .db.store import TaskStore
from .notify import FarcasterPublisher, LoggingNotifier, Notifier, drain_notifications
from .skills import GeminiClient, MarketDataClient, default_registry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str = "info") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

def build_notifier(settings: Settings, http: httpx.AsyncClient) -> Notifier:
    if not settings.publishing_enabled:
        return LoggingNotifier()
    return FarcasterPublisher(
        http,
        api_key=settings.NEYNAR_API_KEY,
        signer_uuid=settings.NEYNAR_SIGNER_UUID,
        base_url=settings.NEYNAR_URL,
        timeout=settings.PUBLISH_TIMEOUT,
    )

def build_executor(settings: Settings, http: httpx.AsyncClient, store: TaskStore) -> RequestExecutor:
    """
    Construct the executor and its collaborators from settings

    Args:
        settings: Runtime configuration
        http: Shared outbound HTTP client
        store: Task store

    Returns:
        RequestExecutor
    """
    market = MarketDataClient(http, base_url=settings.DEXSCREENER_URL, timeout=settings.MARKET_TIMEOUT)
    llm = None
    if settings.GEMINI_API_KEY:
        llm = GeminiClient(
            http,
            settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_URL,
            timeout=settings.LLM_TIMEOUT,
        )
    else:
        logger.warning("GEMINI_API_KEY is not set; health checks will use the fallback verdict")

    return RequestExecutor(
        store,
        default_registry(),
        SkillContext(market=market, llm=llm),
        notifier=build_notifier(settings, http),
    )

def build_app(settings: Optional[Settings] = None, *,
              store: Optional[TaskStore] = None,
              executor: Optional[RequestExecutor] = None,
              http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Runtime configuration; read from the environment if omitted
        store: Task store; created from DATABASE_URL if omitted
        executor: Pre-built executor, mainly for tests
        http_client: Shared outbound HTTP client; the app owns one if omitted

    Returns:
        FastAPI application
    """
    settings = settings or get_settings()
    http = http_client or httpx.AsyncClient()
    owns_http = http_client is None

    owned_store = None
    if executor is None:
        if store is None:
            store = owned_store = TaskStore.from_url(settings.DATABASE_URL)
        executor = build_executor(settings, http, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await drain_notifications()
        if owns_http:
            await http.aclose()
        if owned_store is not None:
            await owned_store.close()

    app = FastAPI(
        title=AGENT_NAME,
        description=AGENT_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_card_router(executor.skills.definitions(), __version__))
    app.include_router(create_a2a_router(executor))
    app.include_router(create_intel_router(executor))
    app.state.executor = executor

    return app

def create_app() -> FastAPI:
    """App factory for ``uvicorn --factory``"""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    return build_app(settings)

def run_server(settings: Optional[Settings] = None, *, reload: bool = False) -> None:
    """
    Start the API server

    Args:
        settings: Runtime configuration
        reload: Enable auto-reload on file changes
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    # The reloader re-imports the app in a child process, so it needs the factory path
    app = "inteliose_a2a.server:create_app" if reload else build_app(settings)
    uvicorn.run(
        app,
        factory=reload,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        reload=reload,
    )
