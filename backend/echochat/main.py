"""
EchoChat - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import chat_router, sessions_router, settings_router
from .api.deps import ChatServices
from .config import Settings, settings
from .core import AppState, ChatOrchestrator, SessionLifecycleManager
from .core.logging_config import setup_logging
from .llm import ChatCompletionClient, ProviderClient, create_chat_backend
from .middleware import RequestLoggingMiddleware
from .storage import JsonFileSessionStore, SettingsStorage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Process configuration (module-level settings if omitted)

    Returns:
        FastAPI app whose lifespan loads the stores and wires the services
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        # Startup
        setup_logging(config)

        settings_storage = SettingsStorage(config.local_storage_path, config.settings_file)
        store = JsonFileSessionStore(config.local_storage_path, config.sessions_file)
        await store.load()

        state = AppState(settings=await settings_storage.load())
        lifecycle = SessionLifecycleManager(store, state, settings_storage)
        await lifecycle.attach()

        chat_client = ChatCompletionClient(ProviderClient(
            request_timeout=config.http_request_timeout,
            resource_timeout=config.http_resource_timeout,
        ))
        backend = create_chat_backend(
            config.chat_backend,
            get_settings=lambda: state.settings,
            config=config,
            client=chat_client,
        )
        orchestrator = ChatOrchestrator(lifecycle, backend)

        app.state.services = ChatServices(
            config=config,
            state=state,
            store=store,
            settings_storage=settings_storage,
            lifecycle=lifecycle,
            orchestrator=orchestrator,
            chat_client=chat_client,
        )

        logger.info(f"Starting {config.app_name} v{config.app_version}")
        logger.info(f"Storage path: {config.local_storage_path}")
        logger.info(f"Chat backend: {config.chat_backend}")
        logger.info(f"Log level: {config.log_level.upper()}")
        logger.info(f"Debug mode: {config.debug}")
        yield
        # Shutdown
        await orchestrator.shutdown()
        logger.info(f"Shutting down {config.app_name}")

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Multi-session chat with remote or simulated assistant replies",
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware (after CORS)
    if config.log_api_requests:
        app.add_middleware(RequestLoggingMiddleware)

    app.include_router(sessions_router)
    app.include_router(chat_router)
    app.include_router(settings_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": config.app_name,
            "version": config.app_version,
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        state = app.state.services.state
        return {
            "status": "healthy",
            "chat_backend": config.chat_backend,
            "sessions": len(state.sessions),
            "storage_warnings": len(state.storage_warnings),
            "version": config.app_version,
        }

    return app


app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "echochat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
