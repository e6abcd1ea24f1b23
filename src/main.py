"""
Main entry point for the code assistant service.

Creates the FastAPI application instance for uvicorn.

Four functional areas share one process:
    code-assistant  /api/v1/code            session-aware code analysis
    document-rag    /api/v1/document-rag    upload, embed and chat over documents
    ai-chat         /api/v1/ai-chat         general chat
    code-generator  /api/v1/code-generator  code and test generation
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import (
    close_dependencies,
    get_embedding_client,
    get_embedding_store,
    get_intent_service,
    get_provider_manager,
)
from src.api.error_handlers import register_error_handlers
from src.api.routes.ai_chat import router as ai_chat_router
from src.api.routes.code_assistant import router as code_assistant_router
from src.api.routes.code_generator import router as code_generator_router
from src.api.routes.document_rag import router as document_rag_router
from src.api.routes.health import router as health_router
from src.api.routes.health import set_service_start_time
from src.core.config import get_settings
from src.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)


# Configure structured logging on module load
configure_logging()
logger = get_logger(__name__)

RequestHandler = Callable[[Request], Awaitable[Response]]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    On startup: build the shared provider, embedding and vector store
    clients and store the intent embeddings (when enabled).
    On shutdown: close every HTTP client.
    """
    settings = get_settings()
    logger.info(
        "Starting code assistant service",
        port=settings.port,
        vector_store=settings.vector_store_backend,
    )

    set_service_start_time()

    provider_manager = get_provider_manager()
    logger.info("AI providers configured", providers=provider_manager.get_available_services())
    get_embedding_client()
    get_embedding_store()

    app.state.intents_initialized = 0
    if settings.initialize_intents_on_startup:
        try:
            app.state.intents_initialized = await get_intent_service().initialize_intent_embeddings()
        except Exception as e:
            logger.error("Intent embedding initialization failed", error=str(e))

    yield

    logger.info("Shutting down code assistant service")
    await close_dependencies()
    logger.info("HTTP clients closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="AI Code Assistant Service",
        description="Code analysis, code generation and document RAG over OpenAI, Groq and Pinecone",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
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

    register_error_handlers(app)

    @app.middleware("http")
    async def request_context(request: Request, call_next: RequestHandler) -> Response:
        clear_request_context()
        bind_request_context(method=request.method, path=request.url.path)
        return await call_next(request)

    app.include_router(health_router)
    app.include_router(code_assistant_router)
    app.include_router(document_rag_router)
    app.include_router(ai_chat_router)
    app.include_router(code_generator_router)

    return app


# Create application instance
app = create_app()
