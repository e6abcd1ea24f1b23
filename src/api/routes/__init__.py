"""API routes module for the code assistant service.

This module exports all API routers for registration in main.py.
"""

from src.api.routes.ai_chat import router as ai_chat_router
from src.api.routes.code_assistant import router as code_assistant_router
from src.api.routes.code_generator import router as code_generator_router
from src.api.routes.document_rag import router as document_rag_router
from src.api.routes.health import router as health_router


__all__ = [
    "ai_chat_router",
    "code_assistant_router",
    "code_generator_router",
    "document_rag_router",
    "health_router",
]
