"""Application services behind the HTTP routes."""

from src.services.code_analysis import CodeAnalysisService
from src.services.document_chat import DocumentChatService
from src.services.document_processing import DocumentProcessingService
from src.services.general_chat import ChatReply, GeneralChatService
from src.services.intent_detection import (
    IntentDetectionService,
    IntentScore,
    SearchIntent,
)


__all__ = [
    "ChatReply",
    "CodeAnalysisService",
    "DocumentChatService",
    "DocumentProcessingService",
    "GeneralChatService",
    "IntentDetectionService",
    "IntentScore",
    "SearchIntent",
]
