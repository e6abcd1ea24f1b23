"""Document chat service.

Answers questions about the documents uploaded in a session:
1. Detect the question's search intent
2. Retrieve the session's most relevant segments, filtered by intent
3. Prompt the chat provider with the segments and the conversation so far
4. Record both turns in the session's transcript
"""

from __future__ import annotations

import logging
import threading

from src.clients.protocols import EmbeddingClientProtocol, EmbeddingStoreProtocol
from src.core.constants import (
    GROQ_SERVICE,
    MSG_AI_RESPONSE_FAILED,
    MSG_EMPTY_QUESTION,
    MSG_NO_AI_RESPONSE,
    OPENAI_SERVICE,
    UPSERT_BATCH_SIZE,
)
from src.providers.manager import ProviderManager
from src.schemas.documents import (
    ChatHistoryMessage,
    DocumentChatRequest,
    DocumentChatResponse,
    TextSegment,
)
from src.services.intent_detection import IntentDetectionService, IntentScore, SearchIntent
from src.strategies.messages import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER


logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10
DEFAULT_MIN_SCORE = 0.0

FIRST_REQUEST_PROMPT = (
    "You are a helpful AI assistant that helps developers understand Java code. "
    "Use the following relevant code segments to answer the user's question. "
    "If the information is not in the code, say so clearly. "
    "Provide accurate, helpful responses based only on the code content.\n\n"
    "IMPORTANT: Format your response in a clear, readable way. Use bullet points, "
    "numbered lists, and proper spacing to make the information easy to read.\n\n"
)

FOLLOW_UP_PROMPT = (
    "You are a helpful AI assistant continuing a conversation about Java code. "
    "Use the relevant code segments and conversation history to provide accurate, "
    "helpful responses.\n\n"
)

DEFAULT_INTENT_INSTRUCTIONS = (
    "Provide a helpful response about the Java code. "
    "Use clear explanations and examples when possible.\n\n"
)

INTENT_INSTRUCTIONS: dict[SearchIntent, str] = {
    SearchIntent.METHODS: (
        "The user is asking about METHODS. Focus on method names, signatures, parameters, "
        "return types, and functionality. If listing methods, provide a clear, organized "
        "list with method names and brief descriptions.\n\n"
    ),
    SearchIntent.CLASSES: (
        "The user is asking about CLASSES. Focus on class names, inheritance, interfaces, "
        "and overall structure. If listing classes, provide a clear, organized list with "
        "class names and brief descriptions.\n\n"
    ),
    SearchIntent.FIELDS: (
        "The user is asking about FIELDS/VARIABLES. Focus on field names, types, modifiers, "
        "and purpose. If listing fields, provide a clear, organized list with field names, "
        "types, and brief descriptions.\n\n"
    ),
    SearchIntent.CONSTRUCTORS: (
        "The user is asking about CONSTRUCTORS. Focus on constructor names, parameters, "
        "and initialization logic. If listing constructors, provide a clear, organized "
        "list with parameter details.\n\n"
    ),
    SearchIntent.PACKAGES: (
        "The user is asking about PACKAGES. Focus on package structure and organization.\n\n"
    ),
    SearchIntent.IMPORTS: (
        "The user is asking about IMPORTS. Focus on imported classes and their purposes.\n\n"
    ),
}


def describe_segment(segment: TextSegment) -> str:
    """Short provenance label, e.g. ``[method] Calculator.add (Lines 5-7)``."""
    return (
        f"[{segment.get('type')}] {segment.get('class')}.{segment.get('name')} "
        f"(Lines {segment.get('startLine')}-{segment.get('endLine')})"
    )


def build_system_prompt(
    intent: IntentScore,
    relevant_docs: list[TextSegment],
    history: list[ChatHistoryMessage],
) -> str:
    """Assemble the document chat system prompt.

    The history includes the current user message as its last entry; a
    history of one message marks the first request of the conversation.
    """
    is_first_request = len(history) <= 1
    parts = [FIRST_REQUEST_PROMPT if is_first_request else FOLLOW_UP_PROMPT]

    parts.append(
        f"Detected Intent: {intent.intent.value} (confidence: {intent.confidence * 100:.2f}%)\n"
    )
    parts.append(INTENT_INSTRUCTIONS.get(intent.intent, DEFAULT_INTENT_INSTRUCTIONS))

    if relevant_docs:
        parts.append("Relevant code segments found:\n")
        for number, segment in enumerate(relevant_docs, start=1):
            segment_type = (segment.get("type") or "").upper()
            parts.append(
                f"{number}. [{segment_type}] {segment.get('class')}.{segment.get('name')} "
                f"(Lines {segment.get('startLine')}-{segment.get('endLine')}, "
                f"Package: {segment.get('package')})\n"
            )
            modifiers = segment.get("modifiers")
            if modifiers:
                parts.append(f"   Modifiers: {modifiers}\n")
            javadoc = segment.get("javadoc")
            if javadoc:
                parts.append(f"   Javadoc: {javadoc}\n")
            parts.append(f"   Content:\n{segment.text}\n\n")
        parts.append("\n")

    if not is_first_request:
        parts.append("Previous conversation context:\n")
        for message in history[:-1]:
            if message.role == ROLE_USER:
                parts.append(f"User: {message.content}\n")
            elif message.role == ROLE_ASSISTANT:
                parts.append(f"Assistant: {message.content}\n")
        parts.append("\n")

    return "".join(parts)


def provider_for(service: str | None) -> str:
    """Map a requested service (provider or chat service name) to a provider."""
    if service and GROQ_SERVICE in service.strip().lower():
        return GROQ_SERVICE
    return OPENAI_SERVICE


class DocumentChatService:
    """Retrieval-augmented chat over a session's uploaded documents.

    Attributes:
        top_k: Segments retrieved per question
        min_score: Minimum similarity for a retrieved segment
        index_batch_size: Segments embedded and stored per batch when indexing
    """

    def __init__(
        self,
        embedding_client: EmbeddingClientProtocol,
        embedding_store: EmbeddingStoreProtocol,
        provider_manager: ProviderManager,
        intent_service: IntentDetectionService,
        top_k: int = DEFAULT_TOP_K,
        min_score: float = DEFAULT_MIN_SCORE,
        index_batch_size: int = UPSERT_BATCH_SIZE,
    ) -> None:
        self.embedding_client = embedding_client
        self.embedding_store = embedding_store
        self.provider_manager = provider_manager
        self.intent_service = intent_service
        self.top_k = top_k
        self.min_score = min_score
        self.index_batch_size = index_batch_size
        self._history: dict[str, list[ChatHistoryMessage]] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Chat
    # =========================================================================

    async def chat_with_documents(self, request: DocumentChatRequest) -> DocumentChatResponse:
        """Answer a question about the session's documents."""
        user_message = request.message or ""
        session_id = request.session_id
        logger.info(
            "Processing chat request - Session: %s, Service: %s, Message: %s",
            session_id,
            request.service,
            user_message[:50],
        )

        if not user_message.strip():
            return DocumentChatResponse(success=False, message=MSG_EMPTY_QUESTION)

        try:
            with self._lock:
                history = self._history.setdefault(session_id, [])
                history.append(ChatHistoryMessage(role=ROLE_USER, content=user_message))
                history_snapshot = list(history)

            intent = await self.intent_service.detect_search_intent(user_message)
            relevant_docs = await self.search_relevant_documents(user_message, session_id, intent)
            logger.info(
                "Found %d relevant documents for query in session %s",
                len(relevant_docs),
                session_id,
            )

            answer = await self.generate_ai_response(
                user_message, relevant_docs, history_snapshot, intent, request.service
            )

            with self._lock:
                history = self._history.setdefault(session_id, [])
                history.append(ChatHistoryMessage(role=ROLE_ASSISTANT, content=answer))
                history_snapshot = list(history)
        except Exception as e:
            logger.exception("Error processing chat request")
            return DocumentChatResponse(
                success=False,
                message=f"Error processing chat request: {e}",
                session_id=session_id,
            )

        logger.info(
            "Chat response generated - Session: %s, Response length: %d, History size: %d",
            session_id,
            len(answer),
            len(history_snapshot),
        )
        return DocumentChatResponse(
            success=True,
            message="Response generated successfully",
            answer=answer,
            response=answer,
            session_id=session_id,
            relevant_documents=[describe_segment(segment) for segment in relevant_docs],
            conversation_history=history_snapshot,
        )

    async def search_relevant_documents(
        self,
        user_message: str,
        session_id: str,
        intent: IntentScore,
    ) -> list[TextSegment]:
        """Retrieve the session's segments closest to the question; [] on error."""
        metadata_filter = {"sessionId": session_id}
        if intent.intent != SearchIntent.GENERAL and intent.intent.pinecone_filter:
            metadata_filter["type"] = intent.intent.pinecone_filter
        logger.info("Using metadata filter: %s (intent %s)", metadata_filter, intent)

        try:
            query_embedding = await self.embedding_client.embed(user_message)
            matches = await self.embedding_store.find_relevant(
                query_embedding, self.top_k, self.min_score, metadata_filter
            )
        except Exception as e:
            logger.error("Error searching relevant documents: %s", e)
            return []

        for number, match in enumerate(matches, start=1):
            if match.embedded is not None:
                logger.debug(
                    "Match %d - Score: %.4f, %s",
                    number,
                    match.score,
                    describe_segment(match.embedded),
                )
        return [match.embedded for match in matches if match.embedded is not None]

    async def generate_ai_response(
        self,
        user_message: str,
        relevant_docs: list[TextSegment],
        history: list[ChatHistoryMessage],
        intent: IntentScore,
        service: str | None = None,
    ) -> str:
        """Ask the chat provider; fall back to a canned apology on empty output or error."""
        system_prompt = build_system_prompt(intent, relevant_docs, history)
        messages = [
            {"role": ROLE_SYSTEM, "content": system_prompt},
            {"role": ROLE_USER, "content": user_message},
        ]
        logger.debug(
            "Document chat prompt - Intent: %s, Documents: %d, History: %d\n%s",
            intent,
            len(relevant_docs),
            len(history),
            system_prompt,
        )

        try:
            model = self.provider_manager.get_model(provider_for(service))
            answer = await model.complete(messages)
        except Exception as e:
            logger.error("Error generating AI response: %s", e)
            return MSG_AI_RESPONSE_FAILED

        if not answer or not answer.strip():
            return MSG_NO_AI_RESPONSE
        return answer

    # =========================================================================
    # Indexing
    # =========================================================================

    async def add_document_to_vector_store(
        self,
        document_id: str,
        segments: list[TextSegment],
        document_type: str,
    ) -> int:
        """Embed and store a document's segments, index_batch_size at a time.

        A failing batch is logged and skipped; the remaining batches are
        still stored.

        Returns:
            Number of segments stored
        """
        logger.info(
            "Adding document to vector store - ID: %s, Type: %s, Segments: %d",
            document_id,
            document_type,
            len(segments),
        )
        stored = 0
        for start in range(0, len(segments), self.index_batch_size):
            batch = segments[start : start + self.index_batch_size]
            try:
                embeddings = await self.embedding_client.embed_all([s.text for s in batch])
                await self.embedding_store.add_all(embeddings, batch)
            except Exception as e:
                logger.error(
                    "Error adding segments %d-%d of document %s to vector store: %s",
                    start + 1,
                    start + len(batch),
                    document_id,
                    e,
                )
                continue
            stored += len(batch)

        logger.info(
            "Added document %s to vector store with %d of %d segments",
            document_id,
            stored,
            len(segments),
        )
        return stored

    async def delete_session_documents(self, session_id: str) -> None:
        """Remove a session's vectors and its conversation history.

        Raises:
            VectorStoreClientError: If the vector store rejects the delete
        """
        await self.embedding_store.delete_by_filter({"sessionId": session_id})
        self.clear_conversation_history(session_id)

    # =========================================================================
    # History
    # =========================================================================

    def clear_conversation_history(self, session_id: str) -> None:
        with self._lock:
            self._history.pop(session_id, None)

    def get_conversation_history(self, session_id: str) -> list[ChatHistoryMessage]:
        with self._lock:
            return list(self._history.get(session_id, []))
