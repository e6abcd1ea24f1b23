"""Intent detection service.

Classifies a free-text question about uploaded code into a fixed search
intent (methods, classes, fields, ...) by nearest-neighbour similarity
against pre-computed example embeddings stored in the vector index.

One embedding per intent is stored under the metadata ``type = "intent"``;
the intent's filter value then narrows the document search to matching
segment types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from src.clients.protocols import EmbeddingClientProtocol, EmbeddingStoreProtocol
from src.schemas.documents import EmbeddingMatch, TextSegment


logger = logging.getLogger(__name__)

INTENT_SEGMENT_TYPE = "intent"
INTENT_VECTOR_ID_PREFIX = "intent-"
GENERAL_FILTER = "general"

DEFAULT_INTENT_TOP_K = 5
DEFAULT_INTENT_MIN_SCORE = 0.3


class SearchIntent(str, Enum):
    """Search intents with the segment type each one filters on."""

    METHODS = "METHODS"
    CLASSES = "CLASSES"
    FIELDS = "FIELDS"
    CONSTRUCTORS = "CONSTRUCTORS"
    PACKAGES = "PACKAGES"
    IMPORTS = "IMPORTS"
    GENERAL = "GENERAL"

    @property
    def pinecone_filter(self) -> str | None:
        """Segment ``type`` value to filter on, or None for GENERAL."""
        return _INTENT_FILTERS[self]


_INTENT_FILTERS: dict[SearchIntent, str | None] = {
    SearchIntent.METHODS: "method",
    SearchIntent.CLASSES: "class",
    SearchIntent.FIELDS: "field",
    SearchIntent.CONSTRUCTORS: "constructor",
    SearchIntent.PACKAGES: "package",
    SearchIntent.IMPORTS: "imports",
    SearchIntent.GENERAL: None,
}

INTENT_EXAMPLES: dict[SearchIntent, list[str]] = {
    SearchIntent.METHODS: [
        "methods", "functions", "function list", "show methods", "list methods",
        "what methods", "method names", "all methods", "get methods",
        "methods in class", "available methods", "public methods",
    ],
    SearchIntent.CLASSES: [
        "classes", "class names", "show classes", "list classes",
        "what classes", "all classes", "get classes", "available classes",
        "class structure", "class definition", "class hierarchy",
    ],
    SearchIntent.FIELDS: [
        "fields", "variables", "show fields", "list fields",
        "what fields", "all fields", "get fields", "available fields",
        "field names", "field types", "instance variables", "class variables",
    ],
    SearchIntent.CONSTRUCTORS: [
        "constructors", "show constructors", "list constructors",
        "what constructors", "all constructors", "get constructors",
        "constructor parameters", "constructor names", "initialization",
    ],
    SearchIntent.PACKAGES: [
        "packages", "package names", "show packages", "list packages",
        "what packages", "all packages", "get packages", "package structure",
        "package organization", "namespace",
    ],
    SearchIntent.IMPORTS: [
        "imports", "import statements", "show imports", "list imports",
        "what imports", "all imports", "get imports", "imported classes",
        "dependencies", "external classes",
    ],
    SearchIntent.GENERAL: [
        "explain", "describe", "what is", "how does", "tell me about",
        "overview", "summary", "information", "details", "help",
    ],
}


@dataclass(frozen=True)
class IntentScore:
    """An intent with its similarity score."""

    intent: SearchIntent
    confidence: float

    def __str__(self) -> str:
        return f"{self.intent.value} ({self.confidence:.4f})"


GENERAL_RESULT = IntentScore(SearchIntent.GENERAL, 0.0)


class IntentDetectionService:
    """Embedding-similarity intent classifier.

    Attributes:
        top_k: Intent candidates requested per detection
        min_score: Minimum similarity for a detection to count
    """

    def __init__(
        self,
        embedding_client: EmbeddingClientProtocol,
        embedding_store: EmbeddingStoreProtocol,
        top_k: int = DEFAULT_INTENT_TOP_K,
        min_score: float = DEFAULT_INTENT_MIN_SCORE,
    ) -> None:
        self.embedding_client = embedding_client
        self.embedding_store = embedding_store
        self.top_k = top_k
        self.min_score = min_score

    async def initialize_intent_embeddings(self) -> int:
        """Embed each intent's examples and store them in the vector index.

        Each intent is stored under a stable ID, so re-running replaces the
        previous vectors instead of duplicating them.

        Returns:
            Number of intents stored
        """
        logger.info("Initializing intent embeddings...")
        stored = 0
        try:
            for intent, examples in INTENT_EXAMPLES.items():
                representative_text = " ".join(examples)
                embedding = await self.embedding_client.embed(representative_text)
                segment = TextSegment(
                    text=representative_text,
                    metadata={
                        "type": INTENT_SEGMENT_TYPE,
                        "intent": intent.value,
                        "pineconeFilter": intent.pinecone_filter or GENERAL_FILTER,
                        "isIntentEmbedding": "true",
                    },
                )
                await self.embedding_store.add(
                    embedding, segment, vector_id=INTENT_VECTOR_ID_PREFIX + intent.value.lower()
                )
                stored += 1
                logger.info("Stored intent embedding: %s (%d examples)", intent.value, len(examples))
        except Exception as e:
            logger.error("Error initializing intent embeddings: %s", e)

        logger.info("Intent embeddings initialization completed. Stored %d intents.", stored)
        return stored

    async def detect_search_intent(self, user_message: str) -> IntentScore:
        """Classify a question; GENERAL with 0.0 when nothing matches or on error."""
        try:
            embedding = await self.embedding_client.embed(user_message)
            matches = await self.embedding_store.find_relevant(
                embedding,
                self.top_k,
                self.min_score,
                {"type": INTENT_SEGMENT_TYPE},
            )
            scored = [score for score in map(_intent_score, matches) if score is not None]
            if not scored:
                logger.info("No intent matches found, using GENERAL intent")
                return GENERAL_RESULT

            best = scored[0]
            logger.info(
                "Intent detection completed - Query: '%s', Detected: %s",
                user_message[:50],
                best,
            )
            for candidate in scored[:3]:
                logger.debug("Intent match: %s", candidate)
            return best
        except Exception as e:
            logger.error("Error detecting search intent: %s", e)
            return GENERAL_RESULT

    async def get_top_intents(self, user_message: str, top_n: int) -> list[IntentScore]:
        """Rank intents for a question, best first."""
        try:
            embedding = await self.embedding_client.embed(user_message)
            matches = await self.embedding_store.find_relevant(
                embedding, top_n, 0.0, {"type": INTENT_SEGMENT_TYPE}
            )
            scored = [score for score in map(_intent_score, matches) if score is not None]
            return sorted(scored, key=lambda score: score.confidence, reverse=True)
        except Exception as e:
            logger.error("Error getting top intents: %s", e)
            return [GENERAL_RESULT]

    async def is_initialized(self) -> bool:
        """Whether any intent embedding is present in the index."""
        try:
            embedding = await self.embedding_client.embed("test")
            matches = await self.embedding_store.find_relevant(
                embedding, 1, 0.0, {"type": INTENT_SEGMENT_TYPE}
            )
            return bool(matches)
        except Exception as e:
            logger.warning("Could not verify intent embeddings: %s", e)
            return False

    @staticmethod
    def get_intent_examples() -> dict[SearchIntent, list[str]]:
        return {intent: list(examples) for intent, examples in INTENT_EXAMPLES.items()}


def _intent_score(match: EmbeddingMatch) -> IntentScore | None:
    name = match.embedded.get("intent") if match.embedded is not None else None
    if name not in SearchIntent.__members__:
        return None
    return IntentScore(SearchIntent[name], match.score)
