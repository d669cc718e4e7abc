"""Natural language query service.

Pure logic, no FastAPI imports.  Sends the configured system prompt and the
caller's text to the chat client and hands back whatever the model answers.
The answer is expected to be JSON but is not parsed here.
"""

import logging
from functools import lru_cache

from app.config import settings
from app.core.chat_client import ChatClient, build_chat_client

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "The natural language query cannot be empty or null."
PROCESSING_ERROR_MESSAGE = "An error occurred while processing your query."


class InvalidQueryError(Exception):
    """Raised when the natural language query is missing or blank."""


class QueryProcessingError(Exception):
    """Raised when the chat client fails; the original error is the cause."""


class NaturalLanguageQueryService:
    """Turns a natural language question into the model's JSON answer."""

    def __init__(self, chat_client: ChatClient, system_prompt: str) -> None:
        self.chat_client = chat_client
        self.system_prompt = system_prompt

    def process(self, query: str | None) -> str:
        """Run *query* through the model and return its raw response.

        Raises :class:`InvalidQueryError` for a null or blank query without
        calling the model, and :class:`QueryProcessingError` for any failure
        of the model call.
        """
        if query is None or not query.strip():
            logger.warning("Received an empty or null natural language query.")
            raise InvalidQueryError(EMPTY_QUERY_MESSAGE)

        try:
            logger.debug("Processing natural language query: %s", query)
            response = self.chat_client.call(system=self.system_prompt, user=query)
        except Exception as exc:
            logger.exception(
                "Error occurred while processing natural language query: %s", query
            )
            raise QueryProcessingError(PROCESSING_ERROR_MESSAGE) from exc

        logger.debug("Successfully generated AI response for query: %s", query)
        return response


@lru_cache(maxsize=1)
def get_query_service() -> NaturalLanguageQueryService:
    """Process-wide service built from ``settings`` on first use."""
    return NaturalLanguageQueryService(
        chat_client=build_chat_client(settings),
        system_prompt=settings.nlq_system_prompt,
    )
