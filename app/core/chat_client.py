"""Mistral chat completions client with tool calling.

Synchronous: one blocking HTTP call per model round.
Pure logic, no FastAPI imports.  Testable in isolation.

The model may answer directly or ask for tool calls; tool results are fed
back as ``tool`` messages until it produces a final answer.
"""

import logging

import httpx

from app.config import Settings
from app.core.sql_tools import SqlToolProvider, ToolError

logger = logging.getLogger(__name__)


class ChatClientError(Exception):
    """Raised when the chat completions API call fails."""


class ChatClient:
    """Sends a system + user prompt to the model and runs bound tools."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        tools: SqlToolProvider | None = None,
        timeout: float = 120.0,
        max_tool_rounds: int = 5,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.tools = tools
        self.timeout = timeout
        self.max_tool_rounds = max_tool_rounds
        self._transport = transport

    def call(self, system: str, user: str) -> str:
        """Run the conversation and return the model's final text."""
        self._validate_api_key()

        messages: list[dict] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

        for round_number in range(self.max_tool_rounds + 1):
            message = self._complete(messages)
            tool_calls = message.get("tool_calls") or []
            if not tool_calls:
                return _message_content(message)
            if round_number == self.max_tool_rounds:
                break

            logger.debug(
                "Model requested %d tool call(s) (round %d)",
                len(tool_calls), round_number + 1,
            )
            messages.append(message)
            messages.extend(self._run_tool_call(call) for call in tool_calls)

        raise ChatClientError(
            f"Model did not produce an answer within {self.max_tool_rounds} tool rounds."
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _validate_api_key(self) -> None:
        if not self.api_key:
            raise ChatClientError(
                "Mistral API key is not configured. "
                "Set MISTRAL_API_KEY in your .env file."
            )

    def _complete(self, messages: list[dict]) -> dict:
        """POST one chat completions request and return the assistant message."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload: dict = {
            "model": self.model,
            "messages": messages,
        }
        if self.tools is not None:
            payload["tools"] = self.tools.definitions()
            payload["tool_choice"] = "auto"

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise ChatClientError(f"Mistral API request failed: {exc}") from exc

        if response.status_code == 401:
            raise ChatClientError(
                "Mistral API authentication failed (HTTP 401). "
                "Check your MISTRAL_API_KEY."
            )

        if response.status_code != 200:
            error_body = response.text[:500]
            raise ChatClientError(
                f"Mistral API error (HTTP {response.status_code}): {error_body}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ChatClientError(
                f"Mistral API returned a non-JSON body: {exc}"
            ) from exc
        return _parse_chat_message(body)

    def _run_tool_call(self, call: dict) -> dict:
        """Execute one tool call and build the ``tool`` message for it."""
        function = call.get("function") or {}
        name = function.get("name", "")

        if self.tools is None:
            content = f"Error: no tools are available (requested '{name}')."
        else:
            try:
                content = self.tools.execute(name, function.get("arguments", "{}"))
            except ToolError as exc:
                logger.warning("Tool call '%s' failed: %s", name, exc)
                content = f"Error: {exc}"

        return {
            "role": "tool",
            "tool_call_id": call.get("id", ""),
            "name": name,
            "content": content,
        }


def build_chat_client(settings: Settings) -> ChatClient:
    """Create a chat client with the SQL tool bound, from application settings."""
    tools = SqlToolProvider(settings.database_url, row_limit=settings.query_row_limit)
    return ChatClient(
        api_key=settings.mistral_api_key,
        model=settings.mistral_chat_model,
        base_url=settings.mistral_base_url,
        tools=tools,
        timeout=settings.llm_timeout_seconds,
        max_tool_rounds=settings.max_tool_rounds,
    )


def _parse_chat_message(body: dict) -> dict:
    """Extract the assistant message from the Mistral chat API response."""
    try:
        message = body["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ChatClientError(
            f"Unexpected Mistral chat API response format: {exc}"
        ) from exc
    if not isinstance(message, dict):
        raise ChatClientError(
            "Unexpected Mistral chat API response format: message is not an object"
        )
    return message


def _message_content(message: dict) -> str:
    content = message.get("content")
    if not isinstance(content, str):
        raise ChatClientError("Mistral chat API returned no text content.")
    return content
