"""Claude API gateway: (system instructions, user content) -> raw text."""

import logging
import os

import anthropic

from config.defaults import DEFAULTS
from core.errors import MissingPreconditionError, ModelCallError

logger = logging.getLogger(__name__)


def get_client(timeout=None):
    """Return an Anthropic client. Raises MissingPreconditionError if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise MissingPreconditionError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )
    return anthropic.Anthropic(
        api_key=api_key,
        timeout=timeout if timeout is not None else DEFAULTS["request_timeout"],
        max_retries=0,  # retries belong to the executor
    )


def _is_retryable(error):
    if isinstance(error, (anthropic.APITimeoutError, anthropic.APIConnectionError)):
        return True
    if isinstance(error, anthropic.RateLimitError):
        return True
    if isinstance(error, anthropic.APIStatusError):
        return error.status_code >= 500
    return False


class AnthropicGateway:
    """Sends one request to Claude and returns the concatenated text.

    Transport failures surface as ModelCallError; timeouts, connection
    errors, rate limits and 5xx responses are marked retryable.
    """

    def __init__(self, client=None, model=None, max_tokens=None, temperature=None):
        self._client = client
        self.model = model or DEFAULTS["model"]
        self.max_tokens = max_tokens or DEFAULTS["max_tokens"]
        self.temperature = DEFAULTS["temperature"] if temperature is None else temperature

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    def complete(self, system_instructions, user_content):
        try:
            # Streaming avoids the SDK's non-streaming timeout guard for large max_tokens
            text = ""
            with self.client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_instructions,
                messages=[{"role": "user", "content": user_content}],
            ) as stream:
                for chunk in stream.text_stream:
                    text += chunk
                final = stream.get_final_message()
        except anthropic.APIError as e:
            raise ModelCallError(
                f"Claude API error: {e}", retryable=_is_retryable(e), cause=e,
            ) from e

        if final.stop_reason == "max_tokens":
            logger.warning("Response hit the token limit (%d); output is truncated", self.max_tokens)
        logger.debug("Received %d chars from %s", len(text), self.model)
        return text
