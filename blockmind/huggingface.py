"""
Hugging Face chat-completions client.

Answers free-form questions and writes investment summaries from
market data. Requests go to the router's OpenAI-compatible endpoint.
"""

import logging
from typing import Any, Optional

import httpx

from .errors import ServiceError
from .message_builder import MessageBuilder
from .sanitizer import sanitize_input

logger = logging.getLogger(__name__)

QUESTION_SYSTEM_PROMPT = """You are a precise question-answering system.
Rules:
1. Respond ONLY with the answer, no extra text or formatting
2. Match the question's language exactly
3. Never use markdown or special characters
4. Stop generation immediately after answer"""

RECOMMENDATION_SYSTEM_PROMPT = """You are a cautious cryptocurrency analyst.
Rules:
1. Base the analysis ONLY on the market data provided
2. Give a short verdict (buy, hold or avoid) followed by two or three reasons
3. Mention the main risk in one sentence
4. Keep the answer under 120 words"""


def extract_answer(response: dict[str, Any]) -> Optional[str]:
    """
    Pull the answer text out of a completion response.

    Tries choices[0].message.content, then "answer", then answers[0].answer.
    """
    choices = response.get("choices")
    if isinstance(choices, list) and choices:
        choice = choices[0]
        if isinstance(choice, dict):
            message = choice.get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]

    if isinstance(response.get("answer"), str):
        return response["answer"]

    answers = response.get("answers")
    if isinstance(answers, list) and answers:
        first = answers[0]
        if isinstance(first, dict) and isinstance(first.get("answer"), str):
            return first["answer"]

    return None


class HuggingFaceClient:
    """Hugging Face inference client with connection reuse."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 250,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a reusable HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def complete(
        self, system_prompt: str, user_prompt: str, timeout: Optional[float] = None
    ) -> str:
        """
        Run a chat completion.

        Raises:
            ServiceError: On missing credentials, transport errors or non-200 replies
        """
        if not self.api_key or not self.model:
            raise ServiceError("missing required API key or model name in configuration")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        client = await self._get_client()
        try:
            response = await client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            logger.error(f"AI request failed: {type(e).__name__}: {e}")
            raise ServiceError(f"API request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"AI request returned {response.status_code}: {response.text}")
            raise ServiceError(
                f"API request failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceError(f"failed to decode response: {e}") from e

        answer = extract_answer(data) if isinstance(data, dict) else None
        if answer is None:
            logger.warning("AI response had no recognizable answer field")
            return MessageBuilder.UNREADABLE_ANSWER

        return answer

    async def ask_question(self, question: str, timeout: Optional[float] = None) -> str:
        """Answer a free-form question."""
        question = sanitize_input(question)
        return await self.complete(
            QUESTION_SYSTEM_PROMPT, f"Question: {question}", timeout=timeout
        )

    async def get_investment_recommendation(
        self, coin: str, market_data: str, timeout: Optional[float] = None
    ) -> str:
        """Summarize market data for a coin into a short recommendation."""
        prompt = f"Cryptocurrency: {coin}\n\nMarket data:\n{market_data}"
        return await self.complete(RECOMMENDATION_SYSTEM_PROMPT, prompt, timeout=timeout)
