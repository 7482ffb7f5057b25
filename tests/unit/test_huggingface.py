"""
Unit tests for huggingface module.

Tests cover:
- Answer extraction from the supported response shapes
- Request payload and credentials
- Error handling
"""

import json
import sys
import os

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from blockmind.errors import ServiceError
from blockmind.huggingface import (
    QUESTION_SYSTEM_PROMPT,
    RECOMMENDATION_SYSTEM_PROMPT,
    HuggingFaceClient,
    extract_answer,
)
from blockmind.message_builder import MessageBuilder

API_URL = "https://router.huggingface.test/models/test-model/v1/chat/completions"


def make_client(handler, api_key="hf-key", model="test-model"):
    transport = httpx.MockTransport(handler)
    return HuggingFaceClient(
        API_URL,
        api_key,
        model,
        temperature=0.0,
        max_tokens=250,
        client=httpx.AsyncClient(transport=transport),
    )


def chat_response(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestExtractAnswer:
    """Tests for extract_answer."""

    def test_chat_choices(self):
        assert extract_answer(chat_response("42")) == "42"

    def test_answer_field(self):
        assert extract_answer({"answer": "Paris"}) == "Paris"

    def test_answers_list(self):
        assert extract_answer({"answers": [{"answer": "blue", "score": 0.9}]}) == "blue"

    def test_choices_take_priority(self):
        response = chat_response("first")
        response["answer"] = "second"
        assert extract_answer(response) == "first"

    def test_unrecognized(self):
        assert extract_answer({}) is None
        assert extract_answer({"choices": []}) is None
        assert extract_answer({"answers": [{"text": "x"}]}) is None


class TestComplete:
    """Tests for HuggingFaceClient.complete and its callers."""

    @pytest.mark.asyncio
    async def test_ask_question_payload(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=chat_response("Bitcoin is a cryptocurrency."))

        client = make_client(handler)
        answer = await client.ask_question("  what is bitcoin?\x00 ")

        assert answer == "Bitcoin is a cryptocurrency."
        assert seen["auth"] == "Bearer hf-key"
        body = seen["body"]
        assert body["model"] == "test-model"
        assert body["max_tokens"] == 250
        assert body["temperature"] == 0.0
        assert body["messages"][0] == {"role": "system", "content": QUESTION_SYSTEM_PROMPT}
        assert body["messages"][1] == {"role": "user", "content": "Question: what is bitcoin?"}
        await client.close()

    @pytest.mark.asyncio
    async def test_recommendation_prompt(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=chat_response("Hold."))

        client = make_client(handler)
        result = await client.get_investment_recommendation("bitcoin", "*Bitcoin (BTC)*")

        assert result == "Hold."
        system, user = seen["body"]["messages"]
        assert system["content"] == RECOMMENDATION_SYSTEM_PROMPT
        assert "bitcoin" in user["content"]
        assert "*Bitcoin (BTC)*" in user["content"]
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        calls = []
        client = make_client(lambda request: calls.append(request), api_key="")

        with pytest.raises(ServiceError, match="missing required API key"):
            await client.ask_question("hi")

        assert calls == []
        await client.close()

    @pytest.mark.asyncio
    async def test_non_200_status(self):
        client = make_client(lambda request: httpx.Response(503, text="Model loading"))

        with pytest.raises(ServiceError) as exc_info:
            await client.ask_question("hi")

        assert exc_info.value.status_code == 503
        assert "Model loading" in str(exc_info.value)
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        with pytest.raises(ServiceError):
            await client.ask_question("hi")
        await client.close()

    @pytest.mark.asyncio
    async def test_unrecognized_answer_is_soft(self):
        client = make_client(lambda request: httpx.Response(200, json={"generated": "x"}))

        assert await client.ask_question("hi") == MessageBuilder.UNREADABLE_ANSWER
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ServiceError, match="failed to decode"):
            await client.ask_question("hi")
        await client.close()
