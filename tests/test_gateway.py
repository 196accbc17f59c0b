"""Tests for the model gateway."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from fitness_coach.config import Settings
from fitness_coach.errors import GatewayError
from fitness_coach.gateway import GENERIC_FAILURE, ModelGateway
from fitness_coach.models import ChatMessage

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def gateway_raising(exc):
    chat_model = MagicMock()
    chat_model.bind.return_value.ainvoke = AsyncMock(side_effect=exc)
    return ModelGateway(chat_model), chat_model


def test_complete_returns_model_text():
    gateway = ModelGateway(FakeListChatModel(responses=['{"meals": []}']))
    completion = asyncio.run(gateway.complete("system", [ChatMessage(role="user", content="hi")]))

    assert completion.content == '{"meals": []}'
    assert completion.usage.input_tokens == 0
    assert completion.usage.output_tokens == 0


def test_complete_passes_roles_max_tokens_and_usage():
    reply = AIMessage(
        content=[{"type": "text", "text": "part one"}, {"type": "text", "text": "part two"}],
        usage_metadata={"input_tokens": 120, "output_tokens": 45, "total_tokens": 165},
    )
    chat_model = MagicMock()
    chat_model.bind.return_value.ainvoke = AsyncMock(return_value=reply)
    gateway = ModelGateway(chat_model)

    messages = [
        ChatMessage(role="user", content="plan my day"),
        ChatMessage(role="assistant", content="which day?"),
        ChatMessage(role="user", content="tomorrow"),
    ]
    completion = asyncio.run(gateway.complete("be a coach", messages, max_tokens=3000))

    chat_model.bind.assert_called_once_with(max_tokens=3000)
    sent = chat_model.bind.return_value.ainvoke.call_args.args[0]
    assert [type(m) for m in sent] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert sent[0].content == "be a coach"
    assert completion.content == "part one\npart two"
    assert completion.usage.input_tokens == 120
    assert completion.usage.output_tokens == 45


@pytest.mark.parametrize("exc", [
    openai.AuthenticationError("Incorrect API key provided", response=httpx.Response(401, request=REQUEST), body=None),
    openai.RateLimitError("Rate limit reached", response=httpx.Response(429, request=REQUEST), body=None),
    openai.InternalServerError("The server had an error", response=httpx.Response(500, request=REQUEST), body=None),
])
def test_upstream_errors_surface_their_message(exc):
    gateway, _ = gateway_raising(exc)
    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway.complete("s", [ChatMessage(role="user", content="u")]))
    assert excinfo.value.message == f"Model API error: {exc.message}"
    assert excinfo.value.status_code == 502


def test_transport_failure_is_a_gateway_error():
    gateway, _ = gateway_raising(openai.APIConnectionError(request=REQUEST))
    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway.complete("s", [ChatMessage(role="user", content="u")]))
    assert excinfo.value.message.startswith("Model API error:")


def test_unknown_failure_uses_generic_message():
    gateway, _ = gateway_raising(RuntimeError("socket exploded"))
    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway.complete("s", [ChatMessage(role="user", content="u")]))
    assert excinfo.value.message == GENERIC_FAILURE


def test_missing_credential_fails_every_call():
    gateway = ModelGateway.from_settings(Settings(_env_file=None, openai_api_key=""))
    with pytest.raises(GatewayError):
        asyncio.run(gateway.complete("s", [ChatMessage(role="user", content="u")]))


def test_credential_is_not_exposed():
    gateway = ModelGateway.from_settings(Settings(_env_file=None, openai_api_key="sk-test-not-real"))
    assert "sk-test-not-real" not in repr(vars(gateway))
