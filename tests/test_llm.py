import httpx
import pytest
import respx

from argus.llm import (
    DEFAULT_MODEL,
    OPENROUTER_URL,
    LlmConfig,
    LlmError,
    LlmResponse,
    OpenRouterClient,
    StopReason,
    first_message,
    parse_tool_arguments,
)


def test_llm_config_defaults():
    config = LlmConfig()
    assert config.provider == "anthropic"
    assert config.model == "claude-sonnet-4-20250514"
    assert config.max_tokens == 8192
    assert config.temperature == pytest.approx(0.7)


def test_llm_response_defaults_to_end_turn_without_tools():
    response = LlmResponse(content="Implementation pending")
    assert response.tool_calls == []
    assert response.stop_reason is StopReason.END_TURN


def test_first_message_returns_first_choice():
    data = {"choices": [{"message": {"content": "hi"}}, {"message": {"content": "other"}}]}
    assert first_message(data) == {"content": "hi"}


@pytest.mark.parametrize("data", [{}, {"choices": []}, {"choices": [{}]}, None, {"choices": [{"message": 3}]}])
def test_first_message_missing_gives_empty(data):
    assert first_message(data) == {}


def test_parse_tool_arguments_decodes_json():
    call = {"function": {"name": "read_file", "arguments": '{"path": "notes.txt"}'}}
    assert parse_tool_arguments(call) == {"path": "notes.txt"}


@pytest.mark.parametrize(
    "call",
    [
        {"function": {"arguments": "not json"}},
        {"function": {}},
        {},
        {"function": {"arguments": "[1, 2]"}},
    ],
)
def test_parse_tool_arguments_falls_back_to_empty(call):
    assert parse_tool_arguments(call) == {}


def test_chat_sends_request_and_returns_json():
    reply = {"choices": [{"message": {"role": "assistant", "content": "hello"}}]}
    tools = [{"type": "function", "function": {"name": "shell"}}]
    with respx.mock:
        route = respx.post(OPENROUTER_URL).mock(return_value=httpx.Response(200, json=reply))
        client = OpenRouterClient("placeholder", http=httpx.Client())
        result = client.chat([{"role": "user", "content": "hi"}], tools=tools, temperature=0.7)
        request = route.calls.last.request
    assert result == reply
    assert request.headers["Authorization"] == "Bearer placeholder"
    body = httpx.Response(200, content=request.content).json()
    assert body["model"] == DEFAULT_MODEL
    assert body["messages"] == [{"role": "user", "content": "hi"}]
    assert body["tools"] == tools
    assert body["tool_choice"] == "auto"
    assert body["temperature"] == pytest.approx(0.7)


def test_chat_without_tools_omits_tool_fields():
    with respx.mock:
        route = respx.post(OPENROUTER_URL).mock(return_value=httpx.Response(200, json={"choices": []}))
        client = OpenRouterClient("placeholder", http=httpx.Client(), model="some/model")
        client.chat([])
        body = httpx.Response(200, content=route.calls.last.request.content).json()
    assert body == {"model": "some/model", "messages": []}


def test_chat_transport_error_raises():
    with respx.mock:
        respx.post(OPENROUTER_URL).mock(side_effect=httpx.ConnectError("unreachable"))
        client = OpenRouterClient("placeholder", http=httpx.Client())
        with pytest.raises(LlmError):
            client.chat([{"role": "user", "content": "hi"}])


def test_chat_invalid_body_raises():
    with respx.mock:
        respx.post(OPENROUTER_URL).mock(return_value=httpx.Response(200, text="<html>"))
        client = OpenRouterClient("placeholder", http=httpx.Client())
        with pytest.raises(LlmError):
            client.chat([{"role": "user", "content": "hi"}])