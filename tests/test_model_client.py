"""Tests for the chat-completion client."""

import json

import httpx
import pytest


def _completion_body(content="Hello", usage=None):
    return {
        "id": "cmpl-1",
        "model": "test-model",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": usage or {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 20},
    }


def test_complete_sends_single_user_message(model_settings):
    from ideas_finder.analyzer.client import ModelClient

    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion_body())

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        result = ModelClient(model_settings, http_client=http).complete("Say hi")

    assert captured["url"] == "https://model.test/v1/chat/completions"
    assert captured["auth"] == "Bearer test-key"
    assert captured["body"] == {
        "model": "test-model",
        "messages": [{"role": "user", "content": "Say hi"}],
        "temperature": 0.2,
        "max_tokens": 5000,
    }
    assert result.text == "Hello"
    assert result.usage.prompt_tokens == 12
    assert result.usage.effective_total == 20


def test_non_2xx_raises_with_status_and_body(model_settings):
    from ideas_finder.analyzer.client import ModelClient
    from ideas_finder.errors import ModelCallError

    def handler(request):
        return httpx.Response(429, text='{"error": "rate limited"}')

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        client = ModelClient(model_settings, http_client=http)
        with pytest.raises(ModelCallError) as exc_info:
            client.complete("prompt")

    assert exc_info.value.status_code == 429
    assert "rate limited" in exc_info.value.body
    assert str(exc_info.value).startswith("Model API error: 429 - ")


def test_unexpected_body_raises_response_error(model_settings):
    from ideas_finder.analyzer.client import ModelClient
    from ideas_finder.errors import ModelResponseError

    def handler(request):
        return httpx.Response(200, json={"choices": "not-a-list"})

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(ModelResponseError):
            ModelClient(model_settings, http_client=http).complete("prompt")


def test_missing_content_and_usage(model_settings):
    from ideas_finder.analyzer.client import ModelClient

    def handler(request):
        return httpx.Response(200, json={"choices": []})

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        result = ModelClient(model_settings, http_client=http).complete("prompt")

    assert result.text == ""
    assert result.usage is None
    assert result.model == "test-model"


def test_transport_error_propagates(model_settings):
    from ideas_finder.analyzer.client import ModelClient

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(httpx.ConnectError):
            ModelClient(model_settings, http_client=http).complete("prompt")


def test_injected_client_is_not_closed(model_settings):
    from ideas_finder.analyzer.client import ModelClient

    http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with ModelClient(model_settings, http_client=http):
        pass

    assert not http.is_closed
    http.close()


def test_owned_client_waits_for_slow_completions():
    from ideas_finder.analyzer.client import ModelClient
    from ideas_finder.config.settings import ModelSettings

    with ModelClient(ModelSettings(api_key="k")) as client:
        timeout = client._http().timeout

    assert timeout.read == 300.0
    assert timeout.connect == 300.0


def test_owned_client_uses_configured_timeout(model_settings):
    from ideas_finder.analyzer.client import ModelClient

    settings = model_settings.model_copy(update={"timeout_seconds": 42.0})
    with ModelClient(settings) as client:
        assert client._http().timeout.read == 42.0
