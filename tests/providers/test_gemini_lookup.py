"""Tests for the Gemini address lookup provider."""

from types import SimpleNamespace

import pytest
from google import genai

from payload_mapper.exceptions import AuthenticationError, LookupFailedError, RateLimitError
from payload_mapper.providers.gemini import GeminiLookupProvider, build_lookup_prompt


def _client(mocker, text=None, error=None):
    client = mocker.MagicMock()
    if error is not None:
        client.models.generate_content.side_effect = error
    else:
        client.models.generate_content.return_value = SimpleNamespace(text=text)
    return client


def test_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(AuthenticationError):
        GeminiLookupProvider()


def test_model_from_env(monkeypatch, mocker):
    monkeypatch.setenv("ADDRESS_LOOKUP_MODEL", "gemini-test")

    provider = GeminiLookupProvider(client=_client(mocker, text="x"))

    assert provider.model == "gemini-test"


def test_lookup_returns_stripped_text(mocker):
    client = _client(mocker, text="  T2P 1J9\n")
    provider = GeminiLookupProvider(model="gemini-2.0-flash", client=client)

    result = provider.lookup("100 Main St, Calgary", "postal_code", "Canada")

    assert result == "T2P 1J9"
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-2.0-flash"
    assert "100 Main St, Calgary" in kwargs["contents"]
    assert "The address is in Canada." in kwargs["contents"]


def test_lookup_empty_response(mocker):
    provider = GeminiLookupProvider(client=_client(mocker, text=None))

    assert provider.lookup("Regina", "province") == ""


def test_rate_limit_error_is_mapped(mocker):
    error = genai.errors.ClientError(
        429, {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
    )
    provider = GeminiLookupProvider(client=_client(mocker, error=error))

    with pytest.raises(RateLimitError):
        provider.lookup("Regina", "province")


def test_other_failures_raise_lookup_failed(mocker):
    provider = GeminiLookupProvider(client=_client(mocker, error=RuntimeError("network down")))

    with pytest.raises(LookupFailedError):
        provider.lookup("Regina", "city")


def test_lookup_prompt_hints():
    prompt = build_lookup_prompt("Toronto", "province")

    assert "province or state (2-letter code)" in prompt
    assert '"ON"' in prompt
    assert "The address is in" not in prompt
