import logging
from urllib.parse import parse_qs

import httpx
import pytest

from ideas_api.core import Settings
from ideas_api.providers import sms as sms_module
from ideas_api.providers.sms import (
    ConsoleSmsProvider,
    SmsConfigError,
    SmsRateLimitError,
    SmsServiceError,
    TwilioSmsProvider,
    get_sms_provider,
)


@pytest.fixture
def mock_twilio(monkeypatch):
    """Route the provider's httpx client to a handler set by the test."""
    state = {"requests": [], "response": httpx.Response(201, json={"sid": "SM1"})}
    real_client = httpx.AsyncClient

    def handler(request):
        state["requests"].append(request)
        return state["response"]

    monkeypatch.setattr(
        sms_module.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    return state


async def test_twilio_sends_e164_message(mock_twilio):
    provider = TwilioSmsProvider("AC123", "token", "+15550001111")
    await provider.send_code("9991234567", "123456")

    (request,) = mock_twilio["requests"]
    assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    form = parse_qs(request.content.decode())
    assert form["To"] == ["+79991234567"]
    assert form["From"] == ["+15550001111"]
    assert "123456" in form["Body"][0]
    assert request.headers["Authorization"].startswith("Basic ")


async def test_twilio_rate_limit(mock_twilio):
    mock_twilio["response"] = httpx.Response(429)
    provider = TwilioSmsProvider("AC123", "token", "+15550001111")
    with pytest.raises(SmsRateLimitError):
        await provider.send_code("9991234567", "123456")


async def test_twilio_server_error(mock_twilio):
    mock_twilio["response"] = httpx.Response(500, text="boom")
    provider = TwilioSmsProvider("AC123", "token", "+15550001111")
    with pytest.raises(SmsServiceError):
        await provider.send_code("9991234567", "123456")


async def test_console_provider_logs_code(caplog):
    with caplog.at_level(logging.INFO, logger="ideas_api.providers.sms"):
        await ConsoleSmsProvider().send_code("9991234567", "654321")
    assert "654321" in caplog.text
    assert "9991234567" not in caplog.text


@pytest.fixture
def provider_settings(monkeypatch):
    def _use(**overrides):
        monkeypatch.setattr(sms_module, "get_settings", lambda: Settings(jwt_secret="x", **overrides))
        get_sms_provider.cache_clear()

    yield _use
    get_sms_provider.cache_clear()


def test_provider_selection_defaults_to_console(provider_settings):
    provider_settings()
    assert isinstance(get_sms_provider(), ConsoleSmsProvider)


def test_provider_selection_uses_twilio_when_configured(provider_settings):
    provider_settings(twilio_account_sid="AC1", twilio_auth_token="t", twilio_from_number="+1555")
    assert isinstance(get_sms_provider(), TwilioSmsProvider)


def test_partial_twilio_config_fails(provider_settings):
    provider_settings(twilio_account_sid="AC1")
    with pytest.raises(SmsConfigError):
        get_sms_provider()
