import json

import pytest
from conftest import API_KEY, API_SECRET
from loguru import logger
from nyne_client.config import NyneConfig
from nyne_client.log import NyneLogger
from nyne_client.transport import REDACTED, NyneTransport


@pytest.fixture
def messages():
    """Capture everything loguru emits while the test runs."""
    captured = []
    handler_id = logger.add(lambda message: captured.append(message.record["message"]), level="DEBUG")
    yield captured
    logger.remove(handler_id)


def test_redact_is_literal():
    config = NyneConfig(api_key="a.b*c", api_secret="$(x)")
    transport = NyneTransport(config, NyneLogger())

    redacted = transport.redact('{"error":"bad a.b*c and $(x), also aXbbc"}')

    assert redacted == f'{{"error":"bad {REDACTED} and {REDACTED}, also aXbbc"}}'


def test_redact_secret_containing_key():
    config = NyneConfig(api_key="abc", api_secret="abcSECRETTAIL")
    transport = NyneTransport(config, NyneLogger())

    redacted = transport.redact('{"e":"abcSECRETTAIL","k":"abc"}')

    assert redacted == f'{{"e":"{REDACTED}","k":"{REDACTED}"}}'
    assert "SECRET" not in redacted


def test_redact_matches_serialized_text():
    config = NyneConfig(api_key="plain-key", api_secret='quo"te')
    transport = NyneTransport(config, NyneLogger())
    serialized = json.dumps({"k": "plain-key", "s": 'quo"te'})

    redacted = transport.redact(serialized)

    # JSON escapes the quote, so the secret text no longer matches
    assert redacted == f'{{"k": "{REDACTED}", "s": "quo\\"te"}}'


def test_debug_is_gated(messages):
    quiet = NyneLogger(debug=False)
    quiet.debug("hidden")
    quiet.debug_request("POST /person/search", {"role": "CTO"})
    quiet.info("shown")

    assert messages == ["nyne: shown"]


def test_request_and_response_traces(messages):
    log = NyneLogger(debug=True)
    log.debug_request("POST /person/search", {"role": "CTO"})
    log.debug_response("POST /person/search", {"status": 200})

    assert messages == [
        'nyne: → POST /person/search {"role": "CTO"}',
        'nyne: ← POST /person/search {"status": 200}',
    ]


def test_injected_logger_is_used():
    calls = []

    class Recorder:
        def info(self, message):
            calls.append(("info", message))

        def warning(self, message):
            calls.append(("warning", message))

    log = NyneLogger(Recorder())
    log.info("one")
    log.warning("two")

    assert calls == [("info", "nyne: one"), ("warning", "nyne: two")]


@pytest.mark.asyncio
async def test_credentials_never_logged(server, make_client, messages):
    client = make_client()

    await client.enrich_person(email="ada@example.com")
    await client.get_usage(month=1)

    assert any(m.startswith("nyne: → POST /person/enrichment") for m in messages)
    assert not any(API_KEY in m or API_SECRET in m for m in messages)
