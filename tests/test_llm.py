"""Tests for the LLM-backed extractor and generation clients (no network calls)."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest
from anthropic.types import TextBlock

from src.extraction.clients import (
    AnthropicGenerationClient,
    OpenAIGenerationClient,
    build_generation_client,
)
from src.extraction.errors import MAX_BODY_SNIPPET, ConfigurationError, UpstreamError
from src.extraction.llm import ModelExtractor, build_prompt, parse_model_output, to_result
from src.extraction_config import ExtractionConfig, LLMProvider

CONFIG = ExtractionConfig(use_llm=True, api_key="test-key", temperature=0.0, max_tokens=600)

VALID_REPLY = json.dumps(
    {
        "tasks": [
            {"title": "Integrate payments API", "assignee": "Ravi", "due": "next Wednesday"},
            {"title": "Prepare onboarding doc", "assignee": "Alice", "priority": "high"},
        ],
        "followUp": "Thanks all .  Ravi owns payments ; Alice owns onboarding..",
    }
)


class FakeClient:
    """Records prompts and returns a canned reply."""

    def __init__(self, reply: str = VALID_REPLY, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        self.calls.append({"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.reply


def _extract(extractor: ModelExtractor, text: str = "notes"):
    return asyncio.run(extractor.extract(text))


# ---------------------------------------------------------------------------
# Prompt and parsing
# ---------------------------------------------------------------------------


class TestBuildPrompt:
    """Test the instruction prompt sent to the model."""

    def test_embeds_notes_and_schema(self) -> None:
        """Prompt ends with the notes and spells out the JSON shape."""
        prompt = build_prompt("- Ship it by Friday")
        assert prompt.rstrip().endswith("- Ship it by Friday")
        assert '{"tasks":[{"title":"...","assignee":"...","due":"...","priority":"..."}]' in prompt
        assert '"followUp":"..."' in prompt
        assert "ONLY valid JSON" in prompt

    def test_braces_in_notes_are_kept(self) -> None:
        """Curly braces in the notes are not treated as format placeholders."""
        assert "{not a placeholder}" in build_prompt("{not a placeholder}")


class TestParseModelOutput:
    """Test direct parsing and greedy-object repair of model replies."""

    def test_direct_json(self) -> None:
        """A reply that is pure JSON parses as-is."""
        assert parse_model_output('{"tasks": [], "followUp": "ok"}') == {
            "tasks": [],
            "followUp": "ok",
        }

    def test_json_after_leading_prose(self) -> None:
        """Leading chatter before the object is discarded."""
        content = 'Sure! Here is the JSON you asked for:\n{"tasks": [{"title": "A"}], "followUp": "x"}'
        assert parse_model_output(content)["tasks"] == [{"title": "A"}]

    def test_json_in_markdown_fence(self) -> None:
        """A fenced code block is recovered."""
        content = '```json\n{"tasks": [], "followUp": "fenced"}\n```'
        assert parse_model_output(content)["followUp"] == "fenced"

    def test_no_json_raises(self) -> None:
        """Plain prose with no object raises UpstreamError."""
        with pytest.raises(UpstreamError, match="could not be parsed"):
            parse_model_output("I could not find any tasks in these notes.")

    def test_broken_json_raises(self) -> None:
        """A truncated object cannot be repaired."""
        with pytest.raises(UpstreamError):
            parse_model_output('Here: {"tasks": [ {"title": "A"} ')

    def test_non_object_json_raises(self) -> None:
        """Valid JSON that is not an object is rejected."""
        with pytest.raises(UpstreamError):
            parse_model_output("[1, 2, 3]")


class TestToResult:
    """Test mapping of parsed model output onto ExtractionResult."""

    def test_defaults_when_fields_missing(self) -> None:
        """Missing tasks and followUp default to empty."""
        result = to_result({})
        assert result.tasks == ()
        assert result.follow_up == ""

    def test_follow_up_tidied(self) -> None:
        """The follow-up is normalized with tidy."""
        result = to_result({"followUp": "Thanks all .  See you.."})
        assert result.follow_up == "Thanks all. See you."

    def test_malformed_entries_pass_through(self) -> None:
        """Task entries are mapped without validation."""
        result = to_result({"tasks": [{"assignee": "Bob"}, "Just a title", {"title": "T", "due": 5}]})
        assert result.tasks[0].title is None
        assert result.tasks[0].assignee == "Bob"
        assert result.tasks[1].title == "Just a title"
        assert result.tasks[2].due == 5


# ---------------------------------------------------------------------------
# ModelExtractor
# ---------------------------------------------------------------------------


class TestModelExtractor:
    """Test ModelExtractor against a fake generation client."""

    def test_extracts_tasks_and_follow_up(self) -> None:
        """A valid reply yields its tasks and a tidied follow-up."""
        client = FakeClient()
        result = _extract(ModelExtractor(CONFIG, client=client), "the notes")

        assert [t.title for t in result.tasks] == [
            "Integrate payments API",
            "Prepare onboarding doc",
        ]
        assert result.tasks[0].assignee == "Ravi"
        assert result.tasks[0].due == "next Wednesday"
        assert result.tasks[1].priority == "high"
        assert result.follow_up == "Thanks all. Ravi owns payments; Alice owns onboarding."

    def test_sends_one_request_with_low_temperature(self) -> None:
        """Exactly one request goes out with the configured temperature and token cap."""
        client = FakeClient()
        _extract(ModelExtractor(CONFIG, client=client), "the notes")

        assert len(client.calls) == 1
        call = client.calls[0]
        assert call["temperature"] == 0.0
        assert call["max_tokens"] == 600
        assert "the notes" in call["prompt"]

    def test_repairs_reply_with_leading_prose(self) -> None:
        """Prose around the JSON object does not break extraction."""
        client = FakeClient(reply="Here you go:\n" + VALID_REPLY + "\nHope this helps!")
        result = _extract(ModelExtractor(CONFIG, client=client))
        assert len(result.tasks) == 2

    def test_unparseable_reply_raises(self) -> None:
        """A reply with no JSON raises UpstreamError."""
        client = FakeClient(reply="No JSON here at all.")
        with pytest.raises(UpstreamError):
            _extract(ModelExtractor(CONFIG, client=client))

    def test_upstream_error_propagates(self) -> None:
        """Client failures reach the caller with their status code."""
        client = FakeClient(error=UpstreamError("OpenAI error: 500", status_code=500, body="boom"))
        with pytest.raises(UpstreamError) as exc_info:
            _extract(ModelExtractor(CONFIG, client=client))
        assert exc_info.value.status_code == 500

    def test_missing_key_raises_before_calling(self) -> None:
        """No request is made when the credential is missing."""
        client = FakeClient()
        extractor = ModelExtractor(ExtractionConfig(use_llm=True), client=client)
        with pytest.raises(ConfigurationError):
            _extract(extractor)
        assert client.calls == []

    def test_missing_key_without_client(self) -> None:
        """Without a key no client is built and extract raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            _extract(ModelExtractor(ExtractionConfig(use_llm=True)))

    def test_builds_client_from_config(self) -> None:
        """The default provider builds an OpenAI client."""
        extractor = ModelExtractor(CONFIG)
        assert isinstance(extractor._client, OpenAIGenerationClient)


# ---------------------------------------------------------------------------
# Generation clients
# ---------------------------------------------------------------------------


def _http_response(status: int, text: str, url: str) -> httpx.Response:
    return httpx.Response(status, text=text, request=httpx.Request("POST", url))


class TestUpstreamError:
    """Test the body snippet carried by UpstreamError."""

    def test_body_truncated(self) -> None:
        """Bodies longer than the snippet limit are cut."""
        exc = UpstreamError("OpenAI error: 500", status_code=500, body="x" * 2000)
        assert len(exc.body) == MAX_BODY_SNIPPET == 500
        assert str(exc) == "OpenAI error: 500: " + "x" * 500

    def test_short_body_kept(self) -> None:
        """Short bodies are kept whole and appended to the message."""
        exc = UpstreamError("OpenAI error: 429", status_code=429, body="slow down")
        assert exc.body == "slow down"
        assert str(exc) == "OpenAI error: 429: slow down"

    def test_no_body(self) -> None:
        """Without a body the message is unchanged."""
        assert str(UpstreamError("response could not be parsed")) == "response could not be parsed"


class TestBuildGenerationClient:
    """Test provider dispatch when building a generation client."""

    def test_openai_default(self) -> None:
        """OpenAI is the default provider."""
        client = build_generation_client(CONFIG)
        assert isinstance(client, OpenAIGenerationClient)
        assert client.model == "gpt-4o-mini"

    def test_anthropic(self) -> None:
        """The anthropic provider builds a Messages API client."""
        config = ExtractionConfig(
            use_llm=True,
            provider=LLMProvider.ANTHROPIC,
            api_key="test-key",
            model="claude-test",
        )
        client = build_generation_client(config)
        assert isinstance(client, AnthropicGenerationClient)
        assert client.model == "claude-test"

    def test_missing_key(self) -> None:
        """Building a client without a key raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            build_generation_client(ExtractionConfig(use_llm=True))


class TestOpenAIGenerationClient:
    """Test the OpenAI Chat Completions client with a mocked SDK."""

    URL = "https://api.openai.com/v1/chat/completions"

    def _client(self, create: AsyncMock) -> OpenAIGenerationClient:
        client = OpenAIGenerationClient(api_key="sk-secret", model="gpt-4o-mini")
        client._client = MagicMock()
        client._client.chat.completions.create = create
        return client

    def test_returns_message_content(self) -> None:
        """The first choice's message content is returned."""
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = '{"tasks": []}'
        create = AsyncMock(return_value=response)

        text = asyncio.run(self._client(create).generate("p", temperature=0.0, max_tokens=600))

        assert text == '{"tasks": []}'
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 600
        assert kwargs["messages"] == [{"role": "user", "content": "p"}]

    def test_empty_choices(self) -> None:
        """A response without choices yields empty text."""
        response = MagicMock()
        response.choices = []
        client = self._client(AsyncMock(return_value=response))
        assert asyncio.run(client.generate("p", temperature=0.0, max_tokens=10)) == ""

    def test_status_error_becomes_upstream_error(self) -> None:
        """Non-success statuses become UpstreamError with status and body."""
        error = openai.APIStatusError(
            "rate limited",
            response=_http_response(429, "slow down", self.URL),
            body=None,
        )
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(client.generate("p", temperature=0.0, max_tokens=10))

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "slow down"
        assert "sk-secret" not in str(exc_info.value)

    def test_long_error_body_is_truncated(self) -> None:
        """A large error page is reduced to a 500-character snippet."""
        error = openai.APIStatusError(
            "server error",
            response=_http_response(500, "<html>" + "x" * 2000, self.URL),
            body=None,
        )
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(client.generate("p", temperature=0.0, max_tokens=10))

        assert exc_info.value.status_code == 500
        assert len(exc_info.value.body) == 500
        assert exc_info.value.body.startswith("<html>")

    def test_timeout_becomes_upstream_error(self) -> None:
        """Transport timeouts become UpstreamError without a status."""
        error = openai.APITimeoutError(request=httpx.Request("POST", self.URL))
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(client.generate("p", temperature=0.0, max_tokens=10))
        assert exc_info.value.status_code is None


class TestAnthropicGenerationClient:
    """Test the Anthropic Messages client with a mocked SDK."""

    URL = "https://api.anthropic.com/v1/messages"

    def _client(self, create: AsyncMock) -> AnthropicGenerationClient:
        client = AnthropicGenerationClient(api_key="sk-ant-secret", model="claude-test")
        client._client = MagicMock()
        client._client.messages.create = create
        return client

    def test_joins_text_blocks(self) -> None:
        """Text blocks in the response are concatenated."""
        response = MagicMock()
        response.content = [
            TextBlock(type="text", text='{"tasks": [], '),
            TextBlock(type="text", text='"followUp": "ok"}'),
        ]
        create = AsyncMock(return_value=response)

        text = asyncio.run(self._client(create).generate("p", temperature=0.0, max_tokens=600))

        assert json.loads(text) == {"tasks": [], "followUp": "ok"}
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["temperature"] == 0.0

    def test_status_error_becomes_upstream_error(self) -> None:
        """Non-success statuses become UpstreamError without leaking the key."""
        error = anthropic.APIStatusError(
            "overloaded",
            response=_http_response(529, "overloaded", self.URL),
            body=None,
        )
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(client.generate("p", temperature=0.0, max_tokens=10))
        assert exc_info.value.status_code == 529
        assert "sk-ant-secret" not in str(exc_info.value)

    def test_long_error_body_is_truncated(self) -> None:
        """Anthropic error bodies are bounded the same way."""
        error = anthropic.APIStatusError(
            "overloaded",
            response=_http_response(529, "y" * 1200, self.URL),
            body=None,
        )
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(client.generate("p", temperature=0.0, max_tokens=10))
        assert exc_info.value.body == "y" * 500

    def test_connection_error_becomes_upstream_error(self) -> None:
        """Connection failures become UpstreamError."""
        error = anthropic.APIConnectionError(request=httpx.Request("POST", self.URL))
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError):
            asyncio.run(client.generate("p", temperature=0.0, max_tokens=10))
