"""Tests for commit_haiku.services.haiku_service."""

import asyncio

import pytest

from commit_haiku.adapters.bedrock import BedrockAdapter
from commit_haiku.adapters.errors import ErrorKind, ModelInvocationError, ResponseParsingError
from commit_haiku.core.types import HaikuRequest
from commit_haiku.services.haiku_service import (
    HAIKU_SYSTEM_PROMPT,
    MOODS,
    GenerationFailedError,
    HaikuService,
    HaikuServiceError,
    InvalidInputError,
    make_prompt,
)
from tests.fakes import SAMPLE_HAIKU, FakeModelClient, FakeRuntime, client_error, messages_body


class TestMakePrompt:
    """Tests for prompt construction."""

    def test_template(self):
        assert (
            make_prompt("fix: resolved login issue", "humorous")
            == "Create a humorous haiku from this commit message: fix: resolved login issue"
        )

    def test_moods(self):
        assert MOODS == ("humorous", "reflective", "technical")


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(InvalidInputError, HaikuServiceError)
        assert issubclass(GenerationFailedError, HaikuServiceError)


class TestGenerate:
    """Tests for HaikuService.generate."""

    @pytest.mark.asyncio
    async def test_empty_mood_defaults_to_reflective(self, model_client):
        service = HaikuService(model_client)

        resp = await service.generate(HaikuRequest(commitMessage="fix: resolved login issue", mood=""))

        prompt, options = model_client.calls[0]
        assert prompt == "Create a reflective haiku from this commit message: fix: resolved login issue"
        assert options.system == HAIKU_SYSTEM_PROMPT
        assert resp.haiku == SAMPLE_HAIKU

    @pytest.mark.asyncio
    async def test_empty_mood_matches_explicit_reflective(self):
        empty, explicit = FakeModelClient(), FakeModelClient()

        a = await HaikuService(empty).generate(HaikuRequest(commitMessage="Add README", mood=""))
        b = await HaikuService(explicit).generate(HaikuRequest(commitMessage="Add README", mood="reflective"))

        assert empty.calls[0][0] == explicit.calls[0][0]
        assert empty.calls[0][1] == explicit.calls[0][1]
        assert a == b

    @pytest.mark.asyncio
    async def test_mood_omitted_defaults_to_reflective(self, model_client):
        await HaikuService(model_client).generate(HaikuRequest(commitMessage="Add README"))
        assert model_client.calls[0][0].startswith("Create a reflective haiku")

    @pytest.mark.asyncio
    async def test_request_is_not_mutated(self, model_client):
        req = HaikuRequest(commitMessage="Add README", mood="")
        await HaikuService(model_client).generate(req)
        assert req.mood == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mood", ["humorous", "reflective", "technical"])
    async def test_valid_moods_build_exact_prompt(self, model_client, mood):
        await HaikuService(model_client).generate(HaikuRequest(commitMessage="Bump deps", mood=mood))
        assert model_client.calls[0][0] == f"Create a {mood} haiku from this commit message: Bump deps"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mood", ["silly", "Humorous", "REFLECTIVE", " technical", "angry"])
    async def test_invalid_mood_fails_without_calling_model(self, model_client, mood):
        with pytest.raises(InvalidInputError):
            await HaikuService(model_client).generate(HaikuRequest(commitMessage="anything", mood=mood))

        assert model_client.calls == []

    @pytest.mark.asyncio
    async def test_invalid_mood_makes_no_transport_call(self, runtime):
        service = HaikuService(BedrockAdapter(client=runtime))

        with pytest.raises(InvalidInputError):
            await service.generate(HaikuRequest(commitMessage="fix: typo", mood="silly"))

        assert runtime.calls == []

    @pytest.mark.asyncio
    async def test_output_is_returned_verbatim(self):
        text = "  Leading spaces stay\nso do trailing newlines\n\n"
        resp = await HaikuService(FakeModelClient(text=text)).generate(HaikuRequest(commitMessage="x"))
        assert resp.haiku == text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ModelInvocationError(ErrorKind.THROTTLED, "slow down"),
            ModelInvocationError(ErrorKind.QUOTA_EXCEEDED, "quota"),
            ResponseParsingError("bad body"),
            RuntimeError("unexpected"),
        ],
    )
    async def test_client_failures_become_generation_failed(self, error):
        with pytest.raises(GenerationFailedError) as exc_info:
            await HaikuService(FakeModelClient(error=error)).generate(HaikuRequest(commitMessage="x"))

        assert exc_info.value.__cause__ is error


class TestEndToEnd:
    """Service wired to a real adapter over a fake transport."""

    @pytest.mark.asyncio
    async def test_commit_to_haiku(self):
        runtime = FakeRuntime(body=messages_body(SAMPLE_HAIKU))
        service = HaikuService(BedrockAdapter(client=runtime))

        resp = await service.generate(HaikuRequest(commitMessage="fix: resolved login issue"))

        sent = runtime.last_request()
        assert sent["messages"][0]["content"][0]["text"] == (
            "Create a reflective haiku from this commit message: fix: resolved login issue"
        )
        assert sent["system"] == HAIKU_SYSTEM_PROMPT
        assert sent["max_tokens"] == 500
        assert sent["temperature"] == 0.7
        assert resp.haiku == SAMPLE_HAIKU

    @pytest.mark.asyncio
    async def test_throttling_surfaces_as_generation_failed(self):
        service = HaikuService(BedrockAdapter(client=FakeRuntime(error=client_error("ThrottlingException"))))

        with pytest.raises(GenerationFailedError) as exc_info:
            await service.generate(HaikuRequest(commitMessage="fix: typo"))

        cause = exc_info.value.__cause__
        assert isinstance(cause, ModelInvocationError)
        assert cause.kind == ErrorKind.THROTTLED

    @pytest.mark.asyncio
    async def test_truncated_body_surfaces_as_generation_failed(self):
        service = HaikuService(BedrockAdapter(client=FakeRuntime(body=b'{"content": [')))

        with pytest.raises(GenerationFailedError) as exc_info:
            await service.generate(HaikuRequest(commitMessage="fix: typo"))

        assert isinstance(exc_info.value.__cause__, ResponseParsingError)


class TestNullMood:
    @pytest.mark.asyncio
    async def test_null_mood_defaults_to_reflective(self, model_client):
        await HaikuService(model_client).generate(HaikuRequest(commitMessage="Add README", mood=None))
        assert model_client.calls[0][0].startswith("Create a reflective haiku")


class HangingModelClient:
    async def invoke(self, prompt, options=None):
        await asyncio.Event().wait()


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancellation_is_not_wrapped(self):
        task = asyncio.create_task(HaikuService(HangingModelClient()).generate(HaikuRequest(commitMessage="x")))
        await asyncio.sleep(0)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
