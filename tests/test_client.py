"""
Unit tests for the Ollama client wrapper.
"""

import asyncio

import httpx
import ollama
import pytest

from funnelsort.inference.client import OllamaClient
from funnelsort.utils.exceptions import ErrorCode, InferenceError


class FakeAsyncClient:
    """Duck-typed ollama.AsyncClient."""

    def __init__(self, response='{"folder": "00_Dev_Source"}'):
        self.response = response
        self.generate_calls = []
        self.exc = None
        self.delay = 0.0
        self.pull_parts = []

    async def generate(self, **kwargs):
        self.generate_calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc:
            raise self.exc
        return {"response": self.response}

    async def list(self):
        if self.exc:
            raise self.exc
        return {"models": [{"model": "phi3:latest"}, {"name": "llava:latest"}]}

    async def pull(self, model, stream=True):
        if self.exc:
            raise self.exc

        async def parts():
            for part in self.pull_parts:
                yield part

        return parts()


class TestOllamaClient:
    """Tests for OllamaClient."""

    @pytest.mark.asyncio
    async def test_generate(self):
        raw = FakeAsyncClient()
        client = OllamaClient(client=raw)

        text = await client.generate("phi3", "prompt", options={"temperature": 0.1})

        assert text == '{"folder": "00_Dev_Source"}'
        call = raw.generate_calls[0]
        assert call["model"] == "phi3"
        assert call["format"] == "json"
        assert call["stream"] is False
        assert call["images"] is None
        assert call["options"] == {"temperature": 0.1}

    @pytest.mark.asyncio
    async def test_generate_with_images(self):
        raw = FakeAsyncClient()
        client = OllamaClient(client=raw)

        await client.generate("llava", "describe", images=["aGVsbG8="])

        assert raw.generate_calls[0]["images"] == ["aGVsbG8="]

    @pytest.mark.asyncio
    async def test_load_and_unload(self):
        raw = FakeAsyncClient()
        client = OllamaClient(client=raw)

        await client.load_model("phi3", keep_alive="300s")
        await client.unload_model("phi3")

        load, unload = raw.generate_calls
        assert load["prompt"] == ""
        assert load["keep_alive"] == "300s"
        assert unload["prompt"] == ""
        assert unload["keep_alive"] == 0

    @pytest.mark.asyncio
    async def test_timeout(self):
        raw = FakeAsyncClient()
        raw.delay = 0.5
        client = OllamaClient(client=raw, timeout=0.05)

        with pytest.raises(InferenceError) as exc_info:
            await client.generate("phi3", "prompt")

        assert exc_info.value.error_code == ErrorCode.INFERENCE_TIMEOUT

    @pytest.mark.asyncio
    async def test_per_call_timeout(self):
        raw = FakeAsyncClient()
        raw.delay = 0.2
        client = OllamaClient(client=raw, timeout=0.01)

        assert await client.generate("phi3", "prompt", timeout=1.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc", [
        ConnectionError("refused"),
        httpx.ConnectError("refused"),
    ])
    async def test_unreachable(self, exc):
        raw = FakeAsyncClient()
        raw.exc = exc
        client = OllamaClient(client=raw)

        with pytest.raises(InferenceError) as exc_info:
            await client.generate("phi3", "prompt")

        assert exc_info.value.error_code == ErrorCode.INFERENCE_UNAVAILABLE
        assert exc_info.value.cause is exc

    @pytest.mark.asyncio
    async def test_engine_error_status(self):
        raw = FakeAsyncClient()
        raw.exc = ollama.ResponseError("model 'nope' not found", 404)
        client = OllamaClient(client=raw)

        with pytest.raises(InferenceError) as exc_info:
            await client.generate("nope", "prompt")

        assert exc_info.value.error_code == ErrorCode.INFERENCE_BAD_RESPONSE
        assert exc_info.value.details["status_code"] == 404
        assert exc_info.value.details["model"] == "nope"

    @pytest.mark.asyncio
    async def test_load_rejected(self):
        raw = FakeAsyncClient()
        raw.exc = ollama.ResponseError("model requires more system memory", 500)
        client = OllamaClient(client=raw)

        with pytest.raises(InferenceError) as exc_info:
            await client.load_model("llava", keep_alive="300s")

        assert exc_info.value.error_code == ErrorCode.MODEL_LOAD_FAILED
        assert exc_info.value.details["operation"] == "load"

    @pytest.mark.asyncio
    async def test_load_unreachable(self):
        raw = FakeAsyncClient()
        raw.exc = ConnectionError("refused")
        client = OllamaClient(client=raw)

        with pytest.raises(InferenceError) as exc_info:
            await client.load_model("phi3", keep_alive="300s")

        assert exc_info.value.error_code == ErrorCode.INFERENCE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_list_models(self):
        client = OllamaClient(client=FakeAsyncClient())

        assert await client.list_models() == ["phi3:latest", "llava:latest"]
        assert await client.is_running() is True

    @pytest.mark.asyncio
    async def test_not_running(self):
        raw = FakeAsyncClient()
        raw.exc = ConnectionError("refused")
        client = OllamaClient(client=raw)

        assert await client.is_running() is False

    @pytest.mark.asyncio
    async def test_pull_progress(self):
        raw = FakeAsyncClient()
        raw.pull_parts = [
            {"status": "pulling manifest"},
            {"status": "downloading", "completed": 25, "total": 100},
            {"status": "downloading", "completed": 100, "total": 100},
            {"status": "success"},
        ]
        client = OllamaClient(client=raw)
        progress = []

        await client.pull_model("phi3", progress_callback=progress.append)

        assert [p["percent"] for p in progress] == [None, 25, 100, None]
        assert progress[1] == {"status": "downloading", "completed": 25, "total": 100, "percent": 25}

    @pytest.mark.asyncio
    async def test_pull_failure(self):
        raw = FakeAsyncClient()
        raw.exc = ollama.ResponseError("pull model manifest: file does not exist", 500)
        client = OllamaClient(client=raw)

        with pytest.raises(InferenceError):
            await client.pull_model("nope")
