"""
Unit tests for the Stage 3 LLM arbiter.
"""

import base64

import pytest

from funnelsort.classification.tier1_patterns import Confidence, Stage
from funnelsort.classification.tier3_llm import Tier3LLMClassifier
from funnelsort.config.settings import InferenceConfig
from funnelsort.config.taxonomy import DEFAULT_TAXONOMY, FALLBACK_FOLDER

from conftest import FakeInferenceClient, folder_answer, write_file


class TestTier3LLMClassifier:
    """Tests for Tier3LLMClassifier."""

    @pytest.mark.asyncio
    async def test_valid_answer(self, temp_dir):
        client = FakeInferenceClient(folder_answer("06_Research_Notes", "meeting notes"))
        classifier = Tier3LLMClassifier(client)
        path = write_file(temp_dir / "minutes.dat", b"Agenda: quarterly planning")

        result = await classifier.classify(path)

        assert result.folder == "06_Research_Notes"
        assert result.reason == "meeting notes"
        assert result.stage == Stage.STAGE3
        assert result.confidence == Confidence.MEDIUM

    @pytest.mark.asyncio
    async def test_invalid_answer_pinned_to_fallback(self, temp_dir):
        client = FakeInferenceClient(folder_answer("../../etc"))
        classifier = Tier3LLMClassifier(client)
        path = write_file(temp_dir / "mystery.dat", b"???")

        result = await classifier.classify(path)

        assert result.folder == FALLBACK_FOLDER
        assert result.confidence == Confidence.LOW
        assert "Invalid category" in result.reason

    @pytest.mark.asyncio
    async def test_missing_folder_pinned_to_fallback(self, temp_dir):
        client = FakeInferenceClient(lambda model, prompt, images: '{"reason": "no idea"}')
        classifier = Tier3LLMClassifier(client)
        path = write_file(temp_dir / "mystery.dat", b"???")

        result = await classifier.classify(path)

        assert result.folder == FALLBACK_FOLDER
        assert result.confidence == Confidence.LOW

    @pytest.mark.asyncio
    async def test_answer_wrapped_in_text(self, temp_dir):
        client = FakeInferenceClient(
            lambda model, prompt, images: 'I think: {"folder": "00_Dev_Source", "reason": "code"} done'
        )
        classifier = Tier3LLMClassifier(client)
        path = write_file(temp_dir / "build.dat", b"make all")

        result = await classifier.classify(path)

        assert result.folder == "00_Dev_Source"

    @pytest.mark.asyncio
    async def test_undecodable_answer(self, temp_dir):
        client = FakeInferenceClient(lambda model, prompt, images: "I cannot decide")
        classifier = Tier3LLMClassifier(client)
        path = write_file(temp_dir / "mystery.dat", b"???")

        assert await classifier.classify(path) is None

    @pytest.mark.asyncio
    async def test_engine_failure(self, temp_dir):
        client = FakeInferenceClient()
        client.fail_generate = True
        classifier = Tier3LLMClassifier(client)
        path = write_file(temp_dir / "mystery.dat", b"???")

        assert await classifier.classify(path) is None

    @pytest.mark.asyncio
    async def test_unreadable_file(self, temp_dir):
        client = FakeInferenceClient()
        classifier = Tier3LLMClassifier(client)

        assert await classifier.classify(temp_dir / "gone.dat") is None
        assert client.generate_calls == []

    @pytest.mark.asyncio
    async def test_text_prompt(self, temp_dir):
        client = FakeInferenceClient(folder_answer("06_Research_Notes"))
        config = InferenceConfig(snippet_bytes=10, temperature=0.3, num_predict=64)
        classifier = Tier3LLMClassifier(client, config=config)
        path = write_file(temp_dir / "log.dat", b"ab\x00cdefghijklmnopqrstuvwxyz")

        await classifier.classify(path)

        call = client.generate_calls[0]
        assert call["model"] == "phi3"
        assert call["images"] is None
        assert call["options"] == {"temperature": 0.3, "num_predict": 64}
        snippet = call["prompt"].split('"""')[1]
        assert snippet.strip() == "abcdefghi"
        assert "\x00" not in call["prompt"]
        assert "'log.dat'" in call["prompt"]
        for folder in DEFAULT_TAXONOMY.list_folders():
            assert f"- {folder}" in call["prompt"]

    @pytest.mark.asyncio
    async def test_image_uses_vision_model(self, temp_dir):
        client = FakeInferenceClient(folder_answer("02_Marketing_Assets"))
        classifier = Tier3LLMClassifier(client)
        content = b"\x89PNG\r\n\x1a\nfake image"
        path = write_file(temp_dir / "photo.png", content)

        result = await classifier.classify(path)

        call = client.generate_calls[0]
        assert call["model"] == "llava"
        assert call["images"] == [base64.b64encode(content).decode("ascii")]
        assert result.folder == "02_Marketing_Assets"

    def test_model_for(self, fake_client):
        classifier = Tier3LLMClassifier(fake_client, config=InferenceConfig(vision_model="moondream"))

        assert classifier.model_for("photo.JPG") == "moondream"
        assert classifier.model_for("scan.tiff") == "phi3"
        assert classifier.model_for("notes.dat") == "phi3"
