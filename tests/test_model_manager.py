"""
Unit tests for the inference model lifecycle.
"""

import asyncio

import pytest

from funnelsort.inference.model_manager import ModelManager

from conftest import FakeInferenceClient


def make_manager(client, auto_unload_seconds=60.0):
    return ModelManager(
        client,
        model_name="phi3",
        keep_alive_seconds=300,
        auto_unload_seconds=auto_unload_seconds,
    )


class TestModelManager:
    """Tests for ModelManager wake/sleep."""

    @pytest.mark.asyncio
    async def test_wake_loads_once(self):
        client = FakeInferenceClient()
        manager = make_manager(client)

        assert await manager.wake() is True
        assert await manager.wake() is True

        assert manager.is_loaded is True
        assert client.load_calls == [{"model": "phi3", "keep_alive": "300s"}]
        await manager.force_unload()

    @pytest.mark.asyncio
    async def test_wake_failure(self):
        client = FakeInferenceClient()
        client.fail_load = True
        manager = make_manager(client)

        assert await manager.wake() is False
        assert manager.is_loaded is False
        assert manager.get_status()["lastAccessTime"] is None

    @pytest.mark.asyncio
    async def test_retry_after_failure(self):
        client = FakeInferenceClient()
        client.fail_load = True
        manager = make_manager(client)
        await manager.wake()

        client.fail_load = False
        assert await manager.wake() is True
        assert len(client.load_calls) == 2
        await manager.force_unload()

    @pytest.mark.asyncio
    async def test_idle_unload_exactly_once(self):
        client = FakeInferenceClient()
        manager = make_manager(client, auto_unload_seconds=0.05)

        await manager.wake()
        await asyncio.sleep(0.3)

        assert manager.is_loaded is False
        assert client.unload_calls == ["phi3"]

    @pytest.mark.asyncio
    async def test_wake_after_idle_reloads(self):
        client = FakeInferenceClient()
        manager = make_manager(client, auto_unload_seconds=0.05)

        await manager.wake()
        await asyncio.sleep(0.2)
        assert manager.is_loaded is False

        assert await manager.wake() is True
        assert len(client.load_calls) == 2
        await manager.force_unload()

    @pytest.mark.asyncio
    async def test_activity_postpones_unload(self):
        client = FakeInferenceClient()
        manager = make_manager(client, auto_unload_seconds=0.15)

        await manager.wake()
        for _ in range(4):
            await asyncio.sleep(0.05)
            await manager.wake()

        assert manager.is_loaded is True
        assert client.unload_calls == []
        await manager.force_unload()

    @pytest.mark.asyncio
    async def test_concurrent_wakes_single_load(self):
        client = FakeInferenceClient()
        client.load_delay = 0.05
        manager = make_manager(client)

        results = await asyncio.gather(*(manager.wake() for _ in range(5)))

        assert results == [True] * 5
        assert len(client.load_calls) == 1
        await manager.force_unload()

    @pytest.mark.asyncio
    async def test_unload_failure_still_clears_state(self):
        client = FakeInferenceClient()
        client.fail_unload = True
        manager = make_manager(client)

        await manager.wake()
        await manager.sleep()

        assert manager.is_loaded is False
        assert client.unload_calls == ["phi3"]

    @pytest.mark.asyncio
    async def test_force_unload_cancels_timer(self):
        client = FakeInferenceClient()
        manager = make_manager(client, auto_unload_seconds=0.05)

        await manager.wake()
        await manager.force_unload()
        await asyncio.sleep(0.15)

        assert client.unload_calls == ["phi3"]

    @pytest.mark.asyncio
    async def test_force_unload_when_unloaded(self):
        client = FakeInferenceClient()
        manager = make_manager(client)

        await manager.force_unload()

        assert client.unload_calls == []

    @pytest.mark.asyncio
    async def test_status(self):
        client = FakeInferenceClient()
        manager = make_manager(client)

        status = manager.get_status()
        assert status["isLoaded"] is False
        assert status["modelName"] == "phi3"
        assert status["idleSeconds"] is None

        await manager.wake()
        status = manager.get_status()
        assert status["isLoaded"] is True
        assert status["lastAccessTime"] is not None
        assert status["idleSeconds"] == 0
        await manager.force_unload()

    @pytest.mark.asyncio
    async def test_set_model_refused_while_loaded(self):
        client = FakeInferenceClient()
        manager = make_manager(client)

        await manager.wake()
        assert manager.set_model("mistral") is False
        assert manager.model_name == "phi3"

        await manager.force_unload()
        assert manager.set_model("mistral") is True
        assert manager.model_name == "mistral"
