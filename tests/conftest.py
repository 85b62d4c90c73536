"""
Shared fixtures for funnelsort tests.
"""

import asyncio
import json
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from funnelsort.utils.exceptions import ErrorCode, InferenceError


class FakeInferenceClient:
    """In-process stand-in for OllamaClient.

    Records every call. ``responder`` decides generate() output; set the
    ``fail_*`` flags to make the matching call raise InferenceError.
    """

    def __init__(self, responder: Optional[Callable[[str, str, Optional[list]], str]] = None):
        self.responder = responder or (lambda model, prompt, images: json.dumps(
            {"folder": "99_Unsorted", "reason": "fake"}
        ))
        self.generate_calls: List[dict] = []
        self.load_calls: List[dict] = []
        self.unload_calls: List[str] = []
        self.fail_generate = False
        self.fail_load = False
        self.fail_unload = False
        self.load_delay = 0.0
        self.models = ["phi3:latest", "llava:latest"]
        self.running = True

    async def generate(self, model, prompt, images=None, options=None, keep_alive=None, timeout=None) -> str:
        self.generate_calls.append({
            "model": model,
            "prompt": prompt,
            "images": images,
            "options": options,
        })
        await asyncio.sleep(0)
        if self.fail_generate:
            raise InferenceError("engine down", model=model, operation="generate")
        return self.responder(model, prompt, images)

    async def load_model(self, model, keep_alive, timeout=None) -> None:
        self.load_calls.append({"model": model, "keep_alive": keep_alive})
        await asyncio.sleep(self.load_delay)
        if self.fail_load:
            raise InferenceError(
                "load failed", model=model, operation="load",
                error_code=ErrorCode.MODEL_LOAD_FAILED,
            )

    async def unload_model(self, model, timeout=None) -> None:
        self.unload_calls.append(model)
        await asyncio.sleep(0)
        if self.fail_unload:
            raise InferenceError("unload failed", model=model, operation="unload")

    async def pull_model(self, model, progress_callback=None) -> None:
        for completed in (0, 50, 100):
            if progress_callback:
                progress_callback({
                    "status": "downloading",
                    "completed": completed,
                    "total": 100,
                    "percent": completed,
                })

    async def list_models(self) -> List[str]:
        if not self.running:
            raise InferenceError("engine down", operation="list")
        return list(self.models)

    async def is_running(self) -> bool:
        return self.running


def folder_answer(folder: str, reason: str = "fake") -> Callable:
    """Responder that always picks ``folder``."""
    return lambda model, prompt, images: json.dumps({"folder": folder, "reason": reason})


@pytest.fixture
def fake_client():
    return FakeInferenceClient()


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


def write_file(path: Path, content: bytes = b"", size: Optional[int] = None) -> Path:
    """Write a file, padding it to ``size`` bytes if given."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(content)
        if size is not None and size > len(content):
            f.write(b"\0" * (size - len(content)))
    return path
