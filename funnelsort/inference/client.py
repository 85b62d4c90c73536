"""
Inference Engine Client
=======================

Thin async wrapper around the Ollama HTTP API. Every transport failure,
engine error status and timeout is converted to ``InferenceError`` so
callers only have one exception type to degrade on.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import ollama

from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import ErrorCode, InferenceError

logger = get_logger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], None]


class OllamaClient:
    """Async client for a local Ollama engine."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        timeout: float = 60.0,
        client: Optional[ollama.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            host: Base URL of the engine.
            timeout: Default timeout for a single request in seconds.
            client: Pre-built ``ollama.AsyncClient`` (mainly for tests).
        """
        self.host = host
        self.timeout = timeout
        self._client = client or ollama.AsyncClient(host=host)

    async def _call(
        self,
        operation: str,
        model: Optional[str],
        coro,
        timeout: Optional[float],
        rejected_code: ErrorCode = ErrorCode.INFERENCE_BAD_RESPONSE,
    ):
        """Await an engine call, translating failures to InferenceError.

        ``rejected_code`` is the error code used when the engine answers
        with an error status.
        """
        limit = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(coro, timeout=limit)
        except asyncio.TimeoutError as e:
            raise InferenceError(
                f"{operation} timed out after {limit}s",
                model=model,
                operation=operation,
                error_code=ErrorCode.INFERENCE_TIMEOUT,
                cause=e,
            )
        except ollama.ResponseError as e:
            raise InferenceError(
                f"{operation} rejected by engine: {e.error}",
                model=model,
                operation=operation,
                error_code=rejected_code,
                details={"status_code": e.status_code},
                cause=e,
            )
        except (httpx.HTTPError, ConnectionError, OSError) as e:
            raise InferenceError(
                f"{operation} failed: engine unreachable at {self.host}",
                model=model,
                operation=operation,
                error_code=ErrorCode.INFERENCE_UNAVAILABLE,
                cause=e,
            )

    async def generate(
        self,
        model: str,
        prompt: str,
        images: Optional[List[str]] = None,
        options: Optional[Dict[str, Any]] = None,
        keep_alive: Optional[Union[int, str]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Run a non-streaming JSON-format generation.

        Args:
            model: Model name.
            prompt: Prompt text.
            images: Base64-encoded images for vision models.
            options: Sampling options (temperature, num_predict, ...).
            keep_alive: Keep-alive hint for the model.
            timeout: Per-call timeout override.

        Returns:
            The ``response`` text produced by the engine.

        Raises:
            InferenceError: If the request fails or times out.
        """
        response = await self._call(
            "generate",
            model,
            self._client.generate(
                model=model,
                prompt=prompt,
                images=images or None,
                format="json",
                stream=False,
                options=options,
                keep_alive=keep_alive,
            ),
            timeout,
        )
        return response["response"] or ""

    async def load_model(
        self,
        model: str,
        keep_alive: Union[int, str],
        timeout: Optional[float] = None,
    ) -> None:
        """Load a model into engine memory.

        Raises:
            InferenceError: If the model could not be loaded. An engine error status
                is reported as ``MODEL_LOAD_FAILED``.
        """
        await self._call(
            "load",
            model,
            self._client.generate(model=model, prompt="", stream=False, keep_alive=keep_alive),
            timeout,
            rejected_code=ErrorCode.MODEL_LOAD_FAILED,
        )

    async def unload_model(self, model: str, timeout: Optional[float] = None) -> None:
        """Ask the engine to release a model (zero keep-alive).

        Raises:
            InferenceError: If the request fails.
        """
        await self._call(
            "unload",
            model,
            self._client.generate(model=model, prompt="", stream=False, keep_alive=0),
            timeout,
        )

    async def pull_model(
        self,
        model: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Download a model, reporting progress.

        Args:
            model: Model name to pull.
            progress_callback: Called with ``{status, completed, total, percent}``
                for every progress object the engine streams.

        Raises:
            InferenceError: If the download fails.
        """
        try:
            stream = await self._client.pull(model, stream=True)
            async for part in stream:
                completed = part.get("completed")
                total = part.get("total")
                percent = None
                if completed and total:
                    percent = round(completed / total * 100)
                if progress_callback:
                    progress_callback({
                        "status": part.get("status"),
                        "completed": completed,
                        "total": total,
                        "percent": percent,
                    })
        except ollama.ResponseError as e:
            raise InferenceError(
                f"pull rejected by engine: {e.error}",
                model=model,
                operation="pull",
                error_code=ErrorCode.INFERENCE_BAD_RESPONSE,
                cause=e,
            )
        except (httpx.HTTPError, ConnectionError, OSError) as e:
            raise InferenceError(
                f"pull failed: engine unreachable at {self.host}",
                model=model,
                operation="pull",
                cause=e,
            )

    async def list_models(self) -> List[str]:
        """List model names available in the engine.

        Raises:
            InferenceError: If the engine cannot be reached.
        """
        response = await self._call("list", None, self._client.list(), None)
        names = []
        for entry in response.get("models") or []:
            name = entry.get("model") or entry.get("name")
            if name:
                names.append(name)
        return names

    async def is_running(self) -> bool:
        """Check whether the engine answers requests."""
        try:
            await self.list_models()
            return True
        except InferenceError as e:
            logger.debug(f"Inference engine not available: {e}")
            return False
