"""
Model Manager
=============

Wake/sleep controller for the inference engine's in-memory model.

The model is loaded on demand when a file reaches Stage 3 and unloaded
again after a period without activity, so the engine only holds memory
during bursts of inference work.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from funnelsort.inference.client import OllamaClient
from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import InferenceError

logger = get_logger(__name__)


@dataclass
class InferenceResourceState:
    """Load state of the managed model.

    Attributes:
        is_loaded: Whether the engine currently holds the model.
        last_access_time: Epoch seconds of the last wake, None when unloaded.
        model_name: Name of the managed model.
    """
    is_loaded: bool = False
    last_access_time: Optional[float] = None
    model_name: str = "phi3"


class ModelManager:
    """Controls the UNLOADED/LOADED lifecycle of one model.

    Only this class mutates its state. Callers use ``wake()`` before
    inference and ``force_unload()`` at shutdown.
    """

    def __init__(
        self,
        client: OllamaClient,
        model_name: str = "phi3",
        keep_alive_seconds: int = 300,
        auto_unload_seconds: float = 60,
        load_timeout: Optional[float] = 120,
    ):
        """Initialize the manager.

        Args:
            client: Inference engine client.
            model_name: Model to manage.
            keep_alive_seconds: Keep-alive hint sent with load requests.
            auto_unload_seconds: Idle time before the model is unloaded.
            load_timeout: Timeout for load requests in seconds.
        """
        self.client = client
        self.keep_alive_seconds = keep_alive_seconds
        self.auto_unload_seconds = auto_unload_seconds
        self.load_timeout = load_timeout

        self._state = InferenceResourceState(model_name=model_name)
        self._load_lock = asyncio.Lock()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._sleep_task: Optional[asyncio.Task] = None

        logger.info(
            f"Model manager initialized for {model_name} "
            f"(auto-unload after {auto_unload_seconds}s idle)"
        )

    @property
    def is_loaded(self) -> bool:
        return self._state.is_loaded

    @property
    def model_name(self) -> str:
        return self._state.model_name

    async def wake(self) -> bool:
        """Make sure the model is loaded.

        Returns:
            True if the model is loaded, False if loading failed.
        """
        if self._state.is_loaded:
            self._reset_sleep_timer()
            return True

        async with self._load_lock:
            # Another task may have loaded it while we waited
            if self._state.is_loaded:
                self._reset_sleep_timer()
                return True

            logger.info(f"Waking model {self.model_name}")
            try:
                await self.client.load_model(
                    self.model_name,
                    keep_alive=f"{self.keep_alive_seconds}s",
                    timeout=self.load_timeout,
                )
            except InferenceError as e:
                logger.error(f"Failed to wake model {self.model_name}: {e}")
                return False

            self._state.is_loaded = True
            self._reset_sleep_timer()
            logger.info(f"Model {self.model_name} loaded")
            return True

    def _reset_sleep_timer(self) -> None:
        """Record activity and restart the idle timer."""
        self._state.last_access_time = time.time()
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.auto_unload_seconds, self._on_idle)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_idle(self) -> None:
        self._timer = None
        logger.debug(f"Model {self.model_name} idle for {self.auto_unload_seconds}s")
        self._sleep_task = asyncio.ensure_future(self.sleep())

    async def sleep(self) -> None:
        """Unload the model.

        The state is cleared before the request is sent and stays cleared
        even when the request fails.
        """
        self._cancel_timer()
        if not self._state.is_loaded:
            logger.debug(f"Model {self.model_name} already unloaded")
            return

        self._state.is_loaded = False
        self._state.last_access_time = None

        logger.info(f"Sleeping model {self.model_name}")
        try:
            await self.client.unload_model(self.model_name)
            logger.info(f"Model {self.model_name} unloaded")
        except InferenceError as e:
            logger.warning(f"Error while unloading {self.model_name}: {e}")

    async def force_unload(self) -> None:
        """Cancel the idle timer and unload immediately (shutdown path)."""
        self._cancel_timer()
        await self.sleep()

    def get_status(self) -> Dict[str, Any]:
        """Get current status.

        Returns:
            Dictionary with load state and idle time.
        """
        last_access = self._state.last_access_time
        return {
            "isLoaded": self._state.is_loaded,
            "modelName": self._state.model_name,
            "lastAccessTime": last_access,
            "autoUnloadSeconds": self.auto_unload_seconds,
            "idleSeconds": int(time.time() - last_access) if last_access else None,
        }

    def set_model(self, model_name: str) -> bool:
        """Change the managed model.

        Args:
            model_name: New model name.

        Returns:
            False if the current model is still loaded.
        """
        if self._state.is_loaded:
            logger.warning("Cannot change model while loaded. Unload first.")
            return False
        self._state.model_name = model_name
        logger.info(f"Model changed to: {model_name}")
        return True
