"""Inference engine access and model lifecycle."""

from .client import OllamaClient
from .model_manager import ModelManager, InferenceResourceState

__all__ = [
    "OllamaClient",
    "ModelManager",
    "InferenceResourceState",
]
