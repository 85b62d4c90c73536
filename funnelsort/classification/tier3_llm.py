"""
Tier 3 - LLM Arbiter
====================

Asks the local inference engine to pick a destination folder from the
fixed taxonomy. The most expensive stage; only reached when the
filename and metadata stages found nothing.

The model's answer is never trusted as a path: a folder outside the
taxonomy is replaced by the fallback folder.
"""

import asyncio
import base64
from pathlib import Path
from typing import Optional

from funnelsort.classification.tier1_patterns import (
    ClassificationResult,
    Confidence,
    Stage,
)
from funnelsort.classification.response_parser import decode_json_response
from funnelsort.config.settings import InferenceConfig
from funnelsort.config.taxonomy import TaxonomyRegistry, DEFAULT_TAXONOMY, VISION_EXTENSIONS
from funnelsort.inference.client import OllamaClient
from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import InferenceError

logger = get_logger(__name__)


class PromptTemplates:
    """Prompt templates for folder arbitration."""

    TEXT_PROMPT = """You are a file archivist. Choose the folder this file belongs in.

Filename: '{filename}'
Content snippet:
\"\"\"
{snippet}
\"\"\"

VALID FOLDERS (choose exactly one, spelled exactly as shown):
{folders}

Respond with ONLY this JSON structure (no other text):
{{"folder": "one of the valid folders", "reason": "brief rationale"}}"""

    IMAGE_PROMPT = """You are a file archivist. Look at this image and choose the folder it belongs in.

Filename: '{filename}'

VALID FOLDERS (choose exactly one, spelled exactly as shown):
{folders}

Respond with ONLY this JSON structure (no other text):
{{"folder": "one of the valid folders", "reason": "brief description"}}"""


class Tier3LLMClassifier:
    """Tier 3 - constrained-vocabulary LLM classifier.

    Returns None whenever the engine cannot give a usable answer, so the
    orchestrator can fall back.
    """

    def __init__(
        self,
        client: OllamaClient,
        taxonomy: Optional[TaxonomyRegistry] = None,
        config: Optional[InferenceConfig] = None,
    ):
        """Initialize LLM classifier.

        Args:
            client: Inference engine client.
            taxonomy: Registry of valid folders.
            config: Model names, sampling options and snippet length.
        """
        self.client = client
        self.taxonomy = taxonomy or DEFAULT_TAXONOMY
        self.config = config or InferenceConfig()
        self.templates = PromptTemplates()

    def _folder_list(self) -> str:
        return "\n".join(f"- {folder}" for folder in self.taxonomy.list_folders())

    def _read_snippet(self, file_path: Path) -> str:
        """Read a bounded prefix of the file as text."""
        with open(file_path, 'rb') as f:
            data = f.read(self.config.snippet_bytes)
        return data.decode('utf-8', errors='ignore').replace('\x00', '')

    def _read_image(self, file_path: Path) -> str:
        with open(file_path, 'rb') as f:
            return base64.b64encode(f.read()).decode('ascii')

    @staticmethod
    def is_vision_file(file_path: Path) -> bool:
        return Path(file_path).suffix.lower() in VISION_EXTENSIONS

    def model_for(self, file_path: Path) -> str:
        """Name of the model that will classify ``file_path``."""
        if self.is_vision_file(file_path):
            return self.config.vision_model
        return self.config.text_model

    async def _build_request(self, file_path: Path):
        """Build (model, prompt, images) for a file."""
        folders = self._folder_list()
        if self.is_vision_file(file_path):
            image = await asyncio.to_thread(self._read_image, file_path)
            prompt = self.templates.IMAGE_PROMPT.format(
                filename=file_path.name, folders=folders
            )
            return self.config.vision_model, prompt, [image]

        snippet = await asyncio.to_thread(self._read_snippet, file_path)
        prompt = self.templates.TEXT_PROMPT.format(
            filename=file_path.name, snippet=snippet, folders=folders
        )
        return self.config.text_model, prompt, None

    async def classify(self, file_path: Path) -> Optional[ClassificationResult]:
        """Classify a file using the inference engine.

        Args:
            file_path: Path to the file.

        Returns:
            ClassificationResult pinned to the taxonomy, or None if the
            engine was unavailable or its answer could not be decoded.
        """
        file_path = Path(file_path)

        try:
            model, prompt, images = await self._build_request(file_path)
        except OSError as e:
            logger.warning(f"Tier 3 could not read {file_path.name}: {e}")
            return None

        try:
            response_text = await self.client.generate(
                model=model,
                prompt=prompt,
                images=images,
                options={
                    'temperature': self.config.temperature,
                    'num_predict': self.config.num_predict,
                },
                timeout=self.config.request_timeout,
            )
        except InferenceError as e:
            logger.error(f"LLM classification failed for {file_path.name}: {e}")
            return None

        decoded = decode_json_response(response_text)
        if not decoded.ok:
            logger.warning(f"Could not parse LLM response: {str(response_text)[:200]}")
            return None

        return self._validate(file_path.name, decoded.data)

    def _validate(self, filename: str, data: dict) -> ClassificationResult:
        """Pin the model's answer to the taxonomy."""
        folder = data.get('folder')
        if isinstance(folder, str):
            folder = folder.strip()

        reason = data.get('reason') or data.get('description') or "AI classification"
        if not isinstance(reason, str):
            reason = str(reason)

        if not self.taxonomy.is_valid(folder):
            logger.warning(f"LLM returned invalid category for {filename}: {folder!r}")
            return ClassificationResult(
                folder=self.taxonomy.fallback,
                reason=f"Invalid category from AI: {folder!r}",
                stage=Stage.STAGE3,
                confidence=Confidence.LOW,
            )

        return ClassificationResult(
            folder=folder,
            reason=reason,
            stage=Stage.STAGE3,
            confidence=Confidence.MEDIUM,
        )

