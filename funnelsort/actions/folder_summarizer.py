"""
Folder Summarizer
=================

After a run, asks the inference engine to describe each populated
destination folder and stores the answer as a JSON sidecar file in that
folder. Failures are recorded in the sidecar instead of being raised.
"""

import asyncio
import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from funnelsort.classification.response_parser import decode_json_response
from funnelsort.config.settings import InferenceConfig, SummaryConfig
from funnelsort.inference.client import OllamaClient
from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import InferenceError

logger = get_logger(__name__)


SUMMARY_PROMPT = """You are a file system organizer. Analyze the following list of files in the folder "{folder}".
Provide a brief, professional summary of what this folder contains and its likely purpose.
Return ONLY valid JSON in this format:
{{
    "summary": "Description of contents...",
    "tags": ["tag1", "tag2", "tag3"],
    "category": "Broad Category"
}}

Files: {files}"""


@dataclass
class FolderSummary:
    """Sidecar record describing a destination folder.

    Attributes:
        summary: Free-form description.
        tags: Short tag list.
        category: Broad category name.
        generated_at: ISO-8601 generation timestamp.
        file_count: Number of non-dot entries in the folder.
        error: Set when generation failed.
    """
    summary: str = ""
    tags: List[str] = field(default_factory=list)
    category: str = "Unknown"
    generated_at: str = ""
    file_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the sidecar JSON layout."""
        data = {
            "summary": self.summary,
            "tags": self.tags,
            "category": self.category,
            "generatedAt": self.generated_at,
            "fileCount": self.file_count,
        }
        if self.error:
            data["error"] = self.error
        return data


class FolderSummarizer:
    """Writes a summary sidecar into destination folders."""

    def __init__(
        self,
        client: OllamaClient,
        config: Optional[SummaryConfig] = None,
        inference_config: Optional[InferenceConfig] = None,
    ):
        """Initialize the summarizer.

        Args:
            client: Inference engine client.
            config: Sidecar name and listing limits.
            inference_config: Model name and sampling options.
        """
        self.client = client
        self.config = config or SummaryConfig()
        self.inference_config = inference_config or InferenceConfig()

    def _list_entries(self, folder_path: Path) -> List[str]:
        return sorted(name for name in os.listdir(folder_path) if not name.startswith('.'))

    def _write_sidecar(self, folder_path: Path, summary: FolderSummary) -> Path:
        sidecar = folder_path / self.config.sidecar_name
        with open(sidecar, 'w', encoding='utf-8') as f:
            json.dump(summary.to_dict(), f, indent=2)
        return sidecar

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def summarize(self, folder_path: Path, folder_name: Optional[str] = None) -> Optional[FolderSummary]:
        """Generate and persist the summary for one folder.

        Args:
            folder_path: Folder to describe.
            folder_name: Display name used in the prompt.

        Returns:
            The persisted FolderSummary, or None if not even the failure
            sidecar could be written.
        """
        folder_path = Path(folder_path)
        folder_name = folder_name or folder_path.name

        try:
            entries = await asyncio.to_thread(self._list_entries, folder_path)
        except OSError as e:
            logger.error(f"Cannot list folder {folder_path}: {e}")
            return None

        try:
            summary = await self._generate(folder_name, entries)
        except InferenceError as e:
            logger.warning(f"Summary generation failed for {folder_name}: {e}")
            summary = FolderSummary(
                summary="Auto-generated folder",
                error="AI analysis failed",
            )

        summary.generated_at = self._now()
        summary.file_count = len(entries)

        try:
            sidecar = await asyncio.to_thread(self._write_sidecar, folder_path, summary)
        except OSError as e:
            logger.error(f"Cannot write summary for {folder_name}: {e}")
            return None

        logger.info(f"Summary written: {sidecar}")
        return summary

    async def _generate(self, folder_name: str, entries: List[str]) -> FolderSummary:
        """Ask the model for a summary.

        Raises:
            InferenceError: If the engine request fails.
        """
        prompt = SUMMARY_PROMPT.format(
            folder=folder_name,
            files=", ".join(entries[:self.config.max_entries]),
        )
        response_text = await self.client.generate(
            model=self.inference_config.text_model,
            prompt=prompt,
            options={'temperature': self.inference_config.temperature},
            timeout=self.inference_config.request_timeout,
        )

        decoded = decode_json_response(response_text)
        if not decoded.ok:
            # Keep whatever the model said as the summary text
            return FolderSummary(summary=str(response_text).strip(), tags=[], category="Unknown")

        data = decoded.data
        tags = data.get("tags")
        if not isinstance(tags, list):
            tags = []
        return FolderSummary(
            summary=str(data.get("summary") or ""),
            tags=[str(tag) for tag in tags],
            category=str(data.get("category") or "Unknown"),
        )
