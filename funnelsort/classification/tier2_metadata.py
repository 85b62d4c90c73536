"""
Tier 2 - Metadata Classification
================================

Heuristics over file size, extension and filename. Uses only the stat
record and the name; file content is never read. This stage is
best-effort: any I/O problem means "no classification".
"""

import os
from pathlib import Path
from typing import Optional

from funnelsort.classification.tier1_patterns import (
    ClassificationResult,
    Confidence,
    Stage,
)
from funnelsort.config.settings import MetadataConfig
from funnelsort.config.taxonomy import (
    ARCHIVE_EXTENSIONS,
    DOCUMENT_EXTENSIONS,
    FALLBACK_FOLDER,
    IMAGE_EXTENSIONS,
)
from funnelsort.utils.logging_config import get_logger

logger = get_logger(__name__)


class Tier2MetadataClassifier:
    """Tier 2 - size/extension/filename heuristics."""

    # Checked in order against the lower-cased filename of documents
    DOCUMENT_KEYWORDS = (
        (("figma", "design", "mockup", "wireframe"), "04_Design_Work",
         "Document with design-related name"),
        (("research", "paper", "article", "thesis", "ebook"), "06_Research_Notes",
         "Document with research-related name"),
    )

    def __init__(self, config: Optional[MetadataConfig] = None):
        """Initialize Tier 2 classifier.

        Args:
            config: Size thresholds. Uses defaults if None.
        """
        self.config = config or MetadataConfig()

    def classify(
        self,
        file_path: Path,
        stat_result: Optional[os.stat_result] = None
    ) -> Optional[ClassificationResult]:
        """Classify a file from its metadata.

        Args:
            file_path: Path to the file.
            stat_result: Already-available stat record. Stats the file if None.

        Returns:
            ClassificationResult, or None when no heuristic applies or the
            file could not be inspected.
        """
        file_path = Path(file_path)

        if stat_result is None:
            try:
                stat_result = file_path.stat()
            except OSError as e:
                logger.debug(f"Tier 2 skipped {file_path.name}: {e}")
                return None

        try:
            size = int(stat_result.st_size)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Tier 2 skipped {file_path.name}: unusable stat record ({e})")
            return None

        extension = file_path.suffix.lower()
        filename = file_path.name.lower()

        result = (
            self._analyze_image(extension, size)
            or self._analyze_document(extension, filename)
            or self._analyze_size(extension, size)
        )

        if result:
            logger.debug(f"Tier 2 match: {file_path.name} -> {result.folder} ({result.reason})")
        return result

    def _analyze_image(self, extension: str, size: int) -> Optional[ClassificationResult]:
        """Bucket images by size."""
        if extension not in IMAGE_EXTENSIONS:
            return None

        size_kb = size / 1024

        if size_kb < self.config.icon_max_kb:
            return self._result(
                "01_Brand_Identity", "Small image file (likely icon)", Confidence.MEDIUM
            )

        if size_kb > self.config.marketing_min_kb:
            return self._result(
                "02_Marketing_Assets",
                "Large image file (likely marketing asset)",
                Confidence.MEDIUM,
            )

        if size_kb > self.config.photo_min_kb:
            return self._result(
                "05_Raw_Media", "Medium-large image (likely photo)", Confidence.LOW
            )

        return None

    def _analyze_document(self, extension: str, filename: str) -> Optional[ClassificationResult]:
        """Match document names against keyword groups."""
        if extension not in DOCUMENT_EXTENSIONS:
            return None

        for keywords, folder, reason in self.DOCUMENT_KEYWORDS:
            if any(keyword in filename for keyword in keywords):
                return self._result(folder, reason, Confidence.MEDIUM)

        return None

    def _analyze_size(self, extension: str, size: int) -> Optional[ClassificationResult]:
        """Generic size and extension heuristics."""
        size_mb = size / (1024 * 1024)

        if size_mb > self.config.raw_media_min_mb:
            return self._result(
                "05_Raw_Media",
                "Very large file (likely video or raw media)",
                Confidence.MEDIUM,
            )

        if extension in ARCHIVE_EXTENSIONS:
            return self._result(FALLBACK_FOLDER, "Archive file", Confidence.LOW)

        return None

    @staticmethod
    def _result(folder: str, reason: str, confidence: Confidence) -> ClassificationResult:
        return ClassificationResult(
            folder=folder,
            reason=reason,
            stage=Stage.STAGE2,
            confidence=confidence,
        )
