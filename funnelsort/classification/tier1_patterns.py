"""
Tier 1 - Filename Pattern Classification
========================================

Instant classification from the bare filename using the ordered
pattern rule list. No I/O is performed. This is the first stage of the
classification funnel.
"""

from typing import Optional, Dict, Any, Sequence
from dataclasses import dataclass
from enum import Enum

from funnelsort.config.taxonomy import PATTERN_RULES, PatternRule
from funnelsort.utils.logging_config import get_logger

logger = get_logger(__name__)


class Stage(Enum):
    """Funnel stage that produced a classification."""
    STAGE1 = "Stage 1: Regex Guard"
    STAGE2 = "Stage 2: Metadata Analyst"
    STAGE3 = "Stage 3: AI Arbiter"
    FALLBACK = "Fallback"


class Confidence(Enum):
    """Confidence attached to a classification."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


@dataclass(frozen=True)
class ClassificationResult:
    """Result of classifying one file.

    Attributes:
        folder: Destination folder id.
        reason: Human-readable explanation.
        stage: Which funnel stage produced this result.
        confidence: How sure the stage is.
    """
    folder: str
    reason: str
    stage: Stage
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "folder": self.folder,
            "reason": self.reason,
            "stage": self.stage.value,
            "confidence": self.confidence.value,
        }


class Tier1PatternClassifier:
    """Tier 1 - ordered filename rule matcher.

    Rules are evaluated in the order given and the first match wins, so
    rule lists must be authored most-specific-first.
    """

    def __init__(self, rules: Optional[Sequence[PatternRule]] = None):
        """Initialize Tier 1 classifier.

        Args:
            rules: Ordered pattern rules. Uses the default rule list if None.
        """
        self.rules = tuple(rules) if rules is not None else PATTERN_RULES

    def classify(self, filename: str) -> Optional[ClassificationResult]:
        """Classify a file by its name.

        Args:
            filename: Bare filename, without directory.

        Returns:
            ClassificationResult with high confidence, or None if no rule matches.
        """
        for rule in self.rules:
            if rule.matches(filename):
                logger.debug(f"Tier 1 match: {filename} -> {rule.folder} ({rule.reason})")
                return ClassificationResult(
                    folder=rule.folder,
                    reason=rule.reason,
                    stage=Stage.STAGE1,
                    confidence=Confidence.HIGH,
                )
        return None

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the loaded rules.

        Returns:
            Total rule count and rule count per destination folder.
        """
        by_folder: Dict[str, int] = {}
        for rule in self.rules:
            by_folder[rule.folder] = by_folder.get(rule.folder, 0) + 1
        return {
            "total_rules": len(self.rules),
            "rules_by_folder": by_folder,
        }
