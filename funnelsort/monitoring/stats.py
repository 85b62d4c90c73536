"""
Funnel Statistics
=================

Per-run counters of which stage resolved each file.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict

from funnelsort.classification.tier1_patterns import Stage


@dataclass
class FunnelStats:
    """Counters for one directory run.

    Only files that were placed (moved, or deleted as duplicates) count
    towards ``total_processed``, so the stage counters always add up to it.
    Failed files are counted separately.
    """

    stage1_hits: int = 0
    stage2_hits: int = 0
    stage3_hits: int = 0
    fallback_hits: int = 0
    total_processed: int = 0
    duplicates_deleted: int = 0
    failed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, stage: Stage, duplicate: bool = False) -> None:
        """Count a placed file.

        Args:
            stage: Stage that produced its classification.
            duplicate: Whether it was deleted as a duplicate.
        """
        with self._lock:
            if stage is Stage.STAGE1:
                self.stage1_hits += 1
            elif stage is Stage.STAGE2:
                self.stage2_hits += 1
            elif stage is Stage.STAGE3:
                self.stage3_hits += 1
            else:
                self.fallback_hits += 1
            self.total_processed += 1
            if duplicate:
                self.duplicates_deleted += 1

    def record_failure(self) -> None:
        """Count a file that could not be placed."""
        with self._lock:
            self.failed += 1

    def reset(self) -> None:
        """Zero all counters."""
        with self._lock:
            self.stage1_hits = 0
            self.stage2_hits = 0
            self.stage3_hits = 0
            self.fallback_hits = 0
            self.total_processed = 0
            self.duplicates_deleted = 0
            self.failed = 0

    def to_dict(self) -> Dict[str, int]:
        """Snapshot in the funnel-stats event layout."""
        with self._lock:
            return {
                "stage1": self.stage1_hits,
                "stage2": self.stage2_hits,
                "stage3": self.stage3_hits,
                "fallback": self.fallback_hits,
                "total": self.total_processed,
                "duplicates": self.duplicates_deleted,
                "failed": self.failed,
            }
