"""
Conflict Resolver
=================

Decides where a file goes inside its destination folder: a file whose
content is already present in the folder is a duplicate, and a file
whose name is taken by different content gets a timestamped name. An
existing file is never overwritten.
"""

import os
import time
from pathlib import Path
from typing import Optional, List
from enum import Enum
from dataclasses import dataclass

from funnelsort.deduplication.hash_engine import FullHasher
from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import DeduplicationError

logger = get_logger(__name__)


class ConflictAction(Enum):
    """Outcome of checking a destination path."""

    PROCEED = "proceed"  # Destination is free
    RENAME = "rename"  # Destination taken by different content
    DUPLICATE = "duplicate"  # Destination holds identical content


@dataclass
class ConflictInfo:
    """Result of resolving one destination.

    Attributes:
        source: Source file path.
        requested: Destination path that was asked for.
        action: How the conflict was resolved.
        result_path: Path to move to, or the existing original for duplicates.
    """

    source: Path
    requested: Path
    action: ConflictAction
    result_path: Path


class ConflictResolver:
    """Resolves destination-name collisions.

    Not safe to call concurrently for the same destination folder; the
    orchestrator holds a per-folder lock around resolve-and-move.
    """

    def __init__(self, hasher: Optional[FullHasher] = None):
        """Initialize conflict resolver.

        Args:
            hasher: Content hasher used to detect duplicates.
        """
        self.hasher = hasher or FullHasher()
        self._conflicts: List[ConflictInfo] = []

    def resolve(self, source: Path, dest_path: Path) -> ConflictInfo:
        """Resolve a destination path for a source file.

        The source is a duplicate when any file already in the destination
        folder has identical content, whatever its name. Otherwise a taken
        destination name gets a timestamp suffix.

        Args:
            source: File about to be moved.
            dest_path: Intended destination path.

        Returns:
            ConflictInfo describing what to do.

        Raises:
            DeduplicationError: If contents could not be compared.
        """
        source = Path(source)
        dest_path = Path(dest_path)

        twin = self._find_identical(source, dest_path)
        if twin is not None:
            info = ConflictInfo(source, dest_path, ConflictAction.DUPLICATE, twin)
            logger.info(f"Duplicate of {twin}: {source.name}")
        elif not dest_path.exists():
            return ConflictInfo(source, dest_path, ConflictAction.PROCEED, dest_path)
        else:
            new_path = self.unique_name(dest_path)
            info = ConflictInfo(source, dest_path, ConflictAction.RENAME, new_path)
            logger.info(f"Name collision: {source.name} -> {new_path.name}")

        self._conflicts.append(info)
        return info

    def _find_identical(self, source: Path, dest_path: Path) -> Optional[Path]:
        """Find a file in the destination folder with the same content.

        The file at ``dest_path`` itself is checked first. Files are only
        hashed when their size matches the source.
        """
        folder = dest_path.parent
        if not folder.is_dir():
            return None

        try:
            size = source.stat().st_size
            candidates = []
            if dest_path.is_file() and dest_path.stat().st_size == size:
                candidates.append(dest_path)
            with os.scandir(folder) as entries:
                for entry in sorted(entries, key=lambda e: e.name):
                    if entry.name.startswith('.') or entry.name == dest_path.name:
                        continue
                    if entry.is_file(follow_symlinks=False) and entry.stat().st_size == size:
                        candidates.append(Path(entry.path))
        except OSError as e:
            raise DeduplicationError(
                f"Cannot compare against {folder}: {e}",
                file_path=str(source),
                cause=e,
            )

        source_digest = None
        for candidate in candidates:
            if candidate == source:
                continue
            if source_digest is None:
                source_digest = self.hasher.compute(source)
            if self.hasher.compute(candidate) == source_digest:
                return candidate
        return None

    def unique_name(self, path: Path) -> Path:
        """Generate a free filename with a timestamp suffix.

        Args:
            path: Original path.

        Returns:
            Available path.
        """
        stem = path.stem
        suffix = path.suffix
        parent = path.parent

        timestamp = int(time.time() * 1000)
        candidate = parent / f"{stem}_{timestamp}{suffix}"

        counter = 1
        while candidate.exists():
            candidate = parent / f"{stem}_{timestamp}_{counter}{suffix}"
            counter += 1

        return candidate

    def get_conflict_history(self) -> List[ConflictInfo]:
        """Get history of resolved conflicts.

        Returns:
            List of ConflictInfo objects.
        """
        return self._conflicts.copy()

    def clear_history(self) -> None:
        """Clear conflict history."""
        self._conflicts.clear()

    def get_stats(self) -> dict:
        """Get conflict resolution statistics.

        Returns:
            Dictionary with statistics.
        """
        stats = {
            "total": len(self._conflicts),
            "by_action": {},
        }

        for conflict in self._conflicts:
            action = conflict.action.value
            stats["by_action"][action] = stats["by_action"].get(action, 0) + 1

        return stats
