"""
File Operations
===============

Filesystem primitives used by the orchestrator: enumerating candidate
files, moving into place and deleting duplicates.
"""

import os
from pathlib import Path
from typing import Iterable, List, Tuple
import shutil

from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import (
    DirectoryAccessError,
    ErrorCode,
    FileProcessingError,
)

logger = get_logger(__name__)


class FileOperations:
    """Move/delete operations that never overwrite silently."""

    def list_candidates(
        self,
        directory: Path,
        ignored_names: Iterable[str] = ()
    ) -> List[Tuple[str, os.stat_result]]:
        """List the regular files directly inside a directory.

        Dotfiles and ignored platform files are skipped. Entries that
        vanish or cannot be stat'ed while listing are skipped too.

        Args:
            directory: Directory to enumerate (not recursive).
            ignored_names: Filenames that are never candidates.

        Returns:
            (filename, stat) pairs sorted by filename.

        Raises:
            DirectoryAccessError: If the directory itself cannot be listed.
        """
        directory = Path(directory)
        ignored = {name.lower() for name in ignored_names}

        try:
            entries = list(os.scandir(directory))
        except OSError as e:
            raise DirectoryAccessError(
                f"Cannot list directory: {e}",
                directory=str(directory),
                cause=e,
            )

        candidates = []
        for entry in entries:
            if entry.name.startswith('.') or entry.name.lower() in ignored:
                continue
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                candidates.append((entry.name, entry.stat(follow_symlinks=False)))
            except OSError as e:
                logger.debug(f"Skipping unreadable entry {entry.name}: {e}")

        candidates.sort(key=lambda item: item[0])
        return candidates

    def ensure_directory(self, directory: Path) -> Path:
        """Create a directory if needed.

        Raises:
            FileProcessingError: If it cannot be created.
        """
        directory = Path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileProcessingError(
                f"Cannot create directory: {e}",
                file_path=str(directory),
                error_code=ErrorCode.PERMISSION_DENIED,
                cause=e,
            )
        return directory

    def move_file(self, source: Path, dest_path: Path) -> Path:
        """Move a file to an exact destination path.

        The caller must have checked that ``dest_path`` is free.

        Args:
            source: Source file path.
            dest_path: Final destination path.

        Returns:
            Final path of moved file.

        Raises:
            FileProcessingError: If move fails.
        """
        source = Path(source)
        dest_path = Path(dest_path)

        if not source.exists():
            raise FileProcessingError(
                "Source file does not exist",
                file_path=str(source),
                error_code=ErrorCode.FILE_NOT_FOUND
            )

        if dest_path.exists():
            raise FileProcessingError(
                f"Destination already exists: {dest_path}",
                file_path=str(source),
                error_code=ErrorCode.MOVE_FAILED
            )

        try:
            shutil.move(str(source), str(dest_path))
        except OSError as e:
            raise FileProcessingError(
                f"Failed to move file: {e}",
                file_path=str(source),
                error_code=ErrorCode.MOVE_FAILED,
                cause=e,
            )

        logger.info(f"Moved: {source.name} -> {dest_path}")
        return dest_path

    def delete_file(self, file_path: Path) -> None:
        """Delete a file.

        Raises:
            FileProcessingError: If the file cannot be removed.
        """
        file_path = Path(file_path)
        try:
            file_path.unlink()
        except OSError as e:
            raise FileProcessingError(
                f"Failed to delete file: {e}",
                file_path=str(file_path),
                error_code=ErrorCode.DELETE_FAILED,
                cause=e,
            )
        logger.info(f"Deleted duplicate: {file_path.name}")
