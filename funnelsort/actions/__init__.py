"""Actions module for file operations."""

from .file_operations import FileOperations
from .conflict_resolver import ConflictResolver, ConflictAction, ConflictInfo
from .folder_summarizer import FolderSummarizer, FolderSummary

__all__ = [
    "FileOperations",
    "ConflictResolver",
    "ConflictAction",
    "ConflictInfo",
    "FolderSummarizer",
    "FolderSummary",
]
