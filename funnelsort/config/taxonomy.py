"""
Taxonomy Definitions
====================

Defines the fixed set of destination folders and the ordered filename
pattern rules used for Stage 1 classification.

The taxonomy is closed: every file ends up in one of these folders, and
anything produced by the inference engine is checked against it before it
reaches the filesystem.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple

FALLBACK_FOLDER = "99_Unsorted"

# Extension groups shared by the stages and the orchestrator
IMAGE_EXTENSIONS: FrozenSet[str] = frozenset({
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp', '.tiff', '.tif'
})

# Formats the vision model accepts
VISION_EXTENSIONS: FrozenSet[str] = frozenset({
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp'
})

DOCUMENT_EXTENSIONS: FrozenSet[str] = frozenset({'.pdf', '.docx', '.doc', '.odt', '.rtf'})

ARCHIVE_EXTENSIONS: FrozenSet[str] = frozenset({'.zip', '.rar', '.7z', '.tar', '.gz'})

# Reported as "image" in file-processed events
ASSET_EXTENSIONS: FrozenSet[str] = frozenset({
    '.jpg', '.jpeg', '.png', '.svg', '.gif', '.mp4', '.mov', '.avi', '.mp3', '.wav'
})

_FOLDER_ID_RE = re.compile(r"^[0-9A-Za-z_\- ]+$")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_\- ]")


@dataclass(frozen=True)
class TaxonomyEntry:
    """A destination folder in the taxonomy.

    Attributes:
        id: Stable folder name.
        keywords: Words associated with the folder (used in prompts).
        extensions: Extensions typically found in the folder.
    """
    id: str
    keywords: FrozenSet[str] = frozenset()
    extensions: FrozenSet[str] = frozenset()

    def __post_init__(self):
        if not _FOLDER_ID_RE.match(self.id):
            raise ValueError(f"Invalid taxonomy folder id: {self.id!r}")


def _entry(folder_id: str, keywords, extensions) -> TaxonomyEntry:
    return TaxonomyEntry(
        id=folder_id,
        keywords=frozenset(keywords),
        extensions=frozenset(extensions),
    )


# Order matters: it is the order folders are presented to the model.
MASTER_TAXONOMY: Tuple[TaxonomyEntry, ...] = (
    _entry(
        "00_Dev_Source",
        ["code", "scripts", "config", "json", "env", "development"],
        [".js", ".jsx", ".ts", ".tsx", ".py", ".html", ".css", ".json",
         ".java", ".cpp", ".c", ".h", ".sql", ".php", ".rb", ".go", ".rs"],
    ),
    _entry(
        "01_Brand_Identity",
        ["logos", "icons", "fonts", "palettes", "brand", "logo", "icon"],
        [".svg", ".eps", ".ai"],
    ),
    _entry(
        "02_Marketing_Assets",
        ["ads", "social_posts", "banners", "copy", "marketing", "promo", "campaign"],
        [],
    ),
    _entry(
        "03_Documents_Legal",
        ["invoices", "contracts", "tax", "licenses", "invoice", "receipt",
         "contract", "nda", "legal"],
        [".pdf", ".docx", ".doc"],
    ),
    _entry(
        "04_Design_Work",
        ["psd", "figma", "sketches", "design", "mockup"],
        [".psd", ".ai", ".sketch", ".fig", ".xd"],
    ),
    _entry(
        "05_Raw_Media",
        ["video_footage", "photos_raw", "audio_recordings", "raw", "footage"],
        [".mp4", ".mov", ".avi", ".mkv", ".raw", ".cr2", ".nef", ".wav", ".flac"],
    ),
    _entry(
        "06_Research_Notes",
        ["pdfs", "articles", "ebooks", "text_notes", "research", "notes", "paper"],
        [".pdf", ".txt", ".md", ".epub"],
    ),
    _entry(FALLBACK_FOLDER, ["fallback"], []),
)


@dataclass(frozen=True)
class PatternRule:
    """A Stage 1 filename rule.

    Attributes:
        pattern: Compiled, case-insensitive filename matcher.
        folder: Taxonomy folder id assigned on match.
        reason: Human-readable explanation of the match.
    """
    pattern: re.Pattern
    folder: str
    reason: str

    def matches(self, filename: str) -> bool:
        """Check whether the rule applies to a bare filename."""
        return self.pattern.search(filename) is not None


def _rule(pattern: str, folder: str, reason: str) -> PatternRule:
    return PatternRule(re.compile(pattern, re.IGNORECASE), folder, reason)


# Authored most-specific-first; the first matching rule wins.
PATTERN_RULES: Tuple[PatternRule, ...] = (
    _rule(r"^.*\.(svg|eps|ai)$", "01_Brand_Identity", "Vector graphics file"),
    _rule(r".*(logo|icon|brand).*", "01_Brand_Identity", "Brand-related filename"),
    _rule(
        r"^.*\.(js|jsx|tsx|ts|py|rb|php|css|scss|less|sass|json|yml|yaml|env|sh|bat)$",
        "00_Dev_Source",
        "Source code file",
    ),
    _rule(
        r".*(invoice|receipt|contract|nda|legal|agreement).*",
        "03_Documents_Legal",
        "Legal document keyword",
    ),
    _rule(r"^screenshot.*", FALLBACK_FOLDER, "Screenshot file"),
    _rule(r"^.*\.(psd|sketch|fig|xd)$", "04_Design_Work", "Design source file"),
    _rule(
        r"^.*\.(mp4|mov|avi|mkv|raw|cr2|nef|arw|wav|flac|m4a)$",
        "05_Raw_Media",
        "Raw media file",
    ),
    _rule(r"^.*\.(md|txt|epub)$", "06_Research_Notes", "Text/Note file"),
)


class TaxonomyRegistry:
    """Read-only registry of legal destination folders.

    Provides listing, validation and sanitation of folder names. Nothing
    mutates a registry after construction, so one instance can be shared by
    every concurrent task.
    """

    def __init__(
        self,
        entries: Tuple[TaxonomyEntry, ...] = MASTER_TAXONOMY,
        fallback: str = FALLBACK_FOLDER,
    ):
        """Initialize the registry.

        Args:
            entries: Taxonomy entries in presentation order.
            fallback: Folder id used when nothing else applies.

        Raises:
            ValueError: On duplicate ids or an unknown fallback.
        """
        self._entries: Dict[str, TaxonomyEntry] = {}
        for entry in entries:
            if entry.id in self._entries:
                raise ValueError(f"Duplicate taxonomy folder id: {entry.id}")
            self._entries[entry.id] = entry

        if fallback not in self._entries:
            raise ValueError(f"Fallback folder {fallback!r} is not in the taxonomy")
        self._fallback = fallback
        self._folders: Tuple[str, ...] = tuple(self._entries)

    @property
    def fallback(self) -> str:
        """Folder id used for unclassifiable files."""
        return self._fallback

    def list_folders(self) -> List[str]:
        """Return the folder ids in taxonomy order."""
        return list(self._folders)

    def get(self, folder: str) -> TaxonomyEntry:
        """Return the entry for a folder id.

        Raises:
            KeyError: If the folder is not in the taxonomy.
        """
        return self._entries[folder]

    def is_valid(self, folder) -> bool:
        """Check whether a value names a taxonomy folder."""
        return isinstance(folder, str) and folder in self._entries

    def sanitize(self, raw_name) -> str:
        """Make a folder name safe for the filesystem.

        Strips every character outside ``[A-Za-z0-9_\\- ]`` and surrounding
        whitespace. Never raises; returns the fallback folder when nothing
        usable remains.

        Args:
            raw_name: Candidate folder name, possibly not a string at all.

        Returns:
            A non-empty, filesystem-safe folder name.
        """
        if raw_name is None:
            return self._fallback
        if not isinstance(raw_name, str):
            try:
                raw_name = str(raw_name)
            except Exception:
                return self._fallback

        sanitized = _UNSAFE_CHARS_RE.sub("", raw_name).strip()
        if not sanitized:
            return self._fallback
        return sanitized


DEFAULT_TAXONOMY = TaxonomyRegistry()
