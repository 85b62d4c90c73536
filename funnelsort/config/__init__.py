"""Configuration module for funnelsort."""

from .settings import (
    Config,
    FunnelConfig,
    MetadataConfig,
    InferenceConfig,
    SummaryConfig,
)
from .taxonomy import (
    FALLBACK_FOLDER,
    ARCHIVE_EXTENSIONS,
    ASSET_EXTENSIONS,
    DOCUMENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    VISION_EXTENSIONS,
    MASTER_TAXONOMY,
    PATTERN_RULES,
    DEFAULT_TAXONOMY,
    PatternRule,
    TaxonomyEntry,
    TaxonomyRegistry,
)

__all__ = [
    "Config",
    "FunnelConfig",
    "MetadataConfig",
    "InferenceConfig",
    "SummaryConfig",
    "FALLBACK_FOLDER",
    "ARCHIVE_EXTENSIONS",
    "ASSET_EXTENSIONS",
    "DOCUMENT_EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "VISION_EXTENSIONS",
    "MASTER_TAXONOMY",
    "PATTERN_RULES",
    "DEFAULT_TAXONOMY",
    "PatternRule",
    "TaxonomyEntry",
    "TaxonomyRegistry",
]
