"""Classification module: the three funnel stages."""

from .tier1_patterns import (
    Tier1PatternClassifier,
    ClassificationResult,
    Confidence,
    Stage,
)
from .tier2_metadata import Tier2MetadataClassifier
from .tier3_llm import Tier3LLMClassifier
from .response_parser import decode_json_response, DecodeResult, DecodeMethod

__all__ = [
    "Tier1PatternClassifier",
    "Tier2MetadataClassifier",
    "Tier3LLMClassifier",
    "ClassificationResult",
    "Confidence",
    "Stage",
    "decode_json_response",
    "DecodeResult",
    "DecodeMethod",
]
