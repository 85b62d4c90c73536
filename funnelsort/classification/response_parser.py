"""
Model Response Parsing
======================

Decodes the free-form text returned by the inference engine into a JSON
object: a direct decode first, then extraction of the first ``{...}``
block. The result is tagged so callers never need exception handling.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class DecodeMethod(Enum):
    """How a response was decoded."""
    DIRECT = "direct"
    EXTRACTED = "extracted"
    FAILED = "failed"


@dataclass
class DecodeResult:
    """Outcome of decoding a model response.

    Attributes:
        method: Which decoding step succeeded, or FAILED.
        data: Decoded JSON object (empty when decoding failed).
        raw: The original response text.
    """
    method: DecodeMethod
    data: Dict[str, Any] = field(default_factory=dict)
    raw: str = ""

    @property
    def ok(self) -> bool:
        return self.method is not DecodeMethod.FAILED


_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
# First brace-free object, for responses with trailing chatter containing braces
_FLAT_OBJECT_RE = re.compile(r"\{[^{}]*\}", re.DOTALL)


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def decode_json_response(response_text: Optional[str]) -> DecodeResult:
    """Decode a model response into a JSON object.

    Args:
        response_text: Raw response text from the engine.

    Returns:
        DecodeResult tagged DIRECT, EXTRACTED or FAILED.
    """
    if not isinstance(response_text, str) or not response_text.strip():
        return DecodeResult(DecodeMethod.FAILED, raw=response_text or "")

    data = _loads_object(response_text.strip())
    if data is not None:
        return DecodeResult(DecodeMethod.DIRECT, data, response_text)

    for pattern in (_OBJECT_RE, _FLAT_OBJECT_RE):
        match = pattern.search(response_text)
        if match:
            data = _loads_object(match.group())
            if data is not None:
                return DecodeResult(DecodeMethod.EXTRACTED, data, response_text)

    return DecodeResult(DecodeMethod.FAILED, raw=response_text)
