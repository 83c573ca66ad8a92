"""OCR transcript normalisation.

Turns the raw transcript returned by the OCR provider into the three views
the field extractors work on:

  - lines:      stripped, non-empty lines in their original order
  - full_text:  lines joined with single spaces (label/value pairs split
                across lines end up on one line for inline regexes)
  - lower_text: lowercase full_text for keyword matching
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


@dataclass(frozen=True)
class NormalizedText:
    lines: List[str] = field(default_factory=list)
    full_text: str = ""
    lower_text: str = ""


def normalize_ocr_text(raw: Any) -> NormalizedText:
    """Split *raw* into cleaned lines; non-string input gives an empty result."""
    if not isinstance(raw, str):
        return NormalizedText()

    lines = [line.strip() for line in raw.split("\n")]
    lines = [line for line in lines if line]
    full_text = " ".join(lines)
    return NormalizedText(lines=lines, full_text=full_text, lower_text=full_text.lower())


def transcript_from_payload(data: Any) -> Optional[str]:
    """Return ``data["text"]["text"]`` from an OCR response, or None."""
    if not isinstance(data, Mapping):
        return None
    text_block = data.get("text")
    if not isinstance(text_block, Mapping):
        return None
    text = text_block.get("text")
    return text if isinstance(text, str) else None
