"""Shared text helpers: cleaning generated text, splitting free-text lists, sanitising input."""

import os
import re
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

_LIST_MARKER = re.compile(r"^\s*(?:[-•*]\s+|(?:\d+|[a-z]|[ivx]{1,4})[.)]\s+)", re.IGNORECASE)
_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]+>")
_UNSAFE_FILE_CHARS = re.compile(r"[^a-zA-Z0-9_\-.]")
_ESCAPED_NEWLINE = re.compile(r"(?<![A-Za-z]:)\\n")
_ESCAPED_TAB = re.compile(r"(?<![A-Za-z]:)\\t")


def clean_generated_text(raw_text: Optional[str]) -> str:
    """Clean text returned by a generation provider.

    Handles markdown fences, double-escaped sequences, unicode escapes,
    BOM characters and line-ending normalisation.
    """
    if not raw_text:
        return ""

    text = raw_text

    # Step 1: Remove markdown code fences if present
    text = re.sub(r"^```[a-zA-Z]*\s*\n?", "", text.strip())
    text = re.sub(r"\n?```\s*$", "", text)

    # Steps 2-3: escaped output never carries real line breaks; a drive
    # prefix such as C:\nuevo is a path, not an escape
    if "\n" not in text:
        text = text.replace("\\\\n", "\n")
        text = text.replace('\\\\"', '"')
        text = _ESCAPED_NEWLINE.sub("\n", text)
        text = _ESCAPED_TAB.sub("  ", text)
        text = text.replace('\\"', '"')

    # Step 4: Unicode escapes (e.g. \u0027)
    text = re.sub(
        r"\\u([0-9a-fA-F]{4})",
        lambda m: chr(int(m.group(1), 16)),
        text,
    )

    # Step 5: Remove BOM if present
    text = text.lstrip("\ufeff")

    # Step 6: Normalise line endings and strip trailing whitespace per line
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return text.strip()


def split_items(text: Optional[str]) -> List[str]:
    """Split newline-delimited free text into trimmed, non-blank items."""
    if not text:
        return []
    return [line.strip() for line in text.split("\n") if line.strip()]


def strip_list_marker(text: str) -> str:
    """Drop a typed-in list marker ("1. ", "a) ", "- ") from the start of ``text``."""
    return _LIST_MARKER.sub("", text, count=1)


def sanitize_text(value: Optional[str], max_length: int = 500) -> str:
    """Remove markup and dangerous characters, collapse whitespace and cap length."""
    if not value or not value.strip():
        return ""
    sanitized = _SCRIPT_BLOCK.sub("", value)
    sanitized = _HTML_TAG.sub("", sanitized)
    sanitized = re.sub(r"[<>\"'&\\]", "", sanitized)
    sanitized = re.sub(r"[ \t]+", " ", sanitized)
    sanitized = "\n".join(line.strip() for line in sanitized.split("\n")).strip()
    return sanitized[:max_length]


def sanitize_file_name(file_name: Optional[str]) -> str:
    """Reduce ``file_name`` to a safe base name, raising ValueError if nothing usable remains."""
    if not file_name or not file_name.strip():
        raise ValueError("File name cannot be empty")
    name = os.path.basename(file_name.replace("\\", "/"))
    name = name.replace("..", "")
    name = _UNSAFE_FILE_CHARS.sub("", name)[:100]
    if not name:
        raise ValueError("Invalid file name after sanitization")
    return name


def validate_content_size(content: Optional[str], max_chars: int) -> None:
    if content is not None and len(content) > max_chars:
        raise ValueError(f"Content size exceeds maximum allowed size of {max_chars} characters")
