"""Styled run builder.

Every run spells out its own font, size, weight and colour; nothing is left to
style inheritance in the target document.
"""

from typing import Optional

from models.document_blocks import StyledRun
from services.doc_constants import (
    BODY_SIZE, BRAND_BLUE, FONT_NAME, HEADING_SIZES, PLACEHOLDER_GRAY,
)


def heading_run(text: str, rank: int) -> StyledRun:
    """Run for heading ``rank`` (1 = title, 4 = smallest)."""
    if rank not in HEADING_SIZES:
        raise ValueError(f"Heading rank must be 1-4, got {rank}")
    return StyledRun(text=text, font=FONT_NAME, size=HEADING_SIZES[rank], bold=True, color=BRAND_BLUE)


def body_run(text: str, bold: bool = False) -> StyledRun:
    return StyledRun(text=text, font=FONT_NAME, size=BODY_SIZE, bold=bold)


def label_run(label: str) -> StyledRun:
    """Bold ``Label: `` prefix for label/value lines."""
    return body_run(f"{label}: ", bold=True)


def placeholder_run(text: str) -> StyledRun:
    return StyledRun(text=f"[{text}]", font=FONT_NAME, size=BODY_SIZE, italic=True, color=PLACEHOLDER_GRAY)


def plain_run(text: str, size: int, bold: bool = False, color: Optional[str] = None,
              font: str = FONT_NAME) -> StyledRun:
    return StyledRun(text=text, font=font, size=size, bold=bold, color=color)


def field_run(instruction: str, size: int, font: str = FONT_NAME) -> StyledRun:
    return StyledRun(font=font, size=size, field=instruction)
