"""Numbering scheme registry.

Declares the reusable list definitions paragraphs refer to by name. The
serializer turns each scheme into a ``w:abstractNum`` and each list instance
into a ``w:num`` that restarts counting.
"""

from typing import Dict, List, NamedTuple

from services.doc_constants import LIST_INDENT_BASE, LIST_INDENT_STEP

MULTILEVEL = "multilevel"
BULLET = "bullet"
SIMPLE = "simple"


class SchemeLevelOverflow(ValueError):
    """Raised when a paragraph asks for a level its scheme does not declare."""

    def __init__(self, scheme: str, level: int, max_level: int):
        super().__init__(
            f"Numbering scheme '{scheme}' declares levels 0..{max_level}, got level {level}"
        )
        self.scheme = scheme
        self.level = level


class NumberingLevel(NamedTuple):
    num_format: str
    level_text: str
    left: int
    hanging: int


def _indent(level: int) -> int:
    return LIST_INDENT_BASE + level * LIST_INDENT_STEP


SCHEMES: Dict[str, List[NumberingLevel]] = {
    MULTILEVEL: [
        NumberingLevel("decimal", "%1.", _indent(0), LIST_INDENT_STEP),
        NumberingLevel("lowerLetter", "%2.", _indent(1), LIST_INDENT_STEP),
        NumberingLevel("lowerRoman", "%3.", _indent(2), LIST_INDENT_STEP),
    ],
    # Level 1 only carries the labelled sub-bullets of a test step
    BULLET: [
        NumberingLevel("bullet", "•", _indent(0), LIST_INDENT_STEP),
        NumberingLevel("bullet", "◦", _indent(1), LIST_INDENT_STEP),
    ],
    SIMPLE: [
        NumberingLevel("decimal", "%1.", _indent(0), LIST_INDENT_STEP),
    ],
}


def scheme_names() -> List[str]:
    return list(SCHEMES)


def get_level(scheme: str, level: int) -> NumberingLevel:
    """Return glyph format and indentation metrics for ``scheme`` at ``level``."""
    try:
        levels = SCHEMES[scheme]
    except KeyError:
        raise KeyError(f"Unknown numbering scheme: {scheme}") from None
    if level < 0 or level >= len(levels):
        raise SchemeLevelOverflow(scheme, level, len(levels) - 1)
    return levels[level]


def level_indent(level: int) -> int:
    """Left indent of list ``level`` without going through a scheme.

    Used for continuation paragraphs and for the literal-prefixed items of the
    alternative flows so they line up with numbered siblings.
    """
    return _indent(level)


def abstract_num_id(scheme: str) -> int:
    return scheme_names().index(scheme) + 1
