"""Paragraph, table and image block builders."""

import logging
from typing import Iterable, Optional, Sequence, Tuple, Union

from docx.image.image import Image as ImageHeader

from models.document_blocks import (
    Image, NumberingRef, Paragraph, StyledRun, Table, TableCell, TableRow,
)
from services import numbering
from services.doc_constants import (
    BORDER_GRAY, BORDER_SIZE, HEADING_SIZES, LOGO_BOX, SPACING_BODY, WIREFRAME_BOX,
)
from services.styles import body_run, heading_run, placeholder_run
from services.text_utils import strip_list_marker

logger = logging.getLogger(__name__)

CellContent = Union[str, TableCell, Sequence[Union[Paragraph, Image]]]

IMAGE_BOXES = {"logo": LOGO_BOX, "wireframe": WIREFRAME_BOX}


class TableLayoutError(ValueError):
    """Column widths or row shapes do not match the declared table grid."""


# ---------------------------------------------------------------------------
# Paragraphs
# ---------------------------------------------------------------------------

def paragraph(
    runs: Iterable[StyledRun],
    numbering_ref: Optional[NumberingRef] = None,
    heading: Optional[int] = None,
    spacing: Tuple[int, int] = SPACING_BODY,
    indent_left: Optional[int] = None,
    alignment: str = "left",
    bordered: bool = False,
    tab_stops: Tuple[int, ...] = (),
) -> Paragraph:
    runs = list(runs)
    if heading is not None and heading not in HEADING_SIZES:
        raise ValueError(f"Heading rank must be 1-4, got {heading}")
    if numbering_ref is not None:
        numbering.get_level(numbering_ref.scheme, numbering_ref.level)
        # The list engine supplies the glyph; typed-in markers would double it
        if runs:
            first = runs[0]
            runs[0] = first.model_copy(update={"text": strip_list_marker(first.text)})
    before, after = spacing
    return Paragraph(
        runs=tuple(runs),
        numbering=numbering_ref,
        heading=heading,
        spacing_before=before,
        spacing_after=after,
        indent_left=indent_left,
        alignment=alignment,
        bordered=bordered,
        tab_stops=tab_stops,
    )


def text_paragraph(text: str, **kwargs) -> Paragraph:
    return paragraph([body_run(text)], **kwargs)


def heading_paragraph(text: str, rank: int, spacing: Tuple[int, int], bordered: bool = False) -> Paragraph:
    return paragraph([heading_run(text, rank)], heading=rank, spacing=spacing, bordered=bordered)


def list_item(
    scheme: str,
    level: int,
    instance: int,
    content: Union[str, Sequence[StyledRun]],
    spacing: Tuple[int, int] = SPACING_BODY,
    bold: bool = False,
) -> Paragraph:
    runs = [body_run(content, bold=bold)] if isinstance(content, str) else list(content)
    ref = NumberingRef(scheme=scheme, level=level, instance=instance)
    return paragraph(runs, numbering_ref=ref, spacing=spacing)


def placeholder_paragraph(text: str) -> Paragraph:
    return paragraph([placeholder_run(text)], alignment="center")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _cell_from(content: CellContent, header: bool, shading: Optional[str]) -> TableCell:
    if isinstance(content, TableCell):
        if header and shading and content.shading is None:
            return content.model_copy(update={"shading": shading})
        return content
    if isinstance(content, str):
        blocks = (paragraph([body_run(content, bold=header)], spacing=(0, 0),
                            alignment="center" if header else "left"),)
    else:
        blocks = tuple(content)
    return TableCell(blocks=blocks, shading=shading if header else None)


def _check_grid(rows: Sequence[TableRow], columns: int) -> None:
    """Every grid position must be covered exactly once, counting row spans."""
    covered = {}
    for r, row in enumerate(rows):
        col = 0
        for cell in row.cells:
            while covered.get((r, col)):
                col += 1
            if col >= columns:
                raise TableLayoutError(f"Row {r} has more cells than the {columns} declared columns")
            for offset in range(cell.row_span):
                covered[(r + offset, col)] = True
            col += 1
        filled = sum(1 for c in range(columns) if covered.get((r, c)))
        if filled != columns:
            raise TableLayoutError(f"Row {r} covers {filled} of {columns} columns")
    if any(r >= len(rows) for r, _ in covered):
        raise TableLayoutError("A row span extends past the last row")


def table(
    rows: Sequence[Sequence[CellContent]],
    column_widths: Sequence[int],
    width: int,
    width_unit: str = "dxa",
    border_color: str = BORDER_GRAY,
    border_size: int = BORDER_SIZE,
    header_shading: Optional[str] = None,
    cell_margin: Optional[int] = None,
    row_heights: Sequence[Optional[int]] = (),
) -> Table:
    """Build a table block.

    When ``header_shading`` is given, row 0 is the header: bold, centred and
    shaded. Column widths are in ``width_unit`` and must add up to ``width``.
    """
    if sum(column_widths) != width:
        raise TableLayoutError(
            f"Column widths {list(column_widths)} sum to {sum(column_widths)}, table width is {width}"
        )
    built = []
    for r, cells in enumerate(rows):
        header = header_shading is not None and r == 0
        height = row_heights[r] if r < len(row_heights) else None
        built.append(TableRow(
            cells=tuple(_cell_from(c, header, header_shading) for c in cells),
            height=height,
        ))
    _check_grid(built, len(column_widths))
    return Table(
        rows=tuple(built),
        column_widths=tuple(column_widths),
        width=width,
        width_unit=width_unit,
        border_color=border_color,
        border_size=border_size,
        cell_margin=cell_margin,
        header_row=header_shading is not None,
    )


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def fit_within(width: int, height: int, box: Tuple[int, int]) -> Tuple[int, int]:
    """Scale (width, height) down into ``box`` keeping the source aspect ratio."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Image has no extent: {width}x{height}")
    box_w, box_h = box
    scale = min(1.0, box_w / width, box_h / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def image_block(data: Optional[bytes], role: str, missing_text: str) -> Union[Image, Paragraph]:
    """Image block sized for ``role``, or a placeholder paragraph if ``data`` is unusable."""
    if not data:
        logger.warning(f"No image data for {role}; using placeholder")
        return placeholder_paragraph(missing_text)
    try:
        header = ImageHeader.from_blob(data)
        width, height = fit_within(int(header.width), int(header.height), IMAGE_BOXES[role])
    except Exception as e:
        logger.warning(f"Unreadable {role} image ({e}); using placeholder")
        return placeholder_paragraph(missing_text)
    return Image(data=data, width=width, height=height, role=role)
