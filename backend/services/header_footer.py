"""Running page header (logo + title table) and footer (page X of Y + use-case name)."""

import logging
from pathlib import Path
from typing import Iterable, Tuple

from models.document_blocks import DocumentBlock, Image, Paragraph, TableCell
from services.asset_resolver import logo_loaders, resolve_first
from services.block_builders import image_block, paragraph, table
from services.doc_constants import (
    BLACK, BORDER_GRAY, CELL_MARGIN, FOOTER_SIZE, FOOTER_TAB_POSITION,
    HEADER_FONT_NAME, HEADER_ROW_HEIGHTS, HEADER_TABLE_WIDTH_PCT,
)
from services.styles import field_run, plain_run

logger = logging.getLogger(__name__)

HEADER_TITLE = "Documento de Casos de Uso"
TEXT_MARK = "INGEMATICA"
TEXT_MARK_COLOR = "006BB6"
# Percent of the header table width
HEADER_COLUMN_WIDTHS = (30, 70)


def _logo_cell(assets_dir: Path, candidates: Iterable[str]) -> TableCell:
    data = resolve_first(logo_loaders(assets_dir, candidates))
    block = image_block(data, "logo", TEXT_MARK) if data else None
    if not isinstance(block, Image):
        logger.info("No usable logo asset; using text mark")
        block = paragraph(
            [plain_run(TEXT_MARK, size=24, bold=True, color=TEXT_MARK_COLOR, font=HEADER_FONT_NAME)],
            spacing=(0, 0),
            alignment="center",
        )
    return TableCell(blocks=(block,), row_span=2, vertical_center=True)


def _text_cell(text: str, size: int) -> TableCell:
    para = paragraph([plain_run(text, size=size, color=BLACK)], spacing=(0, 0), alignment="center")
    return TableCell(blocks=(para,), vertical_center=True)


def compose_header(project_name: str, assets_dir: Path, logo_candidates: Iterable[str]) -> Tuple[DocumentBlock, ...]:
    """Two-row header table: logo spanning both rows, fixed title, project name."""
    header = table(
        rows=[
            [_logo_cell(assets_dir, logo_candidates), _text_cell(HEADER_TITLE, 28)],
            [_text_cell(project_name, 26)],
        ],
        column_widths=HEADER_COLUMN_WIDTHS,
        width=HEADER_TABLE_WIDTH_PCT,
        width_unit="pct",
        border_color=BORDER_GRAY,
        cell_margin=CELL_MARGIN,
        row_heights=HEADER_ROW_HEIGHTS,
    )
    return (header,)


def compose_footer(use_case_name: str) -> Tuple[Paragraph, ...]:
    """Footer line with live PAGE / NUMPAGES fields and the use-case name after a right tab."""
    runs = [
        plain_run("página ", size=FOOTER_SIZE),
        field_run("PAGE", size=FOOTER_SIZE),
        plain_run(" de ", size=FOOTER_SIZE),
        field_run("NUMPAGES", size=FOOTER_SIZE),
        plain_run(f"\t{use_case_name}", size=FOOTER_SIZE),
    ]
    return (paragraph(runs, spacing=(0, 0), tab_stops=(FOOTER_TAB_POSITION,)),)
