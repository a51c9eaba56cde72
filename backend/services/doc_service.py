import io
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.table import WD_ALIGN_VERTICAL, WD_ROW_HEIGHT_RULE
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import nsdecls, qn
from docx.shared import Emu, Pt, RGBColor, Twips

from config import ASSETS_DIR, LOGO_CANDIDATES
from models.document_blocks import DocumentBlock, DocumentParts, Image, Paragraph, StyledRun, Table
from models.use_case import UseCaseForm
from services import numbering
from services.doc_constants import (
    BRAND_BLUE, FOOTER_DISTANCE, HEADER_DISTANCE, MARGIN_BOTTOM, MARGIN_LEFT, MARGIN_RIGHT,
    MARGIN_TOP, PRINTABLE_WIDTH,
)
from services.header_footer import compose_footer, compose_header
from services.section_assembler import assemble_sections

logger = logging.getLogger(__name__)

ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
    "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
}

# w:pPr children that must follow w:pBdr
_PBDR_SUCCESSORS = (
    "w:shd", "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap", "w:overflowPunct",
    "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN", "w:bidi", "w:adjustRightInd",
    "w:snapToGrid", "w:spacing", "w:ind", "w:contextualSpacing", "w:mirrorIndents",
    "w:suppressOverlap", "w:jc", "w:textDirection", "w:textAlignment", "w:textboxTightWrap",
    "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr", "w:sectPr", "w:pPrChange",
)
_TBL_BORDERS_SUCCESSORS = ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook", "w:tblCaption", "w:tblDescription")
_TBL_CELL_MAR_SUCCESSORS = ("w:tblLook", "w:tblCaption", "w:tblDescription")
_TC_SHD_SUCCESSORS = ("w:noWrap", "w:tcMar", "w:textDirection", "w:tcFitText", "w:vAlign", "w:hideMark")


class DocumentSerializationError(RuntimeError):
    """The document writer failed; no partial buffer is returned."""


# ---------------------------------------------------------------------------
# Numbering definitions
# ---------------------------------------------------------------------------

def _iter_paragraphs(blocks: Iterable[DocumentBlock]) -> Iterator[Paragraph]:
    for block in blocks:
        if isinstance(block, Paragraph):
            yield block
        elif isinstance(block, Table):
            for row in block.rows:
                for cell in row.cells:
                    yield from _iter_paragraphs(cell.blocks)


def _abstract_num_xml(scheme: str, abstract_id: int) -> str:
    levels = numbering.SCHEMES[scheme]
    multi = "singleLevel" if len(levels) == 1 else "hybridMultilevel"
    lvls = "".join(
        f'<w:lvl w:ilvl="{i}">'
        f'<w:start w:val="1"/>'
        f'<w:numFmt w:val="{lvl.num_format}"/>'
        f'<w:lvlText w:val="{lvl.level_text}"/>'
        f'<w:lvlJc w:val="left"/>'
        f'<w:pPr><w:ind w:left="{lvl.left}" w:hanging="{lvl.hanging}"/></w:pPr>'
        f'</w:lvl>'
        for i, lvl in enumerate(levels)
    )
    return (
        f'<w:abstractNum {nsdecls("w")} w:abstractNumId="{abstract_id}">'
        f'<w:multiLevelType w:val="{multi}"/>{lvls}</w:abstractNum>'
    )


def _num_xml(num_id: int, abstract_id: int, level_count: int) -> str:
    overrides = "".join(
        f'<w:lvlOverride w:ilvl="{i}"><w:startOverride w:val="1"/></w:lvlOverride>'
        for i in range(level_count)
    )
    return (
        f'<w:num {nsdecls("w")} w:numId="{num_id}">'
        f'<w:abstractNumId w:val="{abstract_id}"/>{overrides}</w:num>'
    )


def _install_numbering(document: DocxDocument, parts: DocumentParts) -> Dict[Tuple[str, int], int]:
    """Add one abstractNum per scheme and one restarting num per list instance.

    Returns the ``(scheme, instance) -> numId`` map paragraphs are rendered with.
    """
    instances: List[Tuple[str, int]] = []
    for para in _iter_paragraphs(parts.header + parts.body + parts.footer):
        if para.numbering is not None:
            key = (para.numbering.scheme, para.numbering.instance)
            if key not in instances:
                instances.append(key)
    if not instances:
        return {}

    numbering_el = document.part.numbering_part.element
    abstract_ids = [int(a.get(qn("w:abstractNumId"))) for a in numbering_el.findall(qn("w:abstractNum"))]
    num_ids = [int(n.get(qn("w:numId"))) for n in numbering_el.findall(qn("w:num"))]
    abstract_base = max(abstract_ids, default=-1) + 1
    num_base = max(num_ids, default=0) + 1

    # abstractNum elements must precede every w:num
    first_num = numbering_el.find(qn("w:num"))
    abstract_for = {}
    for scheme in numbering.scheme_names():
        abstract_id = abstract_base + numbering.abstract_num_id(scheme) - 1
        abstract_for[scheme] = abstract_id
        element = parse_xml(_abstract_num_xml(scheme, abstract_id))
        if first_num is not None:
            first_num.addprevious(element)
        else:
            numbering_el.append(element)

    mapping = {}
    for offset, (scheme, instance) in enumerate(instances):
        num_id = num_base + offset
        numbering_el.append(parse_xml(_num_xml(num_id, abstract_for[scheme], len(numbering.SCHEMES[scheme]))))
        mapping[(scheme, instance)] = num_id
    return mapping


# ---------------------------------------------------------------------------
# Runs & paragraphs
# ---------------------------------------------------------------------------

def _style_run(run, styled: StyledRun):
    font = run.font
    font.name = styled.font
    run._element.get_or_add_rPr().get_or_add_rFonts().set(qn("w:eastAsia"), styled.font)
    font.size = Pt(styled.size / 2)
    font.bold = styled.bold
    font.italic = styled.italic
    if styled.color:
        font.color.rgb = RGBColor.from_string(styled.color)


def _fld_char(run, kind: str):
    fld = OxmlElement("w:fldChar")
    fld.set(qn("w:fldCharType"), kind)
    run._r.append(fld)


def _add_field(paragraph, styled: StyledRun):
    """Live field (PAGE, NUMPAGES) the word processor fills in when paginating."""
    run = paragraph.add_run()
    _style_run(run, styled)
    _fld_char(run, "begin")
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = f" {styled.field} "
    run._r.append(instr)
    _fld_char(run, "separate")

    # Placeholder shown until fields are updated
    value = paragraph.add_run("1")
    _style_run(value, styled)

    end = paragraph.add_run()
    _style_run(end, styled)
    _fld_char(end, "end")


def _add_paragraph_border(paragraph):
    pPr = paragraph._p.get_or_add_pPr()
    pBdr = parse_xml(
        f'<w:pBdr {nsdecls("w")}>'
        f'<w:left w:val="single" w:sz="24" w:space="4" w:color="{BRAND_BLUE}"/>'
        f'<w:bottom w:val="single" w:sz="6" w:space="1" w:color="{BRAND_BLUE}"/>'
        f'</w:pBdr>'
    )
    pPr.insert_element_before(pBdr, *_PBDR_SUCCESSORS)


def _render_paragraph(container, block: Paragraph, num_ids: Dict[Tuple[str, int], int]):
    style = f"Heading {block.heading}" if block.heading else None
    paragraph = container.add_paragraph(style=style)
    for styled in block.runs:
        if styled.field:
            _add_field(paragraph, styled)
        else:
            _style_run(paragraph.add_run(styled.text), styled)

    fmt = paragraph.paragraph_format
    fmt.space_before = Twips(block.spacing_before)
    fmt.space_after = Twips(block.spacing_after)
    paragraph.alignment = ALIGNMENTS[block.alignment]
    if block.indent_left is not None:
        fmt.left_indent = Twips(block.indent_left)
    for position in block.tab_stops:
        fmt.tab_stops.add_tab_stop(Twips(position), WD_TAB_ALIGNMENT.RIGHT)
    if block.numbering is not None:
        numPr = paragraph._p.get_or_add_pPr().get_or_add_numPr()
        numPr.get_or_add_ilvl().val = block.numbering.level
        numPr.get_or_add_numId().val = num_ids[(block.numbering.scheme, block.numbering.instance)]
    if block.bordered:
        _add_paragraph_border(paragraph)
    return paragraph


def _render_image(container, block: Image):
    paragraph = container.add_paragraph()
    paragraph.alignment = ALIGNMENTS[block.alignment]
    paragraph.add_run().add_picture(io.BytesIO(block.data), width=Emu(block.width), height=Emu(block.height))
    return paragraph


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _column_twips(block: Table) -> List[int]:
    if block.width_unit == "pct":
        return [round(PRINTABLE_WIDTH * w / block.width) for w in block.column_widths]
    return list(block.column_widths)


def _set_table_width(tbl, block: Table):
    tblPr = tbl._tbl.tblPr
    tblW = tblPr.find(qn("w:tblW"))
    if tblW is None:
        tblW = OxmlElement("w:tblW")
        tblPr.insert_element_before(tblW, "w:jc", "w:tblCellSpacing", "w:tblInd", "w:tblBorders", *_TBL_BORDERS_SUCCESSORS)
    if block.width_unit == "pct":
        # pct widths are stored in fiftieths of a percent
        tblW.set(qn("w:type"), "pct")
        tblW.set(qn("w:w"), str(block.width * 50))
    else:
        tblW.set(qn("w:type"), "dxa")
        tblW.set(qn("w:w"), str(block.width))
    layout = OxmlElement("w:tblLayout")
    layout.set(qn("w:type"), "fixed")
    tblPr.insert_element_before(layout, "w:tblCellMar", "w:tblLook", "w:tblCaption", "w:tblDescription")


def _set_table_borders(tbl, block: Table):
    edges = "".join(
        f'<w:{edge} w:val="single" w:sz="{block.border_size}" w:space="0" w:color="{block.border_color}"/>'
        for edge in ("top", "left", "bottom", "right", "insideH", "insideV")
    )
    borders = parse_xml(f'<w:tblBorders {nsdecls("w")}>{edges}</w:tblBorders>')
    tbl._tbl.tblPr.insert_element_before(borders, *_TBL_BORDERS_SUCCESSORS)


def _set_cell_margins(tbl, margin: int):
    sides = "".join(f'<w:{side} w:w="{margin}" w:type="dxa"/>' for side in ("top", "left", "bottom", "right"))
    cell_mar = parse_xml(f'<w:tblCellMar {nsdecls("w")}>{sides}</w:tblCellMar>')
    tbl._tbl.tblPr.insert_element_before(cell_mar, *_TBL_CELL_MAR_SUCCESSORS)


def _shade_cell(cell, fill: str):
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    cell._tc.get_or_add_tcPr().insert_element_before(shd, *_TC_SHD_SUCCESSORS)


def _fill_cell(cell, blocks: Sequence[DocumentBlock], num_ids):
    """Render ``blocks`` into ``cell`` replacing its initial empty paragraph."""
    initial = list(cell.paragraphs)
    for block in blocks:
        if isinstance(block, Image):
            _render_image(cell, block)
        else:
            _render_paragraph(cell, block, num_ids)
    if blocks:
        for para in initial:
            para._p.getparent().remove(para._p)


def _render_table(container, block: Table, num_ids):
    rows, cols = len(block.rows), len(block.column_widths)
    widths = _column_twips(block)
    if isinstance(container, DocxDocument):
        tbl = container.add_table(rows=rows, cols=cols)
    else:
        tbl = container.add_table(rows, cols, Twips(sum(widths)))
    tbl.autofit = False
    _set_table_width(tbl, block)
    _set_table_borders(tbl, block)
    if block.cell_margin is not None:
        _set_cell_margins(tbl, block.cell_margin)

    for grid_col, width in zip(tbl._tbl.tblGrid.findall(qn("w:gridCol")), widths):
        grid_col.set(qn("w:w"), str(width))
    for row in tbl.rows:
        for cell, width in zip(row.cells, widths):
            cell.width = Twips(width)

    covered = set()
    for r, row in enumerate(block.rows):
        if row.height is not None:
            tbl.rows[r].height = Twips(row.height)
            tbl.rows[r].height_rule = WD_ROW_HEIGHT_RULE.EXACTLY
        col = 0
        for cell_block in row.cells:
            while (r, col) in covered:
                col += 1
            cell = tbl.cell(r, col)
            if cell_block.row_span > 1:
                cell = cell.merge(tbl.cell(r + cell_block.row_span - 1, col))
            for offset in range(cell_block.row_span):
                covered.add((r + offset, col))
            if cell_block.shading:
                _shade_cell(cell, cell_block.shading)
            if cell_block.vertical_center:
                cell.vertical_alignment = WD_ALIGN_VERTICAL.CENTER
            _fill_cell(cell, cell_block.blocks, num_ids)
            col += 1
    return tbl


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

def _render_blocks(container, blocks: Iterable[DocumentBlock], num_ids):
    for block in blocks:
        if isinstance(block, Table):
            _render_table(container, block, num_ids)
        elif isinstance(block, Image):
            _render_image(container, block)
        else:
            _render_paragraph(container, block, num_ids)


def _render_running(container, blocks: Sequence[DocumentBlock], num_ids):
    """Fill a header or footer; it must still end with a paragraph."""
    container.is_linked_to_previous = False
    initial = list(container.paragraphs)
    _render_blocks(container, blocks, num_ids)
    if not blocks:
        return
    ends_with_table = isinstance(blocks[-1], Table)
    for index, para in enumerate(initial):
        p = para._p
        parent = p.getparent()
        parent.remove(p)
        if ends_with_table and index == 0:
            parent.append(p)


def serialize_document(parts: DocumentParts) -> io.BytesIO:
    """Write header, footer and body blocks into a .docx buffer.

    Raises DocumentSerializationError if the writer fails; nothing partial is returned.
    """
    try:
        document = Document()
        document.element.body.clear_content()

        section = document.sections[0]
        section.top_margin = Twips(MARGIN_TOP)
        section.bottom_margin = Twips(MARGIN_BOTTOM)
        section.left_margin = Twips(MARGIN_LEFT)
        section.right_margin = Twips(MARGIN_RIGHT)
        section.header_distance = Twips(HEADER_DISTANCE)
        section.footer_distance = Twips(FOOTER_DISTANCE)

        num_ids = _install_numbering(document, parts)
        _render_running(section.header, parts.header, num_ids)
        _render_running(section.footer, parts.footer, num_ids)
        _render_blocks(document, parts.body, num_ids)

        buffer = io.BytesIO()
        document.save(buffer)
    except Exception as e:
        logger.error(f"DOCX serialization failed: {e}")
        raise DocumentSerializationError(f"Could not write document: {e}") from e
    buffer.seek(0)
    return buffer


def build_document_parts(
    form: UseCaseForm,
    assets_dir: Optional[Path] = None,
    logo_candidates: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> DocumentParts:
    assets_dir = assets_dir or ASSETS_DIR
    return DocumentParts(
        header=compose_header(form.project_name, assets_dir, logo_candidates or LOGO_CANDIDATES),
        footer=compose_footer(form.use_case_name),
        body=tuple(assemble_sections(form, assets_dir=assets_dir, today=today)),
    )


def generate_use_case_docx(
    form: UseCaseForm,
    assets_dir: Optional[Path] = None,
    logo_candidates: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> io.BytesIO:
    """Assemble and serialize the use-case document for ``form``."""
    parts = build_document_parts(form, assets_dir, logo_candidates, today)
    buffer = serialize_document(parts)
    logger.info(f"Generated DOCX for {form.file_name} ({buffer.getbuffer().nbytes} bytes)")
    return buffer


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------

def block_counts(blocks: Iterable[DocumentBlock]) -> Dict[str, int]:
    """Top-level paragraph, table and image counts of an assembled body."""
    counts = {"paragraphs": 0, "tables": 0, "images": 0}
    for block in blocks:
        if isinstance(block, Table):
            counts["tables"] += 1
        elif isinstance(block, Image):
            counts["images"] += 1
        else:
            counts["paragraphs"] += 1
    return counts


def inspect_docx(buffer) -> Dict:
    """Re-parse a produced document and report its structure.

    Body paragraphs holding a picture are counted as images, not paragraphs.
    """
    if isinstance(buffer, (bytes, bytearray)):
        buffer = io.BytesIO(buffer)
    buffer.seek(0)
    document = Document(buffer)
    body = document.element.body

    counts = {"paragraphs": 0, "tables": 0, "images": 0}
    for child in body.iterchildren():
        if child.tag == qn("w:tbl"):
            counts["tables"] += 1
        elif child.tag == qn("w:p"):
            drawings = child.findall(".//" + qn("w:drawing"))
            if drawings:
                counts["images"] += len(drawings)
            else:
                counts["paragraphs"] += 1

    section = document.sections[0]
    footer_instructions = " ".join(
        instr.text or "" for instr in section.footer._element.iter(qn("w:instrText"))
    )
    counts["header_tables"] = len(section.header.tables)
    counts["footer_fields"] = "PAGE" in footer_instructions.split() and "NUMPAGES" in footer_instructions.split()
    counts["header_images"] = len(list(section.header._element.iter(qn("w:drawing"))))
    return counts
