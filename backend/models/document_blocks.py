"""Library-agnostic document blocks produced by assembly and consumed by the serializer."""

from typing import Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class StyledRun(_Frozen):
    text: str = ""
    font: str
    size: int
    bold: bool = False
    italic: bool = False
    color: Optional[str] = None
    # Live field instruction (PAGE, NUMPAGES) resolved by the word processor
    field: Optional[str] = None


class NumberingRef(_Frozen):
    scheme: str
    level: int = 0
    instance: int = 1


class Paragraph(_Frozen):
    kind: Literal["paragraph"] = "paragraph"
    runs: Tuple[StyledRun, ...] = ()
    numbering: Optional[NumberingRef] = None
    heading: Optional[int] = None
    spacing_before: int = 0
    spacing_after: int = 0
    indent_left: Optional[int] = None
    alignment: Literal["left", "center", "right", "justify"] = "left"
    bordered: bool = False
    tab_stops: Tuple[int, ...] = ()

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)


class Image(_Frozen):
    kind: Literal["image"] = "image"
    data: bytes
    width: int
    height: int
    role: Literal["logo", "wireframe"]
    alignment: Literal["left", "center", "right"] = "center"


class TableCell(_Frozen):
    blocks: Tuple[Union[Paragraph, Image], ...] = ()
    row_span: int = 1
    shading: Optional[str] = None
    vertical_center: bool = False


class TableRow(_Frozen):
    cells: Tuple[TableCell, ...]
    height: Optional[int] = None


class Table(_Frozen):
    kind: Literal["table"] = "table"
    rows: Tuple[TableRow, ...]
    column_widths: Tuple[int, ...]
    width: int
    width_unit: Literal["dxa", "pct"] = "dxa"
    border_color: str
    border_size: int
    cell_margin: Optional[int] = None
    header_row: bool = False


DocumentBlock = Union[Paragraph, Table, Image]


class DocumentParts(_Frozen):
    """Everything the serializer needs for one document."""

    header: Tuple[DocumentBlock, ...] = ()
    footer: Tuple[DocumentBlock, ...] = ()
    body: Tuple[DocumentBlock, ...] = Field(default_factory=tuple)
