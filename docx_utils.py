# docx_utils.py
"""
Document-model primitives on top of python-docx.

Everything that touches raw WordprocessingML elements (bookmarks, hyperlinks,
table rows, borders) lives here so the fill pipelines only deal with
paragraphs, runs and tables.
"""

import re
from typing import Optional

from docx.document import Document as DocxDocument
from docx.enum.text import WD_BREAK
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor, Twips
from docx.table import Table, _Cell, _Row
from docx.text.paragraph import Paragraph
from docx.text.run import Run

from errors import CorruptTemplateError
from utils import null_to_empty

# Characters lxml refuses to serialize (XML 1.0 forbids most C0 controls)
_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

# Required child order inside w:tblPr after w:tblBorders
_TBL_PR_AFTER_BORDERS = ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook", "w:tblCaption", "w:tblDescription")
_BORDER_ORDER = ("w:top", "w:left", "w:start", "w:bottom", "w:right", "w:end", "w:insideH", "w:insideV")


def xml_safe(text: Optional[str]) -> str:
    return _XML_INVALID.sub("", null_to_empty(text))


# ==========================
# Runs & Paragraphs
# ==========================

def add_text(paragraph: Paragraph, text: Optional[str]) -> Run:
    return paragraph.add_run(xml_safe(text))


def add_formatted_text(
    paragraph: Paragraph,
    text: Optional[str],
    font_size: int,
    bold: bool = False,
    color: Optional[str] = None,
) -> Run:
    run = paragraph.add_run(xml_safe(text))
    run.font.size = Pt(font_size)
    run.bold = bold
    if color:
        run.font.color.rgb = RGBColor.from_string(color)
    return run


def add_breaks(run: Run, count: int) -> None:
    for _ in range(count):
        run.add_break()


def add_blank_paragraph(document: DocxDocument, breaks: int = 0) -> Paragraph:
    """Append an empty paragraph, optionally holding `breaks` line breaks."""
    paragraph = document.add_paragraph()
    if breaks:
        add_breaks(paragraph.add_run(), breaks)
    return paragraph


def add_page_break(document: DocxDocument) -> Paragraph:
    paragraph = document.add_paragraph()
    paragraph.add_run().add_break(WD_BREAK.PAGE)
    return paragraph


def tighten(paragraph: Paragraph) -> Paragraph:
    paragraph.paragraph_format.space_after = Pt(0)
    return paragraph


def apply_style(document: DocxDocument, paragraph: Paragraph, style_name: str) -> bool:
    """Set a paragraph style if the template defines it; templates may not."""
    if style_name not in document.styles:
        return False
    paragraph.style = document.styles[style_name]
    return True


# ==========================
# Bookmarks & Hyperlinks
# ==========================

def next_bookmark_id(document: DocxDocument) -> int:
    """First bookmark id not yet used anywhere in the document body."""
    ids = [int(v) for v in document.element.body.xpath(".//w:bookmarkStart/@w:id") if v.isdigit()]
    return max(ids, default=-1) + 1


def add_bookmark(paragraph: Paragraph, name: str, text: Optional[str], bookmark_id: int) -> Run:
    """Wrap `text` in a named bookmark that hyperlinks can jump to."""
    start = OxmlElement("w:bookmarkStart")
    start.set(qn("w:id"), str(bookmark_id))
    start.set(qn("w:name"), name)
    paragraph._p.append(start)
    run = add_text(paragraph, text)
    end = OxmlElement("w:bookmarkEnd")
    end.set(qn("w:id"), str(bookmark_id))
    paragraph._p.append(end)
    return run


def add_bookmark_hyperlink(paragraph: Paragraph, anchor: str, text: Optional[str], color: str) -> Run:
    """Append an in-document hyperlink pointing at bookmark `anchor`."""
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("w:anchor"), anchor)
    hyperlink.set(qn("w:history"), "1")
    run = add_text(paragraph, text)
    run.font.color.rgb = RGBColor.from_string(color)
    run.underline = True
    # moves the run element out of the paragraph and into the hyperlink
    hyperlink.append(run._r)
    paragraph._p.append(hyperlink)
    return run


# ==========================
# Tables
# ==========================

def insert_table_row(table: Table, index: int) -> _Row:
    """
    Insert an empty row (no cells) at `index`; appends when the table is shorter.
    Cells are added with `add_cell`, so rows may differ in width from the grid.
    """
    tr = OxmlElement("w:tr")
    rows = table._tbl.tr_lst
    if index < len(rows):
        rows[index].addprevious(tr)
    else:
        table._tbl.append(tr)
    return _Row(tr, table)


def add_cell(row: _Row, text: Optional[str] = "") -> _Cell:
    tc = OxmlElement("w:tc")
    row._tr.append(tc)
    cell = _Cell(tc, row._parent)
    cell.text = xml_safe(text)
    return cell


def add_row(table: Table, *values: Optional[str]) -> _Row:
    """Append a grid-width row and fill its leading cells with `values`."""
    row = table.add_row()
    for cell, value in zip(row.cells, values):
        cell.text = xml_safe(value)
    return row


def merge_row(row: _Row) -> _Cell:
    """Merge all cells of a row into one full-width cell."""
    cells = row.cells
    if not cells:
        raise CorruptTemplateError("Corrupt template; table row has no cells to merge")
    if len(cells) == 1:
        return cells[0]
    return cells[0].merge(cells[-1])


def set_cell_widths(table: Table, width: int) -> None:
    for row in table.rows:
        for cell in row.cells:
            cell.width = Twips(width)


def _insert_in_order(parent, child, successors) -> None:
    for tag in successors:
        found = parent.find(qn(tag))
        if found is not None:
            found.addprevious(child)
            return
    parent.append(child)


def set_table_borders(table: Table) -> None:
    """Single inside-vertical and right borders, keeping the schema child order."""
    tbl_pr = table._tbl.tblPr
    borders = tbl_pr.find(qn("w:tblBorders"))
    if borders is None:
        borders = OxmlElement("w:tblBorders")
        _insert_in_order(tbl_pr, borders, _TBL_PR_AFTER_BORDERS)

    for edge in ("w:right", "w:insideV"):
        element = borders.find(qn(edge))
        if element is None:
            element = OxmlElement(edge)
            successors = _BORDER_ORDER[_BORDER_ORDER.index(edge) + 1:]
            _insert_in_order(borders, element, successors)
        element.set(qn("w:val"), "single")
        element.set(qn("w:sz"), "0")
        element.set(qn("w:space"), "0")
        element.set(qn("w:color"), "000000")
