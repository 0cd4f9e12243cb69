# anchors.py
"""
Anchor resolution inside a loaded template.

Templates mark dynamic content with literal tokens such as `$project-name`.
A token either sits inside running text (replaced in place) or fills a whole
paragraph on its own (a marker paragraph, used as an insertion point and
removed afterwards).

Insertion happens through InsertionPoint values: new content is placed
immediately before the point's element, so consecutive inserts at the same
point come out in call order. A point is only valid while its element stays
in the tree; never reuse one after removing that element.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from docx.document import Document as DocxDocument
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from docx_utils import apply_style, xml_safe
from errors import CorruptTemplateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertionPoint:
    """Content inserted here lands directly before `element`."""
    document: DocxDocument
    element: object


# ---------- Lookup ----------

def iter_paragraphs(document: DocxDocument) -> Iterator[Paragraph]:
    """All paragraphs of the body in document order, including those in table cells."""
    for p in document.element.body.iter(qn("w:p")):
        yield Paragraph(p, document)


def _iter_story_paragraphs(document: DocxDocument) -> Iterator[Paragraph]:
    yield from iter_paragraphs(document)
    for section in document.sections:
        for part in (section.header, section.footer, section.first_page_header,
                     section.first_page_footer, section.even_page_header, section.even_page_footer):
            # a linked header has no definition of its own; reading it would create one
            if part.is_linked_to_previous:
                continue
            for p in part._element.iter(qn("w:p")):
                yield Paragraph(p, part)


def find_token(document: DocxDocument, token: str) -> Optional[Paragraph]:
    """First paragraph whose text contains `token`, or None."""
    for paragraph in iter_paragraphs(document):
        if token in paragraph.text:
            return paragraph
    return None


def find_marker_paragraph(document: DocxDocument, token: str) -> Optional[Paragraph]:
    """First paragraph consisting of nothing but `token` (case-insensitive)."""
    wanted = token.strip().lower()
    for paragraph in iter_paragraphs(document):
        if paragraph.text.strip().lower() == wanted:
            return paragraph
    return None


def require_marker_paragraph(document: DocxDocument, token: str) -> Paragraph:
    paragraph = find_marker_paragraph(document, token)
    if paragraph is None:
        raise CorruptTemplateError(f"Corrupt template; marker paragraph {token!r} not found")
    return paragraph


# ---------- Insertion points ----------

def advance_to_insertion_point(document: DocxDocument, element) -> InsertionPoint:
    """
    Point at the first element following `element`.

    Comments and processing instructions are skipped; running out of siblings
    means the template ends where content was expected.
    """
    candidate = element.getnext()
    while candidate is not None and not isinstance(candidate.tag, str):
        candidate = candidate.getnext()
    if candidate is None:
        raise CorruptTemplateError("Corrupt template; unable to find start token")
    return InsertionPoint(document, candidate)


def point_before(document: DocxDocument, paragraph: Paragraph) -> InsertionPoint:
    return InsertionPoint(document, paragraph._p)


def point_after_table(document: DocxDocument, table: Table) -> InsertionPoint:
    return advance_to_insertion_point(document, table._tbl)


def insert_paragraph(point: InsertionPoint, text: Optional[str] = None, style: Optional[str] = None) -> Paragraph:
    p = OxmlElement("w:p")
    point.element.addprevious(p)
    paragraph = Paragraph(p, point.document)
    if style:
        apply_style(point.document, paragraph, style)
    if text:
        paragraph.add_run(xml_safe(text))
    return paragraph


def insert_table(point: InsertionPoint, rows: int, cols: int, style: Optional[str] = "Table Grid") -> Table:
    document = point.document
    # add_table appends at the end of the body; move the element into place
    table = document.add_table(rows=rows, cols=cols)
    point.element.addprevious(table._tbl)
    if style and style in document.styles:
        table.style = document.styles[style]
    return table


# ---------- Mutation ----------

def _replace_in_paragraph(paragraph: Paragraph, token: str, value: str) -> int:
    """Replace every occurrence of `token`, including ones split across runs."""
    count = 0
    start = 0
    while True:
        runs = paragraph.runs
        texts = [r.text for r in runs]
        full = "".join(texts)
        idx = full.find(token, start)
        if idx < 0:
            return count
        end = idx + len(token)

        offset = 0
        first = last = None
        for i, text in enumerate(texts):
            run_end = offset + len(text)
            if first is None and idx < run_end:
                first = (i, offset)
            if end <= run_end:
                last = (i, offset)
                break
            offset = run_end

        (i, i_off), (j, j_off) = first, last
        head = texts[i][:idx - i_off]
        tail = texts[j][end - j_off:]
        if i == j:
            runs[i].text = head + value + tail
        else:
            # the first run keeps the formatting of the whole replacement
            runs[i].text = head + value
            for k in range(i + 1, j):
                runs[k].text = ""
            runs[j].text = tail
        count += 1
        start = idx + len(value)


def replace_token(document: DocxDocument, token: str, value: Optional[str]) -> int:
    """
    Substitute every occurrence of `token` with `value`.

    Run formatting around the token is kept. A token missing from the template
    is not an error; the number of replacements is returned.
    """
    if not token:
        return 0
    value = xml_safe(value)
    count = 0
    for paragraph in _iter_story_paragraphs(document):
        if token in paragraph.text:
            count += _replace_in_paragraph(paragraph, token, value)
    if not count:
        logger.debug("Token %s not present in template; skipped", token)
    return count


def _enclosing_row(p):
    parent = p.getparent()
    while parent is not None and parent.tag != qn("w:tr"):
        if parent.tag == qn("w:body"):
            return None
        parent = parent.getparent()
    return parent


def remove_anchor(document: DocxDocument, token: str) -> int:
    """
    Delete the marker paragraphs for `token`.

    A marker that is the only text of a table row takes the row with it.
    Returns the number of removed paragraphs/rows.
    """
    wanted = token.strip().lower()
    doomed: List = []
    for paragraph in iter_paragraphs(document):
        if paragraph.text.strip().lower() == wanted:
            doomed.append(paragraph._p)

    removed = 0
    for p in doomed:
        row = _enclosing_row(p)
        if row is not None:
            row_text = "".join(t for t in row.itertext()).strip().lower()
            if row_text == wanted and row.getparent() is not None:
                row.getparent().remove(row)
                removed += 1
                continue
            cell = p.getparent()
            if len(cell.findall(qn("w:p"))) == 1:
                # a cell must keep one paragraph
                for child in list(p):
                    if child.tag != qn("w:pPr"):
                        p.remove(child)
                removed += 1
                continue
        parent = p.getparent()
        if parent is not None:
            parent.remove(p)
            removed += 1
    return removed
