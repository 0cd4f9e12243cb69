# templates.py
"""
Template assets for the two document variants.

A store hands out the raw bytes of a template; every generation run opens
its own in-memory copy, so the stored asset is never modified. The default
templates are authored here with python-docx and can be written to disk as a
starting point for customised ones.
"""

import logging
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

from docx import Document
from docx.document import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError

from config import DEFAULTS, TemplateConfig
from errors import TemplateLoadError
from models import OutputVariant

logger = logging.getLogger(__name__)

# ==========================
# Template Tokens
# ==========================

LICENSE_INFO_HEADER = "$license-info-header"
PROJECT_NAME = "$project-name"
PROJECT_VERSION = "$project-version"
CAPTION_EXTID_TABLE = "$caption-extid-table"
EXTERNAL_ID_TABLE = "$external-id-table"

OWNER_GROUP = "$owner-group"
BUSINESS_UNIT = "$bunit"
CLEARING_SUMMARY = "$clearing-summary-text"
SPECIAL_RISKS_OSS = "$special-risks-oss-addition-text"
GENERAL_RISKS_3RD_PARTY = "$general-risks-3rd-party-text"
SPECIAL_RISKS_3RD_PARTY = "$special-risks-3rd-party-text"
DELIVERY_CHANNELS = "$delivery-channels-text"
REMARKS_ADDITIONAL_REQUIREMENTS = "$remarks-additional-requirements-text"
PRODUCT_DESCRIPTION = "$product-description"
README_OSS = "$readme-OSS-text"
LICENSES_ABOVE_THRESHOLD = "$list_comma_sep_licenses_above_threshold"

OBLIGATION_TABLE_HEADERS = ["Obligation", "License", "License section reference and short description",
                            "Fulfilled", "Comments"]


class TemplateStore(Protocol):
    def load_bytes(self, variant: OutputVariant) -> bytes:
        ...


def open_document(data: bytes, name: str = "template") -> DocxDocument:
    """Open template bytes as a fresh, independent document."""
    try:
        return Document(BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise TemplateLoadError(f"Could not load the template for docx document: {name}: {e}") from e


def load_template(store: TemplateStore, variant: OutputVariant) -> DocxDocument:
    variant = OutputVariant(variant)
    return open_document(store.load_bytes(variant), name=variant.value)


def document_bytes(document: DocxDocument) -> bytes:
    buf = BytesIO()
    document.save(buf)
    return buf.getvalue()


# ==========================
# Stores
# ==========================

class DirectoryTemplateStore:
    """Reads `templateFrontpageContent.docx` / `templateReport.docx` from a directory."""

    def __init__(self, directory: Union[str, Path], cfg: Optional[TemplateConfig] = None):
        self.directory = Path(directory)
        self.cfg = cfg or DEFAULTS.templates

    def path_for(self, variant: OutputVariant) -> Path:
        if OutputVariant(variant) is OutputVariant.DISCLOSURE:
            return self.directory / self.cfg.disclosure_file
        return self.directory / self.cfg.report_file

    def load_bytes(self, variant: OutputVariant) -> bytes:
        path = self.path_for(variant)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise TemplateLoadError(f"Could not load the template for docx document: {path}") from e
        logger.debug("Loaded %s template from %s (%d bytes)", variant, path, len(data))
        return data


class BuiltinTemplateStore:
    """Serves the default templates authored by this module."""

    def __init__(self):
        self._cache: Dict[OutputVariant, bytes] = {}

    def load_bytes(self, variant: OutputVariant) -> bytes:
        variant = OutputVariant(variant)
        if variant not in self._cache:
            builder = build_disclosure_template if variant is OutputVariant.DISCLOSURE else build_report_template
            self._cache[variant] = document_bytes(builder())
        return self._cache[variant]


def store_from_config(cfg: Optional[TemplateConfig] = None) -> TemplateStore:
    cfg = cfg or DEFAULTS.templates
    if cfg.template_dir:
        return DirectoryTemplateStore(cfg.template_dir, cfg)
    return BuiltinTemplateStore()


# ==========================
# Default Templates
# ==========================

def _add_table(document: DocxDocument, headers: Sequence[str], rows: Sequence[Sequence[str]] = ()):
    table = document.add_table(rows=1, cols=len(headers))
    table.style = "Table Grid"
    for cell, header in zip(table.rows[0].cells, headers):
        cell.text = header
    for values in rows:
        for cell, value in zip(table.add_row().cells, values):
            cell.text = value
    return table


def build_disclosure_template() -> DocxDocument:
    document = Document()
    document.add_heading("Open Source Software Disclosure", level=0)
    document.add_paragraph(LICENSE_INFO_HEADER)
    document.add_paragraph(f"Product: {PROJECT_NAME} {PROJECT_VERSION}")
    document.add_paragraph(CAPTION_EXTID_TABLE)
    document.add_paragraph(EXTERNAL_ID_TABLE)
    document.add_heading("Releases", level=1)
    return document


def build_report_template() -> DocxDocument:
    """
    Report template with the eight fixed tables in ReportTable order.

    The overview table keeps seven authored rows; attendees are inserted from
    row 7 on.
    """
    document = Document()
    document.add_heading(f"Clearing Report {PROJECT_NAME} {PROJECT_VERSION}", level=0)
    document.add_paragraph(LICENSE_INFO_HEADER)

    document.add_heading("Overview", level=1)
    _add_table(document, ["Item", "Value", ""], [
        ["Project", f"{PROJECT_NAME} {PROJECT_VERSION}", ""],
        ["Business unit", BUSINESS_UNIT, ""],
        ["Owner group", OWNER_GROUP, ""],
        ["Product description", PRODUCT_DESCRIPTION, ""],
        ["Delivery channels", DELIVERY_CHANNELS, ""],
        ["Attendee", "Department", "Role"],
    ])

    document.add_heading("Clearing summary", level=1)
    document.add_paragraph(CLEARING_SUMMARY)

    document.add_heading("Special OSS risks", level=1)
    document.add_paragraph(SPECIAL_RISKS_OSS)
    _add_table(document, ["Obligation", "License", "Text"])

    document.add_heading("Development details", level=1)
    _add_table(document, ["Component", "Operating systems", "Languages", "Platforms"])

    document.add_heading("Third party components", level=1)
    document.add_paragraph(GENERAL_RISKS_3RD_PARTY)
    document.add_paragraph(SPECIAL_RISKS_3RD_PARTY)
    _add_table(document, ["Name", "Version", "SHA1", "Component", "Type", "License"])

    document.add_heading("Common rules", level=1)
    _add_table(document, ["Obligation", "Fulfilled", "Comments"])

    document.add_heading("Project obligations", level=1)
    _add_table(document, ["Obligation", "Fulfilled", "Comments"])

    document.add_heading("Additional requirements", level=1)
    document.add_paragraph(REMARKS_ADDITIONAL_REQUIREMENTS)
    document.add_paragraph(f"Licenses with frequent obligations: {LICENSES_ABOVE_THRESHOLD}")
    _add_table(document, OBLIGATION_TABLE_HEADERS)
    document.add_paragraph()

    document.add_heading("Linked obligations", level=1)
    _add_table(document, ["Obligation", "License", "Releases", "Status", "Type", "Comment"])

    document.add_heading("README OSS", level=1)
    document.add_paragraph(README_OSS)
    return document


def write_default_templates(directory: Union[str, Path], cfg: Optional[TemplateConfig] = None) -> List[Path]:
    cfg = cfg or DEFAULTS.templates
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for name, builder in ((cfg.disclosure_file, build_disclosure_template),
                          (cfg.report_file, build_report_template)):
        path = directory / name
        builder().save(str(path))
        written.append(path)
    return written
