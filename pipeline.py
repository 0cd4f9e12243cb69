# pipeline.py
"""
Pieces shared by the disclosure and report fill pipelines.
"""

from itertools import count
from typing import Dict, Iterable, List, Optional

from docx.document import Document as DocxDocument
from docx.text.paragraph import Paragraph

from anchors import replace_token
from collaborators import LicenseCatalog
from config import DEFAULTS, AppConfig
from docx_utils import add_formatted_text, next_bookmark_id
from models import License, LicenseInfoParsingResult
from obligations import todos_for_license
from utils import bookmark_name

NO_RELEASE_ERROR = (
    "Either there is no releases based on your selection "
    "or the selected project does not contain any release"
)
UNKNOWN_LICENSE_NAME = "Unknown license name"
UNKNOWN_FILE_NAME = "Unknown file name"


def has_successful_results(results: Iterable[LicenseInfoParsingResult]) -> bool:
    return any(r is not None and r.succeeded for r in results)


def license_anchor(ref_id: int) -> str:
    """Bookmark name of a license-text entry; citations link here."""
    return bookmark_name(str(ref_id), prefix="license")


def global_license_name(result: LicenseInfoParsingResult, default: str) -> str:
    """Name of the license tagged as applying to the whole release."""
    if result.license_info is None:
        return default
    for license_ in result.license_info.license_names_with_texts:
        if license_ is not None and license_.type == "global":
            return license_.license_name or default
    return default


class FillPipeline:
    """Owns one loaded template for the duration of a single generation run."""

    def __init__(
        self,
        document: DocxDocument,
        cfg: Optional[AppConfig] = None,
        license_catalog: Optional[LicenseCatalog] = None,
    ):
        self.document = document
        self.cfg = cfg or DEFAULTS
        self.license_catalog = license_catalog
        self._bookmark_ids = count(next_bookmark_id(document))
        self._catalog: Optional[List[License]] = None

    # ---------- Shared steps ----------

    def replace_tokens(self, values: Dict[str, Optional[str]]) -> None:
        for token, value in values.items():
            replace_token(self.document, token, value)

    def print_error_for_no_release(self) -> Paragraph:
        paragraph = self.document.add_paragraph()
        add_formatted_text(paragraph, NO_RELEASE_ERROR, self.cfg.docx.font_size, color=self.cfg.docx.alert_color)
        return paragraph

    def add_title(self, text: str, size_delta: int = 2) -> Paragraph:
        paragraph = self.document.add_paragraph()
        add_formatted_text(paragraph, text, self.cfg.docx.font_size + size_delta, bold=True)
        return paragraph

    def next_bookmark_id(self) -> int:
        return next(self._bookmark_ids)

    # ---------- License catalog ----------

    def catalog_licenses(self) -> List[License]:
        """Fetched once per run; lookup errors propagate."""
        if self._catalog is None:
            self._catalog = self.license_catalog.get_licenses() if self.license_catalog is not None else []
        return self._catalog

    def license_todos(self, license_name: str) -> List[str]:
        return todos_for_license(license_name, self.catalog_licenses())
