# disclosure.py
"""
Disclosure variant: a short document listing every release, the licenses it
is distributed under (as numbered links) and the full license texts.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Set

from anchors import find_marker_paragraph, insert_paragraph, insert_table, point_before, remove_anchor, replace_token
from docx_utils import (
    add_blank_paragraph,
    add_bookmark,
    add_bookmark_hyperlink,
    add_breaks,
    add_formatted_text,
    add_page_break,
    add_row,
    add_text,
    apply_style,
    set_cell_widths,
    tighten,
)
from errors import CorruptTemplateError
from models import LicenseInfoParsingResult, Project
from pipeline import (
    UNKNOWN_FILE_NAME,
    UNKNOWN_LICENSE_NAME,
    FillPipeline,
    has_successful_results,
    license_anchor,
)
from references import ReferenceRegistry
from templates import CAPTION_EXTID_TABLE, EXTERNAL_ID_TABLE, LICENSE_INFO_HEADER, PROJECT_NAME, PROJECT_VERSION
from utils import bookmark_name, case_insensitive_key, component_long_name, null_to_empty

logger = logging.getLogger(__name__)

CAPTION_EXTID_TABLE_VALUE = "External Identifiers for this Product:"
EXT_ID_TABLE_HEADERS = ("Identifier Name", "Identifier Value")
RELEASES_INTRO = (
    "Please note the following license conditions and copyright notices applicable "
    "to Open Source Software and/or other components (or parts thereof):"
)


def release_anchors(results: Sequence[LicenseInfoParsingResult]) -> List[str]:
    """One unique bookmark name per release, aligned with `results`."""
    return [bookmark_name(f"{i} {component_long_name(r)}", prefix="rel") for i, r in enumerate(results, start=1)]


def acknowledgements_by_release(results: Sequence[LicenseInfoParsingResult]) -> Dict[str, List[str]]:
    """Sorted acknowledgements of each successful release, keyed by long name."""
    acks: Dict[str, Set[str]] = {}
    for result in results:
        if not result.succeeded or result.license_info is None:
            continue
        bucket = acks.setdefault(component_long_name(result), set())
        for license_ in result.license_info.license_names_with_texts:
            if license_ is not None:
                bucket.update(a for a in license_.acknowledgements if a)
    return {name: sorted(values) for name, values in acks.items()}


class DisclosurePipeline(FillPipeline):

    def fill(
        self,
        license_results: Sequence[Optional[LicenseInfoParsingResult]],
        project: Project,
        external_ids: Optional[Mapping[str, str]] = None,
        include_obligations: bool = False,
    ) -> None:
        results = sorted(
            (r for r in license_results or [] if r is not None),
            key=lambda r: case_insensitive_key(component_long_name(r)),
        )
        registry = ReferenceRegistry.from_results(results)

        self.replace_tokens({
            LICENSE_INFO_HEADER: project.license_info_header_text,
            PROJECT_NAME: project.name,
            PROJECT_VERSION: project.version,
        })
        self.fill_external_ids(external_ids or {})

        if not has_successful_results(results):
            logger.info("No successful release results for %s; writing error paragraph", project.name)
            self.print_error_for_no_release()
            return

        anchors = release_anchors(results)
        self.fill_release_bullet_list(results, anchors)
        self.fill_release_detail_list(results, anchors, registry, include_obligations)
        self.fill_license_list(registry)

    # ---------- External identifiers ----------

    def fill_external_ids(self, external_ids: Mapping[str, str]) -> None:
        document = self.document
        if not external_ids:
            remove_anchor(document, EXTERNAL_ID_TABLE)
            remove_anchor(document, CAPTION_EXTID_TABLE)
            return

        replace_token(document, CAPTION_EXTID_TABLE, CAPTION_EXTID_TABLE_VALUE)
        marker = find_marker_paragraph(document, EXTERNAL_ID_TABLE)
        if marker is None:
            raise CorruptTemplateError(f"Corrupt template; marker paragraph {EXTERNAL_ID_TABLE!r} not found")

        point = point_before(document, marker)
        table = insert_table(point, rows=1, cols=2)
        for cell, header in zip(table.rows[0].cells, EXT_ID_TABLE_HEADERS):
            add_formatted_text(cell.paragraphs[0], header, self.cfg.docx.font_size, bold=True)
        for name, value in external_ids.items():
            add_row(table, name, value)
        set_cell_widths(table, self.cfg.docx.table_width)
        insert_paragraph(point)
        # the point is gone with the marker
        remove_anchor(document, EXTERNAL_ID_TABLE)

    # ---------- Releases ----------

    def fill_release_bullet_list(self, results: Sequence[LicenseInfoParsingResult], anchors: Sequence[str]) -> None:
        for result, anchor in zip(results, anchors):
            paragraph = self.document.add_paragraph()
            apply_style(self.document, paragraph, self.cfg.docx.bullet_style)
            add_bookmark_hyperlink(paragraph, anchor, component_long_name(result), self.cfg.docx.link_color)
        add_page_break(self.document)

    def fill_release_detail_list(
        self,
        results: Sequence[LicenseInfoParsingResult],
        anchors: Sequence[str],
        registry: ReferenceRegistry,
        include_obligations: bool,
    ) -> None:
        document = self.document
        self.add_title("Detailed Releases Information")
        add_text(document.add_paragraph(), RELEASES_INTRO)
        add_blank_paragraph(document)

        acknowledgements = acknowledgements_by_release(results)
        for result, anchor in zip(results, anchors):
            self.add_release_title(result, anchor)
            self.add_acknowledgement(acknowledgements.get(component_long_name(result)))
            if result.succeeded:
                self.add_licenses(result, registry, include_obligations)
                add_blank_paragraph(document, 1)
                self.add_copyrights(result)
            else:
                self.add_release_error(result)
            add_blank_paragraph(document, 1)
        add_page_break(document)

    def add_release_title(self, result: LicenseInfoParsingResult, anchor: str) -> None:
        paragraph = self.document.add_paragraph()
        apply_style(self.document, paragraph, self.cfg.docx.heading_style)
        add_bookmark(paragraph, anchor, component_long_name(result), self.next_bookmark_id())
        add_blank_paragraph(self.document)

    def add_acknowledgement(self, acknowledgements: Optional[List[str]]) -> None:
        if not acknowledgements:
            return
        add_formatted_text(self.document.add_paragraph(), "Acknowledgement", self.cfg.docx.font_size, bold=True)
        for acknowledgement in acknowledgements:
            add_text(self.document.add_paragraph(), acknowledgement)
        add_blank_paragraph(self.document, 1)

    def add_licenses(self, result: LicenseInfoParsingResult, registry: ReferenceRegistry, include_obligations: bool) -> None:
        title = self.document.add_paragraph()
        add_breaks(title.add_run(), 1)
        add_formatted_text(title, "Licenses", self.cfg.docx.font_size, bold=True)
        if result.license_info is None:
            return

        licenses = sorted(
            (lic for lic in result.license_info.license_names_with_texts if lic is not None and not lic.is_empty()),
            key=lambda lic: case_insensitive_key(lic.license_name),
        )
        for license_ in licenses:
            ref_id = registry.id_for(license_)
            name = license_.license_name or UNKNOWN_LICENSE_NAME
            paragraph = tighten(self.document.add_paragraph())
            add_bookmark_hyperlink(paragraph, license_anchor(ref_id), f"{name}({ref_id})", self.cfg.docx.link_color)
            if include_obligations:
                self.add_license_obligations(name)

    def add_license_obligations(self, license_name: str) -> None:
        title = self.document.add_paragraph()
        add_formatted_text(title, f"Obligations for license {license_name}:", self.cfg.docx.font_size, bold=True)
        for todo in self.license_todos(license_name):
            paragraph = tighten(self.document.add_paragraph())
            add_breaks(add_text(paragraph, todo), 1)

    def add_copyrights(self, result: LicenseInfoParsingResult) -> None:
        add_formatted_text(self.document.add_paragraph(), "Copyrights", self.cfg.docx.font_size, bold=True)
        copyrights = result.license_info.copyrights if result.license_info is not None else set()
        for copyright_ in sorted(copyrights):
            add_text(tighten(self.document.add_paragraph()), copyright_)

    def add_release_error(self, result: LicenseInfoParsingResult) -> None:
        filenames = result.license_info.filenames if result.license_info is not None else []
        filename = filenames[0] if filenames else UNKNOWN_FILE_NAME
        size, color = self.cfg.docx.font_size, self.cfg.docx.alert_color

        paragraph = self.document.add_paragraph()
        run = add_formatted_text(paragraph, f"Error reading license information: {null_to_empty(result.message)}",
                                 size, color=color)
        add_breaks(run, 1)
        add_formatted_text(paragraph, f"Source file: {filename}", size, color=color)

    # ---------- License texts ----------

    def fill_license_list(self, registry: ReferenceRegistry) -> None:
        document = self.document
        self.add_title("License texts")
        add_blank_paragraph(document)
        for ref_id, license_ in registry.entries():
            paragraph = document.add_paragraph()
            apply_style(document, paragraph, self.cfg.docx.heading_style)
            name = license_.license_name or UNKNOWN_LICENSE_NAME
            add_bookmark(paragraph, license_anchor(ref_id), f"{ref_id}: {name}", self.next_bookmark_id())
            add_blank_paragraph(document)
            add_text(document.add_paragraph(), license_.license_text)
            add_blank_paragraph(document, 1)
