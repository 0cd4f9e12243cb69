# report.py
"""
Report variant: the clearing report with its eight fixed tables, the
per-license obligation groups and one subsection per release.

Steps run in a fixed order. Rows are only ever added to tables located by
their template position, and the free-form release subsections come last,
once no further table lookups by index are needed.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from docx.document import Document as DocxDocument
from docx.table import Table

from anchors import InsertionPoint, insert_paragraph, insert_table, point_after_table
from collaborators import LicenseCatalog, UserDirectory, lookup_user
from config import AppConfig
from docx_utils import add_cell, add_formatted_text, add_row, insert_table_row, merge_row, set_table_borders, xml_safe
from layout import FinalLayout, PendingLayout, ReportTable
from models import (
    LicenseInfoParsingResult,
    ObligationFulfillment,
    ObligationLevel,
    ObligationParsingResult,
    ObligationStatusInfo,
    Project,
    ProjectObligation,
    User,
)
from obligations import (
    GroupingPolicy,
    LicenseObligationTable,
    distinct_obligations,
    extract_most_common_licenses,
    fulfillment_row,
    group_by_license,
    merge_project_obligations,
    obligations_for_release,
)
from pipeline import FillPipeline, global_license_name, has_successful_results
from templates import (
    BUSINESS_UNIT,
    CLEARING_SUMMARY,
    DELIVERY_CHANNELS,
    GENERAL_RISKS_3RD_PARTY,
    LICENSE_INFO_HEADER,
    LICENSES_ABOVE_THRESHOLD,
    OBLIGATION_TABLE_HEADERS,
    OWNER_GROUP,
    PRODUCT_DESCRIPTION,
    PROJECT_NAME,
    PROJECT_VERSION,
    README_OSS,
    REMARKS_ADDITIONAL_REQUIREMENTS,
    SPECIAL_RISKS_3RD_PARTY,
    SPECIAL_RISKS_OSS,
)
from utils import case_insensitive_key, component_short_name, is_blank, join_or_na, release_long_name

logger = logging.getLogger(__name__)

NO_COMMERCIAL_3RD_PARTY = "No commercial 3rd party software is used"
README_OSS_TEXT = (
    "Is generated by the Clearing office and provided in sw360 as attachment of the Project. "
    "It is stored here:"
)
NO_LINKED_OBLIGATIONS = "No Linked Obligations."
NOT_AVAILABLE = "N.A."
UNKNOWN_LICENSE = "Unknown"


def report_tokens(project: Project, most_common: Set[str]) -> Dict[str, Optional[str]]:
    def or_default(value: Optional[str]) -> str:
        return NO_COMMERCIAL_3RD_PARTY if is_blank(value) else value

    return {
        OWNER_GROUP: project.business_unit or "",
        BUSINESS_UNIT: project.business_unit,
        LICENSE_INFO_HEADER: project.license_info_header_text,
        PROJECT_NAME: project.name,
        PROJECT_VERSION: project.version,
        CLEARING_SUMMARY: project.clearing_summary,
        SPECIAL_RISKS_OSS: project.special_risks_oss,
        GENERAL_RISKS_3RD_PARTY: or_default(project.general_risks_3rd_party),
        SPECIAL_RISKS_3RD_PARTY: or_default(project.special_risks_3rd_party),
        DELIVERY_CHANNELS: project.delivery_channels,
        REMARKS_ADDITIONAL_REQUIREMENTS: project.remarks_additional_requirements,
        PRODUCT_DESCRIPTION: project.description,
        README_OSS: README_OSS_TEXT,
        LICENSES_ABOVE_THRESHOLD: ", ".join(sorted(most_common, key=case_insensitive_key)),
    }


def insert_rows(table: Table, start: int, rows: Iterable[Sequence[Optional[str]]]) -> int:
    """Insert `rows` from index `start` on; returns the index after the last one."""
    index = start
    for values in rows:
        row = insert_table_row(table, index)
        for value in values:
            add_cell(row, value)
        index += 1
    return index


class ReportPipeline(FillPipeline):

    def __init__(
        self,
        document: DocxDocument,
        cfg: Optional[AppConfig] = None,
        license_catalog: Optional[LicenseCatalog] = None,
        user_directory: Optional[UserDirectory] = None,
    ):
        super().__init__(document, cfg, license_catalog)
        self.user_directory = user_directory

    def fill(
        self,
        license_results: Sequence[Optional[LicenseInfoParsingResult]],
        project: Project,
        obligation_results: Sequence[Optional[ObligationParsingResult]] = (),
        user: Optional[User] = None,
        obligation_status: Optional[Mapping[str, ObligationStatusInfo]] = None,
    ) -> None:
        obligation_results = [o for o in obligation_results or [] if o is not None]
        most_common = extract_most_common_licenses(
            obligation_results, self.cfg.obligations.common_license_threshold
        )
        layout = PendingLayout()

        self.replace_tokens(report_tokens(project, most_common))
        self.fill_attendees_table(layout, project)

        results = [r for r in license_results or [] if r is not None]
        if not has_successful_results(results):
            logger.info("No successful release results for %s; writing error paragraph", project.name)
            self.print_error_for_no_release()
            return
        results.sort(key=lambda r: case_insensitive_key(component_short_name(r)))

        self.fill_special_oss_risks_table(layout, obligation_results)
        self.fill_development_details_table(layout, results)
        self.fill_overview_3rd_party_table(layout, results)
        self.fill_organisation_obligations_table(layout, project)
        self.fill_project_obligations_table(layout, project)
        final = self.fill_component_obligations(layout, obligation_results, most_common, project)
        self.fill_linked_obligations(final, obligation_status or {})
        # free-form insertions go last; table lookups by index are done by now
        self.write_component_subsections(final, results, obligation_results)

    # ---------- Attendees ----------

    def _department(self, user: Optional[User]) -> str:
        return user.department if user is not None and user.department else NOT_AVAILABLE

    def fill_attendees_table(self, layout: PendingLayout, project: Project) -> None:
        table = layout.table(self.document, ReportTable.OVERVIEW)
        rows = []
        if not is_blank(project.project_owner):
            owner = lookup_user(self.user_directory, project.project_owner)
            email = owner.email if owner is not None else project.project_owner
            rows.append((email, self._department(owner), "Owner"))

        for role, emails in project.roles.items():
            for email in sorted(e for e in emails if e):
                user = lookup_user(self.user_directory, email)
                name = user.fullname if user is not None and user.fullname else email
                rows.append((name, self._department(user), role))

        insert_rows(table, self.cfg.docx.attendee_first_row, rows)

    # ---------- Fixed tables ----------

    def fill_special_oss_risks_table(self, layout: PendingLayout, obligation_results: List[ObligationParsingResult]) -> None:
        table = layout.table(self.document, ReportTable.SPECIAL_OSS_RISKS)
        insert_rows(table, 1, (
            (o.topic, " ".join(o.license_ids), o.text) for o in distinct_obligations(obligation_results)
        ))
        set_table_borders(table)

    def fill_development_details_table(self, layout: PendingLayout, results: List[LicenseInfoParsingResult]) -> None:
        table = layout.table(self.document, ReportTable.DEV_DETAIL)
        rows = []
        for result in results:
            release = result.release
            if not result.succeeded or release is None:
                continue
            rows.append((
                release.name,
                join_or_na(release.operating_systems),
                join_or_na(release.languages),
                join_or_na(release.software_platforms),
            ))
        insert_rows(table, 1, rows)
        set_table_borders(table)

    def fill_overview_3rd_party_table(self, layout: PendingLayout, results: List[LicenseInfoParsingResult]) -> None:
        table = layout.table(self.document, ReportTable.THIRD_PARTY_OVERVIEW)
        rows = []
        for result in results:
            if not result.succeeded:
                continue
            info = result.license_info
            rows.append((
                result.name,
                result.version,
                info.sha1_hash if info is not None else "",
                info.component_name if info is not None else "",
                result.component_type,
                global_license_name(result, ""),
            ))
        insert_rows(table, 1, rows)
        set_table_borders(table)

    def _fill_fulfillment_table(self, table: Table, obligations: Dict[ProjectObligation, ObligationFulfillment]) -> None:
        rows = []
        for obligation, fulfillment in obligations.items():
            row = fulfillment_row(obligation, fulfillment)
            rows.append((row.text, row.fulfilled, row.comments))
        insert_rows(table, 1, rows)
        set_table_borders(table)

    def fill_organisation_obligations_table(self, layout: PendingLayout, project: Project) -> None:
        table = layout.table(self.document, ReportTable.COMMON_RULES)
        self._fill_fulfillment_table(table, project.obligations_at_level(ObligationLevel.ORGANISATION))

    def fill_project_obligations_table(self, layout: PendingLayout, project: Project) -> None:
        table = layout.table(self.document, ReportTable.PROJECT_OBLIGATIONS)
        self._fill_fulfillment_table(table, project.obligations_at_level(ObligationLevel.PROJECT))

    # ---------- Component obligations ----------

    def fill_component_obligations(
        self,
        layout: PendingLayout,
        obligation_results: List[ObligationParsingResult],
        most_common: Set[str],
        project: Project,
    ) -> FinalLayout:
        """
        Summarise each license group in the additional-requirements table and
        insert one obligation table per group right after it.
        """
        policy = GroupingPolicy(self.cfg.obligations.grouping_policy)
        groups = group_by_license(obligation_results, most_common, policy)
        tables = merge_project_obligations(groups, project.obligations_at_level(ObligationLevel.COMPONENT))

        additional = layout.table(self.document, ReportTable.ADDITIONAL_REQUIREMENTS)
        final = layout.finalize(len(tables))
        logger.debug("Injecting %d license group tables (policy %s)", len(tables), policy.value)
        if not tables:
            return final

        insert_rows(additional, 1, (t.rows[0].cells() for t in tables))
        set_table_borders(additional)

        point = point_after_table(self.document, additional)
        for group in tables:
            point = self.write_license_group(point, group)
        return final

    def write_license_group(self, point: InsertionPoint, group: LicenseObligationTable) -> InsertionPoint:
        insert_paragraph(point)
        insert_paragraph(point)
        heading = insert_paragraph(point)
        add_formatted_text(heading, group.license_id, self.cfg.docx.font_size + 2, bold=True)
        insert_paragraph(point)

        table = insert_table(point, rows=1, cols=len(OBLIGATION_TABLE_HEADERS))
        for cell, header in zip(table.rows[0].cells, OBLIGATION_TABLE_HEADERS):
            cell.text = header
        for row in group.rows:
            add_row(table, *row.cells())
        set_table_borders(table)
        return point

    # ---------- Linked obligations ----------

    def fill_linked_obligations(self, layout: FinalLayout, obligation_status: Mapping[str, ObligationStatusInfo]) -> None:
        table = layout.table(self.document, ReportTable.OBLIGATION_STATUS)
        if not obligation_status:
            merge_row(table.add_row()).text = NO_LINKED_OBLIGATIONS
            set_table_borders(table)
            return

        for key, info in obligation_status.items():
            if info.releases is None:
                continue
            releases = sorted({release_long_name(r) for r in info.releases}, key=case_insensitive_key)
            add_row(
                table,
                key,
                ", \n".join(info.license_ids),
                ", \n".join(releases),
                info.status,
                info.type or "",
                info.comment or "",
            )
            merge_row(table.add_row()).text = xml_safe(info.text)
        set_table_borders(table)

    # ---------- Release subsections ----------

    def write_component_subsections(
        self,
        layout: FinalLayout,
        results: List[LicenseInfoParsingResult],
        obligation_results: List[ObligationParsingResult],
    ) -> InsertionPoint:
        point = point_after_table(self.document, layout.group_end_table(self.document))
        for result in results:
            title = f"{result.vendor} {result.name}".strip()
            insert_paragraph(point, title, style=self.cfg.docx.subsection_style)
            insert_paragraph(point, f"The component is licensed under {global_license_name(result, UNKNOWN_LICENSE)}.")

            if result.release is None:
                continue
            obligations = obligations_for_release(result.release, obligation_results)
            if obligations is None or not obligations.obligations_at_project:
                continue

            table = insert_table(point, rows=0, cols=3)
            for o in obligations.obligations_at_project:
                add_row(table, o.topic, " ".join(o.license_ids), o.text)
            set_table_borders(table)
        return point
