# layout.py
"""
Fixed table positions of the report template.

The report template authors eight tables at known ordinal positions. Filling
the component obligations injects one extra table per license group right
after the additional-requirements table, which shifts every later table.

PendingLayout is the layout before that injection and refuses to resolve
shifted tables; `finalize` turns it into a FinalLayout that knows the shift.
Steps that need a shifted table take a FinalLayout, so they cannot be run
before the injection has been accounted for.
"""

from dataclasses import dataclass, field
from enum import IntEnum

from docx.document import Document as DocxDocument
from docx.table import Table

from errors import CorruptTemplateError, LayoutContractError


class ReportTable(IntEnum):
    OVERVIEW = 0
    SPECIAL_OSS_RISKS = 1
    DEV_DETAIL = 2
    THIRD_PARTY_OVERVIEW = 3
    COMMON_RULES = 4
    PROJECT_OBLIGATIONS = 5
    ADDITIONAL_REQUIREMENTS = 6
    OBLIGATION_STATUS = 7


# extra license-group tables are inserted directly after this one
INJECTION_POINT = ReportTable.ADDITIONAL_REQUIREMENTS


def _physical_table(document: DocxDocument, index: int, nominal: int) -> Table:
    tables = document.tables
    if index >= len(tables):
        raise CorruptTemplateError(
            f"Corrupt template; table {nominal} (physical {index}) missing, template has {len(tables)} tables"
        )
    return tables[index]


@dataclass(frozen=True)
class PendingLayout:
    """Layout before any tables were injected; finalized exactly once."""
    _finalized: bool = field(default=False, init=False, repr=False, compare=False)

    def resolve(self, nominal: ReportTable) -> int:
        if nominal > INJECTION_POINT:
            raise LayoutContractError(
                f"Table {ReportTable(nominal).name} lies after the injection point; finalize the layout first"
            )
        return int(nominal)

    def table(self, document: DocxDocument, nominal: ReportTable) -> Table:
        return _physical_table(document, self.resolve(nominal), nominal)

    def finalize(self, extra_groups: int) -> "FinalLayout":
        if self._finalized:
            raise LayoutContractError("Layout offset is already final")
        if extra_groups < 0:
            raise ValueError(f"extra_groups must be >= 0, got {extra_groups}")
        object.__setattr__(self, "_finalized", True)
        return FinalLayout(extra_groups)


@dataclass(frozen=True)
class FinalLayout:
    """Layout once the number of injected license-group tables is known."""
    extra_groups: int

    def resolve(self, nominal: ReportTable) -> int:
        if nominal > INJECTION_POINT:
            return int(nominal) + self.extra_groups
        return int(nominal)

    def table(self, document: DocxDocument, nominal: ReportTable) -> Table:
        return _physical_table(document, self.resolve(nominal), nominal)

    def group_end_index(self) -> int:
        """Physical index of the last injected table (the injection table itself when none were added)."""
        return int(INJECTION_POINT) + self.extra_groups

    def group_end_table(self, document: DocxDocument) -> Table:
        return _physical_table(document, self.group_end_index(), INJECTION_POINT)

    def finalize(self, extra_groups: int) -> "FinalLayout":
        raise LayoutContractError("Layout offset is already final")
