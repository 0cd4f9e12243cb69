# obligations.py
"""
Obligation aggregation for the report variant.

Obligation records come per release; the report groups them by license id,
keeps only licenses cited often enough, and combines them with the
obligations the project tracks itself.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from models import (
    License,
    ObligationAtProject,
    ObligationFulfillment,
    ObligationParsingResult,
    ProjectObligation,
    Release,
)
from utils import case_insensitive_key

DEFAULT_THRESHOLD = 3
TODO_DEFAULT_TEXT = "Obligations not determined so far."

# (topic, text)
ObligationEntry = Tuple[str, str]
# license id -> obligations cited for it
LicenseObligationGroup = Dict[str, List[ObligationEntry]]


class GroupingPolicy(str, Enum):
    """How obligations that target the same license id are combined."""
    # one (topic, text) per license; a later obligation replaces an earlier one
    LAST_WINS = "last_wins"
    # every distinct (topic, text) per license, in encounter order
    KEEP_ALL = "keep_all"


@dataclass
class ObligationRow:
    obligation: str
    license: str
    text: str
    fulfilled: str = ""
    comments: str = ""

    def cells(self) -> Tuple[str, str, str, str, str]:
        return (self.obligation, self.license, self.text, self.fulfilled, self.comments)


@dataclass
class LicenseObligationTable:
    license_id: str
    rows: List[ObligationRow] = field(default_factory=list)


def normalize_license_id(license_id: str) -> str:
    return license_id.replace("\n", "").replace("\r", "")


def successful_obligations(results: Iterable[ObligationParsingResult]) -> Iterator[ObligationAtProject]:
    for result in results:
        if result is None or not result.succeeded:
            continue
        yield from result.obligations_at_project or []


def distinct_obligations(results: Iterable[ObligationParsingResult]) -> List[ObligationAtProject]:
    """Successful obligations deduplicated by value, first occurrence kept."""
    return list(dict.fromkeys(successful_obligations(results)))


def extract_most_common_licenses(
    results: Iterable[ObligationParsingResult],
    threshold: int = DEFAULT_THRESHOLD,
) -> Set[str]:
    """License ids cited by at least `threshold` obligation records (inclusive)."""
    counts = Counter(
        normalize_license_id(license_id)
        for obligation in successful_obligations(results)
        for license_id in obligation.license_ids
    )
    return {license_id for license_id, count in counts.items() if count >= threshold}


def group_by_license(
    results: Iterable[ObligationParsingResult],
    most_common: Set[str],
    policy: GroupingPolicy = GroupingPolicy.LAST_WINS,
) -> LicenseObligationGroup:
    """
    Collect the obligations of every record that cites one of `most_common`.

    The record is filed under each license id it cites, including ids that are
    not common themselves. Groups are returned sorted by license id.
    """
    policy = GroupingPolicy(policy)
    groups: LicenseObligationGroup = {}
    for obligation in successful_obligations(results):
        license_ids = [normalize_license_id(lid) for lid in obligation.license_ids]
        if not any(lid in most_common for lid in license_ids):
            continue
        entry = (obligation.topic, obligation.text)
        for lid in license_ids:
            if policy is GroupingPolicy.LAST_WINS:
                groups[lid] = [entry]
            else:
                entries = groups.setdefault(lid, [])
                if entry not in entries:
                    entries.append(entry)
    return {lid: groups[lid] for lid in sorted(groups, key=case_insensitive_key)}


def fulfillment_row(
    obligation: ProjectObligation,
    fulfillment: ObligationFulfillment,
    license_id: Optional[str] = None,
) -> ObligationRow:
    return ObligationRow(
        obligation=obligation.title,
        license=license_id or "",
        text=obligation.text,
        fulfilled="yes" if fulfillment.fulfilled else "no",
        comments=fulfillment.comments or "",
    )


def merge_project_obligations(
    group: LicenseObligationGroup,
    project_obligations: Dict[ProjectObligation, ObligationFulfillment],
) -> List[LicenseObligationTable]:
    """
    One table per license: the release-derived obligations first, then every
    project-tracked obligation cited under the same license id.
    """
    tables = []
    for license_id, entries in group.items():
        table = LicenseObligationTable(license_id)
        for topic, text in entries:
            table.rows.append(ObligationRow(topic, license_id, text))
        for obligation, fulfillment in project_obligations.items():
            table.rows.append(fulfillment_row(obligation, fulfillment, license_id))
        tables.append(table)
    return tables


def obligations_for_release(
    release: Release,
    results: Iterable[ObligationParsingResult],
) -> Optional[ObligationParsingResult]:
    for result in results:
        if result.release is None:
            continue
        if result.release is release or (release.id and result.release.id == release.id):
            return result
    return None


def todos_for_license(license_name: Optional[str], catalog: Optional[List[License]]) -> List[str]:
    """
    Obligation texts the catalog attaches to `license_name` (matched
    case-insensitively), or the default text when the catalog has none.
    """
    if not license_name or catalog is None:
        return []
    wanted = license_name.lower()
    todos: Dict[str, None] = {}
    for license_ in catalog:
        if license_.id.lower() == wanted:
            for text in license_.obligations:
                todos.setdefault(text, None)
    return list(todos) or [TODO_DEFAULT_TEXT]
