# references.py
"""
Stable reference ids for licenses cited across releases.

Each distinct (license name, license text) pair gets one integer. The same
registry is used for the inline citations in every release section and for
the numbered license-text appendix, which is what keeps links and section
numbers in sync.
"""

from typing import Dict, Iterable, Iterator, List, Tuple

from models import LicenseInfoParsingResult, LicenseNameWithText
from utils import case_insensitive_key

LicenseKey = Tuple[str, str]


def collect_license_entities(results: Iterable[LicenseInfoParsingResult]) -> List[LicenseNameWithText]:
    """Non-empty licenses of all successful results, in encounter order."""
    entities: List[LicenseNameWithText] = []
    for result in results:
        if result is None or not result.succeeded or result.license_info is None:
            continue
        for license_ in result.license_info.license_names_with_texts:
            if license_ is not None and not license_.is_empty():
                entities.append(license_)
    return entities


def sorted_unique_licenses(entities: Iterable[LicenseNameWithText]) -> List[LicenseNameWithText]:
    """
    Deduplicate by (name, text), keeping the first occurrence, then sort by name
    case-insensitively. The sort is stable, so equal names keep encounter order.
    """
    unique: Dict[LicenseKey, LicenseNameWithText] = {}
    for entity in entities:
        if entity.is_empty():
            continue
        unique.setdefault(entity.key, entity)
    return sorted(unique.values(), key=lambda e: case_insensitive_key(e.license_name))


def build_reference_ids(entities: Iterable[LicenseNameWithText]) -> Dict[LicenseKey, int]:
    """Map each distinct license to a dense id, 1..N, in sorted order."""
    return {entity.key: ref_id for ref_id, entity in enumerate(sorted_unique_licenses(entities), start=1)}


class ReferenceRegistry:
    """Read-only view over the ids assigned by `build_reference_ids`."""

    def __init__(self, entities: Iterable[LicenseNameWithText]):
        entities = list(entities)
        self._entries = sorted_unique_licenses(entities)
        self._ids = build_reference_ids(entities)

    @classmethod
    def from_results(cls, results: Iterable[LicenseInfoParsingResult]) -> "ReferenceRegistry":
        return cls(collect_license_entities(results))

    def id_for(self, entity: LicenseNameWithText) -> int:
        try:
            return self._ids[entity.key]
        except KeyError:
            raise KeyError(f"License {entity.license_name!r} was not registered") from None

    def entries(self) -> Iterator[Tuple[int, LicenseNameWithText]]:
        """(id, license) pairs in id order."""
        return enumerate(self._entries, start=1)

    def as_dict(self) -> Dict[LicenseKey, int]:
        return dict(self._ids)

    def __contains__(self, entity: LicenseNameWithText) -> bool:
        return entity.key in self._ids

    def __len__(self) -> int:
        return len(self._entries)
