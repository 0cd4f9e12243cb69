# utils.py
"""
Shared utility functions for the report generator.
Consolidates naming, sorting and small formatting helpers.
"""

import re
from typing import Iterable, Optional

from models import LicenseInfoParsingResult, Release


# ==========================
# String & Formatting Utilities
# ==========================

def null_to_empty(value: Optional[str]) -> str:
    return value if value is not None else ""


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def case_insensitive_key(value: Optional[str]) -> str:
    """Sort key matching a case-insensitive ordering of strings."""
    return null_to_empty(value).lower()


def bookmark_name(text: str, prefix: str = "ref") -> str:
    """
    Convert text to a valid Word bookmark name.

    Word only accepts letters, digits and underscores, requires a leading
    letter and truncates at 40 characters.
    """
    slug = re.sub(r'[^A-Za-z0-9]+', '_', text or "")
    slug = re.sub(r'_{2,}', '_', slug).strip('_')
    return f"{prefix}_{slug}"[:40].rstrip('_') or prefix


def join_or_na(values: Iterable[str], sep: str = " ") -> str:
    values = [v for v in values if v]
    return sep.join(values) if values else "N/A"


# ==========================
# Component Naming
# ==========================

def _join_name_parts(*parts: Optional[str]) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def component_long_name(result: LicenseInfoParsingResult) -> str:
    """Vendor, name and version of the release a parsing result belongs to."""
    return _join_name_parts(result.vendor, result.name, result.version)


def component_short_name(result: LicenseInfoParsingResult) -> str:
    return _join_name_parts(result.name, result.version)


def release_long_name(release: Release) -> str:
    return _join_name_parts(release.vendor, release.name, release.version)
