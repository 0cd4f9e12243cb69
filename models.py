# models.py
"""
Data structures for the license report generator.
Contains the domain records consumed read-only by the fill pipelines.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple


class LicenseInfoRequestStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    NO_APPLICABLE_SOURCE = "NO_APPLICABLE_SOURCE"


class ObligationInfoRequestStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    NO_APPLICABLE_SOURCE = "NO_APPLICABLE_SOURCE"


class OutputVariant(str, Enum):
    """Which of the two pre-authored templates gets filled."""
    DISCLOSURE = "disclosure"
    REPORT = "report"


class ObligationLevel(str, Enum):
    COMPONENT = "component"
    ORGANISATION = "organisation"
    PROJECT = "project"


@dataclass(frozen=True)
class LicenseNameWithText:
    """One license found in a release; `type` is "global" for the release-wide license."""
    license_name: Optional[str] = None
    license_text: Optional[str] = None
    type: Optional[str] = None
    acknowledgements: Tuple[str, ...] = ()

    @property
    def key(self) -> Tuple[str, str]:
        return (self.license_name or "", self.license_text or "")

    def is_empty(self) -> bool:
        return not self.license_name and not self.license_text


@dataclass
class LicenseInfo:
    license_names_with_texts: List[LicenseNameWithText] = field(default_factory=list)
    copyrights: Set[str] = field(default_factory=set)
    filenames: List[str] = field(default_factory=list)
    sha1_hash: str = ""
    component_name: str = ""


@dataclass
class Release:
    name: str
    version: str = ""
    vendor: str = ""
    operating_systems: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    software_platforms: List[str] = field(default_factory=list)
    id: Optional[str] = None


@dataclass
class LicenseInfoParsingResult:
    """Outcome of reading the license facts of one release."""
    status: LicenseInfoRequestStatus
    license_info: Optional[LicenseInfo] = None
    message: Optional[str] = None
    vendor: str = ""
    name: str = ""
    version: str = ""
    component_type: str = ""
    release: Optional[Release] = None

    @property
    def succeeded(self) -> bool:
        return self.status == LicenseInfoRequestStatus.SUCCESS


@dataclass(frozen=True)
class ObligationAtProject:
    topic: str
    text: str
    license_ids: Tuple[str, ...]


@dataclass
class ObligationParsingResult:
    status: ObligationInfoRequestStatus
    release: Optional[Release] = None
    obligations_at_project: Optional[List[ObligationAtProject]] = None

    @property
    def succeeded(self) -> bool:
        return self.status == ObligationInfoRequestStatus.SUCCESS


@dataclass(frozen=True)
class ProjectObligation:
    title: str
    text: str
    level: ObligationLevel = ObligationLevel.PROJECT


@dataclass
class ObligationFulfillment:
    fulfilled: bool = False
    comments: str = ""


@dataclass
class Project:
    name: str
    version: str = ""
    business_unit: Optional[str] = None
    license_info_header_text: Optional[str] = None
    clearing_summary: Optional[str] = None
    special_risks_oss: Optional[str] = None
    general_risks_3rd_party: Optional[str] = None
    special_risks_3rd_party: Optional[str] = None
    delivery_channels: Optional[str] = None
    remarks_additional_requirements: Optional[str] = None
    description: Optional[str] = None
    project_owner: Optional[str] = None
    # role name -> emails
    roles: Dict[str, Set[str]] = field(default_factory=dict)
    # insertion order is the order rows appear in the obligation tables
    obligation_fulfillment: Dict[ProjectObligation, ObligationFulfillment] = field(default_factory=dict)

    def obligations_at_level(self, level: ObligationLevel) -> Dict[ProjectObligation, ObligationFulfillment]:
        return {o: f for o, f in self.obligation_fulfillment.items() if o.level == level}


@dataclass
class User:
    email: str
    fullname: Optional[str] = None
    department: Optional[str] = None


@dataclass
class License:
    """License catalog entry; `obligations` are the obligation texts attached to it."""
    id: str
    obligations: List[str] = field(default_factory=list)


@dataclass
class ObligationStatusInfo:
    text: str = ""
    license_ids: List[str] = field(default_factory=list)
    releases: Optional[List[Release]] = None
    status: str = "OPEN"
    type: Optional[str] = None
    comment: Optional[str] = None
