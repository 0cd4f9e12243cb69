# inputs.py
"""
JSON form of a generation request.

The command line tool reads one JSON document holding everything the
generator needs: the project, the release records, the per-release license
and obligation results, and the user and license data the collaborators
serve. Releases are listed once and referenced by id from the results.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jsonschema import Draft202012Validator

from models import (
    License,
    LicenseInfo,
    LicenseInfoParsingResult,
    LicenseInfoRequestStatus,
    LicenseNameWithText,
    ObligationAtProject,
    ObligationFulfillment,
    ObligationInfoRequestStatus,
    ObligationLevel,
    ObligationParsingResult,
    ObligationStatusInfo,
    Project,
    ProjectObligation,
    Release,
    User,
)

_STATUS = {"enum": [s.value for s in LicenseInfoRequestStatus]}
_STRINGS = {"type": "array", "items": {"type": "string"}}
_TEXT = {"type": ["string", "null"]}

REQUEST_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["project"],
    "additionalProperties": False,
    "properties": {
        "project": {"$ref": "#/$defs/project"},
        "user": {"type": "string"},
        "releases": {"type": "array", "items": {"$ref": "#/$defs/release"}},
        "license_results": {"type": "array", "items": {"$ref": "#/$defs/license_result"}},
        "obligation_results": {"type": "array", "items": {"$ref": "#/$defs/obligation_result"}},
        "external_ids": {"type": "object", "additionalProperties": {"type": "string"}},
        "obligation_status": {"type": "object", "additionalProperties": {"$ref": "#/$defs/obligation_status"}},
        "users": {"type": "array", "items": {"$ref": "#/$defs/user"}},
        "licenses": {"type": "array", "items": {"$ref": "#/$defs/license"}},
    },
    "$defs": {
        "release": {
            "type": "object",
            "required": ["id", "name"],
            "properties": {
                "id": {"type": "string"},
                "name": {"type": "string"},
                "version": {"type": "string"},
                "vendor": {"type": "string"},
                "operating_systems": _STRINGS,
                "languages": _STRINGS,
                "software_platforms": _STRINGS,
            },
        },
        "license": {
            "type": "object",
            "required": ["id"],
            "properties": {"id": {"type": "string"}, "obligations": _STRINGS},
        },
        "license_text": {
            "type": "object",
            "properties": {
                "name": _TEXT,
                "text": _TEXT,
                "type": _TEXT,
                "acknowledgements": _STRINGS,
            },
        },
        "license_result": {
            "type": "object",
            "required": ["status"],
            "properties": {
                "status": _STATUS,
                "release_id": {"type": "string"},
                "vendor": {"type": "string"},
                "name": {"type": "string"},
                "version": {"type": "string"},
                "component_type": {"type": "string"},
                "message": _TEXT,
                "licenses": {"type": "array", "items": {"$ref": "#/$defs/license_text"}},
                "copyrights": _STRINGS,
                "filenames": _STRINGS,
                "sha1_hash": {"type": "string"},
                "component_name": {"type": "string"},
            },
        },
        "obligation": {
            "type": "object",
            "required": ["topic", "text", "license_ids"],
            "properties": {
                "topic": {"type": "string"},
                "text": {"type": "string"},
                "license_ids": {**_STRINGS, "minItems": 1},
            },
        },
        "obligation_result": {
            "type": "object",
            "required": ["status"],
            "properties": {
                "status": {"enum": [s.value for s in ObligationInfoRequestStatus]},
                "release_id": {"type": "string"},
                "obligations": {"type": "array", "items": {"$ref": "#/$defs/obligation"}},
            },
        },
        "project_obligation": {
            "type": "object",
            "required": ["title"],
            "properties": {
                "title": {"type": "string"},
                "text": {"type": "string"},
                "level": {"enum": [lv.value for lv in ObligationLevel]},
                "fulfilled": {"type": "boolean"},
                "comments": {"type": "string"},
            },
        },
        "project": {
            "type": "object",
            "required": ["name"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string"},
                "version": {"type": "string"},
                "business_unit": _TEXT,
                "license_info_header_text": _TEXT,
                "clearing_summary": _TEXT,
                "special_risks_oss": _TEXT,
                "general_risks_3rd_party": _TEXT,
                "special_risks_3rd_party": _TEXT,
                "delivery_channels": _TEXT,
                "remarks_additional_requirements": _TEXT,
                "description": _TEXT,
                "project_owner": _TEXT,
                "roles": {"type": "object", "additionalProperties": _STRINGS},
                "obligations": {"type": "array", "items": {"$ref": "#/$defs/project_obligation"}},
            },
        },
        "user": {
            "type": "object",
            "required": ["email"],
            "properties": {
                "email": {"type": "string"},
                "fullname": _TEXT,
                "department": _TEXT,
            },
        },
        "obligation_status": {
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "license_ids": _STRINGS,
                "release_ids": _STRINGS,
                "status": {"type": "string"},
                "type": _TEXT,
                "comment": _TEXT,
            },
        },
    },
}

VALIDATOR = Draft202012Validator(REQUEST_SCHEMA)


@dataclass
class GenerationRequest:
    project: Project
    license_results: List[LicenseInfoParsingResult] = field(default_factory=list)
    obligation_results: List[ObligationParsingResult] = field(default_factory=list)
    external_ids: Dict[str, str] = field(default_factory=dict)
    obligation_status: Dict[str, ObligationStatusInfo] = field(default_factory=dict)
    users: List[User] = field(default_factory=list)
    licenses: List[License] = field(default_factory=list)
    user: Optional[User] = None


# ---------- Conversion ----------

def _release(data: dict) -> Release:
    return Release(
        name=data["name"],
        version=data.get("version", ""),
        vendor=data.get("vendor", ""),
        operating_systems=list(data.get("operating_systems", [])),
        languages=list(data.get("languages", [])),
        software_platforms=list(data.get("software_platforms", [])),
        id=data["id"],
    )


def _lookup_release(releases: Dict[str, Release], release_id: Optional[str]) -> Optional[Release]:
    if release_id is None:
        return None
    if release_id not in releases:
        raise ValueError(f"Unknown release id: {release_id}")
    return releases[release_id]


def _license_result(data: dict, releases: Dict[str, Release]) -> LicenseInfoParsingResult:
    release = _lookup_release(releases, data.get("release_id"))
    info = LicenseInfo(
        license_names_with_texts=[
            LicenseNameWithText(
                license_name=lic.get("name"),
                license_text=lic.get("text"),
                type=lic.get("type"),
                acknowledgements=tuple(lic.get("acknowledgements", [])),
            )
            for lic in data.get("licenses", [])
        ],
        copyrights=set(data.get("copyrights", [])),
        filenames=list(data.get("filenames", [])),
        sha1_hash=data.get("sha1_hash", ""),
        component_name=data.get("component_name", ""),
    )
    # identity falls back to the referenced release
    return LicenseInfoParsingResult(
        status=LicenseInfoRequestStatus(data["status"]),
        license_info=info,
        message=data.get("message"),
        vendor=data.get("vendor", release.vendor if release else ""),
        name=data.get("name", release.name if release else ""),
        version=data.get("version", release.version if release else ""),
        component_type=data.get("component_type", ""),
        release=release,
    )


def _obligation_result(data: dict, releases: Dict[str, Release]) -> ObligationParsingResult:
    obligations = data.get("obligations")
    return ObligationParsingResult(
        status=ObligationInfoRequestStatus(data["status"]),
        release=_lookup_release(releases, data.get("release_id")),
        obligations_at_project=None if obligations is None else [
            ObligationAtProject(o["topic"], o["text"], tuple(o["license_ids"])) for o in obligations
        ],
    )


def _project(data: dict) -> Project:
    fulfillment = {}
    for o in data.get("obligations", []):
        obligation = ProjectObligation(o["title"], o.get("text", ""), ObligationLevel(o.get("level", "project")))
        fulfillment[obligation] = ObligationFulfillment(o.get("fulfilled", False), o.get("comments", ""))

    simple = {k: v for k, v in data.items() if k not in ("roles", "obligations")}
    return Project(
        **simple,
        roles={role: set(emails) for role, emails in data.get("roles", {}).items()},
        obligation_fulfillment=fulfillment,
    )


def _obligation_status(data: dict, releases: Dict[str, Release]) -> ObligationStatusInfo:
    release_ids = data.get("release_ids")
    return ObligationStatusInfo(
        text=data.get("text", ""),
        license_ids=list(data.get("license_ids", [])),
        releases=None if release_ids is None else [_lookup_release(releases, r) for r in release_ids],
        status=data.get("status", "OPEN"),
        type=data.get("type"),
        comment=data.get("comment"),
    )


def load_request(data: dict) -> GenerationRequest:
    """
    Validate `data` against REQUEST_SCHEMA and build the data model.

    Raises jsonschema.ValidationError for schema violations and ValueError for
    references to undeclared releases.
    """
    VALIDATOR.validate(data)

    releases = {r["id"]: _release(r) for r in data.get("releases", [])}
    users = [User(u["email"], u.get("fullname"), u.get("department")) for u in data.get("users", [])]
    requester = data.get("user")
    return GenerationRequest(
        project=_project(data["project"]),
        license_results=[_license_result(r, releases) for r in data.get("license_results", [])],
        obligation_results=[_obligation_result(r, releases) for r in data.get("obligation_results", [])],
        external_ids=dict(data.get("external_ids", {})),
        obligation_status={k: _obligation_status(v, releases) for k, v in data.get("obligation_status", {}).items()},
        users=users,
        licenses=[License(lic["id"], list(lic.get("obligations", []))) for lic in data.get("licenses", [])],
        user=next((u for u in users if u.email == requester), User(requester)) if requester else None,
    )
