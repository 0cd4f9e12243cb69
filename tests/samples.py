from io import BytesIO
from typing import Iterable, Optional, Sequence

from docx import Document

from anchors import iter_paragraphs
from models import (
    LicenseInfo,
    LicenseInfoParsingResult,
    LicenseInfoRequestStatus,
    LicenseNameWithText,
    ObligationAtProject,
    ObligationInfoRequestStatus,
    ObligationParsingResult,
    Project,
    Release,
)

SUCCESS = LicenseInfoRequestStatus.SUCCESS
FAILURE = LicenseInfoRequestStatus.FAILURE


def lic(name: Optional[str], text: Optional[str] = None, type: Optional[str] = None, acks: Sequence[str] = ()):
    return LicenseNameWithText(name, text if text is not None else f"{name} text", type, tuple(acks))


def result(
    name: str,
    licenses: Iterable[LicenseNameWithText] = (),
    status: LicenseInfoRequestStatus = SUCCESS,
    vendor: str = "",
    version: str = "1.0",
    release: Optional[Release] = None,
    copyrights: Iterable[str] = (),
    message: Optional[str] = None,
) -> LicenseInfoParsingResult:
    return LicenseInfoParsingResult(
        status=status,
        license_info=LicenseInfo(list(licenses), set(copyrights), ["src.tar.gz"]),
        message=message,
        vendor=vendor,
        name=name,
        version=version,
        release=release,
    )


def obligation(topic: str, *license_ids: str, text: Optional[str] = None) -> ObligationAtProject:
    return ObligationAtProject(topic, text if text is not None else f"{topic} text", tuple(license_ids))


def obligation_result(
    *obligations: ObligationAtProject,
    release: Optional[Release] = None,
    status: ObligationInfoRequestStatus = ObligationInfoRequestStatus.SUCCESS,
) -> ObligationParsingResult:
    return ObligationParsingResult(status, release, list(obligations))


def project(**kwargs) -> Project:
    kwargs.setdefault("name", "Demo")
    kwargs.setdefault("version", "2.0")
    return Project(**kwargs)


def reopen(data: bytes):
    return Document(BytesIO(data))


def texts(document) -> list:
    return [p.text for p in iter_paragraphs(document)]


def row_texts(row) -> list:
    return [c.text for c in row.cells]


def bookmark_names(paragraph) -> list:
    return list(paragraph._p.xpath("./w:bookmarkStart/@w:name"))


def hyperlink_anchors(paragraph) -> list:
    return list(paragraph._p.xpath("./w:hyperlink/@w:anchor"))
