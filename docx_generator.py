# docx_generator.py
"""
Entry point of the engine: load the template for a variant, run the matching
fill pipeline on a private in-memory copy and return the finished bytes.

Any failure surfaces as one GenerationError subclass; a partially filled
document is never returned.
"""

import logging
from typing import Mapping, Optional, Sequence

from docx.document import Document as DocxDocument
from lxml import etree

from collaborators import LicenseCatalog, UserDirectory
from config import DEFAULTS, AppConfig
from disclosure import DisclosurePipeline
from errors import CorruptTemplateError, SerializationError
from models import (
    LicenseInfoParsingResult,
    ObligationParsingResult,
    ObligationStatusInfo,
    OutputVariant,
    Project,
    User,
)
from report import ReportPipeline
from templates import TemplateStore, document_bytes, load_template, store_from_config

logger = logging.getLogger(__name__)


def serialize(document: DocxDocument) -> bytes:
    try:
        return document_bytes(document)
    except OSError as e:
        raise SerializationError(f"Could not write docx document: {e}") from e


class DocxGenerator:
    """
    Fills one of the two templates per call.

    The generator itself holds no per-run state, so one instance may serve
    any number of calls; each call loads its own template copy.
    """

    def __init__(
        self,
        templates: Optional[TemplateStore] = None,
        user_directory: Optional[UserDirectory] = None,
        license_catalog: Optional[LicenseCatalog] = None,
        cfg: Optional[AppConfig] = None,
    ):
        self.cfg = cfg or DEFAULTS
        self.templates = templates or store_from_config(self.cfg.templates)
        self.user_directory = user_directory
        self.license_catalog = license_catalog

    def generate(
        self,
        variant: OutputVariant,
        license_results: Sequence[Optional[LicenseInfoParsingResult]],
        project: Project,
        obligation_results: Optional[Sequence[Optional[ObligationParsingResult]]] = None,
        user: Optional[User] = None,
        external_ids: Optional[Mapping[str, str]] = None,
        obligation_status: Optional[Mapping[str, ObligationStatusInfo]] = None,
    ) -> bytes:
        variant = OutputVariant(variant)
        logger.info(
            "Generating %s document for %s %s (%d release results, requested by %s)",
            variant.value, project.name, project.version, len(license_results or []),
            user.email if user is not None else "n/a",
        )
        document = load_template(self.templates, variant)

        try:
            if variant is OutputVariant.DISCLOSURE:
                DisclosurePipeline(document, self.cfg, self.license_catalog).fill(
                    license_results, project, external_ids=external_ids,
                )
            else:
                ReportPipeline(document, self.cfg, self.license_catalog, self.user_directory).fill(
                    license_results, project, obligation_results or (), user=user,
                    obligation_status=obligation_status,
                )
        except (IndexError, KeyError, ValueError, etree.LxmlError) as e:
            # LayoutContractError is an AssertionError and passes through
            raise CorruptTemplateError(f"Corrupt template; filling the {variant.value} document failed: {e!r}") from e

        data = serialize(document)
        logger.info("Generated %s document for %s (%d bytes)", variant.value, project.name, len(data))
        return data
