# config.py
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class DocxConfig:
    # Text formatting
    font_size: int = 12
    alert_color: str = "E95850"
    link_color: str = "0563C1"
    # Twips per cell in the external identifier table
    table_width: int = 8800
    heading_style: str = "Heading 2"
    subsection_style: str = "Heading 3"
    bullet_style: str = "List Bullet"
    # First overview-table row that receives attendees
    attendee_first_row: int = 7

@dataclass
class ObligationConfig:
    # A license id must be cited at least this often to get its own table group
    common_license_threshold: int = 3
    # "last_wins" keeps one obligation per license, "keep_all" keeps every one
    grouping_policy: str = "last_wins"

@dataclass
class TemplateConfig:
    # None means the templates are authored in memory
    template_dir: Optional[str] = None
    disclosure_file: str = "templateFrontpageContent.docx"
    report_file: str = "templateReport.docx"

@dataclass
class AppConfig:
    docx: DocxConfig = field(default_factory=DocxConfig)
    obligations: ObligationConfig = field(default_factory=ObligationConfig)
    templates: TemplateConfig = field(default_factory=TemplateConfig)

# Global defaults used across modules
DEFAULTS = AppConfig()
