"""
Curated format templates.

A FormatTemplate pairs a target format with a preset option set. The
FormatTemplateRegistry is built once at startup and is read-only
afterwards; pass it to the components that need it.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Union

from .models import ExportFormat
from .options import (
    ExportPolicy,
    FormatOptimizationOptions,
    IndustryOptions,
    Layout,
    Margins,
    Spacing,
    StructureOptions,
    Typography,
)

GENERAL_INDUSTRY = "general"


class TemplateNotFoundError(LookupError):
    """Raised when a format template ID is not registered."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Format template not found: {template_id}")


@dataclass(frozen=True)
class FormatTemplate:
    """A named preset of format options."""

    id: str
    name: str
    format: ExportFormat
    industry: str
    description: str
    default_options: FormatOptimizationOptions
    usage_count: int = 0
    rating: float = 0.0
    features: tuple[str, ...] = ()

    def matches_industry(self, industry: str) -> bool:
        """True for templates of the industry or of the general bucket."""
        return self.industry in (industry, GENERAL_INDUSTRY)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "format": self.format.value,
            "industry": self.industry,
            "description": self.description,
            "default_options": self.default_options.to_dict(),
            "usage_count": self.usage_count,
            "rating": self.rating,
            "features": list(self.features),
        }


class FormatTemplateRegistry:
    """Immutable collection of format templates keyed by ID."""

    def __init__(self, templates: Iterable[FormatTemplate]):
        by_id: dict[str, FormatTemplate] = {}
        for template in templates:
            if template.id in by_id:
                raise ValueError(f"Duplicate format template ID: {template.id}")
            by_id[template.id] = template
        self._templates = MappingProxyType(by_id)

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[FormatTemplate]:
        return iter(self._templates.values())

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def get_template(self, template_id: str) -> FormatTemplate:
        """
        Get a template by ID.

        Raises:
            TemplateNotFoundError: If no template has that ID
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id) from None

    def get_format_templates(
        self,
        format: Optional[Union[str, ExportFormat]] = None,
        industry: Optional[str] = None,
    ) -> list[FormatTemplate]:
        """
        List templates, best rated first.

        Args:
            format: Only templates for this format
            industry: Only templates for this industry or the general bucket
        """
        templates = list(self._templates.values())

        if format is not None:
            export_format = ExportFormat.parse(format)
            templates = [t for t in templates if t.format == export_format]

        if industry:
            templates = [t for t in templates if t.matches_industry(industry)]

        return sorted(templates, key=lambda t: t.rating, reverse=True)


# =============================================================================
# Curated presets
# =============================================================================

EXECUTIVE_PDF_OPTIONS = FormatOptimizationOptions(
    typography=Typography(
        font_family="Times New Roman",
        font_size=12,
        line_height=1.5,
        heading_scale=(18, 16, 14, 12, 11),
    ),
    layout=Layout(spacing=Spacing(paragraphs=8, sections=16, lists=4)),
    structure=StructureOptions(),
    industry=IndustryOptions(
        compliance_level="enhanced",
        branding_level="comprehensive",
    ),
    export_options=ExportPolicy(
        quality="print",
        compression=False,
        allow_copying=False,
    ),
)

COLLABORATIVE_DOCX_OPTIONS = FormatOptimizationOptions(
    typography=Typography(
        font_family="Calibri",
        font_size=11,
        line_height=1.4,
        heading_scale=(16, 14, 12, 11, 10),
    ),
    structure=StructureOptions(
        include_table_of_contents=False,
        include_executive_summary=False,
        section_numbering=False,
        headers=False,
        footers=False,
    ),
    industry=IndustryOptions(
        sector="general",
        branding_level="minimal",
        confidentiality_level="internal",
    ),
    export_options=ExportPolicy(quality="standard", allow_editing=True),
)

INTERACTIVE_HTML_OPTIONS = FormatOptimizationOptions(
    typography=Typography(
        font_family="Arial, sans-serif",
        font_size=14,
        line_height=1.6,
        heading_scale=(28, 24, 20, 16, 14),
    ),
    layout=Layout(
        margins=Margins(top=0, bottom=0, left=0, right=0),
        spacing=Spacing(paragraphs=16, sections=24, lists=8),
    ),
    structure=StructureOptions(include_executive_summary=False, page_numbers=False),
    industry=IndustryOptions(sector="technology", confidentiality_level="internal"),
    export_options=ExportPolicy(quality="high"),
)

TECHNICAL_MARKDOWN_OPTIONS = FormatOptimizationOptions(
    typography=Typography(
        font_family="Monaco, monospace",
        font_size=12,
        line_height=1.5,
    ),
    layout=Layout(
        margins=Margins(top=0, bottom=0, left=0, right=0),
        spacing=Spacing(paragraphs=8, sections=16, lists=4),
    ),
    structure=StructureOptions(
        include_executive_summary=False,
        include_appendices=True,
        section_numbering=False,
        page_numbers=False,
        headers=False,
        footers=False,
    ),
    industry=IndustryOptions(
        sector="technology",
        branding_level="minimal",
        confidentiality_level="internal",
    ),
    export_options=ExportPolicy(
        quality="standard",
        compression=False,
        allow_editing=True,
    ),
)


DEFAULT_TEMPLATES = (
    FormatTemplate(
        id="pdf-executive-summary",
        name="Executive Summary (PDF)",
        format=ExportFormat.PDF,
        industry="private-equity",
        description="Professional PDF format optimized for executive presentations",
        default_options=EXECUTIVE_PDF_OPTIONS,
        usage_count=156,
        rating=4.8,
        features=(
            "Executive formatting",
            "Charts optimization",
            "Print-ready",
            "Professional typography",
        ),
    ),
    FormatTemplate(
        id="docx-collaborative",
        name="Collaborative Document (DOCX)",
        format=ExportFormat.DOCX,
        industry=GENERAL_INDUSTRY,
        description="DOCX format optimized for team collaboration and review",
        default_options=COLLABORATIVE_DOCX_OPTIONS,
        usage_count=243,
        rating=4.6,
        features=("Comment-ready", "Track changes", "Review workflow", "Team sharing"),
    ),
    FormatTemplate(
        id="html-interactive",
        name="Interactive Report (HTML)",
        format=ExportFormat.HTML,
        industry="technology",
        description="Interactive HTML format with charts and data visualization",
        default_options=INTERACTIVE_HTML_OPTIONS,
        usage_count=87,
        rating=4.7,
        features=(
            "Interactive charts",
            "Responsive design",
            "Web sharing",
            "Search functionality",
        ),
    ),
    FormatTemplate(
        id="markdown-documentation",
        name="Technical Documentation (Markdown)",
        format=ExportFormat.MARKDOWN,
        industry="technology",
        description="Clean Markdown format for technical documentation and version control",
        default_options=TECHNICAL_MARKDOWN_OPTIONS,
        usage_count=124,
        rating=4.5,
        features=(
            "Version control ready",
            "GitHub compatible",
            "Clean syntax",
            "Developer friendly",
        ),
    ),
)


def create_default_registry() -> FormatTemplateRegistry:
    """Registry holding the curated presets."""
    return FormatTemplateRegistry(DEFAULT_TEMPLATES)
