"""
Generated document models.

Documents are immutable once generated; revisions produce a new
document rather than mutating the original.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from screening_engine.core.models import EvaluationMode
from screening_engine.export.models import (
    ExportFormat,
    StructuralDocument,
    StructuralSection,
    count_words,
)


class DocumentType(Enum):
    """Kinds of document the assembler produces."""

    INVESTMENT_SUMMARY = "investment_summary"
    COMMITTEE_MEMO = "committee_memo"
    DUE_DILIGENCE_PLAN = "due_diligence_plan"
    RISK_ASSESSMENT = "risk_assessment"


class GeneratedBy(Enum):
    """Whether a document came from a template or from AI assembly."""

    TEMPLATE = "template"
    AI = "ai"


@dataclass(frozen=True)
class DocumentSection:
    """A titled block of document text."""

    title: str
    content: str
    ai_generated: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "title": self.title,
            "content": self.content,
            "ai_generated": self.ai_generated,
        }


@dataclass(frozen=True)
class GeneratedDocument:
    """An assembled document."""

    id: str
    type: DocumentType
    title: str
    sections: tuple[DocumentSection, ...]
    format: ExportFormat
    generated_by: GeneratedBy
    review_required: bool
    created_at: datetime
    download_url: str
    opportunity_id: str = ""
    sector: str = ""

    def __post_init__(self):
        if not isinstance(self.sections, tuple):
            object.__setattr__(self, "sections", tuple(self.sections))

    @property
    def content(self) -> str:
        """Full document text: title heading followed by each section."""
        parts = [f"# {self.title}"]
        for section in self.sections:
            parts.append(f"## {section.title}\n\n{section.content}")
        return "\n\n".join(parts)

    @property
    def section_titles(self) -> list[str]:
        return [s.title for s in self.sections]

    @property
    def word_count(self) -> int:
        return count_words(self.content)

    def get_section(self, title: str) -> DocumentSection:
        """
        Get a section by title.

        Raises:
            KeyError: If the document has no section with that title
        """
        for section in self.sections:
            if section.title == title:
                return section
        raise KeyError(title)

    def revise(self, section_title: str, content: str) -> "GeneratedDocument":
        """
        Return a new document with one section's content replaced.

        The revised section is marked as analyst-authored.

        Raises:
            KeyError: If the document has no section with that title
        """
        self.get_section(section_title)
        sections = tuple(
            DocumentSection(s.title, content, ai_generated=False)
            if s.title == section_title
            else s
            for s in self.sections
        )
        return replace(self, sections=sections)

    def to_structural(self) -> StructuralDocument:
        """Format-agnostic view for the format optimizer."""
        return StructuralDocument(
            id=self.id,
            title=self.title,
            sector=self.sector,
            word_count=self.word_count,
            sections=tuple(
                StructuralSection(title=s.title, content=s.content)
                for s in self.sections
            ),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "format": self.format.value,
            "generated_by": self.generated_by.value,
            "review_required": self.review_required,
            "created_at": self.created_at.isoformat(),
            "download_url": self.download_url,
            "opportunity_id": self.opportunity_id,
            "sector": self.sector,
            "sections": [s.to_dict() for s in self.sections],
            "content": self.content,
        }


@dataclass
class DocumentGenerationResult:
    """A generated document plus assembly metadata."""

    document: GeneratedDocument
    generation_time: float  # Milliseconds
    automation_level: float  # 0-1, share of content produced without an analyst
    quality_score: float  # 0.5-0.95
    review_required: bool
    mode: EvaluationMode = EvaluationMode.ASSISTED

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "document": self.document.to_dict(),
            "generation_time": round(self.generation_time, 3),
            "automation_level": self.automation_level,
            "quality_score": self.quality_score,
            "review_required": self.review_required,
            "mode": self.mode.value,
        }
