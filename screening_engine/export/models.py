"""
Export data models.

- ExportFormat: supported target formats
- StructuralDocument: format-agnostic title + sections input
- OptimizedFormatResult: rendered artifact plus metadata and URLs
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class UnsupportedFormatError(ValueError):
    """Raised when a document is requested in a format with no renderer."""

    def __init__(self, requested):
        self.requested = requested
        super().__init__(f"Unsupported format: {requested}")


class ExportFormat(Enum):
    """Supported export formats."""

    PDF = "pdf"
    DOCX = "docx"
    HTML = "html"
    MARKDOWN = "markdown"

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        """
        Parse a format name such as 'PDF', 'pdf' or 'Markdown'.

        Raises:
            UnsupportedFormatError: If the name is not a supported format
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedFormatError(value)


def count_words(text: str) -> int:
    """Whitespace-separated token count."""
    return len(text.split())


@dataclass(frozen=True)
class StructuralSection:
    """One titled block of a structural document."""

    title: str
    content: str

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"title": self.title, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> "StructuralSection":
        """Create from dictionary representation."""
        return cls(title=data["title"], content=data.get("content", ""))


@dataclass(frozen=True)
class StructuralDocument:
    """A format-agnostic document: a title and ordered sections."""

    title: str
    sections: tuple[StructuralSection, ...] = ()
    id: str = ""
    sector: str = ""
    word_count: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.sections, tuple):
            object.__setattr__(self, "sections", tuple(self.sections))

    @property
    def total_words(self) -> int:
        """Declared word count, or a count of the section text."""
        if self.word_count is not None:
            return self.word_count
        return sum(count_words(s.content) for s in self.sections)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "sector": self.sector,
            "word_count": self.total_words,
            "sections": [s.to_dict() for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StructuralDocument":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id", ""),
            title=data["title"],
            sector=data.get("sector", ""),
            word_count=data.get("word_count"),
            sections=tuple(
                StructuralSection.from_dict(s) for s in data.get("sections", [])
            ),
        )


@dataclass
class FormatMetadata:
    """Estimated properties of a rendered artifact."""

    format: ExportFormat
    file_size: int  # Estimated bytes
    page_count: int
    word_count: int
    quality_score: float  # 0.5-1.0
    processing_time: float  # Milliseconds
    optimizations_applied: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "format": self.format.value,
            "file_size": self.file_size,
            "page_count": self.page_count,
            "word_count": self.word_count,
            "optimizations_applied": self.optimizations_applied,
            "quality_score": self.quality_score,
            "processing_time": round(self.processing_time, 3),
        }


@dataclass
class OptimizedFormatResult:
    """Rendered artifact with metadata and access URLs."""

    content: str
    metadata: FormatMetadata
    download_url: str
    shareable_url: str
    preview_url: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "content": self.content,
            "metadata": self.metadata.to_dict(),
            "download_url": self.download_url,
            "preview_url": self.preview_url,
            "shareable_url": self.shareable_url,
        }


# Size multipliers relative to rendered text length
FILE_SIZE_MULTIPLIERS = {
    ExportFormat.PDF: 3.0,
    ExportFormat.DOCX: 2.0,
    ExportFormat.HTML: 1.2,
    ExportFormat.MARKDOWN: 1.0,
}

WORDS_PER_PAGE = 250


def estimate_file_size(content: str, export_format: ExportFormat) -> int:
    """Estimated artifact size in bytes."""
    return int(round(len(content) * FILE_SIZE_MULTIPLIERS[export_format]))


def estimate_page_count(word_count: int) -> int:
    """Pages needed at 250 words per page."""
    return math.ceil(word_count / WORDS_PER_PAGE)
