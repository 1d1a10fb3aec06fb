"""
Format optimization options.

Options are nested frozen dataclasses and are always fully populated:
callers supply partial overrides as nested dicts which are merged
section by section onto a format's defaults.
"""

from dataclasses import dataclass, fields, is_dataclass, replace
from typing import Any, Mapping, Optional

from .models import ExportFormat


PAGE_SIZES = ("A4", "Letter", "Legal")
ORIENTATIONS = ("portrait", "landscape")
COMPLIANCE_LEVELS = ("standard", "enhanced", "regulatory")
BRANDING_LEVELS = ("minimal", "standard", "comprehensive")
CONFIDENTIALITY_LEVELS = ("internal", "confidential", "restricted")
QUALITY_LEVELS = ("draft", "standard", "high", "print")


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ValueError(f"{name} must be one of {list(choices)}, got {value!r}")


@dataclass(frozen=True)
class Typography:
    """Font settings."""

    font_family: str = "Arial, sans-serif"
    font_size: float = 11  # Points
    line_height: float = 1.4
    heading_scale: tuple[float, ...] = (24, 20, 16, 14, 12)

    def __post_init__(self):
        if not isinstance(self.heading_scale, tuple):
            object.__setattr__(self, "heading_scale", tuple(self.heading_scale))
        if self.font_size <= 0:
            raise ValueError(f"font_size must be positive, got {self.font_size}")
        if len(self.heading_scale) < 2:
            raise ValueError("heading_scale needs at least two sizes")


@dataclass(frozen=True)
class Margins:
    """Page margins in inches."""

    top: float = 1
    bottom: float = 1
    left: float = 1
    right: float = 1


@dataclass(frozen=True)
class Spacing:
    """Vertical spacing in points."""

    paragraphs: float = 6
    sections: float = 12
    lists: float = 4


@dataclass(frozen=True)
class Layout:
    """Page layout settings."""

    margins: Margins = Margins()
    page_size: str = "A4"
    orientation: str = "portrait"
    columns: int = 1
    spacing: Spacing = Spacing()

    def __post_init__(self):
        _check_choice("page_size", self.page_size, PAGE_SIZES)
        _check_choice("orientation", self.orientation, ORIENTATIONS)
        if self.columns < 1:
            raise ValueError(f"columns must be at least 1, got {self.columns}")


@dataclass(frozen=True)
class StructureOptions:
    """Which structural elements to include."""

    include_table_of_contents: bool = True
    include_executive_summary: bool = True
    include_appendices: bool = False
    section_numbering: bool = True
    page_numbers: bool = True
    headers: bool = True
    footers: bool = True


@dataclass(frozen=True)
class IndustryOptions:
    """Industry and compliance presentation."""

    sector: str = "private-equity"
    compliance_level: str = "standard"
    branding_level: str = "standard"
    confidentiality_level: str = "confidential"

    def __post_init__(self):
        _check_choice("compliance_level", self.compliance_level, COMPLIANCE_LEVELS)
        _check_choice("branding_level", self.branding_level, BRANDING_LEVELS)
        _check_choice(
            "confidentiality_level", self.confidentiality_level, CONFIDENTIALITY_LEVELS
        )


@dataclass(frozen=True)
class ExportPolicy:
    """Output quality and document permissions."""

    quality: str = "high"
    compression: bool = True
    allow_printing: bool = True
    allow_copying: bool = True
    allow_editing: bool = False
    watermark: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        _check_choice("quality", self.quality, QUALITY_LEVELS)

    @property
    def protected(self) -> bool:
        return self.password is not None


@dataclass(frozen=True)
class FormatOptimizationOptions:
    """Complete option set handed to a renderer."""

    typography: Typography = Typography()
    layout: Layout = Layout()
    structure: StructureOptions = StructureOptions()
    industry: IndustryOptions = IndustryOptions()
    export_options: ExportPolicy = ExportPolicy()

    def merge(
        self,
        overrides: Optional[Mapping[str, Any]],
    ) -> "FormatOptimizationOptions":
        """
        Return a copy with overrides applied section by section.

        Nested dicts update only the keys they name, e.g.
        ``{"structure": {"page_numbers": False}}`` keeps every other
        structure flag.

        Raises:
            ValueError: If an override names an unknown option or holds
                an invalid value
        """
        if overrides is None:
            return self
        if isinstance(overrides, FormatOptimizationOptions):
            return overrides
        return _merge_dataclass(self, overrides, "")

    def to_dict(self) -> dict:
        """Convert to nested dictionary representation."""
        return _dataclass_to_dict(self)


def _merge_dataclass(obj: Any, overrides: Any, path: str) -> Any:
    if isinstance(overrides, type(obj)):
        return overrides
    if not isinstance(overrides, Mapping):
        raise ValueError(
            f"Option '{path.rstrip('.') or 'options'}' expects a mapping, "
            f"got {type(overrides).__name__}"
        )

    names = {f.name for f in fields(obj)}
    changes = {}
    for key, value in overrides.items():
        if key not in names:
            raise ValueError(f"Unknown option '{path}{key}'")
        current = getattr(obj, key)
        if is_dataclass(current):
            changes[key] = _merge_dataclass(current, value, f"{path}{key}.")
        elif isinstance(current, tuple):
            changes[key] = tuple(value)
        else:
            changes[key] = value
    return replace(obj, **changes)


def _dataclass_to_dict(obj: Any) -> dict:
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if is_dataclass(value):
            result[f.name] = _dataclass_to_dict(value)
        elif isinstance(value, tuple):
            result[f.name] = list(value)
        else:
            result[f.name] = value
    return result


BASE_OPTIONS = FormatOptimizationOptions()

# Per-format adjustments applied on top of BASE_OPTIONS
FORMAT_DEFAULT_OVERRIDES: dict[ExportFormat, dict] = {
    ExportFormat.PDF: {
        "export_options": {"quality": "print"},
        "structure": {"page_numbers": True},
    },
    ExportFormat.DOCX: {
        "export_options": {"allow_editing": True},
        "structure": {"include_table_of_contents": False},
    },
    ExportFormat.HTML: {
        "structure": {"page_numbers": False},
    },
    ExportFormat.MARKDOWN: {
        "structure": {"page_numbers": False, "headers": False, "footers": False},
    },
}


def default_options_for(export_format: ExportFormat) -> FormatOptimizationOptions:
    """Default options for a target format."""
    return BASE_OPTIONS.merge(FORMAT_DEFAULT_OVERRIDES[export_format])
