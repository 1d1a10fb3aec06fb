"""
Export formatting for generated documents.

- models: Export formats, structural documents, optimized results
- options: Nested format options and per-format defaults
- templates: Curated option presets and their registry
- renderers: PDF, DOCX, HTML and Markdown renderers
- optimizer: FormatOptimizer tying options, renderers and metadata together
"""

from .models import (
    ExportFormat,
    FormatMetadata,
    OptimizedFormatResult,
    StructuralDocument,
    StructuralSection,
    UnsupportedFormatError,
    count_words,
)
from .options import (
    FormatOptimizationOptions,
    Typography,
    Layout,
    Margins,
    Spacing,
    StructureOptions,
    IndustryOptions,
    ExportPolicy,
    default_options_for,
)
from .templates import (
    FormatTemplate,
    FormatTemplateRegistry,
    TemplateNotFoundError,
    create_default_registry,
)
from .renderers import (
    Renderer,
    PdfRenderer,
    DocxRenderer,
    HtmlRenderer,
    MarkdownRenderer,
    anchor_for,
    default_renderers,
)
from .optimizer import (
    FormatOptimizer,
    applied_optimizations,
    score_format_quality,
)

__all__ = [
    # Models
    "ExportFormat",
    "FormatMetadata",
    "OptimizedFormatResult",
    "StructuralDocument",
    "StructuralSection",
    "UnsupportedFormatError",
    "count_words",
    # Options
    "FormatOptimizationOptions",
    "Typography",
    "Layout",
    "Margins",
    "Spacing",
    "StructureOptions",
    "IndustryOptions",
    "ExportPolicy",
    "default_options_for",
    # Templates
    "FormatTemplate",
    "FormatTemplateRegistry",
    "TemplateNotFoundError",
    "create_default_registry",
    # Renderers
    "Renderer",
    "PdfRenderer",
    "DocxRenderer",
    "HtmlRenderer",
    "MarkdownRenderer",
    "anchor_for",
    "default_renderers",
    # Optimizer
    "FormatOptimizer",
    "applied_optimizations",
    "score_format_quality",
]
