"""
Format optimizer.

Turns a structural document into a format-tailored artifact:
1. Resolve default options for the target format (or a template preset)
2. Merge caller overrides section by section
3. Dispatch to the format's renderer
4. Estimate size, pages, words and quality; build access URLs
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from screening_engine.config import get_config
from screening_engine.core.cancellation import CancellationToken, run_with_deadline

from .models import (
    ExportFormat,
    FormatMetadata,
    OptimizedFormatResult,
    StructuralDocument,
    UnsupportedFormatError,
    count_words,
    estimate_file_size,
    estimate_page_count,
)
from .options import FormatOptimizationOptions, default_options_for
from .renderers import Renderer, default_renderers
from .templates import FormatTemplateRegistry

logger = logging.getLogger(__name__)


# Quality heuristics
BASE_QUALITY = 0.80
QUALITY_BONUS = 0.05
MIN_QUALITY = 0.50
MAX_QUALITY = 1.0
SUBSTANTIAL_LENGTH = 1000
PDF_STRUCTURE_MARKER = "<<PDF"


def applied_optimizations(
    export_format: ExportFormat,
    options: FormatOptimizationOptions,
) -> list[str]:
    """Names of the optimizations the options switch on."""
    optimizations = [f"{export_format.name} format optimization"]
    if options.structure.include_table_of_contents:
        optimizations.append("Table of contents")
    if options.structure.section_numbering:
        optimizations.append("Section numbering")
    if options.export_options.quality == "print":
        optimizations.append("Print optimization")
    if options.industry.compliance_level == "enhanced":
        optimizations.append("Enhanced compliance")
    return optimizations


def score_format_quality(content: str, export_format: ExportFormat) -> float:
    """Heuristic readiness score for rendered content, within [0.5, 1.0]."""
    score = BASE_QUALITY
    if "Table of Contents" in content:
        score += QUALITY_BONUS
    if "Executive Summary" in content:
        score += QUALITY_BONUS
    if len(content) > SUBSTANTIAL_LENGTH:
        score += QUALITY_BONUS
    if export_format == ExportFormat.PDF and PDF_STRUCTURE_MARKER in content:
        score += QUALITY_BONUS
    return round(max(MIN_QUALITY, min(MAX_QUALITY, score)), 2)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormatOptimizer:
    """
    Renders structural documents into export formats.

    Args:
        registry: Format templates available for preset options
        clock: Returns the current time (for URLs and cover dates)
        renderers: Renderer per format (defaults to the built-in four)
    """

    def __init__(
        self,
        registry: FormatTemplateRegistry,
        clock: Optional[Callable[[], datetime]] = None,
        renderers: Optional[Mapping[ExportFormat, Renderer]] = None,
    ):
        self.registry = registry
        self.clock = clock or _utcnow
        self.renderers = dict(renderers) if renderers is not None else default_renderers()

    @property
    def supported_formats(self) -> list[ExportFormat]:
        return list(self.renderers)

    def resolve_options(
        self,
        export_format: ExportFormat,
        override_options: Optional[Mapping[str, Any]] = None,
        template_id: Optional[str] = None,
    ) -> FormatOptimizationOptions:
        """
        Final options for a render: defaults (or preset) plus overrides.

        Raises:
            TemplateNotFoundError: If template_id is not registered
            ValueError: If an override is unknown or invalid
        """
        if template_id is not None:
            template = self.registry.get_template(template_id)
            if template.format != export_format:
                logger.warning(
                    "Template %s targets %s but %s was requested",
                    template_id,
                    template.format.name,
                    export_format.name,
                )
            base = template.default_options
        else:
            base = default_options_for(export_format)
        return base.merge(override_options)

    async def optimize_for_format(
        self,
        document: StructuralDocument,
        target_format: Union[str, ExportFormat],
        override_options: Optional[Mapping[str, Any]] = None,
        *,
        template_id: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OptimizedFormatResult:
        """
        Render a document in the target format.

        Args:
            document: Title and sections to render
            target_format: PDF, DOCX, HTML or MARKDOWN
            override_options: Nested partial options merged onto the defaults
            template_id: Registry preset to use instead of the format defaults
            timeout: Seconds allowed (defaults to the configured timeout)
            cancel_token: Token checked before rendering

        Raises:
            UnsupportedFormatError: If the format has no renderer
            GenerationTimeoutError: If the timeout elapses
            GenerationCancelledError: If the token is cancelled
        """
        try:
            export_format = ExportFormat.parse(target_format)
            if export_format not in self.renderers:
                raise UnsupportedFormatError(export_format.name)
        except UnsupportedFormatError:
            logger.warning("Rejected export request for format %r", target_format)
            raise

        if timeout is None:
            timeout = get_config().generation.timeout_seconds

        operation = f"{export_format.name} export"
        return await run_with_deadline(
            self._optimize(document, export_format, override_options, template_id, cancel_token),
            timeout,
            operation,
        )

    async def _optimize(
        self,
        document: StructuralDocument,
        export_format: ExportFormat,
        override_options: Optional[Mapping[str, Any]],
        template_id: Optional[str],
        cancel_token: Optional[CancellationToken],
    ) -> OptimizedFormatResult:
        operation = f"{export_format.name} export"
        started = time.perf_counter()

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(operation)

        options = self.resolve_options(export_format, override_options, template_id)
        generated_at = self.clock()
        renderer = self.renderers[export_format]

        logger.debug(
            "Rendering %r (%d sections) with %s",
            document.title,
            len(document.sections),
            type(renderer).__name__,
        )
        content = renderer.render(document, options, generated_at)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(operation)

        word_count = count_words(content)
        metadata = FormatMetadata(
            format=export_format,
            file_size=estimate_file_size(content, export_format),
            page_count=estimate_page_count(word_count),
            word_count=word_count,
            optimizations_applied=applied_optimizations(export_format, options),
            quality_score=score_format_quality(content, export_format),
            processing_time=(time.perf_counter() - started) * 1000,
        )

        timestamp = int(generated_at.timestamp() * 1000)
        file_id = f"{document.id or 'document'}-{export_format.value}-{timestamp}"

        logger.info(
            "Exported %s as %s: %d words, quality %.2f",
            file_id,
            export_format.name,
            word_count,
            metadata.quality_score,
        )

        return OptimizedFormatResult(
            content=content,
            metadata=metadata,
            download_url=f"/api/documents/download/{file_id}",
            preview_url=(
                f"/api/documents/preview/{file_id}"
                if export_format == ExportFormat.HTML
                else None
            ),
            shareable_url=f"/api/documents/share/{file_id}",
        )
