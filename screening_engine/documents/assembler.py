"""
Document assembler.

Composes investment summaries, committee memos, due-diligence plans and
risk assessments from section builders. Each document type is described
by a DocumentBlueprint:
- Ordered section specs (title, builder, analyst-section flag)
- Automation level per evaluation mode
- Output format, id prefix and title prefix
- Review and generated-by rules

In traditional mode analyst sections keep their place but carry a
placeholder instead of generated text.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from screening_engine.config import get_config
from screening_engine.core.cancellation import CancellationToken, run_with_deadline
from screening_engine.core.models import (
    EvaluationMode,
    Opportunity,
    PostScreeningWorkflow,
    ScreeningResult,
)
from screening_engine.core.rules import LARGE_DEAL
from screening_engine.core.validation import ValidationError, parse_mode
from screening_engine.export.models import ExportFormat

from . import builders
from .builders import ANALYST_PLACEHOLDER, DocumentContext
from .models import (
    DocumentGenerationResult,
    DocumentSection,
    DocumentType,
    GeneratedBy,
    GeneratedDocument,
)

logger = logging.getLogger(__name__)


# Quality scoring
BASE_QUALITY = 0.70
SCORE_QUALITY_WEIGHT = 0.20
MIN_QUALITY = 0.50
MAX_QUALITY = 0.95
MODE_QUALITY_BONUS = {
    EvaluationMode.AUTONOMOUS: 0.10,
    EvaluationMode.ASSISTED: 0.05,
    EvaluationMode.TRADITIONAL: 0.0,
}

AUTONOMOUS_SUMMARY_QUALITY = 0.85
AUTONOMOUS_RISK_SCORE = 70

Builder = Callable[[DocumentContext], Optional[str]]


@dataclass(frozen=True)
class SectionSpec:
    """One section of a blueprint."""

    title: str
    builder: Builder
    analyst_section: bool = False

    def build(self, ctx: DocumentContext) -> Optional[DocumentSection]:
        """Build the section, or None when the builder omits it."""
        if self.analyst_section and ctx.mode == EvaluationMode.TRADITIONAL:
            return DocumentSection(self.title, ANALYST_PLACEHOLDER, ai_generated=False)

        content = self.builder(ctx)
        if content is None:
            return None
        return DocumentSection(
            self.title,
            content,
            ai_generated=self.analyst_section and ctx.mode != EvaluationMode.TRADITIONAL,
        )


@dataclass(frozen=True)
class DocumentBlueprint:
    """Everything needed to assemble one document type."""

    document_type: DocumentType
    id_prefix: str
    title_prefix: str
    format: ExportFormat
    sections: tuple[SectionSpec, ...]
    automation_levels: dict[EvaluationMode, float]
    ai_modes: frozenset[EvaluationMode]
    needs_review: Callable[[DocumentContext, float], bool]

    def automation_level(self, mode: EvaluationMode) -> float:
        return self.automation_levels[mode]

    def generated_by(self, mode: EvaluationMode) -> GeneratedBy:
        return GeneratedBy.AI if mode in self.ai_modes else GeneratedBy.TEMPLATE


def calculate_quality_score(total_score: float, mode: EvaluationMode) -> float:
    """Document quality from the screening score and evaluation mode."""
    quality = BASE_QUALITY + (total_score / 100) * SCORE_QUALITY_WEIGHT
    quality += MODE_QUALITY_BONUS[mode]
    return round(max(MIN_QUALITY, min(MAX_QUALITY, quality)), 4)


def _summary_needs_review(ctx: DocumentContext, quality: float) -> bool:
    return not (
        ctx.mode == EvaluationMode.AUTONOMOUS and quality >= AUTONOMOUS_SUMMARY_QUALITY
    )


def _memo_needs_review(ctx: DocumentContext, quality: float) -> bool:
    return True


def _dd_plan_needs_review(ctx: DocumentContext, quality: float) -> bool:
    return not (
        ctx.mode == EvaluationMode.AUTONOMOUS and ctx.opportunity.ask_price <= LARGE_DEAL
    )


def _risk_needs_review(ctx: DocumentContext, quality: float) -> bool:
    return not (
        ctx.mode == EvaluationMode.AUTONOMOUS and ctx.total_score >= AUTONOMOUS_RISK_SCORE
    )


def _levels(autonomous: float, assisted: float, traditional: float) -> dict:
    return {
        EvaluationMode.AUTONOMOUS: autonomous,
        EvaluationMode.ASSISTED: assisted,
        EvaluationMode.TRADITIONAL: traditional,
    }


_NON_TRADITIONAL = frozenset({EvaluationMode.AUTONOMOUS, EvaluationMode.ASSISTED})


BLUEPRINTS: dict[DocumentType, DocumentBlueprint] = {
    DocumentType.INVESTMENT_SUMMARY: DocumentBlueprint(
        document_type=DocumentType.INVESTMENT_SUMMARY,
        id_prefix="summary",
        title_prefix="Investment Summary",
        format=ExportFormat.PDF,
        sections=(
            SectionSpec("Executive Summary", builders.build_summary_header),
            SectionSpec("Investment Thesis", builders.build_investment_thesis, analyst_section=True),
            SectionSpec("Deal Overview", builders.build_deal_overview),
            SectionSpec("Screening Analysis", builders.build_screening_analysis),
            SectionSpec("Key Risk Factors", builders.build_key_risk_factors, analyst_section=True),
            SectionSpec("Recommended Next Steps", builders.build_next_steps),
            SectionSpec("Financial Projections", builders.build_financial_projections),
        ),
        automation_levels=_levels(0.95, 0.75, 0.35),
        ai_modes=_NON_TRADITIONAL,
        needs_review=_summary_needs_review,
    ),
    DocumentType.COMMITTEE_MEMO: DocumentBlueprint(
        document_type=DocumentType.COMMITTEE_MEMO,
        id_prefix="memo",
        title_prefix="Investment Committee Memo",
        format=ExportFormat.PDF,
        sections=(
            SectionSpec("Memorandum", builders.build_memo_header),
            SectionSpec("Executive Summary", builders.build_memo_executive_summary),
            SectionSpec("Deal Terms", builders.build_deal_terms),
            SectionSpec("Investment Rationale", builders.build_investment_rationale, analyst_section=True),
            SectionSpec("Risk Analysis", builders.build_risk_analysis),
            SectionSpec("Comparative Analysis", builders.build_comparative_analysis),
            SectionSpec("Committee Recommendation", builders.build_committee_recommendation),
            SectionSpec("Appendices", builders.build_appendices),
        ),
        automation_levels=_levels(0.90, 0.70, 0.40),
        ai_modes=_NON_TRADITIONAL,
        needs_review=_memo_needs_review,
    ),
    DocumentType.DUE_DILIGENCE_PLAN: DocumentBlueprint(
        document_type=DocumentType.DUE_DILIGENCE_PLAN,
        id_prefix="ddplan",
        title_prefix="Due Diligence Plan",
        format=ExportFormat.DOCX,
        sections=(
            SectionSpec("Due Diligence Overview", builders.build_dd_overview),
            SectionSpec("Due Diligence Workstreams", builders.build_dd_workstreams),
            SectionSpec("Project Timeline", builders.build_dd_timeline),
            SectionSpec("Risk-Based Focus Areas", builders.build_risk_based_focus, analyst_section=True),
            SectionSpec("Resource Requirements", builders.build_resource_requirements),
        ),
        automation_levels=_levels(0.85, 0.60, 0.25),
        ai_modes=frozenset({EvaluationMode.AUTONOMOUS}),
        needs_review=_dd_plan_needs_review,
    ),
    DocumentType.RISK_ASSESSMENT: DocumentBlueprint(
        document_type=DocumentType.RISK_ASSESSMENT,
        id_prefix="risk",
        title_prefix="Risk Assessment",
        format=ExportFormat.PDF,
        sections=(
            SectionSpec("Risk Summary", builders.build_risk_summary),
            SectionSpec("Risk Assessment Framework", builders.build_risk_framework),
            SectionSpec("Financial Risk Analysis", builders.risk_category_builder("Financial")),
            SectionSpec("Operational Risk Analysis", builders.risk_category_builder("Operational")),
            SectionSpec("Strategic Risk Analysis", builders.risk_category_builder("Strategic")),
            SectionSpec("External Risk Analysis", builders.risk_category_builder("External")),
            SectionSpec("Risk Heat Map", builders.build_risk_heat_map),
            SectionSpec("Investment Decision Impact", builders.build_decision_impact),
            SectionSpec("Ongoing Risk Monitoring", builders.build_risk_monitoring),
        ),
        automation_levels=_levels(0.80, 0.65, 0.30),
        ai_modes=_NON_TRADITIONAL,
        needs_review=_risk_needs_review,
    ),
}


def parse_document_type(value: Union[str, DocumentType]) -> DocumentType:
    """
    Parse a document type from its value.

    Raises:
        ValidationError: If the value is not a known document type
    """
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in DocumentType)
        raise ValidationError(
            "document_type",
            f"Invalid document type '{value}' (expected one of: {valid})",
            value,
        ) from None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _assemble(
    blueprint: DocumentBlueprint,
    ctx: DocumentContext,
    created_at: datetime,
    cancel_token: Optional[CancellationToken],
) -> DocumentGenerationResult:
    started = time.perf_counter()
    operation = f"{blueprint.title_prefix} generation"
    opportunity = ctx.opportunity

    sections = []
    for spec in blueprint.sections:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(operation)
        section = spec.build(ctx)
        if section is not None:
            sections.append(section)
        # Yield so timeouts and cancellation can interleave
        await asyncio.sleep(0)

    if cancel_token is not None:
        cancel_token.raise_if_cancelled(operation)

    quality = calculate_quality_score(ctx.total_score, ctx.mode)
    review_required = blueprint.needs_review(ctx, quality)
    document_id = (
        f"{blueprint.id_prefix}-{opportunity.id}-{int(created_at.timestamp() * 1000)}"
    )

    document = GeneratedDocument(
        id=document_id,
        type=blueprint.document_type,
        title=f"{blueprint.title_prefix} - {opportunity.display_name}",
        sections=tuple(sections),
        format=blueprint.format,
        generated_by=blueprint.generated_by(ctx.mode),
        review_required=review_required,
        created_at=created_at,
        download_url=f"/api/documents/download/{document_id}.{blueprint.format.value}",
        opportunity_id=opportunity.id,
        sector=opportunity.sector,
    )

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "Generated %s (%d sections, %s mode, quality %.2f, review=%s)",
        document_id,
        len(sections),
        ctx.mode.value,
        quality,
        review_required,
    )

    return DocumentGenerationResult(
        document=document,
        generation_time=elapsed_ms,
        automation_level=blueprint.automation_level(ctx.mode),
        quality_score=quality,
        review_required=review_required,
        mode=ctx.mode,
    )


async def generate_document(
    document_type: Union[str, DocumentType],
    opportunity: Opportunity,
    screening_result: ScreeningResult,
    mode: Union[str, EvaluationMode] = EvaluationMode.ASSISTED,
    workflow: Optional[PostScreeningWorkflow] = None,
    *,
    timeout: Optional[float] = None,
    cancel_token: Optional[CancellationToken] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> DocumentGenerationResult:
    """
    Assemble a document of the given type.

    Args:
        document_type: Which document to produce
        opportunity: The deal being documented
        screening_result: Its screening outcome
        mode: Evaluation mode (enum or its string value)
        workflow: Post-screening workflow, referenced by committee memos
        timeout: Seconds allowed (defaults to the configured timeout)
        cancel_token: Token checked between sections
        clock: Returns the current time (for ids and dates)

    Raises:
        ValidationError: If the document type or mode is unknown
        GenerationTimeoutError: If the timeout elapses
        GenerationCancelledError: If the token is cancelled
    """
    blueprint = BLUEPRINTS[parse_document_type(document_type)]
    mode = parse_mode(mode)
    created_at = (clock or _utcnow)()

    ctx = DocumentContext(
        opportunity=opportunity,
        screening_result=screening_result,
        mode=mode,
        workflow=workflow,
        as_of=created_at.date(),
    )

    if timeout is None:
        timeout = get_config().generation.timeout_seconds

    logger.debug(
        "Assembling %s for %s in %s mode",
        blueprint.document_type.value,
        opportunity.id,
        mode.value,
    )
    return await run_with_deadline(
        _assemble(blueprint, ctx, created_at, cancel_token),
        timeout,
        f"{blueprint.title_prefix} generation",
    )


async def generate_investment_summary(
    opportunity: Opportunity,
    screening_result: ScreeningResult,
    mode: Union[str, EvaluationMode] = EvaluationMode.ASSISTED,
    **kwargs,
) -> DocumentGenerationResult:
    """Investment summary for a screened opportunity."""
    return await generate_document(
        DocumentType.INVESTMENT_SUMMARY, opportunity, screening_result, mode, **kwargs
    )


async def generate_committee_memo(
    opportunity: Opportunity,
    screening_result: ScreeningResult,
    workflow: Optional[PostScreeningWorkflow] = None,
    mode: Union[str, EvaluationMode] = EvaluationMode.ASSISTED,
    **kwargs,
) -> DocumentGenerationResult:
    """Investment committee memo; always flagged for review."""
    return await generate_document(
        DocumentType.COMMITTEE_MEMO, opportunity, screening_result, mode, workflow, **kwargs
    )


async def generate_due_diligence_plan(
    opportunity: Opportunity,
    screening_result: ScreeningResult,
    mode: Union[str, EvaluationMode] = EvaluationMode.ASSISTED,
    **kwargs,
) -> DocumentGenerationResult:
    """Due-diligence plan with workstreams derived from the deal profile."""
    return await generate_document(
        DocumentType.DUE_DILIGENCE_PLAN, opportunity, screening_result, mode, **kwargs
    )


async def generate_risk_assessment(
    opportunity: Opportunity,
    screening_result: ScreeningResult,
    mode: Union[str, EvaluationMode] = EvaluationMode.ASSISTED,
    **kwargs,
) -> DocumentGenerationResult:
    return await generate_document(
        DocumentType.RISK_ASSESSMENT, opportunity, screening_result, mode, **kwargs
    )
