"""
Deal Screening Engine - FastAPI Web Application

Internal API over the scoring engine, document assembler and format
optimizer.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from screening_engine import __version__
from screening_engine.config import get_config
from screening_engine.core import (
    CriterionCategory,
    EvaluationMode,
    Recommendation,
    WorkflowStage,
    Opportunity,
    Criterion,
    ScreeningTemplate,
    ScreeningResult,
    PostScreeningWorkflow,
    ValidationError,
    GenerationTimeoutError,
    validate_opportunity,
    generate_suggestion,
    generate_batch_suggestions,
)
from screening_engine.documents import DocumentType, generate_document
from screening_engine.export import (
    ExportFormat,
    FormatOptimizer,
    FormatTemplateRegistry,
    StructuralDocument,
    TemplateNotFoundError,
    create_default_registry,
)
from screening_engine.utils import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_config().logging)
    get_optimizer()
    logger.info("Deal Screening Engine %s started", __version__)
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Deal Screening Engine",
    description="Deal Scoring, Document Assembly and Export API",
    version=__version__,
    lifespan=lifespan,
)

# Global instances
_registry: Optional[FormatTemplateRegistry] = None
_optimizer: Optional[FormatOptimizer] = None


def get_registry() -> FormatTemplateRegistry:
    """Get or create the format template registry."""
    global _registry
    if _registry is None:
        _registry = create_default_registry()
    return _registry


def get_optimizer() -> FormatOptimizer:
    """Get or create the format optimizer bound to the registry."""
    global _optimizer
    if _optimizer is None:
        _optimizer = FormatOptimizer(get_registry())
    return _optimizer


# Pydantic models for request/response
class OpportunityInput(BaseModel):
    sector: str
    asset_type: str
    geography: str
    vintage: str
    ask_price: float
    id: str = ""
    name: str = ""
    description: str = ""
    seller: Optional[str] = None
    expected_irr: Optional[float] = None
    expected_multiple: Optional[float] = None
    expected_risk: Optional[float] = None
    expected_holding_period: Optional[float] = None
    ai_confidence: Optional[float] = None
    similar_deals: Optional[list[str]] = None


class CriterionInput(BaseModel):
    id: str
    category: str
    min_value: float
    max_value: float
    weight: float = 1.0
    name: str = ""
    description: str = ""


class TemplateInput(BaseModel):
    id: str = ""
    name: str = ""
    description: str = ""
    criteria: list[CriterionInput] = []


class SuggestionRequest(BaseModel):
    opportunity: OpportunityInput
    criterion: CriterionInput
    reference_year: Optional[int] = None


class BatchSuggestionRequest(BaseModel):
    opportunity: OpportunityInput
    template: TemplateInput
    reference_year: Optional[int] = None


class CriterionScoreInput(BaseModel):
    criterion_id: str
    value: float
    normalized_score: float = 0.0
    weighted_score: float = 0.0


class ScreeningResultInput(BaseModel):
    total_score: float
    recommendation: str
    criteria_scores: list[CriterionScoreInput] = []
    id: str = ""
    opportunity_id: str = ""


class WorkflowInput(BaseModel):
    id: str
    opportunity_id: str = ""
    current_stage: str = "routing"
    automation_level: str = "assisted"


class DocumentRequest(BaseModel):
    opportunity: OpportunityInput
    screening_result: ScreeningResultInput
    mode: str = "assisted"
    workflow: Optional[WorkflowInput] = None
    timeout: Optional[float] = None


class SectionInput(BaseModel):
    title: str
    content: str


class StructuralDocumentInput(BaseModel):
    title: str
    sections: list[SectionInput] = []
    id: str = ""
    sector: str = ""


class ExportRequest(BaseModel):
    document: StructuralDocumentInput
    format: str
    options: dict[str, Any] = {}
    template_id: Optional[str] = None
    timeout: Optional[float] = None


# Routes

@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
        "format_templates": len(get_registry()),
    }


@app.get("/api/enums")
async def get_enums():
    """Get available enum values for form dropdowns."""
    return {
        "criterion_categories": [e.value for e in CriterionCategory],
        "evaluation_modes": [e.value for e in EvaluationMode],
        "recommendations": [e.value for e in Recommendation],
        "workflow_stages": [e.value for e in WorkflowStage],
        "document_types": [e.value for e in DocumentType],
        "export_formats": [e.value for e in ExportFormat],
    }


@app.post("/api/suggestions")
async def suggest_score(data: SuggestionRequest):
    """Suggest a score for one criterion."""
    try:
        opportunity = _to_opportunity(data.opportunity)
        criterion = Criterion.from_dict(data.criterion.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    suggestion = generate_suggestion(
        opportunity, criterion, reference_year=data.reference_year
    )
    return suggestion.to_dict()


@app.post("/api/suggestions/batch")
async def suggest_scores(data: BatchSuggestionRequest):
    """Suggest scores for every criterion in a template."""
    try:
        opportunity = _to_opportunity(data.opportunity)
        template = ScreeningTemplate.from_dict(data.template.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not template.criteria:
        raise HTTPException(status_code=400, detail="Template has no criteria")

    suggestions = generate_batch_suggestions(
        opportunity, template, reference_year=data.reference_year
    )
    return {
        "template_id": template.id,
        "suggestions": {cid: s.to_dict() for cid, s in suggestions.items()},
        "count": len(suggestions),
    }


@app.post("/api/documents/{document_type}")
async def create_document(document_type: str, data: DocumentRequest):
    """Generate a document for a screened opportunity."""
    try:
        opportunity = _to_opportunity(data.opportunity)
        screening_result = ScreeningResult.from_dict(data.screening_result.model_dump())
        workflow = (
            PostScreeningWorkflow.from_dict(data.workflow.model_dump())
            if data.workflow is not None
            else None
        )
        result = await generate_document(
            document_type,
            opportunity,
            screening_result,
            data.mode,
            workflow,
            timeout=data.timeout,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        # Unknown recommendation or workflow stage values
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))

    return result.to_dict()


@app.post("/api/export")
async def export_document(data: ExportRequest):
    """Render a structural document in the requested format."""
    document = StructuralDocument.from_dict(data.document.model_dump())

    try:
        result = await get_optimizer().optimize_for_format(
            document,
            data.format,
            data.options,
            template_id=data.template_id,
            timeout=data.timeout,
        )
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        # Unsupported formats and invalid option overrides
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))

    return result.to_dict()


@app.get("/api/format-templates")
async def list_format_templates(format: Optional[str] = None, industry: Optional[str] = None):
    """List format templates, best rated first."""
    try:
        templates = get_registry().get_format_templates(format=format, industry=industry)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "templates": [t.to_dict() for t in templates],
        "count": len(templates),
    }


@app.get("/api/format-templates/{template_id}")
async def get_format_template(template_id: str):
    """Get a single format template by ID."""
    try:
        return get_registry().get_template(template_id).to_dict()
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# Helper functions

def _to_opportunity(data: OpportunityInput) -> Opportunity:
    """Convert request input to a validated Opportunity."""
    opportunity = Opportunity.from_dict(data.model_dump())
    result = validate_opportunity(opportunity)
    if not result.is_valid:
        raise result.errors[0]
    for warning in result.warnings:
        logger.debug("Opportunity %s: %s", opportunity.id or "(unsaved)", warning)
    return opportunity
