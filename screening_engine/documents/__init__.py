"""
Document assembly for screened opportunities.

- models: Document types, sections, generated documents and results
- builders: Section builders and their supporting analyses
- assembler: Blueprints and the async generation entry points
"""

from .models import (
    DocumentType,
    GeneratedBy,
    DocumentSection,
    GeneratedDocument,
    DocumentGenerationResult,
)
from .builders import (
    ANALYST_PLACEHOLDER,
    DocumentContext,
    Workstream,
    Milestone,
    FocusArea,
    RiskCategoryAssessment,
    assess_risk_categories,
    generate_dd_timeline,
    generate_dd_workstreams,
    generate_next_steps,
    generate_risk_factors,
    overall_risk_level,
    risk_adjusted_score,
    similar_deal_metrics,
)
from .assembler import (
    BLUEPRINTS,
    DocumentBlueprint,
    SectionSpec,
    calculate_quality_score,
    parse_document_type,
    generate_document,
    generate_investment_summary,
    generate_committee_memo,
    generate_due_diligence_plan,
    generate_risk_assessment,
)

__all__ = [
    # Models
    "DocumentType",
    "GeneratedBy",
    "DocumentSection",
    "GeneratedDocument",
    "DocumentGenerationResult",
    # Builders
    "ANALYST_PLACEHOLDER",
    "DocumentContext",
    "Workstream",
    "Milestone",
    "FocusArea",
    "RiskCategoryAssessment",
    "assess_risk_categories",
    "generate_dd_timeline",
    "generate_dd_workstreams",
    "generate_next_steps",
    "generate_risk_factors",
    "overall_risk_level",
    "risk_adjusted_score",
    "similar_deal_metrics",
    # Assembler
    "BLUEPRINTS",
    "DocumentBlueprint",
    "SectionSpec",
    "calculate_quality_score",
    "parse_document_type",
    "generate_document",
    "generate_investment_summary",
    "generate_committee_memo",
    "generate_due_diligence_plan",
    "generate_risk_assessment",
]
