#!/usr/bin/env python3
"""
Deal Screening Engine - Pipeline Demo

Demonstrates the full pipeline:
- Opportunity validation
- Per-criterion scoring suggestions against a screening template
- Document assembly in each evaluation mode
- Format optimization into PDF, DOCX, HTML and Markdown

Run with: python run.py
"""

import asyncio
import json
from datetime import datetime, timezone

from screening_engine.config import get_config
from screening_engine.core import (
    CriterionCategory,
    EvaluationMode,
    Recommendation,
    WorkflowStage,
    Opportunity,
    Criterion,
    ScreeningTemplate,
    CriterionScore,
    ScreeningResult,
    PostScreeningWorkflow,
    format_currency,
    validate_opportunity,
    generate_batch_suggestions,
)
from screening_engine.documents import (
    DocumentType,
    generate_committee_memo,
    generate_document,
)
from screening_engine.export import (
    ExportFormat,
    FormatOptimizer,
    create_default_registry,
)
from screening_engine.utils import configure_logging


def create_sample_opportunity() -> Opportunity:
    """Create a sample technology buyout for demonstration."""
    return Opportunity(
        id="OPP-2024-017",
        name="Northwind Analytics",
        description="Vertical SaaS platform for mid-market logistics operators.",
        seller="Harbor Growth Partners",
        sector="Technology",
        asset_type="direct",
        geography="North America",
        vintage="2023",
        ask_price=150_000_000,
        expected_irr=30.0,
        expected_multiple=3.1,
        expected_risk=0.18,
        expected_holding_period=5,
        ai_confidence=0.88,
        similar_deals=["DEAL-0912", "DEAL-1044", "DEAL-1187"],
    )


def create_sample_template() -> ScreeningTemplate:
    """Create a four-criterion screening template."""
    return ScreeningTemplate(
        id="TPL-BUYOUT",
        name="Mid-Market Buyout",
        criteria=[
            Criterion("financial_returns", CriterionCategory.FINANCIAL, 0, 10, weight=0.35,
                      name="Financial Returns"),
            Criterion("operational_quality", CriterionCategory.OPERATIONAL, 0, 10, weight=0.25,
                      name="Operational Quality"),
            Criterion("strategic_fit", CriterionCategory.STRATEGIC, 0, 10, weight=0.25,
                      name="Strategic Fit"),
            Criterion("risk_profile", CriterionCategory.RISK, 0, 10, weight=0.15,
                      name="Risk Profile"),
        ],
    )


def create_screening_result(opportunity: Opportunity, template: ScreeningTemplate,
                            suggestions: dict) -> ScreeningResult:
    """Turn accepted suggestions into a screening result."""
    scores = []
    for criterion in template.criteria:
        value = suggestions[criterion.id].score
        normalized = (value - criterion.min_value) / (criterion.max_value - criterion.min_value)
        scores.append(CriterionScore(
            criterion_id=criterion.id,
            value=value,
            normalized_score=round(normalized, 3),
            weighted_score=round(normalized * criterion.weight * 100, 2),
        ))

    total = round(sum(s.weighted_score for s in scores), 1)
    if total >= 85:
        recommendation = Recommendation.HIGHLY_RECOMMENDED
    elif total >= 70:
        recommendation = Recommendation.RECOMMENDED
    elif total >= 50:
        recommendation = Recommendation.NEUTRAL
    else:
        recommendation = Recommendation.NOT_RECOMMENDED

    return ScreeningResult(
        id=f"SCR-{opportunity.id}",
        opportunity_id=opportunity.id,
        total_score=total,
        recommendation=recommendation,
        criteria_scores=scores,
    )


# =============================================================================
# Demos
# =============================================================================

def demo_scoring(opportunity: Opportunity, template: ScreeningTemplate) -> dict:
    """Demonstrate validation and scoring suggestions."""
    print("\n" + "=" * 60)
    print("SCORING ENGINE DEMO")
    print("=" * 60)

    result = validate_opportunity(opportunity)
    print(f"\nOpportunity '{opportunity.display_name}' validation:")
    print(f"  Valid: {result.is_valid}")
    print(f"  Ask price: {format_currency(opportunity.ask_price)}")
    for w in result.warnings:
        print(f"  Warning: {w}")

    suggestions = generate_batch_suggestions(opportunity, template)

    print(f"\n--- Suggestions for {template.name} ---\n")
    for criterion in template.criteria:
        s = suggestions[criterion.id]
        print(f"[{s.category.value:11}] {criterion.name}: {s.score:.1f} "
              f"(confidence {s.confidence:.0%})")
        for adj in s.adjustments:
            print(f"      {adj.delta:+.1f}  {adj.description}")
        print(f"      Benchmark: portfolio avg {s.benchmark_data.portfolio_average}, "
              f"top quartile {s.benchmark_data.top_quartile}")
    return suggestions


async def demo_documents(opportunity: Opportunity, screening_result: ScreeningResult):
    """Demonstrate document assembly across modes."""
    print("\n" + "=" * 60)
    print("DOCUMENT ASSEMBLER DEMO")
    print("=" * 60)

    print(f"\nScreening score: {screening_result.total_score}/100 "
          f"({screening_result.recommendation.label})\n")

    for document_type in DocumentType:
        print(f"--- {document_type.value} ---")
        for mode in EvaluationMode:
            result = await generate_document(document_type, opportunity, screening_result, mode)
            print(f"  {mode.value:12} automation {result.automation_level:.0%}  "
                  f"quality {result.quality_score:.2f}  "
                  f"review {'yes' if result.review_required else 'no'}  "
                  f"{len(result.document.sections)} sections")

    workflow = PostScreeningWorkflow(
        id="WF-001",
        opportunity_id=opportunity.id,
        current_stage=WorkflowStage.COMMITTEE_REVIEW,
    )
    memo = await generate_committee_memo(
        opportunity, screening_result, workflow, EvaluationMode.ASSISTED
    )
    print("\n--- Committee memo (assisted) ---\n")
    print(memo.document.content)
    return memo


async def demo_export(memo):
    """Demonstrate format optimization for every format."""
    print("\n" + "=" * 60)
    print("FORMAT OPTIMIZER DEMO")
    print("=" * 60)

    optimizer = FormatOptimizer(create_default_registry())
    document = memo.document.to_structural()

    for export_format in ExportFormat:
        result = await optimizer.optimize_for_format(document, export_format)
        print(f"\n[{export_format.name}]")
        print(json.dumps(result.metadata.to_dict(), indent=2))
        print(f"  Download: {result.download_url}")
        if result.preview_url:
            print(f"  Preview: {result.preview_url}")


async def run_pipeline():
    opportunity = create_sample_opportunity()
    template = create_sample_template()

    suggestions = demo_scoring(opportunity, template)
    screening_result = create_screening_result(opportunity, template, suggestions)
    memo = await demo_documents(opportunity, screening_result)
    await demo_export(memo)


# =============================================================================
# Main
# =============================================================================

def main():
    """Run all demos."""
    configure_logging(get_config().logging)

    print("\n" + "=" * 60)
    print("  DEAL SCREENING ENGINE - PIPELINE DEMO")
    print(f"  {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC")
    print("=" * 60)

    asyncio.run(run_pipeline())

    print("\n" + "=" * 60)
    print("  DEMO COMPLETE")
    print("=" * 60)
    print("\nModules:")
    print("  - screening_engine.core: Models, benchmarks, rules and scoring")
    print("  - screening_engine.documents: Document assembly")
    print("  - screening_engine.export: Format optimization")
    print("\nRun with: python run.py")
    print()


if __name__ == "__main__":
    main()
