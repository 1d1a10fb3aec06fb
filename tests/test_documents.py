"""
Tests for the document assembler.

Tests document generation for:
- Section order and content per document type
- Evaluation mode effects (placeholders, automation, quality, generated-by)
- Review rules
- Document identifiers and download URLs
- Derived analyses (risk factors, workstreams, timeline, risk levels)
- Cancellation
"""

import asyncio
from dataclasses import replace

import pytest

from screening_engine.core import (
    EvaluationMode,
    Recommendation,
    WorkflowStage,
    PostScreeningWorkflow,
    CancellationToken,
    GenerationCancelledError,
    ValidationError,
)
from screening_engine.documents import (
    ANALYST_PLACEHOLDER,
    DocumentContext,
    DocumentType,
    GeneratedBy,
    assess_risk_categories,
    calculate_quality_score,
    generate_dd_timeline,
    generate_dd_workstreams,
    generate_document,
    generate_investment_summary,
    generate_committee_memo,
    generate_due_diligence_plan,
    generate_risk_assessment,
    generate_next_steps,
    generate_risk_factors,
    risk_adjusted_score,
    similar_deal_metrics,
)
from screening_engine.export import ExportFormat

from conftest import FIXED_NOW, make_result


MODES_ASCENDING = [
    EvaluationMode.TRADITIONAL,
    EvaluationMode.ASSISTED,
    EvaluationMode.AUTONOMOUS,
]


def generate(document_type, opportunity, result, mode=EvaluationMode.ASSISTED, **kwargs):
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return asyncio.run(generate_document(document_type, opportunity, result, mode, **kwargs))


def context(opportunity, result, mode=EvaluationMode.ASSISTED):
    return DocumentContext(
        opportunity=opportunity,
        screening_result=result,
        mode=mode,
        as_of=FIXED_NOW.date(),
    )


class TestInvestmentSummary:
    """Tests for investment summaries."""

    def test_section_order(self, tech_opportunity, screening_result):
        result = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result)
        assert result.document.section_titles == [
            "Executive Summary",
            "Investment Thesis",
            "Deal Overview",
            "Screening Analysis",
            "Key Risk Factors",
            "Recommended Next Steps",
            "Financial Projections",
        ]

    def test_title_and_format(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        assert doc.title == "Investment Summary - Northwind Analytics"
        assert doc.format == ExportFormat.PDF
        assert doc.content.startswith("# Investment Summary - Northwind Analytics")

    def test_header_facts(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        header = doc.get_section("Executive Summary").content
        assert "**Date:** 2024-06-01" in header
        assert "**Ask Price:** $150.0M" in header
        assert "**Screening Score:** 82/100" in header
        assert "**Recommendation:** RECOMMENDED" in header

    def test_thesis_strength_and_irr(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        thesis = doc.get_section("Investment Thesis").content
        assert "represents a compelling investment opportunity" in thesis
        assert "expected 30.0% IRR exceeds our return threshold" in thesis

    def test_exceptional_thesis(self, tech_opportunity):
        result = make_result(91, Recommendation.HIGHLY_RECOMMENDED)
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, result).document
        assert "an exceptional investment" in doc.get_section("Investment Thesis").content

    def test_top_criteria(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        analysis = doc.get_section("Screening Analysis").content
        lines = [l for l in analysis.splitlines() if l.startswith("- ")]
        assert [l.split(":")[0] for l in lines] == [
            "- financial_score",
            "- strategic_score",
            "- operational_score",
        ]

    def test_next_steps_follow_recommendation(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        steps = doc.get_section("Recommended Next Steps").content
        assert steps.splitlines()[0] == "1. Complete detailed due diligence plan"

    def test_projections_handle_missing_metrics(self, minimal_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, minimal_opportunity, screening_result).document
        table = doc.get_section("Financial Projections").content
        assert "| Expected IRR | N/A |" in table
        assert "| Risk Level | TBD |" in table


class TestModes:
    """Tests for evaluation mode effects."""

    def test_traditional_uses_placeholders(self, tech_opportunity, screening_result):
        doc = generate(
            DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result,
            EvaluationMode.TRADITIONAL,
        ).document
        for title in ("Investment Thesis", "Key Risk Factors"):
            section = doc.get_section(title)
            assert section.content == ANALYST_PLACEHOLDER
            assert section.ai_generated is False
        assert doc.generated_by == GeneratedBy.TEMPLATE

    def test_placeholder_sections_present_in_every_mode(self, tech_opportunity, screening_result):
        for mode in MODES_ASCENDING:
            doc = generate(DocumentType.COMMITTEE_MEMO, tech_opportunity, screening_result, mode).document
            assert "Investment Rationale" in doc.section_titles

    def test_assisted_marks_generated_sections(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        assert doc.get_section("Investment Thesis").ai_generated is True
        assert doc.get_section("Deal Overview").ai_generated is False
        assert doc.generated_by == GeneratedBy.AI

    def test_mode_accepts_string(self, tech_opportunity, screening_result):
        result = generate(DocumentType.RISK_ASSESSMENT, tech_opportunity, screening_result, "Autonomous")
        assert result.mode == EvaluationMode.AUTONOMOUS

    def test_invalid_mode(self, tech_opportunity, screening_result):
        with pytest.raises(ValidationError):
            generate(DocumentType.RISK_ASSESSMENT, tech_opportunity, screening_result, "manual")

    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_automation_and_quality_non_decreasing(self, document_type, tech_opportunity,
                                                  screening_result):
        results = [
            generate(document_type, tech_opportunity, screening_result, mode)
            for mode in MODES_ASCENDING
        ]
        automation = [r.automation_level for r in results]
        quality = [r.quality_score for r in results]
        assert automation == sorted(automation)
        assert quality == sorted(quality)

    def test_automation_levels(self, tech_opportunity, screening_result):
        levels = [
            generate(DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result, mode)
            .automation_level
            for mode in MODES_ASCENDING
        ]
        assert levels == [0.25, 0.60, 0.85]

    def test_quality_score(self):
        assert calculate_quality_score(82, EvaluationMode.ASSISTED) == pytest.approx(0.914)
        assert calculate_quality_score(82, EvaluationMode.TRADITIONAL) == pytest.approx(0.864)
        assert calculate_quality_score(82, EvaluationMode.AUTONOMOUS) == 0.95
        assert calculate_quality_score(0, EvaluationMode.TRADITIONAL) == pytest.approx(0.70)

    def test_dd_plan_generated_by(self, tech_opportunity, screening_result):
        assisted = generate(DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result)
        autonomous = generate(
            DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result,
            EvaluationMode.AUTONOMOUS,
        )
        assert assisted.document.generated_by == GeneratedBy.TEMPLATE
        assert autonomous.document.generated_by == GeneratedBy.AI


class TestReviewRules:
    """Tests for review-required flags."""

    def test_memo_always_requires_review(self, tech_opportunity):
        result = make_result(99, Recommendation.HIGHLY_RECOMMENDED)
        for mode in MODES_ASCENDING:
            memo = generate(DocumentType.COMMITTEE_MEMO, tech_opportunity, result, mode)
            assert memo.review_required is True
            assert memo.document.review_required is True

    def test_summary_autonomous_high_quality(self, tech_opportunity, screening_result):
        result = generate(
            DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result,
            EvaluationMode.AUTONOMOUS,
        )
        assert result.review_required is False

    def test_summary_autonomous_low_quality(self, tech_opportunity):
        result = generate(
            DocumentType.INVESTMENT_SUMMARY, tech_opportunity,
            make_result(10, Recommendation.NOT_RECOMMENDED), EvaluationMode.AUTONOMOUS,
        )
        assert result.review_required is True

    def test_summary_assisted_requires_review(self, tech_opportunity, screening_result):
        result = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result)
        assert result.review_required is True

    def test_dd_plan_large_deal_requires_review(self, tech_opportunity, minimal_opportunity,
                                                screening_result):
        large = generate(
            DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result,
            EvaluationMode.AUTONOMOUS,
        )
        mid = generate(
            DocumentType.DUE_DILIGENCE_PLAN, minimal_opportunity, screening_result,
            EvaluationMode.AUTONOMOUS,
        )
        assert large.review_required is True
        assert mid.review_required is False

    def test_risk_assessment_score_threshold(self, tech_opportunity, screening_result):
        strong = generate(
            DocumentType.RISK_ASSESSMENT, tech_opportunity, screening_result,
            EvaluationMode.AUTONOMOUS,
        )
        weak = generate(
            DocumentType.RISK_ASSESSMENT, tech_opportunity,
            make_result(60, Recommendation.NEUTRAL), EvaluationMode.AUTONOMOUS,
        )
        assert strong.review_required is False
        assert weak.review_required is True


class TestIdentifiers:
    """Tests for document ids and URLs."""

    def test_id_and_download_url(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.COMMITTEE_MEMO, tech_opportunity, screening_result).document
        epoch_ms = int(FIXED_NOW.timestamp() * 1000)
        assert doc.id == f"memo-OPP-1-{epoch_ms}"
        assert doc.download_url == f"/api/documents/download/memo-OPP-1-{epoch_ms}.pdf"
        assert doc.created_at == FIXED_NOW

    def test_dd_plan_is_docx(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result).document
        assert doc.format == ExportFormat.DOCX
        assert doc.id.startswith("ddplan-OPP-1-")
        assert doc.download_url.endswith(".docx")

    def test_unknown_document_type(self, tech_opportunity, screening_result):
        with pytest.raises(ValidationError) as exc:
            generate("pitch_deck", tech_opportunity, screening_result)
        assert exc.value.field == "document_type"

    def test_document_type_from_string(self, tech_opportunity, screening_result):
        result = generate("risk_assessment", tech_opportunity, screening_result)
        assert result.document.type == DocumentType.RISK_ASSESSMENT


class TestConvenienceGenerators:
    """Tests for the per-type entry points."""

    def test_each_generator(self, tech_opportunity, screening_result, fixed_clock):
        async def run_all():
            return [
                await generate_investment_summary(tech_opportunity, screening_result, clock=fixed_clock),
                await generate_committee_memo(tech_opportunity, screening_result, clock=fixed_clock),
                await generate_due_diligence_plan(tech_opportunity, screening_result, clock=fixed_clock),
                await generate_risk_assessment(tech_opportunity, screening_result, clock=fixed_clock),
            ]

        results = asyncio.run(run_all())
        assert [r.document.type for r in results] == list(DocumentType)

    def test_concurrent_generation(self, tech_opportunity, screening_result, fixed_clock):
        async def run_concurrently():
            return await asyncio.gather(*(
                generate_document(t, tech_opportunity, screening_result, clock=fixed_clock)
                for t in DocumentType
            ))

        results = asyncio.run(run_concurrently())
        assert len({r.document.id for r in results}) == 4


class TestCommitteeMemo:
    """Tests for committee memos."""

    def test_sections_with_similar_deals(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.COMMITTEE_MEMO, tech_opportunity, screening_result).document
        assert doc.section_titles == [
            "Memorandum",
            "Executive Summary",
            "Deal Terms",
            "Investment Rationale",
            "Risk Analysis",
            "Comparative Analysis",
            "Committee Recommendation",
            "Appendices",
        ]
        assert doc.title == "Investment Committee Memo - Northwind Analytics"

    @pytest.mark.parametrize("similar", [None, []])
    def test_comparative_analysis_omitted(self, tech_opportunity, screening_result, similar):
        opp = replace(tech_opportunity, similar_deals=similar)
        doc = generate(DocumentType.COMMITTEE_MEMO, opp, screening_result).document
        assert "Comparative Analysis" not in doc.section_titles

    def test_comparative_figures(self, tech_opportunity, screening_result):
        metrics = similar_deal_metrics(context(tech_opportunity, screening_result))
        assert 28.0 <= metrics["irr"] <= 32.0
        assert 2.7 <= metrics["multiple"] <= 3.3
        assert 75.0 <= metrics["success_rate"] <= 95.0
        assert metrics == similar_deal_metrics(context(tech_opportunity, screening_result))

    def test_workflow_stage_mentioned(self, tech_opportunity, screening_result, fixed_clock):
        workflow = PostScreeningWorkflow(
            id="WF-1", opportunity_id="OPP-1", current_stage=WorkflowStage.COMMITTEE_REVIEW,
        )
        result = asyncio.run(generate_committee_memo(
            tech_opportunity, screening_result, workflow, EvaluationMode.ASSISTED,
            clock=fixed_clock,
        ))
        recommendation = result.document.get_section("Committee Recommendation").content
        assert "recommends proceeding with enhanced due diligence" in recommendation
        assert "Committee Review" in recommendation

    def test_memo_header(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.COMMITTEE_MEMO, tech_opportunity, screening_result).document
        header = doc.get_section("Memorandum").content
        assert "**TO:** Investment Committee" in header
        assert "**RE:** Northwind Analytics - Technology Investment" in header


class TestDueDiligencePlan:
    """Tests for due-diligence plans."""

    def test_sections(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result).document
        assert doc.section_titles == [
            "Due Diligence Overview",
            "Due Diligence Workstreams",
            "Project Timeline",
            "Risk-Based Focus Areas",
            "Resource Requirements",
        ]

    def test_workstreams_follow_deal_profile(self, tech_opportunity, emerging_opportunity):
        tech = [ws.name for ws in generate_dd_workstreams(tech_opportunity)]
        assert tech == [
            "Financial Due Diligence",
            "Commercial Due Diligence",
            "Legal Due Diligence",
            "Technology Due Diligence",
            "Management Assessment",
        ]

        emerging = [ws.name for ws in generate_dd_workstreams(emerging_opportunity)]
        assert "Regulatory & Clinical Due Diligence" in emerging
        assert "Manager & Fund Terms Review" in emerging
        assert "Country & Currency Risk Review" in emerging

    def test_cross_border_workstream(self, tech_opportunity):
        opp = replace(tech_opportunity, geography="Western Europe")
        names = [ws.name for ws in generate_dd_workstreams(opp)]
        assert names[-1] == "Cross-Border Structuring"

    def test_timeline_from_durations(self, tech_opportunity):
        timeline = generate_dd_timeline(generate_dd_workstreams(tech_opportunity))
        assert timeline[0].week == 1
        assert timeline[0].milestone == "Kickoff and planning"
        assert timeline[-1].week == 5
        assert [m.week for m in timeline] == sorted(m.week for m in timeline)

    def test_resource_duration(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.DUE_DILIGENCE_PLAN, tech_opportunity, screening_result).document
        resources = doc.get_section("Resource Requirements").content
        assert "| Investment Team | 2-3 professionals | 5 weeks |" in resources
        assert "Technology specialists" in resources


class TestRiskAssessment:
    """Tests for risk assessments."""

    def test_summary(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.RISK_ASSESSMENT, tech_opportunity, screening_result).document
        summary = doc.get_section("Risk Summary").content
        assert "**Overall Risk Level:** Medium" in summary
        assert "**Risk-Adjusted Score:** 78/100" in summary

    def test_risk_adjusted_score(self):
        assert risk_adjusted_score(82) == 78
        assert risk_adjusted_score(100) == 95
        assert risk_adjusted_score(0) == 0

    def test_category_levels(self, tech_opportunity, emerging_opportunity, screening_result):
        tech = {c.name: c.level for c in assess_risk_categories(context(tech_opportunity, screening_result))}
        assert tech == {
            "Financial": "Medium",
            "Operational": "Low",
            "Strategic": "Low",
            "External": "Low",
        }

        emerging = {
            c.name: c.level
            for c in assess_risk_categories(context(emerging_opportunity, screening_result))
        }
        assert emerging == {
            "Financial": "High",
            "Operational": "High",
            "Strategic": "High",
            "External": "High",
        }

    def test_unrated_expected_risk(self, minimal_opportunity, screening_result):
        doc = generate(DocumentType.RISK_ASSESSMENT, minimal_opportunity, screening_result).document
        summary = doc.get_section("Risk Summary").content
        # Falls back to the worst category: Energy is a regulated sector
        assert "**Overall Risk Level:** Medium" in summary

    def test_heat_map_rows(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.RISK_ASSESSMENT, tech_opportunity, screening_result).document
        heat_map = doc.get_section("Risk Heat Map").content
        for name in ("Financial", "Operational", "Strategic", "External"):
            assert f"| {name} |" in heat_map


class TestRiskFactors:
    """Tests for summary risk factors and next steps."""

    def test_capped_at_five(self, tech_opportunity):
        opp = replace(tech_opportunity, expected_risk=0.30, geography="Emerging Asia")
        factors = generate_risk_factors(context(opp, make_result(60, Recommendation.NEUTRAL)))
        assert len(factors) == 5
        assert factors[-1] == "Rapid technological change"

    def test_sector_risks_only(self, tech_opportunity, screening_result):
        opp = replace(tech_opportunity, ask_price=50_000_000)
        factors = generate_risk_factors(context(opp, screening_result))
        assert factors == ["Rapid technological change", "Cybersecurity vulnerabilities"]

    def test_never_empty(self, minimal_opportunity, screening_result):
        opp = replace(minimal_opportunity, sector="Manufacturing")
        assert len(generate_risk_factors(context(opp, screening_result))) == 1

    def test_next_steps(self):
        assert generate_next_steps(Recommendation.HIGHLY_RECOMMENDED)[0] == (
            "Schedule investment committee presentation within 7 days"
        )
        assert generate_next_steps(Recommendation.NOT_RECOMMENDED)[-1] == (
            "Re-evaluate investment thesis"
        )


class TestGeneratedDocument:
    """Tests for generated document behaviour."""

    def test_revise_returns_new_document(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        revised = doc.revise("Investment Thesis", "Analyst thesis.")
        assert revised.get_section("Investment Thesis").content == "Analyst thesis."
        assert revised.get_section("Investment Thesis").ai_generated is False
        assert doc.get_section("Investment Thesis").content != "Analyst thesis."

    def test_revise_unknown_section(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).document
        with pytest.raises(KeyError):
            doc.revise("Appendix Z", "text")

    def test_to_structural(self, tech_opportunity, screening_result):
        doc = generate(DocumentType.RISK_ASSESSMENT, tech_opportunity, screening_result).document
        structural = doc.to_structural()
        assert structural.title == doc.title
        assert [s.title for s in structural.sections] == doc.section_titles
        assert structural.sector == "Technology"

    def test_result_to_dict(self, tech_opportunity, screening_result):
        data = generate(DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result).to_dict()
        assert data["mode"] == "assisted"
        assert data["document"]["type"] == "investment_summary"
        assert data["document"]["format"] == "pdf"
        assert data["document"]["created_at"] == FIXED_NOW.isoformat()


class TestCancellation:
    """Tests for cancellation during assembly."""

    def test_cancelled_token(self, tech_opportunity, screening_result):
        token = CancellationToken()
        token.cancel("superseded by newer screening")
        with pytest.raises(GenerationCancelledError) as exc:
            generate(
                DocumentType.COMMITTEE_MEMO, tech_opportunity, screening_result,
                cancel_token=token,
            )
        assert "superseded" in str(exc.value)

    def test_uncancelled_token(self, tech_opportunity, screening_result):
        token = CancellationToken()
        result = generate(
            DocumentType.COMMITTEE_MEMO, tech_opportunity, screening_result,
            cancel_token=token,
        )
        assert result.document.sections
