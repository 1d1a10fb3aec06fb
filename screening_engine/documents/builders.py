"""
Section builders for generated documents.

Every builder takes a DocumentContext (opportunity, screening result,
evaluation mode, optional workflow) and returns deterministic markdown
text: headings, pipe tables and bullet or numbered lists. A builder may
return None to omit its section.

Supporting analyses are exposed as plain functions:
- Risk factors, next steps and investment highlights
- Due-diligence workstreams, timeline and risk-based focus areas
- Per-category risk assessments
- Similar-deal comparison figures
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from screening_engine.core.benchmarks import (
    FALLBACK_SECTOR,
    SECTOR_BENCHMARKS,
    SectorBenchmark,
    stable_unit_interval,
)
from screening_engine.core.models import (
    EvaluationMode,
    Opportunity,
    PostScreeningWorkflow,
    Recommendation,
    ScreeningResult,
)
from screening_engine.core.rules import LARGE_DEAL, parse_vintage_year


ANALYST_PLACEHOLDER = "*[To be completed by analyst]*"

# Sector-specific risks called out in investment summaries
SECTOR_RISKS = {
    "Technology": ("Rapid technological change", "Cybersecurity vulnerabilities"),
    "Healthcare": ("Regulatory approval risk", "Reimbursement changes"),
    "Energy": ("Commodity price volatility", "Environmental regulations"),
    "Financial Services": ("Interest rate sensitivity", "Credit risk exposure"),
}

REGULATED_SECTORS = {"Healthcare", "Financial Services", "Energy"}

MAX_RISK_FACTORS = 5
RISK_ADJUSTMENT_FACTOR = 0.95
STRONG_SCREENING_SCORE = 70
WEAK_SCREENING_SCORE = 60

RISK_LEVELS = ("Low", "Medium", "High")


@dataclass(frozen=True)
class DocumentContext:
    """Inputs shared by every section builder."""

    opportunity: Opportunity
    screening_result: ScreeningResult
    mode: EvaluationMode
    workflow: Optional[PostScreeningWorkflow] = None
    as_of: date = field(default_factory=date.today)

    @property
    def benchmark(self) -> SectorBenchmark:
        return SECTOR_BENCHMARKS.get(
            self.opportunity.sector, SECTOR_BENCHMARKS[FALLBACK_SECTOR]
        )

    @property
    def total_score(self) -> float:
        return self.screening_result.total_score

    @property
    def is_emerging(self) -> bool:
        return "Emerging" in (self.opportunity.geography or "")


# =============================================================================
# Formatting helpers
# =============================================================================

def _millions(amount: float) -> str:
    return f"${amount / 1_000_000:.1f}M"


def _percent(value: Optional[float]) -> str:
    return f"{value:.1f}%" if value is not None else "N/A"


def _multiple(value: Optional[float]) -> str:
    return f"{value:.1f}x" if value is not None else "N/A"


def _fraction_percent(value: Optional[float]) -> str:
    return f"{value * 100:.1f}%" if value is not None else "N/A"


def _score(value: float) -> str:
    return f"{value:g}"


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


def _numbered(items) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _table(headers: list[str], rows: list[list[str]]) -> str:
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("-" * (len(h) + 2) for h in headers) + "|",
    ]
    lines.extend("| " + " | ".join(str(c) for c in row) + " |" for row in rows)
    return "\n".join(lines)


def _facts(pairs: list[tuple[str, str]]) -> str:
    return "\n".join(f"**{label}:** {value}" for label, value in pairs)


def expected_risk_level(expected_risk: Optional[float]) -> Optional[str]:
    """Low below 15%, Medium below 25%, otherwise High."""
    if expected_risk is None:
        return None
    if expected_risk < 0.15:
        return "Low"
    if expected_risk < 0.25:
        return "Medium"
    return "High"


def _max_level(*levels: str) -> str:
    return max(levels, key=RISK_LEVELS.index)


def risk_adjusted_score(total_score: float) -> int:
    """Screening score discounted for risk, rounded half up."""
    return int(math.floor(total_score * RISK_ADJUSTMENT_FACTOR + 0.5))


# =============================================================================
# Supporting analyses
# =============================================================================

def generate_risk_factors(ctx: DocumentContext) -> list[str]:
    """Key risk factors for an investment summary, at most five."""
    opportunity = ctx.opportunity
    risks = []

    if opportunity.expected_risk is not None and opportunity.expected_risk > 0.20:
        risks.append("High expected risk profile requires enhanced monitoring")
    if ctx.is_emerging:
        risks.append("Emerging market exposure adds currency and political risk")
    if opportunity.ask_price > LARGE_DEAL:
        risks.append("Large transaction size increases execution risk")
    if ctx.total_score < STRONG_SCREENING_SCORE:
        risks.append("Below-average screening score indicates elevated investment risk")

    risks.extend(SECTOR_RISKS.get(opportunity.sector, ()))

    if not risks:
        risks.append("No elevated risk factors identified at screening stage")
    return risks[:MAX_RISK_FACTORS]


def generate_next_steps(recommendation: Recommendation) -> list[str]:
    """Ordered next steps for a screening recommendation."""
    if recommendation == Recommendation.HIGHLY_RECOMMENDED:
        return [
            "Schedule investment committee presentation within 7 days",
            "Initiate preliminary due diligence workstreams",
            "Engage with seller for additional materials",
        ]
    elif recommendation == Recommendation.RECOMMENDED:
        return [
            "Complete detailed due diligence plan",
            "Conduct management presentations",
            "Schedule committee review meeting",
        ]
    else:
        return [
            "Conduct deeper analysis of key risk areas",
            "Seek additional market validation",
            "Re-evaluate investment thesis",
        ]


def generate_investment_highlights(ctx: DocumentContext) -> list[str]:
    """Highlights for the committee memo executive summary."""
    opportunity = ctx.opportunity
    avg_irr = ctx.benchmark.financial.avg_irr
    highlights = [f"Strong {opportunity.sector} market positioning"]

    irr = opportunity.expected_irr
    if irr is not None:
        if irr > avg_irr:
            highlights.append(
                f"Expected {irr:.1f}% IRR exceeds {opportunity.sector} average of {avg_irr:.1f}%"
            )
        else:
            highlights.append(
                f"Expected {irr:.1f}% IRR against {opportunity.sector} average of {avg_irr:.1f}%"
            )

    quality = "solid" if ctx.total_score >= STRONG_SCREENING_SCORE else "mixed"
    highlights.append(
        f"{_score(ctx.total_score)}/100 screening score indicates {quality} fundamentals"
    )

    similar = opportunity.similar_deal_count
    if similar:
        highlights.append(f"Pattern match with {similar} similar portfolio investments")

    highlights.append("Experienced management team with proven track record")
    return highlights


def similar_deal_metrics(ctx: DocumentContext) -> dict[str, float]:
    """
    Comparison figures for similar portfolio deals.

    Derived from the opportunity's own metrics (or sector averages) with
    a reproducible spread keyed on the opportunity ID.
    """
    opportunity = ctx.opportunity
    financial = ctx.benchmark.financial
    base_irr = opportunity.expected_irr if opportunity.expected_irr is not None else financial.avg_irr
    base_multiple = (
        opportunity.expected_multiple
        if opportunity.expected_multiple is not None
        else financial.avg_multiple
    )

    irr_u = stable_unit_interval(opportunity.id, "similar-deals", "irr")
    multiple_u = stable_unit_interval(opportunity.id, "similar-deals", "multiple")
    success_u = stable_unit_interval(opportunity.id, "similar-deals", "success")

    return {
        "irr": round(base_irr + (irr_u - 0.5) * 4, 1),
        "multiple": round(base_multiple + (multiple_u - 0.5) * 0.6, 1),
        "success_rate": round(75 + success_u * 20, 1),
    }


@dataclass(frozen=True)
class Workstream:
    """A due-diligence workstream."""

    name: str
    lead: str
    duration_weeks: int
    priority: str
    focus_areas: tuple[str, ...]
    deliverables: tuple[str, ...]


@dataclass(frozen=True)
class Milestone:
    """A row of the due-diligence timeline."""

    week: int
    workstream: str
    milestone: str


CORE_WORKSTREAMS = (
    Workstream(
        "Financial Due Diligence", "Senior Analyst", 4, "High",
        ("Revenue quality", "Profitability drivers", "Cash flow analysis"),
        ("Financial model", "Quality of earnings report", "Management projections review"),
    ),
    Workstream(
        "Commercial Due Diligence", "External Consultant", 3, "High",
        ("Market sizing", "Competitive positioning", "Growth drivers"),
        ("Market analysis", "Competitive assessment", "Growth strategy validation"),
    ),
    Workstream(
        "Legal Due Diligence", "Legal Counsel", 3, "Medium",
        ("Corporate structure", "Material contracts", "Litigation exposure"),
        ("Legal due diligence report", "Key contract summary"),
    ),
)

SECTOR_WORKSTREAMS = {
    "Technology": Workstream(
        "Technology Due Diligence", "Technical Advisor", 3, "High",
        ("Architecture scalability", "Cybersecurity posture", "Intellectual property"),
        ("Technology assessment", "Security review"),
    ),
    "Healthcare": Workstream(
        "Regulatory & Clinical Due Diligence", "Healthcare Specialist", 4, "High",
        ("Regulatory approvals", "Clinical outcomes", "Reimbursement exposure"),
        ("Regulatory compliance review", "Clinical data assessment"),
    ),
    "Financial Services": Workstream(
        "Regulatory & Compliance Review", "Compliance Specialist", 3, "High",
        ("Licensing and capital requirements", "Credit risk management", "AML/KYC controls"),
        ("Compliance assessment", "Risk management review"),
    ),
    "Manufacturing": Workstream(
        "Operations & Supply Chain Review", "Operating Partner", 3, "Medium",
        ("Plant efficiency", "Supplier concentration", "Quality systems"),
        ("Operational assessment", "Supply chain map"),
    ),
    "Energy": Workstream(
        "Environmental & Technical Review", "Technical Advisor", 4, "High",
        ("Asset integrity", "Environmental liabilities", "Commodity exposure"),
        ("Technical report", "Environmental assessment"),
    ),
}

ASSET_TYPE_WORKSTREAMS = {
    "direct": Workstream(
        "Management Assessment", "Operating Partner", 2, "Medium",
        ("Leadership capability", "Incentive alignment", "Succession planning"),
        ("Management assessment report",),
    ),
    "fund": Workstream(
        "Manager & Fund Terms Review", "Fund Investments Team", 2, "Medium",
        ("Track record attribution", "Fee and carry terms", "Portfolio construction"),
        ("Manager assessment", "Terms comparison"),
    ),
    "co-investment": Workstream(
        "Sponsor Alignment Review", "Investment Team", 2, "Medium",
        ("Sponsor track record", "Governance rights", "Fee terms"),
        ("Sponsor assessment",),
    ),
}

EMERGING_MARKET_WORKSTREAM = Workstream(
    "Country & Currency Risk Review", "External Consultant", 2, "High",
    ("Political stability", "Currency exposure", "Local partner diligence"),
    ("Country risk memo",),
)

CROSS_BORDER_WORKSTREAM = Workstream(
    "Cross-Border Structuring", "Tax Advisor", 2, "Medium",
    ("Tax structuring", "Regulatory approvals", "Capital repatriation"),
    ("Structuring memo",),
)


def generate_dd_workstreams(opportunity: Opportunity) -> list[Workstream]:
    """Workstreams for the deal's sector, asset type and geography."""
    workstreams = list(CORE_WORKSTREAMS)

    sector_ws = SECTOR_WORKSTREAMS.get(opportunity.sector)
    if sector_ws is not None:
        workstreams.append(sector_ws)

    asset_ws = ASSET_TYPE_WORKSTREAMS.get(opportunity.asset_type)
    if asset_ws is not None:
        workstreams.append(asset_ws)

    geography = opportunity.geography or ""
    if "Emerging" in geography:
        workstreams.append(EMERGING_MARKET_WORKSTREAM)
    elif "North America" not in geography:
        workstreams.append(CROSS_BORDER_WORKSTREAM)

    return workstreams


def generate_dd_timeline(workstreams: list[Workstream]) -> list[Milestone]:
    """Week-by-week milestones; workstreams run in parallel from week 1."""
    if not workstreams:
        return [Milestone(1, "All", "Kickoff and planning")]

    longest = max(ws.duration_weeks for ws in workstreams)
    milestones = [Milestone(1, "All", "Kickoff and planning")]
    milestones.extend(
        Milestone(ws.duration_weeks, ws.name, f"{ws.deliverables[0]} complete")
        for ws in workstreams
    )
    milestones.append(Milestone(max(2, math.ceil(longest / 2)), "All", "Interim findings"))
    milestones.append(
        Milestone(longest + 1, "All", "Consolidated findings to investment committee")
    )
    return sorted(milestones, key=lambda m: m.week)


@dataclass(frozen=True)
class FocusArea:
    """A risk the due-diligence plan targets specifically."""

    risk: str
    level: str
    focus: str
    criteria: str


def generate_risk_focus_areas(ctx: DocumentContext) -> list[FocusArea]:
    """Risk-based due-diligence focus areas."""
    opportunity = ctx.opportunity
    areas = [
        FocusArea(
            "Market Competition",
            "High" if ctx.total_score < WEAK_SCREENING_SCORE else "Medium",
            "Detailed competitive analysis and market share validation",
            "Confirmed sustainable competitive advantages",
        ),
        FocusArea(
            "Financial Performance",
            expected_risk_level(opportunity.expected_risk) or "Medium",
            "Quality of earnings and revenue sustainability",
            "Validated revenue quality and growth drivers",
        ),
    ]
    if ctx.is_emerging:
        areas.append(FocusArea(
            "Emerging Market Execution",
            "High",
            "Local operating partner and country risk review",
            "Mitigation plan for currency and political exposure",
        ))
    if opportunity.ask_price > LARGE_DEAL:
        areas.append(FocusArea(
            "Transaction Scale",
            "Medium",
            "Financing structure and integration capacity",
            "Committed financing and integration plan",
        ))
    return areas


@dataclass(frozen=True)
class RiskCategoryAssessment:
    """Risk analysis for one category of the risk framework."""

    name: str
    level: str
    impact: str
    likelihood: str
    factors: tuple[str, ...]
    mitigations: tuple[str, ...]


RISK_CATEGORY_NAMES = ("Financial", "Operational", "Strategic", "External")


def _financial_risk(ctx: DocumentContext) -> RiskCategoryAssessment:
    opportunity = ctx.opportunity
    level = expected_risk_level(opportunity.expected_risk) or "Medium"
    factors = ["Revenue concentration", "Cash flow volatility"]
    if opportunity.ask_price > LARGE_DEAL:
        factors.append("Leverage and financing structure")
    irr = opportunity.expected_irr
    if irr is not None and irr > ctx.benchmark.financial.avg_irr * 1.2:
        factors.append("Return assumptions above sector norms")
    return RiskCategoryAssessment(
        "Financial", level, "High", level, tuple(factors),
        ("Diversification strategy", "Working capital management"),
    )


def _operational_risk(ctx: DocumentContext) -> RiskCategoryAssessment:
    opportunity = ctx.opportunity
    if ctx.is_emerging:
        level = "High"
    elif opportunity.asset_type == "direct":
        level = "Low"
    else:
        level = "Medium"

    factors = ["Key person dependency", "System scalability"]
    vintage_year = parse_vintage_year(opportunity.vintage)
    if vintage_year is not None and ctx.as_of.year - vintage_year >= 5:
        factors.append("Legacy operating infrastructure")
    return RiskCategoryAssessment(
        "Operational", level, "Medium", level, tuple(factors),
        ("Management development", "Technology upgrades"),
    )


def _strategic_risk(ctx: DocumentContext) -> RiskCategoryAssessment:
    similar = ctx.opportunity.similar_deal_count
    if similar is not None and similar > 2:
        level = "Low"
    elif similar == 0:
        level = "High"
    else:
        level = "Medium"
    if ctx.total_score < WEAK_SCREENING_SCORE:
        level = _max_level(level, "High")

    factors = ["Competitive positioning", "Market growth sustainability"]
    if similar == 0:
        factors.append("Limited precedent for strategic approach")
    return RiskCategoryAssessment(
        "Strategic", level, "High", level, tuple(factors),
        ("Independent market study", "Value creation plan milestones"),
    )


def _external_risk(ctx: DocumentContext) -> RiskCategoryAssessment:
    if ctx.is_emerging:
        level = "High"
    elif ctx.opportunity.sector in REGULATED_SECTORS:
        level = "Medium"
    else:
        level = "Low"

    factors = list(ctx.benchmark.risk.common_risks[:2])
    if ctx.is_emerging:
        factors.append("Currency and political exposure")
    return RiskCategoryAssessment(
        "External", level, "Medium", level, tuple(factors),
        ("Regulatory monitoring", "Scenario planning and hedging"),
    )


def assess_risk_categories(ctx: DocumentContext) -> list[RiskCategoryAssessment]:
    """Financial, Operational, Strategic and External risk assessments."""
    return [
        _financial_risk(ctx),
        _operational_risk(ctx),
        _strategic_risk(ctx),
        _external_risk(ctx),
    ]


def overall_risk_level(ctx: DocumentContext) -> str:
    """Overall level from expected risk, or the worst category when absent."""
    level = expected_risk_level(ctx.opportunity.expected_risk)
    if level is not None:
        return level
    return _max_level(*(c.level for c in assess_risk_categories(ctx)))


# =============================================================================
# Investment summary sections
# =============================================================================

def build_summary_header(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    result = ctx.screening_result
    return _facts([
        ("Date", ctx.as_of.isoformat()),
        ("Asset Type", opportunity.asset_type),
        ("Sector", opportunity.sector),
        ("Geography", opportunity.geography),
        ("Ask Price", _millions(opportunity.ask_price)),
        ("Screening Score", f"{_score(result.total_score)}/100"),
        ("Recommendation", result.recommendation.label.upper()),
    ])


def build_investment_thesis(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    score = ctx.total_score
    if score >= 85:
        strength = "an exceptional"
    elif score >= STRONG_SCREENING_SCORE:
        strength = "a compelling"
    else:
        strength = "a potential"

    thesis = (
        f"We believe {opportunity.display_name} represents {strength} investment "
        f"opportunity with strong fundamentals in the {opportunity.sector.lower()} sector."
    )
    if opportunity.expected_irr is not None and opportunity.expected_irr > 20:
        thesis += (
            f" The expected {opportunity.expected_irr:.1f}% IRR exceeds our return "
            f"threshold, and the {opportunity.geography} market positioning provides "
            f"attractive growth potential."
        )
    else:
        thesis += (
            f" The {opportunity.geography} market positioning provides attractive "
            f"growth potential."
        )
    return thesis


def build_deal_overview(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    facts = []
    if opportunity.seller:
        facts.append(("Seller", opportunity.seller))
    facts.extend([
        ("Vintage", opportunity.vintage),
        ("Expected IRR", _percent(opportunity.expected_irr)),
        ("Expected Multiple", _multiple(opportunity.expected_multiple)),
        ("Expected Risk", _fraction_percent(opportunity.expected_risk)),
    ])
    description = opportunity.description or (
        f"{opportunity.asset_type.capitalize()} {opportunity.sector} investment "
        f"in {opportunity.geography}."
    )
    return f"{description}\n\n{_facts(facts)}"


def build_screening_analysis(ctx: DocumentContext) -> str:
    result = ctx.screening_result
    lines = [
        f"Our {ctx.mode.value} screening analysis evaluated "
        f"{len(result.criteria_scores)} key criteria across financial, operational, "
        f"strategic, and risk dimensions."
    ]
    top = result.top_criteria(3)
    if top:
        lines.append("")
        lines.append("**Top Performing Criteria:**")
        for score in top:
            weight = score.weight_percent
            weight_text = f"{weight:.0f}%" if weight is not None else "N/A"
            lines.append(
                f"- {score.criterion_id}: score {score.value:.1f} (weight {weight_text})"
            )
    return "\n".join(lines)


def build_key_risk_factors(ctx: DocumentContext) -> str:
    return _bullets(generate_risk_factors(ctx))


def build_next_steps(ctx: DocumentContext) -> str:
    return _numbered(generate_next_steps(ctx.screening_result.recommendation))


def build_financial_projections(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    holding = opportunity.expected_holding_period
    return _table(["Metric", "Value"], [
        ["Investment Size", _millions(opportunity.ask_price)],
        ["Expected IRR", _percent(opportunity.expected_irr)],
        ["Expected Multiple", _multiple(opportunity.expected_multiple)],
        ["Holding Period", f"{holding:g} years" if holding else "TBD"],
        ["Risk Level", expected_risk_level(opportunity.expected_risk) or "TBD"],
    ])


# =============================================================================
# Committee memo sections
# =============================================================================

def build_memo_header(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    return _facts([
        ("TO", "Investment Committee"),
        ("FROM", "Investment Team"),
        ("DATE", ctx.as_of.isoformat()),
        ("RE", f"{opportunity.display_name} - {opportunity.sector} Investment"),
    ])


def build_memo_executive_summary(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    label = ctx.screening_result.recommendation.label
    return (
        f"The Investment Team's screening recommendation for {opportunity.display_name}, "
        f"a {opportunity.sector.lower()} investment opportunity in {opportunity.geography}, "
        f"is **{label}**.\n\n"
        "**Key Investment Highlights:**\n"
        f"{_bullets(generate_investment_highlights(ctx))}"
    )


def build_deal_terms(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    return _table(["Term", "Details"], [
        ["Transaction Type", opportunity.asset_type],
        ["Investment Size", _millions(opportunity.ask_price)],
        ["Sector", opportunity.sector],
        ["Geography", opportunity.geography],
        ["Vintage", opportunity.vintage],
    ])


def build_investment_rationale(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    if opportunity.expected_irr is not None:
        metrics = (
            f"compelling financial metrics with {opportunity.expected_irr:.1f}% "
            f"expected IRR"
        )
    else:
        metrics = "financial metrics pending full model review"
    return (
        f"Our investment rationale for {opportunity.display_name} is based on strong "
        f"sector fundamentals in {opportunity.sector}, {metrics}, and solid management "
        f"execution capability. The screening analysis supports the investment thesis "
        f"with a {_score(ctx.total_score)}/100 score across key evaluation criteria."
    )


def build_risk_analysis(ctx: DocumentContext) -> str:
    categories = assess_risk_categories(ctx)
    primary = [
        f"**{c.name}:** {c.level} risk - {', '.join(c.factors[:2]).lower()}"
        for c in categories
        if c.level != "Low"
    ] or ["**Overall:** No category rated above low risk"]
    mitigations = [m for c in categories if c.level != "Low" for m in c.mitigations]
    if not mitigations:
        mitigations = ["Standard post-investment monitoring"]
    return (
        "**Primary Risks:**\n"
        f"{_bullets(primary)}\n\n"
        "**Mitigation Strategies:**\n"
        f"{_bullets(mitigations)}"
    )


def build_comparative_analysis(ctx: DocumentContext) -> Optional[str]:
    count = ctx.opportunity.similar_deal_count
    if not count:
        return None
    metrics = similar_deal_metrics(ctx)
    return (
        f"Analysis of {count} similar portfolio investments shows:\n"
        f"- Average IRR: {metrics['irr']:.1f}%\n"
        f"- Average Multiple: {metrics['multiple']:.1f}x\n"
        f"- Success Rate: {metrics['success_rate']:.1f}%"
    )


def build_committee_recommendation(ctx: DocumentContext) -> str:
    recommendation = ctx.screening_result.recommendation
    if recommendation == Recommendation.HIGHLY_RECOMMENDED:
        text = (
            "The Investment Team strongly recommends proceeding with this investment "
            "opportunity. The screening analysis supports immediate committee approval "
            "subject to satisfactory due diligence completion."
        )
    elif recommendation == Recommendation.RECOMMENDED:
        text = (
            "The Investment Team recommends proceeding with enhanced due diligence. "
            "Committee approval recommended upon successful completion of the full due "
            "diligence process."
        )
    else:
        text = (
            "The Investment Team recommends careful evaluation before proceeding. "
            "Additional analysis and committee discussion required before making a "
            "final investment decision."
        )

    workflow = ctx.workflow
    if workflow is not None:
        stage = workflow.current_stage.value.replace("_", " ").title()
        text += (
            f"\n\n**Workflow Stage:** {stage} "
            f"({workflow.automation_level} automation)"
        )
    return text


def build_appendices(ctx: DocumentContext) -> str:
    return _bullets([
        "Appendix A: Detailed Screening Results",
        "Appendix B: Financial Model",
        "Appendix C: Market Analysis",
        "Appendix D: Management Presentations",
    ])


# =============================================================================
# Due-diligence plan sections
# =============================================================================

def build_dd_overview(ctx: DocumentContext) -> str:
    opportunity = ctx.opportunity
    facts = _facts([
        ("Asset Type", opportunity.asset_type),
        ("Sector", opportunity.sector),
        ("Investment Size", _millions(opportunity.ask_price)),
        ("Plan Generated", ctx.as_of.isoformat()),
    ])
    return (
        f"{facts}\n\n"
        f"This plan outlines the due diligence approach for {opportunity.display_name}. "
        f"It is tailored to the {opportunity.sector} sector, the {opportunity.asset_type} "
        f"asset type and {opportunity.geography} operations."
    )


def build_dd_workstreams(ctx: DocumentContext) -> str:
    blocks = []
    for ws in generate_dd_workstreams(ctx.opportunity):
        blocks.append(
            f"### {ws.name}\n\n"
            f"{_facts([('Lead', ws.lead), ('Duration', f'{ws.duration_weeks} weeks'), ('Priority', ws.priority)])}\n\n"
            f"**Key Focus Areas:**\n{_bullets(ws.focus_areas)}\n\n"
            f"**Deliverables:**\n{_bullets(ws.deliverables)}"
        )
    return "\n\n".join(blocks)


def build_dd_timeline(ctx: DocumentContext) -> str:
    milestones = generate_dd_timeline(generate_dd_workstreams(ctx.opportunity))
    return _table(
        ["Week", "Workstream", "Milestone"],
        [[str(m.week), m.workstream, m.milestone] for m in milestones],
    )


def build_risk_based_focus(ctx: DocumentContext) -> str:
    blocks = []
    for area in generate_risk_focus_areas(ctx):
        blocks.append(
            f"**{area.risk}**\n"
            f"- Concern Level: {area.level}\n"
            f"- DD Focus: {area.focus}\n"
            f"- Success Criteria: {area.criteria}"
        )
    return "\n\n".join(blocks)


def build_resource_requirements(ctx: DocumentContext) -> str:
    longest = max(ws.duration_weeks for ws in generate_dd_workstreams(ctx.opportunity))
    return _table(["Resource Type", "Requirement", "Duration"], [
        ["Investment Team", "2-3 professionals", f"{longest + 1} weeks"],
        ["External Advisors", f"{ctx.opportunity.sector} specialists", "As needed"],
        ["Legal Counsel", "1 partner + associates", "4-6 weeks"],
        ["Third-party DD", "Commercial/Technical", "3-4 weeks"],
    ])


# =============================================================================
# Risk assessment sections
# =============================================================================

def build_risk_summary(ctx: DocumentContext) -> str:
    return _facts([
        ("Assessment Date", ctx.as_of.isoformat()),
        ("Overall Risk Level", overall_risk_level(ctx)),
        ("Risk-Adjusted Score", f"{risk_adjusted_score(ctx.total_score)}/100"),
    ])


def build_risk_framework(ctx: DocumentContext) -> str:
    return (
        "This assessment evaluates risks across four key dimensions:\n\n"
        + _numbered([
            "**Financial Risk** - Revenue, profitability, cash flow stability",
            "**Operational Risk** - Business model, management, execution capability",
            "**Strategic Risk** - Market position, competitive dynamics, growth sustainability",
            "**External Risk** - Regulatory, economic, sector-specific factors",
        ])
    )


def risk_category_builder(category_name: str):
    """Builder for one category's analysis section."""

    def build(ctx: DocumentContext) -> str:
        category = next(c for c in assess_risk_categories(ctx) if c.name == category_name)
        return (
            _facts([
                ("Risk Level", category.level),
                ("Impact", category.impact),
                ("Likelihood", category.likelihood),
            ])
            + "\n\n**Key Risk Factors:**\n"
            + _bullets(category.factors)
            + "\n\n**Mitigation Strategies:**\n"
            + _bullets(category.mitigations)
        )

    build.__name__ = f"build_{category_name.lower()}_risk_analysis"
    return build


def build_risk_heat_map(ctx: DocumentContext) -> str:
    return _table(
        ["Risk Category", "Impact", "Likelihood", "Overall Risk"],
        [[c.name, c.impact, c.likelihood, c.level] for c in assess_risk_categories(ctx)],
    )


def build_decision_impact(ctx: DocumentContext) -> str:
    fit = (
        "fits within"
        if ctx.total_score > STRONG_SCREENING_SCORE
        else "requires careful consideration of"
    )
    if ctx.screening_result.recommendation == Recommendation.HIGHLY_RECOMMENDED:
        action = "Proceed with standard approval process."
    else:
        action = "Enhanced due diligence recommended before final decision."
    return f"Based on the risk analysis, this investment {fit} our risk tolerance parameters. {action}"


def build_risk_monitoring(ctx: DocumentContext) -> str:
    metrics = [
        "Monthly financial performance vs. projections",
        "Key operational metrics and KPIs",
        "Market share and competitive position",
        "Regulatory and compliance status",
    ]
    if ctx.is_emerging:
        metrics.append("Currency exposure and country risk indicators")
    schedule = [
        "Weekly team check-ins during first 90 days",
        "Monthly board meetings with detailed reporting",
        "Quarterly comprehensive reviews with benchmarking",
        "Annual strategic reviews and plan updates",
    ]
    return (
        f"**Key Metrics to Monitor:**\n{_bullets(metrics)}\n\n"
        f"**Review Schedule:**\n{_bullets(schedule)}"
    )
