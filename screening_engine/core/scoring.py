"""
Scoring engine for screening criteria.

Produces a per-criterion scoring suggestion for an opportunity:
- Score anchored on the sector benchmark and adjusted by rule ladders
- Confidence from data completeness, sector familiarity and deal patterns
- Narrative reasoning citing the opportunity's figures
- Benchmark comparison figures (reproducible per opportunity/criterion)
- Up to three risk factors and three opportunities
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from .benchmarks import SectorBenchmark, get_sector_benchmark, stable_seed
from .models import Criterion, CriterionCategory, Opportunity, ScreeningTemplate
from .rules import (
    LARGE_DEAL,
    SMALL_DEAL,
    AppliedAdjustment,
    RuleContext,
    evaluate_ladders,
    total_adjustment,
)

logger = logging.getLogger(__name__)


# Confidence components
BASE_CONFIDENCE = 0.70
DATA_COMPLETENESS_WEIGHT = 0.20
OPTIONAL_DATA_FIELDS = 5
KNOWN_SECTOR_BONUS = 0.10
UNKNOWN_SECTOR_PENALTY = -0.15
STRONG_PATTERN_BONUS = 0.15
NO_PATTERN_PENALTY = -0.10
EXTREME_SCORE_PENALTY = -0.10
NEAR_BENCHMARK_BONUS = 0.05
MIN_CONFIDENCE = 0.50
MAX_CONFIDENCE = 0.95

MAX_LISTED_FACTORS = 3
BENCHMARK_PERIOD = "2019-2024"


@dataclass
class BenchmarkData:
    """Comparison figures for a criterion score."""

    portfolio_average: float
    industry_median: float
    top_quartile: float  # Always >= max(portfolio_average, industry_median)
    sample_size: int
    data_source: str

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "portfolio_average": self.portfolio_average,
            "industry_median": self.industry_median,
            "top_quartile": self.top_quartile,
            "sample_size": self.sample_size,
            "data_source": self.data_source,
        }


@dataclass
class ScoringSuggestion:
    """
    Suggested score for one criterion.

    Score is within the criterion bounds; confidence is within
    [0.50, 0.95].
    """

    criterion_id: str
    category: CriterionCategory
    score: float
    confidence: float
    reasoning: str
    benchmark_data: BenchmarkData
    risk_factors: list[str] = field(default_factory=list)
    opportunities: list[str] = field(default_factory=list)
    adjustments: list[AppliedAdjustment] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "criterion_id": self.criterion_id,
            "category": self.category.value,
            "score": self.score,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "benchmark_data": self.benchmark_data.to_dict(),
            "risk_factors": self.risk_factors,
            "opportunities": self.opportunities,
            "adjustments": [a.to_dict() for a in self.adjustments],
        }


def format_currency(value: float) -> str:
    """Format a USD amount compactly, e.g. $1.5B, $25.0M, $750.0K, $500."""
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.1f}B"
    elif value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    elif value >= 1_000:
        return f"${value / 1_000:.1f}K"
    else:
        return f"${value:.0f}"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _count_present_fields(opportunity: Opportunity) -> int:
    """Count optional metrics that are present and non-zero."""
    points = [
        opportunity.expected_irr,
        opportunity.expected_multiple,
        opportunity.expected_risk,
        opportunity.ai_confidence,
        opportunity.similar_deal_count,
    ]
    return sum(1 for p in points if p is not None and p != 0)


def _calculate_confidence(
    opportunity: Opportunity,
    score: float,
    category_avg: float,
    sector_known: bool,
) -> float:
    """Confidence in a suggested score, clamped to [0.50, 0.95]."""
    confidence = BASE_CONFIDENCE

    present = _count_present_fields(opportunity)
    confidence += present / OPTIONAL_DATA_FIELDS * DATA_COMPLETENESS_WEIGHT

    confidence += KNOWN_SECTOR_BONUS if sector_known else UNKNOWN_SECTOR_PENALTY

    similar = opportunity.similar_deal_count
    if similar is not None and similar > 2:
        confidence += STRONG_PATTERN_BONUS
    elif similar == 0:
        confidence += NO_PATTERN_PENALTY

    deviation = abs(score - category_avg)
    if deviation > 2.0:
        confidence += EXTREME_SCORE_PENALTY
    elif deviation < 0.5:
        confidence += NEAR_BENCHMARK_BONUS

    return round(_clamp(confidence, MIN_CONFIDENCE, MAX_CONFIDENCE), 2)


# =============================================================================
# Reasoning
# =============================================================================

def _financial_reasoning(
    opportunity: Opportunity,
    benchmark: SectorBenchmark,
    above_benchmark: bool,
) -> str:
    deal_size = format_currency(opportunity.ask_price)
    sector = opportunity.sector
    fin = benchmark.financial

    if opportunity.expected_irr and opportunity.expected_multiple:
        irr_cmp = "above" if opportunity.expected_irr > fin.avg_irr else "below"
        multiple_cmp = "above" if opportunity.expected_multiple > fin.avg_multiple else "below"
        profile = "institutional-grade" if opportunity.ask_price > 50_000_000 else "mid-market"
        return (
            f"Expected IRR of {opportunity.expected_irr:.1f}% is {irr_cmp} {sector} "
            f"sector average ({fin.avg_irr:.1f}%). "
            f"Expected multiple of {opportunity.expected_multiple:.1f}x is {multiple_cmp} "
            f"sector benchmark ({fin.avg_multiple:.1f}x). "
            f"{deal_size} transaction size suggests {profile} financial profile."
        )

    strength = "strong" if above_benchmark else "acceptable"
    return (
        f"Financial metrics align with {sector} sector patterns. Deal size of "
        f"{deal_size} indicates {strength} financial foundation for this market segment."
    )


def _operational_reasoning(opportunity: Opportunity, ctx: RuleContext) -> str:
    parts = [
        f"{opportunity.sector} sector operational analysis for "
        f"{opportunity.asset_type} investment."
    ]
    if ctx.geography_has("North America"):
        parts.append(
            "North American operations typically offer strong execution "
            "capabilities and market access."
        )
    elif ctx.geography_has("Emerging"):
        parts.append(
            "Emerging market operations require enhanced due diligence on "
            "execution risk."
        )

    age = ctx.vintage_age
    if age is not None and age <= 2:
        parts.append(
            f"Recent {opportunity.vintage} vintage suggests modern operational "
            f"infrastructure and practices."
        )
    else:
        parts.append(
            f"{opportunity.vintage} vintage may require operational "
            f"modernization assessment."
        )
    return " ".join(parts)


def _strategic_reasoning(opportunity: Opportunity) -> str:
    similar = opportunity.similar_deal_count
    if similar:
        first = (
            f"Pattern matching identifies {similar} similar deals in portfolio "
            f"history, indicating proven strategic thesis."
        )
    else:
        first = (
            f"New strategic pattern for {opportunity.sector} sector requires "
            f"enhanced strategic assessment."
        )

    ai = opportunity.ai_confidence
    if ai and ai > 0.80:
        second = (
            f"High AI confidence score ({ai * 100:.0f}%) suggests strong strategic "
            f"positioning and market dynamics."
        )
    elif ai:
        second = (
            f"Moderate AI confidence ({ai * 100:.0f}%) indicates strategic "
            f"opportunities with execution considerations."
        )
    else:
        second = (
            "Strategic positioning requires detailed market analysis for "
            "competitive advantage assessment."
        )
    return f"{first} {second}"


def _risk_reasoning(opportunity: Opportunity, ctx: RuleContext) -> str:
    parts = [
        f"Risk assessment for {opportunity.sector} {opportunity.asset_type} investment."
    ]

    risk = opportunity.expected_risk
    if risk:
        if risk < 0.15:
            level = "low"
        elif risk < 0.20:
            level = "moderate"
        else:
            level = "high"
        parts.append(f"Expected risk of {risk * 100:.1f}% indicates {level} risk profile.")

    if ctx.geography_has("Emerging"):
        parts.append(
            "Emerging market exposure adds currency, political, and operational "
            "risk factors."
        )
    else:
        parts.append(
            "Developed market position provides stable regulatory and economic "
            "environment."
        )

    deal_size = format_currency(opportunity.ask_price)
    if opportunity.ask_price > LARGE_DEAL:
        parts.append(f"Deal size of {deal_size} requires enhanced execution risk management.")
    else:
        parts.append(f"Deal size of {deal_size} offers manageable implementation complexity.")
    return " ".join(parts)


def _build_reasoning(
    category: CriterionCategory,
    ctx: RuleContext,
    score: float,
    category_avg: float,
) -> str:
    """Category-specific narrative for a suggested score."""
    opportunity = ctx.opportunity
    if category == CriterionCategory.FINANCIAL:
        return _financial_reasoning(opportunity, ctx.benchmark, score > category_avg)
    elif category == CriterionCategory.OPERATIONAL:
        return _operational_reasoning(opportunity, ctx)
    elif category == CriterionCategory.STRATEGIC:
        return _strategic_reasoning(opportunity)
    else:
        return _risk_reasoning(opportunity, ctx)


# =============================================================================
# Benchmarks, risks and opportunities
# =============================================================================

def _build_benchmark_data(
    opportunity: Opportunity,
    criterion: Criterion,
    category_avg: float,
) -> BenchmarkData:
    """Illustrative comparison figures, reproducible per (opportunity, criterion)."""
    rng = random.Random(stable_seed(opportunity.id, criterion.id))

    portfolio_average = category_avg + (rng.random() - 0.5) * 0.8
    industry_median = category_avg + (rng.random() - 0.5) * 1.0
    top_quartile = max(portfolio_average, industry_median) + 0.8 + rng.random() * 0.6
    sample_size = int(rng.random() * 40) + 25

    return BenchmarkData(
        portfolio_average=round(portfolio_average, 1),
        industry_median=round(industry_median, 1),
        top_quartile=round(top_quartile, 1),
        sample_size=sample_size,
        data_source=f"{opportunity.sector} sector analysis ({BENCHMARK_PERIOD})",
    )


def _identify_risks_and_opportunities(
    opportunity: Opportunity,
    category: CriterionCategory,
    benchmark: SectorBenchmark,
) -> tuple[list[str], list[str]]:
    """Canned sector phrases plus opportunity-specific triggers, at most three each."""
    risks = list(benchmark.common_risks(category)[:2])
    opportunities = list(benchmark.success_factors(category)[:2])

    if "Emerging" in (opportunity.geography or ""):
        risks.append("Emerging market execution complexity")
    else:
        opportunities.append("Developed market stability and access")

    if opportunity.ask_price > LARGE_DEAL:
        risks.append("Large transaction execution and financing risk")
        opportunities.append("Institutional-scale market presence")
    elif opportunity.ask_price < SMALL_DEAL:
        risks.append("Limited scale and market position")
        opportunities.append("Significant growth potential and scalability")

    similar = opportunity.similar_deal_count
    if similar is not None and similar > 2:
        opportunities.append("Proven investment thesis and pattern recognition")
    elif similar == 0:
        risks.append("Limited precedent for strategic approach")
        opportunities.append("First-mover advantage in new strategy")

    return risks[:MAX_LISTED_FACTORS], opportunities[:MAX_LISTED_FACTORS]


# =============================================================================
# Public API
# =============================================================================

def generate_suggestion(
    opportunity: Opportunity,
    criterion: Criterion,
    template: Optional[ScreeningTemplate] = None,
    reference_year: Optional[int] = None,
) -> ScoringSuggestion:
    """
    Suggest a score for one criterion.

    Args:
        opportunity: Deal being screened
        criterion: Criterion to score
        template: Template the criterion belongs to (informational)
        reference_year: Year used to age the vintage (defaults to today)

    Returns:
        ScoringSuggestion with score, confidence, reasoning and context
    """
    benchmark, known = get_sector_benchmark(opportunity.sector)
    category = criterion.category
    category_avg = benchmark.for_category(category).avg_score

    if reference_year is None:
        ctx = RuleContext(opportunity=opportunity, benchmark=benchmark)
    else:
        ctx = RuleContext(
            opportunity=opportunity,
            benchmark=benchmark,
            reference_year=reference_year,
        )

    adjustments = evaluate_ladders(category, ctx)
    raw_score = category_avg + total_adjustment(adjustments)

    score = _clamp(raw_score, criterion.min_value, criterion.max_value)
    score = _clamp(round(score, 1), criterion.min_value, criterion.max_value)

    confidence = _calculate_confidence(opportunity, score, category_avg, known)
    risks, opportunities = _identify_risks_and_opportunities(opportunity, category, benchmark)

    logger.debug(
        "Scored criterion %s (%s) for %s: base=%.1f adjusted=%.2f score=%.1f confidence=%.2f",
        criterion.id,
        category.value,
        opportunity.id or opportunity.sector,
        category_avg,
        raw_score,
        score,
        confidence,
    )

    return ScoringSuggestion(
        criterion_id=criterion.id,
        category=category,
        score=score,
        confidence=confidence,
        reasoning=_build_reasoning(category, ctx, score, category_avg),
        benchmark_data=_build_benchmark_data(opportunity, criterion, category_avg),
        risk_factors=risks,
        opportunities=opportunities,
        adjustments=adjustments,
    )


def generate_batch_suggestions(
    opportunity: Opportunity,
    template: ScreeningTemplate,
    reference_year: Optional[int] = None,
) -> dict[str, ScoringSuggestion]:
    """
    Suggest scores for every criterion in a template.

    Each criterion is scored independently.

    Returns:
        Dict mapping criterion ID to its suggestion
    """
    suggestions = {
        criterion.id: generate_suggestion(
            opportunity, criterion, template, reference_year=reference_year
        )
        for criterion in template.criteria
    }
    logger.info(
        "Generated %d suggestions for %s using template %s",
        len(suggestions),
        opportunity.id or opportunity.sector,
        template.id,
    )
    return suggestions
