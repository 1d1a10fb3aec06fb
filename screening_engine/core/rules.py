"""
Score adjustment rules.

Each criterion category is scored from its sector average plus a set of
rule ladders. A ladder is an ordered list of (predicate, delta) rules of
which at most one applies: the first rule whose predicate matches. The
deltas of all ladders for a category are summed.

Ladders:
- Financial: IRR ratio, multiple ratio, deal size
- Operational: vintage age, geography, asset type
- Strategic: sector positioning, similar-deal patterns
- Risk: expected risk, geography, deal size
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from .benchmarks import SectorBenchmark
from .models import CriterionCategory, Opportunity


# Deal size thresholds (USD)
LARGE_DEAL = 100_000_000
SMALL_DEAL = 10_000_000
MICRO_DEAL = 5_000_000
RISK_SWEET_SPOT_MIN = 25_000_000
RISK_SWEET_SPOT_MAX = 100_000_000


def parse_vintage_year(vintage: str) -> Optional[int]:
    """Parse the leading year digits of a vintage string, e.g. '2023' or '2023-Q2'."""
    match = re.match(r"\s*(\d{4})", vintage or "")
    if not match:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class RuleContext:
    """Inputs visible to adjustment rule predicates."""

    opportunity: Opportunity
    benchmark: SectorBenchmark
    reference_year: int = field(default_factory=lambda: date.today().year)

    @property
    def irr_ratio(self) -> Optional[float]:
        """Expected IRR relative to the sector average, if IRR was given."""
        if not self.opportunity.expected_irr:
            return None
        return self.opportunity.expected_irr / self.benchmark.financial.avg_irr

    @property
    def multiple_ratio(self) -> Optional[float]:
        """Expected multiple relative to the sector average, if given."""
        if not self.opportunity.expected_multiple:
            return None
        return self.opportunity.expected_multiple / self.benchmark.financial.avg_multiple

    @property
    def vintage_age(self) -> Optional[int]:
        """Years since the vintage year, or None if unparseable."""
        year = parse_vintage_year(self.opportunity.vintage)
        if year is None:
            return None
        return self.reference_year - year

    @property
    def similar_count(self) -> Optional[int]:
        return self.opportunity.similar_deal_count

    def geography_has(self, region: str) -> bool:
        return region in (self.opportunity.geography or "")


@dataclass(frozen=True)
class AdjustmentRule:
    """A single score adjustment: apply delta when predicate holds."""

    description: str
    delta: float
    predicate: Callable[[RuleContext], bool] = field(compare=False)

    def matches(self, ctx: RuleContext) -> bool:
        return bool(self.predicate(ctx))


@dataclass(frozen=True)
class RuleLadder:
    """Ordered rules of which only the first match applies."""

    name: str
    rules: tuple[AdjustmentRule, ...]

    def evaluate(self, ctx: RuleContext) -> Optional[AdjustmentRule]:
        """Return the first matching rule, or None."""
        for rule in self.rules:
            if rule.matches(ctx):
                return rule
        return None


@dataclass(frozen=True)
class AppliedAdjustment:
    """Record of a rule that contributed to a score."""

    ladder: str
    description: str
    delta: float

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "ladder": self.ladder,
            "description": self.description,
            "delta": self.delta,
        }


def _ratio_above(attr: str, threshold: float) -> Callable[[RuleContext], bool]:
    def predicate(ctx: RuleContext) -> bool:
        ratio = getattr(ctx, attr)
        return ratio is not None and ratio > threshold
    return predicate


def _ratio_below(attr: str, threshold: float) -> Callable[[RuleContext], bool]:
    def predicate(ctx: RuleContext) -> bool:
        ratio = getattr(ctx, attr)
        return ratio is not None and ratio < threshold
    return predicate


def _expected_risk(test: Callable[[float], bool]) -> Callable[[RuleContext], bool]:
    def predicate(ctx: RuleContext) -> bool:
        risk = ctx.opportunity.expected_risk
        return bool(risk) and test(risk)
    return predicate


def _ai_confidence(test: Callable[[float], bool]) -> Callable[[RuleContext], bool]:
    def predicate(ctx: RuleContext) -> bool:
        confidence = ctx.opportunity.ai_confidence
        return bool(confidence) and test(confidence)
    return predicate


def _vintage_age(test: Callable[[int], bool]) -> Callable[[RuleContext], bool]:
    def predicate(ctx: RuleContext) -> bool:
        age = ctx.vintage_age
        return age is not None and test(age)
    return predicate


# =============================================================================
# Financial
# =============================================================================

IRR_LADDER = RuleLadder("irr", (
    AdjustmentRule("IRR more than 20% above sector average", 1.5, _ratio_above("irr_ratio", 1.2)),
    AdjustmentRule("IRR more than 10% above sector average", 1.0, _ratio_above("irr_ratio", 1.1)),
    AdjustmentRule("IRR more than 20% below sector average", -1.5, _ratio_below("irr_ratio", 0.8)),
    AdjustmentRule("IRR more than 10% below sector average", -1.0, _ratio_below("irr_ratio", 0.9)),
))

MULTIPLE_LADDER = RuleLadder("multiple", (
    AdjustmentRule("Multiple more than 20% above sector average", 1.0, _ratio_above("multiple_ratio", 1.2)),
    AdjustmentRule("Multiple more than 20% below sector average", -1.0, _ratio_below("multiple_ratio", 0.8)),
))

FINANCIAL_SIZE_LADDER = RuleLadder("deal_size", (
    AdjustmentRule("Large deal above $100M", 0.5, lambda c: c.opportunity.ask_price > LARGE_DEAL),
    AdjustmentRule("Small deal below $10M", -0.3, lambda c: c.opportunity.ask_price < SMALL_DEAL),
))

# =============================================================================
# Operational
# =============================================================================

VINTAGE_LADDER = RuleLadder("vintage", (
    AdjustmentRule("Recent vintage (1 year or less)", 0.5, _vintage_age(lambda age: age <= 1)),
    AdjustmentRule("Mature vintage (5 years or more)", -0.5, _vintage_age(lambda age: age >= 5)),
))

OPERATIONAL_GEOGRAPHY_LADDER = RuleLadder("geography", (
    AdjustmentRule("North American operations", 0.3, lambda c: c.geography_has("North America")),
    AdjustmentRule("European operations", 0.2, lambda c: c.geography_has("Europe")),
    AdjustmentRule("Asian operations", 0.1, lambda c: c.geography_has("Asia")),
    AdjustmentRule("Emerging market operations", -0.5, lambda c: c.geography_has("Emerging")),
))

ASSET_TYPE_LADDER = RuleLadder("asset_type", (
    AdjustmentRule("Direct investment control", 0.3, lambda c: c.opportunity.asset_type == "direct"),
    AdjustmentRule("Fund investment with indirect control", -0.2, lambda c: c.opportunity.asset_type == "fund"),
))

# =============================================================================
# Strategic
# =============================================================================

STRATEGIC_SECTOR_LADDER = RuleLadder("sector_positioning", (
    AdjustmentRule(
        "High AI confidence in Technology market position", 1.0,
        lambda c: c.opportunity.sector == "Technology" and _ai_confidence(lambda v: v > 0.85)(c),
    ),
    AdjustmentRule(
        "Low AI confidence in Technology market position", -0.8,
        lambda c: c.opportunity.sector == "Technology" and _ai_confidence(lambda v: v < 0.70)(c),
    ),
    AdjustmentRule("Healthcare barriers to entry", 0.5, lambda c: c.opportunity.sector == "Healthcare"),
    AdjustmentRule("Energy subsector positioning", 0.3, lambda c: c.opportunity.sector == "Energy"),
))

SIMILAR_DEALS_LADDER = RuleLadder("similar_deals", (
    AdjustmentRule(
        "Strong pattern match with prior deals", 0.8,
        lambda c: c.similar_count is not None and c.similar_count > 2,
    ),
    AdjustmentRule(
        "No similar deals in portfolio history", -0.5,
        lambda c: c.similar_count == 0,
    ),
))

# =============================================================================
# Risk
# =============================================================================

EXPECTED_RISK_LADDER = RuleLadder("expected_risk", (
    AdjustmentRule("Very low expected risk", 1.5, _expected_risk(lambda r: r < 0.10)),
    AdjustmentRule("Low expected risk", 1.0, _expected_risk(lambda r: r < 0.15)),
    AdjustmentRule("High expected risk", -1.5, _expected_risk(lambda r: r > 0.25)),
    AdjustmentRule("Medium-high expected risk", -1.0, _expected_risk(lambda r: r > 0.20)),
))

RISK_GEOGRAPHY_LADDER = RuleLadder("geography", (
    AdjustmentRule("Emerging market exposure", -1.0, lambda c: c.geography_has("Emerging")),
    AdjustmentRule(
        "Developed market stability", 0.5,
        lambda c: c.geography_has("North America") or c.geography_has("Europe"),
    ),
))

RISK_SIZE_LADDER = RuleLadder("deal_size", (
    AdjustmentRule("Large transaction execution risk", -0.5, lambda c: c.opportunity.ask_price > LARGE_DEAL),
    AdjustmentRule("Liquidity and scale risk below $5M", -0.8, lambda c: c.opportunity.ask_price < MICRO_DEAL),
    AdjustmentRule(
        "Deal size in $25M-$100M sweet spot", 0.3,
        lambda c: RISK_SWEET_SPOT_MIN <= c.opportunity.ask_price <= RISK_SWEET_SPOT_MAX,
    ),
))


CATEGORY_LADDERS: dict[CriterionCategory, tuple[RuleLadder, ...]] = {
    CriterionCategory.FINANCIAL: (IRR_LADDER, MULTIPLE_LADDER, FINANCIAL_SIZE_LADDER),
    CriterionCategory.OPERATIONAL: (VINTAGE_LADDER, OPERATIONAL_GEOGRAPHY_LADDER, ASSET_TYPE_LADDER),
    CriterionCategory.STRATEGIC: (STRATEGIC_SECTOR_LADDER, SIMILAR_DEALS_LADDER),
    CriterionCategory.RISK: (EXPECTED_RISK_LADDER, RISK_GEOGRAPHY_LADDER, RISK_SIZE_LADDER),
}


def evaluate_ladders(
    category: CriterionCategory,
    ctx: RuleContext,
) -> list[AppliedAdjustment]:
    """
    Evaluate every ladder for a category.

    Args:
        category: Criterion category whose ladders apply
        ctx: Opportunity and benchmark being scored

    Returns:
        Adjustments that matched, in ladder order
    """
    applied = []
    for ladder in CATEGORY_LADDERS[category]:
        rule = ladder.evaluate(ctx)
        if rule is not None:
            applied.append(AppliedAdjustment(
                ladder=ladder.name,
                description=rule.description,
                delta=rule.delta,
            ))
    return applied


def total_adjustment(adjustments: list[AppliedAdjustment]) -> float:
    """Net score change from a list of matched adjustments."""
    return sum(a.delta for a in adjustments)
