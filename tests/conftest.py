"""Shared fixtures for screening engine tests."""

from datetime import datetime, timezone

import pytest

from screening_engine.core import (
    CriterionCategory,
    Recommendation,
    Opportunity,
    Criterion,
    ScreeningTemplate,
    CriterionScore,
    ScreeningResult,
)


FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
REFERENCE_YEAR = 2024


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def tech_opportunity():
    """Large North American technology buyout with full metrics."""
    return Opportunity(
        id="OPP-1",
        name="Northwind Analytics",
        description="Vertical SaaS platform for logistics operators.",
        seller="Harbor Growth Partners",
        sector="Technology",
        asset_type="direct",
        geography="North America",
        vintage="2023",
        ask_price=150_000_000,
        expected_irr=30.0,
        expected_multiple=3.0,
        expected_risk=0.18,
        expected_holding_period=5,
        ai_confidence=0.88,
        similar_deals=["D-1", "D-2", "D-3"],
    )


@pytest.fixture
def minimal_opportunity():
    """Mid-size energy deal with no optional metrics."""
    return Opportunity(
        id="OPP-2",
        sector="Energy",
        asset_type="direct",
        geography="North America",
        vintage="2020",
        ask_price=50_000_000,
    )


@pytest.fixture
def emerging_opportunity():
    """Risky emerging-market fund investment."""
    return Opportunity(
        id="OPP-3",
        name="Southern Growth Fund IV",
        sector="Healthcare",
        asset_type="fund",
        geography="Emerging Markets",
        vintage="2017",
        ask_price=3_000_000,
        expected_irr=14.0,
        expected_multiple=1.5,
        expected_risk=0.30,
        ai_confidence=0.60,
        similar_deals=[],
    )


def make_criterion(category: CriterionCategory, min_value=0, max_value=10, weight=0.25):
    return Criterion(
        id=f"{category.value}_score",
        category=category,
        min_value=min_value,
        max_value=max_value,
        weight=weight,
        name=f"{category.value.title()} Score",
    )


@pytest.fixture
def criteria():
    """One 0-10 criterion per category, keyed by category."""
    return {category: make_criterion(category) for category in CriterionCategory}


@pytest.fixture
def template(criteria):
    return ScreeningTemplate(
        id="TPL-1",
        name="Standard Buyout",
        criteria=list(criteria.values()),
    )


def make_result(total_score=82.0, recommendation=Recommendation.RECOMMENDED):
    return ScreeningResult(
        id="SCR-1",
        opportunity_id="OPP-1",
        total_score=total_score,
        recommendation=recommendation,
        criteria_scores=[
            CriterionScore("financial_score", 9.8, 0.98, 34.3),
            CriterionScore("operational_score", 8.3, 0.83, 20.75),
            CriterionScore("strategic_score", 9.3, 0.93, 23.25),
            CriterionScore("risk_score", 6.8, 0.68, 10.2),
        ],
    )


@pytest.fixture
def screening_result():
    """Recommended result scoring 82/100."""
    return make_result()
