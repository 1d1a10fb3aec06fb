"""
Deal screening data models.

Defines the input records supplied by the screening workflow:
- Opportunities under evaluation
- Screening criteria and templates
- Screening results and post-screening workflows
- Evaluation mode
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class CriterionCategory(Enum):
    """Evaluation dimensions a screening criterion can belong to."""

    FINANCIAL = "financial"
    OPERATIONAL = "operational"
    STRATEGIC = "strategic"
    RISK = "risk"


class EvaluationMode(Enum):
    """How much of the evaluation is automated."""

    TRADITIONAL = "traditional"  # Analyst-authored, template driven
    ASSISTED = "assisted"  # AI suggestions reviewed by analyst
    AUTONOMOUS = "autonomous"  # AI generated, exception review only


class Recommendation(Enum):
    """Screening outcome recommendation."""

    HIGHLY_RECOMMENDED = "highly_recommended"
    RECOMMENDED = "recommended"
    NEUTRAL = "neutral"
    NOT_RECOMMENDED = "not_recommended"

    @property
    def label(self) -> str:
        """Human-readable label, e.g. 'highly recommended'."""
        return self.value.replace("_", " ")


class WorkflowStage(Enum):
    """Stages of the post-screening workflow."""

    ROUTING = "routing"
    COMMITTEE_REVIEW = "committee_review"
    DUE_DILIGENCE = "due_diligence"
    APPROVAL = "approval"
    DOCUMENTATION = "documentation"
    COMPLETED = "completed"


@dataclass
class Opportunity:
    """
    A deal opportunity under evaluation.

    Only sector, asset type, geography, vintage and ask price are
    required. Every optional metric is skipped by the scoring rules
    when absent.
    """

    # Required deal characteristics
    sector: str
    asset_type: str  # e.g. "direct", "fund", "co-investment"
    geography: str  # e.g. "North America", "Emerging Asia"
    vintage: str  # Vintage year, e.g. "2023"
    ask_price: float  # USD

    # Identification
    id: str = ""
    name: str = ""
    description: str = ""
    seller: Optional[str] = None

    # Preliminary metrics
    expected_irr: Optional[float] = None  # Percent, e.g. 24.5
    expected_multiple: Optional[float] = None  # MOIC, e.g. 2.8
    expected_risk: Optional[float] = None  # Fraction, e.g. 0.15
    expected_holding_period: Optional[float] = None  # Years

    # AI enhancement
    ai_confidence: Optional[float] = None  # 0-1
    similar_deals: Optional[list[str]] = None  # IDs of similar portfolio deals

    @property
    def display_name(self) -> str:
        """Name to use in document titles."""
        return self.name or self.id or f"{self.sector} opportunity"

    @property
    def similar_deal_count(self) -> Optional[int]:
        """Number of similar deals, or None when no pattern data exists."""
        if self.similar_deals is None:
            return None
        return len(self.similar_deals)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "seller": self.seller,
            "sector": self.sector,
            "asset_type": self.asset_type,
            "geography": self.geography,
            "vintage": self.vintage,
            "ask_price": self.ask_price,
            "expected_irr": self.expected_irr,
            "expected_multiple": self.expected_multiple,
            "expected_risk": self.expected_risk,
            "expected_holding_period": self.expected_holding_period,
            "ai_confidence": self.ai_confidence,
            "similar_deals": self.similar_deals,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Opportunity":
        """Create from dictionary representation."""
        similar = data.get("similar_deals")
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            seller=data.get("seller"),
            sector=data["sector"],
            asset_type=data["asset_type"],
            geography=data["geography"],
            vintage=str(data["vintage"]),
            ask_price=data["ask_price"],
            expected_irr=data.get("expected_irr"),
            expected_multiple=data.get("expected_multiple"),
            expected_risk=data.get("expected_risk"),
            expected_holding_period=data.get("expected_holding_period"),
            ai_confidence=data.get("ai_confidence"),
            similar_deals=list(similar) if similar is not None else None,
        )


@dataclass
class Criterion:
    """A weighted, bounded evaluation dimension used to score a deal."""

    id: str
    category: CriterionCategory
    min_value: float
    max_value: float
    weight: float = 1.0
    name: str = ""
    description: str = ""

    def __post_init__(self):
        # Imported here to avoid a circular import with validation
        from .validation import parse_category, validate_criterion

        if not isinstance(self.category, CriterionCategory):
            self.category = parse_category(self.category)
        validate_criterion(self)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Criterion":
        """Create from dictionary representation."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            category=data["category"],
            min_value=data["min_value"],
            max_value=data["max_value"],
            weight=data.get("weight", 1.0),
        )


@dataclass
class ScreeningTemplate:
    """A named set of screening criteria."""

    id: str
    name: str = ""
    description: str = ""
    criteria: list[Criterion] = field(default_factory=list)

    def get_criterion(self, criterion_id: str) -> Optional[Criterion]:
        """Get a criterion by ID."""
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "criteria": [c.to_dict() for c in self.criteria],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScreeningTemplate":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            criteria=[Criterion.from_dict(c) for c in data.get("criteria", [])],
        )


@dataclass
class CriterionScore:
    """Score recorded for one criterion during screening."""

    criterion_id: str
    value: float
    normalized_score: float = 0.0  # 0-1
    weighted_score: float = 0.0  # normalized * weight

    @property
    def weight_percent(self) -> Optional[float]:
        """Effective weight as a percentage of the raw value."""
        if not self.value:
            return None
        return self.weighted_score / self.value * 100

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "criterion_id": self.criterion_id,
            "value": self.value,
            "normalized_score": self.normalized_score,
            "weighted_score": self.weighted_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CriterionScore":
        """Create from dictionary representation."""
        return cls(
            criterion_id=data.get("criterion_id", ""),
            value=data.get("value", 0.0),
            normalized_score=data.get("normalized_score", 0.0),
            weighted_score=data.get("weighted_score", 0.0),
        )


@dataclass
class ScreeningResult:
    """Outcome of screening an opportunity against a template."""

    total_score: float  # 0-100
    recommendation: Recommendation
    criteria_scores: list[CriterionScore] = field(default_factory=list)
    id: str = ""
    opportunity_id: str = ""

    def top_criteria(self, limit: int = 3) -> list[CriterionScore]:
        """Highest weighted criteria scores, best first."""
        ranked = sorted(
            self.criteria_scores,
            key=lambda s: s.weighted_score,
            reverse=True,
        )
        return ranked[:limit]

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "opportunity_id": self.opportunity_id,
            "total_score": self.total_score,
            "recommendation": self.recommendation.value,
            "criteria_scores": [s.to_dict() for s in self.criteria_scores],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScreeningResult":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id", ""),
            opportunity_id=data.get("opportunity_id", ""),
            total_score=data["total_score"],
            recommendation=Recommendation(data["recommendation"]),
            criteria_scores=[
                CriterionScore.from_dict(s)
                for s in data.get("criteria_scores", [])
            ],
        )


@dataclass
class PostScreeningWorkflow:
    """Routing state of an opportunity after screening."""

    id: str
    opportunity_id: str = ""
    current_stage: WorkflowStage = WorkflowStage.ROUTING
    automation_level: str = "assisted"  # manual, assisted, autonomous

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "opportunity_id": self.opportunity_id,
            "current_stage": self.current_stage.value,
            "automation_level": self.automation_level,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PostScreeningWorkflow":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id", ""),
            opportunity_id=data.get("opportunity_id", ""),
            current_stage=WorkflowStage(data.get("current_stage", "routing")),
            automation_level=data.get("automation_level", "assisted"),
        )
