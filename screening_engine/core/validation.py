"""
Input validation rules for screening inputs.

Validates criteria, opportunities and enumerated parameters at the
boundary so the scoring and document layers only ever see clean values.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .models import CriterionCategory, EvaluationMode

if TYPE_CHECKING:
    from .models import Criterion, Opportunity


class ValidationError(Exception):
    """Raised when validation fails."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")


@dataclass
class ValidationResult:
    """Result of validation operation."""

    is_valid: bool
    errors: list[ValidationError]
    warnings: list[str]

    def __bool__(self) -> bool:
        return self.is_valid


def parse_mode(value: Union[str, EvaluationMode]) -> EvaluationMode:
    """
    Parse an evaluation mode.

    Accepts an EvaluationMode or its string value (case-insensitive).

    Raises:
        ValidationError: If the value is not one of the three modes
    """
    if isinstance(value, EvaluationMode):
        return value

    try:
        return EvaluationMode(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(m.value for m in EvaluationMode)
        raise ValidationError(
            "mode",
            f"Invalid evaluation mode '{value}' (expected one of: {valid})",
            value,
        ) from None


def parse_category(value: Union[str, CriterionCategory]) -> CriterionCategory:
    """
    Parse a criterion category.

    Raises:
        ValidationError: If the value is not a known category
    """
    if isinstance(value, CriterionCategory):
        return value

    try:
        return CriterionCategory(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(c.value for c in CriterionCategory)
        raise ValidationError(
            "category",
            f"Invalid criterion category '{value}' (expected one of: {valid})",
            value,
        ) from None


def validate_criterion(criterion: "Criterion") -> None:
    """
    Validate a screening criterion.

    Raises:
        ValidationError: If the criterion ID is missing or the bounds
            are not strictly increasing
    """
    if not criterion.id:
        raise ValidationError("id", "Criterion ID is required")

    if criterion.min_value >= criterion.max_value:
        raise ValidationError(
            "min_value",
            f"min_value ({criterion.min_value}) must be less than "
            f"max_value ({criterion.max_value})",
            criterion.min_value,
        )

    if criterion.weight < 0:
        raise ValidationError(
            "weight",
            "Weight cannot be negative",
            criterion.weight,
        )


def validate_opportunity(opportunity: "Opportunity") -> ValidationResult:
    """
    Validate an opportunity for correctness and completeness.

    Missing optional metrics are reported as warnings only; the scoring
    engine degrades confidence for them instead of failing.
    """
    errors: list[ValidationError] = []
    warnings: list[str] = []

    # Required fields
    if not opportunity.sector:
        errors.append(ValidationError("sector", "Sector is required"))

    if not opportunity.asset_type:
        errors.append(ValidationError("asset_type", "Asset type is required"))

    if not opportunity.geography:
        errors.append(ValidationError("geography", "Geography is required"))

    if not opportunity.vintage:
        errors.append(ValidationError("vintage", "Vintage is required"))

    if opportunity.ask_price is None or opportunity.ask_price < 0:
        errors.append(ValidationError(
            "ask_price",
            "Ask price must be a non-negative amount",
            opportunity.ask_price,
        ))

    # Range checks on optional metrics
    if opportunity.expected_risk is not None and not 0 <= opportunity.expected_risk <= 1:
        errors.append(ValidationError(
            "expected_risk",
            "Expected risk must be a fraction between 0 and 1",
            opportunity.expected_risk,
        ))

    if opportunity.ai_confidence is not None and not 0 <= opportunity.ai_confidence <= 1:
        errors.append(ValidationError(
            "ai_confidence",
            "AI confidence must be between 0 and 1",
            opportunity.ai_confidence,
        ))

    if opportunity.expected_multiple is not None and opportunity.expected_multiple < 0:
        errors.append(ValidationError(
            "expected_multiple",
            "Expected multiple cannot be negative",
            opportunity.expected_multiple,
        ))

    # Warnings for missing data
    if opportunity.expected_irr is None:
        warnings.append("No expected IRR provided - financial scoring uses sector average")

    if opportunity.expected_risk is None:
        warnings.append("No expected risk provided - risk scoring uses sector average")

    if opportunity.vintage and not opportunity.vintage.strip()[:4].isdigit():
        warnings.append(f"Vintage '{opportunity.vintage}' is not a year - vintage rules skipped")

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )
