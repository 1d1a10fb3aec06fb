"""
Core modules for the Deal Screening Engine.

- models: Opportunity, criterion, template and screening result records
- validation: Input validation and boundary parsing
- benchmarks: Static sector benchmark table
- rules: Declarative score adjustment ladders
- scoring: Per-criterion scoring suggestions
- cancellation: Timeout and cancellation for generation calls
"""

from .models import (
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
)
from .validation import (
    ValidationError,
    ValidationResult,
    parse_mode,
    parse_category,
    validate_criterion,
    validate_opportunity,
)
from .benchmarks import (
    FALLBACK_SECTOR,
    SECTOR_BENCHMARKS,
    SectorBenchmark,
    get_sector_benchmark,
    is_known_sector,
    stable_seed,
    stable_unit_interval,
)
from .rules import (
    AdjustmentRule,
    AppliedAdjustment,
    RuleContext,
    RuleLadder,
    CATEGORY_LADDERS,
    evaluate_ladders,
    total_adjustment,
)
from .scoring import (
    BenchmarkData,
    ScoringSuggestion,
    format_currency,
    generate_suggestion,
    generate_batch_suggestions,
)
from .cancellation import (
    CancellationToken,
    GenerationCancelledError,
    GenerationTimeoutError,
    run_with_deadline,
)

__all__ = [
    # Models
    "CriterionCategory",
    "EvaluationMode",
    "Recommendation",
    "WorkflowStage",
    "Opportunity",
    "Criterion",
    "ScreeningTemplate",
    "CriterionScore",
    "ScreeningResult",
    "PostScreeningWorkflow",
    # Validation
    "ValidationError",
    "ValidationResult",
    "parse_mode",
    "parse_category",
    "validate_criterion",
    "validate_opportunity",
    # Benchmarks
    "FALLBACK_SECTOR",
    "SECTOR_BENCHMARKS",
    "SectorBenchmark",
    "get_sector_benchmark",
    "is_known_sector",
    "stable_seed",
    "stable_unit_interval",
    # Rules
    "AdjustmentRule",
    "AppliedAdjustment",
    "RuleContext",
    "RuleLadder",
    "CATEGORY_LADDERS",
    "evaluate_ladders",
    "total_adjustment",
    # Scoring
    "BenchmarkData",
    "ScoringSuggestion",
    "format_currency",
    "generate_suggestion",
    "generate_batch_suggestions",
    # Cancellation
    "CancellationToken",
    "GenerationCancelledError",
    "GenerationTimeoutError",
    "run_with_deadline",
]
