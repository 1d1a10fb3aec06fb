"""
Sector benchmark reference data.

Static per-sector figures used to anchor criterion scores:
- Financial: average IRR, multiple and score
- Operational: average score and success factors
- Strategic: average score and key indicators
- Risk: average score and common risks

Also provides the stable hash helper used to derive reproducible
illustrative figures from record identifiers.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Union

from .models import CriterionCategory

logger = logging.getLogger(__name__)


# Sector used when an opportunity's sector has no benchmark entry
FALLBACK_SECTOR = "Technology"


@dataclass(frozen=True)
class FinancialBenchmark:
    """Financial return benchmarks for a sector."""

    avg_irr: float  # Percent
    avg_multiple: float  # MOIC
    avg_score: float


@dataclass(frozen=True)
class OperationalBenchmark:
    """Operational benchmarks for a sector."""

    avg_score: float
    success_factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class StrategicBenchmark:
    """Strategic benchmarks for a sector."""

    avg_score: float
    key_indicators: tuple[str, ...] = ()


@dataclass(frozen=True)
class RiskBenchmark:
    """Risk benchmarks for a sector."""

    avg_score: float
    common_risks: tuple[str, ...] = ()


CategoryBenchmark = Union[
    FinancialBenchmark, OperationalBenchmark, StrategicBenchmark, RiskBenchmark
]


@dataclass(frozen=True)
class SectorBenchmark:
    """Reference figures for one sector across all four categories."""

    sector: str
    financial: FinancialBenchmark
    operational: OperationalBenchmark
    strategic: StrategicBenchmark
    risk: RiskBenchmark

    def for_category(self, category: CriterionCategory) -> CategoryBenchmark:
        """Get the benchmark block for a criterion category."""
        return getattr(self, category.value)

    def success_factors(self, category: CriterionCategory) -> tuple[str, ...]:
        """Canned opportunity phrases carried by a category block."""
        return getattr(self.for_category(category), "success_factors", ())

    def common_risks(self, category: CriterionCategory) -> tuple[str, ...]:
        """Canned risk phrases carried by a category block."""
        return getattr(self.for_category(category), "common_risks", ())

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "sector": self.sector,
            "financial": {
                "avg_irr": self.financial.avg_irr,
                "avg_multiple": self.financial.avg_multiple,
                "avg_score": self.financial.avg_score,
            },
            "operational": {
                "avg_score": self.operational.avg_score,
                "success_factors": list(self.operational.success_factors),
            },
            "strategic": {
                "avg_score": self.strategic.avg_score,
                "key_indicators": list(self.strategic.key_indicators),
            },
            "risk": {
                "avg_score": self.risk.avg_score,
                "common_risks": list(self.risk.common_risks),
            },
        }


SECTOR_BENCHMARKS: dict[str, SectorBenchmark] = {
    "Technology": SectorBenchmark(
        sector="Technology",
        financial=FinancialBenchmark(avg_irr=24.5, avg_multiple=2.8, avg_score=7.8),
        operational=OperationalBenchmark(
            avg_score=7.2,
            success_factors=(
                "Strong technical team",
                "Scalable platform",
                "Product-market fit",
                "Customer retention >90%",
            ),
        ),
        strategic=StrategicBenchmark(
            avg_score=7.5,
            key_indicators=(
                "Market size >$1B",
                "Defensible moats",
                "Network effects",
                "API ecosystem",
            ),
        ),
        risk=RiskBenchmark(
            avg_score=6.8,
            common_risks=(
                "Technology obsolescence",
                "Competitive disruption",
                "Key person dependency",
                "Cybersecurity",
            ),
        ),
    ),
    "Healthcare": SectorBenchmark(
        sector="Healthcare",
        financial=FinancialBenchmark(avg_irr=19.2, avg_multiple=2.4, avg_score=7.1),
        operational=OperationalBenchmark(
            avg_score=7.6,
            success_factors=(
                "Regulatory compliance",
                "Clinical outcomes",
                "Experienced management",
                "Payer relationships",
            ),
        ),
        strategic=StrategicBenchmark(
            avg_score=7.3,
            key_indicators=(
                "FDA approval status",
                "Market access",
                "Reimbursement",
                "Clinical differentiation",
            ),
        ),
        risk=RiskBenchmark(
            avg_score=6.5,
            common_risks=(
                "Regulatory changes",
                "Clinical trial failures",
                "Reimbursement cuts",
                "Liability",
            ),
        ),
    ),
    "Financial Services": SectorBenchmark(
        sector="Financial Services",
        financial=FinancialBenchmark(avg_irr=16.8, avg_multiple=2.1, avg_score=6.9),
        operational=OperationalBenchmark(
            avg_score=7.4,
            success_factors=(
                "Risk management",
                "Regulatory compliance",
                "Technology infrastructure",
                "Customer acquisition",
            ),
        ),
        strategic=StrategicBenchmark(
            avg_score=7.0,
            key_indicators=(
                "Market share",
                "Cross-selling",
                "Digital capabilities",
                "Regulatory moats",
            ),
        ),
        risk=RiskBenchmark(
            avg_score=6.2,
            common_risks=(
                "Regulatory changes",
                "Credit risk",
                "Market volatility",
                "Compliance failures",
            ),
        ),
    ),
    "Manufacturing": SectorBenchmark(
        sector="Manufacturing",
        financial=FinancialBenchmark(avg_irr=18.5, avg_multiple=2.3, avg_score=7.0),
        operational=OperationalBenchmark(
            avg_score=7.8,
            success_factors=(
                "Operational efficiency",
                "Quality control",
                "Supply chain",
                "Lean processes",
            ),
        ),
        strategic=StrategicBenchmark(
            avg_score=6.8,
            key_indicators=(
                "Market position",
                "Cost leadership",
                "Innovation",
                "Customer relationships",
            ),
        ),
        risk=RiskBenchmark(
            avg_score=6.6,
            common_risks=(
                "Supply chain disruption",
                "Commodity price volatility",
                "Environmental",
                "Labor relations",
            ),
        ),
    ),
    "Energy": SectorBenchmark(
        sector="Energy",
        financial=FinancialBenchmark(avg_irr=22.1, avg_multiple=2.6, avg_score=7.3),
        operational=OperationalBenchmark(
            avg_score=7.1,
            success_factors=(
                "Operational excellence",
                "Safety record",
                "Environmental compliance",
                "Technology",
            ),
        ),
        strategic=StrategicBenchmark(
            avg_score=6.9,
            key_indicators=(
                "Resource quality",
                "Market access",
                "ESG credentials",
                "Regulatory position",
            ),
        ),
        risk=RiskBenchmark(
            avg_score=6.0,
            common_risks=(
                "Commodity price volatility",
                "Regulatory changes",
                "Environmental",
                "Stranded assets",
            ),
        ),
    ),
}


def get_sector_benchmark(sector: str) -> tuple[SectorBenchmark, bool]:
    """
    Look up the benchmark for a sector.

    Unknown sectors fall back to the Technology benchmark.

    Returns:
        Tuple of (benchmark, known) where known is False when the
        fallback was used
    """
    if is_known_sector(sector):
        return SECTOR_BENCHMARKS[sector], True

    logger.warning(
        "No benchmark for sector %r, falling back to %s", sector, FALLBACK_SECTOR
    )
    return SECTOR_BENCHMARKS[FALLBACK_SECTOR], False


def is_known_sector(sector: str) -> bool:
    """Check whether a sector has its own benchmark entry."""
    return sector in SECTOR_BENCHMARKS


def stable_seed(*parts: str) -> int:
    """
    Derive a reproducible integer seed from string parts.

    Uses SHA-256 so the value is identical across processes and
    interpreter runs (unlike the built-in hash()).
    """
    joined = "\x1f".join(str(p) for p in parts)
    digest = hashlib.sha256(joined.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def stable_unit_interval(*parts: str) -> float:
    """Map string parts to a reproducible float in [0, 1)."""
    return stable_seed(*parts) / float(1 << 64)
