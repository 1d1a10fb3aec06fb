"""
Deal Screening Engine

Scoring and report-synthesis modules for private-equity deal screening.

Components:
  1. Sector benchmark table
  2. Scoring engine (per-criterion suggestions)
  3. Document assembler (investment summaries, memos, DD plans, risk reviews)
  4. Format optimizer (PDF, DOCX, HTML and Markdown renderings)

Usage:
    from screening_engine.core import Opportunity, Criterion, generate_suggestion
    from screening_engine.documents import generate_investment_summary
    from screening_engine.export import FormatOptimizer, create_default_registry
"""

__version__ = "0.4.0"
