"""
Financial Calculation Engine

Core calculation modules for building investment analysis.
All calculations are pure functions over plain numbers and sequences.
"""

from app.calculations import cashflow, irr, metrics, rehab, sensitivity
from app.calculations.errors import InvalidInputError

__all__ = ["cashflow", "irr", "metrics", "rehab", "sensitivity", "InvalidInputError"]
