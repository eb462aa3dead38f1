"""
Application services module.
"""

from app.services.financial_metrics import (
    BuildingNotFoundError,
    FinancialMetricsService,
    ResourceNotFoundError,
    SnapshotNotFoundError,
)

__all__ = [
    "BuildingNotFoundError",
    "FinancialMetricsService",
    "ResourceNotFoundError",
    "SnapshotNotFoundError",
]
