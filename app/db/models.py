"""
SQLAlchemy ORM models for buildings and their financial snapshots.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Float,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)


class Building(AuditMixin, Base):
    """Building model representing a managed asset."""

    __tablename__ = "buildings"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)

    # Address
    address = Column(String(255))
    city = Column(String(100))
    postal_code = Column(String(20))
    cadastral_reference = Column(String(50))

    # Valuation (EUR)
    market_value = Column(Float)
    estimated_value = Column(Float)
    rehabilitation_cost = Column(Float)

    # Relationships
    snapshots = relationship(
        "FinancialSnapshot",
        back_populates="building",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )


class FinancialSnapshot(AuditMixin, Base):
    """Annual financial figures for a building over a reporting period."""

    __tablename__ = "financial_snapshots"

    id = Column(String, primary_key=True, default=generate_uuid)
    building_id = Column(String, ForeignKey("buildings.id"), nullable=False)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    currency = Column(String(3), default="EUR", nullable=False)

    # Revenue
    gross_annual_revenue = Column(Float, nullable=False)
    other_annual_revenue = Column(Float)

    # OPEX
    total_annual_opex = Column(Float, nullable=False)
    annual_energy_opex = Column(Float, default=0.0)

    # Debt
    dscr = Column(Float)
    annual_debt_service = Column(Float)

    # Rehabilitation estimates
    estimated_rehab_capex = Column(Float)
    estimated_energy_savings_pct = Column(Float)  # 0-100
    estimated_price_uplift_pct = Column(Float)  # 0-100

    # Relationships
    building = relationship("Building", back_populates="snapshots")
