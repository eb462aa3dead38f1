"""
Building management API endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session

from app.api.responses import DataResponse
from app.calculations.errors import InvalidInputError
from app.db.database import get_db
from app.db.models import Building, FinancialSnapshot
from app.services.financial_metrics import FinancialMetricsService

logger = logging.getLogger(__name__)

router = APIRouter()


class BuildingCreate(BaseModel):
    """Schema for creating a building."""

    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    cadastral_reference: Optional[str] = None
    market_value: Optional[float] = None
    estimated_value: Optional[float] = None
    rehabilitation_cost: Optional[float] = None


class BuildingUpdate(BaseModel):
    """Schema for updating a building."""

    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    cadastral_reference: Optional[str] = None
    market_value: Optional[float] = None
    estimated_value: Optional[float] = None
    rehabilitation_cost: Optional[float] = None


class BuildingResponse(BaseModel):
    """Schema for building response."""

    id: str
    name: str
    address: Optional[str]
    city: Optional[str]
    postal_code: Optional[str]
    cadastral_reference: Optional[str]
    market_value: Optional[float]
    estimated_value: Optional[float]
    rehabilitation_cost: Optional[float]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BuildingListResponse(BaseModel):
    """Response for listing buildings."""

    buildings: List[BuildingResponse]
    total: int


def building_to_response(building: Building) -> BuildingResponse:
    """Convert Building model to response schema."""
    return BuildingResponse(
        id=building.id,
        name=building.name,
        address=building.address,
        city=building.city,
        postal_code=building.postal_code,
        cadastral_reference=building.cadastral_reference,
        market_value=building.market_value,
        estimated_value=building.estimated_value,
        rehabilitation_cost=building.rehabilitation_cost,
        created_at=building.created_at.isoformat() if building.created_at else None,
        updated_at=building.updated_at.isoformat() if building.updated_at else None,
    )


REQUIRED_FIELDS = ("name",)


def _check_building(data: dict):
    for field in REQUIRED_FIELDS:
        if field in data and data[field] is None:
            raise InvalidInputError(f"{field} must not be null")
    for field in ("market_value", "estimated_value", "rehabilitation_cost"):
        value = data.get(field)
        if value is not None and value < 0:
            raise InvalidInputError(f"{field} must not be negative")


@router.get("/", response_model=DataResponse[BuildingListResponse])
async def list_buildings(
    skip: int = 0,
    limit: int = 100,
    city: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List all buildings with optional filtering."""
    query = db.query(Building).filter(Building.is_deleted == False)

    if city:
        query = query.filter(Building.city == city)

    total = query.count()
    buildings = query.order_by(Building.created_at).offset(skip).limit(limit).all()

    return DataResponse(
        data=BuildingListResponse(
            buildings=[building_to_response(b) for b in buildings],
            total=total,
        )
    )


@router.post("/", response_model=DataResponse[BuildingResponse], status_code=201)
async def create_building(
    building_data: BuildingCreate,
    db: Session = Depends(get_db),
):
    """Create a new building."""
    _check_building(building_data.model_dump())

    db_building = Building(**building_data.model_dump())
    db.add(db_building)
    db.commit()
    db.refresh(db_building)

    logger.info(f"Created building {db_building.id} ({db_building.name})")
    return DataResponse(data=building_to_response(db_building))


@router.get("/{building_id}", response_model=DataResponse[BuildingResponse])
async def get_building(
    building_id: str,
    db: Session = Depends(get_db),
):
    """Get a building by ID."""
    db_building = FinancialMetricsService(db).get_building(building_id)
    return DataResponse(data=building_to_response(db_building))


@router.put("/{building_id}", response_model=DataResponse[BuildingResponse])
async def update_building(
    building_id: str,
    building_data: BuildingUpdate,
    db: Session = Depends(get_db),
):
    """Update a building."""
    db_building = FinancialMetricsService(db).get_building(building_id)

    # Update only provided fields
    update_data = building_data.model_dump(exclude_unset=True)
    _check_building(update_data)
    for field, value in update_data.items():
        setattr(db_building, field, value)

    db.commit()
    db.refresh(db_building)

    return DataResponse(data=building_to_response(db_building))


@router.delete("/{building_id}")
async def delete_building(
    building_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a building."""
    db_building = FinancialMetricsService(db).get_building(building_id)

    # Soft delete
    db_building.is_deleted = True
    db.commit()

    logger.info(f"Deleted building {building_id}")
    return {"data": {"deleted": True, "id": building_id}}


# ============================================================================
# Financial snapshots
# ============================================================================


class SnapshotCreate(BaseModel):
    """Schema for recording a financial snapshot."""

    period_start: date
    period_end: date
    currency: str = "EUR"
    gross_annual_revenue: float
    other_annual_revenue: Optional[float] = None
    total_annual_opex: float
    annual_energy_opex: float = 0.0
    dscr: Optional[float] = None
    annual_debt_service: Optional[float] = None
    estimated_rehab_capex: Optional[float] = None
    estimated_energy_savings_pct: Optional[float] = None
    estimated_price_uplift_pct: Optional[float] = None


class SnapshotResponse(SnapshotCreate):
    """Schema for snapshot response."""

    id: str
    building_id: str
    created_at: Optional[str] = None


def snapshot_to_response(snapshot: FinancialSnapshot) -> SnapshotResponse:
    """Convert FinancialSnapshot model to response schema."""
    return SnapshotResponse(
        id=snapshot.id,
        building_id=snapshot.building_id,
        period_start=snapshot.period_start,
        period_end=snapshot.period_end,
        currency=snapshot.currency,
        gross_annual_revenue=snapshot.gross_annual_revenue,
        other_annual_revenue=snapshot.other_annual_revenue,
        total_annual_opex=snapshot.total_annual_opex,
        annual_energy_opex=snapshot.annual_energy_opex or 0.0,
        dscr=snapshot.dscr,
        annual_debt_service=snapshot.annual_debt_service,
        estimated_rehab_capex=snapshot.estimated_rehab_capex,
        estimated_energy_savings_pct=snapshot.estimated_energy_savings_pct,
        estimated_price_uplift_pct=snapshot.estimated_price_uplift_pct,
        created_at=snapshot.created_at.isoformat() if snapshot.created_at else None,
    )


def _check_snapshot(data: SnapshotCreate):
    if data.period_end < data.period_start:
        raise InvalidInputError("period_end must not be before period_start")
    for field in ("gross_annual_revenue", "total_annual_opex", "annual_energy_opex"):
        if getattr(data, field) < 0:
            raise InvalidInputError(f"{field} must not be negative")
    for field in ("estimated_energy_savings_pct", "estimated_price_uplift_pct"):
        value = getattr(data, field)
        if value is not None and not 0 <= value <= 100:
            raise InvalidInputError(f"{field} must be between 0 and 100")


@router.get("/{building_id}/snapshots")
async def list_building_snapshots(
    building_id: str,
    db: Session = Depends(get_db),
):
    """List all financial snapshots for a building, newest first."""
    db_building = FinancialMetricsService(db).get_building(building_id)

    snapshots = (
        db_building.snapshots.filter_by(is_deleted=False)
        .order_by(FinancialSnapshot.period_end.desc(), FinancialSnapshot.created_at.desc())
        .all()
    )

    return {
        "data": {
            "building_id": building_id,
            "snapshots": [snapshot_to_response(s).model_dump(mode="json") for s in snapshots],
            "total": len(snapshots),
        }
    }


@router.post(
    "/{building_id}/snapshots",
    response_model=DataResponse[SnapshotResponse],
    status_code=201,
)
async def create_building_snapshot(
    building_id: str,
    snapshot_data: SnapshotCreate,
    db: Session = Depends(get_db),
):
    """Record a financial snapshot for a building."""
    FinancialMetricsService(db).get_building(building_id)
    _check_snapshot(snapshot_data)

    db_snapshot = FinancialSnapshot(building_id=building_id, **snapshot_data.model_dump())
    db.add(db_snapshot)
    db.commit()
    db.refresh(db_snapshot)

    logger.info(f"Recorded snapshot {db_snapshot.id} for building {building_id}")
    return DataResponse(data=snapshot_to_response(db_snapshot))
