"""
Seed the database with a demo building and its latest financial snapshot.
"""
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.database import get_db_context, init_db
from app.db.models import Building, FinancialSnapshot
from app.services.financial_metrics import FinancialMetricsService

DEMO_NAME = "Edificio Serrano 45"


def main():
    init_db()

    with get_db_context() as db:
        # Check if building already exists
        existing = db.query(Building).filter(Building.name == DEMO_NAME).first()
        if existing:
            print(f"Building '{DEMO_NAME}' already exists (ID: {existing.id})")
            return

        building = Building(
            name=DEMO_NAME,
            address="Calle de Serrano 45",
            city="Madrid",
            postal_code="28001",
            cadastral_reference="0847106VK4704F0001XK",
            market_value=4_200_000,
            estimated_value=4_650_000,
            rehabilitation_cost=380_000,
        )
        db.add(building)
        db.flush()
        print(f"Created building: {building.name} (ID: {building.id})")

        snapshot = FinancialSnapshot(
            building_id=building.id,
            period_start=date(2024, 1, 1),
            period_end=date(2024, 12, 31),
            currency="EUR",
            gross_annual_revenue=312_000,  # 24 units at ~1,080/month
            other_annual_revenue=18_000,  # Parking and storage
            total_annual_opex=96_000,
            annual_energy_opex=41_000,
            annual_debt_service=118_000,
            estimated_rehab_capex=380_000,
            estimated_energy_savings_pct=35,
            estimated_price_uplift_pct=12,
        )
        db.add(snapshot)
        db.flush()
        print(f"Created snapshot for {snapshot.period_start} - {snapshot.period_end}")

        metrics = FinancialMetricsService(db).building_metrics(building.id)
        print("\nDemo building created successfully!")
        print(f"  NOI:        {metrics['noi']:,.2f} {metrics['currency']}")
        print(f"  Cap rate:   {metrics['cap_rate_pct']:.2f}%")
        print(f"  DSCR:       {metrics['dscr']:.2f}")
        print(f"  Value gap:  {metrics['value_gap_pct']:.2f}%")


if __name__ == "__main__":
    main()
