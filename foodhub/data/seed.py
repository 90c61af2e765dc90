# foodhub/data/seed.py
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session

from foodhub.data.database import SessionLocal, init_db
from foodhub.data.models import DeliveryZoneModel, MenuItemModel, PartnerModel, ZonePostalCodeModel
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)

# strefy jak w pierwotnym systemie: centrum i przedmiescia
ZONES: List[Dict] = [
    {
        "zone_number": 1,
        "zone_name": "Centrum",
        "base_fee": Decimal("4.49"),
        "peak_surcharge": Decimal("2.00"),
        "estimated_transit_minutes": 20,
        "max_distance_km": 5,
        "postal_codes": ["00-001", "00-002", "00-950"],
    },
    {
        "zone_number": 2,
        "zone_name": "Przedmiescia",
        "base_fee": Decimal("7.99"),
        "peak_surcharge": Decimal("3.00"),
        "estimated_transit_minutes": 35,
        "max_distance_km": 10,
        "postal_codes": ["01-100", "02-200", "03-300"],
    },
]

PARTNERS: List[Dict] = [
    {
        "name": "Pizzeria Napoli",
        "min_order_amount": Decimal("20.00"),
        "avg_prep_minutes": 20,
        "lat": 52.2297,
        "lng": 21.0122,
        "items": [
            ("Margherita", Decimal("12.50"), None, 50),
            ("Capricciosa", Decimal("15.00"), Decimal("13.50"), 30),
        ],
    },
    {
        "name": "Sushi Bar",
        "min_order_amount": Decimal("30.00"),
        "avg_prep_minutes": 25,
        "lat": 52.2319,
        "lng": 21.0067,
        "items": [
            ("Salmon roll", Decimal("18.00"), None, 40),
            ("Miso soup", Decimal("9.00"), None, None),
        ],
    },
]


def seed_db(db: Session) -> bool:
    # only seed if empty
    if db.query(PartnerModel).first():
        return False

    for z in ZONES:
        zone = DeliveryZoneModel(
            zone_number=z["zone_number"],
            zone_name=z["zone_name"],
            base_fee=z["base_fee"],
            per_extra_partner_fee=Decimal("5.00"),
            peak_surcharge=z["peak_surcharge"],
            estimated_transit_minutes=z["estimated_transit_minutes"],
            max_distance_km=z["max_distance_km"],
            postal_codes=[ZonePostalCodeModel(postal_code=code) for code in z["postal_codes"]],
        )
        db.add(zone)

    for p in PARTNERS:
        partner = PartnerModel(
            name=p["name"],
            min_order_amount=p["min_order_amount"],
            avg_prep_minutes=p["avg_prep_minutes"],
            lat=p["lat"],
            lng=p["lng"],
        )
        for name, price, discount, stock in p["items"]:
            partner.menu_items.append(
                MenuItemModel(name=name, price=price, discount_price=discount, stock_quantity=stock)
            )
        db.add(partner)

    db.commit()
    logger.info(f"Seeded {len(ZONES)} zones and {len(PARTNERS)} partners")
    return True


def seed():
    db = SessionLocal()
    try:
        init_db()
        seed_db(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
