# foodhub/repos/zone_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from foodhub.data.models.zone import DeliveryZoneModel, ZonePostalCodeModel


class ZoneRepo:
    def __init__(self, db: Session):
        self.db = db

    def find_by_postal_code(self, postal_code: str) -> DeliveryZoneModel | None:
        return self.db.execute(
            select(DeliveryZoneModel)
            .join(ZonePostalCodeModel, ZonePostalCodeModel.zone_id == DeliveryZoneModel.id)
            .where(
                ZonePostalCodeModel.postal_code == postal_code.strip().upper(),
                DeliveryZoneModel.is_active.is_(True),
            )
        ).scalar_one_or_none()
