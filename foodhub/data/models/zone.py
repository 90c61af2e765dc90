# foodhub/data/models/zone.py
from sqlalchemy import Column, Integer, String, Boolean, Numeric, Float, ForeignKey
from sqlalchemy.orm import relationship

from foodhub.data.database import Base


class DeliveryZoneModel(Base):
    __tablename__ = "delivery_zones"

    id = Column(Integer, primary_key=True)
    zone_number = Column(Integer, nullable=False, unique=True)
    zone_name = Column(String, nullable=False)

    base_fee = Column(Numeric(10, 2), nullable=False)
    per_extra_partner_fee = Column(Numeric(10, 2), nullable=False, default=5)
    peak_surcharge = Column(Numeric(10, 2), nullable=False, default=0)

    estimated_transit_minutes = Column(Integer, nullable=False, default=30)
    max_distance_km = Column(Float, nullable=False, default=10)
    is_active = Column(Boolean, nullable=False, default=True)

    postal_codes = relationship(
        "ZonePostalCodeModel",
        back_populates="zone",
        cascade="all, delete-orphan",
    )


class ZonePostalCodeModel(Base):
    __tablename__ = "zone_postal_codes"

    id = Column(Integer, primary_key=True)
    zone_id = Column(Integer, ForeignKey("delivery_zones.id", ondelete="CASCADE"), nullable=False)
    postal_code = Column(String(16), nullable=False, unique=True, index=True)

    zone = relationship("DeliveryZoneModel", back_populates="postal_codes")
