#foodhub/data/models/cart.py
from sqlalchemy import Column, Integer, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from foodhub.data.database import Base, utcnow


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    session_id = Column(String(128), nullable=False, unique=True, index=True)

    version = Column(Integer, nullable=False, default=1)

    items_total = Column(Numeric(10, 2), nullable=False, default=0)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    grand_total = Column(Numeric(10, 2), nullable=False, default=0)

    # wycena dostawy (opcjonalna)
    quote_postal_code = Column(String(16), nullable=True)
    quote_zone_number = Column(Integer, nullable=True)
    quote_zone_name = Column(String, nullable=True)
    quote_base_fee = Column(Numeric(10, 2), nullable=True)
    quote_additional_partner_fee = Column(Numeric(10, 2), nullable=True)
    quote_peak_surcharge = Column(Numeric(10, 2), nullable=True)
    quote_total_fee = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    partners = relationship(
        "CartPartnerModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartPartnerModel.id",
    )
