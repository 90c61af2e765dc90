# foodhub/data/models/catalog.py
from sqlalchemy import Column, Integer, String, Boolean, Numeric, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from foodhub.data.database import Base, utcnow


class PartnerModel(Base):
    __tablename__ = "partners"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    min_order_amount = Column(Numeric(10, 2), nullable=False, default=0)
    avg_prep_minutes = Column(Integer, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)

    menu_items = relationship("MenuItemModel", back_populates="partner")


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    price = Column(Numeric(10, 2), nullable=False)
    discount_price = Column(Numeric(10, 2), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)

    # NULL = produkt przygotowywany na miejscu, stan nie jest sledzony
    stock_quantity = Column(Integer, nullable=True)

    partner = relationship("PartnerModel", back_populates="menu_items")


class ReservationHistoryModel(Base):
    __tablename__ = "reservation_history"

    id = Column(Integer, primary_key=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False, index=True)
    order_id = Column(Integer, nullable=False, index=True)

    kind = Column(String(16), nullable=False)  # reserve | release
    quantity_delta = Column(Integer, nullable=False)
    reason = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
