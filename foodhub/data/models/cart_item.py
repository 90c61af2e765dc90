from sqlalchemy import Column, Integer, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from foodhub.data.database import Base


class CartPartnerModel(Base):
    __tablename__ = "cart_partners"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    partner_id = Column(Integer, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)

    cart = relationship("CartModel", back_populates="partners")
    items = relationship(
        "CartItemModel",
        back_populates="partner_cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    partner_cart_id = Column(Integer, ForeignKey("cart_partners.id", ondelete="CASCADE"), nullable=False)
    menu_item_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)
    notes = Column(String(200), nullable=True)

    partner_cart = relationship("CartPartnerModel", back_populates="items")
