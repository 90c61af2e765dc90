from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Float, JSON
from sqlalchemy.orm import relationship

from foodhub.data.database import Base, utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(16), nullable=False, unique=True, index=True)
    session_id = Column(String(128), nullable=True)

    customer_id = Column(String(64), nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String(40), nullable=False)
    customer_email = Column(String, nullable=True)

    delivery_address = Column(JSON, nullable=False)
    delivery_lat = Column(Float, nullable=True)
    delivery_lng = Column(Float, nullable=True)
    delivery_zone = Column(Integer, nullable=True)
    delivery_distance_km = Column(Float, nullable=True)

    payment_method = Column(String(16), nullable=False)
    payment_status = Column(String(24), nullable=False, default="pending")

    # pieniadze - zmieniane tylko przy tworzeniu, rabacie i zwrocie
    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    service_fee = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    peak_surcharge = Column(Numeric(10, 2), nullable=False, default=0)
    platform_commission = Column(Numeric(10, 2), nullable=False, default=0)
    courier_earnings = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False)
    refunded_amount = Column(Numeric(10, 2), nullable=False, default=0)

    # cache statusu wyliczanego z pod-zamowien
    overall_status = Column(String(16), nullable=False, default="pending", index=True)

    items_snapshot = Column(JSON, nullable=False, default=list)
    notes = Column(String(500), nullable=True)

    estimated_delivery_at = Column(DateTime(timezone=True), nullable=True)
    actual_delivery_minutes = Column(Integer, nullable=True)

    cancellation_reason = Column(String, nullable=True)
    cancelled_by = Column(String(64), nullable=True)
    cancelled_by_role = Column(String(16), nullable=True)
    cancellation_detail = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    sub_orders = relationship(
        "SubOrderModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SubOrderModel.id",
    )
    status_history = relationship(
        "StatusHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="StatusHistoryModel.id",
    )


class SubOrderModel(Base):
    __tablename__ = "sub_orders"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    partner_id = Column(Integer, nullable=False, index=True)
    sub_order_number = Column(String(24), nullable=False)

    status = Column(String(16), nullable=False, default="pending")
    subtotal = Column(Numeric(10, 2), nullable=False)
    estimated_prep_minutes = Column(Integer, nullable=True)
    courier_id = Column(String(64), nullable=True, index=True)

    accepted_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    order = relationship("OrderModel", back_populates="sub_orders")
    items = relationship(
        "OrderItemModel",
        back_populates="sub_order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    sub_order_id = Column(Integer, ForeignKey("sub_orders.id", ondelete="CASCADE"), nullable=False)
    menu_item_id = Column(Integer, nullable=False)

    name = Column(String, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)
    notes = Column(String(200), nullable=True)

    sub_order = relationship("SubOrderModel", back_populates="items")


class StatusHistoryModel(Base):
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    partner_id = Column(Integer, nullable=True)

    status = Column(String(16), nullable=False)
    actor_id = Column(String(64), nullable=True)
    actor_role = Column(String(16), nullable=False)
    note = Column(String(300), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    order = relationship("OrderModel", back_populates="status_history")


class OrderSequenceModel(Base):
    """Licznik numerow zamowien per dzien (prefiks RRMMDD)."""

    __tablename__ = "order_sequences"

    day = Column(String(6), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
