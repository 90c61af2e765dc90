# foodhub/services/order_service.py
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodhub.data.database import as_utc, unit_of_work, utcnow
from foodhub.data.models.order import OrderItemModel, OrderModel, StatusHistoryModel, SubOrderModel
from foodhub.domain.delivery import ZoneTariff, courier_earnings, haversine_km, money
from foodhub.domain.errors import (
    BelowMinimumOrder,
    ConcurrencyConflict,
    IllegalTransition,
    InvalidInput,
    NotFound,
    PriceOrAvailabilityDrift,
    ValidationFailed,
)
from foodhub.domain.schemas import Principal, SYSTEM_PRINCIPAL
from foodhub.domain.status import (
    CUSTOMER_CANCELLABLE,
    ROLE_TARGETS,
    TERMINAL,
    OrderStatus,
    Role,
    can_transition,
    derive_overall_status,
)
from foodhub.repos.cart_repo import CartRepo
from foodhub.repos.order_repo import OrderRepo
from foodhub.services.cart_service import CartService
from foodhub.services.catalog_reader import CatalogReader
from foodhub.services.lock_service import LockService
from foodhub.services.notification_service import NotificationService
from foodhub.services.stock_service import StockService
from foodhub.services.zone_service import ZoneService
from foodhub.utils.settings import (
    COURIER_SHARE,
    DEFAULT_PREP_MINUTES,
    MAX_DELIVERY_DISTANCE_KM,
    PLATFORM_COMMISSION_RATE,
    PRICE_EPSILON,
    SERVICE_FEE_RATE,
    TAX_RATE,
)
from foodhub.utils.logging import get_logger
from foodhub.utils.retry import db_retry

logger = get_logger(__name__)

ZERO = Decimal("0.00")

# kolumna z czasem zmiany dla statusow, ktore go zapisuja
_STATUS_TIMESTAMPS = {
    OrderStatus.ACCEPTED: "accepted_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

Event = Tuple[int | None, str | None, str]


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.

    Jedyna droga utworzenia zamowienia to create_order. Pola pieniezne
    zamowienia zmieniaja sie potem tylko przez apply_discount i refund_order.
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogReader | None = None,
        zones: ZoneService | None = None,
        stock: StockService | None = None,
        lock_service: LockService | None = None,
        notifier: NotificationService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.catalog = catalog or CatalogReader(db)
        self.zones = zones or ZoneService(db)
        self.carts = CartService(db, self.catalog, self.zones)
        self.stock = stock or StockService(db)
        self.lock_service = lock_service or LockService()
        self.notifier = notifier or NotificationService()
        self.clock = clock

    # =====================================================
    # CREATE
    # =====================================================
    def create_order(
        self,
        session_id: str,
        customer: Principal,
        customer_info: Dict[str, Any],
        delivery_address: Dict[str, Any],
        payment_method: str,
        notes: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowienia z koszyka.

        Pod lockiem sesji i w jednej transakcji: ponowna walidacja koszyka,
        kontrola dryfu cen, minimalne kwoty, zapis zamowienia, zdjecie stanow
        i usuniecie koszyka. Albo wszystko, albo nic.
        """
        if Role(customer.role) != Role.CUSTOMER:
            raise PermissionError("Only customers can place orders")

        with self.lock_service.session_lock(session_id):
            try:
                order_id, order_number, partner_ids = self._store_order(
                    session_id, customer, customer_info, delivery_address, payment_method, notes
                )
            except IntegrityError as e:
                logger.warning(f"Order creation for cart {session_id} conflicted: {e}")
                raise ConcurrencyConflict(
                    "Order could not be stored, retry with a fresh cart read",
                    {"session_id": session_id},
                )

        logger.info(f"Order {order_number} created from cart {session_id}")
        self._notify(order_id, [(pid, None, OrderStatus.PENDING.value) for pid in partner_ids])
        return self._to_dict(self.repo.get_order(order_id))

    @db_retry()
    def _store_order(self, session_id, customer, customer_info, delivery_address, payment_method, notes):
        with unit_of_work(self.db):
            order = self._create_order_tx(
                session_id, customer, customer_info, delivery_address, payment_method, notes
            )
            return order.id, order.order_number, [sub.partner_id for sub in order.sub_orders]

    def _create_order_tx(
        self,
        session_id: str,
        customer: Principal,
        customer_info: Dict[str, Any],
        delivery_address: Dict[str, Any],
        payment_method: str,
        notes: str | None,
    ) -> OrderModel:
        cart = self.cart_repo.get_by_session(session_id)
        if not cart:
            raise NotFound(f"Cart {session_id} not found", {"session_id": session_id})

        # 1. ponowna walidacja koszyka
        validation = self.carts.validate(session_id)
        if not validation["is_valid"]:
            raise ValidationFailed(
                "Cart validation failed",
                validation["errors"],
                {"unavailable_items": validation["unavailable_items"]},
            )

        postal_code = str(delivery_address.get("postal_code", "")).strip().upper()
        if postal_code != cart.quote_postal_code:
            raise ValidationFailed(
                "Delivery address does not match the quoted postal code",
                [f"Quoted for {cart.quote_postal_code}, delivering to {postal_code}"],
            )

        # 2. dryf cen i dostepnosci
        catalog_facts = {}
        mismatches = []
        for partner_cart in cart.partners:
            for line in partner_cart.items:
                facts = self.catalog.get_item(line.menu_item_id)
                catalog_facts[line.menu_item_id] = facts
                if not facts or not facts.is_available:
                    mismatches.append(
                        {"line_item_id": line.id, "menu_item_id": line.menu_item_id, "reason": "unavailable"}
                    )
                elif abs(money(facts.effective_price) - money(line.unit_price)) > PRICE_EPSILON:
                    mismatches.append(
                        {
                            "line_item_id": line.id,
                            "menu_item_id": line.menu_item_id,
                            "reason": "price_changed",
                            "cart_price": str(money(line.unit_price)),
                            "current_price": str(money(facts.effective_price)),
                        }
                    )
        if mismatches:
            logger.warning(f"Cart {session_id} drifted from catalog: {mismatches}")
            raise PriceOrAvailabilityDrift(mismatches)

        # 3. minimalna kwota per partner - calosc albo nic
        partners = {pc.partner_id: self.catalog.get_partner(pc.partner_id) for pc in cart.partners}
        shortfalls = []
        for partner_cart in cart.partners:
            subtotal = sum((money(i.line_total) for i in partner_cart.items), ZERO)
            minimum = money(partners[partner_cart.partner_id].min_order_amount or 0)
            if subtotal < minimum:
                shortfalls.append(
                    {
                        "partner_id": partner_cart.partner_id,
                        "min_order_amount": str(minimum),
                        "subtotal": str(subtotal),
                    }
                )
        if shortfalls:
            raise BelowMinimumOrder(shortfalls)

        tariff = self.zones.resolve(postal_code)
        distance = self._delivery_distance(partners.values(), delivery_address, tariff)

        now = self.clock()
        order_number = self._next_order_number(now)

        # 4-5. pod-zamowienia per partner
        sub_orders = []
        snapshot = []
        prep_times = []
        for index, partner_cart in enumerate(cart.partners):
            partner = partners[partner_cart.partner_id]
            prep = partner.avg_prep_minutes or DEFAULT_PREP_MINUTES
            prep_times.append(prep)

            items = []
            for line in partner_cart.items:
                facts = catalog_facts[line.menu_item_id]
                items.append(
                    OrderItemModel(
                        menu_item_id=line.menu_item_id,
                        name=facts.name,
                        unit_price=money(line.unit_price),
                        quantity=line.quantity,
                        line_total=money(line.line_total),
                        notes=line.notes,
                    )
                )
                snapshot.append(
                    {
                        "menu_item_id": line.menu_item_id,
                        "partner_id": partner_cart.partner_id,
                        "name": facts.name,
                        "unit_price": str(money(line.unit_price)),
                        "quantity": line.quantity,
                        "is_available": facts.is_available,
                        "stock_quantity": facts.stock_quantity,
                    }
                )

            sub_orders.append(
                SubOrderModel(
                    partner_id=partner_cart.partner_id,
                    sub_order_number=f"{order_number}-{index + 1}",
                    status=OrderStatus.PENDING.value,
                    subtotal=sum((i.line_total for i in items), ZERO),
                    estimated_prep_minutes=prep,
                    items=items,
                )
            )

        # pieniadze
        subtotal = sum((s.subtotal for s in sub_orders), ZERO)
        delivery_fee = money(cart.quote_total_fee or 0)
        service_fee = money(subtotal * SERVICE_FEE_RATE)
        tax_amount = money(subtotal * TAX_RATE)

        # 6. szacowany czas: najwolniejsza kuchnia + dojazd w strefie
        eta_minutes = max(prep_times) + tariff.estimated_transit_minutes

        order = OrderModel(
            order_number=order_number,
            session_id=session_id,
            customer_id=customer.principal_id,
            customer_name=customer_info["name"].strip(),
            customer_phone=customer_info["phone"].strip(),
            customer_email=(customer_info.get("email") or "").strip() or None,
            delivery_address=dict(delivery_address),
            delivery_lat=delivery_address.get("lat"),
            delivery_lng=delivery_address.get("lng"),
            delivery_zone=tariff.zone_number,
            delivery_distance_km=distance,
            payment_method=payment_method,
            payment_status="pending",
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            service_fee=service_fee,
            discount_amount=ZERO,
            tax_amount=tax_amount,
            peak_surcharge=money(cart.quote_peak_surcharge or 0),
            platform_commission=money(subtotal * PLATFORM_COMMISSION_RATE),
            courier_earnings=courier_earnings(delivery_fee, COURIER_SHARE),
            total_price=subtotal + delivery_fee + service_fee + tax_amount,
            refunded_amount=ZERO,
            overall_status=OrderStatus.PENDING.value,
            items_snapshot=snapshot,
            notes=notes,
            estimated_delivery_at=now + timedelta(minutes=eta_minutes),
            created_at=now,
            updated_at=now,
            sub_orders=sub_orders,
        )
        # 8. pierwszy wpis historii
        order.status_history.append(
            StatusHistoryModel(
                status=OrderStatus.PENDING.value,
                actor_id=customer.principal_id,
                actor_role=customer.role,
                note="order created",
                created_at=now,
            )
        )

        # 7. zapis + stany + usuniecie koszyka w jednej transakcji
        self.repo.add_order(order)
        for sub in order.sub_orders:
            for item in sub.items:
                self.stock.reserve(order.id, item.menu_item_id, item.quantity)
        self.cart_repo.delete_cart(cart)

        return order

    def _next_order_number(self, now: datetime) -> str:
        # RRMMDD + licznik dnia z tabeli order_sequences, min. 4 cyfry
        prefix = now.strftime("%y%m%d")
        sequence = self.repo.next_sequence(prefix)
        return f"{prefix}{sequence:04d}"

    @staticmethod
    def _delivery_distance(partners, delivery_address: Dict[str, Any], tariff: ZoneTariff) -> float | None:
        lat, lng = delivery_address.get("lat"), delivery_address.get("lng")
        if lat is None or lng is None:
            return None

        distances = [
            haversine_km(p.lat, p.lng, lat, lng)
            for p in partners
            if p.lat is not None and p.lng is not None
        ]
        if not distances:
            return None

        distance = round(max(distances), 2)
        # promien strefy, a globalny limit zawsze obowiazuje
        limit = MAX_DELIVERY_DISTANCE_KM
        if tariff.max_distance_km is not None:
            limit = min(limit, float(tariff.max_distance_km))
        if distance > limit:
            raise ValidationFailed(
                "Delivery address is out of range",
                [f"Distance {distance} km exceeds {limit} km for zone {tariff.zone_number}"],
            )
        return distance

    # =====================================================
    # STATUS MACHINE
    # =====================================================
    def update_sub_order_status(
        self,
        order_id: int,
        partner_id: int,
        new_status: OrderStatus | str,
        actor: Principal,
        note: str | None = None,
        estimated_prep_time: int | None = None,
    ) -> Dict[str, Any]:
        new_status = OrderStatus(new_status)

        order = self._require_order(order_id, for_update=True)
        sub = next((s for s in order.sub_orders if s.partner_id == partner_id), None)
        if not sub:
            raise NotFound(
                f"Order {order_id} has no sub-order for partner {partner_id}",
                {"order_id": order_id, "partner_id": partner_id},
            )

        self._authorize(order, sub, new_status, actor)

        current = OrderStatus(sub.status)
        if current == OrderStatus.CANCELLED and new_status == OrderStatus.CANCELLED:
            # ponowne anulowanie to no-op
            self.db.rollback()
            return self._to_dict(self._require_order(order_id))

        if not can_transition(current, new_status):
            logger.warning(
                f"Rejected transition {current.value} -> {new_status.value} "
                f"for order {order_id}, partner {partner_id} by {actor.role}:{actor.principal_id}"
            )
            raise IllegalTransition(current.value, new_status.value)

        if estimated_prep_time:
            sub.estimated_prep_minutes = estimated_prep_time

        now = self.clock()
        self._move(order, sub, new_status, actor, note, now)

        if new_status == OrderStatus.CANCELLED:
            self._release_sub_order_stock(order, sub, note or "sub_order_cancelled")

        self._refresh_overall(order, now, reason=note or "cancelled by partner", actor=actor)
        self.db.commit()

        logger.info(
            f"Order {order.order_number} partner {partner_id}: {current.value} -> {new_status.value}, "
            f"overall {order.overall_status}"
        )
        self._notify(order_id, [(partner_id, current.value, new_status.value)])
        return self._to_dict(self._require_order(order_id))

    def cancel_order(
        self,
        order_id: int,
        actor: Principal,
        reason: str,
        detail: str | None = None,
    ) -> Dict[str, Any]:
        """
        Anuluje wszystkie nieterminalne pod-zamowienia i zwraca stany.
        Idempotentne: juz anulowane zamowienie zwracamy bez zmian.
        """
        role = Role(actor.role)
        if role not in (Role.CUSTOMER, Role.ADMIN, Role.SYSTEM):
            raise PermissionError("Only the customer, an admin or the system can cancel a whole order")

        order = self._require_order(order_id, for_update=True)
        if role == Role.CUSTOMER and order.customer_id != actor.principal_id:
            raise PermissionError("No access to this order")

        live = [s for s in order.sub_orders if OrderStatus(s.status) not in TERMINAL]
        if not live:
            if order.overall_status == OrderStatus.CANCELLED.value:
                self.db.rollback()
                return self._to_dict(self._require_order(order_id))
            raise IllegalTransition(order.overall_status, OrderStatus.CANCELLED.value)

        if role == Role.CUSTOMER and any(OrderStatus(s.status) not in CUSTOMER_CANCELLABLE for s in live):
            raise PermissionError("Order is too far along to be cancelled by the customer")

        events, returned = self._cancel_live(order, live, actor, reason, detail)
        self.db.commit()

        logger.info(
            f"Order {order.order_number} cancelled by {actor.role}:{actor.principal_id} "
            f"({reason}), stock returned for {returned} items"
        )
        self._notify(order_id, events)
        return self._to_dict(self._require_order(order_id))

    def cancel_stale(self, order_id: int, reason: str, detail: str) -> int:
        """Anulowanie przez sweeper. Zwraca liczbe pozycji ze zwroconym stanem."""
        order = self._require_order(order_id, for_update=True)
        live = [s for s in order.sub_orders if OrderStatus(s.status) not in TERMINAL]
        if order.overall_status != OrderStatus.PENDING.value or not live:
            # ktos zdazyl przyjac albo anulowac zamowienie
            self.db.rollback()
            return 0

        events, returned = self._cancel_live(order, live, SYSTEM_PRINCIPAL, reason, detail)
        self.db.commit()

        logger.info(f"AUTO-CANCELLED order {order.order_number}: {reason}, stock returned for {returned} items")
        self._notify(order_id, events)
        return returned

    def _cancel_live(
        self,
        order: OrderModel,
        live: List[SubOrderModel],
        actor: Principal,
        reason: str,
        detail: str | None,
    ) -> Tuple[List[Event], int]:
        now = self.clock()
        events: List[Event] = []
        returned = 0

        for sub in live:
            old = sub.status
            self._move(order, sub, OrderStatus.CANCELLED, actor, detail or reason, now)
            returned += self._release_sub_order_stock(order, sub, reason)
            events.append((sub.partner_id, old, OrderStatus.CANCELLED.value))

        self._record_cancellation(order, actor, reason, detail, now)
        order.overall_status = derive_overall_status(s.status for s in order.sub_orders).value
        return events, returned

    def _move(
        self,
        order: OrderModel,
        sub: SubOrderModel,
        new_status: OrderStatus,
        actor: Principal,
        note: str | None,
        now: datetime,
    ) -> None:
        sub.status = new_status.value

        column = _STATUS_TIMESTAMPS.get(new_status)
        if column:
            setattr(sub, column, now)

        if new_status == OrderStatus.PICKED_UP and actor.role == Role.COURIER.value:
            sub.courier_id = actor.principal_id

        order.status_history.append(
            StatusHistoryModel(
                partner_id=sub.partner_id,
                status=new_status.value,
                actor_id=actor.principal_id,
                actor_role=actor.role,
                note=note,
                created_at=now,
            )
        )

    def _refresh_overall(self, order: OrderModel, now: datetime, reason: str, actor: Principal) -> None:
        overall = derive_overall_status(s.status for s in order.sub_orders)
        order.overall_status = overall.value

        if overall == OrderStatus.CANCELLED and order.cancellation_reason is None:
            self._record_cancellation(order, actor, reason, None, now)

        if overall == OrderStatus.DELIVERED and order.actual_delivery_minutes is None:
            elapsed = now - as_utc(order.created_at)
            order.actual_delivery_minutes = round(elapsed.total_seconds() / 60)

    def _record_cancellation(
        self,
        order: OrderModel,
        actor: Principal,
        reason: str,
        detail: str | None,
        now: datetime,
    ) -> None:
        if order.cancellation_reason is None:
            order.cancellation_reason = reason
            order.cancelled_by = actor.principal_id
            order.cancelled_by_role = actor.role
            order.cancellation_detail = detail
            order.cancelled_at = now

        # zaplacone zamowienie czeka na zwrot
        if order.payment_status == "paid":
            order.payment_status = "refund_pending"

    def _release_sub_order_stock(self, order: OrderModel, sub: SubOrderModel, reason: str) -> int:
        returned = 0
        for item in sub.items:
            if self.stock.release(order.id, item.menu_item_id, item.quantity, reason):
                returned += 1
        return returned

    def _authorize(self, order: OrderModel, sub: SubOrderModel, new_status: OrderStatus, actor: Principal) -> None:
        role = Role(actor.role)

        if new_status not in ROLE_TARGETS[role]:
            raise PermissionError(f"Role {role.value} cannot set status {new_status.value}")

        if role == Role.PARTNER and str(sub.partner_id) != actor.principal_id:
            raise PermissionError("Partner can only update its own sub-order")

        if role == Role.COURIER and sub.courier_id and sub.courier_id != actor.principal_id:
            raise PermissionError("Sub-order is assigned to another courier")

        if role == Role.CUSTOMER:
            if order.customer_id != actor.principal_id:
                raise PermissionError("No access to this order")
            if OrderStatus(sub.status) not in CUSTOMER_CANCELLABLE | {OrderStatus.CANCELLED}:
                raise PermissionError("Order is too far along to be cancelled by the customer")

    # =====================================================
    # PAYMENT / MONEY
    # =====================================================
    def mark_paid(self, order_id: int, actor: Principal) -> Dict[str, Any]:
        self._require_role(actor, Role.ADMIN, Role.SYSTEM)
        order = self._require_order(order_id, for_update=True)

        if order.payment_status != "pending":
            raise InvalidInput(
                f"Payment is already {order.payment_status}",
                {"payment_status": order.payment_status},
            )
        if order.overall_status == OrderStatus.CANCELLED.value:
            raise InvalidInput("Cancelled order cannot be paid")

        order.payment_status = "paid"
        self.db.commit()
        logger.info(f"Order {order.order_number} marked as paid by {actor.role}:{actor.principal_id}")
        return self._to_dict(self._require_order(order_id))

    def apply_discount(self, order_id: int, actor: Principal, amount: Decimal, reason: str) -> Dict[str, Any]:
        self._require_role(actor, Role.ADMIN)
        amount = money(amount)
        if amount <= ZERO:
            raise InvalidInput("Discount must be positive", {"amount": str(amount)})

        order = self._require_order(order_id, for_update=True)
        if OrderStatus(order.overall_status) in TERMINAL:
            raise InvalidInput("Discount cannot be applied to a finished order")
        if order.payment_status != "pending":
            raise InvalidInput("Discount can only be applied before payment")

        # rabat nigdy wiekszy niz wartosc produktow
        order.discount_amount = min(money(order.discount_amount) + amount, money(order.subtotal))
        order.total_price = self._total(order)
        self.db.commit()

        logger.info(f"Order {order.order_number}: discount {amount} applied ({reason})")
        return self._to_dict(self._require_order(order_id))

    def refund_order(self, order_id: int, actor: Principal, amount: Decimal | None = None) -> Dict[str, Any]:
        self._require_role(actor, Role.ADMIN)
        order = self._require_order(order_id, for_update=True)

        if order.payment_status not in ("paid", "refund_pending", "partially_refunded"):
            raise InvalidInput(
                f"Nothing to refund, payment is {order.payment_status}",
                {"payment_status": order.payment_status},
            )

        refundable = money(order.total_price) - money(order.refunded_amount)
        amount = refundable if amount is None else money(amount)
        if amount <= ZERO or amount > refundable:
            raise InvalidInput(
                f"Refund must be between 0.01 and {refundable}",
                {"amount": str(amount), "refundable": str(refundable)},
            )

        order.refunded_amount = money(order.refunded_amount) + amount
        order.payment_status = "refunded" if amount == refundable else "partially_refunded"
        self.db.commit()

        logger.info(f"REFUND {amount} for order {order.order_number}, status {order.payment_status}")
        return self._to_dict(self._require_order(order_id))

    @staticmethod
    def _total(order: OrderModel) -> Decimal:
        return (
            money(order.subtotal)
            + money(order.delivery_fee)
            + money(order.service_fee)
            + money(order.tax_amount)
            - money(order.discount_amount)
        )

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_id: int, actor: Principal) -> Dict[str, Any]:
        order = self._require_order(order_id)
        role = Role(actor.role)

        if role == Role.CUSTOMER and order.customer_id != actor.principal_id:
            raise PermissionError("No access to this order")
        if role == Role.PARTNER and all(str(s.partner_id) != actor.principal_id for s in order.sub_orders):
            raise PermissionError("No access to this order")
        if role == Role.COURIER and not any(
            s.courier_id == actor.principal_id or s.status == OrderStatus.READY.value
            for s in order.sub_orders
        ):
            raise PermissionError("No access to this order")

        return self._to_dict(order)

    def list_orders(self, actor: Principal, status: str | None = None) -> List[Dict[str, Any]]:
        role = Role(actor.role)

        if role == Role.CUSTOMER:
            orders = self.repo.list_for_customer(actor.principal_id, status)
        elif role == Role.PARTNER:
            orders = self.repo.list_for_partner(int(actor.principal_id), status)
        elif role == Role.COURIER:
            orders = self.repo.list_for_courier(actor.principal_id, status)
        else:
            orders = self.repo.list_all(status)

        return [self._to_dict(o) for o in orders]

    # ------------------------------------------------------------------

    def _require_order(self, order_id: int, for_update: bool = False) -> OrderModel:
        order = self.repo.get_order(order_id, for_update=for_update)
        if not order:
            raise NotFound(f"Order {order_id} not found", {"order_id": order_id})
        return order

    @staticmethod
    def _require_role(actor: Principal, *roles: Role) -> None:
        if Role(actor.role) not in roles:
            raise PermissionError(f"Role {actor.role} is not allowed to do this")

    def _notify(self, order_id: int, events: List[Event]) -> None:
        timestamp = self.clock()
        for partner_id, old, new in events:
            try:
                self.notifier.order_status_changed(order_id, partner_id, old, new, timestamp)
            except Exception as e:
                # dostarczenie powiadomien jest poza rdzeniem, zamowienie juz zapisane
                logger.warning(f"Failed to dispatch status event for order {order_id}: {e}")

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        cancellation = None
        if order.cancellation_reason is not None:
            cancellation = {
                "reason": order.cancellation_reason,
                "cancelled_by": order.cancelled_by,
                "cancelled_by_role": order.cancelled_by_role,
                "detail": order.cancellation_detail,
            }

        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "delivery_address": order.delivery_address,
            "payment_method": order.payment_method,
            "payment_status": order.payment_status,
            "overall_status": order.overall_status,
            "subtotal": order.subtotal,
            "delivery_fee": order.delivery_fee,
            "service_fee": order.service_fee,
            "discount_amount": order.discount_amount,
            "tax_amount": order.tax_amount,
            "platform_commission": order.platform_commission,
            "courier_earnings": order.courier_earnings,
            "total_price": order.total_price,
            "refunded_amount": order.refunded_amount,
            "delivery_zone": order.delivery_zone,
            "delivery_distance_km": order.delivery_distance_km,
            "estimated_delivery_at": order.estimated_delivery_at,
            "sub_orders": [
                {
                    "partner_id": s.partner_id,
                    "sub_order_number": s.sub_order_number,
                    "status": s.status,
                    "subtotal": s.subtotal,
                    "estimated_prep_minutes": s.estimated_prep_minutes,
                    "courier_id": s.courier_id,
                    "items": [
                        {
                            "menu_item_id": i.menu_item_id,
                            "name": i.name,
                            "unit_price": i.unit_price,
                            "quantity": i.quantity,
                            "line_total": i.line_total,
                            "notes": i.notes,
                        }
                        for i in s.items
                    ],
                }
                for s in order.sub_orders
            ],
            "status_history": [
                {
                    "status": h.status,
                    "partner_id": h.partner_id,
                    "actor_id": h.actor_id,
                    "actor_role": h.actor_role,
                    "note": h.note,
                    "timestamp": h.created_at,
                }
                for h in order.status_history
            ],
            "cancellation": cancellation,
            "created_at": order.created_at,
        }
