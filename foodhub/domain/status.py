# foodhub/domain/status.py
from enum import Enum
from typing import Iterable


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Role(str, Enum):
    CUSTOMER = "customer"
    PARTNER = "partner"
    COURIER = "courier"
    ADMIN = "admin"
    SYSTEM = "system"


# kolejnosc na sciezce realizacji, cancelled poza nia
FLOW = (
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED_UP,
    OrderStatus.ON_THE_WAY,
    OrderStatus.DELIVERED,
)
RANK = {status: index for index, status in enumerate(FLOW)}

TERMINAL = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
ACTIVE = frozenset(FLOW[1:-1])

# klient moze anulowac tylko zanim jedzenie jest gotowe
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.ACCEPTED, OrderStatus.PREPARING})

ROLE_TARGETS = {
    Role.PARTNER: frozenset({OrderStatus.ACCEPTED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.CANCELLED}),
    Role.COURIER: frozenset({OrderStatus.PICKED_UP, OrderStatus.ON_THE_WAY, OrderStatus.DELIVERED}),
    Role.ADMIN: frozenset(OrderStatus),
    Role.CUSTOMER: frozenset({OrderStatus.CANCELLED}),
    Role.SYSTEM: frozenset({OrderStatus.CANCELLED}),
}


def allowed_next(current: OrderStatus) -> frozenset:
    if current in TERMINAL:
        return frozenset()
    following = FLOW[RANK[current] + 1]
    return frozenset({following, OrderStatus.CANCELLED})


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in allowed_next(current)


def derive_overall_status(statuses: Iterable[OrderStatus | str]) -> OrderStatus:
    """
    Status calego zamowienia wyliczany z pod-zamowien.

    Anulowane pod-zamowienia sa pomijane. Gdy wszystkie aktywne partie sa w
    realizacji, klient widzi status najwolniejszego partnera.
    """
    live = [OrderStatus(s) for s in statuses if OrderStatus(s) != OrderStatus.CANCELLED]

    if not live:
        return OrderStatus.CANCELLED

    if all(s == OrderStatus.DELIVERED for s in live):
        return OrderStatus.DELIVERED

    active = [s for s in live if s in ACTIVE]
    if active:
        return min(active, key=RANK.__getitem__)

    return OrderStatus.PENDING
