#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from foodhub.data.models.catalog import PartnerModel, MenuItemModel, ReservationHistoryModel
from foodhub.data.models.zone import DeliveryZoneModel, ZonePostalCodeModel
from foodhub.data.models.cart import CartModel
from foodhub.data.models.cart_item import CartPartnerModel, CartItemModel
from foodhub.data.models.order import OrderModel, SubOrderModel, OrderItemModel, StatusHistoryModel, OrderSequenceModel

__all__ = [
    "PartnerModel",
    "MenuItemModel",
    "ReservationHistoryModel",
    "DeliveryZoneModel",
    "ZonePostalCodeModel",
    "CartModel",
    "CartPartnerModel",
    "CartItemModel",
    "OrderModel",
    "SubOrderModel",
    "OrderItemModel",
    "StatusHistoryModel",
    "OrderSequenceModel",
]
