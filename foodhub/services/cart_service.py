from decimal import Decimal
from typing import Dict, Any, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodhub.data.database import utcnow
from foodhub.data.models.cart import CartModel
from foodhub.data.models.cart_item import CartItemModel, CartPartnerModel
from foodhub.domain.delivery import money
from foodhub.domain.errors import ConcurrencyConflict, InvalidInput, NotFound
from foodhub.repos.cart_repo import CartRepo
from foodhub.services.catalog_reader import CatalogReader
from foodhub.services.zone_service import ZoneService
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0.00")


class CartService:
    """
    Prosta implementacja cqrs dla koszyka sesji
    commands (add, update, remove, clear, quote) modyfikuja stan i zawsze
    przeliczaja sumy w tej samej operacji
    query (get, validate) tylko odczyt
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogReader | None = None,
        zones: ZoneService | None = None,
    ):
        self.repo = CartRepo(db)
        self.catalog = catalog or CatalogReader(db)
        self.zones = zones or ZoneService(db)

    #query - odczyt
    def get_cart(self, session_id: str) -> Dict[str, Any] | None:
        cart = self.repo.get_by_session(session_id)
        if not cart:
            return None
        return self._to_dict(cart)

    def validate(self, session_id: str) -> Dict[str, Any]:
        """Sprawdzenie przed zlozeniem zamowienia. Niczego nie zmienia."""
        cart = self.repo.get_by_session(session_id)
        errors: List[str] = []
        unavailable: List[Dict[str, Any]] = []

        if not cart or not cart.partners:
            return {"is_valid": False, "errors": ["Cart is empty"], "unavailable_items": []}

        for partner_cart in cart.partners:
            partner = self.catalog.get_partner(partner_cart.partner_id)
            if not partner:
                errors.append(f"Partner {partner_cart.partner_id} no longer exists")
                continue
            if not partner.is_active:
                errors.append(f"Partner \"{partner.name}\" is temporarily unavailable")

            for line in partner_cart.items:
                facts = self.catalog.get_item(line.menu_item_id)
                if not facts or not facts.is_available:
                    unavailable.append(
                        {
                            "line_item_id": line.id,
                            "menu_item_id": line.menu_item_id,
                            "name": facts.name if facts else None,
                            "partner_id": partner_cart.partner_id,
                        }
                    )

        if unavailable:
            names = ", ".join(str(u["name"] or u["menu_item_id"]) for u in unavailable)
            errors.append(f"These items are no longer available: {names}")

        if cart.quote_postal_code is None:
            errors.append("Delivery fee has not been calculated")

        return {"is_valid": not errors, "errors": errors, "unavailable_items": unavailable}

    #commands
    def add_item(
        self,
        session_id: str,
        menu_item_id: int,
        quantity: int,
        notes: str | None = None,
    ) -> Dict[str, Any]:

        # Walidacje
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1", {"quantity": quantity})

        facts = self.catalog.get_item(menu_item_id)
        if not facts:
            raise NotFound(f"Menu item {menu_item_id} not found", {"menu_item_id": menu_item_id})

        if not facts.partner_active:
            raise InvalidInput(
                f"Partner \"{facts.partner_name}\" is not accepting orders",
                {"partner_id": facts.partner_id},
            )

        if not facts.is_available:
            raise InvalidInput(f"\"{facts.name}\" is not available", {"menu_item_id": menu_item_id})

        unit_price = money(facts.effective_price)
        cart = self._get_or_create(session_id)
        partners_before = len(cart.partners)

        partner_cart = self.repo.find_partner_cart(cart, facts.partner_id)
        if partner_cart is None:
            partner_cart = CartPartnerModel(partner_id=facts.partner_id, subtotal=ZERO)
            cart.partners.append(partner_cart)

        # Sprawdz czy produkt juz jest w koszyku
        existing = next((i for i in partner_cart.items if i.menu_item_id == menu_item_id), None)

        if existing:
            logger.info(
                f"Item {menu_item_id} already in cart {session_id}, quantity "
                f"{existing.quantity} -> {existing.quantity + quantity}"
            )
            existing.quantity += quantity
            existing.unit_price = unit_price  # update ceny
            existing.line_total = money(unit_price * existing.quantity)
            existing.notes = notes
        else:
            logger.info(f"Adding item {menu_item_id} x{quantity} to cart {session_id}")
            partner_cart.items.append(
                CartItemModel(
                    menu_item_id=menu_item_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    line_total=money(unit_price * quantity),
                    notes=notes,
                )
            )

        return self._save(cart, partners_before)

    def update_item(
        self,
        session_id: str,
        line_item_id: int,
        quantity: int,
        notes: str | None = None,
    ) -> Dict[str, Any]:

        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1", {"quantity": quantity})

        cart = self._require_cart(session_id)
        line = self.repo.find_line(cart, line_item_id)
        if not line:
            raise NotFound(f"Cart line {line_item_id} not found", {"line_item_id": line_item_id})

        # cena z koszyka, nie z katalogu - wycena ma byc stabilna
        line.quantity = quantity
        line.line_total = money(line.unit_price * quantity)
        if notes is not None:
            line.notes = notes

        logger.info(f"Cart {session_id}: line {line_item_id} quantity set to {quantity}")
        return self._save(cart, len(cart.partners))

    def remove_item(self, session_id: str, line_item_id: int) -> Dict[str, Any]:
        cart = self._require_cart(session_id)
        partners_before = len(cart.partners)

        line = self.repo.find_line(cart, line_item_id)
        if not line:
            raise NotFound(f"Cart line {line_item_id} not found", {"line_item_id": line_item_id})

        partner_cart = line.partner_cart
        partner_cart.items.remove(line)

        # pusty partner nie moze zostac w koszyku
        if not partner_cart.items:
            cart.partners.remove(partner_cart)

        logger.info(f"Cart {session_id}: line {line_item_id} removed")
        return self._save(cart, partners_before)

    def clear(self, session_id: str) -> bool:
        cart = self.repo.get_by_session(session_id)
        if not cart:
            return False

        self.repo.delete_cart(cart)
        self.repo.commit()
        logger.info(f"Cart {session_id} cleared")
        return True

    def quote_delivery(self, session_id: str, postal_code: str) -> Dict[str, Any]:
        cart = self.repo.get_by_session(session_id)
        if not cart or not cart.partners:
            raise InvalidInput("Cannot quote delivery for an empty cart")

        fee = self.zones.quote(postal_code, len(cart.partners))
        return self._save(cart, len(cart.partners), quote=self._quote_fields(postal_code, fee))

    # ------------------------------------------------------------------

    def _require_cart(self, session_id: str) -> CartModel:
        cart = self.repo.get_by_session(session_id)
        if not cart:
            raise NotFound(f"Cart {session_id} not found", {"session_id": session_id})
        return cart

    def _get_or_create(self, session_id: str) -> CartModel:
        cart = self.repo.get_by_session(session_id)
        if cart:
            return cart

        try:
            created = self.repo.create_cart(
                CartModel(
                    session_id=session_id,
                    version=1,
                    items_total=ZERO,
                    delivery_fee=ZERO,
                    grand_total=ZERO,
                )
            )
        except IntegrityError:
            self.repo.rollback()
            raise ConcurrencyConflict("Cart was created concurrently", {"session_id": session_id})

        logger.info(f"Created cart for session {session_id}")
        return created

    @staticmethod
    def _quote_fields(postal_code: str, fee) -> Dict[str, Any]:
        return {
            "quote_postal_code": postal_code.strip().upper(),
            "quote_zone_number": fee.zone_number,
            "quote_zone_name": fee.zone_name,
            "quote_base_fee": fee.base_fee,
            "quote_additional_partner_fee": fee.additional_partner_fee,
            "quote_peak_surcharge": fee.peak_surcharge,
            "quote_total_fee": fee.total_fee,
        }

    @staticmethod
    def _empty_quote() -> Dict[str, Any]:
        return {
            "quote_postal_code": None,
            "quote_zone_number": None,
            "quote_zone_name": None,
            "quote_base_fee": None,
            "quote_additional_partner_fee": None,
            "quote_peak_surcharge": None,
            "quote_total_fee": None,
        }

    def _save(self, cart: CartModel, partners_before: int, quote: Dict[str, Any] | None = None) -> Dict[str, Any]:
        # przeliczenie sum od zera, zapisane sumy nie sa zrodlem prawdy
        items_total = ZERO
        for partner_cart in cart.partners:
            partner_cart.subtotal = sum((money(i.line_total) for i in partner_cart.items), ZERO)
            items_total += partner_cart.subtotal

        partners_now = len(cart.partners)
        if quote is None and cart.quote_postal_code is not None:
            if partners_now == 0:
                quote = self._empty_quote()
            elif partners_now != partners_before:
                # liczba partnerow sie zmienila - oplata za dostawe tez
                fee = self.zones.quote(cart.quote_postal_code, partners_now)
                quote = self._quote_fields(cart.quote_postal_code, fee)

        new_data: Dict[str, Any] = dict(quote or {})
        fee_total = new_data.get("quote_total_fee", cart.quote_total_fee)
        delivery_fee = money(fee_total) if fee_total is not None else ZERO

        old_version = cart.version
        new_data.update(
            {
                "version": old_version + 1,
                "items_total": items_total,
                "delivery_fee": delivery_fee,
                "grand_total": items_total + delivery_fee,
                "updated_at": utcnow(),
            }
        )

        # Optimistic locking
        # np w bazie update set version 2 where id 1 and version 1
        rowcount = self.repo.update_cart_version(cart.id, old_version, new_data)
        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict(
                "Cart was modified by another operation",
                {"session_id": cart.session_id},
            )

        self.repo.commit()
        logger.info(
            f"Cart {cart.session_id} saved, version {old_version + 1}, "
            f"grand total {items_total + delivery_fee}"
        )

        return self.get_cart(cart.session_id)

    @staticmethod
    def _to_dict(cart: CartModel) -> Dict[str, Any]:
        quote = None
        if cart.quote_postal_code is not None:
            quote = {
                "postal_code": cart.quote_postal_code,
                "zone_number": cart.quote_zone_number,
                "zone_name": cart.quote_zone_name,
                "base_fee": cart.quote_base_fee,
                "additional_partner_fee": cart.quote_additional_partner_fee,
                "peak_surcharge": cart.quote_peak_surcharge,
                "total_fee": cart.quote_total_fee,
            }

        #dict przeksztalcany w jsona
        return {
            "session_id": cart.session_id,
            "partners": [
                {
                    "partner_id": pc.partner_id,
                    "subtotal": pc.subtotal,
                    "items": [
                        {
                            "line_item_id": i.id,
                            "menu_item_id": i.menu_item_id,
                            "quantity": i.quantity,
                            "unit_price": i.unit_price,
                            "line_total": i.line_total,
                            "notes": i.notes,
                        }
                        for i in pc.items
                    ],
                }
                for pc in cart.partners
            ],
            "delivery_quote": quote,
            "totals": {
                "items_total": cart.items_total,
                "delivery_fee": cart.delivery_fee,
                "grand_total": cart.grand_total,
            },
            "items_count": sum(i.quantity for pc in cart.partners for i in pc.items),
            "partners_count": len(cart.partners),
            "updated_at": cart.updated_at,
        }
