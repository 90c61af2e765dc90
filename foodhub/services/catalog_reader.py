# foodhub/services/catalog_reader.py
from sqlalchemy.orm import Session

from foodhub.data.models.catalog import PartnerModel
from foodhub.domain.schemas import CatalogItem
from foodhub.repos.catalog_repo import CatalogRepo


class CatalogReader:
    """Odczyt stanu katalogu (cena, dostepnosc, partner) - tylko do odczytu."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def get_item(self, menu_item_id: int) -> CatalogItem | None:
        item = self.repo.get_item(menu_item_id)
        if not item:
            return None

        partner = item.partner
        if partner is None:
            return None

        return CatalogItem(
            menu_item_id=item.id,
            name=item.name,
            price=item.price,
            discount_price=item.discount_price,
            is_available=bool(item.is_available),
            partner_id=partner.id,
            partner_name=partner.name,
            partner_active=bool(partner.is_active),
            stock_quantity=item.stock_quantity,
        )

    def get_partner(self, partner_id: int) -> PartnerModel | None:
        return self.repo.get_partner(partner_id)
