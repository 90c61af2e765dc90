from foodhub.data.models import MenuItemModel, PartnerModel
from foodhub.data.seed import PARTNERS, seed_db
from foodhub.domain.delivery import never_peak
from foodhub.services.zone_service import ZoneService


def test_seed_is_idempotent_and_usable(db):
    assert seed_db(db) is True
    assert seed_db(db) is False

    assert db.query(PartnerModel).count() == len(PARTNERS)
    assert db.query(MenuItemModel).count() == sum(len(p["items"]) for p in PARTNERS)

    fee = ZoneService(db, peak_policy=never_peak).quote("00-001", 2)
    assert fee.zone_number == 1
    assert fee.total_fee == fee.base_fee + fee.additional_partner_fee
