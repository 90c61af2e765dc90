# foodhub/services/zone_service.py
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from foodhub.data.database import utcnow
from foodhub.domain.delivery import (
    DeliveryFee,
    PeakHourPolicy,
    ZoneTariff,
    calculate_delivery_fee,
    parse_windows,
    window_policy,
)
from foodhub.domain.errors import NotFound
from foodhub.repos.zone_repo import ZoneRepo
from foodhub.utils.settings import PEAK_HOURS, PEAK_HOURS_TIMEZONE
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)


def default_peak_policy() -> PeakHourPolicy:
    tz = timezone.utc if PEAK_HOURS_TIMEZONE.upper() == "UTC" else ZoneInfo(PEAK_HOURS_TIMEZONE)
    return window_policy(parse_windows(PEAK_HOURS), tz)


class ZoneService:
    def __init__(self, db: Session, peak_policy: PeakHourPolicy | None = None):
        self.repo = ZoneRepo(db)
        self.peak_policy = peak_policy or default_peak_policy()

    def resolve(self, postal_code: str) -> ZoneTariff:
        zone = self.repo.find_by_postal_code(postal_code)
        if not zone:
            raise NotFound(f"Postal code {postal_code} is not served", {"postal_code": postal_code})

        return ZoneTariff(
            zone_number=zone.zone_number,
            zone_name=zone.zone_name,
            base_fee=zone.base_fee,
            per_extra_partner_fee=zone.per_extra_partner_fee,
            peak_surcharge=zone.peak_surcharge,
            estimated_transit_minutes=zone.estimated_transit_minutes,
            max_distance_km=zone.max_distance_km,
        )

    def quote(self, postal_code: str, partner_count: int, at: datetime | None = None) -> DeliveryFee:
        tariff = self.resolve(postal_code)
        moment = at or utcnow()
        fee = calculate_delivery_fee(partner_count, tariff, self.peak_policy(moment))

        logger.info(
            f"Delivery quote {postal_code}: zone {fee.zone_number}, partners={partner_count}, "
            f"total={fee.total_fee}"
        )
        return fee
