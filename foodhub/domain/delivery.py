# foodhub/domain/delivery.py
"""
Wyliczenia dostawy: czysta matematyka bez I/O.

Jedynym I/O przy wycenie jest wyszukanie strefy po kodzie pocztowym,
robione przez ZoneService przed wywolaniem funkcji z tego modulu.
"""
import math
from dataclasses import dataclass
from datetime import datetime, time, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Tuple

CENT = Decimal("0.01")

PeakHourPolicy = Callable[[datetime], bool]


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ZoneTariff:
    zone_number: int
    zone_name: str
    base_fee: Decimal
    per_extra_partner_fee: Decimal
    peak_surcharge: Decimal
    estimated_transit_minutes: int
    max_distance_km: float | None = None


@dataclass(frozen=True)
class DeliveryFee:
    zone_number: int
    zone_name: str
    base_fee: Decimal
    additional_partner_count: int
    additional_partner_fee: Decimal
    peak_surcharge: Decimal
    total_fee: Decimal


def calculate_delivery_fee(partner_count: int, tariff: ZoneTariff, is_peak_hour: bool) -> DeliveryFee:
    extra = max(0, partner_count - 1)
    base_fee = money(tariff.base_fee)
    additional = money(extra * Decimal(tariff.per_extra_partner_fee))
    peak = money(tariff.peak_surcharge) if is_peak_hour else money(0)

    return DeliveryFee(
        zone_number=tariff.zone_number,
        zone_name=tariff.zone_name,
        base_fee=base_fee,
        additional_partner_count=extra,
        additional_partner_fee=additional,
        peak_surcharge=peak,
        total_fee=base_fee + additional + peak,
    )


def courier_earnings(delivery_fee: Decimal, share: Decimal) -> Decimal:
    return money(Decimal(delivery_fee) * Decimal(share))


def parse_windows(raw: str) -> List[Tuple[time, time]]:
    """'11:30-14:00,18:00-21:00' -> [(11:30, 14:00), (18:00, 21:00)]"""
    windows = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        start, end = chunk.split("-")
        windows.append((time.fromisoformat(start.strip()), time.fromisoformat(end.strip())))
    return windows


def window_policy(windows: List[Tuple[time, time]], tz: tzinfo | None = None) -> PeakHourPolicy:
    def is_peak(moment: datetime) -> bool:
        if tz is not None and moment.tzinfo is not None:
            moment = moment.astimezone(tz)
        current = moment.time().replace(tzinfo=None)
        return any(start <= current <= end for start, end in windows)

    return is_peak


def never_peak(moment: datetime) -> bool:
    return False


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    r = 6371.0
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return r * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
