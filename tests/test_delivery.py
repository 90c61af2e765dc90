from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from foodhub.domain.delivery import (
    ZoneTariff,
    calculate_delivery_fee,
    courier_earnings,
    haversine_km,
    money,
    never_peak,
    parse_windows,
    window_policy,
)

TARIFF = ZoneTariff(
    zone_number=1,
    zone_name="Centrum",
    base_fee=Decimal("2.99"),
    per_extra_partner_fee=Decimal("1.50"),
    peak_surcharge=Decimal("2.00"),
    estimated_transit_minutes=20,
)


def test_two_partner_fee_off_peak():
    fee = calculate_delivery_fee(2, TARIFF, is_peak_hour=False)
    assert fee.base_fee == Decimal("2.99")
    assert fee.additional_partner_count == 1
    assert fee.additional_partner_fee == Decimal("1.50")
    assert fee.peak_surcharge == Decimal("0.00")
    assert fee.total_fee == Decimal("4.49")


def test_single_partner_pays_base_only_and_peak_adds_surcharge():
    assert calculate_delivery_fee(1, TARIFF, False).total_fee == Decimal("2.99")
    assert calculate_delivery_fee(1, TARIFF, True).total_fee == Decimal("4.99")
    # pusty koszyk nie daje ujemnej doplaty
    assert calculate_delivery_fee(0, TARIFF, False).additional_partner_fee == Decimal("0.00")


def test_fee_is_non_decreasing_in_partner_count():
    for peak in (False, True):
        fees = [calculate_delivery_fee(n, TARIFF, peak).total_fee for n in range(1, 8)]
        assert fees == sorted(fees)


def test_money_rounds_half_up():
    assert money("1.005") == Decimal("1.01")
    assert money(2) == Decimal("2.00")
    assert courier_earnings(Decimal("4.49"), Decimal("1.00")) == Decimal("4.49")
    assert courier_earnings(Decimal("4.49"), Decimal("0.5")) == Decimal("2.25")


def test_parse_windows():
    assert parse_windows("11:30-14:00, 18:00-21:00,") == [
        (time(11, 30), time(14, 0)),
        (time(18, 0), time(21, 0)),
    ]


def test_window_policy_checks_local_time():
    policy = window_policy(parse_windows("11:30-14:00,18:00-21:00"))
    assert policy(datetime(2026, 3, 2, 12, 0))
    assert policy(datetime(2026, 3, 2, 21, 0))
    assert not policy(datetime(2026, 3, 2, 15, 0))

    warsaw = window_policy(parse_windows("11:30-14:00"), timezone(timedelta(hours=1)))
    # 11:00 UTC = 12:00 czasu lokalnego
    assert warsaw(datetime(2026, 1, 10, 11, 0, tzinfo=timezone.utc))
    assert not warsaw(datetime(2026, 1, 10, 13, 30, tzinfo=timezone.utc))

    assert not never_peak(datetime(2026, 1, 10, 12, 0))


def test_haversine_distance():
    assert haversine_km(52.2297, 21.0122, 52.2297, 21.0122) == 0
    # Warszawa - Krakow ok. 252 km
    assert 245 < haversine_km(52.2297, 21.0122, 50.0647, 19.9450) < 260
