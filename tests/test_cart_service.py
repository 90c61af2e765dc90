from decimal import Decimal

import pytest

from foodhub.data.models import CartModel, MenuItemModel
from foodhub.domain.errors import ConcurrencyConflict, InvalidInput, NotFound

from conftest import fill_cart


def assert_totals_consistent(cart):
    totals = cart["totals"]
    assert totals["grand_total"] == totals["items_total"] + totals["delivery_fee"]
    assert totals["items_total"] == sum((p["subtotal"] for p in cart["partners"]), Decimal("0"))
    for partner in cart["partners"]:
        assert partner["items"], "empty partner group left in cart"
        assert partner["subtotal"] == sum((i["line_total"] for i in partner["items"]), Decimal("0"))


def test_two_partner_cart_with_delivery_quote(carts):
    cart = fill_cart(carts)

    assert cart["totals"]["items_total"] == Decimal("35.00")
    assert cart["totals"]["delivery_fee"] == Decimal("4.49")
    assert cart["totals"]["grand_total"] == Decimal("39.49")
    assert cart["partners_count"] == 2
    assert cart["items_count"] == 3
    assert cart["delivery_quote"]["zone_number"] == 1
    assert cart["delivery_quote"]["additional_partner_fee"] == Decimal("1.50")
    assert_totals_consistent(cart)


def test_adding_same_item_merges_line_and_replaces_notes(carts):
    carts.add_item("s", 1, 1, notes="no onions")
    cart = carts.add_item("s", 1, 2, notes="extra cheese")

    lines = cart["partners"][0]["items"]
    assert len(lines) == 1
    assert lines[0]["quantity"] == 3
    assert lines[0]["line_total"] == Decimal("30.00")
    assert lines[0]["notes"] == "extra cheese"
    assert_totals_consistent(cart)


def test_discount_price_is_used_when_lower(carts):
    cart = carts.add_item("s", 2, 2)
    line = cart["partners"][0]["items"][0]
    assert line["unit_price"] == Decimal("5.00")
    assert line["line_total"] == Decimal("10.00")


@pytest.mark.parametrize(
    "item_id,quantity,error",
    [
        (999, 1, NotFound),
        (4, 1, InvalidInput),  # niedostepny
        (5, 1, InvalidInput),  # partner nieaktywny
        (1, 0, InvalidInput),
    ],
)
def test_add_item_rejections(carts, item_id, quantity, error):
    with pytest.raises(error):
        carts.add_item("s", item_id, quantity)
    assert carts.get_cart("s") is None


def test_update_keeps_stored_unit_price(carts, db):
    cart = carts.add_item("s", 1, 2)
    line_id = cart["partners"][0]["items"][0]["line_item_id"]

    db.get(MenuItemModel, 1).price = Decimal("12.00")
    db.commit()

    cart = carts.update_item("s", line_id, 5)
    line = cart["partners"][0]["items"][0]
    assert line["unit_price"] == Decimal("10.00")
    assert line["line_total"] == Decimal("50.00")
    assert_totals_consistent(cart)


def test_update_validations(carts):
    cart = carts.add_item("s", 1, 1)
    line_id = cart["partners"][0]["items"][0]["line_item_id"]

    with pytest.raises(InvalidInput):
        carts.update_item("s", line_id, 0)
    with pytest.raises(NotFound):
        carts.update_item("s", 12345, 1)
    with pytest.raises(NotFound):
        carts.update_item("nope", line_id, 1)


def test_removing_last_line_drops_partner_and_requotes(carts):
    cart = fill_cart(carts)
    pasta = next(p for p in cart["partners"] if p["partner_id"] == 2)
    line_id = pasta["items"][0]["line_item_id"]

    cart = carts.remove_item("sess-1", line_id)

    assert [p["partner_id"] for p in cart["partners"]] == [1]
    assert cart["delivery_quote"]["total_fee"] == Decimal("2.99")
    assert cart["totals"]["grand_total"] == Decimal("22.99")
    assert_totals_consistent(cart)

    with pytest.raises(NotFound):
        carts.remove_item("sess-1", line_id)


def test_adding_partner_requotes_delivery(carts):
    carts.add_item("s", 1, 2)
    cart = carts.quote_delivery("s", "00-001")
    assert cart["totals"]["delivery_fee"] == Decimal("2.99")

    cart = carts.add_item("s", 3, 1)
    assert cart["totals"]["delivery_fee"] == Decimal("4.49")
    assert_totals_consistent(cart)


def test_emptying_cart_clears_quote(carts):
    cart = carts.add_item("s", 1, 1)
    carts.quote_delivery("s", "00-001")
    cart = carts.remove_item("s", cart["partners"][0]["items"][0]["line_item_id"])

    assert cart["partners"] == []
    assert cart["delivery_quote"] is None
    assert cart["totals"]["grand_total"] == Decimal("0.00")


def test_quote_errors(carts):
    with pytest.raises(InvalidInput):
        carts.quote_delivery("empty", "00-001")

    carts.add_item("s", 1, 1)
    with pytest.raises(NotFound):
        carts.quote_delivery("s", "99-999")
    with pytest.raises(NotFound):
        carts.quote_delivery("s", "09-999")  # strefa nieaktywna


def test_postal_code_is_normalized(carts):
    carts.add_item("s", 1, 1)
    cart = carts.quote_delivery("s", " 02-200 ")
    assert cart["delivery_quote"]["postal_code"] == "02-200"
    assert cart["delivery_quote"]["zone_number"] == 2


def test_clear(carts):
    carts.add_item("s", 1, 1)
    assert carts.clear("s") is True
    assert carts.get_cart("s") is None
    assert carts.clear("s") is False


def test_validate_reports_problems_without_mutating(carts, db):
    carts.add_item("s", 1, 1)
    carts.add_item("s", 3, 1)
    result = carts.validate("s")
    assert not result["is_valid"]
    assert "Delivery fee has not been calculated" in result["errors"]

    carts.quote_delivery("s", "00-001")
    assert carts.validate("s") == {"is_valid": True, "errors": [], "unavailable_items": []}

    db.get(MenuItemModel, 3).is_available = False
    db.commit()
    version = db.query(CartModel).filter_by(session_id="s").one().version

    result = carts.validate("s")
    assert not result["is_valid"]
    assert [u["menu_item_id"] for u in result["unavailable_items"]] == [3]
    assert db.query(CartModel).filter_by(session_id="s").one().version == version


def test_validate_empty_cart(carts):
    result = carts.validate("missing")
    assert result["errors"] == ["Cart is empty"]


def test_stale_version_is_a_conflict(carts, monkeypatch):
    carts.add_item("s", 1, 1)
    monkeypatch.setattr(carts.repo, "update_cart_version", lambda *a, **kw: 0)

    with pytest.raises(ConcurrencyConflict):
        carts.add_item("s", 1, 1)
