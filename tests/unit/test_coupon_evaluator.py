"""Unit tests for coupon validity and discount calculation.

Pure functions, no database involved.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.enums import DiscountType
from storefront.services.coupon_service import calculate_discount, is_valid
from storefront.utils.datetime_utils import utc_now
from tests.factories import build_coupon


# ---------------------------------------------------------------------------
# is_valid
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_active_coupon_within_window_is_valid():
    coupon = build_coupon(min_purchase=Decimal("20"))

    assert is_valid(coupon, Decimal("20"))
    assert is_valid(coupon, Decimal("150.50"))


@pytest.mark.unit
def test_order_below_minimum_purchase_is_invalid():
    coupon = build_coupon(min_purchase=Decimal("100"))

    assert not is_valid(coupon, Decimal("99.99"))


@pytest.mark.unit
def test_inactive_coupon_is_invalid():
    coupon = build_coupon(is_active=False)

    assert not is_valid(coupon, Decimal("500"))


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides",
    [
        {"start_date": utc_now() + timedelta(days=1)},
        {"end_date": utc_now() - timedelta(seconds=1)},
        {"usage_limit": 5, "usage_count": 5},
        {"usage_limit": 1, "usage_count": 3},
    ],
    ids=["not-started", "expired", "limit-reached", "limit-exceeded"],
)
@pytest.mark.parametrize("order_amount", ["0", "10", "1000000"])
def test_coupon_outside_window_or_over_limit_is_never_valid(overrides, order_amount):
    coupon = build_coupon(**overrides)

    assert not is_valid(coupon, Decimal(order_amount))
    assert calculate_discount(coupon, Decimal(order_amount)) == 0


@pytest.mark.unit
def test_usage_below_limit_is_valid():
    coupon = build_coupon(usage_limit=5, usage_count=4)

    assert is_valid(coupon, Decimal("10"))


@pytest.mark.unit
def test_validity_uses_supplied_clock():
    now = utc_now()
    coupon = build_coupon(start_date=now, end_date=now + timedelta(days=1))

    assert is_valid(coupon, Decimal("10"), now)
    assert is_valid(coupon, Decimal("10"), now + timedelta(days=1))
    assert not is_valid(coupon, Decimal("10"), now - timedelta(seconds=1))
    assert not is_valid(coupon, Decimal("10"), now + timedelta(days=1, seconds=1))


# ---------------------------------------------------------------------------
# calculate_discount
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_percentage_discount_is_capped_by_max_discount():
    coupon = build_coupon(
        discount_type=DiscountType.PERCENTAGE,
        discount_amount=Decimal("20"),
        max_discount=Decimal("30"),
    )

    assert calculate_discount(coupon, Decimal("1000")) == Decimal("30")


@pytest.mark.unit
def test_percentage_discount_without_cap():
    coupon = build_coupon(discount_type=DiscountType.PERCENTAGE, discount_amount=Decimal("20"))

    assert calculate_discount(coupon, Decimal("1000")) == Decimal("200")


@pytest.mark.unit
def test_percentage_discount_rounds_to_cents():
    coupon = build_coupon(discount_type=DiscountType.PERCENTAGE, discount_amount=Decimal("15"))

    # 15% of 33.33 = 4.9995
    assert calculate_discount(coupon, Decimal("33.33")) == Decimal("5.00")


@pytest.mark.unit
def test_fixed_discount_never_exceeds_order_amount():
    coupon = build_coupon(discount_type=DiscountType.FIXED, discount_amount=Decimal("50"))

    assert calculate_discount(coupon, Decimal("10")) == Decimal("10")


@pytest.mark.unit
def test_fixed_discount_below_order_amount():
    coupon = build_coupon(discount_type=DiscountType.FIXED, discount_amount=Decimal("50"))

    assert calculate_discount(coupon, Decimal("80")) == Decimal("50")


@pytest.mark.unit
def test_invalid_coupon_gives_no_discount():
    coupon = build_coupon(
        discount_type=DiscountType.FIXED,
        discount_amount=Decimal("50"),
        min_purchase=Decimal("100"),
    )

    assert calculate_discount(coupon, Decimal("60")) == 0


@pytest.mark.unit
@pytest.mark.parametrize(
    "discount_type,discount_amount,max_discount",
    [
        (DiscountType.PERCENTAGE, "10", None),
        (DiscountType.PERCENTAGE, "100", None),
        (DiscountType.PERCENTAGE, "150", None),
        (DiscountType.PERCENTAGE, "25", "5"),
        (DiscountType.FIXED, "0.01", None),
        (DiscountType.FIXED, "75", None),
        (DiscountType.FIXED, "10000", None),
    ],
)
@pytest.mark.parametrize("order_amount", ["0", "0.01", "9.99", "74.50", "1000"])
def test_discount_stays_within_order_amount(discount_type, discount_amount, max_discount, order_amount):
    coupon = build_coupon(
        discount_type=discount_type,
        discount_amount=Decimal(discount_amount),
        max_discount=Decimal(max_discount) if max_discount else None,
    )
    amount = Decimal(order_amount)

    discount = calculate_discount(coupon, amount)

    assert 0 <= discount <= amount
