from decimal import Decimal

import pytest
from catalog.tests.factories import variant_with_balances
from common.choices import MovementDirection, ReasonCode
from common.exceptions import InsufficientStock, InvalidArgument, InvalidReasonCode, NotFound
from inventory.models import StockBalance, StockMovement
from inventory.selectors import assert_balance_consistent, ledger_quantity
from inventory.services import create_movement, moving_average
from inventory.tests.factories import LocationFactory


def _balance(variant, location) -> StockBalance:
    return StockBalance.objects.get(variant=variant, location=location)


def test_moving_average_weights_lots():
    assert moving_average(10, Decimal("100"), 10, Decimal("200")) == Decimal("150.0000")
    assert moving_average(3, Decimal("10"), 1, Decimal("11")) == Decimal("10.2500")
    # Nothing on hand: the incoming cost wins
    assert moving_average(0, Decimal("999"), 5, Decimal("12.5")) == Decimal("12.5000")
    assert moving_average(-2, Decimal("999"), 5, Decimal("12.5")) == Decimal("12.5000")
    assert moving_average(-5, Decimal("999"), 5, Decimal("12.5")) == Decimal("12.5000")


@pytest.mark.django_db
def test_inbound_then_outbound_updates_balance_and_ledger():
    loc = LocationFactory()
    variant = variant_with_balances()

    mv_in = create_movement(
        variant_id=variant.id,
        location_id=loc.id,
        direction=MovementDirection.IN,
        reason_code=ReasonCode.OVERPROD_IN,
        quantity=10,
        unit_cost="100",
    )
    create_movement(
        variant_id=variant.id,
        location_id=loc.id,
        direction=MovementDirection.OUT,
        reason_code=ReasonCode.SALES_OUT,
        quantity=4,
    )

    bal = _balance(variant, loc)
    assert bal.quantity_on_hand == 6
    assert bal.avg_cost == Decimal("100.0000")
    assert ledger_quantity(variant.id, loc.id) == 6
    assert assert_balance_consistent(variant.id, loc.id) == 6
    assert mv_in.unit == "pcs"
    assert mv_in.currency == "IDR"
    assert mv_in.signed_quantity == 10


@pytest.mark.django_db
def test_inbound_updates_moving_average_and_outbound_keeps_it():
    loc = LocationFactory()
    variant = variant_with_balances()
    common = {"variant_id": variant.id, "location_id": loc.id}

    create_movement(direction="IN", reason_code="OVERPROD_IN", quantity=10, unit_cost="100", **common)
    create_movement(direction="IN", reason_code="RETURN_IN", quantity=10, unit_cost="200", **common)
    assert _balance(variant, loc).avg_cost == Decimal("150.0000")

    create_movement(direction="OUT", reason_code="GIFT_OUT", quantity=5, **common)
    bal = _balance(variant, loc)
    assert bal.quantity_on_hand == 15
    assert bal.avg_cost == Decimal("150.0000")

    # Inbound without a cost leaves the average alone
    create_movement(direction="IN", reason_code="ADJUSTMENT_IN", quantity=5, **common)
    assert _balance(variant, loc).avg_cost == Decimal("150.0000")


@pytest.mark.django_db
def test_outbound_beyond_balance_is_rejected_and_rolled_back():
    loc = LocationFactory()
    variant = variant_with_balances()
    create_movement(
        variant_id=variant.id, location_id=loc.id, direction="IN", reason_code="OVERPROD_IN", quantity=2
    )

    with pytest.raises(InsufficientStock) as excinfo:
        create_movement(
            variant_id=variant.id, location_id=loc.id, direction="OUT", reason_code="SALES_OUT", quantity=5
        )

    assert excinfo.value.available == 2
    assert excinfo.value.required == 5
    assert _balance(variant, loc).quantity_on_hand == 2
    assert StockMovement.objects.count() == 1


@pytest.mark.django_db
def test_allow_negative_override_and_setting(settings):
    loc = LocationFactory()
    variant = variant_with_balances()
    common = {"variant_id": variant.id, "location_id": loc.id, "direction": "OUT", "reason_code": "ADJUSTMENT_OUT"}

    create_movement(quantity=3, allow_negative=True, **common)
    assert _balance(variant, loc).quantity_on_hand == -3

    settings.STOCK_ALLOW_NEGATIVE = True
    create_movement(quantity=2, **common)
    assert _balance(variant, loc).quantity_on_hand == -5

    with pytest.raises(InsufficientStock):
        create_movement(quantity=1, allow_negative=False, **common)


@pytest.mark.django_db
def test_inbound_on_negative_balance_takes_incoming_cost():
    loc = LocationFactory()
    variant = variant_with_balances()
    common = {"variant_id": variant.id, "location_id": loc.id}
    create_movement(direction="OUT", reason_code="ADJUSTMENT_OUT", quantity=4, allow_negative=True, **common)

    create_movement(direction="IN", reason_code="OVERPROD_IN", quantity=10, unit_cost="80", **common)

    bal = _balance(variant, loc)
    assert bal.quantity_on_hand == 6
    assert bal.avg_cost == Decimal("80.0000")


@pytest.mark.django_db
def test_reason_code_must_match_direction():
    loc = LocationFactory()
    variant = variant_with_balances()
    with pytest.raises(InvalidReasonCode):
        create_movement(
            variant_id=variant.id, location_id=loc.id, direction="IN", reason_code="SALES_OUT", quantity=1
        )
    with pytest.raises(InvalidArgument):
        create_movement(
            variant_id=variant.id, location_id=loc.id, direction="SIDEWAYS", reason_code="SALES_OUT", quantity=1
        )
    assert not StockMovement.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize("qty", [0, -3, 1.5, "two", None, True, 2147483648])
def test_quantity_must_be_positive_integer(qty):
    loc = LocationFactory()
    variant = variant_with_balances()
    with pytest.raises(InvalidArgument):
        create_movement(
            variant_id=variant.id, location_id=loc.id, direction="IN", reason_code="OVERPROD_IN", quantity=qty
        )


@pytest.mark.django_db
@pytest.mark.parametrize("cost", ["-1", "abc", "10000000000000"])
def test_bad_unit_cost_is_rejected(cost):
    loc = LocationFactory()
    variant = variant_with_balances()
    with pytest.raises(InvalidArgument):
        create_movement(
            variant_id=variant.id,
            location_id=loc.id,
            direction="IN",
            reason_code="OVERPROD_IN",
            quantity=1,
            unit_cost=cost,
        )


@pytest.mark.django_db
def test_unknown_variant_or_location_is_not_found():
    loc = LocationFactory()
    variant = variant_with_balances()
    with pytest.raises(NotFound):
        create_movement(variant_id=999999, location_id=loc.id, direction="IN", reason_code="OVERPROD_IN", quantity=1)
    with pytest.raises(NotFound):
        create_movement(
            variant_id=variant.id, location_id=999999, direction="IN", reason_code="OVERPROD_IN", quantity=1
        )


@pytest.mark.django_db
def test_movement_creates_missing_balance_row():
    variant = variant_with_balances()
    late = LocationFactory()
    StockBalance.objects.filter(location=late).delete()

    create_movement(variant_id=variant.id, location_id=late.id, direction="IN", reason_code="RETURN_IN", quantity=7)

    assert _balance(variant, late).quantity_on_hand == 7


@pytest.mark.django_db
def test_unit_cost_is_rounded_before_it_feeds_the_average():
    loc = LocationFactory()
    variant = variant_with_balances()
    common = {"variant_id": variant.id, "location_id": loc.id, "direction": "IN", "reason_code": "OVERPROD_IN"}

    first = create_movement(**common, quantity=1, unit_cost="10.005")
    second = create_movement(**common, quantity=1, unit_cost="10.004")

    first.refresh_from_db()
    second.refresh_from_db()
    assert (first.unit_cost, second.unit_cost) == (Decimal("10.01"), Decimal("10.00"))

    # Replaying the stored ledger rows gives the cached average
    replayed = moving_average(0, Decimal("0"), 1, first.unit_cost)
    replayed = moving_average(1, replayed, 1, second.unit_cost)
    assert _balance(variant, loc).avg_cost == replayed == Decimal("10.0050")
