import dataclasses
import re
import pytest
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from app.billing.cart import Cart, PaymentMode
from app.billing.receipt import Receipt, build_receipt
from app.billing.state import (
    BillingState, EmptyCartError, NoPendingReceipt
)
from app.utils.formatting import (
    format_currency, format_amount, generate_receipt_number,
    to_datetime, format_receipt_date, format_receipt_day
)


NOW = datetime(2026, 10, 19, 8, 35, 9, 123456, tzinfo=timezone.utc)


def _scenario_cart():
    cart = Cart()
    cart.add_item('Pen', 2, Decimal('10.00'))
    cart.add_item('Notebook', 1, Decimal('50.00'))
    return cart


# ── Formatting ────────────────────────────────────────────────────

@pytest.mark.parametrize('amount, expected', [
    (Decimal('0'), '₹0.00'),
    (Decimal('185'), '₹185.00'),
    (Decimal('1000'), '₹1,000.00'),
    (Decimal('123456.5'), '₹1,23,456.50'),
    (Decimal('1234567'), '₹12,34,567.00'),
    (Decimal('-5'), '-₹5.00'),
    (Decimal('2.345'), '₹2.35'),
])
def test_format_currency_indian_grouping(amount, expected):
    assert format_currency(amount) == expected


def test_format_amount_two_decimals():
    assert format_amount(Decimal('10')) == '10.00'
    assert format_amount(Decimal('0.125')) == '0.13'


def test_receipt_number_from_clock():
    number = generate_receipt_number(NOW)
    assert re.fullmatch(r'AT-\d{6}', number)
    assert number == 'AT-' + str(int(NOW.timestamp() * 1000))[-6:]
    assert generate_receipt_number(NOW, prefix='X-').startswith('X-')


def test_to_datetime_normalises_every_stored_shape():
    naive = NOW.replace(tzinfo=None)
    ist = NOW.astimezone(timezone(timedelta(hours=5, minutes=30)))
    assert to_datetime(NOW) == NOW
    assert to_datetime(naive) == NOW
    assert to_datetime(ist) == NOW
    assert to_datetime(NOW.isoformat()) == NOW
    assert to_datetime('2026-10-19T08:35:09.123456Z') == NOW
    assert to_datetime(NOW.replace(microsecond=0).timestamp()) == NOW.replace(microsecond=0)
    assert to_datetime({'seconds': int(NOW.timestamp()), 'nanoseconds': 0}) == NOW.replace(microsecond=0)


def test_to_datetime_rejects_garbage():
    with pytest.raises(TypeError):
        to_datetime(True)
    with pytest.raises(TypeError):
        to_datetime(['2026'])


def test_receipt_date_formatting_in_shop_timezone():
    assert format_receipt_date(NOW) == '19/10/2026, 2:05:09 pm'
    assert format_receipt_date(NOW, 'UTC') == '19/10/2026, 8:35:09 am'
    assert format_receipt_day(NOW) == '19/10/2026'


# ── Builder ───────────────────────────────────────────────────────

def test_scenario_pen_and_notebook():
    receipt = build_receipt(_scenario_cart(), Decimal('5.00'), PaymentMode.cash, NOW)
    assert receipt.subtotal == Decimal('70.00')
    assert receipt.grand_total == Decimal('65.00')
    assert receipt.item_count == 2


def test_build_is_deterministic_for_fixed_inputs():
    cart = _scenario_cart()
    a = build_receipt(cart, Decimal('5.00'), PaymentMode.card, NOW)
    b = build_receipt(cart, Decimal('5.00'), PaymentMode.card, NOW)
    assert a == b
    assert a.receipt_date == NOW
    assert a.grand_total == a.subtotal - a.discount


def test_grand_total_not_clamped():
    receipt = build_receipt(_scenario_cart(), Decimal('100.00'), PaymentMode.upi, NOW)
    assert receipt.grand_total == Decimal('-30.00')


def test_identifiers_are_stripped():
    receipt = build_receipt(_scenario_cart(), Decimal('0'), PaymentMode.cash, NOW)
    assert [dataclasses.asdict(i) for i in receipt.items] == [
        {'name': 'Pen', 'quantity': 2, 'rate': Decimal('10.00')},
        {'name': 'Notebook', 'quantity': 1, 'rate': Decimal('50.00')},
    ]


def test_defaults_come_from_cart():
    cart = _scenario_cart()
    cart.discount = Decimal('7.50')
    cart.payment_mode = PaymentMode.upi
    receipt = build_receipt(cart, now=NOW)
    assert receipt.discount == Decimal('7.50')
    assert receipt.payment_mode is PaymentMode.upi


def test_empty_cart_builds_empty_receipt():
    receipt = build_receipt(Cart(), Decimal('0'), PaymentMode.cash, NOW)
    assert receipt.items == ()
    assert receipt.subtotal == Decimal('0')


def test_receipt_is_immutable_and_detached_from_cart():
    cart = _scenario_cart()
    receipt = build_receipt(cart, Decimal('0'), PaymentMode.cash, NOW)
    with pytest.raises(dataclasses.FrozenInstanceError):
        receipt.grand_total = Decimal('1')
    cart.add_item('Late addition', 1, Decimal('99.00'))
    assert receipt.item_count == 2


def test_receipt_dict_round_trip_keeps_instant():
    receipt = build_receipt(_scenario_cart(), Decimal('5.00'), PaymentMode.card, NOW)
    assert Receipt.from_dict(receipt.to_dict()) == receipt


# ── Billing state machine ─────────────────────────────────────────

def test_stage_requires_items():
    state = BillingState()
    assert not state.can_preview
    with pytest.raises(EmptyCartError):
        state.stage_receipt(now=NOW)


def test_stage_confirm_complete_clears_cart():
    state = BillingState(cart=_scenario_cart())
    state.cart.discount = Decimal('5.00')
    pending = state.stage_receipt(now=NOW)
    assert state.pending is pending
    assert pending.token

    assert state.begin_confirm() is pending
    assert state.pending is pending

    receipt = state.complete_confirm()
    assert receipt.grand_total == Decimal('65.00')
    assert state.pending is None
    assert state.cart.is_empty
    assert not state.can_preview


def test_restaging_issues_a_new_token():
    state = BillingState(cart=_scenario_cart())
    first = state.stage_receipt(now=NOW)
    second = state.stage_receipt(now=NOW + timedelta(seconds=1))
    assert state.pending is second
    assert first.token != second.token


def test_state_survives_session_round_trip():
    state = BillingState(cart=_scenario_cart())
    pending = state.stage_receipt(now=NOW)
    restored = BillingState.from_dict(state.to_dict())
    assert restored.pending.token == pending.token
    assert restored.pending.receipt == pending.receipt
    assert 'in_flight' not in state.to_dict()


def test_begin_confirm_keeps_cart_and_pending():
    state = BillingState(cart=_scenario_cart())
    pending = state.stage_receipt(now=NOW)
    state.begin_confirm()
    assert state.pending is pending
    assert len(state.cart) == 2


def test_confirm_without_preview_refused():
    with pytest.raises(NoPendingReceipt):
        BillingState(cart=_scenario_cart()).begin_confirm()


def test_cancel_clears_pending_only():
    state = BillingState(cart=_scenario_cart())
    state.stage_receipt(now=NOW)
    state.cancel_pending()
    assert state.pending is None
    assert len(state.cart) == 2


def test_state_dict_round_trip():
    state = BillingState(cart=_scenario_cart())
    pending = state.stage_receipt(now=NOW)
    restored = BillingState.from_dict(state.to_dict())
    assert restored.pending.receipt == pending.receipt
    assert restored.pending.token == pending.token
    assert restored.cart.compute_subtotal() == Decimal('70.00')
