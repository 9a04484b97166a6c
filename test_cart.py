import itertools
import pytest
from decimal import Decimal

from app.billing.cart import Cart, LineItem, PaymentMode
from app.billing.validators import (
    validate_item_form, parse_discount, exceeds_bill_limit, MAX_AMOUNT, MAX_QUANTITY
)


# ── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def cart():
    c = Cart()
    c.add_item('Pen', 2, Decimal('10.00'))
    c.add_item('Notebook', 1, Decimal('50.00'))
    c.add_item('Stapler', 3, Decimal('120.50'))
    return c


# ── Totals ────────────────────────────────────────────────────────

def test_empty_cart_subtotal_is_zero():
    assert Cart().compute_subtotal() == Decimal('0')
    assert Cart().is_empty


def test_subtotal_sums_quantity_times_rate(cart):
    assert cart.compute_subtotal() == Decimal('431.50')


@pytest.mark.parametrize('order', list(itertools.permutations(range(3))))
def test_subtotal_matches_remaining_items_in_any_removal_order(cart, order):
    ids = [item.id for item in cart.items]
    for index in order:
        cart.remove_item(ids[index])
        expected = sum((i.quantity * i.rate for i in cart.items), Decimal('0'))
        assert cart.compute_subtotal() == expected
    assert cart.compute_subtotal() == Decimal('0')


def test_zero_and_negative_values_are_accepted():
    c = Cart()
    c.add_item('Refund line', -1, Decimal('10.00'))
    c.add_item('Freebie', 3, Decimal('0'))
    assert len(c) == 2
    assert c.compute_subtotal() == Decimal('-10.00')


def test_grand_total_uses_discount_and_may_go_negative():
    c = Cart(discount=Decimal('25.00'))
    c.add_item('Pen', 1, Decimal('10.00'))
    assert c.grand_total == Decimal('-15.00')


# ── Remove / clear ────────────────────────────────────────────────

def test_remove_unknown_id_is_a_noop(cart):
    cart.remove_item('item_does_not_exist')
    assert len(cart) == 3


def test_remove_only_drops_first_match():
    c = Cart(items=[
        LineItem('A', 1, '1.00', identifier='item_1'),
        LineItem('B', 1, '2.00', identifier='item_1'),
    ])
    c.remove_item('item_1')
    assert [i.name for i in c.items] == ['B']


def test_clear_empties_items_and_resets_discount(cart):
    cart.discount = Decimal('5.00')
    cart.payment_mode = PaymentMode.upi
    cart.clear()
    assert cart.is_empty
    assert cart.discount == Decimal('0')
    assert cart.payment_mode == PaymentMode.cash


def test_item_ids_are_local_and_time_based(cart):
    assert all(item.id.startswith('item_') for item in cart.items)


# ── Session serialisation ─────────────────────────────────────────

def test_cart_dict_keeps_money_as_strings(cart):
    cart.discount = Decimal('5.00')
    data = cart.to_dict()
    assert data['discount'] == '5.00'
    assert data['items'][0] == {'id': cart.items[0].id, 'name': 'Pen', 'quantity': 2, 'rate': '10.00'}

    restored = Cart.from_dict(data)
    assert restored.compute_subtotal() == cart.compute_subtotal()
    assert [i.id for i in restored.items] == [i.id for i in cart.items]


def test_payment_mode_parse_accepts_value_and_name():
    assert PaymentMode.parse('UPI') is PaymentMode.upi
    assert PaymentMode.parse('card') is PaymentMode.card
    with pytest.raises(ValueError):
        PaymentMode.parse('Cheque')


# ── Validation ────────────────────────────────────────────────────

def test_validate_item_form_cleans_values():
    cleaned, errors = validate_item_form({'name': ' Pen ', 'quantity': '2', 'rate': '10.005'})
    assert errors == {}
    assert cleaned == {'name': 'Pen', 'quantity': 2, 'rate': Decimal('10.01')}


def test_validate_item_form_rejects_non_numeric():
    cleaned, errors = validate_item_form({'name': 'Pen', 'quantity': 'two', 'rate': 'abc'})
    assert cleaned == {}
    assert 'quantity' in errors
    assert 'rate' in errors


def test_validate_item_form_allows_zero_and_negative():
    cleaned, errors = validate_item_form({'name': 'Adj', 'quantity': '-2', 'rate': '0'})
    assert errors == {}
    assert cleaned['quantity'] == -2


def test_validate_item_form_requires_name():
    _, errors = validate_item_form({'name': '  ', 'quantity': '1', 'rate': '1'})
    assert errors == {'name': 'Item name is required.'}


def test_validate_item_form_rejects_huge_quantity():
    cleaned, errors = validate_item_form({'name': 'Pen', 'quantity': str(10 ** 27), 'rate': '10'})
    assert cleaned == {}
    assert errors == {'quantity': f'Quantity must be between -{MAX_QUANTITY} and {MAX_QUANTITY}.'}


@pytest.mark.parametrize('rate', ['1e30', '-1e30', '10000000000'])
def test_validate_item_form_rejects_huge_rate(rate):
    cleaned, errors = validate_item_form({'name': 'Pen', 'quantity': '1', 'rate': rate})
    assert cleaned == {}
    assert errors == {'rate': 'Rate is too large.'}


def test_validate_item_form_rejects_line_total_beyond_storage():
    cleaned, errors = validate_item_form({'name': 'Pen', 'quantity': str(MAX_QUANTITY), 'rate': '9999999.99'})
    assert cleaned == {}
    assert errors == {'rate': 'Line total is too large.'}


def test_validate_item_form_accepts_largest_amount():
    cleaned, errors = validate_item_form({'name': 'Pen', 'quantity': '1', 'rate': str(MAX_AMOUNT)})
    assert errors == {}
    assert cleaned['rate'] == MAX_AMOUNT


def test_bill_limit_checks_subtotal():
    cart = Cart()
    cart.add_item('Big', 1, MAX_AMOUNT)
    assert not exceeds_bill_limit(cart)
    cart.add_item('Pen', 1, Decimal('0.01'))
    assert exceeds_bill_limit(cart)


@pytest.mark.parametrize('raw, expected', [
    ('', Decimal('0.00')),
    (None, Decimal('0.00')),
    ('abc', Decimal('0.00')),
    ('5', Decimal('5.00')),
    ('-3.5', Decimal('-3.50')),
    ('NaN', Decimal('0.00')),
    ('1e30', Decimal('0.00')),
    ('-1e30', Decimal('0.00')),
    ('9999999999.99', Decimal('9999999999.99')),
])
def test_parse_discount(raw, expected):
    assert parse_discount(raw) == expected
