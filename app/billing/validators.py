"""
app/billing/validators.py
--------------------------
Pure-Python validation for the add-item and discount inputs.

Quantity and rate must be numbers. Anything else is rejected with a message
instead of silently becoming zero. Zero and negative values are NOT rejected:
they are accepted and show up in the totals.

Money is stored as NUMERIC(12, 2), so every amount is kept inside
±MAX_AMOUNT and quantities inside ±MAX_QUANTITY.
"""
from decimal import Decimal, InvalidOperation

from app.utils.formatting import to_money


MAX_AMOUNT   = Decimal('9999999999.99')
MAX_QUANTITY = 100000


def _within_amount(value: Decimal) -> bool:
    return abs(value) <= MAX_AMOUNT


def validate_item_form(form_data: dict) -> tuple:
    """
    Validate raw form data for one line item.

    Args:
        form_data: dict of raw string values from request.form

    Returns:
        (cleaned, errors)
        cleaned: {'name': str, 'quantity': int, 'rate': Decimal} when valid
        errors:  dict of {field_name: error_message}, empty if all valid
    """
    errors  = {}
    cleaned = {}

    # ── name ─────────────────────────────────────────────────────
    name = (form_data.get('name') or '').strip()
    if not name:
        errors['name'] = 'Item name is required.'
    elif len(name) > 200:
        errors['name'] = 'Item name must be 200 characters or fewer.'
    else:
        cleaned['name'] = name

    # ── quantity ──────────────────────────────────────────────────
    qty_raw = (form_data.get('quantity') or '').strip()
    try:
        quantity = int(qty_raw)
    except ValueError:
        errors['quantity'] = 'Quantity must be a whole number.'
    else:
        if abs(quantity) > MAX_QUANTITY:
            errors['quantity'] = f'Quantity must be between -{MAX_QUANTITY} and {MAX_QUANTITY}.'
        else:
            cleaned['quantity'] = quantity

    # ── rate ──────────────────────────────────────────────────────
    rate_raw = (form_data.get('rate') or '').strip()
    try:
        rate = Decimal(rate_raw)
    except InvalidOperation:
        errors['rate'] = 'Rate must be a valid number.'
    else:
        if not rate.is_finite():
            errors['rate'] = 'Rate must be a valid number.'
        elif not _within_amount(rate):
            errors['rate'] = 'Rate is too large.'
        else:
            cleaned['rate'] = to_money(rate)

    # ── line total ────────────────────────────────────────────────
    if 'quantity' in cleaned and 'rate' in cleaned:
        if not _within_amount(cleaned['quantity'] * cleaned['rate']):
            errors['rate'] = 'Line total is too large.'

    return (cleaned if not errors else {}), errors


def exceeds_bill_limit(cart) -> bool:
    """True when the cart's subtotal no longer fits a stored amount."""
    return not _within_amount(cart.compute_subtotal())


def parse_discount(raw) -> Decimal:
    """
    Blank, non-numeric or out-of-range discount counts as zero.
    Negative is allowed.
    """
    try:
        value = Decimal(str(raw or '').strip() or '0')
    except InvalidOperation:
        return Decimal('0.00')
    if not value.is_finite() or not _within_amount(value):
        return Decimal('0.00')
    return to_money(value)
