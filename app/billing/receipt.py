"""
app/billing/receipt.py
-----------------------
The immutable receipt snapshot and the builder that derives it from a cart.

A Receipt is frozen: once built (and once persisted) nothing edits it.
Corrections are a new transaction; there is no edit path.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from app.billing.cart import Cart, PaymentMode
from app.utils.formatting import generate_receipt_number, to_datetime


@dataclass(frozen=True)
class ReceiptItem:
    name:     str
    quantity: int
    rate:     Decimal

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.rate


@dataclass(frozen=True)
class Receipt:
    receipt_number: str
    receipt_date:   datetime
    items:          Tuple[ReceiptItem, ...]
    discount:       Decimal
    payment_mode:   PaymentMode
    subtotal:       Decimal
    grand_total:    Decimal
    # Opaque store key, only set on receipts read back from the database.
    key:            Optional[int] = field(default=None, compare=False)

    @property
    def item_count(self) -> int:
        return len(self.items)

    # ── Session serialisation ─────────────────────────────────────
    # The pending receipt sits in the Flask session between preview and
    # confirm. The date travels as an ISO string and comes back through
    # to_datetime(), same as a database read.

    def to_dict(self) -> dict:
        return {
            'receipt_number': self.receipt_number,
            'receipt_date':   to_datetime(self.receipt_date).isoformat(),
            'items': [
                {'name': i.name, 'quantity': i.quantity, 'rate': str(i.rate)}
                for i in self.items
            ],
            'discount':       str(self.discount),
            'payment_mode':   self.payment_mode.value,
            'subtotal':       str(self.subtotal),
            'grand_total':    str(self.grand_total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Receipt':
        return cls(
            receipt_number=data['receipt_number'],
            receipt_date=to_datetime(data['receipt_date']),
            items=tuple(
                ReceiptItem(i['name'], int(i['quantity']), Decimal(str(i['rate'])))
                for i in data['items']
            ),
            discount=Decimal(str(data['discount'])),
            payment_mode=PaymentMode.parse(data['payment_mode']),
            subtotal=Decimal(str(data['subtotal'])),
            grand_total=Decimal(str(data['grand_total'])),
        )


def build_receipt(cart: Cart, discount=None, payment_mode=None,
                  now: datetime = None, prefix: str = 'AT-') -> Receipt:
    """
    Snapshot the cart into a Receipt.

    Args:
        cart:         the open Cart (an empty cart yields a receipt with no items)
        discount:     defaults to cart.discount; may exceed the subtotal
        payment_mode: defaults to cart.payment_mode
        now:          clock reading; the only side effect is reading the clock
                      when this is omitted
        prefix:       receipt-number prefix

    grand_total = subtotal − discount, never clamped (can go negative).
    """
    now = to_datetime(now if now is not None else datetime.now(timezone.utc))
    discount = cart.discount if discount is None else Decimal(str(discount))
    payment_mode = PaymentMode.parse(payment_mode if payment_mode is not None else cart.payment_mode)

    subtotal = cart.compute_subtotal()

    return Receipt(
        receipt_number=generate_receipt_number(now, prefix=prefix),
        receipt_date=now,
        items=tuple(ReceiptItem(i.name, i.quantity, i.rate) for i in cart.items),
        discount=discount,
        payment_mode=payment_mode,
        subtotal=subtotal,
        grand_total=subtotal - discount,
    )
