"""
app/billing/cart.py
--------------------
The bill being built at the counter.

A Cart is an ordered list of LineItems plus the discount and payment mode the
cashier has picked. It lives in the Flask session (see state.py), so it knows
how to turn itself into a JSON-safe dict and back:

{
    "items": [
        {"id": "item_1760871234567890123", "name": "Pen",
         "quantity": 2, "rate": "10.00"},
        ...
    ],
    "discount":     "5.00",     ← stored as string to survive JSON serialisation
    "payment_mode": "Cash"
}

All money values are kept as strings in the session and converted to Decimal
on load to avoid float contamination.
"""
import enum
import time
from decimal import Decimal


class PaymentMode(enum.Enum):
    cash = "Cash"
    card = "Card"
    upi  = "UPI"

    @classmethod
    def parse(cls, raw) -> 'PaymentMode':
        """Accept an enum member, its value ('UPI') or its name ('upi')."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or '').strip()
        for mode in cls:
            if text in (mode.value, mode.name) or text.lower() == mode.name:
                return mode
        raise ValueError(f'Unknown payment mode: {raw!r}')


def new_item_id() -> str:
    """Time-based local identifier. Only used to remove a line from the cart."""
    return f'item_{time.time_ns()}'


class LineItem:
    """One product/quantity/rate entry in an open cart."""

    def __init__(self, name: str, quantity: int, rate, identifier: str = None):
        self.id       = identifier or new_item_id()
        self.name     = name
        self.quantity = int(quantity)
        self.rate     = Decimal(str(rate))

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.rate

    def to_dict(self) -> dict:
        return {
            'id':       self.id,
            'name':     self.name,
            'quantity': self.quantity,
            'rate':     str(self.rate),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItem':
        return cls(data['name'], data['quantity'], data['rate'], identifier=data['id'])

    def __repr__(self):
        return f"<LineItem {self.name!r} {self.quantity} x {self.rate}>"


class Cart:
    """Ordered line items + discount + payment mode for the open transaction."""

    def __init__(self, items=None, discount=Decimal('0'), payment_mode=PaymentMode.cash):
        self.items        = list(items or [])
        self.discount     = Decimal(str(discount))
        self.payment_mode = PaymentMode.parse(payment_mode)

    # ── Write ─────────────────────────────────────────────────────

    def add_item(self, name: str, quantity: int, rate) -> LineItem:
        """
        Append a new line. Zero or negative quantity/rate are accepted
        as-is and show up in the totals.
        """
        item = LineItem(name, quantity, rate)
        self.items.append(item)
        return item

    def remove_item(self, identifier: str) -> None:
        """Drop the first line with this identifier; no-op if absent."""
        for index, item in enumerate(self.items):
            if item.id == identifier:
                del self.items[index]
                return

    def clear(self) -> None:
        """Empty the cart after a completed sale and reset discount/mode."""
        self.items        = []
        self.discount     = Decimal('0')
        self.payment_mode = PaymentMode.cash

    # ── Totals ────────────────────────────────────────────────────

    def compute_subtotal(self) -> Decimal:
        """Sum of quantity × rate over all lines; 0 for an empty cart."""
        return sum((item.line_total for item in self.items), Decimal('0'))

    @property
    def grand_total(self) -> Decimal:
        return self.compute_subtotal() - self.discount

    @property
    def is_empty(self) -> bool:
        return not self.items

    # ── Session serialisation ─────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            'items':        [item.to_dict() for item in self.items],
            'discount':     str(self.discount),
            'payment_mode': self.payment_mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Cart':
        data = data or {}
        return cls(
            items=[LineItem.from_dict(row) for row in data.get('items', [])],
            discount=data.get('discount', '0'),
            payment_mode=data.get('payment_mode', PaymentMode.cash.value),
        )

    def __len__(self):
        return len(self.items)

    def __repr__(self):
        return f"<Cart items={len(self.items)} discount={self.discount} mode={self.payment_mode.value}>"
