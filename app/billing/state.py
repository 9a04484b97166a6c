"""
app/billing/state.py
---------------------
Everything the counter screen remembers between requests, in one object:

    cart        the open bill (Cart)
    pending     the receipt staged between "preview" and "confirm" (at most one)

The controller loads it from the Flask session at the start of a request,
calls the operations below, and saves it back. Nothing else touches
session['billing'] directly.

Double submission of one preview is stopped by the pending receipt's
one-time token: the store keeps it UNIQUE, so a second confirm of the same
preview raises DuplicateSubmission instead of writing a second receipt.
The preview page also disables its Confirm button once clicked.
"""
import uuid
from flask import session

from app.billing.cart import Cart
from app.billing.receipt import Receipt, build_receipt


STATE_KEY = 'billing'


class BillingStateError(Exception):
    """Base for state-machine violations raised by BillingState."""


class EmptyCartError(BillingStateError):
    pass


class NoPendingReceipt(BillingStateError):
    pass


class PendingReceipt:
    """A staged Receipt plus the one-time token that guards its submission."""

    def __init__(self, receipt: Receipt, token: str = None):
        self.receipt = receipt
        self.token   = token or uuid.uuid4().hex

    def to_dict(self) -> dict:
        return {'receipt': self.receipt.to_dict(), 'token': self.token}

    @classmethod
    def from_dict(cls, data: dict) -> 'PendingReceipt':
        return cls(Receipt.from_dict(data['receipt']), token=data['token'])


class BillingState:

    def __init__(self, cart: Cart = None, pending: PendingReceipt = None):
        self.cart    = cart or Cart()
        self.pending = pending

    # ── Preview / cancel / confirm ────────────────────────────────

    @property
    def can_preview(self) -> bool:
        return not self.cart.is_empty

    def stage_receipt(self, now=None, prefix: str = 'AT-') -> PendingReceipt:
        """
        Snapshot the cart into the pending slot, replacing any earlier
        preview (and its token). Refused while the cart is empty.
        """
        if self.cart.is_empty:
            raise EmptyCartError('Cart is empty. Add items before previewing.')
        self.pending = PendingReceipt(build_receipt(self.cart, now=now, prefix=prefix))
        return self.pending

    def cancel_pending(self) -> None:
        """Close the preview without saving. The cart is left alone."""
        self.pending = None

    def begin_confirm(self) -> PendingReceipt:
        """Return the pending receipt to be saved; nothing changes until complete_confirm()."""
        if self.pending is None:
            raise NoPendingReceipt('Nothing to confirm. Preview the bill first.')
        return self.pending

    def complete_confirm(self) -> Receipt:
        """Persistence succeeded: clear the slot and the cart."""
        if self.pending is None:
            raise NoPendingReceipt('Nothing to confirm. Preview the bill first.')
        receipt = self.pending.receipt
        self.pending = None
        self.cart.clear()
        return receipt

    # ── Session serialisation ─────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            'cart':    self.cart.to_dict(),
            'pending': self.pending.to_dict() if self.pending else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'BillingState':
        data = data or {}
        pending = data.get('pending')
        return cls(
            cart=Cart.from_dict(data.get('cart')),
            pending=PendingReceipt.from_dict(pending) if pending else None,
        )


# ── Session access ────────────────────────────────────────────────

def load_state() -> BillingState:
    """Return the current counter state (fresh if none yet)."""
    return BillingState.from_dict(session.get(STATE_KEY))


def save_state(state: BillingState) -> None:
    session[STATE_KEY] = state.to_dict()
    session.modified   = True
