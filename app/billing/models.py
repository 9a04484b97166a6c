from datetime import datetime, timezone
from app import db
from app.billing.cart import PaymentMode


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ReceiptRecord(db.Model):
    """
    One completed transaction, as stored.

    Rows are written once and never updated. The primary key is the identity;
    receipt_number is only a human-readable label and may repeat.
    receipt_date is stored as naive UTC; read it back through
    app.utils.formatting.to_datetime().
    """
    __tablename__ = 'receipts'

    id               = db.Column(db.Integer, primary_key=True)
    receipt_number   = db.Column(db.String(32), nullable=False, index=True)
    receipt_date     = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)
    discount         = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_mode     = db.Column(db.Enum(PaymentMode), nullable=False, default=PaymentMode.cash)
    subtotal         = db.Column(db.Numeric(12, 2), nullable=False)
    grand_total      = db.Column(db.Numeric(12, 2), nullable=False)
    # One-time token from the preview; a second confirm of the same preview
    # trips the UNIQUE constraint instead of writing a duplicate receipt.
    submission_token = db.Column(db.String(64), unique=True, nullable=True)

    # ── Relationships ─────────────────────────────────────────────
    items = db.relationship('ReceiptLine', backref='receipt', lazy='select',
                            order_by='ReceiptLine.position',
                            cascade='all, delete-orphan')

    def __repr__(self):
        return f"<ReceiptRecord {self.receipt_number!r} ₹{self.grand_total}>"


class ReceiptLine(db.Model):
    """
    One item row of a stored receipt: a snapshot of name, quantity and rate.
    """
    __tablename__ = 'receipt_items'

    id         = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey('receipts.id'), nullable=False)
    position   = db.Column(db.Integer, nullable=False, default=0)
    name       = db.Column(db.String(200), nullable=False)
    quantity   = db.Column(db.Integer, nullable=False)
    rate       = db.Column(db.Numeric(12, 2), nullable=False)

    def __repr__(self):
        return f"<ReceiptLine receipt={self.receipt_id} {self.name!r} qty={self.quantity}>"
