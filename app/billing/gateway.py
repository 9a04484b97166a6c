"""
app/billing/gateway.py
-----------------------
Persistence gateway for receipts.

    append(receipt, token) → store key     one immutable record per call
    list_all()             → [Receipt]     full scan, newest first, no paging
    get(key)               → Receipt|None

Errors are never swallowed here: every database failure is rolled back and
re-raised as PersistenceError so the route that triggered it can show it.
There is no retry.
"""
from decimal import Decimal

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from app import db
from app.billing.models import ReceiptRecord, ReceiptLine
from app.billing.receipt import Receipt, ReceiptItem
from app.utils.formatting import to_datetime


class PersistenceError(Exception):
    """The store could not complete a read or write."""


class DuplicateSubmission(PersistenceError):
    """The same preview was confirmed twice; the first write stands."""


def record_to_receipt(record: ReceiptRecord) -> Receipt:
    """Rebuild the immutable Receipt from a stored row."""
    return Receipt(
        receipt_number=record.receipt_number,
        receipt_date=to_datetime(record.receipt_date),
        items=tuple(
            ReceiptItem(line.name, line.quantity, Decimal(str(line.rate)))
            for line in record.items
        ),
        discount=Decimal(str(record.discount)),
        payment_mode=record.payment_mode,
        subtotal=Decimal(str(record.subtotal)),
        grand_total=Decimal(str(record.grand_total)),
        key=record.id,
    )


class ReceiptGateway:
    """Receipt store backed by the app's SQLAlchemy session."""

    def __init__(self, db_session=None):
        self._db_session = db_session

    @property
    def session(self):
        return self._db_session if self._db_session is not None else db.session

    # ── Write ─────────────────────────────────────────────────────

    def append(self, receipt: Receipt, token: str = None) -> int:
        """
        Write one receipt (header + item rows) in a single transaction.

        Returns:
            int — the store-assigned key

        Raises:
            DuplicateSubmission — token already used
            PersistenceError    — any other database failure
        """
        utc_date = to_datetime(receipt.receipt_date).replace(tzinfo=None)
        record = ReceiptRecord(
            receipt_number   = receipt.receipt_number,
            receipt_date     = utc_date,
            discount         = receipt.discount,
            payment_mode     = receipt.payment_mode,
            subtotal         = receipt.subtotal,
            grand_total      = receipt.grand_total,
            submission_token = token,
        )
        for position, item in enumerate(receipt.items):
            record.items.append(ReceiptLine(
                position = position,
                name     = item.name,
                quantity = item.quantity,
                rate     = item.rate,
            ))

        try:
            self.session.add(record)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if token and self._token_used(token):
                raise DuplicateSubmission(f'Receipt {receipt.receipt_number} was already saved.') from exc
            raise PersistenceError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(str(exc)) from exc

        return record.id

    def _token_used(self, token: str) -> bool:
        try:
            return self.session.query(ReceiptRecord.id).filter_by(submission_token=token).first() is not None
        except SQLAlchemyError:
            self.session.rollback()
            return False

    # ── Read ──────────────────────────────────────────────────────

    def list_all(self) -> list:
        """Every stored receipt, receipt_date descending."""
        try:
            records = (
                self.session.query(ReceiptRecord)
                .options(selectinload(ReceiptRecord.items))
                .order_by(desc(ReceiptRecord.receipt_date), desc(ReceiptRecord.id))
                .all()
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(str(exc)) from exc
        return [record_to_receipt(r) for r in records]

    def get(self, key: int):
        """One receipt by store key, or None."""
        try:
            record = self.session.get(ReceiptRecord, key)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(str(exc)) from exc
        return record_to_receipt(record) if record is not None else None


def get_gateway() -> ReceiptGateway:
    """The gateway registered on the current app (swappable in tests)."""
    from flask import current_app
    return current_app.extensions['receipt_gateway']
