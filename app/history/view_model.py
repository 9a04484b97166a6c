"""
app/history/view_model.py
──────────────────────────
Sales history: pulls every receipt from the gateway and derives the
dashboard numbers and table rows. Rebuilt from scratch on every activation:
no incremental sync, no paging.
"""
from decimal import Decimal

from app.billing.gateway import PersistenceError
from app.utils.formatting import format_currency, format_receipt_day, DEFAULT_SYMBOL, DEFAULT_TIMEZONE


LOADING = 'loading'
READY   = 'ready'
ERROR   = 'error'


class HistoryRow:
    """One table row; `key` links back to the stored receipt for re-preview."""

    def __init__(self, key, receipt_number, date_text, item_count, payment_mode, grand_total_text):
        self.key              = key
        self.receipt_number   = receipt_number
        self.date_text        = date_text
        self.item_count       = item_count
        self.payment_mode     = payment_mode
        self.grand_total_text = grand_total_text


class HistoryView:
    """Loading / ready / error, plus aggregates once ready."""

    def __init__(self, status=LOADING, receipts=None, error=None,
                 symbol=DEFAULT_SYMBOL, tz_name=DEFAULT_TIMEZONE):
        self.status   = status
        self.receipts = list(receipts or [])
        self.error    = error
        self._symbol  = symbol
        self._tz_name = tz_name

    @property
    def total_revenue(self) -> Decimal:
        return sum((r.grand_total for r in self.receipts), Decimal('0'))

    @property
    def total_bills(self) -> int:
        return len(self.receipts)

    @property
    def total_revenue_text(self) -> str:
        return format_currency(self.total_revenue, self._symbol)

    @property
    def rows(self) -> list:
        return [
            HistoryRow(
                key=r.key,
                receipt_number=r.receipt_number,
                date_text=format_receipt_day(r.receipt_date, self._tz_name),
                item_count=r.item_count,
                payment_mode=r.payment_mode.value,
                grand_total_text=format_currency(r.grand_total, self._symbol),
            )
            for r in self.receipts
        ]


def load_history(gateway, symbol=DEFAULT_SYMBOL, tz_name=DEFAULT_TIMEZONE, logger=None) -> HistoryView:
    """
    Fetch all receipts and build the view. A store failure becomes an
    ERROR view (no retry) instead of an exception.
    """
    try:
        receipts = gateway.list_all()
    except PersistenceError as exc:
        if logger is not None:
            logger.error(f"History load failed: {exc}")
        return HistoryView(status=ERROR, error='Error loading data.', symbol=symbol, tz_name=tz_name)

    return HistoryView(status=READY, receipts=receipts, symbol=symbol, tz_name=tz_name)
