"""
app/history/routes.py
──────────────────────
Sales history view.

Routes:
  GET  /history/           → page shell; shows "Loading..." and pulls the rows
  GET  /history/rows       → stats + table fragment (or the error state)
  GET  /history/<key>      → view-only re-preview of one stored receipt
"""
from flask import render_template, abort, current_app

from app.history import history
from app.history.view_model import load_history, HistoryView, LOADING
from app.billing.gateway import get_gateway, PersistenceError
from app.billing.renderer import render_preview_fragment
from app.auth.decorators import login_required


def _view_settings() -> dict:
    return {
        'symbol':  current_app.config.get('CURRENCY_SYMBOL', '₹'),
        'tz_name': current_app.config.get('RECEIPT_TIMEZONE', 'Asia/Kolkata'),
    }


@history.route('/')
@login_required
def index():
    """Page shell in the loading state; HTMX fetches /history/rows on load."""
    return render_template(
        'history/index.html',
        title='Sales History',
        view=HistoryView(status=LOADING, **_view_settings()),
    )


@history.route('/rows')
@login_required
def rows():
    """Rebuild the history from the store on every call, no caching."""
    view = load_history(get_gateway(), logger=current_app.logger, **_view_settings())
    return render_template('history/_rows.html', view=view)


@history.route('/<int:key>')
@login_required
def detail(key):
    """Re-preview a stored receipt. View-only: no confirm, no print."""
    try:
        receipt = get_gateway().get(key)
    except PersistenceError as exc:
        current_app.logger.error(f"Receipt {key} lookup failed: {exc}")
        abort(500)
    if receipt is None:
        abort(404)

    return render_template(
        'billing/preview.html',
        title=f'Receipt {receipt.receipt_number}',
        receipt_html=render_preview_fragment(receipt),
        view_only=True,
    )
