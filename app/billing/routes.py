from flask import (
    render_template, redirect, url_for,
    request, flash, current_app
)
from jinja2 import TemplateError

from app.billing import billing
from app.billing.cart import PaymentMode
from app.billing.gateway import get_gateway, PersistenceError, DuplicateSubmission
from app.billing.renderer import render_preview_fragment, render_print_document
from app.billing.state import load_state, save_state, BillingStateError
from app.billing.validators import validate_item_form, parse_discount, exceeds_bill_limit
from app.auth.decorators import login_required


def _is_htmx() -> bool:
    return bool(request.headers.get('HX-Request'))


def _cart_response(state, error=None):
    """
    HTMX callers get the cart partial swapped in-place; plain form posts
    get the message flashed and a redirect back to the counter.
    """
    if _is_htmx():
        return render_template('billing/_cart.html', state=state, error=error,
                               payment_modes=list(PaymentMode))
    if error:
        flash(error, 'error')
    return redirect(url_for('billing.index'))


def _apply_summary_fields(state):
    """
    Pick up discount / payment mode if the form carried them.
    Returns a message for the cashier when the payment mode was not understood.
    """
    if 'discount' in request.form:
        state.cart.discount = parse_discount(request.form.get('discount'))
    if request.form.get('payment_mode'):
        try:
            state.cart.payment_mode = PaymentMode.parse(request.form['payment_mode'])
        except ValueError:
            return 'Unknown payment mode; keeping the previous one.'
    return None


# ── BILLING SCREEN ────────────────────────────────────────────────

@billing.route('/')
@login_required
def index():
    """Counter screen: add-item form + live cart + totals."""
    state = load_state()
    return render_template(
        'billing/index.html',
        title='Billing',
        state=state,
        error=None,
        payment_modes=list(PaymentMode),
    )


# ── ADD ITEM (HTMX) ───────────────────────────────────────────────

@billing.route('/add-item', methods=['POST'])
@login_required
def add_item():
    """
    Validate name/quantity/rate and append a line to the cart.
    Non-numeric or out-of-range quantity or rate is rejected; zero and
    negatives are not.
    """
    state = load_state()
    cleaned, errors = validate_item_form(request.form)
    if errors:
        return _cart_response(state, error=' '.join(errors.values()))

    state.cart.add_item(cleaned['name'], cleaned['quantity'], cleaned['rate'])
    if exceeds_bill_limit(state.cart):
        return _cart_response(load_state(), error='Bill total is too large. Item not added.')

    error = _apply_summary_fields(state)
    save_state(state)
    return _cart_response(state, error=error)


# ── REMOVE ITEM (HTMX) ───────────────────────────────────────────

@billing.route('/remove-item', methods=['POST'])
@login_required
def remove_item():
    """Remove a line by its local identifier; unknown ids are ignored."""
    state = load_state()
    item_id = request.form.get('item_id', '')
    if item_id:
        state.cart.remove_item(item_id)
        save_state(state)
    return _cart_response(state)


# ── SUMMARY (discount / payment mode) ────────────────────────────

@billing.route('/summary', methods=['POST'])
@login_required
def update_summary():
    """Recompute totals after the discount or payment mode changes."""
    state = load_state()
    error = _apply_summary_fields(state)
    save_state(state)
    return _cart_response(state, error=error)


# ── PREVIEW ───────────────────────────────────────────────────────

@billing.route('/preview', methods=['POST'])
@login_required
def stage_preview():
    """Snapshot the cart into the pending slot and show it."""
    state = load_state()
    error = _apply_summary_fields(state)
    if error:
        flash(error, 'warning')
    try:
        pending = state.stage_receipt(prefix=current_app.config.get('RECEIPT_PREFIX', 'AT-'))
    except BillingStateError as exc:
        flash(str(exc), 'warning')
        return redirect(url_for('billing.index'))

    save_state(state)
    current_app.logger.info(f"Receipt {pending.receipt.receipt_number} staged for preview")
    return redirect(url_for('billing.preview'))


@billing.route('/preview')
@login_required
def preview():
    """On-screen receipt with Confirm & Print / Cancel."""
    state = load_state()
    if state.pending is None:
        return redirect(url_for('billing.index'))

    return render_template(
        'billing/preview.html',
        title=f'Preview {state.pending.receipt.receipt_number}',
        receipt_html=render_preview_fragment(state.pending.receipt),
        view_only=False,
    )


@billing.route('/cancel', methods=['POST'])
@login_required
def cancel():
    """Close the preview; the cart stays as it was."""
    state = load_state()
    state.cancel_pending()
    save_state(state)
    return redirect(url_for('billing.index'))


# ── CONFIRM & PRINT ───────────────────────────────────────────────

@billing.route('/confirm', methods=['POST'])
@login_required
def confirm():
    """
    Finalise the sale:
      1. Take the pending receipt (refuse if none)
      2. Append it to the store
      3. Clear the pending slot and the cart
      4. Answer with the print document (opens the print dialog)

    If step 2 fails nothing is cleared and nothing is printed; the same
    preview (same token) can be confirmed again. A second confirm of a
    preview that was already stored is refused by the store. If step 4
    fails the receipt stays saved-but-unprinted.
    """
    state = load_state()
    try:
        pending = state.begin_confirm()
    except BillingStateError as exc:
        flash(str(exc), 'warning')
        return redirect(url_for('billing.index'))

    try:
        key = get_gateway().append(pending.receipt, token=pending.token)
    except DuplicateSubmission as exc:
        # An earlier click already stored this preview.
        state.complete_confirm()
        save_state(state)
        current_app.logger.warning(f"Duplicate confirm ignored: {exc}")
        flash(str(exc), 'info')
        return redirect(url_for('billing.index'))
    except PersistenceError as exc:
        current_app.logger.error(f"Error saving receipt {pending.receipt.receipt_number}: {exc}")
        flash('Failed to save receipt.', 'error')
        return redirect(url_for('billing.preview'))

    receipt = state.complete_confirm()
    save_state(state)
    current_app.logger.info(
        f"Receipt saved: {receipt.receipt_number} (key {key}) | Total: {receipt.grand_total} | {receipt.payment_mode.value}"
    )

    try:
        return render_print_document(receipt, autoprint=True)
    except TemplateError as exc:
        current_app.logger.error(f"Receipt {receipt.receipt_number} saved but printing failed: {exc}")
        flash(f'Receipt {receipt.receipt_number} was saved but could not be printed.', 'error')
        return redirect(url_for('billing.index'))
