"""
app/billing/renderer.py
------------------------
Receipt → HTML.

    render_print_document(receipt)   complete, self-contained page (inline CSS)
                                     handed to the browser's print dialog
    render_preview_fragment(receipt) just the receipt body, for the on-screen
                                     preview

Both go through receipt_context() and the same `receipt_body` macro in
templates/receipts/_receipt.html, so preview and print cannot drift apart.
Output depends only on the receipt and the shop settings in app.config.
"""
from flask import current_app, render_template, get_template_attribute

from app.utils.formatting import (
    format_amount, format_currency, format_receipt_date, DEFAULT_TIMEZONE, DEFAULT_SYMBOL
)


RECEIPT_TEMPLATE = 'receipts/_receipt.html'
DOCUMENT_TEMPLATE = 'receipts/document.html'


def receipt_context(receipt, settings=None) -> dict:
    """
    Everything the template needs, already formatted:
    rates and line totals to two decimals, grand total as localized currency.
    """
    settings = settings if settings is not None else current_app.config
    symbol = settings.get('CURRENCY_SYMBOL', DEFAULT_SYMBOL)
    tz_name = settings.get('RECEIPT_TIMEZONE', DEFAULT_TIMEZONE)

    return {
        'shop_name':      settings.get('SHOP_NAME', ''),
        'title':          settings.get('RECEIPT_TITLE', 'Cash Receipt'),
        'footer':         settings.get('RECEIPT_FOOTER', ''),
        'receipt_number': receipt.receipt_number,
        'date_text':      format_receipt_date(receipt.receipt_date, tz_name),
        'rows': [
            {
                'name':     item.name,
                'quantity': item.quantity,
                'rate':     format_amount(item.rate),
                'total':    format_amount(item.line_total),
            }
            for item in receipt.items
        ],
        'subtotal':       format_amount(receipt.subtotal),
        'discount':       format_amount(receipt.discount),
        'grand_total':    format_currency(receipt.grand_total, symbol),
        'payment_mode':   receipt.payment_mode.value,
    }


def render_preview_fragment(receipt, settings=None) -> str:
    """The receipt body alone: no <html>, no styles, no print script."""
    receipt_body = get_template_attribute(RECEIPT_TEMPLATE, 'receipt_body')
    return str(receipt_body(receipt_context(receipt, settings)))


def render_print_document(receipt, settings=None, autoprint: bool = False) -> str:
    """
    Full printable document. With autoprint=True the page opens the print
    dialog on load; the browser tab it is shown in is the staging surface.
    """
    return render_template(
        DOCUMENT_TEMPLATE,
        r=receipt_context(receipt, settings),
        autoprint=autoprint,
    )
