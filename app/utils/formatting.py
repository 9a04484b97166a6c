"""
app/utils/formatting.py
------------------------
Pure helpers shared by the cart, receipt and history code:

    format_amount(x)            → "70.00"
    format_currency(x)          → "₹1,23,456.50"   (Indian digit grouping)
    generate_receipt_number()   → "AT-482913"
    to_datetime(value)          → aware UTC datetime
    format_receipt_date(value)  → "19/10/2026, 2:05:09 pm"

to_datetime() is the ONE place a stored temporal value becomes a datetime.
Freshly built receipts, receipts coming back out of the Flask session and
receipts read from the database all go through it, so they render the same
date string for the same instant.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo


CENT = Decimal('0.01')
DEFAULT_SYMBOL = '₹'
DEFAULT_TIMEZONE = 'Asia/Kolkata'


# ── Money ─────────────────────────────────────────────────────────

def to_money(amount) -> Decimal:
    """Round any numeric value to two decimals, half-up (no float contamination)."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(amount) -> str:
    """Plain two-decimal rendering used for rates and line totals."""
    return f'{to_money(amount):.2f}'


def _group_indian(digits: str) -> str:
    # 1234567 → 12,34,567 : last three digits, then pairs
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ','.join(groups + [tail])


def format_currency(amount, symbol: str = DEFAULT_SYMBOL) -> str:
    """
    Localized currency text in the en-IN style.

    Negative values keep the sign in front of the symbol: -₹5.00
    """
    value = to_money(amount)
    sign = '-' if value < 0 else ''
    whole, frac = f'{abs(value):.2f}'.split('.')
    return f'{sign}{symbol}{_group_indian(whole)}.{frac}'


# ── Receipt numbers ───────────────────────────────────────────────

def generate_receipt_number(now: datetime = None, prefix: str = 'AT-') -> str:
    """
    Human-readable receipt number from the last six digits of epoch millis.

    Not unique: two receipts created in the same millisecond (or exactly
    1000 seconds apart, modulo) share a number. The store key is the identity.
    """
    now = now or datetime.now(timezone.utc)
    millis = int(to_datetime(now).timestamp() * 1000)
    return f'{prefix}{str(millis)[-6:]}'


# ── Dates ─────────────────────────────────────────────────────────

def to_datetime(value) -> datetime:
    """
    Normalize a stored temporal value to an aware UTC datetime.

    Accepts:
        datetime         naive values are taken to be UTC (what the DB returns)
        int / float      seconds since the epoch
        str              ISO-8601, with or without offset / trailing 'Z'
        dict             {'seconds': .., 'nanoseconds': ..} timestamp payloads
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, bool):
        raise TypeError('Cannot convert a boolean to a datetime.')

    if isinstance(value, (int, float, Decimal)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)

    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return to_datetime(datetime.fromisoformat(text))

    if isinstance(value, dict) and 'seconds' in value:
        seconds = Decimal(str(value['seconds'])) + Decimal(str(value.get('nanoseconds', 0))) / Decimal(10 ** 9)
        return to_datetime(seconds)

    raise TypeError(f'Unsupported temporal value: {value!r}')


def _localize(value, tz_name: str) -> datetime:
    return to_datetime(value).astimezone(ZoneInfo(tz_name or DEFAULT_TIMEZONE))


def format_receipt_date(value, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Full date-time as printed on the receipt, e.g. 19/10/2026, 2:05:09 pm"""
    local = _localize(value, tz_name)
    hour = local.hour % 12 or 12
    meridiem = 'am' if local.hour < 12 else 'pm'
    return f'{local:%d/%m/%Y}, {hour}:{local:%M:%S} {meridiem}'


def format_receipt_day(value, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Date only, as shown in the history table."""
    return f'{_localize(value, tz_name):%d/%m/%Y}'
