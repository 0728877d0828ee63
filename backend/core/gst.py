"""
GST line and invoice arithmetic.

Intra-state supplies split the rate equally into CGST and SGST; inter-state
supplies carry the whole rate as IGST. All amounts are Decimals rounded
half-up to paise.
"""
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal('0.00')
HUNDRED = Decimal('100')
PAISE = Decimal('0.01')
RUPEE = Decimal('1')

PAYMENT_PENDING = 'pending'
PAYMENT_PARTIAL = 'partial'
PAYMENT_PAID = 'paid'

TOTAL_FIELDS = (
    'gross_amount', 'discount_amount', 'taxable_amount',
    'cgst_amount', 'sgst_amount', 'igst_amount', 'total_gst', 'total_amount',
)


def to_decimal(value):
    """
    Coerce None, int, float, str or Decimal to a Decimal.
    Floats go through str() to avoid binary artifacts.
    """
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(str(value).strip().replace(',', ''))


def money(value):
    return to_decimal(value).quantize(PAISE, rounding=ROUND_HALF_UP)


def compute_line(qty, rate, discount_percent=0, gst_percent=0, interstate=False):
    qty = to_decimal(qty)
    rate = to_decimal(rate)
    discount_percent = to_decimal(discount_percent)
    gst_percent = to_decimal(gst_percent)

    gross = qty * rate
    discount = gross * discount_percent / HUNDRED
    taxable = gross - discount

    if interstate:
        cgst_percent = sgst_percent = ZERO
        igst_percent = gst_percent
    else:
        cgst_percent = sgst_percent = gst_percent / 2
        igst_percent = ZERO

    cgst = money(taxable * cgst_percent / HUNDRED)
    sgst = money(taxable * sgst_percent / HUNDRED)
    igst = money(taxable * igst_percent / HUNDRED)
    taxable = money(taxable)
    total_gst = cgst + sgst + igst

    return {
        'gross_amount': money(gross),
        'discount_amount': money(discount),
        'taxable_amount': taxable,
        'gst_percent': gst_percent,
        'cgst_percent': cgst_percent,
        'sgst_percent': sgst_percent,
        'igst_percent': igst_percent,
        'cgst_amount': cgst,
        'sgst_amount': sgst,
        'igst_amount': igst,
        'total_gst': total_gst,
        'total_amount': taxable + total_gst,
    }


def summarize(lines, round_off=True):
    """Invoice header totals for a list of ``compute_line`` results."""
    sums = {field: sum((line[field] for line in lines), ZERO) for field in TOTAL_FIELDS}

    raw_total = sums['taxable_amount'] + sums['total_gst']
    grand_total = raw_total.quantize(RUPEE, rounding=ROUND_HALF_UP) if round_off else raw_total
    subtotal = sums['gross_amount']

    if subtotal:
        discount_percent = money(sums['discount_amount'] * HUNDRED / subtotal)
    else:
        discount_percent = ZERO

    return {
        'subtotal': subtotal,
        'discount_amount': sums['discount_amount'],
        'discount_percent': discount_percent,
        'taxable_amount': sums['taxable_amount'],
        'cgst_amount': sums['cgst_amount'],
        'sgst_amount': sums['sgst_amount'],
        'igst_amount': sums['igst_amount'],
        'total_gst': sums['total_gst'],
        'round_off': money(grand_total - raw_total),
        'grand_total': money(grand_total),
    }


def payment_status(grand_total, paid_amount):
    grand_total = to_decimal(grand_total)
    paid_amount = to_decimal(paid_amount)
    if paid_amount >= grand_total:
        return PAYMENT_PAID
    if paid_amount > 0:
        return PAYMENT_PARTIAL
    return PAYMENT_PENDING
