"""
Document numbers and master codes.

Invoice numbers restart every Indian financial year (1 April - 31 March):
``PI/2526/00001`` is the first purchase invoice of FY 2025-26.
"""
import logging
import re

from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone

logger = logging.getLogger(__name__)

INVOICE_SEQUENCE_WIDTH = 5
NUMBERING_ATTEMPTS = 5


def financial_year_code(on_date=None):
    on_date = on_date or timezone.localdate()
    start_year = on_date.year if on_date.month >= 4 else on_date.year - 1
    return f"{str(start_year)[2:]}{str(start_year + 1)[2:]}"


def next_invoice_no(model, prefix, on_date=None, field='invoice_no'):
    """Next number in the ``{prefix}/{fy}/{seq}`` series of ``model``."""
    series = f"{prefix}/{financial_year_code(on_date)}/"
    last_no = (
        model.objects
        .filter(**{f'{field}__startswith': series})
        .order_by(Length(field).desc(), f'-{field}')
        .values_list(field, flat=True)
        .first()
    )

    next_num = 1
    if last_no:
        try:
            next_num = int(last_no.rsplit('/', 1)[-1]) + 1
        except ValueError:
            next_num = 1

    return f"{series}{next_num:0{INVOICE_SEQUENCE_WIDTH}d}"


def create_numbered(model, prefix, on_date=None, field='invoice_no', **fields):
    """
    Create a ``model`` row under the next free number of its series.

    Two postings can read the same last number; the loser of the unique
    constraint rolls back to its savepoint and takes the following number.
    """
    for attempt in range(1, NUMBERING_ATTEMPTS + 1):
        number = next_invoice_no(model, prefix, on_date, field=field)
        try:
            with transaction.atomic():
                return model.objects.create(**{field: number}, **fields)
        except IntegrityError:
            if attempt == NUMBERING_ATTEMPTS or not model.objects.filter(**{field: number}).exists():
                raise
            logger.warning("%s %s already taken, retrying (attempt %d)", model.__name__, number, attempt)


def next_code(model, prefix, width, field='code', default_start=1):
    """Highest existing code's digits plus one, e.g. CAT007 -> CAT008."""
    qs = model.objects.all()
    if prefix:
        qs = qs.filter(**{f'{field}__startswith': prefix})
    # Longer codes sort first so CAT1000 beats CAT999
    last_code = qs.order_by(Length(field).desc(), f'-{field}').values_list(field, flat=True).first() or ''

    digits = re.sub(r'\D', '', last_code)
    if not digits:
        return f"{prefix}{default_start:0{width}d}"
    return f"{prefix}{int(digits) + 1:0{width}d}"
