"""Small object builders shared by the app test suites."""
from datetime import timedelta
from itertools import count

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from masters.models import Product, Supplier, Customer, HsnCode

_seq = count(1)


def make_user(username=None, role='ADMIN', password='pass1234', **extra):
    User = get_user_model()
    username = username or f"user{next(_seq)}"
    return User.objects.create_user(username=username, password=password, role=role, **extra)


def authenticate(client, user):
    """Attach a bearer token for ``user`` to an APIClient."""
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


def make_hsn(code='3004', gst_percent=12):
    return HsnCode.objects.create(code=code, gst_percent=gst_percent)


def make_product(name=None, **extra):
    n = next(_seq)
    extra.setdefault('code', f"PRD{n:05d}")
    extra.setdefault('mrp', 100)
    extra.setdefault('purchase_rate', 60)
    return Product.objects.create(name=name or f"Product {n}", **extra)


def make_supplier(name='Apex Distributors', **extra):
    extra.setdefault('code', f"SUP{next(_seq):05d}")
    return Supplier.objects.create(name=name, **extra)


def make_customer(name='Walk-in Regular', **extra):
    extra.setdefault('code', f"CUS{next(_seq):05d}")
    return Customer.objects.create(name=name, **extra)


def make_batch(product, batch_no=None, qty=10, expiry_days=365, **extra):
    from inventory.models import Batch
    extra.setdefault('mrp', product.mrp)
    extra.setdefault('purchase_rate', product.purchase_rate)
    return Batch.objects.create(
        product=product,
        batch_no=batch_no or f"B{next(_seq)}",
        expiry_date=timezone.localdate() + timedelta(days=expiry_days),
        available_qty=qty,
        **extra,
    )
