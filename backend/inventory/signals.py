import logging

from django.contrib.auth import get_user_model
from django.db.models.signals import post_save
from django.dispatch import receiver

from core.models import Notification
from core.permissions import STORE_ROLES
from .models import Batch
from .services import product_stock

logger = logging.getLogger(__name__)

User = get_user_model()

LOW_STOCK = 'LOW_STOCK'


@receiver(post_save, sender=Batch)
def check_low_stock(sender, instance, created, raw=False, **kwargs):
    if raw:
        return

    product = instance.product
    if not product.reorder_level:
        return

    total = product_stock(product.id)
    if total >= product.reorder_level:
        return

    # One unread alert per product until someone reads it
    exists = Notification.objects.filter(
        type=LOW_STOCK, related_id=product.id, is_read=False
    ).exists()
    if exists:
        return

    recipients = User.objects.filter(role__in=STORE_ROLES, is_active=True)
    message = (
        f"Low stock alert: {product.name} ({product.code}) has {total} units left, "
        f"reorder level is {product.reorder_level}."
    )
    Notification.objects.bulk_create([
        Notification(recipient=user, message=message, type=LOW_STOCK, related_id=product.id)
        for user in recipients
    ])
    logger.info("Low stock notification raised for %s (%d < %d)", product.code, total, product.reorder_level)
