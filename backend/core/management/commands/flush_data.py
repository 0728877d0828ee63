from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Notification
from inventory.models import Batch, StockLedger
from purchase.models import PurchaseInvoice
from sales.models import SalesInvoice


class Command(BaseCommand):
    help = 'Flushes invoices, stock and notifications but keeps users and masters.'

    def add_arguments(self, parser):
        parser.add_argument('--noinput', action='store_true', help='Do not ask for confirmation.')

    def handle(self, *args, **options):
        if not options['noinput']:
            answer = input("This deletes every invoice, batch and ledger entry. Type 'yes' to continue: ")
            if answer.strip().lower() != 'yes':
                self.stdout.write("Aborted.")
                return

        self.stdout.write("Flushing data...")

        with transaction.atomic():
            # Items cascade with their invoices; batches go last because items protect them
            deleted_sales, _ = SalesInvoice.objects.all().delete()
            self.stdout.write(f"Deleted {deleted_sales} Sales Invoice rows")

            deleted_purchases, _ = PurchaseInvoice.objects.all().delete()
            self.stdout.write(f"Deleted {deleted_purchases} Purchase Invoice rows")

            deleted_ledger, _ = StockLedger.objects.all().delete()
            self.stdout.write(f"Deleted {deleted_ledger} Stock Ledger entries")

            deleted_batches, _ = Batch.objects.all().delete()
            self.stdout.write(f"Deleted {deleted_batches} Batches")

            deleted_notifs, _ = Notification.objects.all().delete()
            self.stdout.write(f"Deleted {deleted_notifs} Notifications")

        self.stdout.write(self.style.SUCCESS('Successfully flushed all transactional data.'))
