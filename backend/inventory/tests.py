from datetime import timedelta
from types import SimpleNamespace

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import serializers
from rest_framework.test import APITestCase

from core.models import Notification
from core.testing import make_user, authenticate, make_product, make_batch
from .models import Batch, StockLedger
from . import services


class AllocateFifoTests(TestCase):
    def batches(self, *qtys):
        return [SimpleNamespace(batch_no=f"B{i}", available_qty=q) for i, q in enumerate(qtys)]

    def test_takes_from_earliest_batch_first(self):
        result = services.allocate_fifo(self.batches(5, 10), 7)
        self.assertEqual([(b.batch_no, q) for b, q in result], [("B0", 5), ("B1", 2)])

    def test_single_batch_covers_request(self):
        result = services.allocate_fifo(self.batches(20, 10), 7)
        self.assertEqual([(b.batch_no, q) for b, q in result], [("B0", 7)])

    def test_skips_empty_batches(self):
        result = services.allocate_fifo(self.batches(0, 3, 4), 5)
        self.assertEqual([(b.batch_no, q) for b, q in result], [("B1", 3), ("B2", 2)])

    def test_short_allocation_when_stock_runs_out(self):
        result = services.allocate_fifo(self.batches(2, 1), 10)
        self.assertEqual(sum(q for _, q in result), 3)

    def test_zero_request(self):
        self.assertEqual(services.allocate_fifo(self.batches(5), 0), [])


class StockQueryTests(TestCase):
    def setUp(self):
        self.product = make_product(name="Paracetamol 500", mrp=20, reorder_level=50)
        self.late = make_batch(self.product, "LATE", qty=30, expiry_days=400)
        self.early = make_batch(self.product, "EARLY", qty=10, expiry_days=20)
        make_batch(self.product, "EMPTY", qty=0, expiry_days=5)

    def test_fifo_batches_order_by_expiry_and_skip_empty(self):
        names = [b.batch_no for b in services.fifo_batches(self.product)]
        self.assertEqual(names, ["EARLY", "LATE"])

    def test_stock_summary(self):
        row = services.stock_summary()[0]
        self.assertEqual(row['product_name'], "Paracetamol 500")
        self.assertEqual(row['total_qty'], 40)
        self.assertEqual(row['batch_count'], 2)
        self.assertEqual(float(row['total_value']), 800.0)

    def test_low_stock_products(self):
        well_stocked = make_product(reorder_level=5)
        make_batch(well_stocked, qty=50)
        make_product(reorder_level=0)

        products = list(services.low_stock_products())
        self.assertEqual([p.id for p in products], [self.product.id])
        self.assertEqual(products[0].current_stock, 40)
        self.assertEqual(products[0].shortage, 10)

    def test_expiring_batches_status(self):
        make_batch(self.product, "GONE", qty=2, expiry_days=-3)
        results = {b.batch_no: b for b in services.expiring_batches(90)}

        self.assertNotIn("LATE", results)
        self.assertNotIn("EMPTY", results)
        self.assertEqual(results["GONE"].expiry_status, services.EXPIRED)
        self.assertEqual(results["GONE"].days_to_expiry, -3)
        self.assertEqual(results["EARLY"].expiry_status, services.CRITICAL)

    def test_expiry_status_thresholds(self):
        self.assertEqual(services.expiry_status(-1), services.EXPIRED)
        self.assertEqual(services.expiry_status(0), services.CRITICAL)
        self.assertEqual(services.expiry_status(30), services.CRITICAL)
        self.assertEqual(services.expiry_status(31), services.WARNING)


class StockAdjustmentServiceTests(TestCase):
    def setUp(self):
        self.user = make_user(role='STAFF')
        self.product = make_product()
        self.batch = make_batch(self.product, "ADJ1", qty=10)

    def test_positive_adjustment_posts_ledger(self):
        entry = services.create_stock_adjustment(self.batch.id, 5, "Opening Stock", user=self.user)

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.available_qty, 15)
        self.assertEqual(entry.transaction_type, 'adjustment_in')
        self.assertEqual(entry.qty_in, 5)
        self.assertEqual(entry.balance_qty, 15)
        self.assertEqual(entry.notes, "Opening Stock")
        self.assertEqual(entry.created_by, self.user)

    def test_negative_adjustment_with_notes(self):
        entry = services.create_stock_adjustment(self.batch.id, -4, "Damaged/Broken", notes="dropped carton")

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.available_qty, 6)
        self.assertEqual(entry.transaction_type, 'adjustment_out')
        self.assertEqual(entry.qty_out, 4)
        self.assertEqual(entry.notes, "Damaged/Broken: dropped carton")

    def test_cannot_go_negative(self):
        with self.assertRaisesMessage(serializers.ValidationError, "Adjustment would result in negative stock"):
            services.create_stock_adjustment(self.batch.id, -11, "Other")

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.available_qty, 10)
        self.assertFalse(StockLedger.objects.exists())

    def test_zero_adjustment_rejected(self):
        with self.assertRaises(serializers.ValidationError):
            services.create_stock_adjustment(self.batch.id, 0, "Other")


class LowStockNotificationTests(TestCase):
    def setUp(self):
        self.admin = make_user(role='ADMIN')
        self.staff = make_user(role='STAFF')
        self.product = make_product(reorder_level=20)

    def test_notifies_store_users_once(self):
        batch = make_batch(self.product, qty=5)
        self.assertEqual(Notification.objects.filter(type='LOW_STOCK').count(), 2)

        batch.available_qty = 3
        batch.save()
        self.assertEqual(Notification.objects.filter(type='LOW_STOCK').count(), 2)

    def test_no_notification_above_reorder_level(self):
        make_batch(self.product, qty=25)
        self.assertFalse(Notification.objects.exists())


class InventoryApiTests(APITestCase):
    def setUp(self):
        self.user = make_user(role='STAFF')
        authenticate(self.client, self.user)
        self.product = make_product(name="Cetirizine 10")
        self.batch = make_batch(self.product, "CTZ1", qty=12, expiry_days=10)
        self.empty = make_batch(self.product, "CTZ0", qty=0)

    def test_requires_authentication(self):
        self.client.credentials()
        response = self.client.get('/api/inventory/batches/')
        self.assertEqual(response.status_code, 401)

    def test_batch_list_hides_empty_unless_requested(self):
        response = self.client.get('/api/inventory/batches/')
        self.assertEqual([b['batch_no'] for b in response.data], ["CTZ1"])

        response = self.client.get('/api/inventory/batches/', {'include_empty': 'true'})
        self.assertEqual(len(response.data), 2)

    def test_expiring_endpoint_counts(self):
        response = self.client.get('/api/inventory/batches/expiring/', {'days': 30})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['counts']['critical'], 1)
        self.assertEqual(response.data['results'][0]['days_to_expiry'], 10)

    def test_fifo_endpoint_allocation(self):
        make_batch(self.product, "CTZ2", qty=8, expiry_days=200)
        response = self.client.get('/api/inventory/batches/fifo/', {'product': self.product.id, 'qty': 15})
        self.assertEqual(response.data['allocated_qty'], 15)
        self.assertEqual([a['qty'] for a in response.data['allocation']], [12, 3])
        self.assertEqual(response.data['shortfall'], 0)

    def test_adjustment_create_and_ledger_filter(self):
        response = self.client.post('/api/inventory/adjustments/', {
            'batch': str(self.batch.id), 'adjustment_qty': -2, 'reason': 'Theft/Pilferage',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['balance_qty'], 10)

        response = self.client.get('/api/inventory/ledger/', {'transaction_type': 'adjustment_out'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['batch_no'], "CTZ1")

    def test_adjustment_negative_result_is_400(self):
        response = self.client.post('/api/inventory/adjustments/', {
            'batch': str(self.batch.id), 'adjustment_qty': -50, 'reason': 'Other',
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).available_qty, 12)

    def test_adjustment_reasons(self):
        response = self.client.get('/api/inventory/adjustments/reasons/')
        self.assertIn('Physical Count Correction', response.data)


class StockLedgerApiTests(APITestCase):
    def setUp(self):
        authenticate(self.client, make_user(role='STAFF'))
        self.batch = make_batch(make_product(name="Montelukast 10"), "MK1", qty=30)
        self.old = services.post_ledger(self.batch, 'purchase', qty_in=30, reference_type='purchase')
        StockLedger.objects.filter(pk=self.old.pk).update(created_at=timezone.now() - timedelta(days=10))
        for _ in range(3):
            services.post_ledger(self.batch, 'adjustment_out', qty_out=1, reference_type='adjustment')

    def test_date_range_filter(self):
        today = timezone.localdate()
        response = self.client.get('/api/inventory/ledger/', {'start_date': today - timedelta(days=2)})
        self.assertEqual(len(response.data), 3)

        response = self.client.get('/api/inventory/ledger/', {
            'start_date': today - timedelta(days=15), 'end_date': today - timedelta(days=5),
        })
        self.assertEqual([row['id'] for row in response.data], [str(self.old.id)])

    @override_settings(ERP_STOCK_LEDGER_LIMIT=2)
    def test_list_is_capped(self):
        response = self.client.get('/api/inventory/ledger/')
        self.assertEqual(len(response.data), 2)
        self.assertTrue(all(row['transaction_type'] == 'adjustment_out' for row in response.data))
