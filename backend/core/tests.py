from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APITestCase

from inventory.models import Batch, StockLedger
from masters.models import Category, Product, Supplier
from purchase.models import PurchaseInvoice
from .gst import compute_line, summarize, payment_status, to_decimal
from .models import Notification
from .numbering import financial_year_code, next_code
from .testing import make_user, authenticate, make_product, make_batch


class FinancialYearTests(TestCase):
    def test_april_starts_new_year(self):
        self.assertEqual(financial_year_code(date(2025, 4, 1)), "2526")
        self.assertEqual(financial_year_code(date(2026, 3, 31)), "2526")
        self.assertEqual(financial_year_code(date(2026, 1, 5)), "2526")

    def test_century_rollover(self):
        self.assertEqual(financial_year_code(date(2099, 12, 1)), "9900")


class NextCodeTests(TestCase):
    def test_starts_at_one(self):
        self.assertEqual(next_code(Category, 'CAT', 3), "CAT001")

    def test_increments_highest(self):
        Category.objects.create(code="CAT007", name="Syrups")
        Category.objects.create(code="CAT002", name="Tablets")
        self.assertEqual(next_code(Category, 'CAT', 3), "CAT008")

    def test_longer_code_is_highest(self):
        Category.objects.create(code="CAT999", name="Drops")
        Category.objects.create(code="CAT1000", name="Gels")
        self.assertEqual(next_code(Category, 'CAT', 3), "CAT1001")

    def test_default_start(self):
        self.assertEqual(next_code(Category, 'CAT', 3, default_start=100), "CAT100")
        Category.objects.create(code="CAT100", name="Syrups")
        self.assertEqual(next_code(Category, 'CAT', 3, default_start=100), "CAT101")


class GstLineTests(TestCase):
    def test_intra_state_split(self):
        line = compute_line(10, '50', gst_percent=12)
        self.assertEqual(line['taxable_amount'], Decimal('500.00'))
        self.assertEqual(line['cgst_percent'], Decimal('6'))
        self.assertEqual(line['cgst_amount'], Decimal('30.00'))
        self.assertEqual(line['sgst_amount'], Decimal('30.00'))
        self.assertEqual(line['igst_amount'], Decimal('0.00'))
        self.assertEqual(line['total_amount'], Decimal('560.00'))

    def test_inter_state_igst(self):
        line = compute_line(3, '99.50', discount_percent=10, gst_percent=18, interstate=True)
        # 298.50 - 29.85 = 268.65; 18% = 48.357
        self.assertEqual(line['discount_amount'], Decimal('29.85'))
        self.assertEqual(line['taxable_amount'], Decimal('268.65'))
        self.assertEqual(line['igst_amount'], Decimal('48.36'))
        self.assertEqual(line['cgst_amount'], Decimal('0.00'))
        self.assertEqual(line['total_gst'], Decimal('48.36'))

    def test_half_up_rounding(self):
        line = compute_line(1, '0.50', gst_percent=10)
        # 0.025 on each half
        self.assertEqual(line['cgst_amount'], Decimal('0.03'))

    def test_float_input_is_exact(self):
        self.assertEqual(to_decimal(0.1), Decimal('0.1'))
        self.assertEqual(to_decimal('1,250.50'), Decimal('1250.50'))
        self.assertEqual(to_decimal(None), Decimal('0.00'))


class GstSummaryTests(TestCase):
    def test_rounds_to_rupee(self):
        lines = [compute_line(1, '10.30', gst_percent=5), compute_line(2, '7.10', gst_percent=12)]
        totals = summarize(lines)
        # taxable 24.50, gst 0.26 + 0.26 + 0.85 + 0.85
        self.assertEqual(totals['subtotal'], Decimal('24.50'))
        self.assertEqual(totals['total_gst'], Decimal('2.22'))
        self.assertEqual(totals['grand_total'], Decimal('27.00'))
        self.assertEqual(totals['round_off'], Decimal('0.28'))

    def test_without_round_off(self):
        totals = summarize([compute_line(1, '10.30', gst_percent=5)], round_off=False)
        self.assertEqual(totals['grand_total'], Decimal('10.82'))
        self.assertEqual(totals['round_off'], Decimal('0.00'))

    def test_discount_percent_is_weighted(self):
        totals = summarize([compute_line(1, 100, discount_percent=10), compute_line(1, 300)])
        self.assertEqual(totals['discount_percent'], Decimal('2.50'))

    def test_payment_status(self):
        self.assertEqual(payment_status(100, 100), 'paid')
        self.assertEqual(payment_status(100, 150), 'paid')
        self.assertEqual(payment_status(100, 40), 'partial')
        self.assertEqual(payment_status(100, 0), 'pending')


class DashboardTests(APITestCase):
    def setUp(self):
        self.user = make_user(role='STAFF')
        authenticate(self.client, self.user)

    def test_stats(self):
        product = make_product()
        make_batch(product, qty=4, expiry_days=20)
        make_batch(product, qty=40, expiry_days=500)

        response = self.client.get('/api/core/dashboard/stats/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_products'], 1)
        self.assertEqual(response.data['low_stock_batches'], 1)
        self.assertEqual(response.data['expiring_batches'], 1)
        self.assertEqual(response.data['month_sales'], 0.0)


class NotificationApiTests(APITestCase):
    def setUp(self):
        self.user = make_user(role='STAFF')
        other = make_user(role='STAFF')
        authenticate(self.client, self.user)
        Notification.objects.create(recipient=self.user, message="Low stock alert: A", type='LOW_STOCK')
        Notification.objects.create(recipient=self.user, message="Low stock alert: B", type='LOW_STOCK')
        Notification.objects.create(recipient=other, message="Not yours")

    def test_lists_only_own(self):
        response = self.client.get('/api/core/notifications/')
        self.assertEqual(len(response.data), 2)

    def test_mark_read(self):
        first = Notification.objects.filter(recipient=self.user).first()
        response = self.client.post('/api/core/notifications/mark_read/', {'ids': [str(first.id)]}, format='json')
        self.assertEqual(response.data['updated'], 1)

        response = self.client.get('/api/core/notifications/', {'unread': 'true'})
        self.assertEqual(len(response.data), 1)

    def test_mark_read_rejects_bad_ids(self):
        response = self.client.post('/api/core/notifications/mark_read/', {'ids': 'abc'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('ids', response.data)
        self.assertEqual(Notification.objects.filter(recipient=self.user, is_read=False).count(), 2)

    def test_mark_all_read(self):
        response = self.client.post('/api/core/notifications/mark_read/', {}, format='json')
        self.assertEqual(response.data['updated'], 2)


class ExceptionHandlerTests(APITestCase):
    def test_protected_delete_returns_conflict(self):
        authenticate(self.client, make_user(role='ADMIN'))
        product = make_product()
        make_batch(product, qty=1)

        response = self.client.delete(f'/api/masters/products/{product.id}/')
        self.assertEqual(response.status_code, 409)
        self.assertIn("Hide or deactivate", response.data['detail'])


class ManagementCommandTests(TestCase):
    def test_populate_then_flush(self):
        out = StringIO()
        call_command('populate_dummy_data', stdout=out)

        self.assertEqual(Product.objects.count(), 8)
        self.assertEqual(PurchaseInvoice.objects.count(), 1)
        self.assertEqual(Batch.objects.count(), 8)
        self.assertEqual(StockLedger.objects.filter(transaction_type='purchase').count(), 8)
        self.assertIn('Successfully populated dummy data.', out.getvalue())

        call_command('flush_data', '--noinput', stdout=StringIO())

        self.assertEqual(PurchaseInvoice.objects.count(), 0)
        self.assertEqual(Batch.objects.count(), 0)
        self.assertEqual(StockLedger.objects.count(), 0)
        self.assertEqual(Product.objects.count(), 8)
        self.assertEqual(Supplier.objects.count(), 3)

    def test_masters_only_is_repeatable(self):
        call_command('populate_dummy_data', '--no-stock', stdout=StringIO())
        call_command('populate_dummy_data', '--no-stock', stdout=StringIO())

        self.assertEqual(Product.objects.count(), 8)
        self.assertEqual(Category.objects.count(), 4)
        self.assertEqual(Batch.objects.count(), 0)
