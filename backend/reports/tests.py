from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from core.testing import make_user, authenticate, make_product, make_supplier, make_batch, make_hsn
from purchase.services import create_purchase_invoice
from sales.services import create_sales_invoice, cancel_sales_invoice
from . import services


class ReportServiceTests(TestCase):
    def setUp(self):
        self.today = timezone.localdate()
        self.hsn = make_hsn(code='3004', gst_percent=12)
        self.product = make_product(name="Metformin 500", hsn=self.hsn, purchase_rate=Decimal('40.00'))
        self.batch = make_batch(self.product, "MF1", qty=100, mrp=Decimal('50.00'), purchase_rate=Decimal('40.00'))

        self.sale = create_sales_invoice({'customer_name': 'Anita'}, [{'batch': self.batch, 'qty': 2}])
        cancelled = create_sales_invoice({'customer_name': 'Anita'}, [{'batch': self.batch, 'qty': 5}])
        cancel_sales_invoice(cancelled.id)

        self.purchase = create_purchase_invoice(
            {'supplier': make_supplier(name="Medline")},
            [{'product': self.product, 'batch_no': 'MF2', 'expiry_date': self.today + timedelta(days=400),
              'qty': 10, 'purchase_rate': Decimal('40.00'), 'gst_percent': Decimal('12')}],
        )

    def test_daily_sales_excludes_cancelled(self):
        rows = services.daily_sales(self.today, self.today)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['invoice_count'], 1)
        self.assertEqual(rows[0]['grand_total'], Decimal('112.00'))

    def test_product_sales_margin(self):
        row = services.product_sales(self.today, self.today)[0]
        self.assertEqual(row['qty'], 2)
        self.assertEqual(row['cost_amount'], Decimal('80.00'))
        self.assertEqual(row['profit'], Decimal('20.00'))

    def test_customer_sales(self):
        rows = services.customer_sales(self.today, self.today)
        self.assertEqual([(r['customer_name'], r['invoice_count']) for r in rows], [('Anita', 1)])

    def test_supplier_purchases(self):
        row = services.supplier_purchases(self.today, self.today)[0]
        self.assertEqual(row['supplier_name'], "Medline")
        self.assertEqual(row['grand_total'], Decimal('448.00'))

    def test_hsn_summary(self):
        row = services.hsn_summary(self.today, self.today)[0]
        self.assertEqual(row['hsn_code'], '3004')
        self.assertEqual(row['taxable_amount'], Decimal('100.00'))
        self.assertEqual(row['cgst_amount'], Decimal('6.00'))

    def test_gst_summary_net(self):
        rows = {row['type']: row for row in services.gst_summary(self.today, self.today)}
        self.assertEqual(rows['Output (Sales)']['total_gst'], Decimal('12.00'))
        self.assertEqual(rows['Input (Purchases)']['total_gst'], Decimal('48.00'))
        self.assertEqual(rows['Net Payable']['total_gst'], Decimal('-36.00'))

    def test_stock_valuation(self):
        rows = {row['batch_no']: row for row in services.stock_valuation()}
        self.assertEqual(rows['MF1']['qty'], 98)
        self.assertEqual(rows['MF1']['cost_value'], Decimal('3920.00'))
        self.assertEqual(rows['MF2']['mrp_value'], Decimal('1000.00'))


class ReportApiTests(APITestCase):
    def setUp(self):
        authenticate(self.client, make_user(role='ADMIN'))
        product = make_product(name="Ibuprofen 400", gst_percent=12)
        batch = make_batch(product, "IB1", qty=10, mrp=Decimal('10.00'), expiry_days=15)
        create_sales_invoice({}, [{'batch': batch, 'qty': 1}])

    def test_defaults_to_today(self):
        response = self.client.get('/api/reports/sales-register/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['start_date'], timezone.localdate())
        self.assertEqual(len(response.data['details']), 1)
        self.assertEqual(response.data['totals']['grand_total'], Decimal('11.00'))

    def test_csv_export(self):
        response = self.client.get('/api/reports/daily-sales/', {'export': 'csv'})
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('attachment; filename="daily_sales.csv"', response['Content-Disposition'])
        lines = response.content.decode().strip().splitlines()
        self.assertTrue(lines[0].startswith('Date,Bills,Taxable'))
        self.assertEqual(len(lines), 2)

    def test_invalid_date(self):
        response = self.client.get('/api/reports/daily-sales/', {'start_date': '17-10-2026'})
        self.assertEqual(response.status_code, 400)

    def test_month_period(self):
        response = self.client.get('/api/reports/purchase-register/', {'period': 'month'})
        self.assertEqual(response.data['start_date'].day, 1)

    def test_last_month_period(self):
        today = timezone.localdate()
        response = self.client.get('/api/reports/sales-register/', {'period': 'last_month'})
        self.assertEqual(response.data['start_date'], today + relativedelta(months=-1, day=1))
        self.assertEqual(response.data['end_date'], today + relativedelta(day=1) - timedelta(days=1))
        self.assertEqual(response.data['details'], [])

    def test_financial_year_period(self):
        today = timezone.localdate()
        response = self.client.get('/api/reports/gst-summary/', {'period': 'financial_year'})
        start = response.data['start_date']
        self.assertEqual((start.month, start.day), (4, 1))
        self.assertLessEqual(start, today)
        self.assertGreater(start + relativedelta(years=1), today)
        self.assertEqual(response.data['end_date'], today)

    def test_unknown_period(self):
        response = self.client.get('/api/reports/daily-sales/', {'period': 'week'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('period', response.data)

    def test_expiry_report(self):
        response = self.client.get('/api/reports/expiry/', {'days': 30})
        self.assertEqual(response.data['details'][0]['status'], 'critical')
        self.assertIsNone(response.data['start_date'])
