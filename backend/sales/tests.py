from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from rest_framework import serializers
from rest_framework.test import APITestCase

from core.testing import (
    make_user, authenticate, make_product, make_customer, make_batch, make_hsn,
)
from inventory.models import Batch, StockLedger
from .models import SalesInvoice, SalesItem
from . import services


class SalesNumberTests(TestCase):
    def test_series(self):
        self.assertEqual(services.next_invoice_no(date(2026, 2, 10)), "SI/2526/00001")
        SalesInvoice.objects.create(invoice_no="SI/2526/00009", invoice_date=date(2026, 2, 10))
        self.assertEqual(services.next_invoice_no(date(2026, 3, 31)), "SI/2526/00010")


class BatchSearchTests(TestCase):
    def setUp(self):
        self.product = make_product(name="Dolo 650", code="DL650X", barcode="8901234567890")
        self.batch = make_batch(self.product, "DL2201", qty=5)
        make_batch(self.product, "DL0000", qty=0)
        make_batch(make_product(name="Azithral 500"), "AZ77", qty=3)

    def test_matches_name_code_and_batch(self):
        self.assertEqual([b.batch_no for b in services.search_batches("dolo")], ["DL2201"])
        self.assertEqual([b.batch_no for b in services.search_batches("650x")], ["DL2201"])
        self.assertEqual([b.batch_no for b in services.search_batches("az7")], ["AZ77"])

    def test_barcode_is_exact(self):
        self.assertEqual([b.batch_no for b in services.search_batches("8901234567890")], ["DL2201"])
        self.assertEqual(list(services.search_batches("89012345")), [])

    def test_available_batches_skip_empty(self):
        self.assertEqual(len(services.available_batches()), 2)


class CreateSalesInvoiceTests(TestCase):
    def setUp(self):
        self.user = make_user(role='STAFF')
        self.product = make_product(name="Pantoprazole 40", gst_percent=12)
        self.first = make_batch(self.product, "P1", qty=5, expiry_days=60, mrp=Decimal('100.00'))
        self.second = make_batch(self.product, "P2", qty=10, expiry_days=300, mrp=Decimal('110.00'))

    def test_batch_line_defaults_rate_to_mrp(self):
        invoice = services.create_sales_invoice({}, [{'batch': self.second, 'qty': 2}], user=self.user)

        item = invoice.items.get()
        self.assertEqual(item.selling_rate, Decimal('110.00'))
        self.assertEqual(item.gst_percent, Decimal('12.00'))
        self.assertEqual(invoice.taxable_amount, Decimal('220.00'))
        self.assertEqual(invoice.cgst_amount, Decimal('13.20'))
        self.assertEqual(invoice.sgst_amount, Decimal('13.20'))
        self.assertEqual(invoice.grand_total, Decimal('246.00'))
        self.assertEqual(invoice.payment_status, 'paid')

        self.second.refresh_from_db()
        self.assertEqual(self.second.available_qty, 8)
        entry = StockLedger.objects.get(reference_id=invoice.id)
        self.assertEqual((entry.transaction_type, entry.qty_out, entry.balance_qty), ('sale', 2, 8))

    def test_product_line_splits_fifo(self):
        invoice = services.create_sales_invoice({}, [{'product': self.product, 'qty': 7}])

        rows = list(invoice.items.order_by('expiry_date').values_list('batch_no', 'qty'))
        self.assertEqual(rows, [('P1', 5), ('P2', 2)])
        self.assertEqual(Batch.objects.get(pk=self.first.pk).available_qty, 0)
        self.assertEqual(Batch.objects.get(pk=self.second.pk).available_qty, 8)

    def test_insufficient_batch_stock_writes_nothing(self):
        other = make_product()
        other_batch = make_batch(other, "O1", qty=20)
        items = [{'batch': other_batch, 'qty': 3}, {'batch': self.first, 'qty': 6}]

        with self.assertRaisesMessage(
            serializers.ValidationError, "Insufficient stock for batch P1. Available: 5, Requested: 6"
        ):
            services.create_sales_invoice({}, items)

        self.assertFalse(SalesInvoice.objects.exists())
        self.assertFalse(StockLedger.objects.exists())
        self.assertEqual(Batch.objects.get(pk=other_batch.pk).available_qty, 20)

    def test_insufficient_product_stock(self):
        with self.assertRaises(serializers.ValidationError):
            services.create_sales_invoice({}, [{'product': self.product, 'qty': 16}])
        self.assertEqual(SalesItem.objects.count(), 0)

    def test_same_batch_twice_counts_both_lines(self):
        with self.assertRaises(serializers.ValidationError):
            services.create_sales_invoice({}, [{'batch': self.first, 'qty': 3}, {'batch': self.first, 'qty': 3}])

        invoice = services.create_sales_invoice({}, [{'batch': self.first, 'qty': 2}, {'batch': self.first, 'qty': 3}])
        balances = list(
            StockLedger.objects.filter(reference_id=invoice.id).order_by('created_at').values_list('balance_qty', flat=True)
        )
        self.assertEqual(sorted(balances, reverse=True), [3, 0])
        self.assertEqual(Batch.objects.get(pk=self.first.pk).available_qty, 0)

    def test_batch_and_product_lines_share_stock(self):
        invoice = services.create_sales_invoice({}, [
            {'batch': self.first, 'qty': 3},
            {'product': self.product, 'qty': 4},
        ])

        taken = sorted((item.batch_no, item.qty) for item in invoice.items.all())
        self.assertEqual(taken, [("P1", 2), ("P1", 3), ("P2", 2)])
        self.assertEqual(Batch.objects.get(pk=self.first.pk).available_qty, 0)
        self.assertEqual(Batch.objects.get(pk=self.second.pk).available_qty, 8)

    def test_zero_rate_line_is_free(self):
        invoice = services.create_sales_invoice({}, [{'batch': self.first, 'qty': 1, 'selling_rate': Decimal('0')}])

        item = invoice.items.get()
        self.assertEqual(item.selling_rate, Decimal('0.00'))
        self.assertEqual(item.mrp, Decimal('100.00'))
        self.assertEqual(invoice.grand_total, Decimal('0.00'))
        self.assertEqual(Batch.objects.get(pk=self.first.pk).available_qty, 4)

    def test_discount_and_explicit_rate(self):
        invoice = services.create_sales_invoice({}, [{
            'batch': self.first, 'qty': 1, 'selling_rate': Decimal('90'), 'discount_percent': Decimal('10'),
        }])
        self.assertEqual(invoice.subtotal, Decimal('90.00'))
        self.assertEqual(invoice.discount_amount, Decimal('9.00'))
        self.assertEqual(invoice.taxable_amount, Decimal('81.00'))
        # 81 + 9.72 = 90.72
        self.assertEqual(invoice.grand_total, Decimal('91.00'))
        self.assertEqual(invoice.round_off, Decimal('0.28'))

    def test_gst_falls_back_to_hsn_rate(self):
        product = make_product(hsn=make_hsn(gst_percent=5))
        batch = make_batch(product, qty=4, mrp=Decimal('200.00'))
        invoice = services.create_sales_invoice({'is_interstate': True}, [{'batch': batch, 'qty': 1}])
        self.assertEqual(invoice.igst_amount, Decimal('10.00'))
        self.assertEqual(invoice.cgst_amount, Decimal('0.00'))

    def test_credit_sale_is_unpaid_and_copies_customer(self):
        customer = make_customer(name="Ravi Kumar", phone="9876543210")
        invoice = services.create_sales_invoice(
            {'customer': customer, 'payment_mode': 'credit'}, [{'batch': self.first, 'qty': 1}]
        )
        self.assertEqual(invoice.paid_amount, Decimal('0.00'))
        self.assertEqual(invoice.payment_status, 'pending')
        self.assertEqual(invoice.balance_amount, invoice.grand_total)
        self.assertEqual(invoice.customer_name, "Ravi Kumar")
        self.assertEqual(invoice.customer_phone, "9876543210")


class CancelSalesInvoiceTests(TestCase):
    def test_cancel_restocks(self):
        product = make_product()
        batch = make_batch(product, "R1", qty=6)
        invoice = services.create_sales_invoice({}, [{'batch': batch, 'qty': 4}])

        services.cancel_sales_invoice(invoice.id, reason="Customer returned")

        batch.refresh_from_db()
        invoice.refresh_from_db()
        self.assertEqual(batch.available_qty, 6)
        self.assertTrue(invoice.is_cancelled)
        entry = StockLedger.objects.get(transaction_type='sale_cancel')
        self.assertEqual((entry.qty_in, entry.balance_qty), (4, 6))

        with self.assertRaises(serializers.ValidationError):
            services.cancel_sales_invoice(invoice.id)


class SalesApiTests(APITestCase):
    def setUp(self):
        authenticate(self.client, make_user(role='STAFF'))
        self.product = make_product(name="ORS Sachet", gst_percent=5, mrp=Decimal('20.00'))
        self.batch = make_batch(self.product, "ORS1", qty=50)

    def test_bill_by_product(self):
        response = self.client.post('/api/sales/invoices/', {
            'customer_name': 'Counter',
            'payment_mode': 'upi',
            'items': [{'product': str(self.product.id), 'qty': 10}],
        }, format='json')
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data['grand_total'], 210.0)
        self.assertTrue(response.data['invoice_no'].startswith('SI/'))
        self.assertEqual(response.data['items_detail'][0]['batch_no'], 'ORS1')

    def test_insufficient_stock_is_400(self):
        response = self.client.post('/api/sales/invoices/', {
            'items': [{'batch': str(self.batch.id), 'qty': 51}],
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn("Insufficient stock for batch ORS1", str(response.data))

    def test_item_needs_batch_or_product(self):
        response = self.client.post('/api/sales/invoices/', {'items': [{'qty': 1}]}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_batch_search_endpoint(self):
        response = self.client.get('/api/sales/batches/search/', {'q': 'ors'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]['available_qty'], 50)
        self.assertEqual(response.data[0]['gst_percent'], 5.0)

    def test_cancel_then_delete(self):
        invoice_id = self.client.post('/api/sales/invoices/', {
            'items': [{'batch': str(self.batch.id), 'qty': 1}],
        }, format='json').data['id']

        self.assertEqual(self.client.delete(f'/api/sales/invoices/{invoice_id}/').status_code, 400)
        self.assertEqual(self.client.post(f'/api/sales/invoices/{invoice_id}/cancel/').status_code, 200)
        self.assertEqual(self.client.delete(f'/api/sales/invoices/{invoice_id}/').status_code, 204)
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).available_qty, 50)

    def test_cancelled_invoice_header_is_locked(self):
        invoice_id = self.client.post('/api/sales/invoices/', {
            'items': [{'batch': str(self.batch.id), 'qty': 1}],
        }, format='json').data['id']
        self.client.post(f'/api/sales/invoices/{invoice_id}/cancel/')

        response = self.client.patch(f'/api/sales/invoices/{invoice_id}/', {'notes': 'late edit'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn("Cancelled invoices cannot be edited.", str(response.data))
        self.assertIsNone(SalesInvoice.objects.get(pk=invoice_id).notes)


class InvoiceNumberingTests(TestCase):
    def setUp(self):
        self.batch = make_batch(make_product(), "N1", qty=5)

    def test_taken_number_moves_to_next(self):
        SalesInvoice.objects.create(invoice_no="SI/2526/00001", invoice_date=date(2026, 2, 10))

        # Another counter grabbed the number between read and insert
        with mock.patch('core.numbering.next_invoice_no', side_effect=["SI/2526/00001", "SI/2526/00002"]):
            invoice = services.create_sales_invoice(
                {'invoice_date': date(2026, 2, 10)}, [{'batch': self.batch, 'qty': 1}]
            )

        self.assertEqual(invoice.invoice_no, "SI/2526/00002")
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).available_qty, 4)

    def test_stock_update_emitted_after_commit(self):
        with mock.patch('inventory.services.emit_stock_update') as emit:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                invoice = services.create_sales_invoice({}, [{'batch': self.batch, 'qty': 2}])
                emit.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        emit.assert_called_once_with('sale', invoice.id, [self.batch.product_id])
