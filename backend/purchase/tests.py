from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from rest_framework import serializers
from rest_framework.test import APITestCase

from core.testing import make_user, authenticate, make_product, make_supplier, make_batch
from inventory.models import Batch, StockLedger
from .models import PurchaseInvoice
from . import services

EXPIRY = date.today() + timedelta(days=540)


class PurchaseNumberTests(TestCase):
    def test_first_number_of_financial_year(self):
        self.assertEqual(services.next_invoice_no(date(2025, 6, 1)), "PI/2526/00001")

    def test_continues_series(self):
        supplier = make_supplier()
        PurchaseInvoice.objects.create(invoice_no="PI/2526/00041", invoice_date=date(2025, 5, 2), supplier=supplier)
        PurchaseInvoice.objects.create(invoice_no="PI/2425/00090", invoice_date=date(2025, 3, 2), supplier=supplier)
        self.assertEqual(services.next_invoice_no(date(2026, 1, 15)), "PI/2526/00042")
        self.assertEqual(services.next_invoice_no(date(2026, 4, 1)), "PI/2627/00001")


class CreatePurchaseInvoiceTests(TestCase):
    def setUp(self):
        self.user = make_user(role='STAFF')
        self.supplier = make_supplier()
        self.product = make_product(name="Amoxicillin 250", gst_percent=12, mrp=120)

    def item(self, **extra):
        data = {
            'product': self.product, 'batch_no': 'AMX01', 'expiry_date': EXPIRY,
            'qty': 10, 'free_qty': 2, 'purchase_rate': Decimal('50.00'), 'mrp': Decimal('120.00'),
        }
        data.update(extra)
        return data

    def test_creates_batch_items_and_ledger(self):
        invoice = services.create_purchase_invoice(
            {'supplier': self.supplier, 'purchase_type': 'in_state'}, [self.item()], user=self.user
        )

        batch = Batch.objects.get(product=self.product, batch_no='AMX01')
        self.assertEqual(batch.available_qty, 12)
        self.assertEqual(batch.purchase_rate, Decimal('50.00'))

        item = invoice.items.get()
        self.assertEqual(item.total_qty, 12)
        self.assertEqual(item.cgst_amount, Decimal('30.00'))
        self.assertEqual(item.sgst_amount, Decimal('30.00'))
        self.assertEqual(item.igst_amount, Decimal('0.00'))

        self.assertEqual(invoice.subtotal, Decimal('500.00'))
        self.assertEqual(invoice.total_gst, Decimal('60.00'))
        self.assertEqual(invoice.grand_total, Decimal('560.00'))
        self.assertEqual(invoice.paid_amount, Decimal('560.00'))
        self.assertEqual(invoice.payment_status, 'paid')
        self.assertTrue(invoice.invoice_no.startswith('PI/'))

        entry = StockLedger.objects.get(reference_id=invoice.id)
        self.assertEqual(entry.transaction_type, 'purchase')
        self.assertEqual(entry.qty_in, 12)
        self.assertEqual(entry.balance_qty, 12)

    def test_out_of_state_uses_igst(self):
        invoice = services.create_purchase_invoice(
            {'supplier': self.supplier, 'purchase_type': 'out_of_state'}, [self.item(free_qty=0)]
        )
        self.assertEqual(invoice.igst_amount, Decimal('60.00'))
        self.assertEqual(invoice.cgst_amount, Decimal('0.00'))

    def test_existing_batch_is_topped_up(self):
        make_batch(self.product, 'AMX01', qty=5)
        services.create_purchase_invoice({'supplier': self.supplier}, [self.item(free_qty=0)])

        batches = Batch.objects.filter(product=self.product)
        self.assertEqual(batches.count(), 1)
        self.assertEqual(batches.get().available_qty, 15)
        self.assertEqual(StockLedger.objects.get().balance_qty, 15)

    def test_discount_and_round_off(self):
        invoice = services.create_purchase_invoice(
            {'supplier': self.supplier},
            [self.item(qty=3, free_qty=0, purchase_rate=Decimal('33.33'), discount_percent=Decimal('5'))],
        )
        # 99.99 - 5% = 94.99, GST 11.40 -> 106.39 rounds to 106
        self.assertEqual(invoice.taxable_amount, Decimal('94.99'))
        self.assertEqual(invoice.grand_total, Decimal('106.00'))
        self.assertEqual(invoice.round_off, Decimal('-0.39'))

    def test_partial_payment(self):
        invoice = services.create_purchase_invoice(
            {'supplier': self.supplier, 'paid_amount': Decimal('100')}, [self.item(free_qty=0)]
        )
        self.assertEqual(invoice.balance_amount, Decimal('460.00'))
        self.assertEqual(invoice.payment_status, 'partial')

    def test_requires_items(self):
        with self.assertRaises(serializers.ValidationError):
            services.create_purchase_invoice({'supplier': self.supplier}, [])
        self.assertFalse(PurchaseInvoice.objects.exists())

    def test_new_batch_without_expiry_rolls_back(self):
        good = self.item()
        bad = self.item(batch_no='NOEXP', expiry_date=None)
        with self.assertRaises(serializers.ValidationError):
            services.create_purchase_invoice({'supplier': self.supplier}, [good, bad])

        self.assertFalse(PurchaseInvoice.objects.exists())
        self.assertFalse(Batch.objects.exists())
        self.assertFalse(StockLedger.objects.exists())


class CancelPurchaseInvoiceTests(TestCase):
    def setUp(self):
        self.supplier = make_supplier()
        self.product = make_product(gst_percent=5)
        self.invoice = services.create_purchase_invoice(
            {'supplier': self.supplier},
            [{'product': self.product, 'batch_no': 'C1', 'expiry_date': EXPIRY, 'qty': 8, 'purchase_rate': 10}],
        )

    def test_cancel_reverses_stock(self):
        services.cancel_purchase_invoice(self.invoice.id, reason="Wrong supplier")

        self.invoice.refresh_from_db()
        self.assertTrue(self.invoice.is_cancelled)
        self.assertEqual(Batch.objects.get(batch_no='C1').available_qty, 0)
        entry = StockLedger.objects.get(transaction_type='purchase_cancel')
        self.assertEqual(entry.qty_out, 8)

    def test_cannot_cancel_twice(self):
        services.cancel_purchase_invoice(self.invoice.id)
        with self.assertRaisesMessage(serializers.ValidationError, "already cancelled"):
            services.cancel_purchase_invoice(self.invoice.id)

    def test_cannot_cancel_after_stock_sold(self):
        Batch.objects.filter(batch_no='C1').update(available_qty=3)
        with self.assertRaises(serializers.ValidationError):
            services.cancel_purchase_invoice(self.invoice.id)
        self.invoice.refresh_from_db()
        self.assertFalse(self.invoice.is_cancelled)


class PurchaseApiTests(APITestCase):
    def setUp(self):
        authenticate(self.client, make_user(role='STAFF'))
        self.supplier = make_supplier()
        self.product = make_product(gst_percent=12)

    def post_invoice(self):
        return self.client.post('/api/purchase/invoices/', {
            'supplier': str(self.supplier.id),
            'purchase_type': 'in_state',
            'supplier_invoice_no': 'AD-778',
            'items': [{
                'product': str(self.product.id), 'batch_no': 'API1', 'expiry_date': EXPIRY.isoformat(),
                'qty': 4, 'purchase_rate': '25.00', 'mrp': '40.00',
            }],
        }, format='json')

    def test_create_and_retrieve(self):
        response = self.post_invoice()
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data['grand_total'], 112.0)
        self.assertEqual(response.data['supplier_name'], self.supplier.name)

        detail = self.client.get(f"/api/purchase/invoices/{response.data['id']}/")
        self.assertEqual(len(detail.data['items_detail']), 1)
        self.assertEqual(detail.data['items_detail'][0]['batch_no'], 'API1')

    def test_next_number(self):
        response = self.client.get('/api/purchase/invoices/next-number/')
        self.assertTrue(response.data['invoice_no'].endswith('/00001'))

    def test_delete_requires_cancel(self):
        invoice_id = self.post_invoice().data['id']

        response = self.client.delete(f'/api/purchase/invoices/{invoice_id}/')
        self.assertEqual(response.status_code, 400)

        response = self.client.post(f'/api/purchase/invoices/{invoice_id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['is_cancelled'])

        response = self.client.delete(f'/api/purchase/invoices/{invoice_id}/')
        self.assertEqual(response.status_code, 204)

    def test_header_update_recomputes_balance(self):
        invoice_id = self.post_invoice().data['id']
        response = self.client.patch(f'/api/purchase/invoices/{invoice_id}/', {'paid_amount': '12.00'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['payment_status'], 'partial')
        self.assertEqual(response.data['balance_amount'], 100.0)

    def test_batch_suggestions(self):
        make_batch(self.product, 'OLD', qty=0)
        response = self.client.get('/api/purchase/invoices/batch-suggestions/', {'product': str(self.product.id)})
        self.assertEqual([b['batch_no'] for b in response.data], ['OLD'])
