from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APITestCase

from core.testing import make_user, authenticate, make_product, make_customer, make_hsn
from .models import Category, HsnCode, DrugSchedule


class ProductGstTests(TestCase):
    def test_own_rate_wins(self):
        product = make_product(gst_percent=18, hsn=make_hsn(gst_percent=5))
        self.assertEqual(product.effective_gst_percent, Decimal('18'))

    def test_hsn_rate_fallback(self):
        product = make_product(hsn=make_hsn(gst_percent=5))
        self.assertEqual(product.effective_gst_percent, Decimal('5'))

    @override_settings(ERP_DEFAULT_GST_PERCENT=12)
    def test_store_default(self):
        self.assertEqual(make_product().effective_gst_percent, Decimal('12'))

    def test_hsn_splits_combined_rate(self):
        hsn = HsnCode.objects.create(code='3003', gst_percent=Decimal('12'))
        self.assertEqual(hsn.cgst_percent, Decimal('6'))
        self.assertEqual(hsn.sgst_percent, Decimal('6'))


class MasterApiTests(APITestCase):
    def setUp(self):
        authenticate(self.client, make_user(role='STAFF'))

    def test_hidden_rows_need_include_hidden(self):
        Category.objects.create(code='CAT001', name='Tablets')
        Category.objects.create(code='CAT002', name='Discontinued', is_hidden=True)

        response = self.client.get('/api/masters/categories/')
        self.assertEqual([c['name'] for c in response.data], ['Tablets'])

        response = self.client.get('/api/masters/categories/', {'include_hidden': 'true'})
        self.assertEqual(len(response.data), 2)

    def test_dropdown_only_active_visible(self):
        Category.objects.create(code='CAT001', name='Tablets')
        Category.objects.create(code='CAT002', name='Inactive', is_active=False)
        Category.objects.create(code='CAT003', name='Hidden', is_hidden=True)

        response = self.client.get('/api/masters/categories/dropdown/')
        self.assertEqual([c['name'] for c in response.data], ['Tablets'])

    def test_next_codes(self):
        DrugSchedule.objects.create(code='SCH004', name='Schedule H')
        self.assertEqual(self.client.get('/api/masters/drug-schedules/next-code/').data['code'], 'SCH005')
        self.assertEqual(self.client.get('/api/masters/hsn-codes/next-code/').data['code'], '0001')
        self.assertEqual(self.client.get('/api/masters/products/next-code/').data['code'], 'PRD00001')
        self.assertEqual(self.client.get('/api/masters/suppliers/next-code/').data['code'], 'SUP00001')

    def test_schedules_ordered_by_code(self):
        DrugSchedule.objects.create(code='SCH002', name='A Schedule')
        DrugSchedule.objects.create(code='SCH001', name='Z Schedule')
        response = self.client.get('/api/masters/drug-schedules/')
        self.assertEqual([s['code'] for s in response.data], ['SCH001', 'SCH002'])

    def test_product_create_expands_names(self):
        category = Category.objects.create(code='CAT001', name='Tablets')
        response = self.client.post('/api/masters/products/', {
            'code': 'PRD00001', 'name': 'Aspirin 75', 'category': str(category.id),
            'mrp': '30.00', 'selling_rate': '28.00',
        }, format='json')
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data['category_name'], 'Tablets')

    def test_selling_rate_above_mrp_rejected(self):
        response = self.client.post('/api/masters/products/', {
            'code': 'PRD00002', 'name': 'Aspirin 150', 'mrp': '30.00', 'selling_rate': '31.00',
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_product_search_and_barcode(self):
        make_product(name='Vitamin C 500', barcode='8900000000011')
        make_product(name='Vitamin D3', is_active=False)

        response = self.client.get('/api/masters/products/search/', {'q': 'vitamin'})
        self.assertEqual([p['name'] for p in response.data], ['Vitamin C 500'])

        response = self.client.get('/api/masters/products/barcode/8900000000011/')
        self.assertEqual(response.data['name'], 'Vitamin C 500')

        response = self.client.get('/api/masters/products/barcode/0000/')
        self.assertEqual(response.status_code, 404)

    def test_customer_search_by_phone(self):
        make_customer(name='Suresh', phone='9000012345')
        make_customer(name='Meena', phone='9888800000')
        response = self.client.get('/api/masters/customers/search/', {'q': '12345'})
        self.assertEqual([c['name'] for c in response.data], ['Suresh'])

    def test_requires_store_role(self):
        authenticate(self.client, make_user(role='GUEST'))
        response = self.client.get('/api/masters/categories/')
        self.assertEqual(response.status_code, 403)
