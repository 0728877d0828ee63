from datetime import timedelta
from decimal import Decimal
import random

from django.core.management.base import BaseCommand
from django.utils import timezone

from masters.models import (
    Category, Company, HsnCode, DrugSchedule, ProductType, Supplier, Customer, Product,
)
from purchase.services import create_purchase_invoice


class Command(BaseCommand):
    help = 'Populates masters and opening stock with dummy data for a demo store'

    def add_arguments(self, parser):
        parser.add_argument('--no-stock', action='store_true', help='Create masters only.')

    def handle(self, *args, **options):
        self.stdout.write('Starting dummy data population...')

        products = self.populate_masters()
        if not options['no_stock']:
            self.populate_stock(products)

        self.stdout.write(self.style.SUCCESS('Successfully populated dummy data.'))

    def populate_masters(self):
        self.stdout.write('Populating masters...')

        categories = {}
        for i, name in enumerate(['Tablets', 'Syrups', 'Ointments', 'Drops'], start=1):
            categories[name], _ = Category.objects.get_or_create(code=f'CAT{i:03d}', defaults={'name': name})

        types = {}
        for i, name in enumerate(['TABLET', 'SYRUP', 'GEL', 'DROP'], start=1):
            types[name], _ = ProductType.objects.get_or_create(code=f'TYP{i:03d}', defaults={'name': name.title()})

        for i, (name, description) in enumerate([('Schedule H', 'Prescription only'), ('Schedule G', 'Caution label')], start=1):
            DrugSchedule.objects.get_or_create(code=f'SCH{i:03d}', defaults={'name': name, 'description': description})

        company, _ = Company.objects.get_or_create(code='COM001', defaults={'name': 'Generic Pharma Co.'})
        hsn, _ = HsnCode.objects.get_or_create(
            code='3004', defaults={'description': 'Medicaments in measured doses', 'gst_percent': Decimal('12')}
        )

        suppliers = ['HealthFine Pharma', 'CureWell Distributors', 'City Pharma Agency']
        for i, name in enumerate(suppliers, start=1):
            Supplier.objects.get_or_create(
                code=f'SUP{i:05d}',
                defaults={
                    'name': name,
                    'phone': '9988776655',
                    'address': '456 Pharma Road, Med Town',
                    'gst_no': '29VWXYZ9876A1Z3',
                    'drug_license_no': f'KA-BLR-{20000 + i}',
                },
            )

        Customer.objects.get_or_create(code='CUS00001', defaults={'name': 'Regular Customer', 'phone': '9000000001'})

        medicines = [
            {'name': 'Paracetamol 500mg', 'type': 'TABLET', 'cat': 'Tablets', 'mrp': '2.00', 'ptr': '1.50'},
            {'name': 'Amoxicillin 500mg', 'type': 'TABLET', 'cat': 'Tablets', 'mrp': '10.00', 'ptr': '7.50'},
            {'name': 'Cough Syrup 100ml', 'type': 'SYRUP', 'cat': 'Syrups', 'mrp': '120.00', 'ptr': '90.00'},
            {'name': 'Cetirizine 10mg', 'type': 'TABLET', 'cat': 'Tablets', 'mrp': '5.00', 'ptr': '3.00'},
            {'name': 'Pain Relief Gel', 'type': 'GEL', 'cat': 'Ointments', 'mrp': '85.00', 'ptr': '60.00'},
            {'name': 'Vitamin C Drops', 'type': 'DROP', 'cat': 'Drops', 'mrp': '45.00', 'ptr': '30.00'},
            {'name': 'Azithromycin 500mg', 'type': 'TABLET', 'cat': 'Tablets', 'mrp': '25.00', 'ptr': '18.00'},
            {'name': 'Pantoprazole 40mg', 'type': 'TABLET', 'cat': 'Tablets', 'mrp': '9.00', 'ptr': '6.00'},
        ]

        products = []
        for i, med in enumerate(medicines, start=1):
            product, created = Product.objects.get_or_create(
                code=f'PRD{i:05d}',
                defaults={
                    'name': med['name'],
                    'category': categories[med['cat']],
                    'product_type': types[med['type']],
                    'company': company,
                    'hsn': hsn,
                    'mrp': Decimal(med['mrp']),
                    'purchase_rate': Decimal(med['ptr']),
                    'selling_rate': Decimal(med['mrp']),
                    'reorder_level': 50,
                    'unit': 'STRIP' if med['type'] == 'TABLET' else 'PCS',
                    'pack_size': 10 if med['type'] == 'TABLET' else 1,
                },
            )
            if created:
                self.stdout.write(f"Added Product: {product.name}")
            products.append(product)
        return products

    def populate_stock(self, products):
        self.stdout.write('Posting opening stock purchase...')
        today = timezone.localdate()
        items = [
            {
                'product': product,
                'batch_no': f'BAT-{today.year}-{i + 100}',
                'expiry_date': today + timedelta(days=random.randint(20, 730)),
                'qty': random.randint(50, 500),
                'purchase_rate': product.purchase_rate,
                'mrp': product.mrp,
            }
            for i, product in enumerate(products)
        ]
        invoice = create_purchase_invoice(
            {'supplier': Supplier.objects.order_by('code').first(), 'notes': 'Opening stock'}, items
        )
        self.stdout.write(f"Posted {invoice.invoice_no} with {len(items)} batches")
