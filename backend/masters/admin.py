from django.contrib import admin
from .models import (
    Category, Company, HsnCode, DrugSchedule, DrugFormula, ProductType,
    Supplier, Customer, Product,
)


@admin.register(Category, DrugSchedule, DrugFormula, ProductType)
class SimpleMasterAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active', 'is_hidden')
    search_fields = ('code', 'name')


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'gst_no', 'is_active')
    search_fields = ('code', 'name')


@admin.register(HsnCode)
class HsnCodeAdmin(admin.ModelAdmin):
    list_display = ('code', 'gst_percent', 'cgst_percent', 'sgst_percent', 'is_active')
    search_fields = ('code', 'description')


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'phone', 'gst_no', 'drug_license_no', 'is_active')
    search_fields = ('code', 'name', 'phone', 'gst_no')


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'phone', 'credit_limit', 'is_active')
    search_fields = ('code', 'name', 'phone')


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'company', 'mrp', 'gst_percent', 'reorder_level', 'is_active')
    search_fields = ('code', 'name', 'barcode')
    list_filter = ('category', 'is_active')
