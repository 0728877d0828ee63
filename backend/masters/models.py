from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from core.models import BaseModel

PERCENT_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]


class MasterBase(BaseModel):
    """Shared shape of the simple lookup masters."""
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    is_hidden = models.BooleanField(default=False)

    class Meta:
        abstract = True
        ordering = ['name']

    def __str__(self):
        return self.name


class Category(MasterBase):
    class Meta(MasterBase.Meta):
        verbose_name_plural = 'Categories'


class DrugSchedule(MasterBase):
    class Meta(MasterBase.Meta):
        ordering = ['code']


class DrugFormula(MasterBase):
    pass


class ProductType(MasterBase):
    pass


class Company(BaseModel):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    address = models.TextField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    gst_no = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    is_hidden = models.BooleanField(default=False)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Companies'

    def __str__(self):
        return self.name


class HsnCode(BaseModel):
    code = models.CharField(max_length=20, unique=True)
    description = models.TextField(blank=True, null=True)
    gst_percent = models.DecimalField(max_digits=5, decimal_places=2, default=0, validators=PERCENT_VALIDATORS)
    cgst_percent = models.DecimalField(max_digits=5, decimal_places=2, default=0, validators=PERCENT_VALIDATORS)
    sgst_percent = models.DecimalField(max_digits=5, decimal_places=2, default=0, validators=PERCENT_VALIDATORS)
    is_active = models.BooleanField(default=True)
    is_hidden = models.BooleanField(default=False)

    class Meta:
        ordering = ['code']
        verbose_name = 'HSN Code'

    def save(self, *args, **kwargs):
        # Split the rate when only the combined GST was entered
        gst = Decimal(str(self.gst_percent or 0))
        if gst and not self.cgst_percent and not self.sgst_percent:
            self.cgst_percent = gst / 2
            self.sgst_percent = gst / 2
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.code} ({self.gst_percent}%)"


class Party(BaseModel):
    """Fields shared by suppliers and customers."""
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    state = models.CharField(max_length=100, blank=True, null=True)
    pincode = models.CharField(max_length=10, blank=True, null=True)
    gst_no = models.CharField(max_length=20, blank=True, null=True)
    credit_days = models.PositiveIntegerField(default=0)
    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    opening_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = models.BooleanField(default=True)
    is_hidden = models.BooleanField(default=False)

    class Meta:
        abstract = True
        ordering = ['name']

    def __str__(self):
        return self.name


class Supplier(Party):
    contact_person = models.CharField(max_length=150, blank=True, null=True)
    drug_license_no = models.CharField(max_length=50, blank=True, null=True)


class Customer(Party):
    pass


class Product(BaseModel):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)

    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    company = models.ForeignKey(Company, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    product_type = models.ForeignKey(ProductType, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    hsn = models.ForeignKey(HsnCode, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    schedule = models.ForeignKey(DrugSchedule, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    formula = models.ForeignKey(DrugFormula, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')

    unit = models.CharField(max_length=20, default='PCS')
    pack_size = models.PositiveIntegerField(default=1)

    mrp = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    purchase_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    selling_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    gst_percent = models.DecimalField(max_digits=5, decimal_places=2, default=0, validators=PERCENT_VALIDATORS)

    min_stock = models.PositiveIntegerField(default=0)
    max_stock = models.PositiveIntegerField(default=0)
    reorder_level = models.PositiveIntegerField(default=0)

    barcode = models.CharField(max_length=100, blank=True, null=True)
    rack_location = models.CharField(max_length=50, blank=True, null=True)
    image_url = models.URLField(blank=True, null=True)

    is_active = models.BooleanField(default=True)
    is_hidden = models.BooleanField(default=False)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def effective_gst_percent(self):
        """Own rate, else the HSN rate, else the store default."""
        if self.gst_percent:
            return Decimal(str(self.gst_percent))
        if self.hsn_id and self.hsn.gst_percent:
            return Decimal(str(self.hsn.gst_percent))
        return Decimal(str(settings.ERP_DEFAULT_GST_PERCENT))
