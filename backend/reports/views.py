from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsStoreStaff
from pharma_erp.utils import export_to_csv
from . import services


class BaseReportView(APIView):
    """
    Shared plumbing of the date-range reports.

    Subclasses set ``report_type``, ``filename`` and ``columns`` (pairs of
    row key and CSV header) and implement ``get_rows``. ``?export=csv``
    returns the same rows as a download.
    """
    permission_classes = [IsStoreStaff]
    report_type = ''
    filename = 'report'
    columns = []
    total_keys = []
    uses_date_range = True

    def get_date_range(self, request):
        today = timezone.localdate()
        period = request.query_params.get('period')
        if period == 'month':
            return today + relativedelta(day=1), today
        if period == 'last_month':
            start = today + relativedelta(months=-1, day=1)
            return start, start + relativedelta(day=31)
        if period == 'financial_year':
            start_year = today.year if today.month >= 4 else today.year - 1
            return today.replace(year=start_year, month=4, day=1), today
        if period:
            raise ValidationError({"period": "Use month, last_month or financial_year."})

        start_date = self.parse_param(request, 'start_date') or today
        end_date = self.parse_param(request, 'end_date') or today
        if start_date > end_date:
            raise ValidationError({"end_date": "End date must be on or after start date."})
        return start_date, end_date

    def parse_param(self, request, name):
        raw = request.query_params.get(name)
        # Front-ends send these literals for cleared pickers
        if not raw or raw in ('null', 'undefined'):
            return None
        value = parse_date(raw)
        if value is None:
            raise ValidationError({name: "Use the YYYY-MM-DD format."})
        return value

    def get_rows(self, request, start_date, end_date):
        raise NotImplementedError

    def get_extra(self, request, start_date, end_date, rows):
        return {}

    def get(self, request):
        if self.uses_date_range:
            start_date, end_date = self.get_date_range(request)
        else:
            start_date = end_date = None
        rows = self.get_rows(request, start_date, end_date)

        if request.query_params.get('export') == 'csv':
            return export_to_csv(
                self.filename,
                [header for _, header in self.columns],
                [[row.get(key, '') for key, _ in self.columns] for row in rows],
            )

        data = {
            "report_type": self.report_type,
            "start_date": start_date,
            "end_date": end_date,
            "details": rows,
        }
        if self.total_keys:
            data["totals"] = services.column_totals(rows, self.total_keys)
        data.update(self.get_extra(request, start_date, end_date, rows))
        return Response(data)


class DailySalesReportView(BaseReportView):
    report_type = "Daily Sales"
    filename = "daily_sales"
    columns = [
        ('invoice_date', 'Date'), ('invoice_count', 'Bills'), ('taxable_amount', 'Taxable'),
        ('total_gst', 'GST'), ('grand_total', 'Total'), ('paid_amount', 'Collected'),
        ('balance_amount', 'Outstanding'),
    ]
    total_keys = ['taxable_amount', 'total_gst', 'grand_total', 'paid_amount', 'balance_amount']

    def get_rows(self, request, start_date, end_date):
        return services.daily_sales(start_date, end_date)

    def get_extra(self, request, start_date, end_date, rows):
        return {"by_payment_mode": services.sales_by_payment_mode(start_date, end_date)}


class SalesRegisterReportView(BaseReportView):
    report_type = "Sales Register"
    filename = "sales_register"
    columns = [
        ('invoice_no', 'Invoice No'), ('invoice_date', 'Date'), ('customer_name', 'Customer'),
        ('customer_phone', 'Phone'), ('payment_mode', 'Mode'), ('taxable_amount', 'Taxable'),
        ('cgst_amount', 'CGST'), ('sgst_amount', 'SGST'), ('igst_amount', 'IGST'),
        ('round_off', 'Round Off'), ('grand_total', 'Total'), ('balance_amount', 'Balance'),
    ]
    total_keys = ['taxable_amount', 'cgst_amount', 'sgst_amount', 'igst_amount', 'grand_total', 'balance_amount']

    def get_rows(self, request, start_date, end_date):
        return services.sales_register(start_date, end_date)


class ProductSalesReportView(BaseReportView):
    report_type = "Product-wise Sales"
    filename = "product_sales"
    columns = [
        ('product_code', 'Code'), ('product_name', 'Product'), ('qty', 'Qty'),
        ('taxable_amount', 'Taxable'), ('total_gst', 'GST'), ('total_amount', 'Total'),
        ('cost_amount', 'Cost'), ('profit', 'Profit'),
    ]
    total_keys = ['taxable_amount', 'total_gst', 'total_amount', 'cost_amount', 'profit']

    def get_rows(self, request, start_date, end_date):
        return services.product_sales(start_date, end_date)


class CustomerSalesReportView(BaseReportView):
    report_type = "Customer-wise Sales"
    filename = "customer_sales"
    columns = [
        ('customer_name', 'Customer'), ('customer_phone', 'Phone'), ('invoice_count', 'Bills'),
        ('grand_total', 'Total'), ('paid_amount', 'Paid'), ('balance_amount', 'Outstanding'),
    ]
    total_keys = ['grand_total', 'paid_amount', 'balance_amount']

    def get_rows(self, request, start_date, end_date):
        return services.customer_sales(start_date, end_date)


class PurchaseRegisterReportView(BaseReportView):
    report_type = "Purchase Register"
    filename = "purchase_register"
    columns = [
        ('invoice_no', 'Invoice No'), ('invoice_date', 'Date'), ('supplier__name', 'Supplier'),
        ('supplier_invoice_no', 'Supplier Bill'), ('purchase_type', 'Type'), ('taxable_amount', 'Taxable'),
        ('cgst_amount', 'CGST'), ('sgst_amount', 'SGST'), ('igst_amount', 'IGST'),
        ('grand_total', 'Total'), ('balance_amount', 'Balance'),
    ]
    total_keys = ['taxable_amount', 'cgst_amount', 'sgst_amount', 'igst_amount', 'grand_total', 'balance_amount']

    def get_rows(self, request, start_date, end_date):
        return services.purchase_register(start_date, end_date)


class SupplierPurchaseReportView(BaseReportView):
    report_type = "Supplier-wise Purchase"
    filename = "supplier_purchase"
    columns = [
        ('supplier_code', 'Code'), ('supplier_name', 'Supplier'), ('invoice_count', 'Bills'),
        ('taxable_amount', 'Taxable'), ('total_gst', 'GST'), ('grand_total', 'Total'),
        ('paid_amount', 'Paid'), ('balance_amount', 'Outstanding'),
    ]
    total_keys = ['taxable_amount', 'total_gst', 'grand_total', 'paid_amount', 'balance_amount']

    def get_rows(self, request, start_date, end_date):
        return services.supplier_purchases(start_date, end_date)


class StockValuationReportView(BaseReportView):
    report_type = "Stock Valuation"
    filename = "stock_valuation"
    uses_date_range = False
    columns = [
        ('product_code', 'Code'), ('product_name', 'Product'), ('batch_no', 'Batch'),
        ('expiry_date', 'Expiry'), ('qty', 'Qty'), ('purchase_rate', 'Cost Rate'), ('mrp', 'MRP'),
        ('cost_value', 'Cost Value'), ('mrp_value', 'MRP Value'),
    ]
    total_keys = ['cost_value', 'mrp_value']

    def get_rows(self, request, start_date, end_date):
        return services.stock_valuation()


class ExpiryReportView(BaseReportView):
    report_type = "Expiry Report"
    filename = "expiry_report"
    uses_date_range = False
    columns = [
        ('product_code', 'Code'), ('product_name', 'Product'), ('batch_no', 'Batch'),
        ('expiry_date', 'Expiry'), ('days_to_expiry', 'Days Left'), ('status', 'Status'),
        ('qty', 'Qty'), ('mrp_value', 'MRP Value'),
    ]
    total_keys = ['mrp_value']

    def get_rows(self, request, start_date, end_date):
        try:
            days = int(request.query_params.get('days', settings.ERP_EXPIRY_ALERT_DAYS))
        except ValueError:
            raise ValidationError({"days": "Must be a whole number."})
        return services.expiry_report(days)


class HsnSummaryReportView(BaseReportView):
    report_type = "HSN-wise Sales Summary"
    filename = "hsn_summary"
    columns = [
        ('hsn_code', 'HSN'), ('gst_percent', 'GST %'), ('qty', 'Qty'), ('taxable_amount', 'Taxable'),
        ('cgst_amount', 'CGST'), ('sgst_amount', 'SGST'), ('igst_amount', 'IGST'), ('total_amount', 'Total'),
    ]
    total_keys = ['taxable_amount', 'cgst_amount', 'sgst_amount', 'igst_amount', 'total_amount']

    def get_rows(self, request, start_date, end_date):
        return services.hsn_summary(start_date, end_date)


class GstSummaryReportView(BaseReportView):
    report_type = "GST Summary"
    filename = "gst_summary"
    columns = [
        ('type', 'Type'), ('taxable_amount', 'Taxable'), ('cgst_amount', 'CGST'),
        ('sgst_amount', 'SGST'), ('igst_amount', 'IGST'), ('total_gst', 'Total GST'),
    ]

    def get_rows(self, request, start_date, end_date):
        return services.gst_summary(start_date, end_date)
