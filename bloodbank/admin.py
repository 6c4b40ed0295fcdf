from django.contrib import admin
from .models import BloodBank, StockBatch, StockSummary


@admin.register(BloodBank)
class BloodBankAdmin(admin.ModelAdmin):
    list_display = ['name', 'hospital_name', 'city', 'license_no', 'version']
    list_filter = ['city', 'category']
    search_fields = ['name', 'hospital_name', 'email', 'license_no']


@admin.register(StockBatch)
class StockBatchAdmin(admin.ModelAdmin):
    list_display = ['bank', 'component', 'bloodgroup', 'city', 'units', 'expiry_date', 'counted']
    list_filter = ['bloodgroup', 'component', 'city']
    # Edits must go through StockLedger so the summary stays in step.
    readonly_fields = ['bank', 'component', 'bloodgroup', 'city', 'units', 'expiry_date', 'added_at', 'counted']


@admin.register(StockSummary)
class StockSummaryAdmin(admin.ModelAdmin):
    list_display = ['bank', 'bloodgroup', 'units']
    list_filter = ['bloodgroup']
    readonly_fields = ['bank', 'bloodgroup', 'units']
