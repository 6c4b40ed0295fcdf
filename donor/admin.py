from django.contrib import admin
from .models import Donor, DonationRecord

@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['get_name', 'bloodgroup', 'mobile', 'last_donated_at', 'total_donations']
    list_filter = ['bloodgroup']
    search_fields = ['user__first_name', 'user__last_name', 'user__email', 'mobile']

@admin.register(DonationRecord)
class DonationRecordAdmin(admin.ModelAdmin):
    list_display = ['donor', 'date', 'location']
    list_filter = ['date']
    search_fields = ['donor__user__first_name', 'donor__user__last_name', 'location']
