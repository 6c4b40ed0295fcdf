from django.contrib import admin
from .models import BloodCamp, CampRegistration


class CampRegistrationInline(admin.TabularInline):
    model = CampRegistration
    extra = 0


@admin.register(BloodCamp)
class BloodCampAdmin(admin.ModelAdmin):
    list_display = ['name', 'city', 'date', 'bank', 'approved']
    list_filter = ['approved', 'city', 'date']
    search_fields = ['name', 'location', 'bank__name']
    inlines = [CampRegistrationInline]
