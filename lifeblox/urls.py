"""lifeblox URL Configuration

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/4.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include

from bloodbank import views as bloodbank_views

urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication URLs
    path('adminlogin/', bloodbank_views.adminlogin_view, name='adminlogin'),
    path('logout/', bloodbank_views.logout_view, name='logout'),

    # Admin URLs
    path('admin-stats/', bloodbank_views.admin_stats_view, name='admin-stats'),

    # Public search
    path('api/blood-availability/', bloodbank_views.blood_availability_api_view, name='blood-availability'),

    # App URLs using include
    path('bloodbank/', include('bloodbank.urls')),
    path('donor/', include('donor.urls')),
    path('camp/', include('camp.urls')),
]
