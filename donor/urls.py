from django.urls import path
from . import views

urlpatterns = [
    path('donorlogin/', views.donorlogin_view, name='donorlogin'),
    path('donorsignup/', views.donorsignup_view, name='donorsignup'),
    path('donor-dashboard/', views.donor_dashboard_view, name='donor-dashboard'),
]
