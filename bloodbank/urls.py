from django.urls import path
from . import views

urlpatterns = [
    path('register/', views.bloodbank_register_view, name='bloodbank-register'),
    path('login/', views.bloodbank_login_view, name='bloodbank-login'),
    path('dashboard/', views.bloodbank_dashboard_view, name='bloodbank-dashboard'),

    # Stock ledger
    path('stock/add/', views.add_stock_view, name='stock-add'),
    path('stock/update/', views.update_stock_view, name='stock-update'),
    path('stock/delete/', views.delete_stock_view, name='stock-delete'),
]
