from django.urls import path
from . import views

urlpatterns = [
    path('register/', views.register_camp_view, name='camp-register'),
    path('active/', views.active_camps_view, name='camp-active'),
    path('<int:pk>/join/', views.join_camp_view, name='camp-join'),
    path('<int:pk>/approve/', views.approve_camp_view, name='camp-approve'),
    path('<int:pk>/reject/', views.reject_camp_view, name='camp-reject'),
    path('<int:pk>/mark-donated/', views.mark_donated_view, name='camp-mark-donated'),
]
