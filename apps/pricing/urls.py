from django.urls import path
from . import views

app_name = 'pricing'

urlpatterns = [
    # Daily prices
    # GET    /api/pricing/daily-prices/?session=        - List with movement
    # GET    /api/pricing/daily-prices/{sid}/{vid}/     - One price with movement
    path('daily-prices/', views.daily_price_list, name='daily-price-list'),
    path('daily-prices/<uuid:session_id>/<uuid:variant_id>/', views.daily_price_detail, name='daily-price-detail'),
    path('daily-prices/<uuid:session_id>/<uuid:variant_id>/recompute/', views.daily_price_recompute, name='daily-price-recompute'),
    path('daily-prices/<uuid:session_id>/<uuid:variant_id>/manual/', views.daily_price_manual, name='daily-price-manual'),

    # Session sweeps
    path('sessions/<uuid:session_id>/recompute/', views.session_recompute, name='session-recompute'),
    path('sessions/<uuid:session_id>/pending/', views.session_pending, name='session-pending'),

    # Settings and unit conversion
    path('settings/', views.pricing_settings, name='settings'),
    path('variants/<uuid:variant_id>/conversion/', views.variant_conversion, name='variant-conversion'),
]
